#!/usr/bin/env python3
"""
toolchat CLI - Main entry point for the toolchat command
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from . import __version__, ensure_data_dir
from .config import (
    DEFAULT_SERVERS_CONFIG,
    generic_api_key,
    load_env,
    load_servers_config,
    load_settings,
    provider_settings,
    strict_tool_names,
)
from .errors import ConfigError, ServerConnectionError
from .logging_config import level_from_name, setup_logging

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version')
@click.option('--config', 'config_path', default=DEFAULT_SERVERS_CONFIG, show_default=True,
              type=click.Path(dir_okay=False, path_type=Path), help='MCP server configuration file')
@click.option('--provider', '-p', default=None, help='LLM provider (groq, openai, anthropic, ollama)')
@click.option('--model', '-m', default=None, help='Model name for the provider')
@click.option('--verbose', '-v', count=True, help='More logging (-v info, -vv debug)')
@click.pass_context
def main(ctx, version, config_path, provider, model, verbose):
    """
    toolchat - chat with any LLM using MCP server tools.

    Run without arguments for interactive chat.

    \b
    Examples:
        toolchat                              # Interactive chat
        toolchat ask "Add 15 and 27"          # Single turn
        toolchat detect '{"tool": "echo", "arguments": {}}'
        toolchat --provider anthropic tools   # List server tools
    """
    if version:
        click.echo(f"toolchat v{__version__}")
        ctx.exit()

    data_dir = ensure_data_dir()
    load_env(data_dir)
    try:
        settings = load_settings()
    except ConfigError as e:
        _fail(e)

    _setup_logging(settings, verbose)

    ctx.obj = {
        "config_path": config_path,
        "provider": provider or settings.get("provider") or _default_provider(),
        "model": model,
        "settings": settings,
    }

    if ctx.invoked_subcommand is None:
        ctx.invoke(chat)


@main.command()
@click.pass_obj
def chat(obj):
    """Interactive chat (the default)."""
    _run(_chat(obj))


@main.command()
@click.argument('message')
@click.pass_obj
def ask(obj, message):
    """Send a single message and get a response."""
    reply = _run(_ask(obj, message))
    if reply is None:
        sys.exit(1)


@main.command()
@click.argument('text')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
def detect(text, as_json):
    """Classify TEXT as a tool call or a plain answer (no servers, no model)."""
    from .core.detection import detect_tool_call
    from .ui import TerminalUI

    result = detect_tool_call(text)
    if as_json:
        request = result.tool_call_request
        click.echo(json.dumps({
            "is_tool_call": result.is_tool_call,
            "detection_method": result.detection_method.value,
            "tool_call_request": {
                "tool_name": request.tool_name,
                "arguments": request.arguments,
            } if request else None,
        }, indent=2))
        return

    TerminalUI(interactive=False).print_detection(result)


@main.command()
@click.pass_obj
def tools(obj):
    """List every tool offered by the configured servers."""
    _run(_tools(obj))


@main.command()
@click.option('--models', 'show_models', is_flag=True, help='Also list models of configured providers')
@click.pass_obj
def providers(obj, show_models):
    """List providers and whether each is configured."""
    from .providers import get_provider, list_providers
    from .ui import TerminalUI

    status = {}
    models = {} if show_models else None
    for name in list_providers():
        provider = get_provider(name, **_provider_kwargs(obj["settings"], name))
        status[name] = provider.is_configured()
        if show_models and status[name]:
            models[name] = provider.list_models()
    TerminalUI(interactive=False).print_providers(status, obj["provider"], models=models)


@main.command()
@click.argument('query', required=False)
@click.pass_obj
def compare(obj, query):
    """Send QUERY to every configured provider and compare tool-call detection.

    Without QUERY, the built-in scenarios are run.
    """
    from .core.evaluation import DEFAULT_SCENARIOS, StructuredOutputTester
    from .providers import get_provider, list_providers
    from .ui import TerminalUI

    ui = TerminalUI(interactive=False)
    catalog = _run(_catalog(obj))

    available = {}
    for name in list_providers():
        provider = get_provider(name, **_provider_kwargs(obj["settings"], name))
        if provider.is_configured():
            available[name] = provider
    if not available:
        ui.print_warning("No LLM providers configured. Set at least one API key.")
        sys.exit(1)

    tester = StructuredOutputTester(available, catalog)
    queries = [query] if query else DEFAULT_SCENARIOS
    for scenario in queries:
        if len(queries) > 1:
            ui.print_system(f"Scenario: {scenario}")
        for result in tester.run_all(scenario):
            ui.rule(result.provider)
            if not result.ok:
                ui.print_error(result.error)
                continue
            ui.print_system(result.llm_response)
            ui.print_detection(result.detection)


# === Async entry points ===

async def _chat(obj):
    from .core.session import ChatSession
    from .servers import connect_all
    from .ui import TerminalUI

    provider = _build_provider(obj)
    servers = load_servers_config(obj["config_path"])
    ui = TerminalUI()
    connections = await connect_all(servers)

    session = ChatSession(
        connections, provider, ui=ui,
        strict_tool_names=strict_tool_names(obj["settings"]),
    )
    try:
        await session.start()
        ui.print_header(provider.name, provider.model, servers=servers.names(), tool_count=len(session.registry))
    except BaseException:
        await session.close()
        raise
    await session.run()


async def _ask(obj, message):
    from .core.session import ChatSession
    from .servers import connect_all
    from .ui import TerminalUI

    provider = _build_provider(obj)
    servers = load_servers_config(obj["config_path"])
    ui = TerminalUI(interactive=False)
    connections = await connect_all(servers)

    session = ChatSession(
        connections, provider, ui=ui,
        strict_tool_names=strict_tool_names(obj["settings"]),
    )
    try:
        return await session.handle_turn(message)
    finally:
        await session.close()


async def _tools(obj):
    from .core.registry import ToolRegistry
    from .servers import close_all, connect_all
    from .ui import TerminalUI

    servers = load_servers_config(obj["config_path"])
    connections = await connect_all(servers)
    try:
        registry = await ToolRegistry.discover(connections)
    finally:
        await close_all(connections)

    ui = TerminalUI(interactive=False)
    ui.print_tools(
        {tool.name: tool for tool in registry.tools},
        servers={tool.name: registry.server_for(tool.name) for tool in registry.tools},
    )
    for name, owners in registry.collisions.items():
        ui.print_warning(f"Tool '{name}' is offered by {', '.join(owners)}; using {owners[0]}")


async def _catalog(obj):
    from .core.registry import ToolRegistry
    from .servers import close_all, connect_all

    connections = await connect_all(load_servers_config(obj["config_path"]))
    try:
        registry = await ToolRegistry.discover(connections)
    finally:
        await close_all(connections)
    return registry.tools


# === Helpers ===

def _run(coro):
    """Run a coroutine; startup errors exit with status 1."""
    try:
        return asyncio.run(coro)
    except (ConfigError, ServerConnectionError) as e:
        _fail(e)


def _fail(error):
    from rich.console import Console
    from rich.markup import escape

    Console(stderr=True).print(f"[red]Error: {escape(str(error))}[/red]", highlight=False)
    sys.exit(1)


def _setup_logging(settings: dict, verbose: int):
    log_cfg = settings.get("logging", {}) or {}
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = level_from_name(log_cfg.get("level"))
    setup_logging(level, log_file=log_cfg.get("file"))


def _default_provider() -> str:
    from .providers import DEFAULT_PROVIDER
    return DEFAULT_PROVIDER


def _provider_kwargs(settings: dict, name: str) -> dict:
    kwargs = provider_settings(settings, name)
    # Ollama sends api_key as a bearer header to OLLAMA_BASE_URL; only an explicit key is used
    if name != "ollama" and "api_key" not in kwargs and generic_api_key():
        kwargs["api_key"] = generic_api_key()
    return kwargs


def _build_provider(obj):
    """Selected provider; unknown or unconfigured is a ConfigError."""
    from .providers import get_provider

    name = obj["provider"]
    kwargs = _provider_kwargs(obj["settings"], name)
    if obj["model"]:
        kwargs["model"] = obj["model"]

    provider = get_provider(name, **kwargs)
    if not provider.is_configured():
        raise ConfigError(f"Provider '{name}' is not configured", details=provider.get_config_help())
    logger.info("Using provider %s (%s)", name, provider.model)
    return provider


if __name__ == '__main__':
    main()
