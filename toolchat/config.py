"""Configuration loading: MCP server config, YAML settings, .env secrets."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from . import get_data_dir
from .errors import ConfigError

DEFAULT_SERVERS_CONFIG = "servers_config.json"


@dataclass
class ServerConfig:
    """How to launch one MCP server over stdio."""
    name: str
    command: str
    args: List[str] = field(default_factory=list)
    env: Optional[Dict[str, str]] = None
    cwd: Optional[str] = None


@dataclass
class ServersConfig:
    """All configured servers, in file order."""
    servers: Dict[str, ServerConfig] = field(default_factory=dict)
    path: Optional[Path] = None

    def names(self) -> List[str]:
        return list(self.servers.keys())


def load_env(data_dir: Path = None):
    """Load secrets from ./.env and <data dir>/.env (existing env wins)."""
    load_dotenv(find_dotenv(usecwd=True))
    env_file = (data_dir or get_data_dir()) / ".env"
    if env_file.exists():
        load_dotenv(env_file)


def _parse_server(name: str, raw, path: Path) -> ServerConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"Server '{name}' must be a mapping", path=path)

    command = raw.get("command")
    if not isinstance(command, str) or not command.strip():
        raise ConfigError(f"Server '{name}' is missing required field: command", path=path)

    args = raw.get("args") or []
    if not isinstance(args, list):
        raise ConfigError(f"Server '{name}': args must be a list", path=path)

    env = raw.get("env")
    if env is not None and not isinstance(env, dict):
        raise ConfigError(f"Server '{name}': env must be a mapping", path=path)

    cwd = raw.get("cwd")
    if cwd is not None and not isinstance(cwd, str):
        raise ConfigError(f"Server '{name}': cwd must be a string", path=path)

    return ServerConfig(
        name=name,
        command=command,
        args=[str(a) for a in args],
        env={str(k): str(v) for k, v in env.items()} if env else None,
        cwd=cwd,
    )


def _read_yaml(config_path: Path, label: str):
    """Parse a JSON/YAML file; unreadable or malformed content is a ConfigError."""
    try:
        with open(config_path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"{label} is not valid JSON/YAML", details=str(e), path=config_path) from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"{label} is not UTF-8 text", details=str(e), path=config_path) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read {label.lower()}: {config_path}", details=e.strerror or str(e), path=config_path
        ) from e


def load_servers_config(path: str | Path = DEFAULT_SERVERS_CONFIG) -> ServersConfig:
    """Load and validate the MCP server configuration file.

    Accepts JSON or YAML. Raises ConfigError for anything unusable so that
    startup fails before a session begins.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}", path=config_path)

    data = _read_yaml(config_path, "Config file")

    if not isinstance(data, dict) or "mcpServers" not in data:
        raise ConfigError("Config missing required field: mcpServers", path=config_path)

    raw_servers = data["mcpServers"]
    if not isinstance(raw_servers, dict):
        raise ConfigError("mcpServers must be a mapping of server name to settings", path=config_path)

    servers = {
        str(name): _parse_server(str(name), raw, config_path)
        for name, raw in raw_servers.items()
    }
    return ServersConfig(servers=servers, path=config_path)


# section -> required type when present
SETTINGS_SECTIONS = {
    "provider": str,
    "models": dict,
    "providers": dict,
    "tools": dict,
    "logging": dict,
}


def load_settings(config_dir: Path = None) -> dict:
    """Load optional user settings from <data dir>/config/settings.yaml."""
    config_path = (config_dir or get_data_dir() / "config") / "settings.yaml"
    if not config_path.exists():
        return {}

    data = _read_yaml(config_path, "settings.yaml") or {}
    if not isinstance(data, dict):
        raise ConfigError("settings.yaml must contain a mapping", path=config_path)

    for key, expected in SETTINGS_SECTIONS.items():
        value = data.get(key)
        if value is not None and not isinstance(value, expected):
            kind = "a mapping" if expected is dict else "a string"
            raise ConfigError(f"settings.yaml: '{key}' must be {kind}", path=config_path)

    for name, provider_cfg in (data.get("providers") or {}).items():
        if provider_cfg is not None and not isinstance(provider_cfg, dict):
            raise ConfigError(f"settings.yaml: 'providers.{name}' must be a mapping", path=config_path)
    return data


def provider_settings(settings: dict, provider_name: str) -> dict:
    """Resolve constructor kwargs for a provider from settings."""
    provider_cfg = (settings.get("providers", {}) or {}).get(provider_name, {}) or {}
    kwargs = {}
    model = (settings.get("models", {}) or {}).get(provider_name)
    if model:
        kwargs["model"] = model
    if provider_cfg.get("api_key"):
        kwargs["api_key"] = provider_cfg["api_key"]
    if provider_cfg.get("base_url"):
        kwargs["base_url"] = provider_cfg["base_url"]
    return kwargs


def strict_tool_names(settings: dict) -> bool:
    return bool((settings.get("tools", {}) or {}).get("strict_names", False))


def generic_api_key() -> Optional[str]:
    """LLM_API_KEY works for whichever provider is selected."""
    return os.getenv("LLM_API_KEY")
