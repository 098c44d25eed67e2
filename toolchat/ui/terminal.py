"""
Terminal UI for toolchat - interactive chat with MCP tools.
"""

import sys
from pathlib import Path
from typing import Dict, List

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from prompt_toolkit.styles import Style
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from .. import __version__, get_data_dir
from ..core.cancellation import run_in_daemon_thread
from ..core.models import DetectionResult, ToolDescriptor


class TerminalUI:
    """Terminal interface for a chat session."""

    def __init__(self, console: Console = None, interactive: bool = None, history_file: Path = None):
        self.console = console or Console()

        if interactive is None:
            interactive = sys.stdin.isatty() and sys.stdout.isatty()

        # Prompt with history; plain stdin when not attached to a terminal
        self.session = None
        if interactive:
            try:
                history_file = history_file or get_data_dir() / "history"
                history_file.parent.mkdir(parents=True, exist_ok=True)
                self.session = PromptSession(
                    history=FileHistory(str(history_file)),
                    auto_suggest=AutoSuggestFromHistory(),
                    style=Style.from_dict({
                        "prompt": "#e07a5f bold",
                        "placeholder": "#555555",
                    }),
                )
            except Exception as e:
                print(f"Warning: Could not initialize prompt session: {e}", file=sys.stderr)

    # === Input ===

    async def read_line(self, prompt: str = "You:") -> str:
        """Read one line of user input.

        Raises EOFError at end of input. Ctrl+C at the prompt ends input
        too: KeyboardInterrupt must not escape from inside a running task.
        """
        if self.session:
            try:
                return await self.session.prompt_async(
                    HTML(f"<prompt>{prompt}</prompt> "),
                    placeholder=HTML('<style fg="#555555">Ask anything... (exit to quit)</style>'),
                )
            except KeyboardInterrupt:
                self.console.print("[yellow]Goodbye![/yellow]")
                raise EOFError("interrupted at prompt") from None

        self.console.print(f"[bold #e07a5f]{prompt}[/bold #e07a5f] ", end="")
        # A blocked input() must never hold up interpreter shutdown
        return await run_in_daemon_thread(input, name="toolchat-stdin")

    # === Output ===

    def print_header(self, provider: str, model: str, servers: List[str] = None, tool_count: int = None):
        """Print startup header."""
        self.console.print()
        self.console.print(f"[bold cyan]toolchat[/bold cyan] [dim]v{__version__}[/dim]")

        info_parts = [provider, model or "default"]
        if servers is not None:
            info_parts.append(f"{len(servers)} server(s)")
        if tool_count is not None:
            info_parts.append(f"{tool_count} tool(s)")
        self.console.print(f"  [dim]{' · '.join(info_parts)}[/dim]")
        self.console.print()
        self.console.print("[dim]  Type exit or quit to leave • Ctrl+C to interrupt[/dim]")
        self.console.print()

    def print_assistant(self, message: str):
        self.console.print("[bold blue]Assistant:[/bold blue]", end=" ")
        self.console.print(message, markup=False, highlight=False)

    def print_tool(self, message: str, success: bool = True):
        """Print tool activity with status indicator."""
        indicator = "[green]●[/green]" if success else "[red]●[/red]"
        self.console.print(f"  {indicator} [dim]{escape(message)}[/dim]")

    def print_tools(self, tools: Dict[str, ToolDescriptor], servers: Dict[str, str] = None):
        """Table of the tool catalog."""
        if not tools:
            self.console.print("[dim]No tools available.[/dim]")
            return

        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Tool", style="cyan")
        if servers is not None:
            table.add_column("Server", style="dim")
        table.add_column("Arguments")
        table.add_column("Description", style="dim")

        for name, tool in tools.items():
            args = ", ".join(
                f"{a.name}*" if a.required else a.name for a in tool.arguments
            ) or "-"
            row = [name]
            if servers is not None:
                row.append(servers.get(name, ""))
            row.extend([args, tool.description or ""])
            table.add_row(*row)

        self.console.print()
        self.console.print(table)
        self.console.print("[dim]* required[/dim]")
        self.console.print()

    def print_providers(self, providers: Dict[str, bool], current: str, models: Dict[str, List[str]] = None):
        """Table of providers and whether they are configured, optionally with their models."""
        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Provider")
        table.add_column("Status")
        if models is not None:
            table.add_column("Models", style="dim")

        for name, configured in providers.items():
            marker = "[green]>[/green]" if name == current else " "
            status = "[green]configured[/green]" if configured else "[dim]not configured[/dim]"
            row = [f"{marker} {name}", status]
            if models is not None:
                row.append(escape(", ".join(models.get(name) or [])) or "-")
            table.add_row(*row)

        self.console.print()
        self.console.print(table)
        self.console.print()

    def print_detection(self, result: DetectionResult):
        """Show how a response was classified."""
        if result.is_tool_call:
            request = result.tool_call_request
            self.console.print(
                f"[green]✓ Tool call[/green] [dim]({result.detection_method.value})[/dim]"
            )
            self.console.print(f"  [cyan]tool:[/cyan] {escape(request.tool_name)}")
            for key, value in request.arguments.items():
                self.console.print(f"  [dim]{escape(key)}:[/dim] {escape(repr(value))}")
        else:
            self.console.print(
                f"[yellow]No tool call[/yellow] [dim]({result.detection_method.value})[/dim]"
            )

    def print_error(self, message: str):
        self.console.print(f"[red]Error: {escape(message)}[/red]")

    def print_warning(self, message: str):
        self.console.print(f"[yellow]{message}[/yellow]")

    def print_system(self, message: str):
        self.console.print(f"[dim]{escape(message)}[/dim]")

    def rule(self, title: str = ""):
        self.console.print(Rule(title, style="dim"))
