"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from chatfn.llm.functions import FunctionSpecification
from chatfn.llm.types import Message
from chatfn.session.context import ChatContext

ROLE_COLORS = {
    "system": "magenta",
    "user": "blue",
    "assistant": "green",
    "function": "cyan",
}


class OutputFormatter:
    """Rich-based output formatting for the chatfn CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def format_message(self, message: Message) -> None:
        color = ROLE_COLORS.get(message.role, "white")
        if message.content is not None:
            self.console.print(Text(f"{message.role}: ", style=color), end="")
            self.console.print(message.content, markup=False)
        if message.name is not None:
            self.console.print(f"  [dim]Name:[/dim] {message.name}")
        if message.function_call is not None:
            fc = message.function_call
            self.console.print(
                f"  [bold yellow]Function call:[/bold yellow] {fc.name}"
            )
            self.console.print(Syntax(fc.arguments or "{}", "json", theme="monokai"))

    def format_wire(self, body: str) -> None:
        try:
            pretty = json.dumps(json.loads(body), indent=2, ensure_ascii=False)
        except json.JSONDecodeError:
            pretty = body
        self.console.print(Syntax(pretty, "json", theme="monokai"))

    def format_function_list(self, functions: list[FunctionSpecification]) -> None:
        table = Table(title="Declared Functions", show_lines=True)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Parameters")
        table.add_column("Required")
        table.add_column("Description")

        for f in functions:
            params = f.parameters
            names = ", ".join(params.properties) if params else ""
            required = ", ".join(params.required) if params else ""
            table.add_row(f.name, names, required, f.description or "")

        self.console.print(table)

    def format_context(self, context: ChatContext) -> None:
        self.console.print(Panel(
            f"[bold]Model:[/bold] {context.model}\n"
            f"[bold]Messages:[/bold] {len(context.messages)}\n"
            f"[bold]Functions:[/bold] {', '.join(f.name for f in context.functions) or 'none'}\n"
            f"[bold]Function call:[/bold] {context.function_call or 'unset'}",
            title="Conversation",
        ))
        for msg in context.messages:
            self.format_message(msg)

    def format_session_list(self, sessions: list[dict]) -> None:
        if not sessions:
            self.console.print("[dim]No sessions found.[/dim]")
            return

        table = Table(title="Sessions")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Model", no_wrap=True)
        table.add_column("Messages", justify="right")
        table.add_column("Updated", no_wrap=True)

        for s in sessions:
            table.add_row(
                s.get("session_id", "?"),
                s.get("model", "?"),
                str(s.get("message_count", 0)),
                s.get("updated_at", "?"),
            )

        self.console.print(table)

    def format_config(self, config: dict) -> None:
        self.console.print(Syntax(json.dumps(config, indent=2, default=str), "json", theme="monokai"))
