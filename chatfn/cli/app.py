"""
Main CLI application for chatfn.

Usage:
    chatfn ask TEXT [--model M] [--functions FILE] [--function-call D] [--session ID] [--save]
    chatfn encode TEXT... [--model M] [--functions FILE] [--function-call D]
    chatfn functions show|check
    chatfn sessions list|show|delete
    chatfn config show|validate
    chatfn version
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from chatfn.config import ChatConfig, find_config_path, load_config
from chatfn.errors import ChatError

app = typer.Typer(name="chatfn", help="chatfn - chat completions with function calling")
functions_app = typer.Typer(help="Function declarations")
sessions_app = typer.Typer(help="Saved conversations")
config_app = typer.Typer(help="Configuration management")

app.add_typer(functions_app, name="functions")
app.add_typer(sessions_app, name="sessions")
app.add_typer(config_app, name="config")

console = Console()

__version__ = "0.3.6"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load(profile: str | None = None, **overrides) -> ChatConfig:
    return load_config(find_config_path(), profile=profile, cli_overrides=overrides)


def _build_transport(cfg: ChatConfig):
    """Create the transport for *cfg*.  Tests replace this."""
    from chatfn.llm.transport.openai_compat import HttpTransport

    return HttpTransport(
        url=cfg.api.url,
        api_key=cfg.api.api_key(),
        timeout=float(cfg.api.timeout_seconds),
    )


def _read_functions(path: Path | None):
    from chatfn.llm.functions import load_functions

    if path is None:
        return []
    return load_functions(path.read_text(encoding="utf-8"))


def _fail(exc: Exception) -> None:
    console.print(f"[red]Error:[/red] {exc}")
    raise typer.Exit(1)


@app.callback()
def main_callback(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
):
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def ask(
    text: str = typer.Argument(..., help="User message"),
    model: Optional[str] = typer.Option(None, help="Model identifier"),
    functions: Optional[Path] = typer.Option(None, "--functions", "-f", help="JSON file with function declarations"),
    function_call: Optional[str] = typer.Option(None, "--function-call", help="Function-call directive"),
    session: Optional[str] = typer.Option(None, "--session", help="Resume saved session ID"),
    save: bool = typer.Option(False, "--save", help="Save the conversation after the exchange"),
    show_request: bool = typer.Option(False, "--show-request", help="Print the request body"),
    profile: Optional[str] = typer.Option(None, help="Config profile name"),
):
    """Send one message and print the assistant's reply."""
    from chatfn.cli.output import OutputFormatter
    from chatfn.llm.engine import CompletionEngine
    from chatfn.llm.types import Message
    from chatfn.session.context import ChatContext
    from chatfn.session.session import ChatSession
    from chatfn.session.store import ContextStore

    cfg = _load(profile, **{"api.model": model})
    formatter = OutputFormatter(console)

    async def _run():
        store = None
        if session or save:
            store = ContextStore(cfg.session.history_db)
            await store.init()
        try:
            engine = CompletionEngine(_build_transport(cfg), model=cfg.api.model)
            if session:
                chat = await ChatSession.resume(engine, store, session)
            else:
                chat = ChatSession(engine, store=store)
            for spec in _read_functions(functions):
                if chat.context.get_function(spec.name) is None:
                    chat.push_function(spec)
            if function_call is not None:
                chat.set_function_call(function_call)
            if show_request:
                preview = ChatContext.from_dict(chat.context.to_dict())
                preview.push_message(Message.user(text))
                formatter.format_wire(preview.encode_for_wire())
            reply = await chat.send(text)
            formatter.format_message(reply)
            if store is not None:
                console.print(f"[dim]session: {chat.session_id}[/dim]")
        finally:
            if store is not None:
                await store.close()

    try:
        asyncio.run(_run())
    except (ChatError, ValueError, OSError) as e:
        _fail(e)


@app.command()
def encode(
    text: List[str] = typer.Argument(..., help="User messages, in order"),
    model: Optional[str] = typer.Option(None, help="Model identifier"),
    functions: Optional[Path] = typer.Option(None, "--functions", "-f", help="JSON file with function declarations"),
    function_call: Optional[str] = typer.Option(None, "--function-call", help="Function-call directive"),
    raw: bool = typer.Option(False, "--raw", help="Print the compact body instead of pretty JSON"),
):
    """Print the request body for a conversation without sending it."""
    from chatfn.cli.output import OutputFormatter
    from chatfn.llm.types import Message
    from chatfn.session.context import ChatContext

    cfg = _load(**{"api.model": model})
    try:
        ctx = ChatContext(cfg.api.model)
        for t in text:
            ctx.push_message(Message.user(t))
        ctx.set_functions(_read_functions(functions))
        if function_call is not None:
            ctx.set_function_call(function_call)
    except (ChatError, ValueError, OSError) as e:
        _fail(e)

    body = ctx.encode_for_wire()
    if raw:
        typer.echo(body)
    else:
        OutputFormatter(console).format_wire(body)


@functions_app.command("show")
def functions_show(path: Path = typer.Argument(..., help="JSON file with function declarations")):
    """Parse a declaration file and list its functions."""
    from chatfn.cli.output import OutputFormatter

    try:
        specs = _read_functions(path)
    except (ChatError, OSError) as e:
        _fail(e)
    OutputFormatter(console).format_function_list(specs)


@functions_app.command("check")
def functions_check(
    path: Path = typer.Argument(..., help="JSON file with function declarations"),
    name: str = typer.Argument(..., help="Function name"),
    arguments: str = typer.Argument(..., help="Arguments payload (JSON)"),
):
    """Validate an arguments payload against a declared function."""
    try:
        specs = {s.name: s for s in _read_functions(path)}
    except (ChatError, OSError) as e:
        _fail(e)
    spec = specs.get(name)
    if spec is None:
        console.print(f"[red]Function not found:[/red] {name}")
        raise typer.Exit(1)
    try:
        spec.validate_arguments(arguments)
    except ChatError as e:
        _fail(e)
    console.print(f"[green]Arguments are valid for {name}.[/green]")


@sessions_app.command("list")
def sessions_list():
    """List saved sessions."""

    async def _run():
        from chatfn.cli.output import OutputFormatter
        from chatfn.session.store import ContextStore

        cfg = _load()
        store = ContextStore(cfg.session.history_db)
        await store.init()
        try:
            sessions = await store.list_sessions()
        finally:
            await store.close()
        OutputFormatter(console).format_session_list(sessions)

    asyncio.run(_run())


@sessions_app.command("show")
def sessions_show(session_id: str = typer.Argument(..., help="Session ID")):
    """Show a saved conversation."""

    async def _run():
        from chatfn.session.store import ContextStore

        cfg = _load()
        store = ContextStore(cfg.session.history_db)
        await store.init()
        try:
            return await store.load(session_id)
        finally:
            await store.close()

    from chatfn.cli.output import OutputFormatter

    ctx = asyncio.run(_run())
    if ctx is None:
        console.print(f"[red]Session not found:[/red] {session_id}")
        raise typer.Exit(1)
    OutputFormatter(console).format_context(ctx)


@sessions_app.command("delete")
def sessions_delete(session_id: str = typer.Argument(..., help="Session ID")):
    """Delete a saved session."""

    async def _run():
        from chatfn.session.store import ContextStore

        cfg = _load()
        store = ContextStore(cfg.session.history_db)
        await store.init()
        try:
            return await store.delete(session_id)
        finally:
            await store.close()

    if not asyncio.run(_run()):
        console.print(f"[red]Session not found:[/red] {session_id}")
        raise typer.Exit(1)
    console.print(f"Deleted session: {session_id}")


@config_app.command("show")
def config_show():
    """Show effective config."""
    from chatfn.cli.output import OutputFormatter

    OutputFormatter(console).format_config(_load().to_dict())


@config_app.command("validate")
def config_validate():
    """Validate config and show any type issues."""
    config_path = find_config_path()
    try:
        cfg = load_config(config_path)
        console.print("[green]Config is valid.[/green]")
        if config_path:
            console.print(f"  Loaded from: {config_path}")
        else:
            console.print("  [dim]No config file found, using defaults.[/dim]")
        console.print(f"  Endpoint: {cfg.api.url}")
        console.print(f"  Model: {cfg.api.model}")
        console.print(f"  History DB: {cfg.session.history_db}")
    except Exception as e:
        console.print(f"[red]Config validation failed:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """Show version."""
    console.print(f"chatfn v{__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
