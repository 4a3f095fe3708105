"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from ..chat.models import MessageRole
from ..config import MAX_QUESTION_LENGTH, load_settings
from ..errors import NewsChatError
from ..logging_config import setup_logging
from ..session import SessionController
from ..stream import SessionPhase, StreamingSessionEngine
from ..ui.app import render_live
from ..ui.formatting import format_time_ago, render_annotated, render_answer
from .providers import get_store, get_transport

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="newschat",
    help="Conversational client for a streaming crypto news analysis backend",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    thread: str | None = typer.Option(
        None,
        "--thread",
        "-t",
        help="Continue an existing thread"
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the final answer as JSON"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning or error"
    ),
):
    """Ask a question and stream the answer."""
    if len(question) > MAX_QUESTION_LENGTH:
        console.print(f"[red]Error: Question exceeds {MAX_QUESTION_LENGTH} characters[/red]")
        raise typer.Exit(code=1)

    async def _ask():
        settings = load_settings()
        setup_logging(log_level or settings.log_level)

        try:
            store = get_store(settings)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        transport = get_transport(settings)
        try:
            await store.connect()
            engine = StreamingSessionEngine(transport)
            controller = SessionController(store, engine)
            if thread is not None and controller.open_thread(thread) is None:
                controller.location.push(thread)

            if as_json:
                state = await controller.ask(question)
            else:
                with Live(console=console, refresh_per_second=8, transient=True) as live:
                    def _on_state(current):
                        live.update(render_live(current))

                    engine.add_listener(_on_state)
                    state = await controller.ask(question)
                    engine.remove_listener(_on_state)

            if state.phase == SessionPhase.ERROR:
                console.print(f"[red]Error: {state.error}[/red]")
                raise typer.Exit(code=1)

            if as_json:
                console.print_json(data={
                    "threadId": state.thread_id,
                    "answer": state.answer.to_wire() if state.answer else None,
                })
            else:
                if state.answer is not None:
                    console.print(render_answer(state.answer))
                console.print(f"\n[dim]Thread: {state.thread_id}[/dim]")

        except NewsChatError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await transport.close()
            await store.disconnect()

    asyncio.run(_ask())


@app.command()
def chats():
    """List stored chats, most recently updated first."""
    async def _chats():
        try:
            store = get_store()
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        try:
            await store.connect()

            items = store.chats
            if not items:
                console.print("[yellow]No chats yet[/yellow]")
                return

            table = Table(show_header=True, header_style="bold cyan")
            table.add_column("Thread", style="dim")
            table.add_column("Title", style="bold")
            table.add_column("Messages", justify="right", width=8)
            table.add_column("Updated", style="green", width=10)

            for item in items:
                chat = store.get_chat(item.thread_id)
                table.add_row(
                    item.thread_id,
                    item.title,
                    str(len(chat.messages) if chat else 0),
                    format_time_ago(item.updated_at),
                )

            console.print(table)

        except NewsChatError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_chats())


@app.command()
def show(
    thread: str = typer.Argument(..., help="Thread id of the chat")
):
    """Show the conversation of one chat."""
    async def _show():
        try:
            store = get_store()
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        try:
            await store.connect()

            chat = store.get_chat(thread)
            if chat is None:
                console.print(f"[red]Error: Unknown chat: {thread}[/red]")
                raise typer.Exit(code=1)

            console.print(f"[bold]{chat.title}[/bold] [dim]({chat.thread_id})[/dim]\n")
            for message in chat.messages:
                timestamp = message.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
                if message.role == MessageRole.USER:
                    console.print(Panel(
                        message.content,
                        title=f"You [dim]{timestamp}[/dim]",
                        title_align="left",
                        border_style="green",
                    ))
                else:
                    body = render_answer(message.answer) if message.answer else render_annotated(message.content)
                    console.print(Panel(
                        body,
                        title=f"Assistant [dim]{timestamp}[/dim]",
                        title_align="left",
                        border_style="magenta",
                    ))

        except NewsChatError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_show())


@app.command()
def delete(
    thread: str = typer.Argument(..., help="Thread id of the chat"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt"
    )
):
    """Delete a chat."""
    async def _delete():
        try:
            store = get_store()
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        try:
            await store.connect()

            chat = store.get_chat(thread)
            if chat is None:
                console.print(f"[red]Error: Unknown chat: {thread}[/red]")
                raise typer.Exit(code=1)

            if not yes:
                confirm = typer.confirm(f"Delete chat \"{chat.title}\"?")
                if not confirm:
                    console.print("[dim]Aborted.[/dim]")
                    return

            await store.delete_chat(thread)
            console.print(f"[green]Deleted chat {thread}[/green]")

        except NewsChatError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.disconnect()

    asyncio.run(_delete())


@app.command(name="tui")
def tui_command(
    thread: str | None = typer.Option(
        None,
        "--thread",
        "-t",
        help="Open an existing chat on start"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch interactive TUI chat interface."""
    async def _tui():
        from ..ui import run_textual_tui

        settings = load_settings()
        try:
            store = get_store(settings)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        try:
            await run_textual_tui(
                store=store,
                transport=get_transport(settings),
                thread_id=thread,
                log_level=log_level or settings.log_level,
            )
        except NewsChatError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

    asyncio.run(_tui())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
