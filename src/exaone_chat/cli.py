"""CLI interface for exaone-chat."""

import asyncio
import signal
import threading
from typing import Optional

import click
import httpx

from .client.consumer import ChatSession
from .config import DATA_DIR
from .repositories.file import FileStorage
from .store.conversation_store import ConversationStore
from .store.theme_store import THEMES, ThemeStore
from .utils.text import format_date


@click.group()
@click.version_option(version="0.1.0", prog_name="exaone-chat")
def cli():
    """exaone-chat: a streaming chat relay and terminal client."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int):
    """Run the relay server."""
    import uvicorn

    uvicorn.run("exaone_chat.api.app:app", host=host, port=port)


class TranscriptPrinter:
    """Echoes the streaming reply's new characters to the terminal."""

    def __init__(self, store: ConversationStore) -> None:
        self.store = store
        self.message_id: Optional[str] = None
        self.printed_reasoning = 0
        self.printed_content = 0

    def reset(self) -> None:
        self.message_id = None
        self.printed_reasoning = 0
        self.printed_content = 0

    def __call__(self, store: ConversationStore) -> None:
        conversation = store.active_conversation
        if conversation is None or not conversation.messages:
            return
        message = conversation.messages[-1]
        if message.role != "assistant" or not message.is_streaming:
            return
        if self.message_id != message.id:
            self.reset()
            self.message_id = message.id

        reasoning = message.reasoning_content or ""
        if len(reasoning) > self.printed_reasoning:
            click.secho(reasoning[self.printed_reasoning:], nl=False, dim=True)
            self.printed_reasoning = len(reasoning)
        if len(message.content) > self.printed_content:
            if self.printed_content == 0 and reasoning:
                click.echo("\n")
            click.echo(message.content[self.printed_content:], nl=False)
            self.printed_content = len(message.content)


async def _chat_loop(url: str, store: ConversationStore) -> None:
    printer = TranscriptPrinter(store)
    store.subscribe(printer)
    loop = asyncio.get_running_loop()

    async with httpx.AsyncClient(base_url=url, timeout=httpx.Timeout(None, connect=10.0)) as client:
        session = ChatSession(store, client)
        while True:
            try:
                prompt = await _read_prompt("You: ")
            except (EOFError, KeyboardInterrupt):
                break
            prompt = prompt.strip()
            if prompt.lower() in {"exit", "quit"}:
                break
            if not prompt:
                continue

            printer.reset()
            loop.add_signal_handler(signal.SIGINT, session.abort)
            try:
                message_id = await session.send_message(prompt)
            finally:
                loop.remove_signal_handler(signal.SIGINT)

            # Aborted and failed replies are replaced wholesale, so show the final text
            reply = next(
                (m for m in store.active_conversation.messages if m.id == message_id), None
            )
            if printer.printed_content == 0 and reply is not None:
                click.echo(reply.content, nl=False)
            click.echo()
            if store.error:
                click.secho(f"Error: {store.error}", fg="red", err=True)


@cli.command()
@click.option("--url", default="http://127.0.0.1:8000", show_default=True, help="Relay base URL")
def chat(url: str):
    """Chat with the model in the terminal. Ctrl-C stops a reply in progress."""
    store = ConversationStore(FileStorage(DATA_DIR))
    try:
        asyncio.run(_chat_loop(url, store))
    except KeyboardInterrupt:
        click.echo()


async def _read_prompt(text: str) -> str:
    """Read a line on a daemon thread so Ctrl-C at the prompt never waits on it."""
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def read() -> None:
        try:
            line = input(text)
        except BaseException as e:
            loop.call_soon_threadsafe(_settle, future, None, e)
        else:
            loop.call_soon_threadsafe(_settle, future, line, None)

    threading.Thread(target=read, daemon=True).start()
    return await future


def _settle(future: "asyncio.Future", result: Optional[str], error: Optional[BaseException]) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


@cli.command()
def conversations():
    """List saved conversations, newest first."""
    store = ConversationStore(FileStorage(DATA_DIR))
    items = store.conversations
    if not items:
        click.echo("No conversations yet.")
        return
    for conversation in items:
        marker = "*" if conversation.id == store.active_conversation_id else " "
        click.echo(
            f"{marker} {format_date(conversation.updated_at):<14} "
            f"{conversation.title} ({len(conversation.messages)} messages)"
        )


@cli.command()
@click.argument("name", required=False, type=click.Choice(THEMES))
@click.option("--toggle", is_flag=True, help="Switch between light and dark")
def theme(name: Optional[str], toggle: bool):
    """Show or change the display theme."""
    store = ThemeStore(FileStorage(DATA_DIR))
    if toggle:
        store.toggle_theme()
    elif name:
        store.set_theme(name)
    click.echo(store.theme)


if __name__ == "__main__":
    cli()
