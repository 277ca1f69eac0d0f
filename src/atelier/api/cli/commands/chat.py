"""Chat command - Interactive chat mode."""

import asyncio

import typer

from atelier.api.cli.context import load_settings, make_console
from atelier.application.factory import AtelierFactory

EXIT_WORDS = ("exit", "quit", "bye")


def chat(ctx: typer.Context):
    """Start an interactive chat session.

    The whole conversation is sent as context with every message. Without
    ATELIER_CHAT_API_KEY the bot answers with demo replies.
    """
    settings = load_settings(ctx)
    out = make_console(ctx)

    out.print_banner()
    if settings.chat_demo_mode:
        out.print_warning("No chat API key configured - running in demo mode.")
    out.print_system_message("Type 'exit', 'quit', or press Ctrl+C to end session", "info")
    out.print_divider()

    async def run_chat_loop():
        async with AtelierFactory(settings) as factory:
            session = factory.create_chat_session()
            for message in session.transcript:
                out.print_message(message)

            while True:
                try:
                    user_input = out.prompt()
                except (KeyboardInterrupt, EOFError):
                    break

                if user_input.strip().lower() in EXIT_WORDS:
                    break

                with out.console.status("Thinking…"):
                    operation = await session.send(user_input)
                if operation is None:
                    continue

                out.print_message(session.transcript.last)
                if operation.failed:
                    out.print_debug(f"{operation.error.kind.value}: {operation.error.detail}")

        out.print_divider()
        out.print_system_message("Goodbye! 👋", "info")

    asyncio.run(run_chat_loop())
