#!/usr/bin/env python3
"""
Nova Interactive CLI

Chat with the assistant from a terminal. Turns run through the same
Assistant as the HTTP API, against one shared session.
"""

import argparse
import json
import logging
import mimetypes
import signal
import sys
import threading
import webbrowser
from pathlib import Path
from typing import Callable, Optional

from .assistant import Assistant
from .config import config
from .gateway import GatewayError, OpenAIGateway
from .models import BinaryPart, ClientActionType, TurnResult

logger = logging.getLogger(__name__)

# Set by the first Ctrl+C; a second one exits immediately.
_shutdown_requested = threading.Event()

BANNER = """
╔════════════════════════════════════════════════════════════════╗
║                         Nova Assistant                          ║
╚════════════════════════════════════════════════════════════════╝

Commands:
  /help     Show this message
  /tools    List the tools Nova can use
  /reset    Forget the conversation and start over
  /quit     Leave

Type a message and press Enter.
"""


def _handle_sigint(signum: int, frame) -> None:
    if _shutdown_requested.is_set():
        logger.debug("Second interrupt, exiting")
        sys.exit(1)
    _shutdown_requested.set()
    print("\n\nStopping after the current turn... (Ctrl+C again to quit now)")


def setup_logging(verbose: bool = False) -> None:
    """Log to stderr; DEBUG with -v, otherwise warnings only."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    print(BANNER)


def load_attachment(path: str) -> BinaryPart:
    """Read a file from disk as a message attachment."""
    file_path = Path(path)
    mime_type, _ = mimetypes.guess_type(file_path.name)
    return BinaryPart(
        data=file_path.read_bytes(),
        mime_type=mime_type or "application/octet-stream",
    )


def render_result(result: TurnResult, open_actions: bool = False) -> None:
    """Print a turn result and optionally perform its client action."""
    print("\n" + (result.reply or "(no reply)") + "\n")
    action = result.client_action
    if action is None:
        return
    print(f"[action] {action.type.value}: {action.url}\n")
    if open_actions and action.type == ClientActionType.OPEN_URL and action.url:
        webbrowser.open(action.url)


def check_models(models: list[str]) -> int:
    """Probe each model with a trivial prompt. Returns the number of failures."""
    gateway = OpenAIGateway(config.gateway)
    failures = 0
    try:
        for model in models:
            print(f"Testing {model}... ", end="", flush=True)
            try:
                gateway.check_model(model)
                print("OK")
            except GatewayError as e:
                failures += 1
                print(f"FAILED: {e}")
    finally:
        gateway.close()
    return failures


class InteractiveCLI:
    """Read-eval-print loop over an Assistant."""

    def __init__(self, assistant: Assistant, open_actions: bool = False):
        self.assistant = assistant
        self.open_actions = open_actions
        self.commands: dict[str, Callable[[], bool]] = {
            "/help": self._show_help,
            "/tools": self._show_tools,
            "/reset": self._reset,
            "/quit": self._quit,
            "/exit": self._quit,
        }

    def _show_help(self) -> bool:
        print_banner()
        return True

    def _show_tools(self) -> bool:
        print("\nTools:")
        print("─" * 64)
        print(self.assistant.registry.get_tools_summary())
        print()
        return True

    def _reset(self) -> bool:
        self.assistant.reset()
        print("\nConversation reset.\n")
        return True

    def _quit(self) -> bool:
        print("\nGoodbye!\n")
        return False

    def handle_command(self, line: str) -> bool:
        """Run a slash command. Returns False when the loop should stop."""
        command = self.commands.get(line.split()[0].lower())
        if command is None:
            print(f"\nUnknown command: {line}")
            print("Type /help to see the commands.\n")
            return True
        return command()

    def send(self, message: str) -> bool:
        """Run one turn and print it. Returns False when the loop should stop."""
        try:
            result = self.assistant.chat(message)
        except KeyboardInterrupt:
            _shutdown_requested.set()
            print("\n\nInterrupted.\n")
            return False
        render_result(result, self.open_actions)
        return not _shutdown_requested.is_set()

    def run(self) -> None:
        print_banner()
        keep_going = True
        while keep_going and not _shutdown_requested.is_set():
            try:
                line = input("you> ").strip()
            except KeyboardInterrupt:
                if _shutdown_requested.is_set():
                    break
                print("\n\nType /quit to leave.\n")
                continue
            except EOFError:
                print("\nGoodbye!\n")
                break

            if not line:
                continue
            if line.startswith("/"):
                keep_going = self.handle_command(line)
            else:
                keep_going = self.send(line)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    signal.signal(signal.SIGINT, _handle_sigint)

    parser = argparse.ArgumentParser(
        description="Nova Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              # Start interactive mode
  %(prog)s -q "What's the weather in Pune?"
  %(prog)s -q "What is in this picture?" -f photo.jpg
  %(prog)s --check-models gemini-flash-lite-latest gemini-2.0-flash
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--query", type=str, help="Send a single message and exit")
    parser.add_argument("-f", "--file", type=str, help="Attach a file to the --query message")
    parser.add_argument(
        "--open-actions",
        action="store_true",
        help="Open OPEN_URL actions in the local browser",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the --query result as JSON (for scripting)",
    )
    parser.add_argument(
        "--check-models",
        nargs="+",
        metavar="MODEL",
        help="Probe the listed models on the configured endpoint and exit",
    )
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.check_models:
        return 1 if check_models(args.check_models) else 0

    if args.file and not args.query:
        parser.error("--file requires --query")

    attachment = None
    if args.file:
        try:
            attachment = load_attachment(args.file)
        except OSError as e:
            parser.error(f"cannot read --file {args.file}: {e.strerror or e}")

    assistant = Assistant()
    try:
        if args.query:
            result = assistant.chat(args.query, attachment=attachment)
            if args.json:
                output = {
                    **result.to_response(),
                    "status": result.status.value,
                    "error": result.error,
                    "tools_used": result.tools_used,
                }
                print(json.dumps(output, indent=2))
            else:
                render_result(result, args.open_actions)
            return 1 if result.failed else 0

        InteractiveCLI(assistant, open_actions=args.open_actions).run()
        return 0
    finally:
        assistant.close()


if __name__ == "__main__":
    sys.exit(main())
