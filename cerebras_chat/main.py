"""Console entry point.

Runs a terminal chat against the completion API using the same controller
a graphical client would use. Sessions and settings persist to a JSON file.
Environment variables are loaded from .env file.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from cerebras_chat.models import AttachedFile, Notification

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "WARNING").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

HELP = """Commands:
  /new              start a new chat
  /list             list chats
  /open N           switch to chat N from /list
  /attach PATH      attach a file to the next message
  /models           list available models
  /stats            show usage analytics
  /quit             exit"""


def _print_notification(notification: Notification) -> None:
    print(f"[{notification.title}] {notification.description}")


async def run_console(data_file: Path) -> None:
    """Read prompts from stdin and stream replies to stdout."""
    from cerebras_chat.analytics import aggregate
    from cerebras_chat.chat import ChatController
    from cerebras_chat.errors import ChatError
    from cerebras_chat.parsing import RawFile
    from cerebras_chat.store import JsonFileKeyValueStore

    controller = ChatController(
        kv_store=JsonFileKeyValueStore(data_file),
        notify=_print_notification,
    )
    session = controller.start()
    print(f"{session.title} ({len(controller.store)} chats). Type /help for commands.")

    pending: list[AttachedFile] = []
    try:
        while True:
            line = (await asyncio.to_thread(input, "> ")).strip()
            if not line:
                continue
            if line in ("/quit", "/exit"):
                break

            try:
                if line == "/help":
                    print(HELP)
                elif line == "/new":
                    print(controller.new_session().title)
                elif line == "/list":
                    for i, s in enumerate(controller.store.sessions):
                        marker = "*" if s.id == controller.current_session_id else " "
                        print(f"{marker} {i}: {s.title} ({len(s.messages)} messages)")
                elif line.startswith("/open "):
                    session = controller.store.sessions[int(line.split(maxsplit=1)[1])]
                    controller.select_session(session.id)
                elif line.startswith("/attach "):
                    raw = RawFile.from_path(line.split(maxsplit=1)[1])
                    pending.extend(await controller.attach_files([raw]))
                elif line == "/models":
                    print("\n".join(await controller.available_models()))
                elif line == "/stats":
                    print(aggregate(controller.store.sessions).model_dump_json(indent=2))
                else:
                    files, pending = pending, []
                    await controller.send_message(
                        line,
                        files,
                        on_chunk=lambda chunk: print(chunk, end="", flush=True),
                    )
                    if not controller.config.stream_response and controller.current_session:
                        print(controller.current_session.messages[-1].content, end="")
                    print()
            except (ChatError, OSError, ValueError, IndexError) as e:
                print(f"Error: {e}")
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await controller.aclose()


def main() -> None:
    """Application entry point.

    Set CHAT_DATA_FILE to choose where sessions and settings are stored.
    """
    data_file = Path(os.getenv("CHAT_DATA_FILE", Path.home() / ".cerebras_chat.json"))
    logger.info(f"Using data file {data_file}")
    asyncio.run(run_console(data_file))


if __name__ == "__main__":
    main()
