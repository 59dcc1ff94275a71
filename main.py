#!/usr/bin/env python3
"""channel-analyst - interactive chat over a YouTube channel export or a CSV.

Usage:
    python main.py --videos channel.json              # Chat about a channel's videos
    python main.py --table posts.csv                  # Chat about a CSV table
    python main.py --videos channel.json "most viewed video?"   # Single-message mode
    python main.py --verbose                          # Show tool calls and rounds
    python main.py --no-color                         # Disable ANSI colors

Slash commands (type /help for full list):
    /attach PATH - Attach a .json video export or a .csv table
    /image PATH  - Attach an image to the next message
    /data        - Describe the loaded data
    /tools       - Show tool calls of the last reply
    /status      - Show session, model and log file
    /config      - Show settings (/config reload re-reads config.json)
    /reset       - Start a new session (keeps loaded data)
    /quit        - Exit
Anything without a leading / is sent as a chat message. Ctrl-C while a
reply is running cancels it.
"""

import argparse
import mimetypes
import os
import sys
import threading
from pathlib import Path

# readline is optional (not available on Windows without pyreadline3)
try:
    import readline
    _READLINE_AVAILABLE = True
except ImportError:
    _READLINE_AVAILABLE = False

import config
from analyst.chat import AttachedTable, ChatService, user_record
from analyst.conversation import Turn
from analyst.llm.base import ImageData
from analyst.logging import attach_log_file, get_current_log_path, set_session_id, setup_logging
from analyst.session import InMemorySessionStore
from dataset_ops.loaders import DatasetLoadError, load_table_csv, load_videos_json
from dataset_ops.summary import summarize_dataset

# ---- ANSI colors ----

_USE_COLOR = True
_VERBOSE = False


def _c(code: str, text: str) -> str:
    if not _USE_COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def dim(text: str) -> str:
    return _c("2", text)


def cyan(text: str) -> str:
    return _c("36", text)


def green(text: str) -> str:
    return _c("32", text)


def yellow(text: str) -> str:
    return _c("33", text)


def red(text: str) -> str:
    return _c("31", text)


def bold(text: str) -> str:
    return _c("1", text)


# ---- Readline ----

def _history_path() -> str:
    return os.path.join(str(config.get_data_dir()), ".cli_history")


_SLASH_COMMANDS = [
    ("/attach",   "Attach a .json video export or a .csv table"),
    ("/config",   "Show settings (/config reload re-reads config.json)"),
    ("/data",     "Describe the loaded data"),
    ("/exit",     "Exit (alias for /quit)"),
    ("/help",     "Show available commands"),
    ("/image",    "Attach an image to the next message"),
    ("/quit",     "Exit"),
    ("/reset",    "Start a new session (keeps loaded data)"),
    ("/sessions", "List chat sessions of this run"),
    ("/status",   "Show session, model and log file"),
    ("/tools",    "Show tool calls of the last reply"),
]

_COMMAND_NAME_WIDTH = max(len(c[0]) for c in _SLASH_COMMANDS)


def _slash_completer(text, state):
    """Readline completer for slash commands."""
    if text.startswith("/"):
        matches = [c[0] for c in _SLASH_COMMANDS if c[0].startswith(text)]
    else:
        matches = []
    if state < len(matches):
        return matches[state]
    return None


def setup_readline():
    if not _READLINE_AVAILABLE:
        return
    readline.set_history_length(500)
    readline.set_completer(_slash_completer)
    readline.set_completer_delims(" \t\n")
    readline.parse_and_bind("tab: complete")
    try:
        readline.read_history_file(_history_path())
    except (FileNotFoundError, OSError):
        pass


def save_readline():
    if not _READLINE_AVAILABLE:
        return
    try:
        path = _history_path()
        os.makedirs(os.path.dirname(path), exist_ok=True)
        readline.write_history_file(path)
    except OSError:
        pass


# ---- Session state ----

class CliSession:
    """Loaded data, pending attachments and the stored conversation."""

    def __init__(self, store: InMemorySessionStore, user: str):
        self.store = store
        self.user = user
        self.session_id = store.create_session(user, "channel-analyst")
        self.videos = None
        self.table = None
        self.pending_table: AttachedTable | None = None
        self.pending_images: list[ImageData] = []
        self.last_reply = None
        self.user_name = ""

    def reset(self) -> None:
        self.store.delete_session(self.session_id)
        self.session_id = self.store.create_session(self.user, "channel-analyst")
        self.pending_table = None
        self.pending_images = []
        self.last_reply = None

    def history(self) -> list[Turn]:
        return [Turn(role=m.role, text=m.content) for m in self.store.list_messages(self.session_id)]

    def attach(self, path: str) -> str:
        p = Path(path).expanduser()
        if p.suffix.lower() == ".json":
            self.videos = load_videos_json(p)
            return f"Loaded {len(self.videos)} videos from {p.name}"
        dataset, text = load_table_csv(p)
        self.pending_table = AttachedTable(dataset=dataset, csv_text=text)
        return f"Attached {p.name}: {len(dataset)} rows, columns: {', '.join(dataset.fields)}"

    def attach_image(self, path: str) -> str:
        p = Path(path).expanduser()
        mime_type = mimetypes.guess_type(p.name)[0] or "image/png"
        self.pending_images.append(ImageData(data=p.read_bytes(), mime_type=mime_type))
        return f"Image {p.name} will be sent with your next message"


# ---- Commands ----

def cmd_help():
    print()
    print(bold("Slash commands:"))
    for name, desc in _SLASH_COMMANDS:
        print(f"  {cyan(name.ljust(_COMMAND_NAME_WIDTH + 2))}{desc}")
    print()
    print(dim("  Anything else is sent as a chat message. Ctrl-C cancels a running reply."))


def cmd_data(session: CliSession):
    datasets = [d for d in (session.videos, session.table) if d is not None]
    if session.pending_table is not None:
        datasets.append(session.pending_table.dataset)
    if not datasets:
        print(dim("  No data loaded. Use /attach PATH."))
        return
    for dataset in datasets:
        print()
        print(summarize_dataset(dataset))


def cmd_status(service: ChatService, session: CliSession):
    messages = session.store.list_messages(session.session_id)
    print()
    print(f"  Session:  {session.session_id} ({len(messages)} messages)")
    print(f"  Model:    {service.model} (images: {service.image_model})")
    if session.user_name:
        print(f"  Name:     {session.user_name}")
    loaded = []
    if session.videos is not None:
        loaded.append(f"{len(session.videos)} videos")
    if session.table is not None:
        loaded.append(f"table {session.table.name or '(unnamed)'} ({len(session.table)} rows)")
    if session.pending_table is not None:
        loaded.append(f"pending {session.pending_table.dataset.name}")
    if session.pending_images:
        loaded.append(f"{len(session.pending_images)} pending image(s)")
    print(f"  Data:     {', '.join(loaded) or 'none'}")
    print(f"  Log file: {get_current_log_path() or '-'}")


def cmd_sessions(session: CliSession):
    for meta in session.store.list_sessions(session.user):
        marker = "*" if meta["id"] == session.session_id else " "
        print(f"  {marker} {meta['id']}  {meta['title']}  {dim(str(meta['message_count']) + ' messages')}")


def cmd_config(service: ChatService, rest: str) -> ChatService:
    """Print each setting with its current value; ``reload`` rebuilds the service from disk."""
    if rest == "reload":
        config.reload_config()
        service = ChatService(
            service.adapter,
            model=config.SMART_MODEL,
            image_model=config.IMAGE_MODEL,
            system_prompt=config.load_system_prompt(),
        )
        print(dim(f"  Reloaded config (model: {service.model})"))
        return service
    print()
    for key, desc in config.CONFIG_DESCRIPTIONS.items():
        value = config.get(key)
        print(f"  {cyan(key)} = {value if value is not None else dim('(default)')}")
        print(dim(f"      {desc}"))
    return service


def cmd_tools(session: CliSession):
    reply = session.last_reply
    if reply is None or not reply.tool_calls:
        print(dim("  No tool calls in the last reply."))
        return
    for i, call in enumerate(reply.tool_calls, 1):
        print(f"  {i}. {bold(call.name)}({call.args}) -> {call.result.kind} {dim(f'{call.elapsed_ms} ms')}")
        if call.result.kind in ("scalar", "error"):
            print(dim(f"     {call.result.to_dict()}"))


# ---- Reply display ----

def _save_image(session: CliSession, index: int, image) -> Path:
    ext = mimetypes.guess_extension(image.mime_type) or ".png"
    out_dir = config.get_data_dir() / "images"
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{session.session_id}_{index}{ext}"
    path.write_bytes(image.image_bytes)
    return path


def display_reply(session: CliSession, reply, streamed: bool):
    if reply.error:
        print(red(f"  {reply.text}"))
        return
    if not streamed and reply.text:
        print(reply.text)
    elif reply.structured is not None:
        # Code ran: the structured rendering replaces the streamed draft
        print()
        print(dim("  --- with code execution ---"))
        print(reply.structured.text)

    for chart in reply.charts:
        points = chart.points
        print(green(f"  [chart] {chart.title} ({len(points)} points)"))
        if points:
            print(dim(f"    {points[0].date}: {points[0].value}  ...  {points[-1].date}: {points[-1].value}"))
    for card in reply.cards:
        print(green(f"  [video] {card.title}"))
        print(f"    {card.url}")
    for i, image in enumerate(reply.images, 1):
        path = _save_image(session, i, image)
        print(green(f"  [image] {image.description}"))
        print(f"    saved to {path}")
    if reply.grounding is not None:
        if reply.grounding.sources:
            print(dim("  Sources:"))
            for src in reply.grounding.sources:
                print(dim(f"    - {src.title or src.uri}: {src.uri}"))
        if reply.grounding.queries:
            print(dim(f"  Searched: {' · '.join(reply.grounding.queries)}"))
    if reply.stop_reason == "round_limit":
        print(yellow("  (stopped after the tool-call limit)"))
    elif reply.stop_reason == "cancelled":
        print(yellow("  (cancelled)"))
    if _VERBOSE and reply.tool_calls:
        cmd_tools(session)


def run_turn(service: ChatService, session: CliSession, text: str):
    """Run one reply on a worker thread so Ctrl-C can cancel it."""
    cancel_event = threading.Event()
    outcome = {}
    streamed = {"any": False}

    def on_chunk(chunk: str):
        streamed["any"] = True
        print(chunk, end="", flush=True)

    pending_table = session.pending_table
    images = list(session.pending_images)
    history = session.history()

    def work():
        outcome["reply"] = service.reply(
            history,
            text,
            videos=session.videos,
            table=session.table,
            attached_table=pending_table,
            images=images,
            user_name=session.user_name,
            cancel_event=cancel_event,
            on_chunk=on_chunk,
        )

    worker = threading.Thread(target=work, daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.1)
    except KeyboardInterrupt:
        cancel_event.set()
        print(yellow("\n  Cancelling..."))
        worker.join()

    reply = outcome.get("reply")
    if streamed["any"]:
        print()
    if reply is None:
        return

    session.store.append_message(
        session.session_id,
        user_record(text, images=images, videos_attached=session.videos is not None),
    )
    session.store.append_message(session.session_id, reply.to_record())
    session.last_reply = reply
    if pending_table is not None:
        session.table = pending_table.dataset
        session.pending_table = None
    session.pending_images = []
    display_reply(session, reply, streamed["any"])


def print_welcome(session: CliSession):
    print()
    print("=" * 60)
    print("  channel-analyst")
    print("=" * 60)
    print()
    if session.videos is not None:
        print(f"Loaded {len(session.videos)} videos. Try:")
        print("  'What's the average view count?'")
        print("  'Plot likes over time'")
        print("  'Play the most viewed video'")
    else:
        print("Ask anything; attach data with /attach PATH.")
    print()
    print("Type /help for available commands.")
    print("-" * 60)


# ---- Main ----

def main():
    global _USE_COLOR, _VERBOSE

    parser = argparse.ArgumentParser(
        description="Chat with Gemini about a YouTube channel export or a CSV table"
    )
    parser.add_argument(
        "command", nargs="?", default=None,
        help="Single message to send (non-interactive mode)",
    )
    parser.add_argument("--videos", default=None, help="Video export JSON to load")
    parser.add_argument("--table", default=None, help="CSV table to attach")
    parser.add_argument("--name", default=None, help="Your name, used by the assistant")
    parser.add_argument(
        "--no-color", action="store_true",
        help="Disable ANSI color output",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Show tool calls and debug logging",
    )
    args = parser.parse_args()

    if args.no_color:
        _USE_COLOR = False
    _VERBOSE = args.verbose

    setup_logging(verbose=args.verbose)

    api_key = config.get_api_key()
    if not api_key:
        print(red("GOOGLE_API_KEY is not set (add it to .env)."))
        sys.exit(1)

    from analyst.llm.gemini_adapter import GeminiAdapter
    adapter = GeminiAdapter(api_key=api_key, timeout_ms=config.LLM_TIMEOUT_MS)
    service = ChatService(
        adapter,
        model=config.SMART_MODEL,
        image_model=config.IMAGE_MODEL,
        system_prompt=config.load_system_prompt(),
    )

    store = InMemorySessionStore()
    session = CliSession(store, user=os.environ.get("USER", "local"))
    set_session_id(session.session_id)
    attach_log_file(session.session_id)
    session.user_name = config.get("user_name", "")
    if args.name:
        session.user_name = args.name

    try:
        if args.videos:
            print(dim(session.attach(args.videos)))
        if args.table:
            print(dim(session.attach(args.table)))
    except (DatasetLoadError, OSError) as e:
        print(red(f"Error: {e}"))
        sys.exit(1)

    if args.command:
        run_turn(service, session, args.command)
        return

    setup_readline()
    print_welcome(session)

    try:
        while True:
            try:
                user_input = input(cyan("\n> ")).strip()
            except EOFError:
                break

            if not user_input:
                continue

            if user_input.startswith("/"):
                cmd, _, rest = user_input[1:].partition(" ")
                cmd = cmd.lower().strip()
                rest = rest.strip()

                if cmd in ("quit", "exit", "q"):
                    break
                elif cmd == "help":
                    cmd_help()
                elif cmd == "data":
                    cmd_data(session)
                elif cmd == "tools":
                    cmd_tools(session)
                elif cmd == "status":
                    cmd_status(service, session)
                elif cmd == "sessions":
                    cmd_sessions(session)
                elif cmd == "config":
                    service = cmd_config(service, rest)
                elif cmd == "reset":
                    session.reset()
                    set_session_id(session.session_id)
                    print(dim(f"  New session {session.session_id}"))
                elif cmd in ("attach", "image"):
                    if not rest:
                        print(red(f"  Usage: /{cmd} PATH"))
                        continue
                    try:
                        msg = session.attach(rest) if cmd == "attach" else session.attach_image(rest)
                        print(dim(f"  {msg}"))
                    except (DatasetLoadError, OSError) as e:
                        print(red(f"  Error: {e}"))
                else:
                    print(red(f"  Unknown command: /{cmd}"))
                    print(dim("  Type /help for available commands."))
                continue

            run_turn(service, session, user_input)

    except KeyboardInterrupt:
        pass
    finally:
        print()
        save_readline()
        print("Goodbye.")


if __name__ == "__main__":
    main()
