"""timetracker MCP Server."""

import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from . import date_time
from .aggregator import Aggregator
from .errors import EmptySessionsError, MarkNotEmptyError, TrackerError
from .models import Session, Tag, TrackerConfig
from .store import SessionStore

logger = logging.getLogger(__name__)

WHEN_PROPERTY = {
    "type": "string",
    "description": "Relative time such as '15m', '-2h', '13:15' or '-45'. Defaults to now.",
}


def get_store() -> SessionStore:
    """Get the store from TIMETRACKER_SESSIONS_PATH or the config file."""
    return SessionStore(TrackerConfig.load().sessions_path)


# Create the MCP server
server = Server("timetracker")


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="view_session",
            description="Show the current work session: start, time this week, time this session and the last mark.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="start_session",
            description="Start a new work session. Fails if the previous session is still active.",
            inputSchema={
                "type": "object",
                "properties": {"when": WHEN_PROPERTY},
            },
        ),
        Tool(
            name="mark_session",
            description="Add a mark to the active session, optionally with a note describing the work since the last mark.",
            inputSchema={
                "type": "object",
                "properties": {
                    "when": WHEN_PROPERTY,
                    "note": {
                        "type": "string",
                        "description": "Text to store on the new mark.",
                    },
                },
            },
        ),
        Tool(
            name="stop_session",
            description="Stop the active session.",
            inputSchema={
                "type": "object",
                "properties": {"when": WHEN_PROPERTY},
            },
        ),
        Tool(
            name="write_note",
            description="Write text on the last mark of the current session.",
            inputSchema={
                "type": "object",
                "properties": {
                    "text": {
                        "type": "string",
                        "description": "Text to write.",
                    },
                    "overwrite": {
                        "type": "boolean",
                        "description": "Replace existing text on the mark. Defaults to false.",
                        "default": False,
                    },
                },
                "required": ["text"],
            },
        ),
        Tool(
            name="tag_mark",
            description="Add or remove a tag on the last mark of the current session.",
            inputSchema={
                "type": "object",
                "properties": {
                    "tag": {
                        "type": "string",
                        "description": "Tag text. Backticks are not allowed.",
                    },
                    "remove": {
                        "type": "boolean",
                        "description": "Remove the tag instead of adding it.",
                        "default": False,
                    },
                },
                "required": ["tag"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    try:
        store = get_store()
    except TrackerError as e:
        return _text(f"Error: {e}")
    logger.debug("Tool call %s", name)

    if name == "view_session":
        return await handle_view_session(store, arguments)
    elif name == "start_session":
        return await handle_start_session(store, arguments)
    elif name == "mark_session":
        return await handle_mark_session(store, arguments)
    elif name == "stop_session":
        return await handle_stop_session(store, arguments)
    elif name == "write_note":
        return await handle_write_note(store, arguments)
    elif name == "tag_mark":
        return await handle_tag_mark(store, arguments)
    else:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _when(arguments: dict):
    now = date_time.now()
    when = arguments.get("when")
    if not when:
        return now
    return date_time.modify_by_relative_input(now, when)


def _current(store: SessionStore) -> Session:
    session = store.load_last()
    if session is None:
        raise EmptySessionsError("No session found. Use start_session first.")
    return session


async def handle_view_session(store: SessionStore, arguments: dict) -> list[TextContent]:
    """Handle view_session tool call."""
    try:
        aggregator = Aggregator.from_sessions(store.load_all())
        return _text(aggregator.summary().format_view())

    except (TrackerError, FileNotFoundError) as e:
        return _text(f"Error: {e}")


async def handle_start_session(store: SessionStore, arguments: dict) -> list[TextContent]:
    """Handle start_session tool call."""
    try:
        store.initialize()
        date = _when(arguments)
        last = store.load_last()
        if last is not None and last.is_active():
            return _text(
                f"Session already active since {date_time.format(last.start())}. "
                "Stop it with stop_session first."
            )

        path = store.session_path(date)
        if path.exists():
            return _text(f"Error: session file {path} already exists.")

        session = Session.new(date, path=path)
        store.save(session)
        return _text(f"Started session at {date_time.format(date)}")

    except (TrackerError, FileNotFoundError) as e:
        return _text(f"Error: {e}")


async def handle_mark_session(store: SessionStore, arguments: dict) -> list[TextContent]:
    """Handle mark_session tool call."""
    try:
        session = _current(store)
        date = _when(arguments)
        session.mark(date)
        note = arguments.get("note")
        if note and note.strip():
            session.write(note)
        store.save(session)

        result = f"Marked {date_time.format(date)}"
        if note:
            result += " with note"
        return _text(result)

    except (TrackerError, FileNotFoundError) as e:
        return _text(f"Error: {e}")


async def handle_stop_session(store: SessionStore, arguments: dict) -> list[TextContent]:
    """Handle stop_session tool call."""
    try:
        session = _current(store)
        date = _when(arguments)
        session.stop(date)
        store.save(session)

        elapsed = date_time.get_time_hr(session.get_time())
        return _text(f"Stopped session at {date_time.format(date)}\nTime: {elapsed}")

    except (TrackerError, FileNotFoundError) as e:
        return _text(f"Error: {e}")


async def handle_write_note(store: SessionStore, arguments: dict) -> list[TextContent]:
    """Handle write_note tool call."""
    try:
        text = arguments["text"]
        if not text.strip():
            return _text("Error: text is empty.")

        session = _current(store)
        try:
            session.write(text)
        except MarkNotEmptyError:
            if not arguments.get("overwrite", False):
                return _text(
                    "The last mark already has text. Call write_note again with overwrite=true to replace it."
                )
            session.erase()
            session.write(text)

        store.save(session)
        return _text(f"Wrote note on mark {date_time.format(session.end())}")

    except (TrackerError, FileNotFoundError) as e:
        return _text(f"Error: {e}")


async def handle_tag_mark(store: SessionStore, arguments: dict) -> list[TextContent]:
    """Handle tag_mark tool call."""
    try:
        tag = Tag.from_text(arguments["tag"])
        session = _current(store)

        if arguments.get("remove", False):
            if not session.untag(tag):
                return _text(f"Mark is not tagged `{tag.text}`.")
            result = f"Removed tag `{tag.text}`"
        else:
            if not session.tag(tag):
                return _text(f"Mark is already tagged `{tag.text}`.")
            result = f"Added tag `{tag.text}`"

        store.save(session)
        return _text(result)

    except (TrackerError, FileNotFoundError, ValueError) as e:
        return _text(f"Error: {e}")


async def run_server():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main():
    """Entry point for the MCP server."""
    import asyncio

    asyncio.run(run_server())


if __name__ == "__main__":
    main()
