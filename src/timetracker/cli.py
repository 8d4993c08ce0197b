"""timetracker CLI interface."""

import argparse
import logging
import sys
from datetime import datetime

from . import __version__, date_time
from .aggregator import Aggregator
from .errors import EmptySessionsError, MarkNotEmptyError, TrackerError
from .git import get_git_branch_name
from .models import Session, Tag, TrackerConfig
from .store import SessionStore

logger = logging.getLogger(__name__)


def get_store() -> SessionStore:
    """Get the session store for the configured directory."""
    config = TrackerConfig.load()
    return SessionStore(config.sessions_path)


def parse_when(when: str | None) -> datetime:
    """Current time, shifted by relative input when given."""
    now = date_time.now()
    if when is None:
        return now
    return date_time.modify_by_relative_input(now, when)


def load_current(store: SessionStore) -> Session:
    """Most recent session, failing when there is none yet."""
    session = store.load_last()
    if session is None:
        raise EmptySessionsError("no session found, use `timetracker start` first")
    return session


def confirm(question: str) -> bool:
    """Ask a yes/no question on stdin. Defaults to no."""
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def fail(error: Exception) -> int:
    print(f"Error: {error}", file=sys.stderr)
    return 1


def cmd_start(args: argparse.Namespace) -> int:
    """Start a new session."""
    try:
        store = get_store()
        store.initialize()
        date = parse_when(args.when)

        last = store.load_last()
        if last is not None and last.is_active():
            print(
                f"Session already active, started at {date_time.format(last.start())}.",
                file=sys.stderr,
            )
            return 1

        path = store.session_path(date)
        if path.exists():
            print(f"Session file {path} already exists.", file=sys.stderr)
            return 1

        session = Session.new(date, path=path)
        store.save(session)
        print(f"Started session at {date_time.format(date)}")
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_stop(args: argparse.Namespace) -> int:
    """Stop the current session."""
    try:
        store = get_store()
        session = load_current(store)
        date = parse_when(args.when)
        session.stop(date)
        store.save(session)

        elapsed = date_time.get_time_hr(session.get_time())
        print(f"Stopped session at {date_time.format(date)} ({elapsed})")
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_mark(args: argparse.Namespace) -> int:
    """Add a mark to the current session."""
    try:
        store = get_store()
        session = load_current(store)
        date = parse_when(args.when)
        session.mark(date)
        store.save(session)
        print(f"Marked {date_time.format(date)}")
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_remark(args: argparse.Namespace) -> int:
    """Move the last mark to a new time."""
    try:
        store = get_store()
        session = load_current(store)
        date = parse_when(args.when)
        session.remark(date)
        store.save(session)
        print(f"Moved last mark to {date_time.format(date)}")
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_unmark(args: argparse.Namespace) -> int:
    """Remove the last mark."""
    try:
        store = get_store()
        session = load_current(store)
        mark = session.unmark()
        if mark is None:
            print("Only the first mark is left, nothing removed.")
            return 0

        store.save(session)
        print(f"Removed mark {date_time.format(mark.date)}")
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_skip(args: argparse.Namespace) -> int:
    """Skip the interval following the last mark."""
    try:
        store = get_store()
        session = load_current(store)
        session.skip()
        store.save(session)
        print(f"Skipping from {date_time.format(session.end())}")
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_tag(args: argparse.Namespace) -> int:
    """Tag the last mark."""
    try:
        tag = Tag.from_text(args.text)
        store = get_store()
        session = load_current(store)
        if not session.tag(tag):
            print(f"Mark is already tagged `{tag.text}`.")
            return 0

        store.save(session)
        print(f"Tagged `{tag.text}`")
        return 0

    except (TrackerError, FileNotFoundError, ValueError) as e:
        return fail(e)


def cmd_untag(args: argparse.Namespace) -> int:
    """Remove a tag from the last mark."""
    try:
        tag = Tag.from_text(args.text)
        store = get_store()
        session = load_current(store)
        if not session.untag(tag):
            print(f"Mark is not tagged `{tag.text}`.")
            return 0

        store.save(session)
        print(f"Untagged `{tag.text}`")
        return 0

    except (TrackerError, FileNotFoundError, ValueError) as e:
        return fail(e)


def cmd_write(args: argparse.Namespace) -> int:
    """Write text into the last mark."""
    try:
        if args.branch and args.text:
            print("Error: use either text or --branch, not both.", file=sys.stderr)
            return 1
        text = get_git_branch_name() if args.branch else args.text
        if not text or not text.strip():
            print("Error: no text specified.", file=sys.stderr)
            return 1

        store = get_store()
        session = load_current(store)
        try:
            session.write(text)
        except MarkNotEmptyError:
            if not (args.yes or confirm("The current mark already has contents. Overwrite?")):
                print("Nothing written.")
                return 0
            session.erase()
            session.write(text)

        store.save(session)
        print("Written.")
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_path(args: argparse.Namespace) -> int:
    """Print the current session file path."""
    try:
        session = load_current(get_store())
        print(session.path)
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_view(args: argparse.Namespace) -> int:
    """Show statistics for the current session and week."""
    try:
        aggregator = Aggregator.from_sessions(get_store().load_all())
        print(aggregator.summary().format_view())
        return 0

    except (TrackerError, FileNotFoundError) as e:
        return fail(e)


def cmd_version(args: argparse.Namespace) -> int:
    """Print the version."""
    print(f"timetracker {__version__}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the MCP server."""
    from .server import main as server_main

    server_main()
    return 0


WHEN_COMMANDS = ("start", "stop", "mark", "remark")


def protect_relative_time(argv: list[str]) -> list[str]:
    """Insert `--` so argparse reads inputs like `-2h` as a value, not an option."""
    for i, arg in enumerate(argv):
        if arg in WHEN_COMMANDS:
            rest = argv[i + 1:]
            if len(rest) == 1 and rest[0].startswith("-") and rest[0] not in ("-h", "--help"):
                return argv[: i + 1] + ["--"] + rest
            break
    return argv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timetracker",
        description="Track work sessions as markdown files",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    when_help = "Relative time: 15m, -2h, 13:15, -45 (default: now)"
    for name, help_text in [
        ("start", "Start a new session"),
        ("stop", "Stop the current session"),
        ("mark", "Add a mark to the current session"),
        ("remark", "Move the last mark to a new time"),
    ]:
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.add_argument("when", nargs="?", help=when_help)

    subparsers.add_parser("unmark", help="Remove the last mark")
    subparsers.add_parser("skip", help="Leave the time after the last mark out")

    tag_parser = subparsers.add_parser("tag", help="Tag the last mark")
    tag_parser.add_argument("text", help="Tag text")
    untag_parser = subparsers.add_parser("untag", help="Remove a tag from the last mark")
    untag_parser.add_argument("text", help="Tag text")

    write_parser = subparsers.add_parser("write", help="Write text into the last mark")
    write_parser.add_argument("text", nargs="?", help="Text to write")
    write_parser.add_argument(
        "--branch", "-b", action="store_true", help="Write the current git branch name"
    )
    write_parser.add_argument(
        "--yes", "-y", action="store_true", help="Overwrite existing contents without asking"
    )

    subparsers.add_parser("path", help="Print the current session file path")
    subparsers.add_parser("view", help="Show current session and week statistics")
    subparsers.add_parser("version", help="Print the version")
    subparsers.add_parser("serve", help="Start the MCP server")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    args = parser.parse_args(protect_relative_time(argv))

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    handlers = {
        "start": cmd_start,
        "stop": cmd_stop,
        "mark": cmd_mark,
        "remark": cmd_remark,
        "unmark": cmd_unmark,
        "skip": cmd_skip,
        "tag": cmd_tag,
        "untag": cmd_untag,
        "write": cmd_write,
        "path": cmd_path,
        "view": cmd_view,
        "version": cmd_version,
        "serve": cmd_serve,
    }

    handler = handlers.get(args.command)
    if handler:
        logger.debug("Running %s", args.command)
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
