"""Tests for the command line interface."""

from pathlib import Path

import pytest

from timetracker import __version__
from timetracker.cli import main, protect_relative_time
from timetracker.models import Attribute, Tag
from timetracker.store import SessionStore


@pytest.fixture
def sessions_dir(tmp_path: Path, monkeypatch) -> Path:
    """Point the CLI at a temporary sessions directory."""
    path = tmp_path / "sessions"
    monkeypatch.setenv("TIMETRACKER_SESSIONS_PATH", str(path))
    return path


@pytest.fixture
def store(sessions_dir: Path) -> SessionStore:
    return SessionStore(sessions_dir)


def run(capsys, *argv: str) -> tuple[int, str, str]:
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestProtectRelativeTime:
    """Tests for argument preprocessing."""

    def test_negative_time(self):
        assert protect_relative_time(["start", "-2h"]) == ["start", "--", "-2h"]
        assert protect_relative_time(["-v", "mark", "-10"]) == ["-v", "mark", "--", "-10"]

    def test_leaves_other_arguments(self):
        assert protect_relative_time(["start", "2h"]) == ["start", "2h"]
        assert protect_relative_time(["start", "-h"]) == ["start", "-h"]
        assert protect_relative_time(["write", "-b"]) == ["write", "-b"]
        assert protect_relative_time([]) == []


class TestStartStop:
    """Tests for starting and stopping sessions."""

    def test_start(self, capsys, store: SessionStore):
        code, out, _ = run(capsys, "start")
        assert code == 0
        assert out.startswith("Started session at ")

        session = store.load_last()
        assert session.is_active()
        assert len(session.marks) == 1
        assert session.path == store.session_path(session.start())

    def test_start_in_the_past(self, capsys, store: SessionStore):
        code, _, _ = run(capsys, "start", "-2h")
        assert code == 0
        assert store.load_last().get_time() >= 2 * 3600 * 1000

    def test_start_while_active(self, capsys, store: SessionStore):
        run(capsys, "start", "-1h")
        code, _, err = run(capsys, "start")
        assert code == 1
        assert "already active" in err
        assert len(store.list_paths()) == 1

    def test_start_after_stop(self, capsys, store: SessionStore):
        run(capsys, "start", "-2h")
        run(capsys, "stop", "-1h")
        code, _, _ = run(capsys, "start")
        assert code == 0
        assert len(store.list_paths()) == 2

    def test_stop(self, capsys, store: SessionStore):
        run(capsys, "start", "-2h")
        code, out, _ = run(capsys, "stop")
        assert code == 0
        assert out.startswith("Stopped session at ")
        assert not store.load_last().is_active()

    def test_stop_twice(self, capsys, store: SessionStore):
        run(capsys, "start", "-2h")
        run(capsys, "stop")
        code, _, err = run(capsys, "stop")
        assert code == 1
        assert "already ended" in err

    def test_invalid_time(self, capsys, store: SessionStore):
        code, _, err = run(capsys, "start", "soon")
        assert code == 1
        assert err.startswith("Error: ")
        assert not store.sessions_dir.exists() or store.list_paths() == []

    def test_no_session(self, capsys, store: SessionStore):
        store.initialize()
        code, _, err = run(capsys, "mark")
        assert code == 1
        assert "timetracker start" in err


class TestMarks:
    """Tests for mark manipulation."""

    def test_mark(self, capsys, store: SessionStore):
        run(capsys, "start", "-2h")
        code, out, _ = run(capsys, "mark", "-1h")
        assert code == 0
        assert out.startswith("Marked ")
        assert len(store.load_last().marks) == 2

    def test_mark_after_stop(self, capsys, store: SessionStore):
        run(capsys, "start", "-2h")
        run(capsys, "stop", "-1h")
        code, _, _ = run(capsys, "mark")
        assert code == 1
        assert len(store.load_last().marks) == 2

    def test_remark(self, capsys, store: SessionStore):
        run(capsys, "start", "-3h")
        run(capsys, "mark", "-2h")
        before = store.load_last().end()
        code, _, _ = run(capsys, "remark", "-1h")
        assert code == 0

        session = store.load_last()
        assert len(session.marks) == 2
        assert session.end() > before

    def test_unmark(self, capsys, store: SessionStore):
        run(capsys, "start", "-2h")
        run(capsys, "mark", "-1h")
        code, out, _ = run(capsys, "unmark")
        assert code == 0
        assert out.startswith("Removed mark ")
        assert len(store.load_last().marks) == 1

    def test_unmark_first_mark(self, capsys, store: SessionStore):
        run(capsys, "start")
        code, out, _ = run(capsys, "unmark")
        assert code == 0
        assert "nothing removed" in out
        assert len(store.load_last().marks) == 1

    def test_skip(self, capsys, store: SessionStore):
        run(capsys, "start", "-2h")
        run(capsys, "stop", "-1h")
        code, _, _ = run(capsys, "skip")
        assert code == 0

        session = store.load_last()
        assert session.last_mark().attribute is Attribute.SKIP
        assert session.is_active()


class TestTags:
    """Tests for tag and untag."""

    def test_tag(self, capsys, store: SessionStore):
        run(capsys, "start")
        code, out, _ = run(capsys, "tag", "rust")
        assert code == 0
        assert "Tagged `rust`" in out
        assert store.load_last().last_mark().tags == {Tag("rust")}
        assert "- tag `rust`" in store.load_last().path.read_text()

    def test_tag_twice(self, capsys, store: SessionStore):
        run(capsys, "start")
        run(capsys, "tag", "rust")
        code, out, _ = run(capsys, "tag", "rust")
        assert code == 0
        assert "already tagged" in out

    def test_invalid_tag(self, capsys, store: SessionStore):
        run(capsys, "start")
        code, _, err = run(capsys, "tag", "a`b")
        assert code == 1
        assert "invalid character" in err

    def test_untag(self, capsys, store: SessionStore):
        run(capsys, "start")
        run(capsys, "tag", "rust")
        code, _, _ = run(capsys, "untag", "rust")
        assert code == 0
        assert store.load_last().last_mark().tags == set()

        code, out, _ = run(capsys, "untag", "rust")
        assert code == 0
        assert "not tagged" in out


class TestWrite:
    """Tests for writing into marks."""

    def test_write(self, capsys, store: SessionStore):
        run(capsys, "start")
        code, out, _ = run(capsys, "write", "Reading the docs")
        assert code == 0
        assert out.strip() == "Written."
        assert store.load_last().last_mark().contents == "Reading the docs"

    def test_overwrite_declined(self, capsys, store: SessionStore, monkeypatch):
        run(capsys, "start")
        run(capsys, "write", "first")
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        code, out, _ = run(capsys, "write", "second")
        assert code == 0
        assert "Nothing written." in out
        assert store.load_last().last_mark().contents == "first"

    def test_overwrite_confirmed(self, capsys, store: SessionStore, monkeypatch):
        run(capsys, "start")
        run(capsys, "write", "first")
        monkeypatch.setattr("builtins.input", lambda prompt: "y")

        code, _, _ = run(capsys, "write", "second")
        assert code == 0
        assert store.load_last().last_mark().contents == "second"

    def test_overwrite_with_yes(self, capsys, store: SessionStore):
        run(capsys, "start")
        run(capsys, "write", "first")
        code, _, _ = run(capsys, "write", "--yes", "second")
        assert code == 0
        assert store.load_last().last_mark().contents == "second"

    def test_write_rejects_document_structure(self, capsys, store: SessionStore):
        run(capsys, "start")
        code, _, err = run(capsys, "write", "- buy milk")
        assert code == 1
        assert err.startswith("Error: ")
        assert store.load_last().last_mark().contents == ""

        code, _, _ = run(capsys, "mark")
        assert code == 0

    def test_write_branch(self, capsys, store: SessionStore, monkeypatch):
        monkeypatch.setattr("timetracker.cli.get_git_branch_name", lambda: "feat/some-branch")
        run(capsys, "start")
        code, _, _ = run(capsys, "write", "--branch")
        assert code == 0
        assert store.load_last().last_mark().contents == "feat/some-branch"

    def test_write_text_and_branch(self, capsys, store: SessionStore):
        run(capsys, "start")
        code, _, err = run(capsys, "write", "-b", "text")
        assert code == 1
        assert "not both" in err

    def test_write_nothing(self, capsys, store: SessionStore):
        run(capsys, "start")
        code, _, _ = run(capsys, "write")
        assert code == 1


class TestInfo:
    """Tests for informational commands."""

    def test_path(self, capsys, store: SessionStore):
        run(capsys, "start")
        code, out, _ = run(capsys, "path")
        assert code == 0
        assert out.strip() == str(store.list_paths()[0])

    def test_view(self, capsys, store: SessionStore):
        run(capsys, "start", "-2h")
        run(capsys, "write", "Reading the docs")
        code, out, _ = run(capsys, "view")
        assert code == 0
        assert out.startswith("Start: ")
        assert "Week: " in out
        assert out.strip().endswith("Reading the docs")

    def test_view_empty(self, capsys, store: SessionStore):
        store.initialize()
        code, _, err = run(capsys, "view")
        assert code == 1
        assert "empty" in err

    def test_version(self, capsys):
        code, out, _ = run(capsys, "version")
        assert code == 0
        assert out.strip() == f"timetracker {__version__}"

    def test_no_command(self, capsys):
        code, out, _ = run(capsys)
        assert code == 0
        assert "usage" in out

    def test_missing_config(self, capsys, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("TIMETRACKER_SESSIONS_PATH", raising=False)
        monkeypatch.setenv("TIMETRACKER_CONFIG", str(tmp_path / "config.toml"))
        code, _, err = run(capsys, "view")
        assert code == 1
        assert "created one" in err
        assert (tmp_path / "config.toml").exists()
