"""Session store keeping one markdown file per session."""

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from .. import date_time
from ..models import Session

logger = logging.getLogger(__name__)

SESSION_SUFFIX = ".md"


class SessionStore:
    """Store for sessions, one file per session named after its start date."""

    def __init__(self, sessions_path: str | Path):
        """Initialize the session store.

        Args:
            sessions_path: Directory holding the session files.
        """
        self.sessions_dir = Path(sessions_path)

    def ensure_initialized(self) -> None:
        """Ensure the sessions directory exists."""
        if not self.sessions_dir.is_dir():
            raise FileNotFoundError(
                f"Sessions directory {self.sessions_dir} does not exist"
            )

    def initialize(self) -> None:
        """Create the sessions directory."""
        self.sessions_dir.mkdir(parents=True, exist_ok=True)

    def session_path(self, start: datetime) -> Path:
        """Get the file path for a session starting at ``start``."""
        return self.sessions_dir / f"{date_time.format(start)}{SESSION_SUFFIX}"

    def list_paths(self) -> list[Path]:
        """Session files, oldest first."""
        self.ensure_initialized()
        return sorted(
            p for p in self.sessions_dir.iterdir()
            if p.is_file()
            and p.suffix == SESSION_SUFFIX
            and not p.name.startswith(".")
        )

    def load(self, path: Path) -> Session:
        """Read and decode one session file."""
        logger.debug("Loading session %s", path)
        return Session.from_text(path.read_text(encoding="utf-8"), path=path)

    def load_last(self) -> Session | None:
        """The most recent session, or None if there are none."""
        paths = self.list_paths()
        if not paths:
            return None
        return self.load(paths[-1])

    def load_all(self) -> list[Session]:
        """All sessions, oldest first."""
        return [self.load(path) for path in self.list_paths()]

    def save(self, session: Session) -> None:
        """Encode a session and write it to its path atomically."""
        if session.path is None:
            session.path = self.session_path(session.start())
        path = Path(session.path)
        text = session.to_text()

        fd, temp_path = tempfile.mkstemp(
            dir=path.parent, prefix=".tmp_", suffix=SESSION_SUFFIX
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(temp_path, path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        logger.debug("Saved session %s (%d marks)", path, len(session.marks))
