"""Elapsed-time statistics across sessions."""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any

from . import date_time
from .errors import EmptySessionsError
from .models import Session

VIEW_CONTENTS_SEPARATOR = "---------------------------------"


@dataclass
class Summary:
    """Figures shown by the view command for the most recent session."""

    start: str
    week_time: str
    session_time: str
    last_mark_age: str
    last_mark_contents: str
    is_active: bool

    def format_view(self) -> str:
        """Format summary for display."""
        lines = []
        if not self.is_active:
            lines.append("No active session, last session:")
        lines.extend(
            [
                f"Start: {self.start}",
                f"Week: {self.week_time}",
                f"Time: {self.session_time}",
                f"Mark: {self.last_mark_age}",
                VIEW_CONTENTS_SEPARATOR,
                self.last_mark_contents,
            ]
        )
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Aggregator:
    """Read-only view over sessions ordered oldest to newest.

    A session that starts in one week and ends in the next counts entirely
    towards the week it started in.
    """

    def __init__(self, sessions: list[Session]):
        self.sessions = sessions

    @classmethod
    def from_sessions(cls, sessions: list[Session]) -> "Aggregator":
        """Build an aggregator, refusing an empty list."""
        if not sessions:
            raise EmptySessionsError("session directory is empty")
        return cls(list(sessions))

    @property
    def current(self) -> Session:
        return self.sessions[-1]

    def week_sessions(self) -> list[Session]:
        """Sessions starting in the same week as the most recent one."""
        start_of_week = date_time.get_start_of_week(self.current.start())
        return [s for s in self.sessions if s.start() >= start_of_week]

    def week_time(self, now: datetime | None = None) -> int:
        return sum(s.get_time(now) for s in self.week_sessions())

    def summary(self, now: datetime | None = None) -> Summary:
        """Compute the statistics for the most recent session."""
        now = now or date_time.now()
        session = self.current
        last = session.last_mark()
        if session.is_active():
            last_mark_age = date_time.get_time(last.date, now)
        else:
            last_mark_age = 0

        return Summary(
            start=date_time.format(session.start()),
            week_time=date_time.get_time_hr(self.week_time(now)),
            session_time=date_time.get_time_hr(session.get_time(now)),
            last_mark_age=date_time.get_time_hr(last_mark_age),
            last_mark_contents=last.to_text(),
            is_active=session.is_active(),
        )
