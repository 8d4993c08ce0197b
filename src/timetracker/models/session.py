"""Session model and its markdown representation."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from .. import date_time
from ..errors import (
    ContentsError,
    DecodeError,
    EncodeError,
    InvariantViolation,
    MarkNotEmptyError,
    SessionEndedError,
)
from .document import (
    DOCUMENT_HEADING_PREFIX,
    DOCUMENT_TITLE,
    MARK_HEADING_PREFIX,
    MARKS_HEADING,
    SessionDocument,
    heading_level,
)

LABEL_PREFIX = "- "
LABEL_TAG = "- tag"
TAG_SURROUND = "`"


def clean_contents(text: str) -> str:
    """Strip ``text`` and check it can be stored as mark contents.

    Raises:
        ContentsError: If a line would read back as a heading, or the first
            line as a label.
    """
    text = text.strip()
    lines = text.splitlines()
    if lines and lines[0].startswith(LABEL_PREFIX):
        raise ContentsError(f"contents can't start with '{LABEL_PREFIX.strip()}'")
    for line in lines:
        if heading_level(line):
            raise ContentsError(f"contents can't contain the heading '{line.strip()}'")
    return text


class Attribute(Enum):
    """Status flag of a mark. A mark carries at most one."""

    NONE = "none"
    STOP = "end"
    SKIP = "skip"

    @classmethod
    def from_line(cls, line: str) -> "Attribute":
        """Attribute named by a label line, NONE if the line names none."""
        text = line.strip()
        for attribute in (cls.STOP, cls.SKIP):
            if text == attribute.to_line():
                return attribute
        return cls.NONE

    def to_line(self) -> str:
        if self is Attribute.NONE:
            return ""
        return f"{LABEL_PREFIX}{self.value}"


@dataclass(frozen=True, order=True)
class Tag:
    """Free-text label on a mark."""

    text: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", self.text.strip())
        if not self.text:
            raise ValueError("tag cannot be empty")
        if TAG_SURROUND in self.text:
            raise ValueError(f'invalid character "{TAG_SURROUND}" in tag')
        if "\n" in self.text or "\r" in self.text:
            raise ValueError("tag cannot span multiple lines")

    @classmethod
    def from_text(cls, text: str) -> "Tag":
        """Create a tag from user input."""
        return cls(text.strip())

    @classmethod
    def from_line(cls, line: str) -> "Tag":
        """Parse a ``- tag `text``` label line."""
        opening = f"{LABEL_TAG} {TAG_SURROUND}"
        line = line.strip()
        if (
            len(line) <= len(opening)
            or not line.startswith(opening)
            or not line.endswith(TAG_SURROUND)
        ):
            raise DecodeError(f"couldn't parse label from line '{line}'")
        try:
            return cls.from_text(line[len(opening):-len(TAG_SURROUND)])
        except ValueError as e:
            raise DecodeError(f"couldn't parse tag from line '{line}': {e}") from e

    def to_line(self) -> str:
        return f"{LABEL_TAG} {TAG_SURROUND}{self.text}{TAG_SURROUND}"


@dataclass
class Mark:
    """A timestamped checkpoint within a session."""

    date: datetime
    attribute: Attribute = Attribute.NONE
    tags: set[Tag] = field(default_factory=set)
    contents: str = ""

    @classmethod
    def from_text(cls, text: str) -> "Mark":
        """Parse one mark block, heading line first.

        Raises:
            DecodeError: On a bad heading date, a malformed label line or
                more than one attribute.
        """
        lines = text.strip().splitlines()
        if not lines or not lines[0].startswith(MARK_HEADING_PREFIX):
            raise DecodeError("couldn't parse mark heading")
        try:
            date = date_time.parse(lines[0][len(MARK_HEADING_PREFIX):])
        except ValueError as e:
            raise DecodeError(f"couldn't parse mark date: {e}") from e

        body = "\n".join(lines[1:]).strip().splitlines()
        attribute = Attribute.NONE
        tags: set[Tag] = set()
        labels = 0
        for line in body:
            if not line.startswith(LABEL_PREFIX):
                break
            parsed = Attribute.from_line(line)
            if parsed is Attribute.NONE:
                tags.add(Tag.from_line(line))
            elif attribute is not Attribute.NONE:
                raise DecodeError("multiple attributes per mark are not allowed")
            else:
                attribute = parsed
            labels += 1

        return cls(
            date=date,
            attribute=attribute,
            tags=tags,
            contents="\n".join(body[labels:]).strip(),
        )

    def to_text(self) -> str:
        """Render the mark block without a trailing newline."""
        text = f"{MARK_HEADING_PREFIX}{date_time.format(self.date)}"
        labels = []
        if self.attribute is not Attribute.NONE:
            labels.append(self.attribute.to_line())
        labels.extend(tag.to_line() for tag in sorted(self.tags))
        if labels:
            text += "\n\n" + "\n".join(labels)
        contents = self.contents.strip()
        if contents:
            text += "\n\n" + contents
        return text

    def write(self, text: str) -> None:
        """Replace the contents."""
        self.contents = clean_contents(text)

    def erase(self) -> None:
        self.contents = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert mark to dictionary for JSON serialization."""
        return {
            "date": date_time.format(self.date),
            "attribute": self.attribute.value,
            "tags": [tag.text for tag in sorted(self.tags)],
            "contents": self.contents,
        }


@dataclass
class Session:
    """An ordered, non-empty sequence of marks.

    The session is active until its last mark carries the STOP attribute.
    """

    path: Path | None
    marks: list[Mark]

    @classmethod
    def new(cls, date: datetime, path: Path | None = None) -> "Session":
        """Start a session with a single empty mark."""
        return cls(path=path, marks=[Mark(date=date)])

    @classmethod
    def from_text(cls, raw: str, path: Path | None = None) -> "Session":
        """Decode a session document.

        Raises:
            DecodeError: If the document or any of its marks is malformed, or
                if it has no marks at all.
        """
        document = SessionDocument.build(raw, path)
        marks = [Mark.from_text("\n".join(block)) for block in document.mark_blocks()]
        if not marks:
            raise DecodeError("there must be at least one mark for a session to be valid")
        return cls(path=path, marks=marks)

    def to_text(self) -> str:
        """Encode the session in its canonical document form."""
        if not self.marks:
            raise EncodeError("can't encode a session without marks")
        header = f"{DOCUMENT_HEADING_PREFIX}{DOCUMENT_TITLE}\n\n{MARKS_HEADING}\n\n"
        return header + "\n\n".join(mark.to_text() for mark in self.marks) + "\n"

    def last_mark(self) -> Mark:
        if not self.marks:
            raise InvariantViolation("session must always have at least one mark")
        return self.marks[-1]

    def start(self) -> datetime:
        if not self.marks:
            raise InvariantViolation("session must always have at least one mark")
        return self.marks[0].date

    def end(self) -> datetime:
        return self.last_mark().date

    def is_active(self) -> bool:
        return self.last_mark().attribute is not Attribute.STOP

    def get_time(self, now: datetime | None = None) -> int:
        """Elapsed milliseconds, leaving out intervals that start at a skip mark.

        An active session counts up to ``now`` unless its last mark is skipped.
        """
        last = self.last_mark()
        elapsed = 0
        for current, following in zip(self.marks, self.marks[1:]):
            if current.attribute is not Attribute.SKIP:
                elapsed += date_time.get_time(current.date, following.date)
        if self.is_active() and last.attribute is not Attribute.SKIP:
            elapsed += date_time.get_time(last.date, now or date_time.now())
        return elapsed

    def mark(self, date: datetime) -> None:
        if not self.is_active():
            raise SessionEndedError("can't mark, session has already ended")
        self.marks.append(Mark(date=date))

    def stop(self, date: datetime) -> None:
        if not self.is_active():
            raise SessionEndedError("session already ended")
        self.marks.append(Mark(date=date, attribute=Attribute.STOP))

    def remark(self, date: datetime) -> None:
        """Move the last mark to ``date``."""
        self.last_mark().date = date

    def unmark(self) -> Mark | None:
        """Remove and return the last mark. The first mark is never removed."""
        if len(self.marks) > 1:
            return self.marks.pop()
        return None

    def skip(self) -> None:
        """Exclude the interval starting at the last mark. Overwrites STOP."""
        self.last_mark().attribute = Attribute.SKIP

    def tag(self, tag: Tag) -> bool:
        """Add a tag to the last mark. Returns False if it was already there."""
        tags = self.last_mark().tags
        if tag in tags:
            return False
        tags.add(tag)
        return True

    def untag(self, tag: Tag) -> bool:
        """Remove a tag from the last mark. Returns False if it wasn't there."""
        tags = self.last_mark().tags
        if tag not in tags:
            return False
        tags.remove(tag)
        return True

    def write(self, text: str) -> None:
        """Set the contents of the last mark.

        Raises:
            ContentsError: If the text would break the document.
            MarkNotEmptyError: If the mark already has contents. Call
                :meth:`erase` first to overwrite.
        """
        mark = self.last_mark()
        contents = clean_contents(text)
        if mark.contents:
            raise MarkNotEmptyError("the current mark already has contents")
        mark.write(contents)

    def erase(self) -> None:
        self.last_mark().erase()

    def to_dict(self) -> dict[str, Any]:
        """Convert session to dictionary for JSON serialization."""
        return {
            "path": str(self.path) if self.path else None,
            "start": date_time.format(self.start()),
            "end": date_time.format(self.end()),
            "active": self.is_active(),
            "marks": [mark.to_dict() for mark in self.marks],
        }
