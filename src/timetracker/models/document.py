"""Heading-scoped scanning of session documents."""

from dataclasses import dataclass
from pathlib import Path

from ..errors import DecodeError

DOCUMENT_HEADING_PREFIX = "# "
DOCUMENT_TITLE = "Session"
MARKS_HEADING = "## Marks"
MARK_HEADING_PREFIX = "### "


def heading_level(line: str) -> int:
    """Number of leading ``#`` characters, or 0 if the line is not a heading."""
    stripped = line.strip()
    level = len(stripped) - len(stripped.lstrip("#"))
    if level == 0:
        return 0
    rest = stripped[level:]
    if rest and not rest[0].isspace():
        return 0
    return level


@dataclass
class SessionDocument:
    """Raw text of a session file, checked for the expected top-level shape."""

    path: Path | None
    contents: str

    @classmethod
    def build(cls, raw: str, path: Path | None = None) -> "SessionDocument":
        """Wrap raw text, rejecting anything without a title and a marks section."""
        contents = raw.strip()
        if not contents.startswith(DOCUMENT_HEADING_PREFIX):
            raise DecodeError("couldn't parse session file: missing title heading")
        if MARKS_HEADING not in (line.strip() for line in contents.splitlines()):
            raise DecodeError(
                f"couldn't parse session file: missing '{MARKS_HEADING}' section"
            )
        return cls(path=path, contents=contents)

    def section(self, heading: str) -> list[str]:
        """Lines of the section opened by ``heading``, heading line included.

        The section ends at the next heading of the same or a higher level.
        """
        level = heading_level(heading)
        lines: list[str] = []
        is_within = False
        for line in self.contents.splitlines():
            line_level = heading_level(line)
            if is_within and line_level and line_level <= level:
                break
            if not is_within and line.strip() == heading:
                is_within = True
            if is_within:
                lines.append(line)
        return lines

    def mark_blocks(self) -> list[list[str]]:
        """The marks section split into one block of lines per mark heading."""
        blocks: list[list[str]] = []
        for line in self.section(MARKS_HEADING)[1:]:
            if line.startswith(MARK_HEADING_PREFIX):
                blocks.append([line])
            elif blocks:
                blocks[-1].append(line)
        return blocks
