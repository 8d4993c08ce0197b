"""Exceptions raised by timetracker."""


class TrackerError(Exception):
    """Base exception for recoverable timetracker errors."""

    pass


class DecodeError(TrackerError):
    """A session document could not be parsed."""

    pass


class EncodeError(TrackerError):
    """A session could not be turned into a document."""

    pass


class StateError(TrackerError):
    """The session is not in a state that allows the requested change."""

    pass


class SessionEndedError(StateError):
    """The session already has a stop mark."""

    pass


class MarkNotEmptyError(StateError):
    """The last mark already has contents."""

    pass


class ContentsError(TrackerError):
    """Text that would be read back as document structure instead of contents."""

    pass


class TimeInputError(TrackerError):
    """Relative time input could not be parsed."""

    pass


class ConfigError(TrackerError):
    """The configuration file is missing or malformed."""

    pass


class EmptySessionsError(TrackerError):
    """There are no sessions to aggregate."""

    pass


class GitError(TrackerError):
    """Reading information from git failed."""

    pass


class InvariantViolation(Exception):
    """A broken internal invariant. Not meant to be caught."""

    pass
