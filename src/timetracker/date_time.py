"""Date and time helpers.

Every datetime handled by timetracker is timezone aware and truncated to whole
seconds, so a date survives a round trip through its text form unchanged.
"""

import re
from datetime import datetime, timedelta

from .errors import InvariantViolation, TimeInputError

_DATE_PATTERN = re.compile(
    r"(?P<date>[0-9]{4}-[0-9]{2}-[0-9]{2})[T ]"
    r"(?P<time>[0-9]{2}:[0-9]{2}:[0-9]{2}) ?"
    r"(?P<offset>[+-][0-9]{2}:[0-9]{2})"
)
_SIGNED_INT = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_INT = re.compile(r"\+?[0-9]+")

_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}
_CLOCK_SEPARATOR = ":"


def now() -> datetime:
    """Current local time without the sub-second part."""
    return datetime.now().astimezone().replace(microsecond=0)


def _offset(date: datetime) -> str:
    if date.tzinfo is None or date.utcoffset() is None:
        raise ValueError(f"datetime must be timezone aware: {date!r}")
    raw = date.strftime("%z")
    return f"{raw[:3]}:{raw[3:5]}"


def format(date: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS+HH:MM``."""
    return f"{date.strftime('%Y-%m-%dT%H:%M:%S')}{_offset(date)}"


def format_pretty(date: datetime) -> str:
    """Format as ``YYYY-MM-DD HH:MM:SS +HH:MM``."""
    return f"{date.strftime('%Y-%m-%d %H:%M:%S')} {_offset(date)}"


def parse(text: str) -> datetime:
    """Parse a date written by :func:`format` or :func:`format_pretty`.

    Raises:
        ValueError: If the text is not one of the two forms.
    """
    match = _DATE_PATTERN.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"invalid date '{text}'")
    return datetime.fromisoformat(
        f"{match['date']}T{match['time']}{match['offset']}"
    )


def get_time(start: datetime, end: datetime) -> int:
    """Milliseconds elapsed between two dates.

    Raises:
        InvariantViolation: If ``end`` is before ``start``.
    """
    delta = end - start
    if delta < timedelta(0):
        raise InvariantViolation(
            f"start date must not be after end date ({start} > {end})"
        )
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def get_time_hr(milliseconds: int) -> str:
    """Render milliseconds as ``<H>h <M>m <S>s``."""
    total = milliseconds // 1000
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}h {minutes}m {seconds}s"


def get_start_of_week(date: datetime) -> datetime:
    """Local Monday 00:00:00 of the week containing ``date``.

    The result carries the local offset in effect on that Monday, which
    differs from the offset of ``date`` when the week crosses a DST change.
    """
    local = date.astimezone()
    monday = local.date() - timedelta(days=local.weekday())
    return datetime(monday.year, monday.month, monday.day).astimezone()


def _parse_bounded(text: str, limit: int) -> int | None:
    if not _UNSIGNED_INT.fullmatch(text):
        return None
    value = int(text)
    return value if value < limit else None


def _roll(base: datetime, target: datetime, sign: int, step: timedelta) -> datetime:
    # Plain input looks forward in time, negated input looks back.
    difference = target - base
    if difference == timedelta(0):
        keep = sign > 0
    else:
        keep = (difference > timedelta(0)) == (sign > 0)
    return target if keep else target + sign * step


def modify_by_relative_input(base: datetime, text: str) -> datetime:
    """Apply a relative time expression to ``base``.

    Accepted forms, each optionally prefixed with ``-`` to look back in time:

    - ``<n>s``, ``<n>m``, ``<n>h``: shift by that many seconds, minutes or hours
    - ``HH:MM``: that clock time, today or on the adjacent day
    - ``MM``: that minute, in this hour or the adjacent one

    Raises:
        TimeInputError: If the text matches none of the forms, or the result
            is out of the representable date range.
    """
    try:
        return _apply_relative_input(base, text)
    except OverflowError as e:
        raise TimeInputError(f"'{text.strip()}' is out of range") from e


def _apply_relative_input(base: datetime, text: str) -> datetime:
    text = text.strip()
    sign = 1
    if text.startswith("-"):
        text = text[1:]
        sign = -1

    if text and text[-1] in _UNITS:
        amount = text[:-1]
        if not _SIGNED_INT.fullmatch(amount):
            raise TimeInputError(f"failed to parse '{text}'")
        return base + sign * int(amount) * _UNITS[text[-1]]

    if (
        len(text) <= len("23:59")
        and text.count(_CLOCK_SEPARATOR) == 1
        and not text.startswith(_CLOCK_SEPARATOR)
        and not text.endswith(_CLOCK_SEPARATOR)
    ):
        hour_text, minute_text = text.split(_CLOCK_SEPARATOR)
        hour = _parse_bounded(hour_text, 24)
        if hour is None:
            raise TimeInputError(f"failed to parse hour in '{text}'")
        minute = _parse_bounded(minute_text, 60)
        if minute is None:
            raise TimeInputError(f"failed to parse minute in '{text}'")
        target = base.replace(hour=hour, minute=minute)
        return _roll(base, target, sign, timedelta(days=1))

    minute = _parse_bounded(text, 60)
    if minute is None:
        raise TimeInputError(f"failed to parse '{text}'")
    target = base.replace(minute=minute)
    return _roll(base, target, sign, timedelta(hours=1))
