"""timetracker - work sessions kept as plain markdown files."""

__version__ = "0.4.0"
