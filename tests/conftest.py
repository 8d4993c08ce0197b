"""Shared pytest fixtures."""

import time

import pytest


@pytest.fixture(autouse=True)
def utc_local_time(monkeypatch):
    """Run every test with UTC as the local time zone."""
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
