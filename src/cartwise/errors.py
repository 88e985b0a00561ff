"""cartwise exception hierarchy.

None of these escape the recommendation pipeline: the repository and the
page layer catch them and degrade to empty defaults.
"""

from __future__ import annotations


class CartwiseError(Exception):
    """Base exception for all cartwise errors."""


class HostUnavailableError(CartwiseError):
    """The storage/messaging bridge is gone (page outlived its session)."""


class MalformedStoredDataError(CartwiseError):
    """A persisted value does not have the expected shape."""

    def __init__(self, message: str, *, key: str = "") -> None:
        super().__init__(message)
        self.key = key


class PageParseError(CartwiseError):
    """HTML could not be parsed into a document."""
