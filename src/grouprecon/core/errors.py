"""Exception hierarchy shared by the pipeline stages."""

from __future__ import annotations

from typing import Optional


class GroupReconError(Exception):
    """Base class for every error raised by grouprecon."""


class MalformedGroupURL(GroupReconError, ValueError):
    """A line does not have the group URL shape."""

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason


class StreamReadError(GroupReconError):
    """The input stream could not be read."""


class ArchiveFetchError(GroupReconError):
    """A page could not be retrieved; pagination cannot continue."""

    def __init__(self, message: str, *, page: Optional[int] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.page = page
        self.status = status


class ArchiveResponseError(ArchiveFetchError):
    """The archive answered 200 with a body that is not a valid page."""


class QuotaExceededError(ArchiveFetchError):
    """The archive provider signalled rate limiting (HTTP 429)."""


class ProbeError(GroupReconError):
    """A group could not be classified (network failure or unexpected status)."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
