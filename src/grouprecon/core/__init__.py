"""Core schema helpers for grouprecon."""

from .keys import *  # noqa: F401,F403 re-export stable keys
from .errors import (
    ArchiveFetchError,
    ArchiveResponseError,
    GroupReconError,
    MalformedGroupURL,
    ProbeError,
    QuotaExceededError,
    StreamReadError,
)

__all__ = [name for name in globals() if name.startswith("K_")] + [
    "ArchiveFetchError",
    "ArchiveResponseError",
    "GroupReconError",
    "MalformedGroupURL",
    "ProbeError",
    "QuotaExceededError",
    "StreamReadError",
]
