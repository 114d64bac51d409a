"""Shared helper functions used by the pipeline stages."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable, Iterator, Optional, TextIO

from ..core.errors import StreamReadError


def _env_int(name: str, default: int = 0) -> int:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float = 0.0) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_str(name: str, default: str = "") -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def idna_normalize(host: str) -> str:
    """Return a lowercase, IDNA-normalized host name."""

    h = (host or "").strip().rstrip(".").lower()
    if not h:
        return ""
    try:
        h = h.encode("idna").decode("ascii")
    except UnicodeError:
        pass
    return h


def read_lines(stream: Iterable[str]) -> Iterator[str]:
    """Yield lines from ``stream`` without their line terminators.

    An I/O failure while reading is re-raised as :class:`StreamReadError`; it is
    the only input condition that aborts a run. Undecodable bytes are replaced
    by the stream itself (see :func:`open_source`) and end up as malformed lines.
    """

    iterator = iter(stream)
    while True:
        try:
            raw = next(iterator)
        except StopIteration:
            return
        except OSError as exc:
            raise StreamReadError(f"Error reading input: {exc}") from exc
        yield raw.rstrip("\r\n")


def open_source(path_or_dash: str, *, stdin: Optional[TextIO] = None) -> TextIO:
    """Return a text stream for a file path, or stdin for ``-``.

    Both decode with ``errors="replace"`` so a stray byte only spoils its line.
    """

    if path_or_dash == "-":
        stream = stdin or sys.stdin
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(errors="replace")
        return stream
    path = Path(path_or_dash)
    if not path.exists():
        raise FileNotFoundError(f"Input not found: {path}")
    return path.open("r", encoding="utf-8", errors="replace")


__all__ = [
    "idna_normalize",
    "read_lines",
    "open_source",
]
