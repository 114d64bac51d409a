"""Domain extraction and URL normalization/deduplication stages.

Both stages are pure line filters: no network, no blocking I/O, and their
seen-set is owned by the call (or passed in explicitly), never module state.
"""

from __future__ import annotations

import logging
from typing import Hashable, Iterable, Iterator, Optional, Set

from .group_urls import try_parse_group_url
from .recon_config import GROUPS_HOST

logger = logging.getLogger(__name__)


class DedupSet:
    """Set of keys already emitted during one run."""

    def __init__(self) -> None:
        self._seen: Set[Hashable] = set()

    def add(self, key: Hashable) -> bool:
        """Record ``key``; return True only the first time it is seen."""

        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._seen

    def __len__(self) -> int:
        return len(self._seen)


def extract_domains(
    lines: Iterable[str],
    *,
    seen: Optional[DedupSet] = None,
    groups_host: str = GROUPS_HOST,
) -> Iterator[str]:
    """Yield each distinct custom domain found in group URLs, first-seen order."""

    seen = seen if seen is not None else DedupSet()
    for line in lines:
        parsed = try_parse_group_url(line, groups_host=groups_host)
        if parsed is None:
            continue
        if seen.add(parsed.domain):
            yield parsed.domain


def normalize_urls(
    lines: Iterable[str],
    *,
    trim: bool = False,
    seen: Optional[DedupSet] = None,
    groups_host: str = GROUPS_HOST,
) -> Iterator[str]:
    """Yield valid group URLs once each.

    With ``trim`` the URL is collapsed to its canonical group root and the
    canonical form is the dedup key; otherwise the stripped line is emitted
    and deduplicated as-is, suffix included.
    """

    seen = seen if seen is not None else DedupSet()
    for line in lines:
        parsed = try_parse_group_url(line, groups_host=groups_host)
        if parsed is None:
            logger.debug("dropping non-group line: %s", line)
            continue
        value = parsed.canonical if trim else parsed.raw
        if seen.add(value):
            yield value


__all__ = [
    "DedupSet",
    "extract_domains",
    "normalize_urls",
]
