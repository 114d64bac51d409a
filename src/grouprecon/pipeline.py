"""In-process composition of the pipeline stages.

The CLI stages can be chained with shell pipes; ``run_recon`` does the same
fetch -> canonical normalize -> probe chain with iterators in one process.
"""

from __future__ import annotations

from typing import Iterator, Optional

from .workflows.archive_fetcher import ArchiveFetcher
from .workflows.dedup import normalize_urls
from .workflows.prober import PermissionProber, ProbeOutcome
from .workflows.settings import DEFAULT_SETTINGS, ReconSettings


def run_recon(
    domain: str,
    *,
    settings: ReconSettings = DEFAULT_SETTINGS,
    require_post: bool = False,
    verbose: bool = False,
    fetcher: Optional[ArchiveFetcher] = None,
    prober: Optional[PermissionProber] = None,
) -> Iterator[ProbeOutcome]:
    """Yield a probe outcome for every distinct group the archive knows of."""

    fetcher = fetcher or ArchiveFetcher(settings.archive)
    prober = prober or PermissionProber(settings.probe, require_post=require_post)
    with fetcher, prober:
        candidates = normalize_urls(
            fetcher.iter_urls(domain),
            trim=True,
            groups_host=settings.probe.groups_host,
        )
        yield from prober.run(candidates, verbose=verbose)


__all__ = ["run_recon"]
