"""High-level exports for the grouprecon workflows."""

from .archive_fetcher import ArchiveFetcher, ArchivePage, ArchiveRecord
from .dedup import DedupSet, extract_domains, normalize_urls
from .group_urls import GroupIdentity, GroupURL, parse_group_url, try_parse_group_url
from .permission_detector import PermissionProfile, detect_permissions
from .prober import PermissionProber, ProbeOutcome, ProbeState, iter_exposed
from .rate_limit import HourlyQuota, IntervalLimiter
from .settings import DEFAULT_SETTINGS, ReconSettings, load_settings

__all__ = [
    "ArchiveFetcher",
    "ArchivePage",
    "ArchiveRecord",
    "DedupSet",
    "extract_domains",
    "normalize_urls",
    "GroupIdentity",
    "GroupURL",
    "parse_group_url",
    "try_parse_group_url",
    "PermissionProfile",
    "detect_permissions",
    "PermissionProber",
    "ProbeOutcome",
    "ProbeState",
    "iter_exposed",
    "HourlyQuota",
    "IntervalLimiter",
    "DEFAULT_SETTINGS",
    "ReconSettings",
    "load_settings",
]
