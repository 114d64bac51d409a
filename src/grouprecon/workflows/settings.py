"""Run settings resolved from defaults and environment variables."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from ..core.keys import K_JOIN, K_POST, K_VIEW
from .recon_config import (
    ARCHIVE_BASE_URL,
    ARCHIVE_PAGE_SIZE,
    ARCHIVE_QUOTA_WINDOW,
    ARCHIVE_REQUESTS_PER_HOUR,
    ARCHIVE_TIMEOUT,
    BROWSER_USER_AGENT,
    GROUPS_HOST,
    JOIN_PATTERNS,
    LOGIN_HOST,
    MAX_REDIRECTS,
    POST_PATTERNS,
    PROBE_INTERVAL_MS,
    PROBE_TIMEOUT,
    VIEW_PATTERNS,
)
from .recon_utils import _env_float, _env_int, _env_str

logger = logging.getLogger(__name__)

PhraseMap = Mapping[str, Tuple[str, ...]]

DEFAULT_PHRASES: Dict[str, Tuple[str, ...]] = {
    K_VIEW: VIEW_PATTERNS,
    K_JOIN: JOIN_PATTERNS,
    K_POST: POST_PATTERNS,
}


@dataclass(frozen=True, slots=True)
class ArchiveSettings:
    base_url: str = ARCHIVE_BASE_URL
    page_size: int = ARCHIVE_PAGE_SIZE
    requests_per_hour: int = ARCHIVE_REQUESTS_PER_HOUR
    quota_window: float = ARCHIVE_QUOTA_WINDOW
    timeout: float = ARCHIVE_TIMEOUT
    api_key: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ProbeSettings:
    groups_host: str = GROUPS_HOST
    login_host: str = LOGIN_HOST
    interval_ms: int = PROBE_INTERVAL_MS
    timeout: float = PROBE_TIMEOUT
    max_redirects: int = MAX_REDIRECTS
    user_agent: str = BROWSER_USER_AGENT
    phrases: PhraseMap = field(default_factory=lambda: dict(DEFAULT_PHRASES))

    @property
    def interval(self) -> float:
        return self.interval_ms / 1000.0


# Central settings object so stage code never reads the environment itself.
@dataclass(frozen=True, slots=True)
class ReconSettings:
    archive: ArchiveSettings = ArchiveSettings()
    probe: ProbeSettings = ProbeSettings()
    phrases_path: Optional[Path] = None
    log_level: str = "INFO"


DEFAULT_SETTINGS = ReconSettings()


def load_phrase_overrides(path: Path) -> Dict[str, Tuple[str, ...]]:
    """Read a JSON object mapping capability names to regex lists.

    Unknown capability names are rejected so a typo cannot silently leave the
    default patterns in place.
    """

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Phrase overrides must be a JSON object: {path}")
    phrases: Dict[str, Tuple[str, ...]] = {}
    for key, value in data.items():
        if key not in DEFAULT_PHRASES:
            raise ValueError(f"Unknown capability in phrase overrides: {key}")
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(p, str) and p for p in value):
            raise ValueError(f"Phrase overrides for {key} must be a list of non-empty strings")
        phrases[key] = tuple(value)
    return phrases


def _sanity_check_settings(settings: ReconSettings) -> None:
    if settings.archive.page_size <= 0:
        raise ValueError("GROUPRECON_ARCHIVE_PAGE_SIZE must be positive")
    if settings.archive.requests_per_hour <= 0:
        raise ValueError("GROUPRECON_ARCHIVE_REQUESTS_PER_HOUR must be positive")
    if settings.archive.timeout <= 0 or settings.probe.timeout <= 0:
        raise ValueError("Timeouts must be positive")
    if settings.probe.interval_ms < 0:
        raise ValueError("GROUPRECON_PROBE_INTERVAL_MS cannot be negative")
    if settings.probe.max_redirects < 0:
        raise ValueError("GROUPRECON_MAX_REDIRECTS cannot be negative")
    if not settings.probe.groups_host or not settings.probe.login_host:
        raise ValueError("Group and login hosts must be set")


def load_settings(base: ReconSettings = DEFAULT_SETTINGS) -> ReconSettings:
    """Resolve settings using environment overrides on top of ``base``."""

    archive = replace(
        base.archive,
        base_url=_env_str("GROUPRECON_ARCHIVE_BASE_URL", base.archive.base_url).rstrip("/"),
        page_size=_env_int("GROUPRECON_ARCHIVE_PAGE_SIZE", base.archive.page_size),
        requests_per_hour=_env_int("GROUPRECON_ARCHIVE_REQUESTS_PER_HOUR", base.archive.requests_per_hour),
        timeout=_env_float("GROUPRECON_ARCHIVE_TIMEOUT", base.archive.timeout),
        api_key=_env_str("OTX_API_KEY") or base.archive.api_key,
    )

    phrases_raw = _env_str("GROUPRECON_PHRASES_PATH")
    phrases_path = Path(phrases_raw) if phrases_raw else base.phrases_path
    phrases = dict(base.probe.phrases)
    if phrases_path is not None:
        phrases.update(load_phrase_overrides(phrases_path))
        logger.debug("loaded phrase overrides from %s", phrases_path)

    probe = replace(
        base.probe,
        groups_host=_env_str("GROUPRECON_GROUPS_HOST", base.probe.groups_host).lower(),
        login_host=_env_str("GROUPRECON_LOGIN_HOST", base.probe.login_host).lower(),
        interval_ms=_env_int("GROUPRECON_PROBE_INTERVAL_MS", base.probe.interval_ms),
        timeout=_env_float("GROUPRECON_PROBE_TIMEOUT", base.probe.timeout),
        max_redirects=_env_int("GROUPRECON_MAX_REDIRECTS", base.probe.max_redirects),
        user_agent=_env_str("GROUPRECON_USER_AGENT", base.probe.user_agent),
        phrases=phrases,
    )

    settings = ReconSettings(
        archive=archive,
        probe=probe,
        phrases_path=phrases_path,
        log_level=_env_str("GROUPRECON_LOG_LEVEL", base.log_level).upper(),
    )
    _sanity_check_settings(settings)
    return settings


__all__ = [
    "ArchiveSettings",
    "ProbeSettings",
    "ReconSettings",
    "DEFAULT_SETTINGS",
    "DEFAULT_PHRASES",
    "load_settings",
    "load_phrase_overrides",
]
