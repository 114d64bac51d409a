"""Rate-limited about-page probing and exposure decisions.

Each candidate URL ends in one of three states: ``ACCEPTED`` (exposed under
the active policy), ``REJECTED`` (classified but not exposed) or ``ERROR``
(not classifiable: malformed URL, network failure, unexpected status).
Errors are per candidate and never stop the run.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional
from urllib.parse import urljoin, urlsplit

import requests

from ..core.errors import MalformedGroupURL, ProbeError
from .group_urls import GroupIdentity, parse_group_url
from .permission_detector import CompiledPhrases, PermissionProfile, compile_phrases, detect_permissions
from .rate_limit import IntervalLimiter
from .recon_config import AUTH_REQUIRED_STATUS_CODES, HDR_LOCATION, HDR_USER_AGENT, REDIRECT_STATUS_CODES
from .settings import ProbeSettings

logger = logging.getLogger(__name__)


class ProbeState(str, enum.Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ERROR = "error"


@dataclass(frozen=True)
class ProbeOutcome:
    url: str
    state: ProbeState
    identity: Optional[GroupIdentity] = None
    profile: Optional[PermissionProfile] = None
    error: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.state is ProbeState.ACCEPTED


class PermissionProber:
    """Classify group about pages one at a time behind a shared limiter."""

    def __init__(
        self,
        settings: Optional[ProbeSettings] = None,
        *,
        require_post: bool = False,
        session: Optional[requests.Session] = None,
        limiter: Optional[IntervalLimiter] = None,
        phrases: Optional[CompiledPhrases] = None,
    ) -> None:
        self.settings = settings or ProbeSettings()
        self.require_post = require_post
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.limiter = limiter or IntervalLimiter(self.settings.interval)
        self.phrases = phrases if phrases is not None else compile_phrases(self.settings.phrases)

    def __enter__(self) -> "PermissionProber":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def _is_login_redirect(self, location: str) -> bool:
        host = (urlsplit(location).hostname or "").lower()
        login = self.settings.login_host
        return host == login or host.endswith(f".{login}")

    def _get(self, url: str) -> requests.Response:
        try:
            return self.session.get(
                url,
                headers={HDR_USER_AGENT: self.settings.user_agent},
                timeout=self.settings.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            raise ProbeError(str(exc)) from exc

    def classify(self, identity: GroupIdentity) -> PermissionProfile:
        """Fetch the about page for ``identity`` and classify it.

        Raises :class:`ProbeError` when the response is not classifiable.
        """

        url = identity.about_url(self.settings.groups_host)
        hops = 0
        while True:
            resp = self._get(url)
            status = resp.status_code
            if status in REDIRECT_STATUS_CODES:
                location = resp.headers.get(HDR_LOCATION, "")
                if not location:
                    raise ProbeError(f"redirect without location (status {status})", status=status)
                target = urljoin(url, location)
                if self._is_login_redirect(target):
                    return PermissionProfile.auth_required()
                hops += 1
                if hops > self.settings.max_redirects:
                    raise ProbeError("too many redirects", status=status)
                logger.debug("following redirect %s -> %s", url, target)
                url = target
                continue
            if status in AUTH_REQUIRED_STATUS_CODES:
                return PermissionProfile.auth_required()
            if status != 200:
                raise ProbeError(f"unexpected status code: {status}", status=status)
            return detect_permissions(resp.text, self.phrases)

    def probe(self, url: str) -> ProbeOutcome:
        """Run one candidate through identify, throttle, fetch and decide."""

        try:
            parsed = parse_group_url(url, groups_host=self.settings.groups_host)
        except MalformedGroupURL:
            logger.warning("Could not extract group email from %s", url)
            return ProbeOutcome(url=url, state=ProbeState.ERROR, error="malformed group URL")

        identity = parsed.identity
        self.limiter.acquire()
        try:
            profile = self.classify(identity)
        except ProbeError as exc:
            logger.warning("Error checking %s: %s", url, exc)
            return ProbeOutcome(url=url, state=ProbeState.ERROR, identity=identity, error=str(exc))

        accepted = profile.is_exposed(require_post=self.require_post)
        state = ProbeState.ACCEPTED if accepted else ProbeState.REJECTED
        return ProbeOutcome(url=url, state=state, identity=identity, profile=profile)

    def run(self, lines: Iterable[str], *, verbose: bool = False) -> Iterator[ProbeOutcome]:
        """Probe every non-blank line, logging per-candidate diagnostics."""

        for line in lines:
            url = line.strip()
            if not url:
                continue
            outcome = self.probe(url)
            if outcome.state is not ProbeState.ERROR and outcome.identity and outcome.profile:
                if verbose:
                    logger.info("%s", outcome.profile.describe(outcome.identity.email))
                elif not outcome.accepted:
                    logger.info("Rejected %s (not publicly accessible)", outcome.identity.email)
            yield outcome


def iter_exposed(outcomes: Iterable[ProbeOutcome]) -> Iterator[str]:
    """Yield the URLs of accepted outcomes."""

    for outcome in outcomes:
        if outcome.accepted:
            yield outcome.url


__all__ = [
    "ProbeState",
    "ProbeOutcome",
    "PermissionProber",
    "iter_exposed",
]
