"""Page through the AlienVault OTX url_list archive for a hostname.

Pages are not independently retryable (the cursor is positional), so every
failure aborts the walk instead of skipping a page. HTTP 429 is raised as
:class:`QuotaExceededError` and is not retried: operators resume later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

import requests

from ..core.errors import ArchiveFetchError, ArchiveResponseError, QuotaExceededError
from ..core.keys import K_ACTUAL_SIZE, K_DATE, K_DOMAIN, K_HAS_NEXT, K_HOSTNAME, K_HTTPCODE, K_URL, K_URL_LIST
from .rate_limit import HourlyQuota
from .recon_config import ARCHIVE_RATE_LIMIT_STATUS, HDR_ACCEPT, HDR_OTX_KEY
from .settings import ArchiveSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchiveRecord:
    url: str
    domain: str = ""
    hostname: str = ""
    httpcode: int = 0
    date: str = ""


@dataclass(frozen=True)
class ArchivePage:
    has_next: bool
    actual_size: int
    records: List[ArchiveRecord]


def parse_archive_page(payload: Any, *, page: int) -> ArchivePage:
    """Validate a decoded JSON body and turn it into an :class:`ArchivePage`."""

    if not isinstance(payload, dict):
        raise ArchiveResponseError("response body is not a JSON object", page=page)
    has_next = payload.get(K_HAS_NEXT)
    actual_size = payload.get(K_ACTUAL_SIZE)
    url_list = payload.get(K_URL_LIST)
    if not isinstance(has_next, bool):
        raise ArchiveResponseError(f"missing or invalid {K_HAS_NEXT}", page=page)
    if isinstance(actual_size, bool) or not isinstance(actual_size, int):
        raise ArchiveResponseError(f"missing or invalid {K_ACTUAL_SIZE}", page=page)
    if not isinstance(url_list, list):
        raise ArchiveResponseError(f"missing or invalid {K_URL_LIST}", page=page)

    records: List[ArchiveRecord] = []
    for item in url_list:
        if not isinstance(item, dict):
            raise ArchiveResponseError(f"{K_URL_LIST} entry is not an object", page=page)
        httpcode = item.get(K_HTTPCODE)
        records.append(
            ArchiveRecord(
                url=str(item.get(K_URL) or ""),
                domain=str(item.get(K_DOMAIN) or ""),
                hostname=str(item.get(K_HOSTNAME) or ""),
                httpcode=httpcode if isinstance(httpcode, int) else 0,
                date=str(item.get(K_DATE) or ""),
            )
        )
    return ArchivePage(has_next=has_next, actual_size=actual_size, records=records)


class ArchiveFetcher:
    """Lazy, non-restartable URL source for one archive walk at a time."""

    def __init__(
        self,
        settings: Optional[ArchiveSettings] = None,
        *,
        session: Optional[requests.Session] = None,
        quota: Optional[HourlyQuota] = None,
    ) -> None:
        self.settings = settings or ArchiveSettings()
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.quota = quota or HourlyQuota(self.settings.requests_per_hour, window=self.settings.quota_window)
        self.pages_fetched = 0

    def __enter__(self) -> "ArchiveFetcher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def _headers(self) -> Dict[str, str]:
        headers = {HDR_ACCEPT: "application/json"}
        if self.settings.api_key:
            headers[HDR_OTX_KEY] = self.settings.api_key
        return headers

    def page_url(self, domain: str) -> str:
        return f"{self.settings.base_url}/{quote(domain, safe='')}"

    def fetch_page(self, domain: str, page: int) -> ArchivePage:
        """Retrieve and validate a single page."""

        self.quota.acquire()
        params = {"limit": self.settings.page_size, "page": page}
        try:
            resp = self.session.get(
                self.page_url(domain),
                params=params,
                headers=self._headers(),
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            raise ArchiveFetchError(f"failed to fetch data: {exc}", page=page) from exc
        self.pages_fetched += 1

        if resp.status_code == ARCHIVE_RATE_LIMIT_STATUS:
            raise QuotaExceededError("rate limit exceeded", page=page, status=resp.status_code)
        if resp.status_code != 200:
            raise ArchiveFetchError(
                f"unexpected status code: {resp.status_code}",
                page=page,
                status=resp.status_code,
            )
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ArchiveResponseError(f"failed to parse JSON: {exc}", page=page, status=200) from exc
        return parse_archive_page(payload, page=page)

    def iter_urls(self, domain: str) -> Iterator[str]:
        """Yield every URL the archive holds for ``domain``, page by page."""

        domain = (domain or "").strip()
        if not domain:
            raise ValueError("domain is required")
        page = 1
        count = 0
        while True:
            result = self.fetch_page(domain, page)
            if len(result.records) != result.actual_size:
                logger.debug(
                    "page %d: actual_size=%d but %d records",
                    page,
                    result.actual_size,
                    len(result.records),
                )
            for record in result.records:
                if not record.url:
                    continue
                count += 1
                yield record.url
            if not result.has_next:
                break
            page += 1
        logger.info("Completed fetching %d URLs for domain: %s (%d pages)", count, domain, page)


__all__ = [
    "ArchiveRecord",
    "ArchivePage",
    "ArchiveFetcher",
    "parse_archive_page",
]
