"""Parsing helpers for Google Workspace group URLs.

A group URL has the shape::

    scheme://groups.google.com/a/{domain}/g/{group}[suffix]

where ``suffix`` is whatever follows the group segment (sub-path, query,
fragment). Parsing is structural (``urllib.parse``) rather than a regex scan so
that every rejection has a named reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote, urlsplit

from ..core.errors import MalformedGroupURL
from .recon_config import ABOUT_SCHEME, GROUP_URL_SCHEMES, GROUPS_HOST
from .recon_utils import idna_normalize

# Characters left bare when a decoded domain goes back into a URL path.
_DOMAIN_SAFE = ".-_~"


@dataclass(frozen=True)
class GroupIdentity:
    """The (domain, group) pair that names one group."""

    domain: str
    group_name: str

    @property
    def email(self) -> str:
        return f"{self.group_name}@{self.domain}"

    @property
    def path(self) -> str:
        return f"/a/{quote(self.domain, safe=_DOMAIN_SAFE)}/g/{self.group_name}"

    def about_url(self, host: str = GROUPS_HOST) -> str:
        return f"{ABOUT_SCHEME}://{host}{self.path}/about"


@dataclass(frozen=True)
class GroupURL:
    """A parsed group URL."""

    raw: str
    scheme: str
    host: str
    domain: str
    group_name: str
    suffix: str = ""

    @property
    def identity(self) -> GroupIdentity:
        return GroupIdentity(self.domain, self.group_name)

    @property
    def canonical(self) -> str:
        return f"{self.scheme}://{self.host}{self.identity.path}"

    def about_url(self, host: Optional[str] = None) -> str:
        return self.identity.about_url(host or self.host)


def _clean_segment(value: str) -> str:
    # A segment that decodes to a slash would split the identity.
    if "/" in unquote(value):
        return ""
    return value


def parse_group_url(line: str, *, groups_host: str = GROUPS_HOST) -> GroupURL:
    """Parse ``line`` into a :class:`GroupURL` or raise :class:`MalformedGroupURL`."""

    text = (line or "").strip()
    if not text:
        raise MalformedGroupURL(line, "empty line")
    try:
        parts = urlsplit(text)
        port = parts.port
    except ValueError as exc:
        raise MalformedGroupURL(line, f"unparseable URL ({exc})") from exc

    scheme = parts.scheme.lower()
    if scheme not in GROUP_URL_SCHEMES:
        raise MalformedGroupURL(line, "unsupported scheme")
    hostname = (parts.hostname or "").lower()
    if hostname != groups_host.lower():
        raise MalformedGroupURL(line, "not a groups host")

    segments = parts.path.split("/")
    # ['', 'a', domain, 'g', group, ...rest]
    if len(segments) < 5 or segments[0] != "" or segments[1] != "a" or segments[3] != "g":
        raise MalformedGroupURL(line, "path is not /a/{domain}/g/{group}")

    try:
        decoded = unquote(_clean_segment(segments[2]), errors="strict")
    except UnicodeDecodeError as exc:
        raise MalformedGroupURL(line, "domain is not valid UTF-8") from exc
    # U+FFFD marks bytes the input stream could not decode.
    if "\ufffd" in decoded:
        raise MalformedGroupURL(line, "domain is not valid UTF-8")
    domain = idna_normalize(decoded)
    group_name = _clean_segment(segments[4])
    if not domain:
        raise MalformedGroupURL(line, "empty domain")
    if not group_name:
        raise MalformedGroupURL(line, "empty group name")

    suffix = ""
    if len(segments) > 5:
        suffix = "/" + "/".join(segments[5:])
    if parts.query:
        suffix += f"?{parts.query}"
    if parts.fragment:
        suffix += f"#{parts.fragment}"

    host = hostname if port is None else f"{hostname}:{port}"
    return GroupURL(
        raw=text,
        scheme=scheme,
        host=host,
        domain=domain,
        group_name=group_name,
        suffix=suffix,
    )


def try_parse_group_url(line: str, *, groups_host: str = GROUPS_HOST) -> Optional[GroupURL]:
    """Return the parsed URL, or None when ``line`` is not a group URL."""

    try:
        return parse_group_url(line, groups_host=groups_host)
    except MalformedGroupURL:
        return None


__all__ = [
    "GroupIdentity",
    "GroupURL",
    "parse_group_url",
    "try_parse_group_url",
]
