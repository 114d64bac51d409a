"""grouprecon defaults (endpoints, hosts, headers, limits, phrase patterns).

Centralizes static defaults so the stage modules have no embedded magic
strings. These are baseline constants used to construct ReconSettings;
callers can inject their own settings to override any of them.
"""

from __future__ import annotations

# Archive (AlienVault OTX) endpoint and paging
ARCHIVE_BASE_URL = "https://otx.alienvault.com/otxapi/indicators/hostname/url_list"
ARCHIVE_PAGE_SIZE = 100
ARCHIVE_TIMEOUT = 30.0
# Provider documents 10,000 requests/hour; stay under it.
ARCHIVE_REQUESTS_PER_HOUR = 9500
ARCHIVE_QUOTA_WINDOW = 3600.0
ARCHIVE_RATE_LIMIT_STATUS = 429

# Headers
HDR_USER_AGENT = "User-Agent"
HDR_ACCEPT = "Accept"
HDR_LOCATION = "Location"
HDR_OTX_KEY = "X-OTX-API-KEY"

BROWSER_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"

# Group host and login host
GROUPS_HOST = "groups.google.com"
LOGIN_HOST = "accounts.google.com"
GROUP_URL_SCHEMES = frozenset({"http", "https"})
ABOUT_SCHEME = "https"

# Prober pacing and HTTP policy
PROBE_INTERVAL_MS = 200
PROBE_TIMEOUT = 10.0
MAX_REDIRECTS = 10
AUTH_REQUIRED_STATUS_CODES = frozenset({401, 403})
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

# Capability phrases. Each pattern bounds the gap after "Anyone on the web"
# so it cannot run into a neighbouring permission statement.
VIEW_PATTERNS = (r"Anyone on the web.{0,50}?can view conversations",)
JOIN_PATTERNS = (r"Anyone on the web.{0,50}?can join group",)
POST_PATTERNS = (r"Anyone on the web.{0,50}?can post",)
