"""Shared schema keys for archive payloads and phrase overrides."""

from __future__ import annotations

# Archive page keys
K_HAS_NEXT = "has_next"
K_ACTUAL_SIZE = "actual_size"
K_URL_LIST = "url_list"

# Archive record keys
K_URL = "url"
K_DOMAIN = "domain"
K_HOSTNAME = "hostname"
K_HTTPCODE = "httpcode"
K_DATE = "date"

# Capability names used by the permission detector and phrase overrides
K_VIEW = "view"
K_JOIN = "join"
K_POST = "post"
