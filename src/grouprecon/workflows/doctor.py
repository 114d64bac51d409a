from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .settings import ReconSettings, load_phrase_overrides, load_settings


_SECRET_TOKENS = ("key", "token", "secret", "password", "pass")


def _is_secret_name(name: str) -> bool:
    lowered = (name or "").lower()
    return any(token in lowered for token in _SECRET_TOKENS)


def redact_value(value: str, keep: int = 4) -> str:
    raw = (value or "").strip()
    if not raw:
        return ""
    if len(raw) <= keep * 2:
        return "*" * len(raw)
    return f"{raw[:keep]}...{raw[-keep:]}"


def _redacted_env_value(name: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return redact_value(value) if _is_secret_name(name) else value


def _check_phrases(path: Path) -> Optional[str]:
    """Return an error description, or None when the file loads and compiles."""

    if not path.exists():
        return "file not found"
    try:
        phrases = load_phrase_overrides(path)
        for patterns in phrases.values():
            for pattern in patterns:
                re.compile(pattern)
    except (OSError, ValueError, re.error) as exc:
        return str(exc)
    return None


def build_doctor_report() -> Dict[str, Any]:
    report: Dict[str, Any] = {
        "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "ok": True,
        "checks": [],
    }

    def add_check(
        name: str,
        status: bool,
        *,
        detail: Optional[str] = None,
        remedy: Optional[str] = None,
        level: str = "warn",
        value: Optional[str] = None,
    ) -> None:
        entry = {
            "name": name,
            "status": "ok" if status else "missing",
            "level": level,
            "detail": detail,
        }
        if remedy:
            entry["remedy"] = remedy
        if value is not None:
            entry["value"] = _redacted_env_value(name, value)
        report["checks"].append(entry)
        if not status and level == "warn":
            report["ok"] = False

    otx_key = os.getenv("OTX_API_KEY")
    add_check(
        "OTX_API_KEY",
        bool(otx_key),
        detail="Archive requests authenticated" if otx_key else "Archive requests anonymous",
        remedy="Set OTX_API_KEY to send an X-OTX-API-KEY header.",
        level="info",
        value=otx_key,
    )

    phrases_raw = os.getenv("GROUPRECON_PHRASES_PATH")
    if phrases_raw:
        problem = _check_phrases(Path(phrases_raw))
        add_check(
            "GROUPRECON_PHRASES_PATH",
            problem is None,
            detail=problem or phrases_raw,
            remedy="Point GROUPRECON_PHRASES_PATH at a JSON object of view/join/post regex lists.",
            level="warn",
        )
    else:
        add_check("GROUPRECON_PHRASES_PATH", True, detail="Using built-in phrase patterns", level="info")

    settings: Optional[ReconSettings]
    try:
        settings = load_settings()
    except (OSError, ValueError) as exc:
        settings = None
        add_check(
            "settings",
            False,
            detail=str(exc),
            remedy="Fix the GROUPRECON_* environment variables listed in --help-full.",
            level="warn",
        )
    if settings is not None:
        add_check("archive", True, detail=settings.archive.base_url, level="info")
        add_check(
            "archive_quota",
            True,
            detail=f"{settings.archive.requests_per_hour} requests/hour, page size {settings.archive.page_size}",
            level="info",
        )
        add_check(
            "probe",
            True,
            detail=(
                f"host {settings.probe.groups_host}, login {settings.probe.login_host}, "
                f"interval {settings.probe.interval_ms}ms, max redirects {settings.probe.max_redirects}"
            ),
            level="info",
        )

    return report


def format_doctor_report(report: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append("grouprecon doctor")
    lines.append(f"Generated: {report.get('generated_at')}")
    lines.append("Values are redacted where applicable.")
    lines.append("")
    for check in report.get("checks", []):
        name = check.get("name", "check")
        status = check.get("status", "unknown")
        level = check.get("level", "info")
        detail = check.get("detail")
        value = check.get("value")
        label = f"{name}: {status}"
        if value:
            label = f"{label} ({value})"
        lines.append(f"- [{level}] {label}")
        if detail:
            lines.append(f"  detail: {detail}")
        remedy = check.get("remedy")
        if remedy:
            lines.append(f"  remedy: {remedy}")
    return "\n".join(lines).rstrip() + "\n"
