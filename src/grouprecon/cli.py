from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from dotenv import load_dotenv

from .core.errors import ArchiveFetchError, QuotaExceededError, StreamReadError
from .pipeline import run_recon
from .workflows.archive_fetcher import ArchiveFetcher
from .workflows.dedup import extract_domains, normalize_urls
from .workflows.doctor import build_doctor_report, format_doctor_report
from .workflows.prober import PermissionProber, iter_exposed
from .workflows.recon_utils import open_source, read_lines
from .workflows.settings import ReconSettings, load_settings

load_dotenv()

logger = logging.getLogger("grouprecon")

EXIT_STREAM_READ = 1
EXIT_ARCHIVE = 2
EXIT_CONFIG = 2
EXIT_INPUT = 2
EXIT_QUOTA = 3

app = typer.Typer(add_help_option=False, no_args_is_help=False)


def _minimal_help() -> str:
    return """grouprecon (Google Workspace group exposure recon)

Usage:
  grouprecon fetch-archive --domain <domain>
  grouprecon extract-domains [<urls.txt|->]
  grouprecon trim [<urls.txt|->] [--trim]
  grouprecon check-permissions [<urls.txt|->] [--verbose] [--require-post]
  grouprecon recon --domain <domain> [--verbose] [--require-post]
  grouprecon doctor

Results go to stdout one per line; diagnostics go to stderr.

Discoverability:
  --help-full     Expanded help + env vars.
  --find <query>  Search commands, flags, env vars.
  --doctor        Run environment diagnostics and exit.
"""


def _help_full() -> str:
    return """grouprecon CLI

Commands:
  fetch-archive      Page through the OTX url_list archive for a domain.
  extract-domains    Print each distinct custom domain seen in group URLs.
  trim               Validate and deduplicate group URLs (--trim: canonical root).
  check-permissions  Probe each group's about page; print exposed groups.
  recon              fetch-archive | trim --trim | check-permissions in one process.
  doctor             Print environment diagnostics.

Example pipeline:
  grouprecon fetch-archive --domain groups.google.com \\
    | grouprecon trim --trim \\
    | grouprecon check-permissions --require-post > exposed.txt

Exit codes:
  0  success
  1  input stream could not be read
  2  archive fetch failed, malformed archive response, bad input path or settings
  3  archive rate limit (HTTP 429); resume later

Env vars:
  OTX_API_KEY                           Sent as X-OTX-API-KEY to the archive.
  GROUPRECON_ARCHIVE_BASE_URL           Archive url_list endpoint.
  GROUPRECON_ARCHIVE_PAGE_SIZE          Records per page (default 100).
  GROUPRECON_ARCHIVE_REQUESTS_PER_HOUR  Self-imposed hourly ceiling (default 9500).
  GROUPRECON_ARCHIVE_TIMEOUT            Archive request timeout, seconds.
  GROUPRECON_GROUPS_HOST                Group host (default groups.google.com).
  GROUPRECON_LOGIN_HOST                 Login host treated as auth-required.
  GROUPRECON_PROBE_INTERVAL_MS          Delay between probes (default 200).
  GROUPRECON_PROBE_TIMEOUT              Probe request timeout, seconds.
  GROUPRECON_MAX_REDIRECTS              Redirect cap per probe (default 10).
  GROUPRECON_USER_AGENT                 User-Agent sent with probes.
  GROUPRECON_PHRASES_PATH               JSON of view/join/post regex lists.
  GROUPRECON_LOG_LEVEL                  Diagnostic log level (default INFO).
"""


_FIND_INDEX = [
    ("command", "fetch-archive", "Page through the OTX archive for a domain."),
    ("command", "extract-domains", "Print distinct custom domains from group URLs."),
    ("command", "trim", "Validate and deduplicate group URLs."),
    ("command", "check-permissions", "Probe about pages; print exposed groups."),
    ("command", "recon", "Run fetch, trim and probe in one process."),
    ("command", "doctor", "Print environment diagnostics."),
    ("flag", "--domain", "Domain to query in the archive."),
    ("flag", "--trim", "Collapse URLs to their canonical group root."),
    ("flag", "--verbose", "Log the full classification of every group."),
    ("flag", "--require-post", "Only accept groups where anyone can post."),
    ("flag", "--help-full", "Expanded help and env vars."),
    ("flag", "--find", "Search commands, flags, env vars."),
    ("flag", "--doctor", "Run environment diagnostics and exit."),
    ("env", "OTX_API_KEY", "Authenticate archive requests."),
    ("env", "GROUPRECON_ARCHIVE_BASE_URL", "Archive url_list endpoint."),
    ("env", "GROUPRECON_ARCHIVE_PAGE_SIZE", "Records per archive page."),
    ("env", "GROUPRECON_ARCHIVE_REQUESTS_PER_HOUR", "Hourly archive request ceiling."),
    ("env", "GROUPRECON_ARCHIVE_TIMEOUT", "Archive request timeout."),
    ("env", "GROUPRECON_GROUPS_HOST", "Group host name."),
    ("env", "GROUPRECON_LOGIN_HOST", "Login host treated as auth-required."),
    ("env", "GROUPRECON_PROBE_INTERVAL_MS", "Delay between probes."),
    ("env", "GROUPRECON_PROBE_TIMEOUT", "Probe request timeout."),
    ("env", "GROUPRECON_MAX_REDIRECTS", "Redirect cap per probe."),
    ("env", "GROUPRECON_USER_AGENT", "User-Agent sent with probes."),
    ("env", "GROUPRECON_PHRASES_PATH", "Capability phrase overrides."),
    ("env", "GROUPRECON_LOG_LEVEL", "Diagnostic log level."),
]


def _run_find(query: str) -> str:
    needle = (query or "").strip().lower()
    if not needle:
        return ""
    lines = []
    for category, name, desc in _FIND_INDEX:
        haystack = f"{category} {name} {desc}".lower()
        if needle in haystack:
            lines.append(f"{category} {name} - {desc}")
    return "\n".join(lines)


def _configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
    )


def _settings() -> ReconSettings:
    try:
        settings = load_settings()
    except (OSError, ValueError) as exc:
        typer.echo(f"fatal: invalid settings: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)
    _configure_logging(settings.log_level)
    return settings


@contextmanager
def _input_lines(source: str) -> Iterator[Iterator[str]]:
    try:
        handle = open_source(source)
    except OSError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=EXIT_INPUT)
    try:
        yield read_lines(handle)
    except StreamReadError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=EXIT_STREAM_READ)
    finally:
        if handle is not sys.stdin:
            handle.close()


def _archive_failure(exc: ArchiveFetchError) -> typer.Exit:
    if exc.page is not None:
        logger.error("Error fetching page %d: %s", exc.page, exc)
    else:
        logger.error("Error fetching archive: %s", exc)
    if isinstance(exc, QuotaExceededError):
        logger.error("Archive rate limit hit; resume later.")
        return typer.Exit(code=EXIT_QUOTA)
    return typer.Exit(code=EXIT_ARCHIVE)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    help: bool = typer.Option(False, "--help", "-h", is_eager=True, help="Show minimal help."),
    help_full: bool = typer.Option(False, "--help-full", is_eager=True, help="Show expanded help."),
    find: Optional[str] = typer.Option(None, "--find", is_eager=True, help="Search commands, flags, env vars."),
    doctor: bool = typer.Option(False, "--doctor", is_eager=True, help="Run environment diagnostics and exit."),
) -> None:
    if help_full:
        typer.echo(_help_full())
        raise typer.Exit(code=0)
    if find is not None:
        output = _run_find(find)
        if output:
            typer.echo(output)
        raise typer.Exit(code=0)
    if doctor:
        report = build_doctor_report()
        typer.echo(format_doctor_report(report))
        raise typer.Exit(code=0 if report.get("ok", True) else 2)
    if help or ctx.invoked_subcommand is None:
        typer.echo(_minimal_help())
        raise typer.Exit(code=0)


@app.command("doctor", add_help_option=True)
def doctor_cmd() -> None:
    """Print environment diagnostics."""
    report = build_doctor_report()
    typer.echo(format_doctor_report(report))
    raise typer.Exit(code=0 if report.get("ok", True) else 2)


@app.command("fetch-archive", add_help_option=True)
def fetch_archive(
    domain: str = typer.Option(..., "--domain", help="Domain to query (e.g. groups.google.com)."),
) -> None:
    """Print every URL the archive has seen for a domain."""
    if not domain.strip():
        raise typer.BadParameter("domain is required", param_hint="--domain")
    settings = _settings()
    try:
        with ArchiveFetcher(settings.archive) as fetcher:
            for url in fetcher.iter_urls(domain):
                typer.echo(url)
    except ArchiveFetchError as exc:
        raise _archive_failure(exc)


@app.command("extract-domains", add_help_option=True)
def extract_domains_cmd(
    source: str = typer.Argument("-", help="Path to a URL list or '-' for stdin."),
) -> None:
    """Print each distinct custom domain found in group URLs."""
    settings = _settings()
    with _input_lines(source) as lines:
        for domain in extract_domains(lines, groups_host=settings.probe.groups_host):
            typer.echo(domain)


@app.command("trim", add_help_option=True)
def trim_cmd(
    source: str = typer.Argument("-", help="Path to a URL list or '-' for stdin."),
    trim: bool = typer.Option(False, "--trim", help="Collapse to canonical group URLs before deduplicating."),
) -> None:
    """Validate and deduplicate group URLs."""
    settings = _settings()
    with _input_lines(source) as lines:
        for url in normalize_urls(lines, trim=trim, groups_host=settings.probe.groups_host):
            typer.echo(url)


@app.command("check-permissions", add_help_option=True)
def check_permissions(
    source: str = typer.Argument("-", help="Path to a URL list or '-' for stdin."),
    verbose: bool = typer.Option(False, "--verbose", help="Log permission details for every group."),
    require_post: bool = typer.Option(False, "--require-post", help="Only output groups where anyone can post."),
) -> None:
    """Print the groups that are publicly accessible."""
    settings = _settings()
    with _input_lines(source) as lines:
        with PermissionProber(settings.probe, require_post=require_post) as prober:
            for url in iter_exposed(prober.run(lines, verbose=verbose)):
                typer.echo(url)


@app.command("recon", add_help_option=True)
def recon(
    domain: str = typer.Option(..., "--domain", help="Domain to query in the archive."),
    verbose: bool = typer.Option(False, "--verbose", help="Log permission details for every group."),
    require_post: bool = typer.Option(False, "--require-post", help="Only output groups where anyone can post."),
) -> None:
    """Fetch, canonicalize and probe in one process."""
    if not domain.strip():
        raise typer.BadParameter("domain is required", param_hint="--domain")
    settings = _settings()
    try:
        for url in iter_exposed(run_recon(domain, settings=settings, require_post=require_post, verbose=verbose)):
            typer.echo(url)
    except ArchiveFetchError as exc:
        raise _archive_failure(exc)
