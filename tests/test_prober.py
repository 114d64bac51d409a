import logging

import requests

from grouprecon.workflows.permission_detector import PermissionProfile
from grouprecon.workflows.prober import PermissionProber, ProbeState, iter_exposed
from grouprecon.workflows.settings import ProbeSettings

ABOUT = "https://groups.google.com/a/example.com/g/team/about"
VIEW_ONLY = "<div>Anyone on the web can view conversations</div>"
VIEW_AND_POST = VIEW_ONLY + "<div>Anyone on the web can post</div>"
LOGIN = "https://accounts.google.com/ServiceLogin?continue=https://groups.google.com/a/example.com/g/team/about"


class FakeResponse:
    def __init__(self, status_code=200, text="", location=None):
        self.status_code = status_code
        self.text = text
        self.headers = {"Location": location} if location else {}


class FakeSession:
    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.handler(url)

    def close(self):
        pass


class CountingLimiter:
    def __init__(self):
        self.count = 0

    def acquire(self):
        self.count += 1
        return 0.0


def _prober(handler, **kwargs):
    session = FakeSession(handler)
    limiter = CountingLimiter()
    prober = PermissionProber(ProbeSettings(), session=session, limiter=limiter, **kwargs)
    return prober, session, limiter


def test_view_only_group_is_accepted_via_about_page():
    prober, session, limiter = _prober(lambda url: FakeResponse(text=VIEW_ONLY))

    outcome = prober.probe("https://groups.google.com/a/example.com/g/team/c/abc?hl=en")

    assert outcome.state is ProbeState.ACCEPTED
    assert outcome.profile == PermissionProfile(is_public=True, can_view=True)
    assert outcome.identity.email == "team@example.com"
    url, kwargs = session.calls[0]
    assert url == ABOUT
    assert kwargs["allow_redirects"] is False
    assert kwargs["headers"]["User-Agent"].startswith("Mozilla/5.0")
    assert limiter.count == 1


def test_login_redirect_is_auth_required_and_rejected():
    prober, session, _ = _prober(lambda url: FakeResponse(status_code=302, location=LOGIN))

    outcome = prober.probe("https://groups.google.com/a/example.com/g/team")

    assert outcome.state is ProbeState.REJECTED
    assert outcome.profile == PermissionProfile(is_public=False, requires_auth=True)
    assert len(session.calls) == 1


def test_auth_statuses_are_classified_not_errors():
    for status in (401, 403):
        prober, _, _ = _prober(lambda url, s=status: FakeResponse(status_code=s))
        outcome = prober.probe("https://groups.google.com/a/example.com/g/team")
        assert outcome.state is ProbeState.REJECTED
        assert outcome.profile.requires_auth is True
        assert outcome.profile.can_view is False


def test_unexpected_status_is_an_error():
    prober, _, _ = _prober(lambda url: FakeResponse(status_code=500))
    outcome = prober.probe("https://groups.google.com/a/example.com/g/team")
    assert outcome.state is ProbeState.ERROR
    assert "500" in outcome.error
    assert outcome.profile is None


def test_other_redirects_are_followed():
    def handler(url):
        if url == ABOUT:
            return FakeResponse(status_code=301, location="/a/example.com/g/team/about?hl=en")
        return FakeResponse(text=VIEW_ONLY)

    prober, session, _ = _prober(handler)
    outcome = prober.probe("https://groups.google.com/a/example.com/g/team")

    assert outcome.state is ProbeState.ACCEPTED
    assert [url for url, _ in session.calls] == [
        ABOUT,
        "https://groups.google.com/a/example.com/g/team/about?hl=en",
    ]


def test_redirect_loop_is_capped():
    prober, session, _ = _prober(lambda url: FakeResponse(status_code=302, location=ABOUT))
    outcome = prober.probe("https://groups.google.com/a/example.com/g/team")
    assert outcome.state is ProbeState.ERROR
    assert outcome.error == "too many redirects"
    assert len(session.calls) == ProbeSettings().max_redirects + 1


def test_require_post_policy():
    strict, _, _ = _prober(lambda url: FakeResponse(text=VIEW_ONLY), require_post=True)
    lenient, _, _ = _prober(lambda url: FakeResponse(text=VIEW_ONLY))
    posting, _, _ = _prober(lambda url: FakeResponse(text=VIEW_AND_POST), require_post=True)
    url = "https://groups.google.com/a/example.com/g/team"

    assert strict.probe(url).state is ProbeState.REJECTED
    assert lenient.probe(url).state is ProbeState.ACCEPTED
    assert posting.probe(url).state is ProbeState.ACCEPTED


def test_malformed_url_errors_without_network_or_throttle(caplog):
    prober, session, limiter = _prober(lambda url: FakeResponse(text=VIEW_ONLY))
    with caplog.at_level(logging.WARNING):
        outcome = prober.probe("https://example.com/not-a-group")
    assert outcome.state is ProbeState.ERROR
    assert session.calls == []
    assert limiter.count == 0
    assert "Could not extract group email from https://example.com/not-a-group" in caplog.text


def test_run_continues_after_network_failure(caplog):
    def handler(url):
        if "/g/broken/" in url:
            raise requests.ConnectionError("connection reset")
        return FakeResponse(text=VIEW_ONLY)

    prober, _, limiter = _prober(handler)
    lines = [
        "https://groups.google.com/a/example.com/g/broken",
        "",
        "https://groups.google.com/a/example.com/g/team",
    ]
    with caplog.at_level(logging.WARNING):
        outcomes = list(prober.run(lines))

    assert [o.state for o in outcomes] == [ProbeState.ERROR, ProbeState.ACCEPTED]
    assert limiter.count == 2
    assert "Error checking https://groups.google.com/a/example.com/g/broken: connection reset" in caplog.text


def test_run_reports_rejections_and_verbose_details(caplog):
    prober, _, _ = _prober(lambda url: FakeResponse(status_code=403))
    with caplog.at_level(logging.INFO):
        list(prober.run(["https://groups.google.com/a/example.com/g/team"]))
        list(prober.run(["https://groups.google.com/a/example.com/g/team"], verbose=True))

    assert "Rejected team@example.com (not publicly accessible)" in caplog.text
    assert (
        "Group: team@example.com | Public: False | View: False | Post: False | Join: False | RequireAuth: True"
        in caplog.text
    )
    details = [r for r in caplog.records if r.getMessage().startswith("Group: ")]
    assert details and details[0].msg == "%s"


def test_iter_exposed_yields_input_urls():
    def handler(url):
        if "/g/private/" in url:
            return FakeResponse(status_code=302, location=LOGIN)
        return FakeResponse(text=VIEW_ONLY)

    prober, _, _ = _prober(handler)
    lines = [
        "https://groups.google.com/a/example.com/g/team?hl=en",
        "https://groups.google.com/a/example.com/g/private",
    ]
    assert list(iter_exposed(prober.run(lines))) == ["https://groups.google.com/a/example.com/g/team?hl=en"]
