from grouprecon.pipeline import run_recon
from grouprecon.workflows.archive_fetcher import ArchiveFetcher
from grouprecon.workflows.prober import PermissionProber, ProbeState, iter_exposed
from grouprecon.workflows.settings import DEFAULT_SETTINGS


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", location=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.headers = {"Location": location} if location else {}

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        return self.handler(url, kwargs)

    def close(self):
        pass


class NoWait:
    def acquire(self):
        return 0.0


ARCHIVE_URLS = [
    "https://groups.google.com/a/example.com/g/team/c/abc?hl=en",
    "https://groups.google.com/forum/#!topic/legacy/xyz",
    "https://groups.google.com/a/example.com/g/team?hl=fr",
    "https://groups.google.com/a/corp.example/g/private",
]


def _archive(url, kwargs):
    return FakeResponse(
        payload={
            "has_next": False,
            "actual_size": len(ARCHIVE_URLS),
            "url_list": [{"url": u} for u in ARCHIVE_URLS],
        }
    )


def _groups(url, kwargs):
    if "/g/private/" in url:
        return FakeResponse(status_code=302, location="https://accounts.google.com/ServiceLogin")
    return FakeResponse(text="<p>Anyone on the web can view conversations</p>")


def test_run_recon_probes_each_canonical_group_once():
    probe_session = FakeSession(_groups)
    fetcher = ArchiveFetcher(DEFAULT_SETTINGS.archive, session=FakeSession(_archive))
    prober = PermissionProber(DEFAULT_SETTINGS.probe, session=probe_session, limiter=NoWait())

    outcomes = list(run_recon("groups.google.com", fetcher=fetcher, prober=prober))

    assert [o.url for o in outcomes] == [
        "https://groups.google.com/a/example.com/g/team",
        "https://groups.google.com/a/corp.example/g/private",
    ]
    assert [o.state for o in outcomes] == [ProbeState.ACCEPTED, ProbeState.REJECTED]
    assert probe_session.calls == [
        "https://groups.google.com/a/example.com/g/team/about",
        "https://groups.google.com/a/corp.example/g/private/about",
    ]


def test_run_recon_feeds_iter_exposed():
    fetcher = ArchiveFetcher(DEFAULT_SETTINGS.archive, session=FakeSession(_archive))
    prober = PermissionProber(DEFAULT_SETTINGS.probe, session=FakeSession(_groups), limiter=NoWait())
    exposed = list(iter_exposed(run_recon("groups.google.com", fetcher=fetcher, prober=prober)))
    assert exposed == ["https://groups.google.com/a/example.com/g/team"]
