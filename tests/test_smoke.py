import httpx
from fastapi.testclient import TestClient

from festresults.config import Settings
from festresults.feed import FeedClient
from festresults.main import create_app
from festresults.models import ProgramStatus
from festresults.service import ResultsService
from festresults.store import InMemoryPublicationStore

from conftest import SAMPLE_FEED

SETTINGS = Settings(feed_url="https://script.example.com/exec", refresh_interval=0)


class FlakyFeed:
    def __init__(self, body=SAMPLE_FEED):
        self.body = body
        self.status = 200

    def handler(self, request):
        return httpx.Response(self.status, text=self.body)


def _client(feed=None, rows=None):
    feed = feed or FlakyFeed()
    service = ResultsService(
        FeedClient(SETTINGS.feed_url, transport=httpx.MockTransport(feed.handler)),
        InMemoryPublicationStore(rows),
    )
    return TestClient(create_app(service, SETTINGS))


def test_health():
    with _client() as client:
        r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_initial_load_auto_publishes_and_orders_results():
    with _client() as client:
        status = client.get("/status").json()
        r = client.get("/results")

    assert status["ok"] is True
    assert status["record_count"] == 5

    data = r.json()
    # P2 is not declared published by the feed
    assert [g["program_code"] for g in data["groups"]] == ["P3", "P1"]
    assert data["stats"] == {"programs": 2, "entries": 3, "teams": 2}
    assert data["groups"][1]["entries"][0]["candidateName"] == "Anu"


def test_results_filters():
    rows = [ProgramStatus(program_code="P2", is_published=True)]
    with _client(rows=rows) as client:
        by_team = client.get("/results", params={"team": "AR"}).json()
        by_search = client.get("/results", params={"search": "quiz"}).json()
        by_section = client.get("/results", params={"section": "SENIOR"}).json()

    assert [g["program_code"] for g in by_team["groups"]] == ["P2", "P1"]
    assert [g["program_code"] for g in by_search["groups"]] == ["P3"]
    assert [g["program_code"] for g in by_section["groups"]] == ["P2"]


def test_wall_ticker():
    with _client() as client:
        data = client.get("/wall").json()

    assert data["ticker"] == ["P3: Quiz", "P1: Solo Song"]


def test_admin_toggle_and_bulk():
    with _client() as client:
        programs = client.get("/programs").json()
        assert [(p["code"], p["is_published"]) for p in programs] == [
            ("P1", True), ("P2", False), ("P3", True),
        ]

        r = client.put("/programs/P2/publication", json={"is_published": True})
        assert r.status_code == 200
        assert r.json()["is_published"] is True

        r = client.post("/programs/publication", json={"is_published": False})
        assert r.status_code == 200
        assert all(not p["is_published"] for p in r.json())

        assert client.get("/results").json()["groups"] == []

        # the feed still says P1 and P3 are published
        r = client.post("/refresh")
        assert r.json()["auto_published"] == ["P1", "P3"]


def test_unknown_program_is_404():
    with _client() as client:
        r = client.put("/programs/NOPE/publication", json={"is_published": True})
    assert r.status_code == 404


def test_failed_refresh_keeps_serving_previous_results():
    feed = FlakyFeed()
    with _client(feed) as client:
        feed.status = 500
        r = client.post("/refresh")
        assert r.status_code == 502
        assert r.json()["kind"] == "results_unavailable"

        status = client.get("/status").json()
        assert status["ok"] is False
        assert status["error_kind"] == "fetch"

        assert len(client.get("/results").json()["groups"]) == 2

        feed.status = 200
        assert client.post("/refresh").status_code == 200


def test_certificate_lookup():
    with _client() as client:
        r = client.get("/certificates/101")
        missing = client.get("/certificates/999")

    assert r.json() == [
        {"name": "Anu", "team": "ALMARIA", "program_name": "Solo Song", "position": "1", "grade": "A"},
    ]
    assert missing.status_code == 404
