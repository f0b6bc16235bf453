"""Tests for the report and link-check API routers.

Mocking strategy:
- ``backend.checker.runner.aprobe`` is replaced with an async fake before the
  TestClient starts, because the runner captures its probe function when the
  lifespan builds the audit.
- SSE bodies are parsed back into event dicts with ``_parse_sse``.
"""

from __future__ import annotations

import json
from typing import Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from backend.api.app import create_app
from backend.api.page import render_page
from backend.checker.models import ProbeResult, RunPhase

_BLOG_HTML = "<main><a href='/blog/rss'>Feed</a><form action='/comment'></form></main>"

# Everything not listed answers 200 with a plain page.
_STATUSES = {
    "https://example.org/page-not-found/": 404,
    "https://example.org/moved/": 301,
    "https://example.org/blog/tag": 404,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _fake_aprobe(url: str, fetch_body: bool = False, follow_redirects: bool = True) -> ProbeResult:
    status = _STATUSES.get(url, 200)
    body = ""
    if fetch_body and status == 200:
        body = _BLOG_HTML if url.endswith("/blog/") else "<p>page</p>"
    return ProbeResult(url=url, status=status, body=body)


def _parse_sse(content: bytes) -> list[dict]:
    """Parse raw SSE response bytes into a list of event dicts."""
    events = []
    for line in content.decode().splitlines():
        line = line.strip()
        if line.startswith("data: "):
            events.append(json.loads(line[len("data: "):]))
    return events


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(inventory_file) -> Generator[TestClient, None, None]:
    """TestClient over the sample inventory with a fake async probe."""
    with patch("backend.checker.runner.aprobe", _fake_aprobe):
        app = create_app(inventory_path=inventory_file)
        with TestClient(app, raise_server_exceptions=True) as c:
            yield c


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class TestReport:
    def test_page_renders_rows(self, client: TestClient) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "BlogPage" in resp.text
        assert "cms-status-0" in resp.text
        assert "LandingPage" in resp.text

    def test_rows_without_sample_render_placeholder(self, client: TestClient) -> None:
        html = render_page(client.app.state.audit)
        assert "actions-container-0" in html
        assert html.count("No preview") == 1

    def test_randomise_rebuilds_audit(self, client: TestClient) -> None:
        before = client.app.state.audit
        resp = client.get("/", params={"randomise": "true"})
        assert resp.status_code == 200
        assert client.app.state.audit is not before
        assert client.app.state.audit.randomised is True

    def test_rows_json(self, client: TestClient) -> None:
        rows = client.get("/rows").json()
        assert [r["short_name"] for r in rows][:2] == ["BlogPage", "Page"]
        assert rows[0]["sample"]["frontend_url"] == "https://example.org/blog/"
        assert rows[0]["check"]["cms_result"] is None
        assert rows[4]["sample"] is None
        assert rows[4]["check"] is None


# ---------------------------------------------------------------------------
# Batch check
# ---------------------------------------------------------------------------

class TestCheck:
    def test_stream_ends_with_done(self, client: TestClient) -> None:
        resp = client.post("/check", params={"actions": "false"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")

        events = _parse_sse(resp.content)
        assert events[-1]["event"] == "done"
        summary = events[-1]["summary"]
        assert (summary["passed"], summary["failed"], summary["manual"]) == (8, 0, 0)
        assert summary["unchecked_actions"] == 2

        progress = [e for e in events if e["event"] == "progress"]
        assert progress[-1] == {"event": "progress", "checked": 8, "total": 8}

    def test_stream_with_actions(self, client: TestClient) -> None:
        events = _parse_sse(client.post("/check").content)
        summary = events[-1]["summary"]
        # rss is found and passes; tag has no link on the page.
        assert (summary["passed"], summary["failed"], summary["manual"]) == (9, 0, 1)

        blog = [e["row"] for e in events if e["event"] == "row" and e["row"]["index"] == 0][-1]
        assert blog["action_urls"] == {"rss": "https://example.org/blog/rss", "tag": None}
        assert blog["form_detected"] is True

    def test_results_visible_in_rows_after_check(self, client: TestClient) -> None:
        client.post("/check", params={"actions": "false"})
        rows = client.get("/rows").json()
        assert rows[2]["check"]["frontend_result"]["status"] == 404
        assert rows[2]["check"]["frontend_result"]["passed"] is True

    def test_post_while_running_cancels(self, client: TestClient) -> None:
        runner = client.app.state.audit.runner
        runner.state.phase = RunPhase.RUNNING

        resp = client.post("/check")
        assert resp.json() == {"cancelled": True}
        assert runner.state.cancel_requested is True

    def test_cancel_when_idle(self, client: TestClient) -> None:
        assert client.post("/check/cancel").json() == {"cancelled": False}


# ---------------------------------------------------------------------------
# Single-row operations
# ---------------------------------------------------------------------------

class TestRowOperations:
    def test_recheck_frontend(self, client: TestClient) -> None:
        resp = client.post("/recheck/frontend/3")
        assert resp.status_code == 200
        body = resp.json()
        assert body["kind"] == "frontend"
        assert body["status"] == 301
        assert body["passed"] is True

    def test_recheck_unknown_row(self, client: TestClient) -> None:
        assert client.post("/recheck/cms/99").status_code == 404

    def test_recheck_unknown_kind(self, client: TestClient) -> None:
        assert client.post("/recheck/actions/0").status_code == 422

    def test_recheck_leaves_counters_alone(self, client: TestClient) -> None:
        client.post("/recheck/cms/0")
        assert client.app.state.audit.runner.state.checked == 0

    def test_row_actions(self, client: TestClient) -> None:
        body = client.post("/rows/0/actions").json()
        assert body["fetched"] is True
        assert body["row"]["action_urls"]["rss"] == "https://example.org/blog/rss"
        assert body["row"]["action_results"]["rss"]["passed"] is True

    def test_row_actions_unknown_row(self, client: TestClient) -> None:
        assert client.post("/rows/9/actions").status_code == 404

    def test_rejected_while_batch_runs(self, client: TestClient) -> None:
        runner = client.app.state.audit.runner
        runner.state.phase = RunPhase.RUNNING

        assert client.post("/recheck/cms/0").status_code == 409
        assert client.post("/rows/0/actions").status_code == 409
        assert runner.reports[0].cms_result is None
        assert runner.reports[0].action_urls == {}
