"""Tests for the FastAPI routes."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from src.api.server import create_app
from src.config import settings
from src.monitor.errors import FatalFailure, PersistenceFailure
from src.monitor.prober import Prober
from src.monitor.scheduler import MonitorScheduler
from src.monitor.service import UptimeService
from src.monitor.store import MonitorStore


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "down.example.com":
        raise httpx.ConnectError("Connection refused", request=request)
    return httpx.Response(200)


@pytest.fixture
def client(store: MonitorStore, clock, t0: datetime) -> TestClient:
    """App wired like the server lifespan, with a mocked network and simulated clock."""
    clock.set(t0 + timedelta(minutes=5))
    app = create_app()
    app.state.store = store
    app.state.service = UptimeService(store, clock)
    prober = Prober(timeout=1.0, transport=httpx.MockTransport(_handler))
    app.state.scheduler = MonitorScheduler(store, prober, clock=clock)
    return TestClient(app)


class TestTargetRoutes:
    def test_create_and_list(self, client: TestClient) -> None:
        resp = client.post("/api/targets", json={"alias": "abc", "url": "https://example.com"})
        assert resp.status_code == 201
        assert resp.json()["alias"] == "abc"

        resp = client.get("/api/targets")
        assert resp.status_code == 200
        targets = resp.json()["targets"]
        assert len(targets) == 1
        assert targets[0]["target"]["url"] == "https://example.com"
        assert len(targets[0]["hourly"]) == 24

    def test_create_invalid_url(self, client: TestClient) -> None:
        resp = client.post("/api/targets", json={"alias": "abc", "url": "not-a-url"})
        assert resp.status_code == 422
        assert "Invalid URL" in resp.json()["detail"]

    def test_create_duplicate(self, client: TestClient) -> None:
        client.post("/api/targets", json={"alias": "abc", "url": "https://example.com"})
        resp = client.post("/api/targets", json={"alias": "abc", "url": "https://example.org"})
        assert resp.status_code == 422
        assert "already exists" in resp.json()["detail"]

    def test_detail(self, client: TestClient, store: MonitorStore, t0: datetime) -> None:
        store.insert_target("abc", "https://example.com")
        for offset, status in ((0, 200), (60, 500), (120, 200)):
            store.append_check_result("abc", t0 + timedelta(seconds=offset), status)

        resp = client.get("/api/targets/abc")
        assert resp.status_code == 200
        data = resp.json()
        assert data["hourly"][0]["uptime_pct"] == 66
        assert len(data["daily"]) == 30
        assert [i["status"] for i in data["incidents"]] == [500]

    def test_detail_not_found(self, client: TestClient) -> None:
        assert client.get("/api/targets/missing").status_code == 404

    def test_delete(self, client: TestClient, store: MonitorStore) -> None:
        store.insert_target("abc", "https://example.com")
        resp = client.delete("/api/targets/abc")
        assert resp.status_code == 200
        assert resp.json() == {"deleted": "abc"}
        assert client.get("/api/targets").json()["targets"] == []
        assert client.delete("/api/targets/abc").status_code == 404

    def test_store_error_is_503(self, client: TestClient) -> None:
        broken = MagicMock()
        broken.list_targets.side_effect = PersistenceFailure("database is locked")
        client.app.state.service = UptimeService(broken)
        resp = client.get("/api/targets")
        assert resp.status_code == 503


class TestLifespan:
    @pytest.fixture
    def configured(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        """Point settings at temp paths and keep the scheduler off the network."""
        monkeypatch.setattr(settings, "db_path", str(tmp_path / "data" / "monitor.db"))
        monkeypatch.setattr(settings, "targets_file", str(tmp_path / "targets.yaml"))
        monkeypatch.setattr(
            "src.api.server.Prober",
            lambda timeout: Prober(timeout=timeout, transport=httpx.MockTransport(_handler)),
        )
        return tmp_path

    def test_startup_seeds_and_runs_scheduler(self, configured: Path) -> None:
        (configured / "targets.yaml").write_text(
            "targets:\n  - alias: abc\n    url: https://example.com\n", encoding="utf-8",
        )
        app = create_app()
        with TestClient(app) as client:
            assert app.state.scheduler.running is True
            targets = client.get("/api/targets").json()["targets"]
            assert [t["target"]["alias"] for t in targets] == ["abc"]
        assert app.state.scheduler.running is False

    def test_malformed_seed_file_does_not_block_startup(self, configured: Path) -> None:
        (configured / "targets.yaml").write_text(
            "- alias: abc\n  url: https://example.com\n", encoding="utf-8",
        )
        app = create_app()
        with TestClient(app) as client:
            assert client.get("/api/targets").json() == {"targets": []}
            assert client.get("/api/status").json()["running"] is True

    def test_unopenable_store_aborts_startup(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setattr(settings, "db_path", str(blocker / "monitor.db"))

        with pytest.raises(FatalFailure):
            with TestClient(create_app()):
                pass


class TestCheckRoutes:
    def test_run_check(self, client: TestClient, store: MonitorStore) -> None:
        store.insert_target("up", "https://up.example.com")
        store.insert_target("down", "https://down.example.com")

        resp = client.post("/api/check")
        assert resp.status_code == 200
        results = {r["target_alias"]: r for r in resp.json()["results"]}
        assert results["up"]["status"] == 200
        assert results["down"]["status"] == 0
        assert results["down"]["error"]
        assert store.count_check_results("up") == 1
        assert store.count_check_results("down") == 1

    def test_status(self, client: TestClient, store: MonitorStore) -> None:
        store.insert_target("abc", "https://example.com")
        data = client.get("/api/status").json()
        assert data["status"] == "ok"
        assert data["targets"] == 1
        assert data["interval_s"] == 60
        assert data["running"] is False
        assert data["last_cycle_at"] is None
