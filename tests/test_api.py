from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from conftest import R1, R2, FailingSaveStore, FakeSource, RecordingTransport, match_anchor, match_html

from esports_notifier.api.app import create_app
from esports_notifier.pipeline.service import NotifierService, build_service
from esports_notifier.storage.state_store import InMemoryStateStore


@pytest.fixture
def service() -> NotifierService:
    return build_service(
        store=InMemoryStateStore(),
        source=FakeSource(),  # type: ignore[arg-type]
        transport=RecordingTransport(),
    )


@pytest.fixture
def client(service: NotifierService) -> Iterator[TestClient]:
    app = create_app(service, start_scheduler=False, close_on_shutdown=False)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "subscriptions": 0, "scheduler_running": False}


def test_subscribe_and_list(client: TestClient) -> None:
    response = client.post("/subscribe", json={"team": "FURIA", "webhook": R1})
    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["created"] is True

    again = client.post("/subscribe", json={"team": "furia", "webhook": R1})
    assert again.json()["created"] is False

    listing = client.get("/subscriptions").json()
    assert listing["teams"] == {"FURIA": [R1]}
    assert listing["subscriptions"][0]["team"] == "FURIA"
    assert "createdAt" in listing["subscriptions"][0]


@pytest.mark.parametrize(
    "body",
    [{"team": "FURIA"}, {"webhook": R1}, {"team": "  ", "webhook": R1}, {}],
)
def test_subscribe_requires_team_and_webhook(client: TestClient, body: dict) -> None:
    response = client.post("/subscribe", json=body)
    assert response.status_code == 400
    assert client.get("/health").json()["subscriptions"] == 0


def test_unsubscribe(client: TestClient) -> None:
    client.post("/subscribe", json={"team": "FURIA", "webhook": R1})
    client.post("/subscribe", json={"team": "FURIA", "webhook": R2})

    response = client.post("/unsubscribe", json={"team": "FURIA", "webhook": R2})
    assert response.json() == {"ok": True, "removed": 1}
    assert client.get("/subscriptions").json()["teams"] == {"FURIA": [R1]}

    missing = client.post("/unsubscribe", json={"team": "NAVI", "webhook": R1})
    assert missing.json() == {"ok": True, "removed": 0}

    assert client.post("/unsubscribe", json={"team": "FURIA"}).status_code == 400


def test_poll_now_notifies_once(client: TestClient, service: NotifierService) -> None:
    service.source.html = match_html(match_anchor("12345", "FURIA vs NAVI"))  # type: ignore[attr-defined]
    client.post("/subscribe", json={"team": "FURIA", "webhook": R1})

    first = client.post("/poll-now").json()
    assert first == {
        "ok": True,
        "polled": 1,
        "new_matches": 1,
        "deliveries": 1,
        "failed_deliveries": 0,
        "errors": {},
    }

    second = client.get("/poll-now").json()
    assert second["new_matches"] == 0
    assert len(service.transport.posts_to(R1)) == 1  # type: ignore[attr-defined]


def test_poll_now_reports_fetch_errors(client: TestClient, service: NotifierService) -> None:
    service.source.fail = True  # type: ignore[attr-defined]
    client.post("/subscribe", json={"team": "FURIA", "webhook": R1})

    body = client.get("/poll-now").json()

    assert body["polled"] == 1
    assert body["errors"]["FURIA"].startswith("fetch failed")


def test_subscribe_persistence_failure_returns_500() -> None:
    store = FailingSaveStore()
    service = build_service(
        store=store,
        source=FakeSource(),  # type: ignore[arg-type]
        transport=RecordingTransport(),
    )
    store.broken = True
    app = create_app(service, start_scheduler=False, close_on_shutdown=False)

    with TestClient(app) as client:
        response = client.post("/subscribe", json={"team": "FURIA", "webhook": R1})

    assert response.status_code == 500
