"""
HTTP API for subscription management and manual polling.

POST /subscribe      Subscribe a webhook to a team.
POST /unsubscribe    Remove a (team, webhook) subscription.
GET  /subscriptions  List subscriptions, flat and grouped by team.
GET  /poll-now       Run one poll cycle immediately (POST also accepted).
GET  /health         Liveness and subscription count.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, Request
from loguru import logger
from pydantic import BaseModel

from esports_notifier.pipeline.service import NotifierService
from esports_notifier.storage.state_store import PersistenceError


class SubscriptionRequest(BaseModel):
    team: Optional[str] = None
    webhook: Optional[str] = None


def _require_fields(body: SubscriptionRequest) -> tuple[str, str]:
    team = (body.team or "").strip()
    webhook = (body.webhook or "").strip()
    if not team or not webhook:
        raise HTTPException(status_code=400, detail="Both 'team' and 'webhook' are required.")
    return team, webhook


def _service(request: Request) -> NotifierService:
    return request.app.state.service


def create_app(
    service: NotifierService,
    start_scheduler: bool = True,
    close_on_shutdown: bool = True,
) -> FastAPI:
    """Build the FastAPI app around an already wired service."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if start_scheduler:
            service.scheduler.start()
        try:
            yield
        finally:
            if close_on_shutdown:
                await service.aclose()

    app = FastAPI(title="Esports Match Notifier", lifespan=lifespan)
    app.state.service = service

    @app.post("/subscribe")
    async def subscribe(body: SubscriptionRequest, request: Request) -> dict[str, Any]:
        team, webhook = _require_fields(body)
        try:
            _, created = _service(request).registry.add(team, webhook)
        except PersistenceError as e:
            logger.error(f"Subscription for '{team}' kept in memory but not persisted: {e}")
            raise HTTPException(status_code=500, detail="Subscription could not be saved.") from e
        message = f"Subscribed to {team}" if created else f"Already subscribed to {team}"
        return {"ok": True, "created": created, "message": message}

    @app.post("/unsubscribe")
    async def unsubscribe(body: SubscriptionRequest, request: Request) -> dict[str, Any]:
        team, webhook = _require_fields(body)
        try:
            removed = _service(request).registry.remove(team, webhook)
        except PersistenceError as e:
            logger.error(f"Unsubscribe for '{team}' applied in memory but not persisted: {e}")
            raise HTTPException(status_code=500, detail="Subscription change could not be saved.") from e
        return {"ok": True, "removed": removed}

    @app.get("/subscriptions")
    async def list_subscriptions(request: Request) -> dict[str, Any]:
        registry = _service(request).registry
        return {
            "subscriptions": [
                s.model_dump(mode="json", by_alias=True) for s in registry.list()
            ],
            "teams": registry.grouped(),
        }

    @app.api_route("/poll-now", methods=["GET", "POST"])
    async def poll_now(request: Request) -> dict[str, Any]:
        report = await _service(request).scheduler.trigger()
        return {
            "ok": True,
            "polled": report.polled,
            "new_matches": report.new_matches,
            "deliveries": report.deliveries,
            "failed_deliveries": report.failed_deliveries,
            "errors": {r.team: r.error for r in report.teams if r.error},
        }

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        service_ = _service(request)
        return {
            "status": "ok",
            "subscriptions": len(service_.registry),
            "scheduler_running": service_.scheduler.running,
        }

    return app
