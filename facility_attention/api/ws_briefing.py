"""Briefing WebSocket — pushes the ranked briefing to connected dashboards.

Architecture:
    capture  →  POST /api/ingest  →  BriefingStore.refresh()
                                           ↓
    FE  ←  /ws/briefing  ←  BriefingBroadcaster sends the ranked briefing

A client receives the current briefing on connect and again after every
refresh.  It may send "ping" and gets "pong" back.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from facility_attention.api.views import briefing_view
from facility_attention.foundation.clock import utc_now
from facility_attention.store.briefing_store import BriefingStore

logger = logging.getLogger(__name__)


class BriefingBroadcaster:
    """Tracks connected dashboard clients and broadcasts the briefing."""

    def __init__(self, store: BriefingStore, stale_threshold_hours: float = 4.0) -> None:
        self._store = store
        self._stale_threshold_hours = stale_threshold_hours
        self._clients: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    # ── Client management ────────────────────────────────────────────

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        async with self._lock:
            self._clients.add(ws)
        logger.info("Briefing client connected (%d total)", len(self._clients))

    async def disconnect(self, ws: WebSocket) -> None:
        async with self._lock:
            self._clients.discard(ws)
        logger.info("Briefing client disconnected (%d remaining)", len(self._clients))

    @property
    def client_count(self) -> int:
        return len(self._clients)

    # ── Briefing + broadcast ─────────────────────────────────────────

    async def briefing_payload(self) -> dict[str, Any]:
        now = utc_now()
        ranked = await self._store.ranked()
        return {
            "type": "briefing",
            "generation": self._store.generation,
            "generatedAt": now.isoformat(),
            "facilities": briefing_view(ranked, now, self._stale_threshold_hours),
        }

    async def send_briefing(self, ws: WebSocket) -> None:
        await ws.send_text(json.dumps(await self.briefing_payload()))

    async def broadcast_briefing(self) -> None:
        """Send the current ranked briefing to every connected client."""
        if not self._clients:
            return
        await self._broadcast(await self.briefing_payload())

    async def _broadcast(self, payload: dict[str, Any]) -> None:
        message = json.dumps(payload)
        dead: set[WebSocket] = set()

        async with self._lock:
            clients = set(self._clients)

        for ws in clients:
            try:
                await ws.send_text(message)
            except (WebSocketDisconnect, RuntimeError) as exc:
                logger.debug("Briefing send failed: %s", exc)
                dead.add(ws)

        if dead:
            async with self._lock:
                self._clients -= dead
            logger.info("Removed %d dead briefing client(s)", len(dead))


# ── WebSocket endpoint ───────────────────────────────────────────────────


def create_briefing_ws_router(broadcaster: BriefingBroadcaster) -> APIRouter:
    """Factory that creates the briefing WebSocket endpoint."""

    router = APIRouter()

    @router.websocket("/ws/briefing")
    async def briefing_ws(websocket: WebSocket) -> None:
        await broadcaster.connect(websocket)
        try:
            await broadcaster.send_briefing(websocket)
            while True:
                data = await websocket.receive_text()
                if data.strip().lower() == "ping":
                    await websocket.send_text("pong")
        except WebSocketDisconnect:
            logger.debug("Briefing client closed the connection")
        finally:
            await broadcaster.disconnect(websocket)

    return router
