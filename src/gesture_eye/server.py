"""HTTP/WebSocket service around a gesture dispatcher.

The perception process streams landmark frames in over /ws/frames; gesture
events go out to every client on /ws and, optionally, through an action
mapper.

Endpoints:
- GET  /api/status       dispatcher snapshot
- GET  /api/profiles     available sensitivity profiles
- POST /api/activate     reset and start calibrating
- POST /api/deactivate   hard reset
- POST /api/sensitivity  live profile swap
- GET  /metrics          Prometheus text format
- WS   /ws               gesture event stream
- WS   /ws/frames        frame feed from the perception collaborator

Usage:
    gesture-eye serve
    # or
    uvicorn gesture_eye.server:app --host 127.0.0.1 --port 8765
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from gesture_eye import __version__
from gesture_eye.actions import ActionMapper
from gesture_eye.dispatcher import GestureDispatcher
from gesture_eye.events import GestureEvent
from gesture_eye.frames import FaceFrame, HandFrame
from gesture_eye.metrics import MetricsCollector
from gesture_eye.profiles import ProfileRegistry, SensitivityProfile

logger = logging.getLogger("gesture_eye.server")

# --- State ---

class ServerState:
    def __init__(self):
        self.clients: set[WebSocket] = set()
        self.feeds = 0
        self.profiles = ProfileRegistry.with_defaults()
        self.dispatcher = GestureDispatcher()
        self.metrics = MetricsCollector()
        self.action_mapper: Optional[ActionMapper] = None
        self.watchdog_interval = 1.0
        self.watchdog_task: Optional[asyncio.Task] = None
        self._action_tasks: set[asyncio.Task] = set()

    def configure(
        self,
        dispatcher: Optional[GestureDispatcher] = None,
        profiles: Optional[ProfileRegistry] = None,
        action_mapper: Optional[ActionMapper] = None,
    ):
        if dispatcher is not None:
            self.dispatcher = dispatcher
        if profiles is not None:
            self.profiles = profiles
        self.action_mapper = action_mapper

    def lookup_profile(self, name: str) -> SensitivityProfile:
        profile = self.profiles.find(name)
        if profile is None:
            raise HTTPException(
                status_code=404,
                detail=f"Unknown profile '{name}'. Known: {', '.join(self.profiles.names)}",
            )
        return profile


state = ServerState()


class ActivateRequest(BaseModel):
    profile: Optional[str] = None


class SensitivityRequest(BaseModel):
    profile: str


def _refresh_metrics():
    state.metrics.set_connections(len(state.clients) + state.feeds)
    state.metrics.set_over_budget(state.dispatcher.profiler.over_budget)
    state.metrics.update_state(state.dispatcher.snapshot())


def _status() -> dict:
    snapshot = state.dispatcher.snapshot()
    state.metrics.update_state(snapshot)
    return {
        **snapshot.to_dict(),
        "clients": len(state.clients),
        "feeds": state.feeds,
        "frames_total": state.metrics.frames_total,
    }


# --- App ---

@asynccontextmanager
async def lifespan(app: FastAPI):
    state.watchdog_task = asyncio.create_task(watchdog_loop())
    try:
        yield
    finally:
        state.watchdog_task.cancel()
        state.watchdog_task = None
        state.dispatcher.deactivate()
        if state.action_mapper is not None:
            await state.action_mapper.close()


app = FastAPI(title="gesture-eye", version=__version__, lifespan=lifespan)


# --- API endpoints ---

@app.get("/")
async def index():
    return {"name": "gesture-eye", "version": __version__}


@app.get("/api/status")
async def api_status():
    return _status()


@app.get("/api/profiles")
async def list_profiles():
    return {
        "active": state.dispatcher.profile.name,
        "profiles": [p.to_dict() for p in state.profiles],
    }


@app.post("/api/activate")
async def activate(request: Optional[ActivateRequest] = None):
    profile = None
    if request is not None and request.profile:
        profile = state.lookup_profile(request.profile)
    state.dispatcher.activate(profile)
    await broadcast({"type": "activated", "profile": state.dispatcher.profile.name})
    return _status()


@app.post("/api/deactivate")
async def deactivate():
    state.dispatcher.deactivate()
    await broadcast({"type": "deactivated", "reason": "request"})
    return _status()


@app.post("/api/sensitivity")
async def set_sensitivity(request: SensitivityRequest):
    state.dispatcher.set_sensitivity(state.lookup_profile(request.profile))
    return _status()


@app.get("/metrics")
async def metrics():
    _refresh_metrics()
    return PlainTextResponse(
        state.metrics.render(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


# --- WebSocket: gesture events ---

@app.websocket("/ws")
async def events_websocket(ws: WebSocket):
    await ws.accept()
    state.clients.add(ws)
    logger.info("Client connected (%d total)", len(state.clients))

    try:
        await ws.send_json({"type": "connected", "state": state.dispatcher.snapshot().to_dict()})

        while True:
            try:
                msg = await asyncio.wait_for(ws.receive_text(), timeout=30)
                data = json.loads(msg)
                if data.get("type") == "ping":
                    await ws.send_json({"type": "pong", "server_time": time.time()})
                elif data.get("type") == "status":
                    await ws.send_json({"type": "status", "state": _status()})
            except asyncio.TimeoutError:
                await ws.send_json({"type": "ping"})
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.debug("WebSocket error: %s", e)
    finally:
        state.clients.discard(ws)
        logger.info("Client disconnected (%d total)", len(state.clients))


# --- WebSocket: frame feed ---

_Pending = tuple[FaceFrame, Optional[HandFrame], int]


class LatestFrame:
    """Single-slot mailbox for one feed: a newer frame replaces one not yet processed."""

    def __init__(self):
        self._pending: Optional[_Pending] = None
        self._ready = asyncio.Event()
        self.dropped = 0

    def put(self, frame: _Pending) -> bool:
        """Store a frame. Returns True when it replaced an unprocessed one."""
        replaced = self._pending is not None
        if replaced:
            self.dropped += 1
        self._pending = frame
        self._ready.set()
        return replaced

    async def get(self) -> _Pending:
        while self._pending is None:
            self._ready.clear()
            await self._ready.wait()
        frame, self._pending = self._pending, None
        return frame


def _parse_frames(data: dict) -> tuple[FaceFrame, Optional[HandFrame]]:
    face = FaceFrame.from_dict(data["face"])
    hand = data.get("hand")
    return face, HandFrame.from_dict(hand) if hand else None


async def _process_frames(slot: LatestFrame, send: Callable[[dict], Awaitable[None]]):
    """Run the newest frame through the dispatcher off the event loop, then ack it."""
    while True:
        face, hand, session = await slot.get()

        t0 = time.perf_counter()
        event = await asyncio.to_thread(state.dispatcher.push_frame, face, hand, session)
        state.metrics.record_frame(time.perf_counter() - t0)

        if event is not None:
            await publish(event)

        await send({
            "type": "ack",
            "timestamp": face.timestamp,
            "event": event.to_dict() if event else None,
        })


@app.websocket("/ws/frames")
async def frames_websocket(ws: WebSocket):
    """Frame feed.

    Frames arriving while the previous one is still being processed replace
    each other; only the newest is processed and acked, the rest are counted
    as dropped. Frames are tagged with the dispatcher session on arrival, so
    nothing received before a deactivate can emit after it.
    """
    await ws.accept()
    state.feeds += 1
    logger.info("Frame feed connected")

    send_lock = asyncio.Lock()

    async def send(message: dict):
        async with send_lock:
            await ws.send_json(message)

    slot = LatestFrame()
    worker = asyncio.create_task(_process_frames(slot, send))

    try:
        while True:
            try:
                data = json.loads(await ws.receive_text())
            except json.JSONDecodeError as e:
                await send({"type": "error", "message": f"invalid JSON: {e}"})
                continue
            kind = data.get("type", "frame") if isinstance(data, dict) else None

            if kind == "ping":
                await send({"type": "pong"})
                continue
            if kind != "frame":
                await send({"type": "error", "message": f"unknown message type '{kind}'"})
                continue

            try:
                face, hand = _parse_frames(data)
            except (KeyError, TypeError, ValueError) as e:
                await send({"type": "error", "message": f"malformed frame: {e}"})
                continue

            if slot.put((face, hand, state.dispatcher.session)):
                state.metrics.record_dropped()
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.debug("Frame feed error: %s", e)
    finally:
        worker.cancel()
        state.feeds -= 1
        logger.info("Frame feed disconnected (%d frames dropped)", slot.dropped)


async def publish(event: GestureEvent):
    """Fan an event out to metrics, clients and the action mapper."""
    state.metrics.record_gesture(event)
    await broadcast(event.to_dict())

    if state.action_mapper is not None:
        task = asyncio.create_task(state.action_mapper.on_gesture(event))
        state._action_tasks.add(task)
        task.add_done_callback(state._action_tasks.discard)


async def broadcast(message: dict):
    """Send message to all event clients."""
    if not state.clients:
        return
    dead = set()
    payload = json.dumps(message)
    for ws in state.clients:
        try:
            await ws.send_text(payload)
        except Exception:
            dead.add(ws)
    state.clients -= dead


# --- Face watchdog ---

async def watchdog_loop():
    """Deactivate after sustained face loss. Runs independently of the frame path."""
    while True:
        await asyncio.sleep(state.watchdog_interval)
        if state.dispatcher.check_face_timeout():
            state.dispatcher.deactivate()
            await broadcast({"type": "deactivated", "reason": "no_face"})

