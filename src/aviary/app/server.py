from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Deque, Dict, List, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import AppConfig, SimulationConfig
from ..sim.core.world import World

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SnapshotQueue:
    """Serialized frames kept until a client acknowledges them.

    Each connected socket has a cursor (the last tick sent to it) so a slow
    client catches up on every frame still in the queue. Frames are only kept
    while a client is attached, and the oldest frame is dropped once
    `max_frames` are waiting.
    """

    def __init__(self, max_frames: int = 256) -> None:
        self._frames: Deque[QueuedSnapshot] = deque(maxlen=max(1, max_frames))
        self._cursors: Dict[WebSocket, int] = {}
        self._lock = asyncio.Lock()

    @property
    def ticks(self) -> List[int]:
        return [frame.tick for frame in self._frames]

    @property
    def clients(self) -> Set[WebSocket]:
        return set(self._cursors)

    def attach(self, client: WebSocket) -> None:
        self._cursors[client] = -1

    def detach(self, client: WebSocket) -> None:
        self._cursors.pop(client, None)
        if not self._cursors:
            self._frames.clear()

    async def push(self, frame: QueuedSnapshot) -> None:
        if not self._cursors:
            return
        async with self._lock:
            self._frames.append(frame)

    async def acknowledge(self, tick: int) -> None:
        async with self._lock:
            while self._frames and self._frames[0].tick <= tick:
                self._frames.popleft()

    async def clear(self) -> None:
        async with self._lock:
            self._frames.clear()
        for client in self._cursors:
            self._cursors[client] = -1

    async def flush(self, client: WebSocket) -> None:
        cursor = self._cursors.get(client, -1)
        async with self._lock:
            pending = [frame for frame in self._frames if frame.tick > cursor]
        for frame in pending:
            await client.send_text(frame.payload)
            cursor = frame.tick
        self._cursors[client] = cursor

    async def broadcast(self) -> None:
        gone: List[WebSocket] = []
        for client in list(self._cursors):
            try:
                await self.flush(client)
            except WebSocketDisconnect:
                gone.append(client)
        for client in gone:
            logger.info("Dropping disconnected client")
            self.detach(client)


def snapshot_message(world: World) -> Dict[str, Any]:
    snapshot = world.snapshot()
    return {"type": "snapshot", "tick": snapshot.tick, "payload": snapshot.as_payload()}


class SimulationController:
    """Steps a World on a wall-clock cadence and queues snapshots for observers.

    The world is only touched under `_step_lock`, so a reset or a snapshot
    never lands in the middle of a tick.
    """

    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, max_queued_snapshots: int = 256):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.snapshots = SnapshotQueue(max_queued_snapshots)
        self._step_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self.world.clock.tick

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        self.running = True
        logger.info("Simulation running from tick %d", self.tick)

    async def stop(self) -> None:
        self.running = False
        logger.info("Simulation paused at tick %d", self.tick)

    async def shutdown(self) -> None:
        self.running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def reset(self) -> None:
        async with self._step_lock:
            self.world.reset()
        await self.snapshots.clear()
        await self.publish()
        logger.info("Simulation reset (seed %d)", self.config.seed)

    async def advance(self) -> None:
        async with self._step_lock:
            metrics = self.world.step()
        if metrics.tick % self.broadcast_interval == 0:
            await self.publish()

    async def publish(self) -> None:
        async with self._step_lock:
            message = snapshot_message(self.world)
        await self.snapshots.push(QueuedSnapshot(tick=message["tick"], payload=json.dumps(message)))
        await self.snapshots.broadcast()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step)
            if self.running:
                await self.advance()


def _load_app_config() -> AppConfig:
    path = os.environ.get("AVIARY_CONFIG")
    if not path:
        return AppConfig()
    return AppConfig(simulation=SimulationConfig.from_yaml(Path(path)))


app_config = _load_app_config()
controller = SimulationController(
    app_config.simulation,
    app_config.broadcast_interval,
    app_config.max_queued_snapshots,
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    await controller.start()
    yield
    await controller.shutdown()


app = FastAPI(title="Aviary Simulation", lifespan=lifespan)


@app.get("/api/status")
async def status() -> JSONResponse:
    metrics = controller.world.snapshot().metrics
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "population": metrics.population,
            "metrics": asdict(metrics),
        }
    )


@app.get("/api/config")
async def current_config() -> JSONResponse:
    return JSONResponse(asdict(controller.config))


@app.get("/api/snapshot")
async def latest_snapshot() -> JSONResponse:
    return JSONResponse(snapshot_message(controller.world)["payload"])


@app.post("/api/control/{action}")
async def control(action: str) -> JSONResponse:
    if action == "start":
        await controller.start()
    elif action == "stop":
        await controller.stop()
    elif action == "reset":
        await controller.reset()
    else:
        return JSONResponse({"error": f"unknown action {action!r}"}, status_code=404)
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.snapshots.attach(websocket)
    await controller.snapshots.flush(websocket)
    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                continue
            if not isinstance(message, dict):
                continue
            if message.get("type") == "ack" and isinstance(message.get("tick"), int):
                await controller.snapshots.acknowledge(message["tick"])
    except WebSocketDisconnect:
        controller.snapshots.detach(websocket)


__all__ = ["app", "controller", "SimulationController", "SnapshotQueue"]
