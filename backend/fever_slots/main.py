"""Fever Slots FastAPI application: local adapter for a browser renderer."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from fever_slots.config import settings
from fever_slots.driver import FrameDriver
from fever_slots.effects import EffectQueue, EffectsService
from fever_slots.errors import GameError
from fever_slots.high_score_store import high_score_store
from fever_slots.logic.machine import GameStateMachine
from fever_slots.middleware import ErrorHandlerMiddleware
from fever_slots.protocol import EffectsResponse, SnapshotResponse, TickRequest
from fever_slots.validators import validate_tick_request


logger = logging.getLogger(__name__)

# Renderer polls /effects to play cues and spawn particles
effect_queue = EffectQueue()
effects_service = EffectsService(audio_sink=effect_queue, particle_sink=effect_queue)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the store, build the cabinet and run the frame driver."""
    await high_score_store.connect()
    machine = GameStateMachine(
        effects=effects_service,
        store=high_score_store,
        loading=settings.preload_assets,
    )
    driver = FrameDriver(machine)
    app.state.machine = machine
    app.state.driver = driver
    if settings.frame_driver_enabled:
        driver.start()
    logger.info("Cabinet ready (high score %d)", machine.high_score)
    yield
    await driver.stop()
    effect_queue.drain()
    await high_score_store.close()


app = FastAPI(
    title="Fever Slots",
    version="0.1.0",
    description="Three-reel slot cabinet with fever bonus mode",
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    return exc.to_response()


def _snapshot(request: Request) -> dict:
    machine: GameStateMachine = request.app.state.machine
    return SnapshotResponse(session=machine.snapshot()).model_dump(mode="json")


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/snapshot")
async def snapshot(request: Request) -> dict:
    """GET /snapshot: read-only render state."""
    return _snapshot(request)


@app.post("/activate")
async def activate(request: Request) -> dict:
    """
    POST /activate: one debounced input gesture.

    Dispatches to reset, spin or stop depending on the cabinet state.
    """
    request.app.state.machine.activate()
    return _snapshot(request)


@app.post("/assets-loaded")
async def assets_loaded(request: Request) -> dict:
    """POST /assets-loaded: the front end finished (or gave up) loading assets."""
    request.app.state.machine.assets_loaded()
    return _snapshot(request)


@app.post("/tick")
async def tick(request: Request, body: TickRequest) -> dict:
    """
    POST /tick: step frames manually.

    Only available while the background frame driver is disabled.
    """
    driver: FrameDriver = request.app.state.driver
    validate_tick_request(body, driver.running)
    for _ in range(body.frames):
        driver.step(body.dt)
    return _snapshot(request)


@app.get("/effects")
async def effects() -> dict:
    """GET /effects: drain queued audio cues and particle bursts."""
    return EffectsResponse(effects=effect_queue.drain()).model_dump()
