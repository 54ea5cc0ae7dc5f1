"""Pytest fixtures for backend tests."""
import asyncio
from typing import Any, Callable, Generator

import pytest
import redis
from fastapi.testclient import TestClient

from fever_slots.config import settings
from fever_slots.effects import AudioCue, EffectsService, Tone
from fever_slots.high_score_store import InMemoryHighScoreStore
from fever_slots.logic.machine import GameStateMachine
from fever_slots.logic.models import MachineState, Symbol
from fever_slots.logic.rng import SeededRNG
from fever_slots.main import app
from fever_slots.telemetry import TelemetryService


# Generous bound on frames for the slowest reel to snap
MAX_SETTLE_FRAMES = 1000
FRAME_DT_MS = 16.0


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self.set_calls = 0

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, **kwargs) -> bool:
        self._store[key] = value
        self.set_calls += 1
        return True

    async def aclose(self) -> None:
        pass

    def clear(self) -> None:
        self._store.clear()
        self.set_calls = 0


class BrokenRedis(MockRedis):
    """Mock Redis whose every call fails like an unreachable server."""

    async def get(self, key: str) -> str | None:
        raise redis.ConnectionError("connection refused")

    async def set(self, key: str, value: str, **kwargs) -> bool:
        raise redis.ConnectionError("connection refused")


class SlowRedis(MockRedis):
    """Mock Redis whose writes take write_delay seconds to complete."""

    def __init__(self, write_delay: float = 0.5):
        super().__init__()
        self.write_delay = write_delay

    async def set(self, key: str, value: str, **kwargs) -> bool:
        await asyncio.sleep(self.write_delay)
        return await super().set(key, value, **kwargs)


class RecordingAudioSink:
    """Audio sink that records submitted cues."""

    def __init__(self):
        self.cues: list[AudioCue] = []
        self.tones: list[tuple[Tone, ...]] = []

    def submit(self, cue: AudioCue, tones: tuple[Tone, ...]) -> None:
        self.cues.append(cue)
        self.tones.append(tones)


class RecordingParticleSink:
    """Particle sink that records bursts."""

    def __init__(self):
        self.bursts: list[tuple[float, float, int]] = []

    def spawn(self, x: float, y: float, count: int) -> None:
        self.bursts.append((x, y, count))

    @property
    def counts(self) -> list[int]:
        return [count for _, _, count in self.bursts]


class RecordingTelemetrySink:
    """Telemetry sink that records events in order."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def named(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]


def uniform_strips(*symbols: Symbol) -> list[list[Symbol]]:
    """One strip per reel, each made of a single repeated symbol."""
    return [[symbol] * settings.strip_length for symbol in symbols]


def settle(machine: GameStateMachine, dt: float = FRAME_DT_MS) -> int:
    """Tick until the machine leaves STOPPING. Returns frames used."""
    for frame in range(MAX_SETTLE_FRAMES):
        if machine.state != MachineState.STOPPING:
            return frame
        machine.tick(dt)
    raise AssertionError("Reels never settled")


def play_round(machine: GameStateMachine) -> None:
    """Spin, stop all reels and tick until the round is evaluated."""
    machine.activate()
    assert machine.state == MachineState.SPINNING
    for _ in machine.reels:
        machine.tick(FRAME_DT_MS)
        machine.activate()
    assert machine.state == MachineState.STOPPING
    settle(machine)


@pytest.fixture
def mock_redis() -> MockRedis:
    """Create a fresh mock Redis for each test."""
    return MockRedis()


@pytest.fixture
def audio_sink() -> RecordingAudioSink:
    return RecordingAudioSink()


@pytest.fixture
def particle_sink() -> RecordingParticleSink:
    return RecordingParticleSink()


@pytest.fixture
def telemetry_sink() -> RecordingTelemetrySink:
    return RecordingTelemetrySink()


@pytest.fixture
def store() -> InMemoryHighScoreStore:
    return InMemoryHighScoreStore()


@pytest.fixture
def make_machine(
    audio_sink: RecordingAudioSink,
    particle_sink: RecordingParticleSink,
    telemetry_sink: RecordingTelemetrySink,
    store: InMemoryHighScoreStore,
) -> Callable[..., GameStateMachine]:
    """
    Factory for machines wired to recording sinks.

    Keyword arguments: strips, seed, loading, coins, start (reset out of INTRO).
    """

    def _make(
        strips: list[list[Symbol]] | None = None,
        seed: int = 42,
        loading: bool = False,
        coins: int | None = None,
        start: bool = True,
    ) -> GameStateMachine:
        machine = GameStateMachine(
            rng=SeededRNG(seed=seed),
            effects=EffectsService(audio_sink=audio_sink, particle_sink=particle_sink),
            store=store,
            telemetry=TelemetryService(sink=telemetry_sink),
            strips=strips,
            loading=loading,
        )
        if start and not loading:
            machine.activate()  # INTRO -> IDLE
        if coins is not None:
            machine.coins = coins
        return machine

    return _make


@pytest.fixture
def client_with_mock_redis(
    mock_redis: MockRedis, monkeypatch: pytest.MonkeyPatch
) -> Generator[TestClient, None, None]:
    """Create TestClient with mocked Redis and manual frame stepping."""
    from fever_slots.high_score_store import high_score_store
    from fever_slots.main import effect_queue

    monkeypatch.setattr(settings, "frame_driver_enabled", False)

    # Patch the global store client
    original_client = high_score_store._client
    high_score_store._client = mock_redis
    effect_queue.drain()

    with TestClient(app) as client:
        yield client

    # Restore original
    high_score_store._client = original_client
    mock_redis.clear()
