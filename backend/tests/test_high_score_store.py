"""High score persistence tests."""
import asyncio
import time

import pytest

from fever_slots.config import settings
from fever_slots.driver import FrameDriver
from fever_slots.high_score_store import (
    InMemoryHighScoreStore,
    RedisHighScoreStore,
    parse_high_score,
)
from fever_slots.logic.machine import GameStateMachine
from fever_slots.logic.models import MachineState, Symbol

from conftest import BrokenRedis, MockRedis, SlowRedis, play_round, uniform_strips


@pytest.fixture
def redis_store(mock_redis: MockRedis) -> RedisHighScoreStore:
    store = RedisHighScoreStore()
    store._client = mock_redis
    return store


def jackpot_machine(store: RedisHighScoreStore) -> GameStateMachine:
    machine = GameStateMachine(
        store=store,
        strips=uniform_strips(Symbol.SEVEN, Symbol.SEVEN, Symbol.SEVEN),
    )
    machine.activate()
    return machine


class TestParse:
    """Absent or unparseable values read as 0."""

    @pytest.mark.parametrize(
        "raw, expected",
        [(None, 0), ("", 0), ("abc", 0), ("12.5", 0), ("-4", 0), ("0", 0), ("250", 250)],
    )
    def test_parse(self, raw, expected):
        assert parse_high_score(raw) == expected


class TestRedisHighScoreStore:
    """Redis-backed store."""

    def test_default_key(self, redis_store):
        assert redis_store.key == settings.high_score_key == "slot_highscore"

    def test_missing_key_is_zero(self, redis_store):
        asyncio.run(redis_store.connect())
        assert redis_store.load() == 0

    def test_connect_reads_stored_value(self, redis_store, mock_redis):
        mock_redis._store["slot_highscore"] = "420"
        asyncio.run(redis_store.connect())
        assert redis_store.load() == 420

    def test_garbage_is_zero(self, redis_store, mock_redis):
        mock_redis._store["slot_highscore"] = "not-a-number"
        assert asyncio.run(redis_store.fetch()) == 0

    def test_save_writes_in_background(self, redis_store, mock_redis):
        async def scenario():
            redis_store.save(420)
            assert redis_store.load() == 420
            await redis_store.flush()

        asyncio.run(scenario())
        assert mock_redis._store["slot_highscore"] == "420"

    def test_writes_coalesce_to_latest(self):
        client = SlowRedis(write_delay=0.01)
        store = RedisHighScoreStore()
        store._client = client

        async def scenario():
            store.save(50)
            store.save(60)
            store.save(70)
            await store.flush()

        asyncio.run(scenario())
        assert client._store["slot_highscore"] == "70"
        assert client.set_calls == 1

    def test_save_without_loop_keeps_cache(self, redis_store, mock_redis):
        redis_store.save(30)  # logged, not raised
        assert redis_store.load() == 30
        assert mock_redis.set_calls == 0

    def test_unreachable_redis_degrades(self):
        store = RedisHighScoreStore()
        store._client = BrokenRedis()

        async def scenario():
            await store.connect()
            store.save(10)
            await store.flush()  # logged, not raised

        asyncio.run(scenario())
        assert store.load() == 10

    def test_not_connected_raises(self):
        with pytest.raises(RuntimeError):
            asyncio.run(RedisHighScoreStore().fetch())

    def test_close_flushes_and_resets_client(self, redis_store, mock_redis):
        async def scenario():
            redis_store.save(99)
            await redis_store.close()

        asyncio.run(scenario())
        assert mock_redis._store["slot_highscore"] == "99"
        assert redis_store._client is None

    def test_machine_writes_on_improvement(self, redis_store, mock_redis):
        mock_redis._store["slot_highscore"] = "120"

        async def scenario():
            await redis_store.connect()
            machine = jackpot_machine(redis_store)
            assert machine.high_score == 120
            play_round(machine)
            await redis_store.flush()

        asyncio.run(scenario())
        assert mock_redis._store["slot_highscore"] == "190"
        assert mock_redis.set_calls == 1


class TestSlowRedisUnderDriver:
    """A slow write must not hold up the frame loop."""

    def test_frames_keep_running_during_write(self):
        client = SlowRedis(write_delay=0.5)
        store = RedisHighScoreStore()
        store._client = client
        machine = jackpot_machine(store)
        driver = FrameDriver(machine, frame_rate=100)

        async def scenario():
            driver.start()
            started = time.monotonic()
            play_round(machine)
            round_seconds = time.monotonic() - started

            frames_before = driver.frames
            await asyncio.sleep(0.2)
            frames_during_write = driver.frames - frames_before
            write_pending = "slot_highscore" not in client._store

            await driver.stop()
            await store.flush()
            return round_seconds, frames_during_write, write_pending

        round_seconds, frames_during_write, write_pending = asyncio.run(scenario())

        assert machine.state == MachineState.RESULT
        assert round_seconds < 0.1
        assert write_pending
        assert frames_during_write > 0
        assert client._store["slot_highscore"] == "190"


class TestInMemoryHighScoreStore:
    """Process-local store."""

    def test_defaults(self):
        store = InMemoryHighScoreStore()
        assert store.load() == 0
        store.save(30)
        assert store.load() == 30
        assert store.writes == 1
