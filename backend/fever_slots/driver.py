"""Frame driver: one tick per frame, no game logic of its own."""
import asyncio
import logging
import time

from fever_slots.config import settings
from fever_slots.logic.machine import GameStateMachine


logger = logging.getLogger(__name__)


class FrameDriver:
    """Calls machine.tick(dt) at a fixed frame rate on the running event loop."""

    def __init__(
        self,
        machine: GameStateMachine,
        frame_rate: int | None = None,
        max_dt_ms: float | None = None,
    ):
        self.machine = machine
        self.frame_rate = frame_rate or settings.frame_rate
        self.max_dt_ms = max_dt_ms or settings.max_frame_dt_ms
        self.frames = 0
        self._task: asyncio.Task | None = None

    @property
    def frame_interval(self) -> float:
        """Seconds between frames."""
        return 1.0 / self.frame_rate

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def step(self, dt: float) -> None:
        """Forward one frame of dt milliseconds, clamped to max_dt_ms."""
        self.machine.tick(min(max(dt, 0.0), self.max_dt_ms))
        self.frames += 1

    async def run(self) -> None:
        """Tick until cancelled."""
        last = time.monotonic()
        while True:
            await asyncio.sleep(self.frame_interval)
            now = time.monotonic()
            self.step((now - last) * 1000)
            last = now

    def start(self) -> None:
        """Start the frame loop as a background task."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self.run())
        logger.info("Frame driver started at %d fps", self.frame_rate)

    async def stop(self) -> None:
        """Cancel the frame loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Frame driver stopped after %d frames", self.frames)
