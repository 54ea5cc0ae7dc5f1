"""Reel motion and payline read."""
import math

from fever_slots.config import settings
from fever_slots.logic.models import ReelMotion, ReelSnapshot, Symbol
from fever_slots.logic.rng import ProductionRNG, RNGBase


# === CONFIG VALUES (via settings) ===
SYMBOL_SIZE = settings.symbol_size
STRIP_LENGTH = settings.strip_length
VISIBLE_SYMBOLS = settings.visible_symbols
BASE_REEL_SPEED = settings.base_reel_speed
REEL_SPEED_STEP = settings.reel_speed_step
EXTRA_SPIN_DISTANCE = settings.extra_spin_symbols * SYMBOL_SIZE

SYMBOLS = tuple(Symbol)


class Reel:
    """
    One spinning column.

    The offset is a scroll distance in pixels that only ever grows; the
    strip entry under the window is always found modulo the strip length.
    Stopping is overshoot-then-clamp: the reel keeps its speed until it
    reaches or passes target_offset, then snaps onto it.
    """

    def __init__(
        self,
        id: int,
        x: float = 0,
        y: float = 0,
        rng: RNGBase | None = None,
        strip: list[Symbol] | None = None,
    ):
        self.id = id
        self.x = x
        self.y = y
        self.width = settings.reel_width
        self.height = settings.reel_height
        self.rng = rng if rng is not None else ProductionRNG()

        self.strip: tuple[Symbol, ...] = ()
        if strip is not None:
            if not strip:
                raise ValueError("Reel strip must not be empty")
            self.strip = tuple(Symbol(s) for s in strip)
        else:
            self.regenerate()

        self.offset = 0
        self.speed = 0
        self.motion = ReelMotion.IDLE
        self.target_offset = 0

    def regenerate(self, length: int = STRIP_LENGTH) -> None:
        """Rebuild the strip by independent uniform choice per slot."""
        self.strip = tuple(self.rng.choice(SYMBOLS) for _ in range(length))

    def start(self) -> None:
        """Begin spinning at this reel's staggered speed."""
        if self.motion != ReelMotion.IDLE:
            return
        self.motion = ReelMotion.SPINNING
        self.speed = BASE_REEL_SPEED + self.id * REEL_SPEED_STEP

    def request_stop(self) -> None:
        """
        Schedule a stop on the next grid line at least two symbols ahead.

        No-op unless the reel is SPINNING.
        """
        if self.motion != ReelMotion.SPINNING:
            return
        self.motion = ReelMotion.STOPPING
        self.target_offset = (
            math.ceil((self.offset + EXTRA_SPIN_DISTANCE) / SYMBOL_SIZE) * SYMBOL_SIZE
        )

    def advance(self) -> bool:
        """
        Move one tick.

        Returns True only on the tick the reel snaps to its target.
        """
        if self.motion == ReelMotion.SPINNING:
            self.offset += self.speed
        elif self.motion == ReelMotion.STOPPING:
            if self.offset < self.target_offset:
                self.offset += self.speed
            if self.offset >= self.target_offset:
                self.offset = self.target_offset
                self.motion = ReelMotion.IDLE
                self.speed = 0
                return True
        return False

    @property
    def is_idle(self) -> bool:
        return self.motion == ReelMotion.IDLE

    def _top_index(self) -> int:
        return math.floor(self.offset / SYMBOL_SIZE) % len(self.strip)

    def landed_symbol(self) -> Symbol:
        """Symbol on the payline: one slot below the top of the window."""
        return self.strip[(self._top_index() + 1) % len(self.strip)]

    def visible_symbols(self, rows: int = VISIBLE_SYMBOLS) -> list[Symbol]:
        """Symbols from the top row of the window downwards."""
        top = self._top_index()
        return [self.strip[(top + i) % len(self.strip)] for i in range(rows)]

    def snapshot(self) -> ReelSnapshot:
        return ReelSnapshot(
            id=self.id,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            offset=self.offset,
            strip=list(self.strip),
            motion=self.motion,
        )
