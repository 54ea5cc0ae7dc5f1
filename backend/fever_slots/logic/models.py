"""Game state models: symbols, paytable, machine states and snapshots."""
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field


class Symbol(int, Enum):
    """Reel symbols. Values are the strip codes."""
    SEVEN = 0
    BAR = 1
    BELL = 2
    CHERRY = 3


class SymbolInfo(BaseModel):
    """Immutable paytable entry."""

    model_config = ConfigDict(frozen=True)

    name: str
    payout: int
    color: str  # renderer hint only, never read by the core


# Built once at import; renderers key their own assets by Symbol
PAYTABLE: MappingProxyType = MappingProxyType({
    Symbol.SEVEN: SymbolInfo(name="7", payout=100, color="#ff0000"),
    Symbol.BAR: SymbolInfo(name="BAR", payout=50, color="#0000ff"),
    Symbol.BELL: SymbolInfo(name="BELL", payout=20, color="#ffff00"),
    Symbol.CHERRY: SymbolInfo(name="CHRY", payout=10, color="#ff00ff"),
})


class MachineState(str, Enum):
    """Cabinet state."""
    LOADING = "LOADING"
    INTRO = "INTRO"
    IDLE = "IDLE"
    SPINNING = "SPINNING"
    STOPPING = "STOPPING"
    RESULT = "RESULT"
    GAMEOVER = "GAMEOVER"
    CLEAR = "CLEAR"


class ReelMotion(str, Enum):
    """Motion state of a single reel."""
    IDLE = "IDLE"
    SPINNING = "SPINNING"
    STOPPING = "STOPPING"


class SpinOutcome(BaseModel):
    """Result of evaluating the payline."""

    model_config = ConfigDict(frozen=True)

    payout: int = 0
    is_win: bool = False
    is_jackpot: bool = False


class ReelSnapshot(BaseModel):
    """Read-only view of a reel for the renderer."""
    id: int
    x: float
    y: float
    width: float
    height: float
    offset: float
    strip: list[Symbol] = Field(default_factory=list)
    motion: ReelMotion = ReelMotion.IDLE


class SessionSnapshot(BaseModel):
    """
    Read-only view of the session for the renderer.

    Tracks:
    - coins / high_score
    - state and the message overlay
    - fever_mode / fever_turns_remaining
    - reach_flag and flash_timer (ms) for blink effects
    """
    coins: int
    high_score: int
    state: MachineState
    message: str = ""
    fever_mode: bool = False
    fever_turns_remaining: int = 0
    reach_flag: bool = False
    flash_timer: float = 0.0
    reels: list[ReelSnapshot] = Field(default_factory=list)
