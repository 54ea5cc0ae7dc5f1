"""HTTP protocol models for the browser renderer and input source."""
from typing import Any

from pydantic import BaseModel, Field

from fever_slots.config import settings
from fever_slots.logic.models import SessionSnapshot


# === Request Models ===


class TickRequest(BaseModel):
    """POST /tick request body: manual frame stepping."""

    dt: float = Field(..., description="Elapsed milliseconds since the previous frame")
    frames: int = Field(default=1, description="Number of frames of dt to run")


# === Response Models ===


class CabinetConfiguration(BaseModel):
    """Static cabinet values a renderer needs once."""

    reelCount: int = settings.reel_count
    symbolSize: int = settings.symbol_size
    visibleSymbols: int = settings.visible_symbols
    canvasWidth: int = settings.canvas_width
    canvasHeight: int = settings.canvas_height
    betAmount: int = settings.bet_amount
    clearCoins: int = settings.clear_coins
    frameRate: int = settings.frame_rate


class SnapshotResponse(BaseModel):
    """GET /snapshot and POST /activate, /tick response."""

    protocolVersion: str = settings.protocol_version
    configuration: CabinetConfiguration = Field(default_factory=CabinetConfiguration)
    session: SessionSnapshot


class EffectsResponse(BaseModel):
    """GET /effects response: queued cue and particle requests."""

    protocolVersion: str = settings.protocol_version
    effects: list[dict[str, Any]] = Field(default_factory=list)
