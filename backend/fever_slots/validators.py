"""Request validators for the HTTP adapter."""
import math

from fever_slots.config import settings
from fever_slots.errors import ErrorCode, GameError
from fever_slots.protocol import TickRequest

# Upper bound on frames per /tick call
MAX_FRAMES_PER_TICK = 600


def validate_dt(request: TickRequest) -> None:
    """
    Validate frame delta.

    Raises INVALID_REQUEST if dt is negative, not finite or above max_frame_dt_ms.
    """
    if not math.isfinite(request.dt) or request.dt < 0:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"dt must be a non-negative number of milliseconds, got {request.dt}",
        )
    if request.dt > settings.max_frame_dt_ms:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"dt {request.dt} exceeds max frame delta {settings.max_frame_dt_ms}",
        )


def validate_frames(request: TickRequest) -> None:
    """Raises INVALID_REQUEST if frames is outside 1..MAX_FRAMES_PER_TICK."""
    if not 1 <= request.frames <= MAX_FRAMES_PER_TICK:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"frames must be between 1 and {MAX_FRAMES_PER_TICK}, got {request.frames}",
        )


def validate_manual_tick(driver_running: bool) -> None:
    """Raises NOT_READY while the background frame driver owns the clock."""
    if driver_running:
        raise GameError(
            ErrorCode.NOT_READY,
            "Manual ticks are disabled while the frame driver is running.",
        )


def validate_tick_request(request: TickRequest, driver_running: bool) -> None:
    """Run all validations on tick request."""
    validate_manual_tick(driver_running)
    validate_dt(request)
    validate_frames(request)
