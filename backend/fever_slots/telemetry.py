"""Cabinet telemetry: session and round events."""
import logging
from dataclasses import dataclass
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit a telemetry event."""
        ...


class LoggingTelemetrySink:
    """Default sink that logs telemetry events."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Log telemetry event."""
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class SessionResetEvent:
    """session_reset telemetry event."""

    previous_state: str  # "INTRO" | "GAMEOVER" | "CLEAR"
    coins: int
    high_score: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "previous_state": self.previous_state,
            "coins": self.coins,
            "high_score": self.high_score,
        }


@dataclass
class RoundEvaluatedEvent:
    """round_evaluated telemetry event."""

    symbols: list[str]
    payout: int
    is_win: bool
    is_jackpot: bool
    fever_mode: bool
    fever_turns_remaining: int
    coins: int
    next_state: str
    config_hash: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "symbols": self.symbols,
            "payout": self.payout,
            "is_win": self.is_win,
            "is_jackpot": self.is_jackpot,
            "fever_mode": self.fever_mode,
            "fever_turns_remaining": self.fever_turns_remaining,
            "coins": self.coins,
            "next_state": self.next_state,
            "config_hash": self.config_hash,
        }


@dataclass
class GameOverEvent:
    """game_over telemetry event."""

    coins: int
    high_score: int
    reason: str  # "spin_rejected" | "round_lost"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "coins": self.coins,
            "high_score": self.high_score,
            "reason": self.reason,
        }


class TelemetryService:
    """Service for emitting cabinet telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink if sink is not None else LoggingTelemetrySink()
        self._sink_errors = 0  # Counter for sink failures

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """
        Emit event with exception safety.

        Sink failures MUST NOT break the game loop.
        """
        try:
            self._sink.emit(event_name, data)
        except Exception as e:
            self._sink_errors += 1
            logger.warning(
                "Telemetry sink error (count=%d): %s - %s",
                self._sink_errors,
                event_name,
                str(e),
            )

    def emit_session_reset(self, event: SessionResetEvent) -> None:
        """Emit session_reset event."""
        self._safe_emit("session_reset", event.to_dict())

    def emit_round_evaluated(self, event: RoundEvaluatedEvent) -> None:
        """Emit round_evaluated event."""
        self._safe_emit("round_evaluated", event.to_dict())

    def emit_game_over(self, event: GameOverEvent) -> None:
        """Emit game_over event."""
        self._safe_emit("game_over", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
