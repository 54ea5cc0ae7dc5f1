"""Audio cue and particle requests sent from the cabinet to its collaborators."""
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from fever_slots.config import settings


logger = logging.getLogger(__name__)


class AudioCue(str, Enum):
    """Named cues understood by the audio player."""

    SPIN_START = "spinStart"
    REEL_STOP = "reelStop"
    WIN = "win"
    JACKPOT = "jackpot"


@dataclass(frozen=True)
class Tone:
    """One synthesized note, played delay_ms after the cue is submitted."""

    waveform: str  # "sine" | "square" | "triangle" | "sawtooth"
    frequency: float
    duration: float  # seconds
    delay_ms: int = 0
    volume: float = 0.1

    def to_dict(self) -> dict[str, Any]:
        return {
            "waveform": self.waveform,
            "frequency": self.frequency,
            "duration": self.duration,
            "delayMs": self.delay_ms,
            "volume": self.volume,
        }


def _arpeggio(waveform: str, notes: list[float], duration: float, step_ms: int) -> tuple[Tone, ...]:
    return tuple(
        Tone(waveform, freq, duration, delay_ms=i * step_ms)
        for i, freq in enumerate(notes)
    )


# Whole schedule is handed over at once; nothing reports back when a note fires
CUE_TONES: dict[AudioCue, tuple[Tone, ...]] = {
    AudioCue.SPIN_START: (Tone("square", 150.0, 0.3),),
    AudioCue.REEL_STOP: (Tone("triangle", 800.0, 0.1),),
    # C major
    AudioCue.WIN: _arpeggio("sine", [523.25, 659.25, 783.99], 0.3, 100),
    # Fanfare
    AudioCue.JACKPOT: _arpeggio(
        "square", [523.25, 523.25, 523.25, 659.25, 783.99, 1046.50], 0.5, 150
    ),
}


class AudioSink(Protocol):
    """Protocol for the audio cue player."""

    def submit(self, cue: AudioCue, tones: tuple[Tone, ...]) -> None:
        """Schedule a cue. Must not block."""
        ...


class ParticleSink(Protocol):
    """Protocol for the particle system."""

    def spawn(self, x: float, y: float, count: int) -> None:
        """Spawn count particles at (x, y)."""
        ...


class LoggingAudioSink:
    """Default sink that logs cues."""

    def submit(self, cue: AudioCue, tones: tuple[Tone, ...]) -> None:
        logger.debug("AUDIO %s (%d tones)", cue.value, len(tones))


class LoggingParticleSink:
    """Default sink that logs particle bursts."""

    def spawn(self, x: float, y: float, count: int) -> None:
        logger.debug("PARTICLES %d at (%.0f, %.0f)", count, x, y)


class EffectQueue:
    """
    Buffers cue and particle requests for a renderer that polls.

    Implements both AudioSink and ParticleSink. Oldest requests are
    dropped once maxlen is reached.
    """

    def __init__(self, maxlen: int | None = None):
        self._pending: deque[dict[str, Any]] = deque(
            maxlen=maxlen or settings.effect_queue_size
        )

    def submit(self, cue: AudioCue, tones: tuple[Tone, ...]) -> None:
        self._pending.append({
            "type": "audio",
            "cue": cue.value,
            "tones": [tone.to_dict() for tone in tones],
        })

    def spawn(self, x: float, y: float, count: int) -> None:
        self._pending.append({"type": "particles", "x": x, "y": y, "count": count})

    def drain(self) -> list[dict[str, Any]]:
        """Return and clear all pending requests, oldest first."""
        items = list(self._pending)
        self._pending.clear()
        return items

    def __len__(self) -> int:
        return len(self._pending)


class EffectsService:
    """Fans effect requests out to the audio and particle sinks."""

    def __init__(
        self,
        audio_sink: AudioSink | None = None,
        particle_sink: ParticleSink | None = None,
    ):
        self._audio = audio_sink if audio_sink is not None else LoggingAudioSink()
        self._particles = particle_sink if particle_sink is not None else LoggingParticleSink()
        self._sink_errors = 0  # Counter for sink failures

    @property
    def sink_errors(self) -> int:
        return self._sink_errors

    def set_audio_sink(self, sink: AudioSink) -> None:
        """Set the audio sink (useful for testing)."""
        self._audio = sink

    def set_particle_sink(self, sink: ParticleSink) -> None:
        """Set the particle sink (useful for testing)."""
        self._particles = sink

    def _record_failure(self, what: str, error: Exception) -> None:
        self._sink_errors += 1
        logger.warning(
            "Effect sink error (count=%d): %s - %s",
            self._sink_errors,
            what,
            str(error),
        )

    def play_cue(self, cue: AudioCue) -> None:
        """
        Submit a cue with its full tone schedule.

        Sink failures MUST NOT reach the state machine.
        """
        try:
            self._audio.submit(cue, CUE_TONES[cue])
        except Exception as e:
            self._record_failure(cue.value, e)

    def spawn_particles(self, x: float, y: float, count: int) -> None:
        """Request a particle burst. Purely advisory."""
        try:
            self._particles.spawn(x, y, count)
        except Exception as e:
            self._record_failure("particles", e)
