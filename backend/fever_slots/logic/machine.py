"""Cabinet state machine: wager economy, fever mode and reel orchestration."""
import logging

from fever_slots.config import settings
from fever_slots.config_hash import get_config_hash
from fever_slots.effects import AudioCue, EffectsService
from fever_slots.high_score_store import HighScoreStore, InMemoryHighScoreStore
from fever_slots.logic.models import MachineState, SessionSnapshot, Symbol
from fever_slots.logic.paytable import evaluate
from fever_slots.logic.reel import Reel
from fever_slots.logic.rng import ProductionRNG, RNGBase
from fever_slots.telemetry import (
    GameOverEvent,
    RoundEvaluatedEvent,
    SessionResetEvent,
    TelemetryService,
    telemetry_service,
)


logger = logging.getLogger(__name__)


# === CONFIG VALUES (via settings) ===
REEL_COUNT = settings.reel_count
INITIAL_COINS = settings.initial_coins
BET_AMOUNT = settings.bet_amount
CLEAR_COINS = settings.clear_coins
FEVER_TURNS = settings.fever_turns
FLASH_DURATION_MS = settings.flash_duration_ms

# Particle bursts
BIG_WIN_PAYOUT = settings.big_win_payout
BIG_WIN_PARTICLES = settings.big_win_particles
JACKPOT_PARTICLES = settings.jackpot_particles
CLEAR_PARTICLES = settings.clear_particles

# Messages
MSG_LOADING = "LOADING..."
MSG_START = "PRESS SPACE TO START"
MSG_READY = "PRESS SPACE TO SPIN"
MSG_SPINNING = "SPINNING..."
MSG_REACH = "REACH!!"
MSG_JACKPOT = "JACKPOT! FEVER START!"
MSG_CLEAR = "CONGRATULATIONS!"
MSG_LOSE = "TRY AGAIN"
MSG_GAME_OVER = "GAME OVER"

# The reel whose stop request triggers the reach check
REACH_REEL_INDEX = 1


def reel_layout(count: int = REEL_COUNT) -> list[tuple[float, float]]:
    """Top-left corner of each reel, centred on the canvas."""
    total_width = settings.reel_width * count + settings.reel_gap * (count - 1)
    start_x = (settings.canvas_width - total_width) / 2
    start_y = (settings.canvas_height - settings.reel_height) / 2
    return [
        (start_x + i * (settings.reel_width + settings.reel_gap), start_y)
        for i in range(count)
    ]


class GameStateMachine:
    """
    The slot cabinet.

    Implements:
    - activate() dispatch: reset, spin or stop next reel by state
    - tick(dt): reel motion, flash countdown, round evaluation
    - wager economy with GAMEOVER on insufficient coins
    - fever mode entered on a SEVEN jackpot
    - side-effect requests (audio, particles, high score, telemetry)

    All mutation happens inside activate() or tick(); both are synchronous.
    """

    def __init__(
        self,
        rng: RNGBase | None = None,
        effects: EffectsService | None = None,
        store: HighScoreStore | None = None,
        telemetry: TelemetryService | None = None,
        strips: list[list[Symbol]] | None = None,
        loading: bool = False,
    ):
        self.rng = rng if rng is not None else ProductionRNG()
        self.effects = effects if effects is not None else EffectsService()
        self.store = store if store is not None else InMemoryHighScoreStore()
        self.telemetry = telemetry if telemetry is not None else telemetry_service

        if strips is not None and len(strips) != REEL_COUNT:
            raise ValueError(f"Expected {REEL_COUNT} strips, got {len(strips)}")

        self.reels: list[Reel] = [
            Reel(i, x, y, rng=self.rng, strip=strips[i] if strips else None)
            for i, (x, y) in enumerate(reel_layout())
        ]

        self.state = MachineState.LOADING if loading else MachineState.INTRO
        self.message = MSG_LOADING if loading else MSG_START
        self.coins = INITIAL_COINS
        self.high_score = self.store.load()
        self.fever_mode = False
        self.fever_turns_remaining = 0
        self.stop_index = 0
        self.reach_flag = False
        self.flash_timer = 0.0

    # --- Input ---

    def activate(self) -> None:
        """Handle one debounced input gesture."""
        if self.state in (MachineState.INTRO, MachineState.GAMEOVER, MachineState.CLEAR):
            self.reset_session()
        elif self.state in (MachineState.IDLE, MachineState.RESULT):
            self.try_spin()
        elif self.state in (MachineState.SPINNING, MachineState.STOPPING):
            self.request_next_reel_stop()
        # LOADING ignores input

    def assets_loaded(self) -> None:
        """One-shot signal from the loading collaborator, also sent on partial failure."""
        if self.state != MachineState.LOADING:
            return
        self._set_state(MachineState.INTRO)
        self.message = MSG_START
        logger.info("Assets loaded")

    def reset_session(self) -> None:
        previous = self.state
        self.coins = INITIAL_COINS
        self.fever_mode = False
        self.fever_turns_remaining = 0
        self.reach_flag = False
        self._set_state(MachineState.IDLE)
        self.message = MSG_READY
        self.telemetry.emit_session_reset(
            SessionResetEvent(
                previous_state=previous.value,
                coins=self.coins,
                high_score=self.high_score,
            )
        )

    def try_spin(self) -> None:
        """Take the bet (or a fever turn) and start every reel."""
        if self.fever_mode and self.fever_turns_remaining <= 0:
            # Turns exhausted: this spin is paid for again
            self._end_fever()

        if not self.fever_mode and self.coins < BET_AMOUNT:
            self._game_over("spin_rejected")
            return

        if self.fever_mode:
            self.fever_turns_remaining -= 1
        else:
            self.coins -= BET_AMOUNT

        self.stop_index = 0
        self.reach_flag = False
        self.effects.play_cue(AudioCue.SPIN_START)
        for reel in self.reels:
            reel.start()
        self._set_state(MachineState.SPINNING)
        self.message = MSG_SPINNING

    def request_next_reel_stop(self) -> None:
        """Tell the next reel, left to right, to stop."""
        if self.stop_index >= len(self.reels):
            return

        stopped_index = self.stop_index
        self.reels[stopped_index].request_stop()
        self.effects.play_cue(AudioCue.REEL_STOP)
        self.stop_index += 1

        if stopped_index == REACH_REEL_INDEX:
            # Reads the payline mid-spin; the final symbol may still differ
            if self.reels[0].landed_symbol() == self.reels[1].landed_symbol():
                self.reach_flag = True
                self.message = MSG_REACH

        if self.stop_index >= len(self.reels):
            self._set_state(MachineState.STOPPING)

    # --- Frame update ---

    def tick(self, dt: float) -> None:
        """Advance one frame. dt is elapsed time in milliseconds."""
        if self.state == MachineState.LOADING:
            return

        if self.flash_timer > 0:
            self.flash_timer = max(0.0, self.flash_timer - dt)

        for reel in self.reels:
            reel.advance()

        if self.state == MachineState.STOPPING and all(reel.is_idle for reel in self.reels):
            self.evaluate_round()

    def landed_symbols(self) -> list[Symbol]:
        return [reel.landed_symbol() for reel in self.reels]

    def evaluate_round(self) -> None:
        """Pay out the payline and pick the next state."""
        symbols = self.landed_symbols()
        # Evaluated with the fever flag as it stood when the round was spun
        outcome = evaluate(symbols, self.fever_mode)

        if outcome.is_jackpot:
            self.fever_mode = True
            self.fever_turns_remaining = FEVER_TURNS

        self.coins += outcome.payout
        if self.coins > self.high_score:
            self.high_score = self.coins
            self.store.save(self.high_score)

        center_x = settings.canvas_width / 2
        center_y = settings.canvas_height / 2

        if outcome.is_win:
            self.flash_timer = FLASH_DURATION_MS
            self.message = f"WIN! +{outcome.payout}"
            if outcome.is_jackpot:
                self.effects.play_cue(AudioCue.JACKPOT)
                self.message = MSG_JACKPOT
                self.effects.spawn_particles(center_x, center_y, JACKPOT_PARTICLES)
            else:
                self.effects.play_cue(AudioCue.WIN)
                if outcome.payout >= BIG_WIN_PAYOUT:
                    self.effects.spawn_particles(center_x, center_y, BIG_WIN_PARTICLES)

        if self.coins >= CLEAR_COINS:
            self._set_state(MachineState.CLEAR)
            self.message = MSG_CLEAR
            self.effects.play_cue(AudioCue.JACKPOT)
            self.effects.spawn_particles(center_x, center_y, CLEAR_PARTICLES)
        elif outcome.is_win:
            self._set_state(MachineState.RESULT)
        elif self.coins < BET_AMOUNT and not self.fever_mode:
            self._game_over("round_lost")
        else:
            self._set_state(MachineState.IDLE)
            self.message = MSG_LOSE

        self.telemetry.emit_round_evaluated(
            RoundEvaluatedEvent(
                symbols=[symbol.name for symbol in symbols],
                payout=outcome.payout,
                is_win=outcome.is_win,
                is_jackpot=outcome.is_jackpot,
                fever_mode=self.fever_mode,
                fever_turns_remaining=self.fever_turns_remaining,
                coins=self.coins,
                next_state=self.state.value,
                config_hash=get_config_hash(),
            )
        )

    # --- Helpers ---

    def _end_fever(self) -> None:
        self.fever_mode = False
        self.fever_turns_remaining = 0
        logger.debug("Fever ended")

    def _game_over(self, reason: str) -> None:
        self._set_state(MachineState.GAMEOVER)
        self.message = MSG_GAME_OVER
        self.telemetry.emit_game_over(
            GameOverEvent(coins=self.coins, high_score=self.high_score, reason=reason)
        )

    def _set_state(self, state: MachineState) -> None:
        if state != self.state:
            logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state

    def snapshot(self) -> SessionSnapshot:
        """Read-only view for the renderer."""
        return SessionSnapshot(
            coins=self.coins,
            high_score=self.high_score,
            state=self.state,
            message=self.message,
            fever_mode=self.fever_mode,
            fever_turns_remaining=self.fever_turns_remaining,
            reach_flag=self.reach_flag,
            flash_timer=self.flash_timer,
            reels=[reel.snapshot() for reel in self.reels],
        )
