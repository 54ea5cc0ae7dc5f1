#!/usr/bin/env python3
"""
Headless cabinet simulation for payout audits.

Plays whole sessions through the real state machine (activate + tick), with
randomized stop timing, until GAMEOVER, CLEAR or the per-session round cap.

Usage:
    python -m scripts.audit_sim --sessions 1000 --seed AUDIT_2025
    python -m scripts.audit_sim --sessions 5000 --seed AUDIT_2025 --out out/audit.csv
"""
import argparse
import csv
import hashlib
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fever_slots.config import settings
from fever_slots.config_hash import get_config_hash
from fever_slots.effects import EffectsService
from fever_slots.high_score_store import InMemoryHighScoreStore
from fever_slots.logic.machine import GameStateMachine
from fever_slots.logic.models import MachineState
from fever_slots.logic.rng import SeededRNG
from fever_slots.telemetry import TelemetryService


FRAME_DT_MS = 1000 / settings.frame_rate
# Frames the simulated player waits between stop presses
MIN_STOP_DELAY_FRAMES = 1
MAX_STOP_DELAY_FRAMES = 30
# Safety bound on frames spent settling after the last stop
MAX_SETTLE_FRAMES = 1000


class RoundRecorder:
    """Telemetry sink that keeps round events for the audit."""

    def __init__(self):
        self.rounds: list[dict[str, Any]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        if event_name == "round_evaluated":
            self.rounds.append(data)


class _SilentSink:
    def submit(self, cue, tones) -> None:
        pass

    def spawn(self, x, y, count) -> None:
        pass


@dataclass
class SimulationStats:
    """Statistics accumulated during simulation."""
    sessions: int = 0
    rounds: int = 0
    wins: int = 0
    total_wagered: int = 0
    total_paid: int = 0
    jackpots: int = 0
    fever_rounds: int = 0
    reach_hints: int = 0
    clears: int = 0
    game_overs: int = 0
    timed_out: int = 0
    max_coins: int = 0


def seed_to_int(seed_str: str) -> int:
    """Convert string seed to integer deterministically."""
    return int(hashlib.sha256(seed_str.encode()).hexdigest(), 16) % (2**31)


def get_timestamp_iso() -> str:
    """Get ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def play_round(machine: GameStateMachine, rng: SeededRNG) -> tuple[int, bool] | None:
    """
    Spin, stop every reel with random timing and wait for evaluation.

    Returns (coins wagered, spun in fever), or None if the spin was
    rejected (GAMEOVER).
    """
    coins_before = machine.coins
    machine.activate()
    if machine.state != MachineState.SPINNING:
        return None
    wagered = coins_before - machine.coins
    in_fever = machine.fever_mode

    while machine.state == MachineState.SPINNING:
        for _ in range(rng.randint(MIN_STOP_DELAY_FRAMES, MAX_STOP_DELAY_FRAMES)):
            machine.tick(FRAME_DT_MS)
        machine.activate()

    for _ in range(MAX_SETTLE_FRAMES):
        if machine.state != MachineState.STOPPING:
            break
        machine.tick(FRAME_DT_MS)
    return wagered, in_fever


def run_simulation(
    sessions: int,
    seed_str: str,
    max_rounds: int = 1000,
    verbose: bool = False,
) -> SimulationStats:
    """
    Run headless sessions.

    Args:
        sessions: Number of sessions to play from a fresh stake
        seed_str: Seed string for reproducibility
        max_rounds: Round cap per session
        verbose: Print progress

    Returns:
        SimulationStats with aggregated results
    """
    rng = SeededRNG(seed=seed_to_int(seed_str))
    silent = _SilentSink()
    effects = EffectsService(audio_sink=silent, particle_sink=silent)
    stats = SimulationStats()

    progress_interval = max(1, sessions // 100)

    for session in range(sessions):
        if verbose and session % progress_interval == 0:
            pct = (session / sessions) * 100
            print(f"\rProgress: {pct:.1f}%", end="", flush=True)

        recorder = RoundRecorder()
        machine = GameStateMachine(
            rng=rng,
            effects=effects,
            store=InMemoryHighScoreStore(),
            telemetry=TelemetryService(sink=recorder),
        )
        machine.activate()  # INTRO -> IDLE

        rounds = 0
        while rounds < max_rounds:
            played = play_round(machine, rng)
            if played is None:
                break
            wagered, in_fever = played
            stats.total_wagered += wagered
            stats.fever_rounds += int(in_fever)
            stats.reach_hints += int(machine.reach_flag)
            rounds += 1
            if machine.state in (MachineState.GAMEOVER, MachineState.CLEAR):
                break

        for event in recorder.rounds:
            stats.rounds += 1
            stats.total_paid += event["payout"]
            stats.wins += int(event["is_win"])
            stats.jackpots += int(event["is_jackpot"])
        stats.max_coins = max(stats.max_coins, machine.high_score)
        stats.sessions += 1

        if machine.state == MachineState.CLEAR:
            stats.clears += 1
        elif machine.state == MachineState.GAMEOVER:
            stats.game_overs += 1
        else:
            stats.timed_out += 1

    if verbose:
        print("\rProgress: 100.0%")

    return stats


def generate_csv(seed_str: str, stats: SimulationStats, output_path: str) -> None:
    """Write a one-row audit CSV."""
    rtp = (stats.total_paid / stats.total_wagered * 100) if stats.total_wagered > 0 else 0
    hit_freq = (stats.wins / stats.rounds * 100) if stats.rounds > 0 else 0

    row = {
        "timestamp": get_timestamp_iso(),
        "config_hash": get_config_hash(),
        "seed": seed_str,
        "sessions": stats.sessions,
        "rounds": stats.rounds,
        "total_wagered": stats.total_wagered,
        "total_paid": stats.total_paid,
        "rtp": f"{rtp:.4f}",
        "hit_freq": f"{hit_freq:.4f}",
        "jackpots": stats.jackpots,
        "fever_rounds": stats.fever_rounds,
        "reach_hints": stats.reach_hints,
        "clears": stats.clears,
        "game_overs": stats.game_overs,
        "timed_out": stats.timed_out,
        "max_coins": stats.max_coins,
    }

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=row.keys())
        writer.writeheader()
        writer.writerow(row)

    print(f"CSV written to: {output_path}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Headless cabinet audit simulation")
    parser.add_argument("--sessions", type=int, required=True, help="Number of sessions")
    parser.add_argument("--seed", type=str, required=True, help="Seed string for reproducibility")
    parser.add_argument("--max-rounds", type=int, default=1000, help="Round cap per session")
    parser.add_argument("--out", type=str, default=None, help="Output CSV path")
    parser.add_argument("--verbose", action="store_true", help="Show progress")

    args = parser.parse_args(argv)

    print(f"Running simulation: sessions={args.sessions}, seed={args.seed}")
    print(f"Config hash: {get_config_hash()}")

    stats = run_simulation(
        sessions=args.sessions,
        seed_str=args.seed,
        max_rounds=args.max_rounds,
        verbose=args.verbose,
    )

    if args.out:
        generate_csv(args.seed, stats, args.out)

    rtp = (stats.total_paid / stats.total_wagered * 100) if stats.total_wagered > 0 else 0
    print(f"\nSummary:")
    print(f"  Sessions: {stats.sessions}")
    print(f"  Rounds: {stats.rounds}")
    print(f"  Total wagered: {stats.total_wagered}")
    print(f"  Total paid: {stats.total_paid}")
    print(f"  RTP: {rtp:.4f}%")
    print(f"  Jackpots: {stats.jackpots}")
    print(f"  Fever rounds: {stats.fever_rounds}")
    print(f"  Clears: {stats.clears}  Game overs: {stats.game_overs}  Timed out: {stats.timed_out}")
    print(f"  Best balance: {stats.max_coins}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
