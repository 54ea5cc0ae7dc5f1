"""Application configuration for the cabinet and its environment."""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Cabinet settings with the reference machine's defaults."""

    model_config = ConfigDict(env_prefix="SLOTS_")

    # Server
    debug: bool = False
    redis_url: str = "redis://localhost:6379/0"
    high_score_key: str = "slot_highscore"

    # Protocol
    protocol_version: str = "1.0"

    # Reel geometry (pixels)
    reel_count: int = 3
    strip_length: int = 20
    symbol_size: int = 100
    visible_symbols: int = 3
    reel_width: int = 120
    reel_height: int = 300  # visible_symbols * symbol_size
    reel_gap: int = 20
    canvas_width: int = 800
    canvas_height: int = 600

    # Reel motion
    base_reel_speed: int = 20
    reel_speed_step: int = 5
    extra_spin_symbols: int = 2

    # Economy
    initial_coins: int = 100
    bet_amount: int = 10
    clear_coins: int = 1000
    fever_turns: int = 5
    fever_multiplier: int = 5
    pair_payout: int = 5

    # Effects
    flash_duration_ms: float = 500.0
    big_win_payout: int = 50
    big_win_particles: int = 50
    jackpot_particles: int = 100
    clear_particles: int = 200
    effect_queue_size: int = 256

    # Frame driver
    frame_rate: int = 60
    frame_driver_enabled: bool = True
    max_frame_dt_ms: float = 250.0

    # Start in LOADING and wait for the front end's assets-loaded signal
    preload_assets: bool = False


settings = Settings()
