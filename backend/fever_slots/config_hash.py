"""Config hash shared by telemetry and the audit simulation.

This module provides a shared config_hash function used by:
- scripts/audit_sim.py (CSV audit)
- telemetry.py (round_evaluated event)

The hash MUST be computed identically in both locations.
"""
import hashlib
import json

from fever_slots.config import settings
from fever_slots.logic.models import PAYTABLE


def get_config_hash() -> str:
    """
    Generate hash of the economy and paytable.

    Returns 16-char hex hash of config snapshot.
    Used for:
    - audit CSV config_hash column
    - round_evaluated telemetry event config_hash field
    """
    config_snapshot = {
        "paytable": {symbol.name: info.payout for symbol, info in PAYTABLE.items()},
        "pair_payout": settings.pair_payout,
        "initial_coins": settings.initial_coins,
        "bet_amount": settings.bet_amount,
        "clear_coins": settings.clear_coins,
        "fever_turns": settings.fever_turns,
        "fever_multiplier": settings.fever_multiplier,
        "strip_length": settings.strip_length,
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
