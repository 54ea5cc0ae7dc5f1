"""Single-payline evaluation."""
from collections.abc import Sequence

from fever_slots.config import settings
from fever_slots.logic.models import PAYTABLE, SpinOutcome, Symbol


PAIR_PAYOUT = settings.pair_payout
FEVER_MULTIPLIER = settings.fever_multiplier


def evaluate(symbols: Sequence[Symbol], fever_active: bool) -> SpinOutcome:
    """
    Evaluate the three payline symbols.

    Rules, in order:
    - three of a kind pays the table value; three SEVENs is the jackpot
    - any two of three pays PAIR_PAYOUT
    - anything else pays nothing
    Fever multiplies winning payouts only.
    """
    if len(symbols) != 3:
        raise ValueError(f"Expected 3 symbols, got {len(symbols)}")

    first, second, third = symbols
    payout = 0
    is_jackpot = False

    if first == second == third:
        payout = PAYTABLE[first].payout
        is_jackpot = first == Symbol.SEVEN
    elif first == second or second == third or first == third:
        payout = PAIR_PAYOUT

    is_win = payout > 0
    if fever_active and is_win:
        payout *= FEVER_MULTIPLIER

    return SpinOutcome(payout=payout, is_win=is_win, is_jackpot=is_jackpot)
