"""
fairvrf Selection Module.

Turns VRF output into decisions:
- Deterministic randomness stream over a seed
- Proportional weighted winner selection (rejection sampling)
- Fisher-Yates shuffle
- Verifiable selection (prove, select, re-verify)
"""

from fairvrf.core.selection.sampler import (
    RandomStream,
    select_winners,
    shuffle,
    WinnerSelectionResult,
    encode_selection_message,
    select_winners_verifiably,
    verify_selection,
    MAX_ATTEMPTS,
)

__all__ = [
    "RandomStream",
    "select_winners",
    "shuffle",
    "WinnerSelectionResult",
    "encode_selection_message",
    "select_winners_verifiably",
    "verify_selection",
    "MAX_ATTEMPTS",
]
