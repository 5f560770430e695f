"""
Sampler - Weighted winner selection and shuffling driven by VRF output.

The VRF output ``beta`` is treated as the state of a deterministic byte
stream. Draws are 4-byte big-endian unsigned integers; when the buffer
runs out it is replaced by its own SHA-512 digest.

Selection is proportional: a draw r in [0, 1) is scaled by the total
weight and mapped to the first index whose cumulative weight exceeds
it. A draw that lands on an already-selected index is rejected and
redrawn, at most ``max_attempts`` times per slot, after which the first
unselected index in natural order is taken.

Everything here is a pure function of its inputs: the same weights,
count and seed always give the same indices.
"""

import struct
import time
from bisect import bisect_right
from dataclasses import dataclass
from itertools import accumulate
from typing import List, Optional, Sequence, Set, TypeVar

from fairvrf.crypto import sha512
from fairvrf.crypto.ecvrf import VRFKeyPair, VRFProof, prove, verify
from fairvrf.utils.logger import get_logger
from fairvrf.utils.validation import (
    validate_seed,
    validate_weights,
    validate_winner_count,
)

logger = get_logger("selection")

T = TypeVar("T")


# =============================================================================
# Constants
# =============================================================================

# Rejection-sampling budget per winner slot
MAX_ATTEMPTS = 100

UINT32_RANGE = 2**32


# =============================================================================
# Randomness Stream
# =============================================================================


class RandomStream:
    """
    Deterministic stream of integers and floats read from a seed.

    The caller's seed buffer is copied, never modified.
    """

    def __init__(self, seed: bytes):
        valid, err = validate_seed(seed)
        if not valid:
            raise ValueError(err)
        self._buffer = bytes(seed)
        self._offset = 0
        self.rehash_count = 0

    def _refill(self) -> None:
        self._buffer = sha512(self._buffer)
        self._offset = 0
        self.rehash_count += 1

    def next_uint32(self) -> int:
        """Next big-endian 4-byte unsigned integer."""
        if self._offset + 4 > len(self._buffer):
            self._refill()
        (value,) = struct.unpack_from(">I", self._buffer, self._offset)
        self._offset += 4
        return value

    def next_float(self) -> float:
        """Next value in [0, 1)."""
        return self.next_uint32() / UINT32_RANGE

    def next_below(self, bound: int) -> int:
        """
        Uniform integer in [0, bound).

        Values from the biased tail of the 32-bit range are discarded.
        """
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}")
        if bound > UINT32_RANGE:
            raise ValueError(f"bound must be <= 2^32, got {bound}")

        limit = (UINT32_RANGE // bound) * bound
        while True:
            value = self.next_uint32()
            if value < limit:
                return value % bound


# =============================================================================
# Weighted Selection
# =============================================================================


def _pick_index(cumulative: List[float], threshold: float) -> Optional[int]:
    """First index whose cumulative weight exceeds ``threshold``."""
    index = bisect_right(cumulative, threshold)
    if index >= len(cumulative):
        return None
    return index


def select_winners(
    weights: Sequence[float],
    winner_count: int,
    seed: bytes,
    max_attempts: int = MAX_ATTEMPTS,
) -> List[int]:
    """
    Select ``winner_count`` distinct indices with probability
    proportional to ``weights``.

    Args:
        weights: Non-negative participant weights
        winner_count: Number of winners, at most len(weights)
        seed: Randomness (VRF beta), at least 4 bytes
        max_attempts: Redraw budget per slot before falling back

    Returns:
        List of distinct indices, in selection order

    Raises:
        ValueError: on invalid weights, count or seed
    """
    valid, err = validate_weights(weights)
    if not valid:
        raise ValueError(err)
    valid, err = validate_winner_count(winner_count, len(weights))
    if not valid:
        raise ValueError(err)

    stream = RandomStream(seed)

    cumulative = list(accumulate(float(w) for w in weights))
    total_weight = cumulative[-1] if cumulative else 0.0

    winners: List[int] = []
    chosen: Set[int] = set()

    for slot in range(winner_count):
        winner: Optional[int] = None

        if total_weight > 0:
            for _ in range(max_attempts):
                threshold = stream.next_float() * total_weight
                index = _pick_index(cumulative, threshold)
                if index is not None and index not in chosen:
                    winner = index
                    break

        if winner is None:
            # Degenerate weights (e.g. all remaining mass already selected)
            winner = next(i for i in range(len(weights)) if i not in chosen)
            logger.debug(f"Slot {slot}: rejection budget exhausted, fallback to index {winner}")

        winners.append(winner)
        chosen.add(winner)

    return winners


def shuffle(items: Sequence[T], seed: bytes) -> List[T]:
    """
    Fisher-Yates shuffle driven by ``seed``.

    Returns a new list; ``items`` is left untouched.
    """
    stream = RandomStream(seed)
    shuffled = list(items)

    for i in range(len(shuffled) - 1, 0, -1):
        j = stream.next_below(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    return shuffled


# =============================================================================
# Verifiable Selection
# =============================================================================


@dataclass
class WinnerSelectionResult:
    """Winners together with the VRF evidence that produced them."""
    winners: List[int]
    randomness: bytes  # VRF beta
    proof: VRFProof
    selection_time_ms: float


def encode_selection_message(participant_count: int, winner_count: int, message: bytes) -> bytes:
    """
    Bind the selection parameters into the VRF input.

    Layout: participant_count (u32) || winner_count (u32) ||
    len(message) (u32) || message, all big-endian.
    """
    return struct.pack(">III", participant_count, winner_count, len(message)) + message


def select_winners_verifiably(
    keypair: VRFKeyPair,
    weights: Sequence[float],
    winner_count: int,
    message: bytes = b"",
    max_attempts: int = MAX_ATTEMPTS,
) -> WinnerSelectionResult:
    """
    Prove over the selection parameters and select with the output.

    Anyone with the public key can re-check the result with
    ``verify_selection``.
    """
    start = time.perf_counter()

    alpha = encode_selection_message(len(weights), winner_count, message)
    output = prove(keypair.secret_key, alpha)
    winners = select_winners(weights, winner_count, output.beta, max_attempts)

    result = WinnerSelectionResult(
        winners=winners,
        randomness=output.beta,
        proof=output.proof,
        selection_time_ms=(time.perf_counter() - start) * 1000,
    )

    logger.debug(f"Selected {winner_count} of {len(weights)} participants: {winners}")
    return result


def verify_selection(
    public_key: bytes,
    result: WinnerSelectionResult,
    weights: Sequence[float],
    winner_count: int,
    message: bytes = b"",
    max_attempts: int = MAX_ATTEMPTS,
) -> bool:
    """
    Re-verify the proof and re-run the selection.

    True only if the proof is valid for the recomputed input, its output
    matches the claimed randomness, and selecting with it reproduces the
    claimed winners.
    """
    alpha = encode_selection_message(len(weights), winner_count, message)
    output = verify(public_key, result.proof, alpha)
    if not output.is_valid or output.beta != result.randomness:
        return False

    try:
        return select_winners(weights, winner_count, output.beta, max_attempts) == result.winners
    except ValueError as e:
        logger.debug(f"Selection replay rejected: {e}")
        return False


# =============================================================================
# Module Exports
# =============================================================================

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
