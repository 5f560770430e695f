"""
Resolver - Maps fulfilled VRF output to request results.

Outcome resolution:
    strength_i = score_i * (1 + confidence_i / 100)
    p1 = strength_1 / (strength_1 + strength_2)
    winner = player1 if draw < p1 else player2

where ``draw`` is the first 32-bit word of beta scaled to [0, 1). The
reported confidence grows with the strength gap and is bounded to
[50, 95].

Random events and shuffles read further values from the same stream.
"""

import time
from typing import Optional, Tuple

from fairvrf.crypto import sha256
from fairvrf.core.resolution.requests import (
    MatchOutcome,
    OutcomeMethod,
    OutcomeParams,
    ParticipantScore,
    RandomEvent,
    RandomEventParams,
    RequestParams,
    RequestResult,
    ShuffleParams,
    ShuffleResult,
)
from fairvrf.core.selection import RandomStream, shuffle
from fairvrf.utils.logger import get_logger

logger = get_logger("resolver")


# =============================================================================
# Constants
# =============================================================================

MIN_OUTCOME_CONFIDENCE = 50.0
MAX_OUTCOME_CONFIDENCE = 95.0

# Triggered events carry a value in [0, EVENT_VALUE_RANGE)
EVENT_VALUE_RANGE = 1000


# =============================================================================
# Scoring
# =============================================================================


def weighted_strength(participant: ParticipantScore) -> float:
    """score * (1 + confidence / 100)."""
    return participant.score * (1 + participant.confidence / 100)


def win_probability(strength1: float, strength2: float) -> float:
    """Probability that side 1 wins. Even when both strengths are zero."""
    total = strength1 + strength2
    if total <= 0:
        return 0.5
    return strength1 / total


def outcome_confidence(strength1: float, strength2: float) -> float:
    """
    Confidence in the decided outcome, from the relative strength gap.

    50 for equal sides, approaching 95 as one side dominates.
    """
    strongest = max(strength1, strength2)
    if strongest <= 0:
        return MIN_OUTCOME_CONFIDENCE

    gap = abs(strength1 - strength2) / strongest
    confidence = MIN_OUTCOME_CONFIDENCE + gap * (MAX_OUTCOME_CONFIDENCE - MIN_OUTCOME_CONFIDENCE)
    return min(MAX_OUTCOME_CONFIDENCE, max(MIN_OUTCOME_CONFIDENCE, confidence))


def compute_verification_hash(
    match_id: str,
    random_seed: int,
    winner: str,
    resolved_at: int,
) -> str:
    """Audit digest: sha256("match_id:random_seed:winner:resolved_at") as hex."""
    data = f"{match_id}:{random_seed}:{winner}:{resolved_at}"
    return sha256(data.encode("utf-8")).hex()


def verify_match_outcome(outcome: MatchOutcome) -> bool:
    """Recompute an outcome's verification hash and compare."""
    expected = compute_verification_hash(
        outcome.match_id, outcome.random_seed, outcome.winner, outcome.resolved_at
    )
    return expected == outcome.verification_hash


# =============================================================================
# Resolution
# =============================================================================


def seed_and_draw(beta: bytes) -> Tuple[int, float]:
    """First 32-bit word of beta and its value scaled to [0, 1)."""
    stream = RandomStream(beta)
    random_seed = stream.next_uint32()
    return random_seed, random_seed / 2**32


def decide_outcome(
    match_id: str,
    player1: ParticipantScore,
    player2: ParticipantScore,
    draw: float,
    random_seed: int,
    resolved_at: Optional[int] = None,
) -> MatchOutcome:
    """
    Decide a match from a draw in [0, 1).

    Args:
        match_id: Match being decided
        player1: First participant
        player2: Second participant
        draw: Normalized random value
        random_seed: Integer the draw was derived from (recorded for audit)
        resolved_at: Resolution time in ms; defaults to now

    Returns:
        MatchOutcome
    """
    if not 0 <= draw < 1:
        raise ValueError(f"draw must be in [0, 1), got {draw}")

    if resolved_at is None:
        resolved_at = int(time.time() * 1000)

    strength1 = weighted_strength(player1)
    strength2 = weighted_strength(player2)
    p1 = win_probability(strength1, strength2)

    if draw < p1:
        winner, loser = player1.id, player2.id
    else:
        winner, loser = player2.id, player1.id

    outcome = MatchOutcome(
        match_id=match_id,
        winner=winner,
        loser=loser,
        method=OutcomeMethod.DECISION,
        confidence=outcome_confidence(strength1, strength2),
        random_seed=random_seed,
        verification_hash=compute_verification_hash(match_id, random_seed, winner, resolved_at),
        resolved_at=resolved_at,
    )

    logger.debug(f"Match {match_id}: p1={p1:.4f} draw={draw:.4f} -> winner {winner}")
    return outcome


def resolve_match_outcome(
    match_id: str,
    params: OutcomeParams,
    beta: bytes,
    resolved_at: Optional[int] = None,
) -> MatchOutcome:
    """Decide a match from VRF output."""
    random_seed, draw = seed_and_draw(beta)
    return decide_outcome(match_id, params.player1, params.player2, draw, random_seed, resolved_at)


def resolve_random_event(params: RandomEventParams, beta: bytes) -> RandomEvent:
    """Trigger an event with ``params.probability`` percent chance."""
    stream = RandomStream(beta)
    draw = stream.next_float()
    triggered = draw * 100 < params.probability

    return RandomEvent(
        event_type=params.event_type,
        probability=params.probability,
        triggered=triggered,
        value=stream.next_below(EVENT_VALUE_RANGE) if triggered else None,
    )


def resolve_shuffle(params: ShuffleParams, beta: bytes) -> ShuffleResult:
    """Fair ordering of ``params.items``."""
    return ShuffleResult(order=shuffle(params.items, beta))


def resolve_request(
    match_id: str,
    params: RequestParams,
    beta: bytes,
    resolved_at: Optional[int] = None,
) -> RequestResult:
    """Dispatch on the payload variant."""
    if isinstance(params, OutcomeParams):
        return resolve_match_outcome(match_id, params, beta, resolved_at)
    elif isinstance(params, RandomEventParams):
        return resolve_random_event(params, beta)
    elif isinstance(params, ShuffleParams):
        return resolve_shuffle(params, beta)
    else:
        raise TypeError(f"Unknown request params: {type(params).__name__}")
