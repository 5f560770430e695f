"""
fairvrf Resolution Module.

Request lifecycle and result computation:
- Typed request payloads and results
- Outcome, random event and shuffle resolution
- Coordinator enforcing the fairness timing window
"""

from fairvrf.core.resolution.requests import (
    RequestType,
    RequestStatus,
    OutcomeMethod,
    RandomEventType,
    EventKind,
    ParticipantScore,
    OutcomeParams,
    RandomEventParams,
    ShuffleParams,
    RequestParams,
    parse_params,
    MatchOutcome,
    RandomEvent,
    ShuffleResult,
    VRFRequest,
    RequestEvent,
    REASON_TIMEOUT,
    REASON_CANCELLED,
    REASON_INVALID_PROOF,
)

from fairvrf.core.resolution.resolver import (
    weighted_strength,
    win_probability,
    outcome_confidence,
    compute_verification_hash,
    verify_match_outcome,
    decide_outcome,
    resolve_match_outcome,
    resolve_random_event,
    resolve_shuffle,
    resolve_request,
)

from fairvrf.core.resolution.coordinator import (
    VRFCoordinator,
    RandomnessProvider,
    LocalVRFProvider,
    encode_request_alpha,
    derive_vrf_account,
    REASON_OUTCOME_EXISTS,
)

__all__ = [
    # Requests
    "RequestType",
    "RequestStatus",
    "OutcomeMethod",
    "RandomEventType",
    "EventKind",
    "ParticipantScore",
    "OutcomeParams",
    "RandomEventParams",
    "ShuffleParams",
    "RequestParams",
    "parse_params",
    "MatchOutcome",
    "RandomEvent",
    "ShuffleResult",
    "VRFRequest",
    "RequestEvent",
    "REASON_TIMEOUT",
    "REASON_CANCELLED",
    "REASON_INVALID_PROOF",
    # Resolver
    "weighted_strength",
    "win_probability",
    "outcome_confidence",
    "compute_verification_hash",
    "verify_match_outcome",
    "decide_outcome",
    "resolve_match_outcome",
    "resolve_random_event",
    "resolve_shuffle",
    "resolve_request",
    # Coordinator
    "VRFCoordinator",
    "RandomnessProvider",
    "LocalVRFProvider",
    "encode_request_alpha",
    "derive_vrf_account",
    "REASON_OUTCOME_EXISTS",
]
