"""
Requests - Data model for randomness requests and their results.

A request carries one of three typed payloads, discriminated by
``kind``:
- ``outcome``: two scored participants, resolved to a winner/loser
- ``random_event``: an in-game event triggered with a probability
- ``shuffle``: a list of items to put in a fair order

Payloads are pydantic models, so malformed input is rejected at
submission time instead of surfacing during fulfillment.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, TypeAdapter, model_validator

from fairvrf.crypto.ecvrf import VRFOutput
from fairvrf.utils.validation import MAX_ID_LENGTH, MAX_PARTICIPANTS


# =============================================================================
# Enums
# =============================================================================


class RequestType(str, Enum):
    """Kind of randomness request."""
    OUTCOME = "outcome"
    RANDOM_EVENT = "random_event"
    SHUFFLE = "shuffle"


class RequestStatus(str, Enum):
    """Lifecycle state: pending -> fulfilled | failed."""
    PENDING = "pending"
    FULFILLED = "fulfilled"
    FAILED = "failed"


class OutcomeMethod(str, Enum):
    """How a match was decided."""
    DECISION = "decision"
    TIMEOUT = "timeout"
    FORFEIT = "forfeit"


class RandomEventType(str, Enum):
    """In-game events that can be triggered by randomness."""
    CRITICAL_MOMENT = "critical_moment"
    BONUS_ROUND = "bonus_round"
    POWER_UP = "power_up"


class EventKind(str, Enum):
    """Lifecycle notifications delivered to observers."""
    SUBMITTED = "submitted"
    FULFILLED = "fulfilled"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


# Failure reasons recorded on requests
REASON_TIMEOUT = "timeout"
REASON_CANCELLED = "cancelled"
REASON_INVALID_PROOF = "invalid_proof"


# =============================================================================
# Request Parameters
# =============================================================================


class ParticipantScore(BaseModel):
    """A participant's scoring data for outcome resolution."""
    model_config = ConfigDict(frozen=True)

    id: StrictStr = Field(min_length=1, max_length=MAX_ID_LENGTH)
    score: float = Field(ge=0, allow_inf_nan=False)
    confidence: float = Field(ge=0, le=100, allow_inf_nan=False)


class OutcomeParams(BaseModel):
    """Payload of an ``outcome`` request."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["outcome"] = "outcome"
    player1: ParticipantScore
    player2: ParticipantScore

    @model_validator(mode="after")
    def _distinct_players(self) -> "OutcomeParams":
        if self.player1.id == self.player2.id:
            raise ValueError("player1 and player2 must be different participants")
        return self


class RandomEventParams(BaseModel):
    """Payload of a ``random_event`` request."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["random_event"] = "random_event"
    event_type: RandomEventType
    probability: float = Field(ge=0, le=100, allow_inf_nan=False)


class ShuffleParams(BaseModel):
    """Payload of a ``shuffle`` request."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["shuffle"] = "shuffle"
    items: List[Union[StrictInt, StrictStr]] = Field(max_length=MAX_PARTICIPANTS)


RequestParams = Annotated[
    Union[OutcomeParams, RandomEventParams, ShuffleParams],
    Field(discriminator="kind"),
]

_params_adapter = TypeAdapter(RequestParams)

PARAMS_TYPE = {
    OutcomeParams: RequestType.OUTCOME,
    RandomEventParams: RequestType.RANDOM_EVENT,
    ShuffleParams: RequestType.SHUFFLE,
}


def parse_params(data: Dict[str, Any]) -> RequestParams:
    """
    Parse a raw payload into its typed variant.

    Raises:
        pydantic.ValidationError: (a ValueError) if the payload is malformed
    """
    return _params_adapter.validate_python(data)


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class MatchOutcome:
    """
    Final decision for a match.

    ``verification_hash`` binds match, seed, winner and resolution time
    for audit; fairness itself rests on the VRF proof.
    """
    match_id: str
    winner: str
    loser: str
    method: OutcomeMethod
    confidence: float  # 50-95
    random_seed: int
    verification_hash: str
    resolved_at: int  # milliseconds since epoch

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "winner": self.winner,
            "loser": self.loser,
            "method": self.method.value,
            "confidence": self.confidence,
            "random_seed": self.random_seed,
            "verification_hash": self.verification_hash,
            "resolved_at": self.resolved_at,
        }


@dataclass(frozen=True)
class RandomEvent:
    """Result of a random event request."""
    event_type: RandomEventType
    probability: float
    triggered: bool
    value: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "probability": self.probability,
            "triggered": self.triggered,
            "value": self.value,
        }


@dataclass(frozen=True)
class ShuffleResult:
    """Result of a shuffle request."""
    order: List[Union[int, str]]

    def to_dict(self) -> Dict[str, Any]:
        return {"order": list(self.order)}


RequestResult = Union[MatchOutcome, RandomEvent, ShuffleResult]


# =============================================================================
# Request
# =============================================================================


@dataclass
class VRFRequest:
    """
    A randomness request tracked by the coordinator.

    Only the coordinator mutates requests; readers get snapshots.
    """
    id: str
    match_id: str
    requester_id: str
    request_type: RequestType
    params: RequestParams
    timestamp: float  # Submission time (seconds)

    status: RequestStatus = RequestStatus.PENDING
    result: Optional[RequestResult] = None

    # VRF binding
    alpha: bytes = b""
    vrf_account: str = ""
    vrf_output: Optional[VRFOutput] = None

    fulfilled_at: Optional[float] = None
    failure_reason: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def snapshot(self) -> "VRFRequest":
        """Shallow copy handed out to readers."""
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "match_id": self.match_id,
            "requester_id": self.requester_id,
            "request_type": self.request_type.value,
            "params": self.params.model_dump(mode="json"),
            "timestamp": self.timestamp,
            "status": self.status.value,
            "result": self.result.to_dict() if self.result is not None else None,
            "alpha": self.alpha.hex(),
            "vrf_account": self.vrf_account,
            "vrf_output": self.vrf_output.to_dict() if self.vrf_output is not None else None,
            "fulfilled_at": self.fulfilled_at,
            "failure_reason": self.failure_reason,
        }


@dataclass(frozen=True)
class RequestEvent:
    """A lifecycle notification."""
    kind: EventKind
    request_id: str
    match_id: str
    timestamp: float
    result: Optional[RequestResult] = None
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
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
    "PARAMS_TYPE",
    "parse_params",
    "MatchOutcome",
    "RandomEvent",
    "ShuffleResult",
    "RequestResult",
    "VRFRequest",
    "RequestEvent",
    "REASON_TIMEOUT",
    "REASON_CANCELLED",
    "REASON_INVALID_PROOF",
]
