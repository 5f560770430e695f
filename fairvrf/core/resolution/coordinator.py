"""
Coordinator - Lifecycle and fairness timing of randomness requests.

Each request moves pending -> fulfilled or pending -> failed:

1. Submit: the VRF input (alpha) is committed from the request fields,
   a randomness account reference is derived, SUBMITTED is emitted.
2. Monitor: every tick, each pending request is checked against the
   clock.
   - elapsed > max_resolution_delay: failed ("timeout"), TIMED_OUT
   - elapsed < min_resolution_delay: nothing happens (fairness floor)
   - otherwise the provider is asked for VRF output
3. Fulfill: the output is verified against the committed alpha, the
   type-specific result is computed, FULFILLED is emitted.
4. Cancel: pending -> failed ("cancelled"), CANCELLED; no-op otherwise.

The floor stops a participant from submitting alpha and learning beta
before the other side has committed. The ceiling bounds how long a
request can be stalled.

Timeouts are evaluated from wall-clock elapsed time at each tick, so a
request cannot miss its timeout as long as ticks keep coming. Ticks run
from an asyncio task (``start``/``stop``) or are driven directly.
"""

import asyncio
import json
import secrets
import statistics
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, Union, runtime_checkable

from fairvrf.crypto import bytes_to_hex, constant_time_equal, keccak256
from fairvrf.crypto.ecvrf import VRFKeyPair, VRFOutput, generate_keypair, prove, verify
from fairvrf.core.config import VRFConfig
from fairvrf.core.resolution.requests import (
    EventKind,
    MatchOutcome,
    OutcomeParams,
    PARAMS_TYPE,
    RandomEventParams,
    RandomEventType,
    RequestEvent,
    RequestParams,
    RequestResult,
    RequestStatus,
    ShuffleParams,
    VRFRequest,
    REASON_CANCELLED,
    REASON_INVALID_PROOF,
    REASON_TIMEOUT,
)
from fairvrf.core.resolution.resolver import resolve_request
from fairvrf.utils.logger import get_logger
from fairvrf.utils.validation import validate_identifier

logger = get_logger("coordinator")


# =============================================================================
# Constants
# =============================================================================

# Seed prefix for randomness account references
VRF_ACCOUNT_SEED = b"VrfAccountData"

SYSTEM_REQUESTER = "system"

REASON_OUTCOME_EXISTS = "outcome_exists"


# =============================================================================
# Randomness Providers
# =============================================================================


@runtime_checkable
class RandomnessProvider(Protocol):
    """Source of VRF output for committed requests."""

    @property
    def public_key(self) -> bytes:
        """Key the provider's proofs verify against."""
        ...

    def fulfil(self, request: VRFRequest) -> Optional[VRFOutput]:
        """VRF output over ``request.alpha``, or None if not available yet."""
        ...


class LocalVRFProvider:
    """Proves with a local key as soon as it is asked."""

    def __init__(self, keypair: VRFKeyPair, latency_target_ms: float = 10.0):
        self._keypair = keypair
        self.latency_target_ms = latency_target_ms

    @property
    def public_key(self) -> bytes:
        return self._keypair.public_key

    def fulfil(self, request: VRFRequest) -> Optional[VRFOutput]:
        return prove(self._keypair.secret_key, request.alpha, self.latency_target_ms)


# =============================================================================
# Helpers
# =============================================================================


def encode_request_alpha(request: VRFRequest) -> bytes:
    """
    Canonical VRF input committed at submission.

    Sorted-key compact JSON over id, match, requester, type, params and
    submission time in milliseconds.
    """
    payload = {
        "id": request.id,
        "match_id": request.match_id,
        "requester_id": request.requester_id,
        "request_type": request.request_type.value,
        "params": request.params.model_dump(mode="json"),
        "timestamp": int(request.timestamp * 1000),
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def derive_vrf_account(request_id: str, public_key: bytes) -> str:
    """Deterministic randomness account reference for a request."""
    return bytes_to_hex(keccak256(VRF_ACCOUNT_SEED + request_id.encode("utf-8") + public_key))


# =============================================================================
# Coordinator
# =============================================================================


class VRFCoordinator:
    """
    Owns request state and drives it through the fairness window.

    Construct one per service instance and ``stop()`` it on shutdown.

    Events are delivered on ``events`` (an asyncio.Queue of
    RequestEvent, bounded by ``max_queued_events``); ``drain_events()``
    empties it without awaiting. Events of purged requests are dropped.
    """

    def __init__(
        self,
        config: Optional[VRFConfig] = None,
        keypair: Optional[VRFKeyPair] = None,
        provider: Optional[RandomnessProvider] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or VRFConfig()
        self.clock = clock

        if provider is None:
            provider = LocalVRFProvider(
                keypair or generate_keypair(),
                latency_target_ms=self.config.latency_target_ms,
            )
        self.provider = provider

        self._requests: Dict[str, VRFRequest] = {}
        self._outcomes: Dict[str, MatchOutcome] = {}

        self.events: "asyncio.Queue[RequestEvent]" = asyncio.Queue(maxsize=self.config.max_queued_events)

        self._running = False
        self._monitor_task: Optional[asyncio.Task] = None

    @property
    def public_key(self) -> bytes:
        """Key that fulfilled requests' proofs verify against."""
        return self.provider.public_key

    # =========================================================================
    # Submission
    # =========================================================================

    def request_outcome(
        self,
        match_id: str,
        requester_id: str,
        participant_data: Union[OutcomeParams, Dict[str, Any]],
    ) -> str:
        """
        Request a match outcome.

        Args:
            match_id: Match to decide
            requester_id: Who asked
            participant_data: OutcomeParams or a dict with ``player1`` and
                ``player2`` entries (id, score, confidence)

        Returns:
            Request ID

        Raises:
            ValueError: malformed input, or the match already has an outcome
        """
        if isinstance(participant_data, OutcomeParams):
            params = participant_data
        else:
            params = OutcomeParams.model_validate(participant_data)

        if match_id in self._outcomes:
            raise ValueError(f"Match {match_id} already has an outcome")

        return self.submit(match_id, requester_id, params)

    def request_random_event(
        self,
        match_id: str,
        event_type: Union[RandomEventType, str],
        probability: float,
        requester_id: str = SYSTEM_REQUESTER,
    ) -> str:
        """Request a random event trigger with ``probability`` percent chance."""
        params = RandomEventParams(event_type=event_type, probability=probability)
        return self.submit(match_id, requester_id, params)

    def request_shuffle(
        self,
        match_id: str,
        requester_id: str,
        items: List[Union[int, str]],
    ) -> str:
        """Request a fair ordering of ``items``."""
        params = ShuffleParams(items=items)
        return self.submit(match_id, requester_id, params)

    def submit(self, match_id: str, requester_id: str, params: RequestParams) -> str:
        """
        Create a pending request and commit its VRF input.

        Returns:
            Request ID
        """
        for value, name in ((match_id, "match_id"), (requester_id, "requester_id")):
            valid, err = validate_identifier(value, name)
            if not valid:
                raise ValueError(err)

        request_type = PARAMS_TYPE.get(type(params))
        if request_type is None:
            raise TypeError(f"Unsupported request params: {type(params).__name__}")

        now = self.clock()
        request_id = self._generate_request_id(match_id, request_type.value, now)

        request = VRFRequest(
            id=request_id,
            match_id=match_id,
            requester_id=requester_id,
            request_type=request_type,
            params=params,
            timestamp=now,
        )
        request.alpha = encode_request_alpha(request)
        request.vrf_account = derive_vrf_account(request_id, self.public_key)

        self._requests[request_id] = request

        logger.info(f"Request {request_id} submitted ({request_type.value}, match {match_id})")
        self._emit(EventKind.SUBMITTED, request, now, details={"vrf_account": request.vrf_account})
        return request_id

    def _generate_request_id(self, match_id: str, request_type: str, now: float) -> str:
        while True:
            request_id = f"{request_type}_{match_id}_{int(now * 1000)}_{secrets.token_hex(6)}"
            if request_id not in self._requests:
                return request_id

    # =========================================================================
    # Monitoring
    # =========================================================================

    def tick(self, now: Optional[float] = None) -> int:
        """
        Run one monitoring pass.

        Args:
            now: Current time in seconds; defaults to the coordinator clock

        Returns:
            Number of requests that left the pending state
        """
        if now is None:
            now = self.clock()

        self.purge_expired(now)

        transitions = 0
        for request in list(self._requests.values()):
            if request.is_pending and self._check_request(request, now):
                transitions += 1

        return transitions

    def _check_request(self, request: VRFRequest, now: float) -> bool:
        elapsed = now - request.timestamp

        if elapsed > self.config.max_resolution_delay:
            logger.warning(f"Request {request.id} timed out after {elapsed:.2f}s")
            self._fail(request, now, REASON_TIMEOUT, EventKind.TIMED_OUT)
            return True

        if elapsed < self.config.min_resolution_delay:
            return False

        try:
            output = self.provider.fulfil(request)
        except Exception as e:
            logger.error(f"Randomness provider failed for {request.id}: {e}")
            self._fail(request, now, f"error: {e}", EventKind.FAILED)
            return True

        if output is None:
            return False

        return self._fulfil(request, output, now)

    def _fulfil(self, request: VRFRequest, output: VRFOutput, now: float) -> bool:
        # Proof must bind the alpha committed at submission
        checked = verify(
            self.public_key,
            output.proof,
            request.alpha,
            latency_target_ms=self.config.latency_target_ms,
        )
        if not checked.is_valid or not constant_time_equal(checked.beta, output.beta):
            logger.error(f"Request {request.id}: VRF proof rejected")
            self._fail(request, now, REASON_INVALID_PROOF, EventKind.FAILED)
            return True

        if isinstance(request.params, OutcomeParams) and request.match_id in self._outcomes:
            logger.warning(f"Request {request.id}: match {request.match_id} already decided")
            self._fail(request, now, REASON_OUTCOME_EXISTS, EventKind.FAILED)
            return True

        try:
            result = resolve_request(
                request.match_id,
                request.params,
                checked.beta,
                resolved_at=int(now * 1000),
            )
        except Exception as e:
            logger.error(f"Resolution failed for {request.id}: {e}")
            self._fail(request, now, f"error: {e}", EventKind.FAILED)
            return True

        request.vrf_output = checked
        request.result = result
        request.status = RequestStatus.FULFILLED
        request.fulfilled_at = now

        if isinstance(result, MatchOutcome):
            self._outcomes[request.match_id] = result

        logger.info(
            f"Request {request.id} fulfilled after {now - request.timestamp:.2f}s"
        )
        self._emit(EventKind.FULFILLED, request, now, result=result)
        return True

    def _fail(self, request: VRFRequest, now: float, reason: str, kind: EventKind) -> None:
        request.status = RequestStatus.FAILED
        request.failure_reason = reason
        self._emit(kind, request, now, reason=reason)

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel_request(self, request_id: str) -> bool:
        """
        Cancel a pending request.

        Returns:
            True if the request was pending and is now failed; False
            otherwise (unknown, fulfilled or already failed)
        """
        request = self._requests.get(request_id)
        if request is None or not request.is_pending:
            return False

        logger.info(f"Request {request_id} cancelled")
        self._fail(request, self.clock(), REASON_CANCELLED, EventKind.CANCELLED)
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def get_request_status(self, request_id: str) -> Optional[VRFRequest]:
        """Snapshot of a request, or None if unknown or purged."""
        request = self._requests.get(request_id)
        return request.snapshot() if request is not None else None

    def get_match_outcome(self, match_id: str) -> Optional[MatchOutcome]:
        """Recorded outcome for a match, or None."""
        return self._outcomes.get(match_id)

    def verify_outcome(self, match_id: str, verification_hash: str) -> bool:
        """Check a verification hash against the recorded outcome."""
        outcome = self._outcomes.get(match_id)
        if outcome is None:
            return False
        return constant_time_equal(
            outcome.verification_hash.encode("utf-8"),
            verification_hash.encode("utf-8"),
        )

    def get_stats(self) -> Dict[str, Any]:
        """Counts by status, success rate and mean fulfillment time."""
        requests = list(self._requests.values())
        total = len(requests)
        pending = sum(1 for r in requests if r.status == RequestStatus.PENDING)
        fulfilled = [r for r in requests if r.status == RequestStatus.FULFILLED]
        failed = sum(1 for r in requests if r.status == RequestStatus.FAILED)

        durations = [r.fulfilled_at - r.timestamp for r in fulfilled if r.fulfilled_at is not None]

        return {
            "total_requests": total,
            "pending_requests": pending,
            "fulfilled_requests": len(fulfilled),
            "failed_requests": failed,
            "success_rate": (len(fulfilled) / total) * 100 if total > 0 else 0.0,
            "average_fulfillment_time": statistics.mean(durations) if durations else 0.0,
            "active_outcomes": len(self._outcomes),
        }

    # =========================================================================
    # Housekeeping
    # =========================================================================

    def purge_expired(self, now: Optional[float] = None) -> int:
        """
        Drop settled requests and outcomes older than the retention period.

        Pending requests are never purged; they time out first.

        Returns:
            Number of entries removed
        """
        if now is None:
            now = self.clock()
        cutoff = now - self.config.retention_period

        expired_requests = [
            request_id
            for request_id, request in self._requests.items()
            if not request.is_pending and request.timestamp < cutoff
        ]
        for request_id in expired_requests:
            del self._requests[request_id]

        expired_outcomes = [
            match_id
            for match_id, outcome in self._outcomes.items()
            if outcome.resolved_at / 1000 < cutoff
        ]
        for match_id in expired_outcomes:
            del self._outcomes[match_id]

        if expired_requests:
            self._discard_events(set(expired_requests))

        removed = len(expired_requests) + len(expired_outcomes)
        if removed:
            logger.debug(
                f"Purged {len(expired_requests)} requests and {len(expired_outcomes)} outcomes"
            )
        return removed

    # =========================================================================
    # Events
    # =========================================================================

    def _emit(
        self,
        kind: EventKind,
        request: VRFRequest,
        now: float,
        result: Optional[RequestResult] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = RequestEvent(
            kind=kind,
            request_id=request.id,
            match_id=request.match_id,
            timestamp=now,
            result=result,
            reason=reason,
            details=details or {},
        )

        if self.events.full():
            dropped = self.events.get_nowait()
            logger.warning(
                f"Event queue full ({self.events.maxsize}), dropped "
                f"{dropped.kind.value} event for {dropped.request_id}"
            )
        self.events.put_nowait(event)

    def drain_events(self) -> List[RequestEvent]:
        """Remove and return every queued event, oldest first."""
        drained = []
        while True:
            try:
                drained.append(self.events.get_nowait())
            except asyncio.QueueEmpty:
                return drained

    def _discard_events(self, request_ids: Set[str]) -> None:
        """Drop queued events belonging to the given requests."""
        kept = [event for event in self.drain_events() if event.request_id not in request_ids]
        for event in kept:
            self.events.put_nowait(event)

    # =========================================================================
    # Background Monitoring
    # =========================================================================

    async def start(self) -> None:
        """Start ticking every ``poll_interval`` seconds on the running loop."""
        if self._running:
            return
        self._running = True
        self._monitor_task = asyncio.create_task(self._monitor_loop())
        logger.info(
            f"Coordinator started (floor={self.config.min_resolution_delay}s, "
            f"ceiling={self.config.max_resolution_delay}s)"
        )

    async def stop(self) -> None:
        """Stop background monitoring."""
        self._running = False
        if self._monitor_task:
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
            self._monitor_task = None
        logger.info("Coordinator stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    async def _monitor_loop(self) -> None:
        while self._running:
            self.tick()
            await asyncio.sleep(self.config.poll_interval)
