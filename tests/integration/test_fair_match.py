"""
Fair Match Tests - End-to-end resolution with independent verification.

Tests verify:
1. A match outcome can be re-derived by a third party from public data
2. Published JSON records are sufficient for verification
3. Tournament seeding via verifiable selection
"""

import json

import pytest

from fairvrf.crypto import VRFProof, generate_keypair, prove, verify
from fairvrf.core.config import VRFConfig
from fairvrf.core.resolution import (
    EventKind,
    OutcomeParams,
    RequestStatus,
    VRFCoordinator,
    parse_params,
    resolve_match_outcome,
    resolve_request,
    verify_match_outcome,
)
from fairvrf.core.selection import select_winners_verifiably, verify_selection


# =============================================================================
# Fixtures
# =============================================================================


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def operator():
    return generate_keypair()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def coordinator(operator, clock):
    return VRFCoordinator(config=VRFConfig(), keypair=operator, clock=clock)


def third_party_check(public_key: bytes, record: dict) -> bool:
    """Re-derive a fulfilled request from its published JSON record only."""
    alpha = bytes.fromhex(record["alpha"])
    proof = VRFProof.from_dict(record["vrf_output"]["proof"])

    checked = verify(public_key, proof, alpha)
    if not checked.is_valid or checked.beta.hex() != record["vrf_output"]["beta"]:
        return False

    # The committed input must describe the published request
    committed = json.loads(alpha)
    if committed["id"] != record["id"] or committed["params"] != record["params"]:
        return False

    params = parse_params(record["params"])
    resolved_at = record["result"].get("resolved_at")
    recomputed = resolve_request(record["match_id"], params, checked.beta, resolved_at)
    return recomputed.to_dict() == record["result"]


# =============================================================================
# Match Resolution
# =============================================================================


class TestMatchResolution:
    """Full lifecycle of a PvP match outcome."""

    def test_outcome_end_to_end(self, coordinator, clock, operator):
        request_id = coordinator.request_outcome("match_42", "matchmaker", {
            "player1": {"id": "alice", "score": 1200, "confidence": 70},
            "player2": {"id": "bob", "score": 1100, "confidence": 40},
        })

        clock.now += 1.0
        coordinator.tick()
        assert coordinator.get_request_status(request_id).status == RequestStatus.PENDING

        clock.now += 4.0
        coordinator.tick()

        request = coordinator.get_request_status(request_id)
        assert request.status == RequestStatus.FULFILLED

        outcome = coordinator.get_match_outcome("match_42")
        assert {outcome.winner, outcome.loser} == {"alice", "bob"}
        assert verify_match_outcome(outcome)
        assert coordinator.verify_outcome("match_42", outcome.verification_hash)

        events = coordinator.drain_events()
        assert [e.kind for e in events] == [EventKind.SUBMITTED, EventKind.FULFILLED]

    def test_third_party_rederives_outcome(self, coordinator, clock, operator):
        request_id = coordinator.request_outcome("match_43", "matchmaker", {
            "player1": {"id": "carol", "score": 50, "confidence": 90},
            "player2": {"id": "dave", "score": 80, "confidence": 10},
        })
        clock.now += 5.0
        coordinator.tick()

        record = json.loads(json.dumps(coordinator.get_request_status(request_id).to_dict()))
        assert third_party_check(operator.public_key, record)

    def test_third_party_detects_rewritten_winner(self, coordinator, clock, operator):
        request_id = coordinator.request_outcome("match_44", "matchmaker", {
            "player1": {"id": "erin", "score": 10, "confidence": 10},
            "player2": {"id": "frank", "score": 10, "confidence": 10},
        })
        clock.now += 5.0
        coordinator.tick()

        record = coordinator.get_request_status(request_id).to_dict()
        winner, loser = record["result"]["winner"], record["result"]["loser"]
        record["result"]["winner"], record["result"]["loser"] = loser, winner
        assert not third_party_check(operator.public_key, record)

    def test_third_party_rejects_other_operator(self, coordinator, clock):
        request_id = coordinator.request_shuffle("match_45", "matchmaker", ["a", "b", "c"])
        clock.now += 5.0
        coordinator.tick()

        record = coordinator.get_request_status(request_id).to_dict()
        assert not third_party_check(generate_keypair().public_key, record)

    def test_all_request_types_verify(self, coordinator, clock, operator):
        ids = [
            coordinator.request_outcome("match_46", "matchmaker", {
                "player1": {"id": "p1", "score": 3, "confidence": 0},
                "player2": {"id": "p2", "score": 1, "confidence": 0},
            }),
            coordinator.request_random_event("match_46", "critical_moment", 40),
            coordinator.request_shuffle("match_46", "matchmaker", [1, 2, 3, 4]),
        ]
        clock.now += 5.0
        assert coordinator.tick() == 3

        for request_id in ids:
            record = coordinator.get_request_status(request_id).to_dict()
            assert third_party_check(operator.public_key, record)

    def test_favourite_wins_more_often(self, operator):
        """Across many matches the stronger side wins roughly p1 of the time."""
        params = OutcomeParams(
            player1={"id": "strong", "score": 300, "confidence": 0},
            player2={"id": "weak", "score": 100, "confidence": 0},
        )
        wins = 0
        trials = 400
        for i in range(trials):
            beta = prove(operator.secret_key, f"match_{i}".encode()).beta
            if resolve_match_outcome(f"match_{i}", params, beta, 0).winner == "strong":
                wins += 1

        assert abs(wins / trials - 0.75) < 0.1


# =============================================================================
# Tournament Seeding
# =============================================================================


class TestTournamentSeeding:
    """Verifiable weighted selection for bracket qualification."""

    def test_qualifiers_verifiable(self, operator):
        ratings = [1500.0, 1450.0, 1300.0, 1250.0, 1200.0, 1100.0, 1000.0, 900.0]
        result = select_winners_verifiably(operator, ratings, 4, b"spring_cup_qualifiers")

        assert len(set(result.winners)) == 4
        assert verify_selection(operator.public_key, result, ratings, 4, b"spring_cup_qualifiers")

    def test_published_proof_round_trip(self, operator):
        ratings = [5.0, 1.0, 1.0, 1.0]
        result = select_winners_verifiably(operator, ratings, 2, b"cup")

        published = json.loads(json.dumps(result.proof.to_dict()))
        result.proof = VRFProof.from_dict(published)
        assert verify_selection(operator.public_key, result, ratings, 2, b"cup")
