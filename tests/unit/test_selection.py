"""
Tests for weighted selection and shuffling.

Tests cover:
1. Randomness stream reads and re-hashing
2. Winner selection validity and determinism
3. Proportionality of single-winner draws
4. Degenerate weights and fallback order
5. Fisher-Yates shuffle
6. Verifiable selection
"""

import struct
from collections import Counter

import pytest

from fairvrf.crypto import generate_keypair, sha256, sha512
from fairvrf.core.selection import (
    RandomStream,
    select_winners,
    shuffle,
    select_winners_verifiably,
    verify_selection,
    encode_selection_message,
)


def seed_for(i: int) -> bytes:
    return sha256(i.to_bytes(4, "big"))


@pytest.fixture(scope="module")
def keypair():
    return generate_keypair()


# =============================================================================
# Randomness Stream
# =============================================================================


class TestRandomStream:
    """Tests for RandomStream."""

    def test_reads_big_endian_words(self):
        stream = RandomStream(b"\x00\x00\x00\x01\xff\xff\xff\xff")
        assert stream.next_uint32() == 1
        assert stream.next_uint32() == 0xFFFFFFFF

    def test_rehashes_when_exhausted(self):
        seed = b"\x01\x02\x03\x04"
        stream = RandomStream(seed)
        stream.next_uint32()
        (expected,) = struct.unpack(">I", sha512(seed)[:4])
        assert stream.next_uint32() == expected
        assert stream.rehash_count == 1

    def test_next_float_range(self):
        stream = RandomStream(seed_for(1))
        for _ in range(100):
            value = stream.next_float()
            assert 0 <= value < 1

    def test_next_below(self):
        stream = RandomStream(seed_for(2))
        assert stream.next_below(1) == 0
        for _ in range(100):
            assert 0 <= stream.next_below(7) < 7

    def test_next_below_rejects_bad_bound(self):
        stream = RandomStream(seed_for(3))
        with pytest.raises(ValueError):
            stream.next_below(0)
        with pytest.raises(ValueError):
            stream.next_below(2**32 + 1)

    def test_short_seed_rejected(self):
        with pytest.raises(ValueError):
            RandomStream(b"\x01\x02\x03")

    def test_caller_seed_untouched(self):
        seed = bytearray(b"\x05\x06\x07\x08")
        stream = RandomStream(seed)
        for _ in range(10):
            stream.next_uint32()
        assert seed == bytearray(b"\x05\x06\x07\x08")


# =============================================================================
# Winner Selection
# =============================================================================


class TestSelectWinners:
    """Tests for select_winners."""

    def test_returns_distinct_indices(self):
        winners = select_winners([1, 2, 3, 4, 5], 3, seed_for(1))
        assert len(winners) == 3
        assert len(set(winners)) == 3
        assert all(0 <= w < 5 for w in winners)

    def test_deterministic(self):
        weights = [5, 1, 9, 3]
        assert select_winners(weights, 2, seed_for(9)) == select_winners(weights, 2, seed_for(9))

    def test_seed_changes_result(self):
        weights = [1] * 20
        results = {tuple(select_winners(weights, 3, seed_for(i))) for i in range(10)}
        assert len(results) > 1

    def test_zero_winners(self):
        assert select_winners([1, 2], 0, seed_for(1)) == []

    def test_all_participants_win(self):
        winners = select_winners([3, 1, 2], 3, seed_for(4))
        assert sorted(winners) == [0, 1, 2]

    def test_too_many_winners_rejected(self):
        with pytest.raises(ValueError):
            select_winners([1, 2], 3, seed_for(1))

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            select_winners([1, -1, 2], 1, seed_for(1))

    def test_non_finite_weight_rejected(self):
        with pytest.raises(ValueError):
            select_winners([1, float("inf")], 1, seed_for(1))

    def test_overflowing_total_rejected(self):
        with pytest.raises(ValueError, match="finite total"):
            select_winners([1e308, 1e308], 1, seed_for(1))

    def test_short_seed_rejected(self):
        with pytest.raises(ValueError):
            select_winners([1, 2], 1, b"\x01")

    def test_zero_weight_never_selected(self):
        """Zero-weight participants lose while positive mass remains."""
        for i in range(200):
            winners = select_winners([0, 5, 0, 5], 2, seed_for(i))
            assert sorted(winners) == [1, 3]

    def test_all_zero_weights_fall_back_to_natural_order(self):
        assert select_winners([0, 0, 0, 0], 3, seed_for(1)) == [0, 1, 2]

    def test_fallback_after_positive_mass_exhausted(self):
        """Once the weighted participants are taken, the rest follow in order."""
        winners = select_winners([1, 0, 1, 0], 4, seed_for(5))
        assert sorted(winners[:2]) == [0, 2]
        assert winners[2:] == [1, 3]


class TestProportionality:
    """Single-winner frequencies track the weights."""

    def test_frequencies_within_tolerance(self):
        weights = [10, 20, 70]
        trials = 10000
        counts = Counter(select_winners(weights, 1, seed_for(i))[0] for i in range(trials))

        for index, weight in enumerate(weights):
            observed = counts[index] / trials
            assert abs(observed - weight / 100) < 0.03


# =============================================================================
# Shuffle
# =============================================================================


class TestShuffle:
    """Tests for the Fisher-Yates shuffle."""

    def test_is_permutation(self):
        items = list(range(20))
        assert sorted(shuffle(items, seed_for(1))) == items

    def test_deterministic(self):
        items = ["a", "b", "c", "d", "e"]
        assert shuffle(items, seed_for(2)) == shuffle(items, seed_for(2))

    def test_input_untouched(self):
        items = [1, 2, 3, 4]
        shuffle(items, seed_for(3))
        assert items == [1, 2, 3, 4]

    def test_trivial_inputs(self):
        assert shuffle([], seed_for(1)) == []
        assert shuffle(["only"], seed_for(1)) == ["only"]

    def test_orders_vary_with_seed(self):
        items = list(range(10))
        orders = {tuple(shuffle(items, seed_for(i))) for i in range(20)}
        assert len(orders) > 1


# =============================================================================
# Verifiable Selection
# =============================================================================


class TestVerifiableSelection:
    """Tests for select_winners_verifiably / verify_selection."""

    WEIGHTS = [10.0, 20.0, 30.0, 40.0]

    def test_round_trip(self, keypair):
        result = select_winners_verifiably(keypair, self.WEIGHTS, 2, b"tournament_1")
        assert len(result.winners) == 2
        assert result.selection_time_ms >= 0
        assert verify_selection(keypair.public_key, result, self.WEIGHTS, 2, b"tournament_1")

    def test_tampered_winners_rejected(self, keypair):
        result = select_winners_verifiably(keypair, self.WEIGHTS, 2, b"t")
        swapped = [i for i in range(4) if i not in result.winners][:2]
        result.winners = swapped
        assert not verify_selection(keypair.public_key, result, self.WEIGHTS, 2, b"t")

    def test_wrong_message_rejected(self, keypair):
        result = select_winners_verifiably(keypair, self.WEIGHTS, 2, b"t")
        assert not verify_selection(keypair.public_key, result, self.WEIGHTS, 2, b"other")

    def test_wrong_key_rejected(self, keypair):
        result = select_winners_verifiably(keypair, self.WEIGHTS, 2, b"t")
        assert not verify_selection(generate_keypair().public_key, result, self.WEIGHTS, 2, b"t")

    def test_winner_count_is_bound(self, keypair):
        result = select_winners_verifiably(keypair, self.WEIGHTS, 2, b"t")
        assert not verify_selection(keypair.public_key, result, self.WEIGHTS, 1, b"t")

    def test_message_encoding(self):
        encoded = encode_selection_message(4, 2, b"xy")
        assert encoded == struct.pack(">III", 4, 2, 2) + b"xy"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
