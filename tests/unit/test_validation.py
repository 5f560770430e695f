"""
Tests for input validation helpers.
"""

import pytest

from fairvrf.utils.validation import (
    validate_bytes,
    validate_secret_key,
    validate_public_key,
    validate_alpha,
    validate_seed,
    validate_number,
    validate_identifier,
    validate_hex_string,
    validate_proof_fields,
    validate_weights,
    validate_winner_count,
    MAX_ALPHA_SIZE,
)


class TestBytesValidation:
    """Tests for byte-string validators."""

    def test_exact_length(self):
        assert validate_bytes(b"\x00" * 32, "x", expected_length=32) == (True, "")
        valid, err = validate_bytes(b"\x00" * 31, "x", expected_length=32)
        assert not valid
        assert "32 bytes" in err

    def test_type_checked(self):
        valid, err = validate_bytes("not bytes", "x")
        assert not valid
        assert "must be bytes" in err

    def test_bytearray_accepted(self):
        assert validate_bytes(bytearray(4), "x", min_length=4)[0]

    def test_keys(self):
        assert validate_secret_key(bytes(32))[0]
        assert not validate_secret_key(bytes(33))[0]
        assert validate_public_key(bytes(32))[0]
        assert not validate_public_key(None)[0]

    def test_alpha_size_limit(self):
        assert validate_alpha(b"")[0]
        assert not validate_alpha(bytes(MAX_ALPHA_SIZE + 1))[0]

    def test_seed_minimum(self):
        assert validate_seed(bytes(4))[0]
        assert not validate_seed(bytes(3))[0]

    def test_proof_fields(self):
        assert validate_proof_fields(bytes(32), bytes(16), bytes(32))[0]
        valid, err = validate_proof_fields(bytes(32), bytes(32), bytes(32))
        assert not valid
        assert err.startswith("c ")


class TestNumberValidation:
    """Tests for numeric validators."""

    def test_bounds(self):
        assert validate_number(5, "n", 0, 10)[0]
        assert not validate_number(-1, "n", 0, 10)[0]
        assert not validate_number(11, "n", 0, 10)[0]

    def test_rejects_bool_and_non_finite(self):
        assert not validate_number(True, "n")[0]
        assert not validate_number(float("nan"), "n")[0]
        assert not validate_number(float("inf"), "n")[0]
        assert not validate_number("5", "n")[0]


class TestStringValidation:
    """Tests for identifier and hex validators."""

    @pytest.mark.parametrize("value", ["match_1", "a.b:c-d", "X" * 256])
    def test_valid_identifiers(self, value):
        assert validate_identifier(value, "id")[0]

    @pytest.mark.parametrize("value", ["", "with space", "semi;colon", "X" * 257, 42])
    def test_invalid_identifiers(self, value):
        assert not validate_identifier(value, "id")[0]

    def test_hex_string(self):
        assert validate_hex_string("0xdeadbeef", "h", expected_bytes=4)[0]
        assert validate_hex_string("deadbeef", "h")[0]
        assert not validate_hex_string("0xabc", "h")[0]
        assert not validate_hex_string("zz", "h")[0]
        assert not validate_hex_string("abcd", "h", expected_bytes=4)[0]


class TestSelectionValidation:
    """Tests for weight vectors and winner counts."""

    def test_weights(self):
        assert validate_weights([0, 1.5, 3])[0]
        assert validate_weights([])[0]
        assert not validate_weights([1, -2])[0]
        assert not validate_weights("123")[0]
        assert not validate_weights([1, None])[0]
        assert not validate_weights([1e308, 1e308])[0]

    def test_winner_count(self):
        assert validate_winner_count(0, 3)[0]
        assert validate_winner_count(3, 3)[0]
        assert not validate_winner_count(4, 3)[0]
        assert not validate_winner_count(-1, 3)[0]
        assert not validate_winner_count(1.0, 3)[0]
        assert not validate_winner_count(True, 3)[0]
