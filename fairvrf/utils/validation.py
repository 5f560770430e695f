"""
Input Validation - Boundary checks for VRF and request inputs.

Every validator returns ``(is_valid, error_message)``. Callers decide
whether a failure is an exception (proving, selection) or a plain
negative answer (verification).

Protects against:
- Wrong-length key, point and scalar encodings
- Non-numeric or negative weights
- Out-of-range counts and overflowing weight totals
- Oversized identifiers
"""

import math
import re
from typing import Any, Optional, Sequence, Tuple

# =============================================================================
# Constants
# =============================================================================

# Encoding sizes (kept local so this module has no crypto imports)
SECRET_KEY_SIZE = 32
PUBLIC_KEY_SIZE = 32
GAMMA_SIZE = 32
CHALLENGE_SIZE = 16
RESPONSE_SIZE = 32
MIN_SEED_SIZE = 4

MAX_ALPHA_SIZE = 1 << 20  # 1 MiB
MAX_ID_LENGTH = 256
MAX_PARTICIPANTS = 1 << 16

ID_PATTERN = r"^[A-Za-z0-9_.:\-]+$"


# =============================================================================
# Primitive Validators
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    if min_length is not None and len(data) < min_length:
        return False, f"{name} must be at least {min_length} bytes, got {len(data)}"

    if max_length is not None and len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_secret_key(secret_key: Any) -> Tuple[bool, str]:
    """Validate a VRF secret key encoding."""
    return validate_bytes(secret_key, "secret_key", expected_length=SECRET_KEY_SIZE)


def validate_public_key(public_key: Any) -> Tuple[bool, str]:
    """Validate a VRF public key encoding (length only, not curve membership)."""
    return validate_bytes(public_key, "public_key", expected_length=PUBLIC_KEY_SIZE)


def validate_alpha(alpha: Any) -> Tuple[bool, str]:
    """Validate a VRF input message."""
    return validate_bytes(alpha, "alpha", max_length=MAX_ALPHA_SIZE)


def validate_seed(seed: Any) -> Tuple[bool, str]:
    """Validate a randomness seed (VRF beta or longer)."""
    return validate_bytes(seed, "seed", min_length=MIN_SEED_SIZE)


def validate_number(
    value: Any,
    name: str,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
) -> Tuple[bool, str]:
    """
    Validate a finite real number within optional bounds.

    Booleans are rejected even though they are ints.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, f"{name} must be a number, got {type(value).__name__}"

    if not math.isfinite(value):
        return False, f"{name} must be finite, got {value}"

    if min_val is not None and value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if max_val is not None and value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_string(
    value: Any,
    name: str,
    max_length: int = MAX_ID_LENGTH,
    pattern: Optional[str] = None,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        pattern: Optional regex pattern

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if not value:
        return False, f"{name} must not be empty"

    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"

    if pattern and not re.match(pattern, value):
        return False, f"{name} does not match required pattern"

    return True, ""


def validate_identifier(value: Any, name: str) -> Tuple[bool, str]:
    """Validate a match, requester or request identifier."""
    return validate_string(value, name, MAX_ID_LENGTH, ID_PATTERN)


def validate_hex_string(value: Any, name: str, expected_bytes: Optional[int] = None) -> Tuple[bool, str]:
    """
    Validate a hex string (with or without 0x prefix).

    Args:
        value: Value to validate
        name: Field name
        expected_bytes: Expected byte length when decoded

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    hex_str = value[2:] if value.startswith(("0x", "0X")) else value

    if len(hex_str) % 2 != 0:
        return False, f"{name} has odd length, invalid hex"

    try:
        bytes.fromhex(hex_str)
    except ValueError:
        return False, f"{name} contains invalid hex characters"

    if expected_bytes is not None:
        actual_bytes = len(hex_str) // 2
        if actual_bytes != expected_bytes:
            return False, f"{name} must be {expected_bytes} bytes, got {actual_bytes}"

    return True, ""


# =============================================================================
# Composite Validators
# =============================================================================


def validate_proof_fields(gamma: Any, c: Any, s: Any) -> Tuple[bool, str]:
    """Validate the encodings of a VRF proof's (gamma, c, s)."""
    for value, name, size in (
        (gamma, "gamma", GAMMA_SIZE),
        (c, "c", CHALLENGE_SIZE),
        (s, "s", RESPONSE_SIZE),
    ):
        valid, err = validate_bytes(value, name, expected_length=size)
        if not valid:
            return False, err

    return True, ""


def validate_weights(weights: Any) -> Tuple[bool, str]:
    """
    Validate a participant weight vector.

    Weights must be finite and non-negative; an all-zero vector is
    allowed (selection then falls back to natural order).
    """
    if not isinstance(weights, Sequence) or isinstance(weights, (str, bytes)):
        return False, f"weights must be a sequence, got {type(weights).__name__}"

    if len(weights) > MAX_PARTICIPANTS:
        return False, f"weights exceeds max length {MAX_PARTICIPANTS}, got {len(weights)}"

    for i, weight in enumerate(weights):
        valid, err = validate_number(weight, f"weights[{i}]", min_val=0)
        if not valid:
            return False, err

    # Finite weights can still overflow to inf when summed
    if not math.isfinite(sum(float(w) for w in weights)):
        return False, "weights must sum to a finite total"

    return True, ""


def validate_winner_count(winner_count: Any, participant_count: int) -> Tuple[bool, str]:
    """Validate a requested number of winners against the pool size."""
    if isinstance(winner_count, bool) or not isinstance(winner_count, int):
        return False, f"winner_count must be int, got {type(winner_count).__name__}"

    if winner_count < 0:
        return False, f"winner_count must be >= 0, got {winner_count}"

    if winner_count > participant_count:
        return False, (
            f"winner_count {winner_count} exceeds participant count {participant_count}"
        )

    return True, ""


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_bytes",
    "validate_secret_key",
    "validate_public_key",
    "validate_alpha",
    "validate_seed",
    "validate_number",
    "validate_string",
    "validate_identifier",
    "validate_hex_string",
    "validate_proof_fields",
    "validate_weights",
    "validate_winner_count",
    "SECRET_KEY_SIZE",
    "PUBLIC_KEY_SIZE",
    "CHALLENGE_SIZE",
    "MAX_ALPHA_SIZE",
]
