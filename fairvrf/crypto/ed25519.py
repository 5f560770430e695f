"""
Edwards25519 group arithmetic for the VRF.

Thin layer over libsodium (via PyNaCl bindings). Nothing here
reimplements field or group arithmetic; it only fixes encodings and
turns libsodium failures into a single exception type.

Encodings:
- Points: 32-byte compressed Edwards y-coordinate with sign bit
- Scalars: 32-byte little-endian integers modulo the subgroup order L

Design Notes:
-------------
libsodium's ``*_noclamp`` scalar multiplications refuse points outside
the prime-order subgroup and return an error when the result is the
identity. ``crypto_core_ed25519_add`` only requires curve membership,
which is what hash-to-curve needs before the cofactor is cleared.
"""

from typing import Optional

import nacl.bindings
import nacl.exceptions

# =============================================================================
# Constants
# =============================================================================

# Order of the prime-order subgroup generated by the base point
GROUP_ORDER = 2**252 + 27742317777372353535851937790883648493

# Curve cofactor (|E| = 8 * L)
COFACTOR = 8

POINT_SIZE = 32
SCALAR_SIZE = 32

# Standard base point G (y = 4/5, positive x)
BASE_POINT = bytes.fromhex(
    "5866666666666666666666666666666666666666666666666666666666666666"
)


class InvalidEncodingError(ValueError):
    """Raised when a point or scalar encoding is rejected by the group layer."""


# =============================================================================
# Scalars
# =============================================================================


def scalar_to_int(scalar: bytes) -> int:
    """Read a little-endian scalar encoding as an integer (no reduction)."""
    return int.from_bytes(scalar, byteorder="little")


def int_to_scalar(value: int) -> bytes:
    """Encode an integer as a reduced 32-byte little-endian scalar."""
    return (value % GROUP_ORDER).to_bytes(SCALAR_SIZE, byteorder="little")


def scalar_from_bytes(data: bytes) -> bytes:
    """
    Reduce an arbitrary byte string (little-endian) modulo L.

    Inputs up to 64 bytes go through libsodium's wide reduction; this is
    how 64-byte SHA-512 digests become scalars.
    """
    if len(data) > 64:
        raise InvalidEncodingError(f"scalar input too long: {len(data)} bytes")
    wide = data.ljust(64, b"\x00")
    try:
        return nacl.bindings.crypto_core_ed25519_scalar_reduce(wide)
    except nacl.exceptions.CryptoError as e:
        raise InvalidEncodingError(f"scalar reduction failed: {e}") from e


def is_canonical_scalar(scalar: bytes) -> bool:
    """True if ``scalar`` is a 32-byte encoding of an integer below L."""
    return len(scalar) == SCALAR_SIZE and scalar_to_int(scalar) < GROUP_ORDER


def scalar_add(a: bytes, b: bytes) -> bytes:
    """(a + b) mod L."""
    try:
        return nacl.bindings.crypto_core_ed25519_scalar_add(a, b)
    except nacl.exceptions.CryptoError as e:
        raise InvalidEncodingError(f"scalar addition failed: {e}") from e


def scalar_mul(a: bytes, b: bytes) -> bytes:
    """(a * b) mod L."""
    try:
        return nacl.bindings.crypto_core_ed25519_scalar_mul(a, b)
    except nacl.exceptions.CryptoError as e:
        raise InvalidEncodingError(f"scalar multiplication failed: {e}") from e


# =============================================================================
# Points
# =============================================================================


def is_valid_point(point: bytes) -> bool:
    """
    Check a point encoding.

    Valid means: 32 bytes, canonical, on the curve, in the prime-order
    subgroup and not of small order.
    """
    if len(point) != POINT_SIZE:
        return False
    try:
        return nacl.bindings.crypto_core_ed25519_is_valid_point(point)
    except nacl.exceptions.CryptoError:
        return False


def base_mul(scalar: bytes) -> bytes:
    """scalar * G. The scalar must be non-zero mod L."""
    try:
        return nacl.bindings.crypto_scalarmult_ed25519_base_noclamp(scalar)
    except nacl.exceptions.CryptoError as e:
        raise InvalidEncodingError(f"base multiplication failed: {e}") from e


def point_mul(scalar: bytes, point: bytes) -> bytes:
    """scalar * point. The point must be a valid subgroup point."""
    try:
        return nacl.bindings.crypto_scalarmult_ed25519_noclamp(scalar, point)
    except nacl.exceptions.CryptoError as e:
        raise InvalidEncodingError(f"point multiplication failed: {e}") from e


def point_add(p: bytes, q: bytes) -> bytes:
    """p + q."""
    try:
        return nacl.bindings.crypto_core_ed25519_add(p, q)
    except nacl.exceptions.CryptoError as e:
        raise InvalidEncodingError(f"point addition failed: {e}") from e


def point_sub(p: bytes, q: bytes) -> bytes:
    """p - q."""
    try:
        return nacl.bindings.crypto_core_ed25519_sub(p, q)
    except nacl.exceptions.CryptoError as e:
        raise InvalidEncodingError(f"point subtraction failed: {e}") from e


def clear_cofactor(candidate: bytes) -> Optional[bytes]:
    """
    Map a 32-byte string to 8 * P if it decodes to a curve point P.

    Returns None when the string is not a point, or when 8 * P is a
    small-order point (P was in the torsion subgroup).
    """
    if len(candidate) != POINT_SIZE:
        return None
    try:
        # Three doublings; add() only requires curve membership
        doubled = nacl.bindings.crypto_core_ed25519_add(candidate, candidate)
        doubled = nacl.bindings.crypto_core_ed25519_add(doubled, doubled)
        doubled = nacl.bindings.crypto_core_ed25519_add(doubled, doubled)
    except nacl.exceptions.CryptoError:
        return None

    if not is_valid_point(doubled):
        return None
    return doubled
