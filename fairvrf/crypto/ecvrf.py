"""
ECVRF - Verifiable random function over edwards25519 with SHA-512.

A prover holding a secret key turns an input message ``alpha`` into
32 bytes of pseudorandom output ``beta`` plus a proof ``(gamma, c, s)``.
Anyone holding the public key can check the proof and recompute
``beta`` without trusting the prover.

Construction (suite 0x03, ECVRF-EDWARDS25519-SHA512-TAI):
1. H = hash_to_curve(alpha)                 (try-and-increment, cofactor cleared)
2. gamma = x * H                            (x = secret scalar)
3. k = SHA-512(suite || 0x05 || sk || H || 0x00) mod L   (deterministic nonce)
4. c = SHA-512(suite || 0x02 || H || gamma || k*G || k*H || 0x00)[:16]
5. s = (k + c * x) mod L
6. beta = SHA-512(suite || 0x03 || gamma || 0x00)[:32]

Verification recomputes u = s*G - c*Y and v = s*H - c*gamma and accepts
iff the challenge hash over (H, gamma, u, v) equals c.

Because the nonce is derived from (sk, H), proving is deterministic:
the same key and alpha always give the same proof and output.
"""

import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from fairvrf.crypto import sha512, constant_time_equal
from fairvrf.crypto import ed25519
from fairvrf.crypto.ed25519 import InvalidEncodingError
from fairvrf.utils.logger import get_logger
from fairvrf.utils.validation import (
    validate_alpha,
    validate_proof_fields,
    validate_public_key,
    validate_secret_key,
)

logger = get_logger("ecvrf")


# =============================================================================
# Constants
# =============================================================================

SUITE_ID = 0x03

# Sub-domain separators inside the suite
DOMAIN_HASH_TO_CURVE = 0x01
DOMAIN_CHALLENGE = 0x02
DOMAIN_OUTPUT = 0x03
DOMAIN_NONCE = 0x05
HASH_TRAILER = 0x00

SECRET_KEY_SIZE = 32
CHALLENGE_SIZE = 16
BETA_SIZE = 32
PROOF_SIZE = ed25519.POINT_SIZE + CHALLENGE_SIZE + ed25519.SCALAR_SIZE  # 80

# Counter range for try-and-increment
HASH_TO_CURVE_MAX_TRIES = 256

# Latency budget for a single prove/verify call
DEFAULT_LATENCY_TARGET_MS = 10.0

# Output reported by a failed verification
ZERO_BETA = bytes(BETA_SIZE)


class VRFError(Exception):
    """Raised when a VRF proof cannot be constructed or a key is malformed."""


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class VRFKeyPair:
    """
    A VRF keypair.

    Attributes:
        secret_key: 32 random bytes; the secret scalar is this value mod L
        public_key: 32-byte compressed point, secret scalar * G
    """
    secret_key: bytes = field(repr=False)
    public_key: bytes

    @property
    def public_key_hex(self) -> str:
        """Return public key as hex string."""
        return self.public_key.hex()


@dataclass(frozen=True)
class VRFProof:
    """
    Proof that ``gamma`` was computed from the prover's key and ``alpha``.

    Only meaningful together with the alpha and public key used to
    create it.
    """
    gamma: bytes   # 32-byte point, x * H
    c: bytes       # 16-byte challenge
    s: bytes       # 32-byte response scalar
    alpha: bytes = b""

    def to_bytes(self) -> bytes:
        """Serialize (gamma || c || s), 80 bytes. Alpha is not included."""
        return self.gamma + self.c + self.s

    @classmethod
    def from_bytes(cls, data: bytes, alpha: bytes = b"") -> "VRFProof":
        """Deserialize from (gamma || c || s)."""
        if len(data) != PROOF_SIZE:
            raise ValueError(f"Invalid proof length: {len(data)}, expected {PROOF_SIZE}")
        return cls(
            gamma=bytes(data[:32]),
            c=bytes(data[32:48]),
            s=bytes(data[48:80]),
            alpha=bytes(alpha),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "gamma": self.gamma.hex(),
            "c": self.c.hex(),
            "s": self.s.hex(),
            "alpha": self.alpha.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VRFProof":
        """Create from dictionary."""
        return cls(
            gamma=bytes.fromhex(data["gamma"]),
            c=bytes.fromhex(data["c"]),
            s=bytes.fromhex(data["s"]),
            alpha=bytes.fromhex(data.get("alpha", "")),
        )


@dataclass(frozen=True)
class VRFOutput:
    """
    Result of proving or verifying.

    ``is_valid`` is always set; on any failure it is False and ``beta``
    is the all-zero sentinel.
    """
    beta: bytes
    proof: VRFProof
    is_valid: bool

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "beta": self.beta.hex(),
            "proof": self.proof.to_dict(),
            "is_valid": self.is_valid,
        }


# =============================================================================
# Suite Hashes
# =============================================================================


def _suite_hash(domain: int, *parts: bytes) -> bytes:
    """SHA-512(suite || domain || parts... || 0x00)."""
    return sha512(bytes([SUITE_ID, domain]) + b"".join(parts) + bytes([HASH_TRAILER]))


def hash_to_curve(alpha: bytes) -> bytes:
    """
    Map an arbitrary message to a point of the prime-order subgroup.

    Try-and-increment: hash (alpha, ctr) for ctr = 0, 1, ... and keep the
    first digest prefix that decodes to a curve point, multiplied by the
    cofactor. Each attempt succeeds with probability close to 1/2.

    Raises:
        VRFError: if no counter in [0, 256) produced a point
    """
    alpha = bytes(alpha)
    for ctr in range(HASH_TO_CURVE_MAX_TRIES):
        candidate = _suite_hash(DOMAIN_HASH_TO_CURVE, alpha, bytes([ctr]))[:ed25519.POINT_SIZE]
        point = ed25519.clear_cofactor(candidate)
        if point is not None:
            return point

    raise VRFError("hash_to_curve exhausted its counter range")


def hash_points(*points: bytes) -> bytes:
    """Challenge hash over a sequence of encoded points, truncated to 16 bytes."""
    return _suite_hash(DOMAIN_CHALLENGE, *points)[:CHALLENGE_SIZE]


def hash_to_output(gamma: bytes) -> bytes:
    """Derive beta from gamma, truncated to 32 bytes."""
    return _suite_hash(DOMAIN_OUTPUT, bytes(gamma))[:BETA_SIZE]


def proof_to_hash(proof: VRFProof) -> bytes:
    """Beta for a proof. Does not verify the proof."""
    return hash_to_output(proof.gamma)


def _nonce(secret_key: bytes, h: bytes) -> bytes:
    """Deterministic nonce scalar bound to the key and the hashed input."""
    return ed25519.scalar_from_bytes(_suite_hash(DOMAIN_NONCE, secret_key, h))


def _challenge_scalar(c: bytes) -> bytes:
    """Widen the 16-byte challenge to a 32-byte scalar encoding."""
    return c.ljust(ed25519.SCALAR_SIZE, b"\x00")


def _recompute_challenge(public_key: bytes, h: bytes, gamma: bytes, c: bytes, s: bytes) -> bytes:
    """c' = hash_points(H, gamma, s*G - c*Y, s*H - c*gamma)."""
    c_scalar = _challenge_scalar(c)
    u = ed25519.point_sub(ed25519.base_mul(s), ed25519.point_mul(c_scalar, public_key))
    v = ed25519.point_sub(ed25519.point_mul(s, h), ed25519.point_mul(c_scalar, gamma))
    return hash_points(h, gamma, u, v)


def _check_latency(operation: str, start: float, target_ms: float) -> None:
    elapsed_ms = (time.perf_counter() - start) * 1000
    if elapsed_ms > target_ms:
        logger.warning(
            f"VRF {operation} exceeded latency target: {elapsed_ms:.2f}ms > {target_ms:.2f}ms"
        )


# =============================================================================
# Keys
# =============================================================================


def _secret_scalar(secret_key: bytes) -> bytes:
    """Secret key bytes read little-endian and reduced mod L."""
    scalar = ed25519.scalar_from_bytes(secret_key)
    if ed25519.scalar_to_int(scalar) == 0:
        raise VRFError("secret key reduces to zero")
    return scalar


def keypair_from_secret(secret_key: bytes) -> VRFKeyPair:
    """
    Rebuild a keypair from its 32-byte secret key.

    Raises:
        VRFError: if the key is malformed
    """
    valid, err = validate_secret_key(secret_key)
    if not valid:
        raise VRFError(err)

    secret_key = bytes(secret_key)
    try:
        public_key = ed25519.base_mul(_secret_scalar(secret_key))
    except InvalidEncodingError as e:
        raise VRFError(f"public key derivation failed: {e}") from e

    return VRFKeyPair(secret_key=secret_key, public_key=public_key)


def generate_keypair() -> VRFKeyPair:
    """
    Generate a new random keypair.

    Uses the operating system CSPRNG. A failure of the randomness
    source propagates; there is no fallback.
    """
    while True:
        secret_key = secrets.token_bytes(SECRET_KEY_SIZE)
        # Zero mod L has probability ~2^-252; redraw rather than fail
        if ed25519.scalar_to_int(ed25519.scalar_from_bytes(secret_key)) != 0:
            break

    return keypair_from_secret(secret_key)


# =============================================================================
# Prove / Verify
# =============================================================================


def prove(
    secret_key: bytes,
    alpha: bytes,
    latency_target_ms: float = DEFAULT_LATENCY_TARGET_MS,
) -> VRFOutput:
    """
    Produce beta and a proof for ``alpha``.

    Args:
        secret_key: 32-byte secret key
        alpha: Input message
        latency_target_ms: Budget; a breach is logged, never raised

    Returns:
        VRFOutput with is_valid=True

    Raises:
        VRFError: on malformed inputs or any construction failure
    """
    start = time.perf_counter()

    valid, err = validate_secret_key(secret_key)
    if not valid:
        raise VRFError(err)
    valid, err = validate_alpha(alpha)
    if not valid:
        raise VRFError(err)

    secret_key = bytes(secret_key)
    alpha = bytes(alpha)

    try:
        x = _secret_scalar(secret_key)
        public_key = ed25519.base_mul(x)

        h = hash_to_curve(alpha)
        gamma = ed25519.point_mul(x, h)

        k = _nonce(secret_key, h)
        k_g = ed25519.base_mul(k)
        k_h = ed25519.point_mul(k, h)

        c = hash_points(h, gamma, k_g, k_h)
        s = ed25519.scalar_add(k, ed25519.scalar_mul(_challenge_scalar(c), x))

        # Self-check before reporting the output as valid
        if not constant_time_equal(c, _recompute_challenge(public_key, h, gamma, c, s)):
            raise VRFError("constructed proof failed its consistency check")
    except InvalidEncodingError as e:
        raise VRFError(f"VRF proof generation failed: {e}") from e

    output = VRFOutput(
        beta=hash_to_output(gamma),
        proof=VRFProof(gamma=gamma, c=c, s=s, alpha=alpha),
        is_valid=True,
    )

    _check_latency("prove", start, latency_target_ms)
    return output


def _verify_proof(public_key: bytes, proof: VRFProof, alpha: bytes) -> bool:
    valid, err = validate_public_key(public_key)
    if not valid:
        logger.debug(f"Rejecting proof: {err}")
        return False
    valid, err = validate_proof_fields(proof.gamma, proof.c, proof.s)
    if not valid:
        logger.debug(f"Rejecting proof: {err}")
        return False
    valid, err = validate_alpha(alpha)
    if not valid:
        logger.debug(f"Rejecting proof: {err}")
        return False

    public_key = bytes(public_key)
    gamma = bytes(proof.gamma)
    c = bytes(proof.c)
    s = bytes(proof.s)

    if not ed25519.is_valid_point(public_key) or not ed25519.is_valid_point(gamma):
        return False

    # Non-canonical s would make proofs malleable
    if not ed25519.is_canonical_scalar(s):
        return False

    h = hash_to_curve(bytes(alpha))
    return constant_time_equal(c, _recompute_challenge(public_key, h, gamma, c, s))


def verify(
    public_key: bytes,
    proof: VRFProof,
    alpha: bytes,
    latency_target_ms: float = DEFAULT_LATENCY_TARGET_MS,
) -> VRFOutput:
    """
    Verify a proof and recover beta.

    Never raises: malformed encodings, out-of-range scalars and internal
    faults all give ``is_valid=False`` with an all-zero beta. A False
    answer is final for this (public_key, proof, alpha) triple.
    """
    start = time.perf_counter()

    try:
        is_valid = _verify_proof(public_key, proof, alpha)
    except Exception as e:
        logger.debug(f"VRF verification fault treated as invalid: {e}")
        is_valid = False

    beta = hash_to_output(proof.gamma) if is_valid else ZERO_BETA

    _check_latency("verify", start, latency_target_ms)
    return VRFOutput(beta=beta, proof=proof, is_valid=is_valid)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "VRFError",
    "VRFKeyPair",
    "VRFProof",
    "VRFOutput",
    "generate_keypair",
    "keypair_from_secret",
    "prove",
    "verify",
    "proof_to_hash",
    "hash_to_curve",
    "hash_points",
    "hash_to_output",
    "SUITE_ID",
    "BETA_SIZE",
    "CHALLENGE_SIZE",
    "PROOF_SIZE",
    "ZERO_BETA",
]
