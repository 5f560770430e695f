"""
Cryptographic primitives for fairvrf.

This module provides:
- Hashing functions (SHA-256, SHA-512, Keccak-256)
- Constant-time byte comparison
- Hex helpers
- The ECVRF construction (re-exported from fairvrf.crypto.ecvrf)

Design Notes:
-------------
The VRF runs over edwards25519 with SHA-512 (suite
ECVRF-EDWARDS25519-SHA512-TAI). Group arithmetic is delegated to
libsodium through fairvrf.crypto.ed25519.

SHA-256 is used for audit digests (outcome verification hashes).
Keccak-256 derives randomness account references, matching the
address-style identifiers used by on-chain collaborators.
"""

import hashlib

from Crypto.Hash import keccak


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.

    Used for: outcome verification hashes, test seeds.
    """
    return hashlib.sha256(data).digest()


def sha512(data: bytes) -> bytes:
    """
    Compute SHA-512 hash.

    Used for: every hash inside the VRF suite, seed re-hashing.
    """
    return hashlib.sha512(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: randomness account reference derivation.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Comparison
# =============================================================================


def constant_time_equal(a: bytes, b: bytes) -> bool:
    """
    Compare two byte strings without data-dependent early exit.

    A length mismatch returns immediately; that reveals nothing about
    content. Otherwise every byte pair is XORed and ORed into an
    accumulator, and equality is decided only at the end.
    """
    if len(a) != len(b):
        return False

    result = 0
    for x, y in zip(a, b):
        result |= x ^ y

    return result == 0


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


# =============================================================================
# ECVRF
# =============================================================================

# Imported last: ecvrf depends on the hashing helpers above
from fairvrf.crypto.ecvrf import (
    VRFError,
    VRFKeyPair,
    VRFProof,
    VRFOutput,
    generate_keypair,
    keypair_from_secret,
    prove,
    verify,
    proof_to_hash,
    hash_to_curve,
    hash_points,
    hash_to_output,
    SUITE_ID,
    BETA_SIZE,
    CHALLENGE_SIZE,
    PROOF_SIZE,
)
