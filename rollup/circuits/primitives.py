"""
Cryptographic Primitive Interface

The transitions consume four primitives and treat them as external
collaborators:

    commit(inputs, generator_index) -> field
    scalar_mul_fixed_base(scalar)   -> point
    verify_signature(pubkey, signature, message) -> bool
    check_merkle_membership(root, leaf, index, path) -> bool

PrimitiveBackend is the seam; ReferenceBackend binds it to SHA-256
(commitments), Ed25519 from `cryptography` (key derivation and signatures) and
rollup.merkle (membership). Ed25519 public keys are exposed as affine Edwards
coordinates so that ownership is always a point compared for equality.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from rollup import merkle
from rollup.circuits.constants import DATA_TREE_DEPTH, FIELD_MODULUS, SIGNATURE_LENGTH


# =============================================================================
# CURVE
# =============================================================================

# Curve25519 base field and twisted Edwards constant d = -121665/121666
_P = 2 ** 255 - 19
_D = (-121665 * pow(121666, _P - 2, _P)) % _P
_SQRT_M1 = pow(2, (_P - 1) // 4, _P)
_UINT256 = 1 << 256


@dataclass(frozen=True)
class CurvePoint:
    """
    Affine point (x, y).

    (0, 0) is not on the curve and is used as the "no point" marker.
    """
    x: int
    y: int

    @classmethod
    def zero(cls) -> 'CurvePoint':
        return cls(0, 0)

    def is_zero(self) -> bool:
        return self.x == 0 and self.y == 0

    def has_canonical_coordinates(self) -> bool:
        return is_curve_coordinate(self.x) and is_curve_coordinate(self.y)

    def is_on_curve(self) -> bool:
        """Check -x^2 + y^2 = 1 + d*x^2*y^2 over GF(2^255 - 19)."""
        if not self.has_canonical_coordinates():
            return False
        x2 = self.x * self.x % _P
        y2 = self.y * self.y % _P
        return (y2 - x2 - 1 - _D * x2 * y2) % _P == 0

    def encode(self) -> bytes:
        """RFC 8032 encoding: little-endian y with the parity of x in the top bit."""
        return (self.y | ((self.x & 1) << 255)).to_bytes(32, 'little')

    @classmethod
    def decode(cls, data: bytes) -> 'CurvePoint':
        """Recover the affine point from an RFC 8032 encoded public key."""
        if len(data) != 32:
            raise ValueError("Encoded point must be 32 bytes")
        n = int.from_bytes(data, 'little')
        sign = n >> 255
        y = n & ((1 << 255) - 1)
        if y >= _P:
            raise ValueError("Point y coordinate out of range")

        u = (y * y - 1) % _P
        v = (_D * y * y + 1) % _P
        x2 = u * pow(v, _P - 2, _P) % _P
        x = pow(x2, (_P + 3) // 8, _P)
        if (x * x - x2) % _P != 0:
            x = x * _SQRT_M1 % _P
        if (x * x - x2) % _P != 0:
            raise ValueError("Encoded point is not on the curve")
        if x == 0 and sign:
            raise ValueError("Invalid encoding of x = 0")
        if x & 1 != sign:
            x = _P - x
        return cls(x, y)


# =============================================================================
# COMMITMENT HASH
# =============================================================================

def is_curve_coordinate(value: int) -> bool:
    """True iff value is a canonical GF(2^255 - 19) coordinate."""
    if not isinstance(value, int) or isinstance(value, bool):
        return False
    return 0 <= value < _P


def _encode_input(value: int) -> bytes:
    # Fixed 32-byte width keeps the encoding injective for inputs below 2^256.
    # The circuits bound every committed witness field (bit width, field
    # element or curve coordinate) before it reaches here.
    return (int(value) % _UINT256).to_bytes(32, 'big')


def commit(inputs: Sequence[int], generator_index: int = 0) -> int:
    """Deterministic domain-separated hash of a sequence of integers."""
    hasher = hashlib.sha256()
    hasher.update(b"rollup.commit")
    hasher.update(int(generator_index).to_bytes(4, 'big'))
    for value in inputs:
        hasher.update(_encode_input(value))
    return int.from_bytes(hasher.digest(), 'big') % FIELD_MODULUS


def message_bytes(message: int) -> bytes:
    """Signing input for a field-element message."""
    return (int(message) % FIELD_MODULUS).to_bytes(32, 'big')


# =============================================================================
# KEYS AND SIGNATURES
# =============================================================================

def random_scalar() -> int:
    """Fresh private scalar for tests and wallet-side fixture builders."""
    return int.from_bytes(secrets.token_bytes(32), 'big') % FIELD_MODULUS


def _private_key(scalar: int) -> Ed25519PrivateKey:
    if not 0 <= scalar < _UINT256:
        raise ValueError("Private scalar must fit in 32 bytes")
    return Ed25519PrivateKey.from_private_bytes(scalar.to_bytes(32, 'big'))


def scalar_mul_fixed_base(scalar: int) -> CurvePoint:
    """Derive the public point for a private scalar."""
    raw = _private_key(scalar).public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return CurvePoint.decode(raw)


def sign(private_scalar: int, message: int) -> bytes:
    """Sign a field-element message. Returns a 64-byte signature."""
    return _private_key(private_scalar).sign(message_bytes(message))


def verify_signature(public_key: CurvePoint, signature: bytes, message: int) -> bool:
    """Verify a 64-byte signature. Malformed keys or signatures verify as False."""
    if not isinstance(signature, (bytes, bytearray)) or len(signature) != SIGNATURE_LENGTH:
        return False
    if not public_key.is_on_curve():
        return False
    try:
        key = Ed25519PublicKey.from_public_bytes(public_key.encode())
        key.verify(bytes(signature), message_bytes(message))
    except (InvalidSignature, ValueError):
        return False
    return True


def check_merkle_membership(root: int, leaf: int, index: int, path: Sequence[int]) -> bool:
    return merkle.check_membership(root, leaf, index, path)


# =============================================================================
# BACKEND SEAM
# =============================================================================

class PrimitiveBackend(Protocol):
    """Protocol for the primitives a transition consumes."""

    def commit(self, inputs: Sequence[int], generator_index: int) -> int:
        ...

    def scalar_mul_fixed_base(self, scalar: int) -> CurvePoint:
        ...

    def verify_signature(self, public_key: CurvePoint, signature: bytes, message: int) -> bool:
        ...

    def check_merkle_membership(self, root: int, leaf: int, index: int, path: Sequence[int]) -> bool:
        ...


class ReferenceBackend:
    """SHA-256 commitments, Ed25519 keys and signatures, SHA-256 Merkle paths."""

    def commit(self, inputs: Sequence[int], generator_index: int) -> int:
        return commit(inputs, generator_index)

    def scalar_mul_fixed_base(self, scalar: int) -> CurvePoint:
        return scalar_mul_fixed_base(scalar)

    def verify_signature(self, public_key: CurvePoint, signature: bytes, message: int) -> bool:
        return verify_signature(public_key, signature, message)

    def check_merkle_membership(self, root: int, leaf: int, index: int, path: Sequence[int]) -> bool:
        return check_merkle_membership(root, leaf, index, path)


_default_backend: Optional[ReferenceBackend] = None


def default_backend() -> PrimitiveBackend:
    global _default_backend
    if _default_backend is None:
        _default_backend = ReferenceBackend()
    return _default_backend


def note_in_data_tree(backend: PrimitiveBackend, root: int, commitment: int,
                      index: int, path: Sequence[int]) -> bool:
    """Membership of a note commitment in the data tree (fixed depth)."""
    if len(path) != DATA_TREE_DEPTH:
        return False
    return backend.check_merkle_membership(root, commitment, index, path)
