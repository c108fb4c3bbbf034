"""
Field Elements

Every value a transition commits to is an element of the BN254 scalar field.
Transitions compute with plain integers; FieldElement is the wire form used
when a public vector is handed to the proving backend or the aggregator.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from rollup.circuits.constants import FIELD_MODULUS


@dataclass(frozen=True)
class FieldElement:
    """
    Element of the BN254 scalar field.

    Construction rejects out-of-range integers; use from_int() to reduce.
    """
    value: int

    def __post_init__(self):
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise TypeError("Field element must wrap an int")
        if not 0 <= self.value < FIELD_MODULUS:
            raise ValueError("Field element out of range")

    @classmethod
    def zero(cls) -> 'FieldElement':
        return cls(0)

    @classmethod
    def one(cls) -> 'FieldElement':
        return cls(1)

    @classmethod
    def random(cls) -> 'FieldElement':
        return cls(int.from_bytes(secrets.token_bytes(32), 'big') % FIELD_MODULUS)

    @classmethod
    def from_int(cls, n: int) -> 'FieldElement':
        """Create a field element from an integer, reducing modulo FIELD_MODULUS."""
        return cls(int(n) % FIELD_MODULUS)

    @classmethod
    def from_hex(cls, value: str) -> 'FieldElement':
        return cls(int(value, 16))

    def __int__(self) -> int:
        return self.value

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(32, 'big')

    def hex(self) -> str:
        return format(self.value, '064x')

    def __add__(self, other: 'FieldElement') -> 'FieldElement':
        return FieldElement((self.value + other.value) % FIELD_MODULUS)

    def __sub__(self, other: 'FieldElement') -> 'FieldElement':
        return FieldElement((self.value - other.value) % FIELD_MODULUS)

    def __mul__(self, other: 'FieldElement') -> 'FieldElement':
        return FieldElement((self.value * other.value) % FIELD_MODULUS)

    def __neg__(self) -> 'FieldElement':
        return FieldElement((FIELD_MODULUS - self.value) % FIELD_MODULUS)

    def inverse(self) -> 'FieldElement':
        """Compute modular multiplicative inverse using Fermat's little theorem."""
        if self.value == 0:
            raise ZeroDivisionError("Cannot invert zero field element")
        return FieldElement(pow(self.value, FIELD_MODULUS - 2, FIELD_MODULUS))

    def __truediv__(self, other: 'FieldElement') -> 'FieldElement':
        return self * other.inverse()


def fits_in_bits(value: int, bits: int) -> bool:
    """True iff value is a non-negative integer below 2**bits."""
    if not isinstance(value, int) or isinstance(value, bool):
        return False
    return 0 <= value < (1 << bits)


def is_field_element(value: int) -> bool:
    """True iff value is an integer in [0, FIELD_MODULUS)."""
    if not isinstance(value, int) or isinstance(value, bool):
        return False
    return 0 <= value < FIELD_MODULUS
