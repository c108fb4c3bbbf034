"""
Constraint Evaluation and Rejection

A transition has exactly one failure mode: some constraint does not hold, so
the witness is invalid and no public vector exists for it. Constraint
failures are therefore values, not exceptions:

    ConstraintSystem   records every assertion a transition makes
    ConstraintViolation one failed assertion (code, message, kind)
    TransitionResult   accept + public vector, or reject + diagnostic

The ViolationKind on a diagnostic is for tooling only; at the protocol level
every rejection is the same "invalid transition". With
`diagnostics.detailed_violations` switched off the diagnostic collapses to
that uniform form.

Exceptions are reserved for malformed documents at the decode boundary
(WitnessError) and for callers that opt into raising (TransitionRejected).

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from rollup.circuits.config import get_config
from rollup.circuits.field import fits_in_bits, is_field_element
from rollup.circuits.public_inputs import PublicInputs


# =============================================================================
# ERROR TYPES
# =============================================================================

class ViolationKind(Enum):
    """Diagnostic category of a failed constraint."""
    RANGE = "range"
    MODE = "mode"
    OWNERSHIP = "ownership"
    ASSET = "asset"
    CONSERVATION = "conservation"
    PUBLIC_VALUE = "public_value"
    CREATOR = "creator"
    CHAINING = "chaining"
    MEMBERSHIP = "membership"
    NULLIFIER = "nullifier"
    SIGNATURE = "signature"
    KEY_SEPARATION = "key_separation"
    DEFI = "defi"
    WITNESS = "witness"
    INVALID = "invalid"


class WitnessError(ValueError):
    """A witness document cannot be decoded into a typed transaction."""

    def __init__(self, field: str, message: str, kind: ViolationKind = ViolationKind.WITNESS,
                 code: Optional[str] = None):
        self.field = field
        self.message = message
        self.kind = kind
        self.code = code or f"malformed_{field}"
        super().__init__(f"{field}: {message}")

    def to_violation(self) -> 'ConstraintViolation':
        return ConstraintViolation(self.code, str(self), self.kind)


@dataclass(frozen=True)
class ConstraintViolation:
    """A single failed constraint."""
    code: str
    message: str
    kind: ViolationKind

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message, "kind": self.kind.value}


INVALID_TRANSITION = ConstraintViolation(
    code="invalid_transition",
    message="Witness does not satisfy the transition",
    kind=ViolationKind.INVALID,
)


class TransitionRejected(Exception):
    """Raised by TransitionResult.raise_if_rejected()."""

    def __init__(self, circuit_id: str, violation: ConstraintViolation):
        self.circuit_id = circuit_id
        self.violation = violation
        super().__init__(f"{circuit_id}: {violation.code}: {violation.message}")


# =============================================================================
# TRANSITION RESULT
# =============================================================================

@dataclass
class TransitionResult:
    """Outcome of evaluating one transition."""
    circuit_id: str
    accepted: bool
    public_inputs: Optional[PublicInputs] = None
    violation: Optional[ConstraintViolation] = None
    violations: List[ConstraintViolation] = field(default_factory=list)

    def raise_if_rejected(self) -> PublicInputs:
        """Return the public vector, or raise TransitionRejected."""
        if not self.accepted or self.public_inputs is None:
            raise TransitionRejected(self.circuit_id, self.violation or INVALID_TRANSITION)
        return self.public_inputs

    @classmethod
    def accept(cls, circuit_id: str, public_inputs: PublicInputs) -> 'TransitionResult':
        return cls(circuit_id=circuit_id, accepted=True, public_inputs=public_inputs)

    @classmethod
    def reject(cls, circuit_id: str, violations: List[ConstraintViolation]) -> 'TransitionResult':
        diagnostics = get_config().diagnostics
        if not diagnostics.detailed_violations.get():
            return cls(circuit_id=circuit_id, accepted=False,
                       violation=INVALID_TRANSITION, violations=[INVALID_TRANSITION])
        if not diagnostics.collect_all_violations.get():
            violations = violations[:1]
        return cls(
            circuit_id=circuit_id,
            accepted=False,
            violation=violations[0] if violations else INVALID_TRANSITION,
            violations=list(violations) or [INVALID_TRANSITION],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "circuit_id": self.circuit_id,
            "accepted": self.accepted,
            "public_inputs": self.public_inputs.to_dict() if self.public_inputs else None,
            "violation": self.violation.to_dict() if self.violation else None,
        }


# =============================================================================
# CONSTRAINT SYSTEM
# =============================================================================

class ConstraintSystem:
    """
    Collects the assertions of one transition evaluation.

    Every assertion is evaluated, in order, even after one has failed; only
    the recorded failures decide the outcome.
    """

    def __init__(self, circuit_id: str):
        self.circuit_id = circuit_id
        self._violations: List[ConstraintViolation] = []
        self._count = 0

    @property
    def failed(self) -> bool:
        return bool(self._violations)

    @property
    def constraint_count(self) -> int:
        return self._count

    @property
    def first_violation(self) -> Optional[ConstraintViolation]:
        return self._violations[0] if self._violations else None

    @property
    def violations(self) -> List[ConstraintViolation]:
        return list(self._violations)

    def assert_true(self, condition: bool, code: str, message: str,
                    kind: ViolationKind) -> bool:
        self._count += 1
        if not condition:
            self._violations.append(ConstraintViolation(code, message, kind))
            return False
        return True

    def assert_equal(self, a: Any, b: Any, code: str, message: str,
                     kind: ViolationKind) -> bool:
        return self.assert_true(a == b, code, message, kind)

    def assert_not_equal(self, a: Any, b: Any, code: str, message: str,
                         kind: ViolationKind) -> bool:
        return self.assert_true(a != b, code, message, kind)

    def range_check(self, value: Any, bits: int, name: str) -> bool:
        return self.assert_true(
            fits_in_bits(value, bits),
            f"{name}_out_of_range",
            f"{name} must fit in {bits} bits",
            ViolationKind.RANGE,
        )

    def field_check(self, value: Any, name: str) -> bool:
        return self.assert_true(
            is_field_element(value),
            f"{name}_out_of_range",
            f"{name} must be a field element",
            ViolationKind.RANGE,
        )

    def result(self, build_public_inputs: Callable[[], PublicInputs]) -> TransitionResult:
        """
        Reject if anything failed, else accept with the built public vector.

        The vector is only built for satisfied witnesses: a rejected witness
        has no public output, and its values need not be field elements.
        """
        if self._violations:
            return TransitionResult.reject(self.circuit_id, self._violations)
        return TransitionResult.accept(self.circuit_id, build_public_inputs())
