"""
Circuit Registry

Content-addressed registry of the transition circuits. A Circuit descriptor
names a transition, the proof ids it may emit, its public and private inputs
and the evaluator that decides it. All circuits share the 16 public input
names; the aggregator relies on that uniform arity.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

from rollup.circuits.account import CIRCUIT_ID as ACCOUNT_CIRCUIT_ID
from rollup.circuits.account import AccountTx, account_circuit
from rollup.circuits.claim import CIRCUIT_ID as CLAIM_CIRCUIT_ID
from rollup.circuits.claim import ClaimTx, claim_circuit
from rollup.circuits.constants import PUBLIC_INPUT_NAMES, ProofId
from rollup.circuits.errors import TransitionResult
from rollup.circuits.join_split import CIRCUIT_ID as JOIN_SPLIT_CIRCUIT_ID
from rollup.circuits.join_split import JoinSplitKind, JoinSplitTx, join_split_circuit
from rollup.circuits.observability import CircuitLayer, get_logger
from rollup.circuits.primitives import PrimitiveBackend

logger = get_logger("registry", CircuitLayer.REGISTRY)


@dataclass
class Circuit:
    """A transition circuit definition."""
    circuit_id: str
    proof_ids: List[int]
    transaction_type: type
    evaluator: Callable[..., TransitionResult] = field(repr=False, compare=False)

    public_input_names: List[str] = field(default_factory=lambda: list(PUBLIC_INPUT_NAMES))
    description: str = ""
    version: str = "1.0.0"

    @property
    def private_input_names(self) -> List[str]:
        return [f.name for f in fields(self.transaction_type)]

    @property
    def digest(self) -> str:
        """Content-addressed identifier for the circuit."""
        content = {
            "circuit_id": self.circuit_id,
            "proof_ids": sorted(self.proof_ids),
            "public_input_names": self.public_input_names,
            "private_input_names": self.private_input_names,
            "version": self.version,
        }
        canonical = json.dumps(content, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()

    def evaluate(self, tx: Any, backend: Optional[PrimitiveBackend] = None) -> TransitionResult:
        return self.evaluator(tx, backend)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "circuit_id": self.circuit_id,
            "proof_ids": list(self.proof_ids),
            "public_input_names": self.public_input_names,
            "private_input_names": self.private_input_names,
            "description": self.description,
            "version": self.version,
            "digest": self.digest,
        }


class CircuitRegistry:
    """
    Content-addressed registry of transition circuits.

    Circuits are identified by digest; circuit ids, proof ids and
    transaction types resolve to the registered circuit.
    """

    def __init__(self):
        self._circuits: Dict[str, Circuit] = {}  # digest -> Circuit
        self._circuit_id_to_digest: Dict[str, str] = {}

    def register(self, circuit: Circuit) -> str:
        """Register a circuit. Returns its digest."""
        for existing in self._circuits.values():
            if existing.circuit_id == circuit.circuit_id:
                continue
            overlap = set(existing.proof_ids) & set(circuit.proof_ids)
            if overlap:
                raise ValueError(
                    f"proof ids {sorted(overlap)} already served by {existing.circuit_id}"
                )

        digest = circuit.digest
        self._circuits[digest] = circuit
        self._circuit_id_to_digest[circuit.circuit_id] = digest
        logger.debug("Registered circuit", circuit_id=circuit.circuit_id, digest=digest)
        return digest

    def get_circuit(self, digest: str) -> Optional[Circuit]:
        """Retrieve a circuit by digest."""
        return self._circuits.get(digest)

    def get_circuit_by_id(self, circuit_id: str) -> Optional[Circuit]:
        """Retrieve a circuit by its circuit_id."""
        digest = self._circuit_id_to_digest.get(circuit_id)
        if digest:
            return self._circuits.get(digest)
        return None

    def circuit_for_proof_id(self, proof_id: int) -> Optional[Circuit]:
        for circuit in self._circuits.values():
            if proof_id in circuit.proof_ids:
                return circuit
        return None

    def circuit_for_transaction(self, tx: Any) -> Optional[Circuit]:
        for circuit in self._circuits.values():
            if isinstance(tx, circuit.transaction_type):
                return circuit
        return None

    def list_circuits(self) -> List[Circuit]:
        return sorted(self._circuits.values(), key=lambda c: c.circuit_id)

    def evaluate(self, tx: Any, backend: Optional[PrimitiveBackend] = None) -> TransitionResult:
        """Evaluate a typed transaction with the circuit registered for its type."""
        circuit = self.circuit_for_transaction(tx)
        if circuit is None:
            raise TypeError(f"No circuit registered for {type(tx).__name__}")
        return circuit.evaluate(tx, backend)

    def export_registry(self) -> Dict[str, Any]:
        """Export registry to serializable format."""
        return {
            "circuits": {
                digest: circuit.to_dict()
                for digest, circuit in self._circuits.items()
            },
        }


def create_standard_registry() -> CircuitRegistry:
    """Create a registry with the account, join-split and claim circuits."""
    registry = CircuitRegistry()

    circuits = [
        Circuit(
            circuit_id=ACCOUNT_CIRCUIT_ID,
            proof_ids=[int(ProofId.ACCOUNT)],
            transaction_type=AccountTx,
            evaluator=account_circuit,
            description="Alias registration, account key migration and signing key addition",
        ),
        Circuit(
            circuit_id=JOIN_SPLIT_CIRCUIT_ID,
            proof_ids=[int(kind) for kind in JoinSplitKind],
            transaction_type=JoinSplitTx,
            evaluator=join_split_circuit,
            description="Deposit, withdraw, send and DeFi deposit of value notes",
        ),
        Circuit(
            circuit_id=CLAIM_CIRCUIT_ID,
            proof_ids=[int(ProofId.DEFI_CLAIM)],
            transaction_type=ClaimTx,
            evaluator=claim_circuit,
            description="Settlement of a DeFi interaction into the depositor's value note",
        ),
    ]

    for circuit in circuits:
        registry.register(circuit)

    return registry
