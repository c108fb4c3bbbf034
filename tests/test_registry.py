"""
Tests for the circuit registry.
"""

import pytest

from rollup.circuits.account import CIRCUIT_ID as ACCOUNT_CIRCUIT_ID
from rollup.circuits.account import AccountMode, AccountTx
from rollup.circuits.claim import CIRCUIT_ID as CLAIM_CIRCUIT_ID
from rollup.circuits.constants import NUM_PUBLIC_INPUTS, ProofId
from rollup.circuits.join_split import CIRCUIT_ID as JOIN_SPLIT_CIRCUIT_ID
from rollup.circuits.join_split import JoinSplitTx
from rollup.circuits.registry import Circuit, CircuitRegistry, create_standard_registry


@pytest.fixture
def registry():
    return create_standard_registry()


class TestStandardRegistry:
    """The three transition circuits."""

    def test_lists_all_circuits(self, registry):
        ids = [c.circuit_id for c in registry.list_circuits()]
        assert ids == sorted([ACCOUNT_CIRCUIT_ID, JOIN_SPLIT_CIRCUIT_ID, CLAIM_CIRCUIT_ID])

    def test_every_proof_id_has_one_circuit(self, registry):
        assert registry.circuit_for_proof_id(ProofId.ACCOUNT).circuit_id == ACCOUNT_CIRCUIT_ID
        for proof_id in (ProofId.DEPOSIT, ProofId.WITHDRAW, ProofId.SEND, ProofId.DEFI_DEPOSIT):
            assert registry.circuit_for_proof_id(proof_id).circuit_id == JOIN_SPLIT_CIRCUIT_ID
        assert registry.circuit_for_proof_id(ProofId.DEFI_CLAIM).circuit_id == CLAIM_CIRCUIT_ID
        assert registry.circuit_for_proof_id(9) is None

    def test_uniform_public_arity(self, registry):
        for circuit in registry.list_circuits():
            assert len(circuit.public_input_names) == NUM_PUBLIC_INPUTS

    def test_private_inputs_from_transaction_type(self, registry):
        circuit = registry.get_circuit_by_id(JOIN_SPLIT_CIRCUIT_ID)
        assert "account_private_key" in circuit.private_input_names
        assert "tx_fee" in circuit.private_input_names
        assert circuit.transaction_type is JoinSplitTx

    def test_lookup_by_digest(self, registry):
        circuit = registry.get_circuit_by_id(ACCOUNT_CIRCUIT_ID)
        assert registry.get_circuit(circuit.digest) is circuit
        assert registry.get_circuit("0" * 64) is None
        assert registry.get_circuit_by_id("rollup.unknown") is None

    def test_digest_stable(self):
        first = create_standard_registry().get_circuit_by_id(CLAIM_CIRCUIT_ID).digest
        second = create_standard_registry().get_circuit_by_id(CLAIM_CIRCUIT_ID).digest
        assert first == second
        assert len(first) == 64

    def test_export(self, registry):
        exported = registry.export_registry()["circuits"]
        assert len(exported) == 3
        for digest, entry in exported.items():
            assert entry["digest"] == digest

    def test_evaluate_dispatches_by_type(self, registry, make_account_tx):
        tx = make_account_tx(AccountMode.CREATE)
        assert registry.circuit_for_transaction(tx).transaction_type is AccountTx
        result = registry.evaluate(tx)
        assert result.accepted
        assert result.circuit_id == ACCOUNT_CIRCUIT_ID

    def test_evaluate_unknown_type(self, registry):
        with pytest.raises(TypeError):
            registry.evaluate(object())


class TestRegistration:
    """Registering circuits."""

    def test_overlapping_proof_ids_rejected(self, registry):
        rogue = Circuit(
            circuit_id="rollup.rogue.v1",
            proof_ids=[int(ProofId.SEND)],
            transaction_type=JoinSplitTx,
            evaluator=lambda tx, backend=None: None,
        )
        with pytest.raises(ValueError):
            registry.register(rogue)

    def test_reregistering_same_circuit_replaces(self, registry):
        circuit = registry.get_circuit_by_id(CLAIM_CIRCUIT_ID)
        assert registry.register(circuit) == circuit.digest
        assert len(registry.list_circuits()) == 3

    def test_empty_registry(self):
        registry = CircuitRegistry()
        assert registry.list_circuits() == []
        assert registry.circuit_for_transaction(object()) is None
