"""
Claim Transition Test Suite

Run with: pytest tests/test_claim_circuit.py -v
"""

from dataclasses import replace

from rollup.circuits.bridge_call_data import BridgeCallData
from rollup.circuits.claim import claim_circuit
from rollup.circuits.constants import FIELD_MODULUS, ProofId
from rollup.circuits.errors import ViolationKind
from rollup.circuits.notes import (
    ValueNote,
    claim_note_nullifier,
    complete_partial_commitment,
    defi_interaction_nullifier,
)
from rollup.circuits.witness import encode_document, evaluate_document

from conftest import scalar_from_label


def _claim_output(alice, value, asset_id, input_nullifier):
    return ValueNote(
        value=value,
        secret=scalar_from_label("claim-output-secret"),
        owner=alice.account.public_key,
        asset_id=asset_id,
        creator_pubkey=alice.account.public_key.x,
        input_nullifier=input_nullifier,
    )


class TestClaimOutcomes:
    """Success pays output A, failure refunds input A."""

    def test_successful_interaction(self, alice, make_claim_tx):
        tx = make_claim_tx(deposit_value=50, output_value_a=100)
        result = claim_circuit(tx)
        assert result.accepted, result.violation

        vector = result.public_inputs
        nf1, nf2 = tx.nullifiers()
        assert vector.proof_id == ProofId.DEFI_CLAIM
        assert nf1 == claim_note_nullifier(tx.claim_note.commitment)
        assert nf2 == defi_interaction_nullifier(tx.defi_interaction_note.commitment)
        assert (vector.nullifier_1, vector.nullifier_2) == (nf1, nf2)
        assert vector.commitment_1 == _claim_output(alice, 100, 1, nf1).commitment

    def test_failed_interaction_refunds_deposit(self, alice, make_claim_tx):
        tx = make_claim_tx(deposit_value=50, output_value_a=250, interaction_result=False)
        result = claim_circuit(tx)
        assert result.accepted, result.violation
        assert tx.realized_value() == 50
        assert tx.output_asset_ids() == (0, 0)
        nf1, _ = tx.nullifiers()
        assert result.public_inputs.commitment_1 == _claim_output(alice, 50, 0, nf1).commitment

    def test_second_output_is_empty(self, make_claim_tx):
        bridge = BridgeCallData(
            bridge_address_id=7, input_asset_id_a=0, output_asset_id_a=1, output_asset_id_b=4,
        )
        tx = make_claim_tx(bridge=bridge)
        result = claim_circuit(tx)
        assert result.accepted, result.violation
        _, nf2 = tx.nullifiers()
        assert result.public_inputs.commitment_2 == complete_partial_commitment(
            tx.claim_note.value_note_partial_commitment, 0, 4, nf2,
        )

    def test_vector_layout(self, make_claim_tx):
        tx = make_claim_tx(deposit_value=50, fee=2)
        fields = claim_circuit(tx).public_inputs.to_fields()
        assert fields[0] == 5
        assert fields[5:8] == [0, 0, 0]
        assert fields[8] == tx.data_root
        assert fields[9] == 2
        assert fields[10] == tx.claim_note.bridge_call_data
        assert fields[11] == 50
        assert fields[12:] == [0, 0, 0, 0]

    def test_document_roundtrip(self, make_claim_tx):
        tx = make_claim_tx()
        assert evaluate_document(encode_document(tx)) == claim_circuit(tx)


class TestClaimRejections:
    """Mismatched or unproven claims."""

    def test_nonce_mismatch(self, make_claim_tx):
        result = claim_circuit(make_claim_tx(interaction_nonce=4))
        assert result.violation.code == "interaction_nonce_mismatch"
        assert result.violation.kind == ViolationKind.DEFI

    def test_bridge_mismatch(self, make_claim_tx):
        other = BridgeCallData(bridge_address_id=8, input_asset_id_a=0, output_asset_id_a=1)
        result = claim_circuit(make_claim_tx(interaction_bridge=other.to_field()))
        assert result.violation.code == "bridge_call_data_mismatch"

    def test_claim_note_not_in_tree(self, make_claim_tx):
        result = claim_circuit(make_claim_tx(insert_claim=False))
        assert result.violation.code == "claim_note_not_found"
        assert result.violation.kind == ViolationKind.MEMBERSHIP

    def test_interaction_note_not_in_tree(self, make_claim_tx):
        result = claim_circuit(make_claim_tx(insert_interaction=False))
        assert result.violation.code == "defi_interaction_note_not_found"

    def test_wrong_proof_id(self, make_claim_tx):
        tx = replace(make_claim_tx(), proof_id=int(ProofId.DEFI_DEPOSIT))
        assert claim_circuit(tx).violation.code == "wrong_proof_id"

    def test_deposit_larger_than_interaction(self, make_claim_tx):
        result = claim_circuit(make_claim_tx(deposit_value=150))
        assert result.violation.code == "deposit_exceeds_interaction_input"

    def test_output_larger_than_interaction(self, make_claim_tx):
        result = claim_circuit(make_claim_tx(output_value_a=250))
        assert result.violation.code == "output_exceeds_interaction_output"

    def test_malformed_bridge_call_data(self, make_claim_tx):
        tx = make_claim_tx()
        broken = replace(tx, claim_note=replace(tx.claim_note, bridge_call_data=1 << 250))
        assert broken.bridge() is None
        assert claim_circuit(broken).violation.code == "bridge_call_data_malformed"

    def test_partial_commitment_bounded(self, make_claim_tx):
        tx = make_claim_tx()
        wide = replace(tx.claim_note, value_note_partial_commitment=FIELD_MODULUS)
        result = claim_circuit(replace(tx, claim_note=wide))
        assert result.violation.code == "value_note_partial_commitment_out_of_range"
        assert result.violation.kind == ViolationKind.RANGE

    def test_input_nullifier_bounded(self, make_claim_tx):
        tx = make_claim_tx()
        wide = replace(tx.claim_note, input_nullifier=-1)
        result = claim_circuit(replace(tx, claim_note=wide))
        assert result.violation.code == "claim_note_input_nullifier_out_of_range"

    def test_fee_out_of_range(self, make_claim_tx):
        result = claim_circuit(make_claim_tx(fee=1 << 226))
        assert result.violation.code == "fee_out_of_range"
        assert result.violation.kind == ViolationKind.RANGE
