"""
Claim Transition

Settles a DeFi deposit once its bridge interaction has a result. The claim
note from the deposit and the interaction note from the rollup are both
spent (nullified) and the depositor's value note, promised at deposit time
as a partial commitment, is completed with the realized value.

    success   value = output_value_a, asset = bridge output asset A
    failure   value = deposit_value,  asset = bridge input asset A (refund)

Only the first output carries value. The second output completes the same
partial commitment with value 0; splitting the interaction's second output
asset between depositors is not implemented.

Public vector:
    [5, c1, c2, nf1, nf2, 0, 0, 0, data_root, fee, bridge_call_data,
     deposit_value, 0, 0, 0, 0]

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from rollup.circuits.bridge_call_data import BridgeCallData
from rollup.circuits.constants import (
    DATA_TREE_INDEX_BIT_LENGTH,
    DEFI_DEPOSIT_VALUE_BIT_LENGTH,
    DEFI_INTERACTION_NONCE_BIT_LENGTH,
    NOTE_VALUE_BIT_LENGTH,
    TX_FEE_BIT_LENGTH,
    ProofId,
)
from rollup.circuits.errors import ConstraintSystem, TransitionResult, ViolationKind
from rollup.circuits.field import is_field_element
from rollup.circuits.notes import (
    ClaimNote,
    DefiInteractionNote,
    claim_note_nullifier,
    complete_partial_commitment,
    defi_interaction_nullifier,
)
from rollup.circuits.observability import CircuitLayer, get_logger, traced_transition
from rollup.circuits.primitives import PrimitiveBackend, default_backend, note_in_data_tree
from rollup.circuits.public_inputs import PublicInputs

CIRCUIT_ID = "rollup.claim.v1"

logger = get_logger("claim_circuit", CircuitLayer.CLAIM)


@dataclass(frozen=True)
class ClaimTx:
    """Claim transition witness."""
    data_root: int
    claim_note: ClaimNote
    claim_note_index: int
    claim_note_path: Sequence[int]
    defi_interaction_note: DefiInteractionNote
    defi_note_index: int
    defi_note_path: Sequence[int]
    output_value_a: int
    proof_id: int = ProofId.DEFI_CLAIM

    def bridge(self) -> Optional[BridgeCallData]:
        """Decoded bridge call data, or None if it does not fit the layout."""
        try:
            return BridgeCallData.from_field(self.claim_note.bridge_call_data)
        except ValueError:
            return None

    def realized_value(self) -> int:
        if self.defi_interaction_note.interaction_result:
            return self.output_value_a
        return self.claim_note.deposit_value

    def output_asset_ids(self) -> Tuple[int, int]:
        bridge = self.bridge()
        if bridge is None:
            return 0, 0
        if self.defi_interaction_note.interaction_result:
            return bridge.output_asset_id_a, bridge.output_asset_id_b or 0
        return bridge.input_asset_id_a, bridge.input_asset_id_b or 0

    def nullifiers(self, backend: Optional[PrimitiveBackend] = None) -> Tuple[int, int]:
        backend = backend or default_backend()
        return (
            claim_note_nullifier(self.claim_note.compute_commitment(backend), backend),
            defi_interaction_nullifier(self.defi_interaction_note.compute_commitment(backend),
                                       backend),
        )

    def output_commitments(self, backend: Optional[PrimitiveBackend] = None) -> Tuple[int, int]:
        backend = backend or default_backend()
        nullifier_1, nullifier_2 = self.nullifiers(backend)
        asset_a, asset_b = self.output_asset_ids()
        partial = self.claim_note.value_note_partial_commitment
        # TODO: give output 2 its share of total_output_value_b, with the ratio check
        # output_value_a * total_input_value == deposit_value * total_output_value_a.
        return (
            complete_partial_commitment(partial, self.realized_value(), asset_a, nullifier_1,
                                        backend),
            complete_partial_commitment(partial, 0, asset_b, nullifier_2, backend),
        )


@traced_transition(logger, CircuitLayer.CLAIM, "claim_circuit")
def claim_circuit(tx: ClaimTx, backend: Optional[PrimitiveBackend] = None) -> TransitionResult:
    """Evaluate a claim transition."""
    backend = backend or default_backend()
    cs = ConstraintSystem(CIRCUIT_ID)
    claim = tx.claim_note
    interaction = tx.defi_interaction_note

    cs.assert_equal(tx.proof_id, ProofId.DEFI_CLAIM, "wrong_proof_id",
                    "a claim transition must carry the DEFI_CLAIM proof id", ViolationKind.MODE)

    cs.range_check(claim.deposit_value, DEFI_DEPOSIT_VALUE_BIT_LENGTH, "deposit_value")
    cs.range_check(claim.fee, TX_FEE_BIT_LENGTH, "fee")
    cs.field_check(claim.value_note_partial_commitment, "value_note_partial_commitment")
    cs.field_check(claim.input_nullifier, "claim_note_input_nullifier")
    cs.range_check(claim.defi_interaction_nonce, DEFI_INTERACTION_NONCE_BIT_LENGTH,
                   "defi_interaction_nonce")
    cs.range_check(interaction.interaction_nonce, DEFI_INTERACTION_NONCE_BIT_LENGTH,
                   "interaction_nonce")
    cs.range_check(interaction.total_input_value, NOTE_VALUE_BIT_LENGTH, "total_input_value")
    cs.range_check(interaction.total_output_value_a, NOTE_VALUE_BIT_LENGTH,
                   "total_output_value_a")
    cs.range_check(interaction.total_output_value_b, NOTE_VALUE_BIT_LENGTH,
                   "total_output_value_b")
    cs.range_check(tx.output_value_a, NOTE_VALUE_BIT_LENGTH, "output_value_a")
    cs.range_check(tx.claim_note_index, DATA_TREE_INDEX_BIT_LENGTH, "claim_note_index")
    cs.range_check(tx.defi_note_index, DATA_TREE_INDEX_BIT_LENGTH, "defi_note_index")
    cs.assert_true(is_field_element(tx.data_root), "data_root_out_of_range",
                   "data_root must be a field element", ViolationKind.RANGE)

    bridge = tx.bridge()
    cs.assert_true(bridge is not None, "bridge_call_data_malformed",
                   "bridge call data does not fit the layout", ViolationKind.DEFI)

    cs.assert_equal(claim.bridge_call_data, interaction.bridge_call_data,
                    "bridge_call_data_mismatch",
                    "claim note and interaction note name different bridge calls",
                    ViolationKind.DEFI)
    cs.assert_equal(claim.defi_interaction_nonce, interaction.interaction_nonce,
                    "interaction_nonce_mismatch",
                    "claim note and interaction note name different interactions",
                    ViolationKind.DEFI)

    cs.assert_true(claim.deposit_value <= interaction.total_input_value,
                   "deposit_exceeds_interaction_input",
                   "deposit is larger than the interaction's total input", ViolationKind.DEFI)
    if interaction.interaction_result:
        cs.assert_true(tx.output_value_a <= interaction.total_output_value_a,
                       "output_exceeds_interaction_output",
                       "claimed output is larger than the interaction's total output",
                       ViolationKind.DEFI)

    nullifier_1, nullifier_2 = tx.nullifiers(backend)
    commitment_1, commitment_2 = tx.output_commitments(backend)

    cs.assert_true(
        note_in_data_tree(backend, tx.data_root, claim.compute_commitment(backend),
                          tx.claim_note_index, tx.claim_note_path),
        "claim_note_not_found", "claim note is not in the data tree", ViolationKind.MEMBERSHIP,
    )
    cs.assert_true(
        note_in_data_tree(backend, tx.data_root, interaction.compute_commitment(backend),
                          tx.defi_note_index, tx.defi_note_path),
        "defi_interaction_note_not_found", "interaction note is not in the data tree",
        ViolationKind.MEMBERSHIP,
    )

    return cs.result(lambda: PublicInputs(
        proof_id=int(ProofId.DEFI_CLAIM),
        commitment_1=commitment_1,
        commitment_2=commitment_2,
        nullifier_1=nullifier_1,
        nullifier_2=nullifier_2,
        root=tx.data_root,
        tx_fee=claim.fee,
        tx_fee_asset_id_or_bridge_call_data=claim.bridge_call_data,
        bridge_call_data_or_defi_deposit_value=claim.deposit_value,
    ))
