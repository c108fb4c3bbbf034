"""
Join-Split Transition

Spends up to two value notes of one asset and creates up to two new ones,
moving value in from or out to a public address or into a DeFi bridge.

Kinds (slot 0 of the public vector):
    DEPOSIT        public_value enters the shielded pool from public_owner
    WITHDRAW       public_value leaves the pool to public_owner
    SEND           private transfer, nothing public moves
    DEFI_DEPOSIT   output note 1 is replaced by a claim note on a bridge call

Conservation:
    public_input + in_1 + in_2 == public_output + out_1 + out_2 + tx_fee

On DEFI_DEPOSIT out_1 is the deposit value. When the bridge takes a second
input asset, in_2 funds that asset and is left out of the sum.

Chaining lets a transaction spend an output of a transaction that is not yet
in the tree: `backward_link` names that output's commitment, the matching
input skips its membership check, and `allow_chain` marks which of this
transaction's outputs a later one may spend the same way.

Public vector:
    [kind, c1, c2, nf1, nf2, public_value, public_owner, public_asset_id,
     merkle_root, tx_fee, asset_id, bridge_call_data, defi_deposit_value,
     0, backward_link, allow_chain]

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

from rollup.circuits.bridge_call_data import BridgeCallData
from rollup.circuits.constants import (
    ALIAS_HASH_BIT_LENGTH,
    ASSET_ID_BIT_LENGTH,
    DATA_TREE_INDEX_BIT_LENGTH,
    DEFI_DEPOSIT_VALUE_BIT_LENGTH,
    NOTE_VALUE_BIT_LENGTH,
    PUBLIC_OWNER_BIT_LENGTH,
    TX_FEE_BIT_LENGTH,
    GeneratorIndex,
    ProofId,
)
from rollup.circuits.errors import (
    ConstraintSystem,
    TransitionResult,
    ViolationKind,
    WitnessError,
)
from rollup.circuits.field import is_field_element
from rollup.circuits.notes import (
    AccountNote,
    PartialClaimNote,
    PartialValueNote,
    ValueNote,
    value_note_nullifier,
)
from rollup.circuits.observability import CircuitLayer, get_logger, traced_transition
from rollup.circuits.primitives import (
    CurvePoint,
    PrimitiveBackend,
    default_backend,
    is_curve_coordinate,
    note_in_data_tree,
    sign,
)
from rollup.circuits.public_inputs import PublicInputs

CIRCUIT_ID = "rollup.join_split.v1"

logger = get_logger("join_split_circuit", CircuitLayer.JOIN_SPLIT)


class JoinSplitKind(IntEnum):
    """The four join-split transaction kinds; values are their proof ids."""
    DEPOSIT = int(ProofId.DEPOSIT)
    WITHDRAW = int(ProofId.WITHDRAW)
    SEND = int(ProofId.SEND)
    DEFI_DEPOSIT = int(ProofId.DEFI_DEPOSIT)

    @classmethod
    def from_proof_id(cls, proof_id: int) -> 'JoinSplitKind':
        try:
            return cls(proof_id)
        except ValueError:
            raise WitnessError(
                "proof_id", f"{proof_id} is not a join-split proof id", ViolationKind.MODE,
                code="invalid_proof_id",
            ) from None

    @property
    def moves_public_value(self) -> bool:
        return self in (JoinSplitKind.DEPOSIT, JoinSplitKind.WITHDRAW)


class ChainTarget(IntEnum):
    """Which output note a later transaction may spend before it is in the tree."""
    OUTPUT_1 = 1
    OUTPUT_2 = 2

    @classmethod
    def from_wire(cls, value: int) -> Optional['ChainTarget']:
        """0 on the wire means no chaining."""
        if value == 0:
            return None
        try:
            return cls(value)
        except ValueError:
            raise WitnessError(
                "allow_chain", f"{value} is not 0, 1 or 2", ViolationKind.CHAINING,
                code="invalid_allow_chain",
            ) from None


@dataclass(frozen=True)
class PartialClaimNoteData:
    """Depositor-side data for the claim note a DEFI_DEPOSIT creates."""
    deposit_value: int
    bridge_call_data: int
    note_secret: int
    input_nullifier: int = 0


@dataclass(frozen=True)
class JoinSplitTx:
    """
    Join-split transition witness.

    Input notes beyond `num_input_notes` are padding: zero value, no
    membership proof. `output_notes[0]` is None exactly on DEFI_DEPOSIT,
    where `partial_claim_note` takes its place.
    """
    kind: JoinSplitKind
    public_value: int
    public_owner: int
    asset_id: int
    num_input_notes: int
    input_notes: Tuple[ValueNote, ValueNote]
    input_note_indices: Tuple[int, int]
    input_note_paths: Tuple[Sequence[int], Sequence[int]]
    output_notes: Tuple[Optional[ValueNote], ValueNote]
    account_private_key: int
    alias_hash: int
    account_required: bool
    account_note_index: int
    account_note_path: Sequence[int]
    signing_public_key: CurvePoint
    merkle_root: int
    tx_fee: int = 0
    partial_claim_note: Optional[PartialClaimNoteData] = None
    backward_link: Optional[int] = None
    allow_chain: Optional[ChainTarget] = None
    signature: bytes = b""

    def __post_init__(self):
        for name in ("input_notes", "input_note_indices", "input_note_paths", "output_notes"):
            if len(getattr(self, name)) != 2:
                raise WitnessError(name, "expected exactly two entries")

    # -- derived values (shared by the circuit and wallet-side builders) --

    def account_public_key(self, backend: Optional[PrimitiveBackend] = None) -> CurvePoint:
        """Spender key; an out-of-range private key derives the zero point."""
        if not is_field_element(self.account_private_key):
            return CurvePoint.zero()
        return (backend or default_backend()).scalar_mul_fixed_base(self.account_private_key)

    def input_in_use(self, i: int) -> bool:
        return i < self.num_input_notes

    def input_commitments(self, backend: Optional[PrimitiveBackend] = None) -> Tuple[int, int]:
        backend = backend or default_backend()
        return (
            self.input_notes[0].compute_commitment(backend),
            self.input_notes[1].compute_commitment(backend),
        )

    def input_nullifiers(self, backend: Optional[PrimitiveBackend] = None) -> Tuple[int, int]:
        backend = backend or default_backend()
        c1, c2 = self.input_commitments(backend)
        return (
            value_note_nullifier(c1, self.account_private_key, self.input_in_use(0), backend),
            value_note_nullifier(c2, self.account_private_key, self.input_in_use(1), backend),
        )

    def claim_note(self, backend: Optional[PrimitiveBackend] = None) -> Optional[PartialClaimNote]:
        """The claim note of a DEFI_DEPOSIT, owned by the spender."""
        if self.partial_claim_note is None:
            return None
        backend = backend or default_backend()
        account_public_key = self.account_public_key(backend)
        value_note_partial = PartialValueNote(
            secret=self.partial_claim_note.note_secret,
            owner=account_public_key,
            account_required=self.account_required,
            creator_pubkey=account_public_key.x,
        )
        return PartialClaimNote(
            deposit_value=self.partial_claim_note.deposit_value,
            bridge_call_data=self.partial_claim_note.bridge_call_data,
            value_note_partial_commitment=value_note_partial.compute_commitment(backend),
            input_nullifier=self.partial_claim_note.input_nullifier,
        )

    def created_output_notes(self, backend: Optional[PrimitiveBackend] = None
                             ) -> Tuple[Optional[ValueNote], ValueNote]:
        """
        The output notes as they enter the tree.

        A note that declares no creator is bound to the spender's key, so
        these are the notes a later transaction spends.
        """
        creator = self.account_public_key(backend).x
        created = tuple(
            note.with_creator(creator) if note is not None and note.creator_pubkey is None
            else note
            for note in self.output_notes
        )
        return created[0], created[1]

    def output_commitments(self, backend: Optional[PrimitiveBackend] = None) -> Tuple[int, int]:
        """Slot 1 and 2 commitments; a missing note commits to 0."""
        backend = backend or default_backend()
        commitments: List[int] = [
            note.compute_commitment(backend) if note is not None else 0
            for note in self.created_output_notes(backend)
        ]
        if self.kind is JoinSplitKind.DEFI_DEPOSIT:
            claim = self.claim_note(backend)
            commitments[0] = claim.compute_commitment(backend) if claim is not None else 0
        return commitments[0], commitments[1]

    def signing_message(self, backend: Optional[PrimitiveBackend] = None) -> int:
        backend = backend or default_backend()
        c1, c2 = self.output_commitments(backend)
        nf1, nf2 = self.input_nullifiers(backend)
        return backend.commit(
            [
                self.public_value,
                self.public_owner,
                c1,
                c2,
                nf1,
                nf2,
                self.backward_link or 0,
                int(self.allow_chain or 0),
            ],
            GeneratorIndex.JOIN_SPLIT_SIGNATURE_MESSAGE,
        )

    # -- wallet-side helpers --

    def with_linked_outputs(self, backend: Optional[PrimitiveBackend] = None) -> 'JoinSplitTx':
        """
        Copy with each output bound to the nullifier of the input it replaces
        and to its creator, so `output_notes` hold exactly the created notes.
        """
        nf1, nf2 = self.input_nullifiers(backend)
        out1, out2 = self.created_output_notes(backend)
        partial_claim = self.partial_claim_note
        if out1 is not None:
            out1 = out1.with_input_nullifier(nf1)
        if partial_claim is not None:
            partial_claim = replace(partial_claim, input_nullifier=nf1)
        return replace(
            self,
            output_notes=(out1, out2.with_input_nullifier(nf2)),
            partial_claim_note=partial_claim,
        )

    def signed_by(self, private_scalar: int) -> 'JoinSplitTx':
        return replace(self, signature=sign(private_scalar, self.signing_message()))


def _range_checks(cs: ConstraintSystem, tx: JoinSplitTx) -> None:
    cs.assert_true(tx.num_input_notes in (0, 1, 2), "num_input_notes_out_of_range",
                   "num_input_notes must be 0, 1 or 2", ViolationKind.RANGE)
    cs.range_check(tx.public_value, NOTE_VALUE_BIT_LENGTH, "public_value")
    cs.range_check(tx.public_owner, PUBLIC_OWNER_BIT_LENGTH, "public_owner")
    cs.range_check(tx.asset_id, ASSET_ID_BIT_LENGTH, "asset_id")
    cs.range_check(tx.tx_fee, TX_FEE_BIT_LENGTH, "tx_fee")
    cs.range_check(tx.alias_hash, ALIAS_HASH_BIT_LENGTH, "alias_hash")
    cs.range_check(tx.account_note_index, DATA_TREE_INDEX_BIT_LENGTH, "account_note_index")
    cs.assert_true(is_field_element(tx.merkle_root), "merkle_root_out_of_range",
                   "merkle_root must be a field element", ViolationKind.RANGE)
    cs.assert_true(is_field_element(tx.account_private_key), "account_private_key_out_of_range",
                   "account_private_key must be a field element", ViolationKind.RANGE)
    if tx.backward_link is not None:
        cs.assert_true(is_field_element(tx.backward_link), "backward_link_out_of_range",
                       "backward_link must be a field element", ViolationKind.RANGE)

    for i, (note, index) in enumerate(zip(tx.input_notes, tx.input_note_indices), 1):
        _note_field_checks(cs, note, f"input_note_{i}")
        cs.range_check(index, DATA_TREE_INDEX_BIT_LENGTH, f"input_note_{i}_index")
    for i, out in enumerate(tx.output_notes, 1):
        if out is not None:
            _note_field_checks(cs, out, f"output_note_{i}")
    if tx.partial_claim_note is not None:
        cs.range_check(tx.partial_claim_note.deposit_value, DEFI_DEPOSIT_VALUE_BIT_LENGTH,
                       "defi_deposit_value")
        cs.field_check(tx.partial_claim_note.bridge_call_data, "bridge_call_data")
        cs.field_check(tx.partial_claim_note.note_secret, "claim_note_secret")
        cs.field_check(tx.partial_claim_note.input_nullifier, "claim_note_input_nullifier")


def _note_field_checks(cs: ConstraintSystem, note: ValueNote, name: str) -> None:
    # commit() reduces its inputs mod 2^256, so every committed field is bounded
    cs.range_check(note.value, NOTE_VALUE_BIT_LENGTH, f"{name}_value")
    cs.range_check(note.asset_id, ASSET_ID_BIT_LENGTH, f"{name}_asset_id")
    cs.field_check(note.secret, f"{name}_secret")
    cs.assert_true(note.owner.has_canonical_coordinates(), f"{name}_owner_out_of_range",
                   "owner coordinates must be canonical curve coordinates", ViolationKind.RANGE)
    if note.creator_pubkey is not None:
        cs.assert_true(is_curve_coordinate(note.creator_pubkey),
                       f"{name}_creator_pubkey_out_of_range",
                       "creator_pubkey must be a canonical curve coordinate", ViolationKind.RANGE)
    cs.field_check(note.input_nullifier, f"{name}_input_nullifier")


def _decode_bridge(cs: ConstraintSystem, tx: JoinSplitTx) -> Optional[BridgeCallData]:
    if tx.kind is not JoinSplitKind.DEFI_DEPOSIT or tx.partial_claim_note is None:
        return None
    try:
        return BridgeCallData.from_field(tx.partial_claim_note.bridge_call_data)
    except ValueError as e:
        cs.assert_true(False, "bridge_call_data_malformed", str(e), ViolationKind.DEFI)
        return None


@traced_transition(logger, CircuitLayer.JOIN_SPLIT, "join_split_circuit")
def join_split_circuit(tx: JoinSplitTx,
                       backend: Optional[PrimitiveBackend] = None) -> TransitionResult:
    """Evaluate a join-split transition."""
    backend = backend or default_backend()
    cs = ConstraintSystem(CIRCUIT_ID)
    defi = tx.kind is JoinSplitKind.DEFI_DEPOSIT
    in1, in2 = tx.input_notes
    out1, out2 = tx.output_notes
    in_use = (tx.input_in_use(0), tx.input_in_use(1))

    # Ranges
    _range_checks(cs, tx)

    # Ownership
    account_public_key = tx.account_public_key(backend)
    for i, note in enumerate(tx.input_notes, 1):
        cs.assert_equal(note.owner, account_public_key, f"input_note_{i}_not_owned",
                        "input note is not owned by the spender", ViolationKind.OWNERSHIP)
        cs.assert_equal(note.account_required, tx.account_required,
                        f"input_note_{i}_account_required_mismatch",
                        "input note account_required flag differs from the transaction",
                        ViolationKind.OWNERSHIP)

    # Shape of slot 1
    claim_note = tx.claim_note(backend)
    if defi:
        cs.assert_true(out1 is None and claim_note is not None, "defi_deposit_requires_claim_note",
                       "a DeFi deposit creates a claim note in place of output note 1",
                       ViolationKind.DEFI)
    else:
        cs.assert_true(out1 is not None and claim_note is None, "unexpected_claim_note",
                       "only a DeFi deposit creates a claim note", ViolationKind.DEFI)
    bridge = _decode_bridge(cs, tx)
    second_bridge_input = bridge is not None and bridge.second_input_in_use
    deposit_value = claim_note.deposit_value if (defi and claim_note is not None) else 0

    # Asset consistency
    cs.assert_equal(in1.asset_id, tx.asset_id, "input_note_1_asset_mismatch",
                    "input note 1 is not of the transaction asset", ViolationKind.ASSET)
    if second_bridge_input:
        cs.assert_equal(in2.asset_id, bridge.input_asset_id_b, "input_note_2_asset_mismatch",
                        "input note 2 is not the bridge's second input asset",
                        ViolationKind.ASSET)
    else:
        cs.assert_equal(in2.asset_id, tx.asset_id, "input_note_2_asset_mismatch",
                        "input note 2 is not of the transaction asset", ViolationKind.ASSET)
    for i, out in enumerate(tx.output_notes, 1):
        if out is not None:
            cs.assert_equal(out.asset_id, tx.asset_id, f"output_note_{i}_asset_mismatch",
                            "output note is not of the transaction asset", ViolationKind.ASSET)

    # Conservation
    public_input = tx.public_value if tx.kind is JoinSplitKind.DEPOSIT else 0
    public_output = tx.public_value if tx.kind is JoinSplitKind.WITHDRAW else 0
    total_in = public_input + in1.value + (0 if second_bridge_input else in2.value)
    out1_value = deposit_value if defi else (out1.value if out1 is not None else 0)
    total_out = public_output + out1_value + out2.value
    cs.assert_equal(total_in, total_out + tx.tx_fee, "value_not_conserved",
                    "inputs do not equal outputs plus fee", ViolationKind.CONSERVATION)

    # Public value gating
    if tx.kind.moves_public_value:
        cs.assert_not_equal(tx.public_value, 0, "public_value_zero",
                            "deposits and withdrawals move a nonzero public value",
                            ViolationKind.PUBLIC_VALUE)
        cs.assert_not_equal(tx.public_owner, 0, "public_owner_zero",
                            "deposits and withdrawals name a public owner",
                            ViolationKind.PUBLIC_VALUE)
    else:
        cs.assert_equal(tx.public_value, 0, "public_value_nonzero",
                        "private transactions move no public value", ViolationKind.PUBLIC_VALUE)
        cs.assert_equal(tx.public_owner, 0, "public_owner_nonzero",
                        "private transactions have no public owner", ViolationKind.PUBLIC_VALUE)

    # Creator binding
    for i, out in enumerate(tx.output_notes, 1):
        if out is not None and out.creator_pubkey is not None:
            cs.assert_equal(out.creator_pubkey, account_public_key.x,
                            f"output_note_{i}_creator_mismatch",
                            "a declared creator must be the spender", ViolationKind.CREATOR)

    # Chaining
    input_commitments = tx.input_commitments(backend)
    backward_link = tx.backward_link or 0
    propagated = [False, False]
    if backward_link:
        for i in range(2):
            if in_use[i] and input_commitments[i] == backward_link and not any(propagated):
                propagated[i] = True
        cs.assert_true(any(propagated), "backward_link_unmatched",
                       "backward_link matches no input note", ViolationKind.CHAINING)
    if tx.allow_chain is not None:
        cs.assert_true(not defi, "defi_deposit_chained",
                       "a DeFi deposit cannot allow chaining", ViolationKind.CHAINING)
        chained = out1 if tx.allow_chain is ChainTarget.OUTPUT_1 else out2
        if chained is not None:
            cs.assert_equal(chained.owner, in1.owner, "chained_output_owner_mismatch",
                            "a chainable output must belong to the owner of input note 1",
                            ViolationKind.CHAINING)

    # Membership
    if tx.account_required:
        account_note = AccountNote(tx.alias_hash, account_public_key, tx.signing_public_key)
        cs.assert_true(
            note_in_data_tree(backend, tx.merkle_root, account_note.compute_commitment(backend),
                              tx.account_note_index, tx.account_note_path),
            "account_note_not_found", "signing key is not registered for this account",
            ViolationKind.MEMBERSHIP,
        )
    for i in range(2):
        note = tx.input_notes[i]
        if not in_use[i]:
            cs.assert_equal(note.value, 0, f"input_note_{i + 1}_padding_nonzero",
                            "an unused input note must have zero value",
                            ViolationKind.CONSERVATION)
        elif not propagated[i]:
            cs.assert_true(
                note_in_data_tree(backend, tx.merkle_root, input_commitments[i],
                                  tx.input_note_indices[i], tx.input_note_paths[i]),
                f"input_note_{i + 1}_not_found", "input note is not in the data tree",
                ViolationKind.MEMBERSHIP,
            )

    # Nullifiers
    nullifier_1, nullifier_2 = tx.input_nullifiers(backend)
    if in_use[0] and in_use[1]:
        cs.assert_not_equal(input_commitments[0], input_commitments[1], "duplicate_input_notes",
                            "the same note cannot be spent twice", ViolationKind.NULLIFIER)
    if defi:
        if claim_note is not None:
            cs.assert_equal(claim_note.input_nullifier, nullifier_1,
                            "claim_note_input_nullifier_mismatch",
                            "claim note is not bound to input note 1", ViolationKind.NULLIFIER)
    elif out1 is not None:
        cs.assert_equal(out1.input_nullifier, nullifier_1, "output_note_1_input_nullifier_mismatch",
                        "output note 1 is not bound to input note 1", ViolationKind.NULLIFIER)
    cs.assert_equal(out2.input_nullifier, nullifier_2, "output_note_2_input_nullifier_mismatch",
                    "output note 2 is not bound to input note 2", ViolationKind.NULLIFIER)

    # Signature
    commitment_1, commitment_2 = tx.output_commitments(backend)
    signer = tx.signing_public_key if tx.account_required else account_public_key
    cs.assert_true(
        backend.verify_signature(signer, tx.signature, tx.signing_message(backend)),
        "invalid_signature", "signature does not verify against the signer",
        ViolationKind.SIGNATURE,
    )

    # DeFi deposit
    if defi and claim_note is not None:
        cs.assert_true(deposit_value > 0, "defi_deposit_value_zero",
                       "a DeFi deposit must deposit a positive value", ViolationKind.DEFI)
        cs.assert_true(tx.num_input_notes >= 1, "defi_deposit_without_inputs",
                       "a DeFi deposit must spend at least one note", ViolationKind.DEFI)
        if bridge is not None:
            cs.assert_equal(bridge.input_asset_id_a, tx.asset_id, "bridge_input_asset_mismatch",
                            "bridge input asset A is not the transaction asset",
                            ViolationKind.ASSET)
        if second_bridge_input:
            cs.assert_not_equal(bridge.input_asset_id_b, bridge.input_asset_id_a,
                                "bridge_input_assets_equal",
                                "bridge input assets must differ", ViolationKind.ASSET)
            cs.assert_equal(tx.num_input_notes, 2, "defi_second_input_missing",
                            "the bridge's second input needs input note 2", ViolationKind.DEFI)
            cs.assert_equal(in2.value, deposit_value, "defi_second_input_value_mismatch",
                            "input note 2 must carry exactly the deposit value",
                            ViolationKind.DEFI)

    public_asset_id = tx.asset_id if tx.kind.moves_public_value else 0
    bridge_call_data = tx.partial_claim_note.bridge_call_data if (
        defi and tx.partial_claim_note is not None) else 0

    return cs.result(lambda: PublicInputs(
        proof_id=int(tx.kind),
        commitment_1=commitment_1,
        commitment_2=commitment_2,
        nullifier_1=nullifier_1,
        nullifier_2=nullifier_2,
        public_value=tx.public_value,
        public_owner=tx.public_owner,
        asset_id=public_asset_id,
        root=tx.merkle_root,
        tx_fee=tx.tx_fee,
        tx_fee_asset_id_or_bridge_call_data=tx.asset_id,
        bridge_call_data_or_defi_deposit_value=bridge_call_data,
        defi_deposit_value=deposit_value,
        backward_link=backward_link,
        allow_chain=int(tx.allow_chain or 0),
    ))
