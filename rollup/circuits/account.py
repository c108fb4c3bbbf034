"""
Account Transition

Registers an alias, rotates an account key, or adds signing keys to an
existing account. The transition proves signing authority over the account
and publishes two new AccountNote commitments plus the nullifiers that claim
the alias and the account key.

Modes:
    CREATE    new alias, account key and signing keys; claims alias and key
    MIGRATE   same alias, new account key; claims the new account key
    ADD_KEYS  same alias and account key, two more signing keys; no nullifiers

Public vector:
    [0, c1, c2, nf1, nf2, 0, 0, 0, merkle_root, 0, 0, 0, 0, 0, 0, 0]

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Tuple

from rollup.circuits.constants import (
    ALIAS_HASH_BIT_LENGTH,
    DATA_TREE_INDEX_BIT_LENGTH,
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
from rollup.circuits.notes import AccountNote, account_key_nullifier, alias_nullifier
from rollup.circuits.observability import CircuitLayer, get_logger, traced_transition
from rollup.circuits.primitives import (
    CurvePoint,
    PrimitiveBackend,
    default_backend,
    note_in_data_tree,
    sign,
)
from rollup.circuits.public_inputs import PublicInputs

CIRCUIT_ID = "rollup.account.v1"

logger = get_logger("account_circuit", CircuitLayer.ACCOUNT)


class AccountMode(Enum):
    """What an account transition does. Exactly one mode per transition."""
    CREATE = "create"
    MIGRATE = "migrate"
    ADD_KEYS = "add_keys"

    @classmethod
    def from_flags(cls, create: bool, migrate: bool) -> 'AccountMode':
        """Map the wire flag pair onto a mode; both flags set is malformed."""
        if create and migrate:
            raise WitnessError(
                "migrate",
                "create and migrate are mutually exclusive",
                ViolationKind.MODE,
                code="create_and_migrate",
            )
        if create:
            return cls.CREATE
        if migrate:
            return cls.MIGRATE
        return cls.ADD_KEYS

    def to_flags(self) -> Tuple[bool, bool]:
        return self is AccountMode.CREATE, self is AccountMode.MIGRATE


@dataclass(frozen=True)
class AccountTx:
    """
    Account transition witness.

    `signing_public_key` is the existing key that authorizes the change. On
    CREATE nothing is registered yet and the account key signs for itself.
    """
    merkle_root: int
    account_public_key: CurvePoint
    new_account_public_key: CurvePoint
    new_signing_public_key_1: CurvePoint
    new_signing_public_key_2: CurvePoint
    alias_hash: int
    mode: AccountMode
    account_note_index: int
    account_note_path: Sequence[int]
    signing_public_key: CurvePoint
    signature: bytes = b""

    @property
    def signer(self) -> CurvePoint:
        if self.mode is AccountMode.CREATE:
            return self.account_public_key
        return self.signing_public_key

    def nullifiers(self, backend: Optional[PrimitiveBackend] = None) -> Tuple[int, int]:
        """(alias nullifier, account key nullifier), zero where the mode claims nothing."""
        backend = backend or default_backend()
        nullifier_1 = 0
        nullifier_2 = 0
        if self.mode is AccountMode.CREATE:
            nullifier_1 = alias_nullifier(self.alias_hash, backend)
        if self.mode in (AccountMode.CREATE, AccountMode.MIGRATE):
            nullifier_2 = account_key_nullifier(self.account_public_key, backend)
        return nullifier_1, nullifier_2

    def output_notes(self) -> Tuple[AccountNote, AccountNote]:
        return (
            AccountNote(self.alias_hash, self.new_account_public_key, self.new_signing_public_key_1),
            AccountNote(self.alias_hash, self.new_account_public_key, self.new_signing_public_key_2),
        )

    def signing_message(self, backend: Optional[PrimitiveBackend] = None) -> int:
        backend = backend or default_backend()
        nullifier_1, nullifier_2 = self.nullifiers(backend)
        return backend.commit(
            [
                self.alias_hash,
                self.account_public_key.x,
                self.account_public_key.y,
                self.new_account_public_key.x,
                self.new_account_public_key.y,
                self.new_signing_public_key_1.x,
                self.new_signing_public_key_1.y,
                self.new_signing_public_key_2.x,
                self.new_signing_public_key_2.y,
                nullifier_1,
                nullifier_2,
            ],
            GeneratorIndex.ACCOUNT_SIGNATURE_MESSAGE,
        )

    def signed_by(self, private_scalar: int) -> 'AccountTx':
        """Copy of this witness carrying a signature by `private_scalar`."""
        return replace(self, signature=sign(private_scalar, self.signing_message()))


@traced_transition(logger, CircuitLayer.ACCOUNT, "account_circuit")
def account_circuit(tx: AccountTx,
                    backend: Optional[PrimitiveBackend] = None) -> TransitionResult:
    """Evaluate an account transition."""
    backend = backend or default_backend()
    cs = ConstraintSystem(CIRCUIT_ID)

    cs.range_check(tx.alias_hash, ALIAS_HASH_BIT_LENGTH, "alias_hash")
    cs.range_check(tx.account_note_index, DATA_TREE_INDEX_BIT_LENGTH, "account_note_index")
    cs.assert_true(is_field_element(tx.merkle_root), "merkle_root_out_of_range",
                   "merkle_root must be a field element", ViolationKind.RANGE)

    creating = tx.mode is AccountMode.CREATE
    migrating = tx.mode is AccountMode.MIGRATE

    nullifier_1, nullifier_2 = tx.nullifiers(backend)

    note_1, note_2 = tx.output_notes()
    commitment_1 = note_1.compute_commitment(backend)
    commitment_2 = note_2.compute_commitment(backend)

    signer = tx.signer
    if not creating:
        cs.assert_not_equal(
            signer, tx.new_account_public_key, "signer_is_new_account_key",
            "the authorizing key cannot be the new account key", ViolationKind.KEY_SEPARATION,
        )
    cs.assert_not_equal(
        signer, tx.new_signing_public_key_1, "signer_is_new_signing_key_1",
        "the authorizing key cannot register itself as a signing key",
        ViolationKind.KEY_SEPARATION,
    )
    cs.assert_not_equal(
        signer, tx.new_signing_public_key_2, "signer_is_new_signing_key_2",
        "the authorizing key cannot register itself as a signing key",
        ViolationKind.KEY_SEPARATION,
    )

    if not migrating:
        cs.assert_equal(
            tx.account_public_key, tx.new_account_public_key, "account_key_changed",
            "only a migration may change the account key", ViolationKind.MODE,
        )

    cs.assert_true(
        backend.verify_signature(signer, tx.signature, tx.signing_message(backend)),
        "invalid_signature", "signature does not verify against the signer",
        ViolationKind.SIGNATURE,
    )

    existing = AccountNote(tx.alias_hash, tx.account_public_key, tx.signing_public_key)
    present = note_in_data_tree(
        backend, tx.merkle_root, existing.compute_commitment(backend),
        tx.account_note_index, tx.account_note_path,
    )
    if creating:
        cs.assert_true(not present, "account_already_registered",
                       "account note is already in the tree", ViolationKind.MEMBERSHIP)
    else:
        cs.assert_true(present, "account_note_not_found",
                       "signing key is not registered for this account",
                       ViolationKind.MEMBERSHIP)

    return cs.result(lambda: PublicInputs(
        proof_id=int(ProofId.ACCOUNT),
        commitment_1=commitment_1,
        commitment_2=commitment_2,
        nullifier_1=nullifier_1,
        nullifier_2=nullifier_2,
        root=tx.merkle_root,
    ))
