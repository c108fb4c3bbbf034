"""
Note & Commitment Model

Typed note records shared by the account, join-split and claim transitions.
A note carries no identity beyond its fields: its commitment is a pure
function of them, recomputed on every evaluation. Persisting commitments is
the tree collaborator's job.

    AccountNote          alias hash + account key + one signing key
    ValueNote            spendable balance bound to an owner
    PartialValueNote     value note with value/asset/link not yet fixed
    PartialClaimNote     DeFi deposit, committed at deposit time
    ClaimNote            PartialClaimNote completed with nonce and fee
    DefiInteractionNote  realized outcome of a bridge interaction

Every commit()/nullifier helper accepts an optional PrimitiveBackend; the
reference backend is used when none is given.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from rollup.circuits.constants import GeneratorIndex
from rollup.circuits.primitives import CurvePoint, PrimitiveBackend, default_backend


def _backend(backend: Optional[PrimitiveBackend]) -> PrimitiveBackend:
    return backend if backend is not None else default_backend()


# =============================================================================
# ACCOUNT NOTES
# =============================================================================

@dataclass(frozen=True)
class AccountNote:
    """Binding between an alias and one authorized signing key."""
    alias_hash: int
    account_public_key: CurvePoint
    signing_public_key: CurvePoint

    def compute_commitment(self, backend: Optional[PrimitiveBackend] = None) -> int:
        return _backend(backend).commit(
            [
                self.alias_hash,
                self.account_public_key.x,
                self.account_public_key.y,
                self.signing_public_key.x,
                self.signing_public_key.y,
            ],
            GeneratorIndex.ACCOUNT_NOTE_COMMITMENT,
        )

    @property
    def commitment(self) -> int:
        return self.compute_commitment()


def alias_nullifier(alias_hash: int, backend: Optional[PrimitiveBackend] = None) -> int:
    """Nullifier that claims an alias."""
    return _backend(backend).commit([alias_hash], GeneratorIndex.ACCOUNT_ALIAS_NULLIFIER)


def account_key_nullifier(account_public_key: CurvePoint,
                          backend: Optional[PrimitiveBackend] = None) -> int:
    """Nullifier that claims an account key."""
    return _backend(backend).commit(
        [account_public_key.x, account_public_key.y],
        GeneratorIndex.ACCOUNT_KEY_NULLIFIER,
    )


# =============================================================================
# VALUE NOTES
# =============================================================================

@dataclass(frozen=True)
class PartialValueNote:
    """
    The owner-side half of a value note.

    Its commitment is fixed before the note's value is known, which is what
    lets a DeFi deposit promise "a note for me" without fixing its amount.
    """
    secret: int
    owner: CurvePoint
    account_required: bool
    creator_pubkey: int = 0

    def compute_commitment(self, backend: Optional[PrimitiveBackend] = None) -> int:
        return _backend(backend).commit(
            [
                self.secret,
                self.owner.x,
                self.owner.y,
                int(self.account_required),
                self.creator_pubkey,
            ],
            GeneratorIndex.VALUE_NOTE_PARTIAL_COMMITMENT,
        )

    @property
    def commitment(self) -> int:
        return self.compute_commitment()


def complete_partial_commitment(partial_commitment: int, value: int, asset_id: int,
                                input_nullifier: int,
                                backend: Optional[PrimitiveBackend] = None) -> int:
    """Full value note commitment from its partial commitment."""
    return _backend(backend).commit(
        [partial_commitment, value, asset_id, input_nullifier],
        GeneratorIndex.VALUE_NOTE_COMMITMENT,
    )


@dataclass(frozen=True)
class ValueNote:
    """
    Spendable balance unit.

    `input_nullifier` ties an output note to the nullifier of the input note
    it replaces, so two outputs of one spend never share a commitment.
    `creator_pubkey` is None when the note does not declare a creator.
    """
    value: int
    secret: int
    owner: CurvePoint
    asset_id: int
    account_required: bool = False
    creator_pubkey: Optional[int] = None
    input_nullifier: int = 0

    def partial(self) -> PartialValueNote:
        return PartialValueNote(
            secret=self.secret,
            owner=self.owner,
            account_required=self.account_required,
            creator_pubkey=self.creator_pubkey or 0,
        )

    def compute_partial_commitment(self, backend: Optional[PrimitiveBackend] = None) -> int:
        return self.partial().compute_commitment(backend)

    def compute_commitment(self, backend: Optional[PrimitiveBackend] = None) -> int:
        """Commitment of the note; an absent creator commits as 0."""
        return complete_partial_commitment(
            self.compute_partial_commitment(backend),
            self.value,
            self.asset_id,
            self.input_nullifier,
            backend,
        )

    @property
    def commitment(self) -> int:
        return self.compute_commitment()

    def with_input_nullifier(self, input_nullifier: int) -> 'ValueNote':
        return replace(self, input_nullifier=input_nullifier)

    def with_creator(self, creator_pubkey: Optional[int]) -> 'ValueNote':
        return replace(self, creator_pubkey=creator_pubkey)


def value_note_nullifier(commitment: int, account_private_key: int, is_real: bool = True,
                         backend: Optional[PrimitiveBackend] = None) -> int:
    """
    Nullifier of a spent value note.

    Depends on the owner's private key, so only the owner can derive it, and
    on `is_real`, so padding notes never collide with real ones.
    """
    return _backend(backend).commit(
        [commitment, account_private_key, int(is_real)],
        GeneratorIndex.VALUE_NOTE_NULLIFIER,
    )


# =============================================================================
# DEFI NOTES
# =============================================================================

@dataclass(frozen=True)
class PartialClaimNote:
    """DeFi deposit record; the value split is deferred until claim time."""
    deposit_value: int
    bridge_call_data: int
    value_note_partial_commitment: int
    input_nullifier: int

    def compute_commitment(self, backend: Optional[PrimitiveBackend] = None) -> int:
        return _backend(backend).commit(
            [
                self.deposit_value,
                self.bridge_call_data,
                self.value_note_partial_commitment,
                self.input_nullifier,
            ],
            GeneratorIndex.CLAIM_NOTE_PARTIAL_COMMITMENT,
        )

    @property
    def commitment(self) -> int:
        return self.compute_commitment()


@dataclass(frozen=True)
class ClaimNote:
    """A PartialClaimNote completed by the rollup with its interaction nonce and fee."""
    deposit_value: int
    bridge_call_data: int
    value_note_partial_commitment: int
    input_nullifier: int
    defi_interaction_nonce: int
    fee: int = 0

    def partial(self) -> PartialClaimNote:
        return PartialClaimNote(
            deposit_value=self.deposit_value,
            bridge_call_data=self.bridge_call_data,
            value_note_partial_commitment=self.value_note_partial_commitment,
            input_nullifier=self.input_nullifier,
        )

    def compute_commitment(self, backend: Optional[PrimitiveBackend] = None) -> int:
        return _backend(backend).commit(
            [
                self.partial().compute_commitment(backend),
                self.defi_interaction_nonce,
                self.fee,
            ],
            GeneratorIndex.CLAIM_NOTE_COMMITMENT,
        )

    @property
    def commitment(self) -> int:
        return self.compute_commitment()


@dataclass(frozen=True)
class DefiInteractionNote:
    """Outcome of one bridge interaction, shared by all of its depositors."""
    bridge_call_data: int
    interaction_nonce: int
    total_input_value: int
    total_output_value_a: int
    total_output_value_b: int
    interaction_result: bool

    def compute_commitment(self, backend: Optional[PrimitiveBackend] = None) -> int:
        return _backend(backend).commit(
            [
                self.bridge_call_data,
                self.interaction_nonce,
                self.total_input_value,
                self.total_output_value_a,
                self.total_output_value_b,
                int(self.interaction_result),
            ],
            GeneratorIndex.DEFI_INTERACTION_NOTE_COMMITMENT,
        )

    @property
    def commitment(self) -> int:
        return self.compute_commitment()


def claim_note_nullifier(claim_commitment: int,
                         backend: Optional[PrimitiveBackend] = None) -> int:
    return _backend(backend).commit([claim_commitment], GeneratorIndex.CLAIM_NOTE_NULLIFIER)


def defi_interaction_nullifier(defi_commitment: int,
                               backend: Optional[PrimitiveBackend] = None) -> int:
    return _backend(backend).commit([defi_commitment], GeneratorIndex.DEFI_INTERACTION_NULLIFIER)
