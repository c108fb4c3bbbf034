"""
Tests for the note and commitment model.
"""

from rollup.circuits.constants import GeneratorIndex
from rollup.circuits.notes import (
    AccountNote,
    ClaimNote,
    DefiInteractionNote,
    PartialClaimNote,
    PartialValueNote,
    ValueNote,
    account_key_nullifier,
    alias_nullifier,
    claim_note_nullifier,
    complete_partial_commitment,
    defi_interaction_nullifier,
    value_note_nullifier,
)
from rollup.circuits.primitives import ReferenceBackend, commit


class CountingBackend(ReferenceBackend):
    """Reference backend that counts commit() calls."""

    def __init__(self):
        self.commits = 0

    def commit(self, inputs, generator_index):
        self.commits += 1
        return super().commit(inputs, generator_index)


class TestValueNote:
    """Tests for value note commitments."""

    def test_commitment_deterministic(self, alice):
        note = ValueNote(value=10, secret=99, owner=alice.account.public_key, asset_id=0)
        same = ValueNote(value=10, secret=99, owner=alice.account.public_key, asset_id=0)
        assert note.commitment == same.commitment

    def test_every_field_is_bound(self, alice, bob):
        base = ValueNote(value=10, secret=99, owner=alice.account.public_key, asset_id=0)
        variants = [
            ValueNote(11, 99, alice.account.public_key, 0),
            ValueNote(10, 98, alice.account.public_key, 0),
            ValueNote(10, 99, bob.account.public_key, 0),
            ValueNote(10, 99, alice.account.public_key, 1),
            base.with_creator(5),
            base.with_input_nullifier(5),
            ValueNote(10, 99, alice.account.public_key, 0, account_required=True),
        ]
        commitments = {base.commitment} | {v.commitment for v in variants}
        assert len(commitments) == len(variants) + 1

    def test_commitment_completes_partial(self, alice):
        note = ValueNote(value=10, secret=99, owner=alice.account.public_key, asset_id=3,
                         creator_pubkey=7, input_nullifier=8)
        partial = PartialValueNote(99, alice.account.public_key, False, 7)
        assert note.partial() == partial
        assert note.commitment == complete_partial_commitment(partial.commitment, 10, 3, 8)

    def test_absent_creator_commits_as_zero(self, alice):
        note = ValueNote(value=10, secret=99, owner=alice.account.public_key, asset_id=0)
        assert note.commitment == note.with_creator(0).commitment
        assert note.commitment != note.with_creator(alice.account.public_key.x).commitment

    def test_backend_is_used(self, alice):
        backend = CountingBackend()
        ValueNote(10, 99, alice.account.public_key, 0).compute_commitment(backend)
        assert backend.commits == 2


class TestNullifiers:
    """Tests for nullifier derivation."""

    def test_same_note_same_key_same_nullifier(self):
        assert value_note_nullifier(123, 456) == value_note_nullifier(123, 456)

    def test_key_and_reality_bound(self):
        assert value_note_nullifier(123, 456) != value_note_nullifier(123, 457)
        assert value_note_nullifier(123, 456, True) != value_note_nullifier(123, 456, False)

    def test_domain_tags(self, alice):
        assert alias_nullifier(5) == commit([5], GeneratorIndex.ACCOUNT_ALIAS_NULLIFIER)
        point = alice.account.public_key
        assert account_key_nullifier(point) == commit(
            [point.x, point.y], GeneratorIndex.ACCOUNT_KEY_NULLIFIER
        )
        assert claim_note_nullifier(9) != defi_interaction_nullifier(9)


class TestAccountNote:
    """Tests for account note commitments."""

    def test_binds_signing_key(self, alice, bob):
        a = AccountNote(1, alice.account.public_key, alice.signing.public_key)
        b = AccountNote(1, alice.account.public_key, bob.signing.public_key)
        assert a.commitment != b.commitment
        assert a.commitment == a.compute_commitment(ReferenceBackend())


class TestDefiNotes:
    """Tests for claim and interaction notes."""

    def test_claim_note_extends_partial(self):
        claim = ClaimNote(
            deposit_value=50, bridge_call_data=77, value_note_partial_commitment=3,
            input_nullifier=4, defi_interaction_nonce=2, fee=1,
        )
        partial = PartialClaimNote(50, 77, 3, 4)
        assert claim.partial() == partial
        assert claim.commitment == commit(
            [partial.commitment, 2, 1], GeneratorIndex.CLAIM_NOTE_COMMITMENT
        )

    def test_interaction_result_bound(self):
        success = DefiInteractionNote(77, 2, 100, 200, 0, True)
        failure = DefiInteractionNote(77, 2, 100, 200, 0, False)
        assert success.commitment != failure.commitment
