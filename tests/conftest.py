import hashlib
import os
import pathlib
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import rollup`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from rollup.merkle import MerkleTree  # noqa: E402
from rollup.circuits.account import AccountMode, AccountTx  # noqa: E402
from rollup.circuits.bridge_call_data import BridgeCallData  # noqa: E402
from rollup.circuits.claim import ClaimTx  # noqa: E402
from rollup.circuits.config import get_config_manager  # noqa: E402
from rollup.circuits.constants import DATA_TREE_DEPTH, FIELD_MODULUS  # noqa: E402
from rollup.circuits.join_split import (  # noqa: E402
    ChainTarget,
    JoinSplitKind,
    JoinSplitTx,
    PartialClaimNoteData,
)
from rollup.circuits.notes import (  # noqa: E402
    AccountNote,
    ClaimNote,
    DefiInteractionNote,
    PartialValueNote,
    ValueNote,
)
from rollup.circuits.primitives import CurvePoint, scalar_mul_fixed_base  # noqa: E402


def _env_flag(name: str) -> bool:
    v = (os.environ.get(name) or '').strip().lower()
    return v in {'1', 'true', 'yes', 'y', 'on'}


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: slow correctness tests (skipped unless ROLLUP_RUN_SLOW=1)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    run_slow = _env_flag('ROLLUP_RUN_SLOW')

    for item in items:
        if 'slow' in item.keywords and not run_slow:
            item.add_marker(pytest.mark.skip(reason='slow tests skipped; set ROLLUP_RUN_SLOW=1 to enable'))


# =============================================================================
# KEYS AND TREES
# =============================================================================

def scalar_from_label(label: str) -> int:
    """Deterministic private scalar for a test label."""
    return int.from_bytes(hashlib.sha256(label.encode()).digest(), "big") % FIELD_MODULUS


@dataclass
class Keypair:
    private_key: int
    public_key: CurvePoint

    @classmethod
    def from_label(cls, label: str) -> 'Keypair':
        private_key = scalar_from_label(label)
        return cls(private_key, scalar_mul_fixed_base(private_key))


@dataclass
class AccountHolder:
    """An account holder: account key, one registered signing key, alias."""

    account: Keypair
    signing: Keypair
    alias_hash: int

    @classmethod
    def from_label(cls, label: str) -> 'AccountHolder':
        return cls(
            account=Keypair.from_label(f"{label}:account"),
            signing=Keypair.from_label(f"{label}:signing"),
            alias_hash=scalar_from_label(f"{label}:alias") % (1 << 224),
        )

    @property
    def account_note(self) -> AccountNote:
        return AccountNote(self.alias_hash, self.account.public_key, self.signing.public_key)


@pytest.fixture(autouse=True)
def reset_config():
    manager = get_config_manager()
    manager.reset()
    yield manager
    manager.reset()


@pytest.fixture
def alice() -> AccountHolder:
    return AccountHolder.from_label("alice")


@pytest.fixture
def bob() -> AccountHolder:
    return AccountHolder.from_label("bob")


@pytest.fixture
def make_keypair():
    return Keypair.from_label


@pytest.fixture
def data_tree() -> MerkleTree:
    return MerkleTree(DATA_TREE_DEPTH)


# =============================================================================
# WITNESS BUILDERS
# =============================================================================

@pytest.fixture
def make_account_tx(alice):
    """Build a signed account transition for `alice` against a fresh tree."""
    def _make(
        mode: AccountMode = AccountMode.CREATE,
        new_account_key: Optional[Keypair] = None,
        new_signing_keys: Optional[Sequence[Keypair]] = None,
        signing_key: Optional[Keypair] = None,
        register: Optional[AccountNote] = None,
        signer: Optional[Keypair] = None,
    ) -> AccountTx:
        tree = MerkleTree(DATA_TREE_DEPTH)
        index = 0
        if register is not None:
            index = tree.append(register.commitment)
        else:
            tree.append(scalar_from_label("unrelated-note"))
            index = 1

        signing_key = signing_key or (alice.account if mode is AccountMode.CREATE else alice.signing)
        new_signing_keys = new_signing_keys or (
            Keypair.from_label("new-signing-1"),
            Keypair.from_label("new-signing-2"),
        )
        new_account_key = new_account_key or alice.account

        tx = AccountTx(
            merkle_root=tree.root,
            account_public_key=alice.account.public_key,
            new_account_public_key=new_account_key.public_key,
            new_signing_public_key_1=new_signing_keys[0].public_key,
            new_signing_public_key_2=new_signing_keys[1].public_key,
            alias_hash=alice.alias_hash,
            mode=mode,
            account_note_index=index,
            account_note_path=tree.get_path(index).siblings,
            signing_public_key=signing_key.public_key,
        )
        return tx.signed_by((signer or signing_key).private_key)

    return _make


@pytest.fixture
def make_join_split(alice):
    """
    Build a linked and signed join-split transition spent by `alice`.

    Input notes are inserted into a fresh data tree; missing inputs become
    zero-value padding notes.
    """
    def _make(
        kind: JoinSplitKind = JoinSplitKind.SEND,
        input_values: Sequence[int] = (),
        output_values: Sequence[int] = (0, 0),
        public_value: int = 0,
        public_owner: int = 0,
        asset_id: int = 0,
        tx_fee: int = 0,
        account_required: bool = False,
        output_owner: Optional[CurvePoint] = None,
        partial_claim_note: Optional[PartialClaimNoteData] = None,
        input_assets: Optional[Sequence[int]] = None,
        backward_link_input: Optional[int] = None,
        allow_chain: Optional[ChainTarget] = None,
        link: bool = True,
        sign: bool = True,
    ) -> JoinSplitTx:
        tree = MerkleTree(DATA_TREE_DEPTH)
        input_assets = input_assets or (asset_id, asset_id)

        # Inputs look like notes an earlier join-split created: creator bound
        # to the spender and linked to some earlier nullifier.
        inputs = []
        for i in range(2):
            value = input_values[i] if i < len(input_values) else 0
            inputs.append(ValueNote(
                value=value,
                secret=scalar_from_label(f"input-{i}-secret"),
                owner=alice.account.public_key,
                asset_id=input_assets[i],
                account_required=account_required,
                creator_pubkey=alice.account.public_key.x,
                input_nullifier=scalar_from_label(f"input-{i}-origin"),
            ))

        indices = [0, 0]
        for i in range(len(input_values)):
            if backward_link_input == i:
                continue
            indices[i] = tree.append(inputs[i].commitment)
        account_note_index = tree.append(alice.account_note.commitment)

        paths = [
            tree.get_path(indices[i]).siblings if i < len(input_values) and backward_link_input != i
            else ()
            for i in range(2)
        ]

        owner = output_owner or alice.account.public_key
        outputs = [
            ValueNote(
                value=output_values[i],
                secret=scalar_from_label(f"output-{i}-secret"),
                owner=owner,
                asset_id=asset_id,
                account_required=account_required,
            )
            for i in range(2)
        ]
        if kind is JoinSplitKind.DEFI_DEPOSIT:
            outputs[0] = None

        tx = JoinSplitTx(
            kind=kind,
            public_value=public_value,
            public_owner=public_owner,
            asset_id=asset_id,
            num_input_notes=len(input_values),
            input_notes=(inputs[0], inputs[1]),
            input_note_indices=(indices[0], indices[1]),
            input_note_paths=(paths[0], paths[1]),
            output_notes=(outputs[0], outputs[1]),
            account_private_key=alice.account.private_key,
            alias_hash=alice.alias_hash,
            account_required=account_required,
            account_note_index=account_note_index,
            account_note_path=tree.get_path(account_note_index).siblings,
            signing_public_key=alice.signing.public_key,
            merkle_root=tree.root,
            tx_fee=tx_fee,
            partial_claim_note=partial_claim_note,
            backward_link=(inputs[backward_link_input].commitment
                           if backward_link_input is not None else None),
            allow_chain=allow_chain,
        )
        if link:
            tx = tx.with_linked_outputs()
        if sign:
            signer = alice.signing if account_required else alice.account
            tx = tx.signed_by(signer.private_key)
        return tx

    return _make


@pytest.fixture
def make_claim_tx(alice):
    """Build a claim transition whose claim and interaction notes are in one tree."""
    def _make(
        deposit_value: int = 50,
        output_value_a: int = 100,
        interaction_result: bool = True,
        bridge: Optional[BridgeCallData] = None,
        interaction_bridge: Optional[int] = None,
        interaction_nonce: Optional[int] = None,
        fee: int = 0,
        insert_claim: bool = True,
        insert_interaction: bool = True,
    ) -> ClaimTx:
        bridge = bridge or BridgeCallData(
            bridge_address_id=7, input_asset_id_a=0, output_asset_id_a=1,
        )
        partial = PartialValueNote(
            secret=scalar_from_label("claim-output-secret"),
            owner=alice.account.public_key,
            account_required=False,
            creator_pubkey=alice.account.public_key.x,
        )
        claim_note = ClaimNote(
            deposit_value=deposit_value,
            bridge_call_data=bridge.to_field(),
            value_note_partial_commitment=partial.commitment,
            input_nullifier=scalar_from_label("deposit-nullifier"),
            defi_interaction_nonce=3,
            fee=fee,
        )
        interaction = DefiInteractionNote(
            bridge_call_data=(interaction_bridge if interaction_bridge is not None
                              else bridge.to_field()),
            interaction_nonce=interaction_nonce if interaction_nonce is not None else 3,
            total_input_value=100,
            total_output_value_a=200,
            total_output_value_b=0,
            interaction_result=interaction_result,
        )

        tree = MerkleTree(DATA_TREE_DEPTH)
        tree.append(scalar_from_label("unrelated-note"))
        claim_index = tree.append(claim_note.commitment) if insert_claim else 5
        defi_index = tree.append(interaction.commitment) if insert_interaction else 6

        return ClaimTx(
            data_root=tree.root,
            claim_note=claim_note,
            claim_note_index=claim_index,
            claim_note_path=tree.get_path(claim_index).siblings,
            defi_interaction_note=interaction,
            defi_note_index=defi_index,
            defi_note_path=tree.get_path(defi_index).siblings,
            output_value_a=output_value_a,
        )

    return _make
