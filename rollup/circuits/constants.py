"""
Rollup Circuit Protocol Constants

Fixed protocol parameters shared by the account, join-split and claim
transitions. These values are part of the wire contract with the proving
backend and the rollup aggregator, so they are plain module constants and are
never read from configuration.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from enum import IntEnum
from typing import Tuple


# =============================================================================
# FIELD
# =============================================================================

# BN254 scalar field order (Fr)
FIELD_MODULUS = 0x30644e72e131a029b85045b68181585d2833e84879b9709143e1f593f0000001


# =============================================================================
# TREES
# =============================================================================

DATA_TREE_DEPTH = 32
NULL_TREE_DEPTH = 256
ROOT_TREE_DEPTH = 28


# =============================================================================
# BIT WIDTHS
# =============================================================================

# Largest width for which the sum of three values cannot wrap the field.
MAX_NO_WRAP_INTEGER_BIT_LENGTH = 252

NOTE_VALUE_BIT_LENGTH = MAX_NO_WRAP_INTEGER_BIT_LENGTH
DEFI_DEPOSIT_VALUE_BIT_LENGTH = MAX_NO_WRAP_INTEGER_BIT_LENGTH
TX_FEE_BIT_LENGTH = 226
ASSET_ID_BIT_LENGTH = 30
ALIAS_HASH_BIT_LENGTH = 224
DATA_TREE_INDEX_BIT_LENGTH = DATA_TREE_DEPTH
DEFI_INTERACTION_NONCE_BIT_LENGTH = 30
PUBLIC_OWNER_BIT_LENGTH = 160

SIGNATURE_LENGTH = 64


# =============================================================================
# PROOF KINDS
# =============================================================================

class ProofId(IntEnum):
    """Tag carried in slot 0 of every public vector."""
    ACCOUNT = 0
    DEPOSIT = 1
    WITHDRAW = 2
    SEND = 3
    DEFI_DEPOSIT = 4
    DEFI_CLAIM = 5


# =============================================================================
# HASH DOMAINS
# =============================================================================

class GeneratorIndex(IntEnum):
    """
    Domain tags for every use of the commitment hash.

    Two hashes over identical inputs but different indices are unrelated,
    which keeps note commitments, nullifiers and signed messages in disjoint
    domains.
    """
    VALUE_NOTE_PARTIAL_COMMITMENT = 1
    VALUE_NOTE_COMMITMENT = 2
    VALUE_NOTE_NULLIFIER = 3
    CLAIM_NOTE_PARTIAL_COMMITMENT = 4
    CLAIM_NOTE_COMMITMENT = 5
    CLAIM_NOTE_NULLIFIER = 6
    DEFI_INTERACTION_NOTE_COMMITMENT = 7
    DEFI_INTERACTION_NULLIFIER = 8
    ACCOUNT_NOTE_COMMITMENT = 9
    ACCOUNT_ALIAS_NULLIFIER = 10
    ACCOUNT_KEY_NULLIFIER = 11
    JOIN_SPLIT_SIGNATURE_MESSAGE = 12
    ACCOUNT_SIGNATURE_MESSAGE = 13


# =============================================================================
# PUBLIC VECTOR
# =============================================================================

NUM_PUBLIC_INPUTS = 16

PUBLIC_INPUT_NAMES: Tuple[str, ...] = (
    "proof_id",
    "commitment_1",
    "commitment_2",
    "nullifier_1",
    "nullifier_2",
    "public_value",
    "public_owner",
    "asset_id",
    "root",
    "tx_fee",
    "tx_fee_asset_id_or_bridge_call_data",
    "bridge_call_data_or_defi_deposit_value",
    "defi_deposit_value",
    "defi_root",
    "backward_link",
    "allow_chain",
)

assert len(PUBLIC_INPUT_NAMES) == NUM_PUBLIC_INPUTS


# =============================================================================
# BRIDGE CALL DATA LAYOUT
# =============================================================================

BRIDGE_ADDRESS_ID_BIT_LENGTH = 32
BRIDGE_ASSET_ID_BIT_LENGTH = ASSET_ID_BIT_LENGTH
BRIDGE_BITCONFIG_BIT_LENGTH = 32
BRIDGE_AUX_DATA_BIT_LENGTH = 64

BRIDGE_CALL_DATA_BIT_LENGTH = (
    BRIDGE_ADDRESS_ID_BIT_LENGTH
    + 4 * BRIDGE_ASSET_ID_BIT_LENGTH
    + BRIDGE_BITCONFIG_BIT_LENGTH
    + BRIDGE_AUX_DATA_BIT_LENGTH
)
