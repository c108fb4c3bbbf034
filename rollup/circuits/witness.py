"""
Witness Documents

Witnesses travel between provers and tooling as JSON or YAML documents. This
module decodes such documents into typed transactions and back, and is the
only place where wire conventions are turned into the typed variants:

    create / migrate flags   -> AccountMode
    proof_id                 -> JoinSplitKind
    allow_chain 0 | 1 | 2    -> Optional[ChainTarget]
    backward_link 0          -> None
    creator_pubkey 0 / null  -> None

Integers may be written as ints, decimal strings or 0x-prefixed hex. Points
are {x, y} mappings or [x, y] pairs. Signatures are hex strings.

A document names its transition in the `circuit` key:

    circuit: join_split
    proof_id: 1
    public_value: 100
    ...

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from rollup.circuits.account import CIRCUIT_ID as ACCOUNT_CIRCUIT_ID
from rollup.circuits.account import AccountMode, AccountTx, account_circuit
from rollup.circuits.claim import CIRCUIT_ID as CLAIM_CIRCUIT_ID
from rollup.circuits.claim import ClaimTx, claim_circuit
from rollup.circuits.constants import ProofId
from rollup.circuits.errors import TransitionResult, WitnessError
from rollup.circuits.join_split import CIRCUIT_ID as JOIN_SPLIT_CIRCUIT_ID
from rollup.circuits.join_split import (
    ChainTarget,
    JoinSplitKind,
    JoinSplitTx,
    PartialClaimNoteData,
    join_split_circuit,
)
from rollup.circuits.notes import ClaimNote, DefiInteractionNote, ValueNote
from rollup.circuits.observability import CircuitLayer, get_logger
from rollup.circuits.primitives import CurvePoint, PrimitiveBackend

logger = get_logger("witness", CircuitLayer.WITNESS)

Transaction = Union[AccountTx, JoinSplitTx, ClaimTx]

_MISSING = object()


# =============================================================================
# SCALAR DECODING
# =============================================================================

def _get(doc: Mapping[str, Any], key: str, default: Any = _MISSING) -> Any:
    if key in doc:
        return doc[key]
    if default is _MISSING:
        raise WitnessError(key, "missing")
    return default


def _int(doc: Mapping[str, Any], key: str, default: Any = _MISSING) -> int:
    value = _get(doc, key, default)
    if isinstance(value, bool):
        raise WitnessError(key, "expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError:
            raise WitnessError(key, f"not an integer: {value!r}") from None
    raise WitnessError(key, f"expected an integer, got {type(value).__name__}")


def _optional_int(doc: Mapping[str, Any], key: str) -> Optional[int]:
    if doc.get(key) is None:
        return None
    value = _int(doc, key)
    return value or None


def _bool(doc: Mapping[str, Any], key: str, default: Any = _MISSING) -> bool:
    value = _get(doc, key, default)
    if isinstance(value, bool):
        return value
    if value in (0, 1):
        return bool(value)
    raise WitnessError(key, f"expected a boolean, got {value!r}")


def _point(doc: Mapping[str, Any], key: str) -> CurvePoint:
    value = _get(doc, key)
    if isinstance(value, Mapping):
        return CurvePoint(_int(value, "x"), _int(value, "y"))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        pair = {"x": value[0], "y": value[1]}
        return CurvePoint(_int(pair, "x"), _int(pair, "y"))
    raise WitnessError(key, "expected a point as {x, y} or [x, y]")


def _path(doc: Mapping[str, Any], key: str) -> Tuple[int, ...]:
    value = _get(doc, key, [])
    if not isinstance(value, (list, tuple)):
        raise WitnessError(key, "expected a list of sibling hashes")
    return tuple(_int({key: v}, key) for v in value)


def _signature(doc: Mapping[str, Any], key: str = "signature") -> bytes:
    value = _get(doc, key, "")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise WitnessError(key, "expected a hex string")
    text = value[2:] if value.lower().startswith("0x") else value
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise WitnessError(key, "not valid hex") from None


def _mapping(doc: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = _get(doc, key)
    if not isinstance(value, Mapping):
        raise WitnessError(key, "expected a mapping")
    return value


# =============================================================================
# NOTE DECODING
# =============================================================================

def decode_value_note(doc: Mapping[str, Any]) -> ValueNote:
    return ValueNote(
        value=_int(doc, "value"),
        secret=_int(doc, "secret"),
        owner=_point(doc, "owner"),
        asset_id=_int(doc, "asset_id"),
        account_required=_bool(doc, "account_required", False),
        creator_pubkey=_optional_int(doc, "creator_pubkey"),
        input_nullifier=_int(doc, "input_nullifier", 0),
    )


def decode_claim_note(doc: Mapping[str, Any]) -> ClaimNote:
    return ClaimNote(
        deposit_value=_int(doc, "deposit_value"),
        bridge_call_data=_int(doc, "bridge_call_data"),
        value_note_partial_commitment=_int(doc, "value_note_partial_commitment"),
        input_nullifier=_int(doc, "input_nullifier"),
        defi_interaction_nonce=_int(doc, "defi_interaction_nonce"),
        fee=_int(doc, "fee", 0),
    )


def decode_defi_interaction_note(doc: Mapping[str, Any]) -> DefiInteractionNote:
    return DefiInteractionNote(
        bridge_call_data=_int(doc, "bridge_call_data"),
        interaction_nonce=_int(doc, "interaction_nonce"),
        total_input_value=_int(doc, "total_input_value"),
        total_output_value_a=_int(doc, "total_output_value_a"),
        total_output_value_b=_int(doc, "total_output_value_b", 0),
        interaction_result=_bool(doc, "interaction_result"),
    )


# =============================================================================
# TRANSACTION DECODING
# =============================================================================

def decode_account_tx(doc: Mapping[str, Any]) -> AccountTx:
    return AccountTx(
        merkle_root=_int(doc, "merkle_root"),
        account_public_key=_point(doc, "account_public_key"),
        new_account_public_key=_point(doc, "new_account_public_key"),
        new_signing_public_key_1=_point(doc, "new_signing_public_key_1"),
        new_signing_public_key_2=_point(doc, "new_signing_public_key_2"),
        alias_hash=_int(doc, "alias_hash"),
        mode=AccountMode.from_flags(_bool(doc, "create", False), _bool(doc, "migrate", False)),
        account_note_index=_int(doc, "account_note_index", 0),
        account_note_path=_path(doc, "account_note_path"),
        signing_public_key=_point(doc, "signing_public_key"),
        signature=_signature(doc),
    )


def decode_join_split_tx(doc: Mapping[str, Any]) -> JoinSplitTx:
    output_1 = doc.get("output_note_1")
    partial_claim = doc.get("partial_claim_note")
    partial_claim_note = None
    if partial_claim is not None:
        if not isinstance(partial_claim, Mapping):
            raise WitnessError("partial_claim_note", "expected a mapping")
        partial_claim_note = PartialClaimNoteData(
            deposit_value=_int(partial_claim, "deposit_value"),
            bridge_call_data=_int(partial_claim, "bridge_call_data"),
            note_secret=_int(partial_claim, "note_secret"),
            input_nullifier=_int(partial_claim, "input_nullifier", 0),
        )

    return JoinSplitTx(
        kind=JoinSplitKind.from_proof_id(_int(doc, "proof_id")),
        public_value=_int(doc, "public_value", 0),
        public_owner=_int(doc, "public_owner", 0),
        asset_id=_int(doc, "asset_id"),
        num_input_notes=_int(doc, "num_input_notes"),
        input_notes=(
            decode_value_note(_mapping(doc, "input_note_1")),
            decode_value_note(_mapping(doc, "input_note_2")),
        ),
        input_note_indices=(
            _int(doc, "input_note_1_index", 0),
            _int(doc, "input_note_2_index", 0),
        ),
        input_note_paths=(
            _path(doc, "input_note_1_path"),
            _path(doc, "input_note_2_path"),
        ),
        output_notes=(
            decode_value_note(_mapping(doc, "output_note_1")) if output_1 is not None else None,
            decode_value_note(_mapping(doc, "output_note_2")),
        ),
        account_private_key=_int(doc, "account_private_key"),
        alias_hash=_int(doc, "alias_hash", 0),
        account_required=_bool(doc, "account_required", False),
        account_note_index=_int(doc, "account_note_index", 0),
        account_note_path=_path(doc, "account_note_path"),
        signing_public_key=_point(doc, "signing_public_key") if "signing_public_key" in doc
        else CurvePoint.zero(),
        merkle_root=_int(doc, "merkle_root"),
        tx_fee=_int(doc, "tx_fee", 0),
        partial_claim_note=partial_claim_note,
        backward_link=_optional_int(doc, "backward_link"),
        allow_chain=ChainTarget.from_wire(_int(doc, "allow_chain", 0)),
        signature=_signature(doc),
    )


def decode_claim_tx(doc: Mapping[str, Any]) -> ClaimTx:
    return ClaimTx(
        data_root=_int(doc, "data_root"),
        claim_note=decode_claim_note(_mapping(doc, "claim_note")),
        claim_note_index=_int(doc, "claim_note_index"),
        claim_note_path=_path(doc, "claim_note_path"),
        defi_interaction_note=decode_defi_interaction_note(_mapping(doc, "defi_interaction_note")),
        defi_note_index=_int(doc, "defi_note_index"),
        defi_note_path=_path(doc, "defi_note_path"),
        output_value_a=_int(doc, "output_value_a", 0),
        proof_id=_int(doc, "proof_id", int(ProofId.DEFI_CLAIM)),
    )


_CIRCUITS: Dict[str, Tuple[str, Callable[[Mapping[str, Any]], Any], Callable[..., TransitionResult]]] = {
    "account": (ACCOUNT_CIRCUIT_ID, decode_account_tx, account_circuit),
    "join_split": (JOIN_SPLIT_CIRCUIT_ID, decode_join_split_tx, join_split_circuit),
    "claim": (CLAIM_CIRCUIT_ID, decode_claim_tx, claim_circuit),
}


def decode_document(doc: Mapping[str, Any]) -> Transaction:
    """Decode a witness document into its typed transaction."""
    name = _get(doc, "circuit")
    if name not in _CIRCUITS:
        raise WitnessError("circuit", f"unknown circuit {name!r}")
    _, decoder, _ = _CIRCUITS[name]
    return decoder(doc)


def evaluate_document(doc: Mapping[str, Any],
                      backend: Optional[PrimitiveBackend] = None) -> TransitionResult:
    """
    Decode and evaluate a witness document.

    A document that names a known circuit but cannot be decoded (including
    create and migrate both set) is a rejection, not an exception. An
    unknown circuit name raises WitnessError.
    """
    name = _get(doc, "circuit")
    if name not in _CIRCUITS:
        raise WitnessError("circuit", f"unknown circuit {name!r}")
    circuit_id, decoder, circuit = _CIRCUITS[name]

    try:
        tx = decoder(doc)
    except WitnessError as e:
        logger.info("Witness rejected at decode", operation="evaluate_document",
                    error_code=e.code, circuit=circuit_id)
        return TransitionResult.reject(circuit_id, [e.to_violation()])
    return circuit(tx, backend)


def load_witness_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a witness document from a .json, .yaml or .yml file."""
    path = Path(path)
    with open(path) as f:
        if path.suffix == ".json":
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise WitnessError("path", f"invalid JSON in {path}: {e}") from e
        elif path.suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise WitnessError("path", f"invalid YAML in {path}: {e}") from e
        else:
            raise WitnessError("path", f"unsupported witness file type: {path.suffix}")

    if not isinstance(data, dict):
        raise WitnessError("path", f"witness root must be a mapping: {path}")
    return data


# =============================================================================
# ENCODING
# =============================================================================

def _hex(value: int) -> str:
    return hex(value)


def _encode_point(point: CurvePoint) -> Dict[str, str]:
    return {"x": _hex(point.x), "y": _hex(point.y)}


def _encode_path(path: Any) -> List[str]:
    return [_hex(v) for v in path]


def encode_value_note(note: ValueNote) -> Dict[str, Any]:
    return {
        "value": note.value,
        "secret": _hex(note.secret),
        "owner": _encode_point(note.owner),
        "asset_id": note.asset_id,
        "account_required": note.account_required,
        "creator_pubkey": _hex(note.creator_pubkey) if note.creator_pubkey is not None else None,
        "input_nullifier": _hex(note.input_nullifier),
    }


def encode_document(tx: Transaction) -> Dict[str, Any]:
    """Witness document for a typed transaction; decode_document inverts it."""
    if isinstance(tx, AccountTx):
        create, migrate = tx.mode.to_flags()
        return {
            "circuit": "account",
            "merkle_root": _hex(tx.merkle_root),
            "account_public_key": _encode_point(tx.account_public_key),
            "new_account_public_key": _encode_point(tx.new_account_public_key),
            "new_signing_public_key_1": _encode_point(tx.new_signing_public_key_1),
            "new_signing_public_key_2": _encode_point(tx.new_signing_public_key_2),
            "alias_hash": _hex(tx.alias_hash),
            "create": create,
            "migrate": migrate,
            "account_note_index": tx.account_note_index,
            "account_note_path": _encode_path(tx.account_note_path),
            "signing_public_key": _encode_point(tx.signing_public_key),
            "signature": tx.signature.hex(),
        }

    if isinstance(tx, JoinSplitTx):
        out1, out2 = tx.output_notes
        doc: Dict[str, Any] = {
            "circuit": "join_split",
            "proof_id": int(tx.kind),
            "public_value": tx.public_value,
            "public_owner": _hex(tx.public_owner),
            "asset_id": tx.asset_id,
            "num_input_notes": tx.num_input_notes,
            "input_note_1": encode_value_note(tx.input_notes[0]),
            "input_note_2": encode_value_note(tx.input_notes[1]),
            "input_note_1_index": tx.input_note_indices[0],
            "input_note_2_index": tx.input_note_indices[1],
            "input_note_1_path": _encode_path(tx.input_note_paths[0]),
            "input_note_2_path": _encode_path(tx.input_note_paths[1]),
            "output_note_1": encode_value_note(out1) if out1 is not None else None,
            "output_note_2": encode_value_note(out2),
            "account_private_key": _hex(tx.account_private_key),
            "alias_hash": _hex(tx.alias_hash),
            "account_required": tx.account_required,
            "account_note_index": tx.account_note_index,
            "account_note_path": _encode_path(tx.account_note_path),
            "signing_public_key": _encode_point(tx.signing_public_key),
            "merkle_root": _hex(tx.merkle_root),
            "tx_fee": tx.tx_fee,
            "backward_link": _hex(tx.backward_link or 0),
            "allow_chain": int(tx.allow_chain or 0),
            "signature": tx.signature.hex(),
        }
        if tx.partial_claim_note is not None:
            doc["partial_claim_note"] = {
                "deposit_value": tx.partial_claim_note.deposit_value,
                "bridge_call_data": _hex(tx.partial_claim_note.bridge_call_data),
                "note_secret": _hex(tx.partial_claim_note.note_secret),
                "input_nullifier": _hex(tx.partial_claim_note.input_nullifier),
            }
        return doc

    if isinstance(tx, ClaimTx):
        claim = tx.claim_note
        interaction = tx.defi_interaction_note
        return {
            "circuit": "claim",
            "proof_id": int(tx.proof_id),
            "data_root": _hex(tx.data_root),
            "claim_note": {
                "deposit_value": claim.deposit_value,
                "bridge_call_data": _hex(claim.bridge_call_data),
                "value_note_partial_commitment": _hex(claim.value_note_partial_commitment),
                "input_nullifier": _hex(claim.input_nullifier),
                "defi_interaction_nonce": claim.defi_interaction_nonce,
                "fee": claim.fee,
            },
            "claim_note_index": tx.claim_note_index,
            "claim_note_path": _encode_path(tx.claim_note_path),
            "defi_interaction_note": {
                "bridge_call_data": _hex(interaction.bridge_call_data),
                "interaction_nonce": interaction.interaction_nonce,
                "total_input_value": interaction.total_input_value,
                "total_output_value_a": interaction.total_output_value_a,
                "total_output_value_b": interaction.total_output_value_b,
                "interaction_result": interaction.interaction_result,
            },
            "defi_note_index": tx.defi_note_index,
            "defi_note_path": _encode_path(tx.defi_note_path),
            "output_value_a": tx.output_value_a,
        }

    raise TypeError(f"Not a transaction: {type(tx).__name__}")
