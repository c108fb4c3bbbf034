"""
Tests for witness document decoding, encoding and file loading.
"""

import json

import pytest
import yaml

from rollup.circuits.account import AccountMode, AccountTx
from rollup.circuits.claim import ClaimTx
from rollup.circuits.errors import ViolationKind, WitnessError
from rollup.circuits.join_split import JoinSplitKind, JoinSplitTx
from rollup.circuits.witness import (
    decode_document,
    decode_value_note,
    encode_document,
    encode_value_note,
    evaluate_document,
    load_witness_file,
)


class TestDecoding:
    """Wire conventions."""

    def test_integer_forms(self, alice):
        owner = alice.account.public_key
        note = decode_value_note({
            "value": "0x64",
            "secret": "12345",
            "owner": [hex(owner.x), str(owner.y)],
            "asset_id": 2,
        })
        assert note.value == 100
        assert note.secret == 12345
        assert note.owner == owner
        assert note.creator_pubkey is None
        assert note.input_nullifier == 0

    def test_zero_creator_means_absent(self, alice):
        doc = encode_value_note(decode_value_note({
            "value": 1, "secret": 2, "asset_id": 0, "creator_pubkey": 0,
            "owner": {"x": alice.account.public_key.x, "y": alice.account.public_key.y},
        }))
        assert doc["creator_pubkey"] is None

    def test_boolean_is_not_an_integer(self):
        with pytest.raises(WitnessError) as exc_info:
            decode_value_note({"value": True, "secret": 1, "asset_id": 0,
                               "owner": [1, 2]})
        assert exc_info.value.code == "malformed_value"

    def test_missing_field(self):
        with pytest.raises(WitnessError) as exc_info:
            decode_value_note({"value": 1})
        assert exc_info.value.field == "secret"

    def test_bad_point(self):
        with pytest.raises(WitnessError):
            decode_value_note({"value": 1, "secret": 1, "asset_id": 0, "owner": [1, 2, 3]})

    def test_bad_integer_string(self):
        with pytest.raises(WitnessError):
            decode_value_note({"value": "ten", "secret": 1, "asset_id": 0, "owner": [1, 2]})

    def test_unknown_circuit(self):
        with pytest.raises(WitnessError):
            decode_document({"circuit": "mint"})
        with pytest.raises(WitnessError):
            evaluate_document({"circuit": "mint"})


class TestRoundTrip:
    """encode_document followed by decode_document gives back the transaction."""

    def test_account(self, make_account_tx):
        tx = make_account_tx(AccountMode.MIGRATE)
        decoded = decode_document(encode_document(tx))
        assert isinstance(decoded, AccountTx)
        assert decoded == tx

    def test_join_split(self, make_join_split):
        tx = make_join_split(input_values=(60, 40), output_values=(70, 30))
        decoded = decode_document(json.loads(json.dumps(encode_document(tx))))
        assert isinstance(decoded, JoinSplitTx)
        assert decoded == tx

    def test_claim(self, make_claim_tx):
        tx = make_claim_tx()
        decoded = decode_document(encode_document(tx))
        assert isinstance(decoded, ClaimTx)
        assert decoded == tx

    def test_unknown_transaction(self):
        with pytest.raises(TypeError):
            encode_document({"circuit": "account"})


class TestEvaluateDocument:
    """Malformed documents are rejections, not crashes."""

    def test_invalid_proof_id(self, make_join_split):
        doc = encode_document(make_join_split(input_values=(100,), output_values=(100, 0)))
        doc["proof_id"] = 5
        result = evaluate_document(doc)
        assert not result.accepted
        assert result.violation.code == "invalid_proof_id"
        assert result.circuit_id == "rollup.join_split.v1"

    def test_invalid_allow_chain(self, make_join_split):
        doc = encode_document(make_join_split(input_values=(100,), output_values=(100, 0)))
        doc["allow_chain"] = 3
        result = evaluate_document(doc)
        assert result.violation.code == "invalid_allow_chain"
        assert result.violation.kind == ViolationKind.CHAINING

    def test_missing_field_rejected(self, make_claim_tx):
        doc = encode_document(make_claim_tx())
        del doc["data_root"]
        result = evaluate_document(doc)
        assert result.violation.code == "malformed_data_root"
        assert result.violation.kind == ViolationKind.WITNESS

    def test_wrong_arity(self, make_join_split):
        tx = make_join_split(input_values=(100,), output_values=(100, 0))
        with pytest.raises(WitnessError):
            JoinSplitTx(**{**tx.__dict__, "input_notes": tx.input_notes[:1]})


class TestWitnessFiles:
    """Loading witnesses from disk."""

    def test_yaml_file(self, tmp_path, make_join_split):
        tx = make_join_split(
            JoinSplitKind.DEPOSIT, output_values=(100, 0), public_value=100, public_owner=0xBEEF,
        )
        path = tmp_path / "deposit.yaml"
        path.write_text(yaml.safe_dump(encode_document(tx)))
        assert evaluate_document(load_witness_file(path)).accepted

    def test_json_file(self, tmp_path, make_claim_tx):
        path = tmp_path / "claim.json"
        path.write_text(json.dumps(encode_document(make_claim_tx())))
        assert evaluate_document(load_witness_file(str(path))).accepted

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(WitnessError):
            load_witness_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("circuit: [unclosed\n")
        with pytest.raises(WitnessError):
            load_witness_file(path)

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "witness.toml"
        path.write_text("circuit = 'claim'\n")
        with pytest.raises(WitnessError):
            load_witness_file(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(WitnessError):
            load_witness_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_witness_file(tmp_path / "absent.yaml")
