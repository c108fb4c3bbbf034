"""
Public Input Vector

Every transition emits the same 16-slot vector; the aggregator relies on the
uniform arity and on the slot order below.

    0  proof_id                                8  root
    1  commitment_1                            9  tx_fee
    2  commitment_2                           10  tx_fee_asset_id_or_bridge_call_data
    3  nullifier_1                            11  bridge_call_data_or_defi_deposit_value
    4  nullifier_2                            12  defi_deposit_value
    5  public_value                           13  defi_root
    6  public_owner                           14  backward_link
    7  asset_id                               15  allow_chain

Unused slots are zero.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import astuple, dataclass, fields
from typing import Any, Dict, List, Sequence

from rollup.circuits.constants import FIELD_MODULUS, NUM_PUBLIC_INPUTS, PUBLIC_INPUT_NAMES
from rollup.circuits.field import FieldElement


@dataclass(frozen=True)
class PublicInputs:
    """The 16-slot public output of a transition, in wire order."""
    proof_id: int = 0
    commitment_1: int = 0
    commitment_2: int = 0
    nullifier_1: int = 0
    nullifier_2: int = 0
    public_value: int = 0
    public_owner: int = 0
    asset_id: int = 0
    root: int = 0
    tx_fee: int = 0
    tx_fee_asset_id_or_bridge_call_data: int = 0
    bridge_call_data_or_defi_deposit_value: int = 0
    defi_deposit_value: int = 0
    defi_root: int = 0
    backward_link: int = 0
    allow_chain: int = 0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{f.name} must be an int")
            if not 0 <= value < FIELD_MODULUS:
                raise ValueError(f"{f.name} is not a field element")

    def to_fields(self) -> List[int]:
        return [int(v) for v in astuple(self)]

    def to_field_elements(self) -> List[FieldElement]:
        return [FieldElement(v) for v in self.to_fields()]

    @classmethod
    def from_fields(cls, values: Sequence[int]) -> 'PublicInputs':
        if len(values) != NUM_PUBLIC_INPUTS:
            raise ValueError(
                f"Public vector must have {NUM_PUBLIC_INPUTS} slots, got {len(values)}"
            )
        return cls(*(int(v) for v in values))

    def to_dict(self) -> Dict[str, Any]:
        return {name: format(v, '064x') for name, v in zip(PUBLIC_INPUT_NAMES, self.to_fields())}

    @property
    def digest(self) -> str:
        """Content-addressed identifier for the vector."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()
