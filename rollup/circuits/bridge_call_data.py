"""
Bridge Call Data

A DeFi deposit names the bridge it calls and the assets it moves in a single
packed field element. Layout, least significant bits first:

    bridge_address_id    32 bits
    input_asset_id_a     30 bits
    output_asset_id_a    30 bits
    input_asset_id_b     30 bits
    output_asset_id_b    30 bits
    bit_config           32 bits  (bit 0: second input in use,
                                   bit 1: second output in use)
    aux_data             64 bits

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from rollup.circuits.constants import (
    BRIDGE_ADDRESS_ID_BIT_LENGTH,
    BRIDGE_ASSET_ID_BIT_LENGTH,
    BRIDGE_AUX_DATA_BIT_LENGTH,
    BRIDGE_BITCONFIG_BIT_LENGTH,
    BRIDGE_CALL_DATA_BIT_LENGTH,
)
from rollup.circuits.field import fits_in_bits

_SECOND_INPUT_IN_USE = 1
_SECOND_OUTPUT_IN_USE = 2

_INPUT_A_OFFSET = BRIDGE_ADDRESS_ID_BIT_LENGTH
_OUTPUT_A_OFFSET = _INPUT_A_OFFSET + BRIDGE_ASSET_ID_BIT_LENGTH
_INPUT_B_OFFSET = _OUTPUT_A_OFFSET + BRIDGE_ASSET_ID_BIT_LENGTH
_OUTPUT_B_OFFSET = _INPUT_B_OFFSET + BRIDGE_ASSET_ID_BIT_LENGTH
_BITCONFIG_OFFSET = _OUTPUT_B_OFFSET + BRIDGE_ASSET_ID_BIT_LENGTH
_AUX_DATA_OFFSET = _BITCONFIG_OFFSET + BRIDGE_BITCONFIG_BIT_LENGTH


def _mask(bits: int) -> int:
    return (1 << bits) - 1


@dataclass(frozen=True)
class BridgeCallData:
    """
    Decoded bridge call data.

    The second input/output assets are optional; a bridge that takes or
    returns a single asset leaves them as None.
    """
    bridge_address_id: int
    input_asset_id_a: int
    output_asset_id_a: int
    input_asset_id_b: Optional[int] = None
    output_asset_id_b: Optional[int] = None
    aux_data: int = 0

    def __post_init__(self):
        fields = {
            "bridge_address_id": (self.bridge_address_id, BRIDGE_ADDRESS_ID_BIT_LENGTH),
            "input_asset_id_a": (self.input_asset_id_a, BRIDGE_ASSET_ID_BIT_LENGTH),
            "output_asset_id_a": (self.output_asset_id_a, BRIDGE_ASSET_ID_BIT_LENGTH),
            "input_asset_id_b": (self.input_asset_id_b or 0, BRIDGE_ASSET_ID_BIT_LENGTH),
            "output_asset_id_b": (self.output_asset_id_b or 0, BRIDGE_ASSET_ID_BIT_LENGTH),
            "aux_data": (self.aux_data, BRIDGE_AUX_DATA_BIT_LENGTH),
        }
        for name, (value, bits) in fields.items():
            if not fits_in_bits(value, bits):
                raise ValueError(f"{name} does not fit in {bits} bits")

    @property
    def second_input_in_use(self) -> bool:
        return self.input_asset_id_b is not None

    @property
    def second_output_in_use(self) -> bool:
        return self.output_asset_id_b is not None

    @property
    def bit_config(self) -> int:
        config = 0
        if self.second_input_in_use:
            config |= _SECOND_INPUT_IN_USE
        if self.second_output_in_use:
            config |= _SECOND_OUTPUT_IN_USE
        return config

    def to_field(self) -> int:
        return (
            self.bridge_address_id
            | (self.input_asset_id_a << _INPUT_A_OFFSET)
            | (self.output_asset_id_a << _OUTPUT_A_OFFSET)
            | ((self.input_asset_id_b or 0) << _INPUT_B_OFFSET)
            | ((self.output_asset_id_b or 0) << _OUTPUT_B_OFFSET)
            | (self.bit_config << _BITCONFIG_OFFSET)
            | (self.aux_data << _AUX_DATA_OFFSET)
        )

    @classmethod
    def from_field(cls, value: int) -> 'BridgeCallData':
        """
        Unpack a bridge call data field element.

        Raises ValueError for values wider than the layout, unknown bit-config
        flags, or a nonzero asset id in a slot its flag marks unused.
        """
        if not fits_in_bits(value, BRIDGE_CALL_DATA_BIT_LENGTH):
            raise ValueError("bridge call data does not fit the layout")

        asset_mask = _mask(BRIDGE_ASSET_ID_BIT_LENGTH)
        bit_config = (value >> _BITCONFIG_OFFSET) & _mask(BRIDGE_BITCONFIG_BIT_LENGTH)
        if bit_config & ~(_SECOND_INPUT_IN_USE | _SECOND_OUTPUT_IN_USE):
            raise ValueError("unknown bridge bit config flags")

        input_b = (value >> _INPUT_B_OFFSET) & asset_mask
        output_b = (value >> _OUTPUT_B_OFFSET) & asset_mask
        if not bit_config & _SECOND_INPUT_IN_USE and input_b:
            raise ValueError("input asset b set but second input not in use")
        if not bit_config & _SECOND_OUTPUT_IN_USE and output_b:
            raise ValueError("output asset b set but second output not in use")

        return cls(
            bridge_address_id=value & _mask(BRIDGE_ADDRESS_ID_BIT_LENGTH),
            input_asset_id_a=(value >> _INPUT_A_OFFSET) & asset_mask,
            output_asset_id_a=(value >> _OUTPUT_A_OFFSET) & asset_mask,
            input_asset_id_b=input_b if bit_config & _SECOND_INPUT_IN_USE else None,
            output_asset_id_b=output_b if bit_config & _SECOND_OUTPUT_IN_USE else None,
            aux_data=(value >> _AUX_DATA_OFFSET) & _mask(BRIDGE_AUX_DATA_BIT_LENGTH),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bridge_address_id": self.bridge_address_id,
            "input_asset_id_a": self.input_asset_id_a,
            "output_asset_id_a": self.output_asset_id_a,
            "input_asset_id_b": self.input_asset_id_b,
            "output_asset_id_b": self.output_asset_id_b,
            "aux_data": self.aux_data,
        }
