"""
Rollup Transition Circuits

Constraint logic for a privacy-preserving, account-based shielded-value
rollup. Each transition is a pure predicate over a private witness: it
accepts and emits a 16-slot public vector, or rejects with a diagnostic.

Architecture
────────────

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                         TRANSITION CIRCUITS                              │
    │                                                                          │
    │  TRANSITIONS                                                            │
    │    account.py       Alias registration, key migration, signing keys     │
    │    join_split.py    Deposit, withdraw, send, DeFi deposit               │
    │    claim.py         DeFi interaction settlement                         │
    │                                                                          │
    │  NOTE MODEL                                                             │
    │    notes.py         Account, value, claim and interaction notes         │
    │    bridge_call_data.py  Packed bridge identifier                        │
    │    public_inputs.py     The 16-slot public vector                       │
    │                                                                          │
    │  PRIMITIVES                                                             │
    │    primitives.py    Commitments, keys, signatures, membership           │
    │    field.py         BN254 scalar field elements                         │
    │    constants.py     Protocol constants, proof ids, hash domains         │
    │                                                                          │
    │  TOOLING                                                                │
    │    errors.py        Constraint system and transition results           │
    │    witness.py       JSON / YAML witness documents                       │
    │    registry.py      Content-addressed circuit registry                  │
    │    batch.py         Parallel evaluation of independent transactions     │
    │    config.py        Runtime configuration                               │
    │    observability.py Structured logging and tracing                      │
    │                                                                          │
    └─────────────────────────────────────────────────────────────────────────┘

Core Concepts
─────────────

    Note: A typed record whose commitment is a pure function of its fields.
    Notes carry no identity beyond a single evaluation; the data tree that
    stores their commitments is an external collaborator.

    Nullifier: A value derived from a spent note. Publishing it prevents the
    note from being spent again; detecting reuse is the rollup's job, the
    circuits only guarantee correct derivation.

    Rejection: Every failed constraint means the same thing at the protocol
    level, an invalid transition. Diagnostics name the first failure for
    tooling and collapse to a uniform code when detailed diagnostics are off.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

__version__ = "1.0.0"


# Lazy imports to avoid circular dependencies
def __getattr__(name):
    """Lazy import circuit modules on first access."""

    # Transition exports
    if name in ("AccountMode", "AccountTx", "account_circuit"):
        from rollup.circuits import account
        return getattr(account, name)

    if name in ("JoinSplitKind", "ChainTarget", "PartialClaimNoteData", "JoinSplitTx",
                "join_split_circuit"):
        from rollup.circuits import join_split
        return getattr(join_split, name)

    if name in ("ClaimTx", "claim_circuit"):
        from rollup.circuits import claim
        return getattr(claim, name)

    # Note model exports
    if name in ("AccountNote", "ValueNote", "PartialValueNote", "PartialClaimNote",
                "ClaimNote", "DefiInteractionNote", "value_note_nullifier",
                "alias_nullifier", "account_key_nullifier", "claim_note_nullifier",
                "defi_interaction_nullifier", "complete_partial_commitment"):
        from rollup.circuits import notes
        return getattr(notes, name)

    if name == "BridgeCallData":
        from rollup.circuits.bridge_call_data import BridgeCallData
        return BridgeCallData

    if name == "PublicInputs":
        from rollup.circuits.public_inputs import PublicInputs
        return PublicInputs

    # Primitive exports
    if name in ("CurvePoint", "PrimitiveBackend", "ReferenceBackend", "default_backend",
                "commit", "scalar_mul_fixed_base", "sign", "verify_signature"):
        from rollup.circuits import primitives
        return getattr(primitives, name)

    if name in ("ProofId", "GeneratorIndex", "FIELD_MODULUS"):
        from rollup.circuits import constants
        return getattr(constants, name)

    # Tooling exports
    if name in ("ConstraintSystem", "ConstraintViolation", "TransitionResult",
                "TransitionRejected", "ViolationKind", "WitnessError"):
        from rollup.circuits import errors
        return getattr(errors, name)

    if name in ("decode_document", "encode_document", "evaluate_document",
                "load_witness_file"):
        from rollup.circuits import witness
        return getattr(witness, name)

    if name in ("Circuit", "CircuitRegistry", "create_standard_registry"):
        from rollup.circuits import registry
        return getattr(registry, name)

    if name in ("BatchSummary", "evaluate_batch"):
        from rollup.circuits import batch
        return getattr(batch, name)

    raise AttributeError(f"module 'rollup.circuits' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Transitions
    "AccountMode",
    "AccountTx",
    "account_circuit",
    "JoinSplitKind",
    "ChainTarget",
    "JoinSplitTx",
    "join_split_circuit",
    "ClaimTx",
    "claim_circuit",
    # Notes
    "AccountNote",
    "ValueNote",
    "ClaimNote",
    "DefiInteractionNote",
    "PublicInputs",
    # Tooling
    "TransitionResult",
    "ViolationKind",
    "CircuitRegistry",
    "create_standard_registry",
    "evaluate_batch",
    "evaluate_document",
]
