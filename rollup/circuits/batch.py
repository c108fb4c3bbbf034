"""
Batch Evaluation

Evaluations share no mutable state, so independent transactions are decided
in parallel. Results come back in input order; ordering between
transactions is expressed by their chaining fields, not by evaluation order.

Copyright (c) 2026 Momentum. All rights reserved.
Contact: engineering@momentum.inc
"""

from __future__ import annotations

import concurrent.futures
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from rollup.circuits.config import get_config
from rollup.circuits.errors import TransitionResult
from rollup.circuits.observability import CircuitLayer, get_logger, timed_operation
from rollup.circuits.primitives import PrimitiveBackend
from rollup.circuits.registry import CircuitRegistry, create_standard_registry

logger = get_logger("batch", CircuitLayer.BATCH)


@dataclass
class BatchSummary:
    """Counts over one batch of results."""
    total: int = 0
    accepted: int = 0
    rejected: int = 0
    rejection_codes: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_results(cls, results: Sequence[TransitionResult]) -> 'BatchSummary':
        codes = Counter(r.violation.code for r in results if not r.accepted and r.violation)
        accepted = sum(1 for r in results if r.accepted)
        return cls(
            total=len(results),
            accepted=accepted,
            rejected=len(results) - accepted,
            rejection_codes=dict(codes),
        )

    @property
    def all_accepted(self) -> bool:
        return self.rejected == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "accepted": self.accepted,
            "rejected": self.rejected,
            "rejection_codes": dict(self.rejection_codes),
        }


@timed_operation(logger, "evaluate_batch")
def evaluate_batch(
    txs: Sequence[Any],
    max_workers: Optional[int] = None,
    registry: Optional[CircuitRegistry] = None,
    backend: Optional[PrimitiveBackend] = None,
) -> List[TransitionResult]:
    """
    Evaluate typed transactions in parallel.

    `max_workers` defaults to `batch.max_workers` from the configuration.
    A transaction of a type no circuit serves raises TypeError before any
    evaluation starts.
    """
    registry = registry or create_standard_registry()
    for tx in txs:
        if registry.circuit_for_transaction(tx) is None:
            raise TypeError(f"No circuit registered for {type(tx).__name__}")
    if not txs:
        return []

    workers = max_workers or get_config().batch.max_workers.get()
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda tx: registry.evaluate(tx, backend), txs))

    summary = BatchSummary.from_results(results)
    logger.info(
        "Batch evaluated",
        operation="evaluate_batch",
        total=summary.total,
        accepted=summary.accepted,
        rejected=summary.rejected,
    )
    return results
