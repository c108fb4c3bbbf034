"""Fixed-depth Merkle tree utilities for rollup note membership.

Notes (value notes, account notes, claim notes and DeFi interaction notes) are
inserted into an append-only binary Merkle tree of fixed depth. The transition
circuits only ever *check* membership against a caller-supplied root; this
module provides that check plus a small in-memory sparse tree used to build
witness paths.

Design goals:
- Deterministic across implementations
- Simple reference implementation (not optimized)
- Sparse: a depth-32 tree costs one dict entry per touched node

Hashing:
- SHA-256, reduced into the BN254 scalar field
- Domain separation:
  - leaf = SHA256(0x00 || leaf_bytes)
  - node = SHA256(0x01 || left || right)

Leaves and nodes are field elements encoded as 32-byte big-endian integers.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from rollup.circuits.constants import DATA_TREE_DEPTH, FIELD_MODULUS


def _sha256_field(b: bytes) -> int:
    return int.from_bytes(hashlib.sha256(b).digest(), "big") % FIELD_MODULUS


def _is_field(v: object) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and 0 <= v < FIELD_MODULUS


def merkle_leaf_hash(leaf: int) -> int:
    """Compute the leaf hash of a field element."""
    if not _is_field(leaf):
        raise ValueError("leaf must be a field element")
    return _sha256_field(b"\x00" + leaf.to_bytes(32, "big"))


def merkle_node_hash(left: int, right: int) -> int:
    """Compute a parent hash from two child hashes."""
    if not _is_field(left) or not _is_field(right):
        raise ValueError("left and right must be field elements")
    return _sha256_field(b"\x01" + left.to_bytes(32, "big") + right.to_bytes(32, "big"))


def compute_root(leaf: int, index: int, path: Sequence[int]) -> int:
    """Fold a sibling path into a root.

    Bit i of `index` selects whether the running hash is the right (1) or the
    left (0) child at height i.
    """
    cur = merkle_leaf_hash(leaf)
    for height, sibling in enumerate(path):
        if (index >> height) & 1:
            cur = merkle_node_hash(sibling, cur)
        else:
            cur = merkle_node_hash(cur, sibling)
    return cur


def check_membership(root: int, leaf: int, index: int, path: Sequence[int]) -> bool:
    """True iff `leaf` sits at `index` in the tree with `root`.

    The depth is the path length. Malformed input verifies as False.
    """
    try:
        depth = len(path)
        if not isinstance(index, int) or isinstance(index, bool):
            return False
        if depth == 0 or index < 0 or index >= (1 << depth):
            return False
        if not _is_field(root):
            return False
        return compute_root(leaf, index, path) == root
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class MerklePath:
    index: int
    siblings: Tuple[int, ...]

    def root_for(self, leaf: int) -> int:
        return compute_root(leaf, self.index, self.siblings)


class MerkleTree:
    """In-memory sparse Merkle tree of fixed depth.

    Empty leaves hold the value 0. Only nodes on touched paths are stored;
    everything else resolves to the precomputed empty-subtree hash of its
    height.
    """

    def __init__(self, depth: int = DATA_TREE_DEPTH):
        if depth <= 0:
            raise ValueError("depth must be >= 1")
        self.depth = depth
        self._size = 0
        self._nodes: Dict[Tuple[int, int], int] = {}  # (height, index) -> hash
        self._leaves: Dict[int, int] = {}

        zero = merkle_leaf_hash(0)
        self._zero_hashes: List[int] = [zero]
        for _ in range(depth):
            zero = merkle_node_hash(zero, zero)
            self._zero_hashes.append(zero)

    @property
    def size(self) -> int:
        """One past the highest index ever written."""
        return self._size

    @property
    def root(self) -> int:
        return self._node(self.depth, 0)

    def _node(self, height: int, index: int) -> int:
        return self._nodes.get((height, index), self._zero_hashes[height])

    def get_leaf(self, index: int) -> int:
        return self._leaves.get(index, 0)

    def insert(self, index: int, leaf: int) -> int:
        """Write `leaf` at `index` and return the new root."""
        if index < 0 or index >= (1 << self.depth):
            raise ValueError("index out of range")
        self._leaves[index] = leaf
        cur = merkle_leaf_hash(leaf)
        pos = index
        self._nodes[(0, pos)] = cur
        for height in range(self.depth):
            sibling = self._node(height, pos ^ 1)
            cur = merkle_node_hash(sibling, cur) if pos & 1 else merkle_node_hash(cur, sibling)
            pos >>= 1
            self._nodes[(height + 1, pos)] = cur
        self._size = max(self._size, index + 1)
        return cur

    def append(self, leaf: int) -> int:
        """Append `leaf` at the next free index and return that index."""
        index = self._size
        self.insert(index, leaf)
        return index

    def get_path(self, index: int) -> MerklePath:
        """Sibling path for `index`, bottom-up."""
        if index < 0 or index >= (1 << self.depth):
            raise ValueError("index out of range")
        siblings: List[int] = []
        pos = index
        for height in range(self.depth):
            siblings.append(self._node(height, pos ^ 1))
            pos >>= 1
        return MerklePath(index=index, siblings=tuple(siblings))
