"""
Bid Tree - append-only Poseidon Merkle tree of bid digests.

Each leaf is a bid's canonical digest; its index becomes ``bid.pos``. The
circuit recomputes the root from a PoseidonBranch with
``blindbid.plonk.gadgets.merkle_opening_gadget``, so node hashing here and
there must agree:

- node = poseidon2(left, right)
- the current node sits on the right when the matching index bit is set

Only non-empty nodes are stored. Empty subtrees at every level hash to a
precomputed value, so a depth-17 tree costs nothing until it fills up.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from blindbid.crypto.poseidon import DOMAIN_MERKLE, FIELD_PRIME, poseidon1, poseidon2
from blindbid.utils.logger import get_logger

logger = get_logger("bid_tree")


# =============================================================================
# Constants
# =============================================================================

# Empty leaf value (hash of 0)
EMPTY_LEAF = poseidon1(0, DOMAIN_MERKLE)


def _hash_pair(left: int, right: int) -> int:
    """Hash two children to produce parent node."""
    return poseidon2(left, right)


def empty_subtree_hashes(depth: int) -> List[int]:
    """Roots of empty subtrees, from the leaf level (0) up to ``depth``."""
    hashes = [EMPTY_LEAF]
    for _ in range(depth):
        hashes.append(_hash_pair(hashes[-1], hashes[-1]))
    return hashes


# =============================================================================
# Branch
# =============================================================================


@dataclass(frozen=True)
class PoseidonBranch:
    """
    Authentication path of one leaf.

    Attributes:
        root: Tree root the branch opens to
        leaf: Leaf value (bid digest)
        index: Leaf position
        path: Sibling hashes from the leaf level up
    """
    root: int
    leaf: int
    index: int
    path: Tuple[int, ...]

    @property
    def depth(self) -> int:
        return len(self.path)

    def index_bits(self) -> List[int]:
        """Little-endian bits of the index, one per level."""
        return [(self.index >> i) & 1 for i in range(self.depth)]

    def verify(self) -> bool:
        return verify_merkle_inclusion(self.leaf, self.index, list(self.path), self.root)


def verify_merkle_inclusion(
    leaf: int,
    index: int,
    proof: List[int],
    root: int,
) -> bool:
    """
    Verify Merkle inclusion proof.

    Standalone verification without full tree.
    """
    if index < 0 or index >> len(proof):
        return False

    current = leaf
    idx = index

    for sibling in proof:
        if idx & 1:
            current = _hash_pair(sibling, current)
        else:
            current = _hash_pair(current, sibling)
        idx = idx >> 1

    return current == root


# =============================================================================
# Bid Tree
# =============================================================================


@dataclass
class BidTree:
    """
    Sparse append-only Merkle tree.

    Attributes:
        depth: Tree depth (2^depth leaves)
        nodes: (level, index) -> hash, for non-empty nodes only
        size: Number of leaves pushed so far
    """
    depth: int
    nodes: Dict[Tuple[int, int], int] = field(default_factory=dict)
    size: int = 0

    def __post_init__(self):
        if not 1 <= self.depth <= 32:
            raise ValueError(f"Tree depth must be in [1, 32], got {self.depth}")
        self.capacity = 2 ** self.depth
        self._empty = empty_subtree_hashes(self.depth)

    def _node(self, level: int, index: int) -> int:
        return self.nodes.get((level, index), self._empty[level])

    @property
    def root(self) -> int:
        """Get the Merkle root."""
        return self._node(self.depth, 0)

    def push(self, leaf: int) -> int:
        """
        Append a leaf.

        Args:
            leaf: Field element (normally a bid digest)

        Returns:
            Index where the leaf was inserted

        Raises:
            ValueError: If the tree is full or the leaf is not a field element
        """
        if self.size >= self.capacity:
            raise ValueError("Tree is full")
        if not 0 <= leaf < FIELD_PRIME:
            raise ValueError(f"Leaf {leaf} out of field range")

        index = self.size
        self.nodes[(0, index)] = leaf

        # Recompute path to root
        idx = index
        for level in range(self.depth):
            left_idx = idx & ~1
            parent = _hash_pair(self._node(level, left_idx), self._node(level, left_idx + 1))
            idx >>= 1
            self.nodes[(level + 1, idx)] = parent

        self.size += 1
        logger.debug(f"Leaf pushed at index {index}, root={hex(self.root)}")
        return index

    def push_bid(self, bid) -> int:
        """Append a bid's digest and record its position on the bid."""
        index = self.push(bid.digest())
        bid.pos = index
        return index

    def leaf(self, index: int) -> int:
        if not 0 <= index < self.size:
            raise IndexError(f"Index {index} out of range [0, {self.size})")
        return self.nodes[(0, index)]

    def branch(self, index: int) -> PoseidonBranch:
        """
        Get the authentication path for a pushed leaf.

        Raises:
            IndexError: If no leaf was pushed at ``index``
        """
        leaf = self.leaf(index)

        path = []
        idx = index
        for level in range(self.depth):
            path.append(self._node(level, idx ^ 1))
            idx >>= 1

        return PoseidonBranch(root=self.root, leaf=leaf, index=index, path=tuple(path))

    def __len__(self) -> int:
        return self.size
