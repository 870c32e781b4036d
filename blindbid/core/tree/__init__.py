"""Poseidon Merkle tree of bid digests"""
from blindbid.core.tree.bid_tree import (
    BidTree,
    PoseidonBranch,
    EMPTY_LEAF,
    verify_merkle_inclusion,
)

__all__ = [
    "BidTree",
    "PoseidonBranch",
    "EMPTY_LEAF",
    "verify_merkle_inclusion",
]
