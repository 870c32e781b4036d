"""
Tests for the bid tree.

Tests cover:
1. Append-only insertion and capacity
2. Branch generation and verification
3. Agreement with a dense recomputation
"""

import pytest
from blindbid.core.tree import BidTree, EMPTY_LEAF, PoseidonBranch, verify_merkle_inclusion
from blindbid.core.tree.bid_tree import empty_subtree_hashes
from blindbid.crypto.poseidon import FIELD_PRIME, poseidon2


def dense_root(leaves, depth):
    layer = list(leaves) + [EMPTY_LEAF] * (2 ** depth - len(leaves))
    while len(layer) > 1:
        layer = [poseidon2(layer[i], layer[i + 1]) for i in range(0, len(layer), 2)]
    return layer[0]


class TestBidTree:
    def test_empty_root(self):
        tree = BidTree(depth=3)
        assert tree.root == empty_subtree_hashes(3)[3]
        assert tree.root == dense_root([], 3)

    def test_push_returns_consecutive_indices(self):
        tree = BidTree(depth=3)
        assert [tree.push(v) for v in (100, 200, 300)] == [0, 1, 2]
        assert len(tree) == 3

    def test_root_matches_dense_tree(self):
        tree = BidTree(depth=3)
        leaves = [11, 22, 33, 44, 55]
        for leaf in leaves:
            tree.push(leaf)
        assert tree.root == dense_root(leaves, 3)

    def test_root_changes_on_push(self):
        tree = BidTree(depth=3)
        old_root = tree.root
        tree.push(1)
        assert tree.root != old_root

    def test_full_tree(self):
        tree = BidTree(depth=1)
        tree.push(1)
        tree.push(2)
        with pytest.raises(ValueError):
            tree.push(3)

    def test_leaf_out_of_field(self):
        with pytest.raises(ValueError):
            BidTree(depth=2).push(FIELD_PRIME)

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            BidTree(depth=0)

    def test_deep_tree_is_cheap(self):
        tree = BidTree(depth=17)
        tree.push(42)
        assert tree.branch(0).verify()


class TestBranch:
    def test_branch_verifies(self):
        tree = BidTree(depth=3)
        for leaf in (10, 20, 30, 40, 50):
            tree.push(leaf)

        for index in range(5):
            branch = tree.branch(index)
            assert branch.leaf == (index + 1) * 10
            assert branch.root == tree.root
            assert branch.depth == 3
            assert branch.verify()

    def test_index_bits(self):
        tree = BidTree(depth=3)
        for leaf in range(6):
            tree.push(leaf + 1)
        assert tree.branch(5).index_bits() == [1, 0, 1]

    def test_branch_out_of_range(self):
        tree = BidTree(depth=3)
        tree.push(1)
        with pytest.raises(IndexError):
            tree.branch(1)
        with pytest.raises(IndexError):
            tree.branch(-1)

    def test_wrong_leaf_fails(self):
        tree = BidTree(depth=2)
        tree.push(1)
        branch = tree.branch(0)
        assert not verify_merkle_inclusion(2, 0, list(branch.path), branch.root)

    def test_wrong_index_fails(self):
        tree = BidTree(depth=2)
        tree.push(1)
        tree.push(2)
        branch = tree.branch(0)
        assert not verify_merkle_inclusion(branch.leaf, 1, list(branch.path), branch.root)
        assert not verify_merkle_inclusion(branch.leaf, 4, list(branch.path), branch.root)

    def test_stale_branch_fails_after_push(self):
        tree = BidTree(depth=2)
        tree.push(1)
        branch = tree.branch(0)
        tree.push(2)
        stale = PoseidonBranch(tree.root, branch.leaf, branch.index, branch.path)
        assert not stale.verify()
