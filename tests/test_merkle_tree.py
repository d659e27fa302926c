"""Merkle tree construction, openings and proof verification."""

import pytest

from whir_verifier.primitives.merkle_tree import DIGEST_SIZE, ZERO_DIGEST, MerkleTree

KEY = bytes(range(32))


def _leaves(n):
    return [f"leaf-{i}".encode() for i in range(n)]


class TestMerkleTree:

    @pytest.mark.parametrize("arity", [2, 3, 4])
    @pytest.mark.parametrize("n_leaves", [1, 2, 5, 8, 16])
    def test_every_leaf_verifies(self, arity, n_leaves):
        tree = MerkleTree(KEY, arity=arity)
        leaves = _leaves(n_leaves)
        tree.merkelize(leaves)
        root = tree.get_root()
        for i, leaf in enumerate(leaves):
            proof = tree.get_group_proof(i)
            assert len(proof) == tree.get_merkle_proof_length() * (arity - 1)
            assert tree.verify_group_proof(root, proof, i, leaf)
            assert tree.get_leaf(i) == leaf

    def test_wrong_leaf_rejected(self):
        tree = MerkleTree(KEY)
        tree.merkelize(_leaves(8))
        proof = tree.get_group_proof(3)
        assert not tree.verify_group_proof(tree.get_root(), proof, 3, b"other")

    def test_wrong_index_rejected(self):
        tree = MerkleTree(KEY)
        leaves = _leaves(8)
        tree.merkelize(leaves)
        proof = tree.get_group_proof(3)
        assert not tree.verify_group_proof(tree.get_root(), proof, 2, leaves[3])
        assert not tree.verify_group_proof(tree.get_root(), proof, 3 + 8, leaves[3])

    def test_tampered_sibling_rejected(self):
        tree = MerkleTree(KEY)
        leaves = _leaves(8)
        tree.merkelize(leaves)
        proof = tree.get_group_proof(5)
        proof[1] = bytes(DIGEST_SIZE)
        assert not tree.verify_group_proof(tree.get_root(), proof, 5, leaves[5])

    def test_key_separates_roots(self):
        a = MerkleTree(KEY)
        b = MerkleTree(bytes(32))
        a.merkelize(_leaves(4))
        b.merkelize(_leaves(4))
        assert a.get_root() != b.get_root()

    def test_empty_tree_root(self):
        tree = MerkleTree(KEY)
        tree.merkelize([])
        assert tree.get_root() == ZERO_DIGEST

    def test_proof_size(self):
        tree = MerkleTree(KEY)
        tree.merkelize(_leaves(32))
        assert tree.get_merkle_proof_length() == 5
        assert tree.get_merkle_proof_size() == 5 * DIGEST_SIZE

    def test_out_of_range_proof(self):
        tree = MerkleTree(KEY)
        tree.merkelize(_leaves(4))
        with pytest.raises(ValueError):
            tree.get_group_proof(4)

    @pytest.mark.parametrize("arity,key", [(5, KEY), (2, b"short")])
    def test_invalid_construction(self, arity, key):
        with pytest.raises(ValueError):
            MerkleTree(key, arity=arity)
