"""Merkle tree commitment using keyed BLAKE3."""

from typing import List, Optional

from blake3 import blake3

# --- Constants ---

DIGEST_SIZE = 32
ZERO_DIGEST = bytes(DIGEST_SIZE)

_LEAF_TAG = b"\x00"
_NODE_TAG = b"\x01"

# --- Type Aliases ---

MerkleRoot = bytes
LeafData = bytes


# --- Merkle Tree ---

class MerkleTree:
    """Variable-arity Merkle tree over byte leaves.

    Nodes are stored level by level in one flat list, leaves first. Each level
    is padded with zero digests up to a multiple of the arity, so a group of
    siblings always has exactly `arity` members.
    """

    def __init__(self, key: bytes, arity: int = 2):
        if arity not in [2, 3, 4]:
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")
        if len(key) != DIGEST_SIZE:
            raise ValueError(f"key must be {DIGEST_SIZE} bytes, got {len(key)}")

        self.key = key
        self.arity = arity

        self.height = 0
        self.nodes: List[bytes] = []
        self.num_nodes = 0

        # Leaves are kept so openings can return the committed values
        self.leaves: Optional[List[LeafData]] = None

    # --- Hashing ---

    def hash_leaf(self, leaf: LeafData) -> bytes:
        return blake3(_LEAF_TAG + leaf, key=self.key).digest()

    def hash_children(self, children: List[bytes]) -> bytes:
        return blake3(_NODE_TAG + b"".join(children), key=self.key).digest()

    # --- Core Operations ---

    def merkelize(self, leaves: List[LeafData]) -> None:
        """Build Merkle tree from leaf data."""
        height = len(leaves)
        self.height = height
        self.leaves = list(leaves)
        self.num_nodes = self._compute_num_nodes(height)
        self.nodes = [ZERO_DIGEST] * self.num_nodes

        if height == 0:
            return

        for i, leaf in enumerate(leaves):
            self.nodes[i] = self.hash_leaf(leaf)

        # Build internal nodes bottom-up
        pending = height
        next_index = 0

        while pending > 1:
            extra_zeros = (self.arity - (pending % self.arity)) % self.arity
            next_n = (pending + (self.arity - 1)) // self.arity

            for i in range(next_n):
                child_idx = next_index + i * self.arity
                children = self.nodes[child_idx:child_idx + self.arity]
                self.nodes[next_index + pending + extra_zeros + i] = self.hash_children(children)

            next_index += pending + extra_zeros
            pending = next_n

    def get_root(self) -> MerkleRoot:
        """Return the Merkle root commitment."""
        if self.num_nodes == 0:
            return ZERO_DIGEST
        return self.nodes[self.num_nodes - 1]

    def get_group_proof(self, idx: int) -> List[bytes]:
        """Generate Merkle proof (siblings only) for leaf at index, leaf level first."""
        if idx < 0 or idx >= self.height:
            raise ValueError(f"Leaf index {idx} out of range [0, {self.height})")
        proof: List[bytes] = []
        self._collect_proof_siblings(proof, idx, 0, self.height)
        return proof

    def get_leaf(self, idx: int) -> LeafData:
        if self.leaves is None:
            raise ValueError("Leaves not stored - tree has not been merkelized")
        return self.leaves[idx]

    def verify_group_proof(
        self,
        root: MerkleRoot,
        siblings: List[bytes],
        idx: int,
        leaf: LeafData
    ) -> bool:
        """Verify Merkle proof for a leaf against a root."""
        n_per_level = self.arity - 1
        if len(siblings) % n_per_level != 0:
            return False

        computed = self.hash_leaf(leaf)
        for level in range(len(siblings) // n_per_level):
            level_siblings = siblings[level * n_per_level:(level + 1) * n_per_level]
            curr_idx = idx % self.arity
            idx = idx // self.arity

            children = list(level_siblings)
            children.insert(curr_idx, computed)
            computed = self.hash_children(children)

        return idx == 0 and computed == root

    # --- Proof Size Utilities ---

    @staticmethod
    def proof_length(height: int, arity: int) -> int:
        """Number of levels in a Merkle proof for a tree with `height` leaves."""
        levels = 0
        pending = height
        while pending > 1:
            pending = (pending + arity - 1) // arity
            levels += 1
        return levels

    def get_merkle_proof_length(self) -> int:
        """Number of levels in a Merkle proof."""
        return self.proof_length(self.height, self.arity)

    def get_merkle_proof_size(self) -> int:
        """Total size of a Merkle proof in bytes."""
        return self.get_merkle_proof_length() * (self.arity - 1) * DIGEST_SIZE

    # --- Internal Helpers ---

    def _compute_num_nodes(self, height: int) -> int:
        """Calculate total storage needed for tree nodes."""
        num_nodes = height
        nodes_level = height

        while nodes_level > 1:
            extra_zeros = (self.arity - (nodes_level % self.arity)) % self.arity
            num_nodes += extra_zeros
            next_n = (nodes_level + (self.arity - 1)) // self.arity
            num_nodes += next_n
            nodes_level = next_n

        return num_nodes

    def _collect_proof_siblings(
        self,
        proof: List[bytes],
        idx: int,
        offset: int,
        n: int
    ) -> None:
        """Recursively collect sibling hashes for proof."""
        if n <= 1:
            return

        curr_idx = idx % self.arity
        next_idx = idx // self.arity
        si = idx - curr_idx

        for i in range(self.arity):
            if i != curr_idx:
                proof.append(self.nodes[offset + si + i])

        extra_zeros = (self.arity - (n % self.arity)) % self.arity
        next_n = (n + (self.arity - 1)) // self.arity
        next_offset = offset + n + extra_zeros

        self._collect_proof_siblings(proof, next_idx, next_offset, next_n)
