"""Primitives - Field arithmetic, hashing and transcript building blocks."""

from whir_verifier.primitives.field import (
    FF,
    FF3,
    GOLDILOCKS_PRIME,
    SHIFT,
    W,
    ff3,
    ff3_coeffs,
    get_omega,
    lift,
)
from whir_verifier.primitives.merkle_tree import (
    DIGEST_SIZE,
    LeafData,
    MerkleRoot,
    MerkleTree,
)
from whir_verifier.primitives.polynomial import (
    CoefficientList,
    create_test_polynomial,
    weight_table,
)
from whir_verifier.primitives.transcript import (
    DomainSeparator,
    ProverState,
    VerifierState,
    grinding,
    verify_grinding,
)

__all__ = [
    # Field
    "FF",
    "FF3",
    "ff3",
    "ff3_coeffs",
    "lift",
    "GOLDILOCKS_PRIME",
    "W",
    "SHIFT",
    "get_omega",
    # Merkle Tree
    "MerkleTree",
    "MerkleRoot",
    "LeafData",
    "DIGEST_SIZE",
    # Polynomial
    "CoefficientList",
    "create_test_polynomial",
    "weight_table",
    # Transcript
    "DomainSeparator",
    "ProverState",
    "VerifierState",
    "grinding",
    "verify_grinding",
]
