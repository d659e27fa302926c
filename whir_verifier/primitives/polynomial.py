"""Multilinear polynomials in coefficient form.

A polynomial in n variables is stored as 2^n base field coefficients. The
coefficient at index i multiplies the monomial prod_j X_j^(bit_{n-1-j}(i)), so
the first coordinate of an evaluation point weighs the most significant bit of
the index. The same coefficient list read as a univariate polynomial
sum_i c_i X^i is what gets Reed-Solomon encoded.
"""

from typing import List, Sequence

import galois
import numpy as np

from whir_verifier.primitives.field import FF, FF3, GOLDILOCKS_PRIME, domain_points, lift


class CoefficientList:
    """Multilinear polynomial over the base field, in coefficient form."""

    def __init__(self, coeffs):
        values = [int(c) for c in coeffs]
        for value in values:
            if not 0 <= value < GOLDILOCKS_PRIME:
                raise ValueError(f"coefficient {value} is not a base field element")
        coeffs = FF(values)
        n = len(coeffs)
        if n == 0 or n & (n - 1):
            raise ValueError(f"coefficient count must be a power of two, got {n}")
        self.coeffs = coeffs
        self.num_variables = n.bit_length() - 1

    def __len__(self) -> int:
        return len(self.coeffs)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CoefficientList):
            return NotImplemented
        return np.array_equal(self.coeffs, other.coeffs)

    def __repr__(self) -> str:
        return f"CoefficientList(num_variables={self.num_variables})"

    def evaluate(self, point: Sequence[FF3]) -> FF3:
        """Evaluate at an extension field point, halving the table once per coordinate."""
        if len(point) != self.num_variables:
            raise ValueError(
                f"point has {len(point)} coordinates, polynomial has {self.num_variables} variables"
            )
        table = lift(self.coeffs)
        for z in point:
            half = len(table) // 2
            table = table[:half] + z * table[half:]
        return table[0]

    def encode(self, log_domain_size: int, shift: int) -> FF3:
        """Evaluate the univariate reading sum_i c_i X^i on the coset shift * <w>."""
        if (1 << log_domain_size) < len(self.coeffs):
            raise ValueError("evaluation domain smaller than the polynomial")
        xs = FF(domain_points(log_domain_size, shift))
        # galois expects coefficients in descending degree
        evaluations = galois.Poly(self.coeffs[::-1], field=FF)(xs)
        return lift(evaluations)


def create_test_polynomial(num_variables: int) -> CoefficientList:
    """Polynomial with coefficients 0, 1, ..., 2^n - 1."""
    return CoefficientList(range(1 << num_variables))


def weight_table(point: Sequence[FF3]) -> FF3:
    """Monomial weights: table[i] is the monomial of index i evaluated at point.

    sum_i c_i * table[i] equals CoefficientList(c).evaluate(point).
    """
    table = FF3([1])
    for z in point:
        expanded = FF3.Zeros(2 * len(table))
        expanded[0::2] = table
        expanded[1::2] = table * z
        table = expanded
    return table


def fold_table(table: FF3, r: FF3) -> FF3:
    """Fix the lowest index bit to r: out[m] = table[2m] + r * (table[2m+1] - table[2m])."""
    even = table[0::2]
    odd = table[1::2]
    return even + r * (odd - even)


def point_from_ints(values: List[int]) -> List[FF3]:
    return [lift(v) for v in values]
