"""Multilinear coefficient lists: evaluation, weight tables, folding and encoding."""

import numpy as np
import pytest

from whir_verifier.primitives.field import FF, FF3, SHIFT, domain_points, get_omega, lift
from whir_verifier.primitives.polynomial import (
    CoefficientList,
    create_test_polynomial,
    fold_table,
    point_from_ints,
    weight_table,
)


def _evaluate_naive(coeffs, point):
    """sum_i c_i * prod_j z_j^(bit_{n-1-j}(i))"""
    n = len(point)
    total = FF3(0)
    for i, c in enumerate(coeffs):
        term = lift(int(c))
        for j, z in enumerate(point):
            if (i >> (n - 1 - j)) & 1:
                term = term * z
        total = total + term
    return total


class TestCoefficientList:

    def test_requires_power_of_two(self):
        with pytest.raises(ValueError):
            CoefficientList([1, 2, 3])
        with pytest.raises(ValueError):
            CoefficientList([])

    @pytest.mark.parametrize("value", [-1, FF.order, 2**64])
    def test_out_of_range_coefficient_rejected(self, value):
        # Same policy as encode_element: no silent reduction mod p
        with pytest.raises(ValueError):
            CoefficientList([0, value])

    def test_largest_coefficient_accepted(self):
        poly = CoefficientList([FF.order - 1, 0])
        assert int(poly.coeffs[0]) == FF.order - 1

    def test_test_polynomial(self):
        poly = create_test_polynomial(3)
        assert poly.num_variables == 3
        assert [int(c) for c in poly.coeffs] == list(range(8))

    @pytest.mark.parametrize("num_variables", [1, 2, 3, 6])
    def test_evaluate_matches_naive(self, num_variables):
        poly = create_test_polynomial(num_variables)
        point = point_from_ints([3 * i + 2 for i in range(num_variables)])
        assert poly.evaluate(point) == _evaluate_naive(poly.coeffs, point)

    def test_first_coordinate_weighs_msb(self):
        # c = [0, 0, 1, 0] is the monomial X_0
        poly = CoefficientList([0, 0, 1, 0])
        assert poly.evaluate(point_from_ints([5, 9])) == lift(5)

    def test_evaluate_at_ones_sums_coefficients(self):
        poly = create_test_polynomial(6)
        assert poly.evaluate(point_from_ints([1] * 6)) == lift(sum(range(64)))

    def test_wrong_point_length(self):
        with pytest.raises(ValueError):
            create_test_polynomial(3).evaluate(point_from_ints([1, 2]))

    def test_encode_matches_univariate_evaluation(self):
        poly = create_test_polynomial(3)
        codeword = poly.encode(4, SHIFT)
        xs = domain_points(4, SHIFT)
        assert len(codeword) == 16
        for x, value in zip(xs, codeword):
            expected = sum(c * pow(x, i, FF.order) for i, c in enumerate(range(8))) % FF.order
            assert value == lift(expected)

    def test_encode_domain_too_small(self):
        with pytest.raises(ValueError):
            create_test_polynomial(3).encode(2, SHIFT)


class TestWeightTable:

    def test_inner_product_is_evaluation(self):
        poly = create_test_polynomial(4)
        point = point_from_ints([2, 3, 5, 7])
        weights = weight_table(point)
        assert np.sum(lift(poly.coeffs) * weights) == poly.evaluate(point)

    def test_fold_lowest_bit(self):
        table = lift([1, 2, 3, 4])
        r = lift(10)
        assert list(fold_table(table, r)) == [lift(1 + 10 * (2 - 1)), lift(3 + 10 * (4 - 3))]


class TestDomain:

    @pytest.mark.parametrize("n_bits", [1, 4, 7, 20])
    def test_root_of_unity_order(self, n_bits):
        w = get_omega(n_bits)
        assert pow(w, 1 << n_bits, FF.order) == 1
        assert pow(w, 1 << (n_bits - 1), FF.order) == FF.order - 1

    @pytest.mark.parametrize("n_bits", range(1, 33))
    def test_roots_square_down(self, n_bits):
        assert pow(get_omega(n_bits), 2, FF.order) == get_omega(n_bits - 1)
