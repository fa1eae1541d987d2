import unittest

import numpy as np

from chembalance.fraction import RobustFraction
from chembalance.linalg import (
    LinearAlgebraError,
    build_stoichiometric_matrix,
    conservation_residual,
    find_null_space_vector,
    gaussian_elimination,
    normalize_to_positive_integers,
    to_fraction_matrix,
)


class TestLinearAlgebra(unittest.TestCase):
    def setUp(self):
        # H2 + O2 -> H2O
        self.compositions = [{"H": 2}, {"O": 2}, {"H": 2, "O": 1}]
        self.matrix = build_stoichiometric_matrix(self.compositions, 2, ["H", "O"])

    def test_matrix(self):
        np.testing.assert_array_equal(self.matrix, np.array([[2, 0, -2], [0, 2, -1]]))

    def test_elimination_and_null_space(self):
        steps = []
        reduced, pivots = gaussian_elimination(to_fraction_matrix(self.matrix), steps)
        self.assertEqual(pivots, [0, 1])
        self.assertEqual(reduced[1][2], RobustFraction(-1, 2))
        self.assertTrue(steps)

        solution = find_null_space_vector(reduced, pivots, 3)
        self.assertEqual(solution, [RobustFraction(1), RobustFraction(1, 2), RobustFraction(1)])
        coefficients = normalize_to_positive_integers(solution)
        self.assertEqual(coefficients, [2, 1, 2])
        self.assertFalse(conservation_residual(self.matrix, coefficients).any())

    def test_partial_pivoting_prefers_largest(self):
        matrix = [[RobustFraction(1), RobustFraction(1)], [RobustFraction(-3), RobustFraction(1)]]
        steps = []
        gaussian_elimination(matrix, steps)
        self.assertEqual(steps[0], "R1 = R1 / (-3)")

    def test_trivial_null_space(self):
        matrix = build_stoichiometric_matrix([{"H": 2}, {"O": 2}], 1, ["H", "O"])
        reduced, pivots = gaussian_elimination(to_fraction_matrix(matrix))
        with self.assertRaises(LinearAlgebraError):
            find_null_space_vector(reduced, pivots, 2)

    def test_normalize_negates_and_reduces(self):
        vector = [RobustFraction(-2, 3), RobustFraction(-4, 3), RobustFraction(0)]
        self.assertEqual(normalize_to_positive_integers(vector), [1, 2, 0])

    def test_empty_system(self):
        with self.assertRaises(LinearAlgebraError):
            build_stoichiometric_matrix([], 0, [])


if __name__ == '__main__':
    unittest.main()
