import unittest
from functools import reduce
from math import gcd
from unittest import mock

from chembalance import constants
from chembalance.balancers import (
    balance_by_algebraic_method,
    balance_by_trial_and_error,
    balance_chemical_equation,
)
from chembalance.config import BalancerConfiguration, ParserLimits
from chembalance.equation import parse_chemical_equation, validate_balanced_equation
from chembalance.models import ChemicalEquation, EquationCompound
from chembalance.periodic import ElementLookup

SCENARIOS = {
    "H2 + O2 = H2O": ((2, 1, 2), "2H2 + O2 → 2H2O"),
    "Fe + O2 = Fe2O3": ((4, 3, 2), "4Fe + 3O2 → 2Fe2O3"),
    "C2H6 + O2 = CO2 + H2O": ((2, 7, 4, 6), "2C2H6 + 7O2 → 4CO2 + 6H2O"),
    "Al + HCl -> AlCl3 + H2": ((2, 6, 2, 3), "2Al + 6HCl → 2AlCl3 + 3H2"),
    "Ca(OH)2 + H3PO4 → Ca3(PO4)2 + H2O": ((3, 2, 1, 6), "3Ca(OH)2 + 2H3PO4 → Ca3(PO4)2 + 6H2O"),
}


def _equation(text):
    return parse_chemical_equation(text).to_equation()


class BalancedResultChecks:
    def assertProperlyBalanced(self, result):
        self.assertTrue(result.is_valid, result.error)
        check = validate_balanced_equation(result.balanced_reactants, result.balanced_products)
        self.assertTrue(check.is_balanced, check.errors)
        self.assertTrue(all(c >= 1 for c in result.coefficients))
        self.assertEqual(reduce(gcd, result.coefficients), 1)


class TestTrialAndError(unittest.TestCase, BalancedResultChecks):
    def test_scenarios(self):
        for text, (coefficients, balanced) in SCENARIOS.items():
            result = balance_chemical_equation(text, method=constants.TRIAL_AND_ERROR)
            self.assertProperlyBalanced(result)
            self.assertEqual(result.coefficients, coefficients, text)
            self.assertEqual(result.balanced_equation, balanced)
            self.assertEqual(result.method, "trial-and-error")

    def test_already_balanced(self):
        result = balance_by_trial_and_error(_equation("HCl + NaOH = NaCl + H2O"))
        self.assertTrue(result.is_valid)
        self.assertEqual(result.coefficients, (1, 1, 1, 1))
        self.assertIn("already balanced", result.steps[-1].description)

    def test_found_step_has_element_counts(self):
        result = balance_by_trial_and_error(_equation("H2 + O2 = H2O"))
        found = [s for s in result.steps if s.element_count]
        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].element_count, {"H": (4, 4), "O": (2, 2)})
        self.assertEqual([s.step_number for s in result.steps], list(range(1, len(result.steps) + 1)))

    def test_input_coefficients_are_ignored(self):
        result = balance_chemical_equation("3H2 + 5O2 = 7H2O")
        self.assertEqual(result.coefficients, (2, 1, 2))

    def test_coefficient_ceiling(self):
        # Octane combustion needs 25 O2, above the search ceiling.
        result = balance_by_trial_and_error(_equation("C8H18 + O2 = CO2 + H2O"))
        self.assertFalse(result.is_valid)
        self.assertIn("10000 combinations tried", result.error)
        progress = [s for s in result.steps if s.description.startswith("Progress")]
        self.assertEqual(len(progress), 10)
        self.assertEqual(result.balanced_equation, "")

    def test_search_space_exhausted(self):
        result = balance_by_trial_and_error(_equation("H2 = O2"))
        self.assertFalse(result.is_valid)
        self.assertIn("combinations tried", result.error)

    def test_custom_budget(self):
        config = BalancerConfiguration(max_iterations=50, progress_interval=10)
        result = balance_by_trial_and_error(_equation("Fe + O2 = Fe2O3"), config=config)
        self.assertFalse(result.is_valid)
        self.assertIn("50 combinations tried", result.error)

        result = balance_by_trial_and_error(_equation("Fe + O2 = Fe2O3"), max_iterations=5000)
        self.assertTrue(result.is_valid)

    def test_deterministic(self):
        first = balance_chemical_equation("C2H6 + O2 = CO2 + H2O")
        second = balance_chemical_equation("C2H6 + O2 = CO2 + H2O")
        self.assertEqual(first, second)


class TestAlgebraic(unittest.TestCase, BalancedResultChecks):
    def test_scenarios(self):
        for text, (coefficients, balanced) in SCENARIOS.items():
            result = balance_chemical_equation(text, method=constants.ALGEBRAIC)
            self.assertProperlyBalanced(result)
            self.assertEqual(result.coefficients, coefficients, text)
            self.assertEqual(result.balanced_equation, balanced)
            self.assertEqual(result.method, "algebraic")

    def test_large_coefficients(self):
        result = balance_by_algebraic_method(_equation("C8H18 + O2 = CO2 + H2O"))
        self.assertProperlyBalanced(result)
        self.assertEqual(result.coefficients, (2, 25, 16, 18))

        result = balance_by_algebraic_method(
            _equation("K4Fe(CN)6 + KMnO4 + H2SO4 = KHSO4 + Fe2(SO4)3 + MnSO4 + HNO3 + CO2 + H2O")
        )
        self.assertProperlyBalanced(result)
        self.assertEqual(result.coefficients, (10, 122, 299, 162, 5, 122, 60, 60, 188))

    def test_trace_ends_with_balanced_equation(self):
        result = balance_by_algebraic_method(_equation("Fe + O2 = Fe2O3"))
        self.assertEqual(result.steps[0].description, "Fe: [1  0  -2] = 0")
        self.assertEqual(result.steps[-1].equation, "4Fe + 3O2 → 2Fe2O3")

    def test_overdetermined(self):
        result = balance_by_algebraic_method(_equation("NaCl = Na"))
        self.assertFalse(result.is_valid)
        self.assertEqual(result.error, constants.OVERDETERMINED_SYSTEM)
        self.assertTrue(result.steps)

    def test_multiple_free_variables(self):
        result = balance_by_algebraic_method(_equation("H2 + O2 = H2O + H2O2"))
        self.assertFalse(result.is_valid)
        self.assertEqual(result.error, constants.NON_POSITIVE_SOLUTION)
        self.assertTrue(any("Null space has dimension 2" in s.description for s in result.steps))

    def test_agrees_with_trial_and_error(self):
        for text in SCENARIOS:
            algebraic = balance_chemical_equation(text, method="algebraic")
            trial = balance_chemical_equation(text, method="trial-and-error")
            self.assertEqual(algebraic.coefficients, trial.coefficients)


class TestDispatch(unittest.TestCase):
    def test_unparseable_equation(self):
        result = balance_chemical_equation("H2 + O2")
        self.assertFalse(result.is_valid)
        self.assertIsNone(result.original_equation)
        self.assertEqual(result.error, constants.MISSING_ARROW)
        self.assertEqual(result.steps, ())

    def test_unknown_method(self):
        result = balance_chemical_equation("H2 + O2 = H2O", method="guess")
        self.assertFalse(result.is_valid)
        self.assertIn("guess", result.error)
        self.assertIsNotNone(result.original_equation)

    def test_to_dict(self):
        data = balance_chemical_equation("H2 + O2 = H2O", method="algebraic").to_dict()
        self.assertEqual(data["balanced_equation"], "2H2 + O2 → 2H2O")
        self.assertEqual(data["products"], [{"formula": "H2O", "coefficient": 2}])


class _FailingLookup(ElementLookup):
    def is_valid_element(self, symbol):
        raise KeyError(symbol)

    def atomic_mass(self, symbol):
        raise KeyError(symbol)


class TestFailurePaths(unittest.TestCase):
    def setUp(self):
        self.equation = ChemicalEquation(
            (EquationCompound("H2"), EquationCompound("Xx")), (EquationCompound("H2O"),)
        )

    def test_algebraic_unknown_element(self):
        with self.assertLogs("chembalance.balancers", level="WARNING"):
            result = balance_by_algebraic_method(self.equation)
        self.assertFalse(result.is_valid)
        self.assertTrue(result.error.startswith(constants.ALGEBRAIC_ERROR))
        self.assertIn("Could not parse Xx", result.error)
        self.assertIs(result.original_equation, self.equation)
        self.assertEqual(result.balanced_equation, "")

    def test_trial_unknown_element_keeps_trace(self):
        result = balance_by_trial_and_error(self.equation)
        self.assertFalse(result.is_valid)
        self.assertIn("Could not parse Xx", result.error)
        self.assertEqual(result.steps[0].description, "Initial unbalanced equation")
        self.assertEqual(result.steps[0].equation, "H2 + Xx → H2O")

    def test_algebraic_catches_lookup_errors(self):
        equation = ChemicalEquation((EquationCompound("H2"),), (EquationCompound("H"),))
        with self.assertLogs("chembalance.balancers", level="WARNING"):
            result = balance_by_algebraic_method(equation, lookup=_FailingLookup())
        self.assertFalse(result.is_valid)
        self.assertTrue(result.error.startswith(constants.ALGEBRAIC_ERROR))

    def test_algebraic_rejects_wrong_coefficients(self):
        with mock.patch(
            "chembalance.balancers.normalize_to_positive_integers", return_value=[1, 1, 1]
        ):
            result = balance_by_algebraic_method(_equation("H2 + O2 = H2O"))
        self.assertFalse(result.is_valid)
        self.assertEqual(result.error, constants.INVALID_SOLUTION)
        self.assertTrue(result.steps)


class TestConfiguredLimits(unittest.TestCase):
    def setUp(self):
        self.limits = ParserLimits(max_formula_length=200, max_atoms_per_molecule=5000)
        self.long_equation = "C" + "H2" * 26 + " = C + H2"

    def test_long_formula_rejected_by_default(self):
        result = balance_chemical_equation(self.long_equation, method="algebraic")
        self.assertFalse(result.is_valid)
        self.assertIn(constants.FORMULA_TOO_LONG, result.error)

    def test_long_formula_algebraic(self):
        config = BalancerConfiguration(limits=self.limits)
        result = balance_chemical_equation(self.long_equation, method="algebraic", config=config)
        self.assertTrue(result.is_valid, result.error)
        self.assertEqual(result.coefficients, (1, 1, 26))

    def test_long_formula_trial_and_error(self):
        config = BalancerConfiguration(limits=self.limits, trial_max_coefficient=30)
        result = balance_chemical_equation(
            self.long_equation, method="trial-and-error", config=config
        )
        self.assertTrue(result.is_valid, result.error)
        self.assertEqual(result.coefficients, (1, 1, 26))

    def test_large_atom_count(self):
        config = BalancerConfiguration(limits=ParserLimits(max_atoms_per_molecule=3000))
        result = balance_chemical_equation("C2000 = C", method="algebraic", config=config)
        self.assertTrue(result.is_valid, result.error)
        self.assertEqual(result.coefficients, (1, 2000))

        # Reaches the search ceiling rather than failing to parse.
        result = balance_chemical_equation("C2000 = C", method="trial-and-error", config=config)
        self.assertFalse(result.is_valid)
        self.assertIn("combinations tried", result.error)
        self.assertNotIn("Could not parse", result.error)

    def test_validate_with_limits(self):
        check = validate_balanced_equation(
            (EquationCompound("C2000"),),
            (EquationCompound("C", 2000),),
            limits=ParserLimits(max_atoms_per_molecule=3000),
        )
        self.assertTrue(check.is_balanced)
        self.assertEqual(check.element_balance[0].reactant_count, 2000)


if __name__ == '__main__':
    unittest.main()
