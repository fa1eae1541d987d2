import unittest

from chembalance import constants
from chembalance.config import ParserLimits
from chembalance.equation import (
    find_arrow,
    format_equation,
    parse_chemical_equation,
    validate_balanced_equation,
)
from chembalance.models import ChemicalEquation, EquationCompound


class TestParseEquation(unittest.TestCase):
    def test_arrows(self):
        for text in ("H2 + O2 = H2O", "H2 + O2 -> H2O", "H2 + O2 → H2O"):
            result = parse_chemical_equation(text)
            self.assertTrue(result.is_valid, text)
            self.assertEqual([c.formula for c in result.reactants], ["H2", "O2"])
            self.assertEqual([c.formula for c in result.products], ["H2O"])
            self.assertEqual(result.all_elements, ("H", "O"))

    def test_arrow_priority(self):
        self.assertEqual(find_arrow("A -> B = C"), "->")
        self.assertEqual(find_arrow("A = B"), "=")
        self.assertIsNone(find_arrow("A + B"))

    def test_coefficients(self):
        result = parse_chemical_equation("2H2 + O2 = 2 H2O")
        self.assertEqual([c.coefficient for c in result.reactants], [2, 1])
        self.assertEqual(result.products[0], EquationCompound("H2O", 2))

    def test_sorted_element_set(self):
        result = parse_chemical_equation("C2H6 + O2 = CO2 + H2O")
        self.assertEqual(result.all_elements, ("C", "H", "O"))

    def test_structure_errors(self):
        cases = {
            "": constants.EMPTY_EQUATION,
            "H2 + O2": constants.MISSING_ARROW,
            "H2 = O2 = H2O2": constants.MULTIPLE_ARROWS,
            " = H2O": constants.MISSING_REACTANTS,
            "H2 + O2 -> ": constants.MISSING_PRODUCTS,
        }
        for text, error in cases.items():
            result = parse_chemical_equation(text)
            self.assertFalse(result.is_valid, text)
            self.assertEqual(result.error, error, text)

    def test_bad_compound_names_side(self):
        result = parse_chemical_equation("H2 + Qq = H2O")
        self.assertFalse(result.is_valid)
        self.assertIn("reactants", result.error)
        self.assertIn("Qq", result.error)

        result = parse_chemical_equation("H2 + O2 = H2(O")
        self.assertFalse(result.is_valid)
        self.assertIn("products", result.error)

    def test_coefficient_limits(self):
        self.assertFalse(parse_chemical_equation("0H2 + O2 = H2O").is_valid)
        self.assertFalse(parse_chemical_equation("101H2 + O2 = H2O").is_valid)
        limits = ParserLimits(max_coefficient=200)
        self.assertTrue(parse_chemical_equation("101H2 + O2 = H2O", limits=limits).is_valid)


class TestElementBalance(unittest.TestCase):
    def test_format(self):
        reactants = (EquationCompound("H2", 2), EquationCompound("O2", 1))
        products = (EquationCompound("H2O", 2),)
        self.assertEqual(format_equation(reactants, products), "2H2 + O2 → 2H2O")

    def test_validate_balanced(self):
        reactants = (EquationCompound("H2", 2), EquationCompound("O2", 1))
        check = validate_balanced_equation(reactants, (EquationCompound("H2O", 2),))
        self.assertTrue(check.is_balanced)
        self.assertEqual(check.errors, ())

        check = validate_balanced_equation(reactants, (EquationCompound("H2O", 1),))
        self.assertFalse(check.is_balanced)
        self.assertEqual(len(check.errors), 2)
        hydrogen = [b for b in check.element_balance if b.element == "H"][0]
        self.assertEqual((hydrogen.reactant_count, hydrogen.product_count), (4, 2))

    def test_equation_requires_both_sides(self):
        with self.assertRaises(ValueError):
            ChemicalEquation(reactants=(), products=(EquationCompound("H2O"),))


if __name__ == '__main__':
    unittest.main()
