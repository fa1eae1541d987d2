import unittest

from chembalance import constants
from chembalance.config import ParserLimits
from chembalance.formula import (
    combine_formulas,
    contains_element,
    formulas_have_same_elements,
    get_element_count,
    get_total_atom_count,
    normalize_formula,
    parse_chemical_formula,
    parsing_debug_info,
    tokenize,
    validate_formula_syntax,
)


class TestTokenizer(unittest.TestCase):
    def test_tokens(self):
        tokens = tokenize("Ca(OH)2")
        self.assertEqual(
            [(t.kind, t.value) for t in tokens],
            [
                ("element", "Ca"),
                ("open-paren", "("),
                ("element", "O"),
                ("element", "H"),
                ("close-paren", ")"),
                ("number", "2"),
            ],
        )

    def test_multi_digit_and_whitespace(self):
        tokens = tokenize("C12 H22")
        self.assertEqual([t.value for t in tokens], ["C", "12", "H", "22"])

    def test_invalid_character(self):
        self.assertEqual(tokenize("H2O!"), ())


class TestParseFormula(unittest.TestCase):
    def test_nested_groups(self):
        self.assertEqual(parse_chemical_formula("Ca(OH)2").as_dict(), {"Ca": 1, "O": 2, "H": 2})
        self.assertEqual(parse_chemical_formula("Cu(NO3)2").as_dict(), {"Cu": 1, "N": 2, "O": 6})
        self.assertEqual(
            parse_chemical_formula("K4(Fe(CN)6)").as_dict(), {"K": 4, "Fe": 1, "C": 6, "N": 6}
        )

    def test_repeated_symbols_are_summed(self):
        parsed = parse_chemical_formula("CH3COOH")
        self.assertTrue(parsed.is_valid)
        self.assertEqual(parsed.as_dict(), {"C": 2, "H": 4, "O": 2})
        self.assertEqual([e.symbol for e in parsed.elements], ["C", "H", "O"])

    def test_trimmed(self):
        parsed = parse_chemical_formula("  H2O ")
        self.assertEqual(parsed.formula, "H2O")

    def test_empty(self):
        parsed = parse_chemical_formula("   ")
        self.assertFalse(parsed.is_valid)
        self.assertEqual(parsed.error, constants.EMPTY_FORMULA)

    def test_too_long(self):
        parsed = parse_chemical_formula("H" * 51)
        self.assertFalse(parsed.is_valid)
        self.assertEqual(parsed.error, constants.FORMULA_TOO_LONG)

    def test_unmatched_parenthesis(self):
        for formula in ("H2(SO4", "H2SO4)", ")H2"):
            parsed = parse_chemical_formula(formula)
            self.assertFalse(parsed.is_valid, formula)
            self.assertTrue(parsed.error.startswith(constants.INVALID_SYNTAX), formula)
            self.assertEqual(parsed.elements, ())

    def test_unknown_element(self):
        parsed = parse_chemical_formula("Xx2")
        self.assertFalse(parsed.is_valid)
        self.assertIn(constants.INVALID_ELEMENT, parsed.error)

    def test_count_limits(self):
        self.assertFalse(parse_chemical_formula("H0").is_valid)
        self.assertFalse(parse_chemical_formula("C1001").is_valid)
        # Individual counts are legal but the total is not.
        self.assertFalse(parse_chemical_formula("C600H600").is_valid)

    def test_custom_limits(self):
        limits = ParserLimits(max_formula_length=3, max_atoms_per_molecule=5)
        self.assertFalse(parse_chemical_formula("NaCl", limits=limits).is_valid)
        self.assertFalse(parse_chemical_formula("C6", limits=limits).is_valid)
        self.assertTrue(parse_chemical_formula("H2O", limits=limits).is_valid)

    def test_leading_number_is_syntax_error(self):
        self.assertFalse(parse_chemical_formula("2H2O").is_valid)

    def test_normalized_formula_parses_the_same(self):
        for formula in ("Ca (OH)2", " Fe2 O3", "Al2(SO4)3"):
            original = parse_chemical_formula(formula)
            normalized = parse_chemical_formula(normalize_formula(formula))
            self.assertTrue(original.is_valid)
            self.assertTrue(normalized.is_valid)
            self.assertEqual(original.as_dict(), normalized.as_dict())


class TestFormulaHelpers(unittest.TestCase):
    def test_validate_syntax(self):
        self.assertTrue(validate_formula_syntax("Ca(OH)2"))
        self.assertFalse(validate_formula_syntax("H2(SO4"))
        self.assertFalse(validate_formula_syntax(""))
        self.assertFalse(validate_formula_syntax("h2o"))

    def test_normalize(self):
        self.assertEqual(normalize_formula(" Ca (OH) 2 "), "Ca(OH)2")
        self.assertEqual(normalize_formula("H2O+"), "")

    def test_counts(self):
        self.assertEqual(get_total_atom_count("C6H12O6"), 24)
        self.assertEqual(get_element_count("Al2(SO4)3", "O"), 12)
        self.assertTrue(contains_element("NaCl", "Cl"))
        self.assertFalse(contains_element("NaCl", "C"))
        self.assertTrue(formulas_have_same_elements("CH4", "C2H6"))

    def test_combine(self):
        combined = {e.symbol: e.count for e in combine_formulas([("H2", 2), ("O2", 1)])}
        self.assertEqual(combined, {"H": 4, "O": 2})

    def test_debug_info(self):
        info = parsing_debug_info("Ca(OH)2")
        self.assertTrue(info["is_valid"])
        self.assertEqual(info["total_atoms"], 5)
        self.assertEqual(len(info["tokens"]), 6)


if __name__ == '__main__':
    unittest.main()
