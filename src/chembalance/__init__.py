"""chembalance core package."""

from chembalance.balancers import (
    balance_by_algebraic_method,
    balance_by_trial_and_error,
    balance_chemical_equation,
)
from chembalance.concentration import (
    calculate_dilution,
    calculate_molality,
    calculate_molarity,
    calculate_solution_preparation,
)
from chembalance.config import BalancerConfiguration, CalculatorLimits, ParserLimits
from chembalance.equation import parse_chemical_equation
from chembalance.formula import parse_chemical_formula, validate_formula_syntax
from chembalance.fraction import RobustFraction
from chembalance.models import (
    BalanceResult,
    ChemicalEquation,
    EquationCompound,
    ParsedElement,
    ParsedFormula,
)
from chembalance.molar_mass import calculate_molar_mass, perform_conversion

__all__ = [
    "balance_by_algebraic_method",
    "balance_by_trial_and_error",
    "balance_chemical_equation",
    "calculate_dilution",
    "calculate_molality",
    "calculate_molarity",
    "calculate_solution_preparation",
    "BalancerConfiguration",
    "CalculatorLimits",
    "ParserLimits",
    "calculate_molar_mass",
    "perform_conversion",
    "parse_chemical_equation",
    "parse_chemical_formula",
    "validate_formula_syntax",
    "RobustFraction",
    "BalanceResult",
    "ChemicalEquation",
    "EquationCompound",
    "ParsedElement",
    "ParsedFormula",
]
