"""Shared constants for formula parsing and equation balancing."""

from __future__ import annotations

# Reaction arrows in priority order.
ARROWS = ("→", "->", "=")
EQUATION_ARROW = " → "
EQUATION_PLUS = " + "

TRIAL_AND_ERROR = "trial-and-error"
ALGEBRAIC = "algebraic"
BALANCE_METHODS = (TRIAL_AND_ERROR, ALGEBRAIC)
DEFAULT_BALANCE_METHOD = TRIAL_AND_ERROR

# Parsing errors
EMPTY_FORMULA = "Formula cannot be empty"
FORMULA_TOO_LONG = "Formula is too long"
INVALID_SYNTAX = "Invalid formula syntax"
INVALID_ELEMENT = "Unknown element symbol"
COUNT_OUT_OF_RANGE = "Atom count out of range"

# Equation structure errors
EMPTY_EQUATION = "Equation cannot be empty"
MISSING_ARROW = "Equation must contain a reaction arrow (→, ->, =)"
MULTIPLE_ARROWS = "Equation must contain exactly one reaction arrow"
MISSING_REACTANTS = "Equation has no reactants"
MISSING_PRODUCTS = "Equation has no products"

# Balance errors
CANNOT_BALANCE = "Cannot balance the equation"
OVERDETERMINED_SYSTEM = "Overdetermined system: only the trivial solution exists"
INVALID_SOLUTION = "Solution does not balance every element"
NON_POSITIVE_SOLUTION = "No strictly positive solution found"
ALGEBRAIC_ERROR = "Algebraic method error"
UNSUPPORTED_METHOD = "Unsupported balance method"

# Calculators
AVOGADRO_NUMBER = 6.02214076e23
ML_PER_L = 1000.0

GRAMS_TO_MOLES = "grams-to-moles"
MOLES_TO_GRAMS = "moles-to-grams"
MOLES_TO_MOLECULES = "moles-to-molecules"
MOLECULES_TO_MOLES = "molecules-to-moles"
GRAMS_TO_MOLECULES = "grams-to-molecules"
MOLECULES_TO_GRAMS = "molecules-to-grams"
CONVERSION_TYPES = (
    GRAMS_TO_MOLES,
    MOLES_TO_GRAMS,
    MOLES_TO_MOLECULES,
    MOLECULES_TO_MOLES,
    GRAMS_TO_MOLECULES,
    MOLECULES_TO_GRAMS,
)

MOLARITY = "molarity"
MOLALITY = "molality"
CONCENTRATION_TYPES = (MOLARITY, MOLALITY)

UNIT_GRAMS = "g"
UNIT_MOLES = "mol"
UNIT_MOLECULES = "molecules"
UNIT_MOLARITY = "M"
UNIT_MOLALITY = "m"

# Calculator errors
MOLAR_MASS_OUT_OF_RANGE = "Molar mass out of range"
UNSUPPORTED_CONVERSION = "Unsupported conversion type"
UNSUPPORTED_CONCENTRATION = "Unsupported concentration type"
NO_PERCENTAGES = "No element percentages given"
DILUTION_NEEDS_THREE = "Exactly three of the four dilution values are required"
