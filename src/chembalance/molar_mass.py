"""Molar mass and the stoichiometric calculators built on it.

Every calculator returns a result object with ``is_valid`` and ``error``
instead of raising, and records the worked solution as
:class:`~chembalance.models.CalculationStep` entries. Out-of-range inputs
are rejected using :class:`~chembalance.config.CalculatorLimits`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from chembalance import constants
from chembalance.config import DEFAULT_CALCULATOR_LIMITS, CalculatorLimits
from chembalance.formula import parse_chemical_formula
from chembalance.models import CalculationStep, ConversionType, steps_to_dicts
from chembalance.periodic import ElementLookup, PeriodicTable, load_periodic_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementContribution:
    symbol: str
    name: str
    count: int
    atomic_mass: float  # g/mol
    contribution: float  # g/mol
    mass_percent: float


@dataclass(frozen=True)
class MolarMassResult:
    formula: str
    elements: tuple[ElementContribution, ...]
    molar_mass: float  # g/mol
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class ConversionResult:
    type: ConversionType | str
    input_value: float
    input_unit: str
    output_value: float
    output_unit: str
    compound: str
    steps: tuple[CalculationStep, ...]
    is_valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.type,
            "input_value": self.input_value,
            "input_unit": self.input_unit,
            "output_value": self.output_value,
            "output_unit": self.output_unit,
            "compound": self.compound,
            "is_valid": self.is_valid,
            "error": self.error,
            "steps": steps_to_dicts(self.steps),
        }


@dataclass(frozen=True)
class EmpiricalFormulaResult:
    empirical_formula: str
    steps: tuple[CalculationStep, ...]
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class CompoundInfo:
    formula: str
    molar_mass: float
    elements: tuple[ElementContribution, ...]
    total_atoms: int
    unique_elements: int
    heaviest_element: ElementContribution | None
    lightest_element: ElementContribution | None
    is_valid: bool
    error: str | None = None


def check_range(value: float, low: float, high: float, field_name: str) -> list[str]:
    """Error messages for ``value`` outside ``[low, high]``; empty if it fits."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return [f"{field_name} must be a number"]
    if not math.isfinite(value):
        return [f"{field_name} must be finite"]

    errors = []
    if value <= 0:
        errors.append(f"{field_name} must be greater than zero")
    if value < low:
        errors.append(f"{field_name} must be at least {low}")
    if value > high:
        errors.append(f"{field_name} must be at most {high}")
    return errors


def calculate_molar_mass(formula: str, lookup: ElementLookup | None = None) -> MolarMassResult:
    if lookup is None:
        lookup = load_periodic_table()
    parsed = parse_chemical_formula(formula, lookup)
    if not parsed.is_valid:
        return MolarMassResult(
            formula=parsed.formula, elements=(), molar_mass=0.0, is_valid=False, error=parsed.error
        )

    masses = [(e, lookup.atomic_mass(e.symbol)) for e in parsed.elements]
    total = sum(e.count * mass for e, mass in masses)

    contributions = []
    for element, mass in masses:
        # Only PeriodicTable carries element names.
        record = lookup.get(element.symbol) if isinstance(lookup, PeriodicTable) else None
        contribution = element.count * mass
        contributions.append(
            ElementContribution(
                symbol=element.symbol,
                name=record.name if record else element.symbol,
                count=element.count,
                atomic_mass=mass,
                contribution=contribution,
                mass_percent=100.0 * contribution / total if total else 0.0,
            )
        )

    return MolarMassResult(
        formula=parsed.formula,
        elements=tuple(contributions),
        molar_mass=total,
        is_valid=True,
    )


def checked_molar_mass(
    formula: str, lookup: ElementLookup | None, limits: CalculatorLimits
) -> tuple[float, str | None]:
    """Molar mass of ``formula`` and an error message, which is None on success."""
    result = calculate_molar_mass(formula, lookup)
    if not result.is_valid:
        return 0.0, result.error
    if not limits.min_molar_mass <= result.molar_mass <= limits.max_molar_mass:
        return 0.0, f"{constants.MOLAR_MASS_OUT_OF_RANGE}: {result.molar_mass:.4f} g/mol"
    return result.molar_mass, None


_UNITS = {
    constants.GRAMS_TO_MOLES: (constants.UNIT_GRAMS, constants.UNIT_MOLES),
    constants.MOLES_TO_GRAMS: (constants.UNIT_MOLES, constants.UNIT_GRAMS),
    constants.MOLES_TO_MOLECULES: (constants.UNIT_MOLES, constants.UNIT_MOLECULES),
    constants.MOLECULES_TO_MOLES: (constants.UNIT_MOLECULES, constants.UNIT_MOLES),
    constants.GRAMS_TO_MOLECULES: (constants.UNIT_GRAMS, constants.UNIT_MOLECULES),
    constants.MOLECULES_TO_GRAMS: (constants.UNIT_MOLECULES, constants.UNIT_GRAMS),
}


def _input_errors(value: float, conversion: str, limits: CalculatorLimits) -> list[str]:
    input_unit = _UNITS[conversion][0]
    if input_unit == constants.UNIT_GRAMS:
        return check_range(value, limits.min_mass_grams, limits.max_mass_grams, "mass (g)")
    if input_unit == constants.UNIT_MOLES:
        return check_range(value, limits.min_moles, limits.max_moles, "moles")
    return check_range(value, limits.min_molecules, limits.max_molecules, "molecules")


def _conversion(
    conversion: str,
    value: float,
    formula: str,
    output: float,
    steps: Sequence[CalculationStep] = (),
    error: str | None = None,
) -> ConversionResult:
    input_unit, output_unit = _UNITS[conversion]
    return ConversionResult(
        type=conversion,
        input_value=value,
        input_unit=input_unit,
        output_value=output,
        output_unit=output_unit,
        compound=formula,
        steps=tuple(steps),
        is_valid=error is None,
        error=error,
    )


def _convert(
    conversion: str,
    value: float,
    formula: str,
    lookup: ElementLookup | None,
    limits: CalculatorLimits | None,
) -> ConversionResult:
    limits = limits or DEFAULT_CALCULATOR_LIMITS

    parsed = parse_chemical_formula(formula, lookup)
    if not parsed.is_valid:
        return _conversion(conversion, value, formula, 0.0, error=parsed.error)
    errors = _input_errors(value, conversion, limits)
    if errors:
        logger.debug("Rejected %s input %r: %s", conversion, value, errors)
        return _conversion(conversion, value, formula, 0.0, error="; ".join(errors))

    needs_mass = constants.UNIT_GRAMS in _UNITS[conversion]
    molar_mass = 0.0
    steps: list[CalculationStep] = []

    def add_step(description: str, operation: str = "", result=None, unit: str = "") -> None:
        steps.append(CalculationStep(len(steps) + 1, description, operation, result, unit))

    if needs_mass:
        molar_mass, error = checked_molar_mass(formula, lookup, limits)
        if error:
            return _conversion(conversion, value, formula, 0.0, error=error)
        add_step("Molar mass of the compound", f"MM({formula}) = {molar_mass:.4f} g/mol",
                 molar_mass, "g/mol")
    else:
        add_step("Avogadro constant", f"NA = {constants.AVOGADRO_NUMBER:.8e} molecules/mol",
                 constants.AVOGADRO_NUMBER, "molecules/mol")

    if conversion == constants.GRAMS_TO_MOLES:
        output = value / molar_mass
        add_step("moles = mass / molar mass", f"{value} g / {molar_mass:.4f} g/mol", output, "mol")
        output = round(output, 6)
    elif conversion == constants.MOLES_TO_GRAMS:
        output = value * molar_mass
        add_step("mass = moles × molar mass", f"{value} mol × {molar_mass:.4f} g/mol", output, "g")
        output = round(output, 4)
    elif conversion == constants.MOLES_TO_MOLECULES:
        output = value * constants.AVOGADRO_NUMBER
        add_step("molecules = moles × NA", f"{value} mol × {constants.AVOGADRO_NUMBER:.8e}",
                 output, "molecules")
    elif conversion == constants.MOLECULES_TO_MOLES:
        output = value / constants.AVOGADRO_NUMBER
        add_step("moles = molecules / NA", f"{value:.4e} / {constants.AVOGADRO_NUMBER:.8e}",
                 output, "mol")
        output = round(output, 8)
    elif conversion == constants.GRAMS_TO_MOLECULES:
        moles = value / molar_mass
        add_step("moles = mass / molar mass", f"{value} g / {molar_mass:.4f} g/mol", moles, "mol")
        output = moles * constants.AVOGADRO_NUMBER
        add_step("molecules = moles × NA", f"{moles:.6g} mol × {constants.AVOGADRO_NUMBER:.8e}",
                 output, "molecules")
    else:
        moles = value / constants.AVOGADRO_NUMBER
        add_step("moles = molecules / NA", f"{value:.4e} / {constants.AVOGADRO_NUMBER:.8e}",
                 moles, "mol")
        output = moles * molar_mass
        add_step("mass = moles × molar mass", f"{moles:.6g} mol × {molar_mass:.4f} g/mol",
                 output, "g")
        output = round(output, 4)

    return _conversion(conversion, value, formula, output, steps)


def convert_grams_to_moles(grams, formula, lookup=None, limits=None) -> ConversionResult:
    return _convert(constants.GRAMS_TO_MOLES, grams, formula, lookup, limits)


def convert_moles_to_grams(moles, formula, lookup=None, limits=None) -> ConversionResult:
    return _convert(constants.MOLES_TO_GRAMS, moles, formula, lookup, limits)


def convert_moles_to_molecules(moles, formula, lookup=None, limits=None) -> ConversionResult:
    return _convert(constants.MOLES_TO_MOLECULES, moles, formula, lookup, limits)


def convert_molecules_to_moles(molecules, formula, lookup=None, limits=None) -> ConversionResult:
    return _convert(constants.MOLECULES_TO_MOLES, molecules, formula, lookup, limits)


def perform_conversion(
    value: float,
    conversion: ConversionType | str,
    formula: str,
    lookup: ElementLookup | None = None,
    limits: CalculatorLimits | None = None,
) -> ConversionResult:
    """Run any of the six mass/amount/particle conversions."""
    if conversion not in constants.CONVERSION_TYPES:
        return ConversionResult(
            type=conversion,
            input_value=value,
            input_unit="",
            output_value=0.0,
            output_unit="",
            compound=formula,
            steps=(),
            is_valid=False,
            error=f"{constants.UNSUPPORTED_CONVERSION}: {conversion}",
        )
    return _convert(conversion, value, formula, lookup, limits)


def _simplest_multiplier(ratios: Sequence[float], tolerance: float = 0.1) -> int:
    for multiplier in range(1, 11):
        if all(abs(r * multiplier - round(r * multiplier)) < tolerance for r in ratios):
            return multiplier
    return 1


def calculate_empirical_formula(
    percentages: Sequence[tuple[str, float]],
    lookup: ElementLookup | None = None,
) -> EmpiricalFormulaResult:
    """Empirical formula from ``(symbol, mass percent)`` pairs.

    A 100 g sample is assumed, so each percentage is read as grams. The mole
    ratios are scaled by the smallest multiplier (up to 10) that brings them
    within 0.1 of whole numbers.
    """
    if lookup is None:
        lookup = load_periodic_table()
    if not percentages:
        return EmpiricalFormulaResult("", (), False, constants.NO_PERCENTAGES)

    steps: list[CalculationStep] = []

    def add_step(description: str, operation: str = "", result=None, unit: str = "") -> None:
        steps.append(CalculationStep(len(steps) + 1, description, operation, result, unit))

    add_step("Assume a 100 g sample so that percentages become grams")

    moles = []
    for symbol, percentage in percentages:
        if not lookup.is_valid_element(symbol):
            return EmpiricalFormulaResult(
                "", tuple(steps), False, f"{constants.INVALID_ELEMENT}: {symbol}"
            )
        errors = check_range(percentage, 0.0, 100.0, f"percentage of {symbol}")
        if errors:
            return EmpiricalFormulaResult("", tuple(steps), False, "; ".join(errors))
        mass = lookup.atomic_mass(symbol)
        amount = percentage / mass
        moles.append(amount)
        add_step(f"Moles of {symbol}", f"{percentage} g / {mass} g/mol", amount, "mol")

    smallest = min(moles)
    add_step(f"Divide by the smallest amount: {smallest:.6f} mol")
    ratios = [amount / smallest for amount in moles]
    for (symbol, _), ratio in zip(percentages, ratios):
        add_step(f"Ratio for {symbol}", f"{ratio:.6f}", ratio)

    multiplier = _simplest_multiplier(ratios)
    if multiplier > 1:
        add_step(f"Multiply by {multiplier} to reach whole numbers")

    formula = ""
    for (symbol, _), ratio in zip(percentages, ratios):
        count = round(ratio * multiplier)
        formula += symbol + (str(count) if count > 1 else "")
    add_step(f"Empirical formula: {formula}")

    return EmpiricalFormulaResult(formula, tuple(steps), True)


def get_compound_info(formula: str, lookup: ElementLookup | None = None) -> CompoundInfo:
    """Summary of a compound: molar mass, atom totals and extreme elements."""
    result = calculate_molar_mass(formula, lookup)
    if not result.is_valid:
        return CompoundInfo(
            formula=result.formula,
            molar_mass=0.0,
            elements=(),
            total_atoms=0,
            unique_elements=0,
            heaviest_element=None,
            lightest_element=None,
            is_valid=False,
            error=result.error,
        )

    heaviest = lightest = result.elements[0]
    for element in result.elements[1:]:
        if element.atomic_mass > heaviest.atomic_mass:
            heaviest = element
        if element.atomic_mass < lightest.atomic_mass:
            lightest = element

    return CompoundInfo(
        formula=result.formula,
        molar_mass=result.molar_mass,
        elements=result.elements,
        total_atoms=sum(e.count for e in result.elements),
        unique_elements=len(result.elements),
        heaviest_element=heaviest,
        lightest_element=lightest,
        is_valid=True,
    )
