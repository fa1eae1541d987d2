"""Solution concentration calculators.

Volumes are given in mL and solvent masses in kg. Molarity is moles of
solute per litre of solution; molality is moles of solute per kilogram of
solvent. Like the stoichiometric converters in :mod:`chembalance.molar_mass`,
the calculators report bad input through ``is_valid`` and ``error``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chembalance import constants
from chembalance.config import DEFAULT_CALCULATOR_LIMITS, CalculatorLimits
from chembalance.models import CalculationStep, ConcentrationType, steps_to_dicts
from chembalance.molar_mass import check_range, checked_molar_mass
from chembalance.periodic import ElementLookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConcentrationResult:
    type: ConcentrationType | str
    concentration: float
    unit: str
    solute: str
    steps: tuple[CalculationStep, ...]
    is_valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.type,
            "concentration": self.concentration,
            "unit": self.unit,
            "solute": self.solute,
            "is_valid": self.is_valid,
            "error": self.error,
            "steps": steps_to_dicts(self.steps),
        }


@dataclass(frozen=True)
class DilutionResult:
    """Outcome of solving ``C1 V1 = C2 V2`` for its one missing term.

    ``volume_needed`` is the stock volume V1 and ``solvent_to_add`` is
    V2 - V1, both in mL.
    """

    solved_for: str
    value: float
    unit: str
    volume_needed: float
    solvent_to_add: float
    steps: tuple[CalculationStep, ...]
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class PreparationResult:
    solute: str
    solute_mass_needed: float  # g
    steps: tuple[CalculationStep, ...]
    is_valid: bool
    error: str | None = None


class _Steps(list):
    def add(self, description: str, operation: str = "", result=None, unit: str = "") -> None:
        self.append(CalculationStep(len(self) + 1, description, operation, result, unit))


def _invalid_concentration(kind: str, unit: str, solute: str, error: str) -> ConcentrationResult:
    logger.debug("Rejected %s calculation for %r: %s", kind, solute, error)
    return ConcentrationResult(kind, 0.0, unit, solute, (), False, error)


def calculate_molarity(
    solute_mass: float,
    solute_formula: str,
    solution_volume: float,
    lookup: ElementLookup | None = None,
    limits: CalculatorLimits | None = None,
) -> ConcentrationResult:
    """Molarity of ``solute_mass`` grams dissolved to ``solution_volume`` mL."""
    limits = limits or DEFAULT_CALCULATOR_LIMITS
    kind, unit = constants.MOLARITY, constants.UNIT_MOLARITY

    errors = check_range(solute_mass, limits.min_mass_grams, limits.max_mass_grams, "solute mass (g)")
    errors += check_range(
        solution_volume, limits.min_volume_ml, limits.max_volume_ml, "solution volume (mL)"
    )
    if errors:
        return _invalid_concentration(kind, unit, solute_formula, "; ".join(errors))

    molar_mass, error = checked_molar_mass(solute_formula, lookup, limits)
    if error:
        return _invalid_concentration(kind, unit, solute_formula, error)

    moles = solute_mass / molar_mass
    litres = solution_volume / constants.ML_PER_L
    molarity = moles / litres

    steps = _Steps()
    steps.add("Molar mass of the solute", f"MM({solute_formula}) = {molar_mass:.4f} g/mol",
              molar_mass, "g/mol")
    steps.add("Moles of solute", f"{solute_mass} g / {molar_mass:.4f} g/mol", moles, "mol")
    steps.add("Volume in litres", f"{solution_volume} mL / 1000", litres, "L")
    steps.add("M = moles of solute / litres of solution", f"{moles:.6f} mol / {litres} L",
              molarity, unit)
    return ConcentrationResult(kind, round(molarity, 4), unit, solute_formula, tuple(steps), True)


def calculate_molality(
    solute_mass: float,
    solute_formula: str,
    solvent_mass: float,
    lookup: ElementLookup | None = None,
    limits: CalculatorLimits | None = None,
) -> ConcentrationResult:
    """Molality of ``solute_mass`` grams in ``solvent_mass`` kg of solvent."""
    limits = limits or DEFAULT_CALCULATOR_LIMITS
    kind, unit = constants.MOLALITY, constants.UNIT_MOLALITY

    errors = check_range(solute_mass, limits.min_mass_grams, limits.max_mass_grams, "solute mass (g)")
    errors += check_range(
        solvent_mass, limits.min_solvent_kg, limits.max_solvent_kg, "solvent mass (kg)"
    )
    if errors:
        return _invalid_concentration(kind, unit, solute_formula, "; ".join(errors))

    molar_mass, error = checked_molar_mass(solute_formula, lookup, limits)
    if error:
        return _invalid_concentration(kind, unit, solute_formula, error)

    moles = solute_mass / molar_mass
    molality = moles / solvent_mass

    steps = _Steps()
    steps.add("Molar mass of the solute", f"MM({solute_formula}) = {molar_mass:.4f} g/mol",
              molar_mass, "g/mol")
    steps.add("Moles of solute", f"{solute_mass} g / {molar_mass:.4f} g/mol", moles, "mol")
    steps.add("m = moles of solute / kg of solvent", f"{moles:.6f} mol / {solvent_mass} kg",
              molality, unit)
    return ConcentrationResult(kind, round(molality, 4), unit, solute_formula, tuple(steps), True)


def perform_concentration_calculation(
    kind: ConcentrationType | str,
    solute_mass: float,
    solute_formula: str,
    solution_volume: float | None = None,
    solvent_mass: float | None = None,
    lookup: ElementLookup | None = None,
    limits: CalculatorLimits | None = None,
) -> ConcentrationResult:
    if kind == constants.MOLARITY:
        if solution_volume is None:
            return _invalid_concentration(
                kind, constants.UNIT_MOLARITY, solute_formula, "Solution volume is required"
            )
        return calculate_molarity(solute_mass, solute_formula, solution_volume, lookup, limits)
    elif kind == constants.MOLALITY:
        if solvent_mass is None:
            return _invalid_concentration(
                kind, constants.UNIT_MOLALITY, solute_formula, "Solvent mass is required"
            )
        return calculate_molality(solute_mass, solute_formula, solvent_mass, lookup, limits)
    else:
        return _invalid_concentration(
            kind, "", solute_formula, f"{constants.UNSUPPORTED_CONCENTRATION}: {kind}"
        )


def calculate_dilution(
    initial_concentration: float | None = None,
    initial_volume: float | None = None,
    final_concentration: float | None = None,
    final_volume: float | None = None,
    limits: CalculatorLimits | None = None,
) -> DilutionResult:
    """Solve ``C1 V1 = C2 V2`` for whichever single term is None.

    Concentrations are molar, volumes in mL. A dilution never raises the
    concentration, so inputs implying a negative solvent volume are invalid.
    """
    limits = limits or DEFAULT_CALCULATOR_LIMITS
    c1, v1, c2, v2 = initial_concentration, initial_volume, final_concentration, final_volume

    def failed(error: str, steps=()) -> DilutionResult:
        logger.debug("Rejected dilution: %s", error)
        return DilutionResult("", 0.0, "", 0.0, 0.0, tuple(steps), False, error)

    if [c1, v1, c2, v2].count(None) != 1:
        return failed(constants.DILUTION_NEEDS_THREE)

    errors = []
    for value, name in ((c1, "initial concentration (M)"), (c2, "final concentration (M)")):
        if value is not None:
            errors += check_range(value, limits.min_concentration, limits.max_molarity, name)
    for value, name in ((v1, "initial volume (mL)"), (v2, "final volume (mL)")):
        if value is not None:
            errors += check_range(value, limits.min_volume_ml, limits.max_volume_ml, name)
    if errors:
        return failed("; ".join(errors))

    steps = _Steps()
    steps.add("Dilution equation", "C1 × V1 = C2 × V2")

    if v1 is None:
        v1 = c2 * v2 / c1
        solved_for, value, unit = "initial_volume", round(v1, 2), "mL"
        steps.add("Solve for V1", f"V1 = ({c2} M × {v2} mL) / {c1} M", v1, "mL")
    elif v2 is None:
        v2 = c1 * v1 / c2
        solved_for, value, unit = "final_volume", round(v2, 2), "mL"
        steps.add("Solve for V2", f"V2 = ({c1} M × {v1} mL) / {c2} M", v2, "mL")
    elif c2 is None:
        c2 = c1 * v1 / v2
        solved_for, value, unit = "final_concentration", round(c2, 4), "M"
        steps.add("Solve for C2", f"C2 = ({c1} M × {v1} mL) / {v2} mL", c2, "M")
    else:
        c1 = c2 * v2 / v1
        solved_for, value, unit = "initial_concentration", round(c1, 4), "M"
        steps.add("Solve for C1", f"C1 = ({c2} M × {v2} mL) / {v1} mL", c1, "M")

    solvent = v2 - v1
    steps.add("Solvent to add", f"V2 - V1 = {v2:.2f} mL - {v1:.2f} mL", solvent, "mL")
    if solvent < 0:
        return failed("Final concentration cannot exceed the initial concentration", steps)

    return DilutionResult(
        solved_for=solved_for,
        value=value,
        unit=unit,
        volume_needed=round(v1, 2),
        solvent_to_add=round(solvent, 2),
        steps=tuple(steps),
        is_valid=True,
    )


def calculate_solution_preparation(
    solute_formula: str,
    molarity: float,
    volume: float,
    lookup: ElementLookup | None = None,
    limits: CalculatorLimits | None = None,
) -> PreparationResult:
    """Grams of solute needed for ``volume`` mL of a ``molarity`` M solution."""
    limits = limits or DEFAULT_CALCULATOR_LIMITS

    errors = check_range(molarity, limits.min_concentration, limits.max_molarity, "molarity (M)")
    errors += check_range(volume, limits.min_volume_ml, limits.max_volume_ml, "volume (mL)")
    error = "; ".join(errors) or None
    if error is None:
        molar_mass, error = checked_molar_mass(solute_formula, lookup, limits)
    if error:
        logger.debug("Rejected solution preparation for %r: %s", solute_formula, error)
        return PreparationResult(solute_formula, 0.0, (), False, error)

    litres = volume / constants.ML_PER_L
    moles = molarity * litres
    mass = moles * molar_mass

    steps = _Steps()
    steps.add("Molar mass of the solute", f"MM({solute_formula}) = {molar_mass:.4f} g/mol",
              molar_mass, "g/mol")
    steps.add("Volume in litres", f"{volume} mL / 1000", litres, "L")
    steps.add("moles = M × V", f"{molarity} M × {litres} L", moles, "mol")
    steps.add("mass = moles × molar mass", f"{moles:.6f} mol × {molar_mass:.4f} g/mol", mass, "g")
    return PreparationResult(solute_formula, round(mass, 4), tuple(steps), True)


def convert_molarity_to_molality(molarity: float, density: float, molar_mass: float) -> float:
    """Molality from molarity, solution density (g/mL) and solute molar mass (g/mol).

    Raises ValueError when the inputs leave no solvent mass.
    """
    if molarity <= 0 or density <= 0 or molar_mass <= 0:
        raise ValueError("Molarity, density and molar mass must be positive")
    solvent_kg_per_litre = density - molarity * molar_mass / 1000.0
    if solvent_kg_per_litre <= 0:
        raise ValueError("Solute mass exceeds the solution mass")
    return round(molarity / solvent_kg_per_litre, 4)


def convert_molality_to_molarity(molality: float, density: float, molar_mass: float) -> float:
    """Molarity from molality, solution density (g/mL) and solute molar mass (g/mol)."""
    if molality <= 0 or density <= 0 or molar_mass <= 0:
        raise ValueError("Molality, density and molar mass must be positive")
    return round(molality * density / (1 + molality * molar_mass / 1000.0), 4)
