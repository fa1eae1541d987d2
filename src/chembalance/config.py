"""Configuration for the parser limits, the balancing search and the calculators."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping


@dataclass(frozen=True)
class ParserLimits:
    """Input limits enforced by the formula and equation parsers.

    Attributes:
        max_formula_length: Longest accepted formula after trimming.
        max_atoms_per_molecule: Upper bound for a single count, a group
            multiplier and the total atom count of a formula.
        max_coefficient: Largest coefficient accepted in an input equation.
    """

    max_formula_length: int = 50
    max_atoms_per_molecule: int = 1000
    max_coefficient: int = 100


@dataclass(frozen=True)
class CalculatorLimits:
    """Accepted input ranges for the stoichiometry and concentration calculators.

    Volumes are in mL, solvent masses in kg and molar masses in g/mol.
    """

    min_mass_grams: float = 0.001
    max_mass_grams: float = 100000.0
    min_moles: float = 1e-10
    max_moles: float = 1000.0
    min_molecules: float = 1.0
    max_molecules: float = 1e30
    min_volume_ml: float = 0.001
    max_volume_ml: float = 1000000.0
    min_solvent_kg: float = 0.001
    max_solvent_kg: float = 100.0
    min_concentration: float = 0.001
    max_molarity: float = 50.0
    max_molality: float = 50.0
    min_molar_mass: float = 0.1
    max_molar_mass: float = 10000.0


@dataclass(frozen=True)
class BalancerConfiguration:
    """Search parameters for the balancers.

    Attributes:
        limits: Parser limits used when reading the equation.
        trial_max_coefficient: Per-compound ceiling of the trial-and-error
            search. Equations needing larger coefficients fail that method.
        max_iterations: Combinations tried before trial-and-error gives up.
        progress_interval: Iterations between progress entries in the trace.
        calculators: Input ranges for the molar-mass based calculators.
    """

    limits: ParserLimits = field(default_factory=ParserLimits)
    trial_max_coefficient: int = 15
    max_iterations: int = 10000
    progress_interval: int = 1000
    calculators: CalculatorLimits = field(default_factory=CalculatorLimits)


DEFAULT_LIMITS = ParserLimits()
DEFAULT_CALCULATOR_LIMITS = CalculatorLimits()
DEFAULT_CONFIGURATION = BalancerConfiguration()


def _positive_ints(section: Mapping[str, Any], allowed: set[str], name: str) -> dict[str, int]:
    values = {}
    for key, raw in section.items():
        if key not in allowed:
            raise ValueError(f"Unknown {name} option: {key}")
        value = int(raw)
        if value <= 0:
            raise ValueError(f"{name}.{key} must be positive, got {raw}")
        values[key] = value
    return values


def _positive_floats(section: Mapping[str, Any], allowed: set[str], name: str) -> dict[str, float]:
    values = {}
    for key, raw in section.items():
        if key not in allowed:
            raise ValueError(f"Unknown {name} option: {key}")
        value = float(raw)
        if not value > 0:
            raise ValueError(f"{name}.{key} must be positive, got {raw}")
        values[key] = value
    return values


def configuration_from_dict(data: Mapping[str, Any]) -> BalancerConfiguration:
    """Build a configuration from a parsed JSON mapping."""
    unknown = set(data) - {"limits", "trial_and_error", "calculators"}
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    limit_keys = {f.name for f in fields(ParserLimits)}
    limits = ParserLimits(**_positive_ints(data.get("limits", {}), limit_keys, "limits"))

    search_keys = {"trial_max_coefficient", "max_iterations", "progress_interval"}
    search = _positive_ints(data.get("trial_and_error", {}), search_keys, "trial_and_error")
    calculator_keys = {f.name for f in fields(CalculatorLimits)}
    calculators = CalculatorLimits(
        **_positive_floats(data.get("calculators", {}), calculator_keys, "calculators")
    )
    return BalancerConfiguration(limits=limits, calculators=calculators, **search)


def load_configuration(config_file: str | Path) -> BalancerConfiguration:
    """Read a JSON configuration file."""
    with open(config_file, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a JSON object")
    return configuration_from_dict(data)
