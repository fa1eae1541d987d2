"""Data structures for formulas, equations and balance results."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Mapping

BalanceMethod = Literal["trial-and-error", "algebraic"]
ConversionType = Literal[
    "grams-to-moles",
    "moles-to-grams",
    "moles-to-molecules",
    "molecules-to-moles",
    "grams-to-molecules",
    "molecules-to-grams",
]
ConcentrationType = Literal["molarity", "molality"]


@dataclass(frozen=True)
class ParsedElement:
    symbol: str
    count: int


@dataclass(frozen=True)
class ParsedFormula:
    """Result of parsing a formula.

    When ``is_valid`` is true the symbols in ``elements`` are unique, in
    first-occurrence order, and every count is at least 1.
    """

    elements: tuple[ParsedElement, ...]
    formula: str
    is_valid: bool
    error: str | None = None

    def as_dict(self) -> dict[str, int]:
        return {element.symbol: element.count for element in self.elements}


@dataclass(frozen=True)
class EquationCompound:
    formula: str
    coefficient: int = 1

    def with_coefficient(self, coefficient: int) -> EquationCompound:
        return replace(self, coefficient=coefficient)


@dataclass(frozen=True)
class ChemicalEquation:
    reactants: tuple[EquationCompound, ...]
    products: tuple[EquationCompound, ...]

    def __post_init__(self) -> None:
        if not self.reactants:
            raise ValueError("A chemical equation needs at least one reactant")
        if not self.products:
            raise ValueError("A chemical equation needs at least one product")

    @property
    def compounds(self) -> tuple[EquationCompound, ...]:
        return self.reactants + self.products


@dataclass(frozen=True)
class EquationParseResult:
    reactants: tuple[EquationCompound, ...]
    products: tuple[EquationCompound, ...]
    all_elements: tuple[str, ...]
    is_valid: bool
    error: str | None = None

    def to_equation(self) -> ChemicalEquation:
        return ChemicalEquation(reactants=self.reactants, products=self.products)


@dataclass(frozen=True)
class ElementBalance:
    element: str
    reactant_count: int
    product_count: int

    @property
    def is_balanced(self) -> bool:
        return self.reactant_count == self.product_count


@dataclass(frozen=True)
class BalanceStep:
    step_number: int
    description: str
    equation: str = ""
    element_count: Mapping[str, tuple[int, int]] | None = None


@dataclass(frozen=True)
class BalanceResult:
    original_equation: ChemicalEquation | None
    balanced_reactants: tuple[EquationCompound, ...]
    balanced_products: tuple[EquationCompound, ...]
    balanced_equation: str
    method: BalanceMethod | str
    steps: tuple[BalanceStep, ...]
    is_valid: bool
    error: str | None = None

    @property
    def coefficients(self) -> tuple[int, ...]:
        return tuple(
            compound.coefficient
            for compound in self.balanced_reactants + self.balanced_products
        )

    def to_dict(self) -> dict[str, object]:
        """Plain JSON-compatible representation."""
        return {
            "balanced_equation": self.balanced_equation,
            "method": self.method,
            "is_valid": self.is_valid,
            "error": self.error,
            "reactants": [
                {"formula": c.formula, "coefficient": c.coefficient}
                for c in self.balanced_reactants
            ],
            "products": [
                {"formula": c.formula, "coefficient": c.coefficient}
                for c in self.balanced_products
            ],
            "steps": [
                {
                    "step": s.step_number,
                    "description": s.description,
                    "equation": s.equation,
                    **(
                        {"element_count": {k: list(v) for k, v in s.element_count.items()}}
                        if s.element_count
                        else {}
                    ),
                }
                for s in self.steps
            ],
        }


@dataclass(frozen=True)
class CalculationStep:
    """One line of a calculator's worked solution."""

    step_number: int
    description: str
    operation: str = ""
    result: float | None = None
    unit: str = ""


def steps_to_dicts(steps: tuple[CalculationStep, ...]) -> list[dict[str, object]]:
    return [
        {
            "step": s.step_number,
            "description": s.description,
            "operation": s.operation,
            "result": s.result,
            "unit": s.unit,
        }
        for s in steps
    ]
