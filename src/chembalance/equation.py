"""Equation parsing and element-balance bookkeeping."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from chembalance import constants
from chembalance.config import DEFAULT_LIMITS, ParserLimits
from chembalance.formula import parse_chemical_formula
from chembalance.models import (
    ElementBalance,
    EquationCompound,
    EquationParseResult,
    ParsedFormula,
)
from chembalance.periodic import ElementLookup, load_periodic_table

logger = logging.getLogger(__name__)

_TERM = re.compile(r"^(\d*)\s*(.+)$", re.DOTALL)


class EquationSyntaxError(ValueError):
    """Raised while reading one side of an equation."""


@dataclass(frozen=True)
class BalanceValidation:
    is_balanced: bool
    element_balance: tuple[ElementBalance, ...]
    errors: tuple[str, ...]


def _failed(error: str) -> EquationParseResult:
    return EquationParseResult(
        reactants=(), products=(), all_elements=(), is_valid=False, error=error
    )


def find_arrow(equation: str) -> str | None:
    """First arrow of the priority list that occurs in ``equation``."""
    for arrow in constants.ARROWS:
        if arrow in equation:
            return arrow
    return None


def _parse_side(
    text: str,
    side: str,
    lookup: ElementLookup,
    limits: ParserLimits,
) -> tuple[EquationCompound, ...]:
    compounds = []
    for part in (segment.strip() for segment in text.split("+")):
        if not part:
            continue

        match = _TERM.match(part)
        if match is None:
            raise EquationSyntaxError(f"Invalid term in {side}: {part}")

        coefficient = int(match.group(1)) if match.group(1) else 1
        formula = match.group(2).strip()
        if coefficient <= 0 or coefficient > limits.max_coefficient:
            raise EquationSyntaxError(f"Invalid coefficient in {side}: {coefficient}")

        parsed = parse_chemical_formula(formula, lookup, limits)
        if not parsed.is_valid:
            raise EquationSyntaxError(f"Invalid formula in {side}: {formula} ({parsed.error})")

        compounds.append(EquationCompound(formula=formula, coefficient=coefficient))
    return tuple(compounds)


def parse_chemical_equation(
    equation: str,
    lookup: ElementLookup | None = None,
    limits: ParserLimits | None = None,
) -> EquationParseResult:
    """Split an equation on its reaction arrow and validate every compound."""
    if lookup is None:
        lookup = load_periodic_table()
    limits = limits or DEFAULT_LIMITS

    if not equation or not equation.strip():
        return _failed(constants.EMPTY_EQUATION)

    arrow = find_arrow(equation)
    if arrow is None:
        return _failed(constants.MISSING_ARROW)

    parts = equation.split(arrow)
    if len(parts) != 2:
        return _failed(constants.MULTIPLE_ARROWS)

    try:
        reactants = _parse_side(parts[0], "reactants", lookup, limits)
        products = _parse_side(parts[1], "products", lookup, limits)
    except EquationSyntaxError as exc:
        logger.debug("Rejected equation %r: %s", equation, exc)
        return _failed(str(exc))

    if not reactants:
        return _failed(constants.MISSING_REACTANTS)
    if not products:
        return _failed(constants.MISSING_PRODUCTS)

    return EquationParseResult(
        reactants=reactants,
        products=products,
        all_elements=get_all_elements(reactants + products, lookup, limits),
        is_valid=True,
    )


def _parse_all(
    compounds: Iterable[EquationCompound],
    lookup: ElementLookup | None,
    limits: ParserLimits | None = None,
) -> list[ParsedFormula]:
    return [parse_chemical_formula(c.formula, lookup, limits) for c in compounds]


def get_all_elements(
    compounds: Iterable[EquationCompound],
    lookup: ElementLookup | None = None,
    limits: ParserLimits | None = None,
) -> tuple[str, ...]:
    """Sorted set of element symbols appearing in ``compounds``."""
    symbols = set()
    for parsed in _parse_all(compounds, lookup, limits):
        symbols.update(element.symbol for element in parsed.elements)
    return tuple(sorted(symbols))


def count_element_in_side(
    compounds: Sequence[EquationCompound],
    element: str,
    lookup: ElementLookup | None = None,
    limits: ParserLimits | None = None,
) -> int:
    total = 0
    for compound, parsed in zip(compounds, _parse_all(compounds, lookup, limits)):
        total += parsed.as_dict().get(element, 0) * compound.coefficient
    return total


def get_element_balance(
    reactants: Sequence[EquationCompound],
    products: Sequence[EquationCompound],
    elements: Sequence[str],
    lookup: ElementLookup | None = None,
    limits: ParserLimits | None = None,
) -> tuple[ElementBalance, ...]:
    return tuple(
        ElementBalance(
            element=element,
            reactant_count=count_element_in_side(reactants, element, lookup, limits),
            product_count=count_element_in_side(products, element, lookup, limits),
        )
        for element in elements
    )


def is_equation_balanced(balance: Iterable[ElementBalance]) -> bool:
    return all(item.is_balanced for item in balance)


def format_equation(
    reactants: Sequence[EquationCompound], products: Sequence[EquationCompound]
) -> str:
    """Render ``2H2 + O2 → 2H2O``; a coefficient of 1 is omitted."""

    def format_side(compounds: Sequence[EquationCompound]) -> str:
        return constants.EQUATION_PLUS.join(
            f"{'' if c.coefficient == 1 else c.coefficient}{c.formula}" for c in compounds
        )

    return f"{format_side(reactants)}{constants.EQUATION_ARROW}{format_side(products)}"


def validate_balanced_equation(
    reactants: Sequence[EquationCompound],
    products: Sequence[EquationCompound],
    lookup: ElementLookup | None = None,
    limits: ParserLimits | None = None,
) -> BalanceValidation:
    elements = get_all_elements(tuple(reactants) + tuple(products), lookup, limits)
    balance = get_element_balance(reactants, products, elements, lookup, limits)
    errors = tuple(
        f"{item.element}: {item.reactant_count} (reactants) != {item.product_count} (products)"
        for item in balance
        if not item.is_balanced
    )
    return BalanceValidation(
        is_balanced=is_equation_balanced(balance),
        element_balance=balance,
        errors=errors,
    )
