"""Equation balancers.

This module provides two ways of finding the smallest positive integer
coefficients that conserve every element of a chemical equation:

- ``balance_by_trial_and_error``: a bounded, deterministic odometer search
  over small coefficients (reactant slots first, then product slots).
- ``balance_by_algebraic_method``: Gaussian elimination of the
  stoichiometric matrix in exact rational arithmetic, followed by scaling of
  a null-space vector to integers.

Both return a :class:`~chembalance.models.BalanceResult` and never raise;
failures are reported through ``is_valid`` and ``error`` with the partial
step trace kept for display.

Note: the trial-and-error search is capped at ``trial_max_coefficient``
(15 by default), so equations needing larger coefficients can only be
balanced algebraically.
"""

from __future__ import annotations

import logging
from functools import reduce
from math import gcd
from typing import Sequence

from chembalance import constants
from chembalance.config import DEFAULT_CONFIGURATION, BalancerConfiguration, ParserLimits
from chembalance.equation import (
    format_equation,
    get_all_elements,
    get_element_balance,
    parse_chemical_equation,
)
from chembalance.formula import parse_chemical_formula
from chembalance.linalg import (
    build_stoichiometric_matrix,
    conservation_residual,
    find_null_space_vector,
    free_columns,
    gaussian_elimination,
    normalize_to_positive_integers,
    to_fraction_matrix,
)
from chembalance.models import (
    BalanceMethod,
    BalanceResult,
    BalanceStep,
    ChemicalEquation,
    ElementBalance,
    EquationCompound,
)
from chembalance.periodic import ElementLookup, load_periodic_table

logger = logging.getLogger(__name__)


def _compositions(
    compounds: Sequence[EquationCompound],
    lookup: ElementLookup,
    limits: ParserLimits,
) -> list[dict[str, int]]:
    compositions = []
    for compound in compounds:
        parsed = parse_chemical_formula(compound.formula, lookup, limits)
        if not parsed.is_valid:
            raise ValueError(f"Could not parse {compound.formula}: {parsed.error}")
        compositions.append(parsed.as_dict())
    return compositions


def _apply_coefficients(
    compounds: Sequence[EquationCompound], coefficients: Sequence[int]
) -> tuple[EquationCompound, ...]:
    return tuple(c.with_coefficient(int(n)) for c, n in zip(compounds, coefficients))


def _element_count(balance: Sequence[ElementBalance]) -> dict[str, tuple[int, int]]:
    return {item.element: (item.reactant_count, item.product_count) for item in balance}


def _next_combination(coefficients: list[int], max_coefficient: int) -> bool:
    """Advance the odometer in place; False once every slot has wrapped."""
    for i in range(len(coefficients) - 1, -1, -1):
        if coefficients[i] < max_coefficient:
            coefficients[i] += 1
            return True
        coefficients[i] = 1
    return False


def _is_balanced(
    compositions: Sequence[dict[str, int]],
    num_reactants: int,
    coefficients: Sequence[int],
    elements: Sequence[str],
) -> bool:
    for element in elements:
        left = sum(
            compositions[i].get(element, 0) * coefficients[i] for i in range(num_reactants)
        )
        right = sum(
            compositions[i].get(element, 0) * coefficients[i]
            for i in range(num_reactants, len(compositions))
        )
        if left != right:
            return False
    return True


def _error_result(
    equation: ChemicalEquation | None,
    method: BalanceMethod | str,
    steps: Sequence[BalanceStep],
    error: str,
) -> BalanceResult:
    return BalanceResult(
        original_equation=equation,
        balanced_reactants=equation.reactants if equation else (),
        balanced_products=equation.products if equation else (),
        balanced_equation="",
        method=method,
        steps=tuple(steps),
        is_valid=False,
        error=error,
    )


def balance_by_trial_and_error(
    equation: ChemicalEquation,
    max_iterations: int | None = None,
    config: BalancerConfiguration | None = None,
    lookup: ElementLookup | None = None,
) -> BalanceResult:
    config = config or DEFAULT_CONFIGURATION
    if lookup is None:
        lookup = load_periodic_table()
    if max_iterations is None:
        max_iterations = config.max_iterations
    method = constants.TRIAL_AND_ERROR

    steps: list[BalanceStep] = []

    def add_step(description: str, text: str = "", element_count=None) -> None:
        steps.append(BalanceStep(len(steps) + 1, description, text, element_count))

    add_step("Initial unbalanced equation", format_equation(equation.reactants, equation.products))

    try:
        compositions = _compositions(equation.compounds, lookup, config.limits)
    except ValueError as exc:
        return _error_result(equation, method, steps, str(exc))

    elements = get_all_elements(equation.compounds, lookup, config.limits)
    add_step(f"Elements present: {', '.join(elements)}")

    num_reactants = len(equation.reactants)
    coefficients = [1] * len(compositions)

    if _is_balanced(compositions, num_reactants, coefficients, elements):
        reactants = _apply_coefficients(equation.reactants, coefficients)
        products = _apply_coefficients(equation.products, coefficients[num_reactants:])
        balanced = format_equation(reactants, products)
        add_step("Equation is already balanced with all coefficients 1", balanced)
        return BalanceResult(
            original_equation=equation,
            balanced_reactants=reactants,
            balanced_products=products,
            balanced_equation=balanced,
            method=method,
            steps=tuple(steps),
            is_valid=True,
        )

    add_step(
        f"Starting systematic search (at most {max_iterations} combinations, "
        f"coefficients up to {config.trial_max_coefficient})"
    )

    iteration = 0
    while iteration < max_iterations:
        if _is_balanced(compositions, num_reactants, coefficients, elements):
            divisor = reduce(gcd, coefficients)
            simplified = [c // divisor for c in coefficients]

            reactants = _apply_coefficients(equation.reactants, simplified)
            products = _apply_coefficients(equation.products, simplified[num_reactants:])
            final_balance = get_element_balance(
                reactants, products, elements, lookup, config.limits
            )
            balanced = format_equation(reactants, products)

            if not all(item.is_balanced for item in final_balance):
                add_step("Simplified coefficients failed the balance check", balanced)
                return _error_result(equation, method, steps, constants.INVALID_SOLUTION)

            add_step(
                f"Combination found at iteration {iteration + 1}",
                balanced,
                _element_count(final_balance),
            )
            if divisor > 1:
                add_step(f"Coefficients simplified by GCD = {divisor}", balanced)

            logger.debug("Balanced %s after %d iterations", balanced, iteration + 1)
            return BalanceResult(
                original_equation=equation,
                balanced_reactants=reactants,
                balanced_products=products,
                balanced_equation=balanced,
                method=method,
                steps=tuple(steps),
                is_valid=True,
            )

        if not _next_combination(coefficients, config.trial_max_coefficient):
            break

        iteration += 1
        if iteration % config.progress_interval == 0:
            add_step(f"Progress: {iteration} combinations tried...")

    add_step(f"No balance found after {iteration} attempts")
    logger.info(
        "Trial-and-error gave up on %s after %d combinations",
        format_equation(equation.reactants, equation.products),
        iteration,
    )
    return _error_result(
        equation,
        method,
        steps,
        f"{constants.CANNOT_BALANCE} ({iteration} combinations tried)",
    )


def balance_by_algebraic_method(
    equation: ChemicalEquation,
    config: BalancerConfiguration | None = None,
    lookup: ElementLookup | None = None,
) -> BalanceResult:
    config = config or DEFAULT_CONFIGURATION
    if lookup is None:
        lookup = load_periodic_table()
    method = constants.ALGEBRAIC
    trace: list[str] = []

    def as_steps(final_equation: str = "") -> list[BalanceStep]:
        return [
            BalanceStep(i + 1, text, final_equation if i == len(trace) - 1 else "")
            for i, text in enumerate(trace)
        ]

    try:
        compositions = _compositions(equation.compounds, lookup, config.limits)
        elements = sorted({symbol for comp in compositions for symbol in comp})
        num_reactants = len(equation.reactants)
        num_vars = len(compositions)

        matrix = build_stoichiometric_matrix(compositions, num_reactants, elements)
        for element, row in zip(elements, matrix):
            trace.append(f"{element}: [{'  '.join(str(v) for v in row)}] = 0")

        reduced, pivot_cols = gaussian_elimination(to_fraction_matrix(matrix), trace)
        rank = len(pivot_cols)
        if rank == num_vars:
            return _error_result(
                equation, method, as_steps(), constants.OVERDETERMINED_SYSTEM
            )

        free = free_columns(pivot_cols, num_vars)
        if len(free) > 1:
            trace.append(
                f"Null space has dimension {len(free)}; using free variable x{free[0] + 1}"
            )
            logger.warning(
                "Equation %s has %d independent solutions; only the first is tried",
                format_equation(equation.reactants, equation.products),
                len(free),
            )

        solution = find_null_space_vector(reduced, pivot_cols, num_vars, trace)
        coefficients = normalize_to_positive_integers(solution, trace)

        if any(c <= 0 for c in coefficients):
            return _error_result(
                equation, method, as_steps(), constants.NON_POSITIVE_SOLUTION
            )

        residual = conservation_residual(matrix, coefficients)
        reactants = _apply_coefficients(equation.reactants, coefficients)
        products = _apply_coefficients(equation.products, coefficients[num_reactants:])
        for item in get_element_balance(
            reactants, products, elements, lookup, config.limits
        ):
            if not item.is_balanced:
                return _error_result(
                    equation, method, as_steps(), constants.INVALID_SOLUTION
                )
            trace.append(f"{item.element}: {item.reactant_count} = {item.product_count}")
        if residual.any():
            return _error_result(equation, method, as_steps(), constants.INVALID_SOLUTION)

        balanced = format_equation(reactants, products)
        return BalanceResult(
            original_equation=equation,
            balanced_reactants=reactants,
            balanced_products=products,
            balanced_equation=balanced,
            method=method,
            steps=tuple(as_steps(balanced)),
            is_valid=True,
        )

    except Exception as exc:
        logger.warning("Algebraic balancing failed: %s", exc)
        return _error_result(
            equation, method, as_steps(), f"{constants.ALGEBRAIC_ERROR}: {exc}"
        )


def balance_chemical_equation(
    equation: str,
    method: BalanceMethod | str = constants.DEFAULT_BALANCE_METHOD,
    config: BalancerConfiguration | None = None,
    lookup: ElementLookup | None = None,
) -> BalanceResult:
    """Parse ``equation`` and balance it with ``method``."""
    config = config or DEFAULT_CONFIGURATION
    if lookup is None:
        lookup = load_periodic_table()

    parsed = parse_chemical_equation(equation, lookup, config.limits)
    if not parsed.is_valid:
        return _error_result(None, method, (), parsed.error or constants.CANNOT_BALANCE)

    chemical_equation = parsed.to_equation()

    if method == constants.TRIAL_AND_ERROR:
        return balance_by_trial_and_error(chemical_equation, config=config, lookup=lookup)
    elif method == constants.ALGEBRAIC:
        return balance_by_algebraic_method(chemical_equation, config=config, lookup=lookup)
    else:
        return BalanceResult(
            original_equation=chemical_equation,
            balanced_reactants=(),
            balanced_products=(),
            balanced_equation="",
            method=method,
            steps=(),
            is_valid=False,
            error=f"{constants.UNSUPPORTED_METHOD}: {method}",
        )
