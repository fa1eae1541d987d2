"""Stoichiometric matrix and exact null-space helpers.

The matrix has one row per element (sorted) and one column per compound
(reactants, then products). Product columns are negated so that balanced
coefficient vectors are exactly the solutions of ``M x = 0``.

Elimination is carried out on :class:`RobustFraction` values. Floats are
used only to pick the pivot row by magnitude.
"""

from __future__ import annotations

from functools import reduce
from math import gcd
from typing import Mapping, Sequence

import numpy as np

from chembalance.fraction import RobustFraction


class LinearAlgebraError(ValueError):
    """Raised when the system cannot produce a null-space vector."""


def lcm(a: int, b: int) -> int:
    if a == 0 or b == 0:
        return 0
    return abs(a * b) // gcd(a, b)


def build_stoichiometric_matrix(
    compositions: Sequence[Mapping[str, int]],
    num_reactants: int,
    elements: Sequence[str],
) -> np.ndarray:
    """Integer matrix of element counts, product columns negated."""
    if not elements or not compositions:
        raise LinearAlgebraError("Empty stoichiometric system")

    row_index = {element: i for i, element in enumerate(elements)}
    matrix = np.zeros((len(elements), len(compositions)), dtype=np.int64)
    for col, composition in enumerate(compositions):
        sign = 1 if col < num_reactants else -1
        for element, count in composition.items():
            matrix[row_index[element], col] = sign * count
    return matrix


def to_fraction_matrix(matrix: np.ndarray) -> list[list[RobustFraction]]:
    return [[RobustFraction(int(value)) for value in row] for row in matrix]


def gaussian_elimination(
    matrix: Sequence[Sequence[RobustFraction]],
    steps: list[str] | None = None,
) -> tuple[list[list[RobustFraction]], list[int]]:
    """Reduce ``matrix`` to reduced row echelon form.

    Returns the reduced copy and the pivot column indices; the rank is the
    number of pivot columns. Row operations are appended to ``steps``.
    """
    work = [list(row) for row in matrix]
    rows = len(work)
    cols = len(work[0]) if rows else 0
    pivot_cols: list[int] = []

    current = 0
    for col in range(cols):
        if current >= rows:
            break

        best_row = -1
        best_magnitude = 0.0
        for row in range(current, rows):
            magnitude = abs(work[row][col].to_decimal())
            if magnitude > best_magnitude:
                best_row = row
                best_magnitude = magnitude

        if best_row == -1:
            continue

        if best_row != current:
            work[current], work[best_row] = work[best_row], work[current]

        pivot_cols.append(col)
        pivot = work[current][col]
        if not pivot.is_one():
            work[current] = [value.divide(pivot) for value in work[current]]
            if steps is not None:
                steps.append(f"R{current + 1} = R{current + 1} / ({pivot})")

        for row in range(rows):
            if row == current or work[row][col].is_zero():
                continue
            factor = work[row][col]
            work[row] = [
                value.subtract(pivot_value.multiply(factor))
                for value, pivot_value in zip(work[row], work[current])
            ]
            if steps is not None:
                steps.append(f"R{row + 1} = R{row + 1} - ({factor}) * R{current + 1}")

        current += 1

    return work, pivot_cols


def free_columns(pivot_cols: Sequence[int], num_vars: int) -> list[int]:
    pivots = set(pivot_cols)
    return [col for col in range(num_vars) if col not in pivots]


def find_null_space_vector(
    reduced: Sequence[Sequence[RobustFraction]],
    pivot_cols: Sequence[int],
    num_vars: int,
    steps: list[str] | None = None,
) -> list[RobustFraction]:
    """Null-space vector with the first free variable set to 1.

    Any further free variables are left at 0.
    """
    free = free_columns(pivot_cols, num_vars)
    if not free:
        raise LinearAlgebraError("No free variable: the null space is trivial")

    free_var = free[0]
    solution = [RobustFraction(0) for _ in range(num_vars)]
    solution[free_var] = RobustFraction(1)

    for i in range(len(pivot_cols) - 1, -1, -1):
        pivot_col = pivot_cols[i]
        total = RobustFraction(0)
        for j in range(pivot_col + 1, num_vars):
            total = total.add(reduced[i][j].multiply(solution[j]))
        solution[pivot_col] = total.negate()
        if steps is not None:
            steps.append(f"x{pivot_col + 1} = {solution[pivot_col]}")

    if all(value.is_zero() for value in solution):
        raise LinearAlgebraError("Empty null space")
    return solution


def normalize_to_positive_integers(
    solution: Sequence[RobustFraction],
    steps: list[str] | None = None,
) -> list[int]:
    """Scale a rational vector to the smallest integer vector.

    The vector is negated first when no component is positive. Signs are
    otherwise preserved, so a mixed-sign vector stays mixed.
    """
    if all(value.num <= 0 for value in solution):
        solution = [value.negate() for value in solution]

    multiple = reduce(lcm, (value.den for value in solution), 1)
    integers = [value.num * (multiple // value.den) for value in solution]

    divisor = reduce(gcd, integers, 0) or 1
    if divisor > 1 and steps is not None:
        steps.append(f"Simplifying by GCD = {divisor}")
    return [value // divisor for value in integers]


def conservation_residual(matrix: np.ndarray, coefficients: Sequence[int]) -> np.ndarray:
    """Per-element imbalance ``M x``; all zeros for a balanced equation."""
    return matrix @ np.asarray(coefficients, dtype=np.int64)
