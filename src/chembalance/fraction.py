"""Exact rational arithmetic for the Gaussian elimination.

Every value is kept in lowest terms with a positive denominator, so two
fractions are equal exactly when their numerator/denominator pairs are.
"""

from __future__ import annotations

from math import gcd


class RobustFraction:
    __slots__ = ("num", "den")

    def __init__(self, numerator: int, denominator: int = 1):
        if not isinstance(numerator, int) or not isinstance(denominator, int):
            raise TypeError("RobustFraction requires integer numerator and denominator")
        if denominator == 0:
            raise ZeroDivisionError("Fraction with zero denominator")

        if denominator < 0:
            numerator = -numerator
            denominator = -denominator

        g = gcd(numerator, denominator)
        self.num = numerator // g
        self.den = denominator // g

    @property
    def numerator(self) -> int:
        return self.num

    @property
    def denominator(self) -> int:
        return self.den

    def add(self, other: RobustFraction) -> RobustFraction:
        return RobustFraction(self.num * other.den + other.num * self.den, self.den * other.den)

    def subtract(self, other: RobustFraction) -> RobustFraction:
        return RobustFraction(self.num * other.den - other.num * self.den, self.den * other.den)

    def multiply(self, other: RobustFraction) -> RobustFraction:
        return RobustFraction(self.num * other.num, self.den * other.den)

    def divide(self, other: RobustFraction) -> RobustFraction:
        if other.num == 0:
            raise ZeroDivisionError("Division by a zero fraction")
        return RobustFraction(self.num * other.den, self.den * other.num)

    def negate(self) -> RobustFraction:
        return RobustFraction(-self.num, self.den)

    def abs(self) -> RobustFraction:
        return RobustFraction(abs(self.num), self.den)

    def is_zero(self) -> bool:
        return self.num == 0

    def is_one(self) -> bool:
        return self.num == self.den

    def to_decimal(self) -> float:
        """Approximate value, for magnitude comparisons only."""
        return self.num / self.den

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply
    __truediv__ = divide
    __neg__ = negate
    __abs__ = abs

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RobustFraction):
            return self.num == other.num and self.den == other.den
        if isinstance(other, int):
            return self.den == 1 and self.num == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.num, self.den))

    def __repr__(self) -> str:
        return f"RobustFraction({self.num}, {self.den})"

    def __str__(self) -> str:
        if self.den == 1:
            return str(self.num)
        return f"{self.num}/{self.den}"
