"""Periodic table lookup."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable

from chembalance.periodic.base import ElementLookup
from chembalance.periodic.data import ELEMENT_DATA


@dataclass(frozen=True)
class Element:
    symbol: str
    name: str
    number: int
    atomic_mass: float  # g/mol


class PeriodicTable(ElementLookup):
    """Immutable symbol -> element table."""

    def __init__(self, elements: Iterable[Element]):
        table = {}
        for element in elements:
            if element.symbol in table:
                raise ValueError(f"Duplicate element symbol: {element.symbol}")
            table[element.symbol] = element
        self._elements = MappingProxyType(table)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def get(self, symbol: str) -> Element | None:
        return self._elements.get(symbol)

    def is_valid_element(self, symbol: str) -> bool:
        return symbol in self._elements

    def atomic_mass(self, symbol: str) -> float:
        return self._elements[symbol].atomic_mass

    def symbols(self) -> list[str]:
        return sorted(self._elements)

    def elements(self) -> list[Element]:
        """All elements ordered by atomic number."""
        return sorted(self._elements.values(), key=lambda e: e.number)


@lru_cache(maxsize=None)
def load_periodic_table() -> PeriodicTable:
    """Build the standard table of the 118 known elements."""
    return PeriodicTable(
        Element(symbol=symbol, name=name, number=number, atomic_mass=mass)
        for number, symbol, name, mass in ELEMENT_DATA
    )
