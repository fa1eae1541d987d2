"""Base interface for element lookups."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ElementLookup(ABC):
    """Read-only source of element data consumed by the parser and balancers."""

    @abstractmethod
    def is_valid_element(self, symbol: str) -> bool:
        """Return True if ``symbol`` names a known element."""
        pass

    @abstractmethod
    def atomic_mass(self, symbol: str) -> float:
        """Standard atomic mass (g/mol). Raises KeyError for unknown symbols."""
        pass
