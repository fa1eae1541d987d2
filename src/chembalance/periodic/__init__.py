from .base import ElementLookup
from .table import Element, PeriodicTable, load_periodic_table

__all__ = ["ElementLookup", "Element", "PeriodicTable", "load_periodic_table"]
