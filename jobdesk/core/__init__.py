"""Core infrastructure for jobdesk."""

from .base import BaseTableMode, TableOptions
from .debounce import Debouncer
from .errors import DataTableConfigError, DataTableModeError
from .state import ControlledValue, TableStateStore

__all__ = [
    "BaseTableMode",
    "TableOptions",
    "TableStateStore",
    "ControlledValue",
    "Debouncer",
    "DataTableConfigError",
    "DataTableModeError",
]
