"""
jobdesk - Generic data table engine for the job/worker back-office.

One DataTable backs every list screen. It either processes a complete row set
in memory (local mode) or emits search/sort/filter/pagination parameters to a
server and shows the page it returns (remote mode), behind one contract.
"""

from .components.local import LocalMode
from .components.remote import RemoteMode
from .components.table import DataTable
from .core.base import BaseTableMode
from .core.debounce import AsyncioScheduler, Debouncer, ManualScheduler, ThreadingScheduler
from .core.errors import DataTableConfigError, DataTableModeError
from .core.params import (
    ColumnDescriptor,
    FilterDescriptor,
    FilterKind,
    FilterOption,
    PaginationState,
    ParametersSnapshot,
    RowAction,
    SortDirection,
    SortSpec,
    TableView,
)
from .core.state import ControlledValue, TableStateStore
from .preprocessing.filtering import rows_from_frame, run_pipeline
from .rendering.bridge import render_table

__version__ = "0.1.0"

__all__ = [
    # Core
    "BaseTableMode",
    "TableStateStore",
    "ControlledValue",
    "Debouncer",
    "ThreadingScheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "DataTableConfigError",
    "DataTableModeError",
    # Parameter model
    "ColumnDescriptor",
    "FilterDescriptor",
    "FilterKind",
    "FilterOption",
    "SortSpec",
    "SortDirection",
    "PaginationState",
    "ParametersSnapshot",
    "RowAction",
    "TableView",
    # Components
    "DataTable",
    "LocalMode",
    "RemoteMode",
    # Utilities
    "run_pipeline",
    "rows_from_frame",
    "render_table",
]
