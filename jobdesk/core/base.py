"""Base class for table modes (local pipeline vs remote delegation)."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .errors import DataTableModeError
from .params import ColumnDescriptor, FilterDescriptor, TableView
from .state import TableStateStore

# Reasons passed to BaseTableMode.state_changed()
SEARCH = "search"
FILTERS = "filters"
SORT = "sort"
PAGE = "page"
PAGE_SIZE = "page_size"
CLEAR = "clear"

STATE_CHANGE_REASONS = (SEARCH, FILTERS, SORT, PAGE, PAGE_SIZE, CLEAR)


@dataclass
class TableOptions:
    """Static table configuration shared with the mode."""

    columns: List[ColumnDescriptor] = field(default_factory=list)
    filters: List[FilterDescriptor] = field(default_factory=list)
    search_fields: Optional[List[str]] = None
    searchable: bool = True
    paginated: bool = True


class BaseTableMode(ABC):
    """
    Abstract base class for the data source of a table.

    A table picks exactly one mode at construction and keeps it for its whole
    life. The mode decides what happens after a state change and how the
    visible rows are produced:

    - LocalMode runs the in-memory pipeline over the full row set
    - RemoteMode emits a Parameters Snapshot and shows the owner's rows

    Attributes:
        mode_name: Name of the mode ('local' or 'remote'), as reported in TableView.mode
        _store: State store of the owning table
        _options: Static table configuration
    """

    mode_name: str = ""

    def __init__(self, store: TableStateStore, options: TableOptions):
        self._store = store
        self._options = options

    @abstractmethod
    def view(self) -> TableView:
        """
        Produce the render-ready rows and total for the current state.

        Returns:
            TableView with the visible page and the matching row count
        """
        pass

    @abstractmethod
    def state_changed(self, reason: str) -> None:
        """
        React to one logical state change made by a table handler.

        Args:
            reason: One of STATE_CHANGE_REASONS
        """
        pass

    def emit_initial(self) -> None:
        """Notify the data source of the state at mount. No-op by default."""
        pass

    def set_rows(self, rows: Sequence[Any]) -> None:
        raise DataTableModeError(
            f"set_rows() is only available in local mode, not '{self.mode_name}'. "
            "Remote tables receive rows through update_remote()."
        )

    def update_remote(self, rows: Sequence[Any], total: int, loading: bool = False) -> None:
        raise DataTableModeError(
            f"update_remote() is only available in remote mode, not '{self.mode_name}'. "
            "Local tables own their rows; use set_rows()."
        )

    def dispose(self) -> None:
        """Release deferred work. No-op by default."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(mode='{self.mode_name}')"
