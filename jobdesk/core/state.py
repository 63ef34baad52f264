"""State store resolving externally controlled vs internally owned table state."""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .params import (
    DEFAULT_PAGE_SIZE,
    ParametersSnapshot,
    SortSpec,
    active_filter_values,
    is_empty_value,
)

logger = logging.getLogger(__name__)

# Fields an owner may control. Sort is always owned by the table.
CONTROLLABLE_FIELDS = ("search", "show_filters", "filter_values", "page", "page_size")


@dataclass
class ControlledValue:
    """
    An externally owned state field: current value plus change callback.

    The table reads `value` and forwards every change to `on_change` without
    touching its own state. The owner is expected to update `value` (or pass a
    fresh ControlledValue) in response.
    """

    value: Any
    on_change: Callable[[Any], None]


class TableStateStore:
    """
    Single source of truth for search, filter values, sort and pagination.

    Each controllable field resolves to the owner's ControlledValue when one
    was supplied, otherwise to an internal cell. Internal cells live in
    Streamlit's session_state under `session_key`, so a table recreated on
    every Streamlit rerun keeps its state.

    The cell dict is bound once, while the script run that builds the table
    has its session context. Later reads and writes go to that dict directly,
    so a debounce timer thread sees the same session as the script.

    Ownership is decided once in __init__ and never changes.
    """

    def __init__(
        self,
        session_key: Optional[str] = None,
        default_sort: Optional[SortSpec] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        filter_defaults: Optional[Dict[str, Any]] = None,
        search: Optional[ControlledValue] = None,
        show_filters: Optional[ControlledValue] = None,
        filter_values: Optional[ControlledValue] = None,
        page: Optional[ControlledValue] = None,
        page_size_control: Optional[ControlledValue] = None,
    ):
        """
        Initialize the store.

        Args:
            session_key: Key in Streamlit session_state for the internal cells.
                Use a stable key to keep state across reruns. A random key is
                generated when omitted.
            default_sort: Initial sort, or None for unsorted
            page_size: Initial page size when the page size is owned
            filter_defaults: Initial filter values when they are owned
            search: External control of the search text
            show_filters: External control of filter panel visibility
            filter_values: External control of the filter values mapping
            page: External control of the current page
            page_size_control: External control of the page size
        """
        self._session_key = session_key or f"jobdesk_table_{uuid.uuid4().hex}"
        self._controls: Dict[str, Optional[ControlledValue]] = {
            "search": search,
            "show_filters": show_filters,
            "filter_values": filter_values,
            "page": page,
            "page_size": page_size_control,
        }
        self._defaults: Dict[str, Any] = {
            "search": "",
            "show_filters": False,
            "filter_values": active_filter_values(filter_defaults),
            "page": 1,
            "page_size": page_size,
            "sort": default_sort,
        }
        self._cell: Optional[Dict[str, Any]] = None
        self._bind_cell()

    def _bind_cell(self) -> Dict[str, Any]:
        """Create the internal cells in session state if needed and bind them."""
        import streamlit as st

        if self._session_key not in st.session_state:
            st.session_state[self._session_key] = {
                "values": dict(self._defaults),
                "mode": {},
            }
        self._cell = st.session_state[self._session_key]
        return self._cell

    @property
    def _state(self) -> Dict[str, Any]:
        if self._cell is None:
            return self._bind_cell()
        return self._cell

    @property
    def session_key(self) -> str:
        return self._session_key

    @property
    def mode_state(self) -> Dict[str, Any]:
        """
        Per-key scratch space for the data source mode.

        Shared by every table built with the same session key, so bookkeeping
        that must outlive one Streamlit rerun (pending search emission, mount
        flag) is kept here rather than on the mode instance.
        """
        return self._state.setdefault("mode", {})

    def is_controlled(self, name: str) -> bool:
        return self._controls.get(name) is not None

    def controlled_fields(self) -> List[str]:
        """Return the names of the fields owned by the caller."""
        return [name for name in CONTROLLABLE_FIELDS if self.is_controlled(name)]

    def _get(self, name: str) -> Any:
        control = self._controls.get(name)
        if control is not None:
            return control.value
        return self._state["values"][name]

    def _set(self, name: str, value: Any) -> None:
        control = self._controls.get(name)
        if control is not None:
            control.on_change(value)
            return
        self._state["values"][name] = value

    @property
    def search(self) -> str:
        value = self._get("search")
        return "" if value is None else str(value)

    def set_search(self, value: str) -> None:
        self._set("search", value or "")

    @property
    def show_filters(self) -> bool:
        return bool(self._get("show_filters"))

    def set_show_filters(self, value: bool) -> None:
        self._set("show_filters", bool(value))

    @property
    def filter_values(self) -> Dict[str, Any]:
        """Get a copy of the current filter values, including empty entries."""
        return dict(self._get("filter_values") or {})

    def set_filter_values(self, values: Dict[str, Any]) -> None:
        self._set("filter_values", dict(values))

    def set_filter_value(self, filter_id: str, value: Any) -> None:
        """Set one filter, keeping the other entries."""
        values = self.filter_values
        values[filter_id] = value
        self.set_filter_values(values)

    @property
    def active_filters(self) -> Dict[str, Any]:
        return active_filter_values(self.filter_values)

    @property
    def sort(self) -> Optional[SortSpec]:
        return self._state["values"]["sort"]

    def set_sort(self, sort: Optional[SortSpec]) -> None:
        self._state["values"]["sort"] = sort

    @property
    def page(self) -> int:
        value = self._get("page")
        return int(value) if value else 1

    def set_page(self, page: int) -> None:
        self._set("page", max(int(page), 1))

    @property
    def page_size(self) -> int:
        return int(self._get("page_size"))

    def set_page_size(self, page_size: int) -> None:
        self._set("page_size", int(page_size))

    @property
    def has_active_filters(self) -> bool:
        """True when the search text or any filter value is non-empty."""
        if not is_empty_value(self.search):
            return True
        return any(not is_empty_value(v) for v in self.filter_values.values())

    @property
    def should_show_filters(self) -> bool:
        """Filters auto-reveal once any of them is engaged."""
        return self.show_filters or self.has_active_filters

    def snapshot(self) -> ParametersSnapshot:
        """
        Serialize the current state into a Parameters Snapshot.

        Returns:
            Snapshot with search/sort/filters set only when they are active
        """
        sort = self.sort
        filters = self.active_filters
        return ParametersSnapshot(
            page=self.page,
            page_size=self.page_size,
            search=self.search or None,
            sort_field=sort.field if sort else None,
            sort_direction=sort.direction if sort else None,
            filters=filters or None,
        )

    def reset(self) -> None:
        """Drop the internal cells; the next read recreates them from defaults."""
        import streamlit as st

        self._cell = None
        if self._session_key in st.session_state:
            del st.session_state[self._session_key]
            logger.debug("Reset table state '%s'", self._session_key)

    def __repr__(self) -> str:
        return (
            f"TableStateStore(session_key='{self._session_key}', "
            f"search={self.search!r}, "
            f"filters={self.active_filters}, "
            f"sort={self.sort}, "
            f"page={self.page}, page_size={self.page_size}, "
            f"controlled={self.controlled_fields()})"
        )
