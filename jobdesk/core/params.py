"""Parameter model: column, filter, sort and pagination descriptors."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from .errors import DataTableConfigError

DEFAULT_PAGE_SIZE = 10
DEFAULT_PAGE_SIZE_OPTIONS = (5, 10, 25, 50)
DEFAULT_SEARCH_DEBOUNCE_MS = 500
DEFAULT_NO_DATA_TEXT = "No data available"
DEFAULT_SEARCH_PLACEHOLDER = "Search..."
DEFAULT_ROWS_PER_PAGE_TEXT = "Rows per page:"


class FilterKind(str, Enum):
    """Widget kind of a filter, which also picks the local comparison rule."""

    SELECT = "select"
    TEXT = "text"
    CHECKBOX = "checkbox"
    DATE = "date"
    NUMBER = "number"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def is_empty_value(value: Any) -> bool:
    """
    Check whether a filter value counts as "not applied".

    Args:
        value: A filter value or search text

    Returns:
        True for None and the empty string
    """
    return value is None or value == ""


@dataclass
class ColumnDescriptor:
    """
    One projection of a row.

    Attributes:
        id: Field key looked up on each row. Unique within a table.
        label: Header text
        align: 'left', 'center' or 'right'
        sortable: Whether clicking the header sorts by this column
        filterable: Whether the column has a filter widget
        render: Optional formatter called as render(value, row)
        min_width: Display hint in pixels
        max_width: Display hint in pixels
    """

    id: str
    label: str
    align: Optional[str] = None
    sortable: bool = True
    filterable: bool = False
    render: Optional[Callable[[Any, Any], Any]] = None
    min_width: Optional[int] = None
    max_width: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON-safe part of the descriptor (render is dropped)."""
        result: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "sortable": self.sortable,
            "filterable": self.filterable,
        }
        if self.align:
            result["align"] = self.align
        if self.min_width is not None:
            result["minWidth"] = self.min_width
        if self.max_width is not None:
            result["maxWidth"] = self.max_width
        return result


@dataclass(frozen=True)
class FilterOption:
    value: Any
    label: str


@dataclass
class FilterDescriptor:
    """
    One addressable filter.

    In local mode `id` should match a column id, since the filter narrows rows
    by that column. In remote mode the id is passed through to the server as is.

    Attributes:
        id: Filter key in the filter values mapping
        label: Widget label
        kind: FilterKind (a plain string like 'select' is accepted)
        options: Choices for select filters
        default_value: Initial value when the table owns its filter values
    """

    id: str
    label: str
    kind: FilterKind = FilterKind.TEXT
    options: List[FilterOption] = field(default_factory=list)
    default_value: Any = None

    def __post_init__(self) -> None:
        self.kind = FilterKind(self.kind)
        self.options = [
            opt if isinstance(opt, FilterOption) else FilterOption(**opt)
            for opt in self.options
        ]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "type": self.kind.value,
        }
        if self.options:
            result["options"] = [
                {"value": opt.value, "label": opt.label} for opt in self.options
            ]
        if self.default_value is not None:
            result["defaultValue"] = self.default_value
        return result


@dataclass(frozen=True)
class SortSpec:
    """Single-column sort. At most one is active at a time."""

    field: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", SortDirection(self.direction))

    def toggled(self, field_id: str) -> "SortSpec":
        """
        Get the sort that follows a header click on `field_id`.

        The same field sorted ascending flips to descending; anything else
        starts ascending on the clicked field.
        """
        if self.field == field_id and self.direction == SortDirection.ASC:
            return SortSpec(field_id, SortDirection.DESC)
        return SortSpec(field_id, SortDirection.ASC)

    @staticmethod
    def next_for(current: Optional["SortSpec"], field_id: str) -> "SortSpec":
        if current is None:
            return SortSpec(field_id, SortDirection.ASC)
        return current.toggled(field_id)


@dataclass(frozen=True)
class PaginationState:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def total_pages(self, total: int) -> int:
        if total <= 0:
            return 0
        return math.ceil(total / self.page_size)

    def clamp(self, total: int) -> int:
        """
        Clamp the page into the range the pagination controls can show.

        Args:
            total: Number of matching rows

        Returns:
            Page in [1, total_pages] when total > 0, otherwise 1
        """
        pages = self.total_pages(total)
        if pages == 0:
            return 1
        return min(max(self.page, 1), pages)


@dataclass(frozen=True)
class ParametersSnapshot:
    """
    Everything the remote collaborator needs to fetch one page.

    Unset optionals are None. `filters` is None, never an empty dict, when no
    filter is active.
    """

    page: int
    page_size: int
    search: Optional[str] = None
    sort_field: Optional[str] = None
    sort_direction: Optional[SortDirection] = None
    filters: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the camelCase payload handed to the API client.

        Returns:
            Dict with page and pageSize, plus search, sortField, sortDirection
            and filters when they are set
        """
        payload: Dict[str, Any] = {"page": self.page, "pageSize": self.page_size}
        if self.search is not None:
            payload["search"] = self.search
        if self.sort_field is not None:
            payload["sortField"] = self.sort_field
        if self.sort_direction is not None:
            payload["sortDirection"] = self.sort_direction.value
        if self.filters is not None:
            payload["filters"] = dict(self.filters)
        return payload


@dataclass
class RemoteRows:
    """Rows and total supplied by the owner in remote mode."""

    rows: List[Any] = field(default_factory=list)
    total: int = 0
    loading: bool = False


@dataclass
class RowAction:
    icon: Any
    tooltip: str
    on_click: Callable[[Any], Any]
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"icon": str(self.icon), "tooltip": self.tooltip}
        if self.color:
            result["color"] = self.color
        return result


@dataclass
class TableView:
    """
    Render-ready output of a table, identical in shape for both modes.

    Attributes:
        rows: Rows of the visible page
        total: Matching rows before pagination
        page: Current page (1-based)
        page_size: Rows per page
        loading: True while a remote fetch is pending
        mode: 'local' or 'remote'
    """

    rows: List[Any]
    total: int
    page: int
    page_size: int
    loading: bool = False
    mode: str = "local"

    @property
    def total_pages(self) -> int:
        return PaginationState(self.page, self.page_size).total_pages(self.total)

    @property
    def is_empty(self) -> bool:
        return not self.rows


def active_filter_values(filter_values: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Drop filter entries that are not applied.

    Args:
        filter_values: Mapping of filter id to value

    Returns:
        New dict holding only the entries with a non-empty value
    """
    if not filter_values:
        return {}
    return {k: v for k, v in filter_values.items() if not is_empty_value(v)}


def validate_columns(columns: Sequence[ColumnDescriptor]) -> None:
    """Raise DataTableConfigError if two columns share an id."""
    seen = set()
    for column in columns:
        if column.id in seen:
            raise DataTableConfigError(
                f"Duplicate column id '{column.id}'. "
                f"Column ids must be unique within a table."
            )
        seen.add(column.id)
