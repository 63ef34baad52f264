"""DataTable: one table contract over local or remote data."""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..core.base import (
    CLEAR,
    FILTERS,
    PAGE,
    PAGE_SIZE,
    SEARCH,
    SORT,
    BaseTableMode,
    TableOptions,
)
from ..core.debounce import Scheduler
from ..core.errors import DataTableConfigError
from ..core.params import (
    DEFAULT_NO_DATA_TEXT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PAGE_SIZE_OPTIONS,
    DEFAULT_ROWS_PER_PAGE_TEXT,
    DEFAULT_SEARCH_DEBOUNCE_MS,
    DEFAULT_SEARCH_PLACEHOLDER,
    ColumnDescriptor,
    FilterDescriptor,
    ParametersSnapshot,
    RowAction,
    SortSpec,
    TableView,
    validate_columns,
)
from ..core.state import ControlledValue, TableStateStore
from .local import LocalMode
from .remote import RemoteMode

logger = logging.getLogger(__name__)

ColumnLike = Union[ColumnDescriptor, Dict[str, Any]]
FilterLike = Union[FilterDescriptor, Dict[str, Any]]


def _as_column(column: ColumnLike) -> ColumnDescriptor:
    if isinstance(column, ColumnDescriptor):
        return column
    return ColumnDescriptor(**column)


def _as_filter(filter_def: FilterLike) -> FilterDescriptor:
    if isinstance(filter_def, FilterDescriptor):
        return filter_def
    params = dict(filter_def)
    # Accept the 'type' key used by serialized filter configs
    if "type" in params and "kind" not in params:
        params["kind"] = params.pop("type")
    return FilterDescriptor(**params)


def _as_sort(sort: Union[SortSpec, Dict[str, Any], None]) -> Optional[SortSpec]:
    if sort is None or isinstance(sort, SortSpec):
        return sort
    return SortSpec(field=sort["field"], direction=sort.get("direction", "asc"))


class DataTable:
    """
    Generic table backing every list screen.

    The same handlers and the same view() contract work in both modes:

    - local (api_mode=False): `data` is the complete row set; every change
      re-runs search, filter, sort and paginate in memory
    - remote (api_mode=True): every change emits a ParametersSnapshot to
      `on_params_change`; the owner fetches and calls update_remote()

    Example:
        # Local table over a polars frame
        workers = DataTable(
            columns=[{"id": "name", "label": "Name"}, {"id": "email", "label": "Email"}],
            data=workers_df,
            search_fields=["name", "email"],
            key="workers",
        )
        workers.set_search("ali")
        view = workers.view()

        # Remote table driven by an API client
        jobs = DataTable(
            columns=job_columns(),
            filters=job_filters(),
            api_mode=True,
            on_params_change=lambda params: fetch_jobs(snapshot_to_query(params)),
            key="jobs",
        )
    """

    def __init__(
        self,
        columns: Sequence[ColumnLike],
        data: Any = (),
        api_mode: bool = False,
        on_params_change: Optional[Callable[[ParametersSnapshot], Any]] = None,
        total: int = 0,
        loading: bool = False,
        key: Optional[str] = None,
        title: Optional[str] = None,
        searchable: bool = True,
        search_placeholder: str = DEFAULT_SEARCH_PLACEHOLDER,
        search_fields: Optional[Sequence[str]] = None,
        search_debounce: float = DEFAULT_SEARCH_DEBOUNCE_MS,
        filterable: bool = True,
        filters: Optional[Sequence[FilterLike]] = None,
        external_search: Optional[ControlledValue] = None,
        external_show_filters: Optional[ControlledValue] = None,
        external_filter_values: Optional[ControlledValue] = None,
        sortable: bool = True,
        default_sort: Union[SortSpec, Dict[str, Any], None] = None,
        paginated: bool = True,
        page_size: int = DEFAULT_PAGE_SIZE,
        page_size_options: Sequence[int] = DEFAULT_PAGE_SIZE_OPTIONS,
        rows_per_page_text: str = DEFAULT_ROWS_PER_PAGE_TEXT,
        external_page: Optional[ControlledValue] = None,
        external_page_size: Optional[ControlledValue] = None,
        no_data_text: str = DEFAULT_NO_DATA_TEXT,
        dense: bool = False,
        sticky_header: bool = False,
        max_height: Union[int, str, None] = None,
        actions: Optional[Sequence[RowAction]] = None,
        on_row_click: Optional[Callable[[Any], Any]] = None,
        get_row_style: Optional[Callable[[Any], Dict[str, Any]]] = None,
        scheduler: Optional[Scheduler] = None,
        emit_on_mount: bool = True,
    ):
        """
        Initialize the table.

        Args:
            columns: Column descriptors (ColumnDescriptor or dicts of its fields)
            data: Local mode: the complete row set (list of rows, polars or
                pandas frame). Remote mode: rows of the current page.
            api_mode: True for remote mode. Fixed for the table's lifetime.
            on_params_change: Listener for Parameters Snapshots. Required in
                remote mode, ignored in local mode.
            total: Remote mode: number of rows matching on the server
            loading: Remote mode: True while a fetch is in flight
            key: Stable key for the internal state in Streamlit session_state
            title: Title shown above the table
            searchable: Enable the search box
            search_placeholder: Placeholder text of the search box
            search_fields: Fields the local search looks at (None for all)
            search_debounce: Remote mode: quiet period in ms before a search
                edit is emitted
            filterable: Enable the filter panel
            filters: Filter descriptors (FilterDescriptor or dicts)
            external_search: Owner control of the search text
            external_show_filters: Owner control of filter panel visibility
            external_filter_values: Owner control of the filter values
            sortable: Enable header sorting
            default_sort: Initial sort (SortSpec or {'field', 'direction'})
            paginated: Enable pagination
            page_size: Initial rows per page
            page_size_options: Choices offered by the page size selector
            rows_per_page_text: Label of the page size selector
            external_page: Owner control of the current page
            external_page_size: Owner control of the page size
            no_data_text: Text shown when there are no rows
            dense: Compact rows
            sticky_header: Keep the header visible while scrolling
            max_height: Maximum table height (pixels or CSS string)
            actions: Per-row actions
            on_row_click: Called with the row when a row is clicked
            get_row_style: Called per row, returns extra style properties
            scheduler: Timer source for the search debounce
            emit_on_mount: Remote mode: emit the initial snapshot when the first
                table with this key is built (reruns do not emit again)
        """
        self._columns = [_as_column(c) for c in columns]
        validate_columns(self._columns)
        self._filters = [_as_filter(f) for f in (filters or [])]

        if page_size < 1:
            raise DataTableConfigError(f"page_size must be at least 1, got {page_size}")
        if search_debounce < 0:
            raise DataTableConfigError(
                f"search_debounce must not be negative, got {search_debounce}"
            )
        if api_mode and on_params_change is None:
            raise DataTableConfigError(
                "api_mode=True requires an on_params_change listener to receive "
                "the table parameters."
            )

        self._api_mode = bool(api_mode)
        self._title = title
        self._searchable = searchable
        self._search_placeholder = search_placeholder
        self._filterable = filterable
        self._sortable = sortable
        self._paginated = paginated
        self._page_size_options = list(page_size_options)
        self._rows_per_page_text = rows_per_page_text
        self._no_data_text = no_data_text
        self._dense = dense
        self._sticky_header = sticky_header
        self._max_height = max_height
        self._actions = list(actions or [])
        self._on_row_click = on_row_click
        self._get_row_style = get_row_style
        self._disposed = False

        filter_defaults = {
            f.id: f.default_value for f in self._filters if f.default_value is not None
        }
        self._store = TableStateStore(
            session_key=key,
            default_sort=_as_sort(default_sort),
            page_size=page_size,
            filter_defaults=filter_defaults,
            search=external_search,
            show_filters=external_show_filters,
            filter_values=external_filter_values,
            page=external_page,
            page_size_control=external_page_size,
        )

        options = TableOptions(
            columns=self._columns,
            filters=self._filters,
            search_fields=list(search_fields) if search_fields else None,
            searchable=searchable,
            paginated=paginated,
        )
        if self._api_mode:
            self._mode: BaseTableMode = RemoteMode(
                self._store,
                options,
                on_params_change=on_params_change,
                rows=data if data is not None else (),
                total=total,
                loading=loading,
                search_debounce=search_debounce,
                scheduler=scheduler,
            )
        else:
            self._mode = LocalMode(self._store, options, rows=data if data is not None else ())

        logger.debug("Created %r", self)
        if emit_on_mount:
            self._mode.emit_initial()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def api_mode(self) -> bool:
        return self._api_mode

    @property
    def mode(self) -> BaseTableMode:
        return self._mode

    @property
    def state(self) -> TableStateStore:
        return self._store

    @property
    def columns(self) -> List[ColumnDescriptor]:
        return list(self._columns)

    @property
    def filters(self) -> List[FilterDescriptor]:
        return list(self._filters)

    @property
    def actions(self) -> List[RowAction]:
        return list(self._actions)

    @property
    def searchable(self) -> bool:
        return self._searchable

    @property
    def filterable(self) -> bool:
        return self._filterable

    @property
    def sortable(self) -> bool:
        return self._sortable

    @property
    def paginated(self) -> bool:
        return self._paginated

    @property
    def title(self) -> Optional[str]:
        return self._title

    @property
    def no_data_text(self) -> str:
        return self._no_data_text

    @property
    def page_size_options(self) -> List[int]:
        return list(self._page_size_options)

    def view(self) -> TableView:
        """Get the rows to display and the matching total for the current state."""
        return self._mode.view()

    def snapshot(self) -> ParametersSnapshot:
        """Get the Parameters Snapshot for the current state (never emits)."""
        return self._store.snapshot()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def set_search(self, text: str) -> None:
        """
        Change the search text and go back to page 1.

        In remote mode the snapshot is emitted once the search text has been
        quiet for the debounce delay.
        """
        if not self._searchable:
            return
        self._store.set_search(text)
        self._store.set_page(1)
        self._mode.state_changed(SEARCH)

    def set_filter(self, filter_id: str, value: Any) -> None:
        """Set one filter value and go back to page 1."""
        self._store.set_filter_value(filter_id, value)
        self._store.set_page(1)
        self._mode.state_changed(FILTERS)

    def set_filter_values(self, values: Dict[str, Any]) -> None:
        """Replace all filter values and go back to page 1."""
        self._store.set_filter_values(values)
        self._store.set_page(1)
        self._mode.state_changed(FILTERS)

    def toggle_filters(self) -> None:
        """Show or hide the filter panel."""
        self._store.set_show_filters(not self._store.show_filters)

    def clear_all(self) -> None:
        """
        Clear every filter value and the search text, and go back to page 1.

        In remote mode this emits immediately and drops any pending search
        emission.
        """
        self._store.set_filter_values({})
        self._store.set_search("")
        self._store.set_page(1)
        self._mode.state_changed(CLEAR)

    def can_sort(self, field: str) -> bool:
        if not self._sortable:
            return False
        for column in self._columns:
            if column.id == field:
                return column.sortable
        return False

    def toggle_sort(self, field: str) -> Optional[SortSpec]:
        """
        Handle a header click: sort ascending, or flip to descending when the
        column is already sorted ascending.

        Args:
            field: Column id

        Returns:
            The new sort, or None when the column cannot be sorted
        """
        if not self.can_sort(field):
            return None
        new_sort = SortSpec.next_for(self._store.sort, field)
        self._apply_sort(new_sort)
        return new_sort

    def set_sort(self, sort: Union[SortSpec, Dict[str, Any], None]) -> None:
        """Set or clear the sort directly."""
        self._apply_sort(_as_sort(sort))

    def _apply_sort(self, sort: Optional[SortSpec]) -> None:
        self._store.set_sort(sort)
        self._store.set_page(1)
        self._mode.state_changed(SORT)

    def set_page(self, page: int) -> None:
        """Go to a page. Pages below 1 become 1."""
        self._store.set_page(page)
        self._mode.state_changed(PAGE)

    def set_page_size(self, page_size: int) -> None:
        """Change rows per page and go back to page 1."""
        if page_size < 1:
            raise DataTableConfigError(f"page_size must be at least 1, got {page_size}")
        self._store.set_page_size(page_size)
        self._store.set_page(1)
        self._mode.state_changed(PAGE_SIZE)

    def set_rows(self, rows: Any) -> None:
        """Local mode: replace the complete row set."""
        self._mode.set_rows(rows)

    def update_remote(self, rows: Sequence[Any], total: int, loading: bool = False) -> None:
        """Remote mode: show the rows and total returned by the owner's fetch."""
        self._mode.update_remote(rows, total, loading)

    # ------------------------------------------------------------------
    # Row callbacks
    # ------------------------------------------------------------------

    def row_click(self, row: Any) -> None:
        if self._on_row_click is not None:
            self._on_row_click(row)

    def trigger_action(self, index: int, row: Any) -> Any:
        """Call the on_click of the action at `index` with the row."""
        return self._actions[index].on_click(row)

    def row_style(self, row: Any) -> Dict[str, Any]:
        if self._get_row_style is None:
            return {}
        return self._get_row_style(row) or {}

    # ------------------------------------------------------------------
    # Configuration / lifecycle
    # ------------------------------------------------------------------

    def get_table_args(self) -> Dict[str, Any]:
        """
        Get the JSON-safe display configuration of the table.

        Callables (render, on_click, listeners) are left out.

        Returns:
            Dict with columns, filters, flags and texts for the render surface
        """
        args: Dict[str, Any] = {
            "mode": self._mode.mode_name,
            "columns": [c.to_dict() for c in self._columns],
            "filters": [f.to_dict() for f in self._filters],
            "searchable": self._searchable,
            "searchPlaceholder": self._search_placeholder,
            "filterable": self._filterable,
            "sortable": self._sortable,
            "paginated": self._paginated,
            "pageSizeOptions": list(self._page_size_options),
            "rowsPerPageText": self._rows_per_page_text,
            "noDataText": self._no_data_text,
            "dense": self._dense,
            "stickyHeader": self._sticky_header,
            "actions": [a.to_dict() for a in self._actions],
        }
        if self._title:
            args["title"] = self._title
        if self._max_height is not None:
            args["maxHeight"] = self._max_height
        sort = self._store.sort
        if sort is not None:
            args["sort"] = {"field": sort.field, "direction": sort.direction.value}
        return args

    def dispose(self) -> None:
        """
        Tear the table down: cancel pending emissions and drop internal state.
        """
        if self._disposed:
            return
        self._disposed = True
        self._mode.dispose()
        self._store.reset()
        logger.debug("Disposed table '%s'", self._store.session_key)

    def __enter__(self) -> "DataTable":
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def __call__(self, key: Optional[str] = None) -> TableView:
        """
        Render the table in Streamlit.

        Args:
            key: Optional prefix for widget keys (defaults to the state key)

        Returns:
            The TableView that was rendered
        """
        from ..rendering.bridge import render_table

        return render_table(self, key=key)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"mode='{self._mode.mode_name}', "
            f"columns={[c.id for c in self._columns]}, "
            f"filters={[f.id for f in self._filters]}, "
            f"key='{self._store.session_key}')"
        )
