"""Bridge between a DataTable and Streamlit widgets."""

import re
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

import pandas as pd
import streamlit as st

from ..core.params import (
    ColumnDescriptor,
    FilterDescriptor,
    FilterKind,
    PaginationState,
    SortDirection,
    TableView,
)
from ..preprocessing.values import get_field, is_missing, to_text

if TYPE_CHECKING:
    from ..components.table import DataTable

LOADING_TEXT = "Loading..."

# Session state key for the last selected row per table, so on_row_click
# fires once per selection instead of on every rerun
_SELECTED_ROW_KEY = "_jobdesk_selected_rows"

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def clamp_page(page: int, page_size: int, total: int) -> int:
    """
    Clamp a page number to what the pagination controls can show.

    Args:
        page: Requested page
        page_size: Rows per page
        total: Matching rows

    Returns:
        Page in [1, ceil(total / page_size)], or 1 when there are no rows
    """
    return PaginationState(page=page, page_size=page_size).clamp(total)


def pagination_summary(page: int, page_size: int, total: int, api_mode: bool = False) -> str:
    """Build the 'Showing X to Y of Z entries' line under the table."""
    first = min((page - 1) * page_size + 1, total)
    last = min(page * page_size, total)
    text = f"Showing {first} to {last} of {total} entries"
    if api_mode:
        text += " (server-side)"
    return text


def render_cell(column: ColumnDescriptor, row: Any) -> Any:
    """
    Format one cell.

    Uses the column's render(value, row) when given, otherwise the value's
    string form ('' for missing values).
    """
    value = get_field(row, column.id)
    if column.render is not None:
        return column.render(value, row)
    return to_text(value)


def build_display_frame(rows: Sequence[Any], columns: Sequence[ColumnDescriptor]) -> pd.DataFrame:
    """
    Build the pandas frame shown in the table body.

    Args:
        rows: Rows of the visible page
        columns: Column descriptors, in display order

    Returns:
        DataFrame with one column per descriptor, headed by its label
    """
    labels = [column.label for column in columns]
    records = [[render_cell(column, row) for column in columns] for row in rows]
    return pd.DataFrame(records, columns=labels)


def style_to_css(style: Optional[Dict[str, Any]]) -> str:
    """Convert a style dict ({'backgroundColor': '#fff'}) to inline CSS."""
    if not style:
        return ""
    parts = []
    for name, value in style.items():
        if is_missing(value):
            continue
        css_name = name if "-" in name else _CAMEL_RE.sub("-", name).lower()
        parts.append(f"{css_name}: {value}")
    return "; ".join(parts)


def row_styles(
    rows: Sequence[Any], get_row_style: Optional[Callable[[Any], Dict[str, Any]]]
) -> List[str]:
    """Inline CSS per row, '' when no style hook is given."""
    if get_row_style is None:
        return ["" for _ in rows]
    return [style_to_css(get_row_style(row)) for row in rows]


def _widget_key(prefix: str, name: str) -> str:
    return f"{prefix}__{name}"


def _on_search_change(table: "DataTable", widget_key: str) -> None:
    table.set_search(st.session_state.get(widget_key) or "")


def _on_filter_change(table: "DataTable", descriptor: FilterDescriptor, widget_key: str) -> None:
    value = st.session_state.get(widget_key)
    if descriptor.kind == FilterKind.CHECKBOX:
        # Unchecked means "not applied", not "must be false"
        value = True if value else None
    elif descriptor.kind == FilterKind.DATE and value is not None:
        value = value.isoformat()
    table.set_filter(descriptor.id, value)


def _on_sort_field_change(table: "DataTable", widget_key: str) -> None:
    field = st.session_state.get(widget_key)
    if field:
        table.set_sort({"field": field, "direction": SortDirection.ASC})
    else:
        table.set_sort(None)


def _on_page_change(table: "DataTable", widget_key: str) -> None:
    table.set_page(int(st.session_state.get(widget_key) or 1))


def _on_page_size_change(table: "DataTable", widget_key: str) -> None:
    table.set_page_size(int(st.session_state.get(widget_key)))


def _render_filter_widget(table: "DataTable", descriptor: FilterDescriptor, prefix: str) -> None:
    widget_key = _widget_key(prefix, f"filter_{descriptor.id}")
    current = table.state.filter_values.get(descriptor.id)
    callback_args = (table, descriptor, widget_key)

    if descriptor.kind == FilterKind.SELECT:
        options = [""] + [opt.value for opt in descriptor.options]
        labels = {opt.value: opt.label for opt in descriptor.options}
        labels[""] = "All"
        index = options.index(current) if current in options else 0
        st.selectbox(
            descriptor.label,
            options,
            index=index,
            format_func=lambda value: labels.get(value, str(value)),
            key=widget_key,
            on_change=_on_filter_change,
            args=callback_args,
        )
    elif descriptor.kind == FilterKind.CHECKBOX:
        st.checkbox(
            descriptor.label,
            value=bool(current),
            key=widget_key,
            on_change=_on_filter_change,
            args=callback_args,
        )
    elif descriptor.kind == FilterKind.DATE:
        st.date_input(
            descriptor.label,
            value=pd.Timestamp(current).date() if current else None,
            key=widget_key,
            on_change=_on_filter_change,
            args=callback_args,
        )
    elif descriptor.kind == FilterKind.NUMBER:
        st.number_input(
            descriptor.label,
            value=current if isinstance(current, (int, float)) else None,
            key=widget_key,
            on_change=_on_filter_change,
            args=callback_args,
        )
    else:
        st.text_input(
            descriptor.label,
            value="" if current is None else str(current),
            key=widget_key,
            on_change=_on_filter_change,
            args=callback_args,
        )


def _render_controls(table: "DataTable", prefix: str) -> None:
    state = table.state
    args = table.get_table_args()

    if table.searchable:
        search_key = _widget_key(prefix, "search")
        st.text_input(
            "Search",
            value=state.search,
            placeholder=args["searchPlaceholder"],
            key=search_key,
            on_change=_on_search_change,
            args=(table, search_key),
            label_visibility="collapsed",
        )

    if table.filterable and table.filters:
        st.button("Filters", key=_widget_key(prefix, "toggle_filters"), on_click=table.toggle_filters)
        if state.should_show_filters:
            for descriptor in table.filters:
                _render_filter_widget(table, descriptor, prefix)

    if state.has_active_filters:
        st.button("Clear All", key=_widget_key(prefix, "clear_all"), on_click=table.clear_all)

    sortable_columns = [c for c in table.columns if table.can_sort(c.id)]
    if sortable_columns:
        sort = state.sort
        options = [""] + [c.id for c in sortable_columns]
        labels = {c.id: c.label for c in sortable_columns}
        labels[""] = "Unsorted"
        sort_key = _widget_key(prefix, "sort_field")
        st.selectbox(
            "Sort by",
            options,
            index=options.index(sort.field) if sort and sort.field in options else 0,
            format_func=lambda value: labels.get(value, str(value)),
            key=sort_key,
            on_change=_on_sort_field_change,
            args=(table, sort_key),
        )
        if sort is not None:
            arrow = "Ascending" if sort.direction == SortDirection.ASC else "Descending"
            st.button(
                arrow,
                key=_widget_key(prefix, "sort_direction"),
                on_click=table.toggle_sort,
                args=(sort.field,),
            )


def _selected_row(event: Any, rows: Sequence[Any]) -> Optional[int]:
    selection = getattr(event, "selection", None)
    indices = list(getattr(selection, "rows", None) or [])
    if not indices:
        return None
    index = indices[0]
    if isinstance(index, int) and 0 <= index < len(rows):
        return index
    return None


def _render_body(table: "DataTable", view: TableView, prefix: str) -> None:
    if view.loading:
        st.info(LOADING_TEXT)
        return
    if view.is_empty:
        st.info(table.no_data_text)
        return

    frame = build_display_frame(view.rows, table.columns)
    styles = row_styles(view.rows, table.row_style)
    data: Any = frame
    if any(styles):
        data = frame.style.apply(lambda row: [styles[row.name]] * len(row), axis=1)

    event = st.dataframe(
        data,
        key=_widget_key(prefix, "grid"),
        hide_index=True,
        use_container_width=True,
        on_select="rerun",
        selection_mode="single-row",
    )

    index = _selected_row(event, view.rows)
    if index is None:
        return
    row = view.rows[index]

    selected = st.session_state.setdefault(_SELECTED_ROW_KEY, {})
    if selected.get(prefix) != index:
        selected[prefix] = index
        table.row_click(row)

    for position, action in enumerate(table.actions):
        st.button(
            f"{action.icon} {action.tooltip}",
            help=action.tooltip,
            key=_widget_key(prefix, f"action_{position}"),
            on_click=table.trigger_action,
            args=(position, row),
        )


def _render_pagination(table: "DataTable", view: TableView, prefix: str) -> None:
    args = table.get_table_args()
    st.caption(pagination_summary(view.page, view.page_size, view.total, table.api_mode))

    page_key = _widget_key(prefix, "page")
    st.number_input(
        "Page",
        min_value=1,
        max_value=max(view.total_pages, 1),
        value=view.page,
        step=1,
        key=page_key,
        on_change=_on_page_change,
        args=(table, page_key),
    )

    options = list(args["pageSizeOptions"])
    if view.page_size not in options:
        options = sorted(options + [view.page_size])
    size_key = _widget_key(prefix, "page_size")
    st.selectbox(
        args["rowsPerPageText"],
        options,
        index=options.index(view.page_size),
        key=size_key,
        on_change=_on_page_size_change,
        args=(table, size_key),
    )


def render_table(table: "DataTable", key: Optional[str] = None) -> TableView:
    """
    Render a DataTable with Streamlit widgets.

    Widget changes are routed to the table handlers through on_change
    callbacks, so they are applied before the next rerun renders.

    Process:
    1. Title, search box, filter panel, clear-all and sort controls
    2. Clamp the page when the matching total shrank below it
    3. Body (loading / no data / dataframe with row selection and actions)
    4. Pagination summary, page input and page size selector

    Args:
        table: The table to render
        key: Prefix for widget keys. Defaults to the table's state key.

    Returns:
        The TableView that was rendered
    """
    prefix = key or table.state.session_key

    if table.title:
        st.subheader(table.title)

    _render_controls(table, prefix)

    view = table.view()
    if table.paginated and view.total > 0 and not view.loading:
        clamped = clamp_page(view.page, view.page_size, view.total)
        if clamped != view.page:
            table.set_page(clamped)
            view = table.view()

    _render_body(table, view, prefix)

    if table.paginated:
        _render_pagination(table, view, prefix)

    return view
