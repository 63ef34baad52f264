"""Local processing pipeline: search, filter, sort and paginate in memory."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set, Union

import pandas as pd
import polars as pl

from ..core.params import (
    ColumnDescriptor,
    FilterDescriptor,
    FilterKind,
    SortDirection,
    SortSpec,
    active_filter_values,
)
from .values import (
    OTHER,
    get_field,
    is_missing,
    iter_values,
    sort_category,
    sort_key,
    to_bool,
    to_number,
    to_text,
    unwrap,
)

logger = logging.getLogger(__name__)

# Filter ids already reported as unresolved, so each is logged once
_UNRESOLVED_FILTERS: Set[str] = set()


@dataclass
class PipelineResult:
    """
    Output of the local pipeline.

    Attributes:
        rows: Rows of the requested page
        total: Rows matching search and filters, before pagination
    """

    rows: List[Any]
    total: int


def rows_from_frame(
    data: Union[pl.LazyFrame, pl.DataFrame, pd.DataFrame, Sequence[Any]],
) -> List[Any]:
    """
    Turn a polars or pandas frame into a list of row dicts.

    Sequences of rows are copied into a new list unchanged.

    Args:
        data: LazyFrame, DataFrame (polars or pandas) or a sequence of rows

    Returns:
        List of rows
    """
    if isinstance(data, pl.LazyFrame):
        data = data.collect()
    if isinstance(data, pl.DataFrame):
        return data.to_dicts()
    if isinstance(data, pd.DataFrame):
        return data.to_dict(orient="records")
    return list(data)


def search_rows(
    rows: Sequence[Any],
    search: str,
    search_fields: Optional[Sequence[str]] = None,
) -> List[Any]:
    """
    Keep rows where any searchable field contains the search text.

    The match is a case-insensitive substring test on the string form of each
    value. Missing values have the empty string as string form.

    Args:
        rows: Input rows
        search: Search text; empty keeps every row
        search_fields: Fields to search. When None, every field of the row.

    Returns:
        Matching rows in input order
    """
    if not search:
        return list(rows)

    needle = search.lower()

    def matches(row: Any) -> bool:
        if search_fields:
            values = (get_field(row, name) for name in search_fields)
        else:
            values = iter_values(row)
        return any(needle in to_text(value).lower() for value in values)

    return [row for row in rows if matches(row)]


def _matches_filter(cell: Any, value: Any, kind: FilterKind) -> bool:
    if kind == FilterKind.SELECT:
        if is_missing(cell):
            return False
        equal = unwrap(cell) == unwrap(value)
        # Array-like cells compare elementwise; they never equal a scalar
        return equal if isinstance(equal, bool) else False
    if kind == FilterKind.TEXT:
        return to_text(value).lower() in to_text(cell).lower()
    if kind == FilterKind.CHECKBOX:
        return to_bool(cell) == to_bool(value)
    if kind == FilterKind.NUMBER:
        cell_number = to_number(cell)
        value_number = to_number(value)
        if cell_number is None or value_number is None:
            return False
        return cell_number == value_number
    # Date filters are ranges handled by the server; no local rule
    return True


def apply_filters(
    rows: Sequence[Any],
    filter_values: Optional[Dict[str, Any]],
    filters: Sequence[FilterDescriptor],
    columns: Sequence[ColumnDescriptor],
) -> List[Any]:
    """
    Narrow rows by each active filter value.

    A value applies when a filter descriptor with the same id exists and a
    column with that id exists. Anything else is a no-op.

    Args:
        rows: Input rows
        filter_values: Mapping of filter id to value; empty values are skipped
        filters: Declared filter descriptors
        columns: Declared column descriptors

    Returns:
        Matching rows in input order
    """
    result = list(rows)
    filters_by_id = {f.id: f for f in filters}
    column_ids = {c.id for c in columns}

    for filter_id, value in active_filter_values(filter_values).items():
        descriptor = filters_by_id.get(filter_id)
        if descriptor is None or filter_id not in column_ids:
            if filter_id not in _UNRESOLVED_FILTERS:
                _UNRESOLVED_FILTERS.add(filter_id)
                logger.warning(
                    "Filter '%s' has no matching filter descriptor and column; "
                    "it is ignored in local mode",
                    filter_id,
                )
            continue
        result = [
            row
            for row in result
            if _matches_filter(get_field(row, filter_id), value, descriptor.kind)
        ]

    return result


def sort_rows(rows: Sequence[Any], sort: Optional[SortSpec]) -> List[Any]:
    """
    Stable sort by one field, missing values last in both directions.

    Present values of one type compare natively: numbers numerically, strings
    by code point, dates chronologically. A column mixing types compares the
    string forms of its values instead.

    Args:
        rows: Input rows
        sort: Sort spec, or None to keep input order

    Returns:
        Sorted rows
    """
    if sort is None:
        return list(rows)

    present = []
    missing = []
    for row in rows:
        value = get_field(row, sort.field)
        if is_missing(value):
            missing.append(row)
        else:
            present.append((value, row))

    categories = {sort_category(value) for value, _ in present}
    category = categories.pop() if len(categories) == 1 else OTHER
    reverse = sort.direction == SortDirection.DESC

    try:
        ordered = sorted(
            present, key=lambda pair: sort_key(pair[0], category), reverse=reverse
        )
    except (TypeError, ValueError, ArithmeticError):
        # e.g. naive and aware datetimes in one column
        ordered = sorted(
            present, key=lambda pair: sort_key(pair[0], OTHER), reverse=reverse
        )

    return [row for _, row in ordered] + missing


def paginate_rows(rows: Sequence[Any], page: int, page_size: int) -> List[Any]:
    """
    Slice one page out of the rows.

    Args:
        rows: Input rows
        page: 1-based page number
        page_size: Rows per page

    Returns:
        Rows [(page-1)*page_size, page*page_size)
    """
    start = (max(page, 1) - 1) * page_size
    return list(rows[start : start + page_size])


def run_pipeline(
    rows: Sequence[Any],
    search: str = "",
    filter_values: Optional[Dict[str, Any]] = None,
    sort: Optional[SortSpec] = None,
    page: int = 1,
    page_size: int = 10,
    search_fields: Optional[Sequence[str]] = None,
    filters: Sequence[FilterDescriptor] = (),
    columns: Sequence[ColumnDescriptor] = (),
    paginated: bool = True,
) -> PipelineResult:
    """
    Run search, filter, sort and paginate in that order.

    Args:
        rows: Full in-memory row set (not modified)
        search: Search text
        filter_values: Mapping of filter id to value
        sort: Active sort, or None
        page: 1-based page
        page_size: Rows per page
        search_fields: Fields the search looks at (None for all fields)
        filters: Declared filter descriptors
        columns: Declared column descriptors
        paginated: When False, every matching row is returned

    Returns:
        PipelineResult with the page rows and the pre-pagination total
    """
    matched = search_rows(rows, search, search_fields)
    matched = apply_filters(matched, filter_values, filters, columns)
    total = len(matched)

    ordered = sort_rows(matched, sort)
    visible = paginate_rows(ordered, page, page_size) if paginated else ordered

    logger.debug(
        "Local pipeline: %d rows in, %d matching, %d on page %d",
        len(rows),
        total,
        len(visible),
        page,
    )
    return PipelineResult(rows=visible, total=total)
