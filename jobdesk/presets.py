"""Column/filter presets for the jobs and workers lists, plus the API query adapter."""

from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from .core.params import (
    ColumnDescriptor,
    FilterDescriptor,
    FilterKind,
    FilterOption,
    ParametersSnapshot,
)
from .preprocessing.values import get_field, is_missing, to_number

JOB_STATUSES = [
    "NOT_STARTED",
    "IN_PROGRESS",
    "PICNIC_BENCH",
    "COMPLETE",
    "PICKED_UP",
    "OUTSOURCED",
    "URGENT",
]

JOB_PRIORITIES = ["LOW", "MEDIUM", "HIGH"]

JOB_STATUS_COLORS = {
    "NOT_STARTED": {"main": "#FFFFFF", "background": "#F5F5F5"},
    "IN_PROGRESS": {"main": "#FFEB3B", "background": "rgba(255, 235, 59, 0.1)"},
    "PICNIC_BENCH": {"main": "#2196F3", "background": "rgba(33, 150, 243, 0.1)"},
    "COMPLETE": {"main": "#4CAF50", "background": "rgba(76, 175, 80, 0.1)"},
    "PICKED_UP": {"main": "#9C27B0", "background": "rgba(156, 39, 176, 0.1)"},
    "OUTSOURCED": {"main": "#FF9800", "background": "rgba(255, 152, 0, 0.1)"},
    "URGENT": {"main": "#F44336", "background": "rgba(244, 67, 54, 0.1)"},
}

WORKER_SKILLS = [
    "Saw cutting",
    "Guillotine cutting",
    "Laser",
    "Waterjet",
    "Turret punch",
    "Folding",
    "TIG welding",
    "MIG welding",
    "Cleanup/Deburr",
    "Breakout",
    "Powdercoating",
    "Inserts/components",
    "Drilling",
    "Sanding",
    "Packaging",
    "Delivery",
]

WORKER_SEARCH_FIELDS = ["name", "email", "skills"]


def format_date(value: Any) -> str:
    """Format an ISO date string as dd/mm/yyyy, '-' when empty or unparseable."""
    if is_missing(value) or value == "":
        return "-"
    try:
        return pd.Timestamp(value).strftime("%d/%m/%Y")
    except (ValueError, TypeError):
        return "-"


def format_time_from_hours(hours: Any) -> str:
    """Format a number of hours as HH:MM:SS."""
    total_seconds = int((to_number(hours) or 0.0) * 3600)
    h, rest = divmod(total_seconds, 3600)
    m, s = divmod(rest, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def format_amount(value: Any) -> str:
    number = to_number(value)
    if number is None:
        return ""
    return f"${number:.2f}"


def format_status(value: Any) -> str:
    if is_missing(value):
        return ""
    return str(value).replace("_", " ")


def _format_flag(value: Any) -> str:
    return "Yes" if value else "No"


def job_columns() -> List[ColumnDescriptor]:
    """Columns of the jobs list."""
    return [
        ColumnDescriptor("jobNumber", "Job No"),
        ColumnDescriptor("startDate", "Date In", render=lambda v, _: format_date(v)),
        ColumnDescriptor("endDate", "Date Due", render=lambda v, _: format_date(v)),
        ColumnDescriptor("customer", "Customer Name"),
        ColumnDescriptor("job", "Job"),
        ColumnDescriptor("quantity", "QTY", align="center"),
        ColumnDescriptor(
            "amount", "Amount (ex GST)", align="right", render=lambda v, _: format_amount(v)
        ),
        ColumnDescriptor("materialUnits", "Material Units", align="center"),
        ColumnDescriptor("labourUnits", "Labour Units", align="center"),
        ColumnDescriptor(
            "labourUnitsElapsed",
            "Units Elapsed",
            align="center",
            render=lambda v, _: format_time_from_hours(v),
        ),
        ColumnDescriptor("status", "Progress", filterable=True, render=lambda v, _: format_status(v)),
        ColumnDescriptor(
            "scheduleConfirmed", "Scheduled", align="center", render=lambda v, _: _format_flag(v)
        ),
        ColumnDescriptor("invoiceSent", "Invoice", align="center", render=lambda v, _: _format_flag(v)),
        ColumnDescriptor("contacted", "Contacted", align="center", render=lambda v, _: _format_flag(v)),
        ColumnDescriptor("delCollection", "Del/Collection", render=lambda v, _: format_date(v)),
    ]


def job_filters() -> List[FilterDescriptor]:
    """Filters of the jobs list. The delivery range is applied by the server."""
    return [
        FilterDescriptor(
            "status",
            "Status",
            FilterKind.SELECT,
            options=[FilterOption(s, s.replace("_", " ")) for s in JOB_STATUSES],
        ),
        FilterDescriptor("delivery_date_from", "Delivery From", FilterKind.DATE),
        FilterDescriptor("delivery_date_to", "Delivery To", FilterKind.DATE),
    ]


def job_row_style(row: Any) -> Dict[str, Any]:
    """Tint job rows by status."""
    colors = JOB_STATUS_COLORS.get(get_field(row, "status"))
    if colors is None:
        return {}
    return {"backgroundColor": colors["background"]}


def worker_columns() -> List[ColumnDescriptor]:
    """Columns of the workers list."""
    return [
        ColumnDescriptor("name", "Name", min_width=150),
        ColumnDescriptor("email", "Email", min_width=200),
        ColumnDescriptor("phone", "Phone", min_width=120),
        ColumnDescriptor("status", "Status", min_width=100),
        ColumnDescriptor("skills", "Skills", max_width=250),
        ColumnDescriptor(
            "hireDate",
            "Hire Date",
            min_width=120,
            render=lambda v, _: "N/A" if is_missing(v) or v == "" else format_date(v),
        ),
        ColumnDescriptor("active", "Active", align="center", min_width=80, render=lambda v, _: _format_flag(v)),
    ]


def worker_filters() -> List[FilterDescriptor]:
    """
    Filters of the workers list, for remote (api_mode) tables only.

    The server resolves both: `is_active` has no matching column, and `skills`
    matches one skill inside the worker's skill list. A local table would
    treat `is_active` as a no-op and compare `skills` by exact equality
    against the whole cell, which never matches a worker with several skills.
    """
    return [
        FilterDescriptor(
            "is_active",
            "Status",
            FilterKind.SELECT,
            options=[FilterOption("true", "Active"), FilterOption("false", "Inactive")],
        ),
        FilterDescriptor(
            "skills",
            "Skills",
            FilterKind.SELECT,
            options=[FilterOption(skill, skill) for skill in WORKER_SKILLS],
        ),
    ]


def snapshot_to_query(snapshot: ParametersSnapshot) -> Dict[str, Any]:
    """
    Flatten a Parameters Snapshot into the list endpoint query.

    The list endpoints take `page` and `limit`, `search`, `sort` and `order`,
    with each filter as its own query parameter.

    Args:
        snapshot: Snapshot emitted by a remote table

    Returns:
        Query parameter dict for the API client
    """
    query: Dict[str, Any] = {"page": snapshot.page, "limit": snapshot.page_size}
    if snapshot.search is not None:
        query["search"] = snapshot.search
    if snapshot.sort_field and snapshot.sort_direction:
        query["sort"] = snapshot.sort_field
        query["order"] = snapshot.sort_direction.value
    if snapshot.filters:
        query.update(snapshot.filters)
    return query


def parse_list_response(
    response: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    Read a paginated list response ({'count', 'results'}) into rows and total.

    A bare list is accepted as an unpaginated response. Anything else counts
    as empty.

    Returns:
        Dict with 'rows' and 'total', ready for DataTable.update_remote(**...)
    """
    if isinstance(response, list):
        return {"rows": list(response), "total": len(response)}
    if not isinstance(response, Mapping):
        return {"rows": [], "total": 0}
    rows = list(response.get("results") or response.get("data") or [])
    total = response.get("count", response.get("total"))
    return {"rows": rows, "total": int(total) if total is not None else len(rows)}
