"""Local processing pipeline for in-memory tables."""

from .filtering import (
    PipelineResult,
    apply_filters,
    paginate_rows,
    rows_from_frame,
    run_pipeline,
    search_rows,
    sort_rows,
)

__all__ = [
    "PipelineResult",
    "search_rows",
    "apply_filters",
    "sort_rows",
    "paginate_rows",
    "run_pipeline",
    "rows_from_frame",
]
