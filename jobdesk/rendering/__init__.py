"""Rendering utilities for drawing tables with Streamlit."""

from .bridge import build_display_frame, pagination_summary, render_table

__all__ = [
    "render_table",
    "build_display_frame",
    "pagination_summary",
]
