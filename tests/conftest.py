"""Pytest configuration and shared fixtures for jobdesk tests."""

from typing import Any, Dict, List
from unittest.mock import patch

import polars as pl
import pytest

from jobdesk import ColumnDescriptor, FilterDescriptor, FilterKind, ManualScheduler


class MockSessionState(dict):
    """Mock Streamlit session_state that behaves like a dict."""
    pass


@pytest.fixture
def mock_streamlit():
    """
    Mock Streamlit's session_state for testing tables.

    This fixture patches st.session_state so tables keep their internal state
    in a plain dict, without running a Streamlit server.
    """
    mock_session_state = MockSessionState()

    with patch('streamlit.session_state', mock_session_state):
        yield mock_session_state


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    """Virtual-time scheduler so debounce tests never sleep."""
    return ManualScheduler()


@pytest.fixture
def emitted() -> List[Any]:
    """List collecting every Parameters Snapshot a remote table emits."""
    return []


@pytest.fixture
def worker_rows() -> List[Dict[str, Any]]:
    """Ten workers, three of them ACTIVE."""
    statuses = ["ACTIVE", "INACTIVE", "INACTIVE", "ACTIVE", "INACTIVE",
                "INACTIVE", "ACTIVE", "INACTIVE", "INACTIVE", "INACTIVE"]
    names = ["Alice", "Bob", "Carol", "Dave", "Eve",
             "Frank", "Grace", "Heidi", "Ivan", "Judy"]
    return [
        {
            "id": str(i + 1),
            "name": name,
            "email": f"{name.lower()}@example.com",
            "status": status,
            "active": status == "ACTIVE",
            "age": 20 + i,
            "skills": "Laser, Folding" if i % 2 == 0 else "TIG welding",
        }
        for i, (name, status) in enumerate(zip(names, statuses))
    ]


@pytest.fixture
def worker_columns() -> List[ColumnDescriptor]:
    return [
        ColumnDescriptor("name", "Name"),
        ColumnDescriptor("email", "Email"),
        ColumnDescriptor("status", "Status", filterable=True),
        ColumnDescriptor("active", "Active", align="center"),
        ColumnDescriptor("age", "Age", align="right"),
        ColumnDescriptor("skills", "Skills", sortable=False),
    ]


@pytest.fixture
def worker_filters() -> List[FilterDescriptor]:
    return [
        FilterDescriptor("status", "Status", FilterKind.SELECT,
                         options=[{"value": "ACTIVE", "label": "Active"},
                                  {"value": "INACTIVE", "label": "Inactive"}]),
        FilterDescriptor("name", "Name", FilterKind.TEXT),
        FilterDescriptor("active", "Active", FilterKind.CHECKBOX),
        FilterDescriptor("age", "Age", FilterKind.NUMBER),
    ]


@pytest.fixture
def numbered_rows() -> List[Dict[str, Any]]:
    """Twelve rows with ids 1..12."""
    return [{"id": i, "name": f"row_{i}"} for i in range(1, 13)]


@pytest.fixture
def sample_frame() -> pl.LazyFrame:
    """Create sample job data as a polars LazyFrame."""
    return pl.LazyFrame({
        "id": [1, 2, 3, 4, 5],
        "jobNumber": ["J-001", "J-002", "J-003", "J-004", "J-005"],
        "customer": ["Acme", "Globex", "Initech", "Acme", "Umbrella"],
        "status": ["IN_PROGRESS", "COMPLETE", "URGENT", "COMPLETE", "NOT_STARTED"],
        "amount": [100.0, 250.5, None, 80.0, 1200.0],
    })
