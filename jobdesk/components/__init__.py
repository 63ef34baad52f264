"""Table components and their data source modes."""

from .local import LocalMode
from .remote import RemoteMode
from .table import DataTable

__all__ = [
    "DataTable",
    "LocalMode",
    "RemoteMode",
]
