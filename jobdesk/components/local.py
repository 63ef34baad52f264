"""Local mode: the table owns the full row set and processes it in memory."""

from typing import Any, Sequence

from ..core.base import BaseTableMode, TableOptions
from ..core.params import TableView
from ..core.state import TableStateStore
from ..preprocessing.filtering import rows_from_frame, run_pipeline


class LocalMode(BaseTableMode):
    """
    Run search, filter, sort and paginate over an in-memory row set.

    The pipeline is re-run on every view(), so any state change is reflected
    without extra bookkeeping. The row set is never mutated.
    """

    mode_name = "local"

    def __init__(
        self,
        store: TableStateStore,
        options: TableOptions,
        rows: Sequence[Any] = (),
    ):
        super().__init__(store, options)
        self._rows = rows_from_frame(rows)

    @property
    def rows(self):
        return list(self._rows)

    def set_rows(self, rows: Sequence[Any]) -> None:
        """Replace the in-memory row set (e.g. after the owner refetched it)."""
        self._rows = rows_from_frame(rows)

    def state_changed(self, reason: str) -> None:
        # view() recomputes from the store
        pass

    def view(self) -> TableView:
        store = self._store
        options = self._options
        result = run_pipeline(
            self._rows,
            search=store.search if options.searchable else "",
            filter_values=store.filter_values,
            sort=store.sort,
            page=store.page,
            page_size=store.page_size,
            search_fields=options.search_fields,
            filters=options.filters,
            columns=options.columns,
            paginated=options.paginated,
        )
        return TableView(
            rows=result.rows,
            total=result.total,
            page=store.page,
            page_size=store.page_size,
            loading=False,
            mode=self.mode_name,
        )
