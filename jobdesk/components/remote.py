"""Remote mode: emit Parameters Snapshots and show the owner's rows verbatim."""

import logging
from typing import Any, Callable, Dict, Optional, Sequence

from ..core.base import CLEAR, SEARCH, BaseTableMode, TableOptions
from ..core.debounce import Debouncer, Scheduler
from ..core.params import (
    DEFAULT_SEARCH_DEBOUNCE_MS,
    ParametersSnapshot,
    RemoteRows,
    TableView,
)
from ..core.state import TableStateStore

logger = logging.getLogger(__name__)


class RemoteMode(BaseTableMode):
    """
    Delegate search, filter, sort and pagination to a server.

    Every state change emits one Parameters Snapshot to the single listener:

    - search edits are debounced; a burst of edits emits once, after
      `search_debounce` ms of quiet, with the state at fire time
    - filter, sort, page and page size changes emit at once
    - clear-all emits the cleared parameters at once
    - any immediate emission drops a pending search emission

    The rows and total shown are exactly what the owner last passed to
    update_remote(); nothing is filtered, sorted or sliced here.

    Streamlit rebuilds the table on every rerun. The emitter bookkeeping
    (debouncer, mount flag, last snapshot, current instance) lives in the
    store's per-key mode state, so every instance built with the same key
    shares it: the initial snapshot is emitted once per key, and a search
    burst typed across reruns still collapses into one emission, delivered
    through the most recently built instance.
    """

    mode_name = "remote"

    def __init__(
        self,
        store: TableStateStore,
        options: TableOptions,
        on_params_change: Callable[[ParametersSnapshot], Any],
        rows: Sequence[Any] = (),
        total: int = 0,
        loading: bool = False,
        search_debounce: float = DEFAULT_SEARCH_DEBOUNCE_MS,
        scheduler: Optional[Scheduler] = None,
    ):
        super().__init__(store, options)
        self._on_params_change = on_params_change
        self._remote = RemoteRows(rows=list(rows), total=total, loading=loading)
        self._disposed = False

        self._emitter: Dict[str, Any] = store.mode_state
        debouncer = self._emitter.get("debouncer")
        if debouncer is None or debouncer.closed:
            debouncer = Debouncer(search_debounce, scheduler=scheduler)
            self._emitter["debouncer"] = debouncer
        self._debouncer: Debouncer = debouncer
        # Pending search emissions are delivered by the newest instance
        self._emitter["current"] = self

    @property
    def last_snapshot(self) -> Optional[ParametersSnapshot]:
        """Most recent snapshot delivered to the listener for this key."""
        return self._emitter.get("last_snapshot")

    @property
    def search_pending(self) -> bool:
        return self._debouncer.pending

    def update_remote(self, rows: Sequence[Any], total: int, loading: bool = False) -> None:
        """
        Store the rows and total returned by the owner's fetch.

        Args:
            rows: Rows of the current page, already filtered/sorted/paged
            total: Number of rows matching on the server
            loading: True while the next fetch is in flight
        """
        self._remote = RemoteRows(rows=list(rows), total=int(total), loading=bool(loading))

    def set_loading(self, loading: bool) -> None:
        self._remote.loading = bool(loading)

    def _emit(self, snapshot: ParametersSnapshot) -> None:
        if self._disposed:
            return
        self._emitter["last_snapshot"] = snapshot
        logger.debug("Emitting parameters %s", snapshot.to_dict())
        self._on_params_change(snapshot)

    def emit_now(self) -> None:
        """Emit a snapshot of the current state immediately."""
        self._emit(self._store.snapshot())

    def _emit_pending_search(self) -> None:
        current = self._emitter.get("current", self)
        current.emit_now()

    def _emit_cleared(self) -> None:
        # Built explicitly so an owner that applies the cleared values later
        # still receives the cleared parameters
        store = self._store
        sort = store.sort
        self._emit(
            ParametersSnapshot(
                page=1,
                page_size=store.page_size,
                search=None,
                sort_field=sort.field if sort else None,
                sort_direction=sort.direction if sort else None,
                filters=None,
            )
        )

    def emit_initial(self) -> None:
        """Emit the mount snapshot, once per session key."""
        if self._emitter.get("mounted"):
            return
        self._emitter["mounted"] = True
        self.emit_now()

    def state_changed(self, reason: str) -> None:
        if self._disposed:
            return
        if reason == SEARCH:
            self._debouncer.schedule(self._emit_pending_search)
        elif reason == CLEAR:
            self._debouncer.cancel()
            self._emit_cleared()
        else:
            # The immediate snapshot already carries the latest search text
            self._debouncer.cancel()
            self.emit_now()

    def view(self) -> TableView:
        return TableView(
            rows=list(self._remote.rows),
            total=self._remote.total,
            page=self._store.page,
            page_size=self._store.page_size,
            loading=self._remote.loading,
            mode=self.mode_name,
        )

    def dispose(self) -> None:
        """Cancel any pending search emission; nothing is emitted afterwards."""
        self._disposed = True
        self._debouncer.close()
