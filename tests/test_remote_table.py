"""Tests for DataTable in remote mode (parameter emission)."""

import threading

import pytest

from jobdesk import (
    ControlledValue,
    DataTable,
    DataTableConfigError,
    DataTableModeError,
    ParametersSnapshot,
    RemoteMode,
    SortDirection,
)


@pytest.fixture
def remote_table(mock_streamlit, manual_scheduler, emitted, worker_columns, worker_filters):
    table = DataTable(
        columns=worker_columns,
        filters=worker_filters,
        api_mode=True,
        on_params_change=emitted.append,
        scheduler=manual_scheduler,
        key="remote",
    )
    # Drop the snapshot emitted on mount
    emitted.clear()
    return table


class TestRemoteConstruction:
    def test_listener_is_required(self, mock_streamlit, worker_columns):
        with pytest.raises(DataTableConfigError, match="on_params_change"):
            DataTable(columns=worker_columns, api_mode=True)

    def test_negative_debounce_rejected(self, mock_streamlit, worker_columns):
        with pytest.raises(DataTableConfigError):
            DataTable(
                columns=worker_columns,
                api_mode=True,
                on_params_change=lambda p: None,
                search_debounce=-1,
            )

    def test_emits_initial_snapshot_on_mount(self, mock_streamlit, manual_scheduler, worker_columns):
        emitted = []
        table = DataTable(
            columns=worker_columns,
            api_mode=True,
            on_params_change=emitted.append,
            scheduler=manual_scheduler,
            page_size=25,
            default_sort={"field": "name", "direction": "asc"},
        )
        assert isinstance(table.mode, RemoteMode)
        assert emitted == [
            ParametersSnapshot(page=1, page_size=25, sort_field="name",
                               sort_direction=SortDirection.ASC)
        ]

    def test_mount_emission_can_be_disabled(self, mock_streamlit, manual_scheduler, worker_columns):
        emitted = []
        DataTable(
            columns=worker_columns,
            api_mode=True,
            on_params_change=emitted.append,
            scheduler=manual_scheduler,
            emit_on_mount=False,
        )
        assert emitted == []


class TestEmission:
    """Tests for which changes emit, and when."""

    def test_filter_change_emits_immediately(self, remote_table, emitted):
        remote_table.set_filter("status", "ACTIVE")
        assert len(emitted) == 1
        assert emitted[0].filters == {"status": "ACTIVE"}
        assert emitted[0].page == 1

    def test_sort_emits_immediately(self, remote_table, emitted):
        remote_table.toggle_sort("name")
        remote_table.toggle_sort("name")
        assert [(s.sort_field, s.sort_direction) for s in emitted] == [
            ("name", SortDirection.ASC),
            ("name", SortDirection.DESC),
        ]

    def test_page_and_page_size_emit_immediately(self, remote_table, emitted):
        remote_table.set_page(3)
        remote_table.set_page_size(25)
        assert [(s.page, s.page_size) for s in emitted] == [(3, 10), (1, 25)]

    def test_toggling_filter_panel_does_not_emit(self, remote_table, emitted):
        remote_table.toggle_filters()
        assert emitted == []

    def test_unsortable_column_does_not_emit(self, remote_table, emitted):
        remote_table.toggle_sort("skills")
        assert emitted == []

    def test_search_burst_emits_once(self, remote_table, emitted, manual_scheduler):
        """Typing 'a', 'ab', 'abc' 100ms apart emits once, 500ms after the last key."""
        for text in ("a", "ab", "abc"):
            remote_table.set_search(text)
            manual_scheduler.advance(100)
        assert emitted == []

        manual_scheduler.advance(399)
        assert emitted == []
        manual_scheduler.advance(1)
        assert len(emitted) == 1
        assert emitted[0].search == "abc"
        assert emitted[0].page == 1

        manual_scheduler.advance(5000)
        assert len(emitted) == 1

    def test_search_resets_page_before_emission(self, remote_table, emitted, manual_scheduler):
        remote_table.set_page(4)
        emitted.clear()
        remote_table.set_search("x")
        assert remote_table.state.page == 1
        assert remote_table.mode.search_pending
        manual_scheduler.advance(500)
        assert emitted[0].page == 1

    def test_snapshot_is_built_at_fire_time(self, remote_table, emitted, manual_scheduler):
        remote_table.set_search("acme")
        remote_table.state.set_page_size(50)
        manual_scheduler.advance(500)
        assert emitted[0].page_size == 50

    def test_immediate_change_drops_pending_search(self, remote_table, emitted, manual_scheduler):
        """A filter change while a search is pending emits once, with the search."""
        remote_table.set_search("acme")
        remote_table.set_filter("status", "ACTIVE")
        assert len(emitted) == 1
        assert emitted[0].search == "acme"
        assert emitted[0].filters == {"status": "ACTIVE"}
        manual_scheduler.advance(1000)
        assert len(emitted) == 1

    def test_clear_all_during_pending_search(self, remote_table, emitted, manual_scheduler):
        """Clear-all emits the cleared parameters once; the pending search never fires."""
        remote_table.set_filter("status", "ACTIVE")
        emitted.clear()
        remote_table.set_search("bob")
        remote_table.clear_all()

        assert len(emitted) == 1
        snapshot = emitted[0]
        assert snapshot.search is None
        assert snapshot.filters is None
        assert snapshot.page == 1

        manual_scheduler.advance(1000)
        assert len(emitted) == 1

    def test_clear_all_keeps_sort(self, remote_table, emitted):
        remote_table.toggle_sort("age")
        remote_table.clear_all()
        assert emitted[-1].to_dict() == {
            "page": 1,
            "pageSize": 10,
            "sortField": "age",
            "sortDirection": "asc",
        }

    def test_clear_all_with_controlled_owner_that_lags(
        self, mock_streamlit, manual_scheduler, worker_columns, worker_filters
    ):
        """The cleared snapshot does not depend on the owner applying the change."""
        emitted = []
        table = DataTable(
            columns=worker_columns,
            filters=worker_filters,
            api_mode=True,
            on_params_change=emitted.append,
            scheduler=manual_scheduler,
            external_search=ControlledValue("bob", lambda v: None),
            external_filter_values=ControlledValue({"status": "ACTIVE"}, lambda v: None),
        )
        emitted.clear()
        table.clear_all()
        assert emitted[0].search is None
        assert emitted[0].filters is None

    def test_empty_filter_values_emit_none(self, remote_table, emitted):
        remote_table.set_filter("status", "")
        assert emitted[0].filters is None
        assert emitted[0].to_dict() == {"page": 1, "pageSize": 10}

    def test_remote_filter_ids_need_no_column(self, remote_table, emitted):
        remote_table.set_filter("delivery_date_from", "2024-01-01")
        assert emitted[0].filters == {"delivery_date_from": "2024-01-01"}

    def test_last_snapshot(self, remote_table, emitted):
        remote_table.set_page(2)
        assert remote_table.mode.last_snapshot == emitted[-1]


class TestRemoteView:
    """Tests for showing the owner's rows."""

    def test_rows_shown_verbatim(self, remote_table, worker_rows):
        """Rows are not searched, filtered, sorted or sliced locally."""
        remote_table.set_search("zzz")
        remote_table.set_filter("status", "NOPE")
        remote_table.toggle_sort("age")
        remote_table.update_remote(worker_rows, total=42)
        view = remote_table.view()
        assert view.rows == worker_rows
        assert view.total == 42
        assert view.mode == "remote"

    def test_view_reports_page_state(self, remote_table):
        remote_table.set_page(3)
        remote_table.update_remote([{"name": "x"}], total=30)
        view = remote_table.view()
        assert view.page == 3
        assert view.total_pages == 3

    def test_loading_flag(self, remote_table):
        remote_table.update_remote([], total=0, loading=True)
        assert remote_table.view().loading
        remote_table.mode.set_loading(False)
        assert not remote_table.view().loading

    def test_initial_rows_and_total(self, mock_streamlit, manual_scheduler, worker_columns):
        table = DataTable(
            columns=worker_columns,
            data=[{"name": "a"}],
            total=7,
            loading=True,
            api_mode=True,
            on_params_change=lambda p: None,
            scheduler=manual_scheduler,
        )
        view = table.view()
        assert view.rows == [{"name": "a"}]
        assert view.total == 7
        assert view.loading

    def test_set_rows_is_a_mode_error(self, remote_table):
        with pytest.raises(DataTableModeError, match="local mode"):
            remote_table.set_rows([])


class TestRemoteLifecycle:
    def test_dispose_cancels_pending_search(self, remote_table, emitted, manual_scheduler):
        remote_table.set_search("acme")
        remote_table.dispose()
        manual_scheduler.advance(1000)
        assert emitted == []

    def test_no_emission_after_dispose(self, remote_table, emitted):
        remote_table.dispose()
        remote_table.mode.emit_now()
        remote_table.mode.state_changed("filters")
        assert emitted == []


def rebuild(listener, scheduler, worker_columns, **kwargs):
    """Build the table again with the same key, as a Streamlit rerun does."""
    return DataTable(
        columns=worker_columns,
        api_mode=True,
        on_params_change=listener,
        scheduler=scheduler,
        key="remote",
        **kwargs,
    )


class TestReruns:
    """A table rebuilt with the same key keeps one emitter."""

    def test_mount_snapshot_emitted_once_per_key(self, mock_streamlit, manual_scheduler, worker_columns):
        emitted = []
        for _ in range(3):
            rebuild(emitted.append, manual_scheduler, worker_columns)
        assert emitted == [ParametersSnapshot(page=1, page_size=10)]

    def test_search_burst_across_reruns_emits_once(self, mock_streamlit, manual_scheduler, worker_columns):
        """Keys typed on successive reruns collapse; the newest listener receives them."""
        first_listener, last_listener = [], []
        table = rebuild(first_listener.append, manual_scheduler, worker_columns, emit_on_mount=False)
        table.set_search("a")
        manual_scheduler.advance(100)

        # Widget callbacks run on the instance built by the previous run
        rebuild(
            first_listener.append, manual_scheduler, worker_columns, emit_on_mount=False
        ).set_search("ab")
        manual_scheduler.advance(100)
        table.set_search("abc")
        rebuild(last_listener.append, manual_scheduler, worker_columns, emit_on_mount=False)

        manual_scheduler.advance(499)
        assert first_listener == [] and last_listener == []
        manual_scheduler.advance(1)
        assert first_listener == []
        assert last_listener == [ParametersSnapshot(page=1, page_size=10, search="abc")]

        manual_scheduler.advance(5000)
        assert len(last_listener) == 1

    def test_clear_all_then_rerun_emits_once(self, mock_streamlit, manual_scheduler, worker_columns):
        emitted = []
        table = rebuild(emitted.append, manual_scheduler, worker_columns)
        table.set_filter("status", "ACTIVE")
        emitted.clear()

        table.set_search("bob")
        table.clear_all()
        rebuild(emitted.append, manual_scheduler, worker_columns)
        manual_scheduler.advance(1000)
        assert emitted == [ParametersSnapshot(page=1, page_size=10)]

    def test_last_snapshot_is_shared(self, mock_streamlit, manual_scheduler, worker_columns):
        first = rebuild(lambda p: None, manual_scheduler, worker_columns)
        first.set_page(2)
        second = rebuild(lambda p: None, manual_scheduler, worker_columns)
        assert second.mode.last_snapshot.page == 2

    def test_rebuild_after_dispose_mounts_again(self, mock_streamlit, manual_scheduler, worker_columns):
        emitted = []
        table = rebuild(emitted.append, manual_scheduler, worker_columns)
        table.set_search("acme")
        table.dispose()

        again = rebuild(emitted.append, manual_scheduler, worker_columns)
        assert len(emitted) == 2
        again.set_search("x")
        manual_scheduler.advance(500)
        assert emitted[-1].search == "x"


class TestTimerThread:
    def test_debounced_search_reads_the_bound_session(self, mock_streamlit, worker_columns):
        """The timer thread emits this table's state even with another session_state active."""
        from unittest.mock import patch

        arrived = threading.Event()
        emitted = []

        def listener(snapshot):
            emitted.append(snapshot)
            arrived.set()

        table = DataTable(
            columns=worker_columns,
            api_mode=True,
            on_params_change=listener,
            search_debounce=200,
            emit_on_mount=False,
            key="remote",
        )
        table.set_search("acme")
        with patch("streamlit.session_state", {}):
            assert arrived.wait(timeout=5)
        assert emitted == [ParametersSnapshot(page=1, page_size=10, search="acme")]
        table.dispose()
