import sqlite3

import pytest

from ripen.errors import ExecutionError
from ripen.pipeline.row_executor import RowExecutor, open_row_executors, close_row_executors

pytestmark = [pytest.mark.unit, pytest.mark.store]


def test_apply_removes_below_threshold(provisioned):
    _, store = provisioned([[0]], ripeness=10)
    executor = RowExecutor(store, 0)

    assert executor.apply(4) == 4
    assert executor.last_threshold == 4
    executor.close()

    assert store.bucket_values(0) == [4, 5, 6, 7, 8, 9]


def test_apply_is_idempotent(provisioned):
    _, store = provisioned([[0]], ripeness=10)
    executor = RowExecutor(store, 0)

    executor.apply(6)
    once = store.bucket_values(0)
    assert executor.apply(6) == 0
    executor.close()

    assert store.bucket_values(0) == once


def test_lower_threshold_is_noop(provisioned):
    _, store = provisioned([[0]], ripeness=10)
    executor = RowExecutor(store, 0)

    executor.apply(7)
    assert executor.apply(2) == 0
    assert executor.last_threshold == 7
    executor.close()

    assert store.bucket_values(0) == [7, 8, 9]


def test_rows_commute(provisioned, store):
    provisioned([[0], [0]], ripeness=8)
    a, b = RowExecutor(store, 0), RowExecutor(store, 1)
    a.apply(3)
    b.apply(5)
    first = store.snapshot()
    close_row_executors([a, b])

    store.provision(2, 8)
    a, b = RowExecutor(store, 0), RowExecutor(store, 1)
    b.apply(5)
    a.apply(3)
    second = store.snapshot()
    close_row_executors([a, b])

    assert first.equals(second)


def test_threshold_above_ripeness_empties_bucket(provisioned):
    _, store = provisioned([[0]], ripeness=4)
    executor = RowExecutor(store, 0)

    assert executor.apply(100) == 4
    executor.close()

    assert store.bucket_count(0) == 0


def test_store_failure_becomes_execution_error(provisioned):
    _, store = provisioned([[0], [0]], ripeness=4)
    executor = RowExecutor(store, 1)
    executor.close()

    with pytest.raises(ExecutionError) as exc_info:
        executor.apply(2, column=3)

    err = exc_info.value
    assert err.row == 1
    assert err.column == 3
    assert err.threshold == 2
    assert isinstance(err.__cause__, sqlite3.Error)
    assert "column 3, row 1" in str(err)


def test_close_is_idempotent(provisioned):
    _, store = provisioned([[0]], ripeness=4)
    executor = RowExecutor(store, 0)
    executor.close()
    executor.close()


def test_missing_bucket_fails_at_prepare(provisioned):
    _, store = provisioned([[0]], ripeness=4)
    with pytest.raises(ExecutionError):
        RowExecutor(store, 5)


def test_open_row_executors_one_per_row(provisioned):
    _, store = provisioned([[0], [0], [0]], ripeness=4)
    executors = open_row_executors(store, 3)

    assert [e.row for e in executors] == [0, 1, 2]
    close_row_executors(executors)


def test_open_row_executors_closes_on_failure(provisioned, monkeypatch):
    _, store = provisioned([[0], [0]], ripeness=4)
    opened = []
    original = store.prepare_row_delete

    def tracking(row):
        handle = original(row)
        opened.append(handle)
        return handle

    monkeypatch.setattr(store, "prepare_row_delete", tracking)

    with pytest.raises(ExecutionError):
        open_row_executors(store, 3)

    assert len(opened) == 2
    assert all(handle.closed for handle in opened)
