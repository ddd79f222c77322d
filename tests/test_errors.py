import pytest

from ripen.errors import BakeError, ExecutionError, ProvisioningError, TimerError

pytestmark = pytest.mark.unit


def test_execution_error_message():
    err = ExecutionError(3, column=7, threshold=42, message="database is locked")

    assert err.row == 3
    assert err.column == 7
    assert err.threshold == 42
    assert err.failures == [err]
    assert str(err) == "Row apply failed at column 7, row 3 (threshold=42): database is locked"


def test_execution_error_without_column():
    assert str(ExecutionError(1)) == "Row apply failed at row 1"


def test_bake_error_orders_failures():
    failures = [
        ExecutionError(2, column=1),
        ExecutionError(0, column=4),
        ExecutionError(5, column=1),
    ]

    err = BakeError(failures, columns_completed=1)

    assert [(f.column, f.row) for f in err.failures] == [(1, 2), (1, 5), (4, 0)]
    assert err.first.row == 2
    assert err.columns_completed == 1
    assert "3 row failure(s), first at column 1, row 2" in str(err)


def test_bake_error_without_failures():
    err = BakeError([])
    assert err.first is None
    assert str(err) == "Bake aborted"


@pytest.mark.parametrize("cls", [ProvisioningError, ExecutionError, TimerError, BakeError])
def test_domain_errors_are_runtime_errors(cls):
    assert issubclass(cls, RuntimeError)
