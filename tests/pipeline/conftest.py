import pytest

from ripen.setup_directories import setup_output_directories
from tests.helpers.fakes import FakeClock, RecordingExecutor


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def recording_executors():
    def _make(ny, failing=()):
        return [RecordingExecutor(y, fail=y in failing) for y in range(ny)]
    return _make


@pytest.fixture
def provisioned(store, make_grid):
    """Factory: provision ``store`` for a grid and return (grid, store)."""
    def _make(rows, ripeness):
        grid = make_grid(rows)
        store.provision(grid.height(), ripeness)
        return grid, store
    return _make


@pytest.fixture
def pipeline_output_dirs(temp_dir):
    """Output directories for pipeline tests."""
    return setup_output_directories(temp_dir)
