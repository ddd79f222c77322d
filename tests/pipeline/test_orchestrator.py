import logging

import pytest

from ripen.errors import ProvisioningError
from ripen.pipeline.column_tracker import ColumnTracker
from ripen.pipeline.orchestrator import BakeOrchestrator
from ripen.pipeline.scheduler import ColumnScheduler
from ripen.store import BucketStore

pytestmark = [pytest.mark.unit, pytest.mark.pipeline, pytest.mark.usefixtures("restore_root_logging")]

IMAGE = [[0, 128, 255], [255, 255, 255]]


@pytest.fixture
def bake_config(make_config):
    return make_config(ripeness=10, interval_sec=0.01, schema_name="bake_test")


def _open_store(config):
    return BucketStore(config.store.db_dir, config.store.schema_name)


def test_orchestrator_initialization(bake_config, pipeline_output_dirs):
    orch = BakeOrchestrator(bake_config, pipeline_output_dirs)

    assert orch.config == bake_config
    assert orch.output_dirs == pipeline_output_dirs
    assert orch.store is None
    assert orch._stop_event is False


def test_orchestrator_logging_and_tracker(bake_config, pipeline_output_dirs):
    orch = BakeOrchestrator(bake_config, pipeline_output_dirs)
    orch._setup_logging()

    assert orch.tracker is not None
    assert (pipeline_output_dirs["logs"] / "bake_bake_test.log").exists()
    assert (pipeline_output_dirs["store"] / "bake_test_columns.db").exists()
    orch.stop()


def test_stop_closes_log_handlers(bake_config, pipeline_output_dirs):
    orch = BakeOrchestrator(bake_config, pipeline_output_dirs)
    orch._setup_logging()
    handlers = list(orch._log_handlers)
    file_handler = next(h for h in handlers if isinstance(h, logging.FileHandler))

    orch.stop()

    root = logging.getLogger()
    assert not any(h in root.handlers for h in handlers)
    assert file_handler.stream is None
    assert "Bake stopped" in (pipeline_output_dirs["logs"] / "bake_bake_test.log").read_text()


def test_orchestrator_stop_is_idempotent(bake_config, pipeline_output_dirs):
    orch = BakeOrchestrator(bake_config, pipeline_output_dirs)

    orch.stop()
    orch.stop()

    assert orch._stop_event is True


def test_end_to_end_bake(bake_config, pipeline_output_dirs, write_png):
    write_png(IMAGE)
    orch = BakeOrchestrator(bake_config, pipeline_output_dirs)

    summary = orch.start()

    assert summary.columns_dispatched == 3
    assert summary.columns_completed == 3
    assert orch._stop_event is True

    store = _open_store(bake_config)
    assert store.row_count() == 2
    assert store.bucket_values(0) == [9]
    assert store.bucket_values(1) == [9]
    store.close()

    with ColumnTracker(pipeline_output_dirs["store"] / "bake_test_columns.db") as tracker:
        stats = tracker.get_statistics(run_id=orch.run_id)
    assert stats["completed"] == 3


def test_reuse_existing_schema(make_config, pipeline_output_dirs, write_png):
    write_png([[0, 0], [0, 0]])
    config = make_config(ripeness=5, interval_sec=0.01, schema_name="reuse", provision=False)
    store = _open_store(config)
    store.provision(2, 5)
    handle = store.prepare_row_delete(0)
    handle.execute(3)
    handle.close()
    store.close()

    BakeOrchestrator(config, pipeline_output_dirs).start()

    store = _open_store(config)
    assert store.bucket_values(0) == [3, 4]
    assert store.bucket_values(1) == [0, 1, 2, 3, 4]
    store.close()


def test_missing_schema_without_provision(make_config, pipeline_output_dirs, write_png):
    write_png(IMAGE)
    config = make_config(interval_sec=0.01, schema_name="absent", provision=False)

    with pytest.raises(ProvisioningError, match="not found"):
        BakeOrchestrator(config, pipeline_output_dirs).start()


def test_row_count_mismatch_without_provision(make_config, pipeline_output_dirs, write_png):
    write_png(IMAGE)
    config = make_config(interval_sec=0.01, schema_name="short", provision=False)
    store = _open_store(config)
    store.provision(5, 3)
    store.close()

    with pytest.raises(ProvisioningError, match="5 buckets, image has 2 rows"):
        BakeOrchestrator(config, pipeline_output_dirs).start()


def test_missing_image(bake_config, pipeline_output_dirs):
    orch = BakeOrchestrator(bake_config, pipeline_output_dirs)

    with pytest.raises(FileNotFoundError):
        orch.start()
    assert orch._stop_event is True


def test_align_second_runs_before_bake(make_config, pipeline_output_dirs, write_png, monkeypatch):
    write_png(IMAGE)
    config = make_config(ripeness=4, interval_sec=0.01, align_second=15)
    calls = []
    monkeypatch.setattr("ripen.pipeline.orchestrator.align_to_second", calls.append)

    BakeOrchestrator(config, pipeline_output_dirs).start()

    assert calls == [15]


def test_alignment_is_opt_in(bake_config, pipeline_output_dirs, write_png, monkeypatch):
    write_png(IMAGE)
    calls = []
    monkeypatch.setattr("ripen.pipeline.orchestrator.align_to_second", calls.append)

    BakeOrchestrator(bake_config, pipeline_output_dirs).start()

    assert calls == []


def test_keyboard_interrupt_stops_cleanly(bake_config, pipeline_output_dirs, write_png, monkeypatch):
    write_png(IMAGE)

    def interrupted(self):
        raise KeyboardInterrupt

    monkeypatch.setattr(ColumnScheduler, "bake", interrupted)
    orch = BakeOrchestrator(bake_config, pipeline_output_dirs)

    assert orch.start() is None
    assert orch._stop_event is True
