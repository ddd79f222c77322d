"""Bake orchestration.

Loads the image, provisions the bucket store, optionally aligns the start
to a wall-clock second, then runs the column scheduler. Manages logging,
the column tracker and shutdown.
"""

import time
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ripen.contracts import assert_intensity_grid, assert_provisioned
from ripen.errors import ProvisioningError
from ripen.image import load_intensity_grid
from ripen.pipeline.column_tracker import ColumnTracker
from ripen.pipeline.scheduler import BakeSummary, ColumnScheduler
from ripen.pipeline.ticker import align_to_second
from ripen.schemas import InternalConfig
from ripen.setup_directories import get_log_path, get_tracker_path
from ripen.store import BucketStore

__all__ = ['BakeOrchestrator']

logger = logging.getLogger(__name__)


def generate_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


class BakeOrchestrator:
    """Runs one bake from image file to fully decayed buckets.

    This is the main entry point for running ``ripen``.

    **Stages:**

    1. **Image**: decode the configured image into an IntensityGrid and
       enforce the image contract.

    2. **Store**: open the schema and, unless ``bake.provision`` is off,
       drop and rebuild one bucket per image row holding ``0..ripeness-1``.

    3. **Alignment** (optional): wait for ``bake.align_second`` on the wall
       clock.

    4. **Bake**: run the ColumnScheduler, one column per
       ``bake.interval_sec``.

    **Column Tracking:**

    The ColumnTracker SQLite database records each column as dispatched,
    completed or failed, so an aborted run reports where it stopped.

    **Logging:**

    All output goes to both console and log file (logs/bake_{schema}.log).
    Log level controlled via config.logging.level.

    Example usage::

        config = resolve_config(ParamConfig(), UserConfig(image_path="sunset.png",
                                                          base_dir="/data/ripen"))
        output_dirs = setup_output_directories(config.base_dir)
        orch = BakeOrchestrator(config, output_dirs)
        summary = orch.start()
    """

    def __init__(self, config: InternalConfig, output_dirs: Dict[str, Path]):
        """Initialize orchestrator.

        Parameters
        ----------
        config : InternalConfig
            Fully resolved runtime configuration.
        output_dirs : dict
            Output directory paths from ``setup_output_directories``
            (keys: base, store, logs).
        """
        self.config = config
        self.output_dirs = output_dirs

        self.grid = None
        self.store: Optional[BucketStore] = None
        self.scheduler: Optional[ColumnScheduler] = None
        self.tracker: Optional[ColumnTracker] = None
        self.run_id: Optional[str] = None

        # Lifecycle state
        self._stop_event = False
        self._start_time = None
        self._log_handlers: List[logging.Handler] = []

    def _setup_logging(self):
        """Configure logging and column tracking.

        Initializes root logger with file and console handlers and creates
        the ColumnTracker next to the bucket store.
        """
        log_level = getattr(logging, self.config.logging.level.upper(), logging.INFO)
        schema = self.config.store.schema_name

        log_path = get_log_path(self.output_dirs, schema)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Clear existing handlers and add new ones
        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)
        self._log_handlers = [fh, ch]

        logger.info("Logging: level=%s, file=%s", self.config.logging.level, log_path)

        self.tracker = ColumnTracker(get_tracker_path(self.output_dirs, schema))

    def _prepare_store(self):
        """Open the schema and provision (or verify) one bucket per row."""
        store_cfg = self.config.store
        ny = self.grid.height()
        ripeness = self.config.bake.ripeness

        self.store = BucketStore(
            store_cfg.db_dir,
            store_cfg.schema_name,
            busy_timeout_sec=store_cfg.busy_timeout_sec,
            journal_mode=store_cfg.journal_mode,
        )

        if self.config.bake.provision:
            self.store.provision(ny, ripeness)
            assert_provisioned(self.store, ny, ripeness)
            return

        if not self.store.exists():
            raise ProvisioningError(
                f"Schema {store_cfg.schema_name} not found at {self.store.db_path}; "
                "enable bake.provision to create it"
            )
        if self.store.row_count() != ny:
            raise ProvisioningError(
                f"Schema {store_cfg.schema_name} has {self.store.row_count()} buckets, "
                f"image has {ny} rows"
            )
        logger.info("Reusing existing schema %s (%d buckets)", store_cfg.schema_name, ny)

    def start(self) -> Optional[BakeSummary]:
        """Run the bake to completion.

        Blocking call. Returns once every column has been dispatched and
        joined, or after Ctrl+C once running columns have finished.

        Returns
        -------
        BakeSummary or None
            None if interrupted with Ctrl+C.

        Raises
        ------
        BakeError
            A row apply failed; the store keeps its partial state.
        ProvisioningError
            The buckets could not be created.
        TimerError
            The ticker could not be established.
        FileNotFoundError, ValueError
            The image could not be loaded.
        """
        self._setup_logging()

        logger.info("=" * 60)
        logger.info("Starting bake")
        logger.info("=" * 60)

        self._start_time = time.time()
        bake_cfg = self.config.bake

        try:
            self.grid = load_intensity_grid(self.config.image.path)
            assert_intensity_grid(self.grid.data)

            self._prepare_store()

            if bake_cfg.align_second is not None:
                align_to_second(bake_cfg.align_second)

            self.run_id = generate_run_id()
            self.tracker.start_run(self.run_id, self.grid.width())

            self.scheduler = ColumnScheduler(
                self.grid,
                self.store,
                ripeness=bake_cfg.ripeness,
                interval_sec=bake_cfg.interval_sec,
                wait_for_previous=bake_cfg.wait_for_previous,
                max_color=self.config.image.max_color,
                tracker=self.tracker,
            )
            logger.info("Run %s: %d columns, one every %.1fs (about %.1f minutes)",
                        self.run_id, self.grid.width(), bake_cfg.interval_sec,
                        self.grid.width() * bake_cfg.interval_sec / 60)
            return self.scheduler.bake()
        except KeyboardInterrupt:
            logger.info("\nShutdown signal received (Ctrl+C)")
            return None
        finally:
            self.stop()

    def stop(self):
        """Stop the bake and release the store. Safe to call multiple times."""
        if self._stop_event:
            return

        self._stop_event = True
        logger.info("Stopping bake...")

        if self.scheduler:
            self.scheduler.stop()

        if self.store:
            if self.store.exists():
                df = self.store.snapshot()
                logger.info("Store: %d buckets, %d tokens remaining",
                            len(df), int(df["remaining"].sum()) if len(df) else 0)
            self.store.close()

        elapsed = time.time() - self._start_time if self._start_time else 0
        logger.info("=" * 60)
        logger.info("Bake stopped. Runtime: %.1f seconds", elapsed)

        if self.tracker:
            if self.run_id:
                stats = self.tracker.get_statistics()
                logger.info("Columns: total=%d, completed=%d, failed=%d",
                            stats.get('total', 0), stats.get('completed', 0), stats.get('failed', 0))
                for record in self.tracker.get_failed_columns():
                    logger.error("Column %d failed on rows [%s]: %s",
                                 record["column_idx"], record["failed_rows"], record["error_message"])
            self.tracker.close()

        logger.info("=" * 60)

        root = logging.getLogger()
        for handler in self._log_handlers:
            root.removeHandler(handler)
            handler.close()
        self._log_handlers = []
