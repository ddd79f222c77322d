"""Pipeline modules.

- thresholds: Pixel intensity to bucket threshold mapping
- row_executor: One prepared bucket delete per image row
- column_baker: Concurrent per-column fan-out over rows
- ticker: Periodic timer and wall-clock alignment
- scheduler: Time-driven column dispatch
- column_tracker: SQLite-based column progress ledger
- orchestrator: Main bake controller
"""

from ripen.pipeline.thresholds import ripeness_factor, column_thresholds
from ripen.pipeline.row_executor import RowExecutor
from ripen.pipeline.column_baker import ColumnBaker
from ripen.pipeline.ticker import Ticker, align_to_second
from ripen.pipeline.scheduler import ColumnScheduler, SchedulerState, BakeSummary
from ripen.pipeline.column_tracker import ColumnTracker
from ripen.pipeline.orchestrator import BakeOrchestrator

__all__ = [
    "ripeness_factor",
    "column_thresholds",
    "RowExecutor",
    "ColumnBaker",
    "Ticker",
    "align_to_second",
    "ColumnScheduler",
    "SchedulerState",
    "BakeSummary",
    "ColumnTracker",
    "BakeOrchestrator",
]
