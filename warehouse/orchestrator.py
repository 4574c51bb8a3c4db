# warehouse/orchestrator.py
"""
Silver Layer Batch Orchestrator.

Runs every Silver table load in a fixed order. Each table is a unit:
truncate + write in one transaction, timed, and recorded as a LoadResult.
The first failing table aborts the rest of the run; tables that already
finished keep their fresh contents, and the failing table keeps its prior
contents. Rerunning the whole batch is always safe.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from db.db_utils import create_layer_tables, get_engine
from warehouse.common.exceptions import (
    ETLError,
    SchemaMismatchError,
    SilverTransformError,
    ValidationError,
)
from warehouse.common.logging import configure_logging
from warehouse.common.quality_checks import QCReport
from warehouse.silver.engine import TransformationEngine
from warehouse.silver.rule_set import RuleSet
from warehouse.silver.rules import build_rule_sets
from warehouse.silver.validator import validate_silver_tables

logger = logging.getLogger(__name__)


class BatchStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class LoadStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class ErrorKind(str, Enum):
    STORE = "store"            # database unreachable, truncate/write failed
    SCHEMA = "schema"          # rule set and tables don't line up
    TRANSFORM = "transform"    # a rule raised
    UNEXPECTED = "unexpected"


@dataclass
class LoadResult:
    """Outcome of one table load."""
    table_name: str
    status: LoadStatus
    start_time: datetime
    end_time: datetime
    duration_seconds: float
    row_count: int = 0
    source_row_count: int = 0
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == LoadStatus.SUCCESS


@dataclass
class BatchResult:
    """All LoadResults of one orchestrator run."""
    batch_id: str
    start_time: datetime
    status: BatchStatus = BatchStatus.RUNNING
    end_time: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    load_results: List[LoadResult] = field(default_factory=list)
    failed_table: Optional[str] = None
    error: Optional[str] = None
    validation: List[QCReport] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == BatchStatus.COMPLETED and all(r.succeeded for r in self.load_results)

    @property
    def total_rows(self) -> int:
        return sum(r.row_count for r in self.load_results if r.succeeded)

    def result_for(self, table_name: str) -> Optional[LoadResult]:
        for result in self.load_results:
            if result.table_name == table_name:
                return result
        return None


@dataclass
class LoadEvent:
    """One entry of the orchestrator's status stream."""
    event: str
    batch_id: str
    timestamp: datetime
    table_name: Optional[str] = None
    duration_seconds: Optional[float] = None
    row_count: Optional[int] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None


EventSink = Callable[[LoadEvent], None]


def classify_error(error: Exception) -> ErrorKind:
    """Map an exception raised during a table load to an error kind."""
    if isinstance(error, SchemaMismatchError):
        return ErrorKind.SCHEMA
    if isinstance(error, (SQLAlchemyError, OSError)):
        return ErrorKind.STORE
    if isinstance(error, ETLError):
        return ErrorKind.TRANSFORM
    if isinstance(error, (TypeError, ValueError, KeyError, AttributeError, ArithmeticError)):
        return ErrorKind.TRANSFORM
    return ErrorKind.UNEXPECTED


class BatchOrchestrator:
    """
    Sequences the Silver table loads of one run.

    State: NOT_STARTED -> RUNNING -> COMPLETED | FAILED | CANCELLED.
    A stop request (``should_stop`` returning True) is honoured only
    between tables.
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        rule_sets: Optional[List[RuleSet]] = None,
        on_event: Optional[EventSink] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        validate: bool = False,
        batch_size: int = 1000,
        as_of: Optional[date] = None,
    ):
        self.engine = engine or get_engine()
        self.rule_sets = rule_sets if rule_sets is not None else build_rule_sets(as_of=as_of)
        self.on_event = on_event
        self.should_stop = should_stop
        self.validate = validate
        self.transformer = TransformationEngine(self.engine, batch_size=batch_size)
        self.status = BatchStatus.NOT_STARTED
        self.current_table: Optional[str] = None
        self.batch_id: Optional[str] = None

    def _emit(self, event: str, **fields: Any) -> None:
        load_event = LoadEvent(
            event=event,
            batch_id=self.batch_id,
            timestamp=datetime.now(),
            **fields,
        )
        if self.on_event is not None:
            self.on_event(load_event)

    def _load_table(self, rule_set: RuleSet) -> Tuple[LoadResult, Optional[Exception]]:
        self.current_table = rule_set.name
        logger.info(f">> Loading silver.{rule_set.name} from bronze.{rule_set.source_table}")
        self._emit("table_started", table_name=rule_set.name)

        start_time = datetime.now()
        started = time.perf_counter()
        try:
            stats = self.transformer.load_table(rule_set)
        except Exception as e:
            duration = time.perf_counter() - started
            kind = classify_error(e)
            logger.error(f">> Load FAILED for silver.{rule_set.name} [{kind.value}]: {e}")
            self._emit(
                "table_failed",
                table_name=rule_set.name,
                duration_seconds=duration,
                error_kind=kind.value,
                message=str(e),
            )
            return LoadResult(
                table_name=rule_set.name,
                status=LoadStatus.FAILED,
                start_time=start_time,
                end_time=datetime.now(),
                duration_seconds=duration,
                error_kind=kind,
                error_message=str(e),
            ), e

        duration = time.perf_counter() - started
        logger.info(f">> Load Duration: {duration:.3f} seconds ({stats.row_count} rows)")
        logger.info(">> -------------")
        self._emit(
            "table_completed",
            table_name=rule_set.name,
            duration_seconds=duration,
            row_count=stats.row_count,
        )
        return LoadResult(
            table_name=rule_set.name,
            status=LoadStatus.SUCCESS,
            start_time=start_time,
            end_time=datetime.now(),
            duration_seconds=duration,
            row_count=stats.row_count,
            source_row_count=stats.source_row_count,
        ), None

    def _finish(self, result: BatchResult, status: BatchStatus, started: float) -> BatchResult:
        self.status = status
        self.current_table = None
        result.status = status
        result.end_time = datetime.now()
        result.duration_seconds = time.perf_counter() - started
        return result

    def run(self) -> BatchResult:
        """
        Run the full Silver load.

        Returns:
            BatchResult with one LoadResult per loaded table

        Raises:
            SilverTransformError: the first table that failed, with its error
                kind, the original exception and the partial BatchResult
            ValidationError: post-load checks could not run (tables stay loaded)
        """
        self.batch_id = str(uuid4())[:8]
        self.status = BatchStatus.RUNNING
        started = time.perf_counter()
        result = BatchResult(batch_id=self.batch_id, start_time=datetime.now())

        logger.info("=" * 60)
        logger.info(f"LOADING SILVER LAYER (batch {self.batch_id})")
        logger.info("=" * 60)
        self._emit("batch_started")

        for rule_set in self.rule_sets:
            if self.should_stop is not None and self.should_stop():
                self._finish(result, BatchStatus.CANCELLED, started)
                logger.warning(f"Stop requested: silver load cancelled before {rule_set.name}")
                self._emit("batch_cancelled", duration_seconds=result.duration_seconds,
                           message=f"cancelled before {rule_set.name}")
                return result

            load_result, error = self._load_table(rule_set)
            result.load_results.append(load_result)

            if error is not None:
                result.failed_table = rule_set.name
                result.error = load_result.error_message
                self._finish(result, BatchStatus.FAILED, started)
                logger.error("=" * 60)
                logger.error("ERROR OCCURRED DURING LOADING SILVER LAYER")
                logger.error(f"Table: {rule_set.name}")
                logger.error(f"Error Kind: {load_result.error_kind.value}")
                logger.error(f"Error Message: {load_result.error_message}")
                logger.error("=" * 60)
                self._emit(
                    "batch_failed",
                    table_name=rule_set.name,
                    duration_seconds=result.duration_seconds,
                    error_kind=load_result.error_kind.value,
                    message=load_result.error_message,
                )
                raise SilverTransformError(
                    f"Silver load failed on table '{rule_set.name}': {load_result.error_message}",
                    table_name=rule_set.name,
                    error_kind=load_result.error_kind.value,
                    batch_id=self.batch_id,
                    batch_result=result,
                    original_error=error,
                ) from error

        self._finish(result, BatchStatus.COMPLETED, started)

        if self.validate:
            try:
                result.validation = validate_silver_tables(self.engine)
            except Exception as e:
                logger.error(f"Post-load validation FAILED: {e}")
                raise ValidationError(
                    f"Post-load validation of batch {self.batch_id} failed: {e}",
                    validation_type="silver",
                    original_error=e,
                ) from e

        logger.info("=" * 60)
        logger.info("Loading Silver Layer is Completed")
        for load_result in result.load_results:
            logger.info(f"   - {load_result.table_name}: {load_result.row_count} rows "
                        f"in {load_result.duration_seconds:.3f} seconds")
        logger.info(f"   - Total Load Duration: {result.duration_seconds:.3f} seconds")
        logger.info("=" * 60)
        self._emit("batch_completed", duration_seconds=result.duration_seconds,
                   row_count=result.total_rows)
        return result


def run_full_load(
    engine: Optional[Engine] = None,
    on_event: Optional[EventSink] = None,
    validate: bool = False,
    batch_size: int = 1000,
) -> BatchResult:
    """
    Run the complete Silver layer load with the standard rule sets.

    Args:
        engine: Database engine (default engine from settings if not provided)
        on_event: Optional callback receiving a LoadEvent per status change
        validate: If True, run post-load quality checks
        batch_size: Number of records per insert batch

    Returns:
        BatchResult: per-table and total durations
    """
    engine = engine or get_engine()
    create_layer_tables(engine)
    return BatchOrchestrator(
        engine=engine, on_event=on_event, validate=validate, batch_size=batch_size
    ).run()


def summarize(result: BatchResult) -> Dict[str, Any]:
    """Plain-dict view of a batch result for logs and callers."""
    return {
        "batch_id": result.batch_id,
        "status": result.status.value,
        "duration_seconds": result.duration_seconds,
        "failed_table": result.failed_table,
        "error": result.error,
        "tables": {
            r.table_name: {
                "status": r.status.value,
                "rows": r.row_count,
                "source_rows": r.source_row_count,
                "duration_seconds": r.duration_seconds,
                "error_kind": r.error_kind.value if r.error_kind else None,
            }
            for r in result.load_results
        },
    }


if __name__ == "__main__":
    configure_logging()
    run_full_load()
