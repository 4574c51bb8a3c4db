"""
Quality Control Module
- Row count validation
- Null checks on critical columns
- Duplicate key checks
- Range / vocabulary validation
- Date ordering and referential integrity checks
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Iterable
from datetime import datetime

import pandas as pd

logger = logging.getLogger(__name__)

ERROR = "ERROR"
WARNING = "WARNING"
INFO = "INFO"

# How missing values are reported in check details
NULL_TOKEN = "<null>"


@dataclass
class QCResult:
    """Single quality check result."""
    check_name: str
    table_name: str
    passed: bool
    message: str
    severity: str = ERROR
    details: Optional[Dict[str, Any]] = None


@dataclass
class QCReport:
    """Aggregated QC results for one table (or one cross-table concern)."""
    layer: str
    timestamp: datetime = field(default_factory=datetime.now)
    results: List[QCResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results if r.severity == ERROR)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.passed and r.severity == ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.results if not r.passed and r.severity == WARNING)

    def add(self, result: QCResult) -> None:
        self.results.append(result)
        status = "PASS" if result.passed else "FAIL"
        if result.passed:
            log_fn = logger.info
        else:
            log_fn = logger.error if result.severity == ERROR else logger.warning
        log_fn(f"[QC {status}] {result.table_name}: {result.check_name} - {result.message}")

    def summary(self) -> str:
        lines = [
            "=" * 60,
            f"QC REPORT {self.layer} - {self.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
            "=" * 60,
            f"Total Checks: {len(self.results)}",
            f"Errors: {self.error_count}",
            f"Warnings: {self.warning_count}",
            "-" * 60,
        ]
        for r in self.results:
            status = "PASS" if r.passed else "FAIL"
            lines.append(f"[{status}] {r.table_name}.{r.check_name}: {r.message}")
        lines.append("=" * 60)
        return "\n".join(lines)


# INDIVIDUAL CHECK FUNCTIONS

def check_row_count(df: pd.DataFrame, table_name: str, min_rows: int = 1,
                    severity: str = WARNING) -> QCResult:
    """Check that DataFrame has minimum required rows."""
    row_count = len(df)
    return QCResult(
        check_name="row_count",
        table_name=table_name,
        passed=row_count >= min_rows,
        message=f"Row count: {row_count} (min: {min_rows})",
        severity=severity,
        details={"row_count": row_count, "min_required": min_rows}
    )


def check_nulls(df: pd.DataFrame, table_name: str, critical_columns: List[str],
                severity: str = ERROR) -> QCResult:
    """Check for null values in critical columns."""
    null_counts = {}
    for col in critical_columns:
        if col in df.columns:
            null_counts[col] = int(df[col].isna().sum())

    total_nulls = sum(null_counts.values())
    passed = total_nulls == 0

    return QCResult(
        check_name="null_check",
        table_name=table_name,
        passed=passed,
        message=f"Nulls in critical columns: {total_nulls}" + (f" ({null_counts})" if not passed else ""),
        severity=severity,
        details={"null_counts": null_counts}
    )


def check_duplicates(df: pd.DataFrame, table_name: str, key_columns: List[str],
                     severity: str = ERROR) -> QCResult:
    """Check for duplicate records based on key columns (nulls ignored)."""
    existing_cols = [c for c in key_columns if c in df.columns]
    if not existing_cols:
        return QCResult(
            check_name="duplicate_check",
            table_name=table_name,
            passed=True,
            message="No key columns found to check",
            severity=severity,
        )

    keyed = df.dropna(subset=existing_cols)
    duplicate_count = int(keyed.duplicated(subset=existing_cols, keep=False).sum())

    return QCResult(
        check_name="duplicate_check",
        table_name=table_name,
        passed=duplicate_count == 0,
        message=f"Duplicates on {existing_cols}: {duplicate_count}",
        severity=severity,
        details={"duplicate_count": duplicate_count, "key_columns": existing_cols}
    )


def check_numeric_range(
    df: pd.DataFrame,
    table_name: str,
    column: str,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
    severity: str = WARNING,
) -> QCResult:
    """Check that numeric values fall within expected range (nulls ignored)."""
    if column not in df.columns:
        return QCResult(
            check_name=f"range_check_{column}",
            table_name=table_name,
            passed=True,
            message=f"Column '{column}' not found",
            severity=severity,
        )

    col_data = pd.to_numeric(df[column], errors='coerce')
    issues = []

    if min_val is not None:
        below_min = int((col_data < min_val).sum())
        if below_min > 0:
            issues.append(f"{below_min} values below {min_val}")

    if max_val is not None:
        above_max = int((col_data > max_val).sum())
        if above_max > 0:
            issues.append(f"{above_max} values above {max_val}")

    actual_min = col_data.min() if not col_data.isna().all() else None
    actual_max = col_data.max() if not col_data.isna().all() else None

    return QCResult(
        check_name=f"range_check_{column}",
        table_name=table_name,
        passed=not issues,
        message=f"Range [{actual_min}, {actual_max}]" + (f" - Issues: {', '.join(issues)}" if issues else " OK"),
        severity=severity,
        details={"min": actual_min, "max": actual_max, "expected_min": min_val, "expected_max": max_val}
    )


def check_allowed_values(
    df: pd.DataFrame,
    table_name: str,
    column: str,
    allowed: Iterable[str],
    severity: str = ERROR,
) -> QCResult:
    """Check that a categorical column only holds values from a closed vocabulary."""
    allowed = set(allowed)
    if column not in df.columns:
        return QCResult(
            check_name=f"vocabulary_{column}",
            table_name=table_name,
            passed=True,
            message=f"Column '{column}' not found",
            severity=severity,
        )

    unexpected = sorted({
        NULL_TOKEN if pd.isna(v) else str(v)
        for v in df[column]
        if pd.isna(v) or v not in allowed
    })
    return QCResult(
        check_name=f"vocabulary_{column}",
        table_name=table_name,
        passed=not unexpected,
        message=f"Unexpected values: {unexpected}" if unexpected else "All values in vocabulary",
        severity=severity,
        details={"unexpected": unexpected[:10]}
    )


def check_date_order(
    df: pd.DataFrame,
    table_name: str,
    earlier: str,
    later: str,
    severity: str = WARNING,
) -> QCResult:
    """Check that ``earlier`` <= ``later`` wherever both dates are present."""
    if earlier not in df.columns or later not in df.columns:
        return QCResult(
            check_name=f"date_order_{earlier}_{later}",
            table_name=table_name,
            passed=True,
            message="Date columns not found for check",
            severity=severity,
        )

    first = pd.to_datetime(df[earlier], errors="coerce")
    second = pd.to_datetime(df[later], errors="coerce")
    violations = int((first > second).sum())

    return QCResult(
        check_name=f"date_order_{earlier}_{later}",
        table_name=table_name,
        passed=violations == 0,
        message=f"{violations} rows with {earlier} after {later}",
        severity=severity,
        details={"violations": violations}
    )


def check_referential_integrity(
    child_df: pd.DataFrame,
    parent_df: pd.DataFrame,
    child_table: str,
    parent_table: str,
    child_key: str,
    parent_key: str,
    severity: str = WARNING,
) -> QCResult:
    """Check that all foreign keys in child table exist in parent table."""
    if child_key not in child_df.columns or parent_key not in parent_df.columns:
        return QCResult(
            check_name=f"ref_integrity_{child_key}",
            table_name=child_table,
            passed=True,
            message="Key columns not found for check",
            severity=severity,
        )

    child_keys = set(child_df[child_key].dropna().unique())
    parent_keys = set(parent_df[parent_key].dropna().unique())

    orphans = child_keys - parent_keys

    return QCResult(
        check_name=f"ref_integrity_{child_key}",
        table_name=child_table,
        passed=not orphans,
        message=f"Orphan keys: {len(orphans)}" + (f" (missing in {parent_table})" if orphans else ""),
        severity=severity,
        details={"orphan_count": len(orphans), "sample_orphans": sorted(map(str, orphans))[:10]}
    )
