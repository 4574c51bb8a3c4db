"""
Declarative per-table rule sets consumed by the Silver transformation engine.

A RuleSet maps every target column to exactly one producing rule:
- a row rule: ``raw_row -> value``, built with :func:`from_field` or
  :func:`from_fields`;
- a window rule: computed over all surviving rows at once (e.g. an end date
  derived from the next record's start date).
An optional DedupPolicy keeps one row per natural key before any column
rule runs.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from warehouse.common.exceptions import SchemaMismatchError
from warehouse.silver.utils import clean_text, day_before, to_date

RawRow = Mapping[str, Any]
RowRule = Callable[[RawRow], Any]


def from_field(name: str, transform: Callable[..., Any] = clean_text, **kwargs) -> RowRule:
    """Rule reading one raw field and passing it through ``transform``."""

    def rule(row: RawRow) -> Any:
        return transform(row.get(name), **kwargs)

    rule.__name__ = f"{getattr(transform, '__name__', 'rule')}({name})"
    return rule


def from_fields(names: Sequence[str], transform: Callable[..., Any], **kwargs) -> RowRule:
    """Rule combining several raw fields, passed positionally to ``transform``."""
    names = tuple(names)

    def rule(row: RawRow) -> Any:
        return transform(*(row.get(n) for n in names), **kwargs)

    rule.__name__ = f"{getattr(transform, '__name__', 'rule')}({', '.join(names)})"
    return rule


class WindowRule:
    """Base class for rules that need the whole (deduplicated) table."""

    def apply(self, rows: List[RawRow]) -> List[Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class NextStartEndDate(WindowRule):
    """
    Derive a validity end date from the next record's start date.

    Rows are grouped by ``partition_by`` and ordered by ``order_by`` (missing
    start dates first, ties kept in raw order). Each row ends ``days`` before
    its successor starts; the last row of a group stays open-ended (None).
    Both fields are raw column names.
    """

    partition_by: str
    order_by: str
    partition_rule: Callable[[Any], Any] = clean_text
    order_rule: Callable[[Any], Optional[date]] = to_date
    days: int = 1

    def apply(self, rows: List[RawRow]) -> List[Optional[date]]:
        groups: Dict[Any, List[Tuple[int, Optional[date]]]] = {}
        for position, row in enumerate(rows):
            key = self.partition_rule(row.get(self.partition_by))
            start = self.order_rule(row.get(self.order_by))
            groups.setdefault(key, []).append((position, start))

        result: List[Optional[date]] = [None] * len(rows)
        for members in groups.values():
            members.sort(key=lambda m: (m[1] is not None, m[1] or date.min, m[0]))
            for current, successor in zip(members, members[1:]):
                result[current[0]] = day_before(successor[1], self.days)
        return result


@dataclass(frozen=True)
class DedupPolicy:
    """
    Keep one row per natural key.

    Rows whose key parses to None are dropped. Among duplicates the row with
    the latest ``order_by`` value wins (earliest when ``keep_latest`` is
    False); missing order values lose, ties keep the first raw row.
    """

    key: str
    order_by: str
    key_rule: Callable[[Any], Any] = clean_text
    order_rule: Callable[[Any], Any] = to_date
    keep_latest: bool = True


ColumnRule = Union[RowRule, WindowRule]


@dataclass(frozen=True)
class RuleSet:
    """Transformation rules for one bronze -> silver table pairing."""

    name: str
    source_table: str
    columns: Dict[str, ColumnRule]
    dedup: Optional[DedupPolicy] = None
    row_filter: Optional[Callable[[RawRow], bool]] = None
    source_columns: Tuple[str, ...] = field(default_factory=tuple)
    description: str = ""

    @property
    def output_columns(self) -> List[str]:
        return list(self.columns)

    def validate_target(self, target_columns: Sequence[str]) -> None:
        """Every target column must have exactly one producing rule."""
        expected = set(target_columns)
        produced = set(self.columns)
        missing = sorted(expected - produced)
        unknown = sorted(produced - expected)
        if missing or unknown:
            raise SchemaMismatchError(
                f"Rule set '{self.name}' does not match its target table",
                table_name=self.name,
                missing_columns=missing,
                details={"unknown_columns": unknown} if unknown else None,
            )

    def validate_source(self, available_columns: Sequence[str]) -> None:
        """Raw columns the rules read must exist in the source table."""
        missing = sorted(set(self.source_columns) - set(available_columns))
        if missing:
            raise SchemaMismatchError(
                f"Source table '{self.source_table}' is missing columns",
                table_name=self.name,
                missing_columns=missing,
            )
