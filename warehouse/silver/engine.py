"""
Silver Transformation Engine.

Reads a bronze table, applies its RuleSet (dedup/filter first, then every
column rule) and replaces the matching silver table in one transaction.
The pure part (:func:`select_rows`, :func:`apply_rules`) never touches the
database, so the same raw snapshot always yields the same records.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

import pandas as pd
from sqlalchemy import select, text
from sqlalchemy.engine import Engine

from db.models_bronze import BRONZE_TABLES, business_columns as raw_columns
from db.models_silver import SILVER_TABLES, business_columns as curated_columns
from warehouse.common.exceptions import SchemaMismatchError
from warehouse.silver.rule_set import RuleSet, WindowRule
from warehouse.silver.utils import is_missing

logger = logging.getLogger(__name__)

_KEY = "__dedup_key"
_ORDER = "__dedup_order"


@dataclass
class TableLoadStats:
    """Row counts for one table load."""
    table_name: str
    source_row_count: int
    row_count: int

    @property
    def dropped_row_count(self) -> int:
        return self.source_row_count - self.row_count


# PURE TRANSFORMATION

def select_rows(rule_set: RuleSet, raw: pd.DataFrame) -> pd.DataFrame:
    """
    Apply the row filter and dedup policy of a rule set.

    Surviving rows keep their raw order, so the output never depends on how
    the sort broke ties.
    """
    frame = raw.reset_index(drop=True)

    if rule_set.row_filter is not None and not frame.empty:
        mask = [bool(rule_set.row_filter(row)) for row in frame.to_dict(orient="records")]
        frame = frame[mask].copy()

    policy = rule_set.dedup
    if policy is None or frame.empty:
        return frame

    frame = frame.copy()
    frame[_KEY] = [policy.key_rule(v) for v in frame[policy.key]]
    frame = frame[[not is_missing(k) for k in frame[_KEY]]].copy()
    frame[_ORDER] = [policy.order_rule(v) for v in frame[policy.order_by]]

    # mergesort is stable: ties keep raw order, missing order values go last
    ranked = frame.sort_values(
        _ORDER,
        ascending=not policy.keep_latest,
        na_position="last",
        kind="mergesort",
    )
    survivors = ranked.drop_duplicates(subset=_KEY, keep="first")
    return survivors.sort_index().drop(columns=[_KEY, _ORDER])


def apply_rules(rule_set: RuleSet, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Run every column rule over the selected rows, in column order."""
    window_values = {
        name: rule.apply(rows)
        for name, rule in rule_set.columns.items()
        if isinstance(rule, WindowRule)
    }

    records = []
    for position, row in enumerate(rows):
        record = {}
        for name, rule in rule_set.columns.items():
            if isinstance(rule, WindowRule):
                record[name] = window_values[name][position]
            else:
                record[name] = rule(row)
        records.append(record)
    return records


def transform_records(rule_set: RuleSet, raw: pd.DataFrame) -> List[Dict[str, Any]]:
    """Raw snapshot -> curated records. Never returns more rows than it got."""
    selected = select_rows(rule_set, raw)
    rows = selected.to_dict(orient="records")
    return apply_rules(rule_set, rows)


def transform_frame(rule_set: RuleSet, raw: pd.DataFrame) -> pd.DataFrame:
    """Same as :func:`transform_records`, as an object-typed DataFrame."""
    records = transform_records(rule_set, raw)
    return pd.DataFrame(records, columns=rule_set.output_columns, dtype=object)


def _chunks(records: List[Dict[str, Any]], size: int) -> Iterator[List[Dict[str, Any]]]:
    for i in range(0, len(records), size):
        yield records[i:i + size]


# DATABASE-BACKED ENGINE

class TransformationEngine:
    """
    Applies rule sets between the bronze and silver schemas of one database.
    """

    def __init__(self, engine: Engine, batch_size: int = 1000):
        self.engine = engine
        self.batch_size = batch_size

    @staticmethod
    def _raw_model(table_name: str):
        try:
            return BRONZE_TABLES[table_name]
        except KeyError:
            raise SchemaMismatchError(f"Unknown bronze table: {table_name}", table_name=table_name)

    @staticmethod
    def _curated_model(table_name: str):
        try:
            return SILVER_TABLES[table_name]
        except KeyError:
            raise SchemaMismatchError(f"Unknown silver table: {table_name}", table_name=table_name)

    def read_raw(self, table_name: str) -> pd.DataFrame:
        """Current bronze snapshot of a table, in load order."""
        model = self._raw_model(table_name)
        columns = [model.__table__.c[name] for name in raw_columns(model)]
        query = select(*columns).order_by(model.row_id)
        with self.engine.connect() as conn:
            df = pd.read_sql(query, conn)
        logger.info(f"Read {len(df)} rows from bronze.{table_name}")
        return df

    def read_curated(self, table_name: str, include_metadata: bool = False) -> List[Dict[str, Any]]:
        """Silver rows as dicts, in insertion order."""
        model = self._curated_model(table_name)
        table = model.__table__
        if include_metadata:
            columns = list(table.columns)
        else:
            columns = [table.c[name] for name in curated_columns(model)]
        with self.engine.connect() as conn:
            rows = conn.execute(select(*columns).order_by(table.c.row_id)).mappings().all()
        return [dict(row) for row in rows]

    def replace_curated(self, table_name: str, records: List[Dict[str, Any]]) -> int:
        """
        Truncate a silver table and write ``records`` in one transaction.

        Readers see either the old contents or the complete new contents;
        a failure part-way rolls the table back to its prior state.
        """
        table = self._curated_model(table_name).__table__
        with self.engine.begin() as conn:
            logger.info(f">> Truncating Table: silver.{table_name}")
            if conn.dialect.name == "postgresql":
                conn.execute(text(f"TRUNCATE TABLE silver.{table_name} RESTART IDENTITY"))
            else:
                conn.execute(table.delete())

            logger.info(f">> Inserting Data Into: silver.{table_name}")
            for batch_no, batch in enumerate(_chunks(records, self.batch_size), start=1):
                conn.execute(table.insert(), batch)
                logger.debug(f"  Inserted batch {batch_no} ({len(batch)} records)")
        return len(records)

    def load_table(self, rule_set: RuleSet, raw: Optional[pd.DataFrame] = None) -> TableLoadStats:
        """Full reload of one silver table from its bronze source."""
        target_model = self._curated_model(rule_set.name)
        rule_set.validate_target(curated_columns(target_model))

        if raw is None:
            raw = self.read_raw(rule_set.source_table)
        rule_set.validate_source(list(raw.columns))

        records = transform_records(rule_set, raw)
        written = self.replace_curated(rule_set.name, records)

        stats = TableLoadStats(
            table_name=rule_set.name,
            source_row_count=len(raw),
            row_count=written,
        )
        if stats.dropped_row_count:
            logger.info(f"   {stats.dropped_row_count} rows removed by dedup/filter")
        return stats
