# warehouse/silver/__init__.py
"""
Silver Layer - rule-driven cleansing, deduplication and typing.
Every run fully replaces each silver table from its bronze snapshot.
"""

from warehouse.silver.engine import (
    TransformationEngine,
    TableLoadStats,
    select_rows,
    apply_rules,
    transform_records,
    transform_frame,
)
from warehouse.silver.rule_set import (
    RuleSet,
    DedupPolicy,
    NextStartEndDate,
    WindowRule,
    from_field,
    from_fields,
)
from warehouse.silver.rules import build_rule_sets, rule_sets_by_name
from warehouse.silver.validator import ensure_valid, run_silver_validation, validate_silver_tables
from warehouse.silver.utils import (
    NA,
    clean_text,
    map_code,
    strip_prefix,
    remove_separators,
    to_integer,
    integer_or_default,
    to_date,
    parse_yyyymmdd,
    null_if_future,
    repair_sales_amount,
    repair_unit_price,
)

__all__ = [
    "TransformationEngine",
    "TableLoadStats",
    "select_rows",
    "apply_rules",
    "transform_records",
    "transform_frame",
    "RuleSet",
    "DedupPolicy",
    "NextStartEndDate",
    "WindowRule",
    "from_field",
    "from_fields",
    "build_rule_sets",
    "rule_sets_by_name",
    "ensure_valid",
    "run_silver_validation",
    "validate_silver_tables",
    "NA",
    "clean_text",
    "map_code",
    "strip_prefix",
    "remove_separators",
    "to_integer",
    "integer_or_default",
    "to_date",
    "parse_yyyymmdd",
    "null_if_future",
    "repair_sales_amount",
    "repair_unit_price",
]
