# warehouse/silver/validator.py
"""
Silver Layer Validation - Post-load quality checks on the curated tables.

The checks are reporting only: they never fail a batch.
"""

import logging
from typing import Dict, List

import pandas as pd
from sqlalchemy.engine import Engine

from db.models_silver import SILVER_TABLES, business_columns
from warehouse.common.exceptions import ValidationError
from warehouse.common.quality_checks import (
    WARNING,
    QCReport,
    QCResult,
    check_allowed_values,
    check_date_order,
    check_duplicates,
    check_nulls,
    check_numeric_range,
    check_referential_integrity,
    check_row_count,
)
from warehouse.silver.engine import TransformationEngine
from warehouse.silver.rules import COUNTRIES, CRM_GENDER, ERP_GENDER, MARITAL_STATUS, PRODUCT_LINES
from warehouse.silver.utils import NA

logger = logging.getLogger(__name__)


def _vocabulary(mapping: Dict[str, str]) -> set:
    return set(mapping.values()) | {NA}


def validate_crm_cust_info(df: pd.DataFrame) -> QCReport:
    report = QCReport(layer="Silver - crm_cust_info")
    table = "crm_cust_info"
    report.add(check_row_count(df, table))
    report.add(check_nulls(df, table, ["cst_id"]))
    report.add(check_duplicates(df, table, ["cst_id"]))
    report.add(check_allowed_values(df, table, "cst_marital_status", _vocabulary(MARITAL_STATUS)))
    report.add(check_allowed_values(df, table, "cst_gndr", _vocabulary(CRM_GENDER)))
    return report


def validate_crm_prd_info(df: pd.DataFrame) -> QCReport:
    report = QCReport(layer="Silver - crm_prd_info")
    table = "crm_prd_info"
    report.add(check_row_count(df, table))
    report.add(check_nulls(df, table, ["prd_cost", "prd_line"]))
    report.add(check_numeric_range(df, table, "prd_cost", min_val=0))
    report.add(check_allowed_values(df, table, "prd_line", _vocabulary(PRODUCT_LINES)))
    report.add(check_date_order(df, table, "prd_start_dt", "prd_end_dt"))
    return report


def validate_crm_sales_details(df: pd.DataFrame) -> QCReport:
    report = QCReport(layer="Silver - crm_sales_details")
    table = "crm_sales_details"
    report.add(check_row_count(df, table))
    report.add(check_nulls(df, table, ["sls_sales", "sls_quantity", "sls_price"], severity=WARNING))
    report.add(check_numeric_range(df, table, "sls_sales", min_val=0))
    report.add(check_numeric_range(df, table, "sls_price", min_val=0))
    report.add(check_date_order(df, table, "sls_order_dt", "sls_ship_dt"))
    report.add(check_date_order(df, table, "sls_order_dt", "sls_due_dt"))

    if not df.empty:
        sales = pd.to_numeric(df["sls_sales"], errors="coerce")
        expected = pd.to_numeric(df["sls_quantity"], errors="coerce") * pd.to_numeric(
            df["sls_price"], errors="coerce"
        ).abs()
        comparable = sales.notna() & expected.notna()
        mismatched = int((comparable & (sales != expected)).sum())
    else:
        mismatched = 0
    report.add(QCResult(
        check_name="sales_consistency",
        table_name=table,
        passed=mismatched == 0,
        message=f"{mismatched} rows where sales != quantity * price",
        severity=WARNING,
        details={"mismatched": mismatched},
    ))
    return report


def validate_erp_cust_az12(df: pd.DataFrame) -> QCReport:
    report = QCReport(layer="Silver - erp_cust_az12")
    table = "erp_cust_az12"
    report.add(check_row_count(df, table))
    report.add(check_nulls(df, table, ["cid"], severity=WARNING))
    report.add(check_allowed_values(df, table, "gen", _vocabulary(ERP_GENDER)))
    return report


def validate_erp_loc_a101(df: pd.DataFrame) -> QCReport:
    report = QCReport(layer="Silver - erp_loc_a101")
    table = "erp_loc_a101"
    report.add(check_row_count(df, table))
    report.add(check_nulls(df, table, ["cid", "cntry"], severity=WARNING))
    known = _vocabulary(COUNTRIES)
    unmapped = sorted({v for v in df.get("cntry", pd.Series(dtype=object)).dropna() if v not in known})
    if unmapped:
        logger.info(f"   erp_loc_a101 countries kept as-is: {unmapped[:10]}")
    return report


def validate_erp_px_cat_g1v2(df: pd.DataFrame) -> QCReport:
    report = QCReport(layer="Silver - erp_px_cat_g1v2")
    table = "erp_px_cat_g1v2"
    report.add(check_row_count(df, table))
    report.add(check_nulls(df, table, ["id"]))
    report.add(check_duplicates(df, table, ["id"], severity=WARNING))
    return report


def validate_cross_table(frames: Dict[str, pd.DataFrame]) -> QCReport:
    """Keys that should join across tables for the downstream gold layer."""
    report = QCReport(layer="Silver - Referential Integrity")
    sales = frames["crm_sales_details"]
    report.add(check_referential_integrity(
        sales, frames["crm_cust_info"],
        "crm_sales_details", "crm_cust_info",
        "sls_cust_id", "cst_id",
    ))
    report.add(check_referential_integrity(
        sales, frames["crm_prd_info"],
        "crm_sales_details", "crm_prd_info",
        "sls_prd_key", "prd_key",
    ))
    report.add(check_referential_integrity(
        frames["erp_cust_az12"], frames["crm_cust_info"],
        "erp_cust_az12", "crm_cust_info",
        "cid", "cst_key",
    ))
    report.add(check_referential_integrity(
        frames["erp_loc_a101"], frames["crm_cust_info"],
        "erp_loc_a101", "crm_cust_info",
        "cid", "cst_key",
    ))
    report.add(check_referential_integrity(
        frames["crm_prd_info"], frames["erp_px_cat_g1v2"],
        "crm_prd_info", "erp_px_cat_g1v2",
        "cat_id", "id",
    ))
    return report


TABLE_VALIDATORS = {
    "crm_cust_info": validate_crm_cust_info,
    "crm_prd_info": validate_crm_prd_info,
    "crm_sales_details": validate_crm_sales_details,
    "erp_cust_az12": validate_erp_cust_az12,
    "erp_loc_a101": validate_erp_loc_a101,
    "erp_px_cat_g1v2": validate_erp_px_cat_g1v2,
}


def run_silver_validation(frames: Dict[str, pd.DataFrame]) -> List[QCReport]:
    """
    Run all Silver layer validations over curated DataFrames keyed by table.

    Returns:
        List of QCReport objects, one per table plus a cross-table report
    """
    logger.info("=" * 60)
    logger.info("SILVER LAYER VALIDATION")
    logger.info("=" * 60)

    reports = [
        validator(frames[name])
        for name, validator in TABLE_VALIDATORS.items()
        if name in frames
    ]
    if all(name in frames for name in TABLE_VALIDATORS):
        reports.append(validate_cross_table(frames))

    total_errors = sum(r.error_count for r in reports)
    total_warnings = sum(r.warning_count for r in reports)

    logger.info("=" * 60)
    if total_errors > 0:
        logger.error(f"VALIDATION FAILED: {total_errors} errors, {total_warnings} warnings")
    else:
        logger.info(f"VALIDATION PASSED: {total_warnings} warnings")
    logger.info("=" * 60)

    return reports


def load_curated_frames(engine: Engine) -> Dict[str, pd.DataFrame]:
    """Read every silver table into a DataFrame of business columns."""
    reader = TransformationEngine(engine)
    frames = {}
    for name, model in SILVER_TABLES.items():
        records = reader.read_curated(name)
        frames[name] = pd.DataFrame(records, columns=business_columns(model))
    return frames


def validate_silver_tables(engine: Engine) -> List[QCReport]:
    """Read the silver schema and validate it."""
    return run_silver_validation(load_curated_frames(engine))


def ensure_valid(reports: List[QCReport]) -> None:
    """
    Raise when any report has failed ERROR-level checks.

    Raises:
        ValidationError: with the number of failed checks
    """
    failed = sum(r.error_count for r in reports)
    if failed:
        raise ValidationError(
            f"Silver validation failed: {failed} error-level checks",
            validation_type="silver",
            failed_checks=failed,
        )
