"""
Bronze -> Silver rule sets for the CRM and ERP source tables.

One RuleSet per table; build them with :func:`build_rule_sets`, which returns
them in load order.
"""

from datetime import date
from typing import Dict, List, Optional

from warehouse.silver.rule_set import (
    DedupPolicy,
    NextStartEndDate,
    RuleSet,
    from_field,
    from_fields,
)
from warehouse.silver.utils import (
    clean_text,
    integer_or_default,
    map_code,
    null_if_future,
    parse_yyyymmdd,
    remove_separators,
    repair_sales_amount,
    repair_unit_price,
    slice_text,
    strip_prefix,
    to_date,
    to_integer,
)

# CODE VOCABULARIES (keys upper case, compared after trim + case-fold)

MARITAL_STATUS = {"S": "Single", "M": "Married"}
CRM_GENDER = {"M": "Male", "F": "Female"}
ERP_GENDER = {"F": "Female", "FEMALE": "Female", "M": "Male", "MALE": "Male"}
PRODUCT_LINES = {"M": "Mountain", "R": "Road", "S": "Other Sales", "T": "Touring"}
COUNTRIES = {"DE": "Germany", "US": "United States", "USA": "United States"}

# ERP customer ids carry this prefix where CRM keys don't
ERP_CUSTOMER_PREFIX = "NAS"

# Raw product keys look like "CO-RF-FR-R92B-58": category, then product
CATEGORY_ID_LENGTH = 5
PRODUCT_KEY_OFFSET = 6

SALES_FIELDS = ("sls_sales", "sls_quantity", "sls_price")


def category_id(value) -> Optional[str]:
    """Category part of a raw product key, aligned with the ERP id format."""
    head = slice_text(value, 0, CATEGORY_ID_LENGTH)
    return head.replace("-", "_") if head else None


def product_key(value) -> Optional[str]:
    """Product part of a raw product key (everything after the category)."""
    return slice_text(value, PRODUCT_KEY_OFFSET)


def crm_cust_info_rules() -> RuleSet:
    return RuleSet(
        name="crm_cust_info",
        source_table="crm_cust_info",
        description="Customers: latest record per cst_id, names trimmed, codes expanded",
        columns={
            "cst_id": from_field("cst_id", to_integer),
            "cst_key": from_field("cst_key"),
            "cst_firstname": from_field("cst_firstname"),
            "cst_lastname": from_field("cst_lastname"),
            "cst_marital_status": from_field("cst_marital_status", map_code, mapping=MARITAL_STATUS),
            "cst_gndr": from_field("cst_gndr", map_code, mapping=CRM_GENDER),
            "cst_create_date": from_field("cst_create_date", to_date),
        },
        dedup=DedupPolicy(
            key="cst_id",
            order_by="cst_create_date",
            key_rule=to_integer,
            order_rule=to_date,
        ),
        source_columns=(
            "cst_id", "cst_key", "cst_firstname", "cst_lastname",
            "cst_marital_status", "cst_gndr", "cst_create_date",
        ),
    )


def crm_prd_info_rules() -> RuleSet:
    return RuleSet(
        name="crm_prd_info",
        source_table="crm_prd_info",
        description="Products: key split into category/product, cost defaulted, validity range derived",
        columns={
            "prd_id": from_field("prd_id", to_integer),
            "cat_id": from_field("prd_key", category_id),
            "prd_key": from_field("prd_key", product_key),
            "prd_nm": from_field("prd_nm"),
            "prd_cost": from_field("prd_cost", integer_or_default, default=0),
            "prd_line": from_field("prd_line", map_code, mapping=PRODUCT_LINES),
            "prd_start_dt": from_field("prd_start_dt", to_date),
            "prd_end_dt": NextStartEndDate(partition_by="prd_key", order_by="prd_start_dt"),
        },
        source_columns=("prd_id", "prd_key", "prd_nm", "prd_cost", "prd_line", "prd_start_dt"),
    )


def crm_sales_details_rules() -> RuleSet:
    return RuleSet(
        name="crm_sales_details",
        source_table="crm_sales_details",
        description="Sales lines: YYYYMMDD dates parsed, amount and price repaired",
        columns={
            "sls_ord_num": from_field("sls_ord_num"),
            "sls_prd_key": from_field("sls_prd_key"),
            "sls_cust_id": from_field("sls_cust_id", to_integer),
            "sls_order_dt": from_field("sls_order_dt", parse_yyyymmdd),
            "sls_ship_dt": from_field("sls_ship_dt", parse_yyyymmdd),
            "sls_due_dt": from_field("sls_due_dt", parse_yyyymmdd),
            "sls_sales": from_fields(SALES_FIELDS, repair_sales_amount),
            "sls_quantity": from_field("sls_quantity", to_integer),
            "sls_price": from_fields(SALES_FIELDS, repair_unit_price),
        },
        source_columns=(
            "sls_ord_num", "sls_prd_key", "sls_cust_id", "sls_order_dt",
            "sls_ship_dt", "sls_due_dt",
        ) + SALES_FIELDS,
    )


def erp_cust_az12_rules(as_of: Optional[date] = None) -> RuleSet:
    """
    ERP demographics. Birth dates after ``as_of`` (default: the day the rule
    runs) are implausible and nulled.
    """
    return RuleSet(
        name="erp_cust_az12",
        source_table="erp_cust_az12",
        description="ERP customers: NAS prefix stripped, future birth dates nulled, gender expanded",
        columns={
            "cid": from_field("cid", strip_prefix, prefix=ERP_CUSTOMER_PREFIX),
            "bdate": from_field("bdate", null_if_future, as_of=as_of),
            "gen": from_field("gen", map_code, mapping=ERP_GENDER),
        },
        source_columns=("cid", "bdate", "gen"),
    )


def erp_loc_a101_rules() -> RuleSet:
    return RuleSet(
        name="erp_loc_a101",
        source_table="erp_loc_a101",
        description="ERP locations: dashes removed from cid, country codes expanded",
        columns={
            "cid": from_field("cid", remove_separators, separator="-"),
            "cntry": from_field("cntry", map_code, mapping=COUNTRIES, passthrough=True),
        },
        source_columns=("cid", "cntry"),
    )


def erp_px_cat_g1v2_rules() -> RuleSet:
    return RuleSet(
        name="erp_px_cat_g1v2",
        source_table="erp_px_cat_g1v2",
        description="ERP product categories: copied as-is",
        columns={
            "id": from_field("id", clean_text),
            "cat": from_field("cat", clean_text),
            "subcat": from_field("subcat", clean_text),
            "maintenance": from_field("maintenance", clean_text),
        },
        source_columns=("id", "cat", "subcat", "maintenance"),
    )


def build_rule_sets(as_of: Optional[date] = None) -> List[RuleSet]:
    """All Silver rule sets in load order."""
    return [
        crm_cust_info_rules(),
        crm_prd_info_rules(),
        crm_sales_details_rules(),
        erp_cust_az12_rules(as_of=as_of),
        erp_loc_a101_rules(),
        erp_px_cat_g1v2_rules(),
    ]


def rule_sets_by_name(as_of: Optional[date] = None) -> Dict[str, RuleSet]:
    return {rule_set.name: rule_set for rule_set in build_rule_sets(as_of=as_of)}
