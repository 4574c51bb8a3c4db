import sys
from pathlib import Path
from typing import Dict, List

import pandas as pd
import pytest

# Ensure project root is importable when running pytest from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from db.db_utils import build_engine, create_layer_tables
from db.models_bronze import BRONZE_TABLES, business_columns


@pytest.fixture
def engine():
    """In-memory SQLite warehouse with bronze and silver tables created."""
    engine = build_engine("sqlite://")
    create_layer_tables(engine)
    yield engine
    engine.dispose()


def seed_bronze(engine, table_name: str, rows: List[Dict]) -> None:
    """Replace a bronze table's rows; columns not given are NULL."""
    model = BRONZE_TABLES[table_name]
    columns = business_columns(model)
    records = [{c: row.get(c) for c in columns} for row in rows]
    table = model.__table__
    with engine.begin() as conn:
        conn.execute(table.delete())
        if records:
            conn.execute(table.insert(), records)


def raw_frame(rows: List[Dict], table_name: str) -> pd.DataFrame:
    """Bronze-shaped DataFrame (all source columns present, object dtype)."""
    columns = business_columns(BRONZE_TABLES[table_name])
    return pd.DataFrame([{c: row.get(c) for c in columns} for row in rows],
                        columns=columns, dtype=object)


SAMPLE_BRONZE = {
    "crm_cust_info": [
        {"cst_id": "11000", "cst_key": "AW00011000", "cst_firstname": " Jon ",
         "cst_lastname": "Yang  ", "cst_marital_status": "M", "cst_gndr": "M",
         "cst_create_date": "2025-10-06"},
        {"cst_id": "11001", "cst_key": "AW00011001", "cst_firstname": "Eugene",
         "cst_lastname": "Huang", "cst_marital_status": "S", "cst_gndr": None,
         "cst_create_date": "2025-10-06"},
        {"cst_id": "11001", "cst_key": "AW00011001", "cst_firstname": "Eugene",
         "cst_lastname": "Huang", "cst_marital_status": "s ", "cst_gndr": "m",
         "cst_create_date": "2026-01-25"},
        {"cst_id": None, "cst_key": "PO25", "cst_firstname": None,
         "cst_lastname": None, "cst_marital_status": None, "cst_gndr": None,
         "cst_create_date": None},
    ],
    "crm_prd_info": [
        {"prd_id": "210", "prd_key": "CO-RF-FR-R92B-58", "prd_nm": "HL Road Frame - Black- 58",
         "prd_cost": None, "prd_line": "R ", "prd_start_dt": "2003-07-01"},
        {"prd_id": "212", "prd_key": "AC-HE-HL-U509-R", "prd_nm": "Sport-100 Helmet- Red",
         "prd_cost": "12", "prd_line": "S", "prd_start_dt": "2011-07-01"},
        {"prd_id": "213", "prd_key": "AC-HE-HL-U509-R", "prd_nm": "Sport-100 Helmet- Red",
         "prd_cost": "14", "prd_line": "S", "prd_start_dt": "2012-07-01"},
        {"prd_id": "214", "prd_key": "AC-HE-HL-U509-R", "prd_nm": "Sport-100 Helmet- Red",
         "prd_cost": "13", "prd_line": "S", "prd_start_dt": "2013-07-01"},
    ],
    "crm_sales_details": [
        {"sls_ord_num": "SO43697", "sls_prd_key": "BK-R93R-62", "sls_cust_id": "11000",
         "sls_order_dt": "20101229", "sls_ship_dt": "20110105", "sls_due_dt": "20110110",
         "sls_sales": "3578", "sls_quantity": "1", "sls_price": "3578"},
        {"sls_ord_num": "SO43698", "sls_prd_key": "HL-U509-R", "sls_cust_id": "11001",
         "sls_order_dt": "0", "sls_ship_dt": "2011010", "sls_due_dt": "20110110",
         "sls_sales": "999", "sls_quantity": "3", "sls_price": "10"},
        {"sls_ord_num": "SO43699", "sls_prd_key": "HL-U509-R", "sls_cust_id": "11001",
         "sls_order_dt": "20110101", "sls_ship_dt": "20110108", "sls_due_dt": "20110113",
         "sls_sales": "30", "sls_quantity": "3", "sls_price": None},
    ],
    "erp_cust_az12": [
        {"cid": "NASAW00011000", "bdate": "1971-10-06", "gen": "Male"},
        {"cid": "AW00011001", "bdate": "2999-01-01", "gen": " f "},
        {"cid": "NASAW00011002", "bdate": None, "gen": None},
    ],
    "erp_loc_a101": [
        {"cid": "AW-00011000", "cntry": "Australia"},
        {"cid": "AW-00011001", "cntry": "DE"},
        {"cid": "AW-00011002", "cntry": " USA"},
        {"cid": "AW-00011003", "cntry": ""},
    ],
    "erp_px_cat_g1v2": [
        {"id": "CO_RF", "cat": "Components", "subcat": "Road Frames", "maintenance": "Yes"},
        {"id": "AC_HE", "cat": "Accessories", "subcat": "Helmets", "maintenance": "Yes"},
    ],
}


# Source CSV text as exported by the CRM and ERP systems
SOURCE_CONTENT = {
    "crm_cust_info": (
        "cst_id,cst_key,cst_firstname,cst_lastname,cst_marital_status,cst_gndr,cst_create_date\n"
        "11000,AW00011000, Jon ,Yang,M,M,2025-10-06\n"
        ",PO25,,,,,\n"
    ),
    "crm_prd_info": (
        "prd_id,prd_key,prd_nm,prd_cost,prd_line,prd_start_dt,prd_end_dt\n"
        "210,CO-RF-FR-R92B-58,HL Road Frame - Black- 58,,R ,2003-07-01,\n"
    ),
    "crm_sales_details": (
        "sls_ord_num,sls_prd_key,sls_cust_id,sls_order_dt,sls_ship_dt,sls_due_dt,sls_sales,sls_quantity,sls_price\n"
        "SO43697,BK-R93R-62,11000,20101229,20110105,20110110,3578,1,3578\n"
    ),
    "erp_cust_az12": "CID,BDATE,GEN\nNASAW00011000,1971-10-06,Male\n",
    "erp_loc_a101": "CID,CNTRY\nAW-00011000,Australia\n",
    "erp_px_cat_g1v2": "ID,CAT,SUBCAT,MAINTENANCE\nCO_RF,Components,Road Frames,Yes\n",
}


@pytest.fixture
def seeded_engine(engine):
    """Warehouse whose bronze layer holds a small, messy sample of every table."""
    for table_name, rows in SAMPLE_BRONZE.items():
        seed_bronze(engine, table_name, rows)
    return engine
