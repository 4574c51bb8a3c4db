# warehouse/bronze/loader.py
"""
Bronze Layer - bulk load of the CRM/ERP source CSV files.

Every table is truncated and reloaded from its file; all columns are read as
text, no transformation is applied.
"""

import os
import logging
import time
from datetime import datetime
from typing import Dict, Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from db.db_utils import create_layer_tables, get_engine
from db.models_bronze import BRONZE_TABLES, business_columns
from warehouse.common.exceptions import BronzeLoadError

logger = logging.getLogger(__name__)

# Bronze table -> CSV path relative to the data directory
SOURCE_FILES = {
    "crm_cust_info": os.path.join("source_crm", "cust_info.csv"),
    "crm_prd_info": os.path.join("source_crm", "prd_info.csv"),
    "crm_sales_details": os.path.join("source_crm", "sales_details.csv"),
    "erp_cust_az12": os.path.join("source_erp", "CUST_AZ12.csv"),
    "erp_loc_a101": os.path.join("source_erp", "LOC_A101.csv"),
    "erp_px_cat_g1v2": os.path.join("source_erp", "PX_CAT_G1V2.csv"),
}


def read_source_csv(file_path: str, table_name: str) -> pd.DataFrame:
    """
    Read one source CSV with every column as text.

    Raises:
        BronzeLoadError: If the file is missing, unreadable, or lacks columns
    """
    model = BRONZE_TABLES[table_name]
    expected = business_columns(model)

    try:
        df = pd.read_csv(file_path, sep=",", dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise BronzeLoadError(
            f"Failed to read source file: {e}",
            file_path=file_path,
            table_name=table_name,
            original_error=e,
        )

    df.columns = df.columns.str.strip().str.lower()
    missing = [c for c in expected if c not in df.columns]
    if missing:
        raise BronzeLoadError(
            f"Source file is missing columns {missing}",
            file_path=file_path,
            table_name=table_name,
        )

    extra = [c for c in df.columns if c not in expected]
    if extra:
        logger.warning(f"Ignoring unexpected columns in {os.path.basename(file_path)}: {extra}")

    # Empty fields are NULL in the raw store, everything else is kept verbatim
    df = df[expected].replace({"": None})
    return df


def load_csv_to_bronze(
    file_path: str,
    table_name: str,
    engine: Engine,
    batch_size: int = 1000,
) -> int:
    """
    Truncate a bronze table and bulk load one CSV file into it.

    Args:
        file_path: Path to the CSV file
        table_name: Bronze table name (key of BRONZE_TABLES)
        engine: Database engine
        batch_size: Number of records per insert batch

    Returns:
        Number of records loaded

    Raises:
        BronzeLoadError: If loading fails
    """
    file_name = os.path.basename(file_path)
    table = BRONZE_TABLES[table_name].__table__
    df = read_source_csv(file_path, table_name)

    df["source_file"] = file_name
    df["loaded_at"] = datetime.now()
    records = df.astype(object).where(pd.notna(df), None).to_dict(orient="records")

    try:
        with engine.begin() as conn:
            logger.info(f">> Truncating Table: bronze.{table_name}")
            if conn.dialect.name == "postgresql":
                conn.execute(text(f"TRUNCATE TABLE bronze.{table_name} RESTART IDENTITY"))
            else:
                conn.execute(table.delete())

            logger.info(f">> Inserting Data Into: bronze.{table_name}")
            for i in range(0, len(records), batch_size):
                batch = records[i:i + batch_size]
                conn.execute(table.insert(), batch)
                logger.debug(f"  Inserted batch {i // batch_size + 1} ({len(batch)} records)")
    except Exception as e:
        logger.error(f"Failed to load {file_name}: {e}")
        raise BronzeLoadError(
            f"Failed to load {file_name} into bronze.{table_name}: {e}",
            file_path=file_path,
            table_name=table_name,
            original_error=e,
        ) from e

    logger.info(f"  Total: {len(records)} records loaded from {file_name}")
    return len(records)


def run_bronze_load(
    data_dir: str = "datasets",
    engine: Optional[Engine] = None,
    batch_size: int = 1000,
) -> Dict[str, int]:
    """
    Run the complete Bronze layer load.

    Args:
        data_dir: Directory containing source_crm/ and source_erp/
        engine: Database engine (created if not provided)
        batch_size: Number of records per insert batch

    Returns:
        dict: Row count per bronze table
    """
    logger.info("=" * 60)
    logger.info("LOADING BRONZE LAYER")
    logger.info("=" * 60)

    engine = engine or get_engine()
    create_layer_tables(engine)

    batch_started = time.perf_counter()
    counts = {}
    for table_name, relative_path in SOURCE_FILES.items():
        file_path = os.path.join(data_dir, relative_path)
        if not os.path.isfile(file_path):
            raise BronzeLoadError("Source file not found", file_path=file_path, table_name=table_name)

        started = time.perf_counter()
        counts[table_name] = load_csv_to_bronze(file_path, table_name, engine, batch_size)
        logger.info(f">> Load Duration: {time.perf_counter() - started:.3f} seconds")
        logger.info(">> -------------")

    logger.info("=" * 60)
    logger.info("Loading Bronze Layer is Completed")
    logger.info(f"   - Total Load Duration: {time.perf_counter() - batch_started:.3f} seconds")
    logger.info("=" * 60)
    return counts


if __name__ == "__main__":
    from warehouse.common.logging import configure_logging

    configure_logging()
    run_bronze_load()
