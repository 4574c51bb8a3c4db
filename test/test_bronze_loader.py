import os

import pandas as pd
import pytest

from conftest import SOURCE_CONTENT
from warehouse.bronze.loader import SOURCE_FILES, load_csv_to_bronze, read_source_csv, run_bronze_load
from warehouse.common.exceptions import BronzeLoadError
from warehouse.silver.engine import TransformationEngine


@pytest.fixture
def data_dir(tmp_path):
    for table_name, relative_path in SOURCE_FILES.items():
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(SOURCE_CONTENT[table_name])
    return tmp_path


def test_read_keeps_text_verbatim(data_dir):
    df = read_source_csv(os.path.join(data_dir, SOURCE_FILES["crm_cust_info"]), "crm_cust_info")

    assert df.loc[0, "cst_id"] == "11000"
    assert df.loc[0, "cst_firstname"] == " Jon "
    assert pd.isna(df.loc[1, "cst_id"])


def test_headers_are_case_folded(data_dir):
    df = read_source_csv(os.path.join(data_dir, SOURCE_FILES["erp_loc_a101"]), "erp_loc_a101")
    assert list(df.columns) == ["cid", "cntry"]


def test_extra_columns_are_ignored(tmp_path):
    path = tmp_path / "LOC_A101.csv"
    path.write_text("CID,CNTRY,REGION\nAW-00011000,Australia,Pacific\n")

    df = read_source_csv(str(path), "erp_loc_a101")
    assert list(df.columns) == ["cid", "cntry"]


def test_missing_column_rejected(tmp_path):
    path = tmp_path / "LOC_A101.csv"
    path.write_text("CID\nAW-00011000\n")

    with pytest.raises(BronzeLoadError) as exc:
        read_source_csv(str(path), "erp_loc_a101")
    assert exc.value.table_name == "erp_loc_a101"


def test_load_truncates_previous_rows(engine, data_dir):
    path = os.path.join(data_dir, SOURCE_FILES["erp_px_cat_g1v2"])
    assert load_csv_to_bronze(path, "erp_px_cat_g1v2", engine) == 1
    assert load_csv_to_bronze(path, "erp_px_cat_g1v2", engine) == 1

    raw = TransformationEngine(engine).read_raw("erp_px_cat_g1v2")
    assert list(raw["id"]) == ["CO_RF"]


def test_run_bronze_load_counts(engine, data_dir):
    counts = run_bronze_load(str(data_dir), engine=engine)

    assert list(counts) == list(SOURCE_FILES)
    assert counts["crm_cust_info"] == 2
    assert counts["erp_loc_a101"] == 1


def test_missing_source_file(engine, data_dir):
    os.remove(os.path.join(data_dir, SOURCE_FILES["erp_loc_a101"]))

    with pytest.raises(BronzeLoadError) as exc:
        run_bronze_load(str(data_dir), engine=engine)
    assert exc.value.details["table_name"] == "erp_loc_a101"
