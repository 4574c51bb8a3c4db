from datetime import date

import pandas as pd
import pytest

from conftest import SAMPLE_BRONZE, raw_frame, seed_bronze
from warehouse.common.exceptions import SchemaMismatchError
from warehouse.silver.engine import TransformationEngine, select_rows, transform_frame
from warehouse.silver.rule_set import DedupPolicy, RuleSet, from_field
from warehouse.silver.rules import crm_cust_info_rules, rule_sets_by_name
from warehouse.silver.utils import to_integer

AS_OF = date(2025, 1, 1)


@pytest.fixture
def transformer(seeded_engine):
    return TransformationEngine(seeded_engine, batch_size=2)


@pytest.fixture
def rules():
    return rule_sets_by_name(as_of=AS_OF)


class TestSelectRows:
    def test_dedup_keeps_latest_and_raw_order(self):
        rows = [
            {"cst_id": "2", "cst_create_date": "2024-01-01"},
            {"cst_id": "1", "cst_create_date": "2024-05-01"},
            {"cst_id": "2", "cst_create_date": "2024-03-01"},
            {"cst_id": "1", "cst_create_date": "2024-02-01"},
        ]
        selected = select_rows(crm_cust_info_rules(), raw_frame(rows, "crm_cust_info"))

        assert list(selected["cst_id"]) == ["1", "2"]
        assert list(selected["cst_create_date"]) == ["2024-05-01", "2024-03-01"]

    def test_tie_keeps_first_raw_row(self):
        rows = [
            {"cst_id": "7", "cst_key": "first", "cst_create_date": "2024-01-01"},
            {"cst_id": "7", "cst_key": "second", "cst_create_date": "2024-01-01"},
        ]
        selected = select_rows(crm_cust_info_rules(), raw_frame(rows, "crm_cust_info"))
        assert list(selected["cst_key"]) == ["first"]

    def test_missing_order_value_loses(self):
        rows = [
            {"cst_id": "7", "cst_key": "undated", "cst_create_date": None},
            {"cst_id": "7", "cst_key": "dated", "cst_create_date": "2020-01-01"},
        ]
        selected = select_rows(crm_cust_info_rules(), raw_frame(rows, "crm_cust_info"))
        assert list(selected["cst_key"]) == ["dated"]

    def test_row_filter_runs_before_dedup(self):
        rule_set = RuleSet(
            name="crm_cust_info",
            source_table="crm_cust_info",
            columns={"cst_id": from_field("cst_id", to_integer)},
            dedup=DedupPolicy(key="cst_id", order_by="cst_create_date", key_rule=to_integer),
            row_filter=lambda row: row["cst_key"] != "skip",
        )
        rows = [
            {"cst_id": "1", "cst_key": "keep", "cst_create_date": "2020-01-01"},
            {"cst_id": "1", "cst_key": "skip", "cst_create_date": "2024-01-01"},
        ]
        selected = select_rows(rule_set, raw_frame(rows, "crm_cust_info"))
        assert list(selected["cst_key"]) == ["keep"]

    def test_empty_input(self):
        selected = select_rows(crm_cust_info_rules(), raw_frame([], "crm_cust_info"))
        assert selected.empty


def test_transform_frame_has_target_columns(rules):
    frame = transform_frame(rules["crm_cust_info"], raw_frame(SAMPLE_BRONZE["crm_cust_info"], "crm_cust_info"))
    assert list(frame.columns) == rules["crm_cust_info"].output_columns
    assert len(frame) == 2


class TestTransformationEngine:
    def test_read_raw_in_load_order(self, transformer):
        raw = transformer.read_raw("crm_sales_details")
        assert list(raw["sls_ord_num"]) == ["SO43697", "SO43698", "SO43699"]
        assert "row_id" not in raw.columns

    @pytest.mark.parametrize("table_name, expected_rows", [
        ("crm_cust_info", 2),
        ("crm_prd_info", 4),
        ("crm_sales_details", 3),
        ("erp_cust_az12", 3),
        ("erp_loc_a101", 4),
        ("erp_px_cat_g1v2", 2),
    ])
    def test_load_table_row_counts(self, transformer, rules, table_name, expected_rows):
        stats = transformer.load_table(rules[table_name])

        assert stats.source_row_count == len(SAMPLE_BRONZE[table_name])
        assert stats.row_count == expected_rows
        assert len(transformer.read_curated(table_name)) == expected_rows

    def test_customer_table_contents(self, transformer, rules):
        transformer.load_table(rules["crm_cust_info"])
        rows = transformer.read_curated("crm_cust_info")

        assert rows[1]["cst_id"] == 11001
        assert rows[1]["cst_marital_status"] == "Single"
        assert rows[1]["cst_create_date"] == date(2026, 1, 25)

    def test_reload_is_idempotent(self, transformer, rules):
        transformer.load_table(rules["crm_prd_info"])
        first = transformer.read_curated("crm_prd_info")
        transformer.load_table(rules["crm_prd_info"])
        second = transformer.read_curated("crm_prd_info")

        assert first == second

    def test_reload_replaces_previous_contents(self, seeded_engine, transformer, rules):
        transformer.load_table(rules["erp_px_cat_g1v2"])
        seed_bronze(seeded_engine, "erp_px_cat_g1v2", [{"id": "BI_RB", "cat": "Bikes"}])
        transformer.load_table(rules["erp_px_cat_g1v2"])

        rows = transformer.read_curated("erp_px_cat_g1v2")
        assert [r["id"] for r in rows] == ["BI_RB"]

    def test_empty_source_empties_target(self, seeded_engine, transformer, rules):
        transformer.load_table(rules["erp_loc_a101"])
        seed_bronze(seeded_engine, "erp_loc_a101", [])

        stats = transformer.load_table(rules["erp_loc_a101"])

        assert stats.row_count == 0
        assert transformer.read_curated("erp_loc_a101") == []

    def test_metadata_columns_on_request(self, transformer, rules):
        transformer.load_table(rules["erp_px_cat_g1v2"])
        row = transformer.read_curated("erp_px_cat_g1v2", include_metadata=True)[0]
        assert row["dwh_create_date"] is not None
        assert "row_id" in row

    def test_explicit_raw_snapshot(self, transformer, rules):
        raw = raw_frame([{"cid": "NASAW1", "bdate": "1980-01-01", "gen": "F"}], "erp_cust_az12")
        stats = transformer.load_table(rules["erp_cust_az12"], raw=raw)

        assert stats.row_count == 1
        assert transformer.read_curated("erp_cust_az12") == [
            {"cid": "AW1", "bdate": date(1980, 1, 1), "gen": "Female"}
        ]

    def test_rule_set_missing_target_column(self, transformer, rules):
        broken = RuleSet(
            name="erp_loc_a101",
            source_table="erp_loc_a101",
            columns={"cid": from_field("cid")},
        )
        with pytest.raises(SchemaMismatchError) as exc:
            transformer.load_table(broken)
        assert exc.value.details["missing_columns"] == ["cntry"]

    def test_source_missing_column(self, transformer, rules):
        raw = pd.DataFrame({"cid": ["AW1"]}, dtype=object)
        with pytest.raises(SchemaMismatchError):
            transformer.load_table(rules["erp_loc_a101"], raw=raw)

    def test_unknown_table(self, transformer):
        with pytest.raises(SchemaMismatchError):
            transformer.read_raw("crm_nothing")
