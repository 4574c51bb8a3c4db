import pytest
from sqlalchemy.exc import OperationalError

import db.db_utils
from conftest import SOURCE_CONTENT
from db.db_utils import build_engine
from warehouse.__main__ import main
from warehouse.bronze.loader import SOURCE_FILES
from warehouse.silver.engine import TransformationEngine


@pytest.fixture
def warehouse_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'warehouse.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.delenv("ETL_LOG_FILE", raising=False)
    monkeypatch.setattr(db.db_utils, "_ENGINE", None)
    return url


@pytest.fixture
def sources(tmp_path):
    data_dir = tmp_path / "datasets"
    for table_name, relative_path in SOURCE_FILES.items():
        path = data_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(SOURCE_CONTENT[table_name])
    return data_dir


def test_full_run_with_bronze(warehouse_url, sources, tmp_path):
    log_dir = tmp_path / "logs"

    exit_code = main(["--with-bronze", "--data-dir", str(sources), "--validate", "--log-dir", str(log_dir)])

    assert exit_code == 0
    assert len(list(log_dir.glob("silver_load_*.log"))) == 1
    engine = build_engine(warehouse_url)
    try:
        rows = TransformationEngine(engine).read_curated("crm_cust_info")
    finally:
        engine.dispose()
    assert [r["cst_firstname"] for r in rows] == ["Jon"]


def test_missing_sources_exit_non_zero(warehouse_url, tmp_path):
    assert main(["--with-bronze", "--data-dir", str(tmp_path / "nowhere")]) == 1


def test_strict_passes_on_clean_sources(warehouse_url, sources):
    assert main(["--with-bronze", "--data-dir", str(sources), "--strict"]) == 0


def test_validation_failure_exits_non_zero(warehouse_url, sources, monkeypatch):
    def unreachable(engine):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr("warehouse.orchestrator.validate_silver_tables", unreachable)

    assert main(["--with-bronze", "--data-dir", str(sources), "--validate"]) == 1
