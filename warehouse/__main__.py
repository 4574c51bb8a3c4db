"""
Command-line entry point: ``python -m warehouse`` / ``warehouse-load``.

Runs the Silver full load (optionally preceded by the Bronze CSV load) and
exits non-zero when a table fails.
"""

import argparse
import logging
import sys
from typing import List, Optional

from db.db_utils import get_engine
from warehouse.bronze import run_bronze_load
from warehouse.common import ETLError, configure_logging, create_run_log_file, event_log_sink, get_settings
from warehouse.orchestrator import run_full_load, summarize
from warehouse.silver.validator import ensure_valid

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="warehouse-load",
        description="Rebuild the silver layer from the bronze layer.",
    )
    parser.add_argument("--with-bronze", action="store_true",
                        help="Reload the bronze tables from the source CSV files first")
    parser.add_argument("--data-dir", default=None,
                        help="Directory holding source_crm/ and source_erp/ (default: BRONZE_DATA_DIR)")
    parser.add_argument("--validate", action="store_true",
                        help="Run post-load quality checks on the silver tables")
    parser.add_argument("--strict", action="store_true",
                        help="Exit non-zero when the quality checks report errors (implies --validate)")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a timestamped log file into this directory")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    log_file = settings.log_file
    if args.log_dir:
        log_file = create_run_log_file(args.log_dir)
    configure_logging(level=settings.log_level, log_file=log_file)

    engine = get_engine()
    try:
        if args.with_bronze:
            run_bronze_load(args.data_dir or settings.bronze_data_dir, engine=engine,
                            batch_size=settings.batch_size)
        validate = args.validate or args.strict
        result = run_full_load(engine=engine, on_event=event_log_sink(), validate=validate,
                               batch_size=settings.batch_size)
        if args.strict:
            ensure_valid(result.validation)
    except ETLError as e:
        logger.error(f"Load FAILED: {e}")
        return 1

    logger.info(f"Batch summary: {summarize(result)}")
    if validate and not all(report.passed for report in result.validation):
        logger.warning("Silver layer validation found issues")
    return 0


if __name__ == "__main__":
    sys.exit(main())
