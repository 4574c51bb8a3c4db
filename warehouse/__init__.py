# warehouse/__init__.py
"""
Medallion data warehouse pipeline.

This package loads the CRM and ERP source extracts through two layers:
- Bronze: raw source rows, stored as text
- Silver: cleansed, deduplicated and typed rows, rebuilt in full on every run

Usage:
    from warehouse import run_full_load
    result = run_full_load()

    # Or run individual layers:
    from warehouse.bronze import run_bronze_load
    from warehouse.silver import TransformationEngine, build_rule_sets
"""

__version__ = "1.0.0"
__author__ = "Data Warehouse Team"

# Main entry point
from warehouse.orchestrator import (
    BatchOrchestrator,
    BatchResult,
    BatchStatus,
    LoadEvent,
    LoadResult,
    LoadStatus,
    run_full_load,
)

# Layer-specific exports
from warehouse.bronze import run_bronze_load
from warehouse.silver import TransformationEngine, build_rule_sets, run_silver_validation
from warehouse.common import SilverTransformError, QCReport, QCResult

__all__ = [
    # Version
    "__version__",
    # Orchestrator
    "run_full_load",
    "BatchOrchestrator",
    "BatchResult",
    "BatchStatus",
    "LoadEvent",
    "LoadResult",
    "LoadStatus",
    # Bronze layer
    "run_bronze_load",
    # Silver layer
    "TransformationEngine",
    "build_rule_sets",
    "run_silver_validation",
    # Common utilities
    "SilverTransformError",
    "QCReport",
    "QCResult",
]
