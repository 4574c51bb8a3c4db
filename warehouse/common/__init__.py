# warehouse/common/__init__.py
"""
Common utilities shared across pipeline layers.
Includes quality checks, logging, configuration and custom exceptions.
"""

from warehouse.common.quality_checks import (
    QCResult,
    QCReport,
    check_row_count,
    check_nulls,
    check_duplicates,
    check_numeric_range,
    check_allowed_values,
    check_date_order,
    check_referential_integrity,
)
from warehouse.common.exceptions import (
    ETLError,
    BronzeLoadError,
    SilverTransformError,
    SchemaMismatchError,
    ValidationError,
    ConfigurationError,
)
from warehouse.common.logging import configure_logging, create_run_log_file, event_log_sink
from warehouse.common.config import Settings, get_settings

__all__ = [
    # Quality Checks
    "QCResult",
    "QCReport",
    "check_row_count",
    "check_nulls",
    "check_duplicates",
    "check_numeric_range",
    "check_allowed_values",
    "check_date_order",
    "check_referential_integrity",
    # Exceptions
    "ETLError",
    "BronzeLoadError",
    "SilverTransformError",
    "SchemaMismatchError",
    "ValidationError",
    "ConfigurationError",
    # Logging
    "configure_logging",
    "create_run_log_file",
    "event_log_sink",
    # Configuration
    "Settings",
    "get_settings",
]
