"""
Custom exceptions for the warehouse pipeline.
Provides specific error types for each layer and common error scenarios.
"""

from typing import Optional, Dict, Any


class ETLError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class BronzeLoadError(ETLError):
    """Exception raised during Bronze layer data loading."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        table_name: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None) or {}
        if file_path:
            details["file_path"] = file_path
        if table_name:
            details["table_name"] = table_name
        super().__init__(message, details=details, **kwargs)
        self.file_path = file_path
        self.table_name = table_name


class SilverTransformError(ETLError):
    """
    Exception raised when a Silver table load fails.

    Carries the failing table, a coarse error kind and, when raised by the
    orchestrator, the partial batch result up to and including the failure.
    """

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        error_kind: Optional[str] = None,
        batch_id: Optional[str] = None,
        batch_result: Any = None,
        **kwargs
    ):
        details = kwargs.pop("details", None) or {}
        if table_name:
            details["table_name"] = table_name
        if error_kind:
            details["error_kind"] = error_kind
        if batch_id:
            details["batch_id"] = batch_id
        super().__init__(message, details=details, **kwargs)
        self.table_name = table_name
        self.error_kind = error_kind
        self.batch_id = batch_id
        self.batch_result = batch_result


class SchemaMismatchError(ETLError):
    """Exception raised when a rule set does not line up with its target table."""

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        missing_columns: Optional[list] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None) or {}
        if table_name:
            details["table_name"] = table_name
        if missing_columns:
            details["missing_columns"] = missing_columns
        super().__init__(message, details=details, **kwargs)


class ValidationError(ETLError):
    """Exception raised when data validation fails."""

    def __init__(
        self,
        message: str,
        validation_type: Optional[str] = None,
        failed_checks: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None) or {}
        if validation_type:
            details["validation_type"] = validation_type
        if failed_checks:
            details["failed_checks"] = failed_checks
        super().__init__(message, details=details, **kwargs)


class ConfigurationError(ETLError):
    """Exception raised for invalid pipeline settings."""
