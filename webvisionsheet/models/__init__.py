"""Domain models for the website screenshot enrichment tool.

This package contains the value types shared by the pipeline, the provider
adapters and the CLI.
"""

from .cell_value import CellKind, CellValue
from .config_models import BrowserConfig, ExtractionConfig, FieldDefinition, RunConfig
from .error_record import ErrorRecord
from .processing_result import ProgressEvent, RunResult
from .row_record import RowRecord, RowStatus

__all__ = [
    # Configuration models
    "BrowserConfig",
    "ExtractionConfig",
    "FieldDefinition",
    "RunConfig",
    # Cell model
    "CellKind",
    "CellValue",
    # Processing models
    "ErrorRecord",
    "ProgressEvent",
    "RowRecord",
    "RowStatus",
    "RunResult",
]
