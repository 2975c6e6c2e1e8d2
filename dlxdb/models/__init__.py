from .containers import Container, DEFAULT_TYPES
from .operations import (
    BatchResponse,
    ItemResult,
    Operation,
    OperationResult,
    OperationType,
    StoreResult,
)
from .response import DatabaseResponse
from .validation import ValidationIssue, ValidationResult

__all__ = [
    "BatchResponse",
    "Container",
    "DEFAULT_TYPES",
    "DatabaseResponse",
    "ItemResult",
    "Operation",
    "OperationResult",
    "OperationType",
    "StoreResult",
    "ValidationIssue",
    "ValidationResult",
]
