"""
DLx Database - data-access layer for the Digital Linguistics document store
Routes, validates, and batches linguistic data across partitioned containers
"""

__version__ = "1.0.0"

from .database import Database, connect_db, close_db, get_database
from .models import Container, DatabaseResponse, ValidationIssue, ValidationResult
from .exceptions import (
    DatabaseError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    PartialFailureError,
    StoreError,
    ValidationError
)

__all__ = [
    "Database",
    "connect_db",
    "close_db",
    "get_database",
    "Container",
    "DatabaseResponse",
    "ValidationIssue",
    "ValidationResult",
    "DatabaseError",
    "BadRequestError",
    "ConflictError",
    "NotFoundError",
    "PartialFailureError",
    "StoreError",
    "ValidationError"
]
