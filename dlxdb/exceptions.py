"""
Custom exceptions for the DLx database layer
"""

from typing import Any, List, Optional


class DatabaseError(Exception):
    """Base exception for all database errors"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(DatabaseError):
    """Raised when a request is malformed or exceeds a store limit"""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class NotFoundError(DatabaseError):
    """Raised when a requested item does not exist"""
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ConflictError(DatabaseError):
    """Raised when an item with the same ID already exists in the partition"""
    def __init__(self, id: Optional[str], message: Optional[str] = None):
        self.id = id
        super().__init__(message or f"Item with ID {id} already exists.", status_code=409)


class ValidationError(DatabaseError):
    """Raised when an item fails validation"""
    def __init__(self, errors: List[Any], message: str = "Validation Error: See 'errors' property for more information."):
        self.errors = errors
        super().__init__(message, status_code=422)


class PartialFailureError(DatabaseError):
    """Raised when some but not all operations in a batch succeeded"""
    def __init__(self, results: List[Any], message: str = "Some operations in the batch failed."):
        self.results = results
        super().__init__(message, status_code=207)


class StoreError(DatabaseError):
    """Raised for any other failure reported by the document store"""
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message, status_code=status_code)
