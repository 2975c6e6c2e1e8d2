"""
Database response envelope
Every public database operation returns one of these
"""

from pydantic import BaseModel, model_validator
from typing import Any, Dict, List, Optional

from dlxdb.exceptions import DatabaseError
from dlxdb.models.validation import ValidationIssue

VALIDATION_MESSAGE = "Validation Error: See 'errors' property for more information."


class DatabaseResponse(BaseModel):
    """
    Uniform response for database operations

    `status` is always set and follows HTTP semantics. 2xx responses carry `data`,
    validation failures carry `errors` and `message`, other failures carry
    `message` only. A 207 carries the list of per-item outcomes in `data`.
    """
    status: int = 200
    data: Any = None
    message: Optional[str] = None
    errors: Optional[List[ValidationIssue]] = None
    substatus: Any = None

    @model_validator(mode="after")
    def _one_payload_channel(self):
        if self.data is not None and (self.message is not None or self.errors is not None):
            raise ValueError("A response carries either data or an error payload, not both")
        return self

    @classmethod
    def validation_error(cls, errors: List[ValidationIssue]) -> "DatabaseResponse":
        return cls(status=422, message=VALIDATION_MESSAGE, errors=errors)

    @classmethod
    def from_error(cls, error: DatabaseError) -> "DatabaseResponse":
        """Build an error response from a DatabaseError"""
        errors = getattr(error, "errors", None)
        return cls(
            status=error.status_code or 500,
            message=error.message,
            errors=errors,
        )

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, leaving out unset channels"""
        return self.model_dump(exclude_none=True)

    def __repr__(self):
        return f"DatabaseResponse(status={self.status})"
