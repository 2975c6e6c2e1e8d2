"""
Validation models
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class ValidationIssue(BaseModel):
    """A single problem found while validating an item"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    message: str = Field(..., description="Human-readable description of the problem")
    instance_path: str = Field(default="", description="JSON pointer into the offending item")
    params: Optional[Dict[str, Any]] = Field(default=None, description="Keyword-specific details, e.g. missingProperty")
    cause: Any = Field(default=None, description="The offending item")


class ValidationResult(BaseModel):
    """Outcome of validating one item"""
    valid: bool
    errors: Optional[List[ValidationIssue]] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True, errors=None)

    @classmethod
    def failed(cls, *issues: ValidationIssue) -> "ValidationResult":
        return cls(valid=False, errors=list(issues))
