"""
Store operation models
Operations sent to the document store and the per-item results it returns
"""

from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
from enum import Enum

# ============================================================================
# Enums
# ============================================================================

class OperationType(str, Enum):
    """Operation types accepted by batch and bulk requests"""
    CREATE = "Create"
    READ = "Read"
    UPSERT = "Upsert"
    DELETE = "Delete"    # dev helpers only

# ============================================================================
# Requests
# ============================================================================

class Operation(BaseModel):
    """One unit of work inside a batch or bulk request"""
    operation_type: OperationType
    id: Optional[str] = Field(default=None, description="Target ID (Read, Delete)")
    resource_body: Optional[Dict[str, Any]] = Field(default=None, description="Item body (Create, Upsert)")
    partition_key: Optional[Any] = Field(default=None, description="Partition key value (bulk requests)")

# ============================================================================
# Results
# ============================================================================

class OperationResult(BaseModel):
    """Per-item outcome of a batch or bulk request"""
    status_code: int
    resource_body: Optional[Dict[str, Any]] = None
    sub_status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class BatchResponse(BaseModel):
    """Outcome of one physical batch request"""
    code: int = Field(..., description="200 when every operation succeeded, 207 otherwise")
    result: List[OperationResult] = []
    substatus: Any = None

    @property
    def is_multi_status(self) -> bool:
        return self.code == 207


class StoreResult(BaseModel):
    """Outcome of a point create, read, upsert, or delete"""
    status_code: int
    resource: Optional[Dict[str, Any]] = None


class ItemResult(BaseModel):
    """Correlated result for one requested ID in a multi-get"""
    id: str
    status: int
    data: Optional[Dict[str, Any]] = None
