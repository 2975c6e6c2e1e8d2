"""
Document store interface
One ContainerStore per logical container
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from dlxdb.exceptions import BadRequestError
from dlxdb.models.containers import Container
from dlxdb.models.operations import BatchResponse, Operation, OperationResult, StoreResult
from dlxdb.services.query_builder import Query

# Failed Dependency: the operation was not applied because another one in the batch failed
FAILED_DEPENDENCY = 424


class ContainerStore(ABC):
    """
    A partitioned container in the document store

    Point operations raise ConflictError / StoreError on failure, except for
    missing items, which are reported as a 404 status. Batch and bulk calls
    report every per-item outcome as a status code and never raise for them.
    """

    def __init__(self, container: Container, bulk_limit: int = 100):
        self.container = Container.coerce(container)
        self.bulk_limit = bulk_limit

    @property
    def name(self) -> str:
        return self.container.value

    def partition_key_of(self, item: Dict[str, Any]) -> Optional[Any]:
        return self.container.partition_key_of(item)

    def _check_size(self, operations: List[Operation]):
        if len(operations) > self.bulk_limit:
            raise BadRequestError(
                f"A single request can contain at most {self.bulk_limit} operations "
                f"(got {len(operations)})."
            )

    @abstractmethod
    async def create(self, item: Dict[str, Any]) -> StoreResult:
        """Create an item. Assigns an ID if the item has none."""

    @abstractmethod
    async def read(self, id: str, partition_key: Any) -> StoreResult:
        """Point read. Returns status 404 with no resource when missing."""

    @abstractmethod
    async def upsert(self, item: Dict[str, Any]) -> StoreResult:
        """Create or replace an item. Status 201 when created, 200 when replaced."""

    @abstractmethod
    async def delete(self, id: str, partition_key: Any) -> StoreResult:
        """Delete an item. Raises NotFoundError when missing."""

    @abstractmethod
    async def batch(self, operations: List[Operation], partition_key: Any) -> BatchResponse:
        """Run operations against one partition as a single batch request"""

    @abstractmethod
    async def bulk(self, operations: List[Operation]) -> List[OperationResult]:
        """Run independent operations, continuing past failures"""

    @abstractmethod
    def query(self, query: Query) -> AsyncIterator[List[Any]]:
        """Iterate over pages of query results"""

    @abstractmethod
    def read_all(self) -> AsyncIterator[List[Dict[str, Any]]]:
        """Iterate over pages of every item in the container"""

    def __repr__(self):
        return f"{type(self).__name__}(container={self.name})"
