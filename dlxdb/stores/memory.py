"""
In-process document store
Keeps items in memory, keyed by (partition key, id). Used for tests and local development.
"""

import copy
import logging
import uuid
from collections import Counter
from typing import Any, AsyncIterator, Dict, List, Tuple

from dlxdb.exceptions import ConflictError, NotFoundError, StoreError
from dlxdb.models.containers import Container
from dlxdb.models.operations import (
    BatchResponse,
    Operation,
    OperationResult,
    OperationType,
    StoreResult,
)
from dlxdb.services.query_builder import Query
from dlxdb.stores.base import ContainerStore, FAILED_DEPENDENCY

logger = logging.getLogger(__name__)

Key = Tuple[Any, str]


class MemoryStore(ContainerStore):
    """
    ContainerStore backed by a dict

    Batches are all-or-nothing: operations run against a working copy that is
    only committed when every operation succeeds.
    """

    def __init__(self, container: Container, bulk_limit: int = 100, page_size: int = 100):
        super().__init__(container, bulk_limit)
        self.page_size = page_size
        self._items: Dict[Key, Dict[str, Any]] = {}
        self.calls = Counter()  # physical requests, by kind

    def __len__(self) -> int:
        return len(self._items)

    # ------------------------------------------------------------------
    # Single operations against a given item map
    # ------------------------------------------------------------------

    def _apply(self, items: Dict[Key, Dict[str, Any]], operation: Operation, partition_key: Any) -> OperationResult:
        op_type = operation.operation_type

        if op_type in (OperationType.CREATE, OperationType.UPSERT):
            body = copy.deepcopy(operation.resource_body or {})
            body.setdefault("id", str(uuid.uuid4()))
            pk = self.partition_key_of(body)

            if partition_key is not None and pk != partition_key:
                return OperationResult(status_code=400)

            key = (pk, body["id"])

            if op_type is OperationType.CREATE:
                if key in items:
                    return OperationResult(status_code=409)
                items[key] = body
                return OperationResult(status_code=201, resource_body=copy.deepcopy(body))

            status_code = 200 if key in items else 201
            items[key] = body
            return OperationResult(status_code=status_code, resource_body=copy.deepcopy(body))

        key = (partition_key if partition_key is not None else operation.partition_key, operation.id)

        if op_type is OperationType.READ:
            if key not in items:
                return OperationResult(status_code=404)
            return OperationResult(status_code=200, resource_body=copy.deepcopy(items[key]))

        if op_type is OperationType.DELETE:
            if items.pop(key, None) is None:
                return OperationResult(status_code=404)
            return OperationResult(status_code=204)

        raise StoreError(f"Unsupported operation type: {op_type}", status_code=400)

    # ------------------------------------------------------------------
    # Point operations
    # ------------------------------------------------------------------

    async def create(self, item):
        self.calls["create"] += 1
        result = self._apply(self._items, Operation(operation_type=OperationType.CREATE, resource_body=item), None)
        if result.status_code == 409:
            raise ConflictError(item.get("id"))
        return StoreResult(status_code=result.status_code, resource=result.resource_body)

    async def read(self, id, partition_key):
        self.calls["read"] += 1
        result = self._apply(self._items, Operation(operation_type=OperationType.READ, id=id), partition_key)
        return StoreResult(status_code=result.status_code, resource=result.resource_body)

    async def upsert(self, item):
        self.calls["upsert"] += 1
        result = self._apply(self._items, Operation(operation_type=OperationType.UPSERT, resource_body=item), None)
        return StoreResult(status_code=result.status_code, resource=result.resource_body)

    async def delete(self, id, partition_key):
        self.calls["delete"] += 1
        result = self._apply(self._items, Operation(operation_type=OperationType.DELETE, id=id), partition_key)
        if result.status_code == 404:
            raise NotFoundError(f"Item with ID {id} does not exist.")
        return StoreResult(status_code=result.status_code)

    # ------------------------------------------------------------------
    # Batch and bulk
    # ------------------------------------------------------------------

    async def batch(self, operations, partition_key):
        self._check_size(operations)
        self.calls["batch"] += 1

        working = dict(self._items)
        results: List[OperationResult] = []
        failed_at = None

        for index, operation in enumerate(operations):
            result = self._apply(working, operation, partition_key)
            results.append(result)
            if not result.ok:
                failed_at = index
                break

        if failed_at is None:
            self._items = working
            return BatchResponse(code=200, result=results)

        failure = results[failed_at]
        results = [
            failure if index == failed_at else OperationResult(status_code=FAILED_DEPENDENCY)
            for index in range(len(operations))
        ]

        logger.debug(f"Batch on {self.name} rolled back: operation {failed_at} returned {failure.status_code}")
        return BatchResponse(code=207, result=results, substatus=failure.status_code)

    async def bulk(self, operations):
        self._check_size(operations)
        self.calls["bulk"] += 1
        return [self._apply(self._items, operation, operation.partition_key) for operation in operations]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query(self, query: Query) -> AsyncIterator[List[Any]]:
        self.calls["query"] += 1
        matches = [copy.deepcopy(item) for item in self._items.values() if query.matches(item)]

        if query.is_count:
            yield [len(matches)]
            return

        for start in range(0, len(matches), self.page_size):
            yield matches[start:start + self.page_size]

    async def read_all(self):
        items = [copy.deepcopy(item) for item in self._items.values()]
        for start in range(0, len(items), self.page_size):
            yield items[start:start + self.page_size]
