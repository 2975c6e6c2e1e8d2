"""
MongoDB document store
Using motor (async MongoDB driver)

Each logical container maps to one MongoDB collection. Documents are keyed by
`_id = {"pk": <partition key>, "id": <item id>}`, so IDs are unique per partition
and duplicate creates fail with a duplicate key error.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from pymongo import DeleteOne, InsertOne, ReplaceOne
from pymongo.errors import (
    BulkWriteError,
    ConnectionFailure,
    DuplicateKeyError,
    ExecutionTimeout,
    NetworkTimeout,
    PyMongoError,
    ServerSelectionTimeoutError,
)

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

DUPLICATE_KEY = 11000


def document_key(partition_key: Any, id: str) -> Dict[str, Any]:
    """MongoDB _id for an item. Field order matters for equality."""
    return {"pk": partition_key, "id": id}


def to_document(item: Dict[str, Any], partition_key: Any) -> Dict[str, Any]:
    """Copy an item into a MongoDB document"""
    document = dict(item)
    document["_id"] = document_key(partition_key, item["id"])
    return document


def from_document(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Strip MongoDB bookkeeping from a stored document"""
    if document is None:
        return None
    item = dict(document)
    item.pop("_id", None)
    return item


def status_for_write_error(error: Dict[str, Any]) -> int:
    return 409 if error.get("code") == DUPLICATE_KEY else 400


def status_for_driver_error(error: PyMongoError) -> int:
    """HTTP-style status for a driver failure"""
    if isinstance(error, ServerSelectionTimeoutError):
        return 503
    if isinstance(error, (NetworkTimeout, ExecutionTimeout)):
        return 408
    if isinstance(error, ConnectionFailure):
        return 503
    return 500


def store_error(error: PyMongoError) -> StoreError:
    """Wrap a driver failure, keeping its message unchanged"""
    return StoreError(str(error), status_code=status_for_driver_error(error))


class MongoStore(ContainerStore):
    """
    ContainerStore backed by a motor collection

    Batches run as one ordered bulk_write. Writes before a failing operation
    are not rolled back and are reported as applied.
    """

    def __init__(self, collection, container: Container, bulk_limit: int = 100, page_size: int = 100):
        """
        Initialize MongoDB store

        Args:
            collection: Motor collection for this container
            container: Logical container the collection holds
            bulk_limit: Max operations per batch or bulk request
            page_size: Documents per query page
        """
        super().__init__(container, bulk_limit)
        self.collection = collection
        self.page_size = page_size

    def _prepare(self, item: Dict[str, Any]) -> Dict[str, Any]:
        item = dict(item)
        item.setdefault("id", str(uuid.uuid4()))
        return item

    # ------------------------------------------------------------------
    # Point operations
    # ------------------------------------------------------------------

    async def create(self, item):
        item = self._prepare(item)
        try:
            await self.collection.insert_one(to_document(item, self.partition_key_of(item)))
        except DuplicateKeyError as e:
            raise ConflictError(item["id"]) from e
        except PyMongoError as e:
            raise store_error(e) from e
        return StoreResult(status_code=201, resource=item)

    async def read(self, id, partition_key):
        try:
            document = await self.collection.find_one({"_id": document_key(partition_key, id)})
        except PyMongoError as e:
            raise store_error(e) from e
        if document is None:
            return StoreResult(status_code=404)
        return StoreResult(status_code=200, resource=from_document(document))

    async def upsert(self, item):
        item = self._prepare(item)
        document = to_document(item, self.partition_key_of(item))
        try:
            result = await self.collection.replace_one({"_id": document["_id"]}, document, upsert=True)
        except PyMongoError as e:
            raise store_error(e) from e
        status_code = 201 if result.upserted_id is not None else 200
        return StoreResult(status_code=status_code, resource=item)

    async def delete(self, id, partition_key):
        try:
            result = await self.collection.delete_one({"_id": document_key(partition_key, id)})
        except PyMongoError as e:
            raise store_error(e) from e
        if result.deleted_count == 0:
            raise NotFoundError(f"Item with ID {id} does not exist.")
        return StoreResult(status_code=204)

    # ------------------------------------------------------------------
    # Batch and bulk
    # ------------------------------------------------------------------

    def _write_request(self, operation: Operation, partition_key: Any):
        if operation.operation_type is OperationType.CREATE:
            return InsertOne(to_document(operation.resource_body, partition_key))
        if operation.operation_type is OperationType.UPSERT:
            document = to_document(operation.resource_body, partition_key)
            return ReplaceOne({"_id": document["_id"]}, document, upsert=True)
        if operation.operation_type is OperationType.DELETE:
            return DeleteOne({"_id": document_key(partition_key, operation.id)})
        raise StoreError(f"{operation.operation_type.value} operations cannot be batched", status_code=400)

    async def batch(self, operations, partition_key):
        self._check_size(operations)

        operations = [
            op.model_copy(update={"resource_body": self._prepare(op.resource_body)}) if op.resource_body is not None else op
            for op in operations
        ]

        for index, op in enumerate(operations):
            if op.resource_body is not None and self.partition_key_of(op.resource_body) != partition_key:
                results = [OperationResult(status_code=400 if i == index else FAILED_DEPENDENCY) for i in range(len(operations))]
                return BatchResponse(code=207, result=results, substatus=400)

        if not operations:
            return BatchResponse(code=200, result=[])

        requests = [self._write_request(op, partition_key) for op in operations]

        try:
            result = await self.collection.bulk_write(requests, ordered=True)
        except BulkWriteError as e:
            error = e.details["writeErrors"][0]
            failed_at = error["index"]
            status_code = status_for_write_error(error)
            upserted = {entry["index"] for entry in e.details.get("upserted", [])}

            # Ordered writes: everything before the failure was applied, nothing after it
            results = [self._applied(op, i in upserted) for i, op in enumerate(operations[:failed_at])]
            results.append(OperationResult(status_code=status_code))
            results.extend(OperationResult(status_code=FAILED_DEPENDENCY) for _ in operations[failed_at + 1:])

            logger.warning(f"Batch on {self.name} failed at operation {failed_at} ({status_code})")
            return BatchResponse(code=207, result=results, substatus=status_code)
        except PyMongoError as e:
            raise store_error(e) from e

        upserted = set(result.upserted_ids or {})
        results = [self._applied(op, i in upserted) for i, op in enumerate(operations)]

        return BatchResponse(code=200, result=results)

    def _applied(self, operation: Operation, upserted: bool) -> OperationResult:
        """Result for a batch operation the server applied"""
        if operation.operation_type is OperationType.CREATE:
            return OperationResult(status_code=201, resource_body=operation.resource_body)
        if operation.operation_type is OperationType.UPSERT:
            return OperationResult(status_code=201 if upserted else 200, resource_body=operation.resource_body)
        return OperationResult(status_code=204)

    async def bulk(self, operations):
        self._check_size(operations)
        results = []

        reads = [op for op in operations if op.operation_type is OperationType.READ]
        found = {}

        if reads:
            keys = [document_key(op.partition_key, op.id) for op in reads]
            try:
                async for document in self.collection.find({"_id": {"$in": keys}}):
                    found[(document["_id"]["pk"], document["_id"]["id"])] = from_document(document)
            except PyMongoError as e:
                raise store_error(e) from e

        for op in operations:
            if op.operation_type is OperationType.READ:
                item = found.get((op.partition_key, op.id))
                results.append(OperationResult(status_code=200, resource_body=item) if item is not None else OperationResult(status_code=404))
                continue

            try:
                if op.operation_type is OperationType.DELETE:
                    await self.delete(op.id, op.partition_key)
                    results.append(OperationResult(status_code=204))
                elif op.operation_type is OperationType.CREATE:
                    created = await self.create(op.resource_body)
                    results.append(OperationResult(status_code=created.status_code, resource_body=created.resource))
                else:
                    upserted = await self.upsert(op.resource_body)
                    results.append(OperationResult(status_code=upserted.status_code, resource_body=upserted.resource))
            except (ConflictError, NotFoundError, StoreError) as e:
                results.append(OperationResult(status_code=e.status_code))

        return results

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query(self, query: Query):
        logger.debug(f"Query on {self.name}: {query.text} {query.parameters}")
        try:
            if query.is_count:
                yield [await self.collection.count_documents(query.to_filter())]
                return

            cursor = self.collection.find(query.to_filter(), batch_size=self.page_size)
            while True:
                page = await cursor.to_list(length=self.page_size)
                if not page:
                    break
                yield [from_document(document) for document in page]
        except PyMongoError as e:
            raise store_error(e) from e

    async def read_all(self):
        try:
            cursor = self.collection.find({}, batch_size=self.page_size)
            while True:
                page = await cursor.to_list(length=self.page_size)
                if not page:
                    break
                yield [from_document(document) for document in page]
        except PyMongoError as e:
            raise store_error(e) from e
