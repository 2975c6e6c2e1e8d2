"""
Batch Executor
Validates, chunks, and dispatches multi-item writes

Chunks are sent one after another. The first chunk that comes back
multi-status ends the call with a 207; chunks already written stay written.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Union

from dlxdb.exceptions import DatabaseError
from dlxdb.models.operations import BatchResponse, Operation, OperationType
from dlxdb.models.response import DatabaseResponse
from dlxdb.services.validator import ValidationGate
from dlxdb.stores.base import ContainerStore
from dlxdb.utils.chunking import chunk

logger = logging.getLogger(__name__)

SUCCESS_STATUS = {
    OperationType.CREATE: 201,
    OperationType.UPSERT: 200,
}


class BatchState(str, Enum):
    """States of a single execute() call"""
    ACCUMULATING = "accumulating"
    RETURNED = "returned"    # stopped on a multi-status chunk


class BatchRun:
    """
    Aggregation state for one execute() call

    ACCUMULATING -> ACCUMULATING on a uniformly successful chunk
    ACCUMULATING -> RETURNED on the first multi-status chunk
    """

    def __init__(self, operation_type: OperationType):
        self.operation_type = operation_type
        self.state = BatchState.ACCUMULATING
        self.results: List[Dict[str, Any]] = []
        self._returned = None

    def feed(self, response: BatchResponse) -> BatchState:
        if self.state is BatchState.RETURNED:
            raise RuntimeError("No chunks may be fed after a multi-status chunk")

        if response.is_multi_status:
            self.state = BatchState.RETURNED
            self._returned = DatabaseResponse(
                data=response.result,
                status=207,
                substatus=response.substatus,
            )
        else:
            self.results.extend(result.resource_body for result in response.result)

        return self.state

    def finish(self) -> DatabaseResponse:
        if self._returned is not None:
            return self._returned
        return DatabaseResponse(data=self.results, status=SUCCESS_STATUS[self.operation_type])


class BatchExecutor:
    """
    Runs Create and Upsert batches against one partition
    """

    def __init__(self, gate: ValidationGate, bulk_limit: int = 100):
        self.gate = gate
        self.bulk_limit = bulk_limit

    def operations_for(self, operation_type: OperationType, items: List[Dict[str, Any]]) -> List[Operation]:
        return [Operation(operation_type=operation_type, resource_body=item) for item in items]

    async def execute(
        self,
        store: ContainerStore,
        partition_key: Any,
        operation_type: OperationType,
        items: Union[Iterable[Dict[str, Any]], Mapping[Any, Dict[str, Any]]] = (),
    ) -> DatabaseResponse:
        """
        Validate and write items in chunks of at most `bulk_limit`

        Args:
            store: Container store to write to
            partition_key: Partition key *value* shared by every item
            operation_type: Create or Upsert
            items: Items to write, or a mapping whose values are the items

        Returns:
            201 (Create) or 200 (Upsert) with the written bodies, 207 with the
            raw per-item results of the first chunk that failed, or 422 when
            any item is invalid
        """
        operation_type = OperationType(operation_type)

        if operation_type not in SUCCESS_STATUS:
            raise ValueError(f"Batches support Create and Upsert operations, not {operation_type.value}")

        if isinstance(items, Mapping):
            items = list(items.values())
        else:
            items = list(items)

        # All-or-nothing validation, including the target container, before anything is sent
        invalid = self.gate.validate_all(items, store.container)
        if invalid is not None:
            return DatabaseResponse.validation_error(invalid.errors)

        operations = self.operations_for(operation_type, items)
        run = BatchRun(operation_type)

        for number, batch in enumerate(chunk(operations, self.bulk_limit), start=1):
            logger.debug(f"Sending chunk {number} ({len(batch)} {operation_type.value} operations) to {store.name}")

            try:
                response = await store.batch(batch, partition_key)
            except DatabaseError as e:
                logger.error(f"Chunk {number} on {store.name} failed: {e.message}")
                return DatabaseResponse.from_error(e)

            if run.feed(response) is BatchState.RETURNED:
                logger.warning(f"Chunk {number} on {store.name} returned multi-status; stopping")
                break

        return run.finish()
