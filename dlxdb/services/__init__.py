from .batch_executor import BatchExecutor
from .query_builder import Query, QueryBuilder
from .type_router import TypeRouter
from .validator import SchemaRegistry, ValidationGate

__all__ = [
    "BatchExecutor",
    "Query",
    "QueryBuilder",
    "SchemaRegistry",
    "TypeRouter",
    "ValidationGate",
]
