"""
DLx database access layer
Routes, validates, and dispatches items to the `data` and `metadata` containers

MongoDB connection management uses motor (async MongoDB driver).
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from motor.motor_asyncio import AsyncIOMotorClient

from dlxdb.config import Settings, settings
from dlxdb.exceptions import (
    BadRequestError,
    ConflictError,
    DatabaseError,
    PartialFailureError,
    ValidationError,
)
from dlxdb.models.containers import Container
from dlxdb.models.operations import (
    ItemResult,
    Operation,
    OperationResult,
    OperationType,
    StoreResult,
)
from dlxdb.models.response import DatabaseResponse
from dlxdb.models.validation import ValidationResult
from dlxdb.services.batch_executor import BatchExecutor
from dlxdb.services.query_builder import Query, QueryBuilder
from dlxdb.services.type_router import TypeRouter
from dlxdb.services.validator import SchemaRegistry, ValidationGate
from dlxdb.stores.base import ContainerStore
from dlxdb.stores.mongo import MongoStore
from dlxdb.utils.chunking import chunk

logger = logging.getLogger(__name__)

ContainerName = Union[Container, str]


class Database:
    """
    Data-access layer over a partitioned document store

    Example:
        >>> db = Database({Container.DATA: data_store, Container.METADATA: metadata_store})
        >>> response = await db.add_one("data", lexeme)
        >>> response.status
        201
    """

    def __init__(
        self,
        stores: Mapping[ContainerName, ContainerStore],
        router: Optional[TypeRouter] = None,
        registry: Optional[SchemaRegistry] = None,
        bulk_limit: Optional[int] = None,
        name: Optional[str] = None,
    ):
        """
        Initialize database

        Args:
            stores: One ContainerStore per container
            router: Type router (default: the fixed type table)
            registry: Schema registry (default: bundled schemas)
            bulk_limit: Max operations per physical batch request
            name: Database name, used for logging and the clear() guard
        """
        self.stores: Dict[Container, ContainerStore] = {
            Container.coerce(container): store for container, store in stores.items()
        }

        missing = [c.value for c in Container if c not in self.stores]
        if missing:
            raise ValueError(f"Missing stores for containers: {', '.join(missing)}")

        self.name = name or settings.DATABASE_NAME
        self.bulk_limit = bulk_limit or settings.BULK_LIMIT
        self.router = router or TypeRouter()
        self.registry = registry or SchemaRegistry.default()
        self.gate = ValidationGate(self.router, self.registry)
        self.executor = BatchExecutor(self.gate, bulk_limit=self.bulk_limit)

    def store(self, container: ContainerName) -> ContainerStore:
        """Store for a container. Raises ValueError for unknown container names."""
        return self.stores[Container.coerce(container)]

    @property
    def data(self) -> ContainerStore:
        return self.stores[Container.DATA]

    @property
    def metadata(self) -> ContainerStore:
        return self.stores[Container.METADATA]

    # ========================================================================
    # DEV METHODS
    # ========================================================================

    async def clear(self):
        """Delete every item from every container"""
        if settings.is_production and self.name == settings.DATABASE_NAME:
            raise RuntimeError(f"Refusing to clear the production database {self.name!r}.")

        logger.info(f"Clearing the {self.name!r} database")
        await asyncio.gather(*(self.clear_container(container) for container in Container))
        logger.info(f"The {self.name!r} database has been cleared")

    async def clear_container(self, container: ContainerName):
        """Delete every item from one container"""
        store = self.store(container)
        items = []

        async for page in store.read_all():
            items.extend(page)

        for batch in chunk(items, self.bulk_limit):
            operations = [
                Operation(
                    operation_type=OperationType.DELETE,
                    id=item["id"],
                    partition_key=store.partition_key_of(item),
                )
                for item in batch
            ]
            await store.bulk(operations)

        logger.debug(f"Deleted {len(items)} items from {store.name}")

    async def seed_one(self, container: ContainerName, item: Dict[str, Any]) -> StoreResult:
        """
        Add a single item for testing

        Raises:
            ValidationError: If the item is invalid
        """
        result = self.validate(item, container)
        if not result.valid:
            logger.error(f"Cannot seed invalid item: {result.errors}")
            raise ValidationError(result.errors)

        return await self.store(container).create(item)

    async def seed_many(self, container: ContainerName, count: int, item: Dict[str, Any]) -> List[OperationResult]:
        """
        Add `count` copies of an item for testing. IDs are assigned by the store.

        Raises:
            ValidationError: If the item is invalid
            PartialFailureError: If a chunk of copies could not be written
        """
        result = self.validate(item, container)
        if not result.valid:
            logger.error(f"Cannot seed invalid item: {result.errors}")
            raise ValidationError(result.errors)

        store = self.store(container)
        template = {key: value for key, value in item.items() if key != "id"}
        partition_key = store.partition_key_of(template)

        operations = [
            Operation(operation_type=OperationType.CREATE, resource_body=dict(template))
            for _ in range(count)
        ]

        results = []

        for batch in chunk(operations, self.bulk_limit):
            response = await store.batch(batch, partition_key)
            if response.is_multi_status:
                raise PartialFailureError(results + response.result)
            results.extend(response.result)

        logger.info(f"Seeded {count} {item.get('type')} items into {store.name}")
        return results

    # ========================================================================
    # GENERIC METHODS
    # ========================================================================

    def validate(self, item: Dict[str, Any], container: Optional[ContainerName] = None) -> ValidationResult:
        """Validate a top-level database item, optionally against the container it is written to"""
        return self.gate.validate(item, container)

    async def add_one(self, container: ContainerName, item: Dict[str, Any]) -> DatabaseResponse:
        """
        Add a single item

        Returns:
            201 with the created item, 409 if the ID exists in the partition,
            422 if invalid or its type belongs in another container
        """
        store = self.store(container)
        result = self.validate(item, container)

        if not result.valid:
            return DatabaseResponse.validation_error(result.errors)

        try:
            created = await store.create(item)
        except ConflictError:
            logger.warning(f"Conflict adding item {item.get('id')} to {store.name}")
            return DatabaseResponse(message=f"Item with ID {item.get('id')} already exists.", status=409)
        except DatabaseError as e:
            return DatabaseResponse.from_error(e)

        return DatabaseResponse(data=created.resource, status=created.status_code)

    async def add_many(
        self,
        container: ContainerName,
        partition_key: Any,
        items: Union[Iterable[Dict[str, Any]], Mapping[Any, Dict[str, Any]]] = (),
    ) -> DatabaseResponse:
        """
        Add multiple items to one partition (data: `language.id`, metadata: `type`)

        Returns:
            201 with the created items, 207 with per-item results if a chunk failed, 422 if any item is invalid
        """
        return await self.executor.execute(self.store(container), partition_key, OperationType.CREATE, items)

    async def count(self, type: str, language: Optional[str] = None, project: Optional[str] = None) -> DatabaseResponse:
        """
        Count the items of a type

        Args:
            type: Type of item to count
            language: Only count items in this language
            project: Only count items that embed this project

        Returns:
            200 with {"count": n}
        """
        container = self.router.resolve(type)

        if container is None:
            return DatabaseResponse(message=f"Unknown item type {type!r}.", status=400)

        for option, value in (("language", language), ("project", project)):
            if value and not isinstance(value, str):
                return DatabaseResponse(message=f"The {option!r} option must be a string.", status=400)

        query = QueryBuilder(container, type).language(language).project(project).build_count()

        try:
            values = await self._run(container, query)
        except DatabaseError as e:
            return DatabaseResponse.from_error(e)

        return DatabaseResponse(data={"count": values[0] if values else 0})

    async def get_one(self, container: ContainerName, partition_key: Any, id: str) -> DatabaseResponse:
        """
        Get a single item by partition key and ID

        Returns:
            200 with the item, or 404 with no data
        """
        try:
            result = await self.store(container).read(id, partition_key)
        except DatabaseError as e:
            return DatabaseResponse.from_error(e)

        return DatabaseResponse(data=result.resource, status=result.status_code)

    async def get_many(self, container: ContainerName, partition_key: Any, ids: Iterable[str] = ()) -> DatabaseResponse:
        """
        Get multiple items from one partition

        Returns:
            207 with one {id, status, data} result per ID in request order,
            or 400 if more IDs than the bulk limit were requested
        """
        store = self.store(container)
        ids = list(ids)

        if len(ids) > self.bulk_limit:
            return DatabaseResponse(
                message=f"You can only retrieve {self.bulk_limit} items at a time.",
                status=400,
            )

        operations = [
            Operation(operation_type=OperationType.READ, id=id, partition_key=partition_key)
            for id in ids
        ]

        try:
            results = await store.bulk(operations) if operations else []
        except DatabaseError as e:
            return DatabaseResponse.from_error(e)

        data = [
            ItemResult(id=operation.id, status=result.status_code, data=result.resource_body)
            for operation, result in zip(operations, results)
        ]

        return DatabaseResponse(data=data, status=207)

    async def upsert_one(self, container: ContainerName, item: Dict[str, Any]) -> DatabaseResponse:
        """
        Create or replace a single item

        Returns:
            200 with the item, 422 if invalid or its type belongs in another container
        """
        store = self.store(container)
        result = self.validate(item, container)

        if not result.valid:
            return DatabaseResponse.validation_error(result.errors)

        try:
            upserted = await store.upsert(item)
        except DatabaseError as e:
            return DatabaseResponse.from_error(e)

        return DatabaseResponse(data=upserted.resource, status=200)

    async def upsert_many(
        self,
        container: ContainerName,
        partition_key: Any,
        items: Union[Iterable[Dict[str, Any]], Mapping[Any, Dict[str, Any]]] = (),
    ) -> DatabaseResponse:
        """
        Create or replace multiple items in one partition

        Returns:
            200 with the items, 207 with per-item results if a chunk failed, 422 if any item is invalid
        """
        return await self.executor.execute(self.store(container), partition_key, OperationType.UPSERT, items)

    async def _run(self, container: Container, query: Query) -> List[Any]:
        """Drain a query's pages into one list"""
        results = []
        async for page in self.store(container).query(query):
            results.extend(page)
        return results

    async def _list(self, query: Query) -> DatabaseResponse:
        try:
            data = await self._run(query.container, query)
        except DatabaseError as e:
            return DatabaseResponse.from_error(e)
        return DatabaseResponse(data=data)

    # ========================================================================
    # TYPE-SPECIFIC METHODS
    # ========================================================================

    async def get_language(self, id: str) -> DatabaseResponse:
        return await self.get_one(Container.METADATA, "Language", id)

    async def get_languages(
        self,
        permissions: Optional[str] = None,
        project: Optional[str] = None,
        public: bool = False,
        user: Optional[str] = None,
    ) -> DatabaseResponse:
        """
        Get multiple languages

        Args:
            permissions: Only languages this user has explicit permissions on
            project: Only languages that embed this project
            public: Only public languages
            user: Only languages this user can view (public, or any role)
        """
        query = (
            QueryBuilder(Container.METADATA, "Language")
            .permissions(permissions)
            .project(project)
            .public_only(public)
            .visible_to(user)
            .build()
        )
        return await self._list(query)

    async def get_lexeme(self, language: str, id: str) -> DatabaseResponse:
        return await self.get_one(Container.DATA, language, id)

    async def get_lexemes(self, language: Optional[str] = None, project: Optional[str] = None) -> DatabaseResponse:
        query = QueryBuilder(Container.DATA, "Lexeme").language(language).project(project).build()
        return await self._list(query)

    async def get_project(self, id: str) -> DatabaseResponse:
        return await self.get_one(Container.METADATA, "Project", id)

    async def get_projects(self, **options) -> DatabaseResponse:
        """
        Get multiple projects

        Passing `user` filters to projects that user can view. Passing a falsy
        `user` (e.g. an anonymous visitor) returns only public projects.
        """
        builder = QueryBuilder(Container.METADATA, "Project")

        if "user" in options:
            if options["user"]:
                builder.visible_to(options["user"])
            else:
                builder.public_only()

        return await self._list(builder.build())

    async def get_reference(self, id: str) -> DatabaseResponse:
        return await self.get_one(Container.METADATA, "BibliographicSource", id)

    async def get_references(self) -> DatabaseResponse:
        return await self._list(QueryBuilder(Container.METADATA, "BibliographicSource").build())


# ============================================================================
# Connection management
# ============================================================================

# Global database client
mongodb_client: Optional[AsyncIOMotorClient] = None
database: Optional[Database] = None


async def connect_db(config: Settings = settings) -> Database:
    """Connect to MongoDB and build the database layer"""
    global mongodb_client, database

    try:
        mongodb_client = AsyncIOMotorClient(config.MONGODB_URL)
        mongo_database = mongodb_client[config.DATABASE_NAME]

        # Test connection
        await mongodb_client.admin.command('ping')
        logger.info(f"Connected to MongoDB: {config.DATABASE_NAME}")

    except Exception as e:
        logger.error(f"MongoDB connection failed: {e}")
        raise

    stores = {
        container: MongoStore(
            mongo_database[container.value],
            container,
            bulk_limit=config.BULK_LIMIT,
            page_size=config.QUERY_PAGE_SIZE,
        )
        for container in Container
    }

    database = Database(stores, bulk_limit=config.BULK_LIMIT, name=config.DATABASE_NAME)
    return database


async def close_db():
    """Close MongoDB connection"""
    global mongodb_client, database

    if mongodb_client:
        mongodb_client.close()
        mongodb_client = None
        database = None
        logger.info("MongoDB connection closed")


async def get_database() -> Optional[Database]:
    """Get database instance"""
    return database
