"""Tests for the in-process store"""

import pytest

from dlxdb.exceptions import BadRequestError, ConflictError, NotFoundError
from dlxdb.models.containers import Container
from dlxdb.models.operations import Operation, OperationType
from dlxdb.stores.memory import MemoryStore

from factories import lexeme, new_id


@pytest.fixture
def store():
    return MemoryStore(Container.DATA, bulk_limit=5, page_size=2)


def create(item):
    return Operation(operation_type=OperationType.CREATE, resource_body=item)


class TestPointOperations:

    @pytest.mark.asyncio
    async def test_create_assigns_id(self, store):
        result = await store.create(lexeme())

        assert result.status_code == 201
        assert result.resource["id"]
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_create_conflict(self, store):
        item = lexeme(id=new_id())
        await store.create(item)

        with pytest.raises(ConflictError) as exc:
            await store.create(item)
        assert exc.value.id == item["id"]

    @pytest.mark.asyncio
    async def test_read_missing(self, store):
        result = await store.read("missing", new_id())

        assert result.status_code == 404
        assert result.resource is None

    @pytest.mark.asyncio
    async def test_upsert_status(self, store):
        item = lexeme(id=new_id())

        assert (await store.upsert(item)).status_code == 201
        assert (await store.upsert(item)).status_code == 200
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            await store.delete("missing", new_id())

    @pytest.mark.asyncio
    async def test_returned_items_are_copies(self, store):
        item = lexeme(id=new_id())
        await store.create(item)

        read = await store.read(item["id"], item["language"]["id"])
        read.resource["type"] = "Text"

        again = await store.read(item["id"], item["language"]["id"])
        assert again.resource["type"] == "Lexeme"


class TestBatch:

    @pytest.mark.asyncio
    async def test_success(self, store):
        language_id = new_id()
        response = await store.batch([create(lexeme(language_id)) for _ in range(3)], language_id)

        assert response.code == 200
        assert [r.status_code for r in response.result] == [201, 201, 201]
        assert len(store) == 3

    @pytest.mark.asyncio
    async def test_failure_rolls_back(self, store):
        language_id = new_id()
        existing = lexeme(language_id, id=new_id())
        await store.create(existing)

        operations = [create(lexeme(language_id)), create(dict(existing)), create(lexeme(language_id))]
        response = await store.batch(operations, language_id)

        assert response.code == 207
        assert response.substatus == 409
        assert [r.status_code for r in response.result] == [424, 409, 424]
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_wrong_partition(self, store):
        response = await store.batch([create(lexeme())], new_id())

        assert response.code == 207
        assert response.result[0].status_code == 400
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_size_limit(self, store):
        language_id = new_id()
        with pytest.raises(BadRequestError):
            await store.batch([create(lexeme(language_id)) for _ in range(6)], language_id)
        assert store.calls["batch"] == 0


class TestBulk:

    @pytest.mark.asyncio
    async def test_continues_past_failures(self, store):
        item = lexeme(id=new_id())
        await store.create(item)
        partition_key = item["language"]["id"]

        operations = [
            Operation(operation_type=OperationType.READ, id="missing", partition_key=partition_key),
            Operation(operation_type=OperationType.READ, id=item["id"], partition_key=partition_key),
            Operation(operation_type=OperationType.DELETE, id=item["id"], partition_key=partition_key),
        ]
        results = await store.bulk(operations)

        assert [r.status_code for r in results] == [404, 200, 204]
        assert results[1].resource_body["id"] == item["id"]
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_size_limit(self, store):
        operations = [Operation(operation_type=OperationType.READ, id=str(i)) for i in range(6)]
        with pytest.raises(BadRequestError):
            await store.bulk(operations)


class TestPaging:

    @pytest.mark.asyncio
    async def test_read_all_pages(self, store):
        language_id = new_id()
        await store.batch([create(lexeme(language_id)) for _ in range(5)], language_id)

        pages = [page async for page in store.read_all()]

        assert [len(page) for page in pages] == [2, 2, 1]
