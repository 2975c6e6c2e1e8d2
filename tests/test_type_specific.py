"""Tests for the type-specific Database operations."""

import pytest

from dlxdb.models.containers import Container

from factories import language, lexeme, new_id

BAD_ID = "abc123"


def permissions(public=False, admins=(), editors=(), viewers=()):
    return {
        "public": public,
        "admins": list(admins),
        "editors": list(editors),
        "viewers": list(viewers),
    }


def project(**fields):
    item = {"type": "Project"}
    item.update(fields)
    return item


class TestLanguages:

    @pytest.mark.asyncio
    async def test_get_language(self, db):
        seeded = await db.seed_one("metadata", language(test=new_id()))
        response = await db.get_language(seeded.resource["id"])

        assert response.status == 200
        assert response.data["test"] == seeded.resource["test"]

    @pytest.mark.asyncio
    async def test_get_language_404(self, db):
        response = await db.get_language(BAD_ID)

        assert response.status == 404
        assert response.data is None

    @pytest.mark.asyncio
    async def test_get_languages_only_returns_languages(self, db):
        await db.seed_many("metadata", 3, language())
        await db.seed_many("metadata", 3, project())

        response = await db.get_languages()

        assert response.status == 200
        assert len(response.data) == 3
        assert all(item["type"] == "Language" for item in response.data)

    @pytest.mark.asyncio
    async def test_get_languages_drains_every_page(self, db, stores):
        stores[Container.METADATA].page_size = 10

        await db.seed_many("metadata", 25, language())
        response = await db.get_languages()

        assert len(response.data) == 25

    @pytest.mark.asyncio
    async def test_option_permissions(self, db):
        user = new_id()
        await db.seed_one("metadata", language(permissions=permissions(admins=[user])))
        await db.seed_one("metadata", language(permissions=permissions(viewers=[user])))
        await db.seed_one("metadata", language(permissions=permissions(public=True)))

        response = await db.get_languages(permissions=user)
        assert len(response.data) == 2

    @pytest.mark.asyncio
    async def test_option_project(self, db):
        project_id = new_id()
        await db.seed_many("metadata", 2, language(projects=[{"id": project_id}]))
        await db.seed_many("metadata", 2, language(projects=[{"id": new_id()}]))

        response = await db.get_languages(project=project_id)
        assert len(response.data) == 2

    @pytest.mark.asyncio
    async def test_option_public(self, db):
        await db.seed_one("metadata", language(permissions=permissions(public=True)))
        await db.seed_one("metadata", language(permissions=permissions(public=False)))
        await db.seed_one("metadata", language())

        response = await db.get_languages(public=True)
        assert len(response.data) == 1

    @pytest.mark.asyncio
    async def test_option_user(self, db):
        user = new_id()
        public = await db.seed_one("metadata", language(permissions=permissions(public=True)))
        await db.seed_one("metadata", language(permissions=permissions()))
        admin = await db.seed_one("metadata", language(permissions=permissions(admins=[user])))

        response = await db.get_languages(user=user)

        assert response.status == 200
        assert len(response.data) == 2
        assert {item["id"] for item in response.data} == {public.resource["id"], admin.resource["id"]}

    @pytest.mark.asyncio
    async def test_options_combine_with_and(self, db):
        user = new_id()
        project_id = new_id()
        await db.seed_one("metadata", language(projects=[{"id": project_id}], permissions=permissions(editors=[user])))
        await db.seed_one("metadata", language(projects=[{"id": project_id}], permissions=permissions()))
        await db.seed_one("metadata", language(permissions=permissions(editors=[user])))

        response = await db.get_languages(project=project_id, user=user)
        assert len(response.data) == 1


class TestLexemes:

    @pytest.mark.asyncio
    async def test_get_lexeme(self, db):
        seeded = await db.seed_one("data", lexeme(lemma={"eng": "cat"}))
        response = await db.get_lexeme(seeded.resource["language"]["id"], seeded.resource["id"])

        assert response.status == 200
        assert response.data["lemma"]["eng"] == "cat"

    @pytest.mark.asyncio
    async def test_get_lexeme_404(self, db):
        response = await db.get_lexeme(new_id(), BAD_ID)
        assert response.status == 404

    @pytest.mark.asyncio
    async def test_get_lexemes(self, db):
        language_a = new_id()
        project_id = new_id()
        await db.seed_many("data", 2, lexeme(language_a, projects=[{"id": project_id}]))
        await db.seed_many("data", 2, lexeme(language_a))
        await db.seed_many("data", 2, lexeme(projects=[{"id": project_id}]))

        assert len((await db.get_lexemes()).data) == 6
        assert len((await db.get_lexemes(language=language_a)).data) == 4
        assert len((await db.get_lexemes(project=project_id)).data) == 4
        assert len((await db.get_lexemes(language=language_a, project=project_id)).data) == 2


class TestProjects:

    @pytest.mark.asyncio
    async def test_get_project(self, db):
        seeded = await db.seed_one("metadata", project(name="Chitimacha"))
        response = await db.get_project(seeded.resource["id"])

        assert response.status == 200
        assert response.data["name"] == "Chitimacha"

    @pytest.mark.asyncio
    async def test_get_projects(self, db):
        user = new_id()
        await db.seed_one("metadata", project(permissions=permissions(public=True)))
        await db.seed_one("metadata", project(permissions=permissions(viewers=[user])))
        await db.seed_one("metadata", project(permissions=permissions()))

        everything = await db.get_projects()
        visible = await db.get_projects(user=user)
        anonymous = await db.get_projects(user=None)

        assert len(everything.data) == 3
        assert len(visible.data) == 2
        assert len(anonymous.data) == 1


class TestReferences:

    @pytest.mark.asyncio
    async def test_get_reference(self, db):
        seeded = await db.seed_one("metadata", {"type": "BibliographicSource", "title": "A Grammar"})
        response = await db.get_reference(seeded.resource["id"])

        assert response.status == 200
        assert response.data["title"] == "A Grammar"

    @pytest.mark.asyncio
    async def test_get_references(self, db):
        await db.seed_many("metadata", 3, {"type": "BibliographicSource", "title": "A Grammar"})
        await db.seed_many("metadata", 2, language())

        response = await db.get_references()

        assert response.status == 200
        assert len(response.data) == 3
