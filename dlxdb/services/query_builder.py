"""
Query Builder
Composes filtered list and count queries from optional predicates

Every predicate renders three ways:
- store query text, with values bound as named @parameters (never interpolated)
- a MongoDB filter document
- an in-process match against a single item

The top level is always AND, starting with the mandatory type filter.
Project filters only inspect projects embedded on the item itself; the
store cannot join across items.
"""

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, List, Optional, Tuple

from dlxdb.models.containers import Container

logger = logging.getLogger(__name__)

ROLES = ("admins", "editors", "viewers")

_MISSING = object()


def resolve_path(item: Any, path: str) -> Any:
    """Follow a dotted path into nested dicts, returning _MISSING when absent"""
    value = item
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _same(actual: Any, expected: Any) -> bool:
    # true must not equal 1
    return type(actual) is type(expected) and actual == expected


class ParameterBinder:
    """Collects named query parameters"""

    def __init__(self):
        self._values: Dict[str, Any] = {}

    def bind(self, hint: str, value: Any) -> str:
        name = f"@{hint}"
        suffix = 1
        while name in self._values and not _same(self._values[name], value):
            name = f"@{hint}{suffix}"
            suffix += 1
        self._values[name] = value
        return name

    @property
    def parameters(self) -> List[Dict[str, Any]]:
        return [{"name": name, "value": value} for name, value in self._values.items()]

# ============================================================================
# Predicates
# ============================================================================

class Predicate:
    """Base class for query predicates"""

    def render(self, alias: str, binder: ParameterBinder) -> str:
        raise NotImplementedError

    def to_filter(self) -> Dict[str, Any]:
        raise NotImplementedError

    def matches(self, item: Dict[str, Any]) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class Equals(Predicate):
    path: str
    value: Any
    param: str = "value"

    def render(self, alias, binder):
        return f"{alias}.{self.path} = {binder.bind(self.param, self.value)}"

    def to_filter(self):
        return {self.path: self.value}

    def matches(self, item):
        return _same(resolve_path(item, self.path), self.value)


@dataclass(frozen=True)
class ArrayContains(Predicate):
    path: str
    value: Any
    param: str = "value"

    def render(self, alias, binder):
        return f"ARRAY_CONTAINS({alias}.{self.path}, {binder.bind(self.param, self.value)})"

    def to_filter(self):
        return {self.path: self.value}

    def matches(self, item):
        values = resolve_path(item, self.path)
        return isinstance(values, list) and any(_same(v, self.value) for v in values)


@dataclass(frozen=True)
class EmbeddedExists(Predicate):
    """An embedded collection contains an entry whose `field` equals `value`"""
    collection: str
    field: str
    value: Any
    param: str = "value"
    variable: str = "entry"

    def render(self, alias, binder):
        name = binder.bind(self.param, self.value)
        return (
            f"EXISTS(SELECT VALUE {self.variable} "
            f"FROM {self.variable} IN {alias}.{self.collection} "
            f"WHERE {self.variable}.{self.field} = {name})"
        )

    def to_filter(self):
        return {self.collection: {"$elemMatch": {self.field: self.value}}}

    def matches(self, item):
        entries = resolve_path(item, self.collection)
        if not isinstance(entries, list):
            return False
        return any(isinstance(e, dict) and _same(e.get(self.field, _MISSING), self.value) for e in entries)


@dataclass(frozen=True)
class AllOf(Predicate):
    parts: Tuple[Predicate, ...]

    def render(self, alias, binder):
        return " AND ".join(
            f"({p.render(alias, binder)})" if isinstance(p, AnyOf) and len(p.parts) > 1 else p.render(alias, binder)
            for p in self.parts
        )

    def to_filter(self):
        if len(self.parts) == 1:
            return self.parts[0].to_filter()
        return {"$and": [p.to_filter() for p in self.parts]}

    def matches(self, item):
        return all(p.matches(item) for p in self.parts)


@dataclass(frozen=True)
class AnyOf(Predicate):
    parts: Tuple[Predicate, ...]

    def render(self, alias, binder):
        return " OR ".join(p.render(alias, binder) for p in self.parts)

    def to_filter(self):
        if len(self.parts) == 1:
            return self.parts[0].to_filter()
        return {"$or": [p.to_filter() for p in self.parts]}

    def matches(self, item):
        return any(p.matches(item) for p in self.parts)


def has_role(user: str) -> AnyOf:
    """User is an admin, editor, or viewer"""
    return AnyOf(tuple(ArrayContains(f"permissions.{role}", user, param="user") for role in ROLES))

# ============================================================================
# Queries
# ============================================================================

@dataclass(frozen=True)
class Query:
    """A built query against one container"""
    container: Container
    predicate: AllOf
    kind: str = "items"    # "items" or "count"

    @cached_property
    def _compiled(self) -> Tuple[str, List[Dict[str, Any]]]:
        binder = ParameterBinder()
        alias = self.container.value
        where = self.predicate.render(alias, binder)
        select = "SELECT VALUE COUNT(1)" if self.is_count else "SELECT *"
        return f"{select} FROM {alias} WHERE {where}", binder.parameters

    @property
    def is_count(self) -> bool:
        return self.kind == "count"

    @property
    def text(self) -> str:
        return self._compiled[0]

    @property
    def parameters(self) -> List[Dict[str, Any]]:
        return [dict(p) for p in self._compiled[1]]

    def to_spec(self) -> Dict[str, Any]:
        """Query text and parameters in the shape SQL-style document stores accept"""
        return {"query": self.text, "parameters": self.parameters}

    def to_filter(self) -> Dict[str, Any]:
        return self.predicate.to_filter()

    def matches(self, item: Dict[str, Any]) -> bool:
        return self.predicate.matches(item)


class QueryBuilder:
    """
    Builds list and count queries for one entity type

    Example:
        >>> query = QueryBuilder(Container.DATA, "Lexeme").language(lang_id).project(project_id).build()
    """

    def __init__(self, container: Container, type_: str):
        self.container = Container.coerce(container)
        self._predicates: List[Predicate] = [Equals("type", type_, param="type")]

    def _add(self, predicate: Predicate) -> "QueryBuilder":
        self._predicates.append(predicate)
        return self

    def language(self, language: Optional[str]) -> "QueryBuilder":
        """Only items in this language"""
        if language:
            self._add(Equals("language.id", language, param="language"))
        return self

    def project(self, project: Optional[str]) -> "QueryBuilder":
        """Only items that embed a reference to this project"""
        if project:
            self._add(EmbeddedExists("projects", "id", project, param="project", variable="project"))
        return self

    def permissions(self, user: Optional[str]) -> "QueryBuilder":
        """Only items the user has explicit permissions on"""
        if user:
            self._add(AnyOf(tuple(
                ArrayContains(f"permissions.{role}", user, param="permissions") for role in ROLES
            )))
        return self

    def public_only(self, public: bool = True) -> "QueryBuilder":
        """Only public items"""
        if public:
            self._add(Equals("permissions.public", True, param="public"))
        return self

    def visible_to(self, user: Optional[str]) -> "QueryBuilder":
        """Public items plus items the user has any role on"""
        if user:
            self._add(AnyOf((Equals("permissions.public", True, param="public"),) + has_role(user).parts))
        return self

    def _predicate(self) -> AllOf:
        return AllOf(tuple(self._predicates))

    def build(self) -> Query:
        query = Query(self.container, self._predicate())
        logger.debug(f"Built query: {query.text}")
        return query

    def build_count(self) -> Query:
        query = Query(self.container, self._predicate(), kind="count")
        logger.debug(f"Built count query: {query.text}")
        return query
