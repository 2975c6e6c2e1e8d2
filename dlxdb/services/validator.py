"""
Validation Gate
Checks items before any write reaches the store

VALIDATION ORDER:
    1. `type` must be present and known to the type router
    2. when a target container is given, it must be the one the type routes to
    3. items in the `data` container need a string `language.id` (partition key)
    4. structural JSON Schema check, preferring the database override schema

Steps 1 to 3 fail fast; no schema check is attempted when they fail.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from jsonschema import Draft202012Validator
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from dlxdb.config import settings
from dlxdb.models.containers import Container
from dlxdb.models.validation import ValidationIssue, ValidationResult
from dlxdb.services.type_router import TypeRouter

logger = logging.getLogger(__name__)

SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"

# Types whose database schema extends the general schema under a different name.
# BibliographicSource is not listed: its database schema replaces the general one.
SCHEMA_OVERRIDES: Mapping[str, str] = MappingProxyType({
    "Language": "DatabaseLanguage",
    "Lexeme":   "DatabaseLexeme",
    "Text":     "DatabaseText",
})


class SchemaRegistry:
    """
    JSON Schema registry keyed by schema ID

    Schemas reference each other by relative `$ref`, resolved against their `$id`.
    """

    def __init__(self, schemas: Iterable[Dict[str, Any]], base_url: str = None):
        self.base_url = (base_url or settings.SCHEMA_BASE_URL).rstrip("/")
        self._schemas: Dict[str, Dict[str, Any]] = {}

        for schema in schemas:
            schema_id = schema.get("$id")
            if not schema_id:
                raise ValueError(f"Schema {schema.get('title', '<untitled>')!r} has no $id")
            # Later schemas with the same $id replace earlier ones
            self._schemas[schema_id] = schema

        self._registry = Registry().with_resources(
            (schema_id, Resource.from_contents(schema, default_specification=DRAFT202012))
            for schema_id, schema in self._schemas.items()
        )
        self._validators: Dict[str, Draft202012Validator] = {
            schema_id: Draft202012Validator(
                schema,
                registry=self._registry,
                format_checker=Draft202012Validator.FORMAT_CHECKER,
            )
            for schema_id, schema in self._schemas.items()
        }

        logger.debug(f"Schema registry loaded ({len(self._schemas)} schemas)")

    @classmethod
    def from_directory(cls, path: Union[str, Path], base_url: str = None) -> "SchemaRegistry":
        """
        Load general schemas from `path` and database schemas from `path/database`

        Database schemas are loaded last so they replace general schemas with the same $id.
        """
        path = Path(path)
        files = sorted(path.glob("*.json")) + sorted((path / "database").glob("*.json"))
        schemas = []
        for file in files:
            with open(file, encoding="utf-8") as f:
                schemas.append(json.load(f))
        return cls(schemas, base_url=base_url)

    @classmethod
    def default(cls) -> "SchemaRegistry":
        """Registry preloaded with the bundled schemas"""
        return cls.from_directory(SCHEMAS_DIR)

    def schema_id(self, name: str) -> str:
        return f"{self.base_url}/{name}.json"

    def __contains__(self, schema_id: str) -> bool:
        return schema_id in self._schemas

    def validate(self, schema_id: str, item: Any) -> ValidationResult:
        """
        Validate an item against a registered schema

        Returns:
            ValidationResult with errors=None when valid
        """
        validator = self._validators.get(schema_id)

        if validator is None:
            issue = ValidationIssue(message=f"No schema registered with ID {schema_id}.", cause=item)
            return ValidationResult.failed(issue)

        errors = [self._to_issue(error, item) for error in validator.iter_errors(item)]

        if not errors:
            return ValidationResult.ok()

        return ValidationResult(valid=False, errors=errors)

    @staticmethod
    def _to_issue(error, item) -> ValidationIssue:
        instance_path = "".join(f"/{part}" for part in error.absolute_path)
        params = None

        if error.validator == "required" and isinstance(error.instance, dict):
            for name in error.validator_value:
                if name not in error.instance and error.message.startswith(repr(name)):
                    params = {"missingProperty": name}
                    break

        return ValidationIssue(
            message=error.message,
            instance_path=instance_path,
            params=params,
            cause=item,
        )


class ValidationGate:
    """
    Pre-write validation for database items
    """

    def __init__(
        self,
        router: TypeRouter,
        registry: SchemaRegistry,
        overrides: Mapping[str, str] = SCHEMA_OVERRIDES,
    ):
        self.router = router
        self.registry = registry
        self.overrides = MappingProxyType(dict(overrides))

    def schema_id_for(self, type_: str) -> str:
        """Schema ID for a type, preferring its database override"""
        override = self.overrides.get(type_)
        if override:
            override_id = self.registry.schema_id(override)
            if override_id in self.registry:
                return override_id
        return self.registry.schema_id(type_)

    def validate(self, item: Any, target: Optional[Container] = None) -> ValidationResult:
        """
        Validate a single top-level database item

        Args:
            item: Item to validate
            target: Container the item is about to be written to, if any
        """

        if not isinstance(item, dict):
            return ValidationResult.failed(ValidationIssue(
                message="Database items must be objects with a valid 'type' property.",
                cause=item,
            ))

        container = self.router.resolve_item(item)

        if container is None:
            return ValidationResult.failed(ValidationIssue(
                message="Database items require a valid 'type' property.",
                instance_path="/type",
                params={"missingProperty": "type"} if "type" not in item else None,
                cause=item,
            ))

        if target is not None:
            target = Container.coerce(target)
            if target is not container:
                return ValidationResult.failed(ValidationIssue(
                    message=f"Items of type '{item['type']}' belong in the '{container.value}' container, not '{target.value}'.",
                    instance_path="/type",
                    cause=item,
                ))

        if container is Container.DATA and not isinstance(container.partition_key_of(item), str):
            return ValidationResult.failed(ValidationIssue(
                message="Items in the 'data' container require a 'language.id' property.",
                instance_path="/language/id",
                cause=item,
            ))

        return self.registry.validate(self.schema_id_for(item["type"]), item)

    def validate_all(self, items: List[Any], target: Optional[Container] = None) -> Optional[ValidationResult]:
        """
        Validate items in order

        Returns:
            The result for the first invalid item, or None when all are valid
        """
        for item in items:
            result = self.validate(item, target)
            if not result.valid:
                return result
        return None
