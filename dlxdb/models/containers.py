"""
Container models
The two logical containers of the database and the type > container table
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class Container(str, Enum):
    """Logical containers in the database"""
    DATA = "data"            # partitioned by language.id
    METADATA = "metadata"    # partitioned by type

    @classmethod
    def coerce(cls, value) -> "Container":
        """Convert a container name to a Container, rejecting unknown names"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            names = ", ".join(f"'{c.value}'" for c in cls)
            raise ValueError(f"Unknown container {value!r}. Expected one of: {names}.") from None

    @property
    def partition_key_path(self) -> str:
        """Path of the partition key field, in store notation"""
        return "/language/id" if self is Container.DATA else "/type"

    def partition_key_of(self, item: Dict[str, Any]) -> Optional[Any]:
        """Value of the partition key for an item, or None if it has none"""
        if self is Container.DATA:
            language = item.get("language")
            return language.get("id") if isinstance(language, dict) else None
        return item.get("type")

    def __str__(self) -> str:
        return self.value


# Fixed type > container table. Never mutated after import.
DEFAULT_TYPES: Mapping[str, Container] = MappingProxyType({
    "BibliographicSource": Container.METADATA,
    "Language":            Container.METADATA,
    "Lexeme":              Container.DATA,
    "Person":              Container.METADATA,
    "Project":             Container.METADATA,
    "Text":                Container.DATA,
    "User":                Container.METADATA,
})
