"""
Type Router
Routes an item's declared type to the container it is stored in
Lexemes, Texts -> data (partitioned by language.id)
Everything else -> metadata (partitioned by type)
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from dlxdb.models.containers import Container, DEFAULT_TYPES

logger = logging.getLogger(__name__)


class TypeRouter:
    """
    Resolves entity types to containers using a fixed table
    """

    def __init__(self, types: Mapping[str, Container] = DEFAULT_TYPES):
        """
        Initialize type router

        Args:
            types: Mapping of entity type > container. Copied and frozen.
        """
        self._types = MappingProxyType({
            type_: Container.coerce(container) for type_, container in types.items()
        })

        logger.debug(f"Type router initialized ({len(self._types)} types)")

    @property
    def types(self) -> Mapping[str, Container]:
        """Read-only view of the type > container table"""
        return self._types

    def resolve(self, type_: Any) -> Optional[Container]:
        """
        Resolve the container for an entity type

        Returns:
            The container, or None if the type is unknown
        """
        if not isinstance(type_, str):
            return None
        return self._types.get(type_)

    def resolve_item(self, item: Dict[str, Any]) -> Optional[Container]:
        """Resolve the container for an item from its `type` property"""
        return self.resolve(item.get("type")) if isinstance(item, dict) else None

    def __contains__(self, type_: Any) -> bool:
        return self.resolve(type_) is not None
