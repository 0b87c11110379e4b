"""
Resolution of content type and reusable schema names from entity classes.
"""

from functools import lru_cache
from typing import Dict, Optional

from shared.logging import get_logger
from ..models.entities import ContentItemFieldsSource, WebPageFieldsSource


CONTENT_TYPE_FIELD_NAME = "CONTENT_TYPE_NAME"
REUSABLE_FIELD_SCHEMA_FIELD_NAME = "REUSABLE_FIELD_SCHEMA_NAME"


def type_key(cls: type) -> str:
    """Fully qualified name of a class."""
    return f"{cls.__module__}.{cls.__qualname__}"


class TypeNameCache:
    """
    Write-once mapping of fully qualified type names to metadata names.

    Created once at process start and never cleared; entity classes are not
    reloaded at runtime. Reads need no lock and writes are idempotent: two
    threads resolving the same class insert the same value and the first
    insert wins.
    """

    def __init__(self):
        self._names: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._names.get(key)

    def add(self, key: str, name: str) -> str:
        return self._names.setdefault(key, name)

    def __contains__(self, key: str) -> bool:
        return key in self._names

    def __len__(self) -> int:
        return len(self._names)


class MetadataResolver:
    """Resolves and memoizes content type and reusable schema names."""

    def __init__(
        self,
        content_type_names: Optional[TypeNameCache] = None,
        schema_names: Optional[TypeNameCache] = None,
    ):
        self.content_type_names = content_type_names if content_type_names is not None else TypeNameCache()
        self.schema_names = schema_names if schema_names is not None else TypeNameCache()
        self.logger = get_logger("content_repository.metadata")

    @staticmethod
    def read_marker(entity_type: type, field_name: str) -> Optional[str]:
        """Read a string marker declared on ``entity_type`` or one of its bases."""
        value = getattr(entity_type, field_name, None)
        if not isinstance(value, str) or not value:
            return None
        return value

    def resolve_content_type_name(self, cls: Optional[type]) -> Optional[str]:
        """Get the content type name declared by an entity class."""
        if not isinstance(cls, type):
            return None

        if not issubclass(cls, (ContentItemFieldsSource, WebPageFieldsSource)):
            return None

        key = type_key(cls)
        name = self.content_type_names.get(key)
        if name is not None:
            return name

        name = self.read_marker(cls, CONTENT_TYPE_FIELD_NAME)
        if name is None:
            self.logger.debug("Content type name not declared", type=key)
            return None

        return self.content_type_names.add(key, name)

    def resolve_schema_name(self, cls: Optional[type]) -> Optional[str]:
        """Get the reusable field schema name declared by a schema class."""
        if not isinstance(cls, type):
            return None

        key = type_key(cls)
        name = self.schema_names.get(key)
        if name is not None:
            return name

        name = self.read_marker(cls, REUSABLE_FIELD_SCHEMA_FIELD_NAME)
        if name is None:
            self.logger.debug("Reusable schema name not declared", type=key)
            return None

        return self.schema_names.add(key, name)


@lru_cache(maxsize=1)
def get_metadata_resolver() -> MetadataResolver:
    """Get the process-wide resolver."""
    return MetadataResolver()
