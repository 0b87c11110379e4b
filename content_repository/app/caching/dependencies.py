"""
Cache dependency keys for content and web page items.

Key formats are shared with the invalidation emitters of the content store
and must stay bit-exact:

    contentitem|byid|{id}
    contentitem|byguid|{guid}
    webpageitem|byid|{id}
    webpageitem|byguid|{guid}
    contentitem|bycontenttype|{typeName}
    webpageitem|bychannel|{channel}|bycontenttype|{typeName}
"""

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Iterator, List, Optional, Tuple
from uuid import UUID

from shared.logging import get_logger
from ..models.entities import (
    ContentItemFieldsSource,
    ContentItemReference,
    HasDependencyKeys,
    WebPageFieldsSource,
    WebPageRelatedItem,
    iter_field_values,
)
from .keys import DependencyKeySet


CONTENT_ITEM_ID_PREFIX = "contentitem|byid|"
CONTENT_ITEM_GUID_PREFIX = "contentitem|byguid|"
WEB_PAGE_ITEM_ID_PREFIX = "webpageitem|byid|"
WEB_PAGE_ITEM_GUID_PREFIX = "webpageitem|byguid|"


def content_item_id_key(item_id: int) -> str:
    return f"{CONTENT_ITEM_ID_PREFIX}{item_id}"


def content_item_guid_key(item_guid: UUID) -> str:
    return f"{CONTENT_ITEM_GUID_PREFIX}{item_guid}"


def web_page_item_id_key(item_id: int) -> str:
    return f"{WEB_PAGE_ITEM_ID_PREFIX}{item_id}"


def web_page_item_guid_key(item_guid: UUID) -> str:
    return f"{WEB_PAGE_ITEM_GUID_PREFIX}{item_guid}"


def content_item_id_keys(item_ids: Optional[Iterable[int]]) -> List[str]:
    return [content_item_id_key(item_id) for item_id in item_ids or []]


def content_item_guid_keys(item_guids: Optional[Iterable[UUID]]) -> List[str]:
    return [content_item_guid_key(item_guid) for item_guid in item_guids or []]


def web_page_item_id_keys(item_ids: Optional[Iterable[int]]) -> List[str]:
    return [web_page_item_id_key(item_id) for item_id in item_ids or []]


def web_page_item_guid_keys(item_guids: Optional[Iterable[UUID]]) -> List[str]:
    return [web_page_item_guid_key(item_guid) for item_guid in item_guids or []]


def content_item_type_keys(content_types: Optional[Iterable[str]]) -> List[str]:
    """Keys touched whenever any item of the given content types changes."""
    return [f"contentitem|bycontenttype|{content_type}" for content_type in content_types or []]


def web_page_item_type_keys(content_types: Optional[Iterable[str]], channel_name: str) -> List[str]:
    """Keys touched whenever any page of the given types changes in a channel."""
    return [
        f"webpageitem|bychannel|{channel_name}|bycontenttype|{content_type}"
        for content_type in content_types or []
    ]


def content_item_keys(items: Optional[Iterable[ContentItemFieldsSource]]) -> List[str]:
    return [content_item_id_key(item.system_fields.content_item_id) for item in items or []]


def web_page_item_keys(items: Optional[Iterable[WebPageFieldsSource]]) -> List[str]:
    return [web_page_item_id_key(item.system_fields.web_page_item_id) for item in items or []]


def schema_key(schema_name: str) -> str:
    """Key touched whenever any item using a reusable schema changes."""
    return f"{schema_name}|all"


def media_file_key(file_guid: UUID) -> str:
    return f"mediafile|{file_guid}"


@dataclass(frozen=True)
class CacheDependency:
    """A non-empty set of dependency keys attached to a cache entry."""
    cache_keys: Tuple[str, ...]

    def __iter__(self) -> Iterator[str]:
        return iter(self.cache_keys)

    def __len__(self) -> int:
        return len(self.cache_keys)


class CacheDependencyBuilder:
    """
    Derives cache dependency keys from query results.

    Every result item is matched against the known entity shapes, then each of
    its public fields is matched the same way. Discovery stops there: a related
    item nested two levels below a result item contributes no key. Values of
    unknown shapes are skipped.
    """

    def __init__(self):
        self.logger = get_logger("content_repository.dependencies")

    def create(self, items: Optional[Iterable[Any]]) -> Optional[CacheDependency]:
        """Build a dependency for ``items``, or None when no key was found."""
        keys = self.extract(items)
        if not keys:
            return None
        return CacheDependency(tuple(sorted(keys)))

    def extract(self, items: Optional[Iterable[Any]]) -> FrozenSet[str]:
        """Extract the deduplicated dependency keys for ``items``."""
        dependency_keys = DependencyKeySet()

        for item in items or []:
            if item is None:
                continue

            self._add_dependency_keys(item, dependency_keys)

            if self._is_scalar(item) or isinstance(item, (list, tuple, set, frozenset)):
                continue

            for value in iter_field_values(item):
                if value is not None:
                    self._add_dependency_keys(value, dependency_keys)

        self.logger.debug("Extracted dependency keys", count=len(dependency_keys))
        return dependency_keys.to_frozenset()

    def _add_dependency_keys(self, value: Any, dependency_keys: DependencyKeySet) -> None:
        if self._add_single(value, dependency_keys):
            return

        if isinstance(value, (list, tuple, set, frozenset)):
            for element in value:
                if element is not None:
                    self._add_single(element, dependency_keys)

    @staticmethod
    def _add_single(value: Any, dependency_keys: DependencyKeySet) -> bool:
        matched = True

        # Web pages are checked before content items; a web page emits only its page key
        if isinstance(value, ContentItemReference):
            dependency_keys.add(content_item_guid_key(value.identifier))
        elif isinstance(value, WebPageRelatedItem):
            dependency_keys.add(web_page_item_guid_key(value.web_page_guid))
        elif isinstance(value, WebPageFieldsSource):
            dependency_keys.add(web_page_item_id_key(value.system_fields.web_page_item_id))
        elif isinstance(value, ContentItemFieldsSource):
            dependency_keys.add(content_item_id_key(value.system_fields.content_item_id))
        else:
            matched = False

        if isinstance(value, HasDependencyKeys):
            dependency_keys.update(value.dependency_keys())
            matched = True

        return matched

    @staticmethod
    def _is_scalar(value: Any) -> bool:
        return isinstance(value, (str, bytes, int, float, bool, UUID))
