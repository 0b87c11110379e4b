"""
Cached queries for reusable content items of one content type.
"""

from typing import Any, Iterable, List, Optional, Sequence
from uuid import UUID

from shared.errors import InvalidArgumentError
from ..caching.dependencies import schema_key
from ..models.entities import ContentItemFieldsSource
from ..models.query import ContentQuery, PathMatch, PathMatchMode, QueryKind, WhereAction
from .base import (
    TAXONOMY_TAGS_DEFAULT_COLUMN_NAME,
    DependencyFunc,
    EntityRepository,
    first_or_none,
)


class ContentTypeRepository(EntityRepository):
    """Repository for content items of the entity's content type."""

    capability = ContentItemFieldsSource

    # Identifiers

    async def get_by_guids(
        self,
        item_guids: Optional[Iterable[UUID]],
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        content_type = self.content_type
        language_name = self._language(language_name)
        guid_list = list(item_guids or [])
        if not guid_list:
            return []

        query = self._new_query(QueryKind.CONTENT, language_name, max_linked_items)
        query.where.where_in("ContentItemGUID", guid_list)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_guids", content_type, language_name, guid_list, max_linked_items,
        )

    async def get_by_ids(
        self,
        item_ids: Optional[Iterable[int]],
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        content_type = self.content_type
        language_name = self._language(language_name)
        id_list = list(item_ids or [])
        if not id_list:
            return []

        query = self._new_query(QueryKind.CONTENT, language_name, max_linked_items)
        query.where.where_in("ContentItemID", id_list)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_ids", content_type, language_name, id_list, max_linked_items,
        )

    async def get_by_guid(self, item_guid: UUID, language_name: Optional[str] = None, max_linked_items: int = 0,
                          dependency_func: Optional[DependencyFunc] = None) -> Optional[Any]:
        return first_or_none(await self.get_by_guids([item_guid], language_name, max_linked_items, dependency_func))

    async def get_by_id(self, item_id: int, language_name: Optional[str] = None, max_linked_items: int = 0,
                        dependency_func: Optional[DependencyFunc] = None) -> Optional[Any]:
        return first_or_none(await self.get_by_ids([item_id], language_name, max_linked_items, dependency_func))

    # All items

    async def get_all(
        self,
        language_name: Optional[str] = None,
        top_n: int = 10,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        """Get up to ``top_n`` items of the content type."""
        content_type = self.content_type
        language_name = self._language(language_name)
        query = self._new_query(QueryKind.CONTENT, language_name, max_linked_items)
        query.top_n = top_n

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_all", language_name, content_type, max_linked_items, top_n,
        )

    async def get_all_by_schema(
        self,
        schema_type: type,
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        """
        Get items of every content type using a reusable field schema.

        The result is invalidated through the ``{schema}|all`` key unless an
        explicit dependency function is given.
        """
        schema_name = self._require_schema(schema_type)
        language_name = self._language(language_name)

        query = ContentQuery(
            result_type=schema_type,
            kind=QueryKind.CONTENT,
            reusable_schema=schema_name,
            with_content_type_fields=True,
            language=language_name,
        ).with_linked_items(max_linked_items)

        dependency_func = dependency_func or (lambda: [schema_key(schema_name)])

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_all_by_schema", schema_name, language_name, max_linked_items,
        )

    # Custom filters

    async def get_by_custom_where(
        self,
        where: WhereAction,
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
        *cache_name_parts: Any,
    ) -> List[Any]:
        """
        Get items matching a caller-built filter.

        ``cache_name_parts`` must identify the filter; two different filters
        with the same parts share one cache entry.
        """
        if where is None:
            raise InvalidArgumentError("where callback is required")
        content_type = self.content_type
        language_name = self._language(language_name)

        query = self._new_query(QueryKind.CONTENT, language_name, max_linked_items).apply_where(where)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_custom_where", content_type, language_name, max_linked_items,
            *cache_name_parts,
        )

    async def get_first_by_custom_where(
        self,
        where: WhereAction,
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
        *cache_name_parts: Any,
    ) -> Optional[Any]:
        if where is None:
            raise InvalidArgumentError("where callback is required")
        content_type = self.content_type
        language_name = self._language(language_name)

        query = self._new_query(QueryKind.CONTENT, language_name, max_linked_items).apply_where(where)
        query.top_n = 1

        result = await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_first_by_custom_where", content_type, language_name, max_linked_items,
            *cache_name_parts,
        )
        return first_or_none(result)

    # Smart folders

    async def get_by_smart_folder_guid(
        self,
        smart_folder_guid: UUID,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        content_type = self.content_type
        query = self._new_query(QueryKind.CONTENT, None, max_linked_items)
        query.smart_folder = smart_folder_guid

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_smart_folder_guid", content_type, smart_folder_guid, max_linked_items,
        )

    async def get_by_smart_folder_id(
        self,
        smart_folder_id: int,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        content_type = self.content_type
        query = self._new_query(QueryKind.CONTENT, None, max_linked_items)
        query.smart_folder = smart_folder_id

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_smart_folder_id", content_type, smart_folder_id, max_linked_items,
        )

    async def get_by_smart_folder_id_for_types(
        self,
        smart_folder_id: int,
        entity_types: Sequence[type],
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[ContentItemFieldsSource]:
        """Get items of several content types stored in a smart folder."""
        if not entity_types:
            return []
        content_types = self._require_content_types(entity_types)

        query = ContentQuery(
            content_types=content_types,
            result_type=ContentItemFieldsSource,
            kind=QueryKind.CONTENT,
            smart_folder=smart_folder_id,
        ).with_linked_items(max_linked_items)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_smart_folder_id_for_types", content_types, smart_folder_id, max_linked_items,
        )

    # Tree path

    async def get_by_path(
        self,
        path: str,
        path_match_mode: PathMatchMode = PathMatchMode.SINGLE,
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        """Get items placed at, or below, a tree path of the current channel."""
        content_type = self.content_type
        language_name = self._language(language_name)
        if not path:
            raise InvalidArgumentError("path must not be empty")

        path_match = PathMatch(path, PathMatchMode(path_match_mode))
        channel = self.channel_context.website_channel_name

        query = self._new_query(QueryKind.CONTENT, language_name, max_linked_items).for_website(channel, path_match)
        query.order_by_web_page_order = True

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_path", content_type, path, language_name, path_match.mode, max_linked_items,
        )

    # Taxonomy tags

    async def get_by_tags(
        self,
        where: Optional[WhereAction],
        tag_identifiers: Optional[Iterable[UUID]],
        max_linked_items: int = 0,
        top_n: int = 0,
        column_name: str = TAXONOMY_TAGS_DEFAULT_COLUMN_NAME,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        """Get items tagged with any of ``tag_identifiers`` in ``column_name``."""
        content_type = self.content_type
        tag_list = list(tag_identifiers or [])
        if not tag_list:
            return []

        query = self._new_query(QueryKind.CONTENT, None, max_linked_items)
        query.top_n = top_n
        query.for_website(self.channel_context.website_channel_name)
        query.apply_where(where)
        query.where.where_not_null(column_name).where_not_empty(column_name).where_contains_tags(column_name, tag_list)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_tags", content_type, column_name, tag_list, max_linked_items, top_n,
        )
