"""
Cached queries for web pages of one page content type.

All queries are scoped to the website channel of the current context and
ordered by the page order within the tree.
"""

from typing import Any, Iterable, List, Optional, Sequence
from uuid import UUID

from shared.errors import InvalidArgumentError
from ..caching.dependencies import web_page_item_type_keys
from ..models.entities import WebPageFieldsSource
from ..models.query import ContentQuery, PathMatch, QueryKind, WhereAction
from .base import (
    TAXONOMY_TAGS_DEFAULT_COLUMN_NAME,
    DependencyFunc,
    EntityRepository,
    first_or_none,
)


class PageTypeRepository(EntityRepository):
    """Repository for web pages of the entity's content type."""

    capability = WebPageFieldsSource

    def _page_query(self, language_name: Optional[str], max_linked_items: int,
                    path_match: Optional[PathMatch] = None) -> ContentQuery:
        query = self._new_query(QueryKind.WEB_PAGE, language_name, max_linked_items)
        query.order_by_web_page_order = True
        return query.for_website(self.channel_context.website_channel_name, path_match)

    async def get_by_guids(
        self,
        page_guids: Optional[Iterable[UUID]],
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        content_type = self.content_type
        language_name = self._language(language_name)
        guid_list = list(page_guids or [])
        if not guid_list:
            return []

        query = self._page_query(language_name, max_linked_items)
        query.where.where_in("WebPageItemGUID", guid_list)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_guids", content_type, guid_list, language_name, max_linked_items,
        )

    async def get_by_ids(
        self,
        page_ids: Optional[Iterable[int]],
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        content_type = self.content_type
        language_name = self._language(language_name)
        id_list = list(page_ids or [])
        if not id_list:
            return []

        query = self._page_query(language_name, max_linked_items)
        query.where.where_in("WebPageItemID", id_list)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_ids", id_list, language_name, content_type, max_linked_items,
        )

    async def get_by_guid(self, page_guid: UUID, language_name: Optional[str] = None, max_linked_items: int = 0,
                          dependency_func: Optional[DependencyFunc] = None) -> Optional[Any]:
        return first_or_none(await self.get_by_guids([page_guid], language_name, max_linked_items, dependency_func))

    async def get_by_id(self, page_id: int, language_name: Optional[str] = None, max_linked_items: int = 0,
                        dependency_func: Optional[DependencyFunc] = None) -> Optional[Any]:
        return first_or_none(await self.get_by_ids([page_id], language_name, max_linked_items, dependency_func))

    async def get_all(
        self,
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        top_n: int = 10,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        content_type = self.content_type
        language_name = self._language(language_name)
        query = self._page_query(language_name, max_linked_items)
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
        """Get pages of every content type using a reusable field schema."""
        schema_name = self._require_schema(schema_type)
        language_name = self._language(language_name)

        query = ContentQuery(
            result_type=schema_type,
            kind=QueryKind.CONTENT,
            reusable_schema=schema_name,
            language=language_name,
        ).with_linked_items(max_linked_items)
        query.include_web_page_data = True
        query.for_website(self.channel_context.website_channel_name)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_all_by_schema", schema_name, language_name, max_linked_items,
        )

    async def get_by_path(
        self,
        path: str,
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
        path_match: Optional[PathMatch] = None,
    ) -> List[Any]:
        """
        Get pages of the content type matching a tree path.

        Without an explicit dependency function the result depends on every
        page of the content type in the current channel, so moving or adding
        a page of that type invalidates it.
        """
        content_type = self.content_type
        language_name = self._language(language_name)
        if not path:
            raise InvalidArgumentError("path must not be empty")

        path_match = path_match or PathMatch.single(path)
        channel = self.channel_context.website_channel_name
        query = self._page_query(language_name, max_linked_items, path_match)

        dependency_func = dependency_func or (lambda: web_page_item_type_keys([content_type], channel))

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_path", path, content_type, language_name, path_match, max_linked_items,
        )

    async def get_by_path_for_types(
        self,
        path: str,
        entity_types: Sequence[type],
        language_name: Optional[str] = None,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[WebPageFieldsSource]:
        """Get the page at ``path`` when it is of any of ``entity_types``."""
        if not path:
            raise InvalidArgumentError("path must not be empty")
        if not entity_types:
            return []
        content_types = self._require_content_types(entity_types)
        language_name = self._language(language_name)

        query = ContentQuery(
            content_types=content_types,
            result_type=WebPageFieldsSource,
            kind=QueryKind.WEB_PAGE,
            language=language_name,
        ).with_linked_items(max_linked_items)
        query.for_website(self.channel_context.website_channel_name, PathMatch.single(path))

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_path", path, content_types, language_name, max_linked_items,
        )

    async def get_by_tags(
        self,
        where: Optional[WhereAction],
        tag_identifiers: Optional[Iterable[UUID]],
        max_linked_items: int = 0,
        top_n: int = 0,
        column_name: str = TAXONOMY_TAGS_DEFAULT_COLUMN_NAME,
        dependency_func: Optional[DependencyFunc] = None,
    ) -> List[Any]:
        content_type = self.content_type
        tag_list = list(tag_identifiers or [])
        if not tag_list:
            return []

        query = self._page_query(None, max_linked_items)
        query.top_n = top_n
        query.apply_where(where)
        query.where.where_not_null(column_name).where_not_empty(column_name).where_contains_tags(column_name, tag_list)

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_tags", content_type, column_name, tag_list, max_linked_items, top_n,
        )

    async def get_by_custom_where(
        self,
        where: WhereAction,
        language_name: Optional[str] = None,
        top_n: int = 10,
        max_linked_items: int = 0,
        dependency_func: Optional[DependencyFunc] = None,
        *cache_name_parts: Any,
    ) -> List[Any]:
        """
        Get pages matching a caller-built filter.

        ``cache_name_parts`` must identify the filter; two different filters
        with the same parts share one cache entry.
        """
        if where is None:
            raise InvalidArgumentError("where callback is required")
        content_type = self.content_type
        language_name = self._language(language_name)

        query = self._page_query(language_name, max_linked_items).apply_where(where)
        query.top_n = top_n

        return await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_by_custom_where", content_type, language_name, max_linked_items, top_n,
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

        query = self._page_query(language_name, max_linked_items).apply_where(where)
        query.top_n = 1

        result = await self._execute_query(
            query, dependency_func,
            self.cache_prefix, "get_first_by_custom_where", content_type, language_name, max_linked_items,
            *cache_name_parts,
        )
        return first_or_none(result)
