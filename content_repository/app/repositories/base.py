"""
Base repository providing cached query execution.
"""

from datetime import timedelta
from typing import Any, Callable, Iterable, List, Optional, Sequence

from shared.errors import ConfigurationError, InvalidArgumentError
from shared.logging import get_logger
from ..caching.dependencies import CacheDependencyBuilder
from ..caching.keys import CacheKeyComposer
from ..caching.models import CachePolicy
from ..caching.progressive_cache import ProgressiveCache
from ..context import ChannelContext
from ..metadata.resolver import MetadataResolver, get_metadata_resolver
from ..models.query import ContentQuery, ContentQueryExecutor, QueryExecutionOptions, QueryKind


DependencyFunc = Callable[[], Iterable[str]]

DEFAULT_CACHE_MINUTES = 10
DEFAULT_LANGUAGE = "en"
TAXONOMY_TAGS_DEFAULT_COLUMN_NAME = "TaxonomyTags"


class BaseRepository:
    """Base repository class providing common functionality for data access."""

    def __init__(
        self,
        cache: ProgressiveCache,
        executor: ContentQueryExecutor,
        channel_context: ChannelContext,
        dependency_builder: Optional[CacheDependencyBuilder] = None,
        *,
        metadata_resolver: Optional[MetadataResolver] = None,
        key_composer: Optional[CacheKeyComposer] = None,
        cache_minutes: int = DEFAULT_CACHE_MINUTES,
        default_language: str = DEFAULT_LANGUAGE,
    ):
        if cache is None:
            raise InvalidArgumentError("cache is required")
        if executor is None:
            raise InvalidArgumentError("executor is required")
        if channel_context is None:
            raise InvalidArgumentError("channel_context is required")

        self.cache = cache
        self.executor = executor
        self.channel_context = channel_context
        self.dependency_builder = dependency_builder or CacheDependencyBuilder()
        self.metadata_resolver = metadata_resolver or get_metadata_resolver()
        self.key_composer = key_composer or CacheKeyComposer()
        self.cache_minutes = cache_minutes
        self.default_language = default_language
        self.logger = get_logger("content_repository.repositories")

    @property
    def cache_prefix(self) -> str:
        return "base|data"

    def _language(self, language_name: Optional[str]) -> str:
        return language_name or self.default_language

    def _query_options(self) -> QueryExecutionOptions:
        is_preview = self.channel_context.is_preview
        return QueryExecutionOptions(for_preview=is_preview, include_secured_items=is_preview)

    def _cache_policy(self) -> CachePolicy:
        return CachePolicy(ttl=timedelta(minutes=self.cache_minutes), skip_if_empty=True)

    def _require_content_types(self, entity_types: Sequence[type]) -> List[str]:
        """Resolve content type names for several entity classes."""
        names = []
        for entity_type in entity_types:
            name = self.metadata_resolver.resolve_content_type_name(entity_type)
            if not name:
                raise ConfigurationError(
                    "Entity type does not declare a content type name",
                    {"type": getattr(entity_type, "__qualname__", repr(entity_type))},
                )
            names.append(name)
        return names

    def _require_schema(self, schema_type: type) -> str:
        schema_name = self.metadata_resolver.resolve_schema_name(schema_type)
        if not schema_name:
            raise ConfigurationError(
                "Schema type does not declare a reusable field schema name",
                {"type": getattr(schema_type, "__qualname__", repr(schema_type))},
            )
        return schema_name

    async def _execute_query(
        self,
        query: ContentQuery,
        dependency_func: Optional[DependencyFunc],
        *cache_name_parts: Any,
    ) -> List[Any]:
        """Execute a query, through the cache unless the channel is in preview."""
        options = self._query_options()

        if options.for_preview:
            operation = cache_name_parts[1] if len(cache_name_parts) > 1 else None
            self.logger.debug("Preview mode, bypassing cache", operation=operation)
            return list(await self.executor.run(query, options) or [])

        cache_key = self.key_composer.compose(*cache_name_parts)

        async def compute():
            result = list(await self.executor.run(query, options) or [])
            if not result:
                return result, ()

            if dependency_func is not None:
                return result, list(dependency_func() or ())

            return result, self.dependency_builder.extract(result)

        # Callers get their own list; the cached one is shared by every hit
        return list(await self.cache.load_or_compute(cache_key, self._cache_policy(), compute))


class EntityRepository(BaseRepository):
    """Repository bound to one entity class and its content type."""

    capability: type = object

    def __init__(self, entity_type: type, *args: Any, **kwargs: Any):
        if not isinstance(entity_type, type) or not issubclass(entity_type, self.capability):
            raise InvalidArgumentError(
                f"Entity type must subclass {self.capability.__name__}",
                {"type": repr(entity_type)},
            )
        super().__init__(*args, **kwargs)
        self.entity_type = entity_type
        self._content_type = self.metadata_resolver.resolve_content_type_name(entity_type)

    @property
    def content_type(self) -> str:
        """Content type name of the entity; missing names are a configuration error."""
        if not self._content_type:
            raise ConfigurationError(
                "Entity type does not declare a content type name",
                {"type": self.entity_type.__qualname__},
            )
        return self._content_type

    @property
    def cache_prefix(self) -> str:
        return f"data|{self._content_type or ''}|{self.channel_context.website_channel_name}"

    def _new_query(self, kind: QueryKind, language_name: Optional[str], max_linked_items: int) -> ContentQuery:
        query = ContentQuery(
            content_types=[self.content_type],
            result_type=self.entity_type,
            kind=kind,
            language=language_name,
        )
        return query.with_linked_items(max_linked_items)


def first_or_none(items: Sequence[Any]) -> Optional[Any]:
    return items[0] if items else None
