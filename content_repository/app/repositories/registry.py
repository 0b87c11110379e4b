"""
Repository registry and bootstrap.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from shared.config import ContentRepositorySettings, get_settings
from shared.errors import ConfigurationError
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from ..caching.dependencies import CacheDependencyBuilder
from ..caching.keys import CacheKeyComposer
from ..caching.progressive_cache import ProgressiveCache
from ..caching.redis_store import RedisCacheStore
from ..caching.stores import CacheStore, MemoryCacheStore
from ..context import ChannelContext
from ..metadata.resolver import MetadataResolver, get_metadata_resolver
from ..models.query import ContentQueryExecutor
from .base import DEFAULT_LANGUAGE
from .content_type import ContentTypeRepository
from .media_file import MediaFileLoader, MediaFileRepository
from .page_type import PageTypeRepository


EntityRef = Union[type, str]


@dataclass
class ContentRepositoryOptions:
    """Entity classes served by the registry."""
    content_types: List[type] = field(default_factory=list)
    page_types: List[type] = field(default_factory=list)


class ContentRepositories:
    """
    Hands out repositories for registered entity classes.

    Entity classes are registered under their content type name. Repositories
    are stateless and a new one is built on every request; the cache,
    executor and channel context are shared.
    """

    def __init__(
        self,
        cache: ProgressiveCache,
        executor: ContentQueryExecutor,
        channel_context: ChannelContext,
        *,
        dependency_builder: Optional[CacheDependencyBuilder] = None,
        metadata_resolver: Optional[MetadataResolver] = None,
        key_composer: Optional[CacheKeyComposer] = None,
        media_loader: Optional[MediaFileLoader] = None,
        cache_minutes: int = 10,
        media_cache_minutes: int = 10,
        default_language: str = DEFAULT_LANGUAGE,
    ):
        self.cache = cache
        self.executor = executor
        self.channel_context = channel_context
        self.dependency_builder = dependency_builder or CacheDependencyBuilder()
        self.metadata_resolver = metadata_resolver or get_metadata_resolver()
        self.key_composer = key_composer or CacheKeyComposer()
        self.media_loader = media_loader
        self.cache_minutes = cache_minutes
        self.media_cache_minutes = media_cache_minutes
        self.default_language = default_language
        self.logger = get_logger("content_repository.registry")

        self._content_types: Dict[str, type] = {}
        self._page_types: Dict[str, type] = {}

    def _register(self, registry: Dict[str, type], entity_type: type, kind: str) -> str:
        name = self.metadata_resolver.resolve_content_type_name(entity_type)
        if not name:
            raise ConfigurationError(
                f"Cannot register {kind} type without a content type name",
                {"type": getattr(entity_type, "__qualname__", repr(entity_type))},
            )

        existing = registry.get(name)
        if existing is not None and existing is not entity_type:
            raise ConfigurationError(
                f"Content type {name} is already registered",
                {"type": entity_type.__qualname__, "registered": existing.__qualname__},
            )

        registry[name] = entity_type
        self.logger.debug("Registered entity type", kind=kind, content_type=name)
        return name

    def register_content_type(self, entity_type: type) -> str:
        return self._register(self._content_types, entity_type, "content")

    def register_page_type(self, entity_type: type) -> str:
        return self._register(self._page_types, entity_type, "page")

    @property
    def content_types(self) -> List[str]:
        return list(self._content_types)

    @property
    def page_types(self) -> List[str]:
        return list(self._page_types)

    def _lookup(self, registry: Dict[str, type], entity: EntityRef, kind: str) -> type:
        if isinstance(entity, str):
            name = entity
        else:
            name = self.metadata_resolver.resolve_content_type_name(entity)

        entity_type = registry.get(name) if name else None
        if entity_type is None:
            raise ConfigurationError(f"No {kind} repository registered", {"entity": str(entity)})
        return entity_type

    def _repository_kwargs(self) -> dict:
        return {
            "metadata_resolver": self.metadata_resolver,
            "key_composer": self.key_composer,
            "cache_minutes": self.cache_minutes,
            "default_language": self.default_language,
        }

    def get_content_repository(self, entity: EntityRef) -> ContentTypeRepository:
        """Get the repository for a registered content type, by class or name."""
        entity_type = self._lookup(self._content_types, entity, "content")
        return ContentTypeRepository(
            entity_type, self.cache, self.executor, self.channel_context, self.dependency_builder,
            **self._repository_kwargs(),
        )

    def get_page_repository(self, entity: EntityRef) -> PageTypeRepository:
        """Get the repository for a registered page type, by class or name."""
        entity_type = self._lookup(self._page_types, entity, "page")
        return PageTypeRepository(
            entity_type, self.cache, self.executor, self.channel_context, self.dependency_builder,
            **self._repository_kwargs(),
        )

    def get_media_file_repository(self) -> MediaFileRepository:
        if self.media_loader is None:
            raise ConfigurationError("No media file loader configured")
        return MediaFileRepository(
            self.cache, self.media_loader, cache_minutes=self.media_cache_minutes, key_composer=self.key_composer
        )

    def get_dependency_builder(self) -> CacheDependencyBuilder:
        return self.dependency_builder


def build_cache_store(settings: ContentRepositorySettings) -> CacheStore:
    """Create the cache store selected by ``settings.cache_backend``."""
    if settings.cache_backend == "redis":
        return RedisCacheStore(settings.redis_url, namespace=settings.cache_key_namespace)
    if settings.cache_backend == "memory":
        return MemoryCacheStore(max_entries=settings.max_cache_entries)
    raise ConfigurationError("Unknown cache backend", {"backend": settings.cache_backend})


def create_repositories(
    executor: ContentQueryExecutor,
    channel_context: ChannelContext,
    settings: Optional[ContentRepositorySettings] = None,
    *,
    options: Optional[ContentRepositoryOptions] = None,
    media_loader: Optional[MediaFileLoader] = None,
    metrics: Optional[MetricsCollector] = None,
    configure_logs: bool = False,
) -> ContentRepositories:
    """
    Build a registry with its cache store, progressive cache and entity types.

    Args:
        executor: Runs content queries against the content store
        channel_context: Supplies the website channel and preview state
        settings: Defaults to the process-wide settings
        options: Content and page entity classes to register
        media_loader: Enables the media file repository when given
        metrics: Collector for cache metrics; one is created when metrics are
            enabled in the settings and none is passed
        configure_logs: Configure structlog for this process
    """
    settings = settings or get_settings()
    if configure_logs:
        configure_logging("content-repository", settings.log_level, json_logs=settings.json_logs)

    if metrics is None and settings.enable_metrics:
        metrics = get_metrics_collector("content-repository")

    store = build_cache_store(settings)
    cache = ProgressiveCache(store, metrics=metrics)

    repositories = ContentRepositories(
        cache,
        executor,
        channel_context,
        media_loader=media_loader,
        cache_minutes=settings.cache_minutes,
        media_cache_minutes=settings.media_cache_minutes,
        default_language=settings.default_language,
    )

    options = options or ContentRepositoryOptions()
    for entity_type in options.content_types:
        repositories.register_content_type(entity_type)
    for entity_type in options.page_types:
        repositories.register_page_type(entity_type)

    repositories.logger.info(
        "Content repositories created",
        cache_backend=store.name,
        content_types=len(options.content_types),
        page_types=len(options.page_types),
    )
    return repositories
