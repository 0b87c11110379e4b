"""
Cached, typed content repositories.
"""

from .app.caching.dependencies import CacheDependency, CacheDependencyBuilder
from .app.caching.keys import CacheKeyComposer, compose_cache_key
from .app.caching.models import CachePolicy
from .app.caching.progressive_cache import ProgressiveCache
from .app.caching.redis_store import RedisCacheStore
from .app.caching.stores import CacheStore, MemoryCacheStore
from .app.context import ContextVarChannelContext, StaticChannelContext, channel_scope
from .app.metadata.resolver import MetadataResolver, TypeNameCache
from .app.models.query import ContentQuery, PathMatch, PathMatchMode, QueryExecutionOptions
from .app.repositories.content_type import ContentTypeRepository
from .app.repositories.media_file import MediaFileRepository
from .app.repositories.page_type import PageTypeRepository
from .app.repositories.registry import ContentRepositories, ContentRepositoryOptions, create_repositories

__all__ = [
    "CacheDependency",
    "CacheDependencyBuilder",
    "CacheKeyComposer",
    "CachePolicy",
    "CacheStore",
    "ContentQuery",
    "ContentRepositories",
    "ContentRepositoryOptions",
    "ContentTypeRepository",
    "ContextVarChannelContext",
    "MediaFileRepository",
    "MemoryCacheStore",
    "MetadataResolver",
    "PageTypeRepository",
    "PathMatch",
    "PathMatchMode",
    "ProgressiveCache",
    "QueryExecutionOptions",
    "RedisCacheStore",
    "StaticChannelContext",
    "TypeNameCache",
    "channel_scope",
    "compose_cache_key",
]
