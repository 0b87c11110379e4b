"""
Cached access to media library files.
"""

from typing import Iterable, List, Optional, Protocol, Sequence
from uuid import UUID

from shared.errors import InvalidArgumentError
from shared.logging import get_logger
from ..caching.dependencies import media_file_key
from ..caching.keys import CacheKeyComposer
from ..caching.models import CachePolicy
from ..caching.progressive_cache import ProgressiveCache
from ..models.entities import NIL_GUID, AssetRelatedItem, MediaFileInfo, MediaLibraryInfo
from .base import DEFAULT_CACHE_MINUTES


class MediaFileLoader(Protocol):
    """Reads media metadata from the content store."""

    async def get_by_guids(self, file_guids: Sequence[UUID]) -> Sequence[MediaFileInfo]:
        ...

    async def get_library_by_id(self, library_id: int) -> Optional[MediaLibraryInfo]:
        ...


class MediaFileRepository:
    """
    Media file lookups cached with sliding expiration.

    Entries depend on ``mediafile|{guid}`` keys, so replacing or deleting a
    file evicts every lookup that returned it.
    """

    cache_prefix = "media"

    def __init__(
        self,
        cache: ProgressiveCache,
        loader: MediaFileLoader,
        cache_minutes: int = DEFAULT_CACHE_MINUTES,
        key_composer: Optional[CacheKeyComposer] = None,
    ):
        if cache is None:
            raise InvalidArgumentError("cache is required")
        if loader is None:
            raise InvalidArgumentError("loader is required")

        self.cache = cache
        self.loader = loader
        self.cache_minutes = cache_minutes
        self.key_composer = key_composer or CacheKeyComposer()
        self.logger = get_logger("content_repository.repositories.media")

    def _cache_policy(self) -> CachePolicy:
        return CachePolicy.for_minutes(self.cache_minutes, use_sliding_expiration=True, skip_if_empty=False)

    async def get_media_library_by_id(self, library_id: int) -> Optional[MediaLibraryInfo]:
        """Get a media library; not cached."""
        return await self.loader.get_library_by_id(library_id)

    async def get_media_files(self, file_guids: Optional[Iterable[UUID]]) -> List[MediaFileInfo]:
        """Get media files by GUID, depending on every requested GUID."""
        guid_list = list(file_guids or [])
        if not guid_list:
            return []

        async def compute():
            files = list(await self.loader.get_by_guids(guid_list) or [])
            return files, [media_file_key(file_guid) for file_guid in guid_list]

        cache_key = self.key_composer.compose(
            self.cache_prefix, "get_media_files", sorted(str(file_guid) for file_guid in guid_list)
        )
        return list(await self.cache.load_or_compute(cache_key, self._cache_policy(), compute))

    async def get_assets_from_related_items(
        self, items: Optional[Iterable[AssetRelatedItem]]
    ) -> List[MediaFileInfo]:
        """Get the media files behind asset references, depending on the files found."""
        guid_list = [item.identifier for item in items or [] if item.identifier != NIL_GUID]
        if not guid_list:
            return []

        async def compute():
            files = list(await self.loader.get_by_guids(guid_list) or [])
            return files, [media_file_key(media_file.file_guid) for media_file in files]

        cache_key = self.key_composer.compose(
            self.cache_prefix, "get_assets_from_related_items", sorted(str(file_guid) for file_guid in guid_list)
        )
        return list(await self.cache.load_or_compute(cache_key, self._cache_policy(), compute))
