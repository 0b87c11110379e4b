"""
Entity shapes understood by the repositories and the cache dependency builder.

Entity and DTO classes opt into a capability by subclassing one of the
capability models below. The dependency builder dispatches on these classes
only; anything else is treated as opaque data.
"""

import dataclasses
from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


NIL_GUID = UUID(int=0)


class ContentItemFields(BaseModel):
    """System fields carried by every content item."""

    content_item_id: int
    content_item_guid: UUID
    content_item_name: str = ""
    content_item_is_secured: bool = False
    content_item_content_type_id: int = 0
    content_item_common_data_content_language_id: int = 0


class WebPageFields(ContentItemFields):
    """System fields carried by web page items."""

    web_page_item_id: int
    web_page_item_guid: UUID
    web_page_item_parent_id: int = 0
    web_page_item_name: str = ""
    web_page_item_tree_path: str = ""
    web_page_item_order: int = 0
    website_channel_name: str = ""
    web_page_url_path: Optional[str] = None


class ContentItemFieldsSource(BaseModel):
    """Capability: a reusable content item."""

    system_fields: ContentItemFields


class WebPageFieldsSource(BaseModel):
    """Capability: a web page item anchored to a website channel."""

    system_fields: WebPageFields


class ContentItemReference(BaseModel):
    """Reference to a content item by GUID."""

    identifier: UUID


class WebPageRelatedItem(BaseModel):
    """Reference to a web page item by GUID."""

    web_page_guid: UUID


class AssetRelatedItem(BaseModel):
    """Reference to a media library asset."""

    identifier: UUID
    name: str = ""
    extension: str = ""
    size: int = 0
    dimensions: Optional[str] = None


class HasDependencyKeys(ABC):
    """Capability: an object that declares its own cache dependency keys."""

    @abstractmethod
    def dependency_keys(self) -> Iterable[str]:
        """Return the dependency keys this object contributes."""


class MediaLibraryInfo(BaseModel):
    """Media library metadata."""

    library_id: int
    library_guid: Optional[UUID] = None
    library_name: str
    library_display_name: str = ""
    library_folder: str = ""


class MediaFileInfo(BaseModel):
    """Media file metadata."""

    file_id: int = 0
    file_guid: UUID
    file_name: str
    file_extension: str = ""
    file_path: str = ""
    file_size: int = 0
    file_library_id: int = 0
    file_mime_type: str = ""
    metadata: dict = Field(default_factory=dict)


def iter_field_values(source: Any) -> Iterator[Any]:
    """Yield the values of the public declared fields of ``source``.

    Pydantic models yield their model fields, dataclasses their dataclass
    fields, and other objects their public instance attributes. Class-level
    attributes are never included.
    """
    if isinstance(source, BaseModel):
        for name in type(source).model_fields:
            yield getattr(source, name, None)
        return

    if dataclasses.is_dataclass(source) and not isinstance(source, type):
        for field in dataclasses.fields(source):
            if not field.name.startswith("_"):
                yield getattr(source, field.name, None)
        return

    attributes = getattr(source, "__dict__", None)
    if not isinstance(attributes, dict):
        return
    for name, value in list(attributes.items()):
        if not name.startswith("_"):
            yield value


def is_secure_item(source: Any) -> bool:
    """Check whether a content or web page item is secured."""
    fields = getattr(source, "system_fields", None)
    return bool(getattr(fields, "content_item_is_secured", False))


def has_secure_items(sources: Optional[Iterable[Any]]) -> bool:
    """Check whether any item in ``sources`` is secured."""
    return any(is_secure_item(source) for source in sources or [])


def related_asset_guids(source: Any) -> List[UUID]:
    """Collect the GUIDs of assets referenced by ``source``'s fields."""
    guids: List[UUID] = []
    for value in iter_field_values(source):
        if isinstance(value, AssetRelatedItem):
            value = [value]
        if isinstance(value, (list, tuple)):
            guids.extend(
                item.identifier
                for item in value
                if isinstance(item, AssetRelatedItem) and item.identifier != NIL_GUID
            )
    return guids


def related_web_page_guids(source: Any) -> List[UUID]:
    """Collect the GUIDs of web pages referenced by ``source``'s fields."""
    guids: List[UUID] = []
    for value in iter_field_values(source):
        if isinstance(value, WebPageRelatedItem):
            value = [value]
        if isinstance(value, (list, tuple)):
            guids.extend(
                item.web_page_guid
                for item in value
                if isinstance(item, WebPageRelatedItem) and item.web_page_guid != NIL_GUID
            )
    return guids
