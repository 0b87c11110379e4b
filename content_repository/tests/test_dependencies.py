"""
Unit tests for dependency key helpers and the cache dependency builder.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import pytest

from content_repository.app.caching.dependencies import (
    CacheDependency,
    CacheDependencyBuilder,
    content_item_guid_keys,
    content_item_id_key,
    content_item_id_keys,
    content_item_keys,
    content_item_type_keys,
    media_file_key,
    schema_key,
    web_page_item_guid_key,
    web_page_item_id_keys,
    web_page_item_keys,
    web_page_item_type_keys,
)
from content_repository.app.models.entities import (
    ContentItemReference,
    HasDependencyKeys,
    WebPageRelatedItem,
)
from shared.test_helpers import Article, ArticlePage, TestDataFactory


@dataclass
class Teaser:
    """Plain DTO that is not itself an entity."""
    headline: str
    target: Any = None


class UpperCaseKeys(HasDependencyKeys):
    def __init__(self, keys: Iterable[str]):
        self._keys = list(keys)

    def dependency_keys(self) -> List[str]:
        return self._keys


class Unrelated:
    def __init__(self):
        self.count = 3
        self.label = "plain"


class TestKeyHelpers:
    """Test cases for the dependency key formats."""

    def test_content_item_keys(self):
        guid = uuid.UUID("6b1d4c1e-0000-0000-0000-000000000001")

        assert content_item_id_key(7) == "contentitem|byid|7"
        assert content_item_id_keys([1, 2]) == ["contentitem|byid|1", "contentitem|byid|2"]
        assert content_item_guid_keys([guid]) == [f"contentitem|byguid|{guid}"]

    def test_web_page_keys(self):
        guid = uuid.uuid4()

        assert web_page_item_id_keys([3]) == ["webpageitem|byid|3"]
        assert web_page_item_guid_key(guid) == f"webpageitem|byguid|{guid}"

    def test_type_keys(self):
        assert content_item_type_keys(["Demo.Article"]) == ["contentitem|bycontenttype|Demo.Article"]
        assert web_page_item_type_keys(["Demo.ArticlePage"], "demo") == [
            "webpageitem|bychannel|demo|bycontenttype|Demo.ArticlePage"
        ]

    def test_none_collections_give_no_keys(self):
        assert content_item_id_keys(None) == []
        assert web_page_item_type_keys(None, "demo") == []

    def test_entity_keys(self):
        article = TestDataFactory.article(11)
        page = TestDataFactory.article_page(12)

        assert content_item_keys([article]) == ["contentitem|byid|11"]
        assert web_page_item_keys([page]) == ["webpageitem|byid|12"]

    def test_schema_and_media_keys(self):
        guid = uuid.uuid4()

        assert schema_key("Demo.Seo") == "Demo.Seo|all"
        assert media_file_key(guid) == f"mediafile|{guid}"


class TestCacheDependencyBuilder:
    """Test cases for CacheDependencyBuilder."""

    @pytest.fixture
    def builder(self):
        return CacheDependencyBuilder()

    def test_mixed_items_scenario(self, builder):
        item_a = Teaser(headline="a", target=TestDataFactory.article(7))
        item_b = TestDataFactory.article_page(3, content_item_id=99)
        item_c = Unrelated()

        keys = builder.extract([item_a, item_b, item_c])

        assert keys == frozenset({"contentitem|byid|7", "webpageitem|byid|3"})

    def test_web_page_emits_only_page_key(self, builder):
        page = TestDataFactory.article_page(4, content_item_id=40)

        assert builder.extract([page]) == frozenset({"webpageitem|byid|4"})

    def test_related_items_in_list_fields(self, builder):
        page_guid = uuid.uuid4()
        article = TestDataFactory.article(
            1,
            related_items=[TestDataFactory.article(2), TestDataFactory.author(3)],
            related_pages=[WebPageRelatedItem(web_page_guid=page_guid)],
        )

        keys = builder.extract([article])

        assert keys == frozenset({
            "contentitem|byid|1",
            "contentitem|byid|2",
            "contentitem|byid|3",
            f"webpageitem|byguid|{page_guid}",
        })

    def test_content_item_reference(self, builder):
        guid = uuid.uuid4()

        keys = builder.extract([Teaser(headline="x", target=ContentItemReference(identifier=guid))])

        assert keys == frozenset({f"contentitem|byguid|{guid}"})

    def test_depth_is_limited_to_one_level(self, builder):
        nested = Teaser(headline="outer", target=Teaser(headline="inner", target=TestDataFactory.article(8)))

        assert builder.extract([nested]) == frozenset()

    def test_nested_entity_of_related_item_not_followed(self, builder):
        inner = TestDataFactory.article(21)
        middle = TestDataFactory.article(20, related_items=[inner])
        outer = Teaser(headline="x", target=middle)

        assert builder.extract([outer]) == frozenset({"contentitem|byid|20"})

    def test_case_insensitive_dedup(self, builder):
        article = TestDataFactory.article(5)

        keys = builder.extract([UpperCaseKeys(["CONTENTITEM|BYID|5"]), article])

        assert len(keys) == 1
        assert "CONTENTITEM|BYID|5" in keys

    def test_custom_dependency_keys_in_fields(self, builder):
        teaser = Teaser(headline="x", target=UpperCaseKeys(["custom|key"]))

        assert builder.extract([teaser]) == frozenset({"custom|key"})

    def test_none_and_unknown_items_skipped(self, builder):
        assert builder.extract([None, 5, "text", Unrelated()]) == frozenset()

    def test_none_items(self, builder):
        assert builder.extract(None) == frozenset()

    def test_class_attributes_not_scanned(self, builder):
        class WithClassAttribute:
            shared = TestDataFactory.article(30)

            def __init__(self):
                self.value = 1

        assert builder.extract([WithClassAttribute()]) == frozenset()

    def test_create_returns_sorted_dependency(self, builder):
        dependency = builder.create([TestDataFactory.article(2), TestDataFactory.article(1)])

        assert isinstance(dependency, CacheDependency)
        assert list(dependency) == ["contentitem|byid|1", "contentitem|byid|2"]
        assert len(dependency) == 2

    def test_create_without_keys_returns_none(self, builder):
        assert builder.create([Unrelated()]) is None
