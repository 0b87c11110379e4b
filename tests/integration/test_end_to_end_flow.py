"""
End-to-end tests for the repository, cache and invalidation flow.
"""

import asyncio
from typing import Any, Dict, List

import pytest

from shared.config import ContentRepositorySettings
from shared.metrics import MetricsCollector
from shared.test_helpers import Article, ArticlePage, Author, TestDataFactory
from content_repository import (
    ContentRepositoryOptions,
    ContextVarChannelContext,
    channel_scope,
    create_repositories,
)
from content_repository.app.models.entities import has_secure_items
from content_repository.app.models.query import ContentQuery, QueryExecutionOptions, QueryKind


class InMemoryContentStore:
    """Query executor over a dictionary of published items."""

    def __init__(self):
        self.items: Dict[int, Any] = {}
        self.queries = 0

    def publish(self, item: Any) -> None:
        self.items[item.system_fields.content_item_id] = item

    async def run(self, query: ContentQuery, options: QueryExecutionOptions) -> List[Any]:
        self.queries += 1
        await asyncio.sleep(0.01)

        results = [
            item for item in self.items.values()
            if item.CONTENT_TYPE_NAME in query.content_types
            and (options.include_secured_items or not item.system_fields.content_item_is_secured)
        ]

        for condition in query.where.conditions:
            if condition.operator != "in":
                continue
            if condition.column == "ContentItemID":
                results = [item for item in results if item.system_fields.content_item_id in condition.value]
            elif condition.column == "WebPageItemID":
                results = [item for item in results if item.system_fields.web_page_item_id in condition.value]

        if query.kind == QueryKind.WEB_PAGE:
            results.sort(key=lambda item: item.system_fields.web_page_item_order)
        if query.top_n:
            results = results[:query.top_n]
        return results


class TestEndToEndFlow:
    """End-to-end tests for the complete caching flow."""

    @pytest.fixture
    def content_store(self):
        store = InMemoryContentStore()
        store.publish(TestDataFactory.article(1, related_items=[TestDataFactory.author(2)]))
        store.publish(TestDataFactory.author(2))
        store.publish(TestDataFactory.article_page(3, content_item_id=30))
        return store

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("content-repository-e2e")

    @pytest.fixture
    def repositories(self, content_store, metrics):
        settings = ContentRepositorySettings(cache_backend="memory", cache_minutes=10, _env_file=None)
        return create_repositories(
            content_store,
            ContextVarChannelContext(default_channel_name="demo"),
            settings,
            options=ContentRepositoryOptions(content_types=[Article, Author], page_types=[ArticlePage]),
            metrics=metrics,
        )

    @pytest.mark.asyncio
    async def test_related_item_change_invalidates_parent(self, repositories, content_store):
        articles = repositories.get_content_repository(Article)

        article = await articles.get_by_id(1)
        assert article.related_items[0].system_fields.content_item_id == 2
        assert await articles.get_by_id(1) is article
        assert content_store.queries == 1

        # The author is a related item of the cached article
        await repositories.cache.touch_keys("contentitem|byid|2")

        await articles.get_by_id(1)
        assert content_store.queries == 2

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_query(self, repositories, content_store, metrics):
        articles = repositories.get_content_repository("Demo.Article")

        results = await asyncio.gather(*[articles.get_all(top_n=5) for _ in range(25)])

        assert content_store.queries == 1
        assert all(len(result) == 1 for result in results)
        assert metrics.get_sample_value("content_cache_requests_total", {"result": "miss"}) == 25
        assert metrics.get_sample_value("content_cache_compute_duration_seconds_count", {"outcome": "stored"}) == 1

    @pytest.mark.asyncio
    async def test_pages_invalidate_by_page_key(self, repositories, content_store):
        pages = repositories.get_page_repository(ArticlePage)

        await pages.get_by_ids([3])
        await repositories.cache.invalidate("contentitem|byid|30")
        await pages.get_by_ids([3])
        assert content_store.queries == 1

        await repositories.cache.invalidate("WebPageItem|ById|3")
        await pages.get_by_ids([3])
        assert content_store.queries == 2

    @pytest.mark.asyncio
    async def test_preview_sees_secured_items_without_caching(self, repositories, content_store):
        secured = TestDataFactory.article(5)
        secured.system_fields.content_item_is_secured = True
        content_store.publish(secured)
        articles = repositories.get_content_repository(Article)

        assert await articles.get_by_id(5) is None

        with channel_scope("demo", is_preview=True):
            preview = await articles.get_by_ids([5])
            await articles.get_by_ids([5])

        assert has_secure_items(preview)
        assert content_store.queries == 3

    @pytest.mark.asyncio
    async def test_missing_items_are_not_cached(self, repositories, content_store):
        articles = repositories.get_content_repository(Article)

        assert await articles.get_by_id(99) is None
        content_store.publish(TestDataFactory.article(99))

        assert (await articles.get_by_id(99)).system_fields.content_item_id == 99
        assert content_store.queries == 2
