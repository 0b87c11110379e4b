"""
Unit tests for entity helpers, query models and the channel context.
"""

import uuid

import structlog

from content_repository.app.context import (
    ContextVarChannelContext,
    StaticChannelContext,
    channel_scope,
)
from content_repository.app.models.entities import (
    NIL_GUID,
    AssetRelatedItem,
    WebPageRelatedItem,
    has_secure_items,
    is_secure_item,
    related_asset_guids,
    related_web_page_guids,
)
from content_repository.app.models.query import ContentQuery, PathMatch, PathMatchMode, WhereParameters
from shared.test_helpers import TestDataFactory


class TestEntityHelpers:
    """Test cases for the entity helper functions."""

    def test_secure_items(self):
        public = TestDataFactory.article(1)
        secured = TestDataFactory.article(2)
        secured.system_fields.content_item_is_secured = True

        assert is_secure_item(public) is False
        assert is_secure_item(secured) is True
        assert has_secure_items([public, secured]) is True
        assert has_secure_items([public]) is False
        assert has_secure_items(None) is False
        assert is_secure_item(object()) is False

    def test_related_asset_guids_skip_nil(self):
        guid = uuid.uuid4()
        article = TestDataFactory.article(
            1, assets=[AssetRelatedItem(identifier=guid), AssetRelatedItem(identifier=NIL_GUID)]
        )

        assert related_asset_guids(article) == [guid]

    def test_related_web_page_guids(self):
        guids = [uuid.uuid4(), uuid.uuid4()]
        article = TestDataFactory.article(1, related_pages=[WebPageRelatedItem(web_page_guid=g) for g in guids])

        assert related_web_page_guids(article) == guids
        assert related_web_page_guids(TestDataFactory.article(2)) == []


class TestQueryModels:
    """Test cases for the query description models."""

    def test_path_match_factories(self):
        assert PathMatch.single("/a").mode == PathMatchMode.SINGLE
        assert PathMatch.children("/a").mode == PathMatchMode.CHILDREN
        assert str(PathMatch.section("/a")) == "section:/a"

    def test_linked_items(self):
        assert ContentQuery().with_linked_items(0).include_web_page_data is False

        query = ContentQuery().with_linked_items(3)
        assert query.linked_items_depth == 3
        assert query.include_web_page_data is True

    def test_where_parameters_chain(self):
        where = WhereParameters().where_equals("A", 1).where_in("B", (1, 2)).where_not_null("C")

        assert len(where) == 3
        assert where.conditions[1].value == [1, 2]

    def test_apply_where_none(self):
        assert len(ContentQuery().apply_where(None).where) == 0


class TestChannelContext:
    """Test cases for the channel context implementations."""

    def test_static_context(self):
        context = StaticChannelContext("demo")

        assert context.website_channel_name == "demo"
        assert context.is_preview is False

    def test_context_var_scope(self):
        context = ContextVarChannelContext(default_channel_name="demo")

        with channel_scope("intranet", is_preview=True):
            assert context.website_channel_name == "intranet"
            assert context.is_preview is True
            assert structlog.contextvars.get_contextvars() == {"website_channel": "intranet", "preview": True}

        assert context.website_channel_name == "demo"
        assert context.is_preview is False
        assert structlog.contextvars.get_contextvars() == {}
