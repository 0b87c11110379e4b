"""
Unit tests for cache key composition and dependency key normalization.
"""

import uuid
from enum import Enum

import pytest

from shared.errors import InvalidArgumentError
from content_repository.app.caching.keys import (
    CacheKeyComposer,
    DependencyKeySet,
    compose_cache_key,
    normalize_dependency_keys,
)
from content_repository.app.models.query import PathMatch, PathMatchMode


class Color(Enum):
    RED = "red"


class TestCacheKeyComposer:
    """Test cases for CacheKeyComposer."""

    @pytest.fixture
    def composer(self):
        return CacheKeyComposer()

    def test_parts_joined_with_pipe(self, composer):
        assert composer.compose("data", "Demo.Article", "get_by_ids", "en", 0) == "data|Demo.Article|get_by_ids|en|0"

    def test_sequence_part_is_one_segment(self, composer):
        assert composer.compose("a", [1, 2, 3]) == "a|1_2_3"
        assert composer.compose("a", (3, 1)) == "a|3_1"

    def test_composition_is_idempotent(self, composer):
        parts = ("data", ["x", "y"], 10, uuid.UUID(int=5))
        assert composer.compose(*parts) == composer.compose(*parts)

    def test_argument_order_matters(self, composer):
        assert composer.compose("a", "b") != composer.compose("b", "a")
        assert composer.compose("a", [1, 2]) != composer.compose("a", [2, 1])

    def test_sets_are_sorted(self, composer):
        assert composer.compose("a", {"c", "a", "b"}) == "a|a_b_c"

    def test_enum_renders_value(self, composer):
        assert composer.compose("a", Color.RED, PathMatchMode.CHILDREN) == "a|red|children"

    def test_path_match_renders_mode_and_path(self, composer):
        assert composer.compose("a", PathMatch.section("/news")) == "a|section:/news"

    def test_type_renders_qualified_name(self, composer):
        assert composer.compose(Color) == f"{__name__}.Color"

    def test_keys_are_case_sensitive(self, composer):
        assert composer.compose("A") != composer.compose("a")

    def test_none_part_rejected(self, composer):
        with pytest.raises(InvalidArgumentError) as exc_info:
            composer.compose("a", None)

        assert exc_info.value.details == {"index": 1}

    def test_none_sequence_element_rejected(self, composer):
        with pytest.raises(InvalidArgumentError):
            composer.compose("a", [1, None])

    def test_no_parts_rejected(self, composer):
        with pytest.raises(InvalidArgumentError):
            composer.compose()

    def test_module_level_helper(self):
        assert compose_cache_key("x", 1) == "x|1"


class TestDependencyKeySet:
    """Test cases for DependencyKeySet."""

    def test_dedup_ignores_case(self):
        keys = DependencyKeySet(["CONTENTITEM|BYID|5", "contentitem|byid|5"])

        assert len(keys) == 1
        assert list(keys) == ["CONTENTITEM|BYID|5"]

    def test_contains_ignores_case(self):
        keys = DependencyKeySet(["contentitem|byid|5"])

        assert "ContentItem|ById|5" in keys
        assert "contentitem|byid|6" not in keys
        assert 5 not in keys

    def test_empty_keys_skipped(self):
        keys = DependencyKeySet(["", None, "a"])

        assert keys.to_frozenset() == frozenset({"a"})

    def test_normalize_none(self):
        assert normalize_dependency_keys(None) == frozenset()

    def test_normalize_single_string(self):
        assert normalize_dependency_keys("mediafile|x") == frozenset({"mediafile|x"})

    def test_normalize_generator(self):
        assert normalize_dependency_keys(key for key in ["a", "A", "b"]) == frozenset({"a", "b"})
