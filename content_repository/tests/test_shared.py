"""
Unit tests for the shared configuration, errors, logging and metrics modules.
"""

import pytest
from pydantic import ValidationError

from shared.config import ContentRepositorySettings, get_settings
from shared.errors import (
    CacheStoreError,
    ConfigurationError,
    ContentRepositoryException,
    InvalidArgumentError,
)
from shared.logging import add_correlation_context, add_service_context, clear_context, set_request_id
from shared.metrics import MetricsCollector


class TestSettings:
    """Test cases for ContentRepositorySettings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CONTENT_REPO_CACHE_MINUTES", raising=False)

        settings = ContentRepositorySettings(_env_file=None)

        assert settings.cache_minutes == 10
        assert settings.media_cache_minutes == 10
        assert settings.cache_backend == "memory"
        assert settings.cache_key_namespace == "content"
        assert settings.default_language == "en"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CONTENT_REPO_CACHE_MINUTES", "3")
        monkeypatch.setenv("CONTENT_REPO_CACHE_BACKEND", "redis")

        settings = ContentRepositorySettings(_env_file=None)

        assert settings.cache_minutes == 3
        assert settings.cache_backend == "redis"

    def test_invalid_backend(self):
        with pytest.raises(ValidationError):
            ContentRepositorySettings(cache_backend="memcached")

    def test_negative_minutes_rejected(self):
        with pytest.raises(ValidationError):
            ContentRepositorySettings(cache_minutes=-1)

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestErrors:
    """Test cases for the error hierarchy."""

    def test_codes(self):
        assert ConfigurationError().code == "CONFIGURATION_ERROR"
        assert InvalidArgumentError().code == "INVALID_ARGUMENT"
        assert CacheStoreError("redis", "down").message == "redis: down"

    def test_hierarchy(self):
        assert issubclass(ConfigurationError, ContentRepositoryException)
        assert issubclass(CacheStoreError, ContentRepositoryException)

    def test_to_detail(self):
        detail = InvalidArgumentError("path must not be empty", {"argument": "path"}).to_detail()

        assert detail.code == "INVALID_ARGUMENT"
        assert detail.details == {"argument": "path"}


class TestLogging:
    """Test cases for the logging processors."""

    def test_service_context(self):
        event = add_service_context(None, "info", {"logger": "content_repository.cache"})

        assert event["service"] == "content_repository"

    def test_correlation_context(self):
        request_id = set_request_id()
        try:
            event = add_correlation_context(None, "info", {})
            assert event["request_id"] == request_id
        finally:
            clear_context()

        assert "request_id" not in add_correlation_context(None, "info", {})


class TestMetricsCollector:
    """Test cases for MetricsCollector."""

    def test_collectors_do_not_share_registry(self):
        first = MetricsCollector("a")
        second = MetricsCollector("b")

        first.increment_counter("content_cache_requests_total", result="hit")

        assert first.get_sample_value("content_cache_requests_total", {"result": "hit"}) == 1
        assert second.get_sample_value("content_cache_requests_total", {"result": "hit"}) is None

    def test_unknown_metric_ignored(self):
        MetricsCollector("a").increment_counter("missing_total", result="hit")

    def test_gauge_and_render(self):
        metrics = MetricsCollector("a")

        metrics.set_gauge("content_cache_inflight", 2)
        metrics.record_error("CacheStoreError")

        assert metrics.get_sample_value("content_cache_inflight") == 2
        assert b"errors_total" in metrics.render()
