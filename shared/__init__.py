"""
Shared utilities for the content repository layer.

This package aggregates common building blocks consumed by the repositories
and the progressive cache:

- config: Settings via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types
- test_helpers: Test entities and fakes for the test suites
"""
