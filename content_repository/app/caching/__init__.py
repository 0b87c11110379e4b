"""
Content caching package.

Provides the progressive (compute-once-per-key) cache, cache key composition,
dependency key extraction and the cache stores. Entries are only stored with
a non-empty dependency key set so they can always be invalidated.
"""
