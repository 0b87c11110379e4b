"""
Cache key composition and dependency key normalization.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Optional

from shared.errors import InvalidArgumentError


PART_SEPARATOR = "|"
SEQUENCE_SEPARATOR = "_"


class CacheKeyComposer:
    """
    Builds deterministic cache keys from ordered parts.

    Each part is rendered to a stable string and the parts are joined with
    ``|``. A list or tuple part becomes a single segment whose elements are
    joined with ``_`` in their given order, so ``compose("a", [1, 2])`` is
    ``"a|1_2"``. Sets are sorted first since they carry no order. Keys are
    case-sensitive and argument order is part of the key.
    """

    def compose(self, *parts: Any) -> str:
        if not parts:
            raise InvalidArgumentError("At least one cache key part is required")
        return PART_SEPARATOR.join(self._format_part(part, index) for index, part in enumerate(parts))

    def _format_part(self, part: Any, index: int) -> str:
        if part is None:
            raise InvalidArgumentError("Cache key parts must not be None", {"index": index})

        if isinstance(part, (list, tuple)):
            return SEQUENCE_SEPARATOR.join(self._format_element(element, index) for element in part)

        if isinstance(part, (set, frozenset)):
            return SEQUENCE_SEPARATOR.join(sorted(self._format_element(element, index) for element in part))

        return self._format_scalar(part)

    def _format_element(self, element: Any, index: int) -> str:
        if element is None:
            raise InvalidArgumentError("Cache key sequence elements must not be None", {"index": index})
        return self._format_scalar(element)

    @staticmethod
    def _format_scalar(value: Any) -> str:
        if isinstance(value, Enum):
            return str(value.value)
        if isinstance(value, type):
            return f"{value.__module__}.{value.__qualname__}"
        return str(value)


_default_composer = CacheKeyComposer()


def compose_cache_key(*parts: Any) -> str:
    """Compose a cache key with the default composer."""
    return _default_composer.compose(*parts)


class DependencyKeySet:
    """
    Set of dependency keys compared without regard to case.

    The first spelling added for a key is the one kept.
    """

    def __init__(self, keys: Optional[Iterable[str]] = None):
        self._keys: Dict[str, str] = {}
        if keys is not None:
            self.update(keys)

    def add(self, key: Optional[str]) -> None:
        if not key:
            return
        self._keys.setdefault(key.lower(), key)

    def update(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.add(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys.values())

    def __len__(self) -> int:
        return len(self._keys)

    def to_frozenset(self) -> FrozenSet[str]:
        return frozenset(self._keys.values())


def normalize_dependency_keys(keys: Optional[Iterable[str]]) -> FrozenSet[str]:
    """Deduplicate dependency keys ignoring case and drop empty ones."""
    if keys is None:
        return frozenset()
    if isinstance(keys, str):
        keys = [keys]
    return DependencyKeySet(keys).to_frozenset()
