"""
Cache policy and cache entry models.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, FrozenSet, Optional


@dataclass(frozen=True)
class CachePolicy:
    """How long a computed value is remembered, and whether at all."""
    ttl: timedelta = timedelta(minutes=10)
    use_sliding_expiration: bool = False
    skip_if_empty: bool = True

    @classmethod
    def for_minutes(cls, minutes: float, *, use_sliding_expiration: bool = False,
                    skip_if_empty: bool = True) -> "CachePolicy":
        return cls(
            ttl=timedelta(minutes=minutes),
            use_sliding_expiration=use_sliding_expiration,
            skip_if_empty=skip_if_empty,
        )

    @property
    def ttl_seconds(self) -> float:
        return self.ttl.total_seconds()

    @property
    def enabled(self) -> bool:
        """A zero or negative TTL disables caching."""
        return self.ttl_seconds > 0


@dataclass
class CacheEntry:
    """A stored value with the dependency keys that invalidate it."""
    value: Any
    dependency_keys: FrozenSet[str]
    ttl_seconds: float
    use_sliding_expiration: bool = False
    expires_at: Optional[float] = None

    @classmethod
    def create(cls, value: Any, dependency_keys: FrozenSet[str], policy: CachePolicy) -> "CacheEntry":
        return cls(
            value=value,
            dependency_keys=dependency_keys,
            ttl_seconds=policy.ttl_seconds,
            use_sliding_expiration=policy.use_sliding_expiration,
        )

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def refresh(self, now: float) -> None:
        """Restart the expiration window from ``now``."""
        self.expires_at = now + self.ttl_seconds


def is_empty_value(value: Any) -> bool:
    """None and zero-length values count as empty results."""
    if value is None:
        return True
    try:
        return len(value) == 0
    except TypeError:
        return False
