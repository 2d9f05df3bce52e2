"""Short-lived result cache and request rate limiter.

A firing computer polls for a fresh solution every frame while the inputs barely change;
the cache serves repeated requests for the same rounded inputs, and the rate limiter
caps how often a full solve may start.

Neither class is thread-safe; `LeadAngleCalculator` guards them with its lock.
"""
import math
from typing import Any, Dict, Generic, NamedTuple, Optional, TypeVar

from py_leadcalc.logger import logger
from py_leadcalc.vector import Vector3

__all__ = (
    'CachedResult',
    'ResultCache',
    'RateLimiter',
    'make_cache_key',
)

T = TypeVar('T')


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _format(v: Vector3) -> str:
    return f"{_round_half_up(v.x)},{_round_half_up(v.y)},{_round_half_up(v.z)}"


def make_cache_key(firer: Vector3, target_position: Vector3, target_velocity: Vector3) -> str:
    """Key from the firer position, target position and target velocity rounded to 1 unit.

    Examples:
        >>> make_cache_key(Vector3(0, 0, 0), Vector3(4999.6, 0.4, 0), Vector3(-10, 0, 0))
        '0,0,0|5000,0,0|-10,0,0'
    """
    return f"{_format(firer)}|{_format(target_position)}|{_format(target_velocity)}"


class CachedResult(NamedTuple):
    """Cache entry.

    Attributes:
        result: Cached value.
        timestamp: Clock time (s) the value was stored.
        key: Cache key.
    """
    result: Any
    timestamp: float
    key: str


class ResultCache(Generic[T]):
    """TTL cache with capacity-bounded eviction of the oldest entries.

    Args:
        ttl: Entry lifetime in seconds.
        max_size: Capacity; reaching it on insert triggers `cleanup`.
    """

    def __init__(self, ttl: float = 0.1, max_size: int = 50) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.ttl = ttl
        self.max_size = max_size
        self._entries: Dict[str, CachedResult] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, now: float) -> Optional[CachedResult]:
        """Entry for `key` younger than the TTL; an expired entry is removed."""
        cached = self._entries.get(key)
        if cached is not None and now - cached.timestamp < self.ttl:
            self.hits += 1
            return cached
        if cached is not None:
            del self._entries[key]
        self.misses += 1
        return None

    def peek(self, key: str) -> Optional[CachedResult]:
        """Entry for `key` regardless of age, without touching statistics."""
        return self._entries.get(key)

    def put(self, key: str, result: T, now: float) -> CachedResult:
        if len(self._entries) >= self.max_size:
            self.cleanup(now)
        entry = CachedResult(result, now, key)
        self._entries[key] = entry
        return entry

    def cleanup(self, now: float) -> int:
        """Drop expired entries; if more than 80% of capacity would remain, also drop the oldest 30%.

        Returns:
            Number of entries removed.
        """
        doomed = {key for key, cached in self._entries.items() if now - cached.timestamp > self.ttl}
        if len(self._entries) - len(doomed) > self.max_size * 0.8:
            oldest = sorted(self._entries.values(), key=lambda c: c.timestamp)
            doomed.update(c.key for c in oldest[:int(self.max_size * 0.3)])
        for key in doomed:
            del self._entries[key]
        logger.debug(f"Result cache cleanup removed {len(doomed)} entries, {len(self._entries)} left")
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> Dict[str, Any]:
        """Size and hit statistics."""
        lookups = self.hits + self.misses
        return {
            'size': len(self._entries),
            'max_size': self.max_size,
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / lookups if lookups else None,
        }


class RateLimiter:
    """Minimum interval between full computations.

    Args:
        min_interval: Seconds that must pass after a computation before the next one.
    """

    def __init__(self, min_interval: float = 0.016) -> None:
        if min_interval < 0:
            raise ValueError(f"min_interval must not be negative, got {min_interval}")
        self.min_interval = min_interval
        self.last: Optional[float] = None

    def allow(self, now: float) -> bool:
        """True when a computation may start at `now`."""
        return self.last is None or now - self.last >= self.min_interval

    def mark(self, now: float) -> None:
        """Record that a computation ran at `now`."""
        self.last = now

    def reset(self) -> None:
        self.last = None
