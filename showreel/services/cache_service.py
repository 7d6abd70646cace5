# showreel/services/cache_service.py
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from showreel.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


class CacheKeys:
    PUBLISHED_PROJECTS = "projects:published"
    FEATURED_PROJECTS = "projects:featured"
    PORTFOLIO_STATS = "portfolio:stats"
    PROJECT_PREFIX = "project:"

    @staticmethod
    def project(project_id: int) -> str:
        return f"{CacheKeys.PROJECT_PREFIX}{project_id}"


class CacheTTL:
    LIST = 600
    PROJECT = 1800
    STATS = 1800


class TTLCache:
    """
    Process-local key/value cache with a TTL per entry.
    The database stays the source of truth; clearing this never loses data.
    """

    def __init__(self, default_ttl: int = CacheTTL.LIST, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._store: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        # 失效计数：get_or_load 加载期间若发生失效，结果不写回
        self._epoch = 0
        self._key_epochs: Dict[str, int] = {}
        self._prefix_epochs: Dict[str, int] = {}
        self._cleared_epoch = 0

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._store[key]
                return default
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._store[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> bool:
        with self._lock:
            self._epoch += 1
            self._key_epochs[key] = self._epoch
            return self._store.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            self._epoch += 1
            self._prefix_epochs[prefix] = self._epoch
            doomed = [key for key in self._store if key.startswith(prefix)]
            for key in doomed:
                del self._store[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._cleared_epoch = self._epoch
            self._store.clear()

    def _invalidated_after(self, key: str, epoch: int) -> bool:
        last = max(
            self._cleared_epoch,
            self._key_epochs.get(key, 0),
            max((e for p, e in self._prefix_epochs.items() if key.startswith(p)), default=0),
        )
        return last > epoch

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get_or_load(self, key: str, ttl: int, loader: Callable[[], Any]) -> Any:
        """
        Cached value for ``key`` or the loader's result.
        A loader returning None is not cached (not found must hit the DB again).
        If ``key`` is invalidated while the loader runs, the result is returned
        but not stored.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        with self._lock:
            started = self._epoch
        value = loader()
        if value is None:
            return value
        with self._lock:
            if self._invalidated_after(key, started):
                logger.debug(f"Cache load for {key} overlapped an invalidation, not stored")
            else:
                self._store[key] = (self._clock() + ttl, value)
        return value


class CacheOp(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REORDER = "reorder"
    MEDIA = "media"


_LIST_KEYS = (
    CacheKeys.PUBLISHED_PROJECTS,
    CacheKeys.FEATURED_PROJECTS,
    CacheKeys.PORTFOLIO_STATS,
)

# 这些操作会改变其他项目的 displayOrder，单个项目缓存全部失效
_RANK_SHIFTING_OPS = {CacheOp.CREATE, CacheOp.DELETE, CacheOp.REORDER}


class CacheInvalidationPolicy:
    """
    The one place that knows which cache entries a project mutation affects.
    Mutation paths call ``invalidate`` after their commit and never touch
    cache keys themselves.
    """

    def __init__(self, cache: TTLCache):
        self.cache = cache

    def keys_for(self, op: CacheOp, project_id: Optional[int] = None) -> Tuple[List[str], List[str]]:
        '''
        :return: (exact keys, key prefixes) to drop for ``op``
        '''
        keys = list(_LIST_KEYS)
        prefixes: List[str] = []
        if op in _RANK_SHIFTING_OPS:
            prefixes.append(CacheKeys.PROJECT_PREFIX)
        elif project_id is not None:
            keys.append(CacheKeys.project(project_id))
        else:
            prefixes.append(CacheKeys.PROJECT_PREFIX)
        return keys, prefixes

    def invalidate(self, op: CacheOp, project_id: Optional[int] = None) -> None:
        keys, prefixes = self.keys_for(op, project_id)
        for key in keys:
            self.cache.delete(key)
        for prefix in prefixes:
            self.cache.delete_prefix(prefix)
        logger.debug(f"Cache invalidated op={op.value} project={project_id} keys={keys} prefixes={prefixes}")
