import threading
import time
from typing import Any, Callable, MutableMapping, Optional


class TTLCache:
    """Small in-process cache whose entries expire after ``ttl_seconds``.

    Both the clock and the backing mapping are injectable so expiry can be
    exercised without sleeping. Entries are stored as ``(stored_at, value)``.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        storage: Optional[MutableMapping[str, Any]] = None,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self.ttl = ttl_seconds
        self._clock = clock
        self._store = storage if storage is not None else {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl:
                self._store.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._store[key] = (self._clock(), value)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
