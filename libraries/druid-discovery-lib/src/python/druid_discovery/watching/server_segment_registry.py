"""Server segment registry — one segment cache per active data server.

The registry is mutated by announcement events.  A cache is reserved
under the registry lock and started right after the lock is released, so
a racing ADDED/REMOVED pair for one server can neither leak a cache nor
close one twice, and no executor work ever runs under the lock.  Once
:meth:`ServerSegmentRegistry.close_all` has run the registry refuses new
servers.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ..models import StartMode
from .watched_path_cache import WatchedPathCache

logger = logging.getLogger(__name__)


class ServerSegmentRegistry:
    """Thread-safe map of server key to that server's segment cache."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._caches: dict[str, WatchedPathCache] = {}
        self._closed = False

    # ── Query Methods ─────────────────────────────────────────────

    def keys(self) -> list[str]:
        """Return the sorted keys of all registered servers."""
        with self._lock:
            return sorted(self._caches)

    def get(self, key: str) -> WatchedPathCache | None:
        with self._lock:
            return self._caches.get(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._caches

    def __len__(self) -> int:
        with self._lock:
            return len(self._caches)

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ── Mutation Methods ──────────────────────────────────────────

    def register(self, key: str, create_cache: Callable[[], WatchedPathCache]) -> bool:
        """Create, register and start the segment cache for *key*.

        Args:
            key: The server key (last segment of its announcement path).
            create_cache: Builds an unstarted cache with its listeners
                attached.

        Returns:
            True if a cache was created, False if *key* already had one
            or the registry is closed.
        """
        with self._lock:
            if self._closed:
                logger.warning("New server[%s] after the registry was closed, ignoring it.", key)
                return False
            if key in self._caches:
                logger.warning("New server[%s] but there was already one, ignoring new one.", key)
                return False
            cache = create_cache()
            self._caches[key] = cache

        logger.debug("Starting inventory cache for %s, inventory path %s", key, cache.path)
        try:
            cache.start(StartMode.SILENT_BUILD)
        except RuntimeError:
            # Removed (and closed) between the reservation and the start.
            logger.debug("Inventory cache for %s was closed before it started", key)
        return True

    def unregister(self, key: str | None) -> bool:
        """Remove and close the segment cache of *key*.

        Returns:
            True if a cache was removed, False if *key* had none.
        """
        with self._lock:
            cache = self._caches.pop(key, None) if key is not None else None
            if cache is None:
                logger.warning("Cache[%s] removed that wasn't cached.", key)
                return False
            logger.info("Closing inventory cache for %s, also removing listeners.", key)
            cache.clear_listeners()
            cache.close()
            return True

    def close_all(self) -> list[str]:
        """Close every registered cache, empty the registry and refuse new servers.

        Returns:
            The keys whose caches were closed.
        """
        with self._lock:
            self._closed = True
            closed = sorted(self._caches)
            for key in closed:
                cache = self._caches.pop(key)
                cache.clear_listeners()
                cache.close()
            return closed
