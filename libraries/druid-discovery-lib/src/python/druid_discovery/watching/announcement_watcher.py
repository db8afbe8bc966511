"""Announcement watcher — follows data servers joining and leaving.

Each child of ``<root>/announcements`` is an active data server.  When
one appears, a segment cache over ``<root>/segments/<key>`` is created
and registered; when it disappears, that cache is closed.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor

from ..connection.connection_manager import ConnectionManager
from ..models import PathEvent, PathEventType
from ..paths import make_path
from .segment_watcher import SegmentWatcher
from .server_segment_registry import ServerSegmentRegistry
from .watched_path_cache import WatchedPathCache

logger = logging.getLogger(__name__)


class AnnouncementWatcher:
    """Listener for the announcements cache.

    Parameters:
        connection: Shared :class:`ConnectionManager`.
        registry: The :class:`ServerSegmentRegistry` to maintain.
        segments_path: Parent of all per-server segment paths.
        segment_watcher: Listener attached to every segment cache.
        executor: Dispatch pool handed to the segment caches.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        registry: ServerSegmentRegistry,
        segments_path: str,
        segment_watcher: SegmentWatcher,
        executor: Executor,
    ) -> None:
        self._connection = connection
        self._registry = registry
        self._segments_path = segments_path
        self._segment_watcher = segment_watcher
        self._executor = executor

    def __call__(self, event: PathEvent) -> None:
        if event.type is PathEventType.ADDED:
            self._on_server_added(event)
        elif event.type is PathEventType.REMOVED:
            self._on_server_removed(event)

    def _on_server_added(self, event: PathEvent) -> None:
        key = event.node_name
        if not key:
            return
        data = event.data if event.data is not None else self._connection.get_data(event.path)
        if data is None:
            logger.warning("Ignoring event: Type - %s, Path - %s", event.type.value, event.path)
            return
        self._registry.register(key, lambda: self._create_segment_cache(key))

    def _on_server_removed(self, event: PathEvent) -> None:
        # The announcement is gone by now, so the key comes from the path only.
        self._registry.unregister(event.node_name)

    def _create_segment_cache(self, key: str) -> WatchedPathCache:
        cache = WatchedPathCache(
            self._connection,
            make_path(self._segments_path, key),
            self._executor,
        )
        cache.add_listener(self._segment_watcher)
        return cache
