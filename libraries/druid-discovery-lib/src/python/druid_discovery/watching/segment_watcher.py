"""Segment watcher — forwards segment announcements to the time-boundary callback.

Every ADDED or REMOVED segment of a data server means the time boundary
of that segment's datasource may have moved.  The watcher hands the raw
segment payload to the callback and leaves decoding to it.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..connection.connection_manager import ConnectionManager
from ..models import PathEvent, PathEventType

logger = logging.getLogger(__name__)

SegmentCallback = Callable[[bytes], None]


class SegmentWatcher:
    """Listener for one server's segment cache.

    Parameters:
        connection: Shared :class:`ConnectionManager`.
        on_segment_change: Called with the segment payload for every
            segment that appears or disappears.  Must return promptly.
    """

    def __init__(self, connection: ConnectionManager, on_segment_change: SegmentCallback) -> None:
        self._connection = connection
        self._on_segment_change = on_segment_change

    def __call__(self, event: PathEvent) -> None:
        if event.type not in (PathEventType.ADDED, PathEventType.REMOVED):
            return
        logger.debug("Segment event %s occurred for %s", event.type.value, event.path)

        payload = event.data
        if payload is None:
            payload = self._connection.get_data(event.path)
        if payload is None:
            logger.warning("Ignoring event: Type - %s, Path - %s", event.type.value, event.path)
            return

        try:
            self._on_segment_change(payload)
        except Exception:
            logger.exception("Time boundary update failed for segment %s", event.path)
