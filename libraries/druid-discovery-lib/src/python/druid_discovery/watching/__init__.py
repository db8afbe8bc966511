# Watching subpackage

from .announcement_watcher import AnnouncementWatcher
from .broker_roster import BrokerRoster
from .broker_watcher import BrokerWatcher
from .segment_watcher import SegmentWatcher
from .server_segment_registry import ServerSegmentRegistry
from .watched_path_cache import WatchedPathCache

__all__ = [
    "AnnouncementWatcher",
    "BrokerRoster",
    "BrokerWatcher",
    "SegmentWatcher",
    "ServerSegmentRegistry",
    "WatchedPathCache",
]
