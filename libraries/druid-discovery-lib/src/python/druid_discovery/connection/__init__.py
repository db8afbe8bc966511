"""ZooKeeper session and payload compression."""

from .compression import GzipCompressionProvider
from .connection_manager import ConnectionManager, build_retry

__all__ = [
    "ConnectionManager",
    "GzipCompressionProvider",
    "build_retry",
]
