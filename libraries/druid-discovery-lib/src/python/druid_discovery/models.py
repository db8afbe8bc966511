"""Data models for Druid cluster discovery.

Node descriptors use Pydantic for validation; watch events are small
immutable records handed to per-role handlers.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from .paths import node_from_path


# ── Enums ─────────────────────────────────────────────────────────


class StartMode(str, enum.Enum):
    """How a watched path cache treats the children present at start."""

    SILENT_BUILD = "silent_build"
    """Load initial children into the mirror without emitting events."""

    POST_INITIALIZED = "post_initialized"
    """Emit ADDED for every initial child, then one INITIALIZED event."""


class CacheState(str, enum.Enum):
    """Lifecycle state of a watched path cache."""

    UNSTARTED = "unstarted"
    STARTED = "started"
    CLOSED = "closed"


class PathEventType(str, enum.Enum):
    """Types of events delivered by a watched path cache."""

    ADDED = "added"
    REMOVED = "removed"
    INITIALIZED = "initialized"


# ── Events ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PathEvent:
    """A change to one child of a watched path."""

    type: PathEventType
    path: str
    data: bytes | None = None

    @property
    def node_name(self) -> str | None:
        """Last segment of :attr:`path`, or None for INITIALIZED events."""
        if self.type is PathEventType.INITIALIZED:
            return None
        return node_from_path(self.path)

    @classmethod
    def added(cls, path: str, data: bytes | None = None) -> PathEvent:
        return cls(PathEventType.ADDED, path, data)

    @classmethod
    def removed(cls, path: str, data: bytes | None = None) -> PathEvent:
        return cls(PathEventType.REMOVED, path, data)


# ── Node Models ───────────────────────────────────────────────────


class NodeDescriptor(BaseModel):
    """A service instance as announced under the discovery path.

    Only :attr:`address` and :attr:`port` matter to discovery; the other
    fields of the service-instance JSON are kept for callers.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    address: str
    """Host name or IP the instance listens on."""

    port: int = Field(ge=0, le=65535)
    """Plain-text port of the instance."""

    name: str | None = None
    """Registered service name (e.g. ``druid:broker``)."""

    id: str | None = None
    """Instance id assigned at registration."""

    ssl_port: int | None = Field(default=None, alias="sslPort")
    """TLS port, if the instance exposes one."""

    service_type: str | None = Field(default=None, alias="serviceType")
    """Curator registration type (``DYNAMIC``, ``STATIC``, ...)."""

    @property
    def host_and_port(self) -> str:
        """The ``address:port`` string used by the roster and lookups."""
        return f"{self.address}:{self.port}"
