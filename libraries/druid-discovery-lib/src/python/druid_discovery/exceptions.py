"""Exception hierarchy for Druid cluster discovery.

Only the caller-facing paths raise: directory listings and service
lookups.  Failures inside watch handlers are logged and dropped.
"""

from __future__ import annotations


class DruidDiscoveryError(Exception):
    """Base exception for all discovery errors."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)


# ── Connection Errors ─────────────────────────────────────────────

class ConnectionNotStartedError(DruidDiscoveryError):
    """Raised when the ZooKeeper session is used before ``start()``."""

    def __init__(self, message: str = "ZooKeeper connection has not been started.") -> None:
        super().__init__(message)


# ── Lookup Errors ─────────────────────────────────────────────────

class ServiceLookupError(DruidDiscoveryError):
    """Raised when a directory listing or a service lookup fails.

    Connection loss and a missing path are reported through this same
    type; ``cause`` holds the originating exception when there is one.
    """

    def __init__(
        self,
        path: str,
        service_name: str | None = None,
        cause: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        self.path = path
        self.service_name = service_name
        self.cause = cause
        if message is None:
            if service_name:
                message = f"Failed to get '{service_name}' from path '{path}'."
            else:
                message = f"Failed to list children of '{path}'."
            if cause is not None:
                message += f" Reason: {cause!r}"
        super().__init__(message)


class ServiceNotFoundError(ServiceLookupError):
    """Raised when a service has no resolvable instance."""

    def __init__(self, service_name: str, path: str = "") -> None:
        super().__init__(
            path=path,
            service_name=service_name,
            message=f"There's no '{service_name}' in path '{path}'.",
        )


# ── Payload Errors ────────────────────────────────────────────────

class NodeDecodeError(DruidDiscoveryError):
    """Raised by a decode function when a node payload cannot be parsed."""

    def __init__(self, reason: str = "") -> None:
        msg = "Failed to decode node payload."
        if reason:
            msg += f" Reason: {reason}"
        super().__init__(msg)
