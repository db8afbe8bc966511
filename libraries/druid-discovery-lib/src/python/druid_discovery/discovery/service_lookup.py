"""Service lookup — on-demand resolution of named Druid services.

Instances of a service ``name`` are the children of
``<root>/discovery/<name>`` (or ``<root>/discovery/<root>:<name>`` when
discovery names are qualified).  Lookups always read ZooKeeper; nothing
is cached here.
"""

from __future__ import annotations

import logging

from ..connection.connection_manager import ConnectionManager
from ..decoding import NodeDecoder, decode_node_descriptor
from ..exceptions import NodeDecodeError, ServiceLookupError, ServiceNotFoundError
from ..paths import make_path

logger = logging.getLogger(__name__)


class ServiceLookup:
    """Blocking directory lookup for named services.

    Parameters:
        connection: Shared :class:`ConnectionManager`.
        discovery_path: The ``<root>/discovery`` path.
        name_prefix: If set, service names are qualified as
            ``<name_prefix>:<name>``.
        decode: Turns a node payload into a descriptor.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        discovery_path: str,
        name_prefix: str | None = None,
        decode: NodeDecoder = decode_node_descriptor,
    ) -> None:
        self._connection = connection
        self._discovery_path = discovery_path
        self._name_prefix = name_prefix
        self._decode = decode

    def qualify(self, name: str) -> str:
        if self._name_prefix:
            return f"{self._name_prefix}:{name}"
        return name

    def service_path(self, name: str) -> str:
        return make_path(self._discovery_path, self.qualify(name))

    def get_services(self, name: str) -> list[str]:
        """Return ``address:port`` of every live instance of *name*.

        Instances whose data cannot be read are skipped.

        Raises:
            ServiceLookupError: If the listing fails or an instance
                payload cannot be decoded.
            ServiceNotFoundError: If no instance could be resolved.
        """
        path = self.service_path(name)
        try:
            children = self._connection.get_children(path)
        except ServiceLookupError as e:
            raise ServiceLookupError(path=path, service_name=name, cause=e.cause) from e

        services: list[str] = []
        for child in children:
            child_path = make_path(path, child)
            data = self._connection.get_data(child_path)
            if data is None:
                continue
            try:
                services.append(self._decode(data).host_and_port)
            except NodeDecodeError as e:
                raise ServiceLookupError(path=child_path, service_name=name, cause=e) from e

        if not services:
            raise ServiceNotFoundError(name, path)
        logger.debug("Resolved %d instances of '%s' under %s", len(services), name, path)
        return services

    def get_service(self, name: str) -> str:
        """Return the first live instance of *name*."""
        return self.get_services(name)[0]
