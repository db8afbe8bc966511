"""Broker watcher — keeps the broker roster in step with service discovery."""

from __future__ import annotations

import logging

from ..connection.connection_manager import ConnectionManager
from ..decoding import NodeDecoder, decode_node_descriptor
from ..exceptions import NodeDecodeError
from ..models import PathEvent, PathEventType
from .broker_roster import BrokerRoster

logger = logging.getLogger(__name__)


class BrokerWatcher:
    """Listener for the broker discovery cache.

    Parameters:
        connection: Shared :class:`ConnectionManager`.
        roster: The :class:`BrokerRoster` to maintain.
        decode: Turns a node payload into a descriptor.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        roster: BrokerRoster,
        decode: NodeDecoder = decode_node_descriptor,
    ) -> None:
        self._connection = connection
        self._roster = roster
        self._decode = decode

    def __call__(self, event: PathEvent) -> None:
        if event.type not in (PathEventType.ADDED, PathEventType.REMOVED):
            return
        host = self._resolve_host(event)
        if host is None:
            return
        if event.type is PathEventType.ADDED:
            self._roster.add(host)
        else:
            self._roster.remove(host)

    def _resolve_host(self, event: PathEvent) -> str | None:
        payload = event.data
        if payload is None:
            payload = self._connection.get_data(event.path)
        if payload is None:
            logger.warning("Ignoring event: Type - %s, Path - %s", event.type.value, event.path)
            return None
        try:
            return self._decode(payload).host_and_port
        except NodeDecodeError:
            logger.error("Ignoring broker %s with undecodable payload", event.path, exc_info=True)
            return None
