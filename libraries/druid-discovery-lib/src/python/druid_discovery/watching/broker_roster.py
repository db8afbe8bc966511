"""Broker roster — ordered, duplicate-free list of brokers handed out round robin."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ..exceptions import ServiceNotFoundError

logger = logging.getLogger(__name__)


class BrokerRoster:
    """Thread-safe round-robin roster of ``host:port`` broker addresses.

    The list order only records the rotation position.  When the roster
    is empty at selection time it is filled from *bootstrap*.

    Parameters:
        bootstrap:
            Returns the currently registered brokers.  Called without
            the roster lock held, since it usually reads ZooKeeper.
        service_name:
            Service name reported when no broker can be found.
        service_path:
            Discovery path reported along with it.
    """

    def __init__(
        self,
        bootstrap: Callable[[], list[str]] | None = None,
        service_name: str = "broker",
        service_path: str = "",
    ) -> None:
        self._lock = threading.Lock()
        self._brokers: list[str] = []
        self._bootstrap = bootstrap
        self._service_name = service_name
        self._service_path = service_path

    def snapshot(self) -> list[str]:
        """Return the roster in its current rotation order."""
        with self._lock:
            return list(self._brokers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._brokers)

    def add(self, host: str) -> bool:
        """Append *host* unless it is already present."""
        with self._lock:
            if host in self._brokers:
                logger.warning("New broker[%s] but there was already one, ignoring new one.", host)
                return False
            self._brokers.append(host)
        logger.debug("New broker[%s] is added to cache.", host)
        return True

    def remove(self, host: str) -> bool:
        """Remove *host*, keeping the relative order of the others."""
        with self._lock:
            if host not in self._brokers:
                logger.warning("Broker[%s] is not in the cache, nothing to remove.", host)
                return False
            self._brokers.remove(host)
        logger.debug("Broker[%s] is offline, so it was removed from the cache.", host)
        return True

    def next(self) -> str:
        """Return the head broker and rotate it to the tail.

        Raises:
            ServiceNotFoundError: If the roster is empty and bootstrap
                yields no broker.
            ServiceLookupError: If the bootstrap lookup fails.
        """
        with self._lock:
            if self._brokers:
                return self._rotate()

        discovered = self._bootstrap() if self._bootstrap is not None else []

        with self._lock:
            if not self._brokers:
                # Keep order, drop duplicates.
                self._brokers = list(dict.fromkeys(discovered))
                if self._brokers:
                    logger.info("Bootstrapped broker roster with %d brokers", len(self._brokers))
            if not self._brokers:
                raise ServiceNotFoundError(self._service_name, self._service_path)
            return self._rotate()

    def _rotate(self) -> str:
        broker = self._brokers.pop(0)
        self._brokers.append(broker)
        return broker
