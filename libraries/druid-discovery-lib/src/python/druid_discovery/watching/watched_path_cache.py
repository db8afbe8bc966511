"""Watched path cache — a live local mirror of one znode's children.

The cache keeps a ``child name -> payload`` mirror of a path and turns
every change of the child set into :class:`PathEvent` objects delivered
to its listeners.

Watching is left to kazoo recipes: a ``DataWatch`` follows the path
itself (it may not exist yet, and may be deleted and re-created), and
while the path exists a ``ChildrenWatch`` reports its child names.  Both
re-arm across reconnects and session loss.  The recipes only record the
latest child names; diffing, optional data fetches and listener calls
run on the shared dispatch executor, never on the kazoo event thread and
never on the thread calling :meth:`WatchedPathCache.start`.

Refreshes of one cache are serialized, so listeners of a single cache
see events in the order the child set changed.  Caches are independent
of each other; no ordering holds across caches.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor
from functools import partial
from typing import Any, Callable

from ..connection.connection_manager import ConnectionManager
from ..models import CacheState, PathEvent, PathEventType, StartMode
from ..paths import make_path, normalize_path

logger = logging.getLogger(__name__)

PathListener = Callable[[PathEvent], None]


class WatchedPathCache:
    """Mirror of the children of a single path.

    Parameters:
        connection:
            Shared :class:`ConnectionManager`.
        path:
            The znode whose children are mirrored.
        executor:
            Dispatch pool on which watch setup, refreshes and listeners
            run.
        cache_data:
            Whether child payloads are fetched when a child first
            appears.  Cached payloads travel with ADDED and REMOVED
            events, so a REMOVED event still carries the data of a node
            that no longer exists.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        path: str,
        executor: Executor,
        cache_data: bool = True,
    ) -> None:
        self._connection = connection
        self._path = normalize_path(path)
        self._executor = executor
        self._cache_data = cache_data

        # Guards state, listeners, the latest child names and the
        # children watch generation.
        self._state_lock = threading.Lock()
        self._state = CacheState.UNSTARTED
        self._start_mode: StartMode | None = None
        self._listeners: list[PathListener] = []
        self._refresh_pending = False
        self._latest_names: list[str] | None = None
        self._watch_generation = 0
        self._children_watched = False

        # Serializes refreshes; guards the mirror and the initialized flag.
        self._refresh_lock = threading.Lock()
        self._initialized = False
        self._children: dict[str, bytes | None] = {}

    # ── Properties ────────────────────────────────────────────────

    @property
    def path(self) -> str:
        return self._path

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def start_mode(self) -> StartMode | None:
        return self._start_mode

    def current_children(self) -> list[str]:
        """Return the sorted names of the currently mirrored children."""
        return sorted(self._children)

    def current_data(self, name: str) -> bytes | None:
        """Return the cached payload of child *name*, if any."""
        return self._children.get(name)

    # ── Listeners ─────────────────────────────────────────────────

    def add_listener(self, listener: PathListener) -> None:
        with self._state_lock:
            if self._state is CacheState.CLOSED:
                logger.warning("Ignoring listener added to closed cache %s", self._path)
                return
            self._listeners.append(listener)

    def clear_listeners(self) -> None:
        with self._state_lock:
            self._listeners.clear()

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self, mode: StartMode = StartMode.SILENT_BUILD) -> None:
        """Start watching.

        Setting up the watches is scheduled on the dispatch pool, so
        this call does not wait on ZooKeeper as long as the pool runs
        tasks on its own threads.

        Raises:
            RuntimeError: If the cache was already started or closed.
        """
        with self._state_lock:
            if self._state is not CacheState.UNSTARTED:
                raise RuntimeError(f"Cache for {self._path} cannot be started from state {self._state.value}")
            self._state = CacheState.STARTED
            self._start_mode = mode
        logger.debug("Starting cache for %s in %s mode", self._path, mode.value)
        self._submit(self._install_watches)

    def close(self) -> bool:
        """Detach all listeners and stop delivering events.

        A listener call already running is not interrupted.  The kazoo
        watches are removed the next time they fire.

        Returns:
            True if this call closed the cache, False if it was
            already closed.
        """
        with self._state_lock:
            if self._state is CacheState.CLOSED:
                return False
            self._state = CacheState.CLOSED
            self._listeners.clear()
        logger.debug("Closed cache for %s", self._path)
        return True

    # ── Watches ───────────────────────────────────────────────────

    def _install_watches(self) -> None:
        if self._state is not CacheState.STARTED:
            return
        try:
            self._connection.data_watch(self._path, self._on_path_changed)
        except Exception:
            logger.exception("Failed to watch %s", self._path)

    def _on_path_changed(self, data: Any, stat: Any, event: Any = None) -> bool | None:
        # Runs on the kazoo event thread.
        with self._state_lock:
            if self._state is CacheState.CLOSED:
                return False
            if stat is None:
                # Gone, or not created yet: the children watch (if any)
                # has stopped, and a stale one must not report again.
                self._watch_generation += 1
                self._children_watched = False
                self._latest_names = []
                install = False
            else:
                install = not self._children_watched
                if install:
                    self._watch_generation += 1
                    self._children_watched = True
            generation = self._watch_generation

        if install:
            self._connection.children_watch(self._path, partial(self._on_children, generation))
        elif stat is None:
            self._schedule_refresh()
        return None

    def _on_children(self, generation: int, names: list[str]) -> bool | None:
        # Runs on the kazoo event thread.
        with self._state_lock:
            if self._state is CacheState.CLOSED or generation != self._watch_generation:
                return False
            self._latest_names = list(names)
        self._schedule_refresh()
        return None

    # ── Refresh ───────────────────────────────────────────────────

    def _schedule_refresh(self) -> None:
        with self._state_lock:
            if self._state is not CacheState.STARTED or self._refresh_pending:
                return
            self._refresh_pending = True
        if not self._submit(self._refresh):
            with self._state_lock:
                self._refresh_pending = False

    def _submit(self, task: Callable[[], None]) -> bool:
        try:
            self._executor.submit(task)
        except RuntimeError:
            logger.warning("Dispatch pool rejected work for %s", self._path)
            return False
        return True

    def _refresh(self) -> None:
        with self._refresh_lock:
            with self._state_lock:
                self._refresh_pending = False
                if self._state is not CacheState.STARTED or self._latest_names is None:
                    return
                names = self._latest_names

            previous = self._children
            current: dict[str, bytes | None] = {}
            for name in sorted(names):
                current[name] = previous[name] if name in previous else self._fetch(name)
            self._children = current

            if not self._initialized:
                self._initialized = True
                events = self._initial_events(current)
            else:
                events = [
                    PathEvent.removed(make_path(self._path, name), data)
                    for name, data in previous.items()
                    if name not in current
                ]
                events.extend(
                    PathEvent.added(make_path(self._path, name), data)
                    for name, data in current.items()
                    if name not in previous
                )

            for event in events:
                self._dispatch(event)

    def _initial_events(self, children: dict[str, bytes | None]) -> list[PathEvent]:
        if self._start_mode is not StartMode.POST_INITIALIZED:
            logger.debug("Built initial cache for %s with %d children", self._path, len(children))
            return []
        events = [PathEvent.added(make_path(self._path, name), data) for name, data in children.items()]
        events.append(PathEvent(PathEventType.INITIALIZED, self._path))
        return events

    def _fetch(self, name: str) -> bytes | None:
        if not self._cache_data:
            return None
        return self._connection.get_data(make_path(self._path, name))

    def _dispatch(self, event: PathEvent) -> None:
        with self._state_lock:
            if self._state is not CacheState.STARTED:
                return
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener failed on %s event for %s",
                    event.type.value,
                    event.path,
                )
