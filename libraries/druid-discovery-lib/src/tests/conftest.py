"""Shared fixtures: an in-memory stand-in for the kazoo client and an inline executor."""

from __future__ import annotations

import gzip
import itertools
import json
import threading
import time
from concurrent.futures import Executor, Future
from functools import partial
from types import SimpleNamespace

import pytest
from kazoo.exceptions import ConnectionClosedError, ConnectionLoss, NoNodeError
from kazoo.recipe.watchers import ChildrenWatch, DataWatch

from druid_discovery.connection.connection_manager import ConnectionManager


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, /, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


class InlineHandler:
    """The parts of a kazoo handler the watch recipes use, all synchronous."""

    sleep_func = staticmethod(time.sleep)

    def lock_object(self):
        return threading.RLock()

    def spawn(self, func, *args, **kwargs):
        func(*args, **kwargs)


class FakeKazooClient:
    """Just enough of ``KazooClient`` to drive the kazoo watch recipes from tests.

    Watches fire synchronously on the thread that changes the tree.
    """

    def __init__(self, **kwargs):
        self.init_kwargs = kwargs
        self.handler = InlineHandler()
        self.nodes = {"/": b""}
        self.mzxids = {"/": 0}
        self.node_watches = {}
        self.child_watches = {}
        self.state_listeners = []
        self.failing_paths = set()
        self.started = False
        self.stopped = False
        self.closed = False
        self.start_timeout = None
        self._zxid = itertools.count(1)
        self.ChildrenWatch = partial(ChildrenWatch, self)
        self.DataWatch = partial(DataWatch, self)

    # ── Session ──

    def add_listener(self, listener):
        self.state_listeners.append(listener)

    def remove_listener(self, listener):
        if listener in self.state_listeners:
            self.state_listeners.remove(listener)

    def start(self, timeout=15):
        self.started = True
        self.start_timeout = timeout
        self.set_state("CONNECTED")

    def stop(self):
        self.stopped = True

    def close(self):
        self.closed = True

    def set_state(self, state):
        for listener in list(self.state_listeners):
            listener(state)

    def retry(self, func, *args, **kwargs):
        return func(*args, **kwargs)

    # ── Reads ──

    def get(self, path, watch=None):
        self._check(path)
        if path not in self.nodes:
            raise NoNodeError()
        if watch is not None:
            self.node_watches.setdefault(path, []).append(watch)
        return self.nodes[path], self._stat(path)

    def get_children(self, path, watch=None):
        self._check(path)
        if path not in self.nodes:
            raise NoNodeError()
        if watch is not None:
            self.child_watches.setdefault(path, []).append(watch)
        return self._children_of(path)

    def exists(self, path, watch=None):
        self._check(path)
        if watch is not None:
            self.node_watches.setdefault(path, []).append(watch)
        if path not in self.nodes:
            return None
        return self._stat(path)

    # ── Writes (test side) ──

    def create(self, path, value=b"", makepath=True):
        parent = path.rsplit("/", 1)[0] or "/"
        if parent not in self.nodes:
            self.create(parent, b"")
        self.nodes[path] = value
        self.mzxids[path] = next(self._zxid)
        self._fire(self.node_watches, path, "CREATED")
        self._fire(self.child_watches, parent, "CHILD")

    def delete(self, path, recursive=True):
        for child in self._children_of(path):
            self.delete(f"{path.rstrip('/')}/{child}")
        del self.nodes[path]
        del self.mzxids[path]
        parent = path.rsplit("/", 1)[0] or "/"
        self._fire(self.node_watches, path, "DELETED")
        self._fire(self.child_watches, path, "DELETED")
        self._fire(self.child_watches, parent, "CHILD")

    def lose_session(self, changes=None):
        """Drop every watch, apply *changes* unobserved, then reconnect."""
        self.set_state("LOST")
        self.node_watches.clear()
        self.child_watches.clear()
        for path, value in (changes or {}).items():
            if value is None:
                del self.nodes[path]
                del self.mzxids[path]
            else:
                self.nodes[path] = value
                self.mzxids[path] = next(self._zxid)
        self.set_state("CONNECTED")

    # ── Helpers ──

    def _children_of(self, path):
        prefix = "/" if path == "/" else path + "/"
        return sorted(
            p[len(prefix):]
            for p in self.nodes
            if p != path and p.startswith(prefix) and "/" not in p[len(prefix):]
        )

    def _stat(self, path):
        return SimpleNamespace(version=0, mzxid=self.mzxids[path])

    def _check(self, path):
        if self.stopped:
            raise ConnectionClosedError()
        if path in self.failing_paths:
            raise ConnectionLoss()

    def _fire(self, watches, path, event_type):
        if self.stopped:
            return
        for watcher in watches.pop(path, []):
            watcher(SimpleNamespace(path=path, type=event_type, state="CONNECTED"))


def service_payload(address, port, name="druid:broker", compress=False):
    """Serialize a Curator service-instance document the way Druid does."""
    data = json.dumps(
        {
            "name": name,
            "id": f"{address}-{port}",
            "address": address,
            "port": port,
            "sslPort": None,
            "payload": None,
            "registrationTimeUTC": 1700000000000,
            "serviceType": "DYNAMIC",
        }
    ).encode("utf-8")
    return gzip.compress(data) if compress else data


@pytest.fixture
def fake_zk():
    return FakeKazooClient()


@pytest.fixture
def inline_executor():
    return InlineExecutor()


@pytest.fixture
def connection(fake_zk):
    manager = ConnectionManager("zk-test:2181", client_factory=lambda **kwargs: fake_zk)
    manager.start()
    yield manager
    manager.close()


@pytest.fixture
def make_payload():
    return service_payload
