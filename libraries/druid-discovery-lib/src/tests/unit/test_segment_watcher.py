"""Tests for segment event forwarding."""

from druid_discovery.models import PathEvent, PathEventType
from druid_discovery.watching.segment_watcher import SegmentWatcher

SEGMENT = "/druid/segments/host1:8083/wiki_2024-01-01"


def test_forwards_event_payload(connection):
    changes = []
    SegmentWatcher(connection, changes.append)(PathEvent.added(SEGMENT, b"segment"))
    assert changes == [b"segment"]


def test_fetches_payload_when_event_has_none(connection, fake_zk):
    fake_zk.create(SEGMENT, b"fetched")
    changes = []
    SegmentWatcher(connection, changes.append)(PathEvent.added(SEGMENT))
    assert changes == [b"fetched"]


def test_removed_events_are_forwarded_too(connection):
    changes = []
    SegmentWatcher(connection, changes.append)(PathEvent.removed(SEGMENT, b"old"))
    assert changes == [b"old"]


def test_read_miss_drops_event_without_error(connection, caplog):
    changes = []
    SegmentWatcher(connection, changes.append)(PathEvent.removed(SEGMENT))
    assert changes == []
    assert "Ignoring event: Type - removed" in caplog.text


def test_read_error_drops_event_without_error(connection, fake_zk):
    fake_zk.create(SEGMENT, b"unreachable")
    fake_zk.failing_paths.add(SEGMENT)
    changes = []
    SegmentWatcher(connection, changes.append)(PathEvent.added(SEGMENT))
    assert changes == []


def test_initialized_event_is_ignored(connection):
    changes = []
    SegmentWatcher(connection, changes.append)(PathEvent(PathEventType.INITIALIZED, "/druid/segments/h"))
    assert changes == []


def test_callback_failure_is_logged(connection, caplog):
    def failing(payload):
        raise RuntimeError("boundary store down")

    SegmentWatcher(connection, failing)(PathEvent.added(SEGMENT, b"segment"))
    assert "Time boundary update failed" in caplog.text
