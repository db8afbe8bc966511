"""Tests for discovery options and YAML loading."""

import pytest
from pydantic import ValidationError

from druid_discovery.config import DiscoveryOptions, RetryPolicy, dump_options, load_options


def test_defaults():
    options = DiscoveryOptions()
    assert options.zk_hosts == "localhost:2181"
    assert options.zk_druid_path == "/druid"
    assert options.zk_session_timeout_ms == 30000
    assert options.zk_enable_compression is True
    assert options.retry == RetryPolicy(initial_delay_ms=1000, max_delay_ms=45000, max_retries=30)


def test_derived_paths():
    options = DiscoveryOptions(zk_druid_path="prod/druid/")
    assert options.zk_druid_path == "/prod/druid"
    assert options.announcements_path == "/prod/druid/announcements"
    assert options.segments_path == "/prod/druid/segments"
    assert options.discovery_path == "/prod/druid/discovery"


def test_service_path_qualification():
    plain = DiscoveryOptions()
    qualified = DiscoveryOptions(zk_qualify_discovery_names=True)
    assert plain.service_path("broker") == "/druid/discovery/broker"
    assert qualified.qualify_service_name("broker") == "/druid:broker"
    assert qualified.service_path("broker") == "/druid/discovery/druid:broker"


def test_rejects_invalid_values():
    with pytest.raises(ValidationError):
        DiscoveryOptions(dispatch_threads=0)
    with pytest.raises(ValidationError):
        RetryPolicy(max_retries=-2)


def test_load_none_returns_defaults():
    assert load_options(None) == DiscoveryOptions()


def test_load_top_level_mapping(tmp_path):
    path = tmp_path / "discovery.yaml"
    path.write_text("zk_hosts: zk1:2181,zk2:2181\nzk_druid_path: /cluster\n", encoding="utf-8")

    options = load_options(path)

    assert options.zk_hosts == "zk1:2181,zk2:2181"
    assert options.zk_druid_path == "/cluster"


def test_load_discovery_section(tmp_path):
    path = tmp_path / "app.yaml"
    path.write_text(
        "discovery:\n  zk_hosts: zk9:2181\n  retry:\n    max_retries: 3\nother: ignored\n",
        encoding="utf-8",
    )

    options = load_options(path)

    assert options.zk_hosts == "zk9:2181"
    assert options.retry.max_retries == 3
    assert options.retry.initial_delay_ms == 1000


def test_dump_then_load(tmp_path):
    options = DiscoveryOptions(zk_hosts="zk1:2181", zk_qualify_discovery_names=True)
    path = tmp_path / "nested" / "discovery.yaml"

    dump_options(options, path)

    assert path.read_text(encoding="utf-8").startswith("discovery:")
    assert load_options(path) == options


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_options(tmp_path / "absent.yaml")


def test_non_mapping_file(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_options(path)
