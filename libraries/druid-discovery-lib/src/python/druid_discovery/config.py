"""Configuration models and helpers for Druid cluster discovery."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .paths import make_path, normalize_path


class RetryPolicy(BaseModel):
    """Bounded exponential backoff applied to the ZooKeeper session."""

    initial_delay_ms: int = Field(default=1000, ge=0, description="Delay before the first retry.")
    max_delay_ms: int = Field(default=45000, ge=0, description="Upper bound of a single retry delay.")
    max_retries: int = Field(default=30, ge=-1, description="Retry attempts; -1 retries forever.")


class DiscoveryOptions(BaseModel):
    """Where the Druid cluster lives in ZooKeeper and how to talk to it."""

    zk_hosts: str = Field(default="localhost:2181", description="ZooKeeper connect string.")
    zk_druid_path: str = Field(default="/druid", description="Root path of the Druid cluster.")
    zk_session_timeout_ms: int = Field(default=30000, ge=1)
    zk_connect_timeout_s: float = Field(default=15.0, gt=0)
    zk_enable_compression: bool = Field(default=True, description="Gzip data written through this client.")
    zk_qualify_discovery_names: bool = Field(
        default=False,
        description="Prefix discovery service names with the Druid root path.",
    )
    dispatch_threads: int = Field(default=4, ge=1, description="Workers of the owned event dispatch pool.")
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    @field_validator("zk_druid_path", mode="before")
    @classmethod
    def _normalize_root(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_path(value)
        return value

    @property
    def announcements_path(self) -> str:
        return make_path(self.zk_druid_path, "announcements")

    @property
    def segments_path(self) -> str:
        return make_path(self.zk_druid_path, "segments")

    @property
    def discovery_path(self) -> str:
        return make_path(self.zk_druid_path, "discovery")

    def qualify_service_name(self, name: str) -> str:
        """Return the discovery node name registered for service *name*."""
        if self.zk_qualify_discovery_names:
            return f"{self.zk_druid_path}:{name}"
        return name

    def service_path(self, name: str) -> str:
        """Return the discovery directory holding instances of *name*."""
        return make_path(self.discovery_path, self.qualify_service_name(name))


def load_options(path: Optional[Path]) -> DiscoveryOptions:
    """Load :class:`DiscoveryOptions` from a YAML file.

    The mapping may sit at the top level or under a ``discovery`` key.
    """

    if path is None:
        return DiscoveryOptions()

    resolved = path.expanduser().resolve()
    data = _read_yaml(resolved)
    section = data.get("discovery", data)
    return DiscoveryOptions.model_validate(section or {})


def dump_options(options: DiscoveryOptions, path: Path) -> None:
    """Persist :class:`DiscoveryOptions` to disk."""

    payload = {"discovery": options.model_dump(mode="json")}
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=False)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping.")
    return data
