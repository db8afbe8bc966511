"""ZooKeeper path helpers."""

from __future__ import annotations


def normalize_path(path: str) -> str:
    """Return *path* with a single leading ``/`` and no trailing ``/``."""
    stripped = path.strip().strip("/")
    return "/" + stripped if stripped else "/"


def make_path(parent: str, child: str) -> str:
    """Join *parent* and *child* into a normalized znode path."""
    parent = normalize_path(parent)
    child = child.strip("/")
    if not child:
        return parent
    if parent == "/":
        return "/" + child
    return f"{parent}/{child}"


def node_from_path(path: str) -> str:
    """Return the last segment of *path* (the node name)."""
    return path.rstrip("/").rsplit("/", 1)[-1]
