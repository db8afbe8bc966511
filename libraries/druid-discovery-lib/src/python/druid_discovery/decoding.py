"""Default decode function for service-instance payloads.

Druid registers its services through Curator service discovery, which
stores one JSON document per instance::

    {"name": "druid:broker", "id": "...", "address": "10.0.0.7",
     "port": 8082, "sslPort": null, "serviceType": "DYNAMIC", ...}

Any callable with the same contract (``bytes -> NodeDescriptor``, raising
:class:`NodeDecodeError` on bad input) can be injected instead.
"""

from __future__ import annotations

from typing import Callable

from pydantic import ValidationError

from .exceptions import NodeDecodeError
from .models import NodeDescriptor

NodeDecoder = Callable[[bytes], NodeDescriptor]


def decode_node_descriptor(data: bytes) -> NodeDescriptor:
    """Parse a service-instance JSON payload into a :class:`NodeDescriptor`."""
    try:
        return NodeDescriptor.model_validate_json(data)
    except ValidationError as e:
        raise NodeDecodeError(str(e)) from e
