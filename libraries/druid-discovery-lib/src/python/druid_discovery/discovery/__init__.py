"""Named service lookup."""

from .service_lookup import ServiceLookup

__all__ = [
    "ServiceLookup",
]
