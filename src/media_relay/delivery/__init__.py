"""Delivery module for relaying media to the caller."""

from .proxy import DeliveryProxy, DeliveryResponse
from .ranges import ByteRange, parse_range

__all__ = [
    "DeliveryProxy",
    "DeliveryResponse",
    "ByteRange",
    "parse_range",
]
