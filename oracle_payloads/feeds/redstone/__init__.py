"""
Redstone signed payloads.
"""

from .fetcher import RedstonePayloadFetcher, PayloadSource, build_payload
from .gateway import RedstoneGatewaySource
from .payload import parse_payload, serialize_payload, REDSTONE_MARKER

__all__ = [
    "RedstonePayloadFetcher",
    "PayloadSource",
    "build_payload",
    "RedstoneGatewaySource",
    "parse_payload",
    "serialize_payload",
    "REDSTONE_MARKER",
]
