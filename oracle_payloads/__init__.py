"""
Oracle Payloads - signed price data for contract calls

Fetches signed price updates from Pyth and Redstone and ABI-encodes them
into the byte payloads that on-chain price feed contracts consume.
"""

__version__ = "1.0.0"

from .errors import (
    PayloadError,
    UsageError,
    UpstreamError,
    PayloadParseError,
    ConsistencyError,
)
from .keys import convert_string_to_bytes32
from .consistency import check_uniform_timestamp
from .models.payload import AggregatePayload
from .feeds import PythPayloadFetcher, RedstonePayloadFetcher

__all__ = [
    "PayloadError",
    "UsageError",
    "UpstreamError",
    "PayloadParseError",
    "ConsistencyError",
    "convert_string_to_bytes32",
    "check_uniform_timestamp",
    "AggregatePayload",
    "PythPayloadFetcher",
    "RedstonePayloadFetcher",
]
