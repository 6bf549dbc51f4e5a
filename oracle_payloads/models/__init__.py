"""Data models for oracle payloads"""

from .payload import AggregatePayload
from .redstone import DataPoint, DataPackage, SignedDataPackage, ParsedPayload

__all__ = [
    "AggregatePayload",
    "DataPoint",
    "DataPackage",
    "SignedDataPackage",
    "ParsedPayload",
]
