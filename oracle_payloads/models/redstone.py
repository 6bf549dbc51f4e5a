"""Redstone signed data package models"""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class DataPoint:
    """Single feed value inside a data package"""
    data_feed_id: bytes  # 32-byte key
    value: bytes

    @property
    def data_feed_name(self) -> str:
        """Feed id as text, for short ids stored verbatim"""
        return self.data_feed_id.rstrip(b"\x00").decode("utf-8", errors="replace")


@dataclass(frozen=True)
class DataPackage:
    """Data points signed together under one timestamp"""
    data_points: List[DataPoint]
    timestamp_milliseconds: int

    @property
    def value_byte_size(self) -> int:
        if not self.data_points:
            return 0
        return len(self.data_points[0].value)


@dataclass(frozen=True)
class SignedDataPackage:
    """Data package plus its 65-byte (r, s, v) signature"""
    data_package: DataPackage
    signature: bytes

    @property
    def timestamp_milliseconds(self) -> int:
        return self.data_package.timestamp_milliseconds


@dataclass(frozen=True)
class ParsedPayload:
    """Result of parsing a raw Redstone payload"""
    signed_data_packages: List[SignedDataPackage] = field(default_factory=list)
    unsigned_metadata: bytes = b""
