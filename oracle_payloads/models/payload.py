"""ABI-encoded payload data model"""

from dataclasses import dataclass, field
from typing import Any, Tuple

from eth_abi import encode


@dataclass(frozen=True)
class AggregatePayload:
    """
    Final payload handed to the contract-call layer.

    Attributes:
        timestamp: Publish timestamp in seconds
        data: Signed update data (bytes, or a list of bytes for bytes[])
        abi_types: ABI types of (timestamp, data)
        source: Oracle network the data came from
    """
    timestamp: int
    data: Any
    abi_types: Tuple[str, str]
    source: str = ""
    encoded: bytes = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(
            self,
            "encoded",
            encode(list(self.abi_types), [self.timestamp, self.data]),
        )

    def to_hex(self) -> str:
        """Encoded payload as a 0x-prefixed hex string"""
        return "0x" + self.encoded.hex()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "source": self.source,
            "timestamp": self.timestamp,
            "abi_types": list(self.abi_types),
            "payload": self.to_hex(),
        }
