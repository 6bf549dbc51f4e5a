"""
Redstone payload fetcher.

Obtains a signed payload for one or more data feeds, checks that every
signed data package carries the same timestamp and packs the result as
(uint256 timestamp, bytes payload).
"""

from typing import List, Optional, Protocol
import logging

from .gateway import RedstoneGatewaySource
from .payload import parse_payload, package_timestamps
from ...consistency import check_uniform_timestamp
from ...errors import PayloadParseError
from ...models.payload import AggregatePayload

logger = logging.getLogger(__name__)

REDSTONE_ABI_TYPES = ("uint256", "bytes")


class PayloadSource(Protocol):
    """Anything that can assemble a signed Redstone payload"""

    async def prepare_payload(
        self,
        data_service_id: str,
        data_feeds: List[str],
        unique_signers_count: int,
    ) -> str:
        ...


def decode_payload_hex(payload_hex: str) -> bytes:
    """Decode payload hex, with or without 0x prefix"""
    if payload_hex.startswith(("0x", "0X")):
        payload_hex = payload_hex[2:]
    try:
        return bytes.fromhex(payload_hex)
    except ValueError as e:
        raise PayloadParseError(f"Redstone payload is not valid hex: {e}") from e


def build_payload(raw_payload: bytes) -> AggregatePayload:
    """
    Validate a raw payload and pack it with its shared timestamp.

    Raises:
        PayloadParseError: payload is malformed
        ConsistencyError: packages disagree on their timestamp
    """
    parsed = parse_payload(raw_payload)
    timestamp = check_uniform_timestamp(package_timestamps(parsed))

    return AggregatePayload(
        timestamp=timestamp,
        data=raw_payload,
        abi_types=REDSTONE_ABI_TYPES,
        source="redstone",
    )


class RedstonePayloadFetcher:
    """
    Fetches and validates Redstone payloads.

    Uses the Redstone gateways unless another payload source is given.
    """

    def __init__(
        self,
        source: Optional[PayloadSource] = None,
        unique_signers_count: int = 1,
    ):
        self.source = source or RedstoneGatewaySource()
        self.unique_signers_count = unique_signers_count

    async def close(self):
        if hasattr(self.source, 'close'):
            await self.source.close()

    async def get_payload(
        self,
        data_service_id: str,
        data_feeds: List[str],
    ) -> AggregatePayload:
        """Get a validated payload for the given data feeds"""
        payload_hex = await self.source.prepare_payload(
            data_service_id,
            list(data_feeds),
            self.unique_signers_count,
        )
        raw_payload = decode_payload_hex(payload_hex)
        logger.info(
            f"Redstone {data_service_id} {', '.join(data_feeds)}: "
            f"{len(raw_payload)} byte payload"
        )

        return build_payload(raw_payload)
