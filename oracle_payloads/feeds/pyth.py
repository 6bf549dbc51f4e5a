"""
Pyth Hermes price update feed.

Fetches the latest signed price update for a feed from the Hermes REST
API and packs it as (uint256 publishTime, bytes[] updateData).
Public endpoint, no auth required.
"""

from typing import List, Optional, Union
from dataclasses import dataclass
import logging

from .base import DataFeed
from ..errors import UpstreamError
from ..models.payload import AggregatePayload

logger = logging.getLogger(__name__)

PYTH_ABI_TYPES = ("uint256", "bytes[]")


@dataclass
class PythPriceUpdate:
    """Latest price update returned by Hermes"""
    price_feed_id: str
    publish_time: int
    update_data: List[bytes]


def _decode_hex(value: str) -> bytes:
    if value.startswith(("0x", "0X")):
        value = value[2:]
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise UpstreamError(f"Pyth update data is not valid hex: {e}") from e


def decode_update_data(binary_data: Union[str, List[str]]) -> List[bytes]:
    """
    Decode Hermes `binary.data` into update blobs.

    Hermes v2 returns a list of hex strings; a bare string is accepted too.
    """
    if isinstance(binary_data, str):
        return [_decode_hex(binary_data)]
    if isinstance(binary_data, list) and binary_data:
        return [_decode_hex(item) for item in binary_data]
    raise UpstreamError(f"Unexpected Pyth binary data: {binary_data!r}")


class PythPayloadFetcher(DataFeed):
    """
    Pyth Hermes feed.

    One GET per call, no caching and no retries.
    """

    BASE_URL = "https://hermes.pyth.network"
    LATEST_UPDATES_PATH = "/v2/updates/price/latest"

    def __init__(self, base_url: Optional[str] = None):
        super().__init__(name="pyth")
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    async def _fetch(self, price_feed_id: str) -> PythPriceUpdate:
        """Fetch the latest update for a single price feed"""
        data = await self._get_json(
            f"{self.base_url}{self.LATEST_UPDATES_PATH}",
            params=[("ids[]", price_feed_id)],
        )

        publish_time = data["parsed"][0]["price"]["publish_time"]
        if not isinstance(publish_time, int) or isinstance(publish_time, bool):
            raise UpstreamError(f"Unexpected Pyth publish_time: {publish_time!r}")

        return PythPriceUpdate(
            price_feed_id=price_feed_id,
            publish_time=publish_time,
            update_data=decode_update_data(data["binary"]["data"]),
        )

    async def get_update(self, price_feed_id: str) -> PythPriceUpdate:
        """Get the latest price update"""
        return await self.fetch(price_feed_id)

    async def get_payload(self, price_feed_id: str) -> AggregatePayload:
        """Get the latest update ABI-encoded for a contract call"""
        update = await self.get_update(price_feed_id)
        logger.info(
            f"Pyth feed {price_feed_id}: publish_time {update.publish_time}, "
            f"{len(update.update_data)} update(s)"
        )

        return AggregatePayload(
            timestamp=update.publish_time,
            data=update.update_data,
            abi_types=PYTH_ABI_TYPES,
            source=self.name,
        )
