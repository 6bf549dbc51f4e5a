"""
Redstone oracle gateway payload source.

Fetches the latest signed data packages of a data service from the
Redstone gateways and assembles them into a payload ready to be
appended to contract calldata.
"""

import base64
import binascii
from decimal import InvalidOperation
from typing import Any, Dict, List, Optional, Sequence
import logging

from ..base import DataFeed
from .payload import (
    DEFAULT_NUM_VALUE_BS,
    DEFAULT_NUM_VALUE_DECIMALS,
    SIGNATURE_BS,
    encode_numeric_value,
    serialize_payload,
)
from ...errors import UpstreamError
from ...keys import convert_string_to_bytes32
from ...models.redstone import DataPoint, DataPackage, SignedDataPackage

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URLS = [
    "https://oracle-gateway-1.a.redstone.finance",
    "https://oracle-gateway-2.a.redstone.finance",
]

DEFAULT_UNSIGNED_METADATA = "1.0.0#oracle-payloads"


def _decode_base64(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UpstreamError(f"Invalid base64 {what}: {e}") from e


def parse_data_point(raw: Dict[str, Any]) -> DataPoint:
    """
    Build a data point from gateway JSON.

    Numeric values are scaled by `decimals` (default 8) into 32 bytes;
    string values that are not numbers are taken as base64 bytes.
    """
    value = raw["value"]
    decimals = raw.get("decimals", DEFAULT_NUM_VALUE_DECIMALS)

    if isinstance(value, bool):
        raise UpstreamError(f"Unexpected data point value: {value!r}")

    try:
        value_bytes = encode_numeric_value(value, decimals)
    except (InvalidOperation, ValueError):
        if not isinstance(value, str):
            raise UpstreamError(f"Unexpected data point value: {value!r}")
        value_bytes = _decode_base64(value, "data point value")
    except OverflowError as e:
        raise UpstreamError(f"Data point value out of range: {value!r}") from e

    return DataPoint(
        data_feed_id=convert_string_to_bytes32(raw["dataFeedId"]),
        value=value_bytes.rjust(DEFAULT_NUM_VALUE_BS, b"\x00"),
    )


def parse_signed_data_package(raw: Dict[str, Any]) -> SignedDataPackage:
    """Build a signed data package from gateway JSON"""
    signature = _decode_base64(raw["signature"], "signature")
    if len(signature) != SIGNATURE_BS:
        raise UpstreamError(
            f"Signature must be {SIGNATURE_BS} bytes, got {len(signature)}"
        )

    return SignedDataPackage(
        data_package=DataPackage(
            data_points=[parse_data_point(p) for p in raw["dataPoints"]],
            timestamp_milliseconds=int(raw["timestampMilliseconds"]),
        ),
        signature=signature,
    )


def select_unique_signers(
    packages: Sequence[Dict[str, Any]],
    data_feed: str,
    unique_signers_count: int,
) -> List[Dict[str, Any]]:
    """
    Pick the first `unique_signers_count` packages from distinct signers.

    Raises:
        UpstreamError: not enough distinct signers for the feed, or a
            package without a signer address
    """
    selected = []
    seen = set()
    for package in packages:
        if not isinstance(package, dict):
            raise UpstreamError(f"Malformed data package for {data_feed}: {package!r}")
        signer = package.get("signerAddress")
        if not isinstance(signer, str):
            raise UpstreamError(f"Malformed signerAddress for {data_feed}: {signer!r}")
        if signer.lower() in seen:
            continue
        seen.add(signer.lower())
        selected.append(package)
        if len(selected) == unique_signers_count:
            return selected

    raise UpstreamError(
        f"Too few unique signers for the data feed: {data_feed}. "
        f"Expected: {unique_signers_count}. Received: {len(selected)}"
    )


class RedstoneGatewaySource(DataFeed):
    """
    Redstone gateway feed.

    Gateways are tried in order and the first one that answers is used.
    """

    LATEST_PACKAGES_PATH = "/data-packages/latest"

    def __init__(
        self,
        gateway_urls: Optional[List[str]] = None,
        unsigned_metadata: str = DEFAULT_UNSIGNED_METADATA,
    ):
        super().__init__(name="redstone")
        self.gateway_urls = [u.rstrip("/") for u in (gateway_urls or DEFAULT_GATEWAY_URLS)]
        self.unsigned_metadata = unsigned_metadata

    async def _fetch(self, data_service_id: str) -> Dict[str, Any]:
        """Fetch latest data packages, grouped by data feed"""
        errors = []
        for gateway in self.gateway_urls:
            url = f"{gateway}{self.LATEST_PACKAGES_PATH}/{data_service_id}"
            try:
                data = await self._get_json(url)
            except UpstreamError as e:
                logger.warning(f"Gateway {gateway} failed: {e}")
                errors.append(str(e))
                continue

            if not isinstance(data, dict):
                raise UpstreamError(f"Unexpected gateway response from {gateway}")
            return data

        raise UpstreamError(
            f"All Redstone gateways failed for {data_service_id}: " + "; ".join(errors)
        )

    async def get_signed_data_packages(
        self,
        data_service_id: str,
        data_feeds: List[str],
        unique_signers_count: int,
    ) -> List[SignedDataPackage]:
        """Get `unique_signers_count` signed packages for each feed"""
        packages_by_feed = await self.fetch(data_service_id)

        signed_packages = []
        for data_feed in data_feeds:
            feed_packages = packages_by_feed.get(data_feed)
            if feed_packages is not None and not isinstance(feed_packages, list):
                raise UpstreamError(f"Malformed data packages for {data_feed}: {feed_packages!r}")
            if not feed_packages:
                raise UpstreamError(
                    f"No data packages for the data feed: {data_feed} "
                    f"in data service {data_service_id}"
                )
            for raw in select_unique_signers(feed_packages, data_feed, unique_signers_count):
                try:
                    signed_packages.append(parse_signed_data_package(raw))
                except (KeyError, TypeError, ValueError) as e:
                    raise UpstreamError(f"Malformed data package for {data_feed}: {e!r}") from e

        return signed_packages

    async def prepare_payload(
        self,
        data_service_id: str,
        data_feeds: List[str],
        unique_signers_count: int,
    ) -> str:
        """
        Assemble a signed Redstone payload.

        Returns:
            Payload hex string without 0x prefix
        """
        signed_packages = await self.get_signed_data_packages(
            data_service_id, data_feeds, unique_signers_count
        )
        try:
            payload = serialize_payload(
                signed_packages,
                unsigned_metadata=self.unsigned_metadata.encode("utf-8"),
            )
        except ValueError as e:
            raise UpstreamError(f"Cannot assemble Redstone payload: {e}") from e
        return payload.hex()
