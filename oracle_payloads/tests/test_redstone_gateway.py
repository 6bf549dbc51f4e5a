"""Tests for the Redstone gateway payload source"""

import base64

import aiohttp
import pytest

from oracle_payloads.errors import UpstreamError
from oracle_payloads.feeds.redstone.gateway import (
    DEFAULT_GATEWAY_URLS,
    RedstoneGatewaySource,
    parse_data_point,
    select_unique_signers,
)
from oracle_payloads.feeds.redstone.payload import parse_payload

from conftest import FakeResponse, SIGNATURE, gateway_package

GATEWAY_1 = "https://gw1.example"
GATEWAY_2 = "https://gw2.example"
SIGNER_A = "0x0C39486f770B26F5527BBBf942726537986Cd7eb"
SIGNER_B = "0x1111111111111111111111111111111111111111"


class TestParseDataPoint:
    def test_numeric(self):
        point = parse_data_point({"dataFeedId": "ETH", "value": 1500.5})
        assert point.data_feed_id == b"ETH".ljust(32, b"\x00")
        assert int.from_bytes(point.value, "big") == 150050000000

    def test_decimals(self):
        point = parse_data_point({"dataFeedId": "ETH", "value": 2, "decimals": 18})
        assert int.from_bytes(point.value, "big") == 2 * 10 ** 18

    def test_base64_value(self):
        raw = base64.b64encode(b"\x01\x02").decode()
        point = parse_data_point({"dataFeedId": "ETH", "value": raw})
        assert point.value == b"\x00" * 30 + b"\x01\x02"

    def test_invalid_value(self):
        with pytest.raises(UpstreamError):
            parse_data_point({"dataFeedId": "ETH", "value": "not base64!"})

    def test_negative_value(self):
        with pytest.raises(UpstreamError):
            parse_data_point({"dataFeedId": "ETH", "value": -1})


class TestSelectUniqueSigners:
    def test_picks_distinct_signers(self):
        packages = [
            gateway_package(signer=SIGNER_A),
            gateway_package(signer=SIGNER_A.lower()),
            gateway_package(signer=SIGNER_B),
        ]
        selected = select_unique_signers(packages, "ETH", 2)
        assert [p["signerAddress"] for p in selected] == [SIGNER_A, SIGNER_B]

    def test_package_not_a_dict(self):
        with pytest.raises(UpstreamError, match="Malformed data package"):
            select_unique_signers(["ETH"], "ETH", 1)

    def test_threshold_not_met(self):
        packages = [gateway_package(signer=SIGNER_A), gateway_package(signer=SIGNER_A)]
        with pytest.raises(UpstreamError, match="Too few unique signers"):
            select_unique_signers(packages, "ETH", 2)


@pytest.mark.asyncio
class TestRedstoneGatewaySource:
    async def test_prepare_payload(self, fake_session):
        fake_session.add(
            f"{GATEWAY_1}/data-packages/latest/redstone-main-demo",
            FakeResponse(body={"ETH": [gateway_package()]}),
        )
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1], unsigned_metadata="")

        payload_hex = await source.prepare_payload("redstone-main-demo", ["ETH"], 1)

        assert not payload_hex.startswith("0x")
        parsed = parse_payload(bytes.fromhex(payload_hex))
        assert len(parsed.signed_data_packages) == 1
        package = parsed.signed_data_packages[0]
        assert package.signature == SIGNATURE
        assert package.timestamp_milliseconds == 1700000000000
        assert parsed.unsigned_metadata == b""

    async def test_one_package_per_feed_and_signer(self, fake_session):
        fake_session.add(
            f"{GATEWAY_1}/data-packages/latest/svc",
            FakeResponse(body={
                "ETH": [gateway_package(signer=SIGNER_A), gateway_package(signer=SIGNER_B)],
                "BTC": [gateway_package(feed="BTC", signer=SIGNER_A),
                        gateway_package(feed="BTC", signer=SIGNER_B)],
            }),
        )
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1])

        packages = await source.get_signed_data_packages("svc", ["ETH", "BTC"], 2)
        names = [p.data_package.data_points[0].data_feed_name for p in packages]
        assert names == ["ETH", "ETH", "BTC", "BTC"]

    async def test_falls_over_to_next_gateway(self, fake_session):
        fake_session.add(
            f"{GATEWAY_1}/data-packages/latest/svc",
            aiohttp.ClientConnectionError("connection refused"),
        )
        fake_session.add(
            f"{GATEWAY_2}/data-packages/latest/svc",
            FakeResponse(body={"ETH": [gateway_package()]}),
        )
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1, GATEWAY_2])

        await source.prepare_payload("svc", ["ETH"], 1)
        assert [url for url, _ in fake_session.calls] == [
            f"{GATEWAY_1}/data-packages/latest/svc",
            f"{GATEWAY_2}/data-packages/latest/svc",
        ]

    async def test_all_gateways_fail(self, fake_session):
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1, GATEWAY_2])
        with pytest.raises(UpstreamError, match="All Redstone gateways failed"):
            await source.prepare_payload("svc", ["ETH"], 1)
        assert len(fake_session.calls) == 2

    async def test_unknown_feed(self, fake_session):
        fake_session.add(
            f"{GATEWAY_1}/data-packages/latest/svc",
            FakeResponse(body={"ETH": [gateway_package()]}),
        )
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1])
        with pytest.raises(UpstreamError, match="No data packages"):
            await source.prepare_payload("svc", ["DOGE"], 1)

    async def test_non_string_signer(self, fake_session):
        fake_session.add(
            f"{GATEWAY_1}/data-packages/latest/svc",
            FakeResponse(body={"ETH": [gateway_package(signer=123)]}),
        )
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1])
        with pytest.raises(UpstreamError, match="signerAddress"):
            await source.prepare_payload("svc", ["ETH"], 1)

    async def test_feed_entry_not_a_list(self, fake_session):
        fake_session.add(
            f"{GATEWAY_1}/data-packages/latest/svc",
            FakeResponse(body={"ETH": {"signerAddress": SIGNER_A}}),
        )
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1])
        with pytest.raises(UpstreamError, match="Malformed data packages"):
            await source.prepare_payload("svc", ["ETH"], 1)

    async def test_bad_signature_length(self, fake_session):
        fake_session.add(
            f"{GATEWAY_1}/data-packages/latest/svc",
            FakeResponse(body={"ETH": [gateway_package(signature=b"\x01" * 64)]}),
        )
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1])
        with pytest.raises(UpstreamError, match="Signature"):
            await source.prepare_payload("svc", ["ETH"], 1)

    async def test_malformed_package(self, fake_session):
        package = gateway_package()
        del package["timestampMilliseconds"]
        fake_session.add(
            f"{GATEWAY_1}/data-packages/latest/svc",
            FakeResponse(body={"ETH": [package]}),
        )
        source = RedstoneGatewaySource(gateway_urls=[GATEWAY_1])
        with pytest.raises(UpstreamError, match="Malformed data package"):
            await source.prepare_payload("svc", ["ETH"], 1)

    async def test_default_gateways(self):
        source = RedstoneGatewaySource()
        assert source.gateway_urls == DEFAULT_GATEWAY_URLS
        assert source.name == "redstone"
