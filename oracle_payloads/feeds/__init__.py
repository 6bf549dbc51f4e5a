"""
Oracle feeds producing contract-ready payloads

Provides signed data from:
- Pyth (Hermes price updates)
- Redstone (gateway data packages)

Usage:
    from oracle_payloads.feeds import PythPayloadFetcher

    async def main():
        feed = PythPayloadFetcher()
        try:
            payload = await feed.get_payload(price_feed_id)
            print(payload.to_hex())
        finally:
            await feed.close()
"""

from .base import DataFeed
from .pyth import PythPayloadFetcher, PythPriceUpdate
from .redstone import (
    RedstonePayloadFetcher,
    RedstoneGatewaySource,
    PayloadSource,
)

__all__ = [
    # Base classes
    "DataFeed",
    # Pyth
    "PythPayloadFetcher",
    "PythPriceUpdate",
    # Redstone
    "RedstonePayloadFetcher",
    "RedstoneGatewaySource",
    "PayloadSource",
]
