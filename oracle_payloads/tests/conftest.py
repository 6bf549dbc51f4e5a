"""Shared test helpers: fake aiohttp session and Redstone gateway data"""

import base64
import json

import pytest

from oracle_payloads.feeds.base import DataFeed

SIGNATURE = bytes(range(65))


class FakeResponse:
    def __init__(self, status=200, body=None, text=None):
        self.status = status
        self.body = body
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type="application/json"):
        if isinstance(self.body, Exception):
            raise self.body
        return self.body

    async def text(self):
        if self._text is not None:
            return self._text
        return json.dumps(self.body)


class FakeSession:
    """Serves canned responses by URL and records every GET"""

    def __init__(self):
        self.responses = {}
        self.calls = []
        self.closed = False

    def add(self, url, response):
        self.responses[url] = response

    def get(self, url, params=None):
        self.calls.append((url, params))
        response = self.responses.get(url)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return FakeResponse(status=404, text="not found")
        return response

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_session(monkeypatch):
    session = FakeSession()

    async def _get_session(self):
        return session

    monkeypatch.setattr(DataFeed, "_get_session", _get_session)
    return session


def gateway_package(
    feed="ETH",
    value=1500.5,
    timestamp_ms=1700000000000,
    signer="0x0C39486f770B26F5527BBBf942726537986Cd7eb",
    signature=SIGNATURE,
):
    """One data package as served by the Redstone gateway"""
    return {
        "dataPoints": [{"dataFeedId": feed, "value": value}],
        "timestampMilliseconds": timestamp_ms,
        "signature": base64.b64encode(signature).decode(),
        "dataPackageId": feed,
        "signerAddress": signer,
    }
