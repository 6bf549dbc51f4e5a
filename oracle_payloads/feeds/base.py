"""
Base class for oracle HTTP feeds.

Feeds share one lazily opened aiohttp session, make a single attempt per
request and convert transport failures into UpstreamError.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

import aiohttp

from ..errors import PayloadError, UpstreamError

logger = logging.getLogger(__name__)


class DataFeed(ABC):
    """
    Abstract base class for oracle feeds.

    Provides:
    - Shared aiohttp session handling
    - JSON GET helper with status checking
    - Latency and error bookkeeping
    """

    def __init__(self, name: str, headers: Optional[Dict[str, str]] = None):
        self.name = name
        self.headers = headers or {"accept": "application/json"}

        self._session: Optional[aiohttp.ClientSession] = None
        self._error_count = 0
        self._last_success: Optional[float] = None
        self._last_latency: Optional[float] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(self, url: str, params: Optional[Any] = None) -> Any:
        """GET url and decode the JSON body"""
        session = await self._get_session()

        try:
            async with session.get(url, params=params) as resp:
                if resp.status < 200 or resp.status >= 300:
                    text = await resp.text()
                    raise UpstreamError(f"{self.name} API error {resp.status}: {text}")
                return await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise UpstreamError(f"{self.name}: request to {url} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise UpstreamError(f"{self.name}: request to {url} timed out") from e
        except ValueError as e:
            raise UpstreamError(f"{self.name}: invalid JSON from {url}: {e}") from e

    async def fetch(self, *args, **kwargs) -> Any:
        """
        Fetch once. No retries: the first failure is final.
        """
        start = time.monotonic()
        try:
            result = await self._fetch(*args, **kwargs)
        except PayloadError:
            self._error_count += 1
            raise
        except (KeyError, IndexError, TypeError) as e:
            self._error_count += 1
            raise UpstreamError(f"{self.name}: malformed response: {e!r}") from e

        self._last_latency = time.monotonic() - start
        self._last_success = time.time()
        logger.debug(f"{self.name}: fetched in {self._last_latency * 1000:.0f}ms")
        return result

    @abstractmethod
    async def _fetch(self, *args, **kwargs) -> Any:
        """
        Implement actual data fetching logic.

        Subclasses must implement this method.
        """
        pass

    def get_status(self) -> Dict[str, Any]:
        """Get feed status for diagnostics"""
        return {
            "name": self.name,
            "error_count": self._error_count,
            "last_latency_ms": (
                self._last_latency * 1000 if self._last_latency is not None else None
            ),
            "last_success": self._last_success,
        }
