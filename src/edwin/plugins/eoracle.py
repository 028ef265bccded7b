"""
eOracle price feeds.
"""

import asyncio
import json
import logging
from typing import Any

from pydantic import Field

from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool
from edwin.utils.errors import UnsupportedAssetError, UpstreamError

logger = logging.getLogger(__name__)


class PriceParameters(ToolParameters):
    symbol: str = Field(min_length=1, description="The symbol to get price information for")


PriceParametersSchema = ParameterSchema(PriceParameters)


class EOracleService(CapabilityProvider):
    """Resolves a symbol to its feed id once, then reads the feed's latest rate."""

    protocol_name = "EOracleAPI"

    def __init__(self, api_key: str, api_url: str, timeout_seconds: float = 30.0):
        super().__init__()
        self.client = self.http_client(api_url, headers={"X-API-Key": api_key}, timeout_seconds=timeout_seconds)
        self._feed_ids: dict[str, str] = {}
        self._feeds_lock = asyncio.Lock()

    async def _fetch(self, path: str) -> Any:
        try:
            response = await self.client.get(path)
        except UpstreamError as e:
            raise UpstreamError(
                f"EOracleAPI request failed: {e.message}",
                operation=e.operation,
                target=e.target,
                status=e.status,
            ) from e
        if not isinstance(response, dict) or "data" not in response:
            raise UpstreamError("EOracleAPI returned an unexpected response", operation=f"GET {path}")
        return response["data"]

    async def get_feed_id(self, symbol: str) -> str:
        key = symbol.upper()
        async with self._feeds_lock:
            if key not in self._feed_ids:
                feeds = await self._fetch("/feeds")
                for feed in feeds or []:
                    description = str(feed.get("description", "")).upper()
                    if description and "feed_id" in feed:
                        self._feed_ids.setdefault(description, str(feed["feed_id"]))
                logger.debug(f"Cached {len(self._feed_ids)} eOracle feeds")
        if key not in self._feed_ids:
            raise UnsupportedAssetError(
                f"No feed found for symbol: {symbol}",
                context={"symbol": symbol},
            )
        return self._feed_ids[key]

    async def get_price(self, params: PriceParameters) -> str:
        feed_id = await self.get_feed_id(params.symbol)
        data = await self._fetch(f"/feeds/{feed_id}")
        if not data or "rate" not in data:
            raise UpstreamError(f"Failed to get price for {params.symbol}", operation="get_price")
        return json.dumps({
            "symbol": params.symbol,
            "price": data["rate"],
            "timestamp": data.get("timestamp"),
        })


class EOraclePlugin(Plugin):
    tags = ["oracle", "market-data"]

    def __init__(self, api_key: str, api_url: str, service: EOracleService | None = None):
        self.service = service or EOracleService(api_key, api_url)
        super().__init__([self.service])

    @property
    def name(self) -> str:
        return "eoracle"

    @property
    def description(self) -> str:
        return "Latest prices from eOracle feeds"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="eoracle_get_price",
                description="Get price information for a given symbol",
                schema=PriceParametersSchema,
                execute=self.service.get_price,
            ),
        )
