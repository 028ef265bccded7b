"""
Cookie.fun agent and tweet analytics.
"""

import json
import logging
from typing import Any, Literal
from urllib.parse import quote

from pydantic import Field

from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool

logger = logging.getLogger(__name__)

COOKIE_API_URL = "https://api.cookie.fun"


class AgentParameters(ToolParameters):
    username: str | None = Field(default=None, description="Twitter username to search for")
    contract_address: str | None = Field(default=None, description="Contract address to search for")
    interval: Literal["_3Days", "_7Days"] = Field(description="Time interval for data")
    page: int | None = Field(default=None, ge=1, description="Page number for pagination")
    page_size: int | None = Field(default=None, ge=1, le=25, description="Number of items per page")


class SearchParameters(ToolParameters):
    query: str = Field(min_length=1, description="Search query")
    from_: str = Field(alias="from", description="Start date (YYYY-MM-DD)")
    to: str = Field(description="End date (YYYY-MM-DD)")


AgentParametersSchema = ParameterSchema(AgentParameters)
SearchParametersSchema = ParameterSchema(SearchParameters)


class CookieSwarmClient(CapabilityProvider):
    """Client for the Cookie.fun agent API. Responses are returned as JSON text."""

    protocol_name = "Cookie API"

    def __init__(self, api_key: str, timeout_seconds: float = 30.0):
        super().__init__()
        self.client = self.http_client(
            COOKIE_API_URL, headers={"x-api-key": api_key}, timeout_seconds=timeout_seconds
        )

    async def _get(self, path: str, params: dict[str, Any]) -> str:
        response = await self.client.get(path, params=params)
        return json.dumps(response)

    async def get_agent_by_twitter(self, params: AgentParameters) -> str:
        # the trailing slash is part of the endpoint
        return await self._get(
            f"/v2/agents/twitterUsername/{quote(params.username, safe='')}/",
            {"interval": params.interval},
        )

    async def get_agent_by_contract(self, params: AgentParameters) -> str:
        return await self._get(
            f"/v2/agents/contractAddress/{quote(params.contract_address, safe='')}",
            {"interval": params.interval},
        )

    async def get_agents_paged(self, params: AgentParameters) -> str:
        return await self._get(
            "/v2/agents/agentsPaged",
            {"interval": params.interval, "page": params.page or 1, "pageSize": params.page_size or 25},
        )

    async def get_agent(self, params: AgentParameters) -> str:
        """Look up by username, then contract address; list agents when neither is given."""
        if params.username:
            return await self.get_agent_by_twitter(params)
        if params.contract_address:
            return await self.get_agent_by_contract(params)
        return await self.get_agents_paged(params)

    async def search_tweets(self, params: SearchParameters) -> str:
        return await self._get(
            f"/v1/hackathon/search/{quote(params.query, safe='')}",
            {"from": params.from_, "to": params.to},
        )


class CookiePlugin(Plugin):
    tags = ["social", "analytics"]

    def __init__(self, api_key: str, service: CookieSwarmClient | None = None):
        self.service = service or CookieSwarmClient(api_key)
        super().__init__([self.service])

    @property
    def name(self) -> str:
        return "cookie"

    @property
    def description(self) -> str:
        return "Agent mindshare and tweet search from Cookie.fun"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="cookie_get_agent",
                description="Get agent information by Twitter username or contract address",
                schema=AgentParametersSchema,
                execute=self.service.get_agent,
            ),
            Tool(
                name="cookie_search_tweets",
                description="Search tweets within a date range",
                schema=SearchParametersSchema,
                execute=self.service.search_tweets,
            ),
        )
