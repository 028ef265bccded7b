"""
Lightweight fakes for wallets, providers and plugins.

Usage:
    from resources.tests.helpers.fakes import FakeWallet, StubPlugin
    wallet = FakeWallet(ChainFamily.EVM, SigningCapability.FULL_SIGNING)
    plugin = StubPlugin("lending", public=["get_rates"], private=["supply"], wallet=wallet)
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

from pydantic import Field

from edwin.core.chain import ChainFamily, SigningCapability
from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool
from edwin.core.wallets.base import Wallet


class AmountParameters(ToolParameters):
    chain: str = Field(min_length=1)
    asset: str = Field(min_length=1)
    amount: float = Field(gt=0)


AmountParametersSchema = ParameterSchema(AmountParameters)


class FakeWallet(Wallet):
    def __init__(
        self,
        family: ChainFamily = ChainFamily.EVM,
        capability: SigningCapability = SigningCapability.READ_ONLY,
        address: str = "0xfake",
    ):
        super().__init__(capability)
        self.chain_family = family
        self._address = address

    @property
    def address(self) -> str:
        return self._address


class StubProvider(CapabilityProvider):
    protocol_name = "stub"


def make_tool(name: str, execute: Any = None, schema: ParameterSchema = AmountParametersSchema) -> Tool:
    return Tool(
        name=name,
        description=f"{name} tool",
        schema=schema,
        execute=execute or AsyncMock(return_value=f"{name} done"),
    )


class StubPlugin(Plugin):
    """Plugin whose tool names and chain family are set per instance."""

    def __init__(
        self,
        name: str,
        public: list[str] | None = None,
        private: list[str] | None = None,
        wallet: Wallet | None = None,
        family: ChainFamily = ChainFamily.ANY,
        providers: list[CapabilityProvider] | None = None,
    ):
        super().__init__([StubProvider()] if providers is None else providers, wallet)
        self._name = name
        self.chain_family = family
        self.public_tools = {n: make_tool(n) for n in public or []}
        self.private_tools = {n: make_tool(n) for n in private or []}

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return f"{self._name} stub plugin"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(*self.public_tools.values())

    def _private_tools(self) -> dict[str, Tool]:
        return tool_map(*self.private_tools.values())
