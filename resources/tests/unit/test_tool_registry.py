"""
Unit tests for plugins and the tool registry.
"""

import pytest
from unittest.mock import patch

from edwin.core.chain import EVM_CHAINS, SOLANA, ChainFamily, SigningCapability
from edwin.core.registry import ToolRegistry, canonical_tool_name
from edwin.plugins.cookie import CookiePlugin
from edwin.utils.errors import PluginError, ToolCollisionError
from resources.tests.helpers.fakes import FakeWallet, StubPlugin, make_tool


class TestCanonicalToolName:
    """Test canonical tool naming."""

    @pytest.mark.parametrize("name", ["aave_supply", "aaveSupply", "aave-supply", "AAVE_SUPPLY", " aave supply "])
    def test_variants_map_to_one_name(self, name):
        assert canonical_tool_name(name) == "AAVE_SUPPLY"

    def test_digits_are_kept(self):
        assert canonical_tool_name("get_v2Pools") == "GET_V2_POOLS"


class TestPlugin:
    """Test the Plugin base class."""

    def test_public_and_private_sets_are_disjoint(self):
        wallet = FakeWallet(ChainFamily.EVM, SigningCapability.FULL_SIGNING)
        plugin = StubPlugin("lending", public=["get_rates"], private=["supply"], wallet=wallet, family=ChainFamily.EVM)

        public = plugin.get_public_tools()
        private = plugin.get_private_tools()

        assert set(public) == {"get_rates"}
        assert set(private) == {"supply"}
        assert not public.keys() & private.keys()
        assert set(plugin.get_tools()) == {"get_rates", "supply"}

    def test_private_tools_need_a_signing_wallet(self):
        read_only = StubPlugin(
            "lending", public=["get_rates"], private=["supply"],
            wallet=FakeWallet(ChainFamily.EVM), family=ChainFamily.EVM,
        )
        no_wallet = StubPlugin("lending", public=["get_rates"], private=["supply"])

        assert read_only.get_private_tools() == {}
        assert no_wallet.get_private_tools() == {}
        assert set(read_only.get_tools()) == {"get_rates"}

    def test_overlapping_sets_are_rejected(self):
        wallet = FakeWallet(capability=SigningCapability.FULL_SIGNING)
        plugin = StubPlugin("broken", public=["supply"], private=["supply"], wallet=wallet)

        with pytest.raises(PluginError, match="both public and private"):
            plugin.get_tools()

    def test_no_providers_means_no_tools(self):
        plugin = StubPlugin("empty", public=["get_rates"], providers=[])

        assert plugin.get_public_tools() == {}
        assert plugin.get_tools() == {}

    def test_supports_chain(self):
        evm_plugin = StubPlugin("lending", family=ChainFamily.EVM)
        any_plugin = StubPlugin("market")

        assert evm_plugin.supports_chain(EVM_CHAINS["base"])
        assert not evm_plugin.supports_chain(SOLANA)
        assert any_plugin.supports_chain(SOLANA)

    def test_metadata(self):
        plugin = StubPlugin("market", public=["get_price"])
        data = plugin.metadata.to_dict()

        assert data["name"] == "market"
        assert data["version"] == "1.0.0"
        assert data["chain_family"] == "any"
        assert data["providers"] == ["stub"]

    def test_validate(self):
        assert StubPlugin("market", public=["get_price"]).validate()

    def test_enumeration_is_repeatable(self):
        plugin = CookiePlugin("test-key")
        assert plugin.get_tools() == plugin.get_tools()


class TestToolRegistry:
    """Test ToolRegistry aggregation."""

    def setup_method(self):
        self.signing = FakeWallet(ChainFamily.EVM, SigningCapability.FULL_SIGNING)
        self.read_only = FakeWallet(ChainFamily.EVM, SigningCapability.READ_ONLY)

    def test_register_and_lookup(self):
        registry = ToolRegistry()
        plugin = StubPlugin("market", public=["get_price"])

        registry.register_plugin(plugin)

        assert registry.get_plugin("market") is plugin
        assert registry.list_plugins() == ["market"]
        assert registry.plugins == [plugin]

    def test_duplicate_plugin_name(self):
        registry = ToolRegistry()
        registry.register_plugin(StubPlugin("market"))

        with pytest.raises(PluginError, match="already registered"):
            registry.register_plugin(StubPlugin("market"))

    def test_unregister(self):
        registry = ToolRegistry()
        registry.register_plugin(StubPlugin("market"))

        assert registry.unregister_plugin("market") is True
        assert registry.unregister_plugin("market") is False
        assert registry.get_plugin("market") is None

    def test_signing_wallet_includes_private_tools(self):
        registry = ToolRegistry({ChainFamily.EVM: self.signing})
        registry.register_plugin(StubPlugin(
            "lending", public=["get_rates"], private=["supply"], wallet=self.signing, family=ChainFamily.EVM,
        ))

        assert set(registry.build_tool_map()) == {"get_rates", "supply"}

    def test_read_only_wallet_excludes_private_tools(self):
        registry = ToolRegistry({ChainFamily.EVM: self.read_only})
        registry.register_plugin(StubPlugin(
            "lending", public=["get_rates"], private=["supply"], wallet=self.read_only, family=ChainFamily.EVM,
        ))

        assert set(registry.build_tool_map()) == {"get_rates"}

    def test_session_wallet_decides_for_chain_plugins(self):
        registry = ToolRegistry({ChainFamily.EVM: self.read_only})
        plugin = StubPlugin(
            "lending", public=["get_rates"], private=["supply"], wallet=self.signing, family=ChainFamily.EVM,
        )
        registry.register_plugin(plugin)

        assert registry.signing_capability_for(plugin) is SigningCapability.READ_ONLY
        assert "supply" not in registry.build_tool_map()

    def test_missing_session_wallet_is_read_only(self):
        registry = ToolRegistry()
        plugin = StubPlugin("lending", private=["supply"], wallet=self.signing, family=ChainFamily.EVM)
        registry.register_plugin(plugin)

        assert registry.signing_capability_for(plugin) is SigningCapability.READ_ONLY
        assert registry.build_tool_map() == {}

    def test_canonical_collision_fails(self):
        registry = ToolRegistry({ChainFamily.EVM: self.signing})
        registry.register_plugin(StubPlugin("lending_a", public=["supply"]))
        registry.register_plugin(StubPlugin("lending_b", public=["SUPPLY"]))

        with pytest.raises(ToolCollisionError, match="SUPPLY") as exc_info:
            registry.build_tool_map()

        assert exc_info.value.canonical_name == "SUPPLY"
        assert exc_info.value.first == ("lending_a", "supply")
        assert exc_info.value.second == ("lending_b", "SUPPLY")

    def test_collision_across_public_and_private(self):
        registry = ToolRegistry({ChainFamily.EVM: self.signing})
        registry.register_plugin(StubPlugin("market", public=["aave_supply"]))
        registry.register_plugin(StubPlugin(
            "lending", private=["aaveSupply"], wallet=self.signing, family=ChainFamily.EVM,
        ))

        with pytest.raises(ToolCollisionError, match="AAVE_SUPPLY"):
            registry.build_tool_map()

    def test_enumeration_failure_is_wrapped(self):
        registry = ToolRegistry()
        plugin = StubPlugin("market", public=["get_price"])
        registry.register_plugin(plugin)

        with patch.object(plugin, "get_public_tools", side_effect=RuntimeError("boom")):
            with pytest.raises(PluginError, match="market failed to enumerate its tools: boom") as exc_info:
                registry.build_tool_map()

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_tool_map_is_idempotent(self):
        registry = ToolRegistry({ChainFamily.EVM: self.signing})
        registry.register_plugin(StubPlugin("market", public=["get_price"]))
        registry.register_plugin(StubPlugin(
            "lending", public=["get_rates"], private=["supply"], wallet=self.signing, family=ChainFamily.EVM,
        ))

        assert registry.build_tool_map() == registry.build_tool_map()

    def test_tool_map_keeps_declared_names(self):
        registry = ToolRegistry()
        tool = make_tool("getPrice")
        plugin = StubPlugin("market")
        plugin.public_tools = {"getPrice": tool}
        registry.register_plugin(plugin)

        assert registry.build_tool_map() == {"getPrice": tool}

    def test_registry_info(self):
        registry = ToolRegistry({ChainFamily.EVM: self.signing})
        registry.register_plugin(StubPlugin("market"))

        info = registry.get_registry_info()

        assert [p["name"] for p in info["plugins"]] == ["market"]
        assert info["wallets"] == {"evm": {"address": "0xfake", "capability": "full_signing"}}
