"""
Built-in plugins.
"""

from edwin.core.plugin import Plugin
from edwin.plugins.aave import AavePlugin
from edwin.plugins.cookie import CookiePlugin
from edwin.plugins.dexscreener import DexScreenerPlugin
from edwin.plugins.eoracle import EOraclePlugin
from edwin.plugins.evm_wallet import EvmWalletPlugin
from edwin.plugins.hedera_wallet import HederaWalletPlugin
from edwin.plugins.jupiter import JupiterPlugin
from edwin.plugins.meteora import MeteoraPlugin
from edwin.plugins.solana_wallet import SolanaWalletPlugin

BUILTIN_PLUGINS: dict[str, type[Plugin]] = {
    "aave": AavePlugin,
    "cookie": CookiePlugin,
    "dexscreener": DexScreenerPlugin,
    "eoracle": EOraclePlugin,
    "evm_wallet": EvmWalletPlugin,
    "hedera_wallet": HederaWalletPlugin,
    "jupiter": JupiterPlugin,
    "meteora": MeteoraPlugin,
    "solana_wallet": SolanaWalletPlugin,
}


def get_builtin_plugins() -> dict[str, type[Plugin]]:
    """Get the built-in plugin classes keyed by plugin name."""
    return dict(BUILTIN_PLUGINS)


__all__ = [
    "AavePlugin",
    "BUILTIN_PLUGINS",
    "CookiePlugin",
    "DexScreenerPlugin",
    "EOraclePlugin",
    "EvmWalletPlugin",
    "HederaWalletPlugin",
    "JupiterPlugin",
    "MeteoraPlugin",
    "SolanaWalletPlugin",
    "get_builtin_plugins",
]
