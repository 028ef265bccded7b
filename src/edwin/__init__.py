"""
Edwin - tool registry and MCP dispatcher for wallet and DeFi operations.

This package provides:
- Capability providers bound to EVM, Solana and Hedera wallets or API keys
- Plugins that split provider operations into public and private tools
- A tool registry that gates private tools on wallet signing capability
- An MCP adapter and server exposing the tool set to agents
"""

__version__ = "0.1.0"
