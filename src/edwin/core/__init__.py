"""
Tool registry and dispatch core: schemas, tools, providers, plugins and wallets.
"""

from edwin.core.chain import Chain, ChainFamily, SigningCapability
from edwin.core.plugin import Plugin, PluginMetadata
from edwin.core.provider import CapabilityProvider
from edwin.core.registry import ToolRegistry, canonical_tool_name
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool

__all__ = [
    "CapabilityProvider",
    "Chain",
    "ChainFamily",
    "ParameterSchema",
    "Plugin",
    "PluginMetadata",
    "SigningCapability",
    "Tool",
    "ToolParameters",
    "ToolRegistry",
    "canonical_tool_name",
]
