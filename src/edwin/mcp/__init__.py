"""
MCP server binding for the tool registry.
"""
