"""
Dispatcher between the tool map and the Model Context Protocol.

Every tool is exposed under its canonical upper-case name with its JSON
schema. Calls are validated before the tool runs, and every outcome is
returned as a content envelope; a failed call never raises.
"""

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Iterable, Mapping

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from mcp import types
from pydantic import BaseModel

from edwin.core.registry import canonical_tool_name
from edwin.core.tool import Tool
from edwin.utils.errors import PluginError, format_error
from edwin.utils.logging import redact

logger = logging.getLogger(__name__)

Envelope = dict[str, Any]


class _CallTimedOut(Exception):
    """The adapter deadline expired before the tool finished."""


def text_envelope(text: str) -> Envelope:
    return {"content": [{"type": "text", "text": text}]}


def error_envelope(text: str) -> Envelope:
    return {"isError": True, "content": [{"type": "text", "text": text}]}


def result_to_text(result: Any) -> str:
    """Serialize a tool result; strings pass through unchanged."""
    if isinstance(result, str):
        return result
    if isinstance(result, BaseModel):
        return result.model_dump_json(by_alias=True)
    return json.dumps(result, default=str)


@dataclass(frozen=True)
class DispatchedTool:
    """A tool as seen by protocol clients."""

    name: str
    description: str
    parameters: dict[str, Any]
    execute: Callable[[Any], Awaitable[Envelope]]
    source_name: str

    def to_mcp(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, inputSchema=self.parameters)


class McpToolAdapter:
    """Exposes a tool map under canonical names with envelope results."""

    def __init__(self, tools: Mapping[str, Tool] | Iterable[Tool], timeout: float | None = None):
        """Build dispatch entries.

        Args:
            tools: Tool map (or iterable of tools) from the registry
            timeout: Optional upper bound in seconds for one call

        Raises:
            PluginError: If a parameter schema is not valid JSON schema or
                two tools share a canonical name
        """
        self.timeout = timeout
        self._tools: dict[str, DispatchedTool] = {}

        for tool in tools.values() if isinstance(tools, Mapping) else tools:
            name = canonical_tool_name(tool.name)
            if name in self._tools:
                raise PluginError(
                    f"Tools {self._tools[name].source_name} and {tool.name} both map to {name}",
                    context={"tool": name},
                )

            parameters = tool.schema.schema
            try:
                Draft7Validator.check_schema(parameters)
            except SchemaError as e:
                raise PluginError(
                    f"Tool {tool.name} has an invalid parameter schema: {e.message}",
                    context={"tool": tool.name},
                ) from e

            self._tools[name] = DispatchedTool(
                name=name,
                description=tool.description,
                parameters=parameters,
                execute=partial(self._execute, name, tool),
                source_name=tool.name,
            )

        logger.debug(f"Adapter ready with {len(self._tools)} tools")

    @property
    def tools(self) -> dict[str, DispatchedTool]:
        return dict(self._tools)

    def get(self, name: str) -> DispatchedTool | None:
        """Look up by canonical or declared name."""
        return self._tools.get(canonical_tool_name(name))

    async def _invoke_with_timeout(self, name: str, tool: Tool, params: Any) -> Any:
        # A TimeoutError raised by the tool itself propagates unchanged
        task = asyncio.ensure_future(tool.invoke(params))
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if not done:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            raise _CallTimedOut(name)
        return task.result()

    async def _execute(self, name: str, tool: Tool, raw_params: Any) -> Envelope:
        params = {} if raw_params is None else raw_params
        logger.debug(f"Executing tool {name} with params: {json.dumps(redact(params), default=str)}")

        try:
            if self.timeout:
                result = await self._invoke_with_timeout(name, tool, params)
            else:
                result = await tool.invoke(params)
        except _CallTimedOut:
            logger.error(f"Tool {name} timed out after {self.timeout}s")
            return error_envelope(f"Tool {name} timed out after {self.timeout}s")
        except Exception as e:
            logger.error(f"Error executing tool {name}: {e}")
            logger.debug(f"Tool {name} failure details", exc_info=True)
            return error_envelope(format_error(e))

        logger.debug(f"Tool {name} executed successfully")
        return text_envelope(result_to_text(result))

    async def execute(self, name: str, raw_params: Any = None) -> Envelope:
        """Dispatch by name; unknown names produce an error envelope."""
        tool = self.get(name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {name}")
            return error_envelope(f"Unknown tool: {name}")
        return await tool.execute(raw_params)

    def to_mcp_tools(self) -> list[types.Tool]:
        return [tool.to_mcp() for tool in self._tools.values()]

    async def call(self, name: str, arguments: Any = None) -> types.CallToolResult:
        envelope = await self.execute(name, arguments)
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=item["text"]) for item in envelope["content"]],
            isError=envelope.get("isError", False),
        )
