"""
Custom exception classes for Edwin.

Providers raise these; the MCP adapter is the only place that turns them into
error envelopes.
"""

from typing import Any


class EdwinError(Exception):
    """Base exception for all Edwin errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None
    ):
        """Initialize Edwin error with enhanced information.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            suggestions: List of suggested remediation steps
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigurationError(EdwinError):
    """Raised when there is an issue with the application configuration."""
    pass


class ParameterValidationError(EdwinError):
    """Raised when tool parameters fail their schema.

    Every violating field is listed, not only the first one.
    """

    def __init__(
        self,
        schema_name: str,
        violations: list[Any],
        suggestions: list[str] | None = None,
    ):
        self.schema_name = schema_name
        self.violations = list(violations)
        details = "; ".join(str(v) for v in self.violations)
        super().__init__(
            f"Invalid parameters for {schema_name}: {details}",
            suggestions=suggestions,
            context={"fields": [getattr(v, "field", str(v)) for v in self.violations]},
        )


class CapabilityError(EdwinError):
    """Base for requests outside what a provider can do. Raised before any network call."""
    pass


class UnsupportedChainError(CapabilityError):
    """Raised when a provider is asked to act on a chain it does not support."""

    def __init__(self, chain: str, protocol: str, supported: list[str] | None = None):
        self.chain = chain
        self.protocol = protocol
        super().__init__(
            f"Chain {chain} is not supported by {protocol}",
            suggestions=[f"Use one of: {', '.join(supported)}"] if supported else None,
            context={"chain": chain, "protocol": protocol},
        )


class UnsupportedAssetError(CapabilityError):
    """Raised when an asset is unknown to a provider."""
    pass


class InsufficientBalanceError(CapabilityError):
    """Raised when a wallet holds less than an operation requires."""

    def __init__(self, required: float, available: float, symbol: str):
        self.required = required
        self.available = available
        self.symbol = symbol
        super().__init__(
            f"Insufficient balance: required {required} {symbol}, available {available} {symbol}",
            context={"required": required, "available": available, "symbol": symbol},
        )


class UpstreamError(EdwinError):
    """Raised when a network, API or contract call fails.

    The underlying exception is kept as ``__cause__`` by raising with ``from``.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        target: str | None = None,
        status: int | None = None,
        suggestions: list[str] | None = None,
    ):
        self.operation = operation
        self.target = target
        self.status = status
        super().__init__(
            message,
            suggestions=suggestions,
            context={"operation": operation, "target": target, "status": status},
        )


class WalletError(EdwinError):
    """Raised when a wallet cannot be constructed or cannot perform an action."""
    pass


class ToolExecutionError(EdwinError):
    """Raised when a tool encounters an error during execution."""
    pass


class PluginError(EdwinError):
    """Raised when there's a plugin-related error."""
    pass


class ToolCollisionError(PluginError):
    """Raised when two tools map to the same canonical name."""

    def __init__(self, canonical_name: str, first: tuple[str, str], second: tuple[str, str]):
        self.canonical_name = canonical_name
        self.first = first
        self.second = second
        super().__init__(
            f"Tool name collision on '{canonical_name}': '{first[1]}' from plugin "
            f"'{first[0]}' and '{second[1]}' from plugin '{second[0]}'",
            suggestions=["Rename one of the tools or disable one of the plugins"],
            context={"canonical_name": canonical_name, "plugins": [first[0], second[0]]},
        )


def format_error(error: BaseException) -> str:
    """Render an exception as text for an error envelope.

    The original message is kept verbatim; suggestions are appended as a
    numbered list when present.
    """
    text = str(error) or error.__class__.__name__
    suggestions = getattr(error, "suggestions", None)
    if suggestions:
        text += "\n\nSuggestions:"
        for i, suggestion in enumerate(suggestions, 1):
            text += f"\n   {i}. {suggestion}"
    return text
