"""
The Tool: a named, schema-validated async operation.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from edwin.core.schema import ParameterSchema


@dataclass(frozen=True)
class Tool:
    """Unit of invocation exposed to agents.

    ``execute`` receives the validated parameter model. Call ``invoke`` with
    raw input; it validates first, so ``execute`` never sees unvalidated data.
    """

    name: str
    description: str
    schema: ParameterSchema
    execute: Callable[[Any], Awaitable[Any]]

    async def invoke(self, raw_params: Any) -> Any:
        """Validate ``raw_params`` and run the tool.

        Raises:
            ParameterValidationError: If the parameters fail the schema
        """
        params = self.schema.validate(raw_params)
        return await self.execute(params)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a listing entry."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.schema.schema,
        }
