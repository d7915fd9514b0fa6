"""
Tool Registry - single source of truth for the assistant's capabilities.

The set of tools is closed: every capability has a ToolName member and
one ToolDefinition pairing its advertised spec with its handler. The
registry is an ordinary object built at startup and read-only afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional, Union

from ..models import ClientAction


class ToolName(str, Enum):
    """Names of the built-in capabilities, as advertised to the model."""

    CURRENT_TIME = "getCurrentTime"
    WEATHER = "getWeather"
    OPEN_WEBSITE = "openWebsite"
    OPEN_APP = "openApp"
    SYSTEM_INFO = "getSystemInfo"


@dataclass(frozen=True)
class ToolParameter:
    """One named argument of a tool."""

    name: str
    description: str
    type: str = "string"
    required: bool = True


@dataclass(frozen=True)
class ToolSpec:
    """What the model is told about a tool."""

    name: str
    description: str
    parameters: tuple[ToolParameter, ...] = ()

    def to_function_schema(self) -> dict:
        """Render as an OpenAI function-calling tool definition."""
        properties: dict = {}
        required: list[str] = []
        for param in self.parameters:
            properties[param.name] = {
                "type": param.type,
                "description": param.description,
            }
            if param.required:
                required.append(param.name)

        parameters: dict = {"type": "object", "properties": properties}
        if required:
            parameters["required"] = required

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


@dataclass
class ToolOutcome:
    """Handler return value: the payload for the model plus an optional client action."""

    payload: dict
    client_action: Optional[ClientAction] = None


ToolHandler = Callable[[dict], Union[ToolOutcome, dict]]


@dataclass(frozen=True)
class ToolDefinition:
    """A spec paired with the callable that implements it."""

    spec: ToolSpec
    handler: ToolHandler = field(compare=False)

    @property
    def name(self) -> str:
        return self.spec.name


class ToolRegistry:
    """Fixed, ordered catalog of tools resolved by name."""

    def __init__(self, definitions: tuple[ToolDefinition, ...] | list[ToolDefinition] = ()):
        self._tools: dict[str, ToolDefinition] = {}
        for definition in definitions:
            if definition.name in self._tools:
                raise ValueError(f"Duplicate tool name: {definition.name}")
            self._tools[definition.name] = definition

    def list_specs(self) -> list[ToolSpec]:
        """Specs in registration order, for advertising to the model."""
        return [tool.spec for tool in self._tools.values()]

    def resolve(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool by name, or None if it is not registered."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def get_tools_summary(self) -> str:
        """Formatted summary of all tools for logs and the CLI."""
        return "\n".join(
            f"- {name}: {tool.spec.description}" for name, tool in self._tools.items()
        )

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())
