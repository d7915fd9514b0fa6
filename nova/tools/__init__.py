"""
Nova Tools Package

Available tools:
- getCurrentTime: host clock
- getWeather: current conditions via wttr.in
- openWebsite: client-side URL opening (returns an OPEN_URL action)
- openApp: desktop application launcher
- getSystemInfo: OS, memory and CPU details
"""

from typing import Optional

from ..models import ToolsConfig
from . import apps, browser, clock, system_info, weather
from .executor import ToolExecutor
from .registry import (
    ToolDefinition,
    ToolName,
    ToolOutcome,
    ToolParameter,
    ToolRegistry,
    ToolSpec,
)


def build_default_registry(tools_config: Optional[ToolsConfig] = None) -> ToolRegistry:
    """Build the registry of built-in tools in their advertised order."""
    tools_config = tools_config or ToolsConfig()
    return ToolRegistry(
        (
            clock.DEFINITION,
            weather.build_definition(tools_config.weather),
            browser.DEFINITION,
            apps.build_definition(tools_config.open_app),
            system_info.DEFINITION,
        )
    )


__all__ = [
    "ToolDefinition",
    "ToolName",
    "ToolOutcome",
    "ToolParameter",
    "ToolRegistry",
    "ToolSpec",
    "ToolExecutor",
    "build_default_registry",
]
