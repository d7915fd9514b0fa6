"""Current time tool."""

import time

from .registry import ToolDefinition, ToolName, ToolSpec

SPEC = ToolSpec(
    name=ToolName.CURRENT_TIME.value,
    description="Get the current time.",
)


def get_current_time() -> dict:
    """Return the local time formatted for the host locale."""
    return {"time": time.strftime("%c")}


def _handle_current_time(params: dict) -> dict:
    return get_current_time()


DEFINITION = ToolDefinition(spec=SPEC, handler=_handle_current_time)
