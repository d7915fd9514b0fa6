"""
Tool Executor - resolves model-requested calls against the registry.

A call to an unknown tool yields no result. A tool that raises yields an
``{"error": ...}`` payload so that one failing tool never aborts the
round. Calls within a round run concurrently and come back in request
order.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from ..models import ToolCallRequest, ToolCallResult
from ..tracing import TracingContext
from .registry import ToolDefinition, ToolOutcome, ToolRegistry

logger = logging.getLogger(__name__)

MAX_ERROR_CHARS = 500


def _normalize(raw: ToolOutcome | dict | object) -> ToolOutcome:
    """Coerce a handler's return value into a ToolOutcome."""
    if isinstance(raw, ToolOutcome):
        return raw
    if isinstance(raw, dict):
        return ToolOutcome(payload=raw)
    return ToolOutcome(payload={"value": raw})


class ToolExecutor:
    """Runs tool calls for the orchestrator."""

    def __init__(self, registry: ToolRegistry, max_workers: int = 4):
        self.registry = registry
        self.max_workers = max(1, max_workers)

    def execute(
        self,
        call: ToolCallRequest,
        tracing_context: Optional[TracingContext] = None,
    ) -> Optional[ToolCallResult]:
        """
        Execute a single tool call.

        Args:
            call: The model's requested call
            tracing_context: Optional turn tracing context

        Returns:
            ToolCallResult, or None when the tool name is not registered
        """
        tool = self.registry.resolve(call.name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {call.name}")
            return None

        if tracing_context is None:
            return self._invoke(tool, call)

        with tracing_context.span(name=f"tool:{call.name}", input=call.arguments) as span:
            result = self._invoke(tool, call)
            span.set_output(result.payload)
            if "error" in result.payload:
                span.set_status("error")
            return result

    def _invoke(self, tool: ToolDefinition, call: ToolCallRequest) -> ToolCallResult:
        arguments = call.arguments if isinstance(call.arguments, dict) else {}
        logger.info(f"Tool: {call.name}({json.dumps(arguments, default=str)})")
        try:
            outcome = _normalize(tool.handler(arguments))
        except Exception as e:
            logger.error(f"Tool '{call.name}' execution failed: {e}")
            error_msg = str(e) or type(e).__name__
            if len(error_msg) > MAX_ERROR_CHARS:
                error_msg = error_msg[:MAX_ERROR_CHARS] + "..."
            outcome = ToolOutcome(payload={"error": error_msg})

        return ToolCallResult(
            name=call.name,
            payload=outcome.payload,
            client_action=outcome.client_action,
            call_id=call.call_id,
        )

    def execute_round(
        self,
        calls: list[ToolCallRequest] | tuple[ToolCallRequest, ...],
        tracing_context: Optional[TracingContext] = None,
    ) -> list[ToolCallResult]:
        """
        Execute every call of one round.

        Calls run concurrently; results keep the order of ``calls`` with
        unknown tools left out.
        """
        if not calls:
            return []

        if len(calls) == 1 or self.max_workers == 1:
            results = [self.execute(call, tracing_context) for call in calls]
        else:
            workers = min(self.max_workers, len(calls))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="nova-tool") as pool:
                results = list(
                    pool.map(lambda call: self.execute(call, tracing_context), calls)
                )

        return [result for result in results if result is not None]
