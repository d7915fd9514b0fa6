"""
Turn-scoped tracing context using Langfuse SDK v3.

One trace is opened per user turn. Gateway rounds are recorded as
generations and tool executions as spans, all linked to the turn's root
span through an explicit trace_context.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from .client import get_tracing_client

logger = logging.getLogger(__name__)


def _langfuse():
    client = get_tracing_client()
    if client is None or not client.enabled:
        return None
    return client.client


@dataclass
class Observation:
    """A span or generation; all setters are safe when tracing is off."""

    name: str
    as_type: str = "span"
    enabled: bool = False
    attributes: dict = field(default_factory=dict)
    trace_context: Optional[Any] = None
    _context_manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Any = field(default=None, repr=False)
    _usage: Optional[dict] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)

    def start(self) -> None:
        lf = _langfuse() if self.enabled else None
        if lf is None:
            return
        try:
            self._start_time = time.time()
            self._context_manager = lf.start_as_current_observation(
                trace_context=self.trace_context,
                as_type=self.as_type,
                name=self.name,
                **self.attributes,
            )
            self._observation = self._context_manager.__enter__()
        except Exception as e:
            logger.warning(f"Failed to start {self.as_type} '{self.name}': {e}")
            self._observation = None

    def end(self) -> None:
        if self._observation is None:
            return
        try:
            update: dict[str, Any] = {
                "metadata": {
                    "status": self._status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                }
            }
            if self._output is not None:
                update["output"] = self._output
            if self._usage:
                update["usage"] = self._usage
            self._observation.update(**update)
            self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"Failed to end {self.as_type} '{self.name}': {e}")

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status

    def set_usage(
        self,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        total_tokens: Optional[int] = None,
    ) -> None:
        usage = {
            "promptTokens": prompt_tokens,
            "completionTokens": completion_tokens,
            "totalTokens": total_tokens,
        }
        self._usage = {k: v for k, v in usage.items() if v is not None}


@dataclass
class TracingContext:
    """
    Tracing state for a single turn.

    Safe to use unconditionally: when no tracing client is enabled every
    context manager yields an inert Observation.
    """

    turn_id: str
    session_id: Optional[str] = None
    _enabled: bool = field(default=False, repr=False)
    _root: Optional[Observation] = field(default=None, repr=False)
    _trace_id: Optional[str] = field(default=None, repr=False)
    _root_span_id: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        self._enabled = _langfuse() is not None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_trace(
        self,
        name: str = "turn",
        input: Optional[dict] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        """Open the root span for this turn."""
        if not self._enabled:
            return
        trace_metadata = {"turn_id": self.turn_id, **(metadata or {})}
        self._root = Observation(
            name=name,
            enabled=True,
            attributes={"input": input, "metadata": trace_metadata},
        )
        self._root.start()
        root = self._root._observation
        if root is None:
            return
        self._trace_id = getattr(root, "trace_id", None)
        self._root_span_id = getattr(root, "id", None)
        try:
            root.update_trace(session_id=self.session_id)
        except Exception as e:
            logger.debug(f"[{self.turn_id}] Could not set trace session: {e}")

    def end_trace(self, output: Any = None, status: str = "success") -> None:
        """Close the root span."""
        if self._root is None:
            return
        self._root.set_output(output)
        self._root.set_status(status)
        self._root.end()
        self._root = None

    def _child_trace_context(self) -> Optional[Any]:
        if not self._trace_id or not self._root_span_id:
            return None
        try:
            from langfuse.types import TraceContext

            return TraceContext(trace_id=self._trace_id, parent_span_id=self._root_span_id)
        except ImportError:
            return None

    @contextmanager
    def _observe(self, observation: Observation) -> Generator[Observation, None, None]:
        try:
            observation.start()
            yield observation
        finally:
            observation.end()

    def span(
        self,
        name: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ):
        """Context manager recording a span (tool execution)."""
        return self._observe(
            Observation(
                name=name,
                enabled=self._enabled,
                attributes={"input": input, "metadata": metadata},
                trace_context=self._child_trace_context(),
            )
        )

    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        model_parameters: Optional[dict] = None,
    ):
        """Context manager recording a generation (model round-trip)."""
        return self._observe(
            Observation(
                name=name,
                as_type="generation",
                enabled=self._enabled,
                attributes={
                    "model": model,
                    "input": input,
                    "model_parameters": model_parameters,
                },
                trace_context=self._child_trace_context(),
            )
        )
