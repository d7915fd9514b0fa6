"""
Model Gateway interface.

The orchestrator talks to the language model only through this
boundary: open a session, then send rounds of message parts and get
back either final text or a batch of requested tool calls.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..models import GatewayResponse, MessagePart
from ..tools.registry import ToolSpec
from ..tracing import TracingContext


class GatewayError(Exception):
    """The model service call failed (network, auth, quota, malformed reply)."""


@dataclass(frozen=True)
class SessionConfig:
    """Model configuration fixed for the lifetime of a session."""

    system_instruction: str
    tools: tuple[ToolSpec, ...] = ()


@dataclass
class SessionHandle:
    """
    Stateful conversation handle.

    The history belongs to the gateway; the orchestrator only passes the
    handle back on every round.
    """

    config: SessionConfig
    session_id: str = field(default_factory=lambda: f"sess-{uuid.uuid4().hex[:8]}")
    history: list[dict] = field(default_factory=list)
    pending_calls: dict[str, str] = field(default_factory=dict)


class ModelGateway(ABC):
    """Consumed interface to the remote language-model service."""

    model: str = ""

    @abstractmethod
    def create_session(self, config: SessionConfig) -> SessionHandle:
        """Open a new conversation with the given instruction and tools."""

    @abstractmethod
    def send_turn(
        self,
        handle: SessionHandle,
        parts: Sequence[MessagePart],
        tracing_context: Optional[TracingContext] = None,
    ) -> GatewayResponse:
        """
        Send one round of parts and return the model's response.

        Raises:
            GatewayError: If the model service call fails
        """

    def close(self) -> None:
        """Release any underlying client resources."""
