"""
Conversation data models shared by the tools, gateway and orchestrator.

A turn is an ordered list of message parts sent to the model gateway.
The gateway answers with either final text or a batch of tool calls,
and each resolved call comes back as a ToolCallResult.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class ClientActionType(str, Enum):
    """Directives the calling UI knows how to perform."""

    OPEN_URL = "OPEN_URL"


@dataclass(frozen=True)
class ClientAction:
    """A side effect for the client to perform, separate from the reply text."""

    type: ClientActionType
    url: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"type": self.type.value}
        if self.url is not None:
            data["url"] = self.url
        return data


@dataclass(frozen=True)
class ToolCallRequest:
    """A function call requested by the model."""

    name: str
    arguments: dict = field(default_factory=dict)
    call_id: Optional[str] = None


@dataclass(frozen=True)
class ToolCallResult:
    """Outcome of one resolved ToolCallRequest."""

    name: str
    payload: dict
    client_action: Optional[ClientAction] = None
    call_id: Optional[str] = None


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class BinaryPart:
    data: bytes
    mime_type: str


@dataclass(frozen=True)
class FunctionResultPart:
    name: str
    payload: dict
    call_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: ToolCallResult) -> "FunctionResultPart":
        return cls(name=result.name, payload=result.payload, call_id=result.call_id)


MessagePart = Union[TextPart, BinaryPart, FunctionResultPart]


@dataclass(frozen=True)
class GatewayResponse:
    """
    Reply from the model gateway for one round.

    When pending_calls is non-empty the round is not finished; final_text
    then holds any text the model sent alongside the calls.
    """

    final_text: Optional[str] = None
    pending_calls: tuple[ToolCallRequest, ...] = ()

    @property
    def has_pending_calls(self) -> bool:
        return bool(self.pending_calls)


class TurnStatus(str, Enum):
    """How a turn ended."""

    ANSWERED = "answered"
    EMPTY = "empty"
    FAILED = "failed"
    ROUND_LIMIT = "round_limit"
    TIMEOUT = "timeout"


@dataclass
class TurnResult:
    """Result returned to the caller for one turn."""

    reply: Optional[str]
    client_action: Optional[ClientAction] = None
    status: TurnStatus = TurnStatus.ANSWERED
    error: Optional[str] = None
    rounds: int = 0
    tools_used: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status in (
            TurnStatus.FAILED,
            TurnStatus.ROUND_LIMIT,
            TurnStatus.TIMEOUT,
        )

    def to_response(self) -> dict:
        """Caller-facing envelope: {reply, action}."""
        return {
            "reply": self.reply,
            "action": self.client_action.to_dict() if self.client_action else None,
        }
