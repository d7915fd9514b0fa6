"""
Pydantic schemas for the Nova HTTP API.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..models import TurnResult
from ..tools import ToolSpec


class ClientActionModel(BaseModel):
    """A directive for the UI to perform (e.g. open a URL)."""

    type: Literal["OPEN_URL"] = Field(..., description="Kind of client action")
    url: Optional[str] = Field(default=None, description="Target URL for OPEN_URL")


class ChatResponse(BaseModel):
    """Response body for POST /chat."""

    reply: Optional[str] = Field(default=None, description="Assistant reply text")
    action: Optional[ClientActionModel] = Field(
        default=None, description="Client action to perform, if any"
    )
    status: Literal["answered", "empty", "failed", "round_limit", "timeout"] = Field(
        default="answered", description="How the turn ended"
    )
    error: Optional[str] = Field(default=None, description="Error detail for failed turns")

    model_config = {
        "json_schema_extra": {
            "example": {
                "reply": "Opening GitHub.",
                "action": {"type": "OPEN_URL", "url": "https://github.com"},
                "status": "answered",
                "error": None,
            }
        }
    }

    @classmethod
    def from_turn(cls, result: TurnResult) -> "ChatResponse":
        action = None
        if result.client_action is not None:
            action = ClientActionModel(**result.client_action.to_dict())
        return cls(
            reply=result.reply,
            action=action,
            status=result.status.value,
            error=result.error,
        )


class ResetResponse(BaseModel):
    """Response body for DELETE /chat/session."""

    reset: bool = Field(..., description="Whether a conversation was discarded")


class ToolParameterInfo(BaseModel):
    name: str
    type: str
    description: str
    required: bool


class ToolInfo(BaseModel):
    """An advertised tool."""

    name: str
    description: str
    parameters: list[ToolParameterInfo] = Field(default_factory=list)

    @classmethod
    def from_spec(cls, spec: ToolSpec) -> "ToolInfo":
        return cls(
            name=spec.name,
            description=spec.description,
            parameters=[
                ToolParameterInfo(
                    name=p.name,
                    type=p.type,
                    description=p.description,
                    required=p.required,
                )
                for p in spec.parameters
            ],
        )


class ToolListResponse(BaseModel):
    """Response body for GET /tools."""

    object: Literal["list"] = "list"
    data: list[ToolInfo]


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    version: str
    model: str


class PingResponse(BaseModel):
    ok: bool = True
