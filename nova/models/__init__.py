"""
Data models for Nova.
"""

from .config import (
    GatewayConfig,
    OrchestratorConfig,
    WeatherConfig,
    OpenAppConfig,
    ToolsConfig,
    ServerConfig,
    LoggingConfig,
    LangfuseConfig,
    AppConfig,
)
from .conversation import (
    ClientActionType,
    ClientAction,
    ToolCallRequest,
    ToolCallResult,
    TextPart,
    BinaryPart,
    FunctionResultPart,
    MessagePart,
    GatewayResponse,
    TurnStatus,
    TurnResult,
)

__all__ = [
    # Config models
    "GatewayConfig",
    "OrchestratorConfig",
    "WeatherConfig",
    "OpenAppConfig",
    "ToolsConfig",
    "ServerConfig",
    "LoggingConfig",
    "LangfuseConfig",
    "AppConfig",
    # Conversation models
    "ClientActionType",
    "ClientAction",
    "ToolCallRequest",
    "ToolCallResult",
    "TextPart",
    "BinaryPart",
    "FunctionResultPart",
    "MessagePart",
    "GatewayResponse",
    "TurnStatus",
    "TurnResult",
]
