"""
Model gateway package.

Defines the interface the orchestrator consumes and the default
OpenAI-compatible implementation.
"""

from .base import GatewayError, ModelGateway, SessionConfig, SessionHandle
from .openai_gateway import OpenAIGateway

__all__ = [
    "GatewayError",
    "ModelGateway",
    "SessionConfig",
    "SessionHandle",
    "OpenAIGateway",
]
