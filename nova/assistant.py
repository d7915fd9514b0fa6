"""
Nova assistant service.

Wires configuration, the tool registry, the model gateway and the turn
orchestrator into one object shared by the HTTP API and the CLI.
"""

import logging
from typing import Optional

from .config import config as default_config
from .gateway import ModelGateway, OpenAIGateway, SessionConfig
from .models import AppConfig, BinaryPart, TurnResult
from .orchestration import SessionStore, TurnOrchestrator
from .tools import ToolExecutor, ToolRegistry, build_default_registry

logger = logging.getLogger(__name__)


class Assistant:
    """Single-process assistant holding its sessions explicitly."""

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        gateway: Optional[ModelGateway] = None,
        registry: Optional[ToolRegistry] = None,
        sessions: Optional[SessionStore] = None,
    ):
        self.config = app_config or default_config
        self.registry = registry or build_default_registry(self.config.tools)
        self.gateway = gateway or OpenAIGateway(self.config.gateway)
        self.sessions = sessions or SessionStore(self.config.orchestrator.max_sessions)
        self.executor = ToolExecutor(
            self.registry,
            max_workers=self.config.orchestrator.max_tool_workers,
        )
        self.orchestrator = TurnOrchestrator(
            gateway=self.gateway,
            executor=self.executor,
            session_config=SessionConfig(
                system_instruction=self.config.gateway.system_instruction,
                tools=tuple(self.registry.list_specs()),
            ),
            max_rounds=self.config.orchestrator.max_rounds,
            turn_timeout=self.config.orchestrator.turn_timeout,
        )

    def chat(
        self,
        text: Optional[str] = None,
        attachment: Optional[BinaryPart] = None,
        session_key: Optional[str] = None,
    ) -> TurnResult:
        """Submit one turn and return its result."""
        session = self.sessions.get(session_key)
        return self.orchestrator.run_turn(session, text=text, attachment=attachment)

    def reset(self, session_key: Optional[str] = None) -> bool:
        """Forget the conversation for a session key."""
        return self.sessions.reset(session_key)

    def close(self) -> None:
        self.gateway.close()


def run_query(query: str) -> TurnResult:
    """
    Convenience function to run a single query on a fresh assistant.

    Args:
        query: The user's message

    Returns:
        The TurnResult
    """
    assistant = Assistant()
    try:
        return assistant.chat(query)
    finally:
        assistant.close()
