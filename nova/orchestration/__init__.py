"""
Turn orchestration for Nova.

Exports the turn orchestrator (the tool-calling state machine) and the
session state it runs against.
"""

from .session import DEFAULT_SESSION_KEY, SessionState, SessionStore
from .turn import (
    ERROR_REPLY_PREFIX,
    RoundLimitExceeded,
    TurnOrchestrator,
    TurnState,
    TurnTimeout,
    build_parts,
)

__all__ = [
    "DEFAULT_SESSION_KEY",
    "SessionState",
    "SessionStore",
    "ERROR_REPLY_PREFIX",
    "RoundLimitExceeded",
    "TurnOrchestrator",
    "TurnState",
    "TurnTimeout",
    "build_parts",
]
