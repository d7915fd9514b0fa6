"""
Nova - conversational assistant backend

This package provides:
- A fixed registry of host tools (time, weather, websites, apps, system info)
- A model gateway for OpenAI-compatible chat completion endpoints
- The multi-round tool-calling turn orchestrator
- A FastAPI server and an interactive CLI
"""

__version__ = "0.1.0"

from .assistant import Assistant, run_query
from .orchestration import TurnOrchestrator

__all__ = [
    "Assistant",
    "TurnOrchestrator",
    "run_query",
]
