"""
Pytest configuration and fixtures for Nova tests.
"""

from typing import Callable, Optional, Sequence, Union

import pytest

from nova.gateway import GatewayError, ModelGateway, SessionConfig, SessionHandle
from nova.models import GatewayResponse, MessagePart, ToolCallRequest
from nova.tools import ToolDefinition, ToolName, ToolRegistry, ToolSpec
from nova.tools import browser

Scripted = Union[GatewayResponse, Exception, Callable[[SessionHandle, list], GatewayResponse]]


def text(reply: Optional[str]) -> GatewayResponse:
    """Scripted final-text response."""
    return GatewayResponse(final_text=reply)


def calls(*requests: tuple) -> GatewayResponse:
    """Scripted tool-call response from (name, arguments, call_id) tuples."""
    return GatewayResponse(
        pending_calls=tuple(
            ToolCallRequest(name=name, arguments=arguments, call_id=call_id)
            for name, arguments, call_id in requests
        )
    )


class FakeGateway(ModelGateway):
    """Gateway that replays scripted responses and records what was sent."""

    model = "fake-model"

    def __init__(self, responses: Sequence[Scripted] = ()):
        self.responses = list(responses)
        self.sent: list[tuple[str, list[MessagePart]]] = []
        self.sessions_created = 0
        self.closed = False

    def create_session(self, config: SessionConfig) -> SessionHandle:
        self.sessions_created += 1
        return SessionHandle(config=config)

    def send_turn(self, handle, parts, tracing_context=None) -> GatewayResponse:
        self.sent.append((handle.session_id, list(parts)))
        if not self.responses:
            raise GatewayError("No scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(handle, list(parts))
        return item

    def close(self) -> None:
        self.closed = True

    @property
    def session_ids(self) -> list[str]:
        return [session_id for session_id, _ in self.sent]


def _fixed_time(params: dict) -> dict:
    return {"time": "Mon Oct 19 22:00:00 2026"}


def _fixed_system_info(params: dict) -> dict:
    return {"osType": "Linux", "cpuCores": 8}


@pytest.fixture
def stub_registry() -> ToolRegistry:
    """Registry with deterministic handlers (openWebsite is the real one)."""
    return ToolRegistry(
        (
            ToolDefinition(
                spec=ToolSpec(name=ToolName.CURRENT_TIME.value, description="Get the current time."),
                handler=_fixed_time,
            ),
            browser.DEFINITION,
            ToolDefinition(
                spec=ToolSpec(name=ToolName.SYSTEM_INFO.value, description="Get system info."),
                handler=_fixed_system_info,
            ),
        )
    )


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture(autouse=True)
def reset_tracing_client():
    """Keep the global tracing client unset between tests."""
    import nova.tracing.client as client_module

    client_module._tracing_client = None
    yield
    client_module._tracing_client = None
