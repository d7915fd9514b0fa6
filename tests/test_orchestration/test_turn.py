"""
Tests for the turn orchestrator.

Tests cover:
- Single-round and multi-round turns
- Session reuse and reset after failures
- Client action selection
- Round limit, timeout and unresolvable tool calls
- Part ordering for attachments and text
"""

import threading
import time
from unittest.mock import patch

import pytest
import requests

from conftest import FakeGateway, calls, text
from nova.gateway import GatewayError, SessionConfig
from nova.models import (
    BinaryPart,
    ClientAction,
    ClientActionType,
    FunctionResultPart,
    GatewayResponse,
    TextPart,
    TurnStatus,
    WeatherConfig,
)
from nova.orchestration import (
    ERROR_REPLY_PREFIX,
    SessionState,
    TurnOrchestrator,
    build_parts,
)
from nova.tools import ToolDefinition, ToolExecutor, ToolRegistry, ToolSpec, weather


def _orchestrator(gateway, registry, **kwargs) -> TurnOrchestrator:
    return TurnOrchestrator(
        gateway=gateway,
        executor=ToolExecutor(registry),
        session_config=SessionConfig(
            system_instruction="You are Nova.",
            tools=tuple(registry.list_specs()),
        ),
        **kwargs,
    )


class TestBuildParts:
    """Tests for initial part construction."""

    def test_attachment_precedes_text(self):
        attachment = BinaryPart(data=b"\x89PNG", mime_type="image/png")
        parts = build_parts("What is this?", attachment)
        assert parts == [attachment, TextPart(text="What is this?")]

    def test_text_only(self):
        assert build_parts("Hi") == [TextPart(text="Hi")]

    def test_empty_values_are_omitted(self):
        assert build_parts("", BinaryPart(data=b"", mime_type="image/png")) == []
        assert build_parts() == []


class TestSingleTurn:
    """Tests for turns that end with final text."""

    def test_plain_answer(self, stub_registry):
        """A text-only reply completes in one round."""
        gateway = FakeGateway([text("Hello there!")])
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Hi")

        assert result.reply == "Hello there!"
        assert result.client_action is None
        assert result.status == TurnStatus.ANSWERED
        assert result.rounds == 1
        assert gateway.sent[0][1] == [TextPart(text="Hi")]

    def test_time_question_runs_tool_then_answers(self, stub_registry):
        """A tool call is executed and its result sent back before the answer."""
        gateway = FakeGateway(
            [
                calls(("getCurrentTime", {}, "call_1")),
                text("It's 10 PM."),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="What time is it?")

        assert result.reply == "It's 10 PM."
        assert result.client_action is None
        assert result.tools_used == ["getCurrentTime"]
        assert result.rounds == 2
        assert gateway.sent[1][1] == [
            FunctionResultPart(
                name="getCurrentTime",
                payload={"time": "Mon Oct 19 22:00:00 2026"},
                call_id="call_1",
            )
        ]

    def test_open_website_returns_action(self, stub_registry):
        """openWebsite produces an OPEN_URL action next to the reply."""
        gateway = FakeGateway(
            [
                calls(("openWebsite", {"url": "https://github.com"}, "call_1")),
                text("Opening GitHub."),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Open github.com")

        assert result.reply == "Opening GitHub."
        assert result.client_action == ClientAction(
            type=ClientActionType.OPEN_URL, url="https://github.com"
        )
        assert result.to_response() == {
            "reply": "Opening GitHub.",
            "action": {"type": "OPEN_URL", "url": "https://github.com"},
        }

    def test_attachment_and_text_are_sent_in_order(self, stub_registry):
        gateway = FakeGateway([text("A cat.")])
        orchestrator = _orchestrator(gateway, stub_registry)
        attachment = BinaryPart(data=b"\xff\xd8", mime_type="image/jpeg")

        orchestrator.run_turn(SessionState(), text="What is this?", attachment=attachment)

        assert gateway.sent[0][1] == [attachment, TextPart(text="What is this?")]

    def test_empty_submission_is_sent(self, stub_registry):
        """Neither text nor file still reaches the model as an empty turn."""
        gateway = FakeGateway([text("How can I help?")])
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState())

        assert gateway.sent[0][1] == []
        assert result.reply == "How can I help?"


class TestMultiRound:
    """Tests for turns with several tool rounds."""

    def test_results_keep_request_order(self, stub_registry):
        gateway = FakeGateway(
            [
                calls(
                    ("getSystemInfo", {}, "call_a"),
                    ("getCurrentTime", {}, "call_b"),
                ),
                text("Done."),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        orchestrator.run_turn(SessionState(), text="Status?")

        sent_results = gateway.sent[1][1]
        assert [part.call_id for part in sent_results] == ["call_a", "call_b"]
        assert [part.name for part in sent_results] == ["getSystemInfo", "getCurrentTime"]

    def test_last_action_wins_within_round(self, stub_registry):
        gateway = FakeGateway(
            [
                calls(
                    ("openWebsite", {"url": "https://a.example"}, "call_1"),
                    ("openWebsite", {"url": "https://b.example"}, "call_2"),
                ),
                text("Opened both."),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Open a and b")

        assert result.client_action.url == "https://b.example"

    def test_last_action_wins_across_rounds(self, stub_registry):
        gateway = FakeGateway(
            [
                calls(("openWebsite", {"url": "https://first.example"}, "call_1")),
                calls(("openWebsite", {"url": "https://second.example"}, "call_2")),
                calls(("getCurrentTime", {}, "call_3")),
                text("All done."),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Go")

        assert result.reply == "All done."
        assert result.client_action.url == "https://second.example"
        assert result.rounds == 4
        assert result.tools_used == ["openWebsite", "openWebsite", "getCurrentTime"]

    def test_failing_tool_does_not_abort_turn(self):
        """A raising handler becomes an error payload for the model."""

        def broken(params):
            raise RuntimeError("sensor offline")

        registry = ToolRegistry(
            (ToolDefinition(spec=ToolSpec(name="getSystemInfo", description="x"), handler=broken),)
        )
        gateway = FakeGateway(
            [calls(("getSystemInfo", {}, "call_1")), text("I couldn't read that.")]
        )
        orchestrator = _orchestrator(gateway, registry)

        result = orchestrator.run_turn(SessionState(), text="System info?")

        assert result.status == TurnStatus.ANSWERED
        assert gateway.sent[1][1][0].payload == {"error": "sensor offline"}

    @patch("nova.tools.weather.requests.get")
    def test_weather_outage_does_not_fail_turn(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("network unreachable")
        registry = ToolRegistry((weather.build_definition(WeatherConfig()),))
        gateway = FakeGateway(
            [
                calls(("getWeather", {"location": "Pune"}, "call_1")),
                text("Sorry, I couldn't get the weather."),
            ]
        )
        orchestrator = _orchestrator(gateway, registry)

        result = orchestrator.run_turn(SessionState(), text="Weather in Pune?")

        assert result.status == TurnStatus.ANSWERED
        assert result.reply == "Sorry, I couldn't get the weather."
        assert gateway.sent[1][1][0].payload == {"error": "Unable to fetch weather info."}

    def test_all_unknown_calls_end_turn_early(self, stub_registry):
        """A round where nothing resolves is not sent back to the model."""
        gateway = FakeGateway([calls(("launchRockets", {}, "call_1"))])
        orchestrator = _orchestrator(gateway, stub_registry)
        session = SessionState()

        result = orchestrator.run_turn(session, text="Launch")

        assert len(gateway.sent) == 1
        assert result.status == TurnStatus.EMPTY
        assert result.reply is None
        assert session.exists

    def test_early_exit_keeps_text_sent_with_calls(self, stub_registry):
        """Text the model sent next to unresolvable calls becomes the reply."""
        unresolvable = calls(("bookFlight", {"to": "Goa"}, "call_1"))
        gateway = FakeGateway(
            [
                GatewayResponse(
                    final_text="I can't do that, but here is what I know.",
                    pending_calls=unresolvable.pending_calls,
                )
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Book a flight to Goa")

        assert len(gateway.sent) == 1
        assert result.status == TurnStatus.ANSWERED
        assert result.reply == "I can't do that, but here is what I know."
        assert result.client_action is None

    def test_unknown_calls_are_dropped_from_mixed_round(self, stub_registry):
        gateway = FakeGateway(
            [
                calls(("launchRockets", {}, "call_1"), ("getCurrentTime", {}, "call_2")),
                text("It's late."),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Time?")

        assert [part.name for part in gateway.sent[1][1]] == ["getCurrentTime"]
        assert result.tools_used == ["getCurrentTime"]


class TestEmptyReply:
    """Tests for a model that ends the turn without text."""

    def test_empty_text_returns_no_reply(self, stub_registry):
        gateway = FakeGateway([text("")])
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Hi")

        assert result.status == TurnStatus.EMPTY
        assert result.reply is None
        assert not result.failed

    def test_empty_text_drops_client_action(self, stub_registry):
        gateway = FakeGateway(
            [
                calls(("openWebsite", {"url": "https://github.com"}, "call_1")),
                text(None),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Open github")

        assert result.reply is None
        assert result.client_action is None
        assert result.to_response() == {"reply": None, "action": None}


class TestSessionLifecycle:
    """Tests for session reuse and discard."""

    def test_session_created_once_and_reused(self, stub_registry):
        gateway = FakeGateway([text("One."), text("Two.")])
        orchestrator = _orchestrator(gateway, stub_registry)
        session = SessionState()

        orchestrator.run_turn(session, text="First")
        orchestrator.run_turn(session, text="Second")

        assert gateway.sessions_created == 1
        assert gateway.session_ids[0] == gateway.session_ids[1]

    def test_gateway_failure_resets_session(self, stub_registry):
        gateway = FakeGateway(
            [
                text("Hi."),
                GatewayError("quota exceeded"),
                text("Fresh start."),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)
        session = SessionState()

        orchestrator.run_turn(session, text="Hello")
        failed = orchestrator.run_turn(session, text="Again")

        assert failed.status == TurnStatus.FAILED
        assert failed.reply == f"{ERROR_REPLY_PREFIX}quota exceeded"
        assert failed.error == "quota exceeded"
        assert failed.client_action is None
        assert not session.exists

        recovered = orchestrator.run_turn(session, text="Still there?")
        assert recovered.reply == "Fresh start."
        assert gateway.sessions_created == 2
        assert gateway.session_ids[2] != gateway.session_ids[0]

    def test_failure_after_action_drops_action(self, stub_registry):
        gateway = FakeGateway(
            [
                calls(("openWebsite", {"url": "https://github.com"}, "call_1")),
                GatewayError("connection reset"),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry)

        result = orchestrator.run_turn(SessionState(), text="Open github")

        assert result.failed
        assert result.client_action is None
        assert result.reply.startswith(ERROR_REPLY_PREFIX)

    def test_unexpected_error_is_reported(self, stub_registry):
        gateway = FakeGateway([ValueError("bad state")])
        orchestrator = _orchestrator(gateway, stub_registry)
        session = SessionState()

        result = orchestrator.run_turn(session, text="Hi")

        assert result.status == TurnStatus.FAILED
        assert result.reply == f"{ERROR_REPLY_PREFIX}bad state"
        assert not session.exists


class TestLimits:
    """Tests for the round limit and turn timeout."""

    def test_round_limit(self, stub_registry):
        gateway = FakeGateway(
            [calls(("getCurrentTime", {}, f"call_{i}")) for i in range(5)]
        )
        orchestrator = _orchestrator(gateway, stub_registry, max_rounds=2)
        session = SessionState()

        result = orchestrator.run_turn(session, text="Loop forever")

        assert result.status == TurnStatus.ROUND_LIMIT
        assert result.reply.startswith(ERROR_REPLY_PREFIX)
        assert "2" in result.error
        assert len(gateway.sent) == 3
        assert result.tools_used == ["getCurrentTime", "getCurrentTime"]
        assert not session.exists

    def test_answer_on_last_allowed_round(self, stub_registry):
        gateway = FakeGateway(
            [
                calls(("getCurrentTime", {}, "call_1")),
                calls(("getCurrentTime", {}, "call_2")),
                text("Finally."),
            ]
        )
        orchestrator = _orchestrator(gateway, stub_registry, max_rounds=2)

        result = orchestrator.run_turn(SessionState(), text="Time twice")

        assert result.status == TurnStatus.ANSWERED
        assert result.reply == "Finally."

    def test_turn_timeout(self, stub_registry):
        times = iter([0.0, 1.0, 11.0])
        gateway = FakeGateway(
            [calls(("getCurrentTime", {}, "call_1")), text("Too late.")]
        )
        orchestrator = _orchestrator(
            gateway, stub_registry, turn_timeout=10.0, clock=lambda: next(times)
        )
        session = SessionState()

        result = orchestrator.run_turn(session, text="Slow")

        assert result.status == TurnStatus.TIMEOUT
        assert result.reply.startswith(ERROR_REPLY_PREFIX)
        assert len(gateway.sent) == 1
        assert not session.exists

    def test_invalid_max_rounds(self, stub_registry):
        with pytest.raises(ValueError):
            _orchestrator(FakeGateway(), stub_registry, max_rounds=0)


class TestSerialization:
    """Concurrent turns on one session run one after the other."""

    def test_second_turn_waits_for_first(self, stub_registry):
        entered = threading.Event()
        release = threading.Event()

        def blocking_round(handle, parts):
            entered.set()
            assert release.wait(timeout=5)
            return calls(("getCurrentTime", {}, "call_1"))

        gateway = FakeGateway([blocking_round, text("First."), text("Second.")])
        orchestrator = _orchestrator(gateway, stub_registry)
        session = SessionState()
        results = {}

        def run(label):
            results[label] = orchestrator.run_turn(session, text=label)

        first = threading.Thread(target=run, args=("one",))
        first.start()
        assert entered.wait(timeout=5)

        second = threading.Thread(target=run, args=("two",))
        second.start()
        time.sleep(0.1)
        assert len(gateway.sent) == 1

        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert results["one"].reply == "First."
        assert results["two"].reply == "Second."
        assert [parts for _, parts in gateway.sent] == [
            [TextPart(text="one")],
            [
                FunctionResultPart(
                    name="getCurrentTime",
                    payload={"time": "Mon Oct 19 22:00:00 2026"},
                    call_id="call_1",
                )
            ],
            [TextPart(text="two")],
        ]
        assert gateway.sessions_created == 1
