"""
Turn orchestration loop.

Drives one user turn through repeated gateway rounds:

    NO_SESSION -> AWAITING_MODEL -> RESOLVING_TOOLS -> AWAITING_MODEL -> ... -> ANSWERED
                                                                           \\-> FAILED

Per-turn flow:
    1. Ensure the session has a gateway handle (created once, reused)
    2. Send the user's parts (attachment first, then text)
    3. While the model asks for tool calls: execute them, keep the last
       client action seen, send the results back in request order
    4. Final text ends the turn; a round where no call resolves ends it
       early with whatever text the model last gave
    5. Any gateway failure, the round limit or the turn timeout discards
       the session and returns an apologetic reply
"""

import logging
import time
import uuid
from enum import Enum
from typing import Callable, Optional

from ..gateway import GatewayError, ModelGateway, SessionConfig
from ..models import (
    BinaryPart,
    ClientAction,
    FunctionResultPart,
    GatewayResponse,
    MessagePart,
    TextPart,
    TurnResult,
    TurnStatus,
)
from ..tools import ToolExecutor
from ..tracing import TracingContext, get_tracing_client
from .session import SessionState

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 8
DEFAULT_TURN_TIMEOUT = 120.0
ERROR_REPLY_PREFIX = "I encountered an error: "


class TurnState(str, Enum):
    """States of a single turn."""

    NO_SESSION = "no_session"
    AWAITING_MODEL = "awaiting_model"
    RESOLVING_TOOLS = "resolving_tools"
    ANSWERED = "answered"
    FAILED = "failed"


class RoundLimitExceeded(Exception):
    """The model kept requesting tools past the configured number of rounds."""


class TurnTimeout(Exception):
    """The turn ran longer than the configured timeout."""


def build_parts(
    text: Optional[str] = None,
    attachment: Optional[BinaryPart] = None,
) -> list[MessagePart]:
    """
    Build the initial message parts for a turn.

    The attachment goes first, then the text. Empty values are left out;
    an empty list is still a valid submission.
    """
    parts: list[MessagePart] = []
    if attachment is not None and attachment.data:
        parts.append(attachment)
    if text:
        parts.append(TextPart(text=text))
    return parts


class TurnOrchestrator:
    """Runs user turns against a model gateway and a tool executor."""

    def __init__(
        self,
        gateway: ModelGateway,
        executor: ToolExecutor,
        session_config: SessionConfig,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        turn_timeout: float = DEFAULT_TURN_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the orchestrator.

        Args:
            gateway: Model gateway used for every round
            executor: Executor resolving requested tool calls
            session_config: System instruction and tool catalog for new sessions
            max_rounds: Maximum tool-resolution rounds per turn
            turn_timeout: Seconds a turn may run before it is failed
            clock: Monotonic time source (injectable for tests)
        """
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.gateway = gateway
        self.executor = executor
        self.session_config = session_config
        self.max_rounds = max_rounds
        self.turn_timeout = turn_timeout
        self._clock = clock

    def run_turn(
        self,
        session: SessionState,
        text: Optional[str] = None,
        attachment: Optional[BinaryPart] = None,
        turn_id: Optional[str] = None,
    ) -> TurnResult:
        """
        Run one user turn to completion.

        Args:
            session: Session whose conversation this turn continues
            text: Optional user text
            attachment: Optional binary attachment

        Returns:
            TurnResult; errors are reported in it, never raised
        """
        turn_id = turn_id or f"turn-{uuid.uuid4().hex[:8]}"
        parts = build_parts(text, attachment)

        tracing_context = TracingContext(turn_id=turn_id, session_id=session.key)
        tracing_context.start_trace(
            name="turn",
            input={
                "text": text,
                "attachment": attachment.mime_type if attachment else None,
            },
            metadata={"max_rounds": self.max_rounds},
        )

        with session.turn_lock:
            result = self._run_locked(session, parts, turn_id, tracing_context)

        tracing_context.end_trace(
            output=result.to_response(),
            status="error" if result.failed else "success",
        )
        client = get_tracing_client()
        if client:
            client.flush()

        self._log_turn_summary(turn_id, result)
        return result

    def _run_locked(
        self,
        session: SessionState,
        parts: list[MessagePart],
        turn_id: str,
        tracing_context: TracingContext,
    ) -> TurnResult:
        deadline = self._clock() + self.turn_timeout
        state = TurnState.AWAITING_MODEL if session.exists else TurnState.NO_SESSION
        client_action: Optional[ClientAction] = None
        tools_used: list[str] = []
        model_rounds = 0
        tool_rounds = 0

        def transition(new_state: TurnState) -> None:
            nonlocal state
            logger.debug(f"[{turn_id}] {state.value} -> {new_state.value}")
            state = new_state

        try:
            handle = session.ensure(
                lambda: self.gateway.create_session(self.session_config)
            )
            transition(TurnState.AWAITING_MODEL)
            self._check_deadline(deadline)
            response: GatewayResponse = self.gateway.send_turn(handle, parts, tracing_context)
            model_rounds += 1

            while response.has_pending_calls:
                if tool_rounds >= self.max_rounds:
                    raise RoundLimitExceeded(
                        f"Exceeded the maximum of {self.max_rounds} tool-calling rounds."
                    )
                transition(TurnState.RESOLVING_TOOLS)
                results = self.executor.execute_round(response.pending_calls, tracing_context)
                tool_rounds += 1

                for result in results:
                    tools_used.append(result.name)
                    if result.client_action is not None:
                        client_action = result.client_action

                if not results:
                    logger.warning(
                        f"[{turn_id}] No requested tool could be resolved: "
                        f"{[call.name for call in response.pending_calls]}"
                    )
                    break

                transition(TurnState.AWAITING_MODEL)
                self._check_deadline(deadline)
                response = self.gateway.send_turn(
                    handle,
                    [FunctionResultPart.from_result(result) for result in results],
                    tracing_context,
                )
                model_rounds += 1

        except RoundLimitExceeded as e:
            status, message = TurnStatus.ROUND_LIMIT, str(e)
        except TurnTimeout as e:
            status, message = TurnStatus.TIMEOUT, str(e)
        except GatewayError as e:
            status, message = TurnStatus.FAILED, str(e)
        except Exception as e:
            logger.exception(f"[{turn_id}] Unexpected error during turn: {e}")
            status, message = TurnStatus.FAILED, str(e) or type(e).__name__
        else:
            return self._finish(
                turn_id, transition, response, client_action, model_rounds, tools_used
            )

        return self._fail(session, turn_id, state, status, message, model_rounds, tools_used)

    @staticmethod
    def _finish(
        turn_id: str,
        transition: Callable[[TurnState], None],
        response: GatewayResponse,
        client_action: Optional[ClientAction],
        rounds: int,
        tools_used: list[str],
    ) -> TurnResult:
        """ANSWERED transition. No final text means an empty turn with no action."""
        transition(TurnState.ANSWERED)
        reply = response.final_text or None
        if reply is None:
            logger.warning(f"[{turn_id}] Model returned no text")
            return TurnResult(
                reply=None,
                status=TurnStatus.EMPTY,
                rounds=rounds,
                tools_used=tools_used,
            )
        return TurnResult(
            reply=reply,
            client_action=client_action,
            status=TurnStatus.ANSWERED,
            rounds=rounds,
            tools_used=tools_used,
        )

    def _check_deadline(self, deadline: float) -> None:
        if self._clock() > deadline:
            raise TurnTimeout(f"Turn timed out after {self.turn_timeout:g} seconds.")

    def _fail(
        self,
        session: SessionState,
        turn_id: str,
        state: TurnState,
        status: TurnStatus,
        message: str,
        rounds: int,
        tools_used: list[str],
    ) -> TurnResult:
        """FAILED transition: drop the session and report the error as the reply."""
        logger.error(f"[{turn_id}] Turn failed in state {state.value}: {message}")
        logger.debug(f"[{turn_id}] {state.value} -> {TurnState.FAILED.value}")
        session.invalidate()
        return TurnResult(
            reply=f"{ERROR_REPLY_PREFIX}{message}",
            client_action=None,
            status=status,
            error=message,
            rounds=rounds,
            tools_used=tools_used,
        )

    @staticmethod
    def _log_turn_summary(turn_id: str, result: TurnResult) -> None:
        """Log a compact turn summary."""
        logger.info(
            "[%s] Turn %s after %d round(s); tools=%s; action=%s",
            turn_id,
            result.status.value,
            result.rounds,
            result.tools_used or "-",
            result.client_action.type.value if result.client_action else "-",
        )
