"""
OpenAI-compatible Model Gateway.

Uses the Chat Completions API with the native ``tools`` parameter, which
any OpenAI-compatible endpoint understands (Gemini's compatibility layer,
vLLM with auto tool choice, Ollama, OpenAI itself). The session history
is kept on the SessionHandle as provider-format messages and is only
extended after a round succeeds.
"""

import base64
import json
import logging
from typing import Optional, Sequence

from openai import OpenAI

from ..config import config
from ..models import (
    BinaryPart,
    FunctionResultPart,
    GatewayConfig,
    GatewayResponse,
    MessagePart,
    TextPart,
    ToolCallRequest,
)
from ..tracing import TracingContext
from .base import GatewayError, ModelGateway, SessionConfig, SessionHandle

logger = logging.getLogger(__name__)

AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


def _data_uri(part: BinaryPart) -> str:
    encoded = base64.b64encode(part.data).decode("ascii")
    return f"data:{part.mime_type};base64,{encoded}"


def binary_to_content(part: BinaryPart) -> dict:
    """Map an attachment to a Chat Completions content part."""
    mime_type = (part.mime_type or "application/octet-stream").lower()
    if mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": _data_uri(part)}}
    if mime_type in AUDIO_FORMATS:
        return {
            "type": "input_audio",
            "input_audio": {
                "data": base64.b64encode(part.data).decode("ascii"),
                "format": AUDIO_FORMATS[mime_type],
            },
        }
    return {
        "type": "file",
        "file": {"filename": "attachment", "file_data": _data_uri(part)},
    }


def parse_arguments(raw: Optional[str]) -> dict:
    """Decode a tool call's JSON arguments string."""
    if not raw:
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse tool call arguments as JSON: {raw[:200]}")
        return {"raw": raw}
    return args if isinstance(args, dict) else {"value": args}


class OpenAIGateway(ModelGateway):
    """Model gateway backed by the OpenAI SDK."""

    def __init__(
        self,
        gateway_config: Optional[GatewayConfig] = None,
        client: Optional[OpenAI] = None,
    ):
        self.settings = gateway_config or config.gateway
        self.model = self.settings.model
        self._client = client or OpenAI(
            base_url=self.settings.base_url,
            api_key=self.settings.api_key or "not-needed",
            timeout=self.settings.request_timeout,
            max_retries=0,
        )

    def create_session(self, config: SessionConfig) -> SessionHandle:
        handle = SessionHandle(config=config)
        logger.info(
            f"Created session {handle.session_id} "
            f"(model={self.model}, tools={[t.name for t in config.tools]})"
        )
        return handle

    def _build_new_messages(
        self, handle: SessionHandle, parts: Sequence[MessagePart]
    ) -> list[dict]:
        """Translate parts into the messages appended for this round."""
        messages: list[dict] = []
        answered: set[str] = set()
        content: list[dict] = []

        for part in parts:
            if isinstance(part, FunctionResultPart):
                call_id = part.call_id or ""
                answered.add(call_id)
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call_id,
                        "content": json.dumps(part.payload, default=str),
                    }
                )
            elif isinstance(part, BinaryPart):
                content.append(binary_to_content(part))
            elif isinstance(part, TextPart):
                content.append({"type": "text", "text": part.text})

        # Calls the host could not resolve still need a reply in the transcript.
        for call_id, name in handle.pending_calls.items():
            if call_id not in answered:
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call_id,
                        "content": json.dumps({"error": f"Tool '{name}' is not available."}),
                    }
                )

        has_results = any(isinstance(part, FunctionResultPart) for part in parts)
        if content or not has_results:
            messages.append({"role": "user", "content": content or ""})
        return messages

    def send_turn(
        self,
        handle: SessionHandle,
        parts: Sequence[MessagePart],
        tracing_context: Optional[TracingContext] = None,
    ) -> GatewayResponse:
        new_messages = self._build_new_messages(handle, parts)
        create_kwargs: dict = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": handle.config.system_instruction},
                *handle.history,
                *new_messages,
            ],
            "temperature": self.settings.temperature,
        }
        if handle.config.tools:
            create_kwargs["tools"] = [t.to_function_schema() for t in handle.config.tools]

        if tracing_context is None:
            response = self._create(create_kwargs)
        else:
            with tracing_context.generation(
                name="gateway_round",
                model=self.model,
                input=new_messages,
                model_parameters={"temperature": self.settings.temperature},
            ) as gen:
                try:
                    response = self._create(create_kwargs)
                except GatewayError as e:
                    gen.set_status("error")
                    gen.set_output(str(e))
                    raise
                usage = getattr(response, "usage", None)
                if usage:
                    gen.set_usage(
                        prompt_tokens=usage.prompt_tokens,
                        completion_tokens=usage.completion_tokens,
                        total_tokens=usage.total_tokens,
                    )

        try:
            assistant_message, result = self._parse_response(response)
        except (AttributeError, TypeError) as e:
            raise GatewayError(f"Malformed model response: {e}") from e
        logger.debug(
            f"[{handle.session_id}] Gateway round: "
            f"{len(result.pending_calls)} pending calls, "
            f"final_text={'yes' if result.final_text else 'no'}"
        )

        handle.history.extend(new_messages)
        handle.history.append(assistant_message)
        handle.pending_calls = {
            call.call_id: call.name for call in result.pending_calls if call.call_id
        }
        return result

    def _create(self, create_kwargs: dict):
        try:
            return self._client.chat.completions.create(**create_kwargs)
        except Exception as e:
            logger.error(f"Gateway call failed: {e}")
            raise GatewayError(str(e)) from e

    @staticmethod
    def _parse_response(response) -> tuple[dict, GatewayResponse]:
        """Split a completion into the assistant history entry and a GatewayResponse."""
        choices = getattr(response, "choices", None)
        if not choices:
            raise GatewayError("Model returned no choices")

        message = choices[0].message
        text = message.content or ""
        tool_calls = getattr(message, "tool_calls", None) or []

        if not tool_calls:
            return {"role": "assistant", "content": text}, GatewayResponse(final_text=text)

        pending = tuple(
            ToolCallRequest(
                name=call.function.name,
                arguments=parse_arguments(call.function.arguments),
                call_id=call.id,
            )
            for call in tool_calls
        )
        assistant_message = {
            "role": "assistant",
            "content": text or None,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.function.name,
                        "arguments": call.function.arguments or "{}",
                    },
                }
                for call in tool_calls
            ],
        }
        return assistant_message, GatewayResponse(
            final_text=text or None, pending_calls=pending
        )

    def check_model(self, model: str) -> None:
        """
        Send a trivial prompt to a model.

        Raises:
            GatewayError: If the model cannot be reached or used
        """
        self._create(
            {
                "model": model,
                "messages": [{"role": "user", "content": "Hi"}],
                "max_tokens": 5,
            }
        )

    def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            self._client.close()
        except Exception as e:
            logger.debug("Error closing OpenAI client: %s", e)
