"""
Chat turn endpoints.

POST /chat accepts a multipart form with an optional file and optional
text and returns the assistant's reply plus an optional client action.
Errors inside the turn are reported in the response body, never as an
HTTP error.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from ...assistant import Assistant
from ...models import BinaryPart
from ..schemas import ChatResponse, ResetResponse, ToolInfo, ToolListResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def get_assistant(request: Request) -> Assistant:
    """Dependency returning the application's assistant."""
    return request.app.state.assistant


def _read_attachment(file: Optional[UploadFile]) -> Optional[BinaryPart]:
    if file is None:
        return None
    data = file.file.read()
    if not data:
        return None
    return BinaryPart(
        data=data,
        mime_type=file.content_type or "application/octet-stream",
    )


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Submit a chat turn",
    description=(
        "Send optional text and an optional file to the assistant. The assistant "
        "may call tools before answering; a client action such as OPEN_URL is "
        "returned alongside the reply when a tool requested one."
    ),
)
def chat(
    text: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    session_id: Optional[str] = Form(default=None),
    assistant: Assistant = Depends(get_assistant),
) -> ChatResponse:
    """Run one turn through the orchestrator."""
    attachment = _read_attachment(file)
    logger.info("--- POST /chat ---")
    logger.info(
        "File: %s",
        f"Yes ({attachment.mime_type}, {len(attachment.data)} bytes)" if attachment else "No",
    )
    logger.info("Text: %s", text)

    result = assistant.chat(text=text, attachment=attachment, session_key=session_id)
    return ChatResponse.from_turn(result)


@router.delete(
    "/chat/session",
    response_model=ResetResponse,
    summary="Reset conversation",
    description="Discard the conversation so the next turn starts a new session.",
)
def reset_session(
    session_id: Optional[str] = Query(default=None),
    assistant: Assistant = Depends(get_assistant),
) -> ResetResponse:
    """Forget the conversation for a session id (the shared one by default)."""
    reset = assistant.reset(session_id)
    logger.info(f"Session reset requested ({session_id or 'default'}): {reset}")
    return ResetResponse(reset=reset)


@router.get(
    "/tools",
    response_model=ToolListResponse,
    summary="List tools",
    description="List the tools advertised to the model.",
)
def list_tools(assistant: Assistant = Depends(get_assistant)) -> ToolListResponse:
    """Return the tool catalog in advertised order."""
    return ToolListResponse(
        data=[ToolInfo.from_spec(spec) for spec in assistant.registry.list_specs()]
    )
