"""
Website opening tool.

Nothing is opened on the server: the tool returns an OPEN_URL client
action and the calling UI performs the navigation.
"""

import logging
import re
from urllib.parse import urlparse

from ..models import ClientAction, ClientActionType
from .registry import ToolDefinition, ToolName, ToolOutcome, ToolParameter, ToolSpec

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")

# "mailto:a@b" has a scheme, "localhost:3000" does not.
_EXPLICIT_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:(?!\d)")

SPEC = ToolSpec(
    name=ToolName.OPEN_WEBSITE.value,
    description="Open a website or search for something in the browser.",
    parameters=(
        ToolParameter(
            name="url",
            description=(
                "The full URL to open (must start with http:// or https://). "
                "If searching, construct a google search URL."
            ),
        ),
    ),
)


def normalize_url(url: str) -> str:
    """Add https:// to bare hosts such as 'github.com'."""
    url = url.strip()
    if not _EXPLICIT_SCHEME.match(url):
        return f"https://{url}"
    return url


def open_website(url: str) -> ToolOutcome:
    """
    Ask the client to open a URL.

    Args:
        url: Target URL; a missing scheme defaults to https

    Returns:
        ToolOutcome with a success payload and an OPEN_URL action, or an
        error payload and no action for empty or non-web URLs
    """
    if not url or not str(url).strip():
        return ToolOutcome(payload={"status": "error", "error": "No URL provided."})

    url = normalize_url(str(url))
    scheme = urlparse(url).scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        logger.warning(f"Refusing to open URL with scheme '{scheme}': {url}")
        return ToolOutcome(
            payload={
                "status": "error",
                "error": f"Unsupported URL scheme '{scheme}'. Use http or https.",
            }
        )

    logger.info(f"Action: Opening {url}")
    return ToolOutcome(
        payload={
            "status": "success",
            "message": "Website opened on client device.",
            "url": url,
        },
        client_action=ClientAction(type=ClientActionType.OPEN_URL, url=url),
    )


def _handle_open_website(params: dict) -> ToolOutcome:
    return open_website(params.get("url", ""))


DEFINITION = ToolDefinition(spec=SPEC, handler=_handle_open_website)
