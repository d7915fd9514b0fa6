"""
Langfuse tracing client for Nova.

Built from the ``langfuse`` section of the configuration. Tracing is off
unless the langfuse package imports, both keys are set and the server
accepts them at startup; when off, every call here does nothing.
"""

import logging
from typing import Optional

from ..models import LangfuseConfig

logger = logging.getLogger(__name__)

_langfuse_available = False
_langfuse_error: Optional[str] = None

try:
    from langfuse import Langfuse

    _langfuse_available = True
except ImportError as e:
    _langfuse_error = f"langfuse package not installed: {e}"
    Langfuse = None  # type: ignore


class TracingClient:
    """Owns the Langfuse connection used for turn traces."""

    def __init__(self, settings: Optional[LangfuseConfig] = None):
        self.settings = settings or LangfuseConfig()
        self._client: Optional["Langfuse"] = None
        self._error: Optional[str] = self._connect()
        if self._error:
            logger.info(f"Tracing disabled: {self._error}")
        else:
            logger.info(f"Langfuse tracing enabled (host: {self.settings.host or 'default'})")

    def _connect(self) -> Optional[str]:
        """Create and verify the Langfuse client. Returns why tracing is off, if it is."""
        if not _langfuse_available:
            return _langfuse_error
        if not self.settings.is_configured:
            return "Langfuse credentials not configured"

        host = self.settings.host
        if host and not host.startswith(("http://", "https://")):
            logger.warning(f"LANGFUSE_HOST '{host}' has no scheme; expected http(s)://host:port")

        options = {
            "public_key": self.settings.public_key,
            "secret_key": self.settings.secret_key,
            "debug": self.settings.debug,
        }
        if host:
            options["host"] = host

        try:
            client = Langfuse(**options)
            authenticated = client.auth_check()
        except Exception as e:
            return f"Failed to initialize Langfuse client: {e}"
        if not authenticated:
            return "Langfuse auth_check() failed, check LANGFUSE_HOST and keys"

        self._client = client
        return None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def error(self) -> Optional[str]:
        """Why tracing is disabled, or None when it is enabled."""
        return self._error

    @property
    def client(self) -> Optional["Langfuse"]:
        return self._client

    def flush(self) -> None:
        """Send buffered observations; called at the end of every turn."""
        if self._client is None:
            return
        try:
            self._client.flush()
        except Exception as e:
            logger.warning(f"Failed to flush tracing events: {e}")

    def shutdown(self) -> None:
        if self._client is None:
            return
        try:
            self._client.shutdown()
            logger.info("Langfuse tracing client shutdown complete")
        except Exception as e:
            logger.warning(f"Error during tracing client shutdown: {e}")
        self._client = None


_tracing_client: Optional[TracingClient] = None


def init_tracing_client(settings: Optional[LangfuseConfig] = None) -> TracingClient:
    """Create the process-wide tracing client from the langfuse settings."""
    global _tracing_client
    _tracing_client = TracingClient(settings)
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    return _tracing_client


def shutdown_tracing() -> None:
    """Flush and drop the process-wide tracing client."""
    global _tracing_client
    if _tracing_client:
        _tracing_client.shutdown()
        _tracing_client = None
