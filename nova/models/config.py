"""
Configuration models for Nova.

Defines dataclasses for the unified YAML configuration file.
"""

import sys
from dataclasses import dataclass, field

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are Nova, a smart, concise, and helpful AI voice assistant. "
    "You have access to tools to check time, weather, open websites, open desktop apps, "
    "and check system info. Use them when asked. Use Markdown formatting (bold, italics, "
    "lists) to make your responses easy to read. Keep your answers conversational and "
    "concise. Always reply in the same language and dialect as the user."
)


def default_open_app_command() -> list[str]:
    """Launcher command prefix for the host platform (app name is appended)."""
    if sys.platform == "darwin":
        return ["open", "-a"]
    if sys.platform.startswith("win"):
        return ["cmd", "/c", "start", ""]
    return ["gtk-launch"]


@dataclass
class GatewayConfig:
    """Configuration for the remote language-model service."""
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    api_key: str = ""
    model: str = "gemini-flash-lite-latest"
    temperature: float = 0.7
    request_timeout: float = 60.0
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION


@dataclass
class OrchestratorConfig:
    """Limits applied to a single user turn."""
    max_rounds: int = 8
    turn_timeout: float = 120.0
    max_tool_workers: int = 4
    max_sessions: int = 100


@dataclass
class WeatherConfig:
    """Configuration for the weather lookup tool."""
    url: str = "https://wttr.in/{location}?format=j1"
    timeout: int = 10


@dataclass
class OpenAppConfig:
    """Configuration for the application launcher tool."""
    command: list[str] = field(default_factory=default_open_app_command)
    timeout: int = 15


@dataclass
class ToolsConfig:
    """Configuration for tool endpoints."""
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    open_app: OpenAppConfig = field(default_factory=OpenAppConfig)


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = "127.0.0.1"
    port: int = 3000
    workers: int = 1
    reload: bool = False
    static_dir: str = "frontend"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = ""
    secret_key: str = ""
    host: str = ""
    debug: bool = False

    @property
    def is_configured(self) -> bool:
        """Check if Langfuse is configured (both keys present)."""
        return bool(self.public_key and self.secret_key)


@dataclass
class AppConfig:
    """
    Unified application configuration container.

    Holds all configuration sections loaded from config/config.yaml.
    """
    version: str = "1.0"
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)

    @property
    def log_level(self) -> str:
        """Shortcut for logging.level."""
        return self.logging.level
