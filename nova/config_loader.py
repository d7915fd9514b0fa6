"""
Configuration loader for Nova.

Loads configuration from a YAML file with support for
environment variable interpolation.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .models import (
    AppConfig,
    GatewayConfig,
    LangfuseConfig,
    LoggingConfig,
    OpenAppConfig,
    OrchestratorConfig,
    ServerConfig,
    ToolsConfig,
    WeatherConfig,
)
from .models.config import DEFAULT_SYSTEM_INSTRUCTION, default_open_app_command

logger = logging.getLogger(__name__)

# Default config location: <repo>/config/config.yaml
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"

# ${NAME} or ${NAME:-fallback}
_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<fallback>[^}]*))?\}")

_app_config: Optional[AppConfig] = None


def resolve_env_vars(value: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` references from the environment."""
    return _ENV_REFERENCE.sub(
        lambda m: os.environ.get(m.group("name"), m.group("fallback") or ""),
        value,
    )


def _interpolate(node: Any) -> Any:
    """Apply resolve_env_vars to every string in a parsed YAML tree."""
    if isinstance(node, str):
        return resolve_env_vars(node)
    if isinstance(node, dict):
        return {key: _interpolate(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_interpolate(item) for item in node]
    return node


def _parse_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _parse_gateway_config(data: dict) -> GatewayConfig:
    return GatewayConfig(
        base_url=data.get("base_url") or GatewayConfig.base_url,
        api_key=data.get("api_key", ""),
        model=data.get("model") or GatewayConfig.model,
        temperature=float(data.get("temperature", 0.7)),
        request_timeout=float(data.get("request_timeout", 60.0)),
        system_instruction=data.get("system_instruction") or DEFAULT_SYSTEM_INSTRUCTION,
    )


def _parse_orchestrator_config(data: dict) -> OrchestratorConfig:
    max_rounds = int(data.get("max_rounds", 8))
    if max_rounds < 1:
        raise ValueError(f"orchestrator.max_rounds must be positive, got {max_rounds}")
    return OrchestratorConfig(
        max_rounds=max_rounds,
        turn_timeout=float(data.get("turn_timeout", 120.0)),
        max_tool_workers=max(1, int(data.get("max_tool_workers", 4))),
        max_sessions=max(1, int(data.get("max_sessions", 100))),
    )


def _parse_tools_config(data: dict) -> ToolsConfig:
    weather_data = data.get("weather", {}) or {}
    open_app_data = data.get("open_app", {}) or {}

    command = open_app_data.get("command")
    if isinstance(command, str):
        command = command.split()
    if not command:
        command = default_open_app_command()

    return ToolsConfig(
        weather=WeatherConfig(
            url=weather_data.get("url") or WeatherConfig.url,
            timeout=int(weather_data.get("timeout", 10)),
        ),
        open_app=OpenAppConfig(
            command=list(command),
            timeout=int(open_app_data.get("timeout", 15)),
        ),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    return ServerConfig(
        host=data.get("host", "127.0.0.1"),
        port=int(data.get("port", 3000)),
        workers=int(data.get("workers", 1)),
        reload=_parse_bool(data.get("reload"), False),
        static_dir=data.get("static_dir", "frontend"),
    )


def _parse_logging_config(data: dict) -> LoggingConfig:
    return LoggingConfig(level=data.get("level", "INFO"))


def _parse_langfuse_config(data: dict) -> LangfuseConfig:
    return LangfuseConfig(
        public_key=data.get("public_key", ""),
        secret_key=data.get("secret_key", ""),
        host=data.get("host", ""),
        debug=_parse_bool(data.get("debug"), False),
    )


def parse_app_config(raw_config: dict) -> AppConfig:
    """Build an AppConfig from an already-interpolated mapping."""
    return AppConfig(
        version=str(raw_config.get("version", "1.0")),
        gateway=_parse_gateway_config(raw_config.get("gateway", {}) or {}),
        orchestrator=_parse_orchestrator_config(raw_config.get("orchestrator", {}) or {}),
        tools=_parse_tools_config(raw_config.get("tools", {}) or {}),
        server=_parse_server_config(raw_config.get("server", {}) or {}),
        logging=_parse_logging_config(raw_config.get("logging", {}) or {}),
        langfuse=_parse_langfuse_config(raw_config.get("langfuse", {}) or {}),
    )


def load_app_config(path: Optional[str] = None, reload: bool = False) -> AppConfig:
    """
    Load unified application configuration from a YAML file.

    Uses a singleton pattern - subsequent calls return the cached config
    unless reload=True is specified. A missing file yields the built-in
    defaults so the assistant can run with environment variables only.

    Args:
        path: Path to the YAML configuration file. If None, uses
              CONFIG_PATH env var or the default path (config/config.yaml).
        reload: If True, force reload from disk instead of using cache.

    Returns:
        AppConfig with all configuration loaded

    Raises:
        ValueError: If the config is invalid
    """
    global _app_config

    if _app_config is not None and not reload:
        return _app_config

    load_dotenv()

    if path is None:
        path = os.environ.get("CONFIG_PATH", str(DEFAULT_CONFIG_PATH))

    config_path = Path(path)

    if not config_path.exists():
        logger.warning(f"Configuration file not found at {config_path}, using defaults")
        raw_config: dict = {}
    else:
        logger.info(f"Loading configuration from {config_path}")
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")

    raw_config = _interpolate(raw_config)
    app_config = parse_app_config(raw_config)

    if not app_config.gateway.api_key:
        logger.warning("Config validation warning: gateway.api_key is empty")

    _app_config = app_config
    logger.debug(
        f"Configuration loaded: version={app_config.version}, "
        f"model={app_config.gateway.model}"
    )
    return app_config


def reset_config_cache() -> None:
    """Reset the configuration cache, forcing a reload on next access."""
    global _app_config
    _app_config = None
    logger.debug("Configuration cache reset")
