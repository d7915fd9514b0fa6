"""
Desktop application launcher tool.

Runs the host's "open application" command once. The app name is passed
as a separate argv element, never through a shell.
"""

import logging
import subprocess
from functools import partial

from ..models import OpenAppConfig
from .registry import ToolDefinition, ToolName, ToolParameter, ToolSpec

logger = logging.getLogger(__name__)

SPEC = ToolSpec(
    name=ToolName.OPEN_APP.value,
    description="Open a desktop application on the user's computer.",
    parameters=(
        ToolParameter(
            name="appName",
            description=(
                "The name of the application to open "
                "(e.g., 'Calculator', 'Notes', 'Visual Studio Code')."
            ),
        ),
    ),
)


def open_app(app_name: str, command: list[str], timeout: int = 15) -> dict:
    """
    Launch a desktop application by name.

    Args:
        app_name: Application name as the user would say it
        command: Launcher argv prefix, e.g. ``["open", "-a"]``
        timeout: Seconds to wait for the launcher to exit

    Returns:
        Status dictionary; failures are reported, never raised
    """
    app_name = str(app_name or "").strip()
    if not app_name:
        return {"status": "error", "message": "No application name provided."}

    logger.info(f"Action: Opening App {app_name}")
    try:
        subprocess.run(
            [*command, app_name],
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit code {e.returncode}"
        logger.error(f"Error opening app {app_name}: {detail}")
    except subprocess.TimeoutExpired:
        logger.error(f"Timed out opening app {app_name} after {timeout}s")
    except OSError as e:
        logger.error(f"Error opening app {app_name}: {e}")
    else:
        return {"status": "success", "message": f"Opened {app_name} successfully."}

    return {
        "status": "error",
        "message": f"Could not open {app_name}. It might not be installed.",
    }


def _handle_open_app(params: dict, config: OpenAppConfig) -> dict:
    return open_app(
        app_name=params.get("appName", ""),
        command=config.command,
        timeout=config.timeout,
    )


def build_definition(config: OpenAppConfig) -> ToolDefinition:
    return ToolDefinition(spec=SPEC, handler=partial(_handle_open_app, config=config))
