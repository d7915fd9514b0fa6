"""Host system information tool."""

import os
import platform

import psutil

from .registry import ToolDefinition, ToolName, ToolSpec

SPEC = ToolSpec(
    name=ToolName.SYSTEM_INFO.value,
    description="Get information about the user's computer system (OS, memory, CPU).",
)


def _bytes_to_gb(value: float) -> str:
    return f"{value / 1024 / 1024 / 1024:.2f} GB"


def _cpu_model() -> str:
    model = platform.processor()
    if not model and os.path.exists("/proc/cpuinfo"):
        with open("/proc/cpuinfo") as f:
            for line in f:
                if line.startswith("model name"):
                    model = line.split(":", 1)[1].strip()
                    break
    return model or platform.machine() or "unknown"


def get_system_info() -> dict:
    """Snapshot of OS, memory and CPU details."""
    memory = psutil.virtual_memory()
    return {
        "osType": platform.system(),
        "osRelease": platform.release(),
        "totalMemory": _bytes_to_gb(memory.total),
        "freeMemory": _bytes_to_gb(memory.available),
        "cpuModel": _cpu_model(),
        "cpuCores": psutil.cpu_count(logical=True) or os.cpu_count() or 0,
    }


def _handle_system_info(params: dict) -> dict:
    return get_system_info()


DEFINITION = ToolDefinition(spec=SPEC, handler=_handle_system_info)
