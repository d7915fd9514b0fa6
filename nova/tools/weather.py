"""
Weather lookup tool.

Queries wttr.in's JSON format for the current conditions at a free-text
location. Failures of any kind are reported to the model as a fixed
error payload; the lookup is attempted once.
"""

import logging
from functools import partial
from urllib.parse import quote

import requests

from ..models import WeatherConfig
from .registry import ToolDefinition, ToolName, ToolParameter, ToolSpec

logger = logging.getLogger(__name__)

WEATHER_ERROR = "Unable to fetch weather info."

SPEC = ToolSpec(
    name=ToolName.WEATHER.value,
    description="Get the current weather for a specific location.",
    parameters=(
        ToolParameter(
            name="location",
            description="The city and state, e.g. San Francisco, CA",
        ),
    ),
)


def get_weather(
    location: str,
    url_template: str = WeatherConfig.url,
    timeout: int = WeatherConfig.timeout,
) -> dict:
    """
    Fetch current weather conditions for a location.

    Args:
        location: Free-text place name
        url_template: Endpoint with a ``{location}`` placeholder
        timeout: Request timeout in seconds

    Returns:
        Dictionary with temperature, condition and humidity, or
        ``{"error": WEATHER_ERROR}`` on any failure
    """
    if not location or not str(location).strip():
        logger.warning("Weather lookup called without a location")
        return {"error": WEATHER_ERROR}

    location = str(location).strip()
    url = url_template.format(location=quote(location, safe=""))
    logger.info(f"Fetching weather for: {location}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
        current = data["current_condition"][0]
        return {
            "location": location,
            "temperature_C": current["temp_C"],
            "condition": current["weatherDesc"][0]["value"],
            "humidity": current["humidity"],
        }
    except requests.exceptions.RequestException as e:
        logger.error(f"Weather fetch failed for {location}: {e}")
    except (ValueError, KeyError, IndexError, TypeError) as e:
        logger.error(f"Malformed weather response for {location}: {e!r}")
    return {"error": WEATHER_ERROR}


def _handle_weather(params: dict, config: WeatherConfig) -> dict:
    return get_weather(
        location=params.get("location", ""),
        url_template=config.url,
        timeout=config.timeout,
    )


def build_definition(config: WeatherConfig) -> ToolDefinition:
    return ToolDefinition(spec=SPEC, handler=partial(_handle_weather, config=config))
