"""Built-in tools that do not depend on a remote provider."""

import logging
from typing import Any, Dict

from pydantic import BaseModel, Field

from app.models.tool import ToolDefinition

logger = logging.getLogger(__name__)

WEATHER_TOOL = "weatherTool"


class WeatherArgs(BaseModel):
    location: str = Field(..., description="The location for which to get the current weather information.")


async def get_weather(args: Dict[str, Any]) -> Dict[str, Any]:
    """Simulated weather lookup."""
    location = args["location"]
    logger.info(f"Getting weather for location: {location!r}")
    weather = {
        "temperature": "22°C",
        "condition": "Sunny",
        "humidity": "60%",
        "wind_speed": "15 km/h",
    }
    return {
        "weather": (
            f"The current weather in {location} is {weather['temperature']} with {weather['condition']}. "
            f"Humidity is at {weather['humidity']} and wind speed is {weather['wind_speed']}."
        )
    }


weather_tool = ToolDefinition(
    name=WEATHER_TOOL,
    description=(
        "Get the current weather information for a specific location. Use this to answer "
        "questions about the weather in different cities."
    ),
    args_model=WeatherArgs,
    provider="builtin",
    execute=get_weather,
)


def builtin_tools() -> Dict[str, ToolDefinition]:
    return {WEATHER_TOOL: weather_tool}
