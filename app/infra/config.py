"""Configuration management."""

import os
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
# This ensures dotenv works regardless of where the script is run from
project_root = Path(__file__).parent.parent.parent
env_file = project_root / ".env"

# override=False means existing environment variables take precedence
load_dotenv(dotenv_path=env_file, override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    """Application configuration."""
    # Search / retrieval provider (mandatory)
    AI_TOOLKIT_MCP_URL: str = os.getenv("AI_TOOLKIT_MCP_URL", "http://localhost:8080/mcp")

    # Asset management provider (optional)
    CLOUDINARY_MCP_URL: str = os.getenv(
        "CLOUDINARY_MCP_URL",
        "https://asset-management.mcp.cloudinary.com/sse"
    )
    CLOUDINARY_CLOUD_NAME: Optional[str] = os.getenv("CLOUDINARY_CLOUD_NAME")
    CLOUDINARY_API_KEY: Optional[str] = os.getenv("CLOUDINARY_API_KEY")
    CLOUDINARY_API_SECRET: Optional[str] = os.getenv("CLOUDINARY_API_SECRET")

    # Content management provider (optional, needs both URL and token)
    WORDPRESS_MCP_URL: Optional[str] = os.getenv("WORDPRESS_MCP_URL")
    WORDPRESS_MCP_TOKEN: Optional[str] = os.getenv("WORDPRESS_MCP_TOKEN")

    # Gemini
    GEMINI_API_KEY: Optional[str] = os.getenv("GOOGLE_GENERATIVE_AI_API_KEY") or os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_API_BASE: str = os.getenv(
        "GEMINI_API_BASE",
        "https://generativelanguage.googleapis.com/v1beta"
    )

    # Chat behaviour
    MAX_TOOL_STEPS: int = int(os.getenv("MAX_TOOL_STEPS", "5"))
    INTENT_ROUTING_ENABLED: bool = _env_flag("INTENT_ROUTING_ENABLED")

    # Transport timeouts (seconds)
    MCP_CONNECT_TIMEOUT: float = float(os.getenv("MCP_CONNECT_TIMEOUT", "30"))
    DIRECT_CALL_TIMEOUT: float = float(os.getenv("DIRECT_CALL_TIMEOUT", "30"))
    LLM_CALL_TIMEOUT: float = float(os.getenv("LLM_CALL_TIMEOUT", "120"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = _env_flag("DEBUG")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "")

    @property
    def wordpress_configured(self) -> bool:
        """Content provider is only enabled when both URL and token are set."""
        return bool(self.WORDPRESS_MCP_URL and self.WORDPRESS_MCP_TOKEN)


config = Config()
