"""
Configuration management.

Settings come from (highest priority first) constructor arguments,
`ATELIER_*` environment variables, a `.env` file, and defaults. A YAML file
can be loaded explicitly with `AtelierSettings.load_from_file()`.

Credentials are read once at startup and treated as read-only.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings


class AtelierSettings(BaseSettings):
    """Runtime settings with environment variable support."""

    # Credentials
    api_key: Optional[str] = Field(default=None, description="Inference API key (image generation and vision)")
    chat_api_key: Optional[str] = Field(default=None, description="Chat API key; chat runs in demo mode without it")
    google_api_key: Optional[str] = Field(default=None, description="API key for the Imagen backend")

    # Inference service
    base_url: str = Field(default="https://api.together.xyz/v1", description="Inference API base URL")
    image_backend: Literal["together", "imagen"] = Field(default="together", description="Image generation backend")
    image_model: str = Field(default="black-forest-labs/FLUX.1-schnell-Free")
    image_size: str = Field(default="1024x1024")
    image_count: int = Field(default=1, ge=1)
    imagen_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    imagen_model: str = Field(default="imagen-3.0-generate-002")
    vision_model: str = Field(default="meta-llama/Llama-Vision-Free")
    describe_prompt: str = Field(default="Describe the image in detail.")
    chat_model: str = Field(default="meta-llama/Llama-3.3-70B-Instruct-Turbo-Free")
    chat_temperature: Optional[float] = Field(default=0.7)
    chat_greeting: Optional[str] = Field(default="Kia ora! Ask me anything ✨")
    demo_delay_seconds: float = Field(default=0.4, ge=0)

    # Retry
    max_attempts: int = Field(default=4, ge=1, description="Ceiling on HTTP attempts per request")
    base_delay_ms: int = Field(default=500, ge=0, description="Backoff base; the first retry waits twice this")
    request_timeout_seconds: Optional[float] = Field(default=None, description="None disables the timeout")

    # Typing test
    leaderboard_path: str = Field(default="~/.atelier/leaderboard.json")

    model_config = {
        "env_file": ".env",
        "env_prefix": "ATELIER_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @classmethod
    def load_from_file(cls, config_path: Path, **overrides: Any) -> "AtelierSettings":
        """Load settings from a YAML file; defaults when the file is absent."""
        config_path = Path(config_path)
        if not config_path.exists():
            return cls(**overrides)

        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")

        return cls(**{**config_data, **overrides})

    @property
    def chat_demo_mode(self) -> bool:
        return not self.chat_api_key

    def redacted(self) -> dict[str, Any]:
        """Settings as a dict with credentials replaced by set/unset markers."""
        data = self.model_dump()
        for key in ("api_key", "chat_api_key", "google_api_key"):
            data[key] = "<set>" if data[key] else "<unset>"
        return data


@lru_cache(maxsize=1)
def get_settings() -> AtelierSettings:
    """Process-wide settings, loaded on first use."""
    return AtelierSettings()
