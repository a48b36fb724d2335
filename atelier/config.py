"""Runtime configuration for the Atelier showcase service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar

from .errors import ConfigurationFailure

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(slots=True)
class ShowcaseConfig:
    """Static configuration applied to every pipeline run."""

    env_prefix: ClassVar[str] = "ATELIER_"

    gemini_api_key: str = ""
    veo_api_key: str = ""
    api_base: str = DEFAULT_API_BASE
    image_model: str = "gemini-2.5-flash-image-preview"
    analysis_model: str = "gemini-2.5-flash-image-preview"
    video_model: str = "veo-3.0-fast-generate-001"
    poll_interval: float = 10.0
    max_duration: float = 60.0

    @classmethod
    def from_env(cls) -> "ShowcaseConfig":
        """Create a config object populated from environment variables."""
        prefix = cls.env_prefix
        gemini_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY", "")
        return cls(
            gemini_api_key=gemini_key,
            veo_api_key=os.environ.get("VEO_API_KEY", ""),
            api_base=os.environ.get("GEMINI_API_BASE", DEFAULT_API_BASE),
            image_model=os.environ.get(f"{prefix}IMAGE_MODEL", "gemini-2.5-flash-image-preview"),
            analysis_model=os.environ.get(f"{prefix}ANALYSIS_MODEL", "gemini-2.5-flash-image-preview"),
            video_model=os.environ.get(f"{prefix}VIDEO_MODEL", "veo-3.0-fast-generate-001"),
            poll_interval=float(os.environ.get(f"{prefix}POLL_INTERVAL", "10")),
            max_duration=float(os.environ.get(f"{prefix}MAX_DURATION", "60")),
        )

    def require_gemini_key(self) -> str:
        if not self.gemini_api_key:
            raise ConfigurationFailure("GEMINI_API_KEY not configured")
        return self.gemini_api_key

    def require_video_key(self) -> str:
        """The video backend key, falling back to the Gemini key."""
        key = self.veo_api_key or self.gemini_api_key
        if not key:
            raise ConfigurationFailure("VEO_API_KEY or GEMINI_API_KEY not configured")
        return key
