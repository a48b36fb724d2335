"""
ShowcaseService — chains the pipeline stages per request.

  Step 1: Image transforms (technical sketch + 3D render)
  Step 2: Visual analysis (structured metadata + description)
  Step 3: Comment refinement (optional, keyword driven)
  Step 4: Prompt synthesis (rotation + runway)
  Step 5: Dual video generation (Veo, polled under one deadline)
"""

import logging
from typing import Callable, Optional

from ..config import ShowcaseConfig
from ..errors import AnalysisFailure, ConfigurationFailure, ValidationFailure
from ..gemini import GeminiClient, split_data_url
from .analyze import analyze_design
from .animate import VideoJobOrchestrator
from .describe import describe_design
from .models import (
    DesignAnalysis,
    DesignAsset,
    DesignAssets,
    DesignMetadata,
    DesignPreferences,
    ShowcaseVideos,
    TransformKind,
)
from .prompts import build_preview_prompt, build_video_prompts
from .refine import refine_metadata
from .transform import generate_design_assets, transform_image

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], GeminiClient]


def decode_asset(image: Optional[str], label: str) -> DesignAsset:
    """Turn an uploaded data URL (or raw base64) into a DesignAsset."""
    if not image or not image.strip():
        raise ValidationFailure(f"{label} is required")
    try:
        mime, data = split_data_url(image)
    except ValueError as e:
        raise ValidationFailure(f"{label} is not a valid image: {e}") from e
    return DesignAsset(mime_type=mime, data=data)


def preference_text(
    preferences: Optional[str], design_preferences: Optional[DesignPreferences]
) -> Optional[str]:
    """Free-text preferences win; otherwise the structured choices are rendered."""
    if preferences and preferences.strip():
        return preferences.strip()
    if design_preferences is not None:
        return design_preferences.to_text() or None
    return None


class ShowcaseService:
    """
    Stateless pipeline entry point; one instance serves every request.

    Usage:
        service = ShowcaseService(ShowcaseConfig.from_env())
        assets = await service.generate_design_assets(upload)
        analysis = await service.analyze_design(assets.technical_sketch.data_url,
                                                assets.render_3d.data_url)
        videos = await service.generate_videos(technical, render, comments)
    """

    def __init__(
        self,
        config: Optional[ShowcaseConfig] = None,
        client_factory: Optional[ClientFactory] = None,
        orchestrator_factory: Optional[Callable[..., VideoJobOrchestrator]] = None,
    ):
        self.config = config or ShowcaseConfig.from_env()
        self._client_factory = client_factory or (
            lambda key: GeminiClient(key, api_base=self.config.api_base)
        )
        self._orchestrator_factory = orchestrator_factory or VideoJobOrchestrator

    # ── Step 1: Image transforms ─────────────────────────────────────────

    async def generate_image(
        self,
        image: Optional[str],
        image_type: str,
        preferences: Optional[str] = None,
        design_preferences: Optional[DesignPreferences] = None,
    ) -> DesignAsset:
        source = decode_asset(image, "Image")
        try:
            kind = TransformKind(image_type)
        except ValueError as e:
            raise ValidationFailure(f"Unknown image type: {image_type}") from e
        client = self._client_factory(self.config.require_gemini_key())
        return await transform_image(
            client,
            source,
            kind,
            model=self.config.image_model,
            preferences=preference_text(preferences, design_preferences),
        )

    async def generate_design_assets(
        self,
        image: Optional[str],
        preferences: Optional[str] = None,
        design_preferences: Optional[DesignPreferences] = None,
    ) -> DesignAssets:
        source = decode_asset(image, "Image")
        client = self._client_factory(self.config.require_gemini_key())
        return await generate_design_assets(
            client,
            source,
            model=self.config.image_model,
            preferences=preference_text(preferences, design_preferences),
        )

    # ── Step 2: Analysis ─────────────────────────────────────────────────

    async def analyze_design(
        self, technical_sketch: Optional[str], render_3d: Optional[str]
    ) -> DesignAnalysis:
        if not technical_sketch or not render_3d:
            raise ValidationFailure("Both technical sketch and 3D render are required")
        technical = decode_asset(technical_sketch, "Technical sketch")
        render = decode_asset(render_3d, "3D render")
        client = self._client_factory(self.config.require_gemini_key())
        return await analyze_design(client, technical, render, model=self.config.analysis_model)

    # ── Step 3: Refinement ───────────────────────────────────────────────

    def refine_design(self, metadata: DesignMetadata, comments: str) -> DesignAnalysis:
        refined = refine_metadata(comments, metadata)
        return DesignAnalysis(metadata=refined, description=describe_design(refined))

    def preview_prompt(self, description: str, comments: Optional[str] = None) -> str:
        return build_preview_prompt(description, comments)

    # ── Steps 4-5: Prompts and videos ────────────────────────────────────

    async def _metadata_for_videos(
        self, technical_sketch: str, render_3d: Optional[str]
    ) -> Optional[DesignMetadata]:
        if not render_3d:
            logger.info("No 3D render supplied, using generic design description")
            return None
        try:
            analysis = await self.analyze_design(technical_sketch, render_3d)
        except (AnalysisFailure, ConfigurationFailure, ValidationFailure) as e:
            logger.warning(f"Design analysis failed, using generic description: {e}")
            return None
        return analysis.metadata

    async def generate_videos(
        self,
        technical_sketch: Optional[str],
        render_3d: Optional[str] = None,
        comments: Optional[str] = None,
    ) -> ShowcaseVideos:
        """
        Analyse, refine, build both prompts and run the two Veo lanes.

        Refinement only happens when analysis produced a record; without one
        the prompts fall back to their generic phrasing.
        """
        if not technical_sketch:
            raise ValidationFailure("Technical sketch is required")
        video_key = self.config.require_video_key()
        using = "VEO_API_KEY" if self.config.veo_api_key else "GEMINI_API_KEY"
        logger.info(f"Using {using} for video generation")

        metadata = await self._metadata_for_videos(technical_sketch, render_3d)
        if metadata is not None and comments and comments.strip():
            logger.info("Processing user comments to update design specifications...")
            metadata = refine_metadata(comments, metadata)

        prompts = build_video_prompts(metadata or DesignMetadata(), comments)

        orchestrator = self._orchestrator_factory(
            self._client_factory(video_key),
            video_key,
            model=self.config.video_model,
            poll_interval=self.config.poll_interval,
            max_duration=self.config.max_duration,
        )
        return await orchestrator.run(prompts)
