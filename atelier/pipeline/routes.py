"""
FastAPI routes for the showcase pipeline.

Pipeline Endpoints:
  POST /pipeline/generate-image   — One transform (technical or 3d)
  POST /pipeline/generate-images  — Both transforms from one upload
  POST /pipeline/analyze-design   — Structured metadata + description
  POST /pipeline/refine-design    — Apply designer comments to metadata
  POST /pipeline/preview-prompt   — Readable rotation prompt for the UI
  POST /pipeline/generate-video   — Rotation + runway videos
"""

import logging
import time
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException

from .. import metrics
from ..errors import PipelineError, QuotaFailure
from .models import (
    AnalyzeDesignRequest,
    DesignAnalysisResponse,
    GenerateImageRequest,
    GenerateImagesRequest,
    GenerateVideoRequest,
    PreviewPromptRequest,
    RefineDesignRequest,
    ShowcaseVideosResponse,
)
from .orchestrator import ShowcaseService

logger = logging.getLogger(__name__)

pipeline_router = APIRouter(prefix="/pipeline", tags=["pipeline"])

# Singleton service instance, created on first use
_service: ShowcaseService | None = None


def get_service() -> ShowcaseService:
    global _service
    if _service is None:
        _service = ShowcaseService()
    return _service


@contextmanager
def _translate_errors(route: str):
    """Map pipeline failures to HTTP errors and record metrics."""
    started = time.time()
    metrics.inc_counter(f"requests.{route}")
    try:
        yield
    except QuotaFailure as e:
        metrics.record_error(route, type(e).__name__, str(e))
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": str(e), "is_quota_error": True},
        )
    except PipelineError as e:
        metrics.record_error(route, type(e).__name__, str(e))
        logger.error(f"{route} failed ({e.status_code}): {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        metrics.record_error(route, type(e).__name__, str(e))
        logger.error(f"{route} failed unexpectedly: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e) or "Internal server error")
    finally:
        metrics.record_latency(route, (time.time() - started) * 1000)


@pipeline_router.post("/generate-image")
async def generate_image(
    request: GenerateImageRequest,
    service: ShowcaseService = Depends(get_service),
):
    """Generate a technical sketch or a 3D render from the uploaded sketch."""
    with _translate_errors("generate_image"):
        asset = await service.generate_image(
            request.image,
            request.image_type,
            preferences=request.preferences,
            design_preferences=request.design_preferences,
        )
    return {"success": True, "image": asset.data_url}


@pipeline_router.post("/generate-images")
async def generate_images(
    request: GenerateImagesRequest,
    service: ShowcaseService = Depends(get_service),
):
    """Generate both derived images concurrently."""
    with _translate_errors("generate_images"):
        assets = await service.generate_design_assets(
            request.image,
            preferences=request.preferences,
            design_preferences=request.design_preferences,
        )
    return {
        "success": True,
        "technical_sketch": assets.technical_sketch.data_url,
        "render_3d": assets.render_3d.data_url,
    }


@pipeline_router.post("/analyze-design", response_model=DesignAnalysisResponse)
async def analyze_design(
    request: AnalyzeDesignRequest,
    service: ShowcaseService = Depends(get_service),
):
    """Extract structured design metadata and a natural description."""
    with _translate_errors("analyze_design"):
        analysis = await service.analyze_design(request.technical_sketch, request.render_3d)
    return DesignAnalysisResponse(metadata=analysis.metadata, description=analysis.description)


@pipeline_router.post("/refine-design", response_model=DesignAnalysisResponse)
async def refine_design(
    request: RefineDesignRequest,
    service: ShowcaseService = Depends(get_service),
):
    """Re-derive the metadata from the current comment text."""
    with _translate_errors("refine_design"):
        analysis = service.refine_design(request.metadata, request.comments)
    return DesignAnalysisResponse(metadata=analysis.metadata, description=analysis.description)


@pipeline_router.post("/preview-prompt")
async def preview_prompt(
    request: PreviewPromptRequest,
    service: ShowcaseService = Depends(get_service),
):
    return {"prompt": service.preview_prompt(request.description, request.comments)}


@pipeline_router.post("/generate-video", response_model=ShowcaseVideosResponse)
async def generate_video(
    request: GenerateVideoRequest,
    service: ShowcaseService = Depends(get_service),
):
    """
    Generate the rotation and runway videos.

    Errors:
      - 400: Technical sketch missing
      - 408: Deadline elapsed before both videos finished
      - 429: Quota exhausted (detail.is_quota_error is true)
      - 500: Credentials missing or generation failed
    """
    with _translate_errors("generate_video"):
        videos = await service.generate_videos(
            request.technical_sketch,
            render_3d=request.render_3d,
            comments=request.comments,
        )
    return ShowcaseVideosResponse(**videos.model_dump())
