"""
Image Transform Client — technical flat sketch and photorealistic render.

Both kinds share one generateContent call shape (instruction text + the
uploaded sketch) and differ only in their instruction template. Unlike the
analyzer there is no fallback: a reply without an image part is a failure.
"""

import asyncio
import logging
from typing import Optional

import httpx

from ..errors import GenerationFailure
from ..gemini import GeminiAPIError, first_inline_image
from .models import DesignAsset, DesignAssets, TransformKind

logger = logging.getLogger(__name__)

TECHNICAL_PROMPT = """Transform this fashion design sketch into a highly detailed technical fashion sketch with:
- Clean, precise line work showing construction details
- Flat technical drawing style (front and back views if possible)
- Detailed seam lines, darts, and construction elements
- Professional technical illustration quality
- Measurements and proportions clearly indicated
- Black and white or minimal color technical drawing style
Keep the original design but make it look like a professional technical specification drawing."""

RENDER_3D_PROMPT = """Transform this fashion design sketch into a realistic 3D rendered image with:
- Photorealistic fabric textures and materials
- Professional fashion photography lighting
- Model wearing the garment in a studio setting
- High-end fashion campaign aesthetic
- Detailed fabric draping and movement
- Professional color grading and finish
Make it look like a high-quality fashion editorial photograph."""

TRANSFORM_PROMPTS = {
    TransformKind.TECHNICAL: TECHNICAL_PROMPT,
    TransformKind.RENDER_3D: RENDER_3D_PROMPT,
}

IMAGE_CONFIG = {"responseModalities": ["TEXT", "IMAGE"]}


def build_transform_prompt(kind: TransformKind, preferences: Optional[str] = None) -> str:
    """Instruction text for ``kind`` with the designer's preferences appended."""
    prompt = TRANSFORM_PROMPTS[kind]
    if preferences and preferences.strip():
        prompt += (
            f"\n\nDESIGNER SPECIFICATIONS:\n{preferences.strip()}\n\n"
            "Ensure these specific details are accurately reflected in the output."
        )
    return prompt


async def transform_image(
    client,
    source: DesignAsset,
    kind: TransformKind,
    model: str,
    preferences: Optional[str] = None,
) -> DesignAsset:
    """
    Generate one derived image from the uploaded sketch.

    Raises:
        GenerationFailure if the call fails or the reply holds no image part.
    """
    parts = [
        {"text": build_transform_prompt(kind, preferences)},
        source.inline_part(),
    ]

    logger.info(f"Generating {kind.value} image with {model}")
    if preferences:
        logger.info(f"Design preferences: {preferences}")

    try:
        result = await client.generate_content(model=model, parts=parts, config=IMAGE_CONFIG)
    except (GeminiAPIError, httpx.HTTPError) as e:
        logger.error(f"{kind.value} image generation failed: {e}")
        raise GenerationFailure(f"Failed to generate {kind.value} image: {e}") from e

    inline = first_inline_image(result)
    if inline is None:
        logger.error(f"No image found in {kind.value} response")
        raise GenerationFailure("No image generated")

    logger.info(f"{kind.value} image successfully generated ({inline['mimeType']})")
    return DesignAsset(mime_type=inline["mimeType"], data=inline["data"])


async def generate_design_assets(
    client,
    source: DesignAsset,
    model: str,
    preferences: Optional[str] = None,
) -> DesignAssets:
    """Run the technical and 3D transforms concurrently from the same upload."""
    technical, render = await asyncio.gather(
        transform_image(client, source, TransformKind.TECHNICAL, model, preferences),
        transform_image(client, source, TransformKind.RENDER_3D, model, preferences),
    )
    return DesignAssets(technical_sketch=technical, render_3d=render)
