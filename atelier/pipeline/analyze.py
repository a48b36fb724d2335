"""
Visual Analyzer — structured design metadata from the two reference images.

Sends the technical sketch and the 3D render to a vision model with a fixed
extraction prompt and turns its free-text reply into a DesignMetadata
record. A reply that does not contain usable JSON degrades to a minimal
fallback record instead of failing the request.
"""

import json
import logging
import re

import httpx
from pydantic import ValidationError

from ..errors import AnalysisFailure, BackendParseFailure
from ..gemini import GeminiAPIError, response_text
from .describe import describe_design
from .models import (
    DesignAnalysis,
    DesignAsset,
    DesignMetadata,
    fallback_metadata,
)

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """You are a professional fashion design analyst. Analyze these two images of the same dress design (technical sketch and 3D render) and extract STRUCTURED design metadata.

Extract the following information in JSON format:

{
  "silhouette": {
    "type": "A-line | mermaid | sheath | ball gown | fit-and-flare | empire | bodycon | etc",
    "overall_shape": "detailed description of the outline shape",
    "garment_separation": "description of how pieces connect (e.g., 'fitted bodice with flowing skirt')",
    "proportions": "bust-waist-hip balance description",
    "length": "mini | midi | maxi | floor-length | train"
  },
  "fabric_and_texture": {
    "primary_material": "silk | satin | chiffon | tulle | lace | velvet | cotton | brocade | etc",
    "texture_type": "smooth | textured | embroidered | patterned | plain",
    "sheen_level": "matte | subtle sheen | glossy | metallic",
    "layering": "description of any overlays, linings, or multiple fabric layers",
    "drape_behavior": "how fabric falls and moves"
  },
  "design_features": {
    "neckline": "V-neck | scoop | square | boat | off-shoulder | halter | sweetheart | mock neck | etc",
    "sleeves": "sleeveless | cap sleeve | short | 3/4 | long | bell | puff | bishop | sheer | etc",
    "cape_or_train": "description of any cape, train, or flowing elements with attachment points",
    "cutouts": "description of any cutout sections, exposed midriff, or two-piece design",
    "waistline": "natural | empire | dropped | belted | seamed",
    "closures": "zipper | buttons | lace-up | hook-and-eye | invisible"
  },
  "pattern_and_color": {
    "primary_colors": ["color1", "color2"],
    "color_zones": "description of where each color appears",
    "patterns": "geometric | floral | damask | embroidered motifs | solid | etc",
    "pattern_layout": "description of pattern placement and symmetry",
    "contrast_areas": "borders, trims, or contrasting sections"
  },
  "dimensional_cues": {
    "volume_areas": "where the dress has volume (skirt, sleeves, train)",
    "shading_analysis": "how light and shadow define shape",
    "fold_patterns": "natural fabric folds and draping",
    "depth_elements": "3D elements like ruffles, tiers, or dimensional embellishments"
  },
  "pose_and_dynamics": {
    "dress_fall_direction": "how gravity affects the dress",
    "fabric_flow": "movement pattern of flowing elements",
    "rotation_anchor": "center point for 360° rotation (usually waist/torso center)",
    "movement_potential": "how fabric would move during rotation"
  },
  "embellishments": {
    "details": "beading | sequins | embroidery | appliqués | rhinestones | pearls | etc",
    "placement": "where embellishments are located",
    "density": "sparse | moderate | heavily embellished",
    "special_features": "any unique decorative elements"
  }
}

Return ONLY valid JSON. Be extremely specific and detailed. If something is not present, use null or "none"."""

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")
_BRACED_SPAN = re.compile(r"\{[\s\S]*\}")


def extract_json_candidate(text: str) -> str:
    """
    Pick the substring of a model reply most likely to be the JSON object.

    Fenced ```json block first, then the outermost ``{...}`` span, then the
    whole reply.
    """
    fenced = _FENCED_JSON.search(text)
    if fenced:
        return fenced.group(1)
    braced = _BRACED_SPAN.search(text)
    if braced:
        return braced.group(0)
    return text


def parse_metadata(text: str) -> DesignMetadata:
    """Parse a reply into DesignMetadata or raise BackendParseFailure."""
    candidate = extract_json_candidate(text)
    try:
        data = json.loads(candidate)
        if not isinstance(data, dict):
            raise BackendParseFailure(f"Expected a JSON object, got {type(data).__name__}")
        return DesignMetadata.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise BackendParseFailure(f"Analysis reply is not valid metadata JSON: {e}") from e


def metadata_from_reply(text: str) -> DesignMetadata:
    """Like parse_metadata, but falls back to the minimal record."""
    try:
        return parse_metadata(text)
    except BackendParseFailure as e:
        logger.warning(f"Failed to parse analysis JSON, using fallback: {e}")
        return fallback_metadata()


async def analyze_design(
    client,
    technical_sketch: DesignAsset,
    render_3d: DesignAsset,
    model: str,
) -> DesignAnalysis:
    """
    Extract structured metadata and a natural description from both images.

    Args:
        client:           GeminiClient (or anything with ``generate_content``).
        technical_sketch: The flat technical drawing.
        render_3d:        The photorealistic render.
        model:            Vision-capable Gemini model name.

    Returns:
        DesignAnalysis with a well-shaped metadata record and its description.

    Raises:
        AnalysisFailure if the backend is unreachable or returns no text.
    """
    parts = [
        technical_sketch.inline_part(),
        render_3d.inline_part(),
        {"text": ANALYSIS_PROMPT},
    ]

    try:
        result = await client.generate_content(model=model, parts=parts)
    except (GeminiAPIError, httpx.HTTPError) as e:
        logger.error(f"Design analysis request failed: {e}")
        raise AnalysisFailure(f"Failed to analyze design: {e}") from e

    if not result.get("candidates"):
        raise AnalysisFailure("Analysis backend returned no candidates")
    text = response_text(result)
    logger.debug(f"Raw analysis response: {text[:2000]}")

    metadata = metadata_from_reply(text)
    description = describe_design(metadata)
    logger.info(f"Structured design analysis complete ({len(description)} char description)")
    return DesignAnalysis(metadata=metadata, description=description)
