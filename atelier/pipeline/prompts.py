"""
Prompt Synthesizer — two video prompts from one DesignMetadata record.

The video model has no structured input, so every extracted attribute is
restated under labelled headers and the attributes that drift most
(neckline, sleeves, cape/train, cutouts, colors, fabric) carry explicit
exact-match demands. Optional lines are dropped when their field holds the
sentinel. Output is a pure function of (metadata, notes).
"""

from typing import Optional

from .describe import join_and, text_or
from .models import DesignMetadata, VideoPrompts, is_absent

EXACT = " - MUST BE EXACTLY THIS"
MANDATORY = " - THIS IS MANDATORY"

ROTATION_INTRO = (
    "Create a professional 360-degree rotating showcase video of this EXACT fashion "
    "dress design with THESE SPECIFIC FEATURES:"
)

RUNWAY_INTRO = (
    "Create a professional fashion runway video featuring a model wearing this EXACT "
    "dress design with THESE SPECIFIC FEATURES:"
)

CRITICAL = "CRITICAL: The dress MUST match ALL these exact design specifications:"

ROTATION_STAGING = """VIDEO EXECUTION REQUIREMENTS:
- Display Method: Dress on an invisible mannequin/dress form against clean neutral studio background (soft white or cream)
- Camera Movement: Smooth 360-degree clockwise rotation completing one full circle: Front → Right → Back → Left → Front
- Rotation Speed: Slow, elegant, continuous motion allowing all details to be clearly visible
- Camera Position: Eye-level at dress mid-chest height, maintaining consistent distance throughout rotation
- Lighting: Professional three-point studio lighting highlighting fabric texture, sheen, construction details, and all embellishments
- Focus: Sharp focus throughout with ALL design elements clearly visible
- Atmosphere: Luxury fashion boutique product showcase

ABSOLUTE REQUIREMENT: The dress in the video MUST exactly match the colors, fabric type, silhouette, neckline, sleeves, length, and all other specifications listed above. Do not substitute or change any design elements."""

RUNWAY_STAGING = """VIDEO EXECUTION REQUIREMENTS:
- Scene: Professional high-fashion runway show with dramatic lighting
- Model: Professional adult fashion model with confident, elegant runway walk
- Camera: Following model from front as she walks toward camera down the runway
- Walk Style: Confident runway stride showing natural fabric movement and draping
- Background: Stylish runway with spotlights, professional fashion show atmosphere with audience
- Lighting: Dramatic runway spotlights highlighting the dress details and fabric movement
- Focus: Clear focus on model and dress, capturing how fabric moves, flows, and drapes during walking
- Pacing: Professional runway walk speed showing dress movement naturally

ABSOLUTE REQUIREMENT: The dress worn by the model MUST exactly match the colors, fabric type, silhouette, neckline, sleeves, length, and all other specifications listed above. The video should show how THIS SPECIFIC DRESS moves and looks on a professional runway. Do not substitute or change any design elements."""

PREVIEW_STAGING = """VIDEO SPECIFICATIONS:
- Camera Movement: Smooth, steady 360-degree rotation around the dress, starting from the front, moving to the right side, then back, then left side, and returning to front
- Display: The dress should be shown on an invisible mannequin or elegant dress form against a clean, minimalist white or cream studio background
- Lighting: Soft, even professional studio lighting that highlights fabric texture, drape, and all construction details
- Pacing: Slow, elegant rotation taking the full duration to complete one full circle
- Angle: Camera at chest/eye level to show the dress from a flattering angle
- Style: High-end fashion editorial presentation, luxury boutique atmosphere"""

PREVIEW_CLOSING = (
    "The video should feel like a premium fashion brand's product showcase."
)


def _block(header: str, lines: list[Optional[str]]) -> str:
    return "\n".join([header] + [line for line in lines if line is not None])


def _optional(label: str, value: str, suffix: str = "") -> Optional[str]:
    return None if is_absent(value) else f"- {label}: {value}{suffix}"


def _colors(metadata: DesignMetadata) -> str:
    colors = metadata.pattern_and_color.primary_colors
    return join_and(colors) if not is_absent(colors) else "as shown in design"


def _notes_block(notes: Optional[str]) -> Optional[str]:
    if notes is None or not notes.strip():
        return None
    return f"DESIGNER'S ADDITIONAL NOTES:\n{notes.strip()}"


def _design_features(metadata: DesignMetadata) -> str:
    design = metadata.design_features
    return _block("EXACT DESIGN FEATURES:", [
        f"- Neckline: {text_or(design.neckline, 'classic neckline')}{EXACT}",
        f"- Sleeves: {text_or(design.sleeves, 'sleeveless')}{EXACT}",
        _optional("Cape/Train", design.cape_or_train, EXACT),
        _optional("Cutouts", design.cutouts, EXACT),
        f"- Waistline: {text_or(design.waistline, 'natural waist')}",
    ])


def _assemble(sections: list[Optional[str]]) -> str:
    return "\n\n".join(section for section in sections if section)


def build_rotation_prompt(metadata: DesignMetadata, notes: Optional[str] = None) -> str:
    """Prompt for the invisible-mannequin 360° product shot."""
    sil = metadata.silhouette
    fabric = metadata.fabric_and_texture
    color = metadata.pattern_and_color
    emb = metadata.embellishments
    dim = metadata.dimensional_cues

    embellishments = None
    if not is_absent(emb.details):
        embellishments = _block("EXACT EMBELLISHMENTS:", [
            f"- Details: {emb.details}",
            f"- Placement: {text_or(emb.placement, 'as shown in design')}",
            f"- Density: {text_or(emb.density, 'as shown in design')}",
        ])

    return _assemble([
        ROTATION_INTRO,
        CRITICAL,
        _block("EXACT SILHOUETTE & STRUCTURE:", [
            f"- Type: {text_or(sil.type, 'elegant dress')}",
            f"- Overall Shape: {text_or(sil.overall_shape, 'sophisticated silhouette')}",
            f"- Length: {text_or(sil.length, 'full length')}",
            f"- Construction: {text_or(sil.garment_separation, 'seamless construction')}",
            f"- Proportions: {text_or(sil.proportions, 'balanced proportions')}",
        ]),
        _block("EXACT FABRIC & MATERIAL:", [
            f"- Primary Material: {text_or(fabric.primary_material, 'quality fabric')}{MANDATORY}",
            f"- Texture: {text_or(fabric.texture_type, 'smooth')}",
            f"- Sheen: {text_or(fabric.sheen_level, 'subtle sheen')}",
            f"- Layering: {text_or(fabric.layering, 'single layer')}",
            f"- Draping: {text_or(fabric.drape_behavior, 'elegant drape')}",
        ]),
        _design_features(metadata),
        _block("EXACT COLORS (MANDATORY - DO NOT SUBSTITUTE):", [
            f"- Primary Colors: {_colors(metadata)}",
            f"- Color Placement: {text_or(color.color_zones, 'throughout design')}",
            _optional("Contrast Areas", color.contrast_areas),
        ]),
        _block("EXACT PATTERNS & DETAILS:", [
            f"- Pattern Type: {text_or(color.patterns, 'solid')}",
            _optional("Pattern Layout", color.pattern_layout),
        ]),
        embellishments,
        _block("DIMENSIONAL CHARACTERISTICS:", [
            f"- Volume Areas: {text_or(dim.volume_areas, 'fitted through body')}",
            f"- Fabric Folds: {text_or(dim.fold_patterns, 'natural drape')}",
        ]),
        _notes_block(notes),
        ROTATION_STAGING,
    ])


def build_runway_prompt(metadata: DesignMetadata, notes: Optional[str] = None) -> str:
    """Prompt for the human model walking toward camera on a runway."""
    sil = metadata.silhouette
    fabric = metadata.fabric_and_texture
    color = metadata.pattern_and_color
    emb = metadata.embellishments

    embellishment_line = None
    if not is_absent(emb.details):
        placement = "" if is_absent(emb.placement) else f" {emb.placement}"
        embellishment_line = f"- Embellishments: {emb.details}{placement}"

    return _assemble([
        RUNWAY_INTRO,
        CRITICAL,
        _block("EXACT SILHOUETTE & STRUCTURE:", [
            f"- Type: {text_or(sil.type, 'elegant dress')}",
            f"- Overall Shape: {text_or(sil.overall_shape, 'sophisticated silhouette')}",
            f"- Length: {text_or(sil.length, 'full length')}",
            f"- Construction: {text_or(sil.garment_separation, 'seamless construction')}",
        ]),
        _block("EXACT FABRIC & MATERIAL:", [
            f"- Primary Material: {text_or(fabric.primary_material, 'quality fabric')}{MANDATORY}",
            f"- Texture: {text_or(fabric.texture_type, 'smooth')}",
            f"- Sheen: {text_or(fabric.sheen_level, 'subtle sheen')}",
            f"- Movement Behavior: {text_or(fabric.drape_behavior, 'elegant movement')}",
        ]),
        _design_features(metadata),
        _block("EXACT COLORS (MANDATORY - DO NOT SUBSTITUTE):", [
            f"- Primary Colors: {_colors(metadata)}",
            f"- Color Placement: {text_or(color.color_zones, 'throughout design')}",
        ]),
        _block("EXACT PATTERNS & EMBELLISHMENTS:", [
            f"- Pattern: {text_or(color.patterns, 'solid')}",
            embellishment_line,
        ]),
        _notes_block(notes),
        RUNWAY_STAGING,
    ])


def build_video_prompts(metadata: DesignMetadata, notes: Optional[str] = None) -> VideoPrompts:
    return VideoPrompts(
        rotation=build_rotation_prompt(metadata, notes),
        runway=build_runway_prompt(metadata, notes),
    )


def build_preview_prompt(description: str, comments: Optional[str] = None) -> str:
    """
    Short rotation prompt built from the natural description.

    Shown to the designer while they write comments, before any video job
    is submitted.
    """
    base = (
        "Create a professional 360-degree rotating showcase video of this fashion dress design:"
        f"\n\n{description.strip()}\n\n{PREVIEW_STAGING}"
    )
    if comments and comments.strip():
        return (
            f"{base}\n\nDESIGNER'S ADDITIONAL SPECIFICATIONS:\n{comments}\n\n"
            f"Focus on showing every detail mentioned above as the dress rotates. {PREVIEW_CLOSING}"
        )
    return f"{base}\n\nFocus on showing every detail as the dress rotates. {PREVIEW_CLOSING}"
