"""
Pydantic models and enums for the showcase pipeline.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

NONE = "none"


def is_absent(value: Any) -> bool:
    """True for the sentinel, null, blank strings and empty lists."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip() or value.strip().lower() == NONE
    if isinstance(value, (list, tuple)):
        return not any(not is_absent(v) for v in value)
    return False


def _coerce_text(value: Any) -> str:
    if value is None:
        return NONE
    if isinstance(value, str):
        return value if value.strip() else NONE
    if isinstance(value, (list, tuple)):
        items = [_coerce_text(v) for v in value]
        items = [v for v in items if v != NONE]
        return ", ".join(items) if items else NONE
    if isinstance(value, bool):
        return "yes" if value else NONE
    if isinstance(value, dict):
        items = [f"{k}: {_coerce_text(v)}" for k, v in value.items() if not is_absent(v)]
        return "; ".join(items) if items else NONE
    return str(value)


def _coerce_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [] if is_absent(value) else [value]
    if isinstance(value, (list, tuple)):
        return [_coerce_text(v) for v in value if not is_absent(v)]
    return [_coerce_text(value)]


# ── Design metadata sections ─────────────────────────────────────────────────

class MetadataSection(BaseModel):
    """
    One open section of the design record.

    Declared fields always hold a string (``"none"`` when undetermined);
    unknown keys returned by the model are kept as-is.
    """

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    @field_validator("*", mode="before")
    @classmethod
    def _sentinel_value(cls, value: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields.get(info.field_name)
        if field is not None and field.annotation == list[str]:
            return _coerce_list(value)
        return _coerce_text(value)

    def populated(self) -> bool:
        """Whether any declared field carries real information."""
        return any(not is_absent(getattr(self, name)) for name in type(self).model_fields)


class Silhouette(MetadataSection):
    type: str = NONE
    overall_shape: str = NONE
    garment_separation: str = NONE
    proportions: str = NONE
    length: str = NONE


class FabricAndTexture(MetadataSection):
    primary_material: str = NONE
    texture_type: str = NONE
    sheen_level: str = NONE
    layering: str = NONE
    drape_behavior: str = NONE


class DesignFeatures(MetadataSection):
    neckline: str = NONE
    sleeves: str = NONE
    cape_or_train: str = NONE
    cutouts: str = NONE
    waistline: str = NONE
    closures: str = NONE


class PatternAndColor(MetadataSection):
    primary_colors: list[str] = Field(default_factory=list)
    color_zones: str = NONE
    patterns: str = NONE
    pattern_layout: str = NONE
    contrast_areas: str = NONE


class DimensionalCues(MetadataSection):
    volume_areas: str = NONE
    shading_analysis: str = NONE
    fold_patterns: str = NONE
    depth_elements: str = NONE


class PoseAndDynamics(MetadataSection):
    dress_fall_direction: str = NONE
    fabric_flow: str = NONE
    rotation_anchor: str = NONE
    movement_potential: str = NONE


class Embellishments(MetadataSection):
    details: str = NONE
    placement: str = NONE
    density: str = NONE
    special_features: str = NONE


class DesignMetadata(BaseModel):
    """Structured description of a garment across seven fixed sections."""

    model_config = ConfigDict(extra="allow")

    silhouette: Silhouette = Field(default_factory=Silhouette)
    fabric_and_texture: FabricAndTexture = Field(default_factory=FabricAndTexture)
    design_features: DesignFeatures = Field(default_factory=DesignFeatures)
    pattern_and_color: PatternAndColor = Field(default_factory=PatternAndColor)
    dimensional_cues: DimensionalCues = Field(default_factory=DimensionalCues)
    pose_and_dynamics: PoseAndDynamics = Field(default_factory=PoseAndDynamics)
    embellishments: Embellishments = Field(default_factory=Embellishments)

    @field_validator(
        "silhouette",
        "fabric_and_texture",
        "design_features",
        "pattern_and_color",
        "dimensional_cues",
        "pose_and_dynamics",
        "embellishments",
        mode="before",
    )
    @classmethod
    def _section_or_empty(cls, value: Any) -> Any:
        if value is None or isinstance(value, (str, list)):
            return {}
        return value


FALLBACK_METADATA = {
    "silhouette": {"type": "elegant dress", "overall_shape": "fashion design"},
    "fabric_and_texture": {"primary_material": "quality fabric"},
}


def fallback_metadata() -> DesignMetadata:
    """The minimal record used when the analysis reply cannot be parsed."""
    return DesignMetadata.model_validate(FALLBACK_METADATA)


# ── Assets ───────────────────────────────────────────────────────────────────

class DesignAsset(BaseModel):
    """An immutable generated image."""

    model_config = ConfigDict(frozen=True)

    mime_type: str = "image/png"
    data: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def inline_part(self) -> dict:
        return {"inlineData": {"mimeType": self.mime_type, "data": self.data}}


class DesignAssets(BaseModel):
    model_config = ConfigDict(frozen=True)

    technical_sketch: DesignAsset
    render_3d: DesignAsset


class TransformKind(str, Enum):
    TECHNICAL = "technical"
    RENDER_3D = "3d"


class DesignPreferences(BaseModel):
    """Optional designer choices collected next to the upload."""

    fabric_type: str = ""
    color: str = ""
    neckline: str = ""
    length: str = ""
    sleeve_style: str = ""
    silhouette: str = ""

    def to_text(self) -> str:
        """Render as ``"fabric type: silk, color: red"`` (populated fields only)."""
        parts = []
        for name in type(self).model_fields:
            value = getattr(self, name).strip()
            if value:
                parts.append(f"{name.replace('_', ' ')}: {value}")
        return ", ".join(parts)


class DesignAnalysis(BaseModel):
    metadata: DesignMetadata
    description: str


# ── Video jobs ───────────────────────────────────────────────────────────────

class Lane(str, Enum):
    ROTATION = "rotation"
    RUNWAY = "runway"


class VideoJob(BaseModel):
    """One submitted long-running video operation."""

    lane: Lane
    name: str
    done: bool = False
    video_uris: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    polls: int = 0

    @property
    def video_uri(self) -> Optional[str]:
        return self.video_uris[0] if self.video_uris else None


class VideoPrompts(BaseModel):
    rotation: str
    runway: str


class ShowcaseVideos(BaseModel):
    video_360_url: str
    video_runway_url: str
    video_360_filename: str
    video_runway_filename: str
    prompt_360: str
    prompt_runway: str


# ── API request / response models ────────────────────────────────────────────

class GenerateImageRequest(BaseModel):
    image: Optional[str] = None
    image_type: str = TransformKind.TECHNICAL.value
    preferences: Optional[str] = None
    design_preferences: Optional[DesignPreferences] = None


class GenerateImagesRequest(BaseModel):
    image: Optional[str] = None
    preferences: Optional[str] = None
    design_preferences: Optional[DesignPreferences] = None


class AnalyzeDesignRequest(BaseModel):
    technical_sketch: Optional[str] = None
    render_3d: Optional[str] = None


class RefineDesignRequest(BaseModel):
    metadata: DesignMetadata
    comments: str = ""


class PreviewPromptRequest(BaseModel):
    description: str = ""
    comments: str = ""


class GenerateVideoRequest(BaseModel):
    technical_sketch: Optional[str] = None
    render_3d: Optional[str] = None
    comments: str = ""


class DesignAnalysisResponse(BaseModel):
    success: bool = True
    metadata: DesignMetadata
    description: str


class ShowcaseVideosResponse(ShowcaseVideos):
    success: bool = True
