"""
Description Synthesizer — DesignMetadata rendered as one readable paragraph.

Pure and deterministic; used as the human-facing summary and as material
for the preview prompt.
"""

from typing import Sequence

from .models import DesignMetadata, is_absent


def text_or(value: str, fallback: str) -> str:
    """The field value, or ``fallback`` when it carries the sentinel."""
    return fallback if is_absent(value) else value


def join_and(items: Sequence[str]) -> str:
    """``["red", "gold"]`` -> ``"red and gold"``."""
    return " and ".join(item for item in items if not is_absent(item))


def describe_design(metadata: DesignMetadata) -> str:
    parts: list[str] = []

    sil = metadata.silhouette
    if sil.populated():
        parts.append(
            f"This is a {text_or(sil.type, 'elegant')} {text_or(sil.length, 'full-length')} dress "
            f"with {text_or(sil.overall_shape, 'a sophisticated silhouette')}."
        )
        if not is_absent(sil.garment_separation):
            parts.append(f"The design features {sil.garment_separation}.")

    fabric = metadata.fabric_and_texture
    if fabric.populated():
        parts.append(
            f"The dress is crafted from {text_or(fabric.primary_material, 'luxurious fabric')} "
            f"with a {text_or(fabric.sheen_level, 'subtle')} finish "
            f"and {text_or(fabric.texture_type, 'smooth')} texture."
        )
        if not is_absent(fabric.layering):
            parts.append(f"It incorporates {fabric.layering}.")
        if not is_absent(fabric.drape_behavior):
            parts.append(f"The fabric {fabric.drape_behavior}.")

    design = metadata.design_features
    if not is_absent(design.neckline):
        parts.append(f"The neckline is {design.neckline}.")
    if not is_absent(design.sleeves):
        parts.append(f"It has {design.sleeves} sleeves.")
    if not is_absent(design.cape_or_train):
        parts.append(f"The design includes {design.cape_or_train}.")
    if not is_absent(design.cutouts):
        parts.append(f"Notable features include {design.cutouts}.")
    if not is_absent(design.waistline):
        parts.append(f"The waistline is {design.waistline}.")

    color = metadata.pattern_and_color
    if not is_absent(color.primary_colors):
        parts.append(f"The color palette features {join_and(color.primary_colors)}.")
    if not is_absent(color.patterns) and color.patterns.strip().lower() != "solid":
        layout = "" if is_absent(color.pattern_layout) else f" with {color.pattern_layout}"
        parts.append(f"The dress showcases {color.patterns} patterns{layout}.")
    if not is_absent(color.contrast_areas):
        parts.append(f"Contrast details include {color.contrast_areas}.")

    emb = metadata.embellishments
    if not is_absent(emb.details):
        placement = "" if is_absent(emb.placement) else f" {emb.placement}"
        density = "" if is_absent(emb.density) else f", creating a {emb.density} embellished effect"
        parts.append(f"The dress is adorned with {emb.details}{placement}{density}.")

    dim = metadata.dimensional_cues
    if not is_absent(dim.volume_areas):
        parts.append(f"Volume and dimension are emphasized in {dim.volume_areas}.")
    if not is_absent(dim.fold_patterns):
        parts.append(f"The fabric creates {dim.fold_patterns}.")

    # Movement cue for the rotation video
    if not is_absent(metadata.pose_and_dynamics.fabric_flow):
        parts.append(f"As the dress rotates, expect {metadata.pose_and_dynamics.fabric_flow}.")

    return " ".join(parts).strip()
