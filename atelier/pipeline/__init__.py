"""
Sketch-to-showcase pipeline

  Transform — technical sketch and 3D render from one upload
  Analyze   — structured DesignMetadata + natural description
  Refine    — designer comments folded into the metadata
  Prompts   — rotation and runway video prompts
  Animate   — two Veo jobs polled under one deadline
"""

from .orchestrator import ShowcaseService
from .routes import pipeline_router
from .models import DesignMetadata, Lane

__all__ = [
    "ShowcaseService",
    "pipeline_router",
    "DesignMetadata",
    "Lane",
]
