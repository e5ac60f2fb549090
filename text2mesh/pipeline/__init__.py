"""Generation pipeline: prompt to preview image to mesh.

This module provides:
- GenerationOrchestrator: sequences the image and mesh stages, never fails
- ImageStage: remote text-to-image tiers with an SVG placeholder fallback
- MeshStage: remote image-to-3D tiers with a shape-library fallback
- FallbackChain: ordered tier evaluation with a per-call time ceiling

Example usage:
    from text2mesh.pipeline import GenerationOrchestrator

    orchestrator = GenerationOrchestrator.from_settings()
    result = await orchestrator.generate("a wooden chair")
    print(result.mesh_tier, result.image.tier, result.degraded)
"""

from .chain import FallbackChain, Stage, StageOutcome
from .image_stage import ImageStage, decode_raster, enhance_image_prompt, enhance_prompt
from .mesh_stage import MeshStage
from .orchestrator import GenerationOrchestrator, validate_prompt
from .placeholder import placeholder_image, render_placeholder_svg
from .types import (
    GeneratedImage,
    GenerationResult,
    ImageTier,
    MeshRequest,
    MeshTier,
    PipelineState,
)

__all__ = [
    # Types
    "GeneratedImage",
    "GenerationResult",
    "MeshRequest",
    "ImageTier",
    "MeshTier",
    "PipelineState",
    # Stages
    "GenerationOrchestrator",
    "ImageStage",
    "MeshStage",
    "FallbackChain",
    "Stage",
    "StageOutcome",
    # Helpers
    "validate_prompt",
    "placeholder_image",
    "render_placeholder_svg",
    "decode_raster",
    "enhance_image_prompt",
    "enhance_prompt",
]
