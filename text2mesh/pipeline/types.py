"""Data types for the generation pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from text2mesh.model_gen.obj_format import serialize_obj
from text2mesh.model_gen.types import Mesh3D

SVG_CONTENT_TYPE = "image/svg+xml"

EXTENSIONS = {
    "image/svg+xml": "svg",
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


class ImageTier(str, Enum):
    """Which tier produced the preview image."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    PLACEHOLDER = "placeholder"


class MeshTier(str, Enum):
    """Which tier produced the mesh."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    PROMPT = "prompt"  # classifier + shape library on the original prompt
    DESCRIPTION = "description"  # classifier + shape library on an image caption
    DEFAULT = "default"  # default category, nothing else to go on
    EMERGENCY = "emergency"


class PipelineState(str, Enum):
    """Request lifecycle. There is no failed state."""

    IDLE = "idle"
    IMAGE_REQUESTED = "image_requested"
    MESH_REQUESTED = "mesh_requested"
    DONE = "done"


@dataclass(frozen=True)
class GeneratedImage:
    """Preview image payload and the tier that produced it."""

    data: bytes
    content_type: str
    tier: ImageTier = ImageTier.PRIMARY

    @property
    def is_placeholder(self) -> bool:
        return self.tier == ImageTier.PLACEHOLDER

    @property
    def extension(self) -> str:
        return EXTENSIONS.get(self.content_type, "bin")


@dataclass(frozen=True)
class MeshRequest:
    """Input to the mesh stage: the intermediate image plus the original prompt."""

    image: GeneratedImage
    prompt: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """Mesh and preview image for one prompt. Always present, possibly degraded."""

    mesh: Mesh3D
    image: GeneratedImage
    mesh_tier: MeshTier
    category: Optional[str] = None  # set when the mesh came from the shape library
    states: Tuple[PipelineState, ...] = ()
    failures: Tuple[Tuple[str, str], ...] = field(default=())

    @property
    def degraded(self) -> bool:
        """True when any stage fell back below its primary tier."""
        return self.image.tier != ImageTier.PRIMARY or self.mesh_tier != MeshTier.PRIMARY

    def mesh_bytes(self) -> bytes:
        return serialize_obj(self.mesh).encode("utf-8")

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (without payloads)."""
        return {
            "category": self.category,
            "mesh_tier": self.mesh_tier.value,
            "image_tier": self.image.tier.value,
            "image_content_type": self.image.content_type,
            "degraded": self.degraded,
            "vertex_count": self.mesh.vertex_count,
            "face_count": self.mesh.face_count,
            "states": [s.value for s in self.states],
            "failures": [{"stage": stage, "error_type": kind} for stage, kind in self.failures],
        }
