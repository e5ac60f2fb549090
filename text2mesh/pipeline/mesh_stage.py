"""Mesh generation from the preview image, falling back to the shape library."""

import logging
from typing import Optional

from text2mesh.model_gen.classifier import Category, classify
from text2mesh.model_gen.obj_format import MeshFormatError, mesh_from_payload
from text2mesh.model_gen.shape_library import ShapeLibrary
from text2mesh.model_gen.types import Mesh3D
from text2mesh.services.config import DEFAULT_TIMEOUT_SECONDS
from text2mesh.services.errors import MalformedResponse

from .chain import FallbackChain, Stage, StageOutcome
from .image_stage import enhance_prompt
from .types import GeneratedImage, MeshRequest, MeshTier

logger = logging.getLogger(__name__)

PRIMARY_MESH_PARAMS = {"format": "obj", "quality": "high", "resolution": 512}
ALT_MESH_PARAMS = {"output_format": "obj"}

# Tiers whose mesh comes from the shape library
SYNTHESIZED_TIERS = frozenset([MeshTier.PROMPT, MeshTier.DESCRIPTION, MeshTier.DEFAULT])


class RemoteMeshTier(Stage):
    """Image-to-3D call through a remote service."""

    def __init__(self, name: str, service, params: dict):
        self.name = name
        self.service = service
        self.params = params

    async def attempt(self, request: MeshRequest) -> Mesh3D:
        params = dict(self.params)
        if request.prompt and request.prompt.strip():
            params["prompt"] = enhance_prompt(request.prompt)
        data = await self.service.generate(request.image.data, params)
        try:
            mesh = mesh_from_payload(data, name=f"{self.name}_remote")
        except MeshFormatError as e:
            raise MalformedResponse(f"Tier '{self.name}' returned an unusable mesh: {e}") from e

        problems = mesh.validate()
        if problems:
            raise MalformedResponse(
                f"Tier '{self.name}' returned an invalid mesh: {'; '.join(problems[:3])}"
            )
        logger.info(
            f"Mesh generated by '{self.name}' tier: "
            f"{mesh.vertex_count} vertices, {mesh.face_count} faces"
        )
        return mesh


class DescriptionSynthesisTier(Stage):
    """Caption the image, then synthesize from the caption."""

    name = MeshTier.DESCRIPTION.value

    def __init__(self, describer, library: ShapeLibrary):
        self.describer = describer
        self.library = library

    async def attempt(self, request: MeshRequest) -> Mesh3D:
        description = await self.describer.describe(request.image.data)
        logger.info(f"Image described as: {description[:100]}")
        return self.library.build(classify(description), description)


class PromptSynthesisTier(Stage):
    """Terminal tier: classify the original prompt and build from the library."""

    name = MeshTier.PROMPT.value

    def __init__(self, library: ShapeLibrary):
        self.library = library

    async def attempt(self, request: MeshRequest) -> Mesh3D:
        return self.library.build_for_prompt(request.prompt)


class DefaultSynthesisTier(Stage):
    """Terminal tier when there is no prompt: default category."""

    name = MeshTier.DEFAULT.value

    def __init__(self, library: ShapeLibrary):
        self.library = library

    async def attempt(self, request: MeshRequest) -> Mesh3D:
        return self.library.build(Category.DEFAULT, "")


class MeshStage:
    """Generates the mesh for an image and its originating prompt.

    Tiers: primary image-to-3D service, alternative service, then the shape
    library. The library always works from the original prompt and ignores
    the image. Only when no prompt is available is the image captioned (if
    a describer is configured) before settling on the default category.

    Each remote tier runs under ``timeout`` seconds (60 by default); pass
    ``timeout=None`` to disable the ceiling.
    """

    def __init__(
        self,
        primary_service=None,
        alt_service=None,
        describer=None,
        library: Optional[ShapeLibrary] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.primary_service = primary_service
        self.alt_service = alt_service
        self.describer = describer
        self.library = library or ShapeLibrary()
        self.timeout = timeout

    def _chain(self, has_prompt: bool) -> FallbackChain:
        stages = []
        if self.primary_service is not None:
            stages.append(
                RemoteMeshTier(MeshTier.PRIMARY.value, self.primary_service, PRIMARY_MESH_PARAMS)
            )
        if self.alt_service is not None:
            stages.append(
                RemoteMeshTier(MeshTier.SECONDARY.value, self.alt_service, ALT_MESH_PARAMS)
            )

        if has_prompt:
            terminal = PromptSynthesisTier(self.library)
        else:
            if self.describer is not None:
                stages.append(DescriptionSynthesisTier(self.describer, self.library))
            terminal = DefaultSynthesisTier(self.library)
        return FallbackChain(stages, terminal, timeout=self.timeout, label="mesh")

    async def run(self, image: GeneratedImage, prompt: Optional[str] = None) -> StageOutcome:
        has_prompt = bool(prompt and prompt.strip())
        return await self._chain(has_prompt).run(MeshRequest(image=image, prompt=prompt))

    async def generate_mesh(self, image: GeneratedImage, prompt: Optional[str] = None) -> Mesh3D:
        outcome = await self.run(image, prompt)
        return outcome.value
