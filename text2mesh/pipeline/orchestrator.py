"""Text-to-3D orchestration: preview image, then mesh, never failing."""

import logging
from typing import Any, Optional

from text2mesh.model_gen.shape_library import ShapeLibrary
from text2mesh.services.config import GeneratorSettings
from text2mesh.services.errors import InvalidPromptError
from text2mesh.services.huggingface import (
    HuggingFaceImageDescriber,
    HuggingFaceImageTo3D,
    HuggingFaceTextToImage,
)

from .image_stage import ImageStage
from .mesh_stage import SYNTHESIZED_TIERS, MeshStage
from .placeholder import placeholder_image
from .types import GenerationResult, MeshTier, PipelineState

logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 2000


def validate_prompt(prompt: Any) -> str:
    """Reject prompts that cannot drive generation.

    The prompt is returned unchanged; stripping is only used for the check.

    Raises:
        InvalidPromptError: If the prompt is not text, is blank, or is too long.
    """
    if not isinstance(prompt, str):
        raise InvalidPromptError(f"Prompt must be text, got {type(prompt).__name__}")
    if not prompt.strip():
        raise InvalidPromptError("Prompt cannot be empty or whitespace-only")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise InvalidPromptError(f"Prompt cannot exceed {MAX_PROMPT_LENGTH} characters")
    return prompt


class GenerationOrchestrator:
    """
    Turns a prompt into a (mesh, preview image) pair.

    Pipeline:
    1. Image stage: primary text-to-image, secondary text-to-image, SVG placeholder
    2. Mesh stage: primary image-to-3D, alternative image-to-3D, shape library
       driven by the original prompt
    3. Emergency fallback if anything unexpected escapes the stages

    The orchestrator holds no per-request state, so one instance can serve
    concurrent requests.

    Usage:
        orchestrator = GenerationOrchestrator.from_settings(GeneratorSettings.from_env())
        result = await orchestrator.generate("a red sports car")
        obj_bytes = result.mesh_bytes()
    """

    def __init__(
        self,
        image_stage: Optional[ImageStage] = None,
        mesh_stage: Optional[MeshStage] = None,
        library: Optional[ShapeLibrary] = None,
    ):
        self.library = library or ShapeLibrary()
        self.image_stage = image_stage or ImageStage()
        self.mesh_stage = mesh_stage or MeshStage(library=self.library)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[GeneratorSettings] = None,
        **client_kwargs: Any,
    ) -> "GenerationOrchestrator":
        """Build an orchestrator with hosted inference clients.

        Remote tiers are wired only when credentials are present and the
        endpoint is set; otherwise the pipeline runs its deterministic tiers.

        Args:
            settings: Pipeline configuration; defaults to the environment
            **client_kwargs: Passed to every client (e.g. ``transport``)
        """
        settings = settings or GeneratorSettings.from_env()
        library = ShapeLibrary()

        if not settings.is_remote_configured():
            logger.warning("No inference token configured; remote tiers disabled")
            return cls(
                image_stage=ImageStage(timeout=settings.timeout_seconds),
                mesh_stage=MeshStage(library=library, timeout=settings.timeout_seconds),
                library=library,
            )

        def client(client_cls, endpoint):
            if not endpoint:
                return None
            return client_cls.from_settings(endpoint, settings, **client_kwargs)

        image_stage = ImageStage(
            primary_service=client(HuggingFaceTextToImage, settings.primary_image_endpoint),
            secondary_service=client(HuggingFaceTextToImage, settings.secondary_image_endpoint),
            timeout=settings.timeout_seconds,
        )
        mesh_stage = MeshStage(
            primary_service=client(HuggingFaceImageTo3D, settings.mesh_endpoint),
            alt_service=client(HuggingFaceImageTo3D, settings.alt_mesh_endpoint),
            describer=client(HuggingFaceImageDescriber, settings.description_endpoint),
            library=library,
            timeout=settings.timeout_seconds,
        )
        return cls(image_stage=image_stage, mesh_stage=mesh_stage, library=library)

    async def generate(self, prompt: str) -> GenerationResult:
        """
        Generate a mesh and preview image for a prompt.

        Args:
            prompt: Non-empty description of the object

        Returns:
            GenerationResult; degraded tiers are reported on the result

        Raises:
            InvalidPromptError: If the prompt fails validation
        """
        validate_prompt(prompt)
        states = [PipelineState.IDLE]

        try:
            states.append(PipelineState.IMAGE_REQUESTED)
            image_outcome = await self.image_stage.run(prompt)

            states.append(PipelineState.MESH_REQUESTED)
            mesh_outcome = await self.mesh_stage.run(image_outcome.value, prompt)
        except Exception:
            logger.exception(f"Generation pipeline faulted for {prompt[:60]!r}; emergency fallback")
            return self._emergency(prompt, states)

        states.append(PipelineState.DONE)
        mesh_tier = MeshTier(mesh_outcome.stage)
        failures = tuple(
            [(f"image:{name}", kind) for name, kind in image_outcome.failures]
            + [(f"mesh:{name}", kind) for name, kind in mesh_outcome.failures]
        )

        result = GenerationResult(
            mesh=mesh_outcome.value,
            image=image_outcome.value,
            mesh_tier=mesh_tier,
            category=mesh_outcome.value.category if mesh_tier in SYNTHESIZED_TIERS else None,
            states=tuple(states),
            failures=failures,
        )
        if result.degraded:
            logger.info(
                f"Degraded generation for {prompt[:60]!r}: image={result.image.tier.value}, "
                f"mesh={mesh_tier.value}, failures={len(failures)}"
            )
        return result

    def _emergency(self, prompt: str, states: list) -> GenerationResult:
        """Placeholder image plus prompt-driven mesh, bypassing every stage."""
        mesh = self.library.build_for_prompt(prompt)
        return GenerationResult(
            mesh=mesh,
            image=placeholder_image(prompt),
            mesh_tier=MeshTier.EMERGENCY,
            category=mesh.category,
            states=tuple(states) + (PipelineState.DONE,),
        )
