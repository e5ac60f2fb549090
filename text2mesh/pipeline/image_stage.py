"""Preview image generation with remote tiers and an SVG fallback."""

import io
import logging
import random
from typing import Optional

from PIL import Image

from text2mesh.services.config import DEFAULT_TIMEOUT_SECONDS
from text2mesh.services.errors import MalformedResponse

from .chain import FallbackChain, Stage, StageOutcome
from .placeholder import placeholder_image
from .types import GeneratedImage, ImageTier

logger = logging.getLogger(__name__)


IMAGE_PROMPT = (
    "professional 3D concept art of {prompt}, highly detailed, studio lighting, "
    "clean white background, photorealistic, 8k quality, perfect for 3D modeling, "
    "technical illustration style, precise geometry, sharp focus, "
    "professional product photography"
)

NEGATIVE_PROMPT = (
    "blurry, low quality, distorted, ugly, deformed, bad anatomy, low resolution, "
    "pixelated, dark, shadow, noise, artifact, watermark, text, logo, signature"
)

PRIMARY_IMAGE_PARAMS = {
    "negative_prompt": NEGATIVE_PROMPT,
    "num_inference_steps": 50,
    "guidance_scale": 12.0,
    "width": 1024,
    "height": 1024,
}

SECONDARY_IMAGE_PARAMS = {
    "num_inference_steps": 30,
    "guidance_scale": 9.0,
    "width": 512,
    "height": 512,
}

QUALITY_ENHANCEMENTS = [
    "highly detailed 3D model",
    "professional quality geometry",
    "clean topology and smooth surfaces",
    "realistic proportions and scale",
    "optimized for 3D rendering",
    "production-ready mesh",
]

STYLE_ENHANCEMENTS = [
    "modern design aesthetics",
    "precise craftsmanship",
    "architectural precision",
]


def enhance_image_prompt(prompt: str) -> str:
    """Decorate a prompt for text-to-image models."""
    return IMAGE_PROMPT.format(prompt=prompt)


def enhance_prompt(prompt: str) -> str:
    """Decorate a prompt with 3D-model quality and style hints."""
    return f"{prompt}, {', '.join(QUALITY_ENHANCEMENTS)}, {', '.join(STYLE_ENHANCEMENTS)}"


def decode_raster(data: bytes, tier: ImageTier) -> GeneratedImage:
    """Check that bytes are a readable raster image and tag its MIME type.

    Raises:
        MalformedResponse: If Pillow cannot identify the image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
            img.verify()
    except Exception as e:
        raise MalformedResponse(f"Image payload is not a readable raster: {e}") from e

    content_type = Image.MIME.get(image_format, "application/octet-stream")
    return GeneratedImage(data=data, content_type=content_type, tier=tier)


class RemoteImageTier(Stage):
    """Text-to-image call through a remote service."""

    def __init__(self, name: str, service, params: dict, tier: ImageTier, random_seed: bool = False):
        """
        Args:
            name: Tier name used in logs
            service: Object with ``async generate(prompt, params) -> bytes``
            params: Model parameters sent with every call
            tier: Quality tier reported for images from this service
            random_seed: Add a fresh seed to each request
        """
        self.name = name
        self.service = service
        self.params = params
        self.tier = tier
        self.random_seed = random_seed

    async def attempt(self, prompt: str) -> GeneratedImage:
        params = dict(self.params)
        if self.random_seed:
            params["seed"] = random.randint(0, 999999)
        data = await self.service.generate(enhance_image_prompt(prompt), params)
        image = decode_raster(data, self.tier)
        logger.info(f"Image generated by '{self.name}' tier ({image.content_type})")
        return image


class PlaceholderImageTier(Stage):
    """Terminal tier: SVG card with a prompt excerpt."""

    name = "placeholder"

    async def attempt(self, prompt: str) -> GeneratedImage:
        return placeholder_image(prompt)


class ImageStage:
    """Generates the preview image for a prompt.

    Tiers: primary service (1024px), secondary service (512px), SVG
    placeholder. Never raises for tier failures. Each remote tier runs under
    ``timeout`` seconds (60 by default); pass ``timeout=None`` to disable
    the ceiling.
    """

    def __init__(
        self,
        primary_service=None,
        secondary_service=None,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.primary_service = primary_service
        self.secondary_service = secondary_service
        self.timeout = timeout

    def _chain(self) -> FallbackChain:
        stages = []
        if self.primary_service is not None:
            stages.append(
                RemoteImageTier(
                    ImageTier.PRIMARY.value,
                    self.primary_service,
                    PRIMARY_IMAGE_PARAMS,
                    ImageTier.PRIMARY,
                    random_seed=True,
                )
            )
        if self.secondary_service is not None:
            stages.append(
                RemoteImageTier(
                    ImageTier.SECONDARY.value,
                    self.secondary_service,
                    SECONDARY_IMAGE_PARAMS,
                    ImageTier.SECONDARY,
                )
            )
        return FallbackChain(stages, PlaceholderImageTier(), timeout=self.timeout, label="image")

    async def run(self, prompt: str) -> StageOutcome:
        return await self._chain().run(prompt)

    async def generate_image(self, prompt: str) -> GeneratedImage:
        outcome = await self.run(prompt)
        return outcome.value
