"""Remote inference configuration management."""

import os
from dataclasses import dataclass

HF_INFERENCE_URL = "https://api-inference.huggingface.co/models"

# Ceiling for each remote call unless configured otherwise
DEFAULT_TIMEOUT_MS = 60000
DEFAULT_TIMEOUT_SECONDS = DEFAULT_TIMEOUT_MS / 1000.0

# Model ids used by the default endpoints
PRIMARY_IMAGE_MODEL = "stabilityai/stable-diffusion-xl-base-1.0"
SECONDARY_IMAGE_MODEL = "runwayml/stable-diffusion-v1-5"
MESH_MODEL = "tencent/Hunyuan3D-2"
ALT_MESH_MODEL = "ashawkey/shap-e-img"
DESCRIPTION_MODEL = "Salesforce/blip-image-captioning-large"


def model_endpoint(model_id: str) -> str:
    """Hosted inference URL for a model id."""
    return f"{HF_INFERENCE_URL}/{model_id}"


@dataclass
class GeneratorSettings:
    """Generation pipeline configuration."""

    # Credentials
    api_token: str = ""

    # Text-to-image tiers
    primary_image_endpoint: str = model_endpoint(PRIMARY_IMAGE_MODEL)
    secondary_image_endpoint: str = model_endpoint(SECONDARY_IMAGE_MODEL)

    # Image-to-3D tiers
    mesh_endpoint: str = model_endpoint(MESH_MODEL)
    alt_mesh_endpoint: str = model_endpoint(ALT_MESH_MODEL)

    # Optional image captioning for prompt-less mesh requests
    description_endpoint: str = model_endpoint(DESCRIPTION_MODEL)

    # Ceiling for each remote call
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    @classmethod
    def from_env(cls) -> "GeneratorSettings":
        """Load configuration from environment variables."""
        return cls(
            api_token=os.getenv("HUGGING_FACE_API_TOKEN", ""),
            primary_image_endpoint=os.getenv(
                "TEXT2MESH_PRIMARY_IMAGE_ENDPOINT", model_endpoint(PRIMARY_IMAGE_MODEL)
            ),
            secondary_image_endpoint=os.getenv(
                "TEXT2MESH_SECONDARY_IMAGE_ENDPOINT", model_endpoint(SECONDARY_IMAGE_MODEL)
            ),
            mesh_endpoint=os.getenv("TEXT2MESH_MESH_ENDPOINT", model_endpoint(MESH_MODEL)),
            alt_mesh_endpoint=os.getenv(
                "TEXT2MESH_ALT_MESH_ENDPOINT", model_endpoint(ALT_MESH_MODEL)
            ),
            description_endpoint=os.getenv(
                "TEXT2MESH_DESCRIPTION_ENDPOINT", model_endpoint(DESCRIPTION_MODEL)
            ),
            timeout_ms=int(os.getenv("TEXT2MESH_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))),
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def is_remote_configured(self) -> bool:
        """Check if hosted inference credentials are present."""
        return bool(self.api_token)
