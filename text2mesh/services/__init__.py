"""Remote inference services for text2mesh."""

from .config import GeneratorSettings
from .errors import (
    GenerationServiceError,
    InvalidPromptError,
    MalformedResponse,
    RemoteServiceRejected,
    RemoteServiceTimeout,
    RemoteServiceUnavailable,
)
from .huggingface import (
    HuggingFaceClient,
    HuggingFaceImageDescriber,
    HuggingFaceImageTo3D,
    HuggingFaceTextToImage,
)

__all__ = [
    "GeneratorSettings",
    "HuggingFaceClient",
    "HuggingFaceTextToImage",
    "HuggingFaceImageTo3D",
    "HuggingFaceImageDescriber",
    # Exceptions
    "GenerationServiceError",
    "RemoteServiceUnavailable",
    "RemoteServiceRejected",
    "RemoteServiceTimeout",
    "MalformedResponse",
    "InvalidPromptError",
]
