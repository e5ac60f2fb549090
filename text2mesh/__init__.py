"""text2mesh: text prompt to downloadable 3D mesh and preview image."""

from .model_gen import Category, Mesh3D, ShapeLibrary, classify, serialize_obj
from .pipeline import GenerationOrchestrator, GenerationResult
from .services import GeneratorSettings, InvalidPromptError

__version__ = "0.1.0"

__all__ = [
    "GenerationOrchestrator",
    "GenerationResult",
    "GeneratorSettings",
    "InvalidPromptError",
    "ShapeLibrary",
    "Category",
    "Mesh3D",
    "classify",
    "serialize_obj",
]
