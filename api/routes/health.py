"""Health check routes."""

from fastapi import APIRouter

from text2mesh.model_gen import ShapeLibrary
from text2mesh.services import GeneratorSettings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/pipeline")
async def pipeline_status():
    """Report which generation tiers can run."""
    settings = GeneratorSettings.from_env()
    remote = settings.is_remote_configured()

    return {
        "remote_tiers": {
            "primary_image": remote and bool(settings.primary_image_endpoint),
            "secondary_image": remote and bool(settings.secondary_image_endpoint),
            "primary_mesh": remote and bool(settings.mesh_endpoint),
            "alt_mesh": remote and bool(settings.alt_mesh_endpoint),
            "description": remote and bool(settings.description_endpoint),
        },
        "shape_categories": ShapeLibrary().list_categories(),
    }
