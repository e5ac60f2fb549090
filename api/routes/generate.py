"""Generation, model metadata and download routes."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, field_validator

from text2mesh.model_gen.obj_format import export_stl
from text2mesh.pipeline import GenerationOrchestrator, GenerationResult
from text2mesh.pipeline.orchestrator import MAX_PROMPT_LENGTH
from text2mesh.services import GeneratorSettings, InvalidPromptError

logger = logging.getLogger(__name__)

router = APIRouter()

# In-memory model registry (replace with persistent storage in production)
MODELS: dict = {}

# Oldest models are evicted beyond this many entries
MAX_MODELS = 256

_orchestrator: Optional[GenerationOrchestrator] = None

DOWNLOAD_FORMATS = {
    "obj": "text/plain",
    "stl": "model/stl",
}


def get_orchestrator() -> GenerationOrchestrator:
    """Get or create the generation orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = GenerationOrchestrator.from_settings(GeneratorSettings.from_env())
    return _orchestrator


class GenerateRequest(BaseModel):
    """Generation request."""

    prompt: str
    title: Optional[str] = None

    @field_validator("prompt")
    @classmethod
    def prompt_must_not_be_empty(cls, v: str) -> str:
        """Validate that the prompt is usable text."""
        if not v or not v.strip():
            raise ValueError("Prompt cannot be empty or whitespace-only")
        if len(v) > MAX_PROMPT_LENGTH:
            raise ValueError(f"Prompt cannot exceed {MAX_PROMPT_LENGTH} characters")
        return v


def _evict_oldest() -> None:
    while len(MODELS) > MAX_MODELS:
        oldest = next(iter(MODELS))
        del MODELS[oldest]
        logger.debug(f"Evicted model {oldest} from registry")


async def _run(prompt: str) -> GenerationResult:
    try:
        return await get_orchestrator().generate(prompt)
    except InvalidPromptError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/generate/status")
async def get_generation_status():
    """Report whether remote inference tiers are configured."""
    settings = GeneratorSettings.from_env()
    return {
        "remote_available": settings.is_remote_configured(),
        "fallback_available": True,
        "timeout_ms": settings.timeout_ms,
    }


@router.post("/generate")
async def generate_model(request: GenerateRequest):
    """Generate a 3D model and preview image from a prompt.

    Always succeeds for a valid prompt; degraded tiers are reported in the
    response rather than as errors.
    """
    result = await _run(request.prompt)

    model_id = str(uuid.uuid4())[:8]
    now = datetime.now(timezone.utc).isoformat()
    MODELS[model_id] = {
        "id": model_id,
        "title": request.title or request.prompt[:60],
        "prompt": request.prompt,
        "result": result,
        "created_at": now,
    }
    _evict_oldest()
    logger.info(
        f"Generated model {model_id}: mesh={result.mesh_tier.value}, "
        f"image={result.image.tier.value}"
    )

    return {
        "success": True,
        "data": {
            "modelId": model_id,
            "fileUrl": f"/api/download/{model_id}?format=obj",
            "previewUrl": f"/api/download/{model_id}?format=preview",
            "category": result.category,
            "meshTier": result.mesh_tier.value,
            "imageTier": result.image.tier.value,
            "degraded": result.degraded,
        },
    }


@router.post("/generate/image")
async def generate_image(request: GenerateRequest):
    """Generate only the preview image for a prompt."""
    image = await get_orchestrator().image_stage.generate_image(request.prompt)
    return Response(
        content=image.data,
        media_type=image.content_type,
        headers={"X-Image-Tier": image.tier.value},
    )


@router.get("/models/{model_id}")
async def get_model(model_id: str):
    """Get model metadata."""
    entry = MODELS.get(model_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Model not found")

    result: GenerationResult = entry["result"]
    return {
        "success": True,
        "data": {
            "id": entry["id"],
            "title": entry["title"],
            "prompt": entry["prompt"],
            "fileUrl": f"/api/download/{model_id}?format=obj",
            "previewImageUrl": f"/api/download/{model_id}?format=preview",
            "formats": [fmt.upper() for fmt in DOWNLOAD_FORMATS],
            "fileSize": len(result.mesh_bytes()),
            "createdAt": entry["created_at"],
            "generation": result.to_dict(),
        },
    }


@router.get("/download/{model_id}")
async def download_model(model_id: str, format: str = Query("obj")):
    """Download the mesh (OBJ or STL) or the preview image."""
    entry = MODELS.get(model_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Model not found")

    result: GenerationResult = entry["result"]
    fmt = format.lower()

    if fmt == "preview":
        content = result.image.data
        media_type = result.image.content_type
        filename = f"{model_id}_preview.{result.image.extension}"
    elif fmt == "obj":
        content = result.mesh_bytes()
        media_type = DOWNLOAD_FORMATS["obj"]
        filename = f"{model_id}.obj"
    elif fmt == "stl":
        content = export_stl(result.mesh)
        media_type = DOWNLOAD_FORMATS["stl"]
        filename = f"{model_id}.stl"
    else:
        raise HTTPException(status_code=400, detail=f"Unsupported format: {format}")

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
