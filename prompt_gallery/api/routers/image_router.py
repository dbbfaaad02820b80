from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.concurrency import run_in_threadpool

from prompt_gallery.api.dependencies import get_dispatcher, get_prober, get_settings
from prompt_gallery.config import Settings
from prompt_gallery.services.image.availability import AvailabilityProber
from prompt_gallery.services.image.edge_function import GENERATE_FUNCTION
from prompt_gallery.services.image.orchestrator import PROVIDERS, ImageGenerationDispatcher
from prompt_gallery.services.image.types import ASPECT_RATIOS, MAX_IMAGES, GenerationRequest
from prompt_gallery.services.session import session_from_header

router = APIRouter()


@router.post("/generate", summary="Image generation with provider fallback")
async def generate_image_endpoint(
    prompt: str = Query(..., min_length=1, description="Image description"),
    aspect_ratio: str = Query("1:1", description=f"One of: {', '.join(ASPECT_RATIOS)}"),
    number_of_images: int = Query(1, ge=1, le=MAX_IMAGES, description="How many images"),
    provider: str = Query("openai", description=f"One of: {', '.join(PROVIDERS)}"),
    style: Optional[str] = Query(None, description="natural or vivid"),
    authorization: Optional[str] = Header(None, description="Bearer <session token>"),
    dispatcher: ImageGenerationDispatcher = Depends(get_dispatcher),
):
    if provider not in PROVIDERS:
        raise HTTPException(status_code=422, detail=f"Unknown provider: {provider}")

    try:
        request = GenerationRequest(
            prompt=prompt,
            aspect_ratio=aspect_ratio,
            image_count=number_of_images,
            style=style,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        # Провайдеры синхронные (requests), поэтому в threadpool
        result = await run_in_threadpool(
            dispatcher.generate,
            request,
            provider=provider,
            session=session_from_header(authorization),
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Generation failed: {str(e)}")

    return result.to_dict()


@router.get("/availability", summary="Is the remote generation function deployed")
async def availability_endpoint(
    function_name: str = Query(GENERATE_FUNCTION, description="Remote function name"),
    timeout_ms: int = Query(5000, ge=100, le=30000),
    authorization: Optional[str] = Header(None, description="Bearer <session token>"),
    settings: Settings = Depends(get_settings),
    prober: AvailabilityProber = Depends(get_prober),
):
    available = await run_in_threadpool(
        prober.probe_cached,
        settings.supabase_url or "",
        function_name,
        session_from_header(authorization),
        timeout_ms,
    )
    return {"function": function_name, "available": available}


@router.post("/availability/clear", summary="Reset availability cache (after deploy)")
async def clear_availability_endpoint(prober: AvailabilityProber = Depends(get_prober)):
    prober.clear_cache()
    return {"cleared": True}
