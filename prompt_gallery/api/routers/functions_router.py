from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from prompt_gallery.api.dependencies import get_assistant, get_dalle
from prompt_gallery.services.assistant.service import AssistantError, PromptAssistant
from prompt_gallery.services.image.dalle import DalleProvider, dalle_size
from prompt_gallery.services.image.errors import ImageGenerationError
from prompt_gallery.services.image.types import MAX_IMAGES, GenerationRequest
from prompt_gallery.services.openai_api import IMAGE_RULES, OpenAIError, friendly_message
from prompt_gallery.services.session import session_from_header

router = APIRouter()


class PromptFields(BaseModel):
    subject: str = ""
    setting: str = ""
    lighting: str = ""
    style: str = ""
    mood: str = ""
    post_processing: Optional[str] = Field(None, alias="post-processing")
    enhancement: Optional[str] = None


class ExtractPayload(BaseModel):
    imageUrl: str = ""


class MetadataPayload(BaseModel):
    prompt: str = ""
    promptData: Optional[dict] = None


class GenerateImagePayload(BaseModel):
    prompt: str = ""
    imageDimensions: str = "1:1"
    numberOfImages: int = 1
    style: str = "natural"


async def _run(func, *args):
    try:
        return await run_in_threadpool(func, *args)
    except AssistantError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/generate-prompt", summary="Turn prompt fields into a photorealistic prompt")
async def generate_prompt_endpoint(
        payload: PromptFields,
        authorization: Optional[str] = Header(None, description="Bearer <session token>"),
        assistant: PromptAssistant = Depends(get_assistant),
):
    fields = payload.model_dump()
    prompt = await _run(assistant.generate_prompt, session_from_header(authorization), fields)
    return {"prompt": prompt}


@router.post("/extract-prompt", summary="Describe an image as a reusable prompt")
async def extract_prompt_endpoint(
        payload: ExtractPayload,
        authorization: Optional[str] = Header(None, description="Bearer <session token>"),
        assistant: PromptAssistant = Depends(get_assistant),
):
    return await _run(assistant.extract_prompt, session_from_header(authorization), payload.imageUrl)


@router.post("/generate-metadata", summary="Title, notes and SREF for a prompt")
async def generate_metadata_endpoint(
        payload: MetadataPayload,
        authorization: Optional[str] = Header(None, description="Bearer <session token>"),
        assistant: PromptAssistant = Depends(get_assistant),
):
    return await _run(
        assistant.generate_metadata, session_from_header(authorization), payload.prompt, payload.promptData
    )


@router.post("/test-api-key", summary="Check the user's own OpenAI key")
async def test_api_key_endpoint(
        authorization: Optional[str] = Header(None, description="Bearer <session token>"),
        assistant: PromptAssistant = Depends(get_assistant),
):
    return await _run(assistant.test_api_key, session_from_header(authorization))


@router.post("/generate-image", summary="DALL-E 3 generation behind the remote function")
async def generate_image_function_endpoint(
        payload: GenerateImagePayload,
        dalle: DalleProvider = Depends(get_dalle),
):
    # Проба доступности шлёт {"test": true} без промпта — отвечаем 400, это тоже "функция на месте"
    if not payload.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")

    try:
        request = GenerationRequest(
            prompt=payload.prompt,
            aspect_ratio=payload.imageDimensions,
            image_count=max(1, min(payload.numberOfImages, MAX_IMAGES)),
            style=payload.style,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        urls = await run_in_threadpool(dalle.generate, request)
    except (ImageGenerationError, OpenAIError) as e:
        raise HTTPException(status_code=500, detail=friendly_message(e, IMAGE_RULES, "Failed to generate image"))

    return {
        "imageUrl": urls,
        "imageUrls": urls,
        "generatedCount": len(urls),
        "requestedCount": payload.numberOfImages,
        "dimensions": dalle_size(request.aspect_ratio),
    }
