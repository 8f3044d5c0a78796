# battle_tts/main.py

"""FastAPI application exposing per-user TTS generation for rap battles."""
import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Body, Depends, Request, status, Path as FastApiPath
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

from .config import settings, TTSService
from .models import (
    GenerateTTSRequest,
    GenerationResult,
    UserTTSSettingsUpdate,
    User,
    APIKeyTestResponse,
    ClearInstancesResponse,
    HealthResponse,
)
from .tts_manager import TTSContext, UserTTSManager, build_context

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Battle TTS",
    description="Per-user text-to-speech selection with vendor fallback for AI rap battles.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    app.state.tts_context = build_context(settings)
    logger.info(f"Battle TTS startup complete. System TTS services with keys: {[s.value for s in settings.available_system_services()]}")


@app.on_event("shutdown")
async def shutdown_event():
    context = getattr(app.state, "tts_context", None)
    if context is not None:
        await context.aclose()


def get_tts_context(request: Request) -> TTSContext:
    context = getattr(request.app.state, "tts_context", None)
    if context is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="TTS context not initialized.")
    return context


def get_tts_manager(context: TTSContext = Depends(get_tts_context)) -> UserTTSManager:
    return context.manager


def parse_vendor(service: str) -> TTSService:
    try:
        parsed = TTSService(service.lower())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid TTS service '{service}'.")
    if parsed == TTSService.SYSTEM:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="'system' has no API key to test.")
    return parsed


# --- Exception Handlers ---
@app.exception_handler(ValidationError)
async def pydantic_validation_error_handler(r: Request, exc: ValidationError):
    logger.warning(f"Request validation error for {r.url.path}: {exc.errors()}")
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=jsonable_encoder({"detail": "Request validation failed.", "errors": exc.errors()}))

@app.exception_handler(Exception)
async def generic_exception_handler(r: Request, exc: Exception):
    logger.error(f"Unhandled exception for {r.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=jsonable_encoder({"detail": "An unexpected internal server error occurred.", "message": str(exc)}))


# --- Endpoints ---

@app.get("/health", response_model=HealthResponse, tags=["Utility"])
async def health_check_endpoint():
    return HealthResponse(
        status="ok",
        service="Battle TTS",
        version=app.version,
        system_services=[s.value for s in settings.available_system_services()],
        default_tts_service=settings.DEFAULT_TTS_SERVICE.value,
    )


@app.post("/tts/generate", response_model=GenerationResult, tags=["TTS"])
async def generate_tts_endpoint(
    request_body: GenerateTTSRequest = Body(...),
    manager: UserTTSManager = Depends(get_tts_manager),
):
    # An empty audio_url is a normal answer: the battle goes on without sound
    return await manager.generate_tts(request_body.text, request_body.user_id, request_body.to_options())


@app.post("/users/{user_id}/api-keys/{service}/test", response_model=APIKeyTestResponse, tags=["Account"])
async def test_api_key_endpoint(
    user_id: str = FastApiPath(..., description="User whose stored key is tested"),
    service: str = FastApiPath(..., description="Vendor name, e.g. 'groq'"),
    manager: UserTTSManager = Depends(get_tts_manager),
):
    vendor = parse_vendor(service)
    valid = await manager.test_user_api_key(user_id, vendor)
    return APIKeyTestResponse(service=vendor.value, valid=valid)


@app.put("/users/{user_id}/tts-settings", response_model=User, tags=["Account"])
async def update_tts_settings_endpoint(
    user_id: str,
    update: UserTTSSettingsUpdate = Body(...),
    context: TTSContext = Depends(get_tts_context),
):
    existing = await context.storage.get_user(user_id)
    data: Dict[str, Any] = existing.model_dump() if existing else {"id": user_id}
    data.update(update.model_dump(exclude_unset=True))
    user = await context.storage.save_user(User(**data))
    context.manager.clear_user_instances(user_id)
    # Never echo keys back
    return user.model_copy(update={
        "openai_api_key": None, "groq_api_key": None,
        "elevenlabs_api_key": None, "myshell_api_key": None,
    })


@app.delete("/users/{user_id}/tts-instances", response_model=ClearInstancesResponse, tags=["Account"])
async def clear_tts_instances_endpoint(user_id: str, manager: UserTTSManager = Depends(get_tts_manager)):
    return ClearInstancesResponse(cleared=manager.clear_user_instances(user_id))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("battle_tts.main:app", host="0.0.0.0", port=8010, reload=True, log_level=settings.LOG_LEVEL.lower())
