"""FastAPI dependencies resolving the per-application store and pipeline."""

from fastapi import Request

from lectra.core.config import Settings
from lectra.services.pipeline import TranscriptionPipeline
from lectra.services.storage.database import StoreClient


def get_store(request: Request) -> StoreClient:
    """Return the StoreClient created by the application lifespan."""
    return request.app.state.store


def get_pipeline(request: Request) -> TranscriptionPipeline:
    settings: Settings = request.app.state.settings
    return TranscriptionPipeline(
        recognizer=request.app.state.recognizer,
        store=request.app.state.store,
        long_audio_threshold_bytes=settings.long_audio_threshold_bytes,
    )
