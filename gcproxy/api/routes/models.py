"""Model listing endpoint."""

from fastapi import APIRouter

from gcproxy.api.dependencies import SettingsDep
from gcproxy.models.openai import ModelInfo, ModelList


router = APIRouter()


@router.get("/models", response_model=ModelList)
async def list_models(settings: SettingsDep) -> ModelList:
    """List the single model every request is served by."""
    return ModelList(data=[ModelInfo(id=settings.gemini.model)])
