import time

from fastapi import APIRouter, Request

from nimproxy.models.openai_compat import ModelCard, ModelList

router = APIRouter(tags=["models"])


@router.get("/v1/models", response_model=ModelList)
async def list_models(request: Request) -> ModelList:
    """List the OpenAI-style model names that have an explicit mapping."""
    created = int(time.time())
    resolver = request.app.state.model_resolver
    return ModelList(
        data=[ModelCard(id=name, created=created) for name in resolver.available_models()]
    )
