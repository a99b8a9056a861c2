from fastapi import APIRouter, Request

from nimproxy.models.openai_compat import ChatCompletionRequest
from nimproxy.services.proxy_service import ProxyService

router = APIRouter(tags=["proxy"])


@router.post("/v1/chat/completions")
async def chat_completions(request: Request, body: ChatCompletionRequest):
    upstream_model = request.app.state.model_resolver.resolve(body.model)
    request.state.upstream_model = upstream_model

    proxy_svc = ProxyService(
        http_client=request.app.state.http_client,
        settings=request.app.state.settings,
    )

    if body.stream:
        return await proxy_svc.stream_proxy(body, upstream_model, request.headers)

    return await proxy_svc.forward_proxy(body, upstream_model, request.headers)
