from fastapi import APIRouter, Request

from nimproxy import __version__
from nimproxy.models.health import HealthResponse
from nimproxy.streaming.merger import DisplayPolicy

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    state = request.app.state
    settings = state.settings

    upstream_reachable = False
    http_client = getattr(state, "http_client", None)
    if http_client is not None:
        try:
            resp = await http_client.get("/models", timeout=3.0)
            upstream_reachable = resp.status_code < 500
        except Exception:
            pass

    return HealthResponse(
        status="ok",
        version=__version__,
        reasoning_display=settings.reasoning_display is DisplayPolicy.SHOW,
        thinking_mode=settings.enable_thinking_mode,
        upstream_reachable=upstream_reachable,
    )
