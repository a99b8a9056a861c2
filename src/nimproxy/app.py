import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from nimproxy import __version__
from nimproxy.config import Settings, get_settings
from nimproxy.middleware.error_handler import ErrorHandlerMiddleware, http_exception_handler
from nimproxy.middleware.latency import LatencyMiddleware
from nimproxy.routes import health, models, proxy
from nimproxy.services.model_resolver import ModelResolver
from nimproxy.streaming.merger import DisplayPolicy

logger = logging.getLogger("nimproxy")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # HTTP client for the upstream NIM API
    app.state.http_client = httpx.AsyncClient(
        base_url=settings.upstream_base_url,
        timeout=httpx.Timeout(settings.upstream_timeout_s),
    )

    logger.info(
        "nimproxy v%s started | upstream=%s | models=%d | reasoning display=%s | thinking mode=%s",
        __version__,
        settings.upstream_base_url,
        len(settings.model_mapping),
        "ENABLED" if settings.reasoning_display is DisplayPolicy.SHOW else "DISABLED",
        "ENABLED" if settings.enable_thinking_mode else "DISABLED",
    )

    yield

    # Shutdown
    await app.state.http_client.aclose()
    logger.info("nimproxy shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="nimproxy",
        description="OpenAI-compatible proxy for NVIDIA NIM with reasoning stream merging",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.model_resolver = ModelResolver.from_settings(settings)

    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(health.router)
    app.include_router(models.router)
    app.include_router(proxy.router)

    return app
