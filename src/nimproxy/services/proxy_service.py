from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import httpx
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask
from starlette.responses import Response

from nimproxy.config import Settings
from nimproxy.models.openai_compat import ChatCompletionRequest
from nimproxy.streaming.transformer import StreamTransformer
from nimproxy.utils.sse import SSE_HEADERS

logger = logging.getLogger("nimproxy.proxy")


class ProxyService:
    """Forwards OpenAI chat completion requests to the NIM backend.

    Streaming responses are rewritten through a ``StreamTransformer`` so
    reasoning deltas are folded into ``content`` according to the configured
    display policy. Non-streaming responses are passed through unchanged.

    Backend failures before any bytes reach the client become a 500 JSON
    error. Failures after the stream started only end the stream.
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self.http_client = http_client
        self.settings = settings

    def build_upstream_payload(self, request: ChatCompletionRequest, upstream_model: str) -> dict:
        payload = request.model_dump(exclude_none=True)
        payload["model"] = upstream_model
        payload["stream"] = request.stream
        if request.temperature is None:
            payload["temperature"] = self.settings.default_temperature
        if request.max_tokens is None:
            payload["max_tokens"] = self.settings.default_max_tokens
        if self.settings.enable_thinking_mode:
            payload["chat_template_kwargs"] = {"thinking": True}
        return payload

    def _build_upstream_headers(self, original_headers) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.settings.upstream_api_key:
            headers["Authorization"] = f"Bearer {self.settings.upstream_api_key}"
        else:
            auth = original_headers.get("authorization")
            if auth:
                headers["Authorization"] = auth
        return headers

    def _new_transformer(self) -> StreamTransformer:
        return StreamTransformer(
            policy=self.settings.reasoning_display,
            open_marker=self.settings.think_open_marker,
            close_marker=self.settings.think_close_marker,
        )

    @staticmethod
    def _error_response(message: str) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={"error": {"message": message, "type": "proxy_error", "code": 500}},
        )

    async def forward_proxy(
        self, request: ChatCompletionRequest, upstream_model: str, original_headers
    ) -> JSONResponse:
        """Non-streaming pass-through."""
        payload = self.build_upstream_payload(request, upstream_model)
        headers = self._build_upstream_headers(original_headers)

        try:
            resp = await self.http_client.post("/chat/completions", json=payload, headers=headers)
            resp.raise_for_status()
            return JSONResponse(status_code=resp.status_code, content=resp.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Proxy error: %s", exc)
            return self._error_response(str(exc))

    async def stream_proxy(
        self, request: ChatCompletionRequest, upstream_model: str, original_headers
    ) -> Response:
        """Open the upstream stream and relay it through a fresh transformer."""
        payload = self.build_upstream_payload(request, upstream_model)
        payload["stream"] = True
        headers = self._build_upstream_headers(original_headers)

        upstream_request = self.http_client.build_request(
            "POST", "/chat/completions", json=payload, headers=headers
        )
        try:
            upstream = await self.http_client.send(upstream_request, stream=True)
        except httpx.HTTPError as exc:
            logger.error("Proxy error: %s", exc)
            return self._error_response(str(exc))

        try:
            upstream.raise_for_status()
        except httpx.HTTPStatusError as exc:
            await upstream.aclose()
            logger.error("Proxy error: %s", exc)
            return self._error_response(str(exc))

        return StreamingResponse(
            self._relay(upstream, self._new_transformer()),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
            background=BackgroundTask(upstream.aclose),
        )

    async def _relay(
        self, upstream: httpx.Response, transformer: StreamTransformer
    ) -> AsyncIterator[str]:
        try:
            async for chunk in transformer.transform(upstream.aiter_text()):
                yield chunk
        except httpx.HTTPError as exc:
            # The client only sees the stream end
            logger.warning("Upstream stream interrupted: %s", exc)
        finally:
            await upstream.aclose()
