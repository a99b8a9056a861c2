from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "OpenAI to NVIDIA NIM Proxy"
    version: str
    reasoning_display: bool = False
    thinking_mode: bool = False
    upstream_reachable: bool = False
