from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from nimproxy.streaming.merger import THINK_CLOSE, THINK_OPEN, DisplayPolicy

DEFAULT_MODEL_MAPPING = {
    "gpt-3.5-turbo": "nvidia/llama-3.1-nemotron-ultra-253b-v1",
    "gpt-4": "qwen/qwen3-coder-480b-a35b-instruct",
    "gpt-4-turbo": "moonshotai/kimi-k2-instruct-0905",
    "gpt-4o": "deepseek-ai/deepseek-v3.1",
    "claude-3-opus": "openai/gpt-oss-120b",
    "claude-3-sonnet": "openai/gpt-oss-20b",
    "gemini-pro": "qwen/qwen3-next-80b-a3b-thinking",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NIMPROXY_", env_file=".env", protected_namespaces=()
    )

    # Upstream NIM API
    upstream_base_url: str = "https://integrate.api.nvidia.com/v1"
    upstream_api_key: str = ""
    upstream_timeout_s: float = 120.0

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Reasoning
    reasoning_display: DisplayPolicy = DisplayPolicy.HIDE
    enable_thinking_mode: bool = False
    think_open_marker: str = THINK_OPEN
    think_close_marker: str = THINK_CLOSE

    # Model resolution
    model_mapping: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_MODEL_MAPPING))
    large_fallback_model: str = "meta/llama-3.1-405b-instruct"
    default_fallback_model: str = "meta/llama-3.1-8b-instruct"

    # Request defaults
    default_temperature: float = 0.6
    default_max_tokens: int = 9024

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
