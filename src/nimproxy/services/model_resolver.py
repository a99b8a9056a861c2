from __future__ import annotations

import logging

from nimproxy.config import Settings

logger = logging.getLogger("nimproxy.proxy")

# Substrings that route an unmapped model to the large fallback
LARGE_MODEL_HINTS = ("gpt-4", "405b")


class ModelResolver:
    """Maps OpenAI-style model names to NIM model identifiers.

    Resolution order:
    1. Exact match in the mapping table.
    2. Names containing one of ``LARGE_MODEL_HINTS`` (case-insensitive) go to
       the large fallback model.
    3. Everything else goes to the default fallback model.
    """

    def __init__(
        self,
        mapping: dict[str, str],
        large_fallback: str,
        default_fallback: str,
    ):
        self.mapping = dict(mapping)
        self.large_fallback = large_fallback
        self.default_fallback = default_fallback

    @classmethod
    def from_settings(cls, settings: Settings) -> ModelResolver:
        return cls(
            mapping=settings.model_mapping,
            large_fallback=settings.large_fallback_model,
            default_fallback=settings.default_fallback_model,
        )

    def resolve(self, model: str) -> str:
        mapped = self.mapping.get(model)
        if mapped is not None:
            return mapped

        lowered = model.lower()
        if any(hint in lowered for hint in LARGE_MODEL_HINTS):
            fallback = self.large_fallback
        else:
            fallback = self.default_fallback
        logger.debug("No mapping for model %r, falling back to %s", model, fallback)
        return fallback

    def available_models(self) -> list[str]:
        return list(self.mapping)
