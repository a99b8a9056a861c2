from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from nimproxy.utils.sse import DATA_PREFIX, DONE_SENTINEL

logger = logging.getLogger("nimproxy.streaming")

REASONING_FIELD = "reasoning_content"
ANSWER_FIELD = "content"


@dataclass(frozen=True)
class TerminalEvent:
    """The upstream ``[DONE]`` sentinel."""


@dataclass
class DeltaEvent:
    """A chunk whose first choice carries a delta.

    ``reasoning`` and ``answer`` are ``None`` unless the delta holds a
    non-empty string in the corresponding field.
    """

    payload: dict[str, Any]
    reasoning: str | None = None
    answer: str | None = None

    @property
    def delta(self) -> dict[str, Any]:
        return self.payload["choices"][0]["delta"]


Event = Union[TerminalEvent, DeltaEvent]


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def decode_frame(
    frame: str,
    reasoning_field: str = REASONING_FIELD,
    answer_field: str = ANSWER_FIELD,
) -> Event | None:
    """Classify one frame. Returns ``None`` for anything that produces no output."""
    line = frame.strip()
    if not line or not line.startswith(DATA_PREFIX):
        return None

    data = line[len(DATA_PREFIX):].strip()
    if data == DONE_SENTINEL:
        return TerminalEvent()

    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        logger.debug("Dropping malformed SSE data frame: %.200s", data)
        return None

    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None

    return DeltaEvent(
        payload=payload,
        reasoning=_text(delta.get(reasoning_field)),
        answer=_text(delta.get(answer_field)),
    )
