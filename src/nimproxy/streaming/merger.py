from __future__ import annotations

from enum import Enum

THINK_OPEN = "<think>\n"
THINK_CLOSE = "</think>\n\n"


class DisplayPolicy(str, Enum):
    HIDE = "hide"
    SHOW = "show"


class ReasoningState(Enum):
    CLOSED = "closed"
    OPEN = "open"


class ChannelMerger:
    """Folds the reasoning and answer channels of a delta into one text.

    Under ``DisplayPolicy.SHOW`` reasoning is wrapped in think markers: the open
    marker precedes the first reasoning text of a block and the close marker
    precedes the answer text that ends it. Under ``DisplayPolicy.HIDE`` reasoning
    is discarded and the state never leaves ``CLOSED``.

    A block still open when the stream ends is left open.
    """

    def __init__(
        self,
        policy: DisplayPolicy = DisplayPolicy.HIDE,
        open_marker: str = THINK_OPEN,
        close_marker: str = THINK_CLOSE,
    ):
        self.policy = DisplayPolicy(policy)
        self.open_marker = open_marker
        self.close_marker = close_marker
        self._state = ReasoningState.CLOSED

    @property
    def state(self) -> ReasoningState:
        return self._state

    def reset(self) -> None:
        self._state = ReasoningState.CLOSED

    def merge(self, reasoning: str | None, answer: str | None) -> str:
        if self.policy is DisplayPolicy.HIDE:
            return answer or ""

        parts: list[str] = []
        if reasoning:
            if self._state is ReasoningState.CLOSED:
                parts.append(self.open_marker)
                self._state = ReasoningState.OPEN
            parts.append(reasoning)
        if answer:
            if self._state is ReasoningState.OPEN:
                parts.append(self.close_marker)
                self._state = ReasoningState.CLOSED
            parts.append(answer)
        return "".join(parts)
