from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator

from nimproxy.streaming.decoder import (
    ANSWER_FIELD,
    REASONING_FIELD,
    DeltaEvent,
    TerminalEvent,
    decode_frame,
)
from nimproxy.streaming.merger import THINK_CLOSE, THINK_OPEN, ChannelMerger, DisplayPolicy
from nimproxy.streaming.reassembler import FrameReassembler
from nimproxy.utils.sse import format_sse_chunk, format_sse_done

logger = logging.getLogger("nimproxy.streaming")


class StreamTransformer:
    """Rewrites an upstream NIM SSE stream into an OpenAI-compatible one.

    One instance serves exactly one response stream. Output frames are produced
    in the order their input frames completed; nothing is processed after the
    ``[DONE]`` sentinel.
    """

    def __init__(
        self,
        policy: DisplayPolicy = DisplayPolicy.HIDE,
        open_marker: str = THINK_OPEN,
        close_marker: str = THINK_CLOSE,
        reasoning_field: str = REASONING_FIELD,
        answer_field: str = ANSWER_FIELD,
    ):
        self.reassembler = FrameReassembler()
        self.merger = ChannelMerger(policy, open_marker, close_marker)
        self.reasoning_field = reasoning_field
        self.answer_field = answer_field
        self.finished = False

    def reset(self) -> None:
        self.reassembler.close()
        self.merger.reset()
        self.finished = False

    def rewrite(self, event: DeltaEvent) -> dict:
        """Merge the delta's channels in place and return the chunk payload."""
        text = self.merger.merge(event.reasoning, event.answer)
        delta = event.delta
        delta.pop(self.reasoning_field, None)
        if self.merger.policy is DisplayPolicy.HIDE or text:
            delta[self.answer_field] = text
        return event.payload

    def feed(self, fragment: str | bytes) -> list[str]:
        """Process one upstream fragment and return the SSE frames to send."""
        if self.finished:
            return []

        out: list[str] = []
        for frame in self.reassembler.feed(fragment):
            event = decode_frame(frame, self.reasoning_field, self.answer_field)
            if event is None:
                continue
            if isinstance(event, TerminalEvent):
                out.append(format_sse_done())
                self.finished = True
                break
            out.append(format_sse_chunk(self.rewrite(event)))
        return out

    async def transform(self, fragments: AsyncIterable[str | bytes]) -> AsyncIterator[str]:
        self.reset()
        try:
            async for fragment in fragments:
                for chunk in self.feed(fragment):
                    yield chunk
                if self.finished:
                    return
        finally:
            dropped = self.reassembler.close()
            if dropped.strip():
                logger.debug("Discarding unterminated trailing data: %.200s", dropped)
