from __future__ import annotations

import codecs


class FrameReassembler:
    """Reassembles newline-delimited frames from an arbitrarily fragmented stream.

    Fragments are pushed in with ``feed``; every complete line seen so far is
    returned in arrival order. The trailing partial line is kept in ``pending``
    and prefixed to the next fragment, so a frame is never emitted before its
    terminator has arrived.
    """

    def __init__(self, delimiter: str = "\n"):
        self.delimiter = delimiter
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, fragment: str | bytes) -> list[str]:
        if isinstance(fragment, bytes):
            # Multi-byte characters may straddle two fragments
            fragment = self._decoder.decode(fragment)
        if not fragment:
            return []

        self._pending += fragment
        *frames, self._pending = self._pending.split(self.delimiter)
        return frames

    def close(self) -> str:
        """Reset for the end of the stream.

        Returns the unterminated tail, which can never form a complete frame
        and is discarded.
        """
        dropped = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        self._decoder.reset()
        return dropped
