import pytest

from nimproxy.streaming.merger import (
    THINK_CLOSE,
    THINK_OPEN,
    ChannelMerger,
    DisplayPolicy,
    ReasoningState,
)

DELTAS = [("a", None), ("b", None), (None, "c")]


class TestShowPolicy:
    @pytest.fixture
    def merger(self):
        return ChannelMerger(DisplayPolicy.SHOW)

    def test_reasoning_then_answer(self, merger):
        outputs = [merger.merge(r, a) for r, a in DELTAS]
        assert outputs == [THINK_OPEN + "a", "b", THINK_CLOSE + "c"]
        assert merger.state is ReasoningState.CLOSED

    def test_open_after_first_reasoning(self, merger):
        merger.merge("a", None)
        assert merger.state is ReasoningState.OPEN

    def test_answer_without_reasoning(self, merger):
        assert merger.merge(None, "plain") == "plain"
        assert merger.state is ReasoningState.CLOSED

    def test_both_in_one_delta_from_closed(self, merger):
        assert merger.merge("r", "a") == THINK_OPEN + "r" + THINK_CLOSE + "a"
        assert merger.state is ReasoningState.CLOSED

    def test_both_in_one_delta_from_open(self, merger):
        merger.merge("r1", None)
        assert merger.merge("r2", "a") == "r2" + THINK_CLOSE + "a"
        assert merger.state is ReasoningState.CLOSED

    def test_neither_leaves_state(self, merger):
        assert merger.merge(None, None) == ""
        assert merger.state is ReasoningState.CLOSED
        merger.merge("r", None)
        assert merger.merge(None, None) == ""
        assert merger.merge("", "") == ""
        assert merger.state is ReasoningState.OPEN

    def test_markers_pair_across_blocks(self, merger):
        text = ""
        for n in range(5):
            for piece in ("x", "y", "z"):
                text += merger.merge(f"{piece}{n}", None)
            text += merger.merge(None, f"answer{n}")
            text += merger.merge(None, " more")
        assert text.count(THINK_OPEN) == 5
        assert text.count(THINK_CLOSE) == 5
        depth = 0
        pos = 0
        while pos < len(text):
            if text.startswith(THINK_OPEN, pos):
                depth += 1
                pos += len(THINK_OPEN)
            elif text.startswith(THINK_CLOSE, pos):
                depth -= 1
                pos += len(THINK_CLOSE)
            else:
                pos += 1
            assert depth in (0, 1)
        assert depth == 0

    def test_dangling_block_stays_open(self, merger):
        assert merger.merge("unfinished", None) == THINK_OPEN + "unfinished"
        assert merger.state is ReasoningState.OPEN

    def test_reset(self, merger):
        merger.merge("r", None)
        merger.reset()
        assert merger.state is ReasoningState.CLOSED
        assert merger.merge("r", None) == THINK_OPEN + "r"

    def test_custom_markers(self):
        merger = ChannelMerger("show", open_marker="[", close_marker="]")
        assert [merger.merge(r, a) for r, a in DELTAS] == ["[a", "b", "]c"]


class TestHidePolicy:
    def test_reasoning_discarded(self):
        merger = ChannelMerger(DisplayPolicy.HIDE)
        assert [merger.merge(r, a) for r, a in DELTAS] == ["", "", "c"]

    @pytest.mark.parametrize(
        "reasoning,answer,expected",
        [
            ("r", None, ""),
            (None, "a", "a"),
            ("r", "a", "a"),
            (None, None, ""),
        ],
    )
    def test_output_is_answer_and_state_closed(self, reasoning, answer, expected):
        merger = ChannelMerger(DisplayPolicy.HIDE)
        assert merger.merge(reasoning, answer) == expected
        assert merger.state is ReasoningState.CLOSED

    def test_default_policy_is_hide(self):
        assert ChannelMerger().policy is DisplayPolicy.HIDE
