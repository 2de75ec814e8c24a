"""Unit tests for delimiter extraction and the resume matchers."""

import pytest

from common.config import ConfigInvalid, RelayConfig
from common.io import HandshakeOverflow
from matcher.delimiter import DelimiterExtractor, ExtractState
from matcher.resume import DelimiterPair, LiteralToken, build_resume_matcher

START = b"{{__sync;"
END = b"}}\r\n"


@pytest.mark.unit
class TestDelimiterExtractor:
    """Tests for DelimiterExtractor state transitions."""

    def test_split_across_three_reads(self) -> None:
        ex = DelimiterExtractor(START, END)
        assert ex.feed(b"{{__sy") is False
        assert ex.state is ExtractState.AWAITING_START
        assert ex.feed(b"nc;ABC") is False
        assert ex.state is ExtractState.AWAITING_END
        assert ex.feed(b"}}\r\n") is True
        assert ex.state is ExtractState.EXTRACTED
        assert ex.content == b"ABC"
        assert ex.take_span() == b"{{__sync;ABC}}\r\n"
        assert ex.state is ExtractState.AWAITING_START

    def test_single_read(self) -> None:
        ex = DelimiterExtractor(START, END)
        assert ex.feed(b"{{__sync;42}}\r\n") is True
        assert ex.take_span() == b"{{__sync;42}}\r\n"

    def test_noise_before_start_discarded(self) -> None:
        ex = DelimiterExtractor(START, END)
        ex.feed(b"garbage {{ more {{__sync;")
        assert ex.state is ExtractState.AWAITING_END
        ex.feed(b"x}}\r\n")
        assert ex.take_span() == b"{{__sync;x}}\r\n"
        assert ex.buffer.total_discarded == len(b"garbage {{ more ")
        assert ex.buffer.is_balanced()

    def test_partial_start_kept_across_reads(self) -> None:
        ex = DelimiterExtractor(START, END)
        ex.feed(b"noise{{")
        assert ex.buffer.data == b"{{"
        ex.feed(b"__sync;")
        assert ex.state is ExtractState.AWAITING_END

    def test_content_resembling_end_marker(self) -> None:
        ex = DelimiterExtractor(START, END)
        ex.feed(b"{{__sync;a}}b")
        assert ex.state is ExtractState.AWAITING_END
        ex.feed(b"}}\r")
        assert ex.state is ExtractState.AWAITING_END
        ex.feed(b"\n")
        assert ex.content == b"a}}b"

    def test_one_byte_per_read(self) -> None:
        ex = DelimiterExtractor(START, END)
        message = b"..{{__sync;OK}}\r\n"
        results = [ex.feed(bytes([b])) for b in message]
        assert results[-1] is True
        assert not any(results[:-1])
        assert ex.take_span() == message[2:]

    def test_trailing_bytes_discarded(self) -> None:
        ex = DelimiterExtractor(START, END)
        ex.feed(b"{{__sync;A}}\r\ntrailing")
        assert ex.take_span() == b"{{__sync;A}}\r\n"
        assert len(ex.buffer) == 0
        assert ex.buffer.total_discarded == len(b"trailing")

    def test_reusable_after_take(self) -> None:
        ex = DelimiterExtractor(START, END)
        ex.feed(b"{{__sync;1}}\r\n")
        ex.take_span()
        ex.feed(b"{{__sync;2}}\r\n")
        assert ex.take_span() == b"{{__sync;2}}\r\n"

    def test_overflow(self) -> None:
        ex = DelimiterExtractor(START, END, capacity=16)
        ex.feed(b"{{__sync;1234")
        with pytest.raises(HandshakeOverflow):
            ex.feed(b"56789")

    def test_take_before_extracted(self) -> None:
        ex = DelimiterExtractor(START, END)
        ex.feed(b"{{__sync;")
        with pytest.raises(RuntimeError):
            ex.take_span()
        assert ex.content == b""

    def test_empty_marker_rejected(self) -> None:
        with pytest.raises(ConfigInvalid):
            DelimiterExtractor(b"", END)

    def test_markers_larger_than_capacity_rejected(self) -> None:
        with pytest.raises(ConfigInvalid):
            DelimiterExtractor(START, END, capacity=8)


@pytest.mark.unit
class TestLiteralToken:
    """Tests for the literal resume variant."""

    def test_split_token(self) -> None:
        lt = LiteralToken(b"go")
        assert lt.feed(b"g") is False
        assert lt.feed(b"o") is True
        assert lt.take_span() == b"go"
        assert lt.echo is False

    def test_non_matching_bytes_dropped(self) -> None:
        lt = LiteralToken(b"go")
        assert lt.feed(b"hello ") is False
        assert lt.discarded == 6
        assert lt.feed(b"go") is True
        assert lt.take_span() == b"go"

    def test_bytes_after_token_dropped(self) -> None:
        lt = LiteralToken(b"go")
        lt.feed(b"xgo!!")
        assert lt.take_span() == b"go"
        assert lt.discarded == 3
        assert lt.free == 512

    def test_empty_token_rejected(self) -> None:
        with pytest.raises(ConfigInvalid):
            LiteralToken(b"")


@pytest.mark.unit
class TestBuildResumeMatcher:
    """Tests for selecting the resume variant from configuration."""

    def test_literal(self) -> None:
        config = RelayConfig(suspend_token=b"wait", resume_token=b"go")
        matcher = build_resume_matcher(config)
        assert isinstance(matcher, LiteralToken)
        assert matcher.echo is False

    def test_markers(self) -> None:
        config = RelayConfig(suspend_token=b"wait", resume_markers=(START, END))
        matcher = build_resume_matcher(config)
        assert isinstance(matcher, DelimiterPair)
        assert matcher.echo is True

    def test_capacity_passed_through(self) -> None:
        config = RelayConfig(
            suspend_token=b"wait", resume_markers=(START, END), handshake_buffer_capacity=64
        )
        matcher = build_resume_matcher(config)
        assert matcher.free == 64
