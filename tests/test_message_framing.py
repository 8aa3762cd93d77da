from __future__ import annotations

import pytest

from streamlights.eventsub.framing import Frame, FrameKind, MessageAssembler


def test_assembler_joins_fragments_until_end_of_message() -> None:
    assembler = MessageAssembler()

    assert assembler.feed(Frame(b'{"a":', end_of_message=False)) is None
    assert assembler.feed(Frame(b' 1', end_of_message=False)) is None
    assert assembler.pending_bytes == 7
    assert assembler.feed(Frame(b"}")) == b'{"a": 1}'
    assert assembler.pending_bytes == 0


def test_assembler_handles_back_to_back_messages() -> None:
    assembler = MessageAssembler()

    first = assembler.feed(Frame(b"one"))
    second = assembler.feed(Frame(b"tw", end_of_message=False))
    third = assembler.feed(Frame(b"o"))

    assert (first, second, third) == (b"one", None, b"two")


def test_assembler_rejects_oversized_message_and_recovers() -> None:
    assembler = MessageAssembler(max_message_bytes=4)

    with pytest.raises(ValueError):
        assembler.feed(Frame(b"abc", end_of_message=False))
        assembler.feed(Frame(b"de"))

    assert assembler.pending_bytes == 0
    assert assembler.feed(Frame(b"ok")) == b"ok"


def test_assembler_rejects_close_frames() -> None:
    with pytest.raises(ValueError):
        MessageAssembler().feed(Frame(b"", kind=FrameKind.CLOSE, close_code=1006))
