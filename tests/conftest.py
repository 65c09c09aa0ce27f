from __future__ import annotations

import asyncio
import time

import pytest
from wyoming.event import Event

from wyoming_segmenter.errors import UpstreamError
from wyoming_segmenter.upstream import StreamResult


class RecordingHandler:
    """Stands in for a connected AsyncEventHandler."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    async def write_event(self, event: Event) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [e.type for e in self.events]


class FakeUpstream:
    def __init__(self, fail_on: str | None = None) -> None:
        self.texts: list[str] = []
        self.write_start: list[bool] = []
        self.fail_on = fail_on
        # Time spent relaying the rest of a segment after its first chunk.
        self.tail_delay = 0.0

    async def stream_to_handler(self, handler, text, voice, write_start) -> StreamResult:
        if text == self.fail_on:
            raise UpstreamError(f"cannot synthesize {text!r}")
        self.texts.append(text)
        self.write_start.append(write_start)
        first_audio_at = time.perf_counter()
        if self.tail_delay:
            await asyncio.sleep(self.tail_delay)
        return StreamResult(audio_started=write_start, first_audio_time=0.0, first_audio_at=first_audio_at)


@pytest.fixture
def recording_handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()
