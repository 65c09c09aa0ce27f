from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wyoming.audio import AudioChunk, AudioStart, AudioStop
from wyoming.client import AsyncClient
from wyoming.error import Error
from wyoming.event import Event
from wyoming.info import Describe, Info
from wyoming.tts import Synthesize, SynthesizeVoice

from .errors import UpstreamError

if TYPE_CHECKING:
    from wyoming.server import AsyncEventHandler

_LOGGER = logging.getLogger(__name__)


@dataclass
class StreamResult:
    audio_started: bool = False
    first_audio_time: float | None = None
    # perf_counter() timestamp of the first relayed chunk
    first_audio_at: float | None = None


class UpstreamTts:
    """Wyoming TTS server that receives one ``synthesize`` per segment."""

    def __init__(self, uri: str, timeout: float = 30.0) -> None:
        self.uri = uri
        self.timeout = timeout

    async def _read_event(self, client: AsyncClient) -> Event:
        event = await asyncio.wait_for(client.read_event(), timeout=self.timeout)
        if event is None:
            raise UpstreamError(f"Upstream {self.uri} disconnected")
        if Error.is_type(event.type):
            err = Error.from_event(event)
            raise UpstreamError(f"Upstream error ({err.code}): {err.text}")
        return event

    async def describe(self) -> Info:
        async with AsyncClient.from_uri(self.uri) as client:
            await client.write_event(Describe().event())
            while True:
                event = await self._read_event(client)
                if Info.is_type(event.type):
                    return Info.from_event(event)

    async def synthesize_stream(
        self,
        text: str,
        voice: SynthesizeVoice | None = None,
    ) -> AsyncGenerator[Event, None]:
        """Yield the upstream audio-start and audio-chunk events for ``text``."""
        _LOGGER.debug("Upstream synth: voice=%s text=%r", voice.name if voice else None, text)

        async with AsyncClient.from_uri(self.uri) as client:
            await client.write_event(Synthesize(text=text, voice=voice).event())
            while True:
                event = await self._read_event(client)
                if AudioStop.is_type(event.type):
                    return
                if AudioStart.is_type(event.type) or AudioChunk.is_type(event.type):
                    yield event

    async def stream_to_handler(
        self,
        handler: "AsyncEventHandler",
        text: str,
        voice: SynthesizeVoice | None,
        write_start: bool,
    ) -> StreamResult:
        result = StreamResult()
        start = time.perf_counter()

        async for event in self.synthesize_stream(text, voice):
            if AudioStart.is_type(event.type):
                if write_start and not result.audio_started:
                    await handler.write_event(event)
                    result.audio_started = True
                continue

            if result.first_audio_at is None:
                result.first_audio_at = time.perf_counter()
                result.first_audio_time = result.first_audio_at - start
                _LOGGER.debug("First audio chunk: %.3fs", result.first_audio_time)

            await handler.write_event(event)

        return result
