from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from wyoming.audio import AudioStop
from wyoming.error import Error
from wyoming.tts import SynthesizeChunk, SynthesizeStart, SynthesizeStopped, SynthesizeVoice

from .tokenizer import SentenceStream, SentenceTokenizer, WordStream, WordTokenizer
from .tokens import TokenData
from .upstream import UpstreamTts

if TYPE_CHECKING:
    from wyoming.server import AsyncEventHandler

_LOGGER = logging.getLogger(__name__)


@dataclass
class StreamingSession:
    stream: SentenceStream | WordStream
    voice: SynthesizeVoice | None = None
    consumer: asyncio.Task[None] | None = None
    start_time: float = field(default_factory=time.perf_counter)
    first_audio_time: float | None = None
    audio_started: bool = False
    total_chars: int = 0
    segments: int = 0


class StreamingHandler:
    def __init__(
        self,
        handler: "AsyncEventHandler",
        upstream: UpstreamTts,
        tokenizer: SentenceTokenizer | WordTokenizer,
    ) -> None:
        self._handler = handler
        self._upstream = upstream
        self._tokenizer = tokenizer
        self._session: StreamingSession | None = None

    @property
    def has_active_session(self) -> bool:
        return self._session is not None

    async def _stop_consumer(self, session: StreamingSession) -> None:
        if not session.stream.closed:
            session.stream.close()

        task = session.consumer
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            _LOGGER.debug("Segment consumer ended with an error", exc_info=True)

    async def _cleanup_session(self) -> None:
        if self._session is None:
            return
        session, self._session = self._session, None
        await self._stop_consumer(session)
        if session.audio_started:
            await self._handler.write_event(AudioStop().event())
        await self._handler.write_event(SynthesizeStopped().event())

    async def handle_disconnect(self) -> None:
        """Drop the session of a client that hung up; nothing is written back."""
        session, self._session = self._session, None
        if session is None:
            return
        _LOGGER.debug("Client disconnected mid-stream after %s segment(s)", session.segments)
        await self._stop_consumer(session)

    async def handle_error(self, err: Exception) -> None:
        _LOGGER.warning("Streaming synthesis failed: %s", err)
        session, self._session = self._session, None
        if session is not None:
            await self._stop_consumer(session)
            if session.audio_started:
                await self._handler.write_event(AudioStop().event())
        await self._handler.write_event(Error(text=str(err), code=err.__class__.__name__).event())
        await self._handler.write_event(SynthesizeStopped().event())

    async def handle_start(self, event: SynthesizeStart) -> None:
        if self._session is not None:
            await self._cleanup_session()
        language = event.voice.language if event.voice else None
        session = StreamingSession(stream=self._tokenizer.stream(language=language), voice=event.voice)
        session.consumer = asyncio.create_task(self._consume(session))
        self._session = session

    async def handle_chunk(self, event: SynthesizeChunk) -> None:
        if self._session is None:
            return
        consumer = self._session.consumer
        if consumer is not None and consumer.done():
            # Surface upstream failures without waiting for synthesize-stop.
            consumer.result()
        self._session.stream.push_text(event.text)

    async def handle_stop(self) -> None:
        if self._session is None:
            return
        session = self._session
        session.stream.end_input()
        if session.consumer is not None:
            await session.consumer

        if session.audio_started:
            await self._handler.write_event(AudioStop().event())
        await self._handler.write_event(SynthesizeStopped().event())
        self._session = None

        _LOGGER.info(
            "Streamed %s segment(s), %s chars in %.2fs (first audio: %s)",
            session.segments,
            session.total_chars,
            time.perf_counter() - session.start_time,
            f"{session.first_audio_time:.3f}s" if session.first_audio_time is not None else "n/a",
        )

    async def _consume(self, session: StreamingSession) -> None:
        async for data in session.stream:
            await self._synthesize_segment(session, data)

    async def _synthesize_segment(self, session: StreamingSession, data: TokenData) -> None:
        session.segments += 1
        session.total_chars += len(data.token)
        _LOGGER.debug("Segment %s (%s): %r", session.segments, data.segment_id, data.token)

        result = await self._upstream.stream_to_handler(
            self._handler, data.token, session.voice, write_start=not session.audio_started
        )
        session.audio_started = session.audio_started or result.audio_started
        if result.first_audio_at is not None and session.first_audio_time is None:
            session.first_audio_time = result.first_audio_at - session.start_time
