import logging
from typing import Any

from wyoming.audio import AudioStop
from wyoming.error import Error
from wyoming.event import Event
from wyoming.info import Describe, Info
from wyoming.server import AsyncEventHandler
from wyoming.tts import (
    Synthesize,
    SynthesizeChunk,
    SynthesizeStart,
    SynthesizeStop,
    SynthesizeStopped,
)

from .streaming import StreamingHandler
from .tokenizer import SentenceTokenizer, WordTokenizer
from .upstream import UpstreamTts

_LOGGER = logging.getLogger(__name__)


def _clean_text(text: str) -> str:
    return " ".join(text.replace("\n", " ").strip().split())


class SegmenterEventHandler(AsyncEventHandler):
    def __init__(
        self,
        wyoming_info: Info,
        upstream: UpstreamTts,
        tokenizer: SentenceTokenizer | WordTokenizer,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.wyoming_info = wyoming_info
        self.upstream = upstream
        self.tokenizer = tokenizer
        self._streaming = StreamingHandler(self, upstream, tokenizer)

    async def handle_event(self, event: Event) -> bool:
        if Describe.is_type(event.type):
            await self.write_event(self.wyoming_info.event())
            return True

        if SynthesizeStart.is_type(event.type):
            try:
                await self._streaming.handle_start(SynthesizeStart.from_event(event))
            except Exception as err:
                await self._streaming.handle_error(err)
            return True

        if SynthesizeChunk.is_type(event.type):
            try:
                await self._streaming.handle_chunk(SynthesizeChunk.from_event(event))
            except Exception as err:
                await self._streaming.handle_error(err)
            return True

        if SynthesizeStop.is_type(event.type):
            try:
                await self._streaming.handle_stop()
            except Exception as err:
                await self._streaming.handle_error(err)
            return True

        if Synthesize.is_type(event.type):
            # Streaming clients also send the full text; the session already covers it.
            if self._streaming.has_active_session:
                return True
            try:
                await self._handle_synthesize(Synthesize.from_event(event))
            except Exception as err:
                _LOGGER.warning("Synthesis failed: %s", err)
                await self.write_event(Error(text=str(err), code=err.__class__.__name__).event())
                await self.write_event(SynthesizeStopped().event())
            return True

        return False

    async def disconnect(self) -> None:
        await self._streaming.handle_disconnect()

    async def _handle_synthesize(self, synthesize: Synthesize) -> None:
        text = _clean_text(synthesize.text)
        if not text:
            await self.write_event(SynthesizeStopped().event())
            return

        voice = synthesize.voice
        language = voice.language if voice else None
        audio_started = False

        for segment in self.tokenizer.tokenize(text, language=language):
            result = await self.upstream.stream_to_handler(
                self, segment, voice, write_start=not audio_started
            )
            audio_started = audio_started or result.audio_started

        await self.write_event(AudioStop().event())
