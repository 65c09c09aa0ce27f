import asyncio

from wyoming.event import Event
from wyoming.info import Attribution, Describe, Info, TtsProgram
from wyoming.tts import Synthesize, SynthesizeChunk, SynthesizeStart, SynthesizeStop

from wyoming_segmenter.basic import WordTokenizer
from wyoming_segmenter.handler import SegmenterEventHandler


class RecordingEventHandler(SegmenterEventHandler):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.events: list[Event] = []

    async def write_event(self, event: Event) -> None:
        self.events.append(event)


def _info() -> Info:
    return Info(
        tts=[
            TtsProgram(
                name="wyoming-segmenter",
                description="test",
                attribution=Attribution(name="", url=""),
                installed=True,
                voices=[],
                version="0.0.0",
                supports_synthesize_streaming=True,
            )
        ]
    )


def _handler(upstream) -> RecordingEventHandler:
    return RecordingEventHandler(_info(), upstream, WordTokenizer(), None, None)


def test_describe(fake_upstream):
    handler = _handler(fake_upstream)
    assert asyncio.run(handler.handle_event(Describe().event()))
    assert Info.is_type(handler.events[0].type)


def test_one_shot_synthesize(fake_upstream):
    handler = _handler(fake_upstream)
    asyncio.run(handler.handle_event(Synthesize(text=" hello\n  world ").event()))

    assert fake_upstream.texts == ["hello", "world"]
    assert fake_upstream.write_start == [True, False]
    assert [e.type for e in handler.events] == ["audio-stop"]


def test_one_shot_empty_text(fake_upstream):
    handler = _handler(fake_upstream)
    asyncio.run(handler.handle_event(Synthesize(text="   ").event()))

    assert fake_upstream.texts == []
    assert [e.type for e in handler.events] == ["synthesize-stopped"]


def test_one_shot_failure(fake_upstream):
    fake_upstream.fail_on = "boom"
    handler = _handler(fake_upstream)
    asyncio.run(handler.handle_event(Synthesize(text="boom").event()))

    assert [e.type for e in handler.events] == ["error", "synthesize-stopped"]


def test_streaming_session_ignores_compat_synthesize(fake_upstream):
    handler = _handler(fake_upstream)

    async def _run() -> None:
        await handler.handle_event(SynthesizeStart().event())
        await handler.handle_event(SynthesizeChunk(text="streamed text").event())
        await handler.handle_event(Synthesize(text="streamed text").event())
        await handler.handle_event(SynthesizeStop().event())

    asyncio.run(_run())

    assert fake_upstream.texts == ["streamed", "text"]
    assert [e.type for e in handler.events] == ["audio-stop", "synthesize-stopped"]


def test_streaming_failure_reported(fake_upstream):
    fake_upstream.fail_on = "bad"
    handler = _handler(fake_upstream)

    async def _run() -> None:
        await handler.handle_event(SynthesizeStart().event())
        await handler.handle_event(SynthesizeChunk(text="bad").event())
        await handler.handle_event(SynthesizeStop().event())

    asyncio.run(_run())

    assert [e.type for e in handler.events] == ["error", "synthesize-stopped"]


def test_unknown_event_not_handled(fake_upstream):
    handler = _handler(fake_upstream)
    assert asyncio.run(handler.handle_event(Event(type="ping"))) is False


def test_disconnect_mid_stream_releases_session(fake_upstream):
    handler = _handler(fake_upstream)

    async def _run():
        await handler.handle_event(SynthesizeStart().event())
        await handler.handle_event(SynthesizeChunk(text="hello wor").event())
        for _ in range(5):
            await asyncio.sleep(0)
        session = handler._streaming._session
        await handler.disconnect()
        await asyncio.sleep(0.05)
        return session

    session = asyncio.run(_run())

    assert session.stream.closed
    assert session.consumer.done()
    assert fake_upstream.texts == ["hello"]
    assert handler.events == []
