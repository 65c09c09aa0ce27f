#!/usr/bin/env python3
import argparse
import asyncio
import contextlib
import logging
import signal
from functools import partial

from wyoming.info import Attribution, Info, TtsProgram, TtsVoice
from wyoming.server import AsyncServer

from . import SERVICE_NAME, __version__
from .basic import SentenceTokenizer, WordTokenizer
from .config import Settings
from .handler import SegmenterEventHandler
from .upstream import UpstreamTts

_LOGGER = logging.getLogger(__name__)


def parse_args(defaults: Settings, argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Wyoming streaming text segmenter")
    parser.add_argument("--uri", default=defaults.uri)
    parser.add_argument(
        "--upstream-uri",
        default=defaults.upstream_uri,
        help="URI of the Wyoming TTS server that synthesizes each segment",
    )
    parser.add_argument("--upstream-timeout", type=float, default=defaults.upstream_timeout)
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--mode", default=defaults.mode, choices=["sentence", "word"])
    parser.add_argument("--min-sentence-len", type=int, default=defaults.min_sentence_len)
    parser.add_argument("--sentence-context-len", type=int, default=defaults.sentence_context_len)
    parser.add_argument("--min-word-len", type=int, default=defaults.min_word_len)
    parser.add_argument("--word-context-len", type=int, default=defaults.word_context_len)
    parser.add_argument(
        "--ignore-punctuation",
        action=argparse.BooleanOptionalAction,
        default=defaults.ignore_punctuation,
        help="Strip punctuation from words (word mode)",
    )
    parser.add_argument("--version", action="version", version=__version__)
    return parser.parse_args(argv)


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Re-validate the command line overrides against the Settings constraints."""
    return Settings(**vars(args))


def build_tokenizer(settings: Settings) -> SentenceTokenizer | WordTokenizer:
    if settings.mode == "word":
        return WordTokenizer(
            ignore_punctuation=settings.ignore_punctuation,
            min_word_len=settings.min_word_len,
            stream_context_len=settings.word_context_len,
        )
    return SentenceTokenizer(
        min_sentence_len=settings.min_sentence_len,
        stream_context_len=settings.sentence_context_len,
    )


def build_info(upstream_info: Info) -> Info:
    voices: list[TtsVoice] = []
    for program in upstream_info.tts:
        voices.extend(program.voices)

    return Info(
        tts=[
            TtsProgram(
                name=SERVICE_NAME,
                description="Streaming segmenter in front of a Wyoming TTS server",
                attribution=Attribution(name="wyoming-segmenter", url=""),
                installed=True,
                voices=voices,
                version=__version__,
                supports_synthesize_streaming=True,
            )
        ]
    )


async def main() -> None:
    settings = resolve_settings(parse_args(Settings()))

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    _LOGGER.info("Starting %s service", SERVICE_NAME)
    _LOGGER.info("Upstream TTS: %s (mode=%s)", settings.upstream_uri, settings.mode)

    upstream = UpstreamTts(settings.upstream_uri, timeout=settings.upstream_timeout)
    upstream_info = await upstream.describe()
    wyoming_info = build_info(upstream_info)
    if not wyoming_info.tts[0].voices:
        _LOGGER.warning("Upstream %s reported no voices", settings.upstream_uri)

    tokenizer = build_tokenizer(settings)
    server = AsyncServer.from_uri(settings.uri)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_signal() -> None:
        _LOGGER.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal)

    _LOGGER.info("Server ready on %s", settings.uri)

    try:
        server_task = asyncio.create_task(
            server.run(partial(SegmenterEventHandler, wyoming_info, upstream, tokenizer))
        )
        shutdown_task = asyncio.create_task(shutdown_event.wait())

        _, pending = await asyncio.wait(
            [server_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        for task in pending:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    finally:
        _LOGGER.info("Shutdown complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
