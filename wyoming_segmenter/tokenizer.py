from __future__ import annotations

from abc import ABC, abstractmethod

from .token_stream import BufferedTokenStream
from .tokens import TokenData, TokenizeFunc

# fmt: off
PUNCTUATIONS = frozenset([
    "!", '"', "#", "$", "%", "&", "'", "(", ")", "*", "+", ",", "-", ".", "/", ":", ";", "<", "=",
    ">", "?", "@", "[", "\\", "]", "^", "_", "`", "{", "|", "}", "~", "±", "—", "‘", "’", "“", "”",
    "…",
])
# fmt: on


class _StreamAdapter:
    """Exposes the push/flush/iterate contract of a wrapped BufferedTokenStream."""

    def __init__(self, tokenize_fn: TokenizeFunc, min_token_len: int, min_context_len: int) -> None:
        self._stream = BufferedTokenStream(tokenize_fn, min_token_len, min_context_len)

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def push_text(self, text: str) -> None:
        self._stream.push_text(text)

    def flush(self) -> None:
        self._stream.flush()

    def end_input(self) -> None:
        self._stream.end_input()

    def close(self) -> None:
        self._stream.close()

    def __aiter__(self) -> _StreamAdapter:
        return self

    async def __anext__(self) -> TokenData:
        return await self._stream.__anext__()


class SentenceStream(_StreamAdapter):
    """Buffered stream of sentences."""


class WordStream(_StreamAdapter):
    """Buffered stream of words."""


class SentenceTokenizer(ABC):
    @abstractmethod
    def tokenize(self, text: str, language: str | None = None) -> list[str]:
        """Split a complete text into sentences."""

    @abstractmethod
    def stream(self, language: str | None = None) -> SentenceStream:
        """Return a fresh stream that segments pushed text into sentences."""


class WordTokenizer(ABC):
    @abstractmethod
    def tokenize(self, text: str, language: str | None = None) -> list[str]:
        """Split a complete text into words."""

    @abstractmethod
    def stream(self, language: str | None = None) -> WordStream:
        """Return a fresh stream that segments pushed text into words."""
