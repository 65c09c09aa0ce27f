from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class TokenData:
    """A unit of stabilized text ready for consumption.

    Units sharing a ``segment_id`` came from the same span of input between
    two flushes.
    """

    segment_id: str
    token: str


@dataclass(frozen=True)
class PlainToken:
    text: str


@dataclass(frozen=True)
class PositionedToken:
    """Token text plus the ``[start, end)`` slice of the input it came from."""

    text: str
    start: int
    end: int


Token = Union[PlainToken, PositionedToken]

# Tokenize functions may return bare strings or (text, start, end) tuples too.
RawToken = Union[str, tuple[str, int, int], PlainToken, PositionedToken]
TokenizeFunc = Callable[[str], Sequence[RawToken]]


def as_token(raw: RawToken) -> Token:
    if isinstance(raw, (PlainToken, PositionedToken)):
        return raw
    if isinstance(raw, str):
        return PlainToken(raw)
    if isinstance(raw, tuple) and len(raw) == 3:
        text, start, end = raw
        return PositionedToken(text, int(start), int(end))
    raise TypeError(f"Unsupported token shape: {raw!r}")


def tokenize(func: TokenizeFunc, text: str) -> list[Token]:
    return [as_token(raw) for raw in func(text)]
