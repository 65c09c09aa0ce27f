from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from .channel import TokenChannel
from .errors import StreamClosedError
from .tokens import PositionedToken, Token, TokenData, TokenizeFunc, tokenize

_LOGGER = logging.getLogger(__name__)


def _new_segment_id() -> str:
    return str(uuid.uuid4())


@dataclass
class SegmentState:
    in_buf: str = ""
    out_buf: str = ""
    segment_id: str = field(default_factory=_new_segment_id)


def _advance(in_buf: str, tok: Token) -> str:
    if isinstance(tok, PositionedToken):
        return in_buf[tok.end :]
    # Approximate: the first occurrence may sit earlier than the real token.
    idx = in_buf.find(tok.text)
    return in_buf[max(0, idx) + len(tok.text) :].lstrip()


class BufferedTokenStream:
    """
    Re-tokenizes a growing text buffer and emits stabilized units.

    A token is only emitted once a later token exists after it, so its boundary
    cannot move with more input. Consecutive tokens are joined until the text
    reaches ``min_token_len``. Tokenization does not start before the buffer
    holds ``min_context_len`` characters.

    Tokenize functions returning ``PositionedToken`` (or ``(text, start, end)``
    tuples) are consumed exactly. Plain strings are located by their first
    occurrence in the buffer, which over- or under-consumes when the same text
    appears earlier than the token itself.
    """

    def __init__(self, tokenize_fn: TokenizeFunc, min_token_len: int, min_context_len: int) -> None:
        if min_token_len < 1:
            raise ValueError(f"min_token_len must be >= 1, got {min_token_len}")
        if min_context_len < 0:
            raise ValueError(f"min_context_len must be >= 0, got {min_context_len}")

        self._tokenize_fn = tokenize_fn
        self._min_token_len = min_token_len
        self._min_context_len = min_context_len
        self._state = SegmentState()
        self._channel: TokenChannel[TokenData] = TokenChannel()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push_text(self, text: str) -> None:
        if self._closed:
            raise StreamClosedError()

        state = self._state
        state.in_buf += text
        if len(state.in_buf) < self._min_context_len:
            return

        while True:
            tokens = tokenize(self._tokenize_fn, state.in_buf)
            if len(tokens) <= 1:
                break

            tok = tokens[0]
            remaining = _advance(state.in_buf, tok)
            if remaining == state.in_buf:
                _LOGGER.debug("Token %r consumed no input, waiting for more text", tok.text)
                break

            if state.out_buf:
                state.out_buf += " "
            state.out_buf += tok.text

            if len(state.out_buf) >= self._min_token_len:
                self._emit(state.out_buf)
                state.out_buf = ""

            state.in_buf = remaining

    def flush(self) -> None:
        if self._closed:
            raise StreamClosedError()

        state = self._state
        if state.in_buf or state.out_buf:
            tail = " ".join(tok.text for tok in tokenize(self._tokenize_fn, state.in_buf))
            if tail:
                state.out_buf = f"{state.out_buf} {tail}" if state.out_buf else tail
            if state.out_buf:
                self._emit(state.out_buf)

        old_segment = state.segment_id
        self._state = SegmentState()
        _LOGGER.debug("Flushed segment %s, next segment %s", old_segment, self._state.segment_id)

    def end_input(self) -> None:
        if self._closed:
            raise StreamClosedError()
        self.flush()
        self.close()

    def close(self) -> None:
        self._channel.close()
        self._closed = True

    def _emit(self, text: str) -> None:
        _LOGGER.debug("Emitting token (segment=%s): %r", self._state.segment_id, text)
        self._channel.send_nowait(TokenData(segment_id=self._state.segment_id, token=text))

    def __aiter__(self) -> BufferedTokenStream:
        return self

    async def __anext__(self) -> TokenData:
        return await self._channel.__anext__()
