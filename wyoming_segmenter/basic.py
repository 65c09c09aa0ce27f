"""Language-agnostic sentence and word tokenizers."""

from __future__ import annotations

import logging
import re
from functools import partial

from sentence_stream import SentenceBoundaryDetector

from . import tokenizer
from .tokenizer import PUNCTUATIONS
from .tokens import PositionedToken

_LOGGER = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\S+")


def _locate(text: str, sentence: str, cursor: int) -> tuple[int, int] | None:
    start = text.find(sentence, cursor)
    if start >= 0:
        return start, start + len(sentence)

    # The detector may collapse whitespace, so match non-space characters only.
    pos = cursor
    first: int | None = None
    for ch in sentence:
        if ch.isspace():
            continue
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text) or text[pos] != ch:
            return None
        if first is None:
            first = pos
        pos += 1

    if first is None:
        return None
    return first, pos


def split_sentences(text: str) -> list[PositionedToken]:
    sbd = SentenceBoundaryDetector()
    sentences = list(sbd.add_chunk(text))
    remaining = sbd.finish()
    if remaining and remaining.strip():
        sentences.append(remaining.strip())

    tokens: list[PositionedToken] = []
    cursor = 0
    for i, sentence in enumerate(sentences):
        span = _locate(text, sentence, cursor)
        if span is None:
            _LOGGER.debug("Could not align sentence %r at offset %s", sentence, cursor)
            end = len(text) if i == len(sentences) - 1 else min(len(text), cursor + len(sentence))
            span = (cursor, end)
        tokens.append(PositionedToken(sentence, span[0], span[1]))
        cursor = span[1]

    return tokens


def split_words(text: str, ignore_punctuation: bool = False) -> list[PositionedToken]:
    tokens: list[PositionedToken] = []
    for match in _WORD_RE.finditer(text):
        word = match.group()
        if ignore_punctuation:
            word = "".join(ch for ch in word if ch not in PUNCTUATIONS)
            if not word:
                continue
        tokens.append(PositionedToken(word, match.start(), match.end()))
    return tokens


class SentenceTokenizer(tokenizer.SentenceTokenizer):
    def __init__(self, min_sentence_len: int = 20, stream_context_len: int = 10) -> None:
        self._min_sentence_len = min_sentence_len
        self._stream_context_len = stream_context_len

    def tokenize(self, text: str, language: str | None = None) -> list[str]:
        """Split text into sentences, merging neighbours shorter than min_sentence_len."""
        merged: list[str] = []
        buf = ""
        for tok in split_sentences(text):
            buf = f"{buf} {tok.text}" if buf else tok.text
            if len(buf) >= self._min_sentence_len:
                merged.append(buf)
                buf = ""
        if buf:
            merged.append(buf)
        return merged

    def stream(self, language: str | None = None) -> tokenizer.SentenceStream:
        return tokenizer.SentenceStream(split_sentences, self._min_sentence_len, self._stream_context_len)


class WordTokenizer(tokenizer.WordTokenizer):
    def __init__(
        self,
        ignore_punctuation: bool = False,
        min_word_len: int = 1,
        stream_context_len: int = 1,
    ) -> None:
        self._ignore_punctuation = ignore_punctuation
        self._min_word_len = min_word_len
        self._stream_context_len = stream_context_len

    def tokenize(self, text: str, language: str | None = None) -> list[str]:
        return [tok.text for tok in split_words(text, self._ignore_punctuation)]

    def stream(self, language: str | None = None) -> tokenizer.WordStream:
        return tokenizer.WordStream(
            partial(split_words, ignore_punctuation=self._ignore_punctuation),
            self._min_word_len,
            self._stream_context_len,
        )
