from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for wyoming-segmenter.

    Every field can be set through a ``SEGMENTER_*`` environment variable or
    ``.env``; command line flags in __main__.py take precedence.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEGMENTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Server ---
    uri: str = Field(default="tcp://0.0.0.0:10201")
    log_level: str = Field(default="INFO")

    # --- Upstream TTS ---
    upstream_uri: str = Field(default="tcp://127.0.0.1:10200")
    upstream_timeout: float = Field(default=30.0, gt=0.0)

    # --- Segmentation ---
    mode: Literal["sentence", "word"] = Field(default="sentence")

    min_sentence_len: int = Field(default=20, ge=1, le=1000)
    sentence_context_len: int = Field(default=10, ge=0, le=1000)

    min_word_len: int = Field(default=1, ge=1, le=100)
    word_context_len: int = Field(default=1, ge=0, le=100)
    ignore_punctuation: bool = Field(default=False)
