class SegmenterError(RuntimeError):
    """Base class for errors raised by wyoming-segmenter."""


class StreamClosedError(SegmenterError):
    def __init__(self, message: str = "Stream is closed") -> None:
        super().__init__(message)


class UpstreamError(SegmenterError):
    """The upstream TTS server failed or hung up mid-synthesis."""
