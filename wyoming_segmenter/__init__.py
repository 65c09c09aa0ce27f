from importlib.metadata import PackageNotFoundError, version

from .channel import TokenChannel
from .errors import SegmenterError, StreamClosedError, UpstreamError
from .token_stream import BufferedTokenStream
from .tokens import PlainToken, PositionedToken, TokenData

try:
    __version__ = version("wyoming-segmenter")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"

SERVICE_NAME = "wyoming-segmenter"

__all__ = [
    "BufferedTokenStream",
    "PlainToken",
    "PositionedToken",
    "SegmenterError",
    "StreamClosedError",
    "TokenChannel",
    "TokenData",
    "UpstreamError",
]
