from __future__ import annotations


class ChannelAError(Exception):
    """Base class for every error raised by the Channel A core."""


class ParseError(ChannelAError, ValueError):
    """Logic description is not valid JSON text (or exceeds the parser limits)."""


class EncodingError(ChannelAError, ValueError):
    """Payload or proposal text cannot be encoded deterministically."""


class CompressionFault(ChannelAError):
    """Internal compressor failure.

    Never escapes the complexity scorer: it is converted to the fail-safe
    maximum score.
    """
