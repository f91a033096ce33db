"""Lowest-level Channel A core utilities.

Dependency direction rules:
- channel_a.core must not import any other channel_a module
"""

from channel_a.core.errors import ChannelAError, CompressionFault, EncodingError, ParseError
from channel_a.core.hash import is_hex_sha256, sha256_bytes, sha256_digest
from channel_a.core.json_canon import (
    MAX_NESTING_DEPTH,
    canonical_ast_bytes,
    canonical_json_bytes,
    encode_compact,
    format_float,
    parse_json_strict,
    sort_keys_recursive,
)
from channel_a.core.schema import SchemaError, load_schema, validate_schema

__all__ = [
    "ChannelAError",
    "CompressionFault",
    "EncodingError",
    "MAX_NESTING_DEPTH",
    "ParseError",
    "SchemaError",
    "canonical_ast_bytes",
    "canonical_json_bytes",
    "encode_compact",
    "format_float",
    "is_hex_sha256",
    "load_schema",
    "parse_json_strict",
    "sha256_bytes",
    "sha256_digest",
    "sort_keys_recursive",
    "validate_schema",
]
