"""Test binary discovery in build output."""

from debugbin.extract.parser import (
    ArtifactRecord,
    detect_format,
    extract_binary_path,
    normalize_token,
    parse_records,
)
from debugbin.extract.store import read_binary_path, write_binary_path

__all__ = [
    "ArtifactRecord",
    "detect_format",
    "extract_binary_path",
    "normalize_token",
    "parse_records",
    "read_binary_path",
    "write_binary_path",
]
