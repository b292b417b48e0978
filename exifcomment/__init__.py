# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
exifcomment - EXIF UserComment byte-layout codec and verification harness

Encodes and decodes the EXIF UserComment tag (8-byte character-code
prefix + payload), enumerates the byte sequences a producer could
plausibly write for a comment, and classifies which one a real file
contains. Reading and writing JPEG, WebP and bare EXIF files is done
in pure Python by directly reading binary file structures.

Copyright 2025 DNAi inc.
"""

__version__ = "0.1.0"
__author__ = "DNAi inc."

from exifcomment.exceptions import (
    ExifCommentError,
    FormatError,
    EncodingError,
    UnsupportedCodeError,
    MetadataReadError,
    MetadataWriteError,
)
from exifcomment.tag_layout import (
    USER_COMMENT_TAG_ID,
    ByteOrder,
    CharacterCode,
    tag_for,
    code_for_tag,
)
from exifcomment.decoder import UserCommentRecord, decode, decode_text
from exifcomment.encoder import encode, encode_record
from exifcomment.oracle import EncodingCandidate, candidates, label_for_byte_order
from exifcomment.reporter import ComparisonResult, ComparisonStatus, compare, format_hex
from exifcomment.container import ExifContainer, load, save, read_tags
from exifcomment.harness import VerificationConfig, VerificationOutcome, run_verification

__all__ = [
    "ExifCommentError",
    "FormatError",
    "EncodingError",
    "UnsupportedCodeError",
    "MetadataReadError",
    "MetadataWriteError",
    "USER_COMMENT_TAG_ID",
    "ByteOrder",
    "CharacterCode",
    "tag_for",
    "code_for_tag",
    "UserCommentRecord",
    "decode",
    "decode_text",
    "encode",
    "encode_record",
    "EncodingCandidate",
    "candidates",
    "label_for_byte_order",
    "ComparisonResult",
    "ComparisonStatus",
    "compare",
    "format_hex",
    "ExifContainer",
    "load",
    "save",
    "read_tags",
    "VerificationConfig",
    "VerificationOutcome",
    "run_verification",
]
