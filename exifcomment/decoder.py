# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
UserComment decoder

Parses a raw UserComment value into its character code and payload.
Decoding never interprets the payload as text: a UNICODE payload does
not say which byte order it was written in, so the payload bytes are
handed on untouched. decode_text() is the explicit, opt-in way to turn
a record into a string once the caller has chosen a byte order.

Copyright 2025 DNAi inc.
"""

from dataclasses import dataclass
from typing import Optional

from exifcomment.exceptions import EncodingError, UnsupportedCodeError
from exifcomment.tag_layout import (
    PREFIX_LENGTH,
    ByteOrder,
    CharacterCode,
    code_for_tag,
    split,
    tag_for,
)


@dataclass(frozen=True)
class UserCommentRecord:
    """
    A decoded UserComment value.

    The serialized form is always tag_for(code) + payload, so its length
    is 8 + len(payload).
    """
    code: CharacterCode
    payload: bytes = b''

    def __post_init__(self):
        tag_for(self.code)
        object.__setattr__(self, 'payload', bytes(self.payload))

    def to_bytes(self) -> bytes:
        return tag_for(self.code) + self.payload

    def __len__(self) -> int:
        return PREFIX_LENGTH + len(self.payload)


def decode(data: bytes, strict: bool = False) -> UserCommentRecord:
    """
    Parse a raw UserComment value.

    Args:
        data: Raw tag value (prefix + payload)
        strict: Raise on an unknown prefix instead of classifying it as UNDEFINED

    Returns:
        UserCommentRecord with the payload bytes untouched

    Raises:
        FormatError: If data is shorter than 8 bytes
        UnsupportedCodeError: If strict is set and the prefix is unknown
    """
    prefix, payload = split(data)
    try:
        code = code_for_tag(prefix)
    except UnsupportedCodeError:
        if strict:
            raise
        code = CharacterCode.UNDEFINED
    return UserCommentRecord(code=code, payload=payload)


def decode_text(record: UserCommentRecord, byte_order: Optional[ByteOrder] = None) -> str:
    """
    Interpret a record's payload as text.

    Args:
        record: Decoded UserComment record
        byte_order: Byte order of UNICODE code units (required for UNICODE)

    Returns:
        Text with trailing NUL padding removed

    Raises:
        EncodingError: If the payload is not valid in the record's code,
                       or the code has no text interpretation
    """
    if record.code is CharacterCode.UNICODE:
        if not isinstance(byte_order, ByteOrder):
            raise EncodingError("UNICODE payload requires a byte order to interpret")
        codec = byte_order.codec
    elif record.code is CharacterCode.ASCII:
        codec = 'ascii'
    elif record.code is CharacterCode.JIS:
        codec = 'iso2022_jp'
    else:
        raise EncodingError("UNDEFINED payload has no text interpretation")

    try:
        text = record.payload.decode(codec)
    except UnicodeDecodeError as e:
        raise EncodingError(
            f"Payload is not valid {codec} at byte {e.start}: {e.reason}"
        ) from e
    return text.rstrip('\x00')
