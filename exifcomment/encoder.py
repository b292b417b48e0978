# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
UserComment encoder

Turns text into a raw UserComment value: the 8-byte character-code
prefix followed by the encoded payload. UNICODE payloads carry no
byte-order mark; the byte order is a policy chosen by the caller.

Copyright 2025 DNAi inc.
"""

from typing import Optional

from exifcomment.decoder import UserCommentRecord
from exifcomment.exceptions import EncodingError
from exifcomment.tag_layout import ByteOrder, CharacterCode, tag_for


def _encode_payload(text: str, code: CharacterCode, byte_order: Optional[ByteOrder]) -> bytes:
    if code is CharacterCode.UNICODE:
        if not isinstance(byte_order, ByteOrder):
            raise EncodingError("UNICODE character code requires a byte order (LE or BE)")
        try:
            return text.encode(byte_order.codec)
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"Text cannot be encoded as UTF-16 at position {e.start}: {e.reason}"
            ) from e

    if code is CharacterCode.ASCII:
        try:
            return text.encode('ascii')
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"Text contains non-ASCII character {text[e.start]!r} at position {e.start}"
            ) from e

    # JIS and UNDEFINED have no text encoding here; raw payloads go
    # through UserCommentRecord directly
    raise EncodingError(f"No text encoding defined for character code {code.value}")


def encode(text: str, code: CharacterCode, byte_order: Optional[ByteOrder] = None) -> bytes:
    """
    Encode text as a raw UserComment value.

    Args:
        text: Comment text
        code: Character code to declare in the prefix
        byte_order: Byte order for UNICODE payloads (required for UNICODE)

    Returns:
        Prefix + payload bytes. Empty text yields exactly the 8-byte prefix.

    Raises:
        UnsupportedCodeError: If code is not a CharacterCode
        EncodingError: If the text cannot be represented in code
    """
    prefix = tag_for(code)
    return prefix + _encode_payload(text, code, byte_order)


def encode_record(
    text: str,
    code: CharacterCode,
    byte_order: Optional[ByteOrder] = None
) -> UserCommentRecord:
    """Encode text and return it as a UserCommentRecord value."""
    tag_for(code)
    return UserCommentRecord(code=code, payload=_encode_payload(text, code, byte_order))
