# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
UserComment tag layout

The EXIF UserComment tag (0x9286) is stored as type UNDEFINED. Its value
starts with an 8-byte character-code identifier followed by the payload:

    offset 0..7  : character code ("ASCII\\0\\0\\0", "JIS\\0\\0\\0\\0\\0",
                   "UNICODE\\0" or 8 zero bytes for undefined)
    offset 8..N  : payload bytes, meaning dependent on the code

Copyright 2025 DNAi inc.
"""

from enum import Enum
from typing import Dict, Tuple

from exifcomment.exceptions import FormatError, UnsupportedCodeError


# EXIF tag ids used by this package
USER_COMMENT_TAG_ID = 0x9286
EXIF_IFD_POINTER_TAG_ID = 0x8769

PREFIX_LENGTH = 8


class CharacterCode(Enum):
    """Character codes allowed in the UserComment prefix."""
    ASCII = "ASCII"
    JIS = "JIS"
    UNICODE = "UNICODE"
    UNDEFINED = "UNDEFINED"


class ByteOrder(Enum):
    """
    Byte order of 16-bit code units in a UNICODE payload.

    The value is the struct format prefix, matching the endian strings
    used throughout the TIFF reader and writer.
    """
    LE = '<'
    BE = '>'

    @property
    def tiff_marker(self) -> bytes:
        """TIFF header byte-order marker (II or MM)."""
        return b'II' if self is ByteOrder.LE else b'MM'

    @property
    def codec(self) -> str:
        """Python codec name for UTF-16 code units in this byte order."""
        return 'utf-16-le' if self is ByteOrder.LE else 'utf-16-be'

    @classmethod
    def from_tiff_marker(cls, marker: bytes) -> "ByteOrder":
        if marker == b'II':
            return cls.LE
        if marker == b'MM':
            return cls.BE
        raise FormatError(f"Invalid TIFF byte-order marker: {marker!r}")


CHARACTER_CODE_TAGS: Dict[CharacterCode, bytes] = {
    CharacterCode.ASCII: b'ASCII\x00\x00\x00',
    CharacterCode.JIS: b'JIS\x00\x00\x00\x00\x00',
    CharacterCode.UNICODE: b'UNICODE\x00',
    CharacterCode.UNDEFINED: b'\x00' * PREFIX_LENGTH,
}

_TAG_CODES: Dict[bytes, CharacterCode] = {
    tag: code for code, tag in CHARACTER_CODE_TAGS.items()
}


def tag_for(code: CharacterCode) -> bytes:
    """
    Return the 8-byte identifier for a character code.

    Raises:
        UnsupportedCodeError: If code is not a CharacterCode member
    """
    if not isinstance(code, CharacterCode):
        raise UnsupportedCodeError(f"Unknown character code: {code!r}")
    return CHARACTER_CODE_TAGS[code]


def code_for_tag(prefix: bytes) -> CharacterCode:
    """
    Return the character code identified by an 8-byte prefix.

    Raises:
        FormatError: If prefix is not exactly 8 bytes
        UnsupportedCodeError: If prefix matches no known identifier
    """
    if len(prefix) != PREFIX_LENGTH:
        raise FormatError(
            f"Character-code prefix must be {PREFIX_LENGTH} bytes, got {len(prefix)}"
        )
    code = _TAG_CODES.get(bytes(prefix))
    if code is None:
        raise UnsupportedCodeError(f"Unknown character-code prefix: {bytes(prefix).hex()}")
    return code


def split(data: bytes) -> Tuple[bytes, bytes]:
    """Split a raw UserComment value into (prefix, payload)."""
    if len(data) < PREFIX_LENGTH:
        raise FormatError(
            f"UserComment value too short: {len(data)} bytes, need at least {PREFIX_LENGTH}"
        )
    data = bytes(data)
    return data[:PREFIX_LENGTH], data[PREFIX_LENGTH:]
