# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Reference oracle for UserComment encodings

Enumerates the byte sequences a producer could plausibly emit for a
given comment under the UNICODE character code. The two base
hypotheses are UTF-16 little-endian ("le") and big-endian ("be")
payloads without a byte-order mark. The extended set adds variants
observed in the wild: payloads with a byte-order mark and UTF-8
payloads written under the UNICODE prefix.

Copyright 2025 DNAi inc.
"""

from dataclasses import dataclass
from typing import Tuple

from exifcomment.exceptions import EncodingError, FormatError
from exifcomment.tag_layout import PREFIX_LENGTH, ByteOrder, CharacterCode, split, tag_for


LABEL_LE = 'le'
LABEL_BE = 'be'
LABEL_LE_BOM = 'le-bom'
LABEL_BE_BOM = 'be-bom'
LABEL_UTF8 = 'utf8'

_BOM_LE = b'\xff\xfe'
_BOM_BE = b'\xfe\xff'


@dataclass(frozen=True)
class EncodingCandidate:
    """One hypothesis of the bytes a correct encoder would emit."""
    label: str
    data: bytes

    def __post_init__(self):
        object.__setattr__(self, 'data', bytes(self.data))
        if len(self.data) < PREFIX_LENGTH:
            raise FormatError(
                f"Candidate {self.label!r} is {len(self.data)} bytes, "
                f"need at least {PREFIX_LENGTH}"
            )

    @property
    def prefix(self) -> bytes:
        return split(self.data)[0]

    @property
    def payload(self) -> bytes:
        return split(self.data)[1]


def candidates(text: str, extended: bool = False) -> Tuple[EncodingCandidate, ...]:
    """
    Enumerate expected UserComment values for text.

    Args:
        text: Comment text
        extended: Also include BOM-prefixed and UTF-8 variants

    Returns:
        Tuple of candidates, "le" first and "be" second
    """
    prefix = tag_for(CharacterCode.UNICODE)
    try:
        le_payload = text.encode(ByteOrder.LE.codec)
        be_payload = text.encode(ByteOrder.BE.codec)
    except UnicodeEncodeError as e:
        raise EncodingError(
            f"Text cannot be encoded as UTF-16 at position {e.start}: {e.reason}"
        ) from e

    result = [
        EncodingCandidate(LABEL_LE, prefix + le_payload),
        EncodingCandidate(LABEL_BE, prefix + be_payload),
    ]
    if extended:
        result.extend([
            EncodingCandidate(LABEL_LE_BOM, prefix + _BOM_LE + le_payload),
            EncodingCandidate(LABEL_BE_BOM, prefix + _BOM_BE + be_payload),
            EncodingCandidate(LABEL_UTF8, prefix + text.encode('utf-8')),
        ])
    return tuple(result)


def label_for_byte_order(byte_order: ByteOrder) -> str:
    """Return the candidate label a producer honouring byte_order would match."""
    return LABEL_LE if byte_order is ByteOrder.LE else LABEL_BE
