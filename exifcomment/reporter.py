# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Comparison reporter

Classifies the UserComment bytes a producer actually wrote against the
oracle's candidates. The outcome tells apart a producer that wrote
big-endian UTF-16, one that wrote little-endian UTF-16, and one that
wrote something else entirely. A mismatch is a finding, returned as a
value, never raised.

When the container's declared TIFF byte order is known, the result also
records which candidate a conforming producer would have matched.

Copyright 2025 DNAi inc.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from exifcomment.oracle import EncodingCandidate, label_for_byte_order
from exifcomment.tag_layout import PREFIX_LENGTH, ByteOrder, CharacterCode, tag_for


class ComparisonStatus(Enum):
    """Classification of actual UserComment bytes."""
    EXACT_MATCH = "exact_match"
    PREFIX_MISMATCH = "prefix_mismatch"
    PAYLOAD_MISMATCH = "payload_mismatch"


@dataclass(frozen=True)
class ComparisonResult:
    """
    Result of comparing actual bytes against the oracle candidates.

    Fields:
      status         -- classification
      label          -- matching candidate label; set only for EXACT_MATCH
      details        -- read-only mapping of hex dumps and the reason
      expected_label -- label for the container byte order, when known
    """
    status: ComparisonStatus
    label: Optional[str] = None
    details: Mapping[str, str] = field(default_factory=dict, compare=False)
    expected_label: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.status is ComparisonStatus.EXACT_MATCH

    @property
    def conforms(self) -> Optional[bool]:
        """
        Whether the actual bytes follow the container byte order.

        None when no container byte order was supplied.
        """
        if self.expected_label is None:
            return None
        return self.matched and self.label == self.expected_label


def format_hex(data: bytes) -> str:
    """Format bytes as dash-separated uppercase hex, e.g. 55-4E-49."""
    return '-'.join(f'{b:02X}' for b in data)


def compare(
    actual: bytes,
    candidates: Iterable[EncodingCandidate],
    container_byte_order: Optional[ByteOrder] = None
) -> ComparisonResult:
    """
    Classify actual UserComment bytes against candidates.

    Only the UNICODE prefix is compared; any other prefix is a
    PREFIX_MISMATCH. Candidates are tried in declared order and the
    first payload match wins.

    Args:
        actual: Raw UserComment value read back from the file
        candidates: Oracle candidates for the expected text
        container_byte_order: Byte order declared by the container's TIFF header

    Returns:
        ComparisonResult
    """
    actual = bytes(actual)
    candidates = tuple(candidates)
    expected_label = None
    if container_byte_order is not None:
        expected_label = label_for_byte_order(container_byte_order)

    details: Dict[str, str] = {'actual': format_hex(actual)}
    for candidate in candidates:
        details[f'candidate:{candidate.label}'] = format_hex(candidate.payload)

    def _result(status: ComparisonStatus, reason: str, label: Optional[str] = None) -> ComparisonResult:
        details['reason'] = reason
        return ComparisonResult(
            status=status,
            label=label,
            details=MappingProxyType(details),
            expected_label=expected_label,
        )

    if len(actual) < PREFIX_LENGTH:
        return _result(
            ComparisonStatus.PREFIX_MISMATCH,
            f"value is {len(actual)} bytes, shorter than the {PREFIX_LENGTH}-byte prefix",
        )

    prefix, payload = actual[:PREFIX_LENGTH], actual[PREFIX_LENGTH:]
    details['prefix'] = format_hex(prefix)
    details['payload'] = format_hex(payload)

    if prefix != tag_for(CharacterCode.UNICODE):
        return _result(ComparisonStatus.PREFIX_MISMATCH, "prefix is not UNICODE\\0")

    for candidate in candidates:
        if payload == candidate.payload:
            return _result(
                ComparisonStatus.EXACT_MATCH,
                f"payload matches candidate {candidate.label}",
                label=candidate.label,
            )

    return _result(ComparisonStatus.PAYLOAD_MISMATCH, "payload matches no candidate")
