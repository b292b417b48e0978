# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
JPEG file modifier

This module finds and replaces the EXIF APP1 segment of a JPEG file.
Every other segment and the entropy-coded image data are copied
byte for byte.

Copyright 2025 DNAi inc.
"""

import struct
from typing import List, Optional, Tuple

from exifcomment.exceptions import MetadataReadError, MetadataWriteError


EXIF_HEADER = b'Exif\x00\x00'


class JPEGModifier:
    """
    Modifies JPEG files to update the EXIF segment.

    Segments are tracked as (marker, offset, length) where length is the
    segment's length field (it counts itself but not the marker), so a
    segment's bytes are file_data[offset:offset + 2 + length]. Standalone
    markers have length 0.
    """

    # JPEG markers
    SOI = 0xFFD8  # Start of Image
    EOI = 0xFFD9  # End of Image
    SOS = 0xFFDA  # Start of Scan
    APP0 = 0xFFE0  # APP0 (JFIF)
    APP1 = 0xFFE1  # APP1 (EXIF)
    TEM = 0xFF01  # Temporary (standalone)
    RST0 = 0xFFD0  # Restart markers RST0-RST7 (standalone)
    RST7 = 0xFFD7

    # Largest value of the 16-bit segment length field
    MAX_SEGMENT_LENGTH = 0xFFFF

    def __init__(self, file_data: bytes):
        """
        Initialize JPEG modifier.

        Args:
            file_data: Complete JPEG file data

        Raises:
            MetadataReadError: If the data is not a parseable JPEG stream
        """
        self.file_data = bytes(file_data)
        self.segments: List[Tuple[int, int, int]] = []
        self.tail_offset = len(self.file_data)
        self._parse_segments()

    def _parse_segments(self) -> None:
        """Collect header segments up to the start of scan."""
        data = self.file_data
        if data[:2] != b'\xff\xd8':
            raise MetadataReadError("Not a JPEG file (missing SOI marker)")

        offset = 2
        while offset + 4 <= len(data):
            if data[offset] != 0xFF:
                raise MetadataReadError(f"Invalid JPEG marker at offset {offset}")
            # Skip fill bytes
            if data[offset + 1] == 0xFF:
                offset += 1
                continue

            marker = struct.unpack('>H', data[offset:offset + 2])[0]
            if marker in (self.SOS, self.EOI):
                # Scan data and everything after it is copied verbatim
                self.tail_offset = offset
                return

            if marker == self.TEM or self.RST0 <= marker <= self.RST7:
                # No length field; kept as a zero-length segment
                self.segments.append((marker, offset, 0))
                offset += 2
                continue

            length = struct.unpack('>H', data[offset + 2:offset + 4])[0]
            if length < 2 or offset + 2 + length > len(data):
                raise MetadataReadError(f"Truncated JPEG segment at offset {offset}")
            self.segments.append((marker, offset, length))
            offset += 2 + length

        self.tail_offset = offset

    def _segment_bytes(self, offset: int, length: int) -> bytes:
        return self.file_data[offset:offset + 2 + length]

    def _is_exif_segment(self, marker: int, offset: int) -> bool:
        return marker == self.APP1 and self.file_data[offset + 4:offset + 10] == EXIF_HEADER

    def find_exif(self) -> Optional[bytes]:
        """
        Return the TIFF structure of the first EXIF APP1 segment.

        Returns:
            TIFF bytes (after the Exif\\0\\0 header), or None if absent
        """
        for marker, offset, length in self.segments:
            if self._is_exif_segment(marker, offset):
                return self.file_data[offset + 10:offset + 2 + length]
        return None

    def replace_exif_segment(self, tiff_data: bytes) -> bytes:
        """
        Replace the EXIF APP1 segment with a new TIFF structure.

        An existing EXIF segment is replaced in place. Without one, the new
        segment goes after a leading APP0 (JFIF) segment, or after SOI.

        Args:
            tiff_data: New TIFF structure

        Returns:
            Modified JPEG file data

        Raises:
            MetadataWriteError: If the EXIF data does not fit in one segment
        """
        app1 = self._build_app1_segment(tiff_data)

        new_data = bytearray(self.file_data[0:2])  # SOI
        inserted = False

        if not any(self._is_exif_segment(m, o) for m, o, _ in self.segments):
            if self.segments and self.segments[0][0] == self.APP0:
                _, offset, length = self.segments[0]
                new_data.extend(self._segment_bytes(offset, length))
                new_data.extend(app1)
                remaining = self.segments[1:]
            else:
                new_data.extend(app1)
                remaining = self.segments
            inserted = True
        else:
            remaining = self.segments

        for marker, offset, length in remaining:
            if self._is_exif_segment(marker, offset):
                if not inserted:
                    new_data.extend(app1)
                    inserted = True
                # Later duplicate EXIF segments are dropped
                continue
            new_data.extend(self._segment_bytes(offset, length))

        new_data.extend(self.file_data[self.tail_offset:])
        return bytes(new_data)

    def _build_app1_segment(self, tiff_data: bytes) -> bytes:
        """
        Build JPEG APP1 segment containing EXIF data.

        Args:
            tiff_data: EXIF data bytes

        Returns:
            Complete APP1 segment
        """
        # Length (2 bytes for length + EXIF header + TIFF data)
        length = 2 + len(EXIF_HEADER) + len(tiff_data)
        if length > self.MAX_SEGMENT_LENGTH:
            raise MetadataWriteError(
                f"EXIF data too large for a JPEG APP1 segment ({length} bytes)"
            )

        app1 = bytearray(b'\xFF\xE1')
        app1.extend(struct.pack('>H', length))
        app1.extend(EXIF_HEADER)
        app1.extend(tiff_data)
        return bytes(app1)
