# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
WebP file modifier

This module finds and replaces the EXIF chunk of a WebP file.
WebP uses the RIFF container format; metadata lives in chunks that
are only allowed in the extended format (VP8X).

Copyright 2025 DNAi inc.
"""

import struct
from typing import List, Optional, Tuple

from exifcomment.exceptions import MetadataReadError, MetadataWriteError
from exifcomment.jpeg_modifier import EXIF_HEADER


class WebPModifier:
    """
    Modifies WebP files to update the EXIF chunk.

    Image chunks are copied unchanged. A simple-format file (no VP8X)
    is promoted to the extended format when EXIF is added.
    """

    # WebP chunk types
    CHUNK_VP8 = b'VP8 '  # VP8 image data
    CHUNK_VP8L = b'VP8L'  # VP8L image data
    CHUNK_VP8X = b'VP8X'  # Extended format
    CHUNK_EXIF = b'EXIF'  # EXIF data
    CHUNK_XMP = b'XMP '  # XMP data
    CHUNK_ICCP = b'ICCP'  # ICC profile

    # VP8X feature flag bits
    FLAG_ANIMATION = 0x02
    FLAG_XMP = 0x04
    FLAG_EXIF = 0x08
    FLAG_ALPHA = 0x10
    FLAG_ICC = 0x20

    def __init__(self, file_data: bytes):
        """
        Initialize WebP modifier.

        Args:
            file_data: Complete WebP file data

        Raises:
            MetadataReadError: If the data is not a RIFF/WEBP stream
        """
        self.file_data = bytes(file_data)
        self.chunks: List[Tuple[bytes, bytes]] = []
        self._parse_chunks()

    def _parse_chunks(self) -> None:
        data = self.file_data
        if len(data) < 12 or data[:4] != b'RIFF' or data[8:12] != b'WEBP':
            raise MetadataReadError("Invalid WebP file")

        riff_size = struct.unpack('<I', data[4:8])[0]
        end = min(len(data), 8 + riff_size)

        offset = 12
        while offset + 8 <= end:
            chunk_type = data[offset:offset + 4]
            chunk_size = struct.unpack('<I', data[offset + 4:offset + 8])[0]
            offset += 8
            if offset + chunk_size > end:
                raise MetadataReadError(f"Truncated WebP chunk {chunk_type!r}")
            self.chunks.append((chunk_type, data[offset:offset + chunk_size]))
            offset += chunk_size
            # Chunks are padded to an even size
            if chunk_size % 2 == 1:
                offset += 1

    def find_exif(self) -> Optional[bytes]:
        """
        Return the TIFF structure stored in the EXIF chunk.

        Some writers prefix the chunk with the JPEG-style Exif\\0\\0
        header; it is stripped.
        """
        for chunk_type, chunk_data in self.chunks:
            if chunk_type == self.CHUNK_EXIF:
                if chunk_data.startswith(EXIF_HEADER):
                    return chunk_data[len(EXIF_HEADER):]
                return chunk_data
        return None

    def replace_exif_chunk(self, tiff_data: bytes) -> bytes:
        """
        Replace the EXIF chunk with a new TIFF structure.

        An existing EXIF chunk is replaced in place; otherwise the new
        chunk goes before any XMP chunk, or at the end.

        Args:
            tiff_data: New TIFF structure

        Returns:
            Modified WebP file data

        Raises:
            MetadataWriteError: If a VP8X header cannot be built
        """
        chunks = list(self.chunks)

        if not chunks or chunks[0][0] != self.CHUNK_VP8X:
            chunks.insert(0, (self.CHUNK_VP8X, self._build_vp8x_payload(chunks)))

        vp8x = bytearray(chunks[0][1])
        if len(vp8x) < 10:
            raise MetadataWriteError("Malformed VP8X chunk")
        vp8x[0] |= self.FLAG_EXIF
        chunks[0] = (self.CHUNK_VP8X, bytes(vp8x))

        exif_chunk = (self.CHUNK_EXIF, bytes(tiff_data))
        new_chunks = []
        inserted = False
        for chunk in chunks:
            if chunk[0] == self.CHUNK_EXIF:
                if not inserted:
                    new_chunks.append(exif_chunk)
                    inserted = True
                continue
            if chunk[0] == self.CHUNK_XMP and not inserted:
                new_chunks.append(exif_chunk)
                inserted = True
            new_chunks.append(chunk)
        if not inserted:
            new_chunks.append(exif_chunk)

        webp_data = bytearray(b'RIFF\x00\x00\x00\x00WEBP')
        for chunk_type, chunk_data in new_chunks:
            webp_data.extend(self._write_chunk(chunk_type, chunk_data))
        webp_data[4:8] = struct.pack('<I', len(webp_data) - 8)
        return bytes(webp_data)

    def _build_vp8x_payload(self, chunks: List[Tuple[bytes, bytes]]) -> bytes:
        """Build a VP8X payload for a simple-format file."""
        dims = None
        flags = 0
        for chunk_type, chunk_data in chunks:
            if chunk_type == self.CHUNK_VP8:
                dims = self._extract_vp8_dimensions(chunk_data)
            elif chunk_type == self.CHUNK_VP8L:
                dims = self._extract_vp8l_dimensions(chunk_data)
                # VP8L carries an alpha_is_used bit
                if len(chunk_data) >= 5 and (chunk_data[4] >> 4) & 0x01:
                    flags |= self.FLAG_ALPHA
            elif chunk_type == self.CHUNK_ICCP:
                flags |= self.FLAG_ICC
        if dims is None:
            raise MetadataWriteError("Unable to determine canvas size for VP8X chunk")

        width, height = dims
        payload = bytearray(10)
        payload[0] = flags & 0xFF
        payload[4:7] = (width - 1).to_bytes(3, 'little')
        payload[7:10] = (height - 1).to_bytes(3, 'little')
        return bytes(payload)

    @staticmethod
    def _write_chunk(chunk_type: bytes, chunk_data: bytes) -> bytes:
        chunk = bytearray(chunk_type)
        chunk.extend(struct.pack('<I', len(chunk_data)))
        chunk.extend(chunk_data)
        # Align to even boundary
        if len(chunk_data) % 2 == 1:
            chunk.append(0)
        return bytes(chunk)

    @staticmethod
    def _extract_vp8_dimensions(chunk_data: bytes) -> Optional[Tuple[int, int]]:
        """Extract canvas width/height from a VP8 chunk."""
        if len(chunk_data) < 10:
            return None
        # VP8 key frame start code
        if chunk_data[3:6] != b'\x9d\x01\x2a':
            return None
        raw_width, raw_height = struct.unpack('<HH', chunk_data[6:10])
        width = raw_width & 0x3FFF
        height = raw_height & 0x3FFF
        if width == 0 or height == 0:
            return None
        return width, height

    @staticmethod
    def _extract_vp8l_dimensions(chunk_data: bytes) -> Optional[Tuple[int, int]]:
        """Extract canvas width/height from a VP8L chunk."""
        if len(chunk_data) < 5 or chunk_data[0] != 0x2f:
            return None
        bits = struct.unpack('<I', chunk_data[1:5])[0]
        width = (bits & 0x3FFF) + 1
        height = ((bits >> 14) & 0x3FFF) + 1
        return width, height
