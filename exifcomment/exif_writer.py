# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF (TIFF structure) writer

This module rebuilds the TIFF structure of an EXIF block from raw tag
records: header, IFD0, and the Exif sub-IFD that IFD0 points to.
Values are written as given; they must already be in the writer's
byte order.

Copyright 2025 DNAi inc.
"""

import struct
from typing import Iterable, List, Tuple

from exifcomment.exceptions import MetadataWriteError
from exifcomment.exif_parser import EXIF_IFD, IFD0, TAG_SIZES, ExifTagType, TagRecord
from exifcomment.tag_layout import EXIF_IFD_POINTER_TAG_ID, ByteOrder


class EXIFWriter:
    """
    Writes EXIF TIFF structures.

    Layout of the output:
        TIFF header (8 bytes)
        IFD0 entries, next-IFD offset, IFD0 out-of-line data
        Exif IFD entries, next-IFD offset, Exif IFD out-of-line data
    """

    def __init__(self, byte_order: ByteOrder = ByteOrder.LE):
        """
        Initialize EXIF writer.

        Args:
            byte_order: Byte order of the TIFF structure and of the
                        raw values it is given
        """
        self.byte_order = byte_order
        self.endian = byte_order.value

    def build_tiff(
        self,
        ifd0_records: Iterable[TagRecord],
        exif_records: Iterable[TagRecord]
    ) -> bytes:
        """
        Build a complete TIFF structure.

        Args:
            ifd0_records: IFD0 entries (any ExifIFD pointer is replaced)
            exif_records: Exif sub-IFD entries

        Returns:
            TIFF structure bytes, starting with II or MM

        Raises:
            MetadataWriteError: If a record's value does not match its type and count
        """
        ifd0 = [r for r in ifd0_records if r.tag_id != EXIF_IFD_POINTER_TAG_ID]
        exif = sorted(exif_records, key=lambda r: r.tag_id)

        tiff_header = self._build_tiff_header()
        ifd0_offset = len(tiff_header)

        if exif:
            # Placeholder pointer; IFD0 size does not depend on its value
            pointer = self._pointer_record(0)
            ifd0 = sorted(ifd0 + [pointer], key=lambda r: r.tag_id)
            ifd0_size = len(self._write_ifd(ifd0, ifd0_offset))
            exif_offset = ifd0_offset + ifd0_size
            ifd0 = [
                self._pointer_record(exif_offset) if r.tag_id == EXIF_IFD_POINTER_TAG_ID else r
                for r in ifd0
            ]
        else:
            ifd0 = sorted(ifd0, key=lambda r: r.tag_id)

        tiff = bytearray(tiff_header)
        tiff.extend(self._write_ifd(ifd0, ifd0_offset))
        if exif:
            tiff.extend(self._write_ifd(exif, exif_offset))

        return bytes(tiff)

    def _pointer_record(self, offset: int) -> TagRecord:
        return TagRecord(
            ifd=IFD0,
            tag_id=EXIF_IFD_POINTER_TAG_ID,
            tag_type=ExifTagType.LONG.value,
            count=1,
            value=struct.pack(f'{self.endian}I', offset),
        )

    def _build_tiff_header(self) -> bytes:
        """
        Build TIFF header (required for EXIF).

        Returns:
            TIFF header bytes
        """
        header = self.byte_order.tiff_marker
        # TIFF magic number (42)
        header += struct.pack(f'{self.endian}H', 42)
        # First IFD follows the header directly
        header += struct.pack(f'{self.endian}I', 8)
        return header

    def _write_ifd(self, records: List[TagRecord], ifd_offset: int) -> bytes:
        """
        Write an IFD structure followed by its out-of-line data.

        Args:
            records: Tag records, already sorted by tag id
            ifd_offset: Offset of this IFD from the start of the TIFF header

        Returns:
            IFD bytes and data area
        """
        data_offset = ifd_offset + 2 + len(records) * 12 + 4

        ifd = bytearray()
        data = bytearray()

        # Number of entries
        ifd.extend(struct.pack(f'{self.endian}H', len(records)))

        for record in records:
            value_field, value_data = self._place_value(record, data_offset + len(data))
            ifd.extend(struct.pack(
                f'{self.endian}HHI',
                record.tag_id & 0xFFFF,
                record.tag_type & 0xFFFF,
                record.count & 0xFFFFFFFF,
            ))
            ifd.extend(value_field)
            if value_data:
                data.extend(value_data)
                # Keep offsets word aligned
                if len(data) % 2 == 1:
                    data.append(0)

        # Offset to next IFD (0 = no more IFDs)
        ifd.extend(struct.pack(f'{self.endian}I', 0))

        return bytes(ifd + data)

    def _place_value(self, record: TagRecord, offset: int) -> Tuple[bytes, bytes]:
        """Return (4-byte value field, out-of-line data) for a record."""
        try:
            size = record.size
        except ValueError as e:
            raise MetadataWriteError(
                f"Unknown data type {record.tag_type} for tag 0x{record.tag_id:04X}"
            ) from e
        if len(record.value) != size:
            raise MetadataWriteError(
                f"Tag 0x{record.tag_id:04X} value is {len(record.value)} bytes, "
                f"expected {size}"
            )

        if size <= 4:
            return record.value.ljust(4, b'\x00'), b''
        return struct.pack(f'{self.endian}I', offset), record.value


def undefined_record(tag_id: int, data: bytes) -> TagRecord:
    """Build an Exif sub-IFD record holding raw UNDEFINED bytes."""
    data = bytes(data)
    return TagRecord(
        ifd=EXIF_IFD,
        tag_id=tag_id,
        tag_type=ExifTagType.UNDEFINED.value,
        count=len(data),
        value=data,
    )
