# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF (TIFF structure) parser

This module reads the TIFF structure embedded in an EXIF block and
returns the IFD0 and Exif sub-IFD entries as raw tag records. Values
are kept as the raw bytes found in the file, in the file's byte order,
so that they can be written back unchanged.

Copyright 2025 DNAi inc.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Tuple

from exifcomment.exceptions import FormatError, MetadataReadError
from exifcomment.tag_layout import EXIF_IFD_POINTER_TAG_ID, ByteOrder


class ExifTagType(IntEnum):
    """EXIF tag data types"""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13


# EXIF tag sizes in bytes
TAG_SIZES = {
    ExifTagType.BYTE: 1,
    ExifTagType.ASCII: 1,
    ExifTagType.SHORT: 2,
    ExifTagType.LONG: 4,
    ExifTagType.RATIONAL: 8,
    ExifTagType.SBYTE: 1,
    ExifTagType.UNDEFINED: 1,
    ExifTagType.SSHORT: 2,
    ExifTagType.SLONG: 4,
    ExifTagType.SRATIONAL: 8,
    ExifTagType.FLOAT: 4,
    ExifTagType.DOUBLE: 8,
    ExifTagType.IFD: 4,
}

# Sub-IFD pointers may be stored as LONG or as the TIFF IFD type
_POINTER_TYPES = (ExifTagType.LONG, ExifTagType.IFD)

IFD0 = 'IFD0'
EXIF_IFD = 'EXIF'


@dataclass(frozen=True)
class TagRecord:
    """
    One IFD entry as stored in the file.

    value holds the raw value bytes (count * type size), in the byte
    order of the TIFF structure they were read from.
    """
    ifd: str
    tag_id: int
    tag_type: int
    count: int
    value: bytes

    @property
    def size(self) -> int:
        return TAG_SIZES[ExifTagType(self.tag_type)] * self.count


class ExifParser:
    """
    Parser for the TIFF structure of an EXIF block.

    Only IFD0 and the Exif sub-IFD are read. IFD1 (thumbnail), GPS and
    Interop directories are not followed.
    """

    def __init__(self, tiff_data: bytes):
        """
        Initialize the parser.

        Args:
            tiff_data: EXIF data starting at the TIFF header (II/MM)
        """
        self.tiff_data = bytes(tiff_data)
        self.endian = '<'

    def parse(self) -> Tuple[ByteOrder, List[TagRecord]]:
        """
        Parse the TIFF header, IFD0 and the Exif sub-IFD.

        Returns:
            Tuple of (byte order, list of tag records in file order)

        Raises:
            MetadataReadError: If the TIFF structure is invalid
        """
        byte_order, first_ifd_offset = self._parse_tiff_header()

        records = self._parse_ifd(first_ifd_offset, IFD0)

        for record in records:
            if record.tag_id == EXIF_IFD_POINTER_TAG_ID:
                if record.tag_type not in _POINTER_TYPES or record.count != 1:
                    raise MetadataReadError("Malformed ExifIFD pointer")
                exif_offset = struct.unpack(f'{self.endian}I', record.value)[0]
                records.extend(self._parse_ifd(exif_offset, EXIF_IFD))
                break

        return byte_order, records

    def _parse_tiff_header(self) -> Tuple[ByteOrder, int]:
        if len(self.tiff_data) < 8:
            raise MetadataReadError("File too short for TIFF header")

        try:
            byte_order = ByteOrder.from_tiff_marker(self.tiff_data[:2])
        except FormatError as e:
            raise MetadataReadError("Invalid TIFF header") from e
        self.endian = byte_order.value

        magic, first_ifd_offset = struct.unpack(f'{self.endian}HI', self.tiff_data[2:8])
        if magic != 42:
            raise MetadataReadError("Invalid TIFF magic number")

        return byte_order, first_ifd_offset

    def _parse_ifd(self, ifd_offset: int, ifd_name: str) -> List[TagRecord]:
        """
        Parse one IFD into tag records.

        Entries with an unknown data type are skipped.
        """
        data = self.tiff_data
        if ifd_offset < 8 or ifd_offset + 2 > len(data):
            raise MetadataReadError(f"{ifd_name} offset {ifd_offset} out of range")

        num_entries = struct.unpack(f'{self.endian}H', data[ifd_offset:ifd_offset + 2])[0]
        if ifd_offset + 2 + num_entries * 12 > len(data):
            raise MetadataReadError(f"{ifd_name} entries extend past end of data")

        records = []
        entry_offset = ifd_offset + 2
        for _ in range(num_entries):
            tag_id, tag_type, count, value_field = struct.unpack(
                f'{self.endian}HHI4s',
                data[entry_offset:entry_offset + 12]
            )
            entry_offset += 12

            try:
                tag_size = TAG_SIZES[ExifTagType(tag_type)]
            except ValueError:
                continue

            total_size = tag_size * count
            if total_size <= 4:
                # Stored inline in the value field
                value = value_field[:total_size]
            else:
                value_offset = struct.unpack(f'{self.endian}I', value_field)[0]
                if value_offset + total_size > len(data):
                    raise MetadataReadError(
                        f"{ifd_name} tag 0x{tag_id:04X} value extends past end of data"
                    )
                value = data[value_offset:value_offset + total_size]

            records.append(TagRecord(
                ifd=ifd_name,
                tag_id=tag_id,
                tag_type=tag_type,
                count=count,
                value=value,
            ))

        return records
