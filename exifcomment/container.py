# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF container

Loads, modifies and saves the EXIF block of JPEG, WebP and bare EXIF
(TIFF-structured) files. Only IFD0 and the Exif sub-IFD are managed,
as raw tag records. The codec hands this module finished UserComment
bytes; the container never interprets them.

    container = load('photo.jpg')
    container.set_tag_bytes(USER_COMMENT_TAG_ID, data)
    save(container, 'out.jpg')
    records = read_tags('out.jpg')

Copyright 2025 DNAi inc.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from exifcomment.exceptions import MetadataReadError
from exifcomment.exif_parser import EXIF_IFD, IFD0, ExifParser, TagRecord
from exifcomment.exif_writer import EXIFWriter, undefined_record
from exifcomment.jpeg_modifier import JPEGModifier
from exifcomment.tag_layout import EXIF_IFD_POINTER_TAG_ID, ByteOrder
from exifcomment.webp_modifier import WebPModifier

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# IFD0 tags that point at structures which are not rebuilt on save
_DROPPED_IFD0_TAGS = {
    EXIF_IFD_POINTER_TAG_ID,  # rebuilt
    0x8825,  # GPSInfo
    0x014A,  # SubIFDs
    0x0111,  # StripOffsets
    0x0117,  # StripByteCounts
    0x0144,  # TileOffsets
    0x0145,  # TileByteCounts
    0x0201,  # ThumbnailOffset
    0x0202,  # ThumbnailLength
}

# Exif sub-IFD tags whose contents hold offsets that would break
_DROPPED_EXIF_TAGS = {
    0xA005,  # InteropOffset
    0x927C,  # MakerNote
}


class ContainerFormat(Enum):
    """File formats the container can read and write."""
    JPEG = "jpeg"
    WEBP = "webp"
    EXIF = "exif"


def detect_format(file_data: bytes) -> ContainerFormat:
    """
    Detect the container format from the file signature.

    Raises:
        MetadataReadError: If the signature is not recognized
    """
    if file_data[:2] == b'\xff\xd8':
        return ContainerFormat.JPEG
    if file_data[:4] == b'RIFF' and file_data[8:12] == b'WEBP':
        return ContainerFormat.WEBP
    if file_data[:4] in (b'II*\x00', b'MM\x00*'):
        return ContainerFormat.EXIF
    raise MetadataReadError("Unsupported file format")


class ExifContainer:
    """
    The EXIF block of one image file.

    Holds the file's original bytes (for JPEG and WebP, so that image
    data can be copied on save), its TIFF byte order, and the IFD0 and
    Exif sub-IFD entries keyed by tag id.
    """

    def __init__(
        self,
        format: ContainerFormat,
        byte_order: ByteOrder,
        ifd0: Optional[Dict[int, TagRecord]] = None,
        exif: Optional[Dict[int, TagRecord]] = None,
        original_data: Optional[bytes] = None
    ):
        self.format = format
        self.byte_order = byte_order
        self.ifd0: Dict[int, TagRecord] = dict(ifd0 or {})
        self.exif: Dict[int, TagRecord] = dict(exif or {})
        self.original_data = original_data

    @classmethod
    def new(cls, byte_order: ByteOrder = ByteOrder.LE) -> "ExifContainer":
        """Create an empty container for a bare EXIF file."""
        return cls(ContainerFormat.EXIF, byte_order)

    def get_tag_bytes(self, tag_id: int) -> Optional[bytes]:
        """Return the raw value of a tag, Exif sub-IFD first, or None."""
        record = self.exif.get(tag_id) or self.ifd0.get(tag_id)
        if record is None:
            return None
        return record.value

    def set_tag_bytes(self, tag_id: int, data: bytes) -> None:
        """Store raw bytes as an UNDEFINED entry in the Exif sub-IFD."""
        self.exif[tag_id] = undefined_record(tag_id, data)

    def remove_tag(self, tag_id: int) -> bool:
        """Remove a tag from both IFDs. Returns True if it was present."""
        in_exif = self.exif.pop(tag_id, None) is not None
        in_ifd0 = self.ifd0.pop(tag_id, None) is not None
        return in_exif or in_ifd0

    def tag_records(self) -> List[TagRecord]:
        return list(self.ifd0.values()) + list(self.exif.values())

    def to_tiff(self) -> bytes:
        """Build the TIFF structure for the current tags."""
        writer = EXIFWriter(self.byte_order)
        ifd0 = [r for tag_id, r in self.ifd0.items() if tag_id not in _DROPPED_IFD0_TAGS]
        exif = [r for tag_id, r in self.exif.items() if tag_id not in _DROPPED_EXIF_TAGS]
        return writer.build_tiff(ifd0, exif)

    def __repr__(self) -> str:
        return (
            f"ExifContainer(format={self.format.value}, byte_order={self.byte_order.name}, "
            f"ifd0={len(self.ifd0)} tags, exif={len(self.exif)} tags)"
        )


def _extract_tiff(file_format: ContainerFormat, file_data: bytes) -> Optional[bytes]:
    if file_format is ContainerFormat.JPEG:
        return JPEGModifier(file_data).find_exif()
    if file_format is ContainerFormat.WEBP:
        return WebPModifier(file_data).find_exif()
    return file_data


def _parse(tiff_data: bytes):
    byte_order, records = ExifParser(tiff_data).parse()
    ifd0 = {r.tag_id: r for r in records if r.ifd == IFD0}
    exif = {r.tag_id: r for r in records if r.ifd == EXIF_IFD}
    return byte_order, ifd0, exif


def load(path: PathLike, default_byte_order: ByteOrder = ByteOrder.LE) -> ExifContainer:
    """
    Load the EXIF block of a file.

    Args:
        path: JPEG, WebP or bare EXIF file
        default_byte_order: Byte order used when the file has no EXIF block

    Returns:
        ExifContainer

    Raises:
        OSError: If the file cannot be read
        MetadataReadError: If the format is unsupported or the EXIF block is corrupt
    """
    path = Path(path)
    with open(path, 'rb') as f:
        file_data = f.read()

    file_format = detect_format(file_data)
    tiff_data = _extract_tiff(file_format, file_data)

    if tiff_data is None:
        logger.debug("%s: %s file without EXIF block", path, file_format.value)
        byte_order, ifd0, exif = default_byte_order, {}, {}
    else:
        byte_order, ifd0, exif = _parse(tiff_data)
        logger.debug(
            "%s: %s EXIF block, %d bytes, byte order %s",
            path, file_format.value, len(tiff_data), byte_order.name
        )

    original_data = None if file_format is ContainerFormat.EXIF else file_data
    return ExifContainer(file_format, byte_order, ifd0, exif, original_data)


def save(container: ExifContainer, path: PathLike) -> None:
    """
    Write a container to a file.

    JPEG and WebP containers are written as a copy of the original file
    with the EXIF block replaced. Bare EXIF containers are written as
    the TIFF structure alone.

    Raises:
        OSError: If the file cannot be written
        MetadataWriteError: If the EXIF block cannot be built or embedded
    """
    path = Path(path)
    tiff_data = container.to_tiff()

    if container.format is ContainerFormat.JPEG:
        file_data = JPEGModifier(container.original_data).replace_exif_segment(tiff_data)
    elif container.format is ContainerFormat.WEBP:
        file_data = WebPModifier(container.original_data).replace_exif_chunk(tiff_data)
    else:
        file_data = tiff_data

    with open(path, 'wb') as f:
        f.write(file_data)
    logger.debug("%s: wrote %d bytes (EXIF block %d bytes)", path, len(file_data), len(tiff_data))


def read_tags(path: PathLike) -> List[TagRecord]:
    """
    Re-parse a file and return its IFD0 and Exif sub-IFD records.

    Read-only. A file without an EXIF block yields an empty list.
    """
    return load(path).tag_records()


def read_byte_order(path: PathLike) -> Optional[ByteOrder]:
    """Return the TIFF byte order declared by a file, or None without EXIF."""
    path = Path(path)
    with open(path, 'rb') as f:
        file_data = f.read()
    tiff_data = _extract_tiff(detect_format(file_data), file_data)
    if tiff_data is None:
        return None
    return _parse(tiff_data)[0]


# Collaborator names used by the verification harness
persist = save
reload = read_tags
