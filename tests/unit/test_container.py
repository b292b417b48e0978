import struct

import pytest

from exifcomment.container import (
    ContainerFormat,
    ExifContainer,
    detect_format,
    load,
    read_byte_order,
    read_tags,
    save,
)
from exifcomment.encoder import encode
from exifcomment.exceptions import FormatError, MetadataReadError, MetadataWriteError
from exifcomment.exif_parser import EXIF_IFD, IFD0, ExifParser, ExifTagType
from exifcomment.exif_writer import EXIFWriter, undefined_record
from exifcomment.tag_layout import EXIF_IFD_POINTER_TAG_ID, USER_COMMENT_TAG_ID, ByteOrder, CharacterCode


def _user_comment(records):
    for record in records:
        if record.ifd == EXIF_IFD and record.tag_id == USER_COMMENT_TAG_ID:
            return record
    return None


def _ii_tiff_with_pointer_type(pointer_type):
    """Little-endian TIFF whose ExifIFD pointer uses the given TIFF type."""
    header = b'II*\x00\x08\x00\x00\x00'
    ifd0 = struct.pack('<H', 1)
    ifd0 += struct.pack('<HHII', EXIF_IFD_POINTER_TAG_ID, pointer_type, 1, 26)
    ifd0 += struct.pack('<I', 0)
    exif_ifd = struct.pack('<H', 1)
    exif_ifd += struct.pack('<HHI', 0x9000, 7, 4) + b'0230'
    exif_ifd += struct.pack('<I', 0)
    return header + ifd0 + exif_ifd


class TestExifParser:
    """ExifParser -- TIFF header, IFD0 and Exif sub-IFD."""

    def test_parse_mm(self, mm_tiff):
        byte_order, records = ExifParser(mm_tiff).parse()
        assert byte_order is ByteOrder.BE
        by_id = {r.tag_id: r for r in records}
        assert by_id[0x010F].ifd == IFD0
        assert by_id[0x010F].value == b'Canon\x00'
        assert by_id[0x9000].ifd == EXIF_IFD
        assert by_id[0x9000].value == b'0230'
        assert by_id[EXIF_IFD_POINTER_TAG_ID].value == struct.pack('>I', 44)

    def test_pointer_stored_as_ifd_type(self):
        byte_order, records = ExifParser(_ii_tiff_with_pointer_type(ExifTagType.IFD)).parse()
        assert byte_order is ByteOrder.LE
        exif = {r.tag_id: r for r in records if r.ifd == EXIF_IFD}
        assert exif[0x9000].value == b'0230'

    def test_pointer_with_wrong_type(self):
        with pytest.raises(MetadataReadError, match="Malformed ExifIFD pointer"):
            ExifParser(_ii_tiff_with_pointer_type(ExifTagType.SHORT)).parse()

    def test_too_short(self):
        with pytest.raises(MetadataReadError, match="too short"):
            ExifParser(b'II*\x00').parse()

    def test_bad_marker(self):
        with pytest.raises(MetadataReadError, match="Invalid TIFF header") as excinfo:
            ExifParser(b'XX*\x00\x08\x00\x00\x00').parse()
        assert isinstance(excinfo.value.__cause__, FormatError)

    def test_bad_magic(self):
        with pytest.raises(MetadataReadError, match="magic"):
            ExifParser(b'II\x2b\x00\x08\x00\x00\x00\x00\x00').parse()

    def test_ifd_offset_out_of_range(self):
        with pytest.raises(MetadataReadError, match="out of range"):
            ExifParser(b'II*\x00\xff\x00\x00\x00').parse()

    def test_value_past_end(self, mm_tiff):
        with pytest.raises(MetadataReadError, match="past end"):
            ExifParser(mm_tiff[:40]).parse()


class TestEXIFWriter:

    @pytest.mark.parametrize("order", list(ByteOrder))
    def test_round_trip(self, order):
        comment = encode("日本", CharacterCode.UNICODE, order)
        tiff = EXIFWriter(order).build_tiff([], [undefined_record(USER_COMMENT_TAG_ID, comment)])
        assert tiff[:2] == order.tiff_marker
        parsed_order, records = ExifParser(tiff).parse()
        assert parsed_order is order
        assert _user_comment(records).value == comment

    def test_inline_value(self):
        tiff = EXIFWriter().build_tiff([], [undefined_record(0x9000, b'0230')])
        assert {r.tag_id: r.value for r in ExifParser(tiff).parse()[1]}[0x9000] == b'0230'

    def test_no_exif_records_writes_no_pointer(self):
        tiff = EXIFWriter().build_tiff([], [])
        _, records = ExifParser(tiff).parse()
        assert records == []

    def test_entries_sorted(self):
        tiff = EXIFWriter().build_tiff([], [
            undefined_record(0x9286, b'UNICODE\x00'),
            undefined_record(0x9000, b'0230'),
        ])
        exif_ids = [r.tag_id for r in ExifParser(tiff).parse()[1] if r.ifd == EXIF_IFD]
        assert exif_ids == [0x9000, 0x9286]

    def test_value_size_mismatch(self):
        bad = undefined_record(0x9286, b'abc')
        bad = type(bad)(bad.ifd, bad.tag_id, ExifTagType.SHORT.value, 3, b'abc')
        with pytest.raises(MetadataWriteError, match="expected 6"):
            EXIFWriter().build_tiff([], [bad])

    def test_unknown_type(self):
        bad = undefined_record(0x9286, b'abc')
        bad = type(bad)(bad.ifd, bad.tag_id, 99, 3, b'abc')
        with pytest.raises(MetadataWriteError, match="Unknown data type") as excinfo:
            EXIFWriter().build_tiff([], [bad])
        assert isinstance(excinfo.value.__cause__, ValueError)


class TestDetectFormat:

    def test_formats(self, mm_tiff):
        assert detect_format(b'\xff\xd8\xff\xe0') is ContainerFormat.JPEG
        assert detect_format(b'RIFF\x00\x00\x00\x00WEBP') is ContainerFormat.WEBP
        assert detect_format(mm_tiff) is ContainerFormat.EXIF
        assert detect_format(b'II*\x00') is ContainerFormat.EXIF

    def test_unsupported(self):
        with pytest.raises(MetadataReadError, match="Unsupported"):
            detect_format(b'\x89PNG\r\n\x1a\n')


class TestExifContainer:

    def test_new_is_empty(self):
        container = ExifContainer.new(ByteOrder.BE)
        assert container.format is ContainerFormat.EXIF
        assert container.byte_order is ByteOrder.BE
        assert container.get_tag_bytes(USER_COMMENT_TAG_ID) is None

    def test_set_and_get(self):
        container = ExifContainer.new()
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'UNICODE\x00a\x00')
        assert container.get_tag_bytes(USER_COMMENT_TAG_ID) == b'UNICODE\x00a\x00'
        assert container.exif[USER_COMMENT_TAG_ID].tag_type == ExifTagType.UNDEFINED

    def test_remove(self):
        container = ExifContainer.new()
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'x')
        assert container.remove_tag(USER_COMMENT_TAG_ID) is True
        assert container.remove_tag(USER_COMMENT_TAG_ID) is False


class TestLoadSave:
    """Container round trips through JPEG, WebP and bare EXIF files."""

    def test_jpeg_without_exif(self, jpeg_file, tmp_path, scenario_text):
        container = load(jpeg_file)
        assert container.format is ContainerFormat.JPEG
        assert container.byte_order is ByteOrder.LE
        assert read_byte_order(jpeg_file) is None

        comment = encode(scenario_text, CharacterCode.UNICODE, ByteOrder.LE)
        container.set_tag_bytes(USER_COMMENT_TAG_ID, comment)
        out = tmp_path / "out.jpg"
        save(container, out)

        data = out.read_bytes()
        original = jpeg_file.read_bytes()
        # APP1 goes right after the JFIF APP0 segment
        assert data[2:20] == original[2:20]
        assert data[20:22] == b'\xff\xe1'
        assert data.endswith(b'\x12\x34\x56\xff\xd9')
        assert _user_comment(read_tags(out)).value == comment
        assert read_byte_order(out) is ByteOrder.LE

    def test_jpeg_keeps_byte_order_and_tags(self, jpeg_mm_file, tmp_path, scenario_text):
        container = load(jpeg_mm_file)
        assert container.byte_order is ByteOrder.BE
        assert container.get_tag_bytes(0x010F) == b'Canon\x00'

        comment = encode(scenario_text, CharacterCode.UNICODE, ByteOrder.BE)
        container.set_tag_bytes(USER_COMMENT_TAG_ID, comment)
        out = tmp_path / "out.jpg"
        save(container, out)

        reloaded = load(out)
        assert reloaded.byte_order is ByteOrder.BE
        assert reloaded.get_tag_bytes(0x010F) == b'Canon\x00'
        assert reloaded.get_tag_bytes(0x9000) == b'0230'
        assert reloaded.get_tag_bytes(USER_COMMENT_TAG_ID) == comment
        # Only one EXIF segment
        assert out.read_bytes().count(b'Exif\x00\x00') == 1

    def test_webp_promoted_to_extended(self, webp_file, tmp_path):
        container = load(webp_file)
        assert container.format is ContainerFormat.WEBP
        comment = encode("abc", CharacterCode.UNICODE, ByteOrder.LE)
        container.set_tag_bytes(USER_COMMENT_TAG_ID, comment)
        out = tmp_path / "out.webp"
        save(container, out)

        data = out.read_bytes()
        assert data[:4] == b'RIFF'
        assert struct.unpack('<I', data[4:8])[0] == len(data) - 8
        assert data[12:16] == b'VP8X'
        flags = data[20]
        assert flags & 0x08
        # canvas 2x3 stored minus one
        assert data[24:27] == (1).to_bytes(3, 'little')
        assert data[27:30] == (2).to_bytes(3, 'little')
        assert _user_comment(read_tags(out)).value == comment

    def test_webp_replace_existing(self, webp_file, tmp_path):
        first = tmp_path / "first.webp"
        container = load(webp_file)
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'UNICODE\x00a\x00')
        save(container, first)

        container = load(first)
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'UNICODE\x00\x00b')
        second = tmp_path / "second.webp"
        save(container, second)

        data = second.read_bytes()
        assert data.count(b'EXIF') == 1
        assert data.count(b'VP8X') == 1
        assert load(second).get_tag_bytes(USER_COMMENT_TAG_ID) == b'UNICODE\x00\x00b'

    def test_bare_exif(self, exif_mm_file, tmp_path):
        container = load(exif_mm_file)
        assert container.format is ContainerFormat.EXIF
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'UNICODE\x00')
        out = tmp_path / "out.exif"
        save(container, out)
        assert out.read_bytes()[:4] == b'MM\x00*'
        assert _user_comment(read_tags(out)).value == b'UNICODE\x00'

    def test_bare_exif_with_ifd_type_pointer_keeps_exif_tags(self, tmp_path):
        path = tmp_path / "ifd_pointer.exif"
        path.write_bytes(_ii_tiff_with_pointer_type(ExifTagType.IFD))

        container = load(path)
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'UNICODE\x00a\x00')
        out = tmp_path / "out.exif"
        save(container, out)

        reloaded = load(out)
        assert reloaded.get_tag_bytes(0x9000) == b'0230'
        assert reloaded.get_tag_bytes(USER_COMMENT_TAG_ID) == b'UNICODE\x00a\x00'

    @pytest.mark.parametrize("marker", [b'\xff\x01', b'\xff\xd0', b'\xff\xd7'])
    def test_jpeg_standalone_marker_kept(self, jpeg_mm_file, tmp_path, marker):
        original = jpeg_mm_file.read_bytes()
        path = tmp_path / "standalone.jpg"
        path.write_bytes(original[:2] + marker + original[2:])

        container = load(path)
        assert container.get_tag_bytes(0x010F) == b'Canon\x00'
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'UNICODE\x00\x00b')
        out = tmp_path / "out.jpg"
        save(container, out)

        data = out.read_bytes()
        assert data[2:4] == marker
        assert data.endswith(b'\x12\x34\x56\xff\xd9')
        assert load(out).get_tag_bytes(USER_COMMENT_TAG_ID) == b'UNICODE\x00\x00b'

    def test_new_container_saved(self, tmp_path):
        container = ExifContainer.new(ByteOrder.BE)
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'ASCII\x00\x00\x00hi')
        out = tmp_path / "new.exif"
        save(container, out)
        assert read_byte_order(out) is ByteOrder.BE

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load(tmp_path / "missing.jpg")

    def test_unsupported_file(self, tmp_path):
        path = tmp_path / "image.png"
        path.write_bytes(b'\x89PNG\r\n\x1a\n' + b'\x00' * 16)
        with pytest.raises(MetadataReadError):
            load(path)

    def test_save_to_missing_directory(self, tmp_path):
        with pytest.raises(OSError):
            save(ExifContainer.new(), tmp_path / "missing" / "out.exif")

    def test_oversized_jpeg_exif(self, jpeg_file, tmp_path):
        container = load(jpeg_file)
        container.set_tag_bytes(USER_COMMENT_TAG_ID, b'UNICODE\x00' + b'\x00' * 70000)
        with pytest.raises(MetadataWriteError, match="too large"):
            save(container, tmp_path / "out.jpg")

    def test_truncated_jpeg(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b'\xff\xd8\xff\xe0\x00\x40JFIF')
        with pytest.raises(MetadataReadError, match="Truncated"):
            load(path)
