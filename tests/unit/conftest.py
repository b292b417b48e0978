# tests/unit/conftest.py
# Shared fixtures: minimal container files built in code.

import struct

import pytest


SCENARIO_TEXT = "Hello, World! こんにちわ世界"


def _jfif_app0() -> bytes:
    payload = b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
    return b'\xff\xe0' + struct.pack('>H', 2 + len(payload)) + payload


def _scan() -> bytes:
    # SOS header, a few bytes of entropy-coded data, EOI
    return b'\xff\xda\x00\x08\x01\x01\x00\x00\x3f\x00' + b'\x12\x34\x56' + b'\xff\xd9'


def build_mm_tiff() -> bytes:
    """
    Big-endian TIFF structure with IFD0 Make="Canon" and an Exif
    sub-IFD holding ExifVersion="0230".
    """
    header = b'MM\x00\x2a\x00\x00\x00\x08'
    ifd0 = struct.pack('>H', 2)
    ifd0 += struct.pack('>HHII', 0x010F, 2, 6, 38)
    ifd0 += struct.pack('>HHII', 0x8769, 4, 1, 44)
    ifd0 += struct.pack('>I', 0)
    make = b'Canon\x00'
    exif_ifd = struct.pack('>H', 1)
    exif_ifd += struct.pack('>HHI', 0x9000, 7, 4) + b'0230'
    exif_ifd += struct.pack('>I', 0)
    return header + ifd0 + make + exif_ifd


def build_jpeg(tiff: bytes = None) -> bytes:
    data = b'\xff\xd8' + _jfif_app0()
    if tiff is not None:
        body = b'Exif\x00\x00' + tiff
        data += b'\xff\xe1' + struct.pack('>H', 2 + len(body)) + body
    return data + _scan()


def build_vp8l_webp(width: int = 2, height: int = 3) -> bytes:
    bits = (width - 1) | ((height - 1) << 14)
    vp8l = b'\x2f' + struct.pack('<I', bits)
    chunk = b'VP8L' + struct.pack('<I', len(vp8l)) + vp8l + b'\x00'
    body = b'WEBP' + chunk
    return b'RIFF' + struct.pack('<I', len(body)) + body


@pytest.fixture
def scenario_text() -> str:
    return SCENARIO_TEXT


@pytest.fixture
def mm_tiff() -> bytes:
    return build_mm_tiff()


@pytest.fixture
def jpeg_file(tmp_path):
    """JPEG with JFIF APP0 and no EXIF segment."""
    path = tmp_path / "plain.jpg"
    path.write_bytes(build_jpeg())
    return path


@pytest.fixture
def jpeg_mm_file(tmp_path):
    """JPEG carrying a big-endian EXIF block."""
    path = tmp_path / "motorola.jpg"
    path.write_bytes(build_jpeg(build_mm_tiff()))
    return path


@pytest.fixture
def webp_file(tmp_path):
    """Simple-format (VP8L, no VP8X) WebP."""
    path = tmp_path / "image.webp"
    path.write_bytes(build_vp8l_webp())
    return path


@pytest.fixture
def exif_mm_file(tmp_path):
    """Bare big-endian EXIF blob."""
    path = tmp_path / "motorola.exif"
    path.write_bytes(build_mm_tiff())
    return path
