import struct
import zlib

import pytest

from docshift.core.document import Document
from docshift.core.resource import IdGenerator


def _png_chunk(tag: bytes, payload: bytes) -> bytes:
    return (
        struct.pack(">I", len(payload))
        + tag
        + payload
        + struct.pack(">I", zlib.crc32(tag + payload) & 0xFFFFFFFF)
    )


def make_png(width: int = 1, height: int = 1) -> bytes:
    """Build a minimal valid RGB PNG."""
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    raw = b"".join(b"\x00" + b"\xff\x00\x00" * width for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(raw))
        + _png_chunk(b"IEND", b"")
    )


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def id_generator():
    return IdGenerator(prefix="t_")


@pytest.fixture
def empty_doc(id_generator):
    return Document(id_generator=id_generator)
