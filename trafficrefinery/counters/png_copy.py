"""Copying of the first bytes of a flow into a grayscale PNG image."""

from __future__ import annotations

import base64
import json
import math
import struct
import zlib
from dataclasses import dataclass, field
from typing import Any

from trafficrefinery.counters.base import Counter
from trafficrefinery.counters.byte_copy import DEFAULT_TO_COPY, Layers, _copy_packet

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _chunk(tag: bytes, body: bytes) -> bytes:
    crc = zlib.crc32(tag + body) & 0xFFFFFFFF
    return struct.pack(">I", len(body)) + tag + body + struct.pack(">I", crc)


def encode_gray_png(pixels: bytes | bytearray, width: int, height: int) -> bytes:
    """Encode ``pixels`` (one byte each, row by row) as an 8-bit grayscale PNG."""
    data = bytes(pixels)
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")
    if len(data) != width * height:
        raise ValueError(
            f"expected {width * height} pixels for a {width}x{height} image, got {len(data)}"
        )
    scanlines = b"".join(
        b"\x00" + data[row * width : (row + 1) * width] for row in range(height)
    )
    header = struct.pack(">IIBBBBB", width, height, 8, 0, 0, 0, 0)
    return (
        PNG_SIGNATURE
        + _chunk(b"IHDR", header)
        + _chunk(b"IDAT", zlib.compress(scanlines))
        + _chunk(b"IEND", b"")
    )


@dataclass
class PNGCopyCounters(Counter):
    """Stores the first ``to_copy`` bytes of a flow as a square grayscale image.

    Once the image is full it is encoded as PNG into ``buffer``.
    """

    copied_bytes: int = 0
    stored_bytes: int = 0
    to_copy: int = DEFAULT_TO_COPY
    layers: Layers = Layers.HEADERS_ONLY
    side: int = math.isqrt(DEFAULT_TO_COPY)
    image: bytearray | None = field(default_factory=lambda: bytearray(DEFAULT_TO_COPY))
    buffer: bytes | None = b""
    created: bool = False

    def add_packet(self, pkt: Any) -> None:
        """Copy the selected layers of ``pkt``; encode the PNG once full."""
        if self.copied_bytes < self.to_copy:
            n = _copy_packet(
                self.image,
                self.stored_bytes,
                self.copied_bytes,
                self.to_copy,
                self.layers,
                pkt,
            )
            self.copied_bytes += n
            self.stored_bytes += n
        if not self.created and self.copied_bytes >= self.to_copy and self.image is not None:
            self.buffer = encode_gray_png(self.image, self.side, self.side)
            self.created = True

    def reset(self) -> None:
        """Start copying again into a fresh image."""
        self.to_copy = DEFAULT_TO_COPY
        self.layers = Layers.HEADERS_ONLY
        self.copied_bytes = 0
        self.stored_bytes = 0
        self.side = math.isqrt(self.to_copy)
        self.image = bytearray(self.to_copy)
        self.buffer = b""
        self.created = False

    def clear(self) -> None:
        """Rewind storage; release the image once the PNG has been made."""
        self.stored_bytes = 0
        if self.copied_bytes >= self.to_copy and self.created:
            self.image = None
            self.buffer = None

    def collect(self) -> bytes:
        """Return the copied count and the PNG (base64, or null) as JSON."""
        encoded = None
        if self.created and self.buffer is not None:
            encoded = base64.b64encode(self.buffer).decode()
        return json.dumps(
            {"CopiedBytes": self.copied_bytes, "Data": encoded}, separators=(",", ":")
        ).encode()