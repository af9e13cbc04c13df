import base64
import json
import struct
import zlib
from types import SimpleNamespace

import pytest

from trafficrefinery.counters.byte_copy import Layers
from trafficrefinery.counters.png_copy import PNG_SIGNATURE, PNGCopyCounters, encode_gray_png


def decode_png(blob):
    assert blob[:8] == PNG_SIGNATURE
    pos = 8
    chunks = {}
    order = []
    while pos < len(blob):
        (length,) = struct.unpack(">I", blob[pos : pos + 4])
        tag = blob[pos + 4 : pos + 8]
        body = blob[pos + 8 : pos + 8 + length]
        (crc,) = struct.unpack(">I", blob[pos + 8 + length : pos + 12 + length])
        assert crc == zlib.crc32(tag + body) & 0xFFFFFFFF
        chunks[tag] = chunks.get(tag, b"") + body
        order.append(tag)
        pos += 12 + length
    assert order[0] == b"IHDR" and order[-1] == b"IEND"
    width, height, depth, color, _, _, _ = struct.unpack(">IIBBBBB", chunks[b"IHDR"])
    raw = zlib.decompress(chunks[b"IDAT"])
    stride = width + 1
    rows = [raw[r * stride : (r + 1) * stride] for r in range(height)]
    assert all(row[0] == 0 for row in rows)
    return width, height, depth, color, b"".join(row[1:] for row in rows)


def make_packet(payload_len, fill=1):
    headers = bytes([fill]) * 54
    payload = bytes([fill + 1]) * payload_len
    return SimpleNamespace(
        is_ipv4=True,
        ip4=SimpleNamespace(ihl=5),
        ip6=SimpleNamespace(length=0),
        length=20 + payload_len,
        data_length=payload_len,
        raw_data=headers + payload,
    )


def filled():
    c = PNGCopyCounters()
    c.reset()
    for i in range(10):
        c.add_packet(make_packet(100, fill=i))
    return c


def test_encode_round_trip():
    pixels = bytes(range(12))
    width, height, depth, color, decoded = decode_png(encode_gray_png(pixels, 4, 3))
    assert (width, height) == (4, 3)
    assert (depth, color) == (8, 0)
    assert decoded == pixels


def test_encode_rejects_wrong_size():
    with pytest.raises(ValueError):
        encode_gray_png(bytes(10), 4, 3)
    with pytest.raises(ValueError):
        encode_gray_png(b"", 0, 0)


def test_add_packet_fills_and_encodes():
    c = filled()
    assert c.copied_bytes == 400
    assert c.stored_bytes == 400
    assert c.created is True
    width, height, _, _, decoded = decode_png(c.buffer)
    assert width * height == 400
    assert decoded == bytes(c.image)


def test_not_created_before_full():
    c = PNGCopyCounters()
    c.reset()
    c.add_packet(make_packet(100))
    assert c.created is False
    assert json.loads(c.collect())["Data"] is None


def test_clear():
    c = filled()
    c.clear()
    assert c.copied_bytes == 400
    assert c.stored_bytes == 0
    assert c.image is None and c.buffer is None


def test_reset():
    c = filled()
    c.reset()
    assert c.copied_bytes == 0
    assert c.stored_bytes == 0
    assert c.created is False
    assert c.layers == Layers.HEADERS_ONLY


def test_collect_holds_png():
    c = filled()
    out = json.loads(c.collect())
    assert out["CopiedBytes"] == 400
    assert base64.b64decode(out["Data"]) == c.buffer