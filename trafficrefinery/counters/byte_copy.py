"""Copying of the first bytes of a flow."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from trafficrefinery.counters.base import Counter

ETHERNET_HEADER_LEN = 14
DEFAULT_TO_COPY = 400


class Layers(IntEnum):
    """Which parts of each packet are copied."""

    HEADERS_ONLY = 0
    ALL_LAYERS = 1
    PAYLOAD_ONLY = 2


def _header_size(pkt: Any) -> int:
    size = ETHERNET_HEADER_LEN
    if pkt.is_ipv4:
        size += 4 * pkt.ip4.ihl
    else:
        size += pkt.ip6.length - pkt.data_length
    return size + pkt.length - pkt.data_length


def _copy_into(buf: bytearray | None, offset: int, src: bytes) -> int:
    if buf is None:
        return 0
    n = min(len(buf) - offset, len(src))
    if n <= 0:
        return 0
    buf[offset : offset + n] = src[:n]
    return n


def _copy_packet(
    buf: bytearray | None, stored: int, copied: int, to_copy: int, layers: int, pkt: Any
) -> int:
    """Copy the selected layers of ``pkt`` into ``buf`` at ``stored``.

    Returns the number of bytes copied.
    """
    header = _header_size(pkt)
    raw = bytes(pkt.raw_data)
    total = 0
    if layers < Layers.PAYLOAD_ONLY:
        take = max(0, min(to_copy - copied, header))
        total += _copy_into(buf, stored, raw[:take])
    if layers > Layers.HEADERS_ONLY and pkt.data_length > 0:
        take = max(0, min(to_copy - copied - total, pkt.data_length))
        total += _copy_into(buf, stored + total, raw[header : header + take])
    return total


@dataclass
class ByteCopyCounters(Counter):
    """Stores the first ``to_copy`` bytes of a flow's packets."""

    copied_bytes: int = 0
    stored_bytes: int = 0
    to_copy: int = DEFAULT_TO_COPY
    layers: Layers = Layers.HEADERS_ONLY
    data: bytearray | None = field(default_factory=lambda: bytearray(DEFAULT_TO_COPY))

    def add_packet(self, pkt: Any) -> None:
        """Copy the selected layers of ``pkt`` until ``to_copy`` bytes are held."""
        if self.copied_bytes >= self.to_copy:
            return
        n = _copy_packet(
            self.data, self.stored_bytes, self.copied_bytes, self.to_copy, self.layers, pkt
        )
        self.copied_bytes += n
        self.stored_bytes += n

    def reset(self) -> None:
        """Start copying again into a fresh buffer."""
        self.copied_bytes = 0
        self.stored_bytes = 0
        self.to_copy = DEFAULT_TO_COPY
        self.layers = Layers.HEADERS_ONLY
        self.data = bytearray(self.to_copy)

    def clear(self) -> None:
        """Rewind storage; release the buffer once copying is complete."""
        self.stored_bytes = 0
        if self.copied_bytes >= self.to_copy:
            self.data = None

    def collect(self) -> bytes:
        """Return the copied count and buffer (base64, or null) as JSON."""
        encoded = None if self.data is None else base64.b64encode(bytes(self.data)).decode()
        return json.dumps(
            {"CopiedBytes": self.copied_bytes, "Data": encoded}, separators=(",", ":")
        ).encode()