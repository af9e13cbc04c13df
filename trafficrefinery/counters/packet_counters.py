"""Packet and byte counts per direction."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from trafficrefinery.counters.base import Counter, Direction


@dataclass
class PacketCounters(Counter):
    """Counts packets and bytes in each direction."""

    in_counter: int = 0
    out_counter: int = 0
    in_bytes: int = 0
    out_bytes: int = 0

    def add_packet(self, pkt: Any) -> None:
        """Count ``pkt`` in its direction; packets of unknown direction are ignored."""
        if pkt.dir is Direction.IN:
            self.in_counter += 1
            self.in_bytes += pkt.length
        elif pkt.dir is Direction.OUT:
            self.out_counter += 1
            self.out_bytes += pkt.length

    def reset(self) -> None:
        """Zero all counts."""
        self.in_counter = 0
        self.out_counter = 0
        self.in_bytes = 0
        self.out_bytes = 0

    def clear(self) -> None:
        """Zero all counts (same as :meth:`reset`)."""
        self.reset()

    def collect(self) -> bytes:
        """Return the counts as JSON."""
        return json.dumps(
            {
                "InCounter": self.in_counter,
                "OutCounter": self.out_counter,
                "InBytes": self.in_bytes,
                "OutBytes": self.out_bytes,
            },
            separators=(",", ":"),
        ).encode()