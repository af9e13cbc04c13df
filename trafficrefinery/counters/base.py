"""The interface shared by all per-flow counters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class Direction(Enum):
    """Direction of a packet relative to the monitored network."""

    IN = "in"
    OUT = "out"
    UNKNOWN = "unknown"


class Counter(ABC):
    """A set of statistics updated packet by packet.

    Packets are duck-typed objects. Depending on the counter they are read
    for ``dir`` (a :class:`Direction`), ``tstamp`` (nanoseconds), ``length``
    (transport-layer length), ``data_length`` (payload length), ``is_tcp``,
    ``is_ipv4``, ``ip4.ihl``, ``ip6.length``, ``tcp.seq`` and ``raw_data``.
    """

    @abstractmethod
    def add_packet(self, pkt: Any) -> None:
        """Update the statistics with ``pkt``."""

    @abstractmethod
    def reset(self) -> None:
        """Restart the statistics at the start of an emit period."""

    @abstractmethod
    def clear(self) -> None:
        """Clear the statistics after they have been emitted."""

    @abstractmethod
    def collect(self) -> bytes:
        """Return the statistics serialised as JSON."""