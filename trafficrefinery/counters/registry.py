"""Lookup and instantiation of counters by name."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from trafficrefinery.counters.base import Counter
from trafficrefinery.counters.byte_copy import ByteCopyCounters
from trafficrefinery.counters.packet_counters import PacketCounters
from trafficrefinery.counters.png_copy import PNGCopyCounters
from trafficrefinery.counters.video import VideoCounters

_KNOWN_COUNTERS: dict[str, type] = {
    cls.__name__: cls
    for cls in (PacketCounters, VideoCounters, ByteCopyCounters, PNGCopyCounters)
}


class CounterError(ValueError):
    """Raised when a counter name is unknown or does not name a counter."""


class AvailableCounters:
    """The counter types a program plans to use, with numeric ids.

    ``registry`` maps names to types; by default it holds every counter
    of this package under its class name.
    """

    def __init__(self, registry: Mapping[str, type] | None = None) -> None:
        self._registry = dict(_KNOWN_COUNTERS if registry is None else registry)
        self._by_name: dict[str, type[Counter]] = {}
        self._by_id: dict[int, type[Counter]] = {}
        self.id_to_name: dict[int, str] = {}
        self.name_to_id: dict[str, int] = {}

    def build(self, names: Iterable[str] | None) -> dict[str, int]:
        """Select the counters in ``names`` and return their ids by name."""
        self._by_name = {}
        self._by_id = {}
        self.id_to_name = {}
        self.name_to_id = {}
        for code, name in enumerate(names or ()):
            cls = self._registry.get(name)
            if cls is None:
                raise CounterError(f"counter {name} does not exist")
            if not (isinstance(cls, type) and issubclass(cls, Counter)):
                raise CounterError(f"counter {name} is not of the correct type")
            self.id_to_name[code] = name
            self.name_to_id[name] = code
            self._by_id[code] = cls
            self._by_name[name] = cls
        return dict(self.name_to_id)

    def instantiate_by_name(self, name: str) -> Counter:
        """Return a new counter of the built type called ``name``."""
        try:
            return self._by_name[name]()
        except KeyError:
            raise CounterError(f"counter {name} was not built") from None

    def instantiate_by_id(self, counter_id: int) -> Counter:
        """Return a new counter of the built type with id ``counter_id``."""
        try:
            return self._by_id[counter_id]()
        except KeyError:
            raise CounterError(f"counter id {counter_id} was not built") from None