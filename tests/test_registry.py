import pytest

from trafficrefinery.counters.byte_copy import ByteCopyCounters
from trafficrefinery.counters.packet_counters import PacketCounters
from trafficrefinery.counters.png_copy import PNGCopyCounters
from trafficrefinery.counters.registry import AvailableCounters, CounterError
from trafficrefinery.counters.video import VideoCounters

DEFAULTS = ["PacketCounters", "VideoCounters", "ByteCopyCounters", "PNGCopyCounters"]


def test_build_empty():
    ac = AvailableCounters()
    assert ac.build(None) == {}
    assert ac.build([]) == {}


def test_build_defaults():
    ac = AvailableCounters()
    ids = ac.build(DEFAULTS)
    assert set(ids) == set(DEFAULTS)
    assert sorted(ids.values()) == list(range(len(DEFAULTS)))


def test_initialization():
    ac = AvailableCounters()
    ac.build(DEFAULTS)
    created = [type(ac.instantiate_by_name(name)) for name in DEFAULTS]
    assert created == [PacketCounters, VideoCounters, ByteCopyCounters, PNGCopyCounters]
    assert ac.instantiate_by_name("PacketCounters").in_counter == 0


def test_instantiate_by_id():
    ac = AvailableCounters()
    ids = ac.build(DEFAULTS)
    for name, code in ids.items():
        assert type(ac.instantiate_by_id(code)).__name__ == name


def test_instances_are_independent():
    ac = AvailableCounters()
    ac.build(["PacketCounters"])
    first = ac.instantiate_by_name("PacketCounters")
    second = ac.instantiate_by_name("PacketCounters")
    assert first is not second
    first.in_counter = 5
    assert second.in_counter == 0


def test_unknown_counter():
    ac = AvailableCounters()
    with pytest.raises(CounterError, match="does not exist"):
        ac.build(["NoSuchCounter"])


def test_non_counter_type_rejected():
    ac = AvailableCounters({"Plain": dict})
    with pytest.raises(CounterError, match="not of the correct type"):
        ac.build(["Plain"])


def test_instantiate_not_built():
    ac = AvailableCounters()
    ac.build(["PacketCounters"])
    with pytest.raises(CounterError):
        ac.instantiate_by_name("VideoCounters")
    with pytest.raises(CounterError):
        ac.instantiate_by_id(7)