import json
from types import SimpleNamespace

from trafficrefinery.counters.base import Direction
from trafficrefinery.counters.video import QUIC_HEADER_LEN, VideoCounters


def pkt(direction, data_length, tstamp, seq=0, is_tcp=True, length=None):
    return SimpleNamespace(
        dir=direction,
        data_length=data_length,
        length=data_length + 20 if length is None else length,
        tstamp=tstamp,
        is_tcp=is_tcp,
        tcp=SimpleNamespace(seq=seq) if is_tcp else None,
    )


def request_and_download(c, start):
    request = pkt(Direction.OUT, 300, start, seq=11)
    down1 = pkt(Direction.IN, 441, start + 10, seq=5)
    down2 = pkt(Direction.IN, 441, start + 20, seq=9)
    for p in (request, down1, down2):
        c.add_packet(p)
    return request, down1, down2


def test_running_segment_accumulates_downstream():
    c = VideoCounters()
    c.reset()
    request, _, down2 = request_and_download(c, 1000)
    assert c.upstream_chunks == []
    assert c.running_upstream.down_bytes == 882
    assert c.running_upstream.down_pkts == 2
    assert c.running_upstream.ts_start == request.tstamp
    assert c.running_upstream.last_pkt == down2.tstamp
    assert c.running_upstream.max_d_seq == down2.tcp.seq


def test_new_request_closes_segment():
    c = VideoCounters()
    request, _, down2 = request_and_download(c, 1000)
    c.add_packet(pkt(Direction.OUT, 300, 5000))
    assert len(c.upstream_chunks) == 1
    chunk = c.upstream_chunks[0]
    assert chunk.ts_end == down2.tstamp
    assert chunk.length == request.length
    assert chunk.seq == request.tcp.seq
    assert c.running_upstream.ts_start == 5000


def test_request_without_download_is_not_kept():
    c = VideoCounters()
    c.add_packet(pkt(Direction.OUT, 300, 1000))
    c.add_packet(pkt(Direction.OUT, 300, 2000))
    assert c.upstream_chunks == []
    assert c.running_upstream.ts_start == 2000


def test_small_quic_packet_does_not_open_segment():
    c = VideoCounters()
    c.add_packet(pkt(Direction.OUT, QUIC_HEADER_LEN, 1000, is_tcp=False))
    assert c.running_upstream.ts_start == 0
    c.add_packet(pkt(Direction.OUT, QUIC_HEADER_LEN + 1, 1000, is_tcp=False))
    assert c.running_upstream.ts_start == 1000
    assert c.running_upstream.seq == 0


def test_clear_keeps_running_segment():
    c = VideoCounters()
    request_and_download(c, 1000)
    request_and_download(c, 3000)
    c.clear()
    assert c.upstream_chunks == []
    assert c.running_upstream.ts_start == 3000


def test_reset_drops_everything():
    c = VideoCounters()
    request_and_download(c, 1000)
    request_and_download(c, 3000)
    c.reset()
    assert c.upstream_chunks == []
    assert c.running_upstream.ts_start == 0


def test_collect_includes_running_segment():
    c = VideoCounters()
    request_and_download(c, 1000)
    request_and_download(c, 3000)
    out = json.loads(c.collect())
    segments = out["VideoSegments"]
    assert [s["TsStart"] for s in segments] == [1000, 3000]
    assert segments[0]["DonwBytes"] == 882
    assert set(segments[0]) == {
        "Len", "Seq", "TsStart", "TsEnd", "LastPkt", "DownPkts", "DonwBytes", "MaxDSeq",
    }


def test_collect_empty():
    c = VideoCounters()
    assert json.loads(c.collect()) == {"VideoSegments": []}