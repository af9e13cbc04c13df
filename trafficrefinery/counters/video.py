"""Segmentation of video downloads by upstream requests."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from trafficrefinery.counters.base import Counter, Direction

# Minimum length in bytes for an upstream QUIC packet to carry payload.
QUIC_HEADER_LEN = 100


@dataclass
class VideoSegment:
    """A download that follows one upstream request."""

    length: int = 0
    seq: int = 0
    ts_start: int = 0
    ts_end: int = 0
    last_pkt: int = 0
    down_pkts: int = 0
    down_bytes: int = 0
    max_d_seq: int = 0


def _segment_json(seg: VideoSegment) -> dict[str, int]:
    return {
        "Len": seg.length,
        "Seq": seg.seq,
        "TsStart": seg.ts_start,
        "TsEnd": seg.ts_end,
        "LastPkt": seg.last_pkt,
        "DownPkts": seg.down_pkts,
        "DonwBytes": seg.down_bytes,
        "MaxDSeq": seg.max_d_seq,
    }


def _tcp_seq(pkt: Any) -> int:
    tcp = getattr(pkt, "tcp", None)
    return 0 if tcp is None else tcp.seq


@dataclass
class VideoCounters(Counter):
    """Splits a flow into segments, each opened by an upstream data packet."""

    upstream_chunks: list[VideoSegment] = field(default_factory=list)
    running_upstream: VideoSegment = field(default_factory=VideoSegment)

    def add_packet(self, pkt: Any) -> None:
        """Open a new segment on upstream data, or account downstream data."""
        if pkt.dir is Direction.OUT:
            if pkt.is_tcp:
                carries_data = pkt.data_length > 0
            else:
                carries_data = pkt.data_length > QUIC_HEADER_LEN
            if carries_data:
                running = self.running_upstream
                if running.ts_start != 0 and running.down_pkts > 0:
                    running.ts_end = running.last_pkt
                    self.upstream_chunks.append(running)
                self.running_upstream = VideoSegment(
                    length=pkt.length, ts_start=pkt.tstamp, seq=_tcp_seq(pkt)
                )
        elif pkt.data_length > 0:
            running = self.running_upstream
            running.down_pkts += 1
            running.down_bytes += pkt.data_length
            running.max_d_seq = max(running.max_d_seq, _tcp_seq(pkt))
            if pkt.tstamp > running.ts_end:
                running.last_pkt = pkt.tstamp

    def reset(self) -> None:
        """Drop all segments, including the running one."""
        self.running_upstream = VideoSegment()
        self.upstream_chunks = []

    def clear(self) -> None:
        """Drop the completed segments, keeping the running one."""
        self.upstream_chunks = []

    def collect(self) -> bytes:
        """Return the segments, with the running one last if it started, as JSON."""
        segments = list(self.upstream_chunks)
        if self.running_upstream.ts_start > 0:
            segments.append(self.running_upstream)
        return json.dumps(
            {"VideoSegments": [_segment_json(seg) for seg in segments]},
            separators=(",", ":"),
        ).encode()