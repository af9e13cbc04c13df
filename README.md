# trafficrefinery

Building blocks for collecting flow-level features from network traffic.

The package provides:

- **Per-flow counters** (`trafficrefinery.counters`): packet and byte counts
  (`PacketCounters`), video segment tracking (`VideoCounters`), raw byte capture
  of the first bytes of a flow (`ByteCopyCounters`) and grayscale PNG snapshots
  of those bytes (`PNGCopyCounters`). Every counter offers `add_packet`,
  `reset`, `clear` and `collect`; `collect` returns a compact JSON document as
  bytes.
- **A counter registry** (`AvailableCounters`) that turns counter names into
  numeric ids and creates fresh counter instances.
- **A time-expiring cache** (`trafficrefinery.cache.timecache.SimpleTimeCache`)
  and the `fnv32` / `djb33` string hashes (`trafficrefinery.cache.hashing`).
- **Domain matching** with an Aho–Corasick automaton (`AhoCorasick`).
- **Configuration loading** (`TrafficRefineryConfig`) from JSON, YAML or TOML
  files, with defaults for system, parser, cache, statistics and service
  settings.

## Installing

```
pip install .
pip install ".[test]"   # with pytest, to run the tests
```

## Matching domains

```python
from trafficrefinery.aho_corasick import AhoCorasick

ac = AhoCorasick()
for word in ["he", "she", "his", "hers"]:
    ac.add_string(word, word)
ac.failure()

ac.first_match("ushers")   # ['she', 'he']
ac.first_match("asdf")     # []
```

`failure()` must be called once all strings are added; `first_match` raises
`RuntimeError` before that.

## Caching

`SimpleTimeCache(cleanup_time, evict_time)` keeps values with an optional time
to live, in seconds. A `ttl` of `0` never expires on lookup. `lookup` raises
`KeyError` when the key is missing or its time to live has passed.

```python
from trafficrefinery.cache.timecache import SimpleTimeCache

with SimpleTimeCache(cleanup_time=60, evict_time=600) as dns:
    dns.insert("192.0.2.1", "example.com", 300)
    dns.lookup("192.0.2.1")   # 'example.com'
```

With a positive `cleanup_time` a background thread calls `clear_cache()` at
that period; it removes entries that are expired and have not been used for
longer than `evict_time`. `stop_cache_timer()` (or leaving the `with` block)
stops the thread.

`fnv32(key)` and `djb33(seed, key)` return 32-bit hashes of a string or bytes.

## Counters

Counters read packets by attribute, so any object with the needed fields will
do: `dir` (a `Direction`), `tstamp` (nanoseconds), `length`, `data_length`,
`is_tcp`, `is_ipv4`, `ip4.ihl`, `ip6.length`, `tcp.seq` and `raw_data`,
depending on the counter.

```python
from types import SimpleNamespace

from trafficrefinery.counters.base import Direction
from trafficrefinery.counters.registry import AvailableCounters

registry = AvailableCounters()
registry.build(["PacketCounters", "VideoCounters"])   # {'PacketCounters': 0, 'VideoCounters': 1}

counter = registry.instantiate_by_name("PacketCounters")
counter.add_packet(SimpleNamespace(dir=Direction.IN, length=60))
counter.collect()   # b'{"InCounter":1,"OutCounter":0,"InBytes":60,"OutBytes":0}'
```

Building with a name that is not a known counter raises `CounterError`, as does
instantiating a name or id that was not built.

`ByteCopyCounters` and `PNGCopyCounters` store up to 400 bytes, choosing which
parts of each packet to copy with `Layers`. Their `collect` output carries the
data base64-encoded. `encode_gray_png(pixels, width, height)` from
`trafficrefinery.counters.png_copy` encodes any 8-bit grayscale image.

## Configuration

```python
from trafficrefinery.config import TrafficRefineryConfig, parse_duration

conf = TrafficRefineryConfig().import_config_from_file("trconfig.json")
conf.flow_cache.shards_count   # 32 unless the file says otherwise
conf.to_dict()                 # plain data, durations in nanoseconds

parse_duration("1h30m")        # 5400.0
```

`import_config(search_paths)` looks for `trconfig.json`, `.toml`, `.yaml` or
`.yml` in the given directories (by default `./` and `/etc/traffic_refinery/`).
Keys in files are matched without regard to case. Durations are held as
seconds; in files they are written as numbers of nanoseconds or as strings such
as `"10m"`. Problems with a configuration raise `ConfigError`.

## What the package does not do

It does not capture or decode packets, keep a table of flows, map traffic to
services, or write statistics to disk; there is no command-line program. The
counters work on packet objects supplied by the caller, and the cache offered
is the single-lock `SimpleTimeCache`.