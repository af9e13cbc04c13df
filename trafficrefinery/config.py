"""Configuration of the traffic refinery system.

Configuration files may be JSON, YAML or TOML. Keys are matched without
regard to case, and missing entries take the documented defaults. Durations
are held as seconds (float). In files they are written either as duration
strings such as ``"10m"`` or ``"1h30m"``, or as plain numbers of nanoseconds.
"""

from __future__ import annotations

import json
import re
import tomllib
from collections.abc import Callable, Iterable, Mapping
from dataclasses import MISSING, dataclass, field, fields, is_dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

DEFAULT_SEARCH_PATHS = ("./", "/etc/traffic_refinery/")
DEFAULT_CONFIG_NAME = "trconfig"
SUPPORTED_EXTENSIONS = ("json", "toml", "yaml", "yml")

_NS_PER_SECOND = 1_000_000_000
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "\u00b5s": 1e-6,
    "\u03bcs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_COMPONENT = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|\u00b5s|\u03bcs|ms|s|m|h)"
_COMPONENT_RE = re.compile(_COMPONENT)
_DURATION_RE = re.compile(rf"(?:{_COMPONENT})+")
_UNIT_CHARS = set("nsu\u00b5mh")
_TRUE_STRINGS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_STRINGS = {"0", "f", "F", "FALSE", "false", "False"}


class ConfigError(ValueError):
    """Raised when a configuration cannot be found, read or interpreted."""


def _parse_duration_string(text: str) -> float:
    sign = 1.0
    body = text
    if body[:1] in ("+", "-"):
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]
    if body == "0":
        return 0.0
    if not body or _DURATION_RE.fullmatch(body) is None:
        raise ConfigError(f"invalid duration {text!r}")
    total = sum(
        float(number) * _UNIT_SECONDS[unit]
        for number, unit in _COMPONENT_RE.findall(body)
    )
    return sign * total


def parse_duration(value: Any) -> float:
    """Return ``value`` as a duration in seconds.

    Integers and floats are nanoseconds; strings are duration expressions
    (``"300ms"``, ``"1h30m"``) or, without a unit, nanoseconds. None is zero.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration {value!r}")
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, int):
        return value / _NS_PER_SECOND
    if isinstance(value, float):
        return int(value) / _NS_PER_SECOND
    if isinstance(value, str):
        text = value.strip()
        if not any(ch in _UNIT_CHARS for ch in text):
            text += "ns"
        return _parse_duration_string(text)
    raise ConfigError(f"invalid duration {value!r}")


def _as_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS or text == "":
            return False
    raise ConfigError(f"invalid boolean {value!r}")


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip() or "0")
        except ValueError:
            raise ConfigError(f"invalid integer {value!r}") from None
    raise ConfigError(f"invalid integer {value!r}")


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigError(f"invalid string {value!r}")


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split(",") if value else []
    if isinstance(value, (list, tuple)):
        return [_as_str(item) for item in value]
    raise ConfigError(f"invalid list of strings {value!r}")


def _option(
    key: str,
    convert: Callable[[Any], Any],
    default: Any = MISSING,
    *,
    factory: Callable[[], Any] | None = None,
    duration: bool = False,
) -> Any:
    metadata = {"key": key, "convert": convert, "duration": duration}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _section(data: Any, where: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"{where} must be a mapping")
    return data


def _decode(
    cls: type,
    data: Any,
    where: str,
    *,
    only: Iterable[str] | None = None,
    keep: Any = None,
) -> Any:
    """Build ``cls`` from a lower-cased mapping.

    Fields named in ``only`` (all fields when None) come from ``data`` or the
    class default; other fields keep their values from ``keep``.
    """
    section = _section(data, where)
    defaults = cls()
    result = replace(keep) if keep is not None else cls()
    selected = None if only is None else set(only)
    for f in fields(cls):
        if selected is not None and f.name not in selected:
            continue
        raw = section.get(f.metadata["key"].lower())
        if raw is None:
            value = getattr(defaults, f.name)
        else:
            value = f.metadata["convert"](raw)
        setattr(result, f.name, value)
    return result


def _encode(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.metadata.get("duration"):
            out[f.metadata["key"]] = round(value * _NS_PER_SECOND)
        elif is_dataclass(value):
            out[f.metadata["key"]] = _encode(value)
        elif isinstance(value, list):
            out[f.metadata["key"]] = [
                _encode(item) if is_dataclass(item) else item for item in value
            ]
        else:
            out[f.metadata["key"]] = value
    return out


def _lower_keys(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {str(key).lower(): _lower_keys(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_lower_keys(item) for item in data]
    return data


@dataclass
class SysConfig:
    """General settings of the system."""

    cpu_prof: bool = _option("CPUProf", _as_bool, False)
    mem_prof: bool = _option("MemProf", _as_bool, False)
    interfaces_stats: bool = _option("InterfacesStats", _as_bool, False)
    out_folder: str = _option("OutFolder", _as_str, "/tmp/")


@dataclass
class ParserConfig:
    """Settings of one packet parser."""

    driver: str = _option("Driver", _as_str, "")
    clustered: bool = _option("Clustered", _as_bool, False)
    cluster_id: int = _option("ClusterID", _as_int, 0)
    zero_copy: bool = _option("ZeroCopy", _as_bool, False)
    fan_out: bool = _option("FanOut", _as_bool, False)
    ifname: str = _option("Ifname", _as_str, "")
    mode: str = _option("Mode", _as_str, "")
    replay: bool = _option("Replay", _as_bool, False)
    replay_mac: str = _option("ReplayMAC", _as_str, "")
    replicas: int = _option("Replicas", _as_int, 0)


def _parser_list(value: Any) -> list[ParserConfig]:
    if not isinstance(value, list):
        raise ConfigError("Parsers.TrafficParsers must be a list")
    return [_decode(ParserConfig, item, "Parsers.TrafficParsers") for item in value]


@dataclass
class ParsersConfig:
    """Settings of packet capture and processing."""

    dns_parser: ParserConfig = _option(
        "DNSParser",
        lambda v: _decode(ParserConfig, v, "Parsers.DNSParser"),
        factory=ParserConfig,
    )
    traffic_parsers: list[ParserConfig] = _option(
        "TrafficParsers", _parser_list, factory=list
    )


@dataclass
class DNSCacheConfig:
    """Settings of the DNS cache; times in seconds."""

    evict_time: float = _option("EvictTime", parse_duration, 600.0, duration=True)
    cleanup_time: float = _option("CleanupTime", parse_duration, 300.0, duration=True)


@dataclass
class FlowCacheConfig:
    """Settings of the flow cache; times in seconds."""

    cache_type: str = _option("CacheType", _as_str, "ConcurrentCacheMap")
    evict_time: float = _option("EvictTime", parse_duration, 600.0, duration=True)
    shards_count: int = _option("ShardsCount", _as_int, 32)
    cleanup_time: float = _option("CleanupTime", parse_duration, 300.0, duration=True)
    anonymize: bool = _option("Anonymize", _as_bool, True)


@dataclass
class StatsOutConfig:
    """Settings of statistics output."""

    run: bool = _option("Run", _as_bool, False)
    mode: str = _option("Mode", _as_str, "dump")
    append: bool = _option("Append", _as_bool, False)


@dataclass
class ServiceFilterConfig:
    """Filters that select the traffic of a service."""

    domains_string: list[str] = _option("DomainsString", _as_str_list, factory=list)
    domains_regex: list[str] = _option("DomainsRegex", _as_str_list, factory=list)
    prefixes: list[str] = _option("Prefixes", _as_str_list, factory=list)


@dataclass
class ServiceConfig:
    """A service to track and the features to collect for it."""

    name: str = _option("Name", _as_str, "")
    filter: ServiceFilterConfig = _option(
        "Filter",
        lambda v: _decode(ServiceFilterConfig, v, "Services.Filter"),
        factory=ServiceFilterConfig,
    )
    collect: list[str] = _option("Collect", _as_str_list, factory=list)
    emit: float = _option("Emit", parse_duration, 0.0, duration=True)


def _service_list(value: Any) -> list[ServiceConfig]:
    if not isinstance(value, list):
        raise ConfigError("Services must be a list")
    return [_decode(ServiceConfig, item, "Services") for item in value]


def _read_file(path: Path, kind: str) -> dict[str, Any]:
    kind = kind.lower()
    if kind not in SUPPORTED_EXTENSIONS:
        raise ConfigError(f"unsupported config type {kind!r} for {path}")
    try:
        if kind == "toml":
            with path.open("rb") as handle:
                data: Any = tomllib.load(handle)
        else:
            with path.open(encoding="utf-8") as handle:
                data = json.load(handle) if kind == "json" else yaml.safe_load(handle)
    except FileNotFoundError:
        raise ConfigError(f"config file {path} not found") from None
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"config file {path} does not hold a mapping")
    return _lower_keys(data)


@dataclass
class TrafficRefineryConfig:
    """All settings of traffic refinery."""

    sys: SysConfig = _option("Sys", lambda v: _decode(SysConfig, v, "Sys"), factory=SysConfig)
    parsers: ParsersConfig = _option(
        "Parsers", lambda v: _decode(ParsersConfig, v, "Parsers"), factory=ParsersConfig
    )
    dns_cache: DNSCacheConfig = _option(
        "DNSCache", lambda v: _decode(DNSCacheConfig, v, "DNSCache"), factory=DNSCacheConfig
    )
    flow_cache: FlowCacheConfig = _option(
        "FlowCache",
        lambda v: _decode(FlowCacheConfig, v, "FlowCache"),
        factory=FlowCacheConfig,
    )
    stats: StatsOutConfig = _option(
        "Stats", lambda v: _decode(StatsOutConfig, v, "Stats"), factory=StatsOutConfig
    )
    services: list[ServiceConfig] = _option("Services", _service_list, factory=list)

    def import_config(
        self, search_paths: Iterable[str | Path] = DEFAULT_SEARCH_PATHS
    ) -> TrafficRefineryConfig:
        """Load the first ``trconfig.<ext>`` found in ``search_paths``."""
        paths = list(search_paths)
        for directory in paths:
            for ext in SUPPORTED_EXTENSIONS:
                candidate = Path(directory) / f"{DEFAULT_CONFIG_NAME}.{ext}"
                if candidate.is_file():
                    self._load(_read_file(candidate, ext))
                    return self
        searched = ", ".join(str(p) for p in paths)
        raise ConfigError(
            f'config file "{DEFAULT_CONFIG_NAME}" not found in [{searched}]'
        )

    def import_config_from_file(self, file_name: str | Path) -> TrafficRefineryConfig:
        """Load the configuration from ``file_name``; its extension gives the format."""
        path = Path(file_name)
        kind = path.suffix.lstrip(".")
        self._load(_read_file(path, kind))
        return self

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as plain data, durations in nanoseconds."""
        return _encode(self)

    def _load(self, raw: Mapping[str, Any]) -> None:
        self.sys = _decode(
            SysConfig,
            raw.get("sys"),
            "Sys",
            only=("cpu_prof", "mem_prof", "out_folder"),
            keep=self.sys,
        )

        parsers = _section(raw.get("parsers"), "Parsers")
        dns_parser = _decode(
            ParserConfig,
            parsers.get("dnsparser"),
            "Parsers.DNSParser",
            only=(
                "driver",
                "clustered",
                "cluster_id",
                "zero_copy",
                "ifname",
                "mode",
                "replay",
                "replay_mac",
            ),
            keep=self.parsers.dns_parser,
        )
        traffic = parsers.get("trafficparsers")
        self.parsers = ParsersConfig(
            dns_parser=dns_parser,
            traffic_parsers=[] if traffic is None else _parser_list(traffic),
        )

        self.dns_cache = _decode(DNSCacheConfig, raw.get("dnscache"), "DNSCache")
        self.flow_cache = _decode(FlowCacheConfig, raw.get("flowcache"), "FlowCache")
        self.stats = _decode(StatsOutConfig, raw.get("stats"), "Stats")

        services = raw.get("services")
        self.services = [] if services is None else _service_list(services)