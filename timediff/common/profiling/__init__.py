"""Runtime profiling helpers for the subtraction service.

Profiling is opt-in via the ``TIMEDIFF_PROFILE`` environment variable. When it
is disabled the wrappers are passthroughs with near-zero overhead.

When enabled the profiler captures wall-clock time, CPU time, traced memory and
RSS deltas for decorated functions and profiled sections. ``Profiler.flush``
writes the raw samples as JSONL and an aggregated CSV into the directory named
by ``TIMEDIFF_PROFILE_DIR`` (``./.profile`` by default).
"""

from __future__ import annotations

import atexit
import csv
import functools
import inspect
import json
import logging
import math
import os
import threading
import time
import tracemalloc
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import psutil

profile_logger = logging.getLogger("timediff.profiling")

_PROFILE_ENABLED_CACHE: Optional[bool] = None

_SUMMARY_HEADER = [
    "module",
    "name",
    "type",
    "calls",
    "wall_ms_total",
    "wall_ms_mean",
    "wall_ms_p95",
    "cpu_ms_total",
    "alloc_kb_total",
    "rss_kb_total",
]


def profile_enabled() -> bool:
    """Return True when profiling is enabled via ``TIMEDIFF_PROFILE``."""

    global _PROFILE_ENABLED_CACHE
    if _PROFILE_ENABLED_CACHE is None:
        value = os.getenv("TIMEDIFF_PROFILE", "").lower()
        _PROFILE_ENABLED_CACHE = value in {"1", "true", "yes", "on"}
    return _PROFILE_ENABLED_CACHE


def get_profile_dir() -> Path:
    return Path(os.getenv("TIMEDIFF_PROFILE_DIR", ".profile"))


@dataclass
class _Measurement:
    name: str
    module: str
    type: str
    start_wall: float
    start_cpu: float
    start_alloc: Optional[int]
    start_rss: Optional[int]


class _NullProfiler:
    """No-op profiler used when profiling is disabled."""

    enabled: bool = False

    def before(self, *_: Any, **__: Any) -> Optional[_Measurement]:  # pragma: no cover - trivial
        return None

    def after(self, *_: Any, **__: Any) -> None:  # pragma: no cover - trivial
        return None

    def summary(self) -> List[Dict[str, Any]]:
        return []

    def flush(self) -> Optional[Path]:
        return None


class Profiler:
    """Singleton profiler used to accumulate profiling samples."""

    _instance: Optional["Profiler | _NullProfiler"] = None
    _instance_lock = threading.Lock()

    def __init__(self, profile_dir: Optional[Path] = None) -> None:
        self.enabled = True
        self.pid = os.getpid()
        self.records: List[Dict[str, Any]] = []
        self._summary: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._profile_dir = profile_dir or get_profile_dir()
        self._jsonl_path = self._profile_dir / f"profile_{self.pid}.jsonl"
        self._summary_path = self._profile_dir / f"summary_{self.pid}.csv"
        self._process = psutil.Process(self.pid)

        if not tracemalloc.is_tracing():
            tracemalloc.start()

        atexit.register(self.flush)
        profile_logger.info(
            "Profiling enabled (pid=%s, dir=%s)", self.pid, self._profile_dir
        )

    @classmethod
    def instance(cls) -> "Profiler | _NullProfiler":
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls() if profile_enabled() else _NullProfiler()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton and the cached flag so the environment is re-read."""

        global _PROFILE_ENABLED_CACHE
        with cls._instance_lock:
            cls._instance = None
            _PROFILE_ENABLED_CACHE = None

    def before(self, name: str, module: str, typ: str) -> _Measurement:
        return _Measurement(
            name=name,
            module=module,
            type=typ,
            start_wall=time.perf_counter(),
            start_cpu=time.process_time(),
            start_alloc=self._traced_bytes(),
            start_rss=self._rss_bytes(),
        )

    def after(self, measurement: Optional[_Measurement]) -> None:
        if measurement is None:
            return

        wall_ms = (time.perf_counter() - measurement.start_wall) * 1000.0
        cpu_ms = (time.process_time() - measurement.start_cpu) * 1000.0
        end_alloc = self._traced_bytes()
        end_rss = self._rss_bytes()

        record: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "pid": self.pid,
            "module": measurement.module,
            "name": measurement.name,
            "type": measurement.type,
            "wall_ms": wall_ms,
            "cpu_ms": cpu_ms,
            "alloc_kb_delta": _delta_kb(measurement.start_alloc, end_alloc),
            "rss_kb_delta": _delta_kb(measurement.start_rss, end_rss),
        }

        with self._lock:
            self.records.append(record)
            self._update_summary(record)

    def summary(self) -> List[Dict[str, Any]]:
        """Return aggregated rows sorted by total wall time, slowest first."""

        with self._lock:
            rows = [_summary_row(stats) for stats in self._summary.values()]
        return sorted(rows, key=lambda row: row["wall_ms_total"], reverse=True)

    def flush(self) -> Optional[Path]:
        """Write samples and the aggregated summary, returning the summary path."""

        with self._lock:
            records = list(self.records)
        rows = self.summary()
        try:
            self._profile_dir.mkdir(parents=True, exist_ok=True)
            self._write_records(records)
            self._write_summary(rows)
        except OSError:  # pragma: no cover - filesystem issues
            profile_logger.warning(
                "Failed to write profiling artifacts to %s", self._profile_dir
            )
            return None
        return self._summary_path

    def _update_summary(self, record: Dict[str, Any]) -> None:
        key = (record["module"], record["name"], record["type"])
        stats = self._summary.setdefault(
            key,
            {
                "module": record["module"],
                "name": record["name"],
                "type": record["type"],
                "calls": 0,
                "wall_ms_values": [],
                "cpu_ms_total": 0.0,
                "alloc_kb_total": 0.0,
                "rss_kb_total": 0.0,
            },
        )
        stats["calls"] += 1
        stats["wall_ms_values"].append(record["wall_ms"])
        stats["cpu_ms_total"] += record["cpu_ms"]
        if record["alloc_kb_delta"] is not None:
            stats["alloc_kb_total"] += record["alloc_kb_delta"]
        if record["rss_kb_delta"] is not None:
            stats["rss_kb_total"] += record["rss_kb_delta"]

    def _write_records(self, records: Iterable[Dict[str, Any]]) -> None:
        with self._jsonl_path.open("w", encoding="utf-8") as fh:
            for record in records:
                fh.write(json.dumps(record) + "\n")

    def _write_summary(self, rows: Iterable[Dict[str, Any]]) -> None:
        with self._summary_path.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.DictWriter(fh, fieldnames=_SUMMARY_HEADER)
            writer.writeheader()
            writer.writerows(rows)

    def _traced_bytes(self) -> Optional[int]:
        if tracemalloc.is_tracing():
            return tracemalloc.get_traced_memory()[0]
        return None

    def _rss_bytes(self) -> Optional[int]:
        try:
            return self._process.memory_info().rss
        except psutil.Error:  # pragma: no cover - process vanished
            return None


def _delta_kb(start: Optional[int], end: Optional[int]) -> Optional[float]:
    if start is None or end is None:
        return None
    return (end - start) / 1024.0


def _summary_row(stats: Dict[str, Any]) -> Dict[str, Any]:
    wall_values = stats["wall_ms_values"]
    calls = max(stats["calls"], 1)
    wall_total = sum(wall_values)
    return {
        "module": stats["module"],
        "name": stats["name"],
        "type": stats["type"],
        "calls": stats["calls"],
        "wall_ms_total": wall_total,
        "wall_ms_mean": wall_total / calls,
        "wall_ms_p95": _percentile(wall_values, 95),
        "cpu_ms_total": stats["cpu_ms_total"],
        "alloc_kb_total": stats["alloc_kb_total"],
        "rss_kb_total": stats["rss_kb_total"],
    }


def _percentile(values: List[float], percentile: float) -> float:
    if not values:
        return 0.0
    sorted_values = sorted(values)
    k = (len(sorted_values) - 1) * (percentile / 100.0)
    f = math.floor(k)
    c = math.ceil(k)
    if f == c:
        return sorted_values[int(k)]
    d0 = sorted_values[int(f)] * (c - k)
    d1 = sorted_values[int(c)] * (k - f)
    return d0 + d1


def profile_function(name: Optional[str] = None):
    """Decorator that profiles the wrapped function when profiling is enabled."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            profiler = Profiler.instance()
            if not profiler.enabled:
                return func(*args, **kwargs)

            measurement = profiler.before(
                name or func.__qualname__, func.__module__, "function"
            )
            try:
                return func(*args, **kwargs)
            finally:
                profiler.after(measurement)

        return wrapper

    return decorator


class _ProfileSectionContext:
    def __init__(self, profiler: Profiler, name: str, module: str):
        self._profiler = profiler
        self._name = name
        self._module = module
        self._measurement: Optional[_Measurement] = None

    def __enter__(self):
        self._measurement = self._profiler.before(self._name, self._module, "section")
        return self

    def __exit__(self, exc_type, exc, tb):
        self._profiler.after(self._measurement)
        return False


def profile_section(name: str):
    """Context manager to profile an arbitrary code block."""

    profiler = Profiler.instance()
    if not profiler.enabled:
        return nullcontext()

    frame = inspect.currentframe()
    caller_frame = frame.f_back if frame is not None else None
    module_name = (
        caller_frame.f_globals.get("__name__", "__main__") if caller_frame else "__main__"
    )
    return _ProfileSectionContext(profiler, name, module_name)


__all__ = [
    "profile_enabled",
    "profile_function",
    "profile_section",
    "get_profile_dir",
    "Profiler",
]
