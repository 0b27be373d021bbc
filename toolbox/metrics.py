"""In-memory Prometheus-style metrics (counters + histograms)."""
from __future__ import annotations
import threading
from collections import defaultdict
from typing import Dict, List, Tuple

HIST_BUCKETS_MS = [5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000]

COUNTERS = {
    "mcp_requests_total": "Total MCP requests by method and status",
}
HISTOGRAMS = {
    "mcp_http_request_duration_ms": "HTTP request latency by endpoint/status",
    "mcp_tool_call_duration_ms": "Tool call latency by tool and outcome",
}

LabelKey = Tuple[Tuple[str, str], ...]


def _labels(labels: Dict[str, str]) -> LabelKey:
    return tuple(sorted((k, str(v)) for k, v in labels.items()))


def _fmt(label_pairs) -> str:
    return ",".join(f'{k}="{v}"' for k, v in label_pairs)


class Metrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Dict[Tuple[str, LabelKey], int] = defaultdict(int)
        self._sum: Dict[Tuple[str, LabelKey], float] = defaultdict(float)
        self._count: Dict[Tuple[str, LabelKey], int] = defaultdict(int)
        self._buckets: Dict[Tuple[str, LabelKey, str], int] = defaultdict(int)

    def inc(self, name: str, **labels: str) -> None:
        with self._lock:
            self._counters[(name, _labels(labels))] += 1

    def observe(self, name: str, value_ms: float, **labels: str) -> None:
        key = _labels(labels)
        v = float(value_ms)
        with self._lock:
            self._sum[(name, key)] += v
            self._count[(name, key)] += 1
            # cumulative buckets
            for b in HIST_BUCKETS_MS:
                if v <= b:
                    self._buckets[(name, key, str(b))] += 1
            self._buckets[(name, key, "+Inf")] += 1

    def counter(self, name: str, **labels: str) -> int:
        with self._lock:
            return self._counters.get((name, _labels(labels)), 0)

    def render(self) -> str:
        lines: List[str] = []
        with self._lock:
            for metric, help_text in COUNTERS.items():
                lines.append(f"# HELP {metric} {help_text}")
                lines.append(f"# TYPE {metric} counter")
                for (name, label_pairs), val in sorted(self._counters.items()):
                    if name == metric:
                        lines.append(f"{name}{{{_fmt(label_pairs)}}} {val}")

            for metric, help_text in HISTOGRAMS.items():
                lines.append(f"# HELP {metric} {help_text}")
                lines.append(f"# TYPE {metric} histogram")
                for (name, label_pairs), total in sorted(self._sum.items()):
                    if name != metric:
                        continue
                    for le in [str(b) for b in HIST_BUCKETS_MS] + ["+Inf"]:
                        lbl = _labels({**dict(label_pairs), "le": le})
                        cnt = self._buckets.get((name, label_pairs, le), 0)
                        lines.append(f"{name}_bucket{{{_fmt(lbl)}}} {cnt}")
                    lines.append(f"{name}_sum{{{_fmt(label_pairs)}}} {total}")
                    lines.append(f"{name}_count{{{_fmt(label_pairs)}}} {self._count[(name, label_pairs)]}")
        return "\n".join(lines) + "\n"
