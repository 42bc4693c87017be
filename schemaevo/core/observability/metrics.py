from __future__ import annotations

from collections import Counter
from typing import Dict, Optional

from prometheus_client import Counter as PromCounter

# Requests counters (HTTP-level)
_REQUESTS = Counter()

# Named counters (generation + conversion)
_NAMED = Counter()

_PROM_REQUESTS = PromCounter(
    "schemaevo_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

_PROM_CONTAINERS = PromCounter(
    "schemaevo_containers_generated_total",
    "Containers run through the generation pipeline",
    ["kind", "outcome"],
)

_PROM_CONVERSIONS = PromCounter(
    "schemaevo_conversions_total",
    "Adjacent conversion edges applied by the runtime",
    ["direction"],
)


def reset_metrics() -> None:
    """
    Test helper: clears all counters to avoid cross-test leakage.
    Safe to call multiple times.
    """
    _REQUESTS.clear()
    _NAMED.clear()


def inc_http(method: str, path: str, status: Optional[int] = None) -> None:
    m = (method or "UNKNOWN").upper()
    p = path or "/"
    s = status if status is not None else "unknown"

    _REQUESTS["requests_total"] += 1
    _REQUESTS[f"requests_{m}"] += 1
    _REQUESTS[f"path_{p}|{s}"] += 1
    _PROM_REQUESTS.labels(method=m, path=p, status=str(s)).inc()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def record_generation(kind: str, outcome: str) -> None:
    """outcome is one of: ok, invalid, collision, irreversible."""
    inc_named(f"containers_{outcome}")
    _PROM_CONTAINERS.labels(kind=kind, outcome=outcome).inc()


def record_conversion(direction: str) -> None:
    inc_named(f"conversions_{direction}")
    _PROM_CONVERSIONS.labels(direction=direction).inc()


def snapshot_requests() -> Dict[str, int]:
    return dict(_REQUESTS)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
