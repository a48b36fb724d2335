"""
Thread-safe in-memory metrics for the showcase service.

Tracks request counters per route, latency samples, failure counters by
kind and the most recent failures. All data is ephemeral and resets on
restart.
"""

import threading
import time
from collections import defaultdict
from typing import Dict, List

_lock = threading.Lock()

_counters: Dict[str, int] = defaultdict(int)

# ── Latency samples (last 100 per route) ─────────────────────────────────────
_latency_samples: Dict[str, List[float]] = defaultdict(list)
MAX_SAMPLES = 100

# ── Error log (last 50 failures) ─────────────────────────────────────────────
_recent_errors: List[dict] = []
MAX_ERRORS = 50

_started_at = time.time()


def inc_counter(name: str, amount: int = 1):
    """Increment a counter (e.g. 'requests.generate_video', 'errors.QuotaFailure')."""
    with _lock:
        _counters[name] += amount


def record_latency(route: str, duration_ms: float):
    """Record a latency sample in milliseconds."""
    with _lock:
        samples = _latency_samples[route]
        samples.append(duration_ms)
        if len(samples) > MAX_SAMPLES:
            _latency_samples[route] = samples[-MAX_SAMPLES:]


def record_error(route: str, error_type: str, message: str):
    """Count a failure and keep it for inspection."""
    with _lock:
        _counters[f"errors.{error_type}"] += 1
        _recent_errors.append({
            "timestamp": time.time(),
            "route": route,
            "error_type": error_type,
            "message": message[:300],
        })
        if len(_recent_errors) > MAX_ERRORS:
            _recent_errors.pop(0)


def _percentile(samples: List[float], pct: float) -> float:
    if not samples:
        return 0.0
    ordered = sorted(samples)
    index = min(len(ordered) - 1, int(round(pct / 100 * (len(ordered) - 1))))
    return round(ordered[index], 1)


def get_snapshot() -> dict:
    """Return a JSON-serialisable view of every metric."""
    with _lock:
        latency = {
            route: {
                "count": len(samples),
                "p50_ms": _percentile(samples, 50),
                "p95_ms": _percentile(samples, 95),
            }
            for route, samples in _latency_samples.items()
        }
        return {
            "uptime_seconds": round(time.time() - _started_at, 1),
            "counters": dict(_counters),
            "latency": latency,
            "recent_errors": list(_recent_errors),
        }


def reset():
    """Clear all metrics."""
    with _lock:
        _counters.clear()
        _latency_samples.clear()
        _recent_errors.clear()
