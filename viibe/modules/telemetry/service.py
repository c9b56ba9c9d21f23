from __future__ import annotations

from collections import Counter
from statistics import mean
from threading import Lock

from viibe.modules.generation.schemas import GenerationResult


class _GenerationTelemetryStore:
    def __init__(self) -> None:
        self._lock = Lock()
        self._latencies_ms: list[float] = []
        self.total_requests: int = 0
        self.completed_requests: int = 0
        self.invalid_requests: int = 0
        self.fallback_results: int = 0
        self.adjusted_results: int = 0
        self.generation_failures: int = 0
        self.validation_exhaustions: int = 0
        self.persistence_failures: int = 0
        self.ladder_states: Counter[str] = Counter()
        self.failure_kinds: Counter[str] = Counter()

    def reset(self) -> None:
        with self._lock:
            self._latencies_ms = []
            self.total_requests = 0
            self.completed_requests = 0
            self.invalid_requests = 0
            self.fallback_results = 0
            self.adjusted_results = 0
            self.generation_failures = 0
            self.validation_exhaustions = 0
            self.persistence_failures = 0
            self.ladder_states = Counter()
            self.failure_kinds = Counter()

    def record_result(self, *, latency_ms: float, result: GenerationResult) -> None:
        with self._lock:
            self.total_requests += 1
            self.completed_requests += 1
            self._latencies_ms.append(float(latency_ms))
            if len(self._latencies_ms) > 1000:
                self._latencies_ms = self._latencies_ms[-1000:]
            self.ladder_states[str(result.ladder_state)] += 1
            if result.fallback_used:
                self.fallback_results += 1
            if result.was_adjusted:
                self.adjusted_results += 1

    def record_invalid(self) -> None:
        with self._lock:
            self.total_requests += 1
            self.invalid_requests += 1

    def record_generation_failure(self, *, error_kind: str) -> None:
        with self._lock:
            self.generation_failures += 1
            self.failure_kinds[str(error_kind)] += 1

    def record_validation_exhaustion(self) -> None:
        with self._lock:
            self.validation_exhaustions += 1

    def record_persistence_failure(self) -> None:
        with self._lock:
            self.persistence_failures += 1

    def summary(self) -> dict:
        with self._lock:
            latencies = list(self._latencies_ms)
            completed = int(self.completed_requests)
            fallback_rate = 0.0 if completed <= 0 else float(self.fallback_results) / float(completed)

            avg_latency = float(mean(latencies)) if latencies else 0.0
            p95_latency = 0.0
            if latencies:
                ordered = sorted(latencies)
                idx = max(0, min(len(ordered) - 1, round(0.95 * (len(ordered) - 1))))
                p95_latency = float(ordered[idx])

            return {
                "total_requests": int(self.total_requests),
                "completed_requests": completed,
                "invalid_requests": int(self.invalid_requests),
                "avg_latency_ms": round(avg_latency, 3),
                "p95_latency_ms": round(p95_latency, 3),
                "fallback_rate": round(fallback_rate, 4),
                "adjusted_results": int(self.adjusted_results),
                "ladder_states": dict(self.ladder_states),
                "generation_failures": int(self.generation_failures),
                "failure_kinds": dict(self.failure_kinds),
                "validation_exhaustions": int(self.validation_exhaustions),
                "persistence_failures": int(self.persistence_failures),
            }


_generation_telemetry = _GenerationTelemetryStore()


def reset_generation_telemetry() -> None:
    _generation_telemetry.reset()


def record_generation_result(*, latency_ms: float, result: GenerationResult) -> None:
    _generation_telemetry.record_result(latency_ms=latency_ms, result=result)


def record_invalid_request() -> None:
    _generation_telemetry.record_invalid()


def record_generation_failure(*, error_kind: str) -> None:
    _generation_telemetry.record_generation_failure(error_kind=error_kind)


def record_validation_exhaustion() -> None:
    _generation_telemetry.record_validation_exhaustion()


def record_persistence_failure() -> None:
    _generation_telemetry.record_persistence_failure()


def get_generation_telemetry_summary() -> dict:
    return _generation_telemetry.summary()
