"""Lightweight in-memory metrics collector."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable


@dataclass
class MetricSnapshot:
    total_turns: int
    degraded_results: int
    strategies: Dict[str, int]
    tool_calls: Dict[str, int]
    tool_failures: Dict[str, int]


class MetricsCollector:
    """Thread-safe counter storage for basic service metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_turns = 0
        self._degraded = 0
        self._strategies: Counter[str] = Counter()
        self._tool_calls: Counter[str] = Counter()
        self._tool_failures: Counter[str] = Counter()

    def record_turn(
        self,
        strategy: str,
        tool_outcomes: Iterable[tuple[str, bool]] = (),
        degraded: bool = False,
    ) -> None:
        with self._lock:
            self._total_turns += 1
            self._strategies[strategy] += 1
            if degraded:
                self._degraded += 1
            for tool, success in tool_outcomes:
                self._tool_calls[tool] += 1
                if not success:
                    self._tool_failures[tool] += 1

    def snapshot(self) -> MetricSnapshot:
        with self._lock:
            return MetricSnapshot(
                total_turns=self._total_turns,
                degraded_results=self._degraded,
                strategies=dict(self._strategies),
                tool_calls=dict(self._tool_calls),
                tool_failures=dict(self._tool_failures),
            )
