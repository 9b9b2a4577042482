"""Prometheus metrics for the minting session.

- ``ordinals_pipeline_outcomes_total`` counter-vec (terminal pipeline state)
- ``ordinals_balance_refresh_histogram``
- ``ordinals_balance_refresh_failures_total``
- ``ordinals_inscription_pages_total``
- ``ordinals_inscriptions_loaded`` gauge
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

_PREFIX = "ordinals"


class MetricsCollector:
    """Owns a private Prometheus registry and creates metrics on it.

    Nothing is registered on the global default registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry if registry is not None else CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def counter(self, name: str, doc: str, labels: Sequence[str] = ()) -> Counter:
        return Counter(name, doc, labelnames=tuple(labels), registry=self._registry)

    def gauge(self, name: str, doc: str, labels: Sequence[str] = ()) -> Gauge:
        return Gauge(name, doc, labelnames=tuple(labels), registry=self._registry)

    def histogram(self, name: str, doc: str, labels: Sequence[str] = ()) -> Histogram:
        return Histogram(name, doc, labelnames=tuple(labels), registry=self._registry)

    def exposition(self) -> bytes:
        """Render every metric in the Prometheus text format."""
        return generate_latest(self._registry)


class MinterMetrics:
    """Session-level metrics for balance, listing and creation activity."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector if collector is not None else MetricsCollector()

        self._outcomes = self._collector.counter(
            f"{_PREFIX}_pipeline_outcomes",
            "Terminal states reached by ordinal creation runs",
            ("state",),
        )
        self._balance_refresh = self._collector.histogram(
            f"{_PREFIX}_balance_refresh_histogram",
            "Duration of balance refreshes",
        )
        self._balance_failures = self._collector.counter(
            f"{_PREFIX}_balance_refresh_failures",
            "Balance refreshes that ended with an unknown balance",
        )
        self._pages = self._collector.counter(
            f"{_PREFIX}_inscription_pages",
            "Inscription pages fetched from the wallet",
        )
        self._loaded = self._collector.gauge(
            f"{_PREFIX}_inscriptions_loaded",
            "Inscriptions currently held by the paginator",
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._collector.registry

    def exposition(self) -> bytes:
        return self._collector.exposition()

    def record_outcome(self, state: str) -> None:
        """Count a pipeline run that ended in *state*."""
        self._outcomes.labels(state=state).inc()

    def record_balance_failure(self) -> None:
        self._balance_failures.inc()

    def record_page(self, loaded: int) -> None:
        """Count a fetched page and publish the new collection size."""
        self._pages.inc()
        self._loaded.set(loaded)

    def set_loaded(self, loaded: int) -> None:
        self._loaded.set(loaded)

    @contextmanager
    def track_balance_refresh(self) -> Iterator[None]:
        """Track the duration of a balance refresh."""
        began = time.perf_counter()
        try:
            yield
        finally:
            self._balance_refresh.observe(time.perf_counter() - began)
