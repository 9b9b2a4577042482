"""Metrics — Prometheus metrics collection."""

from __future__ import annotations

from ordinal_minter.metrics.collector import MetricsCollector, MinterMetrics

__all__ = ["MetricsCollector", "MinterMetrics"]
