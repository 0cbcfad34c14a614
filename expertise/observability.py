#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Observability
Goals:
  • Minimal counters, timings, and event logs with near-zero deps
  • OpenTelemetry spans through opentelemetry-api (no-op until an SDK is configured)
  • Debug-friendly printing for local dev

Usage:
  from expertise.observability import obs, span, log_event, incr

  with span("oracle.score", file="src/app.py"):
      ... work ...
      incr("session.published")

Design:
  • Simple per-process counters; the session is single-threaded so no locking.
  • Stale results and oracle failures use distinct counter keys.
"""

from __future__ import annotations
import time
import json
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict

from opentelemetry import trace

# ---------------------------
# Simple in-process metrics
# ---------------------------


@dataclass
class Metrics:
    counters: Dict[str, int] = field(default_factory=dict)
    timings_ms: Dict[str, float] = field(default_factory=dict)

    def incr(self, key: str, n: int = 1) -> None:
        self.counters[key] = self.counters.get(key, 0) + n

    def observe_ms(self, key: str, ms: float) -> None:
        # last-value wins; callers can use distinct keys per section
        self.timings_ms[key] = ms

    def count(self, key: str) -> int:
        return self.counters.get(key, 0)


@dataclass
class Observer:
    metrics: Metrics = field(default_factory=Metrics)
    verbose: bool = False
    tracer_name: str = "expertlens"

    _tracer = None

    def _get_tracer(self):
        if self._tracer is None:
            self._tracer = trace.get_tracer(self.tracer_name)
        return self._tracer

    def log(self, msg: str, **kv) -> None:
        if self.verbose:
            if kv:
                print(
                    f"[obs] {msg} :: {json.dumps(kv, ensure_ascii=False, default=str)}", flush=True)
            else:
                print(f"[obs] {msg}", flush=True)

    def incr(self, key: str, n: int = 1) -> None:
        self.metrics.incr(key, n)

    def observe_ms(self, key: str, ms: float) -> None:
        self.metrics.observe_ms(key, ms)

    @contextmanager
    def span(self, name: str, **attrs):
        """
        Context manager that times a block and emits an OTEL span.
        Exceptions raised inside the block propagate after the span is closed.
        """
        t0 = time.perf_counter()
        with self._get_tracer().start_as_current_span(name) as otel_span:
            for k, v in attrs.items():
                otel_span.set_attribute(str(k), str(v))
            try:
                yield otel_span
            finally:
                ms = (time.perf_counter() - t0) * 1000.0
                self.observe_ms(name, ms)
                self.log(f"span_end:{name}", ms=round(ms, 2), **attrs)


# Singleton
obs = Observer()

# ---------------------------------
# Convenience top-level functions
# ---------------------------------


def configure(verbose: bool) -> Observer:
    obs.verbose = verbose
    return obs


def incr(key: str, n: int = 1) -> None:
    obs.incr(key, n)


def observe_ms(key: str, ms: float) -> None:
    obs.observe_ms(key, ms)


def log_event(event: str, **kv) -> None:
    obs.log(event, **kv)

# Alias for context manager


def span(name: str, **attrs):
    return obs.span(name, **attrs)
