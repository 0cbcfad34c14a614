#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Live Attribution Session
Binds the ranker to a changing focus and a display sink.

State machine:
  IDLE        → no target yet, or the sink is hidden
  REQUESTING  → an oracle call is in flight for the current request token
  PUBLISHED   → a ranked label is shown for the current target

Concurrency model (asyncio, single thread):
  • on_focus_changed() mints a token, schedules the oracle call and returns.
  • The oracle await is the only suspension point. on_scoring_complete()
    compares tokens and publishes without awaiting, so no focus change can
    interleave between the check and the render.
  • Superseded calls are never cancelled; their results are dropped on arrival.

Failure policy: an oracle failure hides the sink. While a new request is in
flight the previous label stays up until the new result (or failure) lands.
"""
from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Set, Union

from expertise.attribution import format_label
from expertise.errors import InvalidFocusTarget, OracleError
from expertise.observability import Observer, obs as default_obs
from expertise.ranking import ScoreMap, rank_for_display

# -----------------------------------------------------------------------------
# Data model
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class FocusTarget:
    working_dir: str
    file_path: str

    def __post_init__(self) -> None:
        if not self.working_dir or not self.file_path:
            raise InvalidFocusTarget(
                f"focus target needs a working_dir and a file_path (got {self.working_dir!r}, {self.file_path!r})")


@dataclass(frozen=True)
class SessionConfig:
    top_k: int = 3
    label_prefix: str = "$(person) "

    def __post_init__(self) -> None:
        if self.top_k < 1:
            raise ValueError(f"top_k must be >= 1 (got {self.top_k})")


class SessionState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    PUBLISHED = "published"


class RequestToken:
    """Identity of one focus change. Compared with `is`; seq is for logs only."""

    __slots__ = ("seq", "target")
    _counter = itertools.count(1)

    def __init__(self, target: FocusTarget) -> None:
        self.seq = next(RequestToken._counter)
        self.target = target

    def __repr__(self) -> str:
        return f"RequestToken(seq={self.seq}, file={self.target.file_path!r})"


@dataclass
class SessionSnapshot:
    state: SessionState
    target: Optional[FocusTarget]
    experts: List[str] = field(default_factory=list)
    scores: Dict[str, float] = field(default_factory=dict)
    label: Optional[str] = None
    top_k: int = 3
    in_flight: int = 0

# -----------------------------------------------------------------------------
# Collaborators
# -----------------------------------------------------------------------------


FocusCallback = Callable[[Optional[FocusTarget]], None]


class Subscription(Protocol):
    def dispose(self) -> None: ...


class FocusSource(Protocol):
    def subscribe(self, callback: FocusCallback) -> Subscription: ...


class DisplaySink(Protocol):
    def show(self, text: str) -> None: ...

    def hide(self) -> None: ...

    def dispose(self) -> None: ...


class ScoringOracle(Protocol):
    async def score(self, working_dir: str, file_path: str) -> ScoreMap: ...

# -----------------------------------------------------------------------------
# Session
# -----------------------------------------------------------------------------


class LiveAttributionSession:
    def __init__(
        self,
        oracle: ScoringOracle,
        focus_source: FocusSource,
        sink: DisplaySink,
        config: Optional[SessionConfig] = None,
        observer: Optional[Observer] = None,
    ) -> None:
        self._oracle = oracle
        self._sink = sink
        self._config = config or SessionConfig()
        self._obs = observer or default_obs

        self._state = SessionState.IDLE
        self._target: Optional[FocusTarget] = None
        self._token: Optional[RequestToken] = None
        self._experts: List[str] = []
        self._scores: Dict[str, float] = {}
        self._label: Optional[str] = None
        self._pending: Set[asyncio.Task] = set()
        self._disposed = False
        self._subscription: Optional[Subscription] = None

        try:
            self._subscription = focus_source.subscribe(self.on_focus_changed)
        except Exception:
            self.dispose()
            raise

    # ---- properties ----
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def target(self) -> Optional[FocusTarget]:
        return self._target

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    # ---- entry points ----
    def on_focus_changed(self, target: Optional[FocusTarget]) -> None:
        """Supersede whatever is in flight. Never blocks; None means no active document."""
        if self._disposed:
            return

        if target is None:
            self._obs.incr("session.focus_changed")
            self._token = None
            self._target = None
            self._hide()
            return

        loop = asyncio.get_running_loop()
        self._obs.incr("session.focus_changed")
        token = RequestToken(target)
        self._token = token
        self._target = target
        self._state = SessionState.REQUESTING
        self._obs.log("focus_changed", seq=token.seq,
                      working_dir=target.working_dir, file=target.file_path)

        task = loop.create_task(self._request(token))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def on_scoring_complete(self, token: RequestToken, outcome: Union[ScoreMap, OracleError]) -> None:
        if self._disposed or token is not self._token:
            self._obs.incr("session.stale_discarded")
            self._obs.log("stale_result_discarded", seq=token.seq,
                          file=token.target.file_path, disposed=self._disposed)
            return
        self._token = None

        if isinstance(outcome, OracleError):
            self._obs.incr("session.oracle_error")
            self._obs.log("oracle_error", seq=token.seq,
                          file=token.target.file_path, error=str(outcome))
            self._hide()
            return

        experts = rank_for_display(outcome, self._config.top_k)
        if not experts:
            self._hide()
            return

        self._experts = experts
        self._scores = {author: float(outcome[author]) for author in experts}
        self._label = format_label(experts, self._config.label_prefix)
        self._state = SessionState.PUBLISHED
        self._sink.show(self._label)
        self._obs.incr("session.published")

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._token = None
        self._experts = []
        self._scores = {}
        self._label = None
        self._state = SessionState.IDLE
        try:
            if self._subscription is not None:
                self._subscription.dispose()
        finally:
            self._subscription = None
            self._sink.dispose()

    def __enter__(self) -> "LiveAttributionSession":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()

    async def settle(self) -> None:
        """Wait until every in-flight oracle call (current or stale) has landed."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            target=self._target,
            experts=list(self._experts),
            scores=dict(self._scores),
            label=self._label,
            top_k=self._config.top_k,
            in_flight=len(self._pending),
        )

    # ---- internals ----
    async def _request(self, token: RequestToken) -> None:
        target = token.target
        try:
            with self._obs.span("oracle.score", seq=token.seq, file=target.file_path):
                scores = await self._oracle.score(target.working_dir, target.file_path)
        except OracleError as exc:
            self.on_scoring_complete(token, exc)
            return
        except Exception as exc:
            self._obs.log("oracle_unexpected_error", seq=token.seq, error=repr(exc))
            self.on_scoring_complete(token, OracleError(
                str(exc) or type(exc).__name__, target.working_dir, target.file_path))
            return
        self.on_scoring_complete(token, scores)

    def _hide(self) -> None:
        self._experts = []
        self._scores = {}
        self._label = None
        self._state = SessionState.IDLE
        self._sink.hide()
        self._obs.incr("session.hidden")
