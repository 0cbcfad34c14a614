"""
test_session.py — Live Attribution Session

Async behavior is driven with asyncio.run inside plain test functions.
GatedOracle holds every call until the test releases that file, so
completion order is fully controlled.
"""

import asyncio
import itertools

import pytest

from expertise.errors import InvalidFocusTarget, OracleError
from expertise.host import FocusChannel, StatusIndicator
from expertise.observability import Observer
from expertise.session import (
    FocusTarget,
    LiveAttributionSession,
    SessionConfig,
    SessionState,
)

REPO = "/repo"
SCORES = {"A": 5.0, "B": 9.0, "C": 9.0}


class GatedOracle:
    def __init__(self):
        self.calls = []
        self._gates = {}

    def _gate(self, file_path):
        if file_path not in self._gates:
            self._gates[file_path] = asyncio.get_running_loop().create_future()
        return self._gates[file_path]

    async def score(self, working_dir, file_path):
        self.calls.append(file_path)
        outcome = await self._gate(file_path)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def release(self, file_path, outcome):
        self._gate(file_path).set_result(outcome)


class SleepyOracle:
    def __init__(self, delays, results):
        self.delays = delays
        self.results = results

    async def score(self, working_dir, file_path):
        await asyncio.sleep(self.delays[file_path])
        return self.results[file_path]


class Harness:
    def __init__(self, oracle, top_k=3):
        self.renders = []
        self.channel = FocusChannel()
        self.indicator = StatusIndicator(on_render=self.renders.append)
        self.observer = Observer()
        self.session = LiveAttributionSession(
            oracle, self.channel, self.indicator,
            SessionConfig(top_k=top_k), observer=self.observer,
        )

    def focus(self, file_path):
        self.channel.emit(FocusTarget(REPO, file_path) if file_path else None)

    @property
    def shown(self):
        return [r for r in self.renders if r is not None]


async def _spin(n=5):
    for _ in range(n):
        await asyncio.sleep(0)


# =============================================================================
# Basic publishing
# =============================================================================

def test_focus_publishes_ranked_label():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("a.py")
        assert h.session.state is SessionState.REQUESTING
        await _spin()
        assert oracle.calls == ["a.py"]
        oracle.release("a.py", SCORES)
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.renders == ["$(person) B, C, A"]
    assert h.indicator.visible
    assert h.session.state is SessionState.PUBLISHED
    snap = h.session.snapshot()
    assert snap.experts == ["B", "C", "A"]
    assert snap.scores == {"B": 9.0, "C": 9.0, "A": 5.0}
    assert snap.target == FocusTarget(REPO, "a.py")


def test_top_k_one_shows_single_expert():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle, top_k=1)
        h.focus("a.py")
        await _spin()
        oracle.release("a.py", SCORES)
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.renders == ["$(person) B"]


def test_no_active_document_hides_without_oracle_call():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus(None)
        await _spin()
        return oracle, h

    oracle, h = asyncio.run(scenario())
    assert h.renders == [None]
    assert oracle.calls == []
    assert h.session.state is SessionState.IDLE


def test_empty_score_map_hides():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("new.py")
        await _spin()
        oracle.release("new.py", {})
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.renders == [None]
    assert h.session.state is SessionState.IDLE


# =============================================================================
# Staleness
# =============================================================================

@pytest.mark.parametrize("order", list(itertools.permutations(["x.py", "y.py", "z.py"])))
def test_latest_focus_wins_for_any_completion_order(order):
    results = {
        "x.py": {"xavier": 1.0},
        "y.py": {"yolanda": 1.0},
        "z.py": {"zoe": 1.0},
    }

    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        for f in ["x.py", "y.py", "z.py"]:
            h.focus(f)
        await _spin()
        for f in order:
            oracle.release(f, results[f])
            await _spin()
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.shown == ["$(person) zoe"]
    assert h.session.state is SessionState.PUBLISHED
    assert h.observer.metrics.count("session.stale_discarded") == 2
    assert h.observer.metrics.count("session.published") == 1


def test_slow_stale_result_is_discarded():
    oracle = SleepyOracle(
        delays={"x.py": 0.2, "y.py": 0.01},
        results={"x.py": {"xavier": 3.0}, "y.py": {"yolanda": 2.0}},
    )

    async def scenario():
        h = Harness(oracle)
        h.focus("x.py")
        h.focus("y.py")
        await asyncio.sleep(0.1)
        published_early = list(h.shown)
        await h.session.settle()
        return h, published_early

    h, published_early = asyncio.run(scenario())
    assert published_early == ["$(person) yolanda"]
    assert h.shown == ["$(person) yolanda"]
    assert h.observer.metrics.count("session.stale_discarded") == 1


def test_focus_cleared_while_requesting_drops_result():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("a.py")
        await _spin()
        h.focus(None)
        oracle.release("a.py", SCORES)
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.renders == [None]
    assert h.session.state is SessionState.IDLE
    assert h.session.target is None


def test_previous_label_stays_until_new_result():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("a.py")
        await _spin()
        oracle.release("a.py", SCORES)
        await _spin()
        h.focus("b.py")
        await _spin()
        mid = (h.session.state, h.indicator.text, h.indicator.visible)
        oracle.release("b.py", {"D": 1.0})
        await h.session.settle()
        return h, mid

    h, mid = asyncio.run(scenario())
    assert mid == (SessionState.REQUESTING, "$(person) B, C, A", True)
    assert h.renders == ["$(person) B, C, A", "$(person) D"]


# =============================================================================
# Failures
# =============================================================================

def test_oracle_error_hides_and_returns_to_idle():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("a.py")
        await _spin()
        oracle.release("a.py", SCORES)
        await _spin()
        h.focus("untracked.py")
        await _spin()
        oracle.release("untracked.py", OracleError("no revision history"))
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.renders == ["$(person) B, C, A", None]
    assert h.session.state is SessionState.IDLE
    assert h.observer.metrics.count("session.oracle_error") == 1
    assert h.observer.metrics.count("session.stale_discarded") == 0


def test_unexpected_oracle_exception_is_treated_as_failure():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("a.py")
        await _spin()
        oracle.release("a.py", RuntimeError("boom"))
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.renders == [None]
    assert h.session.state is SessionState.IDLE
    assert h.observer.metrics.count("session.oracle_error") == 1


def test_stale_failure_does_not_hide_current_result():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("gone.py")
        h.focus("a.py")
        await _spin()
        oracle.release("a.py", SCORES)
        await _spin()
        oracle.release("gone.py", OracleError("missing"))
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.renders == ["$(person) B, C, A"]
    assert h.session.state is SessionState.PUBLISHED
    assert h.observer.metrics.count("session.oracle_error") == 0


# =============================================================================
# Disposal
# =============================================================================

def test_dispose_in_flight_never_publishes():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("a.py")
        await _spin()
        h.session.dispose()
        oracle.release("a.py", SCORES)
        await h.session.settle()
        return h

    h = asyncio.run(scenario())
    assert h.shown == []
    assert h.indicator.disposed
    assert h.channel.listener_count == 0


def test_dispose_twice_and_focus_after_dispose():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.session.dispose()
        h.session.dispose()
        h.focus("a.py")
        await _spin()
        return oracle, h

    oracle, h = asyncio.run(scenario())
    assert oracle.calls == []
    assert h.session.disposed


def test_context_manager_disposes():
    channel = FocusChannel()
    indicator = StatusIndicator()
    with LiveAttributionSession(GatedOracle(), channel, indicator):
        assert channel.listener_count == 1
    assert channel.listener_count == 0
    assert indicator.disposed


def test_failed_subscription_releases_sink():
    class BrokenSource:
        def subscribe(self, callback):
            raise RuntimeError("host went away")

    indicator = StatusIndicator()
    with pytest.raises(RuntimeError):
        LiveAttributionSession(GatedOracle(), BrokenSource(), indicator)
    assert indicator.disposed


# =============================================================================
# Configuration
# =============================================================================

def test_config_rejects_non_positive_top_k():
    with pytest.raises(ValueError):
        SessionConfig(top_k=0)


def test_focus_target_requires_both_parts():
    with pytest.raises(InvalidFocusTarget):
        FocusTarget("", "a.py")
    with pytest.raises(InvalidFocusTarget):
        FocusTarget(REPO, "")


def test_dispose_resets_snapshot():
    async def scenario():
        oracle = GatedOracle()
        h = Harness(oracle)
        h.focus("a.py")
        await _spin()
        oracle.release("a.py", SCORES)
        await h.session.settle()
        published = h.session.state
        h.session.dispose()
        return h, published

    h, published = asyncio.run(scenario())
    assert published is SessionState.PUBLISHED
    snap = h.session.snapshot()
    assert snap.state is SessionState.IDLE
    assert snap.label is None
    assert snap.experts == []


def test_focus_without_running_loop_is_not_counted():
    h = Harness(GatedOracle())
    with pytest.raises(RuntimeError):
        h.session.on_focus_changed(FocusTarget(REPO, "a.py"))
    assert h.observer.metrics.count("session.focus_changed") == 0
    assert h.session.state is SessionState.IDLE
