"""
ExpertLens
==========

Live code-ownership attribution for the focused file:
  - ranking: score map → deterministic ranked authors
  - session: focus-driven refresh with stale-result discarding
  - host / api: in-process and HTTP host adapters
"""

from .errors import InvalidFocusTarget, OracleError
from .ranking import ScoreMap, rank_for_display, rank_top, top_expert
from .session import (
    FocusTarget,
    LiveAttributionSession,
    RequestToken,
    SessionConfig,
    SessionSnapshot,
    SessionState,
)
from .host import FocusChannel, StatusIndicator

__version__ = "1.0.0"
__all__ = [
    "FocusChannel",
    "FocusTarget",
    "InvalidFocusTarget",
    "LiveAttributionSession",
    "OracleError",
    "RequestToken",
    "ScoreMap",
    "SessionConfig",
    "SessionSnapshot",
    "SessionState",
    "StatusIndicator",
    "rank_for_display",
    "rank_top",
    "top_expert",
]
