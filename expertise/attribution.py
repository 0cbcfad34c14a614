#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Attribution Cards
  • Status label (what the display sink shows): "<prefix>A, B, C"
  • Compact badges (state, top-k, author count)
  • Ranked experts with their scores and the focused target echoed for audit

Input contract: expertise.session.SessionSnapshot.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from expertise.session import SessionSnapshot

CARD_VERSION = "expertlens-1.0"


def format_label(experts: Sequence[str], prefix: str = "$(person) ") -> str:
    return prefix + ", ".join(experts)


def _badge(label: str, value: str) -> Dict[str, str]:
    return {"label": label, "value": value}


def build_attribution_card(snapshot: "SessionSnapshot") -> Dict[str, Any]:
    badges = [
        _badge("STATE", snapshot.state.value),
        _badge("TOP_K", str(snapshot.top_k)),
        _badge("AUTHORS", str(len(snapshot.experts))),
    ]

    experts: List[Dict[str, Any]] = []
    for i, author in enumerate(snapshot.experts, 1):
        experts.append({
            "rank": i,
            "author": author,
            "score": round(float(snapshot.scores.get(author, 0.0)), 3),
        })

    target = None
    if snapshot.target is not None:
        target = {
            "working_dir": snapshot.target.working_dir,
            "file_path": snapshot.target.file_path,
        }

    return {
        "state": snapshot.state.value,
        "target": target,
        "label": snapshot.label,
        "visible": snapshot.label is not None,
        "badges": badges,
        "experts": experts,
        "in_flight": snapshot.in_flight,
        "version": CARD_VERSION,
    }
