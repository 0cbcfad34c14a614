#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Attribution Ranker
Pure reduction from a ScoreMap (author -> score) to a ranked attribution.

Enumeration order:
  Score maps are plain dicts; their iteration (insertion) order is the one
  fixed order used for every tie-break below. The git oracle inserts authors
  in order of first contribution.

  • rank_top(scores, k) -> up to k authors, score descending, stable on ties
  • top_expert(scores)  -> first author holding the maximum (strict-greater scan)
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional

ScoreMap = Dict[str, float]


def rank_top(scores: Mapping[str, float], k: int) -> List[str]:
    """
    Authors sorted by score descending, truncated to k.
    sorted() is stable, so equal scores keep the map's enumeration order.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1 (got {k})")
    ranked = sorted(scores, key=lambda author: scores[author], reverse=True)
    return ranked[:k]


def top_expert(scores: Mapping[str, float]) -> Optional[str]:
    """
    Single left-to-right scan; the current holder is only displaced by a
    strictly greater score. None for an empty map.
    """
    expert: Optional[str] = None
    for author in scores:
        if expert is None or scores[author] > scores[expert]:
            expert = author
    return expert


def rank_for_display(scores: Mapping[str, float], k: int) -> List[str]:
    """K=1 shows the single top expert; larger bounds show the top-k list."""
    if k == 1:
        expert = top_expert(scores)
        return [] if expert is None else [expert]
    return rank_top(scores, k)
