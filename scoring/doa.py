#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Degree-of-Authorship oracle
Per author of a file:
  FA  first authorship (1 if the author made the file's first commit)
  DL  deliveries (commits by the author)
  AC  acceptances (commits by everyone else)

  DOA = 3.293 + 1.098·FA + 0.164·DL − 0.321·ln(1 + AC)

Scores are clamped at 0 and, by default, normalized by the file's maximum
so they fall in [0, 1]. Authors are keyed by mailmap-resolved name and
inserted in order of first contribution; the ranker breaks ties on that order.
"""
from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from expertise.errors import OracleError
from expertise.ranking import ScoreMap
from scoring.git_history import read_history

DOA_INTERCEPT = 3.293
DOA_FA = 1.098
DOA_DL = 0.164
DOA_AC = 0.321


def authorship_features(history: pd.DataFrame) -> pd.DataFrame:
    """history is oldest-first (see git_history.parse_log)."""
    if history.empty:
        raise OracleError("no revision history")

    creator = history["author"].iloc[0]
    deliveries = history.groupby("author", sort=False).size()

    feats = pd.DataFrame({
        "author": deliveries.index.astype(str),
        "fa": (deliveries.index == creator).astype(int),
        "dl": deliveries.to_numpy(dtype=int),
    })
    feats["ac"] = len(history) - feats["dl"]
    return feats


def degree_of_authorship(features: pd.DataFrame, normalize: bool = True) -> ScoreMap:
    fa = features["fa"].to_numpy(dtype=float)
    dl = features["dl"].to_numpy(dtype=float)
    ac = features["ac"].to_numpy(dtype=float)

    doa = DOA_INTERCEPT + DOA_FA * fa + DOA_DL * dl - DOA_AC * np.log1p(ac)
    doa = np.clip(doa, 0.0, None)
    if normalize and doa.size and doa.max() > 0:
        doa = doa / doa.max()

    return {author: float(s) for author, s in zip(features["author"], doa)}


class GitDegreeOfAuthorship:
    """ScoringOracle over `git log`. Stateless; safe to share across sessions."""

    def __init__(
        self,
        git_binary: str = "git",
        follow_renames: bool = True,
        timeout_s: Optional[float] = None,
        normalize: bool = True,
    ) -> None:
        self.git_binary = git_binary
        self.follow_renames = follow_renames
        self.timeout_s = timeout_s
        self.normalize = normalize

    @classmethod
    def from_settings(cls, s) -> "GitDegreeOfAuthorship":
        return cls(
            git_binary=s.git_binary,
            follow_renames=s.follow_renames,
            timeout_s=s.oracle_timeout_s,
        )

    async def score(self, working_dir: str, file_path: str) -> ScoreMap:
        history = await read_history(
            working_dir,
            file_path,
            git_binary=self.git_binary,
            follow_renames=self.follow_renames,
            timeout_s=self.timeout_s,
        )
        return degree_of_authorship(authorship_features(history), normalize=self.normalize)
