"""Scoring oracles: git history → per-author degree of authorship."""
from scoring.doa import GitDegreeOfAuthorship, authorship_features, degree_of_authorship
from scoring.git_history import read_history

__all__ = [
    "GitDegreeOfAuthorship",
    "authorship_features",
    "degree_of_authorship",
    "read_history",
]
