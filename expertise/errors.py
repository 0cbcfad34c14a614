#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Errors
  • OracleError: the scoring oracle could not attribute the current target
  • InvalidFocusTarget: a focus target with an empty directory or file
"""
from __future__ import annotations


class OracleError(Exception):
    """Scoring failed for a (working_dir, file_path) pair."""

    def __init__(self, message: str, working_dir: str = "", file_path: str = "") -> None:
        super().__init__(message)
        self.working_dir = working_dir
        self.file_path = file_path


class InvalidFocusTarget(ValueError):
    pass
