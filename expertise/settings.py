#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Central Settings
Single source of truth for ports, display bounds and oracle policy.
Uses EF_* environment variables (or ./.env) with safe defaults for local dev.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from expertise.session import SessionConfig

ROOT = Path(__file__).resolve().parents[1]


_ENV_ALIAS_MAP = {
    "k": "top_k",
    "max_experts": "top_k",
}


def _normalize_env_values(raw: Any) -> Any:
    """Map legacy keys to model fields."""

    if not isinstance(raw, dict):
        return raw

    normalized: Dict[str, Any] = {}
    legacy: Dict[str, Any] = {}
    for key, value in raw.items():
        key_lower = str(key).lower()
        if key_lower.startswith("ef_"):
            key_lower = key_lower[3:]

        if key_lower in _ENV_ALIAS_MAP:
            legacy.setdefault(_ENV_ALIAS_MAP[key_lower], value)
        else:
            normalized.setdefault(key_lower, value)

    # canonical names win over legacy aliases
    for field_name, value in legacy.items():
        normalized.setdefault(field_name, value)
    return normalized


class Settings(BaseSettings):
    # ---- service ----
    api_host: str = Field("127.0.0.1")
    api_port: int = Field(8000)
    log_verbose: bool = Field(False)

    # ---- display ----
    # legacy EF_K / EF_MAX_EXPERTS still accepted
    top_k: int = Field(3, ge=1, validation_alias=AliasChoices("ef_top_k", "ef_k", "ef_max_experts"))
    label_prefix: str = Field("$(person) ")

    # ---- oracle (git degree-of-authorship) ----
    working_dir: Path = Field(Path.cwd())
    git_binary: str = Field("git")
    follow_renames: bool = Field(True)
    oracle_timeout_s: Optional[float] = Field(30.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="EF_",
        env_file=str(ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_env(cls, data: Any) -> Any:
        return _normalize_env_values(data)

    def session_config(self) -> SessionConfig:
        return SessionConfig(top_k=self.top_k, label_prefix=self.label_prefix)


settings = Settings()
