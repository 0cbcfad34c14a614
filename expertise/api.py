#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — FastAPI surface
Routes:
  • POST /api/v1/focus  → focus-change signal (file_path null = no active document)
  • GET  /api/v1/status → current attribution card (what the status indicator shows)
  • GET  /api/v1/health → liveness

The HTTP layer plays the host editor: it owns the FocusChannel and the
StatusIndicator, and the session lives for the lifetime of the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from expertise.attribution import build_attribution_card
from expertise.errors import InvalidFocusTarget
from expertise.host import FocusChannel, StatusIndicator
from expertise.observability import configure
from expertise.session import FocusTarget, LiveAttributionSession, ScoringOracle
from expertise.settings import Settings, settings as default_settings
from scoring.doa import GitDegreeOfAuthorship

# ------------------------------------------------------------------------------
# Pydantic I/O models (mirror attribution.build_attribution_card exactly)
# ------------------------------------------------------------------------------


class APIFocus(BaseModel):
    working_dir: Optional[str] = Field(
        None, description="Repository root; defaults to the configured working_dir")
    file_path: Optional[str] = Field(
        None, description="File to attribute; null means no active document")


class APIBadge(BaseModel):
    label: str
    value: str


class APIExpert(BaseModel):
    rank: int
    author: str
    score: float


class APITarget(BaseModel):
    working_dir: str
    file_path: str


class APIAttributionCard(BaseModel):
    state: str
    target: Optional[APITarget] = None
    label: Optional[str] = None
    visible: bool
    badges: List[APIBadge] = []
    experts: List[APIExpert] = []
    in_flight: int = 0
    version: str

# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------


def _to_focus_target(body: Optional[APIFocus], s: Settings) -> Optional[FocusTarget]:
    if body is None or body.file_path is None:
        return None
    working_dir = body.working_dir if body.working_dir is not None else str(s.working_dir)
    return FocusTarget(working_dir=working_dir, file_path=body.file_path)


def _card(request: Request) -> Dict[str, Any]:
    session: LiveAttributionSession = request.app.state.session
    return build_attribution_card(session.snapshot())

# ------------------------------------------------------------------------------
# App factory
# ------------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None, oracle: Optional[ScoringOracle] = None) -> FastAPI:
    s = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure(s.log_verbose)
        channel = FocusChannel()
        indicator = StatusIndicator()
        session = LiveAttributionSession(
            oracle=oracle or GitDegreeOfAuthorship.from_settings(s),
            focus_source=channel,
            sink=indicator,
            config=s.session_config(),
        )
        app.state.channel = channel
        app.state.indicator = indicator
        app.state.session = session
        try:
            yield
        finally:
            session.dispose()
            await session.settle()

    app = FastAPI(title="ExpertLens API", version="1.0", lifespan=lifespan)
    app.state.settings = s

    # CORS (open by default for the local Streamlit panel)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --------------------------------------------------------------------------
    # Routes (async so focus changes run on the session's event loop)
    # --------------------------------------------------------------------------

    @app.get("/api/v1/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/v1/focus", response_model=APIAttributionCard)
    async def api_focus(request: Request, body: Optional[APIFocus] = None, wait: bool = False) -> Dict[str, Any]:
        try:
            target = _to_focus_target(body, s)
        except InvalidFocusTarget as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        request.app.state.channel.emit(target)
        if wait:
            await request.app.state.session.settle()
        return _card(request)

    @app.get("/api/v1/status", response_model=APIAttributionCard)
    async def api_status(request: Request) -> Dict[str, Any]:
        return _card(request)

    return app


app = create_app()
