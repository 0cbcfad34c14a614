#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Unified Runner
Purpose:
  • Organize common ops in one script:
      - who    : one-shot attribution for a file (direct session, no server)
      - watch  : interactive loop; each line switches focus, renders print as they land
      - serve  : start FastAPI (uvicorn) to use HTTP routes
  • Thin orchestration layer over expertise.session + scoring.doa.

Usage (examples):
  python run.py who expertise/session.py
  python run.py who --dir ~/src/project --k 1 src/main.py
  python run.py watch --dir ~/src/project
  python run.py serve --port 8000

Notes:
  • Set env via .env or pass flags. See expertise/settings.py.
"""

from __future__ import annotations

import argparse
import asyncio
import time
from pathlib import Path
from typing import Optional

from expertise.host import FocusChannel, StatusIndicator
from expertise.observability import configure
from expertise.session import FocusTarget, LiveAttributionSession, SessionConfig, SessionState
from expertise.settings import settings
from scoring.doa import GitDegreeOfAuthorship


# ------------------------------------------------------------------------------
# Utilities
# ------------------------------------------------------------------------------
def _log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[run {ts}] {msg}", flush=True)


def _render(text: Optional[str]) -> None:
    print(f"  status> {text}" if text is not None else "  status> (hidden)", flush=True)


def _working_dir(args: argparse.Namespace) -> str:
    return str(Path(args.dir or settings.working_dir).expanduser().resolve())


def _session_config(args: argparse.Namespace) -> SessionConfig:
    k = args.k if getattr(args, "k", None) else settings.top_k
    return SessionConfig(top_k=k, label_prefix=settings.label_prefix)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------
async def _who(working_dir: str, file_path: str, config: SessionConfig) -> int:
    channel = FocusChannel()
    indicator = StatusIndicator(on_render=_render)
    with LiveAttributionSession(GitDegreeOfAuthorship.from_settings(settings), channel, indicator, config) as session:
        channel.emit(FocusTarget(working_dir, file_path))
        await session.settle()
        snap = session.snapshot()

    if snap.state is not SessionState.PUBLISHED:
        _log(f"No attribution for {file_path} (see --verbose for the oracle error).")
        return 1
    for i, author in enumerate(snap.experts, 1):
        print(f"{i:02d}. {author}  doa={snap.scores[author]:.3f}")
    return 0


def cmd_who(args: argparse.Namespace) -> int:
    """Attribute a single file and print the ranked experts."""
    working_dir = _working_dir(args)
    _log(f"Attributing {args.file} in {working_dir}")
    return asyncio.run(_who(working_dir, args.file, _session_config(args)))


async def _watch(working_dir: str, config: SessionConfig) -> int:
    channel = FocusChannel()
    indicator = StatusIndicator(on_render=_render)
    with LiveAttributionSession(GitDegreeOfAuthorship.from_settings(settings), channel, indicator, config) as session:
        while True:
            line = (await asyncio.to_thread(input, "\nfile> ")).strip()
            if line.lower() in {"exit", "quit"}:
                break
            channel.emit(FocusTarget(working_dir, line) if line else None)
    await session.settle()
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    """
    Interactive focus loop (no server).
    - Each line focuses a file (relative to --dir); an empty line means no active document.
    - Results print whenever they land; superseded ones are dropped.
    """
    working_dir = _working_dir(args)
    _log(f"Watching {working_dir} (type 'exit' or 'quit' to stop).")
    try:
        return asyncio.run(_watch(working_dir, _session_config(args)))
    except (KeyboardInterrupt, EOFError):
        _log("Interrupted.")
        return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """
    Start FastAPI via uvicorn, using expertise.api:app.
    Note: this blocks the terminal; run in a separate shell or use a process manager if needed.
    """
    import uvicorn

    host = args.host or str(settings.api_host)
    port = int(args.port) if args.port else int(settings.api_port)

    _log(f"Starting API at http://{host}:{port}  (Ctrl+C to stop)")
    uvicorn.run("expertise.api:app", host=host, port=port, reload=args.reload)
    return 0


# ------------------------------------------------------------------------------
# CLI Parser
# ------------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="run.py",
        description="ExpertLens unified runner (who, watch, serve).",
    )
    p.add_argument("--verbose", action="store_true", help="print [obs] event logs")
    sub = p.add_subparsers(dest="cmd", required=True)

    # who
    sp = sub.add_parser("who", help="Rank the experts of one file")
    sp.add_argument("--dir", type=str, default=None,
                    help="Repository working dir (default from settings)")
    sp.add_argument("--k", type=int, default=None,
                    help="How many experts to show (default from settings)")
    sp.add_argument("file", help="File path relative to --dir")
    sp.set_defaults(func=cmd_who)

    # watch
    sp = sub.add_parser("watch", help="Interactive focus loop (no server)")
    sp.add_argument("--dir", type=str, default=None)
    sp.add_argument("--k", type=int, default=None)
    sp.set_defaults(func=cmd_watch)

    # serve
    sp = sub.add_parser(
        "serve", help="Start FastAPI (uvicorn) at the configured host/port")
    sp.add_argument("--host", type=str, default=None)
    sp.add_argument("--port", type=int, default=None)
    sp.add_argument("--reload", action="store_true")
    sp.set_defaults(func=cmd_serve)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure(args.verbose or settings.log_verbose)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
