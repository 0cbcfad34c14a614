#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Git history reader
Purpose:
  • Run `git log` for one file (following renames) without blocking the event loop
  • Return the commits oldest-first as a DataFrame: sha, author, email, timestamp

Failure modes all surface as OracleError: git missing, not a repository,
non-zero exit, timeout, or a file with no commits.

CLI:
  python -m scoring.git_history --dir . README.md
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

import pandas as pd

from expertise.errors import OracleError

_FIELD_SEP = "\x1f"
_FORMAT = "%H%x1f%aN%x1f%aE%x1f%at"
COLUMNS = ["sha", "author", "email", "timestamp"]


def build_log_command(git_binary: str, working_dir: str, file_path: str, follow_renames: bool = True) -> List[str]:
    cmd = [git_binary, "-C", working_dir, "log", "--no-merges", f"--format={_FORMAT}"]
    if follow_renames:
        cmd.append("--follow")
    cmd += ["--", file_path]
    return cmd


def parse_log(output: str) -> pd.DataFrame:
    """Parse `git log` lines (newest first) into an oldest-first frame."""
    rows = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split(_FIELD_SEP)
        if len(parts) != 4:
            continue
        sha, author, email, ts = parts
        rows.append((sha, author.strip(), email.strip().lower(), int(ts)))
    rows.reverse()

    df = pd.DataFrame(rows, columns=COLUMNS)
    df["timestamp"] = pd.to_datetime(df["timestamp"], unit="s", utc=True)
    return df


async def read_history(
    working_dir: str,
    file_path: str,
    *,
    git_binary: str = "git",
    follow_renames: bool = True,
    timeout_s: Optional[float] = None,
) -> pd.DataFrame:
    cmd = build_log_command(git_binary, working_dir, file_path, follow_renames)
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise OracleError(f"cannot run {git_binary}: {e}", working_dir, file_path) from e

    try:
        out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise OracleError(f"git log timed out after {timeout_s}s", working_dir, file_path) from e

    if proc.returncode != 0:
        msg = err.decode("utf-8", errors="replace").strip() or f"git exited with {proc.returncode}"
        raise OracleError(msg, working_dir, file_path)

    history = parse_log(out.decode("utf-8", errors="replace"))
    if history.empty:
        raise OracleError("no revision history", working_dir, file_path)
    return history


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Print the commit history ExpertLens scores")
    ap.add_argument("--dir", default=".")
    ap.add_argument("--no-follow", action="store_true")
    ap.add_argument("file")
    args = ap.parse_args(argv)

    try:
        history = asyncio.run(read_history(args.dir, args.file, follow_renames=not args.no_follow))
    except OracleError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    print(history.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
