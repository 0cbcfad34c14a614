#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Focus CLI
Tiny client to drive a running server from the terminal.
"""
from __future__ import annotations
import argparse
import json
import sys
import requests


def pretty(obj):  # stable compact print
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def main(argv=None):
    ap = argparse.ArgumentParser(description="Drive ExpertLens over HTTP")
    ap.add_argument("--host", default="http://127.0.0.1:8000")
    ap.add_argument("--dir", default=None, help="working dir (server default if omitted)")
    ap.add_argument("action", choices=["focus", "clear", "status"])
    ap.add_argument("file", nargs="?", help="file to focus (action=focus)")
    args = ap.parse_args(argv)

    if args.action == "status":
        r = requests.get(f"{args.host}/api/v1/status", timeout=30)
    else:
        if args.action == "focus" and not args.file:
            ap.error("focus needs a file")
        body = {"working_dir": args.dir, "file_path": args.file if args.action == "focus" else None}
        r = requests.post(f"{args.host}/api/v1/focus", params={"wait": "true"}, json=body, timeout=120)
    r.raise_for_status()
    out = r.json()

    print("\n--- STATUS ---\n")
    print(out["label"] if out.get("visible") else "(hidden)")
    print("\n--- EXPERTS ---\n")
    pretty(out.get("experts", []))
    return 0


if __name__ == "__main__":
    sys.exit(main())
