#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — Streamlit UI
Simple panel to switch the focused file through the API and show the attribution card.
"""
from __future__ import annotations
import os
import requests
import streamlit as st

API = os.environ.get("EF_API_BASE", "http://127.0.0.1:8000")

st.set_page_config(page_title="ExpertLens", layout="wide")
st.title("👤 ExpertLens")

with st.sidebar:
    st.header("Focus")
    working_dir = st.text_input("Working dir", value="", help="Empty = server default")
    st.caption(f"API: {API}")
    st.divider()
    st.caption("Run API first: `python run.py serve --port 8000`")

file_path = st.text_input("File", value="README.md")
col_a, col_b, col_c = st.columns(3)
go = col_a.button("Focus")
clear = col_b.button("No active document")
refresh = col_c.button("Refresh")


def call_api(method, route, payload=None, params=None):
    url = f"{API}{route}"
    r = requests.request(method, url, json=payload, params=params, timeout=180)
    r.raise_for_status()
    return r.json()


card = None
if go and file_path.strip():
    payload = {"working_dir": working_dir or None, "file_path": file_path.strip()}
    with st.spinner("Reading history…"):
        card = call_api("POST", "/api/v1/focus", payload, params={"wait": "true"})
elif clear:
    card = call_api("POST", "/api/v1/focus", {"working_dir": None, "file_path": None})
elif refresh:
    card = call_api("GET", "/api/v1/status")

if card is not None:
    st.subheader("Status")
    if card.get("visible"):
        st.code(card.get("label", ""))
    else:
        st.caption("(hidden)")

    col1, col2 = st.columns([1, 2])
    with col1:
        st.subheader("Badges")
        st.table(card.get("badges", []))
    with col2:
        st.subheader("Experts")
        st.table(card.get("experts", []))

    st.json(card.get("target") or {}, expanded=False)
