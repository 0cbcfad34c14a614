#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ExpertLens — In-process host collaborators
  • FocusChannel: focus-change source; delivers targets to subscribers in arrival order
  • StatusIndicator: display sink modelled on an editor status bar item

Used by the runner, the HTTP surface and the tests.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from expertise.session import FocusCallback, FocusTarget


class _ChannelSubscription:
    def __init__(self, channel: "FocusChannel", callback: FocusCallback) -> None:
        self._channel = channel
        self._callback: Optional[FocusCallback] = callback

    @property
    def active(self) -> bool:
        return self._callback is not None

    def dispose(self) -> None:
        if self._callback is None:
            return
        self._channel._remove(self._callback)
        self._callback = None


class FocusChannel:
    def __init__(self) -> None:
        self._listeners: List[FocusCallback] = []
        self.current: Optional[FocusTarget] = None

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, callback: FocusCallback) -> _ChannelSubscription:
        self._listeners.append(callback)
        return _ChannelSubscription(self, callback)

    def emit(self, target: Optional[FocusTarget]) -> None:
        self.current = target
        for callback in list(self._listeners):
            callback(target)

    def _remove(self, callback: FocusCallback) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)


class StatusIndicator:
    """Holds what is on screen. Render calls after dispose() are ignored; dispose() itself does not render."""

    def __init__(self, on_render: Optional[Callable[[Optional[str]], None]] = None) -> None:
        self.text: Optional[str] = None
        self.visible = False
        self.disposed = False
        self.renders = 0
        self._on_render = on_render

    def show(self, text: str) -> None:
        if self.disposed:
            return
        self.text = text
        self.visible = True
        self._rendered(text)

    def hide(self) -> None:
        if self.disposed:
            return
        self.visible = False
        self._rendered(None)

    def dispose(self) -> None:
        self.visible = False
        self.disposed = True

    def _rendered(self, text: Optional[str]) -> None:
        self.renders += 1
        if self._on_render is not None:
            self._on_render(text)
