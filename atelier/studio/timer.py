"""
Atelier Studio — Transition Timer
===================================

What:  Fixed-duration animation driver: ends every studio transition after
       `settings.studio_transition_seconds`.
How:   Subscribes to the store. When is_transitioning flips on, it schedules
       store.complete_transition() with loop.call_later(); when the flag is
       cleared early (e.g. by the camera rig) the pending call is cancelled.
Who:   Attached to the process-wide store in the app lifespan.

Single-threaded by construction: call_later runs the callback on the same
event loop that handled the request, so the store is only ever touched from
one thread.
"""

import asyncio
import logging
from typing import Callable, Optional

from atelier.studio.store import StudioState, StudioStore

logger = logging.getLogger(__name__)


class TransitionTimer:
    def __init__(self, store: StudioStore, duration: float):
        self.store = store
        self.duration = duration
        self._handle: Optional[asyncio.TimerHandle] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_change)

    def detach(self) -> None:
        self.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_change(self, state: StudioState, previous: StudioState) -> None:
        if not state.is_transitioning:
            self.cancel()
            return
        if previous.is_transitioning:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside the server loop; the renderer's camera rig completes it
            logger.debug("No running loop; transition left to the renderer")
            return
        self.cancel()
        self._handle = loop.call_later(self.duration, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self.store.complete_transition():
            logger.debug("Transition completed by timer (mode=%s)", self.store.state.mode.value)
