"""
Atelier Studio — Navigation Store
===================================

What:  The state machine behind the "enter the studio" interaction.
How:   A single StudioStore holds an immutable StudioState; transition methods
       replace it and notify subscribers. A module-level singleton
       (`studio_store`) is the process-wide instance.
Who:   Mutated by the HUD overlays (user input), the studio routes, and the
       animation drivers (TransitionTimer, CameraRig) via complete_transition().
When:  Created at import; never persisted, never torn down.

State Machine:
    landing ──enter──▶ entering ──(animation ends)──▶ exploring ⇄ focused
       ▲                                                  │          │
       └──────────────────────exit─────────────────────────┴──────────┘

    focused ──focus(other)──▶ focused   (switch zones)
    exploring/focused ──next/prev──▶ focused (adjacent zone in ZONE_ORDER)

Invariants:
    - active_zone is set if and only if mode == focused
    - while is_transitioning, every transition coming from user input is
      dropped (not queued); only complete_transition() clears the flag
    - invalid transitions are ignored and reported as `False`, never raised

The store keeps only the destination (mode + zone). Interpolating the camera
toward it is the renderer's job; the renderer (or the fixed-duration timer)
calls complete_transition() when the animation ends.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional

from atelier.studio.zones import ZoneId, parse_zone_id, zone_after, zone_before

logger = logging.getLogger(__name__)


class StudioMode(str, Enum):
    LANDING = "landing"
    ENTERING = "entering"
    EXPLORING = "exploring"
    FOCUSED = "focused"


# Modes in which the visitor is inside the studio and may navigate
NAVIGABLE_MODES = frozenset({StudioMode.EXPLORING, StudioMode.FOCUSED})


@dataclass(frozen=True)
class StudioState:
    mode: StudioMode = StudioMode.LANDING
    active_zone: Optional[ZoneId] = None
    is_transitioning: bool = False
    hovered_zone: Optional[ZoneId] = None


INITIAL_STATE = StudioState()

Listener = Callable[[StudioState, StudioState], None]


class StudioStore:
    """
    Shared navigation state container.

    Every transition method returns True when the transition was applied
    and False when it was ignored (wrong source mode, or an animation is
    still in flight).
    """

    def __init__(self, initial: StudioState = INITIAL_STATE):
        self._state = initial
        self._listeners: List[Listener] = []

    # ── Reading ───────────────────────────────────────────────────────────

    @property
    def state(self) -> StudioState:
        return self._state

    def snapshot(self) -> StudioState:
        """The current state. StudioState is frozen, so callers can keep it."""
        return self._state

    # ── Subscription ──────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with (state, previous) after each mutation.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        previous = self._state
        self._state = replace(previous, **changes)
        logger.debug(
            "Studio %s/%s → %s/%s (transitioning=%s)",
            previous.mode.value,
            previous.active_zone.value if previous.active_zone else "-",
            self._state.mode.value,
            self._state.active_zone.value if self._state.active_zone else "-",
            self._state.is_transitioning,
        )
        for listener in list(self._listeners):
            listener(self._state, previous)

    def _can_navigate(self) -> bool:
        return not self._state.is_transitioning and self._state.mode in NAVIGABLE_MODES

    # ── Transitions ───────────────────────────────────────────────────────

    def enter_studio(self) -> bool:
        """landing → entering; the animation driver advances to exploring."""
        if self._state.is_transitioning or self._state.mode != StudioMode.LANDING:
            return False
        self._set(mode=StudioMode.ENTERING, active_zone=None, is_transitioning=True)
        return True

    def focus_zone(self, zone_id) -> bool:
        """
        Fly to a zone from exploring, or switch zones while focused.

        Raises:
            ValidationError: zone_id is not one of the four zones. This is a
                caller bug, not an invalid transition.
        """
        zone = parse_zone_id(zone_id)
        if not self._can_navigate() or self._state.active_zone == zone:
            return False
        self._set(mode=StudioMode.FOCUSED, active_zone=zone, is_transitioning=True)
        return True

    def unfocus_zone(self) -> bool:
        """focused → exploring (back to the center of the room)."""
        if self._state.is_transitioning or self._state.mode != StudioMode.FOCUSED:
            return False
        self._set(mode=StudioMode.EXPLORING, active_zone=None, is_transitioning=True)
        return True

    def exit_studio(self) -> bool:
        """exploring/focused → landing, with the camera flying back out."""
        if not self._can_navigate():
            return False
        self._set(mode=StudioMode.LANDING, active_zone=None, is_transitioning=True)
        return True

    def next_zone(self) -> bool:
        if not self._can_navigate():
            return False
        return self.focus_zone(zone_after(self._state.active_zone))

    def prev_zone(self) -> bool:
        if not self._can_navigate():
            return False
        return self.focus_zone(zone_before(self._state.active_zone))

    def complete_transition(self) -> bool:
        """
        End the in-flight animation.

        Called by the animation driver, never by user input. Entering settles
        into exploring; every other mode already holds its destination.
        """
        if not self._state.is_transitioning:
            return False
        if self._state.mode == StudioMode.ENTERING:
            self._set(mode=StudioMode.EXPLORING, is_transitioning=False)
        else:
            self._set(is_transitioning=False)
        return True

    def set_hovered_zone(self, zone_id) -> bool:
        """Cosmetic hover highlight; accepted in every mode."""
        zone = parse_zone_id(zone_id) if zone_id is not None else None
        if self._state.hovered_zone == zone:
            return False
        self._set(hovered_zone=zone)
        return True

    def reset(self) -> None:
        """Back to the initial landing state. Listeners stay registered."""
        self._set(
            mode=StudioMode.LANDING,
            active_zone=None,
            is_transitioning=False,
            hovered_zone=None,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
studio_store = StudioStore()
