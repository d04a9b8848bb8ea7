"""
Atelier Studio — HUD Overlays
===============================

What:  The two overlays drawn on top of the 3D studio, as view models plus
       their input handling:
       - StudioNav:   zone dots, zone label, Back / Exit controls, keyboard shortcuts
       - ZoneOverlay: slide-in detail panel for the focused zone, with focus trap
How:   Both read the navigation store and dispatch its transition methods.
       Neither holds navigation state of its own; ZoneOverlay keeps only
       which of its controls has keyboard focus.
Who:   Driven by the studio routes (`POST /api/studio/keys`, `GET /api/studio/state`).

Keyboard Dispatch (mirrors browser capture → bubble order):
    KeyEvent ──▶ ZoneOverlay.handle_key  (capture phase, may stop propagation)
             ──▶ StudioNav.handle_key    (skipped if propagation was stopped)

    Escape with a zone open is consumed by the panel, so one press backs out
    exactly one level (focused → exploring), never straight to landing.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from atelier.studio.store import NAVIGABLE_MODES, StudioMode, StudioStore
from atelier.studio.zones import ZONE_ORDER, ZONES, ZoneId


@dataclass
class KeyEvent:
    """A single key press, with the two DOM-style flags handlers can set."""

    key: str
    shift: bool = False
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


# ══════════════════════════════════════════════════════════════════════════
# Navigation HUD
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ZoneDot:
    zone_id: ZoneId
    label: str
    aria_label: str
    active: bool
    disabled: bool


@dataclass(frozen=True)
class NavView:
    visible: bool
    zone_label: Optional[str]
    zone_subtitle: Optional[str]
    show_back: bool
    show_exit: bool
    dots: Tuple[ZoneDot, ...]
    live_region: str


class StudioNav:
    """
    HUD for moving around the studio.

    Visible from the moment the fly-in starts (entering) until the visitor
    leaves; keyboard shortcuts only work once inside (exploring / focused).
    """

    VISIBLE_MODES = frozenset({StudioMode.ENTERING, StudioMode.EXPLORING, StudioMode.FOCUSED})

    def __init__(self, store: StudioStore):
        self.store = store

    def render(self) -> NavView:
        state = self.store.state
        zone = ZONES[state.active_zone] if state.active_zone else None
        dots = tuple(
            ZoneDot(
                zone_id=zone_id,
                label=ZONES[zone_id].label,
                aria_label=f"View {ZONES[zone_id].label}",
                active=state.active_zone == zone_id,
                disabled=state.is_transitioning,
            )
            for zone_id in ZONE_ORDER
        )
        return NavView(
            visible=state.mode in self.VISIBLE_MODES,
            zone_label=zone.label if zone else None,
            zone_subtitle=zone.subtitle if zone else None,
            show_back=zone is not None,
            show_exit=True,
            dots=dots,
            live_region=f"Now viewing: {zone.label}" if zone else "Studio overview",
        )

    def handle_key(self, event: KeyEvent) -> bool:
        """
        ArrowRight / ArrowLeft cycle zones; Escape backs out one level.

        Returns:
            True if the key was one of ours (default action prevented).
        """
        state = self.store.state
        if state.mode not in NAVIGABLE_MODES:
            return False

        if event.key == "ArrowRight":
            event.prevent_default()
            self.store.next_zone()
        elif event.key == "ArrowLeft":
            event.prevent_default()
            self.store.prev_zone()
        elif event.key == "Escape":
            event.prevent_default()
            if state.active_zone:
                self.store.unfocus_zone()
            else:
                self.store.exit_studio()
        else:
            return False
        return True

    def click_dot(self, zone_id) -> bool:
        # Disabled dots swallow clicks while the camera is moving
        if self.store.state.is_transitioning:
            return False
        return self.store.focus_zone(zone_id)

    def click_back(self) -> bool:
        return self.store.unfocus_zone()

    def click_exit(self) -> bool:
        return self.store.exit_studio()


# ══════════════════════════════════════════════════════════════════════════
# Zone Detail Panel
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PanelView:
    visible: bool
    zone_id: Optional[ZoneId] = None
    label: Optional[str] = None
    heading: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    cta_label: Optional[str] = None
    cta_href: Optional[str] = None
    accent_color: Optional[str] = None
    focused_control: Optional[str] = None


class ZoneOverlay:
    """
    Slide-in panel describing the focused zone.

    Focus management:
        - on open, focus moves to the Close control
        - Tab / Shift+Tab cycle through CONTROLS and never leave the panel
        - on close, focus is released
    """

    CONTROLS: Tuple[str, ...] = ("close", "cta", "back")

    def __init__(self, store: StudioStore):
        self.store = store
        self._focused_control: Optional[str] = None
        self._was_visible = False

    @property
    def visible(self) -> bool:
        state = self.store.state
        return state.mode == StudioMode.FOCUSED and state.active_zone is not None

    @property
    def focused_control(self) -> Optional[str]:
        self._sync_focus()
        return self._focused_control

    def _sync_focus(self) -> None:
        visible = self.visible
        if visible and not self._was_visible:
            self._focused_control = "close"
        elif not visible:
            self._focused_control = None
        self._was_visible = visible

    def render(self) -> PanelView:
        self._sync_focus()
        if not self.visible:
            return PanelView(visible=False)
        zone = ZONES[self.store.state.active_zone]
        return PanelView(
            visible=True,
            zone_id=zone.id,
            label=zone.label,
            heading=zone.heading,
            subtitle=zone.subtitle,
            description=zone.description,
            cta_label=zone.cta.label,
            cta_href=zone.cta.href,
            accent_color=zone.color,
            focused_control=self._focused_control,
        )

    def handle_key(self, event: KeyEvent) -> bool:
        """Capture-phase handler; runs before StudioNav.handle_key."""
        self._sync_focus()
        if not self.visible:
            return False

        if event.key == "Escape":
            event.prevent_default()
            event.stop_propagation()
            self.dismiss()
            return True

        if event.key == "Tab":
            event.prevent_default()
            self._move_focus(-1 if event.shift else 1)
            return True

        if event.key == "Enter" and self._focused_control in ("close", "back"):
            event.prevent_default()
            self.dismiss()
            return True

        return False

    def _move_focus(self, step: int) -> None:
        if self._focused_control not in self.CONTROLS:
            self._focused_control = self.CONTROLS[0]
            return
        idx = self.CONTROLS.index(self._focused_control)
        self._focused_control = self.CONTROLS[(idx + step) % len(self.CONTROLS)]

    def dismiss(self) -> bool:
        """Close / Back button, or Escape."""
        accepted = self.store.unfocus_zone()
        self._sync_focus()
        return accepted


# ══════════════════════════════════════════════════════════════════════════
# Combined HUD
# ══════════════════════════════════════════════════════════════════════════

class StudioHud:
    """Both overlays over one store, with capture-then-bubble key dispatch."""

    def __init__(self, store: StudioStore):
        self.store = store
        self.nav = StudioNav(store)
        self.panel = ZoneOverlay(store)

    def dispatch_key(self, key: str, shift: bool = False) -> KeyEvent:
        event = KeyEvent(key=key, shift=shift)
        self.panel.handle_key(event)
        if not event.propagation_stopped:
            self.nav.handle_key(event)
        return event
