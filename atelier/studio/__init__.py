"""
Atelier Studio — Navigation Package
=====================================

What:  The "enter the studio" interaction: zone registry, navigation store,
       HUD overlays and the two animation drivers (timer, camera rig).
How:   Pure in-memory Python; nothing in this package touches the database.

Module Map:
    zones.py   Static registry of the four zones and camera presets
    store.py   StudioStore state machine + `studio_store` singleton
    hud.py     StudioNav / ZoneOverlay view models and keyboard handling
    camera.py  Frame-driven camera interpolation, completes transitions on arrival
    timer.py   Fixed-duration transition completion on the asyncio loop
"""

from atelier.studio.store import StudioMode, StudioState, StudioStore, studio_store
from atelier.studio.zones import ZONE_ORDER, ZONES, ZoneId

__all__ = [
    "StudioMode",
    "StudioState",
    "StudioStore",
    "studio_store",
    "ZONE_ORDER",
    "ZONES",
    "ZoneId",
]
