"""
Atelier Studio — Zone Registry
================================

What:  Static definitions of the four business-vertical zones of the 3D studio,
       plus the camera presets used outside of a zone.
How:   Frozen dataclasses in a module-level mapping; nothing here is mutated
       at runtime and no zone is created or destroyed.
Who:   Read by the navigation store (cyclic order), the HUD overlays (copy,
       colours) and the camera rig (coordinates).

All spatial units are meters (1 unit ≈ 1 meter). The room is 14 wide ×
10 deep × 4.5 tall, centered at (0, 0, -5).

Zone layout (top-down, camera faces -Z):

         BACK WALL (Z = -10)
  ┌─────────────┬─────────────┐
  │   LASH      │  CROCHET    │
  │  (-4, -7.5) │  (4, -7.5)  │
  ├─────────────┼─────────────┤
  │ CONSULTING  │  JEWELRY    │
  │  (-4, -2.5) │  (4, -2.5)  │
  └─────────────┴─────────────┘
         FRONT (Z = 0)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from atelier.exceptions import ValidationError

Vector3 = Tuple[float, float, float]


class ZoneId(str, Enum):
    """Closed set of zone identifiers."""

    LASH = "lash"
    JEWELRY = "jewelry"
    CROCHET = "crochet"
    CONSULTING = "consulting"


@dataclass(frozen=True)
class CallToAction:
    label: str
    href: str


@dataclass(frozen=True)
class CameraPreset:
    position: Vector3
    look_at: Vector3


@dataclass(frozen=True)
class ZoneDefinition:
    """
    Everything the HUD and the renderer need to know about one zone.

    `platform_size` is width (X) × depth (Z); the lash platform is the largest.
    `label_height` is where the floating zone label sits above the display.
    """

    id: ZoneId
    label: str
    subtitle: str
    heading: str
    description: str
    cta: CallToAction
    color: str
    camera_position: Vector3
    camera_look_at: Vector3
    pedestal_position: Vector3
    platform_size: Tuple[float, float]
    label_height: float

    @property
    def camera(self) -> CameraPreset:
        return CameraPreset(position=self.camera_position, look_at=self.camera_look_at)


# ── Camera presets for non-zone states ────────────────────────────────────
# HERO_CAMERA: pulled-back landing page view.
# CENTER_CAMERA: inside the room, surveying all four zones.
HERO_CAMERA = CameraPreset(position=(0.0, 2.8, 9.0), look_at=(0.0, 1.0, -4.0))
CENTER_CAMERA = CameraPreset(position=(0.0, 2.2, 3.0), look_at=(0.0, 0.8, -5.0))


ZONES: Dict[ZoneId, ZoneDefinition] = {
    ZoneId.LASH: ZoneDefinition(
        id=ZoneId.LASH,
        label="Lash Extensions",
        subtitle="Precision. Patience. Artistry.",
        heading="Lash Extensions",
        description=(
            "Full sets, fills, and removals, each appointment structured around "
            "technique and care. Classic, hybrid, and volume sets tailored to your "
            "eye shape and lifestyle."
        ),
        cta=CallToAction(label="Book Appointment", href="#booking"),
        color="#C4907A",
        camera_position=(-2.0, 2.0, -4.8),
        camera_look_at=(-4.0, 0.5, -7.5),
        pedestal_position=(-4.0, 0.0, -7.5),
        platform_size=(3.8, 3.2),
        label_height=2.4,
    ),
    ZoneId.JEWELRY: ZoneDefinition(
        id=ZoneId.JEWELRY,
        label="Permanent Jewelry",
        subtitle="Welded. Worn. Kept.",
        heading="Permanent Jewelry",
        description=(
            "14k gold-filled and sterling silver chains, custom-fit and welded on. "
            "No clasp. Bracelets, anklets, and necklaces sized to you and sealed "
            "with intention."
        ),
        cta=CallToAction(label="Book Session", href="#booking"),
        color="#D4A574",
        camera_position=(2.2, 2.0, -0.3),
        camera_look_at=(4.0, 0.6, -2.5),
        pedestal_position=(4.0, 0.0, -2.5),
        platform_size=(2.8, 2.4),
        label_height=2.2,
    ),
    ZoneId.CROCHET: ZoneDefinition(
        id=ZoneId.CROCHET,
        label="Crochet Marketplace",
        subtitle="Handmade. Made to order.",
        heading="Custom Crochet",
        description=(
            "Handcrafted crochet pieces: bags, accessories, home goods, and custom "
            "commissions. Each item made to order with care and precision."
        ),
        cta=CallToAction(label="Browse Collection", href="#marketplace"),
        color="#7BA3A3",
        camera_position=(2.2, 2.0, -5.0),
        camera_look_at=(4.0, 0.6, -7.5),
        pedestal_position=(4.0, 0.0, -7.5),
        platform_size=(2.8, 2.4),
        label_height=2.2,
    ),
    ZoneId.CONSULTING: ZoneDefinition(
        id=ZoneId.CONSULTING,
        label="HR & Consulting",
        subtitle="Structure. Clarity. Growth.",
        heading="HR & Business Consulting",
        description=(
            "Operational strategy, HR infrastructure, and business consulting for "
            "small businesses and creative entrepreneurs. Systems that work so you "
            "can focus on the work."
        ),
        cta=CallToAction(label="Request Consultation", href="#consulting"),
        color="#5B8A8A",
        camera_position=(-2.2, 2.0, -0.3),
        camera_look_at=(-4.0, 0.6, -2.5),
        pedestal_position=(-4.0, 0.0, -2.5),
        platform_size=(2.8, 2.4),
        label_height=2.2,
    ),
}

# Fixed cyclic order used by next/prev navigation and the HUD dots
ZONE_ORDER: Tuple[ZoneId, ...] = (
    ZoneId.LASH,
    ZoneId.JEWELRY,
    ZoneId.CROCHET,
    ZoneId.CONSULTING,
)


def parse_zone_id(value: Union[ZoneId, str]) -> ZoneId:
    """
    Coerce a string (e.g. a path parameter) into a ZoneId.

    Raises:
        ValidationError: the value is not one of the four zones.
    """
    if isinstance(value, ZoneId):
        return value
    try:
        return ZoneId(value)
    except ValueError:
        valid = ", ".join(z.value for z in ZONE_ORDER)
        raise ValidationError(
            message=f"Unknown zone '{value}'. Valid zones: {valid}",
            field="zone_id",
        )


def get_zone(zone_id: Union[ZoneId, str]) -> ZoneDefinition:
    return ZONES[parse_zone_id(zone_id)]


def zone_after(zone_id: Optional[ZoneId]) -> ZoneId:
    """Next zone in cyclic order; with no zone, the first one."""
    idx = ZONE_ORDER.index(zone_id) if zone_id is not None else -1
    return ZONE_ORDER[(idx + 1) % len(ZONE_ORDER)]


def zone_before(zone_id: Optional[ZoneId]) -> ZoneId:
    """Previous zone in cyclic order; with no zone, the last one."""
    idx = ZONE_ORDER.index(zone_id) if zone_id is not None else 0
    return ZONE_ORDER[(idx - 1) % len(ZONE_ORDER)]
