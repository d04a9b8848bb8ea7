"""
Atelier Backend — Studio Request/Response Schemas
===================================================

What:  Pydantic models for the `/api/studio` endpoints: the zone registry,
       the navigation state, the two HUD view models and the camera target.
How:   Built from the studio dataclasses with `from_*` classmethods so the
       studio package itself never imports pydantic.
"""

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from atelier.studio.camera import target_for
from atelier.studio.hud import NavView, PanelView
from atelier.studio.store import StudioMode, StudioState
from atelier.studio.zones import ZoneDefinition, ZoneId

Vec3 = Tuple[float, float, float]


# ══════════════════════════════════════════════════════════════════════════
# Zone Registry
# ══════════════════════════════════════════════════════════════════════════


class CallToActionResponse(BaseModel):
    label: str
    href: str


class ZoneResponse(BaseModel):
    """One business-vertical zone with its copy and 3D placement."""

    id: ZoneId
    label: str
    subtitle: str
    heading: str
    description: str
    cta: CallToActionResponse
    color: str = Field(description="Accent colour (hex)")
    camera_position: Vec3
    camera_look_at: Vec3
    pedestal_position: Vec3
    platform_size: Tuple[float, float] = Field(description="Width × depth in meters")
    label_height: float

    @classmethod
    def from_zone(cls, zone: ZoneDefinition) -> "ZoneResponse":
        return cls(
            id=zone.id,
            label=zone.label,
            subtitle=zone.subtitle,
            heading=zone.heading,
            description=zone.description,
            cta=CallToActionResponse(label=zone.cta.label, href=zone.cta.href),
            color=zone.color,
            camera_position=zone.camera_position,
            camera_look_at=zone.camera_look_at,
            pedestal_position=zone.pedestal_position,
            platform_size=zone.platform_size,
            label_height=zone.label_height,
        )


class ZoneListResponse(BaseModel):
    zones: List[ZoneResponse] = Field(description="All zones in navigation order")


# ══════════════════════════════════════════════════════════════════════════
# Navigation State & HUD Views
# ══════════════════════════════════════════════════════════════════════════


class StateSnapshot(BaseModel):
    mode: StudioMode
    active_zone: Optional[ZoneId] = None
    is_transitioning: bool
    hovered_zone: Optional[ZoneId] = None

    @classmethod
    def from_state(cls, state: StudioState) -> "StateSnapshot":
        return cls(
            mode=state.mode,
            active_zone=state.active_zone,
            is_transitioning=state.is_transitioning,
            hovered_zone=state.hovered_zone,
        )


class ZoneDotResponse(BaseModel):
    zone_id: ZoneId
    label: str
    aria_label: str
    active: bool
    disabled: bool


class NavViewResponse(BaseModel):
    visible: bool
    zone_label: Optional[str] = None
    zone_subtitle: Optional[str] = None
    show_back: bool
    show_exit: bool
    dots: List[ZoneDotResponse]
    live_region: str

    @classmethod
    def from_view(cls, view: NavView) -> "NavViewResponse":
        return cls(
            visible=view.visible,
            zone_label=view.zone_label,
            zone_subtitle=view.zone_subtitle,
            show_back=view.show_back,
            show_exit=view.show_exit,
            dots=[
                ZoneDotResponse(
                    zone_id=dot.zone_id,
                    label=dot.label,
                    aria_label=dot.aria_label,
                    active=dot.active,
                    disabled=dot.disabled,
                )
                for dot in view.dots
            ],
            live_region=view.live_region,
        )


class PanelViewResponse(BaseModel):
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

    @classmethod
    def from_view(cls, view: PanelView) -> "PanelViewResponse":
        return cls(
            visible=view.visible,
            zone_id=view.zone_id,
            label=view.label,
            heading=view.heading,
            subtitle=view.subtitle,
            description=view.description,
            cta_label=view.cta_label,
            cta_href=view.cta_href,
            accent_color=view.accent_color,
            focused_control=view.focused_control,
        )


class CameraTargetResponse(BaseModel):
    position: Vec3
    look_at: Vec3


class StudioStateResponse(BaseModel):
    """
    Everything a client needs to draw one frame of the studio UI.

    `camera` is where the camera is heading, not where it is: the renderer
    interpolates toward it.
    """

    state: StateSnapshot
    nav: NavViewResponse
    panel: PanelViewResponse
    camera: CameraTargetResponse

    @classmethod
    def build(cls, state: StudioState, nav: NavView, panel: PanelView) -> "StudioStateResponse":
        target = target_for(state)
        return cls(
            state=StateSnapshot.from_state(state),
            nav=NavViewResponse.from_view(nav),
            panel=PanelViewResponse.from_view(panel),
            camera=CameraTargetResponse(position=target.position, look_at=target.look_at),
        )


# ══════════════════════════════════════════════════════════════════════════
# Input Models
# ══════════════════════════════════════════════════════════════════════════

StudioAction = Literal["enter", "exit", "focus", "unfocus", "next", "prev", "complete", "hover"]


class ActionRequest(BaseModel):
    """
    One navigation intent.

    `zone_id` is required for `focus`; for `hover` a missing zone clears the
    highlight. Other actions ignore it.
    """

    action: StudioAction
    zone_id: Optional[str] = Field(default=None, description="Target zone for focus / hover")


class KeyPressRequest(BaseModel):
    key: str = Field(min_length=1, max_length=32, description="DOM key name, e.g. 'ArrowRight'")
    shift: bool = False


class ActionResponse(BaseModel):
    accepted: bool = Field(description="False when the store ignored the transition")
    state: StudioStateResponse


class KeyPressResponse(BaseModel):
    handled: bool = Field(description="True when a HUD handler consumed the key")
    state: StudioStateResponse
