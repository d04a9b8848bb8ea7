"""
Atelier Backend — Studio Navigation Routes
============================================

What:  HTTP surface over the process-wide studio navigation store.
How:   Every endpoint reads or mutates `studio_store` through the HUD
       (StudioNav / ZoneOverlay) and answers with a full state snapshot, so
       a client can redraw from any response.
Who:   The studio front end; also handy for driving the state machine by hand
       from /docs.

Endpoints:
    GET  /api/studio/zones             zone registry in navigation order
    GET  /api/studio/zones/{zone_id}   one zone (400 for an unknown id)
    GET  /api/studio/state             snapshot + nav/panel views + camera target
    POST /api/studio/actions           {action, zone_id?} → {accepted, state}
    POST /api/studio/keys              {key, shift?}      → {handled, state}

Rejected transitions are not errors: they return 200 with accepted=false.
"""

import logging

from fastapi import APIRouter, Depends

from atelier.exceptions import ValidationError
from atelier.schemas.common import ErrorResponse
from atelier.schemas.studio import (
    ActionRequest,
    ActionResponse,
    KeyPressRequest,
    KeyPressResponse,
    StudioStateResponse,
    ZoneListResponse,
    ZoneResponse,
)
from atelier.studio.hud import StudioHud
from atelier.studio.store import studio_store
from atelier.studio.zones import ZONE_ORDER, ZONES, get_zone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/studio", tags=["Studio"])

_hud = StudioHud(studio_store)


def get_studio_hud() -> StudioHud:
    return _hud


def _state_response(hud: StudioHud) -> StudioStateResponse:
    return StudioStateResponse.build(hud.store.state, hud.nav.render(), hud.panel.render())


@router.get(
    "/zones",
    response_model=ZoneListResponse,
    summary="List studio zones",
)
async def list_zones() -> ZoneListResponse:
    return ZoneListResponse(zones=[ZoneResponse.from_zone(ZONES[z]) for z in ZONE_ORDER])


@router.get(
    "/zones/{zone_id}",
    response_model=ZoneResponse,
    responses={400: {"description": "Unknown zone", "model": ErrorResponse}},
    summary="Get one studio zone",
)
async def get_zone_detail(zone_id: str) -> ZoneResponse:
    return ZoneResponse.from_zone(get_zone(zone_id))


@router.get(
    "/state",
    response_model=StudioStateResponse,
    summary="Current navigation state",
)
async def get_state(hud: StudioHud = Depends(get_studio_hud)) -> StudioStateResponse:
    return _state_response(hud)


@router.post(
    "/actions",
    response_model=ActionResponse,
    responses={400: {"description": "Missing or unknown zone", "model": ErrorResponse}},
    summary="Dispatch a navigation action",
)
async def dispatch_action(
    body: ActionRequest,
    hud: StudioHud = Depends(get_studio_hud),
) -> ActionResponse:
    """
    Apply one navigation intent to the store.

    | action   | store call                         |
    |----------|------------------------------------|
    | enter    | enter_studio()                     |
    | exit     | exit_studio()                      |
    | focus    | focus_zone(zone_id) (zone required)|
    | unfocus  | unfocus_zone() via the panel       |
    | next     | next_zone()                        |
    | prev     | prev_zone()                        |
    | complete | complete_transition()              |
    | hover    | set_hovered_zone(zone_id or None)  |
    """
    store = hud.store
    action = body.action

    if action == "enter":
        accepted = store.enter_studio()
    elif action == "exit":
        accepted = hud.nav.click_exit()
    elif action == "focus":
        if not body.zone_id:
            raise ValidationError(message="zone_id is required for 'focus'", field="zone_id")
        accepted = store.focus_zone(body.zone_id)
    elif action == "unfocus":
        accepted = hud.panel.dismiss()
    elif action == "next":
        accepted = store.next_zone()
    elif action == "prev":
        accepted = store.prev_zone()
    elif action == "complete":
        accepted = store.complete_transition()
    else:
        accepted = store.set_hovered_zone(body.zone_id or None)

    if not accepted:
        logger.debug("Studio action '%s' ignored in mode %s", action, store.state.mode.value)
    return ActionResponse(accepted=accepted, state=_state_response(hud))


@router.post(
    "/keys",
    response_model=KeyPressResponse,
    summary="Dispatch a key press to the HUD",
)
async def dispatch_key(
    body: KeyPressRequest,
    hud: StudioHud = Depends(get_studio_hud),
) -> KeyPressResponse:
    event = hud.dispatch_key(body.key, shift=body.shift)
    return KeyPressResponse(handled=event.default_prevented, state=_state_response(hud))
