"""
Atelier Studio — Camera Rig
=============================

What:  Frame-driven camera controller that consumes the navigation store.
How:   Each frame: resolve the target preset for the current state, move the
       camera a fixed fraction of the way there (exponential ease-out),
       add a small pointer parallax while idle, and report arrival back to the
       store through complete_transition().
Who:   The renderer calls step() once per frame. The HTTP layer uses
       target_for() to tell clients where the camera is heading.

Target Resolution:
    landing             → HERO_CAMERA   (also during the fly-out after exit)
    entering, exploring → CENTER_CAMERA
    focused             → the active zone's camera
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

from atelier.studio.store import StudioMode, StudioState, StudioStore
from atelier.studio.zones import CENTER_CAMERA, HERO_CAMERA, ZONES, CameraPreset, Vector3

LERP_RATE = 0.025
ARRIVAL_THRESHOLD = 0.08

# Parallax amplitude in meters at full pointer deflection
PARALLAX_X = 0.15
PARALLAX_Y = 0.08
PARALLAX_IDLE_FACTOR = 0.8


def target_for(state: StudioState) -> CameraPreset:
    if state.mode == StudioMode.LANDING:
        return HERO_CAMERA
    if state.mode == StudioMode.FOCUSED and state.active_zone is not None:
        return ZONES[state.active_zone].camera
    return CENTER_CAMERA


def lerp(a: Vector3, b: Vector3, t: float) -> Vector3:
    return (
        a[0] + (b[0] - a[0]) * t,
        a[1] + (b[1] - a[1]) * t,
        a[2] + (b[2] - a[2]) * t,
    )


def distance(a: Vector3, b: Vector3) -> float:
    return math.sqrt(sum((a[i] - b[i]) ** 2 for i in range(3)))


@dataclass
class CameraFrame:
    """What the renderer applies to its camera this frame."""

    position: Vector3
    look_at: Vector3
    arrived: bool = False


@dataclass
class CameraRig:
    """
    Interpolating camera bound to a store.

    `reduced_motion` snaps straight to the target (rate 1), for visitors who
    asked the OS for less animation.
    """

    store: StudioStore
    reduced_motion: bool = False
    lerp_rate: float = LERP_RATE
    arrival_threshold: float = ARRIVAL_THRESHOLD
    position: Vector3 = field(default=HERO_CAMERA.position)
    look_at: Vector3 = field(default=HERO_CAMERA.look_at)

    def step(self, pointer: Optional[Tuple[float, float]] = None) -> CameraFrame:
        """
        Advance one frame.

        Args:
            pointer: normalized pointer position in [-1, 1] × [-1, 1], or None.

        Returns:
            The camera pose to render, with `arrived` set on the frame that
            completed a transition.
        """
        state = self.store.state
        target = target_for(state)

        rate = 1.0 if self.reduced_motion else self.lerp_rate
        self.position = lerp(self.position, target.position, rate)
        self.look_at = lerp(self.look_at, target.look_at, rate)

        arrived = False
        if state.is_transitioning and distance(self.position, target.position) < self.arrival_threshold:
            self.position = target.position
            self.look_at = target.look_at
            arrived = self.store.complete_transition()

        px, py = pointer or (0.0, 0.0)
        factor = 0.0 if self.store.state.is_transitioning else PARALLAX_IDLE_FACTOR
        rendered = (
            self.position[0] + px * PARALLAX_X * factor,
            self.position[1] + py * PARALLAX_Y * factor,
            self.position[2],
        )
        return CameraFrame(position=rendered, look_at=self.look_at, arrived=arrived)
