"""Perspective camera that follows the player or moves freely."""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

import numpy as np

from .components import (
    CameraComponent,
    Position3DComponent,
    PositionComponent,
    RotationComponent,
)
from .transform import scale

_FLIP_Y = scale(np.identity(4, dtype=np.float32), (1.0, -1.0, 1.0))
_WORLD_UP = (0.0, 1.0, 0.0)


def _require(entity: Any, component_type: type) -> Any:
    component = entity.get(component_type)
    if component is None:
        raise KeyError(f"entity lacks {component_type.__name__}")
    return component


def _get_mut(entity: Any, component_type: type) -> Any:
    """Return the component, attaching a default one first if it is missing."""
    component = entity.get(component_type)
    if component is None:
        component = component_type()
        entity.set(component)
    return component


def _normalize(v: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(v))
    if norm == 0.0:
        raise ValueError("cannot normalize a zero-length vector")
    return v / norm


def perspective(fov_y: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Right-handed perspective projection with clip depth in [-1, 1].

    ``fov_y`` is the vertical field of view in radians.
    """
    if aspect == 0.0:
        raise ValueError("aspect ratio must not be zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    tan_half = math.tan(fov_y / 2.0)
    if tan_half == 0.0:
        raise ValueError("field of view must not be zero")
    proj = np.zeros((4, 4), dtype=np.float32)
    proj[0, 0] = 1.0 / (aspect * tan_half)
    proj[1, 1] = 1.0 / tan_half
    proj[2, 2] = -(far + near) / (far - near)
    proj[3, 2] = -1.0
    proj[2, 3] = -(2.0 * far * near) / (far - near)
    return proj


def look_at(eye: Sequence[float], center: Sequence[float], up: Sequence[float]) -> np.ndarray:
    """Right-handed view matrix looking from ``eye`` towards ``center``."""
    eye_v = np.asarray(eye, dtype=np.float64)
    f = _normalize(np.asarray(center, dtype=np.float64) - eye_v)
    s = _normalize(np.cross(f, np.asarray(up, dtype=np.float64)))
    u = np.cross(s, f)
    view = np.identity(4)
    view[0, :3] = s
    view[1, :3] = u
    view[2, :3] = -f
    view[0, 3] = -np.dot(s, eye_v)
    view[1, 3] = -np.dot(u, eye_v)
    view[2, 3] = np.dot(f, eye_v)
    return view.astype(np.float32)


def yaw_pitch_roll(yaw: float, pitch: float, roll: float) -> np.ndarray:
    """Rotation by ``yaw`` about Y, then ``pitch`` about X, then ``roll`` about Z."""
    ch, sh = math.cos(yaw), math.sin(yaw)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cb, sb = math.cos(roll), math.sin(roll)
    m = np.identity(4)
    m[:3, 0] = (ch * cb + sh * sp * sb, sb * cp, -sh * cb + ch * sp * sb)
    m[:3, 1] = (-ch * sb + sh * sp * cb, cb * cp, sb * sh + ch * sp * cb)
    m[:3, 2] = (sh * cp, -sp, ch * cp)
    return m.astype(np.float32)


class Camera:
    """Drives a camera entity holding camera, 3D position and rotation components."""

    def __init__(self, entity: Any) -> None:
        self.entity = entity
        self.projection = np.identity(4, dtype=np.float32)
        self.recalculate_projection()

    def recalculate_projection(self) -> None:
        cam = _require(self.entity, CameraComponent)
        self.projection = perspective(
            math.radians(cam.fov), cam.aspect_ratio, cam.near_plane, cam.far_plane
        )

    def on_update(
        self,
        dt: float,
        player: Any,
        camera_x_axis: float = 0.0,
        camera_y_axis: float = 0.0,
        aspect_ratio: Optional[float] = None,
    ) -> None:
        """Move freely on camera input, otherwise follow the player.

        Pass ``aspect_ratio`` when the framebuffer was resized.
        """
        if camera_x_axis or camera_y_axis:
            pos = _get_mut(self.entity, PositionComponent)
            pos.position[0] += dt * camera_x_axis
            pos.position[1] += dt * camera_y_axis
        else:
            player_pos = _require(player, PositionComponent).position
            cam_pos = _get_mut(self.entity, Position3DComponent)
            cam_pos.position[0] = player_pos[0]
            cam_pos.position[1] = player_pos[1]
        if aspect_ratio is not None:
            _require(self.entity, CameraComponent).aspect_ratio = aspect_ratio
            self.recalculate_projection()

    def view_matrix(self) -> np.ndarray:
        position = _require(self.entity, Position3DComponent).position
        rotation = _require(self.entity, RotationComponent).rotation
        rot = yaw_pitch_roll(float(rotation[0]), float(rotation[1]), 0.0)
        direction = (rot @ np.array([0.0, 0.0, -1.0, 1.0], dtype=np.float32))[:3]
        eye = position.astype(np.float64)
        return (_FLIP_Y @ look_at(eye, eye + direction, _WORLD_UP)).astype(np.float32)

    def vp_matrix(self) -> np.ndarray:
        return (self.projection @ self.view_matrix()).astype(np.float32)