"""4x4 model-matrix helpers for entities and transforms."""

from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np

from .components import PositionComponent, RotationComponent, ScaleComponent, Transform


def translate(matrix: Any, vector: Sequence[float]) -> np.ndarray:
    """Return ``matrix`` multiplied by a translation by ``vector``."""
    t = np.identity(4, dtype=np.float32)
    t[:3, 3] = np.asarray(vector, dtype=np.float32)
    return np.asarray(matrix, dtype=np.float32) @ t


def rotate(matrix: Any, angle: float, axis: Sequence[float]) -> np.ndarray:
    """Return ``matrix`` multiplied by a rotation of ``angle`` radians about ``axis``."""
    a = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(a)
    if norm == 0.0:
        raise ValueError("rotation axis must not be zero")
    a = a / norm
    x, y, z = a
    c = math.cos(angle)
    s = math.sin(angle)
    cross = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    r = np.identity(4)
    r[:3, :3] = c * np.identity(3) + (1.0 - c) * np.outer(a, a) + s * cross
    return (np.asarray(matrix, dtype=np.float64) @ r).astype(np.float32)


def scale(matrix: Any, vector: Sequence[float]) -> np.ndarray:
    """Return ``matrix`` multiplied by a scale by ``vector``."""
    s = np.identity(4, dtype=np.float32)
    s[0, 0], s[1, 1], s[2, 2] = np.asarray(vector, dtype=np.float32)
    return np.asarray(matrix, dtype=np.float32) @ s


def _model_matrix(
    pos: PositionComponent, rot: RotationComponent, scl: ScaleComponent
) -> np.ndarray:
    model = np.identity(4, dtype=np.float32)
    model = translate(model, (pos.position[0], pos.position[1], 0.0))
    model = rotate(model, float(rot.rotation[0]), (1.0, 0.0, 0.0))
    model = rotate(model, float(rot.rotation[1]), (0.0, 1.0, 0.0))
    model = rotate(model, 0.0, (0.0, 0.0, 1.0))
    return scale(model, (scl.scale[0], scl.scale[1], 0.0))


def model_matrix_from_transform(trans: Transform) -> np.ndarray:
    """Build the model matrix of a transform."""
    return _model_matrix(trans.pos, trans.rot, trans.scale)


def model_matrix_from_entity(entity: Any) -> np.ndarray:
    """Build the model matrix from an entity's position, rotation and scale."""
    parts = []
    for component_type in (PositionComponent, RotationComponent, ScaleComponent):
        component = entity.get(component_type)
        if component is None:
            raise KeyError(f"entity lacks {component_type.__name__}")
        parts.append(component)
    return _model_matrix(*parts)