"""Scene components, the per-frame update context and the vertex layout."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

FRAMES_IN_FLIGHT = 3
DEBUG_DRAW_VERTEX_BUFFER_MAX_SIZE = 5000
MAX_STATIC_OBJ_ON_SCENE = 300
MAX_DYNAMIC_OBJ_ON_SCENE = 300
MAX_UI_CHARS = 100
UI_TEXTURE_BINDINGS = 10

# position (3 floats), color (3 floats), object index, padding
_VERTEX_FORMAT = struct.Struct("<3f3fII")
VERTEX_STRIDE = _VERTEX_FORMAT.size
VERTEX_ATTRIBUTE_OFFSETS = (0, 12, 24)

CollisionHandler = Callable[[Any, Any, np.ndarray], None]


def _vec(values: Any, size: int) -> np.ndarray:
    arr = np.array(values, dtype=np.float32)
    if arr.shape != (size,):
        raise ValueError(f"expected a vector of {size} components, got shape {arr.shape}")
    return arr


def _zeros(size: int) -> Callable[[], np.ndarray]:
    return lambda: np.zeros(size, dtype=np.float32)


def _ones(size: int) -> Callable[[], np.ndarray]:
    return lambda: np.ones(size, dtype=np.float32)


@dataclass
class FrameContext:
    """Data handed to every update of one frame."""

    dt: float
    frame: int = 0
    scene: Any = None
    render_debug_draw: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.frame < FRAMES_IN_FLIGHT:
            raise ValueError(f"frame must be in [0, {FRAMES_IN_FLIGHT - 1}], got {self.frame}")


@dataclass(eq=False)
class Vertex:
    """One vertex of the scene geometry."""

    pos: np.ndarray
    color: np.ndarray
    object_index: int = 0
    padding: int = 0

    def __post_init__(self) -> None:
        self.pos = _vec(self.pos, 3)
        self.color = _vec(self.color, 3)


@dataclass
class ObjectLocation:
    """Where an object's matrix and vertices live in the render buffers."""

    index_in_ssbo: int = 0
    vertices_count: int = 0
    vertex_buffer_offset: int = 0


@dataclass
class SceneComponent:
    name: str = ""


@dataclass
class CameraComponent:
    fov: float
    aspect_ratio: float
    near_plane: float
    far_plane: float


@dataclass(eq=False)
class PositionComponent:
    position: np.ndarray = field(default_factory=_zeros(2))

    def __post_init__(self) -> None:
        self.position = _vec(self.position, 2)


@dataclass(eq=False)
class Position3DComponent:
    position: np.ndarray = field(default_factory=_zeros(3))

    def __post_init__(self) -> None:
        self.position = _vec(self.position, 3)


@dataclass(eq=False)
class RotationComponent:
    rotation: np.ndarray = field(default_factory=_zeros(2))

    def __post_init__(self) -> None:
        self.rotation = _vec(self.rotation, 2)


@dataclass(eq=False)
class ScaleComponent:
    scale: np.ndarray = field(default_factory=_ones(2))

    def __post_init__(self) -> None:
        self.scale = _vec(self.scale, 2)


@dataclass(eq=False)
class MatrixComponent:
    model: np.ndarray = field(default_factory=lambda: np.identity(4, dtype=np.float32))

    def __post_init__(self) -> None:
        model = np.array(self.model, dtype=np.float32)
        if model.shape != (4, 4):
            raise ValueError(f"expected a 4x4 matrix, got shape {model.shape}")
        self.model = model


@dataclass
class StaticSSBOIndexComponent:
    index_in_ssbo: int = 0


@dataclass
class DynamicSSBOIndexComponent:
    index_in_ssbo: int = 0


@dataclass
class VertexRenderInfoComponent:
    vertices_count: int = 0
    vertex_buffer_offset: int = 0


@dataclass(eq=False)
class StaticBoxColliderComponent:
    """Axis-aligned box of an object that never moves."""

    min: np.ndarray
    max: np.ndarray

    def __post_init__(self) -> None:
        self.min = _vec(self.min, 2)
        self.max = _vec(self.max, 2)


@dataclass(eq=False)
class DynamicBoxColliderComponent:
    """Axis-aligned box of a moving object, relative to its position."""

    min: np.ndarray
    max: np.ndarray

    def __post_init__(self) -> None:
        self.min = _vec(self.min, 2)
        self.max = _vec(self.max, 2)


@dataclass(eq=False)
class VelocityComponent:
    velocity: np.ndarray = field(default_factory=_zeros(2))

    def __post_init__(self) -> None:
        self.velocity = _vec(self.velocity, 2)


@dataclass
class GravityComponent:
    gravity_enabled: bool = True
    gravity: float = 300.0


@dataclass
class PlayerStateComponent:
    grounded: bool = False


@dataclass
class CollisionCallbackComponent:
    handler: CollisionHandler


@dataclass(eq=False)
class Transform:
    pos: PositionComponent = field(default_factory=PositionComponent)
    rot: RotationComponent = field(default_factory=RotationComponent)
    scale: ScaleComponent = field(default_factory=ScaleComponent)


_COMPONENT_TYPES = (
    SceneComponent,
    CameraComponent,
    PositionComponent,
    Position3DComponent,
    RotationComponent,
    ScaleComponent,
    MatrixComponent,
    StaticSSBOIndexComponent,
    DynamicSSBOIndexComponent,
    VertexRenderInfoComponent,
    StaticBoxColliderComponent,
    DynamicBoxColliderComponent,
    GravityComponent,
    VelocityComponent,
    PlayerStateComponent,
    CollisionCallbackComponent,
)


def check_for_collision_aabb_aabb(
    a: DynamicBoxColliderComponent, b: StaticBoxColliderComponent
) -> bool:
    """Return whether two boxes overlap; touching edges count as overlap."""
    return bool(
        a.min[0] <= b.max[0]
        and a.max[0] >= b.min[0]
        and a.min[1] <= b.max[1]
        and a.max[1] >= b.min[1]
    )


def register_components(registry: Any) -> None:
    """Register every scene component type with the given registry."""
    for component_type in _COMPONENT_TYPES:
        registry.register(component_type)