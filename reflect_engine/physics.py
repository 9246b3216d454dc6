"""Fixed-step gravity and collision against a BVH of static boxes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional

import numpy as np

from .components import (
    CollisionCallbackComponent,
    DynamicBoxColliderComponent,
    GravityComponent,
    PlayerStateComponent,
    PositionComponent,
    StaticBoxColliderComponent,
    VelocityComponent,
)

FIXED_STEP = 1.0 / 60.0
SUBSTEP_COUNT = 10
DAMPING = 0.97

_DEPTH_COLORS = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))


@dataclass(eq=False)
class BVHNode:
    """A node of the bounding-volume hierarchy; leaves carry an entity."""

    min: np.ndarray
    max: np.ndarray
    left: int = -1
    right: int = -1
    entity: Any = None

    @property
    def is_leaf(self) -> bool:
        return self.right < 0


def _get_mut(entity: Any, component_type: type) -> Any:
    component = entity.get(component_type)
    if component is None:
        component = component_type()
        entity.set(component)
    return component


def expand_bits(v: int) -> int:
    """Spread the 16 low bits of ``v`` so that a zero bit follows each one."""
    x = v & 0xFFFF
    x = (x | (x << 8)) & 0x00FF00FF
    x = (x | (x << 4)) & 0x0F0F0F0F
    x = (x | (x << 2)) & 0x33333333
    x = (x | (x << 1)) & 0x55555555
    return x


def morton_code(x: float, y: float) -> int:
    """Interleave two coordinates clamped to [0, 1] into a 32-bit Morton code."""
    x = min(max(float(x), 0.0), 1.0)
    y = min(max(float(y), 0.0), 1.0)
    xi = int(np.float32(x) * np.float32(32767.0))
    yi = int(np.float32(y) * np.float32(32767.0))
    return ((expand_bits(xi) << 1) | expand_bits(yi)) & 0xFFFFFFFF


def aabbs_overlap(a_min: Any, a_max: Any, b_min: Any, b_max: Any) -> bool:
    """Return whether two boxes overlap; touching edges count as overlap."""
    return bool(
        a_min[0] <= b_max[0]
        and a_max[0] >= b_min[0]
        and a_min[1] <= b_max[1]
        and a_max[1] >= b_min[1]
    )


def resolve_aabb_collision(dynamic: Any, static: Any) -> np.ndarray:
    """Smallest single-axis shift that moves ``dynamic`` out of ``static``."""
    dx1 = float(static.max[0] - dynamic.min[0])
    dx2 = float(static.min[0] - dynamic.max[0])
    dy1 = float(static.max[1] - dynamic.min[1])
    dy2 = float(static.min[1] - dynamic.max[1])

    overlap_x = dx1 if abs(dx1) < abs(dx2) else dx2
    overlap_y = dy1 if abs(dy1) < abs(dy2) else dy2

    if abs(overlap_x) < abs(overlap_y):
        return np.array([overlap_x, 0.0], dtype=np.float32)
    return np.array([0.0, overlap_y], dtype=np.float32)


def on_collision_player_static_obj(player: Any, collided_with: Any, resolution: Any) -> None:
    """Push the player out, stop motion along the pushed axes, land on upward pushes."""
    resolution = np.asarray(resolution, dtype=np.float32)
    pos = _get_mut(player, PositionComponent)
    pos.position += resolution

    vel = _get_mut(player, VelocityComponent)
    if resolution[0] != 0.0:
        vel.velocity[0] = 0.0
    if resolution[1] != 0.0:
        vel.velocity[1] = 0.0
    if resolution[1] > 0:
        _get_mut(player, PlayerStateComponent).grounded = True


class PhysicsWorld:
    """Physics for the entities that are children of one scene entity."""

    def __init__(self, registry: Any, scene_entity: Any) -> None:
        self.registry = registry
        self.scene_entity = scene_entity
        self.nodes: list[BVHNode] = []
        self._accumulator = 0.0

    @property
    def root(self) -> BVHNode:
        if not self.nodes:
            raise RuntimeError("build_bvh() must be called first")
        return self.nodes[-1]

    def build_bvh(self) -> None:
        """Build the hierarchy over all static box colliders of the scene."""
        boxes = [
            (ent, box)
            for ent, box in self.registry.query(
                StaticBoxColliderComponent, parent=self.scene_entity
            )
        ]
        if not boxes:
            raise ValueError("the scene has no static box colliders")

        global_min = np.min([box.min for _, box in boxes], axis=0)
        global_max = np.max([box.max for _, box in boxes], axis=0)
        extent = global_max - global_min
        safe_extent = np.where(extent > 0, extent, 1.0)

        entries = []
        for ent, box in boxes:
            center = (box.min + box.max) * 0.5
            normalized = np.where(extent > 0, (center - global_min) / safe_extent, 0.0)
            code = morton_code(normalized[0], normalized[1])
            entries.append((code, box.min.copy(), box.max.copy(), ent))
        entries.sort(key=lambda entry: entry[0])

        self.nodes = []
        self._build_subtree(entries, 0, len(entries) - 1)

    def _build_subtree(self, entries: list, start: int, end: int) -> int:
        if start == end:
            _, box_min, box_max, ent = entries[start]
            self.nodes.append(BVHNode(box_min, box_max, -1, -1, ent))
            return len(self.nodes) - 1
        middle = (start + end) // 2
        left = self._build_subtree(entries, start, middle)
        right = self._build_subtree(entries, middle + 1, end)
        node_min = np.minimum(self.nodes[left].min, self.nodes[right].min)
        node_max = np.maximum(self.nodes[left].max, self.nodes[right].max)
        self.nodes.append(BVHNode(node_min, node_max, left, right, None))
        return len(self.nodes) - 1

    def _check_collision(
        self,
        node: BVHNode,
        box: DynamicBoxColliderComponent,
        callback: CollisionCallbackComponent,
        entity: Any,
    ) -> None:
        if not aabbs_overlap(node.min, node.max, box.min, box.max):
            return
        if node.is_leaf:
            resolution = resolve_aabb_collision(
                box, StaticBoxColliderComponent(node.min, node.max)
            )
            callback.handler(entity, node.entity, resolution)
        else:
            self._check_collision(self.nodes[node.right], box, callback, entity)
            self._check_collision(self.nodes[node.left], box, callback, entity)

    def update(self, dt: float) -> None:
        """Advance the simulation by as many fixed steps as ``dt`` allows."""
        self._accumulator += dt
        substep_time = FIXED_STEP / SUBSTEP_COUNT
        while self._accumulator >= FIXED_STEP:
            self._accumulator -= FIXED_STEP
            bodies = self.registry.query(
                GravityComponent,
                VelocityComponent,
                PositionComponent,
                DynamicBoxColliderComponent,
                CollisionCallbackComponent,
                parent=self.scene_entity,
            )
            for ent, gravity, velocity, position, dyn_box, callback in bodies:
                if gravity.gravity_enabled:
                    velocity.velocity += np.array([0.0, -1.0]) * gravity.gravity * FIXED_STEP
                    velocity.velocity *= DAMPING
                root = self.root
                for _ in range(SUBSTEP_COUNT):
                    if gravity.gravity_enabled:
                        position.position += velocity.velocity / SUBSTEP_COUNT * substep_time
                    moved = DynamicBoxColliderComponent(
                        dyn_box.min + position.position, dyn_box.max + position.position
                    )
                    self._check_collision(root, moved, callback, ent)

    def debug_boxes(self) -> Iterator[tuple[np.ndarray, np.ndarray, int, tuple[float, float, float]]]:
        """Yield ``(min, max, depth, color)`` for every node, parents first."""
        yield from self._walk(self.root, 0)

    def _walk(
        self, node: BVHNode, depth: int
    ) -> Iterator[tuple[np.ndarray, np.ndarray, int, tuple[float, float, float]]]:
        yield node.min, node.max, depth, _DEPTH_COLORS[depth % 3]
        if not node.is_leaf:
            yield from self._walk(self.nodes[node.left], depth + 1)
            yield from self._walk(self.nodes[node.right], depth + 1)


def find_leaf(world: PhysicsWorld, entity: Any) -> Optional[BVHNode]:
    """Return the leaf node that holds ``entity``, if any."""
    return next((n for n in world.nodes if n.is_leaf and n.entity is entity), None)