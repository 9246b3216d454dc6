"""The playable scene, its gameplay update and the world that owns it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import numpy as np

from .camera import Camera
from .components import (
    CameraComponent,
    CollisionCallbackComponent,
    DynamicBoxColliderComponent,
    DynamicSSBOIndexComponent,
    FrameContext,
    GravityComponent,
    PlayerStateComponent,
    Position3DComponent,
    PositionComponent,
    RotationComponent,
    ScaleComponent,
    SceneComponent,
    StaticBoxColliderComponent,
    StaticSSBOIndexComponent,
    Transform,
    VelocityComponent,
    Vertex,
    VertexRenderInfoComponent,
    register_components,
)
from .ecs import Entity, Registry, get_world
from .physics import PhysicsWorld, on_collision_player_static_obj
from .render_data import SceneRenderData
from .transform import model_matrix_from_entity, model_matrix_from_transform

WHITE = (1.0, 1.0, 1.0)
PLAYER_SPEED = 3.0
JUMP_IMPULSE = 175.0
MESH_SCALE = 1.0 / 70.0

MeshLoader = Callable[[str], Sequence[Vertex]]


@dataclass
class InputState:
    """Axis values read from the player's input this frame."""

    x_axis: float = 0.0
    y_axis: float = 0.0
    camera_x_axis: float = 0.0
    camera_y_axis: float = 0.0


def _get_mut(entity: Any, component_type: type) -> Any:
    component = entity.get(component_type)
    if component is None:
        component = component_type()
        entity.set(component)
    return component


def update_gameplay(dt: float, player: Any, input_state: InputState) -> None:
    """Walk the player sideways and jump when grounded."""
    state = _get_mut(player, PlayerStateComponent)
    pos = _get_mut(player, PositionComponent)
    if input_state.x_axis:
        pos.position[0] += PLAYER_SPEED * input_state.x_axis * dt
    if input_state.y_axis and state.grounded:
        state.grounded = False
        _get_mut(player, VelocityComponent).velocity[1] += input_state.y_axis * JUMP_IMPULSE


def _rect_vertices(bounds: Any, color: Sequence[float]) -> list[Vertex]:
    x0, y0 = (float(c) for c in bounds.min)
    x1, y1 = (float(c) for c in bounds.max)
    corners = ((x0, y0), (x0, y1), (x1, y1), (x1, y1), (x0, y0), (x1, y0))
    return [Vertex((x, y, 0.0), color) for x, y in corners]


class Scene:
    """Entities, render data, physics and camera of one level."""

    def __init__(
        self,
        world: Optional[World] = None,
        registry: Optional[Registry] = None,
        aspect_ratio: float = 16.0 / 9.0,
        mesh_loader: Optional[MeshLoader] = None,
    ) -> None:
        self.world = world
        self.registry = registry if registry is not None else get_world()
        self.aspect_ratio = aspect_ratio
        self.mesh_loader = mesh_loader
        self.render_data = SceneRenderData()
        self.scene_entity: Optional[Entity] = None
        self.camera: Optional[Camera] = None
        self.physics: Optional[PhysicsWorld] = None
        self.player: Optional[Entity] = None

    def _root(self) -> Entity:
        if self.scene_entity is None:
            raise RuntimeError("load_scene() must be called first")
        return self.scene_entity

    def load_scene(self, path: str) -> None:
        """Build the level: platforms, optional meshes and the player."""
        register_components(self.registry)
        self.scene_entity = self.registry.entity(SceneComponent(path))
        self.physics = PhysicsWorld(self.registry, self.scene_entity)

        camera_entity = self.registry.entity(
            Position3DComponent((0.0, 0.0, 20.0)),
            RotationComponent((0.0, 0.0)),
            CameraComponent(45.0, self.aspect_ratio, 0.1, 100.0),
        ).child_of(self.scene_entity)
        self.camera = Camera(camera_entity)

        self.render_data.start_transfer_static()
        self.create_static_rect(
            StaticBoxColliderComponent((8.0, -2.0), (9.0, -1.0)), (0.2, 0.7, 0.9)
        )
        self.create_static_rect(
            StaticBoxColliderComponent((-5.0, -3.0), (-2.0, -2.5)), (0.7, 0.2, 0.9)
        )
        self.create_static_rect(StaticBoxColliderComponent((-7.0, 0.0), (7.0, 1.0)))
        if self.mesh_loader is not None:
            self._create_static_mesh("building_blocks/700x70.txt", (10.0, 1.0), (8.0, 2.0))
            self._create_static_mesh("building_blocks/700x70.txt", (10.0, 1.0), (-8.0, 5.0))

        player = self.create_dynamic_rect(
            DynamicBoxColliderComponent((-0.5, -0.5), (0.5, 0.5)), (0.2, 0.7, 0.4)
        )
        player.set(PositionComponent((0.0, 6.0))).set(GravityComponent()).set(
            VelocityComponent((0.0, 0.0))
        ).set(CollisionCallbackComponent(on_collision_player_static_obj)).set(
            PlayerStateComponent()
        )
        self.player = player
        self.render_data.end_transfer_static()
        self.physics.build_bvh()

    def on_update(self, ctx: FrameContext, input_state: Optional[InputState] = None) -> None:
        """Run gameplay, physics, matrix upload and camera for one frame."""
        if self.player is None or self.physics is None or self.camera is None:
            raise RuntimeError("load_scene() must be called first")
        input_state = input_state if input_state is not None else InputState()
        update_gameplay(ctx.dt, self.player, input_state)
        self.physics.update(ctx.dt)
        self.update_transform_data(ctx, self.player)
        self.camera.on_update(
            ctx.dt, self.player, input_state.camera_x_axis, input_state.camera_y_axis
        )

    def _create_static_mesh(
        self, path: str, size: Sequence[float], pos: Sequence[float]
    ) -> Entity:
        if self.mesh_loader is None:
            raise RuntimeError("no mesh loader configured")
        vertices = list(self.mesh_loader(path))
        pos_v = np.asarray(pos, dtype=np.float32)
        collider = StaticBoxColliderComponent(pos_v, pos_v + np.asarray(size, dtype=np.float32))
        trans = Transform(
            pos=PositionComponent(pos_v), scale=ScaleComponent((MESH_SCALE, MESH_SCALE))
        )
        loc = self.render_data.add_static_object(vertices, model_matrix_from_transform(trans))
        return (
            self.registry.entity(
                StaticSSBOIndexComponent(loc.index_in_ssbo),
                VertexRenderInfoComponent(loc.vertices_count, loc.vertex_buffer_offset),
                PositionComponent(),
                RotationComponent(),
                ScaleComponent(trans.scale.scale.copy()),
                collider,
            ).child_of(self._root())
        )

    def create_static_rect(self, bounds: StaticBoxColliderComponent, color: Sequence[float] = WHITE) -> Entity:
        vertices = _rect_vertices(bounds, color)
        model = model_matrix_from_transform(Transform())
        return self.create_static_rendering_entity(vertices, model).set(
            StaticBoxColliderComponent(bounds.min, bounds.max)
        )

    def create_dynamic_rect(self, bounds: DynamicBoxColliderComponent, color: Sequence[float] = WHITE) -> Entity:
        vertices = _rect_vertices(bounds, color)
        model = model_matrix_from_transform(Transform())
        return self.create_dynamic_rendering_entity(vertices, model).set(
            DynamicBoxColliderComponent(bounds.min, bounds.max)
        )

    def create_static_rendering_entity(self, vertices: Sequence[Vertex], model: Any) -> Entity:
        root = self._root()
        loc = self.render_data.add_static_object(vertices, model)
        return self.registry.entity(
            StaticSSBOIndexComponent(loc.index_in_ssbo),
            VertexRenderInfoComponent(loc.vertices_count, loc.vertex_buffer_offset),
            PositionComponent,
            RotationComponent,
            ScaleComponent,
        ).child_of(root)

    def create_dynamic_rendering_entity(self, vertices: Sequence[Vertex], model: Any) -> Entity:
        root = self._root()
        loc = self.render_data.add_dynamic_object(vertices, model)
        return self.registry.entity(
            DynamicSSBOIndexComponent(loc.index_in_ssbo),
            VertexRenderInfoComponent(loc.vertices_count, loc.vertex_buffer_offset),
            PositionComponent,
            RotationComponent,
            ScaleComponent,
        ).child_of(root)

    def update_transform_data(self, ctx: FrameContext, entity: Entity) -> None:
        """Upload the entity's model matrix for the frame in ``ctx``."""
        index = entity.get(DynamicSSBOIndexComponent)
        if index is None:
            raise KeyError("entity lacks DynamicSSBOIndexComponent")
        self.render_data.update_mat(ctx, index.index_in_ssbo, model_matrix_from_entity(entity))


class World:
    """Holds the currently loaded scene."""

    def __init__(
        self,
        registry: Optional[Registry] = None,
        aspect_ratio: float = 16.0 / 9.0,
        mesh_loader: Optional[MeshLoader] = None,
    ) -> None:
        self.registry = registry
        self.aspect_ratio = aspect_ratio
        self.mesh_loader = mesh_loader
        self._scene: Optional[Scene] = None

    @property
    def current_scene(self) -> Scene:
        if self._scene is None:
            raise RuntimeError("no scene is loaded")
        return self._scene

    def load_scene(self, path: str) -> Scene:
        scene = Scene(self, self.registry, self.aspect_ratio, self.mesh_loader)
        scene.load_scene(path)
        self._scene = scene
        return scene

    def on_update(self, ctx: FrameContext, input_state: Optional[InputState] = None) -> str:
        """Update the current scene; returns the FPS label for this frame."""
        scene = self.current_scene
        if ctx.dt == 0:
            raise ValueError("dt must not be zero")
        label = f"FPS: {int(1 / ctx.dt)}"
        scene.on_update(ctx, input_state)
        return label

    def clean_world(self) -> None:
        self.current_scene
        self._scene = None