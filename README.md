# reflect_engine

The simulation core of a small 2D side-scrolling game engine. It is built on
numpy and has these modules:

- `reflect_engine.ecs`: a minimal entity–component registry. `Registry` creates
  `Entity` objects. Entities hold one component per type and can be linked to a
  parent with `Entity.child_of`. `Registry.query(*types, parent=...)` yields
  `(entity, *components)` tuples. `get_world()` returns a registry shared by the
  whole process.
- `reflect_engine.components`: component dataclasses such as
  `PositionComponent`, `VelocityComponent`, `GravityComponent`,
  `StaticBoxColliderComponent`, `DynamicBoxColliderComponent` and
  `CameraComponent`, plus `FrameContext`, `Vertex`, `ObjectLocation`,
  `Transform`, `check_for_collision_aabb_aabb` and `register_components`.
  `FrameContext.frame` must lie in `[0, FRAMES_IN_FLIGHT - 1]`; there are 3
  frames in flight.
- `reflect_engine.transform`: the 4x4 matrix helpers `translate`, `rotate` and
  `scale`, and `model_matrix_from_transform` / `model_matrix_from_entity`.
- `reflect_engine.camera`: the projection helpers `perspective`, `look_at` and
  `yaw_pitch_roll`, and `Camera`. A `Camera` follows the player unless
  camera-axis input is given. It takes a new aspect ratio after a resize and
  returns `view_matrix()` and `vp_matrix()`.
- `reflect_engine.physics`: `PhysicsWorld`, which steps at a fixed 1/60 s with
  10 sub-steps, gravity and 0.97 damping. It tests moving boxes against a
  Morton-ordered BVH of the static colliders, which `build_bvh()` builds.
  `debug_boxes()` yields `(min, max, depth, colour)` for every BVH node. The
  module also has `expand_bits`, `morton_code`, `aabbs_overlap`,
  `resolve_aabb_collision` and `on_collision_player_static_obj`, the player's
  collision response.
- `reflect_engine.render_data`: `SceneRenderData` and `VertexBuffer`. These
  hold packed vertices (32 bytes each) and model matrices. Static objects get
  300 matrices. Dynamic objects get 20 matrices per frame in flight.
- `reflect_engine.scene`: `Scene`, `World`, `InputState` and `update_gameplay`.
- `reflect_engine.queues`: `QueueFlags`, `QueueFamily`,
  `queue_flags_to_string` and `select_queue_families`. The last one returns
  `QUEUE_FAMILY_IGNORED` for any family kind that no family provides.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from reflect_engine.components import FrameContext
from reflect_engine.ecs import Registry
from reflect_engine.scene import InputState, World

world = World(registry=Registry())   # omit registry to use get_world()
scene = world.load_scene("level")

ctx = FrameContext(dt=1 / 60, frame=0)
label = world.on_update(ctx, InputState(x_axis=1.0))   # "FPS: 60"
print(scene.player.get(PositionComponent).position)    # needs PositionComponent imported
```

### What `Scene.load_scene` builds

`Scene.load_scene` creates:

- a scene root entity;
- a camera at `(0, 0, 20)` with a 45° field of view;
- three static rectangles;
- a player box, which has gravity and uses `on_collision_player_static_obj`.

After that it builds the BVH.

### What `Scene.on_update` does each frame

`Scene.on_update` runs these steps in order:

1. `update_gameplay` walks the player sideways. The player jumps only when
   grounded.
2. The physics is stepped.
3. The player's model matrix is written into the render data of `ctx.frame`.
4. The camera is moved.

### Other details

- `World.on_update` returns the frame's FPS label and rejects `dt == 0`.
- `Scene.create_static_rect` and `Scene.create_dynamic_rect` take a box collider
  and a colour, which defaults to white. Static objects can be added only while
  a static transfer is open (`SceneRenderData.start_transfer_static()`).
  Otherwise `RuntimeError` is raised.

## Physics on its own

```python
from reflect_engine.components import DynamicBoxColliderComponent, StaticBoxColliderComponent
from reflect_engine.physics import morton_code, resolve_aabb_collision

shift = resolve_aabb_collision(
    DynamicBoxColliderComponent((-0.5, -0.5), (0.5, 0.5)),
    StaticBoxColliderComponent((-7.0, 0.0), (7.0, 1.0)),
)   # (0.0, -0.5): the smallest single-axis push out of the platform
code = morton_code(0.5, 0.5)
```

## What the package does not do

- It does not draw anything. There is no window, GPU device, swap chain,
  shader, UI image or debug-line output. `SceneRenderData` only fills CPU-side
  buffers, and `PhysicsWorld.debug_boxes` only yields boxes and colours.
- It does not read a keyboard or gamepad. Input is passed in as an
  `InputState`.
- It does not read mesh files. Pass `mesh_loader`, a callable that takes a path
  and returns `Vertex` objects, to `Scene` or `World`. The two
  `building_blocks/700x70.txt` platform meshes are added only when one is given.
  The path given to `load_scene` only names the scene.
- There is no command-line program.