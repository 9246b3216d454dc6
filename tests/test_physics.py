import numpy as np
import pytest

from reflect_engine.components import (
    CollisionCallbackComponent,
    DynamicBoxColliderComponent,
    GravityComponent,
    PlayerStateComponent,
    PositionComponent,
    SceneComponent,
    StaticBoxColliderComponent,
    VelocityComponent,
)
from reflect_engine.ecs import Registry
from reflect_engine.physics import (
    BVHNode,
    PhysicsWorld,
    aabbs_overlap,
    expand_bits,
    find_leaf,
    morton_code,
    on_collision_player_static_obj,
    resolve_aabb_collision,
)


def _scene():
    registry = Registry()
    scene = registry.entity(SceneComponent("test"))
    return registry, scene


def _static(registry, scene, lo, hi):
    return registry.entity(StaticBoxColliderComponent(lo, hi)).child_of(scene)


def _player(registry, scene, start=(0.0, 6.0)):
    return (
        registry.entity(
            DynamicBoxColliderComponent((-0.5, -0.5), (0.5, 0.5)),
            PositionComponent(start),
            GravityComponent(),
            VelocityComponent(),
            CollisionCallbackComponent(on_collision_player_static_obj),
            PlayerStateComponent(),
        ).child_of(scene)
    )


def test_expand_bits_extremes():
    assert expand_bits(0) == 0
    assert expand_bits(0xFFFF) == 0x55555555


@pytest.mark.parametrize("k", range(16))
def test_expand_bits_single_bit_moves_to_even_position(k):
    assert expand_bits(1 << k) == 1 << (2 * k)


@pytest.mark.parametrize("v", [1, 77, 1234, 32767, 65535])
def test_expand_bits_leaves_odd_bits_clear(v):
    assert expand_bits(v) & 0xAAAAAAAA == 0


def test_morton_code_corners_and_clamping():
    top = expand_bits(32767)
    assert morton_code(0.0, 0.0) == 0
    assert morton_code(1.0, 0.0) == top << 1
    assert morton_code(0.0, 1.0) == top
    assert morton_code(-5.0, 2.0) == morton_code(0.0, 1.0)


def test_aabbs_overlap_touching_and_separate():
    assert aabbs_overlap((0, 0), (1, 1), (1, 1), (2, 2))
    assert not aabbs_overlap((0, 0), (1, 1), (1.5, 0), (2, 1))


def test_resolution_leaves_boxes_touching():
    dynamic = DynamicBoxColliderComponent((-0.5, 0.9), (0.5, 1.9))
    static = StaticBoxColliderComponent((-10.0, 0.0), (10.0, 1.0))
    res = resolve_aabb_collision(dynamic, static)
    assert res[0] == 0.0
    assert dynamic.min[1] + res[1] == pytest.approx(static.max[1], abs=1e-6)


def test_resolution_prefers_smaller_horizontal_push():
    dynamic = DynamicBoxColliderComponent((9.8, 0.0), (10.8, 5.0))
    static = StaticBoxColliderComponent((0.0, 0.0), (10.0, 5.0))
    res = resolve_aabb_collision(dynamic, static)
    assert res[1] == 0.0
    assert dynamic.min[0] + res[0] == pytest.approx(static.max[0], abs=1e-5)


def test_collision_callback_upward_lands_player():
    registry, scene = _scene()
    player = _player(registry, scene)
    player.get(VelocityComponent).velocity[:] = (2.0, -7.0)
    on_collision_player_static_obj(player, None, (0.0, 0.5))
    np.testing.assert_allclose(player.get(PositionComponent).position, [0.0, 6.5])
    np.testing.assert_allclose(player.get(VelocityComponent).velocity, [2.0, 0.0])
    assert player.get(PlayerStateComponent).grounded is True


def test_collision_callback_sideways_stops_horizontal_only():
    registry, scene = _scene()
    player = _player(registry, scene)
    player.get(VelocityComponent).velocity[:] = (2.0, -7.0)
    on_collision_player_static_obj(player, None, (0.25, 0.0))
    np.testing.assert_allclose(player.get(VelocityComponent).velocity, [0.0, -7.0])
    assert player.get(PlayerStateComponent).grounded is False


def test_collision_callback_downward_does_not_ground():
    registry, scene = _scene()
    player = _player(registry, scene)
    on_collision_player_static_obj(player, None, (0.0, -0.25))
    assert player.get(PlayerStateComponent).grounded is False


def test_build_bvh_structure():
    registry, scene = _scene()
    statics = [
        _static(registry, scene, (8, -2), (9, -1)),
        _static(registry, scene, (-5, -3), (-2, -2.5)),
        _static(registry, scene, (-7, 0), (7, 1)),
        _static(registry, scene, (-8, 5), (2, 6)),
    ]
    _static(registry, registry.entity(SceneComponent("other")), (100, 100), (101, 101))
    world = PhysicsWorld(registry, scene)
    world.build_bvh()
    assert len(world.nodes) == 2 * len(statics) - 1
    np.testing.assert_allclose(world.root.min, [-8, -3])
    np.testing.assert_allclose(world.root.max, [9, 6])
    leaves = [n.entity for n in world.nodes if n.is_leaf]
    assert sorted(e.id for e in leaves) == sorted(e.id for e in statics)
    for node in world.nodes:
        if not node.is_leaf:
            for child in (world.nodes[node.left], world.nodes[node.right]):
                assert np.all(node.min <= child.min) and np.all(node.max >= child.max)
    assert isinstance(find_leaf(world, statics[0]), BVHNode)


def test_build_bvh_without_static_boxes_fails():
    registry, scene = _scene()
    with pytest.raises(ValueError):
        PhysicsWorld(registry, scene).build_bvh()


def test_update_before_build_fails():
    registry, scene = _scene()
    _static(registry, scene, (-7, 0), (7, 1))
    _player(registry, scene)
    world = PhysicsWorld(registry, scene)
    with pytest.raises(RuntimeError):
        world.update(1.0 / 60.0)


def test_player_falls_and_lands_on_floor():
    registry, scene = _scene()
    _static(registry, scene, (-7, 0), (7, 1))
    _static(registry, scene, (20, 20), (21, 21))
    player = _player(registry, scene)
    world = PhysicsWorld(registry, scene)
    world.build_bvh()
    for _ in range(300):
        world.update(1.0 / 60.0)
    assert player.get(PlayerStateComponent).grounded is True
    bottom = player.get(PositionComponent).position[1] - 0.5
    assert bottom == pytest.approx(1.0, abs=1e-4)


def test_update_accumulates_small_steps():
    registry, scene = _scene()
    _static(registry, scene, (-7, 0), (7, 1))
    player = _player(registry, scene)
    world = PhysicsWorld(registry, scene)
    world.build_bvh()
    start = player.get(PositionComponent).position.copy()
    world.update(1.0 / 120.0)
    np.testing.assert_array_equal(player.get(PositionComponent).position, start)
    world.update(1.0 / 120.0)
    assert player.get(PositionComponent).position[1] < start[1]


def test_debug_boxes_cover_all_nodes_with_depth_colors():
    registry, scene = _scene()
    for i in range(3):
        _static(registry, scene, (i * 3, 0), (i * 3 + 1, 1))
    world = PhysicsWorld(registry, scene)
    world.build_bvh()
    boxes = list(world.debug_boxes())
    assert len(boxes) == len(world.nodes)
    root_min, root_max, depth, color = boxes[0]
    assert depth == 0 and color == (1.0, 0.0, 0.0)
    np.testing.assert_allclose(root_min, world.root.min)
    assert all(d > 0 for _, _, d, _ in boxes[1:])