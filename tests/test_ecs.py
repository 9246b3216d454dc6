import pytest

from reflect_engine.components import (
    GravityComponent,
    PositionComponent,
    SceneComponent,
    VelocityComponent,
)
from reflect_engine.ecs import Registry, get_world


def test_set_is_chainable_and_get_returns_same_object():
    reg = Registry()
    pos = PositionComponent((1.0, 2.0))
    ent = reg.entity()
    assert ent.set(pos) is ent
    assert ent.get(PositionComponent) is pos


def test_get_missing_returns_none():
    ent = Registry().entity()
    assert ent.get(VelocityComponent) is None
    assert ent.has(VelocityComponent) is False


def test_set_replaces_same_type():
    ent = Registry().entity(GravityComponent())
    ent.set(GravityComponent(gravity=10.0))
    assert ent.get(GravityComponent).gravity == 10.0


def test_entity_args_default_construct_types():
    ent = Registry().entity(SceneComponent)
    assert ent.get(SceneComponent).name == ""


def test_set_registers_type():
    reg = Registry()
    reg.entity(VelocityComponent())
    assert reg.component_types == (VelocityComponent,)


def test_register_rejects_non_type():
    with pytest.raises(TypeError):
        Registry().register(GravityComponent())


def test_child_of_sets_parent():
    reg = Registry()
    root = reg.entity(SceneComponent)
    child = reg.entity().child_of(root)
    assert child.parent is root
    with pytest.raises(ValueError):
        root.child_of(root)


def test_query_filters_on_types_in_creation_order():
    reg = Registry()
    a = reg.entity(PositionComponent(), VelocityComponent())
    reg.entity(PositionComponent())
    c = reg.entity(VelocityComponent(), PositionComponent())
    rows = list(reg.query(PositionComponent, VelocityComponent))
    assert [row[0] for row in rows] == [a, c]
    assert rows[1][1] is c.get(PositionComponent)


def test_query_filters_on_parent():
    reg = Registry()
    root1 = reg.entity(SceneComponent)
    root2 = reg.entity(SceneComponent)
    inside = reg.entity(PositionComponent()).child_of(root1)
    reg.entity(PositionComponent()).child_of(root2)
    rows = list(reg.query(PositionComponent, parent=root1))
    assert [row[0] for row in rows] == [inside]


def test_query_without_types_rejected():
    with pytest.raises(TypeError):
        list(Registry().query())


def test_entity_ids_unique_and_counted():
    reg = Registry()
    ents = [reg.entity() for _ in range(5)]
    assert len({e.id for e in ents}) == 5
    assert len(reg) == 5


def test_get_world_is_shared_between_calls():
    world = get_world()
    before = len(world)
    ent = world.entity(VelocityComponent())
    assert len(get_world()) == before + 1
    assert get_world().query(VelocityComponent) is not None
    assert ent in [row[0] for row in get_world().query(VelocityComponent)]