"""A small entity-component registry with parent relations and queries."""

from __future__ import annotations

from itertools import count
from typing import Any, Iterator


class Entity:
    """An entity holding at most one component of each type."""

    __slots__ = ("id", "parent", "_registry", "_components")

    def __init__(self, entity_id: int, registry: Registry) -> None:
        self.id = entity_id
        self.parent: Entity | None = None
        self._registry = registry
        self._components: dict[type, Any] = {}

    def set(self, component: Any) -> Entity:
        """Attach a component, replacing any of the same type; returns self."""
        component_type = type(component)
        self._registry.register(component_type)
        self._components[component_type] = component
        return self

    def get(self, component_type: type) -> Any:
        """Return the component of the given type, or None if absent."""
        return self._components.get(component_type)

    def has(self, component_type: type) -> bool:
        return component_type in self._components

    def child_of(self, parent: Entity) -> Entity:
        """Make this entity a child of ``parent``; returns self."""
        if parent is self:
            raise ValueError("an entity cannot be its own parent")
        self.parent = parent
        return self

    def __repr__(self) -> str:
        names = ", ".join(t.__name__ for t in self._components)
        return f"Entity({self.id}, [{names}])"


class Registry:
    """Owns entities and the set of known component types."""

    def __init__(self) -> None:
        self._types: dict[type, None] = {}
        self._entities: list[Entity] = []
        self._ids = count(1)

    @property
    def component_types(self) -> tuple[type, ...]:
        """Registered component types in registration order."""
        return tuple(self._types)

    def register(self, component_type: type) -> type:
        if not isinstance(component_type, type):
            raise TypeError(f"component type expected, got {component_type!r}")
        self._types.setdefault(component_type, None)
        return component_type

    def entity(self, *args: Any) -> Entity:
        """Create an entity; each argument is a component or a type to default-construct."""
        ent = Entity(next(self._ids), self)
        for arg in args:
            ent.set(arg() if isinstance(arg, type) else arg)
        self._entities.append(ent)
        return ent

    def query(self, *args: type, parent: Entity | None = None) -> Iterator[tuple]:
        """Yield ``(entity, *components)`` for entities holding all given types."""
        if not args:
            raise TypeError("query needs at least one component type")
        for ent in list(self._entities):
            if parent is not None and ent.parent is not parent:
                continue
            if all(ent.has(t) for t in args):
                yield (ent, *(ent.get(t) for t in args))

    def __len__(self) -> int:
        return len(self._entities)


_WORLD = Registry()


def get_world() -> Registry:
    """Return the process-wide registry."""
    return _WORLD