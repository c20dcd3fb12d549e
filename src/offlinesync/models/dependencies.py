"""Declarative dependency graph between entity kinds."""

from __future__ import annotations

from collections.abc import Mapping

from .kinds import EntityKind

DependencyGraph = Mapping[EntityKind, tuple[EntityKind, ...]]

# kind -> kinds its payload may reference. Declaration order is the
# tie-break for kinds that become ready at the same time.
DEPENDENCIES: DependencyGraph = {
    EntityKind.USER: (),
    EntityKind.ENROLLMENT: (EntityKind.USER,),
    EntityKind.ATTENDANCE: (EntityKind.ENROLLMENT,),
    EntityKind.NOTIFICATION_EMAIL: (EntityKind.USER, EntityKind.ENROLLMENT),
}


def allowed_reference_kinds(
    kind: EntityKind,
    graph: DependencyGraph = DEPENDENCIES,
) -> tuple[EntityKind, ...]:
    """Return the kinds that a payload of `kind` may reference."""
    return tuple(graph.get(kind, ()))
