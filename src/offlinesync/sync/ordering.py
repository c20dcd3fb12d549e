"""Sync order derived from the dependency graph."""

from __future__ import annotations

from collections import deque

from offlinesync.errors import InvalidStateError
from offlinesync.models import EntityKind
from offlinesync.models.dependencies import DEPENDENCIES, DependencyGraph


def build_sync_order(graph: DependencyGraph = DEPENDENCIES) -> list[EntityKind]:
    """
    Topologically order kinds so every kind follows the kinds it depends on.

    Rules:
        - Kahn traversal over the graph.
        - Kinds that become ready together keep their declaration order.

    Raises:
        InvalidStateError: a dependency is not declared, or the graph has a cycle.
    """
    declared = list(graph.keys())
    position = {kind: i for i, kind in enumerate(declared)}

    remaining: dict[EntityKind, int] = {}
    dependents: dict[EntityKind, list[EntityKind]] = {kind: [] for kind in declared}
    for kind in declared:
        deps = set(graph[kind])
        for dep in deps:
            if dep not in position:
                raise InvalidStateError(
                    "Dependency on undeclared kind",
                    details={"kind": kind.value, "dependency": getattr(dep, "value", dep)},
                )
            dependents[dep].append(kind)
        remaining[kind] = len(deps)

    ready: deque[EntityKind] = deque(k for k in declared if remaining[k] == 0)
    order: list[EntityKind] = []

    while ready:
        cur = ready.popleft()
        order.append(cur)
        for child in dependents[cur]:
            remaining[child] -= 1
            if remaining[child] == 0:
                ready.append(child)
        ready = deque(sorted(ready, key=position.__getitem__))

    if len(order) != len(declared):
        cyclic = [k.value for k in declared if k not in order]
        raise InvalidStateError("Dependency graph has a cycle", details={"kinds": cyclic})

    return order
