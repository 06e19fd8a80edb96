# dag.py
from __future__ import annotations

import heapq
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from .model import Target


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

class GraphError(Exception):
    """Structural problem found while registering targets. Nothing runs."""


class DuplicateTarget(GraphError):
    def __init__(self, names: Sequence[str]):
        self.names = list(names)
        super().__init__(f"Duplicate target names found: {self.names}")


class UnknownTargetReference(GraphError):
    def __init__(self, target: str, reference: str, relation: str, known: Iterable[str] = ()):
        self.target = target
        self.reference = reference
        self.relation = relation
        msg = f"Target '{target}' declares {relation} on missing target '{reference}'."
        known = sorted(known)
        if known:
            msg += f" Known targets: {known}"
        super().__init__(msg)


class CyclicDependency(GraphError):
    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.cycle)}")


class SchedulingError(Exception):
    """The requested goals cannot be put into a valid order."""


class UnknownGoal(SchedulingError):
    def __init__(self, name: str, known: Iterable[str] = ()):
        self.name = name
        super().__init__(f"Unknown target '{name}'. Known targets: {sorted(known)}")


class UnsatisfiableOrdering(SchedulingError):
    def __init__(self, cycle: Sequence[str], constraints: Sequence[str]):
        self.cycle = list(cycle)
        self.constraints = list(constraints)
        super().__init__(
            "Ordering constraints cannot be satisfied: " + "; ".join(self.constraints)
        )


# ----------------------------------------------------------------------
# Graph
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Graph:
    """
    Read-only view over the registered targets.

    `ordering` holds soft edges as (earlier, later) pairs, already
    normalized from both `before` and `after` declarations.
    """
    targets: Mapping[str, Target]
    index: Mapping[str, int]
    dependencies: Mapping[str, Tuple[str, ...]]
    dependents: Mapping[str, Tuple[str, ...]]
    ordering: FrozenSet[Tuple[str, str]]

    def __contains__(self, name: object) -> bool:
        return name in self.targets

    def __getitem__(self, name: str) -> Target:
        return self.targets[name]

    def names(self) -> List[str]:
        return list(self.targets)

    def transitive_dependents(self, name: str) -> List[str]:
        """Every target that reaches `name` through depends_on edges."""
        seen: Set[str] = set()
        stack = list(self.dependents[name])
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self.dependents[node])
        return sorted(seen, key=self.index.__getitem__)

    def reachable(self, goals: Iterable[str]) -> Set[str]:
        """Goals plus everything they pull in through depends_on."""
        seen: Set[str] = set()
        stack = list(goals)
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self.dependencies[node])
        return seen

    def describe_edge(self, earlier: str, later: str) -> str:
        """Human readable reason why `earlier` must precede `later`."""
        if earlier in self.dependencies[later]:
            return f"'{later}' depends on '{earlier}'"
        if later in self.targets[earlier].before:
            return f"'{earlier}' runs before '{later}'"
        return f"'{later}' runs after '{earlier}'"


def _find_cycle(names: Sequence[str], successors: Mapping[str, Sequence[str]]) -> Optional[List[str]]:
    """
    Depth-first search keeping the current path on an explicit stack.

    Returns the cycle as [a, b, ..., a] or None.
    """
    on_stack: Set[str] = set()
    done: Set[str] = set()

    for name in names:
        if name in done:
            continue
        path: List[str] = [name]
        pending: List[Iterator[str]] = [iter(successors.get(name, ()))]
        on_stack.add(name)
        while pending:
            nxt = next(pending[-1], None)
            if nxt is None:
                node = path.pop()
                pending.pop()
                on_stack.discard(node)
                done.add(node)
            elif nxt in on_stack:
                return path[path.index(nxt):] + [nxt]
            elif nxt not in done:
                path.append(nxt)
                pending.append(iter(successors.get(nxt, ())))
                on_stack.add(nxt)
    return None


def build_graph(targets: Iterable[Target]) -> Graph:
    """
    Register targets and validate the graph.

    Raises:
      DuplicateTarget: two targets share a name
      CyclicDependency: a target references itself, or depends_on edges form a cycle
      UnknownTargetReference: a relationship names an unregistered target
    """
    targets = list(targets)
    names = [t.name for t in targets]
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise DuplicateTarget(dupes)

    by_name: Dict[str, Target] = {t.name: t for t in targets}

    for t in targets:
        for relation, refs in (("depends_on", t.depends_on), ("before", t.before), ("after", t.after)):
            for ref in refs:
                if ref == t.name:
                    raise CyclicDependency([t.name, t.name])
                if ref not in by_name:
                    raise UnknownTargetReference(t.name, ref, relation, known=by_name)

    dependencies: Dict[str, Tuple[str, ...]] = {
        t.name: tuple(dict.fromkeys(t.depends_on)) for t in targets
    }
    dependents: Dict[str, List[str]] = {n: [] for n in names}
    for t in targets:
        for dep in dependencies[t.name]:
            dependents[dep].append(t.name)

    # dependency -> dependent is the execution direction
    cycle = _find_cycle(names, {n: dependents[n] for n in names})
    if cycle:
        raise CyclicDependency(cycle)

    ordering: Set[Tuple[str, str]] = set()
    for t in targets:
        for later in t.before:
            ordering.add((t.name, later))
        for earlier in t.after:
            ordering.add((earlier, t.name))

    return Graph(
        targets=MappingProxyType(by_name),
        index=MappingProxyType({n: i for i, n in enumerate(names)}),
        dependencies=MappingProxyType(dependencies),
        dependents=MappingProxyType({n: tuple(v) for n, v in dependents.items()}),
        ordering=frozenset(ordering),
    )


# ----------------------------------------------------------------------
# Scheduling
# ----------------------------------------------------------------------

def resolve_order(graph: Graph, goals: Sequence[str]) -> List[str]:
    """
    Compute the execution order for `goals`.

    - Only goals and their transitive depends_on targets are included.
    - before/after edges reorder included targets, never add new ones.
    - Ties are broken by registration order.
    - Each target appears exactly once, whatever the goals repeat.
    """
    for goal in goals:
        if goal not in graph:
            raise UnknownGoal(goal, known=graph.names())

    included = graph.reachable(goals)

    successors: Dict[str, List[str]] = {n: [] for n in included}
    indeg: Dict[str, int] = {n: 0 for n in included}

    def add_edge(earlier: str, later: str) -> None:
        if later in successors[earlier]:
            return
        successors[earlier].append(later)
        indeg[later] += 1

    for name in included:
        for dep in graph.dependencies[name]:
            add_edge(dep, name)
    for earlier, later in sorted(graph.ordering):
        if earlier in included and later in included:
            add_edge(earlier, later)

    ready = [(graph.index[n], n) for n, d in indeg.items() if d == 0]
    heapq.heapify(ready)
    order: List[str] = []

    while ready:
        _, node = heapq.heappop(ready)
        order.append(node)
        for nxt in successors[node]:
            indeg[nxt] -= 1
            if indeg[nxt] == 0:
                heapq.heappush(ready, (graph.index[nxt], nxt))

    if len(order) != len(included):
        stuck = sorted((n for n, d in indeg.items() if d > 0), key=graph.index.__getitem__)
        cycle = _find_cycle(stuck, {n: [s for s in successors[n] if s in indeg and indeg[s] > 0] for n in stuck})
        cycle = cycle or stuck
        constraints = [graph.describe_edge(a, b) for a, b in zip(cycle, cycle[1:])]
        raise UnsatisfiableOrdering(cycle, constraints)

    return order
