"""
Managerial hierarchy over a snapshot of active employment edges.

``ManagerialHierarchy`` derives "who manages whom" from time-bounded
employment edges, independent of the shape of the organization tree. Every
walk is breadth-first with a visited set of person ids and a hard bound equal
to the number of people in scope, so corrupt data (a manager cycle) can only
ever shorten a walk, never hang it.

When a walk meets a person it has already visited, the explored subgraph is
re-checked with a three-colour depth-first search. Confirmed cycles are
logged once per snapshot and handed to ``on_anomaly``.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from django.utils import timezone

from apps.core.org_hierarchy import OrgHierarchy

logger = logging.getLogger("employees.hierarchy")

AnomalyCallback = Callable[[Any, List[Any]], None]

WHITE, GRAY, BLACK = 0, 1, 2


@dataclass(frozen=True)
class EmploymentEdge:
    person_id: Any
    organization_id: Any
    manager_id: Optional[Any]
    started_at: datetime
    ended_at: Optional[datetime] = None
    position: str = ''

    def is_active(self, as_of: datetime) -> bool:
        return self.started_at <= as_of and (self.ended_at is None or self.ended_at > as_of)


@dataclass(frozen=True)
class HierarchyEntry:
    """One person found by a walk; ``level`` is the BFS depth, 1 for direct links."""

    person_id: Any
    level: int
    position: str
    organization_id: Any


class _Scope:
    """Adjacency of the active edges inside one organization subtree."""

    def __init__(self, edges: Iterable[EmploymentEdge]):
        self.reports: Dict[Any, List[EmploymentEdge]] = {}
        self.managers: Dict[Any, List[EmploymentEdge]] = {}
        self.tenures: Dict[Any, List[EmploymentEdge]] = {}
        population: Set[Any] = set()

        for edge in edges:
            population.add(edge.person_id)
            self.tenures.setdefault(edge.person_id, []).append(edge)
            if edge.manager_id is not None:
                population.add(edge.manager_id)
                self.reports.setdefault(edge.manager_id, []).append(edge)
                self.managers.setdefault(edge.person_id, []).append(edge)

        for index in (self.reports, self.managers, self.tenures):
            for bucket in index.values():
                bucket.sort(key=lambda e: (str(e.person_id), str(e.manager_id), str(e.organization_id)))

        self.population_size = len(population)


class ManagerialHierarchy:
    """
    Reporting lines of one snapshot of employment edges.

    Edges that are not active at ``as_of`` are discarded on construction.
    Organization scoping uses ``org_hierarchy``: a query scoped to org ``O``
    only follows edges whose organization is in ``O`` or one of its
    descendants.
    """

    def __init__(
        self,
        edges: Iterable[EmploymentEdge],
        org_hierarchy: OrgHierarchy,
        as_of: Optional[datetime] = None,
        on_anomaly: Optional[AnomalyCallback] = None,
    ):
        self.as_of = as_of or timezone.now()
        self.org_hierarchy = org_hierarchy
        self.on_anomaly = on_anomaly
        self._edges = [edge for edge in edges if edge.is_active(self.as_of)]
        self._scopes: Dict[Any, _Scope] = {}
        self._reports_cache: Dict[Tuple[Any, Any], List[HierarchyEntry]] = {}
        self._managers_cache: Dict[Tuple[Any, Any], List[HierarchyEntry]] = {}
        self._anomalies: Dict[FrozenSet[Any], List[Any]] = {}

    def __len__(self) -> int:
        return len(self._edges)

    @property
    def anomalies(self) -> List[List[Any]]:
        """Manager cycles confirmed so far, each as the ordered list of people on it."""
        return list(self._anomalies.values())

    # --------------------------------------------------
    # PUBLIC QUERIES
    # --------------------------------------------------
    def reports_of(self, person_id, org_id) -> List[HierarchyEntry]:
        """Direct (level 1) and transitive reports of ``person_id`` within ``org_id``."""
        key = (person_id, org_id)
        if key not in self._reports_cache:
            scope = self._scope(org_id)
            self._reports_cache[key] = self._walk(
                person_id,
                org_id,
                scope,
                step=lambda current: [
                    (edge.person_id, edge.position, edge.organization_id)
                    for edge in scope.reports.get(current, ())
                ],
            )
        return list(self._reports_cache[key])

    def managers_of(self, person_id, org_id) -> List[HierarchyEntry]:
        """Direct (level 1) and transitive managers of ``person_id`` within ``org_id``."""
        key = (person_id, org_id)
        if key not in self._managers_cache:
            scope = self._scope(org_id)
            self._managers_cache[key] = self._walk(
                person_id,
                org_id,
                scope,
                step=lambda current: [
                    self._manager_step(scope, edge) for edge in scope.managers.get(current, ())
                ],
            )
        return list(self._managers_cache[key])

    def is_in_hierarchy_of(self, manager_id, report_id, org_id) -> bool:
        return any(entry.person_id == report_id for entry in self.reports_of(manager_id, org_id))

    def manages_any(self, manager_id, person_ids: Iterable[Any], org_id) -> bool:
        targets = set(person_ids)
        if not targets:
            return False
        return any(entry.person_id in targets for entry in self.reports_of(manager_id, org_id))

    def report_ids(self, person_id, org_id) -> Set[Any]:
        return {entry.person_id for entry in self.reports_of(person_id, org_id)}

    # --------------------------------------------------
    # INTERNALS
    # --------------------------------------------------
    def _scope(self, org_id) -> _Scope:
        if org_id not in self._scopes:
            org_ids = self.org_hierarchy.self_and_descendants(org_id)
            self._scopes[org_id] = _Scope(e for e in self._edges if e.organization_id in org_ids)
        return self._scopes[org_id]

    @staticmethod
    def _manager_step(scope: _Scope, edge: EmploymentEdge):
        # A manager is described by their own tenure in scope when they have one
        own = scope.tenures.get(edge.manager_id)
        if own:
            return edge.manager_id, own[0].position, own[0].organization_id
        return edge.manager_id, '', edge.organization_id

    def _walk(self, start, org_id, scope: _Scope, step) -> List[HierarchyEntry]:
        visited = {start}
        explored: Dict[Any, List[Any]] = {}
        entries: List[HierarchyEntry] = []
        revisited = False
        bound = scope.population_size

        queue = deque([(start, 0)])
        while queue and len(visited) <= bound:
            current, level = queue.popleft()
            neighbours = explored.setdefault(current, [])
            for person_id, position, organization_id in step(current):
                neighbours.append(person_id)
                if person_id in visited:
                    revisited = True
                    continue
                visited.add(person_id)
                entries.append(HierarchyEntry(person_id, level + 1, position, organization_id))
                queue.append((person_id, level + 1))

        if revisited:
            cycle = self._find_cycle(start, explored)
            if cycle:
                self._flag(org_id, cycle)

        entries.sort(key=lambda e: (e.level, e.person_id))
        return entries

    @staticmethod
    def _find_cycle(start, graph: Dict[Any, List[Any]]) -> Optional[List[Any]]:
        """Iterative three-colour DFS; returns the first cycle found, in walk order."""
        colour: Dict[Any, int] = {}
        path: List[Any] = [start]
        colour[start] = GRAY
        stack = [(start, iter(graph.get(start, ())))]

        while stack:
            node, neighbours = stack[-1]
            advanced = False
            for neighbour in neighbours:
                state = colour.get(neighbour, WHITE)
                if state == GRAY:
                    return path[path.index(neighbour):]
                if state == WHITE:
                    colour[neighbour] = GRAY
                    path.append(neighbour)
                    stack.append((neighbour, iter(graph.get(neighbour, ()))))
                    advanced = True
                    break
            if not advanced:
                colour[node] = BLACK
                path.pop()
                stack.pop()
        return None

    def _flag(self, org_id, cycle: List[Any]) -> None:
        fingerprint = frozenset(cycle)
        if fingerprint in self._anomalies:
            return
        self._anomalies[fingerprint] = cycle
        logger.warning(
            "Manager cycle detected in organization %s: %s",
            org_id,
            " -> ".join(str(person_id) for person_id in cycle + cycle[:1]),
        )
        if self.on_anomaly is not None:
            self.on_anomaly(org_id, list(cycle))
