"""
In-memory goal link graph with cycle detection before insertion.

Links point from parent to child. Adding ``parent -> child`` closes a cycle
exactly when ``child`` already reaches ``parent`` through outgoing links.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Dict, Iterable, Set, Tuple

from apps.core.exceptions import CircularDependencyError, DuplicateLinkError, InvalidGoalLinkError

LinkTriple = Tuple[Any, Any, str]


class GoalGraph:
    """Directed graph of goal ids built from ``(parent_id, child_id, link_type)`` triples."""

    def __init__(self, links: Iterable[LinkTriple] = ()):
        self._outgoing: Dict[Any, Set[Any]] = {}
        self._triples: Set[LinkTriple] = set()
        self._nodes: Set[Any] = set()
        for parent_id, child_id, link_type in links:
            self.add(parent_id, child_id, link_type)

    def __len__(self) -> int:
        return len(self._triples)

    def __contains__(self, triple) -> bool:
        return tuple(triple) in self._triples

    def add(self, parent_id, child_id, link_type) -> None:
        self._triples.add((parent_id, child_id, link_type))
        self._outgoing.setdefault(parent_id, set()).add(child_id)
        self._nodes.update((parent_id, child_id))

    def has_link(self, parent_id, child_id, link_type) -> bool:
        return (parent_id, child_id, link_type) in self._triples

    def descendants_of(self, goal_id) -> Set[Any]:
        """Every goal reachable from ``goal_id`` through outgoing links."""
        seen: Set[Any] = set()
        queue = deque([goal_id])
        bound = len(self._nodes)
        while queue and len(seen) <= bound:
            current = queue.popleft()
            for child_id in sorted(self._outgoing.get(current, ()), key=str):
                if child_id not in seen:
                    seen.add(child_id)
                    queue.append(child_id)
        seen.discard(goal_id)
        return seen

    def would_create_cycle(self, parent_id, child_id) -> bool:
        if parent_id == child_id:
            return True
        return parent_id in self.descendants_of(child_id)

    def validate_link(self, parent_id, child_id, link_type) -> None:
        """Raise the matching ``GoalLinkError`` when the link may not be added."""
        if parent_id == child_id:
            raise InvalidGoalLinkError("A goal cannot be linked to itself")
        if self.has_link(parent_id, child_id, link_type):
            raise DuplicateLinkError(parent_id, child_id, link_type)
        if self.would_create_cycle(parent_id, child_id):
            raise CircularDependencyError(parent_id, child_id)
