"""
Organization hierarchy queries over a snapshot of the org tree.

The hierarchy is built once from ``OrgNode`` rows (one query, or the cached
snapshot) and answers ancestor/descendant questions without touching the
database again. Every walk is an explicit worklist bounded by the number of
nodes in the snapshot, so malformed parent pointers surface as
``OrgIntegrityError`` instead of looping.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set

from .choices import OrganizationKind
from .exceptions import OrgIntegrityError


@dataclass(frozen=True)
class OrgNode:
    id: Any
    parent_id: Optional[Any]
    kind: str
    name: str = ''
    archived: bool = False

    @property
    def is_company(self) -> bool:
        return self.kind == OrganizationKind.COMPANY


class OrgHierarchy:
    """Read-only view of the organization forest."""

    def __init__(self, nodes: Iterable[OrgNode]):
        self._nodes: Dict[Any, OrgNode] = {}
        self._children: Dict[Any, List[Any]] = {}
        for node in nodes:
            self._nodes[node.id] = node
        for node in self._nodes.values():
            if node.parent_id is not None:
                self._children.setdefault(node.parent_id, []).append(node.id)
        for child_ids in self._children.values():
            child_ids.sort(key=str)

    def __contains__(self, org_id) -> bool:
        return org_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, org_id) -> Optional[OrgNode]:
        return self._nodes.get(org_id)

    def self_and_descendants(self, org_id) -> Set[Any]:
        """{org} ∪ descendants(org). ``None`` yields an empty set."""
        if org_id is None:
            return set()

        found = {org_id}
        queue = deque([org_id])
        while queue:
            current = queue.popleft()
            for child_id in self._children.get(current, ()):
                if child_id in found:
                    # Each node has one parent, so a revisit means a parent cycle
                    raise OrgIntegrityError(
                        f"Parent cycle detected below organization {org_id}",
                        org_id=child_id,
                    )
                found.add(child_id)
                queue.append(child_id)
        return found

    def self_and_ancestors(self, org_id) -> List[Any]:
        """Path from ``org_id`` up to its root, nearest first."""
        if org_id is None:
            return []

        path = [org_id]
        seen = {org_id}
        current = self._nodes.get(org_id)
        if current is None:
            raise OrgIntegrityError(f"Unknown organization {org_id}", org_id=org_id)

        while current.parent_id is not None:
            parent_id = current.parent_id
            if parent_id in seen:
                raise OrgIntegrityError(
                    f"Parent cycle detected above organization {org_id}",
                    org_id=parent_id,
                )
            parent = self._nodes.get(parent_id)
            if parent is None:
                raise OrgIntegrityError(
                    f"Organization {current.id} points at missing parent {parent_id}",
                    org_id=current.id,
                )
            path.append(parent_id)
            seen.add(parent_id)
            current = parent
        return path

    def root_company(self, org_id) -> OrgNode:
        root = self._nodes[self.self_and_ancestors(org_id)[-1]]
        if not root.is_company:
            raise OrgIntegrityError(
                f"Organization tree of {org_id} is rooted at a {root.kind}, not a company",
                org_id=root.id,
            )
        return root

    def is_archived(self, org_id) -> bool:
        node = self._nodes.get(org_id)
        return node is not None and node.archived

    def company_id_for(self, org_id) -> Optional[Any]:
        if org_id is None or org_id not in self._nodes:
            return None
        return self.root_company(org_id).id

    def is_ancestor_of(self, ancestor_id, org_id) -> bool:
        """Strict ancestry: an organization is not its own ancestor."""
        if ancestor_id is None or org_id is None or ancestor_id == org_id:
            return False
        if org_id not in self._nodes:
            return False
        return ancestor_id in self.self_and_ancestors(org_id)[1:]

    def validate(self) -> None:
        """Check every tree: one company root, no cycles, no dangling parents."""
        for org_id in self._nodes:
            self.root_company(org_id)


def nodes_from_queryset(queryset) -> List[OrgNode]:
    return [
        OrgNode(id=pk, parent_id=parent_id, kind=kind, name=name, archived=archived_at is not None)
        for pk, parent_id, kind, name, archived_at in queryset.values_list(
            'id', 'parent_id', 'kind', 'name', 'archived_at'
        )
    ]


def load_org_hierarchy(use_cache: bool = True) -> OrgHierarchy:
    """Build the hierarchy from one query, or from the cached snapshot."""
    from .hierarchy_cache import HierarchyCache
    from .models import Organization

    nodes = HierarchyCache.get_org_nodes() if use_cache else None
    if nodes is None:
        nodes = nodes_from_queryset(Organization.objects.all())
        if use_cache:
            HierarchyCache.set_org_nodes(nodes)
    return OrgHierarchy(nodes)
