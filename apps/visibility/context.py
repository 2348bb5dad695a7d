"""
Data access for visibility decisions.

``VisibilityContext`` answers the membership and management questions the
policies ask, through injected accessors. Results are memoised for the life
of the context, which is one request (or one test); a context is never
shared across requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from django.utils import timezone

from apps.core.org_hierarchy import OrgHierarchy
from apps.employees.hierarchy import EmploymentEdge, ManagerialHierarchy


@dataclass(frozen=True)
class TeammateFacts:
    person_id: Any
    organization_id: Any
    can_manage_employment: bool = False
    can_create_employment: bool = False
    can_manage_maap: bool = False
    active: bool = True


EdgeLoader = Callable[[Set[Any], datetime], Iterable[EmploymentEdge]]
TeammateLoader = Callable[[Any, Set[Any]], Iterable[TeammateFacts]]


class VisibilityContext:
    def __init__(
        self,
        org_hierarchy: OrgHierarchy,
        load_edges: EdgeLoader,
        load_teammates: TeammateLoader,
        as_of: Optional[datetime] = None,
        on_anomaly=None,
    ):
        self.org_hierarchy = org_hierarchy
        self.as_of = as_of or timezone.now()
        self._load_edges = load_edges
        self._load_teammates = load_teammates
        self._on_anomaly = on_anomaly
        self._hierarchies: Dict[Any, ManagerialHierarchy] = {}
        self._memberships: Dict[Tuple[Any, Any], List[TeammateFacts]] = {}

    @classmethod
    def from_snapshot(cls, org_hierarchy, edges=(), teammates=(), as_of=None, on_anomaly=None):
        """Context over in-memory data, for pure evaluation."""
        edges = list(edges)
        teammates = list(teammates)

        def load_edges(org_ids, _as_of):
            return [edge for edge in edges if edge.organization_id in org_ids]

        def load_teammates(person_id, org_ids):
            return [t for t in teammates if t.person_id == person_id and t.organization_id in org_ids]

        return cls(org_hierarchy, load_edges, load_teammates, as_of=as_of, on_anomaly=on_anomaly)

    # --------------------------------------------------
    # ORGANIZATION
    # --------------------------------------------------
    def company_id_for(self, org_id):
        return self.org_hierarchy.company_id_for(org_id)

    def viewer_company_id(self, viewer):
        return self.company_id_for(viewer.acting_organization_id)

    def is_archived(self, org_id) -> bool:
        return self.org_hierarchy.is_archived(org_id)

    # --------------------------------------------------
    # MEMBERSHIP
    # --------------------------------------------------
    def memberships(self, person_id, company_id) -> List[TeammateFacts]:
        """Active teammate rows of ``person_id`` anywhere in the company subtree."""
        if person_id is None or company_id is None:
            return []
        key = (person_id, company_id)
        if key not in self._memberships:
            org_ids = self.org_hierarchy.self_and_descendants(company_id)
            self._memberships[key] = [
                facts for facts in self._load_teammates(person_id, org_ids) if facts.active
            ]
        return self._memberships[key]

    def member_org_ids(self, person_id, company_id) -> Set[Any]:
        return {facts.organization_id for facts in self.memberships(person_id, company_id)}

    def is_member(self, viewer, company_id) -> bool:
        return bool(self.memberships(viewer.person_id, company_id))

    def is_member_of_subtree(self, person_id, org_id) -> bool:
        """Active teammate of ``org_id`` or of one of its descendants."""
        company_id = self.company_id_for(org_id)
        if company_id is None:
            return False
        subtree = self.org_hierarchy.self_and_descendants(org_id)
        return any(org in subtree for org in self.member_org_ids(person_id, company_id))

    def has_company_permission(self, viewer, company_id, flag) -> bool:
        """``flag`` set on the viewer's teammate row of the company itself."""
        if viewer.is_global_admin:
            return True
        return any(
            facts.organization_id == company_id and getattr(facts, flag)
            for facts in self.memberships(viewer.person_id, company_id)
        )

    def is_employment_manager(self, viewer, company_id) -> bool:
        return self.has_company_permission(viewer, company_id, 'can_manage_employment')

    # --------------------------------------------------
    # MANAGEMENT
    # --------------------------------------------------
    def hierarchy_for(self, company_id) -> ManagerialHierarchy:
        if company_id not in self._hierarchies:
            org_ids = self.org_hierarchy.self_and_descendants(company_id)
            self._hierarchies[company_id] = ManagerialHierarchy(
                self._load_edges(org_ids, self.as_of),
                self.org_hierarchy,
                as_of=self.as_of,
                on_anomaly=self._on_anomaly,
            )
        return self._hierarchies[company_id]

    def manages_any(self, manager_id, person_ids, company_id) -> bool:
        if manager_id is None or company_id is None:
            return False
        return self.hierarchy_for(company_id).manages_any(manager_id, person_ids, company_id)

    def report_ids(self, manager_id, company_id) -> Set[Any]:
        if manager_id is None or company_id is None:
            return set()
        return self.hierarchy_for(company_id).report_ids(manager_id, company_id)


def _teammates_from_db(person_id, org_ids):
    from apps.employees.queries import active_teammates

    return [
        TeammateFacts(
            person_id=teammate.person_id,
            organization_id=teammate.organization_id,
            can_manage_employment=teammate.can_manage_employment,
            can_create_employment=teammate.can_create_employment,
            can_manage_maap=teammate.can_manage_maap,
        )
        for teammate in active_teammates(person_id, org_ids)
    ]


def database_context(as_of=None) -> VisibilityContext:
    """Context backed by the ORM: one query per company hierarchy and per membership lookup."""
    from apps.core.org_hierarchy import load_org_hierarchy
    from apps.employees.queries import active_edges, flag_hierarchy_anomaly

    return VisibilityContext(
        load_org_hierarchy(),
        load_edges=active_edges,
        load_teammates=_teammates_from_db,
        as_of=as_of,
        on_anomaly=flag_hierarchy_anomaly,
    )
