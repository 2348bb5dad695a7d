"""
Batched loaders that turn employment rows into hierarchy snapshots.

Each loader issues a single query for its whole scope; traversal then runs
in memory over the snapshot.
"""

import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.core.org_hierarchy import load_org_hierarchy

from .hierarchy import EmploymentEdge, ManagerialHierarchy
from .models import EmploymentTenure, Teammate

logger = logging.getLogger("employees.hierarchy")


def active_edges(organization_ids, as_of=None):
    """All employment edges active at ``as_of`` in the given organizations."""
    as_of = as_of or timezone.now()
    rows = (
        EmploymentTenure.objects.active(as_of)
        .filter(organization_id__in=list(organization_ids))
        .values_list('person_id', 'organization_id', 'manager_id', 'started_at', 'ended_at', 'position')
    )
    return [
        EmploymentEdge(
            person_id=person_id,
            organization_id=organization_id,
            manager_id=manager_id,
            started_at=started_at,
            ended_at=ended_at,
            position=position,
        )
        for person_id, organization_id, manager_id, started_at, ended_at, position in rows
    ]


def flag_hierarchy_anomaly(organization_id, person_ids):
    """
    Hand a confirmed manager cycle to the anomaly task.

    Runs inside visibility decisions, so an unreachable broker falls back to
    recording the anomaly inline instead of failing the decision.
    """
    from .tasks import record_hierarchy_anomaly, store_hierarchy_anomaly

    organization_id = str(organization_id)
    person_ids = [str(person_id) for person_id in person_ids]
    logger.info(
        "Queueing manager-cycle anomaly for organization %s (%d people)",
        organization_id,
        len(person_ids),
    )
    try:
        record_hierarchy_anomaly.delay(organization_id, person_ids)
    except Exception:
        logger.warning(
            "Anomaly task for organization %s could not be queued; recording inline",
            organization_id,
            exc_info=True,
        )
        try:
            with transaction.atomic():
                store_hierarchy_anomaly(organization_id, person_ids)
        except DatabaseError:
            logger.exception(
                "Manager-cycle anomaly for organization %s not recorded: %s",
                organization_id,
                person_ids,
            )


def load_managerial_hierarchy(organization_id, as_of=None, org_hierarchy=None, on_anomaly=flag_hierarchy_anomaly):
    """
    Build the managerial hierarchy of ``organization_id`` and its descendants
    from one query over active employment edges.
    """
    org_hierarchy = org_hierarchy or load_org_hierarchy()
    as_of = as_of or timezone.now()
    org_ids = org_hierarchy.self_and_descendants(organization_id)
    return ManagerialHierarchy(
        active_edges(org_ids, as_of),
        org_hierarchy,
        as_of=as_of,
        on_anomaly=on_anomaly,
    )


def active_teammates(person_id, organization_ids):
    """The person's non-terminated teammate rows in the given organizations."""
    if person_id is None:
        return []
    return list(
        Teammate.objects.filter(
            person_id=person_id,
            organization_id__in=list(organization_ids),
            last_terminated_at__isnull=True,
        ).only(
            'id', 'person_id', 'organization_id', 'can_manage_employment',
            'can_create_employment', 'can_manage_maap',
        )
    )
