"""Celery tasks for employment data maintenance."""

from celery import shared_task
from django.apps import apps


def store_hierarchy_anomaly(organization_id, person_ids):
    """Persist a manager cycle once; repeated reports of an open cycle are ignored."""
    HierarchyAnomaly = apps.get_model('employees', 'HierarchyAnomaly')
    anomaly, _ = HierarchyAnomaly.objects.get_or_create(
        organization_id=organization_id,
        fingerprint=','.join(sorted(person_ids)),
        resolved_at=None,
        defaults={
            'kind': HierarchyAnomaly.KIND_MANAGER_CYCLE,
            'person_ids': person_ids,
        },
    )
    return anomaly


@shared_task(bind=True, name='employees.record_hierarchy_anomaly')
def record_hierarchy_anomaly(self, organization_id: str, person_ids: list) -> str:
    return str(store_hierarchy_anomaly(organization_id, person_ids).pk)
