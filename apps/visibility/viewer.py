"""
The principal a visibility decision is made for.

A ``Viewer`` is built once per request and passed explicitly into every
policy call.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Viewer:
    person_id: Optional[Any] = None
    acting_organization_id: Optional[Any] = None
    acting_teammate_id: Optional[Any] = None
    is_global_admin: bool = False

    @property
    def is_anonymous(self) -> bool:
        return self.person_id is None

    @classmethod
    def anonymous(cls, organization=None) -> 'Viewer':
        return cls(acting_organization_id=getattr(organization, 'pk', organization))

    @classmethod
    def for_person(cls, person, organization=None) -> 'Viewer':
        """Viewer for ``person`` acting in ``organization`` (instance or id)."""
        from apps.employees.models import Teammate

        if person is None:
            return cls.anonymous(organization)

        organization_id = getattr(organization, 'pk', organization)
        teammate_id = None
        if organization_id is not None:
            teammate_id = (
                Teammate.objects.filter(
                    person=person,
                    organization_id=organization_id,
                    last_terminated_at__isnull=True,
                )
                .values_list('id', flat=True)
                .first()
            )
        return cls(
            person_id=person.pk,
            acting_organization_id=organization_id,
            acting_teammate_id=teammate_id,
            is_global_admin=person.is_global_admin,
        )

    @classmethod
    def from_request(cls, request) -> 'Viewer':
        """Build the viewer from ``request.user`` and ``request.organization``."""
        from apps.employees.models import Person

        organization = getattr(request, 'organization', None)
        user = getattr(request, 'user', None)
        if not user or not user.is_authenticated:
            return cls.anonymous(organization)

        person = Person.objects.filter(user_id=user.pk).first()
        return cls.for_person(person, organization)
