"""
Employee Models - People, company memberships and employment tenures
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.core.models import TimeStampedModel


class Person(TimeStampedModel):
    """A human being, independent of any organization."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='person',
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(unique=True)
    is_global_admin = models.BooleanField(
        default=False,
        help_text="Platform operator with access to every organization",
    )

    class Meta:
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Teammate(TimeStampedModel):
    """
    Membership of a person in an organization, carrying permission flags
    and employment-status timestamps. Outlives any single tenure.
    """

    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='teammates')
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='teammates',
    )

    can_manage_employment = models.BooleanField(default=False)
    can_create_employment = models.BooleanField(default=False)
    can_manage_maap = models.BooleanField(default=False)

    first_employed_at = models.DateTimeField(null=True, blank=True)
    last_terminated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['person', 'organization'],
                name='uq_teammate_person_organization',
            )
        ]
        indexes = [
            models.Index(fields=['organization', 'last_terminated_at'], name='teammate_org_terminated_idx'),
        ]

    def __str__(self):
        return f"{self.person} @ {self.organization}"

    @property
    def is_active(self):
        return self.last_terminated_at is None

    def clean(self):
        if self.last_terminated_at and not self.first_employed_at:
            raise ValidationError({"first_employed_at": "Termination requires a first employment date"})
        if self.last_terminated_at and self.first_employed_at and self.last_terminated_at <= self.first_employed_at:
            raise ValidationError({"last_terminated_at": "Must be after first employment"})

    def terminate(self, at=None):
        self.last_terminated_at = at or timezone.now()
        self.save(update_fields=['last_terminated_at', 'updated_at'])


class ActiveTenureQuerySet(models.QuerySet):
    def active(self, as_of=None):
        as_of = as_of or timezone.now()
        return self.filter(
            Q(ended_at__isnull=True) | Q(ended_at__gt=as_of),
            started_at__lte=as_of,
        )


class EmploymentTenure(TimeStampedModel):
    """
    Time-bounded assignment of a person to an organization under a manager.
    Ended, never deleted, on departure or change.
    """

    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='employment_tenures')
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='employment_tenures',
    )
    manager = models.ForeignKey(
        Person,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='managed_tenures',
    )
    position = models.CharField(max_length=150, blank=True)
    started_at = models.DateTimeField(default=timezone.now)
    ended_at = models.DateTimeField(null=True, blank=True)

    objects = ActiveTenureQuerySet.as_manager()

    class Meta:
        ordering = ['-started_at']
        constraints = [
            models.UniqueConstraint(
                fields=['person', 'organization'],
                condition=Q(ended_at__isnull=True),
                name='uq_active_tenure_person_organization',
            )
        ]
        indexes = [
            models.Index(fields=['organization', 'ended_at'], name='tenure_org_ended_idx'),
            models.Index(fields=['manager', 'ended_at'], name='tenure_manager_ended_idx'),
        ]

    def __str__(self):
        return f"{self.person} in {self.organization} since {self.started_at:%Y-%m-%d}"

    def clean(self):
        if self.ended_at and self.ended_at <= self.started_at:
            raise ValidationError({"ended_at": "Must be after the start of the tenure"})

    def end(self, at=None):
        self.ended_at = at or timezone.now()
        self.save(update_fields=['ended_at', 'updated_at'])


class HierarchyAnomaly(TimeStampedModel):
    """A manager cycle found in employment data, flagged for operators."""

    KIND_MANAGER_CYCLE = 'manager_cycle'

    KIND_CHOICES = [
        (KIND_MANAGER_CYCLE, 'Manager cycle'),
    ]

    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='hierarchy_anomalies',
    )
    kind = models.CharField(max_length=30, choices=KIND_CHOICES, default=KIND_MANAGER_CYCLE)
    person_ids = models.JSONField(default=list)
    fingerprint = models.CharField(max_length=255)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['organization', 'fingerprint'],
                condition=Q(resolved_at__isnull=True),
                name='uq_open_anomaly_fingerprint',
            )
        ]

    def __str__(self):
        return f"{self.get_kind_display()} in {self.organization_id}: {self.person_ids}"
