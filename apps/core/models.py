"""
Core Models - Base classes and the organization tree
Hierarchy: Company → Department → Team
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .choices import OrganizationKind


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class LiveManager(models.Manager):
    """Hides archived rows; ``all_objects`` still sees them."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class SoftDeleteModel(models.Model):
    """
    Records are archived, never removed, so visibility decisions can tell an
    archived record (never visible) from a missing one.
    """

    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = LiveManager()
    all_objects = models.Manager()

    class Meta:
        abstract = True

    @property
    def is_live(self):
        return self.deleted_at is None

    def delete(self, using=None, keep_parents=False):
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at'])


# ============================================================================
# ORGANIZATION MODEL - Company / Department / Team tree
# ============================================================================

class Organization(TimeStampedModel):
    """
    Node of the organization forest.

    Each tree is rooted at exactly one company; departments and teams
    always hang below a parent. Organizations are archived, never deleted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, db_index=True)
    kind = models.CharField(
        max_length=20,
        choices=OrganizationKind.choices,
        default=OrganizationKind.COMPANY,
        db_index=True,
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='children',
    )
    archived_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'organizations'
        ordering = ['name']
        indexes = [
            models.Index(fields=['parent', 'kind'], name='org_parent_kind_idx'),
        ]

    def __str__(self):
        return self.name

    @property
    def is_company(self):
        return self.kind == OrganizationKind.COMPANY

    def clean(self):
        if not self.name or not self.name.strip():
            raise ValidationError({"name": "Organization name is required"})

        if self.is_company and self.parent_id:
            raise ValidationError({"parent": "A company cannot have a parent organization"})
        if not self.is_company and not self.parent_id:
            raise ValidationError({"parent": "Departments and teams require a parent organization"})
        if self.parent_id and self.parent_id == self.id:
            raise ValidationError({"parent": "An organization cannot be its own parent"})

        if self.parent_id and not self._state.adding:
            # Re-parenting must not move a node under its own subtree
            from .org_hierarchy import load_org_hierarchy

            hierarchy = load_org_hierarchy(use_cache=False)
            if self.parent_id in hierarchy.self_and_descendants(self.id):
                raise ValidationError({"parent": "Cannot move an organization under its own descendant"})

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

    def archive(self):
        self.archived_at = timezone.now()
        self.save(update_fields=['archived_at', 'updated_at'])
