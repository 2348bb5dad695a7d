"""
Policy Scope - the authorized subset of a queryset for one viewer

Scope builders translate a policy into a single filtered query where the
rules allow it. Resource types without a builder fall back to evaluating
each record with the single-record policy. A scope never returns a record
the single-record policy would deny.
"""

import logging

from django.db.models import Q

from apps.core.choices import GoalPrivacyLevel, PrivacyLevel

from .context import database_context
from .policies import POLICIES, can_view
from .records import ResourceType

logger = logging.getLogger(__name__)


class PolicyScope:
    def __init__(self, viewer, context=None):
        self.viewer = viewer
        self.context = context or database_context()

    def resolve(self, queryset):
        model = queryset.model
        resource_type = getattr(model, 'visibility_resource_type', None)
        if resource_type not in POLICIES:
            logger.warning("No visibility policy for %s; returning an empty scope", model.__name__)
            return queryset.none()

        company_id = self.context.viewer_company_id(self.viewer)
        if company_id is None or self.context.is_archived(company_id):
            return queryset.none()

        queryset = queryset.filter(company_id=company_id)
        if hasattr(model, 'deleted_at'):
            queryset = queryset.filter(deleted_at__isnull=True)

        builder = SCOPE_BUILDERS.get(resource_type)
        if builder is None:
            return self._per_record(queryset)
        return builder(self, queryset, company_id)

    # --------------------------------------------------
    # SHARED FACTS
    # --------------------------------------------------
    def is_member(self, company_id):
        return self.viewer.is_global_admin or self.context.is_member(self.viewer, company_id)

    def is_employment_manager(self, company_id):
        return self.context.is_employment_manager(self.viewer, company_id)

    def report_ids(self, company_id):
        return self.context.report_ids(self.viewer.person_id, company_id)

    def _per_record(self, queryset):
        allowed = [obj.pk for obj in queryset if can_view(self.viewer, obj, self.context)]
        return queryset.filter(pk__in=allowed)


def observation_scope(scope, queryset, company_id):
    published = Q(published_at__isnull=False)
    world = published & Q(privacy_level=PrivacyLevel.PUBLIC_TO_WORLD)
    if scope.viewer.is_anonymous or not scope.is_member(company_id):
        return queryset.filter(world)

    me = scope.viewer.person_id
    reports = scope.report_ids(company_id)

    visible = Q(observer_id=me) | (
        published & Q(privacy_level__in=[PrivacyLevel.PUBLIC_TO_COMPANY, PrivacyLevel.PUBLIC_TO_WORLD])
    )
    visible |= published & Q(
        privacy_level__in=[PrivacyLevel.OBSERVED_ONLY, PrivacyLevel.OBSERVED_AND_MANAGERS],
        observees__teammate__person_id=me,
    )
    if reports:
        visible |= published & Q(
            privacy_level__in=[PrivacyLevel.MANAGERS_ONLY, PrivacyLevel.OBSERVED_AND_MANAGERS],
            observees__teammate__person_id__in=reports,
        )
    if scope.is_employment_manager(company_id):
        visible |= published & ~Q(
            privacy_level__in=[PrivacyLevel.OBSERVER_ONLY, PrivacyLevel.OBSERVED_ONLY]
        )
    return queryset.filter(visible).distinct()


def goal_scope(scope, queryset, company_id):
    if scope.viewer.is_anonymous or not scope.is_member(company_id):
        return queryset.none()
    if scope.viewer.is_global_admin:
        return queryset

    me = scope.viewer.person_id
    hierarchy = scope.context.org_hierarchy
    owning_orgs = set()
    for org_id in scope.context.member_org_ids(me, company_id):
        owning_orgs.update(hierarchy.self_and_ancestors(org_id))

    owner_levels = [
        GoalPrivacyLevel.ONLY_CREATOR_AND_OWNER,
        GoalPrivacyLevel.ONLY_CREATOR_OWNER_AND_MANAGERS,
    ]
    visible = Q(creator_id=me) | Q(privacy_level=GoalPrivacyLevel.EVERYONE_IN_COMPANY)
    visible |= Q(privacy_level__in=owner_levels) & (
        Q(owner_person_id=me) | Q(owner_organization_id__in=owning_orgs)
    )
    reports = scope.report_ids(company_id)
    if reports:
        visible |= Q(
            privacy_level=GoalPrivacyLevel.ONLY_CREATOR_OWNER_AND_MANAGERS,
            owner_person_id__in=reports,
        )
    if scope.is_employment_manager(company_id):
        visible |= Q(privacy_level=GoalPrivacyLevel.ONLY_CREATOR_OWNER_AND_MANAGERS)
    return queryset.filter(visible)


def company_member_scope(scope, queryset, company_id):
    if scope.viewer.is_anonymous or not scope.is_member(company_id):
        return queryset.none()
    return queryset


def check_in_scope(scope, queryset, company_id):
    if scope.viewer.is_anonymous or not scope.is_member(company_id):
        return queryset.none()
    if scope.is_employment_manager(company_id):
        return queryset

    me = scope.viewer.person_id
    visible = Q(author_id=me) | Q(subject_id=me)
    reports = scope.report_ids(company_id)
    if reports:
        visible |= Q(subject_id__in=reports)
    return queryset.filter(visible)


SCOPE_BUILDERS = {
    ResourceType.OBSERVATION: observation_scope,
    ResourceType.GOAL: goal_scope,
    ResourceType.ASSIGNMENT: company_member_scope,
    ResourceType.CHECK_IN: check_in_scope,
}
