"""
Visibility Policies - who may view a protected record or act on a person

Every resource type maps to a ``PolicyDefinition`` in ``POLICIES``. All of
them go through the same evaluation template:

1. dead (soft-deleted) records are denied
2. records without a company, or of an archived company, are denied
3. unknown resource types and privacy levels are denied
4. world-readable published records are allowed, even anonymously
5. viewers who are not active members of the record's company are denied
6. drafts are visible to their creator only
7. the privacy-level rule of the record decides
8. employment managers of the company may view, except where the level opts out

Decisions never raise; callers get a boolean or a ``VisibilityDecision``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Set

from django.conf import settings

from apps.core.choices import GoalPrivacyLevel, PrivacyLevel

from .context import VisibilityContext, database_context
from .records import PersonAction, ResourceType, VisibleRecord
from .viewer import Viewer

audit_logger = logging.getLogger("visibility.audit")

Rule = Callable[[Viewer, VisibleRecord, VisibilityContext], bool]

COMPANY_MEMBERS = 'company_members'
SUBJECT_AND_MANAGERS = 'subject_and_managers'


@dataclass(frozen=True)
class VisibilityDecision:
    allowed: bool
    reason: str

    def __bool__(self):
        return self.allowed


@dataclass(frozen=True)
class PolicyDefinition:
    resource_type: str
    rules: Dict[str, Rule]
    world_levels: FrozenSet[str] = frozenset()
    override_excluded: FrozenSet[str] = frozenset()
    requires_membership: bool = True
    admin_bypass: bool = False
    default_level: Optional[str] = None
    negative_rating_rule: Optional[Rule] = field(default=None, compare=False)

    def level_of(self, record: VisibleRecord) -> Optional[str]:
        return record.privacy_level or self.default_level


# --------------------------------------------------
# RULE BUILDING BLOCKS
# --------------------------------------------------
def _is_creator(viewer, record, ctx):
    return viewer.person_id is not None and viewer.person_id == record.creator_id


def _is_observee(viewer, record, ctx):
    return viewer.person_id in record.observee_ids


def _manages_observee(viewer, record, ctx):
    return ctx.manages_any(viewer.person_id, record.observee_ids, record.company_id)


def _is_goal_owner(viewer, record, ctx):
    if record.owner_person_id is not None:
        return viewer.person_id == record.owner_person_id
    if record.owner_org_id is not None:
        return ctx.is_member_of_subtree(viewer.person_id, record.owner_org_id)
    return False


def _manages_goal_owner(viewer, record, ctx):
    if record.owner_person_id is None:
        return False
    return ctx.manages_any(viewer.person_id, [record.owner_person_id], record.company_id)


def _is_subject(viewer, record, ctx):
    return record.subject_id is not None and viewer.person_id == record.subject_id


def _manages_subject(viewer, record, ctx):
    if record.subject_id is None:
        return False
    return ctx.manages_any(viewer.person_id, [record.subject_id], record.company_id)


def _maap_manager_of_subject(viewer, record, ctx):
    return ctx.has_company_permission(viewer, record.company_id, 'can_manage_maap') and _manages_subject(
        viewer, record, ctx
    )


def _can_create_employment(viewer, record, ctx):
    return ctx.has_company_permission(viewer, record.company_id, 'can_create_employment')


def _any_of(*rules: Rule) -> Rule:
    def rule(viewer, record, ctx):
        return any(r(viewer, record, ctx) for r in rules)
    return rule


_is_subject_or_manager = _any_of(_is_subject, _manages_subject)


def _always(viewer, record, ctx):
    return True


def _observation_negative_ratings(viewer, record, ctx):
    return (
        _is_creator(viewer, record, ctx)
        or _is_observee(viewer, record, ctx)
        or _manages_observee(viewer, record, ctx)
        or ctx.is_employment_manager(viewer, record.company_id)
    )


# --------------------------------------------------
# DISPATCH TABLE
# --------------------------------------------------
OBSERVATION_POLICY = PolicyDefinition(
    resource_type=ResourceType.OBSERVATION,
    rules={
        PrivacyLevel.OBSERVER_ONLY: _is_creator,
        PrivacyLevel.OBSERVED_ONLY: _any_of(_is_creator, _is_observee),
        PrivacyLevel.MANAGERS_ONLY: _any_of(_is_creator, _manages_observee),
        PrivacyLevel.OBSERVED_AND_MANAGERS: _any_of(_is_creator, _is_observee, _manages_observee),
        PrivacyLevel.PUBLIC_TO_COMPANY: _always,
        PrivacyLevel.PUBLIC_TO_WORLD: _always,
    },
    world_levels=frozenset({PrivacyLevel.PUBLIC_TO_WORLD}),
    override_excluded=frozenset({PrivacyLevel.OBSERVER_ONLY, PrivacyLevel.OBSERVED_ONLY}),
    negative_rating_rule=_observation_negative_ratings,
)

GOAL_POLICY = PolicyDefinition(
    resource_type=ResourceType.GOAL,
    rules={
        GoalPrivacyLevel.ONLY_CREATOR: _is_creator,
        GoalPrivacyLevel.ONLY_CREATOR_AND_OWNER: _any_of(_is_creator, _is_goal_owner),
        GoalPrivacyLevel.ONLY_CREATOR_OWNER_AND_MANAGERS: _any_of(
            _is_creator, _is_goal_owner, _manages_goal_owner
        ),
        GoalPrivacyLevel.EVERYONE_IN_COMPANY: _always,
    },
    override_excluded=frozenset({GoalPrivacyLevel.ONLY_CREATOR, GoalPrivacyLevel.ONLY_CREATOR_AND_OWNER}),
    admin_bypass=True,
)


def _company_member_policy(resource_type):
    return PolicyDefinition(
        resource_type=resource_type,
        rules={COMPANY_MEMBERS: _always},
        default_level=COMPANY_MEMBERS,
    )


CHECK_IN_POLICY = PolicyDefinition(
    resource_type=ResourceType.CHECK_IN,
    rules={SUBJECT_AND_MANAGERS: _any_of(_is_creator, _is_subject_or_manager)},
    default_level=SUBJECT_AND_MANAGERS,
)

# Actions on a person within a company. Employment managers may perform all of
# them except the MAAP audit ones, which need a MAAP manager in the chain.
PERSON_POLICY = PolicyDefinition(
    resource_type=ResourceType.PERSON,
    rules={
        PersonAction.EDIT: _is_subject_or_manager,
        PersonAction.VIEW_CHECK_INS: _is_subject_or_manager,
        PersonAction.AUDIT: _any_of(_is_subject, _maap_manager_of_subject),
        PersonAction.MANAGE_ASSIGNMENTS: _any_of(_is_subject, _maap_manager_of_subject),
        PersonAction.CHANGE_EMPLOYMENT: _manages_subject,
        PersonAction.CREATE_EMPLOYMENT: _can_create_employment,
    },
    override_excluded=frozenset({PersonAction.AUDIT, PersonAction.MANAGE_ASSIGNMENTS}),
    admin_bypass=True,
)

POLICIES: Dict[str, PolicyDefinition] = {
    ResourceType.OBSERVATION: OBSERVATION_POLICY,
    ResourceType.GOAL: GOAL_POLICY,
    ResourceType.ASSIGNMENT: _company_member_policy(ResourceType.ASSIGNMENT),
    ResourceType.ABILITY: _company_member_policy(ResourceType.ABILITY),
    ResourceType.TITLE: _company_member_policy(ResourceType.TITLE),
    ResourceType.POSITION: _company_member_policy(ResourceType.POSITION),
    ResourceType.CHECK_IN: CHECK_IN_POLICY,
    ResourceType.PERSON: PERSON_POLICY,
}


# --------------------------------------------------
# EVALUATION
# --------------------------------------------------
def _decide(viewer: Viewer, record: VisibleRecord, ctx: VisibilityContext) -> VisibilityDecision:
    if not record.is_live:
        return VisibilityDecision(False, 'not_live')
    if record.company_id is None:
        return VisibilityDecision(False, 'no_company')
    if ctx.is_archived(record.company_id):
        return VisibilityDecision(False, 'company_archived')

    policy = POLICIES.get(record.resource_type)
    if policy is None:
        return VisibilityDecision(False, 'unknown_resource_type')
    level = policy.level_of(record)
    rule = policy.rules.get(level)
    if rule is None:
        return VisibilityDecision(False, 'unknown_privacy_level')

    if level in policy.world_levels and record.is_published:
        return VisibilityDecision(True, 'public')

    if viewer.is_anonymous:
        return VisibilityDecision(False, 'anonymous')
    if policy.requires_membership and not (viewer.is_global_admin or ctx.is_member(viewer, record.company_id)):
        return VisibilityDecision(False, 'not_member')

    if policy.admin_bypass and viewer.is_global_admin:
        return VisibilityDecision(True, 'global_admin')

    if not record.is_published:
        if _is_creator(viewer, record, ctx):
            return VisibilityDecision(True, 'draft_creator')
        return VisibilityDecision(False, 'draft')

    if rule(viewer, record, ctx):
        return VisibilityDecision(True, 'privacy_level')

    if level not in policy.override_excluded and ctx.is_employment_manager(viewer, record.company_id):
        return VisibilityDecision(True, 'employment_manager')

    return VisibilityDecision(False, 'privacy_level')


def _as_record(obj) -> VisibleRecord:
    if isinstance(obj, VisibleRecord):
        return obj
    return obj.to_visible_record()


def evaluate(viewer: Viewer, obj, context: Optional[VisibilityContext] = None) -> VisibilityDecision:
    """Single-record decision with the reason it was reached."""
    record = _as_record(obj)
    context = context or database_context()
    decision = _decide(viewer, record, context)

    if getattr(settings, 'VISIBILITY_LOG_DECISIONS', False):
        audit_logger.debug(
            "visibility_decision type=%s id=%s viewer=%s allowed=%s reason=%s",
            record.resource_type,
            record.id,
            viewer.person_id,
            decision.allowed,
            decision.reason,
        )
    return decision


def can_view(viewer: Viewer, obj, context: Optional[VisibilityContext] = None) -> bool:
    return evaluate(viewer, obj, context).allowed


def can_view_negative_ratings(viewer: Viewer, obj, context: Optional[VisibilityContext] = None) -> bool:
    """Narrower decision for the negative ratings on a visible record."""
    record = _as_record(obj)
    context = context or database_context()
    policy = POLICIES.get(record.resource_type)
    if policy is None or policy.negative_rating_rule is None:
        return False
    if not can_view(viewer, record, context):
        return False
    return policy.negative_rating_rule(viewer, record, context)


def visible_ids(viewer: Viewer, objs: Iterable[Any], context: Optional[VisibilityContext] = None) -> Set[Any]:
    """Ids of the records in ``objs`` that ``viewer`` may view."""
    context = context or database_context()
    ids = set()
    for obj in objs:
        record = _as_record(obj)
        if can_view(viewer, record, context):
            ids.add(record.id)
    return ids


def can_act(viewer: Viewer, action: str, person, company, context: Optional[VisibilityContext] = None) -> bool:
    """Whether ``viewer`` may perform a ``PersonAction`` on ``person`` within ``company``."""
    person_id = getattr(person, 'pk', person)
    record = VisibleRecord(
        resource_type=ResourceType.PERSON,
        id=person_id,
        company_id=getattr(company, 'pk', company),
        privacy_level=action,
        subject_id=person_id,
    )
    return evaluate(viewer, record, context).allowed
