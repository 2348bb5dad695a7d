"""
Visibility policies evaluated over an in-memory snapshot (no database)

Acme (company)
├── Eng (department)          M2 manages M1, M1 manages R
│   └── Platform (team)       P works here
└── Sales (department)        U works here, unrelated to Eng
Globex (company)              X works here
HR is an employment manager at Acme; G is a global admin.
"""

from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from apps.core.choices import GoalPrivacyLevel, OrganizationKind, PrivacyLevel
from apps.core.org_hierarchy import OrgHierarchy, OrgNode
from apps.employees.hierarchy import EmploymentEdge
from apps.visibility.context import TeammateFacts, VisibilityContext
from apps.visibility.policies import can_act, can_view, can_view_negative_ratings, evaluate, visible_ids
from apps.visibility.records import PersonAction, ResourceType, VisibleRecord
from apps.visibility.viewer import Viewer

NOW = datetime(2026, 6, 1, tzinfo=dt_timezone.utc)
HIRED = NOW - timedelta(days=400)

TREE = OrgHierarchy([
    OrgNode('acme', None, OrganizationKind.COMPANY, 'Acme'),
    OrgNode('eng', 'acme', OrganizationKind.DEPARTMENT, 'Eng'),
    OrgNode('platform', 'eng', OrganizationKind.TEAM, 'Platform'),
    OrgNode('sales', 'acme', OrganizationKind.DEPARTMENT, 'Sales'),
    OrgNode('globex', None, OrganizationKind.COMPANY, 'Globex'),
])

EDGES = [
    EmploymentEdge('R', 'eng', 'M1', HIRED),
    EmploymentEdge('M1', 'eng', 'M2', HIRED),
    EmploymentEdge('M2', 'eng', None, HIRED),
    EmploymentEdge('O', 'eng', None, HIRED),
    EmploymentEdge('P', 'platform', None, HIRED),
    EmploymentEdge('U', 'sales', None, HIRED),
]

TEAMMATES = [
    TeammateFacts('O', 'eng'),
    TeammateFacts('R', 'eng'),
    TeammateFacts('M1', 'eng'),
    TeammateFacts('M2', 'eng'),
    TeammateFacts('P', 'platform'),
    TeammateFacts('U', 'sales'),
    TeammateFacts('HR', 'acme', can_manage_employment=True),
    TeammateFacts('EX', 'eng', active=False),
    TeammateFacts('X', 'globex'),
]


def viewer(person_id, org='acme', **kwargs):
    return Viewer(person_id=person_id, acting_organization_id=org, **kwargs)


ANONYMOUS = Viewer.anonymous()
GLOBAL_ADMIN = Viewer(person_id='G', is_global_admin=True)


class PolicyTestCase(SimpleTestCase):

    def setUp(self):
        self.context = VisibilityContext.from_snapshot(TREE, EDGES, TEAMMATES, as_of=NOW)

    def allowed(self, principal, record):
        return can_view(principal, record, self.context)

    def assertSees(self, record, *principals):
        for principal in principals:
            self.assertTrue(self.allowed(principal, record), f"{principal} should see {record}")

    def assertBlind(self, record, *principals):
        for principal in principals:
            self.assertFalse(self.allowed(principal, record), f"{principal} should not see {record}")


def observation(level, published=True, **kwargs):
    values = dict(
        resource_type=ResourceType.OBSERVATION,
        id=1,
        company_id='acme',
        privacy_level=level,
        is_published=published,
        creator_id='O',
        observee_ids=frozenset({'R'}),
    )
    values.update(kwargs)
    return VisibleRecord(**values)


class ObservationPolicyTests(PolicyTestCase):

    def test_observer_only_is_private_journal(self):
        record = observation(PrivacyLevel.OBSERVER_ONLY)
        self.assertSees(record, viewer('O'))
        self.assertBlind(record, viewer('R'), viewer('M1'), viewer('HR'), GLOBAL_ADMIN)

    def test_observed_only(self):
        record = observation(PrivacyLevel.OBSERVED_ONLY)
        self.assertSees(record, viewer('O'), viewer('R'))
        self.assertBlind(record, viewer('M1'), viewer('M2'), viewer('HR'))

    def test_managers_only_covers_whole_management_chain(self):
        record = observation(PrivacyLevel.MANAGERS_ONLY)
        self.assertSees(record, viewer('O'), viewer('M1'), viewer('M2'))
        self.assertBlind(record, viewer('R'), viewer('U'), viewer('P'))

    def test_observed_and_managers(self):
        record = observation(PrivacyLevel.OBSERVED_AND_MANAGERS)
        self.assertSees(record, viewer('O'), viewer('R'), viewer('M2'))
        self.assertBlind(record, viewer('U'))

    def test_public_to_company(self):
        record = observation(PrivacyLevel.PUBLIC_TO_COMPANY)
        self.assertSees(record, viewer('U'), viewer('P'))
        self.assertBlind(record, viewer('X', org='globex'), ANONYMOUS, viewer('EX'))

    def test_public_to_world_allows_anonymous(self):
        record = observation(PrivacyLevel.PUBLIC_TO_WORLD)
        self.assertSees(record, ANONYMOUS, viewer('X', org='globex'), viewer('U'))

    def test_draft_is_visible_to_creator_only(self):
        for level in PrivacyLevel.values:
            record = observation(level, published=False)
            self.assertSees(record, viewer('O'))
            self.assertBlind(record, ANONYMOUS, viewer('R'), viewer('M2'), viewer('HR'), GLOBAL_ADMIN)

    def test_employment_manager_override(self):
        for level in (PrivacyLevel.MANAGERS_ONLY, PrivacyLevel.OBSERVED_AND_MANAGERS):
            self.assertSees(observation(level), viewer('HR'), GLOBAL_ADMIN)
        decision = evaluate(viewer('HR'), observation(PrivacyLevel.MANAGERS_ONLY), self.context)
        self.assertEqual(decision.reason, 'employment_manager')

    def test_employment_manager_of_other_company_has_no_override(self):
        context = VisibilityContext.from_snapshot(
            TREE, EDGES, TEAMMATES + [TeammateFacts('HR2', 'globex', can_manage_employment=True)], as_of=NOW,
        )
        self.assertFalse(can_view(viewer('HR2', org='globex'), observation(PrivacyLevel.MANAGERS_ONLY), context))

    def test_fail_closed_preconditions(self):
        self.assertEqual(
            evaluate(viewer('O'), observation(PrivacyLevel.PUBLIC_TO_WORLD, is_live=False), self.context).reason,
            'not_live',
        )
        self.assertEqual(
            evaluate(viewer('O'), observation(PrivacyLevel.PUBLIC_TO_WORLD, company_id=None), self.context).reason,
            'no_company',
        )
        self.assertEqual(
            evaluate(viewer('O'), observation('friends_only'), self.context).reason,
            'unknown_privacy_level',
        )
        self.assertEqual(
            evaluate(viewer('O'), observation(None, resource_type='payslip'), self.context).reason,
            'unknown_resource_type',
        )

    def test_negative_ratings_need_a_personal_stake(self):
        record = observation(PrivacyLevel.PUBLIC_TO_COMPANY, has_negative_ratings=True)
        self.assertTrue(self.allowed(viewer('U'), record))
        self.assertFalse(can_view_negative_ratings(viewer('U'), record, self.context))
        for person_id in ('O', 'R', 'M1', 'M2', 'HR'):
            self.assertTrue(can_view_negative_ratings(viewer(person_id), record, self.context))

    def test_negative_ratings_require_visibility(self):
        record = observation(PrivacyLevel.OBSERVER_ONLY)
        self.assertFalse(can_view_negative_ratings(viewer('R'), record, self.context))

    def test_decisions_are_logged_to_audit_logger(self):
        with self.assertLogs('visibility.audit', level='DEBUG') as logs:
            evaluate(viewer('U'), observation(PrivacyLevel.OBSERVER_ONLY), self.context)
        self.assertIn('allowed=False', logs.output[0])


def goal(level, **kwargs):
    values = dict(
        resource_type=ResourceType.GOAL,
        id=10,
        company_id='acme',
        privacy_level=level,
        creator_id='O',
        owner_person_id='R',
    )
    values.update(kwargs)
    return VisibleRecord(**values)


class GoalPolicyTests(PolicyTestCase):

    def test_only_creator(self):
        record = goal(GoalPrivacyLevel.ONLY_CREATOR)
        self.assertSees(record, viewer('O'), GLOBAL_ADMIN)
        self.assertBlind(record, viewer('R'), viewer('M1'), viewer('HR'))

    def test_creator_and_owner(self):
        record = goal(GoalPrivacyLevel.ONLY_CREATOR_AND_OWNER)
        self.assertSees(record, viewer('O'), viewer('R'))
        self.assertBlind(record, viewer('M1'), viewer('HR'), viewer('U'))

    def test_creator_owner_and_managers(self):
        record = goal(GoalPrivacyLevel.ONLY_CREATOR_OWNER_AND_MANAGERS)
        self.assertSees(record, viewer('O'), viewer('R'), viewer('M1'), viewer('M2'), viewer('HR'))
        self.assertBlind(record, viewer('U'), viewer('P'))

    def test_everyone_in_company(self):
        record = goal(GoalPrivacyLevel.EVERYONE_IN_COMPANY)
        self.assertSees(record, viewer('U'), viewer('P'))
        self.assertBlind(record, viewer('X', org='globex'), ANONYMOUS)

    def test_organization_owner_includes_subtree_members(self):
        record = goal(GoalPrivacyLevel.ONLY_CREATOR_OWNER_AND_MANAGERS, owner_person_id=None, owner_org_id='eng')
        self.assertSees(record, viewer('R'), viewer('P'))
        self.assertBlind(record, viewer('U'), viewer('EX'))

    def test_global_admin_sees_live_goals_only(self):
        self.assertTrue(self.allowed(GLOBAL_ADMIN, goal(GoalPrivacyLevel.ONLY_CREATOR)))
        self.assertFalse(self.allowed(GLOBAL_ADMIN, goal(GoalPrivacyLevel.ONLY_CREATOR, is_live=False)))


class OtherResourcePolicyTests(PolicyTestCase):

    def test_company_member_resources(self):
        for resource_type in (ResourceType.ASSIGNMENT, ResourceType.ABILITY, ResourceType.TITLE, ResourceType.POSITION):
            record = VisibleRecord(resource_type=resource_type, id=5, company_id='acme')
            self.assertSees(record, viewer('U'), viewer('P'), GLOBAL_ADMIN)
            self.assertBlind(record, viewer('X', org='globex'), ANONYMOUS, viewer('EX'))

    def test_check_in_follows_subject_management_chain(self):
        record = VisibleRecord(
            resource_type=ResourceType.CHECK_IN, id=7, company_id='acme', creator_id='M1', subject_id='R',
        )
        self.assertSees(record, viewer('R'), viewer('M1'), viewer('M2'), viewer('HR'))
        self.assertBlind(record, viewer('U'), viewer('O'))

    def test_visible_ids(self):
        records = [
            observation(PrivacyLevel.OBSERVER_ONLY, id=1),
            observation(PrivacyLevel.PUBLIC_TO_COMPANY, id=2),
            goal(GoalPrivacyLevel.EVERYONE_IN_COMPANY, id=3),
            goal(GoalPrivacyLevel.ONLY_CREATOR, id=4),
        ]
        self.assertEqual(visible_ids(viewer('U'), records, self.context), {2, 3})
        self.assertEqual(visible_ids(viewer('O'), records, self.context), {1, 2, 3, 4})

    def test_archived_company_denies_every_record(self):
        tree = OrgHierarchy([
            OrgNode('acme', None, OrganizationKind.COMPANY, 'Acme', archived=True),
            OrgNode('eng', 'acme', OrganizationKind.DEPARTMENT, 'Eng'),
        ])
        context = VisibilityContext.from_snapshot(tree, EDGES, TEAMMATES, as_of=NOW)
        for record in (observation(PrivacyLevel.PUBLIC_TO_WORLD), goal(GoalPrivacyLevel.EVERYONE_IN_COMPANY)):
            decision = evaluate(viewer('O'), record, context)
            self.assertFalse(decision.allowed)
            self.assertEqual(decision.reason, 'company_archived')


class PersonActionPolicyTests(PolicyTestCase):
    """R reports to M1, who reports to M2; M2 and U hold MAAP rights, HC may create employment."""

    def setUp(self):
        self.context = VisibilityContext.from_snapshot(
            TREE,
            EDGES,
            TEAMMATES + [
                TeammateFacts('M2', 'acme', can_manage_maap=True),
                TeammateFacts('U', 'acme', can_manage_maap=True),
                TeammateFacts('HC', 'acme', can_create_employment=True),
            ],
            as_of=NOW,
        )

    def act(self, principal, action, subject='R'):
        return can_act(principal, action, subject, 'acme', self.context)

    def test_edit_and_check_ins_follow_the_management_chain(self):
        for action in (PersonAction.EDIT, PersonAction.VIEW_CHECK_INS):
            for person_id in ('R', 'M1', 'M2', 'HR'):
                self.assertTrue(self.act(viewer(person_id), action), f"{person_id} {action}")
            self.assertTrue(self.act(GLOBAL_ADMIN, action))
            for principal in (viewer('U'), viewer('P'), viewer('X', org='globex'), ANONYMOUS):
                self.assertFalse(self.act(principal, action), f"{principal} {action}")

    def test_change_employment_is_for_managers_not_self(self):
        self.assertFalse(self.act(viewer('R'), PersonAction.CHANGE_EMPLOYMENT))
        self.assertTrue(self.act(viewer('M1'), PersonAction.CHANGE_EMPLOYMENT))
        self.assertTrue(self.act(viewer('HR'), PersonAction.CHANGE_EMPLOYMENT))
        self.assertFalse(self.act(viewer('U'), PersonAction.CHANGE_EMPLOYMENT))

    def test_audit_needs_a_maap_manager_in_the_chain(self):
        for action in (PersonAction.AUDIT, PersonAction.MANAGE_ASSIGNMENTS):
            self.assertTrue(self.act(viewer('R'), action))
            self.assertTrue(self.act(viewer('M2'), action))
            # in the chain without MAAP rights, MAAP rights outside the chain
            self.assertFalse(self.act(viewer('M1'), action))
            self.assertFalse(self.act(viewer('U'), action))
            self.assertFalse(self.act(viewer('HR'), action))

    def test_create_employment_reads_the_teammate_flag(self):
        self.assertTrue(self.act(viewer('HC'), PersonAction.CREATE_EMPLOYMENT))
        self.assertTrue(self.act(viewer('HR'), PersonAction.CREATE_EMPLOYMENT))
        self.assertFalse(self.act(viewer('M2'), PersonAction.CREATE_EMPLOYMENT))

    def test_unknown_action_is_denied(self):
        record = VisibleRecord(
            resource_type=ResourceType.PERSON, id='R', company_id='acme', privacy_level='impersonate', subject_id='R',
        )
        self.assertEqual(evaluate(viewer('R'), record, self.context).reason, 'unknown_privacy_level')
