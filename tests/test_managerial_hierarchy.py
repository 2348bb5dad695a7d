"""
Managerial hierarchy: reporting closures, scoping and manager-cycle handling
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from kombu.exceptions import OperationalError

from apps.core.choices import OrganizationKind, PrivacyLevel
from apps.core.org_hierarchy import OrgHierarchy, OrgNode, load_org_hierarchy
from apps.employees.hierarchy import EmploymentEdge, HierarchyEntry, ManagerialHierarchy
from apps.employees.models import HierarchyAnomaly
from apps.employees.queries import load_managerial_hierarchy
from apps.visibility.context import database_context
from apps.visibility.policies import can_view
from apps.visibility.viewer import Viewer

from .factories import (
    CompanyFactory,
    DepartmentFactory,
    EmploymentTenureFactory,
    ObservationFactory,
    ObserveeFactory,
    PersonFactory,
    TeammateFactory,
)

NOW = datetime(2026, 6, 1, tzinfo=dt_timezone.utc)
LAST_YEAR = NOW - timedelta(days=365)

TREE = OrgHierarchy([
    OrgNode('acme', None, OrganizationKind.COMPANY, 'Acme'),
    OrgNode('eng', 'acme', OrganizationKind.DEPARTMENT, 'Eng'),
    OrgNode('sales', 'acme', OrganizationKind.DEPARTMENT, 'Sales'),
    OrgNode('platform', 'eng', OrganizationKind.TEAM, 'Platform'),
])


def edge(person, manager, org='eng', position='Engineer', started_at=LAST_YEAR, ended_at=None):
    return EmploymentEdge(person, org, manager, started_at, ended_at, position)


class ReportingClosureTests(SimpleTestCase):

    def setUp(self):
        # 1 manages 2 and 3; 3 manages 4 (in platform); 5 reports to 1 in sales
        self.hierarchy = ManagerialHierarchy(
            [
                edge(2, 1),
                edge(3, 1, position='Lead'),
                edge(4, 3, org='platform'),
                edge(5, 1, org='sales', position='Account executive'),
                edge(1, None, org='acme', position='CTO'),
            ],
            TREE,
            as_of=NOW,
        )

    def test_reports_sorted_by_level_then_id(self):
        self.assertEqual(
            self.hierarchy.reports_of(1, 'acme'),
            [
                HierarchyEntry(2, 1, 'Engineer', 'eng'),
                HierarchyEntry(3, 1, 'Lead', 'eng'),
                HierarchyEntry(5, 1, 'Account executive', 'sales'),
                HierarchyEntry(4, 2, 'Engineer', 'platform'),
            ],
        )

    def test_scope_restricts_to_org_subtree(self):
        self.assertEqual([e.person_id for e in self.hierarchy.reports_of(1, 'eng')], [2, 3, 4])
        self.assertEqual([e.person_id for e in self.hierarchy.reports_of(1, 'sales')], [5])

    def test_managers_walk_upwards(self):
        managers = self.hierarchy.managers_of(4, 'acme')
        self.assertEqual([(e.person_id, e.level) for e in managers], [(3, 1), (1, 2)])
        self.assertEqual(managers[0].position, 'Lead')
        self.assertEqual(managers[1].organization_id, 'acme')

    def test_adjacent_levels_are_inverse(self):
        for person_id in (2, 3, 4, 5):
            first_manager = self.hierarchy.managers_of(person_id, 'acme')[0]
            reports = self.hierarchy.reports_of(first_manager.person_id, 'acme')
            self.assertIn(person_id, [e.person_id for e in reports])

    def test_is_in_hierarchy_of(self):
        self.assertTrue(self.hierarchy.is_in_hierarchy_of(1, 4, 'acme'))
        self.assertFalse(self.hierarchy.is_in_hierarchy_of(4, 1, 'acme'))
        self.assertFalse(self.hierarchy.is_in_hierarchy_of(2, 3, 'acme'))

    def test_person_without_tenure_has_empty_hierarchy(self):
        self.assertEqual(self.hierarchy.reports_of(99, 'acme'), [])
        self.assertEqual(self.hierarchy.managers_of(99, 'acme'), [])

    def test_ended_and_future_edges_are_ignored(self):
        hierarchy = ManagerialHierarchy(
            [
                edge(2, 1, ended_at=NOW - timedelta(days=1)),
                edge(3, 1, started_at=NOW + timedelta(days=1)),
                edge(4, 1, ended_at=NOW + timedelta(days=1)),
            ],
            TREE,
            as_of=NOW,
        )
        self.assertEqual([e.person_id for e in hierarchy.reports_of(1, 'acme')], [4])
        self.assertEqual(len(hierarchy), 1)

    def test_diamond_is_not_an_anomaly(self):
        flagged = []
        hierarchy = ManagerialHierarchy(
            [edge(2, 1), edge(3, 1), edge(4, 2), edge(4, 3, org='platform')],
            TREE,
            as_of=NOW,
            on_anomaly=lambda org_id, people: flagged.append(people),
        )
        self.assertEqual([e.person_id for e in hierarchy.reports_of(1, 'acme')], [2, 3, 4])
        self.assertEqual(flagged, [])
        self.assertEqual(hierarchy.anomalies, [])


class ManagerCycleTests(SimpleTestCase):

    def test_two_person_cycle_terminates_and_deduplicates(self):
        flagged = []
        hierarchy = ManagerialHierarchy(
            [edge('x', 'y'), edge('y', 'x')],
            TREE,
            as_of=NOW,
            on_anomaly=lambda org_id, people: flagged.append((org_id, people)),
        )
        with self.assertLogs('employees.hierarchy', level='WARNING'):
            reports = hierarchy.reports_of('x', 'acme')

        self.assertEqual(reports, [HierarchyEntry('y', 1, 'Engineer', 'eng')])
        self.assertEqual(flagged, [('acme', ['x', 'y'])])

    def test_cycle_is_flagged_once_per_snapshot(self):
        flagged = []
        hierarchy = ManagerialHierarchy(
            [edge('x', 'y'), edge('y', 'z'), edge('z', 'x')],
            TREE,
            as_of=NOW,
            on_anomaly=lambda org_id, people: flagged.append(people),
        )
        with self.assertLogs('employees.hierarchy', level='WARNING'):
            hierarchy.reports_of('x', 'acme')
            hierarchy.managers_of('x', 'acme')
            hierarchy.reports_of('y', 'acme')

        self.assertEqual(len(flagged), 1)
        self.assertEqual(set(flagged[0]), {'x', 'y', 'z'})
        self.assertEqual(len(hierarchy.anomalies), 1)

    def test_cycle_below_start_is_found(self):
        hierarchy = ManagerialHierarchy(
            [edge('a', 'boss'), edge('b', 'a'), edge('a', 'b', org='platform')],
            TREE,
            as_of=NOW,
        )
        with self.assertLogs('employees.hierarchy', level='WARNING'):
            reports = hierarchy.reports_of('boss', 'acme')

        self.assertEqual([(e.person_id, e.level) for e in reports], [('a', 1), ('b', 2)])
        self.assertEqual([set(cycle) for cycle in hierarchy.anomalies], [{'a', 'b'}])


class ManagerialHierarchyLoaderTests(TestCase):

    def setUp(self):
        cache.clear()
        self.company = CompanyFactory(name='Acme')
        self.eng = DepartmentFactory(name='Eng', parent=self.company)
        self.other_company = CompanyFactory(name='Globex')
        self.manager = PersonFactory()
        self.report = PersonFactory()

    def test_loader_builds_hierarchy_from_active_tenures(self):
        EmploymentTenureFactory(person=self.report, organization=self.eng, manager=self.manager)
        EmploymentTenureFactory(
            person=PersonFactory(),
            organization=self.eng,
            manager=self.manager,
            ended_at=timezone.now() - timedelta(days=1),
        )
        EmploymentTenureFactory(person=PersonFactory(), organization=self.other_company, manager=self.manager)
        tree = load_org_hierarchy()

        with self.assertNumQueries(1):
            hierarchy = load_managerial_hierarchy(self.company.id, org_hierarchy=tree)

        self.assertEqual(
            [e.person_id for e in hierarchy.reports_of(self.manager.id, self.company.id)],
            [self.report.id],
        )
        self.assertTrue(hierarchy.is_in_hierarchy_of(self.manager.id, self.report.id, self.company.id))
        self.assertFalse(hierarchy.is_in_hierarchy_of(self.report.id, self.manager.id, self.company.id))

    def test_manager_cycle_records_anomaly(self):
        EmploymentTenureFactory(person=self.report, organization=self.eng, manager=self.manager)
        EmploymentTenureFactory(person=self.manager, organization=self.eng, manager=self.report)

        hierarchy = load_managerial_hierarchy(self.company.id)
        with self.assertLogs('employees.hierarchy', level='WARNING'):
            reports = hierarchy.reports_of(self.manager.id, self.company.id)

        self.assertEqual([e.person_id for e in reports], [self.report.id])
        anomaly = HierarchyAnomaly.objects.get()
        self.assertEqual(anomaly.organization_id, self.company.id)
        self.assertEqual(set(anomaly.person_ids), {str(self.manager.id), str(self.report.id)})

    def test_repeated_cycle_reports_keep_one_open_anomaly(self):
        EmploymentTenureFactory(person=self.report, organization=self.eng, manager=self.manager)
        EmploymentTenureFactory(person=self.manager, organization=self.eng, manager=self.report)

        with self.assertLogs('employees.hierarchy', level='WARNING'):
            load_managerial_hierarchy(self.company.id).reports_of(self.manager.id, self.company.id)
            load_managerial_hierarchy(self.company.id).reports_of(self.report.id, self.company.id)

        self.assertEqual(HierarchyAnomaly.objects.count(), 1)

    def test_decision_survives_unreachable_broker(self):
        TeammateFactory(person=self.manager, organization=self.eng)
        report_teammate = TeammateFactory(person=self.report, organization=self.eng)
        EmploymentTenureFactory(person=self.report, organization=self.eng, manager=self.manager)
        EmploymentTenureFactory(person=self.manager, organization=self.eng, manager=self.report)
        observation = ObservationFactory(company=self.company, privacy_level=PrivacyLevel.MANAGERS_ONLY)
        ObserveeFactory(observation=observation, teammate=report_teammate)
        viewer = Viewer.for_person(self.manager, self.company)

        with mock.patch(
            'apps.employees.tasks.record_hierarchy_anomaly.delay',
            side_effect=OperationalError('broker unreachable'),
        ):
            with self.assertLogs('employees.hierarchy', level='WARNING') as logs:
                allowed = can_view(viewer, observation, database_context())

        self.assertTrue(allowed)
        self.assertTrue(any('recording inline' in line for line in logs.output))
        anomaly = HierarchyAnomaly.objects.get()
        self.assertEqual(set(anomaly.person_ids), {str(self.manager.id), str(self.report.id)})

    def test_ended_tenure_leaves_the_hierarchy(self):
        tenure = EmploymentTenureFactory(person=self.report, organization=self.eng, manager=self.manager)
        tenure.end()

        hierarchy = load_managerial_hierarchy(self.company.id)

        self.assertEqual(hierarchy.reports_of(self.manager.id, self.company.id), [])
        tenure.refresh_from_db()
        self.assertIsNotNone(tenure.ended_at)
