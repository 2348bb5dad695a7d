from datetime import timedelta

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.core.choices import GoalPrivacyLevel, OrganizationKind, PrivacyLevel
from apps.core.models import Organization
from apps.employees.models import EmploymentTenure, Person, Teammate
from apps.performance.models import Assignment, CheckIn, Goal, Observation, Observee


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = get_user_model()
    username = factory.Sequence(lambda n: f'user{n}')
    email = factory.Sequence(lambda n: f'user{n}@example.com')
    password = factory.django.Password('testpass123')


class CompanyFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Organization
    name = factory.Sequence(lambda n: f'Company {n}')
    kind = OrganizationKind.COMPANY
    parent = None


class DepartmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Organization
    name = factory.Sequence(lambda n: f'Department {n}')
    kind = OrganizationKind.DEPARTMENT
    parent = factory.SubFactory(CompanyFactory)


class TeamFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Organization
    name = factory.Sequence(lambda n: f'Team {n}')
    kind = OrganizationKind.TEAM
    parent = factory.SubFactory(DepartmentFactory)


class PersonFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Person
    first_name = factory.Sequence(lambda n: f'Person{n}')
    last_name = 'Example'
    email = factory.Sequence(lambda n: f'person{n}@example.com')


class TeammateFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Teammate
    person = factory.SubFactory(PersonFactory)
    organization = factory.SubFactory(CompanyFactory)
    first_employed_at = factory.LazyFunction(lambda: timezone.now() - timedelta(days=365))


class EmploymentTenureFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = EmploymentTenure
    person = factory.SubFactory(PersonFactory)
    organization = factory.SubFactory(CompanyFactory)
    manager = None
    position = 'Engineer'
    started_at = factory.LazyFunction(lambda: timezone.now() - timedelta(days=30))


class GoalFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Goal
    company = factory.SubFactory(CompanyFactory)
    creator = factory.SubFactory(PersonFactory)
    owner_person = factory.SelfAttribute('creator')
    title = factory.Sequence(lambda n: f'Goal {n}')
    privacy_level = GoalPrivacyLevel.EVERYONE_IN_COMPANY


class ObservationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Observation
    company = factory.SubFactory(CompanyFactory)
    observer = factory.SubFactory(PersonFactory)
    story = 'Handled the incident review calmly and clearly.'
    privacy_level = PrivacyLevel.OBSERVED_ONLY
    published_at = factory.LazyFunction(timezone.now)


class ObserveeFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Observee
    observation = factory.SubFactory(ObservationFactory)
    teammate = factory.SubFactory(TeammateFactory)


class AssignmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Assignment
    company = factory.SubFactory(CompanyFactory)
    title = factory.Sequence(lambda n: f'Assignment {n}')


class CheckInFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CheckIn
    company = factory.SubFactory(CompanyFactory)
    subject = factory.SubFactory(PersonFactory)
    author = factory.SelfAttribute('subject')
