"""
Performance Models - Goals, goal links, observations and check-ins
"""

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from apps.core.choices import GoalLinkType, GoalPrivacyLevel, GoalType, PrivacyLevel
from apps.core.models import SoftDeleteModel, TimeStampedModel
from apps.visibility.records import ResourceType, VisibleRecord


class Goal(TimeStampedModel, SoftDeleteModel):
    """
    A goal owned either by a person or by an organization.

    Goals live in exactly one company; links between goals form a directed
    acyclic graph (see ``GoalLink``).
    """

    visibility_resource_type = ResourceType.GOAL

    company = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='goals')
    creator = models.ForeignKey('employees.Person', on_delete=models.CASCADE, related_name='created_goals')
    owner_person = models.ForeignKey(
        'employees.Person',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='owned_goals',
    )
    owner_organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='owned_goals',
    )

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    goal_type = models.CharField(
        max_length=40,
        choices=GoalType.choices,
        default=GoalType.INSPIRATIONAL_OBJECTIVE,
    )
    privacy_level = models.CharField(
        max_length=40,
        choices=GoalPrivacyLevel.choices,
        default=GoalPrivacyLevel.ONLY_CREATOR_OWNER_AND_MANAGERS,
    )
    most_likely_target_date = models.DateField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'privacy_level'], name='goal_company_privacy_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def is_person_owned(self):
        return self.owner_person_id is not None

    @property
    def is_organization_owned(self):
        return self.owner_organization_id is not None

    def clean(self):
        if self.is_person_owned == self.is_organization_owned:
            raise ValidationError({"owner_person": "A goal needs exactly one owner: a person or an organization"})
        if self.is_organization_owned and self.privacy_level == GoalPrivacyLevel.ONLY_CREATOR_AND_OWNER:
            raise ValidationError({"privacy_level": "This privacy level is not valid for an organization-owned goal"})

    def to_visible_record(self):
        return VisibleRecord(
            resource_type=self.visibility_resource_type,
            id=self.pk,
            company_id=self.company_id,
            privacy_level=self.privacy_level,
            is_live=self.is_live,
            creator_id=self.creator_id,
            owner_person_id=self.owner_person_id,
            owner_org_id=self.owner_organization_id,
        )


class GoalLink(TimeStampedModel):
    """Directed, typed edge from ``parent`` to ``child``."""

    parent = models.ForeignKey(Goal, on_delete=models.CASCADE, related_name='outgoing_links')
    child = models.ForeignKey(Goal, on_delete=models.CASCADE, related_name='incoming_links')
    link_type = models.CharField(max_length=40, choices=GoalLinkType.choices, default=GoalLinkType.SUPPORTS)

    class Meta:
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['parent', 'child', 'link_type'],
                name='uq_goal_link_parent_child_type',
            ),
        ]

    def __str__(self):
        return f"{self.parent_id} -[{self.link_type}]-> {self.child_id}"

    def clean(self):
        from apps.core.exceptions import GoalLinkError
        from .services import GoalLinkService

        if not self.parent_id or not self.child_id:
            return
        # A saved link is checked against the graph without its own stored edge
        graph = GoalLinkService.load_graph(self.parent.company_id, exclude_link_id=self.pk)
        try:
            GoalLinkService.validate(self.parent, self.child, self.link_type, graph=graph)
        except GoalLinkError as exc:
            raise ValidationError({exc.field or 'child': exc.message}, code=exc.code)


class Observation(TimeStampedModel, SoftDeleteModel):
    """
    A note written by an observer about one or more observees.

    Drafts (``published_at`` unset) are visible to the observer only.
    """

    visibility_resource_type = ResourceType.OBSERVATION

    company = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='observations')
    observer = models.ForeignKey('employees.Person', on_delete=models.CASCADE, related_name='observations_made')
    story = models.TextField()
    privacy_level = models.CharField(
        max_length=30,
        choices=PrivacyLevel.choices,
        default=PrivacyLevel.OBSERVED_ONLY,
    )
    observed_at = models.DateField(default=timezone.localdate)
    published_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-observed_at', '-created_at']
        indexes = [
            models.Index(fields=['company', 'privacy_level', 'published_at'], name='obs_company_privacy_idx'),
        ]

    def __str__(self):
        return f"Observation by {self.observer_id} on {self.observed_at}"

    @property
    def is_published(self):
        return self.published_at is not None

    def publish(self, at=None):
        if self.published_at is None:
            self.published_at = at or timezone.now()
            self.save(update_fields=['published_at', 'updated_at'])

    def observee_person_ids(self):
        # Uses the prefetch cache when loaded with prefetch_related('observees__teammate')
        return frozenset(observee.teammate.person_id for observee in self.observees.all())

    def has_negative_ratings(self):
        return any(rating.is_negative for rating in self.ratings.all())

    def to_visible_record(self):
        return VisibleRecord(
            resource_type=self.visibility_resource_type,
            id=self.pk,
            company_id=self.company_id,
            privacy_level=self.privacy_level,
            is_live=self.is_live,
            is_published=self.is_published,
            creator_id=self.observer_id,
            observee_ids=self.observee_person_ids(),
            has_negative_ratings=self.has_negative_ratings(),
        )


class Observee(TimeStampedModel):
    """Links an observation to a teammate it is about."""

    observation = models.ForeignKey(Observation, on_delete=models.CASCADE, related_name='observees')
    teammate = models.ForeignKey('employees.Teammate', on_delete=models.CASCADE, related_name='observed_in')

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['observation', 'teammate'], name='uq_observee_observation_teammate'),
        ]

    def __str__(self):
        return f"{self.teammate_id} in {self.observation_id}"


class ObservationRating(TimeStampedModel):
    """Agreement rating attached to an observation."""

    RATING_CHOICES = [
        ('strongly_agree', 'Exceptional'),
        ('agree', 'Good'),
        ('na', 'N/A'),
        ('disagree', 'Opportunity for improvement'),
        ('strongly_disagree', 'Major concern'),
    ]
    NEGATIVE_RATINGS = ('disagree', 'strongly_disagree')

    observation = models.ForeignKey(Observation, on_delete=models.CASCADE, related_name='ratings')
    subject = models.CharField(max_length=255, help_text="Ability, assignment or aspiration being rated")
    rating = models.CharField(max_length=20, choices=RATING_CHOICES, default='na')

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.subject}: {self.rating}"

    @property
    def is_negative(self):
        return self.rating in self.NEGATIVE_RATINGS


class Assignment(TimeStampedModel, SoftDeleteModel):
    """Outcome-oriented responsibility defined for a company."""

    visibility_resource_type = ResourceType.ASSIGNMENT

    company = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='assignments')
    title = models.CharField(max_length=255)
    tagline = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['title']

    def __str__(self):
        return self.title

    def to_visible_record(self):
        return VisibleRecord(
            resource_type=self.visibility_resource_type,
            id=self.pk,
            company_id=self.company_id,
            is_live=self.is_live,
        )


class CheckIn(TimeStampedModel, SoftDeleteModel):
    """Periodic check-in about one person's progress."""

    visibility_resource_type = ResourceType.CHECK_IN

    company = models.ForeignKey('core.Organization', on_delete=models.CASCADE, related_name='check_ins')
    subject = models.ForeignKey('employees.Person', on_delete=models.CASCADE, related_name='check_ins')
    author = models.ForeignKey('employees.Person', on_delete=models.CASCADE, related_name='authored_check_ins')
    check_in_started_on = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['-check_in_started_on']

    def __str__(self):
        return f"Check-in for {self.subject_id} on {self.check_in_started_on}"

    def to_visible_record(self):
        return VisibleRecord(
            resource_type=self.visibility_resource_type,
            id=self.pk,
            company_id=self.company_id,
            is_live=self.is_live,
            creator_id=self.author_id,
            subject_id=self.subject_id,
        )
