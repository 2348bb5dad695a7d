"""
Performance services - goal linking and observation lifecycle
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from django.db import IntegrityError, transaction

from apps.core.choices import PrivacyLevel
from apps.core.exceptions import (
    DuplicateLinkError,
    GoalLinkError,
    InvalidGoalLinkError,
    PermissionDeniedException,
    ValidationException,
)
from apps.core.models import Organization

from .goal_graph import GoalGraph
from .models import Goal, GoalLink

logger = logging.getLogger(__name__)


@dataclass
class LinkResult:
    link: Optional[GoalLink] = None
    errors: Dict[str, List[str]] = field(default_factory=dict)
    error: Optional[GoalLinkError] = None

    @property
    def ok(self) -> bool:
        return self.link is not None and not self.errors


class GoalLinkService:
    """Validates and creates goal links without ever leaving a cycle behind."""

    @staticmethod
    def load_graph(company_id, exclude_link_id=None) -> GoalGraph:
        """All links between the company's goals, in one query."""
        links = GoalLink.objects.filter(parent__company_id=company_id)
        if exclude_link_id is not None:
            links = links.exclude(pk=exclude_link_id)
        return GoalGraph(links.values_list('parent_id', 'child_id', 'link_type'))

    @staticmethod
    def check_goals(parent: Goal, child: Goal) -> None:
        if not parent.is_live or not child.is_live:
            raise InvalidGoalLinkError("Archived goals cannot be linked")
        if parent.company_id != child.company_id:
            raise InvalidGoalLinkError("Linked goals must belong to the same company")
        if child.is_organization_owned and parent.is_person_owned:
            raise InvalidGoalLinkError(
                "An organization goal cannot be the child of a personal goal"
            )

    @classmethod
    def validate(cls, parent: Goal, child: Goal, link_type: str, graph: Optional[GoalGraph] = None) -> GoalGraph:
        if parent.pk == child.pk:
            raise InvalidGoalLinkError("A goal cannot be linked to itself")
        cls.check_goals(parent, child)
        graph = graph if graph is not None else cls.load_graph(parent.company_id)
        graph.validate_link(parent.pk, child.pk, link_type)
        return graph

    @classmethod
    def create_link(cls, parent: Goal, child: Goal, link_type: str) -> LinkResult:
        """
        Create ``parent -> child`` if it is unique and keeps the graph acyclic.

        Validation failures come back as field errors on the result; nothing
        is written unless every check passed.
        """
        try:
            with transaction.atomic():
                # One linker per company at a time: two links with disjoint
                # endpoints can still close a cycle together.
                Organization.objects.select_for_update().filter(pk=parent.company_id).first()
                locked = Goal.all_objects.select_for_update().in_bulk([parent.pk, child.pk])
                parent = locked.get(parent.pk, parent)
                child = locked.get(child.pk, child)
                cls.validate(parent, child, link_type)
                try:
                    with transaction.atomic():
                        link = GoalLink.objects.create(parent=parent, child=child, link_type=link_type)
                except IntegrityError:
                    raise DuplicateLinkError(parent.pk, child.pk, link_type)
        except GoalLinkError as exc:
            logger.info(
                "Goal link %s -> %s (%s) rejected: %s",
                parent.pk, child.pk, link_type, exc.code,
            )
            return LinkResult(errors={exc.field or 'child': [exc.message]}, error=exc)

        logger.info("Goal link %s created: %s -> %s (%s)", link.pk, parent.pk, child.pk, link_type)
        return LinkResult(link=link)


class ObservationService:
    """Observer-only mutations of an observation."""

    @staticmethod
    def _ensure_observer(observation, person):
        if person is None or observation.observer_id != person.pk:
            raise PermissionDeniedException("Only the observer can change this observation")

    @classmethod
    def publish(cls, observation, person):
        cls._ensure_observer(observation, person)
        observation.publish()
        logger.info("Observation %s published by %s", observation.pk, person.pk)
        return observation

    @classmethod
    def change_privacy_level(cls, observation, person, privacy_level):
        cls._ensure_observer(observation, person)
        if privacy_level not in PrivacyLevel.values:
            raise ValidationException(f"Unknown privacy level: {privacy_level}", field='privacy_level')
        if observation.is_published:
            raise ValidationException(
                "Privacy level cannot change after publishing",
                field='privacy_level',
                code='observation_published',
            )
        observation.privacy_level = privacy_level
        observation.save(update_fields=['privacy_level', 'updated_at'])
        return observation
