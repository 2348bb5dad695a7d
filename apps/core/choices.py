"""
Core Choices - Closed enumerations shared across apps
"""

from django.db import models


class OrganizationKind(models.TextChoices):
    COMPANY = 'company', 'Company'
    DEPARTMENT = 'department', 'Department'
    TEAM = 'team', 'Team'


class PrivacyLevel(models.TextChoices):
    """Observation audience, ordered by increasing size."""

    OBSERVER_ONLY = 'observer_only', 'Just for me (journal)'
    OBSERVED_ONLY = 'observed_only', 'Observer and observees'
    MANAGERS_ONLY = 'managers_only', 'Observer and observee managers'
    OBSERVED_AND_MANAGERS = 'observed_and_managers', 'Observees and their managers'
    PUBLIC_TO_COMPANY = 'public_to_company', 'Everyone in the company'
    PUBLIC_TO_WORLD = 'public_to_world', 'Public'


class GoalPrivacyLevel(models.TextChoices):
    """Goal audience, ordered by increasing size."""

    ONLY_CREATOR = 'only_creator', 'Only the creator'
    ONLY_CREATOR_AND_OWNER = 'only_creator_and_owner', 'Creator and owner'
    ONLY_CREATOR_OWNER_AND_MANAGERS = 'only_creator_owner_and_managers', 'Creator, owner and managers'
    EVERYONE_IN_COMPANY = 'everyone_in_company', 'Everyone in the company'


class GoalType(models.TextChoices):
    INSPIRATIONAL_OBJECTIVE = 'inspirational_objective', 'Inspirational objective'
    QUALITATIVE_KEY_RESULT = 'qualitative_key_result', 'Qualitative key result'
    QUANTITATIVE_KEY_RESULT = 'quantitative_key_result', 'Quantitative key result'
    STEPPING_STONE_ACTIVITY = 'stepping_stone_activity', 'Stepping stone activity'


class GoalLinkType(models.TextChoices):
    KEY_RESULT_OF = 'this_is_key_result_of_that', 'Is a key result of'
    SUPPORTS = 'this_supports_that', 'Supports'
    BLOCKS = 'this_blocks_that', 'Blocks'
