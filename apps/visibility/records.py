"""
Protected-record values consumed by the visibility policies.

Models adapt themselves to ``VisibleRecord`` through ``to_visible_record()``
so the policies never touch the ORM.
"""

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional


class ResourceType:
    OBSERVATION = 'observation'
    GOAL = 'goal'
    ASSIGNMENT = 'assignment'
    ABILITY = 'ability'
    TITLE = 'title'
    POSITION = 'position'
    CHECK_IN = 'check_in'
    PERSON = 'person'


class PersonAction:
    """Actions on a person, evaluated like privacy levels of a ``person`` record."""

    EDIT = 'edit'
    VIEW_CHECK_INS = 'view_check_ins'
    AUDIT = 'audit'
    MANAGE_ASSIGNMENTS = 'manage_assignments'
    CHANGE_EMPLOYMENT = 'change_employment'
    CREATE_EMPLOYMENT = 'create_employment'


@dataclass(frozen=True)
class VisibleRecord:
    resource_type: str
    id: Any
    company_id: Optional[Any]
    privacy_level: Optional[str] = None
    is_live: bool = True
    is_published: bool = True
    creator_id: Optional[Any] = None
    observee_ids: FrozenSet[Any] = field(default_factory=frozenset)
    owner_person_id: Optional[Any] = None
    owner_org_id: Optional[Any] = None
    subject_id: Optional[Any] = None
    has_negative_ratings: bool = False
