# apps/evaluation/types.py
"""Immutable value objects passed into the evaluation engine.

Catalog rows are converted into these before evaluation so the engine never
touches the ORM. User attributes use a closed schema: an unknown attribute key
is an error, not a silently ignored value.
"""
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Dict, Iterator, Mapping, Optional, Tuple

ENVIRONMENT_ALL = 'all'
DEFAULT_ENVIRONMENT = 'production'
ANONYMOUS_USER_ID = 'anonymous'


class UnknownAttributeError(ValueError):
    def __init__(self, keys):
        self.keys = sorted(keys)
        super().__init__(f"Unknown user attributes: {', '.join(self.keys)}")


@dataclass(frozen=True)
class Segment:
    user_type: Optional[str] = None
    location: Optional[str] = None
    account_age: Optional[str] = None
    activity_level: Optional[str] = None
    plan_tier: Optional[str] = None
    target_page: Optional[str] = None

    # segment field -> UserContext field it constrains
    USER_FIELDS = {
        'user_type': 'user_type',
        'location': 'location',
        'account_age': 'account_age',
        'activity_level': 'activity_level',
        'plan_tier': 'plan_tier',
        'target_page': 'current_page',
    }

    def defined_fields(self) -> Iterator[Tuple[str, str]]:
        """Yield (user attribute, required value) for every non-empty field."""
        for segment_field, user_field in self.USER_FIELDS.items():
            value = getattr(self, segment_field)
            if value:
                yield user_field, value


@dataclass(frozen=True)
class UserContext:
    user_id: Optional[str] = None
    user_type: Optional[str] = None
    location: Optional[str] = None
    account_age: Optional[str] = None
    activity_level: Optional[str] = None
    plan_tier: Optional[str] = None
    current_page: Optional[str] = None
    environment: Optional[str] = None

    # wire name -> field name
    ATTRIBUTE_KEYS = {
        'userId': 'user_id',
        'userType': 'user_type',
        'location': 'location',
        'accountAge': 'account_age',
        'activityLevel': 'activity_level',
        'planTier': 'plan_tier',
        'currentPage': 'current_page',
        'environment': 'environment',
    }

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, Optional[str]]) -> 'UserContext':
        unknown = set(attributes) - set(cls.ATTRIBUTE_KEYS)
        if unknown:
            raise UnknownAttributeError(unknown)
        return cls(**{cls.ATTRIBUTE_KEYS[key]: value for key, value in attributes.items()})

    def as_attributes(self) -> Dict[str, str]:
        return {
            key: getattr(self, name)
            for key, name in self.ATTRIBUTE_KEYS.items()
            if getattr(self, name)
        }

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class AlertView:
    """User-facing alert payload; targeting data never leaves the engine."""
    id: int
    title: str
    body: str
    theme: str
    is_active_from: datetime
    is_active_to: datetime
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Alert:
    id: int
    title: str
    body: str
    is_enabled: bool
    is_active_from: datetime
    is_active_to: datetime
    theme: str = 'default'
    targeting_enabled: bool = False
    segments: Tuple[Segment, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None

    def public_view(self) -> AlertView:
        return AlertView(
            id=self.id,
            title=self.title,
            body=self.body,
            theme=self.theme,
            is_active_from=self.is_active_from,
            is_active_to=self.is_active_to,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class FeatureToggle:
    id: int
    name: str
    is_enabled: bool
    is_active_from: datetime
    is_active_to: datetime
    environment: str = ENVIRONMENT_ALL
    rollout_percentage: int = 100
    targeting_enabled: bool = False
    segments: Tuple[Segment, ...] = field(default_factory=tuple)
