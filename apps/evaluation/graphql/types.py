import strawberry
from datetime import datetime
from typing import Optional

from apps.evaluation.types import UserContext


@strawberry.input
class UserAttributesInput:
    user_id: Optional[str] = None
    user_type: Optional[str] = None
    location: Optional[str] = None
    account_age: Optional[str] = None
    activity_level: Optional[str] = None
    plan_tier: Optional[str] = None
    current_page: Optional[str] = None
    environment: Optional[str] = None

    def to_user_context(self) -> UserContext:
        return UserContext(
            user_id=self.user_id or None,
            user_type=self.user_type or None,
            location=self.location or None,
            account_age=self.account_age or None,
            activity_level=self.activity_level or None,
            plan_tier=self.plan_tier or None,
            current_page=self.current_page or None,
            environment=self.environment or None,
        )


@strawberry.type
class FeatureCheckType:
    name: str
    enabled: bool
    reason: str


@strawberry.type
class WidgetAlertType:
    id: int
    title: str
    body: str
    theme: str
    is_active_from: datetime
    is_active_to: datetime
    created_at: Optional[datetime]
