import strawberry
from typing import List, Optional

from apps.evaluation.views import decide_features_for, visible_alerts_for
from .types import FeatureCheckType, UserAttributesInput, WidgetAlertType


@strawberry.type
class EvaluationQueries:

    @strawberry.field
    def check_features(
        self,
        features: List[str],
        user_attributes: Optional[UserAttributesInput] = None,
    ) -> List[FeatureCheckType]:
        user = user_attributes.to_user_context() if user_attributes is not None else None
        decisions = decide_features_for(features, user)
        return [
            FeatureCheckType(name=name, enabled=decision.enabled, reason=decision.gate.value)
            for name, decision in decisions.items()
        ]

    @strawberry.field
    def widget_alerts(self, user_attributes: Optional[UserAttributesInput] = None) -> List[WidgetAlertType]:
        user = user_attributes.to_user_context() if user_attributes is not None else None
        if user is not None and user.is_empty():
            user = None
        alerts, _ = visible_alerts_for(user)
        return [
            WidgetAlertType(
                id=alert.id,
                title=alert.title,
                body=alert.body,
                theme=alert.theme,
                is_active_from=alert.is_active_from,
                is_active_to=alert.is_active_to,
                created_at=alert.created_at,
            )
            for alert in alerts
        ]
