# apps/evaluation/engine.py
"""Alert and feature toggle evaluation.

Every call is a pure function of (catalog snapshot, user context, time): the
engine keeps no state, never fetches, and never raises for a failed gate.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .rollout import RolloutHasher
from .segments import SegmentMatcher
from .types import (
    DEFAULT_ENVIRONMENT,
    ENVIRONMENT_ALL,
    Alert,
    AlertView,
    FeatureToggle,
    UserContext,
)

logger = logging.getLogger(__name__)


class Gate(Enum):
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    DISABLED = "disabled"
    OUTSIDE_WINDOW = "outside_window"
    ENVIRONMENT = "environment"
    ROLLOUT = "rollout"
    TARGETING = "targeting"
    PASSED = "passed"


@dataclass(frozen=True)
class FeatureDecision:
    name: str
    enabled: bool
    gate: Gate


def _utcnow():
    return datetime.now(timezone.utc)


def _in_window(now, active_from, active_to):
    # both bounds inclusive
    return active_from <= now <= active_to


def _is_targeted(entity):
    return entity.targeting_enabled and len(entity.segments) > 0


class EvaluationEngine:
    def __init__(self, matcher: Optional[SegmentMatcher] = None, hasher: Optional[RolloutHasher] = None):
        self.matcher = matcher or SegmentMatcher()
        self.hasher = hasher or RolloutHasher()

    def decide_feature(
        self,
        toggle: Optional[FeatureToggle],
        user: Optional[UserContext],
        now: Optional[datetime] = None,
        name: Optional[str] = None,
    ) -> FeatureDecision:
        """Run the gates in order and report the first one that failed."""
        if toggle is None:
            return FeatureDecision(name or '', False, Gate.NOT_FOUND)

        now = now or _utcnow()

        def denied(gate):
            return FeatureDecision(toggle.name, False, gate)

        if not toggle.is_enabled:
            return denied(Gate.DISABLED)

        if not _in_window(now, toggle.is_active_from, toggle.is_active_to):
            return denied(Gate.OUTSIDE_WINDOW)

        environment = (user.environment if user else None) or DEFAULT_ENVIRONMENT
        if toggle.environment != ENVIRONMENT_ALL and toggle.environment != environment:
            return denied(Gate.ENVIRONMENT)

        if toggle.rollout_percentage < 100:
            user_id = user.user_id if user else None
            if not self.hasher.is_in_rollout(user_id, toggle.name, toggle.rollout_percentage):
                return denied(Gate.ROLLOUT)

        if _is_targeted(toggle):
            if user is None or not self.matcher.matches_any(user, toggle.segments):
                return denied(Gate.TARGETING)

        return FeatureDecision(toggle.name, True, Gate.PASSED)

    def evaluate_feature(
        self,
        toggle: FeatureToggle,
        user: Optional[UserContext],
        now: Optional[datetime] = None,
    ) -> bool:
        return self.decide_feature(toggle, user, now).enabled

    def decide_features(
        self,
        names: Iterable[str],
        toggles: Iterable[FeatureToggle],
        user: Optional[UserContext],
        now: Optional[datetime] = None,
    ) -> Dict[str, FeatureDecision]:
        now = now or _utcnow()
        catalog = {toggle.name: toggle for toggle in toggles}
        decisions = {}
        for name in names:
            if name in decisions:
                continue
            decision = self.decide_feature(catalog.get(name), user, now, name=name)
            if not decision.enabled:
                logger.debug(f"Feature {name} disabled at gate {decision.gate.value}")
            decisions[name] = decision
        return decisions

    def evaluate_features(
        self,
        names: Iterable[str],
        toggles: Iterable[FeatureToggle],
        user: Optional[UserContext],
        now: Optional[datetime] = None,
    ) -> Dict[str, bool]:
        """Map every requested name to a boolean; unknown names are False."""
        decisions = self.decide_features(names, toggles, user, now)
        return {name: decision.enabled for name, decision in decisions.items()}

    def is_alert_visible(self, alert: Alert, user: Optional[UserContext], now: Optional[datetime] = None) -> bool:
        now = now or _utcnow()
        if not alert.is_enabled:
            return False
        if not _in_window(now, alert.is_active_from, alert.is_active_to):
            return False
        if not _is_targeted(alert):
            return True
        # targeted alerts are never shown to requests without a user context
        if user is None:
            return False
        return self.matcher.matches_any(user, alert.segments)

    def evaluate_alerts(
        self,
        alerts: Iterable[Alert],
        user: Optional[UserContext],
        now: Optional[datetime] = None,
    ) -> List[AlertView]:
        """Filter ``alerts`` down to the public views visible to ``user``, keeping input order."""
        now = now or _utcnow()
        return [alert.public_view() for alert in alerts if self.is_alert_visible(alert, user, now)]


engine = EvaluationEngine()
