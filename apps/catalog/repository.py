# apps/catalog/repository.py
"""Read side of the catalog, handed to the evaluation engine as value objects."""
from typing import Iterable, List
import logging

from django.db import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from apps.evaluation import types
from .models import Alert, FeatureToggle
from .performance import monitor_query_performance

logger = logging.getLogger(__name__)

# transient database hiccups only; anything else is a bug and propagates
catalog_retry = retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)


class CatalogRepository:
    @staticmethod
    @catalog_retry
    @monitor_query_performance
    def list_active_alerts(now) -> List[types.Alert]:
        """Enabled alerts whose window contains ``now``, newest first."""
        rows = (
            Alert.objects.filter(
                is_enabled=True,
                is_active_from__lte=now,
                is_active_to__gte=now,
            )
            .prefetch_related('segments')
            .order_by('-created_at', '-pk')
        )
        return [row.to_value() for row in rows]

    @staticmethod
    @catalog_retry
    @monitor_query_performance
    def list_feature_toggles_by_name(names: Iterable[str]) -> List[types.FeatureToggle]:
        names = set(names)
        if not names:
            return []
        rows = FeatureToggle.objects.filter(name__in=names).prefetch_related('segments')
        toggles = [row.to_value() for row in rows]
        logger.debug(f"Loaded {len(toggles)} of {len(names)} requested feature toggles")
        return toggles

    @staticmethod
    @catalog_retry
    def count_active_features(now) -> int:
        return FeatureToggle.objects.filter(
            is_enabled=True,
            is_active_from__lte=now,
            is_active_to__gte=now,
        ).count()
