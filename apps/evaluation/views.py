# apps/evaluation/views.py
"""Public, CORS-open endpoints consumed by the embeddable widget."""
import logging

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import serializers, status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.catalog.repository import CatalogRepository
from .circuit_breaker import CircuitBreaker
from .engine import FeatureDecision, Gate, engine
from .serializers import (
    AlertViewSerializer,
    CheckFeaturesRequestSerializer,
    FeatureCheckHealthSerializer,
    UserAttributesSerializer,
    WidgetAlertsRequestSerializer,
)

logger = logging.getLogger(__name__)


class CatalogUnavailable(Exception):
    pass


def _unavailable(*args, **kwargs):
    raise CatalogUnavailable()


catalog_circuit = CircuitBreaker(
    failure_threshold=getattr(settings, 'CATALOG_CIRCUIT_FAILURE_THRESHOLD', 5),
    recovery_timeout=getattr(settings, 'CATALOG_CIRCUIT_RECOVERY_TIMEOUT', 60),
    expected_exception=DatabaseError,
    fallback=_unavailable,
)


@catalog_circuit
def fetch_feature_toggles(names):
    return CatalogRepository.list_feature_toggles_by_name(names)


@catalog_circuit
def fetch_active_alerts(now):
    return CatalogRepository.list_active_alerts(now)


def check_features_for(names, user, now=None):
    """Evaluate ``names`` against the catalog; degrade to all-False when it is unreachable."""
    now = now or timezone.now()
    try:
        toggles = fetch_feature_toggles(names)
    except CatalogUnavailable:
        logger.warning(f"Catalog unavailable, reporting {len(set(names))} features as disabled")
        return {name: False for name in names}, True
    return engine.evaluate_features(names, toggles, user, now), False


def decide_features_for(names, user, now=None):
    now = now or timezone.now()
    try:
        toggles = fetch_feature_toggles(names)
    except CatalogUnavailable:
        logger.warning("Catalog unavailable, feature decisions degraded")
        return {name: FeatureDecision(name, False, Gate.UNAVAILABLE) for name in names}
    return engine.decide_features(names, toggles, user, now)


def visible_alerts_for(user, now=None):
    """Public alert views for ``user``; no alerts at all when the catalog is unreachable."""
    now = now or timezone.now()
    try:
        alerts = fetch_active_alerts(now)
    except CatalogUnavailable:
        logger.warning("Catalog unavailable, serving no alerts")
        return [], True
    return engine.evaluate_alerts(alerts, user, now), False


def _bad_request(error, details):
    return Response({'error': error, 'details': details}, status=status.HTTP_400_BAD_REQUEST)


@extend_schema(
    methods=['POST'],
    request=CheckFeaturesRequestSerializer,
    responses={
        200: OpenApiResponse(description="Mapping of feature name to enabled flag"),
        400: OpenApiResponse(description="Missing or invalid features array / user attributes"),
    },
)
@extend_schema(methods=['GET'], responses={200: FeatureCheckHealthSerializer})
@api_view(['GET', 'POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def check_features(request):
    """Evaluate a batch of feature toggles for the requesting user"""
    if request.method == 'GET':
        return feature_check_health(request)

    serializer = CheckFeaturesRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return _bad_request('Features array is required', serializer.errors)

    names = serializer.validated_data['features']
    results, degraded = check_features_for(names, serializer.get_user())
    logger.debug(f"Checked {len(results)} features, {sum(results.values())} enabled, degraded={degraded}")
    return Response(results)


def feature_check_health(request):
    try:
        active_features = CatalogRepository.count_active_features(timezone.now())
    except DatabaseError as e:
        logger.error(f"Feature check health failed: {e}")
        return Response({'error': 'Health check failed'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response({
        'status': 'ok',
        'activeFeatures': active_features,
        'timestamp': timezone.now(),
    })


@extend_schema(
    request=UserAttributesSerializer,
    responses={200: AlertViewSerializer(many=True)},
)
@api_view(['GET', 'POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def widget_alerts(request):
    """Active alerts visible to the requesting user"""
    data = request.query_params if request.method == 'GET' else request.data
    serializer = WidgetAlertsRequestSerializer(data=data)
    try:
        serializer.is_valid(raise_exception=True)
    except serializers.ValidationError as e:
        return _bad_request('Invalid user attributes', e.detail)

    alerts, degraded = visible_alerts_for(serializer.get_user())
    logger.debug(f"Serving {len(alerts)} alerts, degraded={degraded}")
    return Response(AlertViewSerializer(alerts, many=True).data)
