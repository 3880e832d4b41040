from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated
from .models import Alert, FeatureToggle
from .serializers import AlertSerializer, FeatureToggleSerializer


class AlertViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = AlertSerializer
    queryset = Alert.objects.prefetch_related('segments').order_by('-created_at')


class FeatureToggleViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = FeatureToggleSerializer
    queryset = FeatureToggle.objects.prefetch_related('segments').order_by('-created_at')
