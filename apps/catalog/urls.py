from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AlertViewSet, FeatureToggleViewSet

router = DefaultRouter()
router.register(r'alerts', AlertViewSet, basename='alert')
router.register(r'features', FeatureToggleViewSet, basename='feature')

urlpatterns = [
    path('', include(router.urls)),
]
