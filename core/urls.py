"""
URL configuration for the Beacon backend.

Public, CORS-open endpoints for the embeddable widget live under
``/api/v1/public/``; the authenticated management API under ``/api/v1/``.
"""

from django.contrib import admin
from django.urls import path
from django.urls import include
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from strawberry.django.views import GraphQLView
from core.graphql.schema import schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView


def home_view(request):
    return JsonResponse({
        "message": "Beacon Backend API",
        "status": "running",
        "endpoints": {
            "admin": "/admin/",
            "api": "/api/v1/",
            "public": "/api/v1/public/",
            "graphql": "/graphql/",
            "docs": "/api/docs/",
            "schema": "/api/schema/"
        }
    })


urlpatterns = [
    path("", home_view, name="home"),
    path("admin/", admin.site.urls),
    path("api/v1/auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/v1/auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/v1/public/", include("apps.evaluation.urls")),
    path("api/v1/", include("apps.catalog.urls")),
    path('graphql/', csrf_exempt(GraphQLView.as_view(schema=schema, graphiql=True))),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
