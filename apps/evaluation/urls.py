from django.urls import path
from . import views

urlpatterns = [
    path('features/check/', views.check_features, name='check_features'),
    path('alerts/widget/', views.widget_alerts, name='widget_alerts'),
]
