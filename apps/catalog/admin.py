from django.contrib import admin
from .models import Alert, AlertSegment, FeatureToggle, FeatureSegment


class AlertSegmentInline(admin.TabularInline):
    model = AlertSegment
    extra = 0


class FeatureSegmentInline(admin.TabularInline):
    model = FeatureSegment
    extra = 0


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ('title', 'theme', 'is_enabled', 'is_active_from', 'is_active_to', 'targeting_enabled')
    list_filter = ('is_enabled', 'theme', 'targeting_enabled')
    search_fields = ('title', 'body')
    inlines = [AlertSegmentInline]


@admin.register(FeatureToggle)
class FeatureToggleAdmin(admin.ModelAdmin):
    list_display = ('name', 'environment', 'rollout_percentage', 'is_enabled', 'is_active_from', 'is_active_to')
    list_filter = ('is_enabled', 'environment', 'targeting_enabled')
    search_fields = ('name', 'display_name')
    inlines = [FeatureSegmentInline]
