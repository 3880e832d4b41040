from django.db import transaction
from rest_framework import serializers
from .models import Alert, AlertSegment, FeatureToggle, FeatureSegment

SEGMENT_FIELDS = ['id', 'user_type', 'location', 'account_age', 'activity_level', 'plan_tier', 'target_page']


class AlertSegmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = AlertSegment
        fields = SEGMENT_FIELDS


class FeatureSegmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = FeatureSegment
        fields = SEGMENT_FIELDS


class TargetedSerializerMixin:
    """Writes nested segments; segments are only kept while targeting is enabled."""
    segment_model = None
    parent_field = None

    def validate(self, attrs):
        attrs = super().validate(attrs)
        active_from = attrs.get('is_active_from', getattr(self.instance, 'is_active_from', None))
        active_to = attrs.get('is_active_to', getattr(self.instance, 'is_active_to', None))
        if active_from and active_to and active_from > active_to:
            raise serializers.ValidationError({
                'is_active_to': "is_active_to must not be before is_active_from."
            })
        return attrs

    def _replace_segments(self, instance, segments_data):
        instance.segments.all().delete()
        if not instance.targeting_enabled:
            return
        for segment in segments_data or []:
            self.segment_model.objects.create(**{self.parent_field: instance}, **segment)

    @transaction.atomic
    def create(self, validated_data):
        segments_data = validated_data.pop('segments', [])
        instance = super().create(validated_data)
        self._replace_segments(instance, segments_data)
        return instance

    @transaction.atomic
    def update(self, instance, validated_data):
        segments_data = validated_data.pop('segments', None)
        instance = super().update(instance, validated_data)
        # PATCH without segments keeps the current set unless targeting was switched off
        if segments_data is not None or not instance.targeting_enabled:
            self._replace_segments(instance, segments_data)
        return instance


class AlertSerializer(TargetedSerializerMixin, serializers.ModelSerializer):
    segment_model = AlertSegment
    parent_field = 'alert'

    segments = AlertSegmentSerializer(many=True, required=False)

    class Meta:
        model = Alert
        fields = [
            'id', 'title', 'body', 'theme', 'is_enabled', 'is_active_from', 'is_active_to',
            'targeting_enabled', 'segments', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


class FeatureToggleSerializer(TargetedSerializerMixin, serializers.ModelSerializer):
    segment_model = FeatureSegment
    parent_field = 'feature'

    segments = FeatureSegmentSerializer(many=True, required=False)

    class Meta:
        model = FeatureToggle
        fields = [
            'id', 'name', 'display_name', 'description', 'is_enabled', 'environment',
            'rollout_percentage', 'is_active_from', 'is_active_to', 'targeting_enabled',
            'segments', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

