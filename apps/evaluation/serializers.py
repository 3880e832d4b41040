from collections.abc import Mapping

from rest_framework import serializers

from .types import UserContext


def _attribute_field():
    return serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)


class UserAttributesSerializer(serializers.Serializer):
    """Closed set of request-time user attributes (camelCase on the wire)."""
    userId = _attribute_field()
    userType = _attribute_field()
    location = _attribute_field()
    accountAge = _attribute_field()
    activityLevel = _attribute_field()
    planTier = _attribute_field()
    currentPage = _attribute_field()
    environment = _attribute_field()

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            unknown = sorted(set(data) - set(UserContext.ATTRIBUTE_KEYS))
            if unknown:
                raise serializers.ValidationError({
                    key: ["Unknown user attribute."] for key in unknown
                })
        return super().to_internal_value(data)

    @staticmethod
    def build_user(attributes):
        return UserContext.from_attributes({
            key: value or None for key, value in attributes.items()
        })

    def to_user_context(self):
        return self.build_user(self.validated_data)


class CheckFeaturesRequestSerializer(serializers.Serializer):
    features = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        allow_empty=True,
    )
    userAttributes = UserAttributesSerializer(required=False, allow_null=True)

    def get_user(self):
        # an explicit but empty attribute object still counts as a user context
        attributes = self.validated_data.get('userAttributes')
        if attributes is None:
            return None
        return UserAttributesSerializer.build_user(attributes)


class WidgetAlertsRequestSerializer(serializers.Serializer):
    """Resolves the widget's user context.

    Attributes may arrive nested under ``userAttributes``, flat in the POST
    body, or as query parameters on GET. No attributes at all means an
    anonymous request, which only sees untargeted alerts.
    """

    def to_internal_value(self, data):
        if hasattr(data, 'dict'):
            data = data.dict()
        if not isinstance(data, Mapping):
            raise serializers.ValidationError({'non_field_errors': ["Expected an object of user attributes."]})

        attributes = data
        if 'userAttributes' in data:
            extra = sorted(set(data) - {'userAttributes'})
            if extra:
                raise serializers.ValidationError({key: ["Unknown field."] for key in extra})
            attributes = data['userAttributes']
        if attributes is None:
            return {'user': None}

        nested = UserAttributesSerializer(data=attributes)
        nested.is_valid(raise_exception=True)
        user = nested.to_user_context()
        return {'user': None if user.is_empty() else user}

    def get_user(self):
        return self.validated_data['user']


class AlertViewSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    body = serializers.CharField()
    theme = serializers.CharField()
    isActiveFrom = serializers.DateTimeField(source='is_active_from')
    isActiveTo = serializers.DateTimeField(source='is_active_to')
    createdAt = serializers.DateTimeField(source='created_at', allow_null=True)


class FeatureCheckHealthSerializer(serializers.Serializer):
    status = serializers.CharField()
    activeFeatures = serializers.IntegerField()
    timestamp = serializers.DateTimeField()
