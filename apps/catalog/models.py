from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator

from apps.evaluation import types


class SegmentFields(models.Model):
    """Targeting rule columns shared by alert and feature segments.

    A blank column is a wildcard.
    """
    class Meta:
        abstract = True

    user_type = models.CharField(max_length=50, blank=True, null=True)
    location = models.CharField(max_length=50, blank=True, null=True)
    account_age = models.CharField(max_length=50, blank=True, null=True)
    activity_level = models.CharField(max_length=50, blank=True, null=True)
    plan_tier = models.CharField(max_length=50, blank=True, null=True)
    target_page = models.CharField(max_length=255, blank=True, null=True)

    def to_value(self):
        return types.Segment(
            user_type=self.user_type or None,
            location=self.location or None,
            account_age=self.account_age or None,
            activity_level=self.activity_level or None,
            plan_tier=self.plan_tier or None,
            target_page=self.target_page or None,
        )


class ActiveWindowMixin(models.Model):
    class Meta:
        abstract = True

    is_enabled = models.BooleanField(default=True)
    is_active_from = models.DateTimeField()
    is_active_to = models.DateTimeField()
    targeting_enabled = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def clean(self):
        if self.is_active_from and self.is_active_to and self.is_active_from > self.is_active_to:
            raise ValidationError("is_active_from must not be after is_active_to")


class Alert(ActiveWindowMixin):
    class Meta:
        app_label = 'catalog'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_enabled', 'is_active_from', 'is_active_to']),
        ]

    THEME_CHOICES = [
        ('default', 'Default'),
        ('minimal', 'Minimal'),
        ('modern', 'Modern'),
    ]

    title = models.CharField(max_length=200)
    body = models.TextField()
    theme = models.CharField(max_length=20, choices=THEME_CHOICES, default='default')

    def __str__(self):
        return self.title

    def to_value(self):
        return types.Alert(
            id=self.pk,
            title=self.title,
            body=self.body,
            is_enabled=self.is_enabled,
            is_active_from=self.is_active_from,
            is_active_to=self.is_active_to,
            theme=self.theme,
            targeting_enabled=self.targeting_enabled,
            segments=tuple(segment.to_value() for segment in self.segments.all()),
            created_at=self.created_at,
        )


class AlertSegment(SegmentFields):
    class Meta:
        app_label = 'catalog'

    alert = models.ForeignKey(Alert, on_delete=models.CASCADE, related_name='segments')


class FeatureToggle(ActiveWindowMixin):
    class Meta:
        app_label = 'catalog'
        ordering = ['-created_at']

    ENVIRONMENT_CHOICES = [
        (types.ENVIRONMENT_ALL, 'All Environments'),
        ('development', 'Development Only'),
        ('staging', 'Staging Only'),
        ('production', 'Production Only'),
    ]

    name = models.CharField(max_length=100, unique=True)
    display_name = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    environment = models.CharField(max_length=20, choices=ENVIRONMENT_CHOICES, default=types.ENVIRONMENT_ALL)
    rollout_percentage = models.PositiveSmallIntegerField(
        default=100,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )

    def __str__(self):
        return self.name

    def to_value(self):
        return types.FeatureToggle(
            id=self.pk,
            name=self.name,
            is_enabled=self.is_enabled,
            is_active_from=self.is_active_from,
            is_active_to=self.is_active_to,
            environment=self.environment,
            rollout_percentage=self.rollout_percentage,
            targeting_enabled=self.targeting_enabled,
            segments=tuple(segment.to_value() for segment in self.segments.all()),
        )


class FeatureSegment(SegmentFields):
    class Meta:
        app_label = 'catalog'

    feature = models.ForeignKey(FeatureToggle, on_delete=models.CASCADE, related_name='segments')
