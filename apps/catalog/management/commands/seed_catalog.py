from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.catalog.models import Alert, AlertSegment, FeatureToggle, FeatureSegment


class Command(BaseCommand):
    help = 'Create or refresh demo alerts and feature toggles'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=30, help='Length of the active window')
        parser.add_argument('--reset', action='store_true', help='Delete the existing catalog first')

    def seed_alert(self, title, segments, **defaults):
        alert, _ = Alert.objects.update_or_create(title=title, defaults=defaults)
        alert.segments.all().delete()
        for segment in segments:
            AlertSegment.objects.create(alert=alert, **segment)
        return alert

    def seed_feature(self, name, segments, **defaults):
        feature, _ = FeatureToggle.objects.update_or_create(name=name, defaults=defaults)
        feature.segments.all().delete()
        for segment in segments:
            FeatureSegment.objects.create(feature=feature, **segment)
        return feature

    @transaction.atomic
    def handle(self, *args, **options):
        now = timezone.now()
        window = {
            'is_active_from': now - timedelta(days=1),
            'is_active_to': now + timedelta(days=options['days']),
        }

        if options['reset']:
            Alert.objects.all().delete()
            FeatureToggle.objects.all().delete()

        maintenance = self.seed_alert(
            'Scheduled maintenance',
            [],
            body='The dashboard will be read-only on Sunday between 02:00 and 04:00 UTC.',
            theme='default',
            targeting_enabled=False,
            **window,
        )
        upgrade = self.seed_alert(
            'Upgrade to Pro',
            [{'user_type': 'free', 'location': 'US'}, {'user_type': 'trial'}],
            body='Unlock advanced reports with the Pro plan.',
            theme='modern',
            targeting_enabled=True,
            **window,
        )

        self.seed_feature(
            'new-dashboard',
            [],
            display_name='New dashboard',
            rollout_percentage=50,
            **window,
        )
        self.seed_feature(
            'beta-search',
            [{'plan_tier': 'enterprise'}],
            display_name='Beta search',
            environment='staging',
            targeting_enabled=True,
            **window,
        )

        self.stdout.write(
            self.style.SUCCESS(
                f'Seeded alerts {maintenance.pk}, {upgrade.pk} and '
                f'{FeatureToggle.objects.count()} feature toggles'
            )
        )
