from django.utils import timezone
from rest_framework import serializers
from drf_spectacular.utils import extend_schema_field, OpenApiTypes
from .models import Startup, Founder, Ad
from .favicon import favicon_urls


class MetricsSerializer(serializers.Serializer):
    """Metrics bundle of one startup (major currency units)."""
    monthly_recurring_revenue = serializers.FloatField()
    total_revenue = serializers.FloatField()
    total_customers = serializers.IntegerField()
    currency = serializers.CharField()


class FounderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Founder
        fields = ['id', 'startup', 'x_username', 'profile_image_url', 'display_name', 'created_at', 'updated_at']
        read_only_fields = ['startup', 'profile_image_url', 'display_name', 'created_at', 'updated_at']


class StartupSerializer(serializers.ModelSerializer):
    founders = FounderSerializer(many=True, read_only=True)
    metrics = serializers.SerializerMethodField()
    metrics_error = serializers.SerializerMethodField()
    favicon = serializers.SerializerMethodField()

    class Meta:
        model = Startup
        # api_key is write-only: it is a credential and must never be echoed back
        fields = [
            'id', 'name', 'slug', 'description', 'logo', 'website', 'api_key',
            'founders', 'metrics', 'metrics_error', 'metrics_updated_at', 'favicon',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['slug', 'logo', 'metrics_updated_at', 'created_at', 'updated_at']
        extra_kwargs = {'api_key': {'write_only': True}}

    @extend_schema_field(MetricsSerializer(allow_null=True))
    def get_metrics(self, obj):
        return obj.metrics_bundle()

    @extend_schema_field(OpenApiTypes.STR)
    def get_metrics_error(self, obj):
        if obj.has_metrics:
            return None
        return obj.metrics_error or 'Metrics not fetched yet'

    @extend_schema_field(OpenApiTypes.OBJECT)
    def get_favicon(self, obj):
        if obj.logo or not obj.website:
            return None
        return favicon_urls(obj.website)


class StartupCreateSerializer(serializers.Serializer):
    api_key = serializers.CharField(write_only=True)
    website = serializers.URLField(required=False, allow_blank=True, allow_null=True)
    founders = serializers.ListField(child=serializers.CharField(max_length=64), required=False, default=list)


class StartupUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    api_key = serializers.CharField(required=False, write_only=True)
    website = serializers.URLField(required=False, allow_blank=True)


class FounderCreateSerializer(serializers.Serializer):
    x_username = serializers.CharField(max_length=64)


class FounderSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    x_username = serializers.CharField()
    profile_image_url = serializers.CharField(allow_null=True)
    display_name = serializers.CharField(allow_null=True)
    startups_count = serializers.IntegerField()


class FounderAggregatedMetricsSerializer(serializers.Serializer):
    total_revenue = serializers.FloatField()
    last_30_days_revenue = serializers.FloatField()
    total_mrr = serializers.FloatField()
    total_customers = serializers.IntegerField()
    startups_count = serializers.IntegerField()
    currency = serializers.CharField()


class FounderDetailSerializer(serializers.Serializer):
    id = serializers.IntegerField(source='founder.id')
    x_username = serializers.CharField(source='founder.x_username')
    profile_image_url = serializers.CharField(source='founder.profile_image_url', allow_null=True)
    display_name = serializers.CharField(source='founder.display_name', allow_null=True)
    startups = StartupSerializer(many=True)
    aggregated = FounderAggregatedMetricsSerializer()


class RevenuePointSerializer(serializers.Serializer):
    date = serializers.CharField()
    revenue = serializers.FloatField()
    mrr = serializers.FloatField()


class RevenueDataSerializer(serializers.Serializer):
    data_points = RevenuePointSerializer(many=True)
    currency = serializers.CharField()


class AdSerializer(serializers.ModelSerializer):
    startup_slug = serializers.CharField(source='startup.slug', read_only=True)

    class Meta:
        model = Ad
        fields = [
            'id', 'spot_id', 'startup', 'startup_slug', 'tagline', 'status', 'starts_at', 'expires_at',
            'stripe_session_id', 'stripe_payment_id', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AdContentSerializer(serializers.ModelSerializer):
    """Public shape of a running ad, as rendered in an ad slot."""
    startup = serializers.SerializerMethodField()
    is_active = serializers.SerializerMethodField()

    class Meta:
        model = Ad
        fields = ['id', 'spot_id', 'startup', 'expires_at', 'is_active']

    @extend_schema_field(OpenApiTypes.OBJECT)
    def get_startup(self, obj):
        s = obj.startup
        return {
            'name': s.name,
            'slug': s.slug,
            'logo': s.logo or None,
            'website': s.website or '',
            'description': s.description or '',
            'tagline': obj.tagline or None,
        }

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_is_active(self, obj):
        return obj.status == Ad.STATUS_ACTIVE and obj.expires_at > timezone.now()


class AdPurchaseSerializer(serializers.Serializer):
    spot_id = serializers.CharField(max_length=64)
    startup = serializers.PrimaryKeyRelatedField(queryset=Startup.objects.all())
    tagline = serializers.CharField(required=False, allow_blank=True, max_length=255)
    duration_months = serializers.IntegerField(required=False, default=1, min_value=1, max_value=24)
    stripe_session_id = serializers.CharField(required=False, allow_blank=True)


class AdStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Ad.STATUS_CHOICES)
    stripe_payment_id = serializers.CharField(required=False, allow_blank=True)


class SpotAvailabilitySerializer(serializers.Serializer):
    spot_id = serializers.CharField()
    available = serializers.BooleanField()
    ad = AdContentSerializer(allow_null=True)


class CheckoutResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    session_id = serializers.CharField()
    url = serializers.CharField(allow_null=True)


class StripeDataSerializer(serializers.Serializer):
    business_name = serializers.CharField()
    business_logo = serializers.CharField(allow_null=True)
    business_url = serializers.CharField(allow_null=True)
    monthly_recurring_revenue = serializers.FloatField()
    total_customers = serializers.IntegerField()
    total_revenue = serializers.FloatField()
    currency = serializers.CharField()
    last_updated = serializers.CharField()


class StripeDataResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    data = StripeDataSerializer(required=False)
    cached = serializers.BooleanField(required=False)
    cache_expires_in = serializers.CharField(required=False)
    error = serializers.CharField(required=False)


class SitemapEntrySerializer(serializers.Serializer):
    url = serializers.CharField()
    last_modified = serializers.DateTimeField()
    change_frequency = serializers.CharField()
    priority = serializers.FloatField()


class SimpleOkSerializer(serializers.Serializer):
    ok = serializers.BooleanField()
    message = serializers.CharField(required=False)


class LoginResponseSerializer(serializers.Serializer):
    username = serializers.CharField()


class MeResponseSerializer(serializers.Serializer):
    user = serializers.DictField(child=serializers.CharField(), required=False)
