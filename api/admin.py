from django.contrib import admin
from .models import Startup, Founder, MetricsSnapshot, Ad


class FounderInline(admin.TabularInline):
	model = Founder
	extra = 0


@admin.register(Startup)
class StartupAdmin(admin.ModelAdmin):
	list_display = ('id', 'name', 'slug', 'mrr', 'total_revenue', 'metrics_updated_at')
	search_fields = ('name', 'slug', 'website')
	exclude = ('api_key',)
	inlines = [FounderInline]


@admin.register(MetricsSnapshot)
class MetricsSnapshotAdmin(admin.ModelAdmin):
	list_display = ('id', 'startup', 'mrr', 'total_revenue', 'success', 'created_at')
	list_filter = ('success',)


@admin.register(Ad)
class AdAdmin(admin.ModelAdmin):
	list_display = ('id', 'spot_id', 'startup', 'status', 'starts_at', 'expires_at')
	list_filter = ('status', 'spot_id')
