from django.db import models
from decimal import Decimal


class Startup(models.Model):
	"""A startup that registered a restricted Stripe key on the leaderboard."""
	name = models.CharField(max_length=255)
	slug = models.SlugField(max_length=255, unique=True)
	description = models.TextField(blank=True, null=True)
	logo = models.URLField(max_length=1024, blank=True, null=True)
	website = models.URLField(max_length=512, blank=True, null=True)
	# Restricted key scoped to read-only access; never serialised back to clients
	api_key = models.CharField(max_length=255, unique=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)
	# Latest metrics pulled from Stripe
	mrr = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
	total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
	total_customers = models.IntegerField(default=0)
	currency = models.CharField(max_length=8, default='usd')
	metrics_updated_at = models.DateTimeField(null=True, blank=True)
	metrics_error = models.TextField(blank=True, default='')

	class Meta:
		indexes = [
			models.Index(fields=['mrr'], name='startup_mrr_idx'),
			models.Index(fields=['created_at'], name='startup_created_idx'),
		]

	def __str__(self):
		return self.name

	@property
	def has_metrics(self):
		return self.metrics_updated_at is not None and not self.metrics_error

	def metrics_bundle(self):
		"""Stored metrics in the same shape `fetch_stripe_metrics` returns, or None."""
		if not self.has_metrics:
			return None
		return {
			'monthly_recurring_revenue': float(self.mrr),
			'total_revenue': float(self.total_revenue),
			'total_customers': self.total_customers,
			'currency': self.currency,
		}


class Founder(models.Model):
	"""An X (Twitter) handle listed as founder of a startup.

	The same handle may appear under several startups; founder pages group
	rows case-insensitively by handle.
	"""
	startup = models.ForeignKey(Startup, on_delete=models.CASCADE, related_name='founders')
	x_username = models.CharField(max_length=64)
	profile_image_url = models.URLField(max_length=1024, blank=True, null=True)
	display_name = models.CharField(max_length=255, blank=True, null=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		indexes = [
			models.Index(fields=['x_username'], name='founder_x_username_idx'),
		]

	def __str__(self):
		return f"@{self.x_username} ({self.startup})"


class MetricsSnapshot(models.Model):
	"""Log of metrics pulls and their outcomes."""
	startup = models.ForeignKey(Startup, on_delete=models.CASCADE, related_name='snapshots')
	mrr = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
	total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
	total_customers = models.IntegerField(default=0)
	currency = models.CharField(max_length=8, default='usd')
	success = models.BooleanField(default=False)
	error = models.TextField(blank=True, default='')
	created_at = models.DateTimeField(auto_now_add=True)

	def __str__(self):
		return f"Snapshot {self.pk} of {self.startup} mrr={self.mrr} ok={self.success}"


class Ad(models.Model):
	"""A purchase of an advertising spot by a startup."""
	STATUS_PENDING = 'pending'
	STATUS_ACTIVE = 'active'
	STATUS_EXPIRED = 'expired'
	STATUS_CANCELLED = 'cancelled'
	STATUS_CHOICES = [
		(STATUS_PENDING, 'Pending'),
		(STATUS_ACTIVE, 'Active'),
		(STATUS_EXPIRED, 'Expired'),
		(STATUS_CANCELLED, 'Cancelled'),
	]
	spot_id = models.CharField(max_length=64)
	startup = models.ForeignKey(Startup, on_delete=models.CASCADE, related_name='ads')
	tagline = models.CharField(max_length=255, blank=True, null=True)
	status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
	starts_at = models.DateTimeField()
	expires_at = models.DateTimeField()
	stripe_session_id = models.CharField(max_length=255, blank=True, null=True)
	stripe_payment_id = models.CharField(max_length=255, blank=True, null=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		indexes = [
			models.Index(fields=['spot_id', 'status'], name='ad_spot_status_idx'),
			models.Index(fields=['expires_at'], name='ad_expires_idx'),
		]

	def __str__(self):
		return f"Ad {self.spot_id} for {self.startup} ({self.status})"
