from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Startup',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('slug', models.SlugField(max_length=255, unique=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('logo', models.URLField(blank=True, max_length=1024, null=True)),
                ('website', models.URLField(blank=True, max_length=512, null=True)),
                ('api_key', models.CharField(max_length=255, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('mrr', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_revenue', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_customers', models.IntegerField(default=0)),
                ('currency', models.CharField(default='usd', max_length=8)),
                ('metrics_updated_at', models.DateTimeField(blank=True, null=True)),
                ('metrics_error', models.TextField(blank=True, default='')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['mrr'], name='startup_mrr_idx'),
                    models.Index(fields=['created_at'], name='startup_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Founder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('x_username', models.CharField(max_length=64)),
                ('profile_image_url', models.URLField(blank=True, max_length=1024, null=True)),
                ('display_name', models.CharField(blank=True, max_length=255, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('startup', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='founders', to='api.startup')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['x_username'], name='founder_x_username_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MetricsSnapshot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('mrr', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_revenue', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_customers', models.IntegerField(default=0)),
                ('currency', models.CharField(default='usd', max_length=8)),
                ('success', models.BooleanField(default=False)),
                ('error', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('startup', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='snapshots', to='api.startup')),
            ],
        ),
        migrations.CreateModel(
            name='Ad',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('spot_id', models.CharField(max_length=64)),
                ('tagline', models.CharField(blank=True, max_length=255, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('active', 'Active'), ('expired', 'Expired'), ('cancelled', 'Cancelled')], default='pending', max_length=16)),
                ('starts_at', models.DateTimeField()),
                ('expires_at', models.DateTimeField()),
                ('stripe_session_id', models.CharField(blank=True, max_length=255, null=True)),
                ('stripe_payment_id', models.CharField(blank=True, max_length=255, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('startup', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ads', to='api.startup')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['spot_id', 'status'], name='ad_spot_status_idx'),
                    models.Index(fields=['expires_at'], name='ad_expires_idx'),
                ],
            },
        ),
    ]
