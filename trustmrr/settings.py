"""Django settings for trustmrr.

Values come from the environment (or a `.env` file next to manage.py)
through django-environ.
"""
from datetime import timedelta
from pathlib import Path

import environ
from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent

env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, ['*']),
    CORS_ALLOWED_ORIGINS=(list, []),
    TRUSTMRR_COOKIE_SECURE=(bool, False),
    TRUSTMRR_METRICS_MAX_AGE=(int, 3600),
    TRUSTMRR_REFRESH_ON_CREATE=(bool, True),
    STRIPE_MAX_NETWORK_RETRIES=(int, 2),
    CELERY_TASK_ALWAYS_EAGER=(bool, False),
)
environ.Env.read_env(BASE_DIR / '.env', overwrite=False)

SECRET_KEY = env('SECRET_KEY', default='dev-insecure-trustmrr-key')
DEBUG = env('DEBUG')
ALLOWED_HOSTS = env('ALLOWED_HOSTS')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'corsheaders',
    'rest_framework',
    'rest_framework.authtoken',
    'rest_framework_simplejwt.token_blacklist',
    'drf_spectacular',
    'api',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'trustmrr.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'trustmrr.wsgi.application'

DATABASES = {
    'default': env.db('DATABASE_URL', default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}

CACHES = {
    'default': env.cache('CACHE_URL', default='locmemcache://'),
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

CORS_ALLOWED_ORIGINS = env('CORS_ALLOWED_ORIGINS')
CORS_ALLOW_CREDENTIALS = True

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'api.auth.CookieTokenAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=30),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
    'ROTATE_REFRESH_TOKENS': True,
    'BLACKLIST_AFTER_ROTATION': True,
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'Trust My MRR API',
    'DESCRIPTION': 'Verified startup revenue leaderboard backed by Stripe.',
    'VERSION': '1.0.0',
}

# Cookie configuration for staff sessions
TRUSTMRR_COOKIE_SECURE = env('TRUSTMRR_COOKIE_SECURE')
TRUSTMRR_COOKIE_SAMESITE = env('TRUSTMRR_COOKIE_SAMESITE', default='Lax')
TRUSTMRR_COOKIE_DOMAIN = env('TRUSTMRR_COOKIE_DOMAIN', default=None)

# Public URL used in checkout redirects and the sitemap
TRUSTMRR_BASE_URL = env('TRUSTMRR_BASE_URL', default='https://trustmymrr.com')
# Seconds before stored startup metrics are considered stale on the detail page
TRUSTMRR_METRICS_MAX_AGE = env('TRUSTMRR_METRICS_MAX_AGE')
# Pull metrics right after a startup registers (Celery, or a thread without a broker)
TRUSTMRR_REFRESH_ON_CREATE = env('TRUSTMRR_REFRESH_ON_CREATE')

# Platform Stripe account (ad checkout, /api/stripe-data/)
STRIPE_SECRET_KEY = env('STRIPE_SECRET_KEY', default='')
STRIPE_API_VERSION = env('STRIPE_API_VERSION', default='2025-10-29.clover')
STRIPE_MAX_NETWORK_RETRIES = env('STRIPE_MAX_NETWORK_RETRIES')

# X (Twitter) API v2 bearer token for founder avatars
X_BEARER_TOKEN = env('X_BEARER_TOKEN', default='')

CELERY_BROKER_URL = env('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = env('CELERY_RESULT_BACKEND', default=None)
CELERY_TASK_ALWAYS_EAGER = env('CELERY_TASK_ALWAYS_EAGER')
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BEAT_SCHEDULE = {
    'refresh-startup-metrics': {
        'task': 'api.tasks.refresh_all_metrics_task',
        'schedule': crontab(minute=0),
    },
    'expire-ads': {
        'task': 'api.tasks.expire_ads_task',
        'schedule': crontab(minute='*/15'),
    },
    'sync-founders': {
        'task': 'api.tasks.sync_founders_task',
        'schedule': crontab(hour=4, minute=30),
    },
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {'format': '%(asctime)s %(levelname)-8s %(name)s %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'simple'},
    },
    'loggers': {
        'api': {'handlers': ['console'], 'level': env('LOG_LEVEL', default='INFO')},
        'analysis': {'handlers': ['console'], 'level': env('LOG_LEVEL', default='INFO')},
        'celery': {'handlers': ['console'], 'level': 'INFO'},
    },
}
