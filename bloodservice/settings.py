"""
Django settings for bloodservice project.

Every deployment-specific value is read from the environment; ``manage.py``,
``wsgi.py``, ``asgi.py`` and ``celery.py`` load a local ``.env`` first.
"""

import os
from pathlib import Path


def _env_bool(name, default=False):
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name, default):
    raw = os.getenv(name)
    if raw in (None, ''):
        return default
    return int(raw)


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'dev-only-insecure-secret-key')

DEBUG = _env_bool('DJANGO_DEBUG', True)

ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if h.strip()]


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'blood.apps.BloodConfig',
    'donor.apps.DonorConfig',
    'patient.apps.PatientConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'bloodservice.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'bloodservice.wsgi.application'


# Database: SQLite for local work, PostgreSQL when POSTGRES_DB is configured.
if os.getenv('POSTGRES_DB'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('POSTGRES_DB'),
            'USER': os.getenv('POSTGRES_USER', 'postgres'),
            'PASSWORD': os.getenv('POSTGRES_PASSWORD', ''),
            'HOST': os.getenv('POSTGRES_HOST', 'localhost'),
            'PORT': os.getenv('POSTGRES_PORT', '5432'),
            'ATOMIC_REQUESTS': False,
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / os.getenv('SQLITE_NAME', 'db.sqlite3'),
        }
    }

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('DJANGO_TIME_ZONE', 'Asia/Makassar')
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# The API is consumed by a separate single-page front end.
CSRF_TRUSTED_ORIGINS = [o.strip() for o in os.getenv('CSRF_TRUSTED_ORIGINS', '').split(',') if o.strip()]
SESSION_COOKIE_AGE = _env_int('SESSION_COOKIE_AGE', 60 * 60 * 12)


# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'blood': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'donor': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'patient': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}


# Stock status thresholds (bags). A count at or below the critical limit is
# Critical, at or below the low limit is Low, anything above is Safe.
STOCK_CRITICAL_MAX_BAGS = _env_int('STOCK_CRITICAL_MAX_BAGS', 5)
STOCK_LOW_MAX_BAGS = _env_int('STOCK_LOW_MAX_BAGS', 10)

# Donor eligibility and reminders
DONATION_RECOVERY_DAYS = _env_int('DONATION_RECOVERY_DAYS', 90)
DONATION_REMINDER_HOURS = _env_int('DONATION_REMINDER_HOURS', 24)


# Email
EMAIL_BACKEND = os.getenv('EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend')
EMAIL_HOST = os.getenv('EMAIL_HOST', 'localhost')
EMAIL_PORT = _env_int('EMAIL_PORT', 25)
EMAIL_HOST_USER = os.getenv('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.getenv('EMAIL_HOST_PASSWORD', '')
EMAIL_USE_TLS = _env_bool('EMAIL_USE_TLS', False)
NOTIFICATION_FROM_EMAIL = os.getenv('NOTIFICATION_FROM_EMAIL', 'no-reply@bloodservice.local')


# AWS SNS (SMS)
AWS_SNS_ENABLED = _env_bool('AWS_SNS_ENABLED', False)
AWS_SNS_REGION = os.getenv('AWS_SNS_REGION', 'ap-southeast-1')
AWS_SNS_SMS_TYPE = os.getenv('AWS_SNS_SMS_TYPE', 'Transactional')
AWS_SNS_SENDER_ID = os.getenv('AWS_SNS_SENDER_ID', '')
AWS_SNS_DEFAULT_COUNTRY_CODE = os.getenv('AWS_SNS_DEFAULT_COUNTRY_CODE', '+62')


# Celery
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', CELERY_BROKER_URL)
CELERY_TASK_ALWAYS_EAGER = _env_bool('CELERY_TASK_ALWAYS_EAGER', False)
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    'check-stock-levels': {
        'task': 'blood.tasks.check_stock_levels',
        'schedule': 60 * 60 * 6,
    },
    'send-donation-reminders': {
        'task': 'blood.tasks.send_donation_reminders',
        'schedule': 60 * 60,
    },
    'send-weekly-summary': {
        'task': 'blood.tasks.send_weekly_summary',
        'schedule': 60 * 60 * 24 * 7,
    },
}
