"""
Django settings for the LifeFlow blood bank project.

Values are read from the environment; a local ``.env`` file is loaded by
``manage.py``, ``wsgi.py`` and ``asgi.py`` before this module is imported.
"""
import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=''):
    return [item.strip() for item in os.environ.get(name, default).split(',') if item.strip()]


# ========================================
# CORE
# ========================================
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'lifeflow-dev-secret-key-change-me')
DEBUG = env_bool('DJANGO_DEBUG', True)
ALLOWED_HOSTS = env_list('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third party
    'rest_framework',
    'rest_framework_simplejwt',
    'corsheaders',

    # Project
    'lifeflow',
    'accounts',
    'donors',
    'inventory',
    'bloodrequests',
    'campaigns',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'lifeflow.urls'

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

WSGI_APPLICATION = 'lifeflow.wsgi.application'
ASGI_APPLICATION = 'lifeflow.asgi.application'


# ========================================
# DATABASE
# ========================================
DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ========================================
# AUTHENTICATION
# ========================================
AUTH_USER_MODEL = 'accounts.CustomUser'

AUTHENTICATION_BACKENDS = [
    'accounts.backends.EmailBackend',
]

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {'min_length': 6},
    },
]

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=int(os.environ.get('JWT_ACCESS_HOURS', '24'))),
    'SIGNING_KEY': os.environ.get('JWT_SIGNING_KEY', SECRET_KEY),
    'ALGORITHM': 'HS256',
    'AUTH_HEADER_TYPES': ('Bearer',),
    'USER_ID_FIELD': 'id',
    'USER_ID_CLAIM': 'user_id',
    'UPDATE_LAST_LOGIN': False,
}

ADMIN_SECRET_KEY = os.environ.get('ADMIN_SECRET_KEY', '')

# Built-in demo identities accepted at login when no stored account matches.
LIFEFLOW_DEMO_LOGIN = env_bool('LIFEFLOW_DEMO_LOGIN', DEBUG)
LIFEFLOW_DEMO_ACCOUNTS = [
    {
        'email': 'admin@lifeflow.com',
        'password': 'admin123',
        'first_name': 'John',
        'last_name': 'Admin',
        'role': 'admin',
        'blood_type': 'O+',
    },
    {
        'email': 'staff@lifeflow.com',
        'password': 'staff123',
        'first_name': 'Jane',
        'last_name': 'Staff',
        'role': 'staff',
        'blood_type': 'A+',
    },
]


# ========================================
# REST FRAMEWORK
# ========================================
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'accounts.authentication.BearerTokenAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'lifeflow.pagination.LifeFlowPagination',
    'PAGE_SIZE': 10,
    'EXCEPTION_HANDLER': 'lifeflow.exceptions.api_exception_handler',
    'DEFAULT_THROTTLE_CLASSES': [
        'rest_framework.throttling.AnonRateThrottle',
        'rest_framework.throttling.UserRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'anon': os.environ.get('LIFEFLOW_ANON_THROTTLE', '1000/hour'),
        'user': os.environ.get('LIFEFLOW_USER_THROTTLE', '5000/hour'),
    },
    'DATETIME_FORMAT': 'iso-8601',
}

CORS_ALLOWED_ORIGINS = env_list('CORS_ALLOWED_ORIGINS', os.environ.get('CLIENT_URL', 'http://localhost:3000'))
CORS_ALLOW_CREDENTIALS = True


# ========================================
# DASHBOARD
# ========================================
LIFEFLOW_DASHBOARD_SOURCE = os.environ.get(
    'LIFEFLOW_DASHBOARD_SOURCE', 'api.dashboard.DatabaseDashboardSource'
)
LIFEFLOW_DASHBOARD_FALLBACK = env_bool('LIFEFLOW_DASHBOARD_FALLBACK', DEBUG)


# ========================================
# INTERNATIONALIZATION / STATIC
# ========================================
LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# ========================================
# LOGGING
# ========================================
LOG_LEVEL = os.environ.get('LIFEFLOW_LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
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
        'django': {
            'handlers': ['console'],
            'level': os.environ.get('DJANGO_LOG_LEVEL', 'WARNING'),
            'propagate': False,
        },
        **{
            name: {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False}
            for name in (
                'lifeflow', 'accounts', 'donors', 'inventory',
                'bloodrequests', 'campaigns', 'api', 'algorithms',
            )
        },
    },
}
