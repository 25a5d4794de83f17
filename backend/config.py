# =============================================================================
# FernID Backend
# config.py - Configuration Management
#
# Environment-based configuration for development, testing, and production.
# Uses python-dotenv to load environment variables from .env file.
# =============================================================================

import os
from datetime import timedelta
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _optional_int(name):
    value = os.getenv(name)
    return int(value) if value not in (None, '') else None


class Config:
    """
    Base configuration class with default settings.
    All other configuration classes inherit from this.

    Backend connection settings (SUPABASE_URL, SUPABASE_KEY) are not part of
    this class: the data gateway reads them straight from the environment.
    """

    # ==========================================================================
    # Flask Core Settings
    # ==========================================================================
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = False
    TESTING = False

    # ==========================================================================
    # Session Token Configuration
    # The signed token carries the serialized current user
    # ==========================================================================
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')
    JWT_TOKEN_LOCATION = ['cookies']
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)
    JWT_ACCESS_COOKIE_NAME = 'fernid_session'
    JWT_COOKIE_SECURE = False
    JWT_COOKIE_SAMESITE = 'Lax'
    JWT_COOKIE_CSRF_PROTECT = True
    JWT_SESSION_COOKIE = False

    # ==========================================================================
    # Rate Limiting Configuration
    # ==========================================================================
    RATELIMIT_ENABLED = os.getenv('RATELIMIT_ENABLED', 'True').lower() == 'true'
    RATELIMIT_STORAGE_URL = os.getenv('RATELIMIT_STORAGE_URL', 'memory://')
    RATELIMIT_STRATEGY = os.getenv('RATELIMIT_STRATEGY', 'fixed-window')
    RATELIMIT_DEFAULT = os.getenv('RATELIMIT_DEFAULT', '200 per hour')
    RATELIMIT_HEADERS_ENABLED = True

    # ==========================================================================
    # CORS Configuration
    # ==========================================================================
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')
    CORS_SUPPORTS_CREDENTIALS = True

    # ==========================================================================
    # File Upload Configuration
    # ==========================================================================
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max file size
    ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
    AVATAR_BUCKET = os.getenv('AVATAR_BUCKET', 'avatars')

    # ==========================================================================
    # Classifier Configuration
    # ==========================================================================
    # Seconds the scan flow waits before classifying
    SCAN_COMPLETION_DELAY = float(os.getenv('SCAN_COMPLETION_DELAY', '2.0'))
    CLASSIFIER_SEED = _optional_int('CLASSIFIER_SEED')

    # ==========================================================================
    # Admin Permissions
    # Admins without stored permissions get every capability when enabled
    # ==========================================================================
    LEGACY_ADMIN_FULL_ACCESS = os.getenv('LEGACY_ADMIN_FULL_ACCESS', 'True').lower() == 'true'

    # ==========================================================================
    # Browser Session (admin settings, locally deactivated users)
    # ==========================================================================
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """
    Development configuration with debug mode enabled.
    """
    DEBUG = True

    # Relaxed rate limiting for development
    RATELIMIT_DEFAULT = '1000 per hour'


class TestingConfig(Config):
    """
    Testing configuration for automated tests.
    The data gateway is replaced by an in-memory fake in the test suite.
    """
    TESTING = True
    DEBUG = True

    # Disable rate limiting during tests
    RATELIMIT_ENABLED = False

    # Disable CSRF for testing
    JWT_COOKIE_CSRF_PROTECT = False

    SCAN_COMPLETION_DELAY = 0.0
    CLASSIFIER_SEED = 7
    LEGACY_ADMIN_FULL_ACCESS = True


class ProductionConfig(Config):
    """
    Production configuration with security hardening.
    Requires all secrets to be set via environment variables.
    """
    DEBUG = False
    TESTING = False

    # Use Redis for rate limiting in production
    RATELIMIT_STORAGE_URL = os.getenv('REDIS_URL', 'memory://')

    # Stricter rate limits for production
    RATELIMIT_DEFAULT = '100 per hour'

    # Secure cookie settings for production
    JWT_COOKIE_SECURE = True
    JWT_COOKIE_SAMESITE = 'Strict'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Strict'


# =============================================================================
# Configuration Dictionary
# Maps environment names to configuration classes
# =============================================================================
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config():
    """
    Get the appropriate configuration based on FLASK_ENV environment variable.

    Returns:
        Config: Configuration class for the current environment
    """
    env = os.getenv('FLASK_ENV', 'development')
    return config.get(env, config['default'])
