# =============================================================================
# FernID Backend
# extensions.py - Flask Extensions & Data Gateway
#
# This module initializes Flask extensions without the app instance to prevent
# circular imports. Extensions are initialized with the app in the factory.
# The hosted backend client is created lazily, once per process.
# =============================================================================

import os
import logging

from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from supabase import create_client

from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# =============================================================================
# Session Tokens
# Signs and verifies the cookie that carries the current user
# =============================================================================
jwt = JWTManager()

# =============================================================================
# Cross-Origin Resource Sharing
# Enables frontend to communicate with backend from different origins
# =============================================================================
cors = CORS()

# =============================================================================
# Rate Limiting
# Protects API endpoints from abuse
# =============================================================================
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per hour"],
    storage_uri="memory://",
    strategy="fixed-window"
)

# =============================================================================
# Remote Data Gateway
# One client handle per process for auth, tables and file storage
# =============================================================================
SUPABASE_URL_ENV = 'SUPABASE_URL'
SUPABASE_KEY_ENV = 'SUPABASE_KEY'

_client = None


def is_gateway_configured() -> bool:
    """Check whether both connection settings are present."""
    return bool(os.getenv(SUPABASE_URL_ENV)) and bool(os.getenv(SUPABASE_KEY_ENV))


def get_client():
    """
    Return the process-wide backend client, creating it on first use.

    Returns:
        Client: Configured supabase client

    Raises:
        ConfigurationError: If the endpoint URL or access key is missing
    """
    global _client

    if _client is None:
        url = os.getenv(SUPABASE_URL_ENV, '')
        key = os.getenv(SUPABASE_KEY_ENV, '')

        if not url or not key:
            missing = [
                name for name, value in ((SUPABASE_URL_ENV, url), (SUPABASE_KEY_ENV, key))
                if not value
            ]
            logger.critical(f"Backend connection settings missing: {', '.join(missing)}")
            raise ConfigurationError(
                f"Backend connection settings are not set: {', '.join(missing)}"
            )

        _client = create_client(url, key)
        logger.info("Backend client created")

    return _client


def reset_client():
    """Drop the cached client so the next call re-reads the environment."""
    global _client
    _client = None
