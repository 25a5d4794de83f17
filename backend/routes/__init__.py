# =============================================================================
# FernID Backend
# routes/__init__.py - Routes Package
#
# This package contains all page blueprints organized by feature.
# =============================================================================

from .auth import auth_bp
from .dashboard import dashboard_bp
from .scan import scan_bp
from .history import history_bp
from .species import species_bp
from .admin import admin_bp

__all__ = [
    'auth_bp',
    'dashboard_bp',
    'scan_bp',
    'history_bp',
    'species_bp',
    'admin_bp'
]
