# =============================================================================
# FernID Backend
# session.py - Session State & Route Guards
#
# The current user lives in a signed token cookie. Guards read it locally
# (no backend round-trip) and decide whether a page renders or redirects.
# =============================================================================

import logging
from functools import wraps
from typing import Optional

from flask import current_app, g, redirect
from flask_jwt_extended import (
    create_access_token,
    get_jwt,
    set_access_cookies,
    unset_jwt_cookies,
    verify_jwt_in_request,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from constants import (
    ADMIN_DASHBOARD_ROUTE,
    ADMIN_LOGIN_ROUTE,
    LOGIN_ROUTE,
)
from models import Capability, User
from utils import error_response

logger = logging.getLogger(__name__)

USER_CLAIM = 'user'


# =============================================================================
# Session Lifecycle
# =============================================================================

def start_session(response, user: User):
    """
    Store the serialized user in a signed cookie on the response.

    Returns:
        The same response, for chaining
    """
    token = create_access_token(
        identity=str(user.id),
        additional_claims={USER_CLAIM: user.to_dict()}
    )
    set_access_cookies(response, token)
    return response


def refresh_session(response, user: User):
    """Re-issue the cookie after the stored user changed."""
    return start_session(response, user)


def end_session(response):
    unset_jwt_cookies(response)
    return response


def load_session_user() -> Optional[User]:
    """
    Read the current user from the request cookie.

    Missing, tampered, expired or malformed tokens all yield None.
    """
    try:
        verify_jwt_in_request(optional=True)
        claims = get_jwt()
    except (JWTExtendedException, PyJWTError) as e:
        logger.debug(f"Session token rejected: {e}")
        return None

    data = claims.get(USER_CLAIM) if claims else None
    if not data:
        return None

    try:
        return User.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Session user could not be read: {e}")
        return None


# =============================================================================
# Guards
# =============================================================================

def guard_redirect(user: Optional[User], admin_route: bool) -> Optional[str]:
    """
    Decide where a request for a guarded page must go instead.

    Args:
        user: Current session user, if any
        admin_route: Whether the requested page is in the admin area

    Returns:
        str: Redirect target, or None to render the page
    """
    if user is None:
        return ADMIN_LOGIN_ROUTE if admin_route else LOGIN_ROUTE

    if admin_route and not user.is_admin:
        return ADMIN_LOGIN_ROUTE

    if not admin_route and user.is_admin:
        return ADMIN_DASHBOARD_ROUTE

    return None


def user_page(fn):
    """
    Require a signed-in regular user. The user is available as g.current_user.

    Usage:
        @dashboard_bp.route('/dashboard')
        @user_page
        def dashboard():
            ...
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = load_session_user()
        target = guard_redirect(user, admin_route=False)

        if target:
            return redirect(target)

        g.current_user = user
        return fn(*args, **kwargs)
    return wrapper


def admin_page(capability: Optional[Capability] = None):
    """
    Require a signed-in admin, and optionally one capability.

    Admins without stored permissions are granted every capability when
    LEGACY_ADMIN_FULL_ACCESS is enabled.

    Usage:
        @admin_bp.route('/admin/users')
        @admin_page(Capability.MANAGE_USERS)
        def users():
            ...
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = load_session_user()
            target = guard_redirect(user, admin_route=True)

            if target:
                return redirect(target)

            legacy = current_app.config.get('LEGACY_ADMIN_FULL_ACCESS', True)
            if capability is not None and not user.has_capability(capability, legacy):
                current_app.logger.warning(
                    f"Admin {user.id} denied {capability.value} on {fn.__name__}"
                )
                return error_response(
                    'You do not have permission to access this page',
                    details={'required_permission': capability.value},
                    status_code=403
                )

            g.current_user = user
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def visible_admin_nav(user: User, nav_items) -> list:
    """Admin navigation entries the user's capabilities allow."""
    legacy = current_app.config.get('LEGACY_ADMIN_FULL_ACCESS', True)
    return [
        item for item in nav_items
        if user.has_capability(Capability(item['permission']), legacy)
    ]
