# =============================================================================
# FernID Backend
# repositories/auth.py - Account Repository
#
# Sign-in, registration and profile maintenance against the hosted auth
# service, the profiles table and the avatars storage bucket.
# =============================================================================

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from flask import current_app, has_app_context

from constants import MESSAGES
from decorators import absorb_backend_errors
from exceptions import ConfigurationError
from extensions import get_client
from mappers import map_profile_row
from models import User
from utils import generate_avatar_path, MIME_TYPES, file_extension

logger = logging.getLogger(__name__)

PROFILES_TABLE = 'profiles'
DEFAULT_AVATAR_BUCKET = 'avatars'

# The shared client holds one auth session. A sign-in and the calls that
# rely on it must not interleave with another sign-in.
_auth_session_lock = threading.Lock()


@dataclass
class Upload:
    """An uploaded file held in memory."""
    filename: str
    data: bytes
    content_type: Optional[str] = None


@dataclass
class RegistrationResult:
    user: Optional[User] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.user is not None


# =============================================================================
# Helpers
# =============================================================================

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _identity_created_at(identity) -> str:
    created_at = getattr(identity, 'created_at', None)
    if isinstance(created_at, datetime):
        return created_at.isoformat()
    return created_at or _now_iso()


def _sign_in(client, email, password):
    """Return the auth identity for the credentials, or None if rejected."""
    try:
        response = client.auth.sign_in_with_password({'email': email, 'password': password})
    except Exception as e:
        logger.debug(f"sign_in_with_password rejected: {e}")
        return None
    return getattr(response, 'user', None)


def fetch_profile_row(client, user_id) -> Optional[dict]:
    """
    Read one profiles row. A failed lookup is treated the same as a
    missing row.
    """
    try:
        response = client.table(PROFILES_TABLE).select('*').eq('id', user_id).limit(1).execute()
    except Exception as e:
        logger.warning(f"Profile lookup failed for {user_id}: {e}")
        return None
    rows = response.data or []
    return rows[0] if rows else None


def _avatar_bucket() -> str:
    if has_app_context():
        return current_app.config.get('AVATAR_BUCKET', DEFAULT_AVATAR_BUCKET)
    return DEFAULT_AVATAR_BUCKET


# =============================================================================
# Profile Pictures
# =============================================================================

def upload_avatar(user_id: str, picture: Upload) -> Optional[str]:
    """
    Store a profile picture and return its public URL.

    Args:
        user_id: Owner of the picture
        picture: Uploaded file

    Returns:
        str: Public URL, or None if the upload failed
    """
    client = get_client()
    bucket = client.storage.from_(_avatar_bucket())
    path = generate_avatar_path(user_id, picture.filename)
    content_type = picture.content_type or MIME_TYPES.get(
        file_extension(picture.filename), 'image/jpeg'
    )

    try:
        bucket.upload(path, picture.data, {'content-type': content_type})
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(f"Avatar upload failed for {user_id} ({path}): {e}")
        return None

    try:
        url = bucket.get_public_url(path)
    except Exception as e:
        logger.error(f"Avatar public URL lookup failed for {path}: {e}")
        return None

    logger.info(f"Avatar stored at {path}")
    return url


# =============================================================================
# Sign In
# =============================================================================

@absorb_backend_errors(default=None)
def login_with_email(email: str, password: str) -> Optional[User]:
    """
    Authenticate and load the matching profile.

    When the identity exists but no profile row does, a minimal user is
    returned (username falls back to the email).

    Returns:
        User: Signed-in user, or None for rejected credentials
    """
    client = get_client()

    with _auth_session_lock:
        identity = _sign_in(client, email, password)
        if identity is None:
            return None

        row = fetch_profile_row(client, identity.id)

    if row is None:
        logger.info(f"No profile row for {identity.id}, using minimal user")
        return User(
            id=identity.id,
            username=identity.email or 'user',
            email=identity.email or '',
            role='user',
            created_at=_identity_created_at(identity),
        )

    user = map_profile_row(row)
    user.email = identity.email or user.email
    return user


# =============================================================================
# Registration
# =============================================================================

def _insert_profile(client, identity, username, email, picture) -> Optional[User]:
    picture_url = upload_avatar(identity.id, picture) if picture else None
    created_at = _identity_created_at(identity)

    try:
        client.table(PROFILES_TABLE).insert({
            'id': identity.id,
            'username': username,
            'email': identity.email or email,
            'role': 'user',
            'created_at': created_at,
            'profile_picture': picture_url,
        }).execute()
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(f"Profile insert error for {identity.id}: {e}")
        return None

    return User(
        id=identity.id,
        username=username,
        email=identity.email or email,
        role='user',
        created_at=created_at,
        profile_picture=picture_url,
    )


def register_with_email(username: str, email: str, password: str,
                        picture: Optional[Upload] = None) -> RegistrationResult:
    """
    Register an account and create its profile row.

    If the credentials already sign in and a profile exists, the attempt is
    a duplicate. If they sign in but the profile is gone, the profile is
    recreated. Otherwise a new identity is signed up. A failed picture
    upload is logged and registration continues without one.

    Returns:
        RegistrationResult: user on success, error message otherwise
    """
    try:
        client = get_client()

        with _auth_session_lock:
            existing = _sign_in(client, email, password)

            if existing is not None:
                if fetch_profile_row(client, existing.id) is not None:
                    return RegistrationResult(error=MESSAGES['DUPLICATE_ACCOUNT'])

                logger.info(f"Recreating missing profile for {existing.id}")
                user = _insert_profile(client, existing, username, email, picture)
                if user is None:
                    return RegistrationResult(error=MESSAGES['PROFILE_RECREATE_FAILED'])
                return RegistrationResult(user=user)

            try:
                response = client.auth.sign_up({'email': email, 'password': password})
            except ConfigurationError:
                raise
            except Exception as e:
                logger.warning(f"sign_up failed for {email}: {e}")
                return RegistrationResult(error=str(e) or MESSAGES['REGISTER_FAILED'])

            identity = getattr(response, 'user', None)
            if identity is None:
                return RegistrationResult(error=MESSAGES['REGISTER_FAILED'])

            user = _insert_profile(client, identity, username, email, picture)
            if user is None:
                return RegistrationResult(error=MESSAGES['PROFILE_CREATE_FAILED'])

            logger.info(f"New user registered: {email}")
            return RegistrationResult(user=user)

    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(f"register_with_email error: {e}")
        return RegistrationResult(error=MESSAGES['REGISTER_UNEXPECTED'])


# =============================================================================
# Profile Maintenance
# =============================================================================

@absorb_backend_errors(default=None)
def update_profile(user_id: str, username: Optional[str] = None,
                   email: Optional[str] = None,
                   picture: Optional[Upload] = None) -> Optional[User]:
    """
    Update username, email and picture on a profile.

    Returns:
        User: The stored profile after the update, or None on failure
    """
    client = get_client()
    changes = {}

    if username:
        changes['username'] = username
    if email:
        changes['email'] = email
    if picture:
        url = upload_avatar(user_id, picture)
        if url:
            changes['profile_picture'] = url

    if changes:
        client.table(PROFILES_TABLE).update(changes).eq('id', user_id).execute()

    row = fetch_profile_row(client, user_id)
    return map_profile_row(row) if row else None


@absorb_backend_errors(default=False)
def change_password(email: str, current_password: str, new_password: str) -> bool:
    """
    Change the password after re-checking the current one.

    Returns:
        bool: True if the new password was stored
    """
    client = get_client()

    with _auth_session_lock:
        if _sign_in(client, email, current_password) is None:
            return False

        client.auth.update_user({'password': new_password})

    logger.info(f"Password changed for {email}")
    return True
