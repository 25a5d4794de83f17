# =============================================================================
# FernID Backend
# repositories/admin.py - User Administration Repository
#
# Listing, role changes, edits and deletion of user profiles.
# =============================================================================

import logging
from typing import Optional

from decorators import absorb_backend_errors
from extensions import get_client
from mappers import map_profile_row
from models import AdminPermissions, User
from repositories.auth import PROFILES_TABLE, fetch_profile_row
from repositories.scans import SCANS_TABLE

logger = logging.getLogger(__name__)


@absorb_backend_errors(default=[])
def get_all_users() -> list:
    """All users, newest first."""
    response = (
        get_client().table(PROFILES_TABLE)
        .select('*')
        .order('created_at', desc=True)
        .execute()
    )
    return [map_profile_row(row) for row in response.data or []]


@absorb_backend_errors(default=None)
def get_user(user_id: str) -> Optional[User]:
    row = fetch_profile_row(get_client(), user_id)
    return map_profile_row(row) if row else None


@absorb_backend_errors(default=False)
def promote_user(user_id: str, permissions: Optional[AdminPermissions] = None) -> bool:
    """
    Make a user an admin and write all four capability flags.

    Flags not granted in permissions are stored as False.
    """
    permissions = permissions or AdminPermissions()

    get_client().table(PROFILES_TABLE).update({
        'role': 'admin',
        'admin_permissions': permissions.to_row(),
    }).eq('id', user_id).execute()

    logger.info(f"User {user_id} promoted with {[c.value for c in permissions.granted()]}")
    return True


@absorb_backend_errors(default=False)
def update_user_role(user_id: str, role: str) -> bool:
    """
    Set the role only. Stored permission flags are left untouched, so a
    demoted user keeps them in storage; the mapper ignores them while the
    role is 'user'.
    """
    if role not in ('admin', 'user'):
        raise ValueError(f"Unknown role: {role}")

    get_client().table(PROFILES_TABLE).update({'role': role}).eq('id', user_id).execute()
    logger.info(f"User {user_id} role set to {role}")
    return True


@absorb_backend_errors(default=False)
def update_user(user_id: str, username: Optional[str] = None,
                email: Optional[str] = None) -> bool:
    changes = {}
    if username:
        changes['username'] = username
    if email:
        changes['email'] = email

    if not changes:
        return True

    get_client().table(PROFILES_TABLE).update(changes).eq('id', user_id).execute()
    return True


def delete_user(user_id: str) -> bool:
    """
    Delete a user's scans, then the profile row.

    If the scans cannot be deleted the profile is left in place.
    The auth identity is not removed.

    Returns:
        bool: True if both steps succeeded
    """
    client = get_client()

    try:
        client.table(SCANS_TABLE).delete().eq('user_id', user_id).execute()
    except Exception as e:
        logger.error(f"delete_user: failed to delete scans for {user_id}: {e}")
        return False

    try:
        client.table(PROFILES_TABLE).delete().eq('id', user_id).execute()
    except Exception as e:
        logger.error(f"delete_user: failed to delete profile {user_id}: {e}")
        return False

    logger.info(f"User {user_id} deleted")
    return True
