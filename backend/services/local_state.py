# =============================================================================
# FernID Backend
# services/local_state.py - Browser-held Admin Preferences
#
# Admin settings and the locally deactivated user list live in the signed
# Flask session cookie of the admin's browser. Neither is enforced anywhere.
# =============================================================================

import copy

from flask import session

from constants import DEFAULT_ADMIN_SETTINGS

SETTINGS_KEY = 'admin_settings'
DEACTIVATED_KEY = 'deactivated_users'

SETTINGS_SECTIONS = tuple(DEFAULT_ADMIN_SETTINGS)


def get_admin_settings() -> dict:
    """Stored settings merged over the defaults, section by section."""
    stored = session.get(SETTINGS_KEY) or {}
    settings = copy.deepcopy(DEFAULT_ADMIN_SETTINGS)

    for section in SETTINGS_SECTIONS:
        settings[section].update(stored.get(section) or {})

    return settings


def save_admin_settings(changes: dict) -> dict:
    """
    Merge known keys of known sections into the stored settings.

    Unknown sections and keys are ignored. Values are coerced to the type
    of the default.

    Returns:
        dict: The full settings after the update
    """
    settings = get_admin_settings()

    for section, values in (changes or {}).items():
        if section not in settings or not isinstance(values, dict):
            continue
        for key, value in values.items():
            if key not in DEFAULT_ADMIN_SETTINGS[section]:
                continue
            settings[section][key] = _coerce(DEFAULT_ADMIN_SETTINGS[section][key], value)

    session[SETTINGS_KEY] = settings
    session.permanent = True
    return settings


def reset_admin_settings() -> dict:
    session.pop(SETTINGS_KEY, None)
    return get_admin_settings()


def _coerce(default, value):
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)
    if isinstance(default, int):
        return int(value)
    return str(value)


def get_deactivated_ids() -> set:
    return set(session.get(DEACTIVATED_KEY) or [])


def toggle_deactivated(user_id: str) -> bool:
    """
    Flip the local deactivated flag for a user.

    Returns:
        bool: True if the user is now marked deactivated
    """
    ids = get_deactivated_ids()

    if user_id in ids:
        ids.discard(user_id)
        deactivated = False
    else:
        ids.add(user_id)
        deactivated = True

    session[DEACTIVATED_KEY] = sorted(ids)
    session.permanent = True
    return deactivated


def forget_deactivated(user_id: str):
    ids = get_deactivated_ids()
    if user_id in ids:
        ids.discard(user_id)
        session[DEACTIVATED_KEY] = sorted(ids)
