# =============================================================================
# FernID Backend
# routes/admin.py - Admin Routes
#
# Admin dashboard, user management, scan logs and settings.
# Each page requires an admin session and the matching capability.
# =============================================================================

from collections import Counter
from datetime import datetime, timezone

import pandas as pd
from flask import Blueprint, Response, current_app, g, request

from constants import ADMIN_NAV_ITEMS
from decorators import validate_json
from models import AdminPermissions, Capability
from repositories import admin as admin_repo
from repositories import scans as scans_repo
from repositories import species as species_repo
from routes.auth import request_data
from services import local_state
from session import admin_page, visible_admin_nav
from utils import error_response, run_concurrently, success_response, validate_email

# Create blueprint
admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

RECENT_SCANS_LIMIT = 5
TOP_SPECIES_LIMIT = 5

SCAN_FILTER_TYPES = ('all', 'ferns', 'non-ferns', 'plants')

EXPORT_COLUMNS = [
    'id', 'timestamp', 'username', 'email', 'result',
    'species', 'is_plant', 'is_fern', 'confidence',
]


# =============================================================================
# Helpers
# =============================================================================

def top_species(scans, catalog, limit=TOP_SPECIES_LIMIT) -> list:
    """Most frequently identified species among fern scans."""
    counts = Counter(scan.species for scan in scans if scan.is_fern and scan.species)
    return [
        {
            'slug': slug,
            'name': catalog[slug].common_name if slug in catalog else slug,
            'count': count,
        }
        for slug, count in counts.most_common(limit)
    ]


def filter_scans(scans, users_by_id, filter_type='all', query='') -> list:
    """
    Apply the scan log type filter and search.

    The search matches owner username or email, species slug and species
    common name, case-insensitively.
    """
    query = query.lower()
    result = []

    for scan in scans:
        if filter_type == 'ferns' and not scan.is_fern:
            continue
        if filter_type == 'non-ferns' and scan.is_fern:
            continue
        if filter_type == 'plants' and not scan.is_plant:
            continue

        if query:
            owner = users_by_id.get(scan.user_id)
            haystack = [
                owner.username if owner else '',
                owner.email if owner else '',
                scan.species or '',
                scan.details.common_name if scan.details else '',
            ]
            if not any(query in value.lower() for value in haystack):
                continue

        result.append(scan)

    return result


def scan_log_stats(scans) -> dict:
    average = (
        round(sum(scan.confidence for scan in scans) / len(scans) * 100, 1)
        if scans else 0.0
    )
    return {
        'total_scans': len(scans),
        'fern_scans': sum(1 for scan in scans if scan.is_fern),
        'plant_scans': sum(1 for scan in scans if scan.is_plant),
        'average_confidence': average,
    }


def scan_log_row(scan, users_by_id, include_image=False) -> dict:
    owner = users_by_id.get(scan.user_id)
    return {
        **scan.to_dict(include_image=include_image),
        'username': owner.username if owner else None,
        'email': owner.email if owner else None,
    }


def load_scan_logs():
    """Fetch all scans and all users together."""
    scans, users = run_concurrently(scans_repo.get_all_scans, admin_repo.get_all_users)
    return scans, {user.id: user for user in users}


def scan_log_filters():
    filter_type = request.args.get('type', 'all').strip().lower()
    if filter_type not in SCAN_FILTER_TYPES:
        filter_type = 'all'
    return filter_type, request.args.get('q', '').strip()


# =============================================================================
# Admin Dashboard
# =============================================================================

@admin_bp.route('', methods=['GET'])
@admin_page()
def dashboard():
    """
    Landing page for every admin.

    Platform totals, the five latest scans and the five most found species
    are only included for admins with viewAnalytics.
    """
    admin = g.current_user
    page = {
        'admin': admin.to_dict(),
        'navigation': visible_admin_nav(admin, ADMIN_NAV_ITEMS),
    }

    legacy = current_app.config.get('LEGACY_ADMIN_FULL_ACCESS', True)
    if not admin.has_capability(Capability.VIEW_ANALYTICS, legacy):
        return success_response(page)

    users, scans, catalog = run_concurrently(
        admin_repo.get_all_users,
        scans_repo.get_all_scans,
        species_repo.get_all_fern_species,
    )
    users_by_id = {user.id: user for user in users}

    return success_response({
        **page,
        'stats': {
            'total_users': len(users),
            'total_scans': len(scans),
            'ferns_identified': sum(1 for scan in scans if scan.is_fern),
            'species_count': len(catalog),
        },
        'recent_scans': [
            scan_log_row(scan, users_by_id) for scan in scans[:RECENT_SCANS_LIMIT]
        ],
        'top_species': top_species(scans, catalog),
    })


# =============================================================================
# User Management
# =============================================================================

@admin_bp.route('/users', methods=['GET'])
@admin_page(Capability.MANAGE_USERS)
def list_users():
    """
    All users with their scan counts and local deactivation flag.

    Query Parameters:
        q (str): Filter by username or email (optional)
    """
    users, scans = run_concurrently(admin_repo.get_all_users, scans_repo.get_all_scans)
    scan_counts = Counter(scan.user_id for scan in scans)
    deactivated = local_state.get_deactivated_ids()

    query = request.args.get('q', '').strip().lower()
    matches = [
        user for user in users
        if not query or query in user.username.lower() or query in user.email.lower()
    ]

    return success_response({
        'items': [
            {
                **user.to_dict(),
                'scan_count': scan_counts.get(user.id, 0),
                'deactivated': user.id in deactivated,
            }
            for user in matches
        ],
        'total': len(users),
        'capabilities': [cap.value for cap in Capability],
    })


@admin_bp.route('/users/<user_id>', methods=['PUT'])
@admin_page(Capability.MANAGE_USERS)
def edit_user(user_id):
    """
    Update a user's username and email.

    Request Body:
        username (str): Optional
        email (str): Optional
    """
    data = request_data()
    username = (data.get('username') or '').strip() or None
    email = (data.get('email') or '').strip().lower() or None

    if email and not validate_email(email):
        return error_response('Invalid email format', status_code=400)

    if admin_repo.get_user(user_id) is None:
        return error_response('User not found', status_code=404)

    if not admin_repo.update_user(user_id, username=username, email=email):
        return error_response('Failed to update user.', status_code=500)

    return success_response(
        {'user': admin_repo.get_user(user_id).to_dict()},
        message='User updated successfully'
    )


@admin_bp.route('/users/<user_id>', methods=['DELETE'])
@admin_page(Capability.MANAGE_USERS)
def remove_user(user_id):
    """
    Delete a user's scans and profile.

    Returns:
        200: Deleted
        500: Scans or profile could not be deleted
    """
    if not admin_repo.delete_user(user_id):
        return error_response('Failed to delete user.', status_code=500)

    local_state.forget_deactivated(user_id)

    current_app.logger.info(f"Admin {g.current_user.id} deleted user {user_id}")

    return success_response(message='User deleted successfully')


@admin_bp.route('/users/<user_id>/promote', methods=['POST'])
@admin_page(Capability.MANAGE_USERS)
def promote_user(user_id):
    """
    Make a user an admin with the chosen capabilities.

    Request Body:
        permissions (dict): manage_users, manage_content, view_analytics,
            system_settings booleans (camelCase keys such as manageUsers
            also accepted). Missing flags are False.
    """
    data = request_data()
    requested = data.get('permissions')

    if requested is not None and not isinstance(requested, dict):
        return error_response('permissions must be an object', status_code=400)

    permissions = AdminPermissions.from_dict(requested)

    if not admin_repo.promote_user(user_id, permissions):
        return error_response('Failed to promote user.', status_code=500)

    current_app.logger.info(f"Admin {g.current_user.id} promoted user {user_id}")

    return success_response(
        {'permissions': permissions.to_dict()},
        message='User promoted to admin'
    )


@admin_bp.route('/users/<user_id>/demote', methods=['POST'])
@admin_page(Capability.MANAGE_USERS)
def demote_user(user_id):
    """Set the role back to user. Stored permission flags are kept."""
    if not admin_repo.update_user_role(user_id, 'user'):
        return error_response('Failed to demote user.', status_code=500)

    current_app.logger.info(f"Admin {g.current_user.id} demoted user {user_id}")

    return success_response(message='User demoted to regular user')


@admin_bp.route('/users/<user_id>/deactivate', methods=['POST'])
@admin_page(Capability.MANAGE_USERS)
def toggle_user_deactivation(user_id):
    """
    Toggle the deactivated marker kept in this admin's browser session.
    The user can still sign in.
    """
    deactivated = local_state.toggle_deactivated(user_id)

    return success_response(
        {'user_id': user_id, 'deactivated': deactivated},
        message='User deactivated' if deactivated else 'User reactivated'
    )


# =============================================================================
# Scan Logs
# =============================================================================

@admin_bp.route('/scans', methods=['GET'])
@admin_page(Capability.VIEW_ANALYTICS)
def scan_logs():
    """
    All scans with owner details.

    Query Parameters:
        type (str): all, ferns, non-ferns or plants (default: all)
        q (str): Search owner username/email, species slug or common name
    """
    filter_type, query = scan_log_filters()
    scans, users_by_id = load_scan_logs()
    matches = filter_scans(scans, users_by_id, filter_type, query)

    return success_response({
        'items': [scan_log_row(scan, users_by_id) for scan in matches],
        'count': len(matches),
        'filtered': filter_type != 'all' or bool(query),
        'type': filter_type,
        'stats': scan_log_stats(scans),
    })


@admin_bp.route('/scans/export', methods=['GET'])
@admin_page(Capability.VIEW_ANALYTICS)
def export_scan_logs():
    """
    Download the filtered scan logs as CSV.

    Accepts the same query parameters as the scan log page.
    """
    filter_type, query = scan_log_filters()
    scans, users_by_id = load_scan_logs()
    matches = filter_scans(scans, users_by_id, filter_type, query)

    rows = []
    for scan in matches:
        owner = users_by_id.get(scan.user_id)
        rows.append({
            'id': scan.id,
            'timestamp': scan.timestamp,
            'username': owner.username if owner else '',
            'email': owner.email if owner else '',
            'result': scan.display_name,
            'species': scan.species or '',
            'is_plant': scan.is_plant,
            'is_fern': scan.is_fern,
            'confidence': round(scan.confidence * 100, 1),
        })

    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    csv_data = df.to_csv(index=False)

    filename = f"scan_logs_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}.csv"
    current_app.logger.info(f"Admin {g.current_user.id} exported {len(rows)} scan logs")

    return Response(
        csv_data,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@admin_bp.route('/scans/<scan_id>', methods=['GET'])
@admin_page(Capability.VIEW_ANALYTICS)
def scan_log_detail(scan_id):
    scan = scans_repo.get_scan_by_id(scan_id)

    if scan is None:
        return error_response('Scan not found', status_code=404)

    owner = admin_repo.get_user(scan.user_id)

    return success_response({
        'scan': scan.to_dict(),
        'owner': owner.to_dict() if owner else None,
    })


# =============================================================================
# Settings
# =============================================================================

@admin_bp.route('/settings', methods=['GET'])
@admin_page(Capability.SYSTEM_SETTINGS)
def get_settings():
    """Display-only settings kept in the admin's browser session."""
    return success_response({'settings': local_state.get_admin_settings()})


@admin_bp.route('/settings', methods=['PUT'])
@admin_page(Capability.SYSTEM_SETTINGS)
@validate_json()
def save_settings(data):
    """
    Merge changes into the stored settings.

    Request Body:
        general, model, notifications, security (dict): Partial sections
    """
    try:
        settings = local_state.save_admin_settings(data)
    except (TypeError, ValueError) as e:
        return error_response('Invalid settings value', details=str(e), status_code=400)

    return success_response({'settings': settings}, message='Settings saved successfully!')


@admin_bp.route('/settings/reset', methods=['POST'])
@admin_page(Capability.SYSTEM_SETTINGS)
def reset_settings():
    return success_response(
        {'settings': local_state.reset_admin_settings()},
        message='Settings reset to defaults'
    )
