# =============================================================================
# FernID Backend
# routes/dashboard.py - User Dashboard & Profile Routes
# =============================================================================

from flask import Blueprint, current_app, g

from repositories import auth as auth_repo
from repositories import scans as scans_repo
from routes.auth import read_picture, request_data
from session import refresh_session, user_page
from utils import error_response, success_response, validate_email

# Create blueprint
dashboard_bp = Blueprint('dashboard', __name__)

RECENT_SCANS_LIMIT = 3
MIN_NEW_PASSWORD_LENGTH = 8


def scan_stats(scans) -> dict:
    fern_scans = [scan for scan in scans if scan.is_fern]
    return {
        'total_scans': len(scans),
        'ferns_identified': len(fern_scans),
        'unique_species': len({scan.species for scan in fern_scans if scan.species}),
    }


# =============================================================================
# Dashboard
# =============================================================================

@dashboard_bp.route('/dashboard', methods=['GET'])
@user_page
def dashboard():
    """
    Greeting, scan statistics and the three most recent scans.
    """
    user = g.current_user
    scans = scans_repo.get_user_scans(user.id)

    return success_response({
        'greeting': f"Welcome back, {user.username}!",
        'user': user.to_dict(),
        'stats': {
            **scan_stats(scans),
            'member_since': user.created_at,
        },
        'recent_scans': [
            scan.to_dict() for scan in scans[:RECENT_SCANS_LIMIT]
        ],
    })


# =============================================================================
# Profile
# =============================================================================

@dashboard_bp.route('/profile', methods=['GET'])
@user_page
def profile():
    return success_response({'user': g.current_user.to_dict()})


@dashboard_bp.route('/profile', methods=['PUT', 'POST'])
@user_page
def update_profile():
    """
    Update username, email and profile picture.

    Request Body (JSON or multipart form):
        username (str): New display name (optional)
        email (str): New email (optional)
        profile_picture (file): New picture (optional)

    Returns:
        200: Profile updated, session refreshed
        400: Validation error
        500: Profile could not be saved
    """
    user = g.current_user
    data = request_data()

    username = (data.get('username') or '').strip() or None
    email = (data.get('email') or '').strip().lower() or None

    if email and not validate_email(email):
        return error_response('Invalid email format', status_code=400)

    picture, picture_error = read_picture()
    if picture_error:
        return error_response(picture_error, status_code=400)

    updated = auth_repo.update_profile(user.id, username=username, email=email, picture=picture)

    if updated is None:
        return error_response('Failed to update profile. Please try again.', status_code=500)

    # Stored profile rows do not carry the auth email
    updated.email = updated.email or user.email

    current_app.logger.info(f"Profile updated for {user.id}")

    response, status = success_response(
        {'user': updated.to_dict()},
        message='Profile updated successfully!'
    )
    refresh_session(response, updated)
    return response, status


@dashboard_bp.route('/profile/password', methods=['POST'])
@user_page
def change_password():
    """
    Change the password.

    Request Body:
        current_password (str)
        new_password (str): At least 8 characters
        confirm_password (str): Must equal new_password

    Returns:
        200: Password changed
        400: Validation error or wrong current password
    """
    user = g.current_user
    data = request_data()

    current_password = data.get('current_password') or ''
    new_password = data.get('new_password') or ''
    confirm_password = data.get('confirm_password') or ''

    if not current_password:
        return error_response('Current password is required', status_code=400)
    if new_password != confirm_password:
        return error_response('New passwords do not match', status_code=400)
    if len(new_password) < MIN_NEW_PASSWORD_LENGTH:
        return error_response('Password must be at least 8 characters', status_code=400)

    if not auth_repo.change_password(user.email, current_password, new_password):
        return error_response('Current password is incorrect', status_code=400)

    return success_response(message='Password changed successfully!')
