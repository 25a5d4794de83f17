# =============================================================================
# FernID Backend
# routes/auth.py - Authentication Routes
#
# Handles sign in, registration, admin sign in and logout.
# The signed session cookie is issued here.
# =============================================================================

from flask import Blueprint, request, current_app, redirect

from constants import (
    ADMIN_DASHBOARD_ROUTE,
    DASHBOARD_ROUTE,
    LOGIN_ROUTE,
    MESSAGES,
)
from extensions import limiter
from repositories import auth as auth_repo
from repositories.auth import Upload
from session import end_session, load_session_user, start_session
from utils import (
    allowed_file,
    error_response,
    redirect_response,
    success_response,
    validate_email,
    validate_password,
    PASSWORD_REQUIREMENTS,
)

# Create blueprint
auth_bp = Blueprint('auth', __name__)

MAX_PROFILE_PICTURE_BYTES = 5 * 1024 * 1024


def request_data() -> dict:
    """Request fields from a JSON body or a form submission."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def home_for(user) -> str:
    return ADMIN_DASHBOARD_ROUTE if user.is_admin else DASHBOARD_ROUTE


def _signed_in(user, status_code=200, message=None):
    response, status = redirect_response(
        home_for(user),
        message=message,
        data={'user': user.to_dict()},
        status_code=status_code
    )
    start_session(response, user)
    return response, status


# =============================================================================
# User Login
# =============================================================================

@auth_bp.route('/login', methods=['GET'])
def login_page():
    """
    Login page. Signed-in visitors are sent to their home page.
    """
    user = load_session_user()
    if user:
        return redirect(home_for(user))

    return success_response({'page': 'login', 'fields': ['email', 'password']})


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """
    Authenticate a user and start a session.

    Request Body:
        email (str): User's email address
        password (str): User's password

    Returns:
        200: Login successful, redirect to /admin or /dashboard by role
        400: Missing credentials
        401: Invalid credentials
    """
    data = request_data()

    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    # Validate input
    if not email or not password:
        return error_response('Email and password are required', status_code=400)

    user = auth_repo.login_with_email(email, password)

    if not user:
        current_app.logger.info(f"Failed login for {email}")
        return error_response(MESSAGES['INVALID_CREDENTIALS'], status_code=401)

    current_app.logger.info(f"User logged in: {email} ({user.role})")

    return _signed_in(user, message='Login successful')


# =============================================================================
# Admin Login
# =============================================================================

@auth_bp.route('/admin/login', methods=['GET'])
def admin_login_page():
    user = load_session_user()
    if user and user.is_admin:
        return redirect(ADMIN_DASHBOARD_ROUTE)

    return success_response({'page': 'admin_login', 'fields': ['email', 'password']})


@auth_bp.route('/admin/login', methods=['POST'])
@limiter.limit("10 per minute")
def admin_login():
    """
    Authenticate an admin. Valid credentials of a regular user are refused
    and no session is started.

    Returns:
        200: Login successful, redirect to /admin
        400: Missing credentials
        401: Invalid admin credentials
    """
    data = request_data()

    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        return error_response('Email and password are required', status_code=400)

    user = auth_repo.login_with_email(email, password)

    if not user or not user.is_admin:
        current_app.logger.warning(f"Failed admin login for {email}")
        return error_response(MESSAGES['INVALID_ADMIN_CREDENTIALS'], status_code=401)

    current_app.logger.info(f"Admin logged in: {email}")

    return _signed_in(user, message='Login successful')


# =============================================================================
# User Registration
# =============================================================================

@auth_bp.route('/register', methods=['GET'])
def register_page():
    user = load_session_user()
    if user:
        return redirect(home_for(user))

    return success_response({
        'page': 'register',
        'fields': ['username', 'email', 'password', 'confirm_password', 'profile_picture'],
        'password_requirements': [label for label, _ in PASSWORD_REQUIREMENTS],
    })


def read_picture(field_name='profile_picture'):
    """
    Read an optional uploaded picture.

    Returns:
        tuple: (Upload or None, error message or None)
    """
    file = request.files.get(field_name)
    if file is None or file.filename == '':
        return None, None

    if not allowed_file(file.filename):
        return None, 'Please select a valid image file'

    data = file.read()
    if len(data) > MAX_PROFILE_PICTURE_BYTES:
        return None, 'Profile picture must be less than 5MB'

    return Upload(filename=file.filename, data=data, content_type=file.mimetype), None


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute")
def register():
    """
    Register a new account and start a session.

    Request Body (JSON or multipart form):
        username (str): Display name (required)
        email (str): Email address (required)
        password (str): Password, at least three of the four requirements
        confirm_password (str): Must equal password when given
        profile_picture (file): Optional image, under 5MB

    Returns:
        201: Registered, redirect to /dashboard
        400: Validation or registration error
        409: Account already exists
    """
    data = request_data()

    username = (data.get('username') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    confirm_password = data.get('confirm_password')

    if not username:
        return error_response('Username is required', status_code=400)
    if not email:
        return error_response('Email is required', status_code=400)
    if not validate_email(email):
        return error_response('Invalid email format', status_code=400)

    if confirm_password is not None and confirm_password != password:
        return error_response('Passwords do not match', status_code=400)

    is_valid, password_message = validate_password(password)
    if not is_valid:
        return error_response(password_message, status_code=400)

    picture, picture_error = read_picture()
    if picture_error:
        return error_response(picture_error, status_code=400)

    result = auth_repo.register_with_email(username, email, password, picture)

    if not result.ok:
        status_code = 409 if result.error == MESSAGES['DUPLICATE_ACCOUNT'] else 400
        return error_response(result.error or MESSAGES['REGISTER_FAILED'], status_code=status_code)

    current_app.logger.info(f"New user registered: {email}")

    return _signed_in(result.user, status_code=201, message='Registration successful')


# =============================================================================
# Logout
# =============================================================================

@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Clear the session and go back to the login page."""
    user = load_session_user()
    if user:
        current_app.logger.info(f"User logged out: {user.email}")

    return end_session(redirect(LOGIN_ROUTE))
