# =============================================================================
# FernID Backend
# utils.py - Utility Functions
#
# Common utility functions used across the application including
# validation, image handling, concurrency and response helpers.
# =============================================================================

import re
import time
import base64
from concurrent.futures import ThreadPoolExecutor
from flask import jsonify, current_app
from werkzeug.utils import secure_filename

from constants import SCAN_STEPS


# =============================================================================
# Validation Functions
# =============================================================================

PASSWORD_REQUIREMENTS = [
    ('At least 8 characters', lambda p: len(p) >= 8),
    ('Contains uppercase letter', lambda p: re.search(r'[A-Z]', p) is not None),
    ('Contains lowercase letter', lambda p: re.search(r'[a-z]', p) is not None),
    ('Contains number', lambda p: re.search(r'\d', p) is not None),
]

MIN_PASSWORD_STRENGTH = 3


def validate_email(email: str) -> bool:
    """
    Validate email format using regex pattern.

    Args:
        email: Email address to validate

    Returns:
        bool: True if valid email format, False otherwise
    """
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return re.match(pattern, email) is not None


def password_strength(password: str) -> int:
    """Number of password requirements met (0-4)."""
    return sum(1 for _, check in PASSWORD_REQUIREMENTS if check(password))


def validate_password(password: str) -> tuple[bool, str]:
    """
    Validate password strength requirements.

    Requirements (at least three must hold):
    - At least 8 characters
    - At least 1 uppercase letter
    - At least 1 lowercase letter
    - At least 1 number

    Args:
        password: Password to validate

    Returns:
        tuple: (is_valid: bool, message: str)
    """
    if not password:
        return False, "Password is required"
    if password_strength(password) < MIN_PASSWORD_STRENGTH:
        return False, "Password does not meet minimum requirements"
    return True, "Password is valid"


# =============================================================================
# File Handling Functions
# =============================================================================

MIME_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp'
}


def allowed_file(filename: str) -> bool:
    """
    Check if uploaded file has an allowed extension.

    Args:
        filename: Name of the uploaded file

    Returns:
        bool: True if extension is allowed, False otherwise
    """
    allowed_extensions = current_app.config.get(
        'ALLOWED_EXTENSIONS',
        {'png', 'jpg', 'jpeg', 'gif', 'webp'}
    )
    return '.' in filename and \
           filename.rsplit('.', 1)[1].lower() in allowed_extensions


def file_extension(filename: str, default: str = 'jpg') -> str:
    filename = secure_filename(filename or '')
    if '.' not in filename:
        return default
    return filename.rsplit('.', 1)[1].lower() or default


def generate_avatar_path(user_id: str, filename: str) -> str:
    """
    Build the storage path for a profile picture.

    Format: avatars/{user_id}-{epoch milliseconds}.{ext}
    """
    timestamp_ms = int(time.time() * 1000)
    return f"avatars/{user_id}-{timestamp_ms}.{file_extension(filename)}"


def image_to_data_uri(data: bytes, filename: str = '', content_type: str = None) -> str:
    """
    Encode image bytes as a data URI suitable for the scans image column.

    Args:
        data: Raw image bytes
        filename: Original filename, used for the MIME type
        content_type: Explicit MIME type (takes precedence)

    Returns:
        str: Base64 encoded image string with data URI prefix
    """
    encoded = base64.b64encode(data).decode('utf-8')
    mime_type = content_type or MIME_TYPES.get(file_extension(filename), 'image/jpeg')

    return f"data:{mime_type};base64,{encoded}"


# =============================================================================
# Text Helpers
# =============================================================================

def slugify(common_name: str) -> str:
    """Lowercase the name and replace each whitespace run with '-'."""
    return re.sub(r'\s+', '-', common_name.strip().lower())


# =============================================================================
# Scan Progress
# =============================================================================

def build_progress_steps(completed=None) -> list:
    """
    Build the display-only progress list for the scan page.

    Args:
        completed: Number of finished steps (all when None)

    Returns:
        list: One dict per step with label, percent and done flag
    """
    total = len(SCAN_STEPS)
    completed = total if completed is None else max(0, min(completed, total))
    step_percent = 100 // total

    return [
        {
            'label': label,
            'percent': step_percent * (index + 1),
            'done': index < completed,
        }
        for index, label in enumerate(SCAN_STEPS)
    ]


# =============================================================================
# Concurrency
# =============================================================================

def run_concurrently(*calls, max_workers=None):
    """
    Run independent zero-argument callables on a thread pool and join them.

    Returns:
        list: Results in the order the callables were given
    """
    if not calls:
        return []

    with ThreadPoolExecutor(max_workers=max_workers or len(calls)) as executor:
        futures = [executor.submit(call) for call in calls]
        return [future.result() for future in futures]


# =============================================================================
# Response Helpers
# =============================================================================

def success_response(data=None, message=None, status_code=200):
    """
    Create a standardized success response.

    Args:
        data: Response data (dict or list)
        message: Success message
        status_code: HTTP status code (default 200)

    Returns:
        tuple: (response_dict, status_code)
    """
    response = {
        'success': True,
        'status': 'success'
    }

    if data is not None:
        response['data'] = data
    if message:
        response['message'] = message

    return jsonify(response), status_code


def error_response(error, details=None, status_code=400):
    """
    Create a standardized error response.

    Args:
        error: Error message
        details: Additional error details
        status_code: HTTP status code (default 400)

    Returns:
        tuple: (response_dict, status_code)
    """
    response = {
        'success': False,
        'status': 'error',
        'error': error
    }

    if details:
        response['details'] = details

    return jsonify(response), status_code


def redirect_response(location, message=None, data=None, status_code=200):
    """
    Create a success response that tells the client where to navigate next.
    """
    response = {
        'success': True,
        'status': 'success',
        'redirect': location
    }

    if data is not None:
        response['data'] = data
    if message:
        response['message'] = message

    return jsonify(response), status_code
