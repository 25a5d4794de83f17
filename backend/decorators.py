# =============================================================================
# FernID Backend
# decorators.py - Reusable Decorators
#
# Custom decorators for request validation, backend error handling and
# rate limit keys.
# =============================================================================

import logging
from functools import wraps
from flask import request, jsonify, current_app

from exceptions import ConfigurationError, ScanSaveError


def absorb_backend_errors(default=None, operation=None):
    """
    Log backend errors and return a fallback value instead of raising.

    Repository functions run inside and outside an application context
    (worker threads), so errors go to the module logger of the wrapped
    function. ConfigurationError and ScanSaveError always propagate.

    Args:
        default: Value returned on failure. Lists and dicts are copied per call.
        operation: Name used in the log line (defaults to the function name)

    Usage:
        @absorb_backend_errors(default=[])
        def get_all_users():
            ...
    """
    def decorator(f):
        name = operation or f.__name__
        logger = logging.getLogger(f.__module__)

        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)

            except (ConfigurationError, ScanSaveError):
                raise

            except Exception as e:
                logger.error(f"{name} error: {e}")
                if isinstance(default, (list, dict)):
                    return type(default)()
                return default

        return decorated_function
    return decorator


def validate_json(*required_fields):
    """
    Validate that request contains JSON body with required fields.

    Checks Content-Type header, parses JSON body, and validates
    that all required fields are present. Passes validated data
    to the decorated function as 'data' keyword argument.

    Args:
        *required_fields: Variable number of required field names

    Usage:
        @species_bp.route('/admin/species', methods=['POST'])
        @validate_json('common_name', 'scientific_name')
        def create_species(data):
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Check Content-Type header
            if not request.is_json:
                return jsonify({
                    'success': False,
                    'error': 'Content-Type must be application/json'
                }), 400

            # Parse JSON body
            data = request.get_json(silent=True)
            if data is None:
                return jsonify({
                    'success': False,
                    'error': 'Invalid JSON or empty request body'
                }), 400

            if not isinstance(data, dict):
                return jsonify({
                    'success': False,
                    'error': 'JSON body must be an object'
                }), 400

            # Check for required fields
            missing_fields = [
                field for field in required_fields
                if field not in data or data[field] is None or data[field] == ''
            ]

            if missing_fields:
                return jsonify({
                    'success': False,
                    'error': 'Missing required fields',
                    'missing_fields': missing_fields
                }), 400

            # Add validated data to kwargs
            kwargs['data'] = data

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def validate_file_upload(required=True, field_names=('image', 'file'), allowed_extensions=None):
    """
    Validate file upload in request.

    Checks for file presence and extension. Passes the file object to the
    decorated function as 'file' (None when optional and absent). Size is
    bounded by MAX_CONTENT_LENGTH and answered by the 413 handler.

    Args:
        required: Whether file upload is required
        field_names: Form fields checked in order
        allowed_extensions: Set of allowed file extensions (uses config if None)

    Usage:
        @scan_bp.route('/scan', methods=['POST'])
        @validate_file_upload()
        def submit_scan(file):
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            file = next(
                (request.files[name] for name in field_names if name in request.files),
                None
            )

            if file is None or file.filename == '':
                if required:
                    return jsonify({
                        'success': False,
                        'error': 'No image file provided',
                        'details': f'Upload an image using one of: {", ".join(field_names)}'
                    }), 400
                kwargs['file'] = None
                return f(*args, **kwargs)

            # Get allowed extensions
            extensions = allowed_extensions or current_app.config.get(
                'ALLOWED_EXTENSIONS',
                {'png', 'jpg', 'jpeg', 'gif', 'webp'}
            )

            # Validate extension
            if not ('.' in file.filename and
                    file.filename.rsplit('.', 1)[1].lower() in extensions):
                return jsonify({
                    'success': False,
                    'error': 'Invalid file type',
                    'allowed_extensions': sorted(extensions)
                }), 400

            kwargs['file'] = file

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def rate_limit_key_user():
    """
    Custom rate limit key function that uses the session user id if present.

    Falls back to IP address for anonymous requests.

    Usage:
        @limiter.limit("30 per minute", key_func=rate_limit_key_user)
        def my_endpoint():
            ...
    """
    from session import load_session_user

    user = load_session_user()
    if user:
        return f"user:{user.id}"

    return request.remote_addr
