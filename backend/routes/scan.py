# =============================================================================
# FernID Backend
# routes/scan.py - Scan Routes
#
# Handles image upload, classification, saving the result and showing
# single scans to their owner.
# =============================================================================

import time
from flask import Blueprint, current_app, g, redirect

from constants import HISTORY_ROUTE, MESSAGES
from decorators import validate_file_upload, rate_limit_key_user
from exceptions import ScanSaveError
from extensions import limiter
from repositories import scans as scans_repo
from session import user_page
from utils import (
    build_progress_steps,
    error_response,
    image_to_data_uri,
    redirect_response,
    success_response,
)

# Create blueprint
scan_bp = Blueprint('scan', __name__)


def get_classifier_service():
    """Classifier service created by the app factory."""
    service = current_app.config.get('CLASSIFIER_SERVICE')

    if service is None:
        # Import and create service if not initialized
        from services.classifier import ClassifierService, SimulatedClassifier
        service = ClassifierService(
            SimulatedClassifier(seed=current_app.config.get('CLASSIFIER_SEED'))
        )
        current_app.config['CLASSIFIER_SERVICE'] = service

    return service


def owned_scan(scan_id):
    """
    Load a scan that belongs to the current user.

    Returns:
        tuple: (ScanResult or None, error response or None)
    """
    scan = scans_repo.get_scan_by_id(scan_id)

    if scan is None:
        return None, error_response(MESSAGES['SCAN_NOT_FOUND'], status_code=404)

    if scan.user_id != g.current_user.id:
        current_app.logger.warning(
            f"User {g.current_user.id} tried to access scan {scan_id} of {scan.user_id}"
        )
        return None, error_response(
            'You do not have permission to access this scan',
            status_code=403
        )

    return scan, None


# =============================================================================
# Scan Page
# =============================================================================

@scan_bp.route('/scan', methods=['GET'])
@user_page
def scan_page():
    return success_response({
        'page': 'scan',
        'user': g.current_user.to_dict(),
        'progress': build_progress_steps(completed=0),
        'allowed_extensions': sorted(current_app.config.get('ALLOWED_EXTENSIONS', [])),
    })


@scan_bp.route('/scan', methods=['POST'])
@user_page
@limiter.limit("30 per minute", key_func=rate_limit_key_user)
@validate_file_upload(required=True)
def submit_scan(file):
    """
    Classify an uploaded image and save the result.

    This endpoint:
    1. Waits the configured completion delay
    2. Preprocesses and classifies the image
    3. Saves the scan with the image encoded as a data URI
    4. Points the client at the result page

    Request:
        Content-Type: multipart/form-data

        Fields:
            image (file): Image file (jpg, jpeg, png, gif, webp) - required

    Returns:
        201: Scan saved, redirect to /results/<id>
        400: Missing, invalid or corrupt image
        500: Scan could not be saved
    """
    user = g.current_user
    image_data = file.read()

    delay = current_app.config.get('SCAN_COMPLETION_DELAY', 0)
    if delay > 0:
        time.sleep(delay)

    try:
        classification = get_classifier_service().classify(image_data)
    except ValueError as e:
        current_app.logger.info(f"Rejected scan upload from {user.id}: {e}")
        return error_response(MESSAGES['INVALID_IMAGE'], status_code=400)

    try:
        scan = scans_repo.create_scan(
            user_id=user.id,
            image=image_to_data_uri(image_data, file.filename, file.mimetype),
            is_plant=classification.is_plant,
            is_fern=classification.is_fern,
            species_slug=classification.species,
            confidence=classification.confidence,
        )
    except ScanSaveError as e:
        current_app.logger.error(f"Scan save failed for {user.id}: {e}")
        return error_response(MESSAGES['SCAN_SAVE_FAILED'], status_code=500)

    return redirect_response(
        f"/results/{scan.id}",
        data={
            'scan': scan.to_dict(include_image=False),
            'progress': build_progress_steps(),
        },
        status_code=201
    )


# =============================================================================
# Results & Details
# =============================================================================

@scan_bp.route('/results/<scan_id>', methods=['GET'])
@user_page
def scan_results(scan_id):
    scan, error = owned_scan(scan_id)
    if error:
        return error

    return success_response({'scan': scan.to_dict()})


@scan_bp.route('/fern/<scan_id>', methods=['GET'])
@user_page
def fern_details(scan_id):
    """Full detail view of one scan, including species care information."""
    scan, error = owned_scan(scan_id)
    if error:
        return error

    return success_response({
        'scan': scan.to_dict(),
        'details': scan.details.to_dict() if scan.details else None,
    })


@scan_bp.route('/fern/<scan_id>', methods=['DELETE'])
@user_page
def delete_fern_scan(scan_id):
    scan, error = owned_scan(scan_id)
    if error:
        return error

    if not scans_repo.delete_scan(scan.id):
        return error_response('Failed to delete scan. Please try again.', status_code=500)

    current_app.logger.info(f"Scan {scan.id} deleted by {g.current_user.id}")
    return redirect(HISTORY_ROUTE)
