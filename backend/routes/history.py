# =============================================================================
# FernID Backend
# routes/history.py - Scan History Routes
#
# Lists, searches and deletes the current user's past scans.
# =============================================================================

from flask import Blueprint, request, current_app, g

from extensions import limiter
from repositories import scans as scans_repo
from routes.scan import owned_scan
from session import user_page
from utils import success_response, error_response

# Create blueprint
history_bp = Blueprint('history', __name__)


# =============================================================================
# Get User's Scan History
# =============================================================================

@history_bp.route('/history', methods=['GET'])
@user_page
@limiter.limit("60 per minute")
def get_history():
    """
    Get current user's scans, newest first.

    Query Parameters:
        q (str): Case-insensitive match on common or scientific name (optional)

    Returns:
        200: Matching scans and the unfiltered total
    """
    query = request.args.get('q', '').strip()
    scans = scans_repo.get_user_scans(g.current_user.id)
    matches = [scan for scan in scans if scan.matches(query)]

    return success_response({
        'items': [scan.to_dict() for scan in matches],
        'total': len(scans),
        'count': len(matches),
        'query': query,
    })


# =============================================================================
# Delete Scans
# =============================================================================

@history_bp.route('/history/<scan_id>', methods=['DELETE'])
@user_page
def delete_history_item(scan_id):
    scan, error = owned_scan(scan_id)
    if error:
        return error

    if not scans_repo.delete_scan(scan.id):
        return error_response('Failed to delete scan. Please try again.', status_code=500)

    return success_response(message='Scan deleted')


@history_bp.route('/history/delete-all', methods=['POST'])
@user_page
@limiter.limit("5 per minute")
def delete_all_history():
    """
    Delete every scan of the current user, all requests issued together.

    Returns:
        200: All scans deleted
        500: Some scans could not be deleted (failed ids listed)
    """
    user = g.current_user
    scans = scans_repo.get_user_scans(user.id)

    results = scans_repo.delete_scans(scan.id for scan in scans)
    failed = [scan_id for scan_id, ok in results.items() if not ok]

    current_app.logger.info(
        f"History cleared for {user.id}: {len(results) - len(failed)} deleted, {len(failed)} failed"
    )

    if failed:
        return error_response(
            'Some scans could not be deleted. Please try again.',
            details={'failed_ids': failed, 'deleted': len(results) - len(failed)},
            status_code=500
        )

    return success_response({'deleted': len(results)}, message='History cleared')
