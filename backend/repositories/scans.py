# =============================================================================
# FernID Backend
# repositories/scans.py - Scan Repository
#
# Scan records joined with their fern species details.
# =============================================================================

import logging
from typing import Optional

from decorators import absorb_backend_errors
from exceptions import ScanSaveError, ConfigurationError
from extensions import get_client
from mappers import map_scan_row
from models import ScanResult
from utils import run_concurrently

logger = logging.getLogger(__name__)

SCANS_TABLE = 'scans'

# Every read joins the species record for fern scans
SCAN_SELECT = (
    '*, fern_species(slug, common_name, scientific_name, description, '
    'habitat, care_requirements, fun_facts)'
)


def create_scan(user_id: str, image: str, is_plant: bool, is_fern: bool,
                species_slug: Optional[str], confidence: float) -> ScanResult:
    """
    Persist a classification and return it with joined species details.

    Raises:
        ScanSaveError: If the insert or the read-back fails
    """
    client = get_client()

    try:
        inserted = client.table(SCANS_TABLE).insert({
            'user_id': user_id,
            'image_url': image,
            'is_plant': is_plant,
            'is_fern': is_fern,
            'species_slug': species_slug,
            'confidence': confidence,
        }).execute()

        rows = inserted.data or []
        if not rows:
            raise ScanSaveError()

        response = (
            client.table(SCANS_TABLE)
            .select(SCAN_SELECT)
            .eq('id', rows[0]['id'])
            .limit(1)
            .execute()
        )
    except (ScanSaveError, ConfigurationError):
        raise
    except Exception as e:
        logger.error(f"create_scan error: {e}")
        raise ScanSaveError() from e

    if not response.data:
        logger.error(f"create_scan error: inserted scan {rows[0]['id']} not readable")
        raise ScanSaveError()

    scan = map_scan_row(response.data[0])
    logger.info(f"Scan {scan.id} saved for user {user_id}: {scan.display_name}")
    return scan


@absorb_backend_errors(default=[])
def get_user_scans(user_id: str) -> list:
    """Scans owned by one user, newest first."""
    response = (
        get_client().table(SCANS_TABLE)
        .select(SCAN_SELECT)
        .eq('user_id', user_id)
        .order('created_at', desc=True)
        .execute()
    )
    return [map_scan_row(row) for row in response.data or []]


@absorb_backend_errors(default=[])
def get_all_scans() -> list:
    """Every scan, newest first."""
    response = (
        get_client().table(SCANS_TABLE)
        .select(SCAN_SELECT)
        .order('created_at', desc=True)
        .execute()
    )
    return [map_scan_row(row) for row in response.data or []]


@absorb_backend_errors(default=None)
def get_scan_by_id(scan_id: str) -> Optional[ScanResult]:
    response = (
        get_client().table(SCANS_TABLE)
        .select(SCAN_SELECT)
        .eq('id', scan_id)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    return map_scan_row(rows[0]) if rows else None


@absorb_backend_errors(default=False)
def delete_scan(scan_id: str) -> bool:
    get_client().table(SCANS_TABLE).delete().eq('id', scan_id).execute()
    return True


def delete_scans(scan_ids) -> dict:
    """
    Delete several scans concurrently and wait for all of them.

    Returns:
        dict: scan id -> True if deleted
    """
    scan_ids = list(scan_ids)
    results = run_concurrently(
        *[lambda scan_id=scan_id: delete_scan(scan_id) for scan_id in scan_ids]
    )
    return dict(zip(scan_ids, results))
