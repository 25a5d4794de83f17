# =============================================================================
# FernID Backend
# mappers.py - Row <-> Domain Mappers
#
# Pure conversions between hosted-backend rows (snake_case columns) and the
# domain records in models.py. No I/O happens here.
# =============================================================================

from datetime import datetime

from models import AdminPermissions, FernDetails, ScanResult, User


def _timestamp(value) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return value or ''


# =============================================================================
# Profiles
# =============================================================================

def map_profile_row(row: dict) -> User:
    """
    Convert a profiles row to a User.

    Any role other than 'admin' becomes 'user'. Stored permissions are only
    carried onto admin records.
    """
    role = 'admin' if row.get('role') == 'admin' else 'user'
    permissions = row.get('admin_permissions')

    return User(
        id=row['id'],
        username=row.get('username') or '',
        email=row.get('email') or '',
        role=role,
        created_at=_timestamp(row.get('created_at')),
        profile_picture=row.get('profile_picture') or None,
        admin_permissions=(
            AdminPermissions.from_row(permissions)
            if role == 'admin' and permissions is not None else None
        ),
    )


def user_to_row(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'role': user.role,
        'created_at': user.created_at,
        'profile_picture': user.profile_picture,
        'admin_permissions': (
            user.admin_permissions.to_row() if user.admin_permissions else None
        ),
    }


# =============================================================================
# Fern Species
# =============================================================================

def map_species_row(row: dict) -> FernDetails:
    return FernDetails(
        common_name=row.get('common_name') or '',
        scientific_name=row.get('scientific_name') or '',
        description=row.get('description') or '',
        habitat=row.get('habitat') or '',
        care_requirements=row.get('care_requirements') or '',
        fun_facts=list(row.get('fun_facts') or []),
    )


def species_to_row(slug: str, details: FernDetails) -> dict:
    return {
        'slug': slug,
        'common_name': details.common_name,
        'scientific_name': details.scientific_name,
        'description': details.description,
        'habitat': details.habitat,
        'care_requirements': details.care_requirements,
        'fun_facts': list(details.fun_facts),
    }


# =============================================================================
# Scans
# =============================================================================

def map_scan_row(row: dict) -> ScanResult:
    """
    Convert a scans row, optionally joined with fern_species, to a ScanResult.
    """
    joined = row.get('fern_species')

    return ScanResult(
        id=row['id'],
        user_id=row.get('user_id'),
        image=row.get('image_url') or '',
        is_plant=bool(row.get('is_plant')),
        is_fern=bool(row.get('is_fern')),
        species=row.get('species_slug') or None,
        confidence=float(row.get('confidence') or 0.0),
        timestamp=_timestamp(row.get('created_at')),
        details=map_species_row(joined) if joined else None,
    )


def scan_to_row(scan: ScanResult) -> dict:
    row = {
        'id': scan.id,
        'user_id': scan.user_id,
        'image_url': scan.image,
        'is_plant': scan.is_plant,
        'is_fern': scan.is_fern,
        'species_slug': scan.species,
        'confidence': scan.confidence,
        'created_at': scan.timestamp,
        'fern_species': None,
    }

    if scan.details is not None:
        row['fern_species'] = species_to_row(scan.species, scan.details)

    return row
