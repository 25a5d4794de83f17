# =============================================================================
# FernID Backend
# routes/species.py - Fern Species Routes
#
# Public species catalog plus the admin species management pages.
# =============================================================================

from flask import Blueprint, request, current_app

from decorators import validate_json
from models import Capability, FernDetails
from repositories import species as species_repo
from session import admin_page
from utils import error_response, slugify, success_response

# Create blueprint
species_bp = Blueprint('species', __name__)


def species_list(catalog: dict, query: str = '') -> list:
    """Catalog entries as a list, filtered by common or scientific name."""
    query = query.lower()
    return [
        {'slug': slug, **details.to_dict()}
        for slug, details in catalog.items()
        if not query
        or query in details.common_name.lower()
        or query in details.scientific_name.lower()
    ]


# =============================================================================
# Public Catalog
# =============================================================================

@species_bp.route('/species', methods=['GET'])
def get_species():
    """
    List all fern species ordered by common name.

    Query Parameters:
        q (str): Filter by common or scientific name (optional)
    """
    catalog = species_repo.get_all_fern_species()
    items = species_list(catalog, request.args.get('q', '').strip())

    return success_response({'items': items, 'total': len(catalog)})


@species_bp.route('/species/<slug>', methods=['GET'])
def get_species_info(slug):
    details = species_repo.get_fern_species(slug)

    if details is None:
        return error_response(f"Species '{slug}' not found", status_code=404)

    return success_response({'slug': slug, **details.to_dict()})


# =============================================================================
# Admin Species Management
# =============================================================================

@species_bp.route('/admin/species', methods=['GET'])
@admin_page(Capability.MANAGE_CONTENT)
def admin_species():
    catalog = species_repo.get_all_fern_species()
    items = species_list(catalog, request.args.get('q', '').strip())

    return success_response({'items': items, 'total': len(catalog)})


@species_bp.route('/admin/species', methods=['POST'])
@admin_page(Capability.MANAGE_CONTENT)
@validate_json('common_name', 'scientific_name')
def create_species(data):
    """
    Add a species. The slug is derived from the common name.

    Request Body:
        common_name (str): Required
        scientific_name (str): Required
        description, habitat, care_requirements (str): Optional
        fun_facts (list or newline separated str): Optional

    Returns:
        201: Species added
        400: Missing fields
        409: Slug already used
        500: Species could not be saved
    """
    details = FernDetails.from_dict(data)
    slug = slugify(details.common_name)

    if species_repo.get_fern_species(slug) is not None:
        return error_response(f"Species '{slug}' already exists", status_code=409)

    if not species_repo.add_fern_species(slug, details):
        return error_response('Failed to add species.', status_code=500)

    current_app.logger.info(f"Species created: {slug}")

    return success_response(
        {'slug': slug, **details.to_dict()},
        message='Species added successfully!',
        status_code=201
    )


@species_bp.route('/admin/species/<slug>', methods=['PUT'])
@admin_page(Capability.MANAGE_CONTENT)
@validate_json('common_name', 'scientific_name')
def edit_species(slug, data):
    """Replace a species record. The slug never changes."""
    if species_repo.get_fern_species(slug) is None:
        return error_response(f"Species '{slug}' not found", status_code=404)

    details = FernDetails.from_dict(data)

    if not species_repo.update_fern_species(slug, details):
        return error_response('Failed to update species.', status_code=500)

    return success_response(
        {'slug': slug, **details.to_dict()},
        message='Species updated successfully!'
    )


@species_bp.route('/admin/species/<slug>', methods=['DELETE'])
@admin_page(Capability.MANAGE_CONTENT)
def remove_species(slug):
    if not species_repo.delete_fern_species(slug):
        return error_response('Failed to delete species.', status_code=500)

    return success_response(message='Species deleted successfully!')
