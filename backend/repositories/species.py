# =============================================================================
# FernID Backend
# repositories/species.py - Fern Species Repository
# =============================================================================

import logging
from typing import Optional

from decorators import absorb_backend_errors
from extensions import get_client
from mappers import map_species_row, species_to_row
from models import FernDetails

logger = logging.getLogger(__name__)

SPECIES_TABLE = 'fern_species'


@absorb_backend_errors(default={})
def get_all_fern_species() -> dict:
    """
    All species keyed by slug, ordered by common name ascending.
    """
    response = (
        get_client().table(SPECIES_TABLE)
        .select('*')
        .order('common_name')
        .execute()
    )
    return {row['slug']: map_species_row(row) for row in response.data or []}


@absorb_backend_errors(default=None)
def get_fern_species(slug: str) -> Optional[FernDetails]:
    response = (
        get_client().table(SPECIES_TABLE)
        .select('*')
        .eq('slug', slug)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    return map_species_row(rows[0]) if rows else None


@absorb_backend_errors(default=False)
def add_fern_species(slug: str, details: FernDetails) -> bool:
    get_client().table(SPECIES_TABLE).insert(species_to_row(slug, details)).execute()
    logger.info(f"Species added: {slug}")
    return True


@absorb_backend_errors(default=False)
def update_fern_species(slug: str, details: FernDetails) -> bool:
    changes = species_to_row(slug, details)
    changes.pop('slug')
    get_client().table(SPECIES_TABLE).update(changes).eq('slug', slug).execute()
    logger.info(f"Species updated: {slug}")
    return True


@absorb_backend_errors(default=False)
def delete_fern_species(slug: str) -> bool:
    get_client().table(SPECIES_TABLE).delete().eq('slug', slug).execute()
    logger.info(f"Species deleted: {slug}")
    return True
