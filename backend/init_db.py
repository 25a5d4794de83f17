# =============================================================================
# FernID Backend
# init_db.py - Species Seed Script
#
# Run this script to load the default fern species into the hosted backend.
# Usage: python init_db.py [--reset]
# =============================================================================

import sys

from app import create_app
from constants import DEFAULT_FERN_SPECIES
from models import FernDetails
from repositories import species as species_repo


def seed_species(overwrite=False):
    """
    Insert the default fern species that are not stored yet.

    Args:
        overwrite: Also rewrite species that already exist

    Returns:
        dict: slug -> 'added', 'updated', 'exists' or 'failed'
    """
    existing = species_repo.get_all_fern_species()
    outcome = {}

    for slug, data in DEFAULT_FERN_SPECIES.items():
        details = FernDetails.from_dict(data)

        if slug in existing:
            if overwrite:
                ok = species_repo.update_fern_species(slug, details)
                outcome[slug] = 'updated' if ok else 'failed'
            else:
                outcome[slug] = 'exists'
            continue

        ok = species_repo.add_fern_species(slug, details)
        outcome[slug] = 'added' if ok else 'failed'

    return outcome


def init_database(overwrite=False):
    """
    Seed the species table and print a summary.

    Returns:
        int: Process exit code
    """
    app = create_app()

    with app.app_context():
        outcome = seed_species(overwrite=overwrite)

    for slug, status in outcome.items():
        mark = '✗' if status == 'failed' else '✓'
        print(f"{mark} {DEFAULT_FERN_SPECIES[slug]['common_name']}: {status}")

    failed = [slug for slug, status in outcome.items() if status == 'failed']

    print("\n" + "=" * 50)
    if failed:
        print(f"Species seeding finished with {len(failed)} failure(s)")
    else:
        print("Species seeding completed successfully!")
    print("=" * 50)

    return 1 if failed else 0


def reset_database():
    """
    Rewrite the default species with their original content.

    Species added by admins are left alone.
    """
    confirm = input("⚠️  This will OVERWRITE the default species. Type 'yes' to confirm: ")

    if confirm.lower() == 'yes':
        return init_database(overwrite=True)

    print("Operation cancelled")
    return 0


if __name__ == '__main__':
    if len(sys.argv) > 1 and sys.argv[1] == '--reset':
        sys.exit(reset_database())
    else:
        sys.exit(init_database())
