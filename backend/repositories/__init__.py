# =============================================================================
# FernID Backend
# repositories/__init__.py - Repository Package
#
# One module per aggregate, built on the data gateway and mappers.
# Failures are logged and answered with an empty or falsy value, except
# scans.create_scan which raises ScanSaveError.
# =============================================================================

from repositories import admin, auth, scans, species

__all__ = ['admin', 'auth', 'scans', 'species']
