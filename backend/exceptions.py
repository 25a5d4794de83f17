# =============================================================================
# FernID Backend
# exceptions.py - Application Exceptions
#
# Errors that must reach the caller instead of being absorbed by the
# repository layer.
# =============================================================================


class FernIDError(Exception):
    """Base class for all application exceptions."""


class ConfigurationError(FernIDError):
    """
    Required connection settings are missing.

    Raised on first use of the data gateway. Fatal: never retried and never
    absorbed by repository functions.
    """


class ScanSaveError(FernIDError):
    """A classified scan could not be persisted."""

    def __init__(self, message='Failed to save scan result.'):
        super().__init__(message)
