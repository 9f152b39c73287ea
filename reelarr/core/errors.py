"""Error types raised by the refresh pipeline."""


class ReelarrError(Exception):
    """Base class for Reelarr errors."""


class ConfigurationError(ReelarrError):
    """OpenList credentials or the TMDB API key are missing."""


class ListingFailure(ReelarrError):
    """An OpenList login or listing did not succeed."""

    def __init__(self, message: str, code: int = None):
        super().__init__(message)
        self.code = code


class ItemEnrichmentFailure(ReelarrError):
    """A single folder could not be matched on TMDB."""

    def __init__(self, folder_name: str, reason: str):
        super().__init__(f"{folder_name}: {reason}")
        self.folder_name = folder_name
        self.reason = reason


class PersistenceFailure(ReelarrError):
    """Writing the metainfo or the refresh stats failed."""
