"""Frontend-facing API for subclaim."""

from subclaim.api.data_api import ClaimDataAPI

__all__ = ["ClaimDataAPI"]
