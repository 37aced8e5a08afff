class CatalogError(Exception):
    """Base class for vehicle catalog build and load errors."""

class InputNotFoundError(CatalogError):
    """Raised when the EPA CSV given to the catalog builder does not exist."""

class MalformedInputError(CatalogError):
    """Raised when the CSV cannot be tokenized or its header lacks a required column."""

    def __init__(self, missing_columns=(), reason=None):
        self.missing_columns = sorted(missing_columns)
        if reason is None:
            reason = f"CSV is missing required columns: {', '.join(self.missing_columns)}"
        super().__init__(reason)

class CatalogNotFoundError(CatalogError):
    """Raised when no candidate catalog path could be read."""

    def __init__(self, tried_paths):
        self.tried_paths = [str(p) for p in tried_paths]
        super().__init__("Vehicle data file not found. Tried paths: " + ", ".join(self.tried_paths))

class EpaSyncError(Exception):
    """Raised when the EPA CSV cannot be downloaded or parsed during a sync."""

class PaymentProviderError(Exception):
    """Raised when the payment provider rejects or fails a checkout request."""

class ReceiptDeliveryError(Exception):
    """Raised when the receipt email could not be handed to the email provider."""

class ContentNotFoundError(Exception):
    """Raised when a page content key has never been stored."""

class VehicleNotFoundError(Exception):
    """Raised when an admin operation targets a vehicle id that does not exist."""

class DatabaseQueryError(Exception):
    """Raised when a database query fails or returns unexpected results."""
