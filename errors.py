"""Error taxonomy for the Trade Hub API.

Every error carries the HTTP status the router answers with; the message is
sent back to the caller as ``{"message": ...}``.
"""


class TradeHubError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TradeHubError):
    """A required field is missing or unusable."""
    status_code = 400


class InvalidIdError(ValidationError):
    """A string could not be parsed as a document id."""


class NotFoundError(TradeHubError):
    status_code = 404


class InsufficientStockError(TradeHubError):
    """Requested import quantity exceeds the product's available quantity."""
    status_code = 400


class StoreError(TradeHubError):
    status_code = 500
