"""Domain error hierarchy for the marketplace services.

Every error carries a stable ``code`` (serialized into the JSON envelope) and
the HTTP status used when it is rendered:

- AppError: Base for all domain errors (HTTP 200, error encoded in the body)
- AuthError: Missing or invalid credential (HTTP 401)
- InternalError: Unexpected store failure (HTTP 500)
"""


class AppError(Exception):
    """Base exception for all domain errors."""

    code = "INTERNAL_ERROR"
    status_code = 200

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Bad input shape, length or character set."""

    code = "VALIDATION_ERROR"


class AuthError(AppError):
    """Missing or invalid bearer credential."""

    code = "AUTH_ERROR"
    status_code = 401


class OwnershipError(AppError):
    """Caller does not own the resource being mutated."""

    code = "OWNERSHIP_ERROR"


class ConflictError(AppError):
    """Duplicate nickname, already-linked wallet, resource still in use."""

    code = "CONFLICT"


class RateLimitError(AppError):
    """Endpoint-specific sliding-window limit exceeded."""

    code = "RATE_LIMITED"


class ExpiredSignature(AppError):
    """Signed message timestamp is outside the freshness window."""

    code = "EXPIRED_SIGNATURE"


class InvalidSignature(AppError):
    """Signature does not verify against the claimed wallet."""

    code = "INVALID_SIGNATURE"


class NotFoundError(AppError):
    """Referenced collection, NFT, job or wallet does not exist."""

    code = "NOT_FOUND"


class InternalError(AppError):
    """Unexpected failure while talking to the store or a downstream service."""

    code = "INTERNAL_ERROR"
    status_code = 500


# Mint queue errors
class InsufficientSupply(AppError):
    """Requested quantity exceeds the collection's remaining supply."""

    code = "INSUFFICIENT_SUPPLY"


class CollectionUnavailable(AppError):
    """Collection is not active or not live."""

    code = "COLLECTION_UNAVAILABLE"


# Outbound email errors
class EmailDeliveryError(Exception):
    """Transactional email provider rejected or failed a send."""

    pass
