"""Error taxonomy for the catalog mirror."""


class CatalogError(Exception):
    """Base class for all catalog mirror errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(CatalogError):
    """A store is missing what it needs to talk to Tiendanube (shop id or token)."""

    status_code = 400


class NotFoundError(CatalogError):
    """Requested entity does not exist locally."""

    status_code = 404


class ConflictError(CatalogError):
    """A uniqueness rule (store URL, shop id) would be violated."""

    status_code = 409


class ItemSyncError(CatalogError):
    """A single upstream item could not be normalized or saved."""

    status_code = 422

    def __init__(self, message: str, remote_id: int | None = None):
        super().__init__(message)
        self.remote_id = remote_id


class UpstreamFetchError(CatalogError):
    """Tiendanube answered with a non-success status or could not be reached."""

    status_code = 502

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class AuthorizationError(UpstreamFetchError):
    """The access token was rejected (401/403); the store must re-authorize."""

    status_code = 401


class RateLimitError(UpstreamFetchError):
    """Tiendanube throttled the request (429)."""

    status_code = 429


class UpstreamNotFoundError(UpstreamFetchError):
    """A single entity fetch returned 404."""

    status_code = 404
