class StoreRatingsError(Exception):
    """Base class for errors reported to the API caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(StoreRatingsError):
    pass


class NotFound(StoreRatingsError):
    pass


class AuthenticationFailed(StoreRatingsError):
    pass


class TransientStoreFailure(StoreRatingsError):
    """The database rejected or dropped the operation; the caller may retry."""
