import logging

from fastapi import HTTPException, status

from store_ratings.services.errors import (
    AuthenticationFailed,
    InvalidInput,
    NotFound,
    StoreRatingsError,
    TransientStoreFailure,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    AuthenticationFailed: status.HTTP_401_UNAUTHORIZED,
    NotFound: status.HTTP_404_NOT_FOUND,
    TransientStoreFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error(exc: StoreRatingsError) -> HTTPException:
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"Retry-After": "1"} if isinstance(exc, TransientStoreFailure) else None
    return HTTPException(status_code=status_code, detail=exc.message, headers=headers)


def server_error(exc: Exception, action: str) -> HTTPException:
    logger.error(f"Error while {action}: {exc}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Server error",
    )
