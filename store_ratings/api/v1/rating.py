from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.api.v1.errors import http_error, server_error
from store_ratings.models.models import (
    RatedStore,
    RatingIn,
    RatingSubmitOut,
    StoreFilters,
    TokenData,
)
from store_ratings.services.auth import get_current_user
from store_ratings.services.db.db_session import get_session
from store_ratings.services.errors import StoreRatingsError
from store_ratings.services.ratings import RatingStore
from store_ratings.services.stores import StoreService

api_v1_user_router = APIRouter(prefix="/user", tags=["user"])


@api_v1_user_router.get(
    "/stores",
    response_model=List[RatedStore],
    status_code=status.HTTP_200_OK,
    summary="List stores with the average and the caller's own rating",
)
async def list_stores(
    name: str | None = None,
    address: str | None = None,
    user_data: TokenData = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[RatedStore]:
    try:
        return await StoreService(session).list_stores_for_user(
            user_data.id, StoreFilters(name=name, address=address)
        )
    except Exception as e:
        raise server_error(e, "listing stores")


@api_v1_user_router.post(
    "/stores/{store_id}/rate",
    response_model=RatingSubmitOut,
    status_code=status.HTTP_200_OK,
    summary="Submit or update a rating",
)
async def submit_rating(
    payload: RatingIn,
    store_id: int = Path(...),
    user_data: TokenData = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> RatingSubmitOut:
    """
    Accepts {"rating": <int from 1 to 5>} and stores or replaces the caller's
    rating for the store. Responds with the store, its fresh average (`rating`)
    and the caller's rating (`user_rating`).
    """
    try:
        store = await RatingStore(session).submit_rating(
            user_data.id, store_id, payload.rating
        )
        return RatingSubmitOut(message="Rating submitted successfully", store=store)
    except StoreRatingsError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "saving rating")
