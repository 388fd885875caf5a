from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.api.v1.errors import server_error
from store_ratings.models.models import OwnerDashboard, Role, TokenData
from store_ratings.services.auth import require_roles
from store_ratings.services.db.db_session import get_session
from store_ratings.services.stores import StoreService

api_v1_store_owner_router = APIRouter(prefix="/store-owner", tags=["store-owner"])


@api_v1_store_owner_router.get(
    "/dashboard",
    response_model=OwnerDashboard,
    summary="Ratings received by the owner's store",
)
async def get_dashboard(
    user_data: TokenData = Depends(require_roles(Role.STORE_OWNER)),
    session: AsyncSession = Depends(get_session),
) -> OwnerDashboard:
    """
    Returns the owner's store, its ratings newest first and the average rating
    (0 when the owner has no store or the store has no ratings).
    """
    try:
        return await StoreService(session).owner_dashboard(user_data.id)
    except Exception as e:
        raise server_error(e, "loading owner dashboard")
