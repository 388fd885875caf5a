import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.api.v1.errors import http_error, server_error
from store_ratings.models.models import (
    Role,
    StatsOut,
    StoreCreateIn,
    StoreFilters,
    StoreOut,
    StoreWithRating,
    UserCreateIn,
    UserFilters,
    UserListItem,
    UserOut,
)
from store_ratings.services.auth import require_roles
from store_ratings.services.db.db_session import get_session
from store_ratings.services.errors import StoreRatingsError
from store_ratings.services.stores import StoreService, dashboard_stats
from store_ratings.services.users import UserService

logger = logging.getLogger(__name__)

api_v1_admin_router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_roles(Role.ADMIN))],
)


@api_v1_admin_router.get("/stats", response_model=StatsOut)
async def get_stats(session: AsyncSession = Depends(get_session)) -> StatsOut:
    try:
        stats = StatsOut(**await dashboard_stats(session))
    except Exception as e:
        raise server_error(e, "counting dashboard stats")
    logger.info(
        f"Stats: users={stats.totalUsers} stores={stats.totalStores} ratings={stats.totalRatings}"
    )
    return stats


@api_v1_admin_router.get("/stores", response_model=List[StoreWithRating])
async def list_stores(
    name: str | None = None,
    email: str | None = None,
    address: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> List[StoreWithRating]:
    try:
        return await StoreService(session).list_stores(
            StoreFilters(name=name, email=email, address=address)
        )
    except Exception as e:
        raise server_error(e, "listing stores")


@api_v1_admin_router.post(
    "/stores",
    response_model=StoreOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_store(
    payload: StoreCreateIn,
    session: AsyncSession = Depends(get_session),
) -> StoreOut:
    try:
        store = await StoreService(session).create_store(
            payload.name, payload.email, payload.address, payload.owner_id
        )
        return StoreOut.model_validate(store)
    except StoreRatingsError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "creating store")


@api_v1_admin_router.get("/users", response_model=List[UserListItem])
async def list_users(
    name: str | None = None,
    email: str | None = None,
    address: str | None = None,
    role: Role | None = None,
    session: AsyncSession = Depends(get_session),
) -> List[UserListItem]:
    """
    Lists users ordered by name. Store owners carry `store_rating`, the mean
    of every rating given to the stores they own.
    """
    try:
        return await UserService(session).list_users(
            UserFilters(name=name, email=email, address=address, role=role)
        )
    except Exception as e:
        raise server_error(e, "listing users")


@api_v1_admin_router.post(
    "/users",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    payload: UserCreateIn,
    session: AsyncSession = Depends(get_session),
) -> UserOut:
    try:
        user = await UserService(session).create_user(
            payload.name, payload.email, payload.address, payload.password, payload.role
        )
        return UserOut.model_validate(user)
    except StoreRatingsError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "creating user")
