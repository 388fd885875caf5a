from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.api.v1.errors import http_error, server_error
from store_ratings.models.models import (
    AuthOut,
    ChangePasswordIn,
    LoginIn,
    MessageOut,
    RegisterIn,
    TokenData,
    UserOut,
)
from store_ratings.services.auth import get_current_user, get_settings
from store_ratings.services.db.db_session import get_session
from store_ratings.services.errors import StoreRatingsError
from store_ratings.services.users import UserService
from store_ratings.settings import Settings

api_v1_auth_router = APIRouter(prefix="/auth", tags=["auth"])


@api_v1_auth_router.post(
    "/register",
    response_model=AuthOut,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterIn,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AuthOut:
    try:
        return await UserService(session).register(
            payload.name, payload.email, payload.address, payload.password, settings
        )
    except StoreRatingsError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "registering user")


@api_v1_auth_router.post("/login", response_model=AuthOut)
async def login(
    payload: LoginIn,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AuthOut:
    try:
        return await UserService(session).login(payload.email, payload.password, settings)
    except StoreRatingsError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "logging in")


@api_v1_auth_router.get("/me", response_model=UserOut)
async def read_users_me(
    user_data: TokenData = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UserOut:
    try:
        user = await UserService(session).get(user_data.id)
        return UserOut.model_validate(user)
    except StoreRatingsError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "loading current user")


@api_v1_auth_router.put("/change-password", response_model=MessageOut)
async def change_password(
    payload: ChangePasswordIn,
    user_data: TokenData = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageOut:
    try:
        await UserService(session).change_password(
            user_data.id, payload.currentPassword, payload.newPassword
        )
        return MessageOut(message="Password updated successfully")
    except StoreRatingsError as e:
        raise http_error(e)
    except Exception as e:
        raise server_error(e, "changing password")
