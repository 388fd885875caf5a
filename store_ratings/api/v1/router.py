from fastapi import APIRouter
from .auth import api_v1_auth_router
from .admin import api_v1_admin_router
from .rating import api_v1_user_router
from .store_owner import api_v1_store_owner_router


api_v1_router = APIRouter(prefix="/api")
api_v1_router.include_router(api_v1_auth_router)
api_v1_router.include_router(api_v1_admin_router)
api_v1_router.include_router(api_v1_user_router)
api_v1_router.include_router(api_v1_store_owner_router)
