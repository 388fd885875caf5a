from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, StrictInt


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"
    STORE_OWNER = "store_owner"


class RegisterIn(BaseModel):
    name: str
    email: EmailStr
    address: str
    password: str


class UserCreateIn(RegisterIn):
    role: Role = Role.USER


class LoginIn(BaseModel):
    email: str
    password: str


class ChangePasswordIn(BaseModel):
    currentPassword: str
    newPassword: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    address: str
    role: Role


class UserListItem(UserOut):
    store_rating: Optional[float] = None


class AuthOut(BaseModel):
    token: str
    user: UserOut


class MessageOut(BaseModel):
    message: str


class TokenData(BaseModel):
    id: int
    role: Role


class StoreCreateIn(BaseModel):
    name: str
    email: EmailStr
    address: str
    owner_id: Optional[int] = None


class StoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    address: str
    owner_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StoreWithRating(StoreOut):
    rating: Optional[float] = None


class RatedStore(StoreWithRating):
    user_rating: Optional[float] = None


class RatingIn(BaseModel):
    rating: StrictInt


class RatingSubmitOut(BaseModel):
    message: str
    store: RatedStore


class OwnerRatingItem(BaseModel):
    id: int
    userName: str
    userEmail: str
    rating: int
    ratedAt: Optional[datetime] = None


class OwnerDashboard(BaseModel):
    store: Optional[StoreOut] = None
    ratings: List[OwnerRatingItem] = []
    averageRating: float = 0


class StatsOut(BaseModel):
    totalUsers: int
    totalStores: int
    totalRatings: int


class UserFilters(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    role: Optional[Role] = None


class StoreFilters(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
