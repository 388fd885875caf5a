import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.models.models import (
    AuthOut,
    Role,
    UserFilters,
    UserListItem,
    UserOut,
)
from store_ratings.services.db.schemas import Rating, Store, User
from store_ratings.services.errors import AuthenticationFailed, InvalidInput, NotFound
from store_ratings.services.filters import contains_filters, equals_filters
from store_ratings.services.security import (
    check_password_policy,
    create_access_token,
    hash_password,
    verify_password,
)
from store_ratings.settings import Settings

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 20
NAME_MAX_LENGTH = 60
ADDRESS_MAX_LENGTH = 400


def validate_profile(name: str, address: str, password: str) -> None:
    if len(name) < NAME_MIN_LENGTH or len(name) > NAME_MAX_LENGTH:
        raise InvalidInput(
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    if len(address) > ADDRESS_MAX_LENGTH:
        raise InvalidInput(f"Address must be less than {ADDRESS_MAX_LENGTH} characters")
    check_password_policy(password)


def issue_token(user: User, settings: Settings) -> str:
    return create_access_token({"id": user.id, "role": user.role}, settings)


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get(self, user_id: int) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def create_user(
        self,
        name: str,
        email: str,
        address: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        validate_profile(name, address, password)

        if await self.get_by_email(email) is not None:
            raise InvalidInput("Email already in use")

        user = User(
            name=name,
            email=email,
            address=address,
            password=hash_password(password),
            role=Role(role).value,
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError:
            # lost a race with another registration of the same email
            await self.session.rollback()
            raise InvalidInput("Email already in use")
        await self.session.refresh(user)

        logger.info(f"User {user.id} created with role {user.role}")
        return user

    async def register(
        self, name: str, email: str, address: str, password: str, settings: Settings
    ) -> AuthOut:
        user = await self.create_user(name, email, address, password, Role.USER)
        return AuthOut(token=issue_token(user, settings), user=UserOut.model_validate(user))

    async def login(self, email: str, password: str, settings: Settings) -> AuthOut:
        user = await self.get_by_email(email)
        if user is None or not verify_password(password, user.password):
            raise AuthenticationFailed("Invalid email or password")
        return AuthOut(token=issue_token(user, settings), user=UserOut.model_validate(user))

    async def change_password(
        self, user_id: int, current_password: str, new_password: str
    ) -> None:
        check_password_policy(new_password)

        user = await self.get(user_id)
        if not verify_password(current_password, user.password):
            raise AuthenticationFailed("Current password is incorrect")

        user.password = hash_password(new_password)
        user.updated_at = func.now()
        await self.session.commit()
        logger.info(f"Password updated for user {user_id}")

    async def list_users(self, filters: UserFilters) -> List[UserListItem]:
        owner_rating = (
            select(func.avg(Rating.rating))
            .select_from(Store)
            .join(Rating, Rating.store_id == Store.id)
            .where(Store.owner_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        values = filters.model_dump()
        if filters.role is not None:
            values["role"] = filters.role.value
        predicates = contains_filters(
            {"name": User.name, "email": User.email, "address": User.address}, values
        ) + equals_filters({"role": User.role}, values)

        stmt = (
            select(User, owner_rating.label("store_rating"))
            .where(*predicates)
            .order_by(User.name.asc())
        )
        result = await self.session.execute(stmt)

        items = []
        for user, store_rating in result.all():
            items.append(
                UserListItem(
                    **UserOut.model_validate(user).model_dump(),
                    store_rating=(
                        float(store_rating)
                        if user.role == Role.STORE_OWNER.value and store_rating is not None
                        else None
                    ),
                )
            )
        return items

    async def ensure_admin(self, settings: Settings) -> Optional[User]:
        """Creates the default admin account when no admin exists yet."""
        result = await self.session.execute(
            select(User.id).where(User.role == Role.ADMIN.value).limit(1)
        )
        if result.first() is not None:
            return None

        admin = await self.create_user(
            settings.DEFAULT_ADMIN_NAME,
            settings.DEFAULT_ADMIN_EMAIL,
            settings.DEFAULT_ADMIN_ADDRESS,
            settings.DEFAULT_ADMIN_PASSWORD,
            Role.ADMIN,
        )
        logger.info("Admin user created")
        return admin
