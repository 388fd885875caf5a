import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.models.models import (
    OwnerDashboard,
    OwnerRatingItem,
    RatedStore,
    Role,
    StoreFilters,
    StoreOut,
    StoreWithRating,
)
from store_ratings.services.db.schemas import Rating, Store, User
from store_ratings.services.errors import InvalidInput
from store_ratings.services.filters import contains_filters
from store_ratings.services.ratings import (
    RatingStore,
    average_rating_column,
    rated_store_query,
    to_rated_store,
)

logger = logging.getLogger(__name__)

STORE_NAME_MAX_LENGTH = 100
ADDRESS_MAX_LENGTH = 400


class StoreService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_store(
        self,
        name: str,
        email: str,
        address: str,
        owner_id: Optional[int] = None,
    ) -> Store:
        if not name or len(name) > STORE_NAME_MAX_LENGTH:
            raise InvalidInput(
                f"Store name must be between 1 and {STORE_NAME_MAX_LENGTH} characters"
            )
        if len(address) > ADDRESS_MAX_LENGTH:
            raise InvalidInput(f"Address must be less than {ADDRESS_MAX_LENGTH} characters")

        existing = await self.session.execute(select(Store.id).where(Store.email == email))
        if existing.first() is not None:
            raise InvalidInput("Email already in use")

        if owner_id is not None:
            owner = await self.session.get(User, owner_id)
            if owner is None or owner.role != Role.STORE_OWNER.value:
                raise InvalidInput("Owner must be an existing store owner")

        store = Store(name=name, email=email, address=address, owner_id=owner_id)
        self.session.add(store)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidInput("Email already in use")
        await self.session.refresh(store)

        logger.info(f"Store {store.id} created")
        return store

    async def list_stores(self, filters: StoreFilters) -> List[StoreWithRating]:
        predicates = contains_filters(
            {"name": Store.name, "email": Store.email, "address": Store.address},
            filters.model_dump(),
        )
        stmt = (
            select(Store, average_rating_column().label("rating"))
            .where(*predicates)
            .order_by(Store.name.asc())
        )
        result = await self.session.execute(stmt)
        return [
            StoreWithRating(
                **StoreOut.model_validate(store).model_dump(),
                rating=float(rating) if rating is not None else None,
            )
            for store, rating in result.all()
        ]

    async def list_stores_for_user(
        self, user_id: int, filters: StoreFilters
    ) -> List[RatedStore]:
        predicates = contains_filters(
            {"name": Store.name, "address": Store.address},
            filters.model_dump(),
        )
        stmt = rated_store_query(user_id).where(*predicates).order_by(Store.name.asc())
        result = await self.session.execute(stmt)
        return [to_rated_store(row) for row in result.all()]

    async def owner_dashboard(self, owner_id: int) -> OwnerDashboard:
        result = await self.session.execute(
            select(Store).where(Store.owner_id == owner_id).order_by(Store.id).limit(1)
        )
        store = result.scalar_one_or_none()
        if store is None:
            return OwnerDashboard(store=None, ratings=[], averageRating=0)

        ratings_result = await self.session.execute(
            select(Rating, User.name, User.email)
            .join(User, Rating.user_id == User.id)
            .where(Rating.store_id == store.id)
            .order_by(Rating.created_at.desc(), Rating.id.desc())
        )
        ratings = [
            OwnerRatingItem(
                id=rating.id,
                userName=user_name,
                userEmail=user_email,
                rating=rating.rating,
                ratedAt=rating.created_at,
            )
            for rating, user_name, user_email in ratings_result.all()
        ]

        average = await RatingStore(self.session).store_average(store.id)

        return OwnerDashboard(
            store=StoreOut.model_validate(store),
            ratings=ratings,
            averageRating=average if average is not None else 0,
        )


async def dashboard_stats(session: AsyncSession) -> dict:
    users = await session.execute(select(func.count(User.id)))
    stores = await session.execute(select(func.count(Store.id)))
    ratings = await session.execute(select(func.count(Rating.id)))
    return {
        "totalUsers": users.scalar_one(),
        "totalStores": stores.scalar_one(),
        "totalRatings": ratings.scalar_one(),
    }
