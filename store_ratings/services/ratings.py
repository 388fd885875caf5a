import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from store_ratings.models.models import RatedStore, StoreOut
from store_ratings.services.db.schemas import Rating, Store
from store_ratings.services.errors import InvalidInput, NotFound, TransientStoreFailure

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def average_rating_column(store_column=Store.id):
    """Correlated AVG(rating) over every rating of the store in `store_column`."""
    return (
        select(func.avg(Rating.rating))
        .where(Rating.store_id == store_column)
        .scalar_subquery()
    )


def own_rating_column(user_id: int, store_column=Store.id):
    return (
        select(Rating.rating)
        .where((Rating.store_id == store_column) & (Rating.user_id == user_id))
        .scalar_subquery()
    )


def rated_store_query(user_id: int):
    return select(
        Store,
        average_rating_column().label("rating"),
        own_rating_column(user_id).label("user_rating"),
    )


def to_rated_store(row) -> RatedStore:
    store, rating, user_rating = row
    return RatedStore(
        **StoreOut.model_validate(store).model_dump(),
        rating=float(rating) if rating is not None else None,
        user_rating=float(user_rating) if user_rating is not None else None,
    )


def upsert_rating_statement(dialect_name: str, user_id: int, store_id: int, value: int):
    """
    INSERT ... ON CONFLICT (user_id, store_id) DO UPDATE for the given dialect.
    The database resolves concurrent submissions for the same pair.
    """
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect_name in ("mysql", "mariadb"):
        from sqlalchemy.dialects.mysql import insert

        stmt = insert(Rating).values(user_id=user_id, store_id=store_id, rating=value)
        return stmt.on_duplicate_key_update(
            rating=stmt.inserted.rating,
            updated_at=func.now(),
        )
    else:
        raise NotImplementedError(f"Rating upsert is not supported for dialect {dialect_name!r}")

    stmt = insert(Rating).values(user_id=user_id, store_id=store_id, rating=value)
    return stmt.on_conflict_do_update(
        index_elements=[Rating.user_id, Rating.store_id],
        set_={"rating": stmt.excluded.rating, "updated_at": func.now()},
    )


def validate_rating_value(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    if value < MIN_RATING or value > MAX_RATING:
        raise InvalidInput(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return value


class RatingStore:
    """
    Keeps one rating per (user, store) pair and recomputes store averages
    from the ratings table on every read.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def dialect_name(self) -> str:
        return self.session.bind.dialect.name

    async def submit_rating(self, user_id: int, store_id: int, value) -> RatedStore:
        """
        Writes or replaces the caller's rating for the store and returns the store
        with its fresh average (`rating`) and the caller's rating (`user_rating`).

        The upsert and the aggregate read share one transaction, so the average
        always includes the rating just written.
        """
        value = validate_rating_value(value)

        try:
            store = await self.session.get(Store, store_id)
            if store is None:
                raise NotFound("Store not found")

            await self.session.execute(
                upsert_rating_statement(self.dialect_name, user_id, store_id, value)
            )
            result = await self.session.execute(
                rated_store_query(user_id)
                .where(Store.id == store_id)
                .execution_options(populate_existing=True)
            )
            row = result.one_or_none()
            if row is None:
                raise NotFound("Store not found after update")

            await self.session.commit()
        except NotFound:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Rating upsert failed for user={user_id} store={store_id}: {e}")
            raise TransientStoreFailure("Rating could not be saved, please retry") from e

        logger.info(f"Rating {value} stored for user={user_id} store={store_id}")
        return to_rated_store(row)

    async def store_average(self, store_id: int) -> Optional[float]:
        result = await self.session.execute(
            select(func.avg(Rating.rating)).where(Rating.store_id == store_id)
        )
        average = result.scalar_one()
        return float(average) if average is not None else None
