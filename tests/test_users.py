from __future__ import annotations

import pytest

from store_ratings.models.models import Role, StoreFilters, UserFilters
from store_ratings.services.errors import AuthenticationFailed, InvalidInput
from store_ratings.services.ratings import RatingStore
from store_ratings.services.security import check_password_policy, decode_access_token
from store_ratings.services.stores import StoreService, dashboard_stats
from store_ratings.services.users import UserService

from conftest import OWNER_NAME, PASSWORD, USER_NAME, run_in_session


@pytest.mark.parametrize("password", ["Secret@123", "ABCDEFG!", "Aa1!Aa1!Aa1!Aa1!"])
def test_password_policy_accepts(password):
    check_password_policy(password)


@pytest.mark.parametrize(
    "password",
    [
        "short@A",            # too short
        "secret@123",         # no uppercase
        "Secret1234",         # no special character
        "Secret@123456789x",  # too long
        "Secret@ 123",        # space is not allowed
    ],
)
def test_password_policy_rejects(password):
    with pytest.raises(InvalidInput):
        check_password_policy(password)


@pytest.mark.parametrize(
    "name, address",
    [
        ("Too Short Name", "1 Road"),
        ("N" * 61, "1 Road"),
        ("A Perfectly Valid Name Here", "x" * 401),
    ],
)
def test_create_user_validates_profile(db_engine, name, address):
    with pytest.raises(InvalidInput):
        run_in_session(
            db_engine,
            lambda session: UserService(session).create_user(
                name, "someone@example.com", address, PASSWORD
            ),
        )


def test_duplicate_email_is_rejected(db_engine, seeded):
    with pytest.raises(InvalidInput, match="Email already in use"):
        run_in_session(
            db_engine,
            lambda session: UserService(session).create_user(
                "Somebody Else With A Long Name", "user@example.com", "9 Road", PASSWORD
            ),
        )


def test_register_and_login_issue_tokens(db_engine, settings):
    registered = run_in_session(
        db_engine,
        lambda session: UserService(session).register(
            "Freshly Registered Customer", "new@example.com", "5 New Road", PASSWORD, settings
        ),
    )
    assert registered.user.role == Role.USER
    claims = decode_access_token(registered.token, settings)
    assert claims["id"] == registered.user.id
    assert claims["role"] == "user"

    logged_in = run_in_session(
        db_engine,
        lambda session: UserService(session).login("new@example.com", PASSWORD, settings),
    )
    assert logged_in.user.email == "new@example.com"


@pytest.mark.parametrize(
    "email, password",
    [("user@example.com", "Wrong@123"), ("nobody@example.com", PASSWORD)],
)
def test_login_failures_share_one_message(db_engine, seeded, settings, email, password):
    with pytest.raises(AuthenticationFailed, match="Invalid email or password"):
        run_in_session(
            db_engine, lambda session: UserService(session).login(email, password, settings)
        )


def test_change_password(db_engine, seeded, settings):
    user_id = seeded["user"]

    with pytest.raises(AuthenticationFailed):
        run_in_session(
            db_engine,
            lambda session: UserService(session).change_password(user_id, "Wrong@123", "Newpass@1"),
        )

    run_in_session(
        db_engine,
        lambda session: UserService(session).change_password(user_id, PASSWORD, "Newpass@1"),
    )

    result = run_in_session(
        db_engine,
        lambda session: UserService(session).login("user@example.com", "Newpass@1", settings),
    )
    assert result.user.id == user_id


def test_ensure_admin_runs_once(db_engine, seeded, settings):
    again = run_in_session(db_engine, lambda session: UserService(session).ensure_admin(settings))
    assert again is None

    admins = run_in_session(
        db_engine, lambda session: UserService(session).list_users(UserFilters(role=Role.ADMIN))
    )
    assert [admin.email for admin in admins] == ["admin@example.com"]


def test_list_users_filters_and_owner_rating(db_engine, seeded):
    run_in_session(
        db_engine,
        lambda session: RatingStore(session).submit_rating(seeded["user"], seeded["bakery"], 4),
    )
    run_in_session(
        db_engine,
        lambda session: RatingStore(session).submit_rating(seeded["other"], seeded["bakery"], 1),
    )

    everyone = run_in_session(
        db_engine, lambda session: UserService(session).list_users(UserFilters())
    )
    assert [user.name for user in everyone] == sorted(user.name for user in everyone)
    by_id = {user.id: user for user in everyone}
    assert by_id[seeded["owner"]].store_rating == pytest.approx(2.5)
    assert by_id[seeded["user"]].store_rating is None

    owners = run_in_session(
        db_engine,
        lambda session: UserService(session).list_users(UserFilters(role=Role.STORE_OWNER)),
    )
    assert [owner.name for owner in owners] == [OWNER_NAME]

    matched = run_in_session(
        db_engine,
        lambda session: UserService(session).list_users(UserFilters(name="NUMBER one")),
    )
    assert [user.name for user in matched] == [USER_NAME]


def test_like_wildcards_in_filters_are_literal(db_engine, seeded):
    matched = run_in_session(
        db_engine, lambda session: UserService(session).list_users(UserFilters(email="%"))
    )
    assert matched == []


def test_create_store_owner_must_be_store_owner(db_engine, seeded):
    with pytest.raises(InvalidInput):
        run_in_session(
            db_engine,
            lambda session: StoreService(session).create_store(
                "Hardware Hub", "hardware@example.com", "4 Tool Lane", seeded["user"]
            ),
        )


def test_list_stores_for_user_carries_own_rating(db_engine, seeded):
    run_in_session(
        db_engine,
        lambda session: RatingStore(session).submit_rating(seeded["user"], seeded["books"], 5),
    )

    stores = run_in_session(
        db_engine,
        lambda session: StoreService(session).list_stores_for_user(seeded["user"], StoreFilters()),
    )
    assert [store.name for store in stores] == ["Book Nook", "Corner Bakery"]
    assert stores[0].user_rating == 5
    assert stores[0].rating == pytest.approx(5.0)
    assert stores[1].user_rating is None
    assert stores[1].rating is None

    by_address = run_in_session(
        db_engine,
        lambda session: StoreService(session).list_stores_for_user(
            seeded["user"], StoreFilters(address="main")
        ),
    )
    assert [store.name for store in by_address] == ["Corner Bakery"]


def test_owner_dashboard(db_engine, seeded):
    run_in_session(
        db_engine,
        lambda session: RatingStore(session).submit_rating(seeded["user"], seeded["bakery"], 5),
    )
    run_in_session(
        db_engine,
        lambda session: RatingStore(session).submit_rating(seeded["other"], seeded["bakery"], 2),
    )

    dashboard = run_in_session(
        db_engine, lambda session: StoreService(session).owner_dashboard(seeded["owner"])
    )
    assert dashboard.store.id == seeded["bakery"]
    assert dashboard.averageRating == pytest.approx(3.5)
    assert [item.userEmail for item in dashboard.ratings] == [
        "other@example.com",
        "user@example.com",
    ]

    empty = run_in_session(
        db_engine, lambda session: StoreService(session).owner_dashboard(seeded["user"])
    )
    assert empty.store is None
    assert empty.ratings == []
    assert empty.averageRating == 0


def test_dashboard_stats(db_engine, seeded):
    run_in_session(
        db_engine,
        lambda session: RatingStore(session).submit_rating(seeded["user"], seeded["bakery"], 3),
    )

    stats = run_in_session(db_engine, dashboard_stats)

    assert stats == {"totalUsers": 4, "totalStores": 2, "totalRatings": 1}
