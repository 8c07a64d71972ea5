# tests/moduledmysql/test_integration.py
"""End-to-end tests against a real MySQL server (see scenarios.py)."""

import datetime
from decimal import Decimal

import pytest

from entities import Order, Profile, User
from moduledmysql import AsyncRepository, Database, QueryBuilder, Repository
from scenarios import get_config, load_scenarios

SCENARIOS = load_scenarios()

pytestmark = pytest.mark.skipif(not SCENARIOS, reason="No MySQL scenario configured")

TABLES = (User, Order, Profile)


@pytest.fixture(params=sorted(SCENARIOS) or ["none"])
def repository(request):
    database = Database(get_config(request.param, SCENARIOS))
    database.connect()
    repo = Repository(database)
    for entity in TABLES:
        database.execute(f"DROP TABLE IF EXISTS {entity.__table_name__}")
        repo.create_table(entity)
    yield repo
    for entity in TABLES:
        database.execute(f"DROP TABLE IF EXISTS {entity.__table_name__}")
    database.disconnect()


def test_insert_load_update_delete(repository):
    user = User(email="first@example.com")
    assert repository.insert(user) == 1
    assert user.id is not None

    user.email = "changed@example.com"
    assert repository.update(user) == 1
    assert repository.load(User, user.id) == user

    assert repository.delete(User, user.id) == 1
    assert repository.load(User, user.id) is None


def test_save_replaces(repository):
    repository.save(User(id=7, email="a@example.com"))
    repository.save(User(id=7, email="b@example.com"))
    assert repository.load(User, 7).email == "b@example.com"


def test_find_with_join_and_in(repository):
    user = User(email="buyer@example.com")
    repository.insert(user)
    for total, status in ((Decimal("10.00"), "paid"), (Decimal("5.50"), "new"), (Decimal("1.25"), "void")):
        repository.insert(Order(user_id=user.id, total=total, status=status))

    builder = (QueryBuilder.select(Order)
               .from_(Order)
               .join(User, "t1.id = t0.user_id")
               .where("t1.email = ?", "buyer@example.com")
               .in_("AND t0.status", ["paid", "new"]))
    orders = repository.find(builder, Order)

    assert sorted(o.total for o in orders) == [Decimal("5.50"), Decimal("10.00")]


def test_adapted_types_round_trip(repository):
    profile = Profile(
        id="0b5f6a0e-0000-4000-8000-000000000001",
        active=True,
        settings={"theme": "dark", "tags": ["a", "b"]},
        balance=Decimal("12.34"),
        born=datetime.date(1990, 1, 2),
        wake_up=datetime.time(6, 45, 30),
        updated_at=datetime.datetime(2024, 1, 1, 8, 0, 0),
        bio="hello",
        nickname="p1",
    )
    repository.save(profile)
    assert repository.load(Profile, profile.id) == profile


@pytest.mark.asyncio
async def test_async_repository(repository):
    async with AsyncRepository(repository) as repo:
        user = User(email="async@example.com")
        await repo.insert(user)
        assert (await repo.load(User, user.id)).email == "async@example.com"
