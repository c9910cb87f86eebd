"""GenericDao CRUD against an in-memory SQLite database."""

import pytest

from admincp.db.bag import AttributeBag
from admincp.db.exceptions import ConstraintViolation, MappingError, StorageUnavailable
from admincp.db.generic_dao import GenericDao
from admincp.db.schema import group_mapping

pytestmark = pytest.mark.asyncio


async def test_create_then_fetch_one(group_generic):
    rows = await group_generic.create(AttributeBag({"id": "ops", "name": "Operations"}))
    assert rows == 1

    bag = await group_generic.fetch_one({"id": "ops"})
    assert bag is not None
    assert bag.as_dict() == {"id": "ops", "name": "Operations"}
    assert list(bag) == ["id", "name"]


async def test_fetch_one_missing_returns_none(group_generic):
    assert await group_generic.fetch_one({"id": "nope"}) is None


async def test_duplicate_create_raises_constraint_violation(group_generic):
    await group_generic.create({"id": "ops", "name": "Operations"})
    with pytest.raises(ConstraintViolation):
        await group_generic.create({"id": "ops", "name": "Other"})

    bag = await group_generic.fetch_one({"id": "ops"})
    assert bag["name"] == "Operations"


async def test_connection_usable_after_constraint_violation(group_generic):
    await group_generic.create({"id": "ops", "name": "Operations"})
    with pytest.raises(ConstraintViolation):
        await group_generic.create({"id": "ops", "name": "Other"})
    assert await group_generic.create({"id": "dev", "name": "Developers"}) == 1


async def test_update_replaces_non_key_columns(group_generic):
    await group_generic.create({"id": "ops", "name": "Operations"})
    rows = await group_generic.update({"id": "ops", "name": "Ops Team"})
    assert rows == 1
    assert (await group_generic.fetch_one({"id": "ops"}))["name"] == "Ops Team"


async def test_update_missing_row_affects_nothing(group_generic):
    assert await group_generic.update({"id": "ghost", "name": "Ghost"}) == 0
    assert await group_generic.fetch_one({"id": "ghost"}) is None


async def test_delete(group_generic):
    await group_generic.create({"id": "ops", "name": "Operations"})
    assert await group_generic.delete({"id": "ops"}) == 1
    assert await group_generic.fetch_one({"id": "ops"}) is None
    assert await group_generic.delete({"id": "ops"}) == 0


async def test_fetch_all_ordered_by_key(group_generic):
    for gid in ("zeta", "alpha", "mid"):
        await group_generic.create({"id": gid, "name": gid.title()})
    bags = await group_generic.fetch_all()
    assert [b["id"] for b in bags] == ["alpha", "mid", "zeta"]


async def test_bag_without_key_is_rejected(group_generic):
    with pytest.raises(MappingError):
        await group_generic.create({"name": "No id"})


async def test_missing_table_surfaces_storage_error(connector):
    dao = GenericDao(connector, group_mapping("never_created"))
    with pytest.raises(StorageUnavailable):
        await dao.fetch_one({"id": "x"})


async def test_ensure_table_is_idempotent(group_generic):
    await group_generic.create({"id": "ops", "name": "Operations"})
    await group_generic.ensure_table()
    assert await group_generic.fetch_one({"id": "ops"}) is not None
