"""Tests for attribute bags, translation tables and model conversion."""

import pytest

from admincp.db.bag import AttributeBag, TableMapping
from admincp.db.exceptions import MappingError
from admincp.db.models import Group, User
from admincp.db.repositories import (
    bag_to_group,
    bag_to_user,
    group_to_bag,
    user_to_bag,
)
from admincp.db.schema import (
    COL_GROUP_ID,
    COL_GROUP_NAME,
    COL_USER_GROUP_ID,
    COL_USER_NAME,
    COL_USER_PASSWORD,
    COL_USER_USERNAME,
    group_mapping,
    user_mapping,
)


def test_bag_keeps_insertion_order_and_chains():
    bag = AttributeBag().set_attr("b", "2").set_attr("a", "1")
    assert list(bag) == ["b", "a"]
    assert bag.get_attr("a") == "1"
    assert bag.get_attr("missing", "x") == "x"
    assert len(bag) == 2


def test_bag_get_attr_str_normalises_missing_and_null():
    bag = AttributeBag({"none": None, "num": 5})
    assert bag.get_attr_str("none") == ""
    assert bag.get_attr_str("absent") == ""
    assert bag.get_attr_str("num") == "5"


def test_bag_equality_with_mappings():
    assert AttributeBag({"a": 1, "b": 2}) == {"b": 2, "a": 1}
    assert AttributeBag({"a": 1}) != AttributeBag({"a": 2})


def test_from_fields_builds_consistent_tables():
    mapping = user_mapping("t_user")
    assert mapping.columns == (COL_USER_USERNAME, COL_USER_PASSWORD, COL_USER_NAME, COL_USER_GROUP_ID)
    assert mapping.key_columns == (COL_USER_USERNAME,)
    assert mapping.fields == ("username", "password", "name", "group_id")
    assert mapping.value_columns == (COL_USER_PASSWORD, COL_USER_NAME, COL_USER_GROUP_ID)
    for field_name, column in mapping.field_to_col.items():
        assert mapping.col_to_field[column] == field_name


def test_column_types_default():
    mapping = group_mapping("g")
    assert mapping.column_type(COL_GROUP_ID) == "VARCHAR(64)"
    plain = TableMapping.from_fields("p", [("id", "pid")], key_fields=["id"])
    assert plain.column_type("pid") == "VARCHAR(255)"


@pytest.mark.parametrize(
    "kwargs",
    [
        # two fields share one column
        dict(
            columns=("c1",),
            key_columns=("c1",),
            field_to_col={"f1": "c1", "f2": "c1"},
            col_to_field={"c1": "f1"},
        ),
        # inverse map disagrees
        dict(
            columns=("c1", "c2"),
            key_columns=("c1",),
            field_to_col={"f1": "c1", "f2": "c2"},
            col_to_field={"c1": "f1", "c2": "f1"},
        ),
        # column list misses a mapped column
        dict(
            columns=("c1",),
            key_columns=("c1",),
            field_to_col={"f1": "c1", "f2": "c2"},
            col_to_field={"c1": "f1", "c2": "f2"},
        ),
        # column list has an unmapped column
        dict(
            columns=("c1", "c9"),
            key_columns=("c1",),
            field_to_col={"f1": "c1"},
            col_to_field={"c1": "f1"},
        ),
        # duplicate column
        dict(
            columns=("c1", "c1"),
            key_columns=("c1",),
            field_to_col={"f1": "c1"},
            col_to_field={"c1": "f1"},
        ),
        # unknown key column
        dict(
            columns=("c1",),
            key_columns=("c2",),
            field_to_col={"f1": "c1"},
            col_to_field={"c1": "f1"},
        ),
        # no key
        dict(
            columns=("c1",),
            key_columns=(),
            field_to_col={"f1": "c1"},
            col_to_field={"c1": "f1"},
        ),
    ],
)
def test_inconsistent_mapping_is_rejected(kwargs):
    with pytest.raises(MappingError):
        TableMapping(table="t", **kwargs)


def test_from_fields_rejects_unknown_key_field():
    with pytest.raises(MappingError):
        TableMapping.from_fields("t", [("id", "c")], key_fields=["other"])


def test_from_fields_rejects_field_mapped_twice():
    with pytest.raises(MappingError):
        TableMapping.from_fields("t", [("id", "c1"), ("id", "c2")], key_fields=["id"])


def test_bag_to_row_orders_by_column_list():
    mapping = user_mapping("t_user")
    bag = AttributeBag({"group_id": "g", "name": "N", "username": "u", "password": "p"})
    row = mapping.bag_to_row(bag)
    assert list(row) == [COL_USER_USERNAME, COL_USER_PASSWORD, COL_USER_NAME, COL_USER_GROUP_ID]
    assert list(row.values()) == ["u", "p", "N", "g"]


def test_bag_to_row_fills_missing_fields_with_none():
    row = group_mapping("g").bag_to_row({"id": "x"})
    assert row == {COL_GROUP_ID: "x", COL_GROUP_NAME: None}


def test_bag_to_row_rejects_unknown_field():
    with pytest.raises(MappingError):
        group_mapping("g").bag_to_row({"id": "x", "colour": "red"})


def test_row_to_bag_folds_column_names():
    bag = group_mapping("g").row_to_bag({"GID": "x", "GName": "Name", "extra": 1}, str.lower)
    assert bag.as_dict() == {"id": "x", "name": "Name"}


def test_key_values_requires_key_field():
    mapping = group_mapping("g")
    assert mapping.key_values({"id": "x", "name": "n"}) == ("x",)
    with pytest.raises(MappingError):
        mapping.key_values({"name": "n"})


@pytest.mark.parametrize(
    "group",
    [
        Group(id="administrator", name="System User Group"),
        Group(id="", name=""),
        Group(id="g-1", name="Ünïcode  name"),
    ],
)
def test_group_conversion_is_lossless(group):
    bag = group_to_bag(group)
    assert bag_to_group(bag) == group
    assert group_to_bag(bag_to_group(bag)) == bag


@pytest.mark.parametrize(
    "user",
    [
        User(username="admin", password="0" * 64, name="Administrator", group_id="administrator"),
        User(username="bob", password="", name="", group_id="nobody"),
    ],
)
def test_user_conversion_is_lossless(user):
    bag = user_to_bag(user)
    assert bag_to_user(bag) == user
    assert user_to_bag(bag_to_user(bag)) == bag


def test_conversion_of_missing_bag_is_none():
    assert bag_to_group(None) is None
    assert bag_to_user(None) is None
