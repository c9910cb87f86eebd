"""Table definitions for groups and users."""

from __future__ import annotations

from .bag import TableMapping

DEFAULT_TABLE_PREFIX = "admincp"

FIELD_GROUP_ID = "id"
FIELD_GROUP_NAME = "name"

COL_GROUP_ID = "gid"
COL_GROUP_NAME = "gname"

FIELD_USER_USERNAME = "username"
FIELD_USER_PASSWORD = "password"
FIELD_USER_NAME = "name"
FIELD_USER_GROUP_ID = "group_id"

COL_USER_USERNAME = "uname"
COL_USER_PASSWORD = "upwd"
COL_USER_NAME = "display_name"
COL_USER_GROUP_ID = "gid"


def group_table(prefix: str = DEFAULT_TABLE_PREFIX) -> str:
    return f"{prefix}_group"


def user_table(prefix: str = DEFAULT_TABLE_PREFIX) -> str:
    return f"{prefix}_user"


def group_mapping(table: str = group_table()) -> TableMapping:
    return TableMapping.from_fields(
        table,
        [
            (FIELD_GROUP_ID, COL_GROUP_ID),
            (FIELD_GROUP_NAME, COL_GROUP_NAME),
        ],
        key_fields=[FIELD_GROUP_ID],
        column_types={COL_GROUP_ID: "VARCHAR(64)", COL_GROUP_NAME: "VARCHAR(255)"},
    )


def user_mapping(table: str = user_table()) -> TableMapping:
    return TableMapping.from_fields(
        table,
        [
            (FIELD_USER_USERNAME, COL_USER_USERNAME),
            (FIELD_USER_PASSWORD, COL_USER_PASSWORD),
            (FIELD_USER_NAME, COL_USER_NAME),
            (FIELD_USER_GROUP_ID, COL_USER_GROUP_ID),
        ],
        key_fields=[FIELD_USER_USERNAME],
        column_types={
            COL_USER_USERNAME: "VARCHAR(64)",
            COL_USER_PASSWORD: "VARCHAR(255)",
            COL_USER_NAME: "VARCHAR(64)",
            COL_USER_GROUP_ID: "VARCHAR(64)",
        },
    )
