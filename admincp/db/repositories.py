"""Typed DAOs for groups and users on top of :class:`GenericDao`."""

from __future__ import annotations

import logging
from typing import List, Optional

from .bag import AttributeBag
from .exceptions import ConstraintViolation, DaoError
from .generic_dao import GenericDao
from .models import Group, User
from .schema import (
    FIELD_GROUP_ID,
    FIELD_GROUP_NAME,
    FIELD_USER_GROUP_ID,
    FIELD_USER_NAME,
    FIELD_USER_PASSWORD,
    FIELD_USER_USERNAME,
)

logger = logging.getLogger(__name__)


def normalize_id(value: str) -> str:
    """Identifiers are stored trimmed and lower-cased."""
    return value.strip().lower()


def group_to_bag(group: Group) -> AttributeBag:
    return AttributeBag({FIELD_GROUP_ID: group.id, FIELD_GROUP_NAME: group.name})


def bag_to_group(bag: Optional[AttributeBag]) -> Optional[Group]:
    if bag is None:
        return None
    return Group(id=bag.get_attr_str(FIELD_GROUP_ID), name=bag.get_attr_str(FIELD_GROUP_NAME))


def user_to_bag(user: User) -> AttributeBag:
    return AttributeBag(
        {
            FIELD_USER_USERNAME: user.username,
            FIELD_USER_PASSWORD: user.password,
            FIELD_USER_NAME: user.name,
            FIELD_USER_GROUP_ID: user.group_id,
        }
    )


def bag_to_user(bag: Optional[AttributeBag]) -> Optional[User]:
    if bag is None:
        return None
    return User(
        username=bag.get_attr_str(FIELD_USER_USERNAME),
        password=bag.get_attr_str(FIELD_USER_PASSWORD),
        name=bag.get_attr_str(FIELD_USER_NAME),
        group_id=bag.get_attr_str(FIELD_USER_GROUP_ID),
    )


class GroupDao:
    """Group storage. ``get`` returns ``None`` for a missing group; storage errors raise."""

    def __init__(self, dao: GenericDao) -> None:
        self.dao = dao

    async def get(self, group_id: str) -> Optional[Group]:
        """Retrieve a group by its id."""
        try:
            bag = await self.dao.fetch_one({FIELD_GROUP_ID: normalize_id(group_id)})
        except DaoError as e:
            logger.exception("Failed to get group %s: %s", group_id, e)
            raise
        return bag_to_group(bag)

    async def get_all(self) -> List[Group]:
        """List all groups ordered by id."""
        try:
            bags = await self.dao.fetch_all()
        except DaoError as e:
            logger.exception("Failed to list groups: %s", e)
            raise
        return [bag_to_group(bag) for bag in bags]

    async def create(self, group_id: str, name: str) -> bool:
        """
        Create a new group. Returns whether a row was inserted.

        Raises:
            ConstraintViolation: a group with the same id already exists.
        """
        group = Group(id=normalize_id(group_id), name=name.strip())
        try:
            rows = await self.dao.create(group_to_bag(group))
        except ConstraintViolation:
            logger.warning("Group %s already exists", group.id)
            raise
        except DaoError as e:
            logger.exception("Failed to create group %s: %s", group.id, e)
            raise
        return rows > 0

    async def update(self, group: Group) -> bool:
        """Store the group's name. ``False`` means no row has that id."""
        try:
            rows = await self.dao.update(group_to_bag(group))
        except DaoError as e:
            logger.exception("Failed to update group %s: %s", group.id, e)
            raise
        return rows > 0

    async def delete(self, group: Group) -> bool:
        try:
            rows = await self.dao.delete({FIELD_GROUP_ID: group.id})
        except DaoError as e:
            logger.exception("Failed to delete group %s: %s", group.id, e)
            raise
        return rows > 0


class UserDao:
    """User storage. Passwords are handed in and out already encoded."""

    def __init__(self, dao: GenericDao) -> None:
        self.dao = dao

    async def get(self, username: str) -> Optional[User]:
        """Retrieve a user by username."""
        try:
            bag = await self.dao.fetch_one({FIELD_USER_USERNAME: normalize_id(username)})
        except DaoError as e:
            logger.exception("Failed to get user %s: %s", username, e)
            raise
        return bag_to_user(bag)

    async def get_all(self) -> List[User]:
        """List all users ordered by username."""
        try:
            bags = await self.dao.fetch_all()
        except DaoError as e:
            logger.exception("Failed to list users: %s", e)
            raise
        return [bag_to_user(bag) for bag in bags]

    async def create(self, username: str, encrypted_password: str, name: str, group_id: str) -> bool:
        """
        Create a new user. Returns whether a row was inserted.

        Raises:
            ConstraintViolation: a user with the same username already exists.
        """
        user = User(
            username=normalize_id(username),
            password=encrypted_password,
            name=name.strip(),
            group_id=normalize_id(group_id),
        )
        try:
            rows = await self.dao.create(user_to_bag(user))
        except ConstraintViolation:
            logger.warning("User %s already exists", user.username)
            raise
        except DaoError as e:
            logger.exception("Failed to create user %s: %s", user.username, e)
            raise
        return rows > 0

    async def update(self, user: User) -> bool:
        """Store password, name and group. ``False`` means no row has that username."""
        try:
            rows = await self.dao.update(user_to_bag(user))
        except DaoError as e:
            logger.exception("Failed to update user %s: %s", user.username, e)
            raise
        return rows > 0

    async def delete(self, user: User) -> bool:
        try:
            rows = await self.dao.delete({FIELD_USER_USERNAME: user.username})
        except DaoError as e:
            logger.exception("Failed to delete user %s: %s", user.username, e)
            raise
        return rows > 0
