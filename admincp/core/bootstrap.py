"""Startup reconciliation of the system group and the admin account.

Runs once, after the tables exist and before any request is served. The
outcome is returned as :class:`Ready` or :class:`BootstrapError`; the entry
point decides how to terminate on failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from admincp.constants import (
    ADMIN_NAME,
    ADMIN_USERNAME,
    DEFAULT_ADMIN_PASSWORD,
    SYSTEM_GROUP_ID,
    SYSTEM_GROUP_NAME,
)
from admincp.db.exceptions import DaoError
from admincp.db.models import Group, User
from admincp.db.repositories import GroupDao, UserDao
from admincp.utils.security import encrypt_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ready:
    system_group: Group
    admin_user: User
    created: Tuple[str, ...] = ()


class BootstrapError(Exception):
    """The system group or the admin account could not be established."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


BootstrapResult = Union[Ready, BootstrapError]


async def _ensure_system_group(group_dao: GroupDao) -> Tuple[Group, bool]:
    try:
        group = await group_dao.get(SYSTEM_GROUP_ID)
        if group is not None:
            return group, False
        logger.info("System group [%s] not found, creating one...", SYSTEM_GROUP_ID)
        if not await group_dao.create(SYSTEM_GROUP_ID, SYSTEM_GROUP_NAME):
            raise BootstrapError(f"Cannot create group [{SYSTEM_GROUP_ID}]")
        group = await group_dao.get(SYSTEM_GROUP_ID)
    except DaoError as e:
        raise BootstrapError(f"Error while establishing group [{SYSTEM_GROUP_ID}]: {e}", e) from e
    if group is None:
        raise BootstrapError(f"Group [{SYSTEM_GROUP_ID}] not found after creation")
    return group, True


async def _ensure_admin_user(user_dao: UserDao, password: str) -> Tuple[User, bool]:
    try:
        user = await user_dao.get(ADMIN_USERNAME)
        if user is not None:
            return user, False
        logger.info("Admin user [%s] not found, creating one with the default password...", ADMIN_USERNAME)
        created = await user_dao.create(
            ADMIN_USERNAME,
            encrypt_password(ADMIN_USERNAME, password),
            ADMIN_NAME,
            SYSTEM_GROUP_ID,
        )
        if not created:
            raise BootstrapError(f"Cannot create user [{ADMIN_USERNAME}]")
        user = await user_dao.get(ADMIN_USERNAME)
    except DaoError as e:
        raise BootstrapError(f"Error while establishing user [{ADMIN_USERNAME}]: {e}", e) from e
    if user is None:
        raise BootstrapError(f"User [{ADMIN_USERNAME}] not found after creation")
    return user, True


async def reconcile(
    group_dao: GroupDao, user_dao: UserDao, *, admin_password: str = DEFAULT_ADMIN_PASSWORD
) -> BootstrapResult:
    """Make sure the system group and the admin user exist.

    Idempotent: against an initialised store both lookups succeed and
    nothing is written.
    """
    created = []
    try:
        group, group_created = await _ensure_system_group(group_dao)
        if group_created:
            created.append("group")
        user, user_created = await _ensure_admin_user(user_dao, admin_password)
        if user_created:
            created.append("user")
    except BootstrapError as e:
        return e
    return Ready(system_group=group, admin_user=user, created=tuple(created))
