"""Account and group administration rules (login, password change, CRUD guards)."""

from __future__ import annotations

from typing import List, Optional

from admincp.constants import ADMIN_USERNAME, SYSTEM_GROUP_ID
from admincp.db.exceptions import ConstraintViolation
from admincp.db.models import Group, User
from admincp.db.repositories import GroupDao, UserDao, normalize_id
from admincp.utils.security import encrypt_password, verify_password


class AccountError(Exception):
    """A rejected console action. ``key`` names the user-facing message."""

    def __init__(self, key: str, *params: str) -> None:
        super().__init__(f"{key}: {', '.join(params)}" if params else key)
        self.key = key
        self.params = params


class PermissionDenied(AccountError):
    pass


class ValidationFailed(AccountError):
    pass


class NotFoundError(AccountError):
    pass


def is_admin(user: Optional[User]) -> bool:
    """Members of the system group may manage groups and users."""
    return user is not None and user.group_id == SYSTEM_GROUP_ID


class AccountManager:
    """High-level façade the console handlers call into.

    Storage errors from the DAOs are not caught here; they reach the caller
    unchanged.
    """

    def __init__(self, group_dao: GroupDao, user_dao: UserDao) -> None:
        self.group_dao = group_dao
        self.user_dao = user_dao

    @staticmethod
    def _require_admin(current_user: Optional[User]) -> None:
        if not is_admin(current_user):
            raise PermissionDenied("error_no_permission")

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user when *password* matches, otherwise ``None``."""
        user = await self.user_dao.get(username)
        if user is None or not verify_password(user.username, password, user.password):
            return None
        return user

    async def change_password(self, user: User, current: str, new: str, confirm: str) -> User:
        if user.username == ADMIN_USERNAME:
            raise PermissionDenied("error_change_admin_password")
        if not verify_password(user.username, current.strip(), user.password):
            raise ValidationFailed("error_password_not_matched")
        new = new.strip()
        if not new:
            raise ValidationFailed("error_empty_user_password")
        if new != confirm.strip():
            raise ValidationFailed("error_mismatched_passwords")
        updated = user.model_copy(update={"password": encrypt_password(user.username, new)})
        await self.user_dao.update(updated)
        return updated

    # --- groups ---

    async def list_groups(self) -> List[Group]:
        return await self.group_dao.get_all()

    async def get_group(self, group_id: str) -> Group:
        group = await self.group_dao.get(group_id)
        if group is None:
            raise NotFoundError("error_group_not_found", group_id)
        return group

    async def create_group(self, current_user: Optional[User], group_id: str, name: str) -> Group:
        self._require_admin(current_user)
        group_id = normalize_id(group_id)
        if not group_id:
            raise ValidationFailed("error_empty_group_id")
        if await self.group_dao.get(group_id) is not None:
            raise ValidationFailed("error_group_existed", group_id)
        try:
            await self.group_dao.create(group_id, name)
        except ConstraintViolation as e:
            raise ValidationFailed("error_group_existed", group_id) from e
        return Group(id=group_id, name=name.strip())

    async def update_group(self, current_user: Optional[User], group_id: str, name: str) -> Group:
        """Rename a group; the id never changes."""
        self._require_admin(current_user)
        group = await self.get_group(group_id)
        group = group.model_copy(update={"name": name.strip()})
        await self.group_dao.update(group)
        return group

    async def delete_group(self, current_user: Optional[User], group_id: str) -> Group:
        self._require_admin(current_user)
        group = await self.get_group(group_id)
        if group.id == SYSTEM_GROUP_ID:
            raise PermissionDenied("error_delete_system_group", group.id)
        await self.group_dao.delete(group)
        return group

    # --- users ---

    async def list_users(self) -> List[User]:
        return await self.user_dao.get_all()

    async def get_user(self, username: str) -> User:
        user = await self.user_dao.get(username)
        if user is None:
            raise NotFoundError("error_user_not_found", username)
        return user

    async def create_user(
        self,
        current_user: Optional[User],
        username: str,
        name: str,
        group_id: str,
        password: str,
        confirm: str,
    ) -> User:
        self._require_admin(current_user)
        username = normalize_id(username)
        if not username:
            raise ValidationFailed("error_empty_user_username")
        if await self.user_dao.get(username) is not None:
            raise ValidationFailed("error_user_existed", username)
        password = password.strip()
        if not password:
            raise ValidationFailed("error_empty_user_password")
        if password != confirm.strip():
            raise ValidationFailed("error_mismatched_passwords")
        encoded = encrypt_password(username, password)
        try:
            await self.user_dao.create(username, encoded, name, group_id)
        except ConstraintViolation as e:
            raise ValidationFailed("error_user_existed", username) from e
        return User(username=username, password=encoded, name=name.strip(), group_id=normalize_id(group_id))

    async def update_user(
        self,
        current_user: Optional[User],
        username: str,
        name: str,
        group_id: str,
        password: str = "",
        confirm: str = "",
    ) -> User:
        """Edit a user. A blank *password* keeps the current one.

        The admin account keeps its group and its password.
        """
        self._require_admin(current_user)
        user = await self.get_user(username)
        changes = {"name": name.strip()}
        password = password.strip()
        if password:
            if user.username == ADMIN_USERNAME:
                raise PermissionDenied("error_change_admin_password")
            if password != confirm.strip():
                raise ValidationFailed("error_mismatched_passwords")
            changes["password"] = encrypt_password(user.username, password)
        if user.username != ADMIN_USERNAME:
            changes["group_id"] = normalize_id(group_id)
        user = user.model_copy(update=changes)
        await self.user_dao.update(user)
        return user

    async def delete_user(self, current_user: Optional[User], username: str) -> User:
        self._require_admin(current_user)
        user = await self.get_user(username)
        if user.username == ADMIN_USERNAME:
            raise PermissionDenied("error_delete_system_user", user.username)
        await self.user_dao.delete(user)
        return user
