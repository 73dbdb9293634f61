"""Persistence operations for user records."""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from user_records.core.errors import NotFoundError, StorageError
from user_records.models.user import User, utcnow

logger = logging.getLogger(__name__)

WRITABLE_COLUMNS = frozenset({"title", "first_name", "last_name", "email", "role", "hashed_password"})


class UserStore(Protocol):
    async def find_all(self) -> Sequence[User]:
        ...

    async def find_by_id(self, user_id: int) -> User:
        ...

    async def insert(self, fields: Mapping[str, Any]) -> User:
        ...

    async def update(self, user_id: int, fields: Mapping[str, Any]) -> User:
        ...

    async def delete(self, user_id: int) -> None:
        ...

    async def commit(self) -> None:
        ...


def _check_columns(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - WRITABLE_COLUMNS
    if unknown:
        raise ValueError(f"Unknown user columns: {', '.join(sorted(unknown))}")
    return dict(fields)


class UserRepository:
    """Run parameterized statements against the ``users`` table.

    Write operations only flush; the request handler decides when to call
    :meth:`commit`.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_all(self) -> list[User]:
        try:
            result = await self.session.execute(select(User).order_by(User.id))
            return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.exception("Failed to list users")
            raise StorageError("Failed to list users") from exc

    async def find_by_id(self, user_id: int) -> User:
        try:
            result = await self.session.execute(
                select(User).where(User.id == user_id).execution_options(populate_existing=True)
            )
            user = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch user %s", user_id)
            raise StorageError(f"Failed to fetch user {user_id}") from exc
        if user is None:
            raise NotFoundError(user_id)
        return user

    async def insert(self, fields: Mapping[str, Any]) -> User:
        values = _check_columns(fields)
        now = utcnow()
        values.update(created_at=now, updated_at=now)
        try:
            result = await self.session.execute(insert(User).values(**values).returning(User.id))
            user_id = result.scalar_one()
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Failed to insert user")
            raise StorageError("Failed to insert user") from exc
        return await self.find_by_id(user_id)

    async def update(self, user_id: int, fields: Mapping[str, Any]) -> User:
        values = _check_columns(fields)
        await self.find_by_id(user_id)
        values["updated_at"] = utcnow()
        try:
            await self.session.execute(
                update(User)
                .where(User.id == user_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Failed to update user %s", user_id)
            raise StorageError(f"Failed to update user {user_id}") from exc
        return await self.find_by_id(user_id)

    async def delete(self, user_id: int) -> None:
        await self.find_by_id(user_id)
        try:
            await self.session.execute(
                delete(User).where(User.id == user_id).execution_options(synchronize_session=False)
            )
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception("Failed to delete user %s", user_id)
            raise StorageError(f"Failed to delete user {user_id}") from exc

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to commit user changes")
            await self.session.rollback()
            raise StorageError("Failed to commit user changes") from exc
