"""User service functions combining validation output, hashing and persistence."""
from __future__ import annotations

import logging
from typing import Any

from user_records.core.security import PasswordHasher
from user_records.models.user import User
from user_records.repositories.users import UserStore
from user_records.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def build_create_fields(data: UserCreate, hashed_password: str) -> dict[str, Any]:
    """Map a validated create payload onto column values."""

    return {
        "title": data.title,
        "first_name": data.first_name,
        "last_name": data.last_name,
        "email": data.email,
        "role": data.role.value,
        "hashed_password": hashed_password,
    }


def build_update_fields(data: UserUpdate, hashed_password: str | None = None) -> dict[str, Any]:
    """Map the provided fields of an update payload onto column values.

    Fields left out of the payload are left out of the result, so the stored
    values stay as they are.
    """

    fields: dict[str, Any] = {}
    if data.title is not None:
        fields["title"] = data.title
    if data.first_name is not None:
        fields["first_name"] = data.first_name
    if data.last_name is not None:
        fields["last_name"] = data.last_name
    if data.email is not None:
        fields["email"] = data.email
    if data.role is not None:
        fields["role"] = data.role.value
    if hashed_password is not None:
        fields["hashed_password"] = hashed_password
    return fields


async def create_user(repository: UserStore, data: UserCreate, hasher: PasswordHasher) -> User:
    hashed_password = await hasher.hash_async(data.password)
    user = await repository.insert(build_create_fields(data, hashed_password))
    logger.info("Created user %s", user.id)
    return user


async def update_user(repository: UserStore, user_id: int, data: UserUpdate, hasher: PasswordHasher) -> User:
    hashed_password = None
    if data.password is not None:
        hashed_password = await hasher.hash_async(data.password)
    fields = build_update_fields(data, hashed_password)
    user = await repository.update(user_id, fields)
    logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(fields)) or "no fields")
    return user


async def delete_user(repository: UserStore, user_id: int) -> None:
    await repository.delete(user_id)
    logger.info("Deleted user %s", user_id)
