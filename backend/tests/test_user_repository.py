from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_fields, make_payload
from user_records.core.errors import NotFoundError, StorageError
from user_records.core.security import PasswordHasher
from user_records.repositories.users import UserRepository
from user_records.schemas.user import validate_create, validate_update
from user_records.services import users as user_service


@pytest.mark.asyncio
async def test_find_all_returns_empty_list_without_users(repository: UserRepository) -> None:
    assert await repository.find_all() == []


@pytest.mark.asyncio
async def test_insert_assigns_unique_ids_and_timestamps(repository: UserRepository) -> None:
    first = await repository.insert(make_fields())
    second = await repository.insert(make_fields(email="grace@example.com"))

    assert first.id != second.id
    assert first.created_at is not None
    assert first.created_at == first.updated_at
    assert [user.id for user in await repository.find_all()] == [first.id, second.id]


@pytest.mark.asyncio
async def test_find_by_id_round_trips_inserted_fields(repository: UserRepository) -> None:
    inserted = await repository.insert(make_fields())

    found = await repository.find_by_id(inserted.id)

    assert found.id == inserted.id
    assert (found.title, found.first_name, found.last_name) == ("Ms", "Ada", "Lovelace")
    assert (found.email, found.role, found.hashed_password) == ("ada@example.com", "Admin", "not-a-real-hash")


@pytest.mark.asyncio
async def test_find_by_id_raises_for_unknown_id(repository: UserRepository) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        await repository.find_by_id(999999)

    assert excinfo.value.user_id == 999999


@pytest.mark.asyncio
async def test_update_changes_only_given_fields(repository: UserRepository) -> None:
    inserted = await repository.insert(make_fields())
    user_id = inserted.id
    created_at = inserted.created_at
    updated_at = inserted.updated_at

    updated = await repository.update(user_id, {"last_name": "King"})

    assert updated.last_name == "King"
    assert updated.first_name == "Ada"
    assert updated.email == "ada@example.com"
    assert updated.created_at == created_at
    assert updated.updated_at >= updated_at


@pytest.mark.asyncio
async def test_update_raises_for_unknown_id(repository: UserRepository) -> None:
    with pytest.raises(NotFoundError):
        await repository.update(424242, {"title": "Dr"})


@pytest.mark.asyncio
async def test_writes_reject_unknown_columns(repository: UserRepository) -> None:
    inserted = await repository.insert(make_fields())

    with pytest.raises(ValueError):
        await repository.insert(make_fields(password="plaintext"))
    with pytest.raises(ValueError):
        await repository.update(inserted.id, {"id": 7})


@pytest.mark.asyncio
async def test_delete_is_permanent(repository: UserRepository) -> None:
    inserted = await repository.insert(make_fields())
    user_id = inserted.id

    await repository.delete(user_id)

    with pytest.raises(NotFoundError):
        await repository.find_by_id(user_id)
    with pytest.raises(NotFoundError):
        await repository.delete(user_id)


@pytest.mark.asyncio
async def test_store_failures_surface_as_storage_error() -> None:
    session = MagicMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("database is locked")))
    repository = UserRepository(session)

    with pytest.raises(StorageError):
        await repository.find_all()
    with pytest.raises(StorageError):
        await repository.find_by_id(1)


@pytest.mark.asyncio
async def test_commit_failure_rolls_back() -> None:
    session = MagicMock()
    session.commit = AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error")))
    session.rollback = AsyncMock()
    repository = UserRepository(session)

    with pytest.raises(StorageError):
        await repository.commit()
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_user_hashes_password_with_random_salt(
    repository: UserRepository, hasher: PasswordHasher
) -> None:
    data = validate_create(make_payload())

    first = await user_service.create_user(repository, data, hasher)
    second = await user_service.create_user(repository, data, hasher)

    assert first.hashed_password != "secret1"
    assert first.hashed_password != second.hashed_password
    assert hasher.verify("secret1", first.hashed_password)
    assert (first.title, first.first_name, first.last_name, first.email, first.role) == (
        "Mr",
        "A",
        "B",
        "a@b.com",
        "User",
    )


@pytest.mark.asyncio
async def test_update_user_rehashes_new_password(repository: UserRepository, hasher: PasswordHasher) -> None:
    created = await user_service.create_user(repository, validate_create(make_payload()), hasher)
    user_id = created.id
    old_hash = created.hashed_password

    data = validate_update({"password": "newsecret", "confirmPassword": "newsecret", "title": ""})
    updated = await user_service.update_user(repository, user_id, data, hasher)

    assert updated.hashed_password != old_hash
    assert hasher.verify("newsecret", updated.hashed_password)
    assert updated.title == "Mr"
