"""User CRUD endpoints."""
from __future__ import annotations

import re
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from user_records.core.dependencies import get_password_hasher, get_user_repository
from user_records.core.errors import NotFoundError
from user_records.core.security import PasswordHasher
from user_records.repositories.users import UserStore
from user_records.schemas.user import UserRead, validate_create, validate_update
from user_records.services import users as user_service

router = APIRouter(tags=["users"])

_USER_ID_PATTERN = re.compile(r"-?[0-9]+")
# ids are stored as signed 64-bit integers
_MIN_USER_ID = -(2**63)
_MAX_USER_ID = 2**63 - 1


def _parse_user_id(raw: str) -> int | None:
    if len(raw) > 20 or not _USER_ID_PATTERN.fullmatch(raw):
        return None
    user_id = int(raw)
    if not _MIN_USER_ID <= user_id <= _MAX_USER_ID:
        return None
    return user_id


@router.get("/users")
async def list_users(repository: UserStore = Depends(get_user_repository)) -> JSONResponse:
    users = await repository.find_all()
    if not users:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "No users found"})
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"message": "List of users", "users": [UserRead.model_validate(user).to_json() for user in users]},
    )


@router.get("/users/{user_id}")
async def get_user(user_id: str, repository: UserStore = Depends(get_user_repository)) -> JSONResponse:
    parsed_id = _parse_user_id(user_id)
    if parsed_id is None:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"msg": "invalid user id"})

    try:
        user = await repository.find_by_id(parsed_id)
    except NotFoundError:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"msg": f"user id: {parsed_id} cant be found"}
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"msg": "User found", "user": UserRead.model_validate(user).to_json()},
    )


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: Any = Body(default=None),
    repository: UserStore = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> JSONResponse:
    data = validate_create(payload)
    user = await user_service.create_user(repository, data, hasher)
    await repository.commit()
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"message": "User created successfully", "userId": user.id},
    )


@router.put("/user/{user_id}")
async def update_user(
    user_id: str,
    payload: Any = Body(default=None),
    repository: UserStore = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> JSONResponse:
    parsed_id = _parse_user_id(user_id)
    if parsed_id is None:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"msg": "Invalid user ID"})

    try:
        await repository.find_by_id(parsed_id)
        data = validate_update(payload)
        await user_service.update_user(repository, parsed_id, data, hasher)
    except NotFoundError:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"msg": "User not found"})
    await repository.commit()
    return JSONResponse(
        status_code=status.HTTP_200_OK, content={"message": f"User {parsed_id} updated successfully"}
    )


@router.delete("/user/{user_id}")
async def delete_user(user_id: str, repository: UserStore = Depends(get_user_repository)) -> JSONResponse:
    parsed_id = _parse_user_id(user_id)
    if parsed_id is None:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid user ID"})

    try:
        await user_service.delete_user(repository, parsed_id)
    except NotFoundError:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "User not found"})
    await repository.commit()
    return JSONResponse(status_code=status.HTTP_200_OK, content={"message": "User has been removed"})
