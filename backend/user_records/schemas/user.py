"""Pydantic schemas and validators for user payloads.

Both input schemas collect every violated rule instead of stopping at the
first one; :func:`validate_create` and :func:`validate_update` flatten those
violations into a :class:`~user_records.core.errors.ValidationError`.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from user_records.core.errors import ValidationError
from user_records.models.user import Role

PASSWORD_MIN_LENGTH = 6


def _check_email(value: str) -> str:
    """Reject malformed addresses but keep the submitted spelling."""

    _, normalized = validate_email(value)
    if normalized.casefold() != value.casefold():
        raise PydanticCustomError("value_error", "value is not a valid email address")
    return value


EmailAddress = Annotated[str, AfterValidator(_check_email)]


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    title: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailAddress
    role: Role
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and value != password:
            raise PydanticCustomError("password_mismatch", "must match password")
        return value


class UserUpdate(BaseModel):
    """Partial update; empty strings count as not provided."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    title: str | None = Field(default=None, min_length=1)
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    email: EmailAddress | None = None
    role: Role | None = None
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LENGTH)
    confirm_password: str | None = Field(default=None, validate_default=True)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and value == "":
            return None
        return value

    @field_validator("confirm_password")
    @classmethod
    def _confirm_matches(cls, value: str | None, info: ValidationInfo) -> str | None:
        if "password" not in info.data:
            # password already failed its own rules
            return value
        password = info.data["password"]
        if password is not None and value is None:
            raise PydanticCustomError("confirm_required", "is required when password is provided")
        if value is not None and value != password:
            raise PydanticCustomError("password_mismatch", "must match password")
        return value


class UserRead(BaseModel):
    """Client-facing user representation; the password hash is never included."""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    first_name: str
    last_name: str
    email: str
    role: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive values for timezone-aware columns
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def format_errors(exc, model: type[BaseModel] | None = None) -> list[str]:
    """Render pydantic (or FastAPI request) errors as ``"field" reason`` messages.

    Errors raised while validating a default value carry the Python field
    name; passing ``model`` maps those back to the JSON alias.
    """

    fields = model.model_fields if model is not None else {}
    messages: list[str] = []
    for error in exc.errors():
        parts = [
            fields[part].alias or part if isinstance(part, str) and part in fields else part
            for part in error.get("loc", ())
        ]
        field = ".".join(str(part) for part in parts)
        reason = error["msg"]
        reason = reason[:1].lower() + reason[1:]
        messages.append(f'"{field}" {reason}' if field else reason)
    return messages


def validate_create(payload: Any) -> UserCreate:
    try:
        return UserCreate.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(format_errors(exc, UserCreate)) from exc


def validate_update(payload: Any) -> UserUpdate:
    try:
        return UserUpdate.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(format_errors(exc, UserUpdate)) from exc
