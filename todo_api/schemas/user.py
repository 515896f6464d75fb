from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, field_serializer
from pydantic.alias_generators import to_camel

from todo_api.schemas.common import utc_isoformat

PASSWORD_MIN = 6
PASSWORD_MAX = 128
EMAIL_MAX = 254
NAME_MAX = 60


class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN, max_length=PASSWORD_MAX)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            if len(v) > EMAIL_MAX:
                raise ValueError(f"email must be at most {EMAIL_MAX} characters")
        return v


class UserCreate(Credentials):
    name: Optional[str] = Field(default=None, max_length=NAME_MAX)

    @field_validator("password")
    @classmethod
    def password_max_bytes(cls, v: str) -> str:
        """Ensure password does not exceed bcrypt's 72-byte limit when UTF-8 encoded.

        Raise a validation error so API returns a 400 with a clear message.
        """
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if v is not None else v


class UserLogin(Credentials):
    pass


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    name: str = ""
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, v: datetime):
        return utc_isoformat(v)


class AuthOut(BaseModel):
    token: str
    user: UserOut


class MeOut(BaseModel):
    user: UserOut
