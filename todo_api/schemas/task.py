import re
from datetime import datetime
from typing import Optional, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, field_serializer
from pydantic.alias_generators import to_camel

from todo_api.models.task import TaskStatus
from todo_api.schemas.common import as_utc, utc_isoformat

TITLE_MAX = 200
DESCRIPTION_MAX = 5000

_ISO_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")


class _TaskFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("title", check_fields=False)
    @classmethod
    def title_not_empty(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()

    @field_validator("due_date", mode="before", check_fields=False)
    @classmethod
    def due_date_is_iso_datetime(cls, v):
        if v is None:
            return v
        if not isinstance(v, str) or not _ISO_DATETIME_RE.match(v):
            raise ValueError("dueDate must be an ISO-8601 date-time string")
        return v

    @field_validator("due_date", check_fields=False)
    @classmethod
    def due_date_utc(cls, v):
        return as_utc(v)


class TaskCreate(_TaskFields):
    title: str = Field(min_length=1, max_length=TITLE_MAX)
    description: str = Field(default="", max_length=DESCRIPTION_MAX)
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[datetime] = None


class TaskUpdate(_TaskFields):
    """Partial update; only fields present in the request body are applied.

    ``title``, ``description`` and ``status`` may be omitted but not null.
    ``dueDate: null`` clears the due date.
    """

    title: str = Field(default=None, min_length=1, max_length=TITLE_MAX)
    description: str = Field(default=None, max_length=DESCRIPTION_MAX)
    status: TaskStatus = None
    due_date: Optional[datetime] = None

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    owner_id: str = Field(
        validation_alias=AliasChoices("owner_id", "ownerId", "owner"),
        serialization_alias="owner",
    )
    title: str
    description: str = ""
    status: TaskStatus
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("due_date", "created_at", "updated_at")
    def serialize_timestamps(self, v):
        return utc_isoformat(v)


class TaskEnvelope(BaseModel):
    task: TaskOut


class TaskPage(BaseModel):
    items: List[TaskOut]
    page: int
    limit: int
    total: int
    pages: int


class Deleted(BaseModel):
    ok: bool = True
