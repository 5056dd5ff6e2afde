"""Pydantic schemas for task request/response validation."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from typing import List, Literal, Optional, Any

from taskflow.models.task import PRIORITIES, STATUSES, TITLE_MAX_LENGTH

Status = Literal[STATUSES]
Priority = Literal[PRIORITIES]


def to_naive_utc(value: datetime) -> datetime:
    """Les dates sont stockées en UTC naïf (comme datetime.utcnow)."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _as_id_list(value: Any) -> Any:
    # assignedTo peut arriver comme un id seul ou une liste
    if value is None or isinstance(value, list):
        return value
    if isinstance(value, (tuple, set)):
        return list(value)
    return [value]


def _dedupe(ids: List[int]) -> List[int]:
    seen = set()
    result = []
    for user_id in ids:
        if user_id not in seen:
            seen.add(user_id)
            result.append(user_id)
    return result


class UserRef(BaseModel):
    """Référence normalisée vers un utilisateur (id + résumé)."""
    id: int
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class AttachmentResponse(BaseModel):
    file_name: str
    original_name: str
    file_size: int
    content_type: str
    provider: str
    url: Optional[str] = None
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttachmentListResponse(BaseModel):
    message: str
    attachments: List[AttachmentResponse]


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str
    status: Status = "todo"
    priority: Priority = "medium"
    due_date: datetime = Field(validation_alias=AliasChoices("due_date", "dueDate"))
    assigned_to: List[int] = Field(validation_alias=AliasChoices("assigned_to", "assignedTo"))

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value: datetime) -> datetime:
        value = to_naive_utc(value)
        if value <= datetime.utcnow():
            raise ValueError("Due date must be in the future")
        return value

    @field_validator("assigned_to", mode="before")
    @classmethod
    def coerce_assignees(cls, value: Any) -> Any:
        return _as_id_list(value)

    @field_validator("assigned_to")
    @classmethod
    def assignees_not_empty(cls, value: List[int]) -> List[int]:
        if not value:
            raise ValueError("At least one assignee is required")
        return _dedupe(value)


class TaskUpdate(BaseModel):
    """Mise à jour partielle: seuls les champs envoyés sont appliqués."""

    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = None
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("due_date", "dueDate"))
    assigned_to: Optional[List[int]] = Field(None, validation_alias=AliasChoices("assigned_to", "assignedTo"))

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        # pas de contrôle "dans le futur" ici: une tâche en retard reste éditable
        return to_naive_utc(value) if value is not None else None

    @field_validator("assigned_to", mode="before")
    @classmethod
    def coerce_assignees(cls, value: Any) -> Any:
        return _as_id_list(value)

    @field_validator("assigned_to")
    @classmethod
    def assignees_not_empty(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is not None and not value:
            raise ValueError("At least one assignee is required")
        return _dedupe(value) if value is not None else None


class TaskResponse(BaseModel):
    """Schema for task responses from API."""

    id: int
    title: str
    description: str
    status: str
    priority: str
    due_date: datetime
    assigned_to: List[UserRef] = Field(validation_alias="assignees")
    created_by: Optional[UserRef] = Field(None, validation_alias="creator")
    attachments: List[AttachmentResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
