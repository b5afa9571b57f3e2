# src/todo_companion/web/schemas.py

"""Request/response bodies of the HTTP API (camelCase on the wire)."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool

from ..tasks.task_models import Task, TaskSummary


def _dt(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=UTC)


class CreateTaskRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # "task" is what older web clients send.
    text: str = Field(validation_alias=AliasChoices("text", "task"))
    display_name: str | None = Field(
        default=None, validation_alias=AliasChoices("displayName", "username")
    )


class UpdateTaskRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    completed: StrictBool


class TaskOut(BaseModel):
    id: int
    text: str
    completed: bool
    owner_id: int = Field(serialization_alias="ownerId")
    display_name: str | None = Field(default=None, serialization_alias="displayName")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        return cls(
            id=task.id,
            text=task.text,
            completed=task.completed,
            owner_id=task.owner_id,
            display_name=task.display_name,
            created_at=_dt(task.created_at),
            updated_at=_dt(task.updated_at),
        )


class SummaryOut(BaseModel):
    total: int
    completed: int
    pending: int

    @classmethod
    def from_summary(cls, summary: TaskSummary) -> "SummaryOut":
        return cls(total=summary.total, completed=summary.completed, pending=summary.pending)


class DeletedOut(BaseModel):
    deleted: bool = True


class StatusOut(BaseModel):
    status: str
    storage_connected: bool = Field(serialization_alias="storageConnected")
    timestamp: datetime


class ErrorOut(BaseModel):
    error: str
