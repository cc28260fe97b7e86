import re
import uuid
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

Priority = Literal["low", "med", "high"]
PRIORITIES = ("low", "med", "high")

DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"
TIME_PATTERN = r"^[0-9]{2}:[0-9]{2}$"


def is_date_like(value) -> bool:
    """Shape check only (YYYY-MM-DD); 2025-02-30 passes."""
    return isinstance(value, str) and re.fullmatch(DATE_PATTERN, value) is not None


def clean_priority(value) -> Optional[str]:
    return value if isinstance(value, str) and value in PRIORITIES else None


def clean_tags(value) -> Optional[list[str]]:
    """Keep string tags, stringify numbers, drop everything else and blanks."""
    if not isinstance(value, (list, tuple)):
        return None
    tags = []
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, (int, float)):
            item = str(item)
        if isinstance(item, str) and item.strip():
            tags.append(item.strip())
    return tags


class Task(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str = Field(min_length=1)
    time: str = ""  # "" or HH:MM
    priority: Priority = "med"
    tags: list[str] = Field(default_factory=list)
    notes: str = ""
    done: bool = False
    created_at: str  # ISO format datetime string

    @classmethod
    def new(
        cls,
        text: str,
        time: str = "",
        priority: str = "med",
        tags: Optional[list[str]] = None,
        notes: str = "",
        done: bool = False,
    ) -> "Task":
        return cls(
            id=str(uuid.uuid4()),
            text=text,
            time=time,
            priority=priority,
            tags=list(tags or []),
            notes=notes,
            done=done,
            created_at=datetime.now().isoformat(),
        )


# Tool-call payloads. Fields are sanitized rather than rejected: anything
# that fails its own check becomes None and is ignored downstream.

class TaskFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None
    time: Optional[str] = None
    priority: Optional[Priority] = None
    tags: Optional[list[str]] = None
    notes: Optional[str] = None
    done: Optional[bool] = None

    @field_validator("text", "notes", mode="before")
    @classmethod
    def _strings_only(cls, value):
        return value.strip() if isinstance(value, str) else None

    @field_validator("time", mode="before")
    @classmethod
    def _time_shape(cls, value):
        if not isinstance(value, str):
            return None
        value = value.strip()
        if value and not re.fullmatch(TIME_PATTERN, value):
            return None
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        return clean_priority(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value):
        return clean_tags(value)

    @field_validator("done", mode="before")
    @classmethod
    def _done(cls, value):
        return value if isinstance(value, bool) else None


class MatchSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def _text(cls, value):
        return value.strip() if isinstance(value, str) else ""


def _as_mapping(value):
    return value if isinstance(value, dict) else {}


class ToolCallBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None

    @field_validator("message", mode="before")
    @classmethod
    def _message(cls, value):
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


class CreateCall(ToolCallBase):
    action: Literal["create"]
    task: TaskFields = Field(default_factory=TaskFields)

    @field_validator("task", mode="before")
    @classmethod
    def _task(cls, value):
        return _as_mapping(value)


class MatchCall(ToolCallBase):
    match: MatchSpec = Field(default_factory=MatchSpec)

    @field_validator("match", mode="before")
    @classmethod
    def _match(cls, value):
        return _as_mapping(value)


class UpdateCall(MatchCall):
    action: Literal["update"]
    changes: TaskFields = Field(default_factory=TaskFields)

    @field_validator("changes", mode="before")
    @classmethod
    def _changes(cls, value):
        return _as_mapping(value)


class DeleteCall(MatchCall):
    action: Literal["delete"]


class CompleteCall(MatchCall):
    action: Literal["complete"]


class UncompleteCall(MatchCall):
    action: Literal["uncomplete"]


class SwitchDateCall(ToolCallBase):
    action: Literal["switch_date"]
    date: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, value):
        return value.strip() if isinstance(value, str) else ""


ToolCall = Annotated[
    Union[CreateCall, UpdateCall, DeleteCall, CompleteCall, UncompleteCall, SwitchDateCall],
    Field(discriminator="action"),
]
TOOL_CALL_ADAPTER = TypeAdapter(ToolCall)
ACTIONS = ("create", "update", "delete", "complete", "uncomplete", "switch_date")


class ActionResult(BaseModel):
    ok: bool
    message: str
    tasks: Optional[list[Task]] = None  # replacement list for the active date
    date: Optional[str] = None  # set when the action switches the active date
    celebrate: bool = False


class TranscriptEntry(BaseModel):
    role: Literal["user", "assistant"]
    text: str


class Reply(BaseModel):
    text: str
    celebrate: bool = False


# HTTP request bodies

class TaskCreate(BaseModel):
    text: str = Field(min_length=1)
    time: str = Field(default="", pattern=r"^([0-9]{2}:[0-9]{2})?$")
    priority: Priority = "med"
    tags: list[str] = Field(default_factory=list)
    notes: str = ""
    done: bool = False
    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)

    @field_validator("text", "notes", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class TaskUpdate(BaseModel):
    text: Optional[str] = Field(default=None, min_length=1)
    time: Optional[str] = Field(default=None, pattern=r"^([0-9]{2}:[0-9]{2})?$")
    priority: Optional[Priority] = None
    tags: Optional[list[str]] = None
    notes: Optional[str] = None
    done: Optional[bool] = None

    # Blank titles are stripped to "" and then fail min_length.
    @field_validator("text", "notes", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class MoveRequest(BaseModel):
    direction: Literal["up", "down"]


class DateSwitch(BaseModel):
    date: str = Field(pattern=DATE_PATTERN)


class ChatRequest(BaseModel):
    message: str
