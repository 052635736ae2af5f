"""Data models for the task dashboard."""

from dataclasses import asdict, dataclass, field, fields
from typing import Any

TASK_STATUSES = (
    "PENDING",
    "PLANNING",
    "READY",
    "QUEUED",
    "IN_PROGRESS",
    "REVIEWING",
    "PULL_REQUEST",
    "DONE",
    "FAILURE",
)

TASK_TYPES = ("TASK", "SUBTASK")

# Fields that identify a record and never change after creation.
IDENTITY_FIELDS = ("task_id", "sub_task_id", "task_type")

# Fields a user may edit on an existing record.
EDITABLE_FIELDS = (
    "description",
    "summary",
    "repo_url",
    "base_branch",
    "status",
    "prompt",
    "agent_summary",
    "attachment_path",
    "additional_json",
)


@dataclass
class AttachmentPath:
    filename: str
    path: str


@dataclass
class TaskRecord:
    id: int
    task_id: str
    sub_task_id: str | None = None
    task_type: str = "TASK"
    description: str | None = None
    summary: str | None = None
    repo_url: str | None = None
    base_branch: str | None = None
    status: str = "PENDING"
    prompt: str | None = None
    agent_summary: str | None = None
    attachment_path: list[AttachmentPath] | None = None
    additional_json: dict[str, Any] | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def action_id(self) -> str:
        """Identifier used when dispatching actions for this record."""
        return self.sub_task_id or self.task_id

    @property
    def is_subtask(self) -> bool:
        return bool(self.sub_task_id)

    @property
    def title(self) -> str:
        return self.summary or self.description or "Untitled task"

    @classmethod
    def from_dict(cls, data: dict) -> "TaskRecord":
        """Build a record from its JSON shape. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        attachments = values.get("attachment_path")
        if attachments is not None:
            values["attachment_path"] = [
                AttachmentPath(filename=a["filename"], path=a["path"])
                if isinstance(a, dict)
                else a
                for a in attachments
            ]
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TaskNode:
    """A top-level record with its subtasks, as shown in the dashboard."""

    record: TaskRecord
    subtasks: list[TaskRecord] = field(default_factory=list)
    synthesized: bool = False

    @property
    def key(self) -> str:
        """Key used to remember whether this node is expanded."""
        return str(self.record.id)

    def to_dict(self) -> dict:
        d = self.record.to_dict()
        d["key"] = self.key
        d["synthesized"] = self.synthesized
        d["subtasks"] = [s.to_dict() for s in self.subtasks]
        return d


def _compact(d: dict) -> dict:
    """Drop keys whose value is None."""
    return {k: v for k, v in d.items() if v is not None}


@dataclass
class CreateTaskPayload:
    task_id: str
    description: str | None = None
    summary: str | None = None
    repo_url: str | None = None
    base_branch: str | None = None
    status: str | None = None
    prompt: str | None = None
    agent_summary: str | None = None
    attachment_path: list[AttachmentPath] | None = None
    additional_json: dict[str, Any] | None = None

    def to_dict(self) -> dict:
        return _compact(asdict(self))


@dataclass
class CreateSubTaskPayload(CreateTaskPayload):
    sub_task_id: str = ""


@dataclass
class JiraImportPayload:
    jira_task_id: str
    repo_url: str
    branch: str = "main"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TaskRunPayload:
    task_id: str
    repo_url: str
    base_branch: str | None = None

    def to_dict(self) -> dict:
        return _compact(asdict(self))
