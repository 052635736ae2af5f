"""Record store interface and mode selection."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from task_dashboard.config import Config
from task_dashboard.db.models import (
    CreateSubTaskPayload,
    CreateTaskPayload,
    JiraImportPayload,
    TaskRecord,
    TaskRunPayload,
)

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Persists task and subtask records and triggers backend actions."""

    @abstractmethod
    def list_records(self) -> list[TaskRecord]: ...

    @abstractmethod
    def create_task(self, payload: CreateTaskPayload) -> TaskRecord: ...

    @abstractmethod
    def create_sub_task(self, payload: CreateSubTaskPayload) -> TaskRecord: ...

    @abstractmethod
    def update_task(self, task_id: str, fields: dict[str, Any]) -> TaskRecord: ...

    @abstractmethod
    def update_sub_task(self, sub_task_id: str, fields: dict[str, Any]) -> TaskRecord: ...

    @abstractmethod
    def import_from_jira(self, payload: JiraImportPayload) -> TaskRecord: ...

    @abstractmethod
    def orchestrate(self, payload: TaskRunPayload) -> dict: ...

    @abstractmethod
    def start(self, payload: TaskRunPayload) -> dict: ...

    @abstractmethod
    def auto(self, payload: TaskRunPayload) -> dict: ...


def open_store(config: Config) -> RecordStore:
    """Select the mock or remote store once, from configuration."""
    if config.demo_mode:
        from task_dashboard.core.mock_store import MockStore, load_seed

        logger.info("Demo mode: using local mock store at %s", config.state_path)
        return MockStore(config.state_path, seed=load_seed(config.seed_path))

    from task_dashboard.integrations.backend import RemoteStore

    base_url = config.api_base_url
    if not base_url:
        logger.warning(
            "No backend URL for host %s; requests will fail. Set TD_BACKEND_URL.", config.host
        )
    else:
        logger.info("Using backend at %s", base_url)
    return RemoteStore(base_url, timeout=config.request_timeout)
