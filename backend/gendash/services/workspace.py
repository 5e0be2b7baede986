from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gendash.models import DashboardPlan, DatasetResult
from gendash.storage import WORKSPACE_STORAGE_KEY, make_file_path, read_json, write_json


logger = logging.getLogger("gendash.workspace")


class WorkspaceSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan: DashboardPlan
    datasets: dict[str, DatasetResult] = Field(default_factory=dict)
    epoch: int = 0
    provider: str = "sample"
    notes: list[str] = Field(default_factory=list)


class WorkspaceStore:
    """Last generated dashboard, persisted under one fixed key."""

    def __init__(self, root: Path | None = None, key: str = WORKSPACE_STORAGE_KEY):
        self.path = make_file_path("workspace", "json", key, root=root)

    def load(self) -> WorkspaceSnapshot | None:
        if not self.path.exists():
            return None
        try:
            return WorkspaceSnapshot.model_validate(read_json(self.path))
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("workspace_load_failed path=%s reason=%s", self.path, exc)
            return None

    def save(self, snapshot: WorkspaceSnapshot) -> None:
        payload: dict[str, Any] = snapshot.model_dump(mode="json", by_alias=True, exclude_none=True)
        write_json(self.path, payload)

    def clear(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


class GenerationEpochs:
    """Tags generation requests so results from superseded ones can be dropped."""

    def __init__(self) -> None:
        self._current = 0
        self._lock = Lock()

    @property
    def current(self) -> int:
        with self._lock:
            return self._current

    def begin(self) -> int:
        with self._lock:
            self._current += 1
            return self._current

    def is_current(self, epoch: int) -> bool:
        with self._lock:
            return epoch == self._current

    def commit(self, epoch: int, action: Callable[[], None]) -> bool:
        """Run *action* only while *epoch* is current; ``begin`` waits until it finishes."""
        with self._lock:
            if epoch != self._current:
                return False
            action()
            return True
