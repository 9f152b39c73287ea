"""In-memory registry of refresh tasks and their progress."""

import threading
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Optional

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


class TaskStatus(str, Enum):
    """Lifecycle of a refresh task."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class TaskProgress(BaseModel):
    """Progress snapshot; always replaced as a whole."""
    current: int = 0
    total: int = 0
    current_item: Optional[str] = None


class ScanResultSummary(BaseModel):
    """Counters reported by a completed refresh."""
    total: int = 0
    new: int = 0
    existing: int = 0
    errors: int = 0


class ScanTask(BaseModel):
    """A single refresh task as seen by pollers."""
    id: str
    status: TaskStatus = TaskStatus.PENDING
    progress: TaskProgress = Field(default_factory=TaskProgress)
    result: Optional[ScanResultSummary] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TaskNotFound(KeyError):
    """No task is registered under the given id."""


class InvalidTaskTransition(ValueError):
    """The requested status change is not allowed from the current status."""

    def __init__(self, task_id: str, current: TaskStatus, target: TaskStatus):
        super().__init__(f"Task {task_id} cannot move from {current.value} to {target.value}")
        self.task_id = task_id
        self.current = current
        self.target = target


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskRegistry:
    """
    Thread-safe store of refresh tasks.

    The orchestrator driving a task is its only writer; pollers read copies
    returned by ``get``. Every mutation swaps in fresh objects while holding
    the lock, so a reader never sees ``current`` from one update paired with
    ``total`` from another.

    Allowed transitions::

        pending -> running -> completed | failed
    """

    def __init__(self):
        self._tasks: Dict[str, ScanTask] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, task_id: str) -> bool:
        with self._lock:
            return task_id in self._tasks

    def create(self) -> str:
        """Register a new pending task and return its id."""
        now = _utcnow()
        task_id = uuid.uuid4().hex
        with self._lock:
            self._tasks[task_id] = ScanTask(id=task_id, created_at=now, updated_at=now)
        logger.debug("Scan task created", task_id=task_id)
        return task_id

    def get(self, task_id: str) -> Optional[ScanTask]:
        """Return a snapshot of the task, or None if unknown."""
        with self._lock:
            task = self._tasks.get(task_id)
            return task.model_copy(deep=True) if task else None

    def update_progress(
        self,
        task_id: str,
        current: int,
        total: int,
        current_item: Optional[str] = None,
    ) -> ScanTask:
        """Record progress; the first call moves the task to running."""
        if current < 0 or total < 0:
            raise ValueError("Progress values must not be negative")
        if current > total:
            raise ValueError(f"Progress current ({current}) exceeds total ({total})")

        with self._lock:
            task = self._require(task_id)
            if task.status.is_terminal:
                raise InvalidTaskTransition(task_id, task.status, TaskStatus.RUNNING)

            updated = task.model_copy(update={
                "status": TaskStatus.RUNNING,
                "progress": TaskProgress(current=current, total=total, current_item=current_item),
                "updated_at": _utcnow(),
            })
            self._tasks[task_id] = updated
            return updated.model_copy(deep=True)

    def complete(self, task_id: str, result: ScanResultSummary) -> ScanTask:
        """Mark a running task completed with its summary."""
        if not isinstance(result, ScanResultSummary):
            result = ScanResultSummary(**result)
        return self._finish(task_id, TaskStatus.COMPLETED, result=result)

    def fail(self, task_id: str, message: str) -> ScanTask:
        """Mark a running task failed with a readable message."""
        return self._finish(task_id, TaskStatus.FAILED, error_message=message)

    def cleanup_old(self, max_age: timedelta) -> int:
        """Drop records older than ``max_age`` unless they are still running."""
        cutoff = _utcnow() - max_age
        with self._lock:
            stale = [
                task_id for task_id, task in self._tasks.items()
                if task.created_at < cutoff and task.status != TaskStatus.RUNNING
            ]
            for task_id in stale:
                del self._tasks[task_id]

        if stale:
            logger.info("Cleaned up old scan tasks", removed=len(stale))
        return len(stale)

    def _finish(self, task_id: str, status: TaskStatus, **fields) -> ScanTask:
        with self._lock:
            task = self._require(task_id)
            # Progress is always reported before a task may finish
            if task.status != TaskStatus.RUNNING:
                raise InvalidTaskTransition(task_id, task.status, status)

            updated = task.model_copy(update={"status": status, "updated_at": _utcnow(), **fields})
            self._tasks[task_id] = updated
            return updated.model_copy(deep=True)

    def _require(self, task_id: str) -> ScanTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task
