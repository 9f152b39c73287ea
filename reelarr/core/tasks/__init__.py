"""Refresh task tracking."""

from .registry import (
    InvalidTaskTransition,
    ScanResultSummary,
    ScanTask,
    TaskNotFound,
    TaskProgress,
    TaskRegistry,
    TaskStatus,
)

__all__ = [
    "InvalidTaskTransition",
    "ScanResultSummary",
    "ScanTask",
    "TaskNotFound",
    "TaskProgress",
    "TaskRegistry",
    "TaskStatus",
]
