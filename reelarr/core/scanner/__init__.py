"""Catalog refresh scanning."""

from .orchestrator import ScanOrchestrator

__all__ = ["ScanOrchestrator"]
