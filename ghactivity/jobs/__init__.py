"""Scheduled jobs: activity ingestion and label duration snapshots."""

from __future__ import annotations

from .tasks import record_tracked_label_durations, run_ingestion

__all__ = ["record_tracked_label_durations", "run_ingestion"]
