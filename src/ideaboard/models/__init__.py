"""Ideaboard data models."""

from ideaboard.models.catalog import CLUSTERS, CRITERIA, CRITERIA_COUNT, Cluster, Criterion
from ideaboard.models.record import Record, RecordDraft, RecordStatus

__all__ = [
    "CLUSTERS",
    "CRITERIA",
    "CRITERIA_COUNT",
    "Cluster",
    "Criterion",
    "Record",
    "RecordDraft",
    "RecordStatus",
]
