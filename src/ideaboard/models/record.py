"""Idea record model and its wire mapping."""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ideaboard.errors import ValidationError
from ideaboard.models.catalog import CRITERIA, CRITERIA_COUNT, MAX_SCORE, MIN_SCORE


class RecordStatus(StrEnum):
    UNDER_REVIEW = "under-review"
    APPROVED = "approved"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Status values written by older backend deployments
LEGACY_STATUSES: dict[str, RecordStatus] = {
    "avaliação": RecordStatus.UNDER_REVIEW,
    "aprovada": RecordStatus.APPROVED,
    "cancelada": RecordStatus.CANCELLED,
    "finalizada": RecordStatus.COMPLETED,
}

# Fields a user may edit through the buffer, besides the per-criterion scores
EDITABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "target_audience",
        "business_model",
        "cluster",
        "status",
        "creator_name",
        "revenue_estimate",
    }
)

DRAFT_REQUIRED_FIELDS = ("name", "description", "target_audience", "business_model", "cluster")

# Record attribute -> wire key used by the backend sheet
_WIRE_KEYS: dict[str, str] = {
    "id": "id",
    "name": "service",
    "description": "need",
    "cluster": "cluster",
    "business_model": "businessModel",
    "target_audience": "targetAudience",
    "status": "status",
    "creator_name": "creatorName",
    "creation_timestamp": "creationDate",
    "scores": "scores",
    "revenue_estimate": "revenueEstimate",
}
WIRE_FIELDS = frozenset(_WIRE_KEYS.values())


def clamp_score(value: Any) -> int:
    """Coerce a score to an int within [MIN_SCORE, MAX_SCORE]; None counts as 0."""
    if value is None or value == "":
        return MIN_SCORE
    number = _to_number(value, "Score")
    return int(round(max(MIN_SCORE, min(MAX_SCORE, number))))


def clamp_revenue(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    number = _to_number(value, "Revenue estimate")
    if math.isinf(number):
        raise ValidationError("Revenue estimate must be finite")
    return max(0.0, number)


def _to_number(value: Any, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{label} must be a number, got {value!r}") from e
    if math.isnan(number):
        raise ValidationError(f"{label} must be a number, got {value!r}")
    return number


def parse_status(value: Any) -> RecordStatus:
    if value is None or value == "":
        return RecordStatus.UNDER_REVIEW
    if isinstance(value, RecordStatus):
        return value
    if value in LEGACY_STATUSES:
        return LEGACY_STATUSES[value]
    try:
        return RecordStatus(value)
    except ValueError as e:
        allowed = sorted(s.value for s in RecordStatus)
        raise ValidationError(f"Invalid status: {value!r}. Allowed: {allowed}") from e


class Record(BaseModel):
    """A scored idea tracked by the portfolio."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    target_audience: str = ""
    business_model: str = ""
    cluster: str = ""
    status: RecordStatus = RecordStatus.UNDER_REVIEW
    creator_name: str = ""
    creation_timestamp: str | None = None
    scores: tuple[int, ...] = Field(default_factory=lambda: (0,) * CRITERIA_COUNT)
    revenue_estimate: float = 0.0

    @field_validator("scores", mode="before")
    @classmethod
    def _normalize_scores(cls, value: Any) -> tuple[int, ...]:
        raw = list(value) if isinstance(value, (list, tuple)) else []
        raw = raw[:CRITERIA_COUNT] + [0] * (CRITERIA_COUNT - len(raw))
        return tuple(clamp_score(v) for v in raw)

    @field_validator("revenue_estimate", mode="before")
    @classmethod
    def _normalize_revenue(cls, value: Any) -> float:
        return clamp_revenue(value)

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> RecordStatus:
        return parse_status(value)

    @field_validator(
        "description", "target_audience", "business_model", "cluster", "creator_name",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def total(self) -> int:
        return sum(self.scores)

    def with_changes(self, **changes: Any) -> Record:
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        return Record.model_validate(data)

    def mutable_fields(self) -> dict[str, Any]:
        """The fields an edit overlay carries."""
        data = {name: getattr(self, name) for name in EDITABLE_FIELDS}
        data["scores"] = self.scores
        return data

    # --- wire mapping ---

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Record:
        values = {attr: data[key] for attr, key in _WIRE_KEYS.items() if key in data}
        return cls.model_validate(values)

    def to_wire(self) -> dict[str, Any]:
        """Backend row for this record.

        Statuses are always written with the English values (``under-review``,
        ...). Legacy Portuguese values read from older rows are normalised and
        not written back, so a saved row switches vocabulary.
        """
        dumped = self.model_dump(mode="json")
        data = {key: dumped[attr] for attr, key in _WIRE_KEYS.items()}
        data["scores"] = list(self.scores)
        return data

    def to_sheet_row(self) -> dict[str, Any]:
        """Wire record plus one flattened column per criterion."""
        row = self.to_wire()
        for criterion, score in zip(CRITERIA, self.scores, strict=True):
            row[criterion.column] = score
        row["revenue_estimate"] = self.revenue_estimate
        return row


class RecordDraft(BaseModel):
    """User-supplied fields for a new idea; the backend assigns the rest."""

    name: str = ""
    description: str = ""
    target_audience: str = ""
    business_model: str = ""
    cluster: str = ""
    creator_name: str = ""

    def validated(self) -> RecordDraft:
        """Return a whitespace-trimmed copy, raising if a required field is blank."""
        trimmed = RecordDraft(**{k: (v or "").strip() for k, v in self.model_dump().items()})
        missing = [name for name in DRAFT_REQUIRED_FIELDS if not getattr(trimmed, name)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        return trimmed

    def to_wire(self) -> dict[str, Any]:
        """New rows always start with the English ``under-review`` status."""
        return {
            "service": self.name,
            "need": self.description,
            "targetAudience": self.target_audience,
            "businessModel": self.business_model,
            "cluster": self.cluster,
            "creatorName": self.creator_name,
            "status": RecordStatus.UNDER_REVIEW.value,
        }
