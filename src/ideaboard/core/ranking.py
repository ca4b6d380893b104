"""Ranking Pipeline: overlay → filter → sort → classify → paginate.

Every stage is a pure function of its inputs. ``rank`` chains them;
``RankingState`` holds the user's current filters, sort and page between
calls.
"""

from __future__ import annotations

import logging
import math
import unicodedata
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from ideaboard.errors import ValidationError
from ideaboard.models.catalog import parse_score_field, status_label
from ideaboard.models.record import Record, parse_status

logger = logging.getLogger(__name__)

ALL = "all"
PAGE_SIZE = 10


class Classification(StrEnum):
    VERY_HIGH = "Very High"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# Lower bound of each tier, highest first; anything below the last is LOW
TIER_THRESHOLDS: tuple[tuple[int, Classification], ...] = (
    (21, Classification.VERY_HIGH),
    (16, Classification.HIGH),
    (11, Classification.MEDIUM),
)


class SortDirection(StrEnum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


STRING_SORT_KEYS = frozenset(
    {
        "name",
        "description",
        "target_audience",
        "business_model",
        "cluster",
        "status",
        "creator_name",
        "creation_timestamp",
    }
)
NUMERIC_SORT_KEYS = frozenset({"id", "total", "revenue_estimate"})

FILTER_NAMES = ("cluster", "status", "classification")


def classify(total: int) -> Classification:
    for threshold, tier in TIER_THRESHOLDS:
        if total >= threshold:
            return tier
    return Classification.LOW


def collation_key(text: str) -> tuple[str, str]:
    """Accent- and case-insensitive ordering key, original text as tiebreak."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold(), text


# --- overlay ---


def apply_overlay(records: Iterable[Record], overlays: Mapping[int, Record]) -> list[Record]:
    """Replace canonical values with buffered ones, field by field.

    ``id`` and ``creation_timestamp`` stay canonical.
    """
    result = []
    for record in records:
        overlay = overlays.get(record.id)
        if overlay is None:
            result.append(record)
        else:
            result.append(record.with_changes(**overlay.mutable_fields()))
    return result


# --- filter ---


@dataclass(frozen=True)
class RankingFilters:
    """Conjunctive filters; ``"all"`` disables a predicate."""

    cluster: str = ALL
    status: str = ALL
    classification: str = ALL

    def with_value(self, name: str, value: str) -> RankingFilters:
        if name not in FILTER_NAMES:
            raise ValidationError(f"Unknown filter: {name!r}. Allowed: {list(FILTER_NAMES)}")
        if value != ALL:
            if name == "status":
                value = parse_status(value).value
            elif name == "classification":
                value = _parse_classification(value).value
        return replace(self, **{name: value})

    def matches(self, record: Record) -> bool:
        if self.cluster != ALL and record.cluster != self.cluster:
            return False
        # Records without a status count as under review
        status = record.status or "under-review"
        if self.status != ALL and status != self.status:
            return False
        if self.classification != ALL and classify(record.total) != self.classification:
            return False
        return True


def _parse_classification(value: str) -> Classification:
    for tier in Classification:
        if value.casefold() in (tier.value.casefold(), tier.name.casefold()):
            return tier
    raise ValidationError(
        f"Invalid classification: {value!r}. Allowed: {[t.value for t in Classification]}"
    )


def apply_filters(records: Iterable[Record], filters: RankingFilters) -> list[Record]:
    return [r for r in records if filters.matches(r)]


# --- sort ---


@dataclass(frozen=True)
class SortConfig:
    key: str = "total"
    direction: SortDirection = SortDirection.DESCENDING

    def toggle(self, key: str) -> SortConfig:
        """Re-selecting the current key flips direction; a new key starts descending."""
        if key == self.key:
            flipped = (
                SortDirection.ASCENDING
                if self.direction == SortDirection.DESCENDING
                else SortDirection.DESCENDING
            )
            return SortConfig(key, flipped)
        return SortConfig(key, SortDirection.DESCENDING)


def sort_key_function(key: str) -> Callable[[Record], Any]:
    """Build the key function for a sort key.

    Raises:
        ValidationError: If ``key`` is not sortable.
    """
    index = parse_score_field(key)
    if index is not None:
        return lambda r: r.scores[index]
    if key == "total":
        return lambda r: r.total
    if key == "status":
        return lambda r: collation_key(status_label(r.status))
    if key in NUMERIC_SORT_KEYS:
        return lambda r: getattr(r, key) or 0
    if key in STRING_SORT_KEYS:
        return lambda r: collation_key(getattr(r, key) or "")
    raise ValidationError(f"Unknown sort key: {key!r}")


def sort_records(records: Iterable[Record], sort: SortConfig | None) -> list[Record]:
    """Order records by one key.

    The relative order of records with equal keys is unspecified; callers
    must not depend on it.
    """
    if sort is None:
        return list(records)
    key_fn = sort_key_function(sort.key)
    return sorted(records, key=key_fn, reverse=sort.direction == SortDirection.DESCENDING)


# --- paginate ---


def page_count(item_count: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(item_count / page_size)


def clamp_page(page: int, pages: int) -> int:
    """Clamp into [1, pages]; an empty result set stays on page 1."""
    if pages == 0:
        return 1
    return min(max(page, 1), pages)


@dataclass(frozen=True)
class Page:
    items: tuple[Record, ...]
    page: int
    page_count: int
    total_count: int
    page_size: int = PAGE_SIZE

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.page_size


def paginate(records: list[Record], page: int, page_size: int = PAGE_SIZE) -> Page:
    if page_size < 1:
        raise ValidationError("page_size must be at least 1")
    pages = page_count(len(records), page_size)
    current = clamp_page(page, pages)
    start = (current - 1) * page_size
    return Page(
        items=tuple(records[start : start + page_size]),
        page=current,
        page_count=pages,
        total_count=len(records),
        page_size=page_size,
    )


# --- full pipeline ---


@dataclass(frozen=True)
class RankedRow:
    record: Record
    position: int
    total: int
    classification: Classification
    dirty: bool = False


@dataclass(frozen=True)
class RankingView:
    rows: tuple[RankedRow, ...]
    page: int
    page_count: int
    filtered_count: int
    total_count: int
    filters: RankingFilters
    sort: SortConfig | None
    dirty_ids: frozenset[int] = frozenset()

    @property
    def is_empty(self) -> bool:
        return self.filtered_count == 0


def rank(
    records: Iterable[Record],
    overlays: Mapping[int, Record] | None = None,
    *,
    filters: RankingFilters | None = None,
    sort: SortConfig | None = None,
    page: int = 1,
    page_size: int = PAGE_SIZE,
) -> RankingView:
    overlays = overlays or {}
    filters = filters or RankingFilters()
    canonical = list(records)

    visible = apply_overlay(canonical, overlays)
    filtered = apply_filters(visible, filters)
    ordered = sort_records(filtered, sort)
    current = paginate(ordered, page, page_size)

    rows = tuple(
        RankedRow(
            record=record,
            position=current.start_index + offset + 1,
            total=record.total,
            classification=classify(record.total),
            dirty=record.id in overlays,
        )
        for offset, record in enumerate(current.items)
    )
    return RankingView(
        rows=rows,
        page=current.page,
        page_count=current.page_count,
        filtered_count=current.total_count,
        total_count=len(canonical),
        filters=filters,
        sort=sort,
        dirty_ids=frozenset(overlays),
    )


@dataclass
class RankingState:
    """Current filters, sort and page of a ranking view."""

    filters: RankingFilters = field(default_factory=RankingFilters)
    sort: SortConfig | None = field(default_factory=SortConfig)
    page: int = 1
    page_size: int = PAGE_SIZE

    def select_sort(self, key: str) -> SortConfig:
        sort_key_function(key)
        self.sort = self.sort.toggle(key) if self.sort else SortConfig(key)
        return self.sort

    def set_filter(self, name: str, value: str) -> None:
        self.filters = self.filters.with_value(name, value)
        self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(page, 1)

    def view(
        self, records: Iterable[Record], overlays: Mapping[int, Record] | None = None
    ) -> RankingView:
        """Compute the view, clamping the stored page to what exists."""
        result = rank(
            records,
            overlays,
            filters=self.filters,
            sort=self.sort,
            page=self.page,
            page_size=self.page_size,
        )
        if result.page != self.page:
            logger.debug("Page %d out of range, clamped to %d", self.page, result.page)
            self.page = result.page
        return result


# --- cluster drill-down ---


def unique_clusters(records: Iterable[Record]) -> list[str]:
    """Cluster names in use, sorted."""
    return sorted({r.cluster for r in records if r.cluster}, key=collation_key)


def records_in_cluster(records: Iterable[Record], cluster: str) -> list[Record]:
    return [r for r in records if r.cluster == cluster]
