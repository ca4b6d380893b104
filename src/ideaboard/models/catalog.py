"""Static reference catalog: criteria, clusters, business models, status labels."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ideaboard.errors import ValidationError

MIN_SCORE = 0
MAX_SCORE = 5


class Criterion(BaseModel):
    """One ordered scoring dimension."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    short_title: str
    description: str = ""

    @property
    def column(self) -> str:
        """Flattened sheet column holding this criterion's score."""
        return f"score_{self.id}"


class Cluster(BaseModel):
    """A strategic category used to group ideas."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    short_title: str
    value_proposition: str
    needs: tuple[str, ...] = ()


CRITERIA: tuple[Criterion, ...] = (
    Criterion(
        id="alignment",
        title="Strategic Alignment",
        short_title="Alignment",
        description="How well the idea fits the company's strategy and brand.",
    ),
    Criterion(
        id="customer_value",
        title="Customer Value",
        short_title="Cust. Value",
        description="How strongly the idea solves a real customer problem.",
    ),
    Criterion(
        id="financial_impact",
        title="Financial Impact",
        short_title="Fin. Impact",
        description="Expected revenue and margin potential.",
    ),
    Criterion(
        id="feasibility",
        title="Feasibility",
        short_title="Feasibility",
        description="Ease of delivery with current capabilities and partners.",
    ),
    Criterion(
        id="competitive_advantage",
        title="Competitive Advantage",
        short_title="Comp. Adv.",
        description="How hard the idea is to copy and how much it differentiates.",
    ),
)

CRITERIA_COUNT = len(CRITERIA)

CLUSTERS: tuple[Cluster, ...] = (
    Cluster(
        id="smart-home",
        title="Smart Home Solutions",
        short_title="Smart Home",
        value_proposition="Make connected homes simple to choose, install and run.",
        needs=("Device compatibility advice", "Professional installation", "Automation setup"),
    ),
    Cluster(
        id="tech-support",
        title="Technical Support & Care",
        short_title="Tech Support",
        value_proposition="Keep every device in the household working, all year.",
        needs=("24/7 help desk", "Extended warranty", "On-site repair"),
    ),
    Cluster(
        id="flexible-access",
        title="Flexible Access",
        short_title="Flexible Access",
        value_proposition="Use premium technology without owning it.",
        needs=("Short-term rental", "Try before you buy", "Upgrade programs"),
    ),
    Cluster(
        id="sustainability",
        title="Sustainability & Circular Economy",
        short_title="Sustainability",
        value_proposition="Extend product life and reduce electronic waste.",
        needs=("Trade-in", "Refurbished devices", "Responsible recycling"),
    ),
    Cluster(
        id="digital-services",
        title="Digital Services",
        short_title="Digital Services",
        value_proposition="Software and content that add value to the hardware.",
        needs=("Data backup", "Digital security", "Content subscriptions"),
    ),
)

BUSINESS_MODELS: dict[str, str] = {
    "consulting": "Consulting",
    "subscription": "Subscription / Recurring",
    "rental": "Rental",
    "one-off-sale": "One-off Sale",
    "service-fee": "Service Fee",
    "marketplace": "Marketplace / Commission",
}

STATUS_LABELS: dict[str, str] = {
    "under-review": "Under Review",
    "approved": "Approved",
    "cancelled": "Cancelled",
    "completed": "Completed",
}


def business_model_label(value: str) -> str:
    """Human-readable label for a business model; unknown values pass through."""
    if value in BUSINESS_MODELS:
        return BUSINESS_MODELS[value]
    # Legacy rows store the label itself
    return value


def status_label(value: str | None) -> str:
    return STATUS_LABELS.get(value or "under-review", value or "")


def parse_score_field(field: str) -> int | None:
    """Criterion index named by ``score_<i>`` or ``score_<criterion id>``.

    Returns None when ``field`` is not a score field at all.
    """
    if not field.startswith("score_"):
        return None
    suffix = field[len("score_"):]
    if suffix.isdigit():
        index = int(suffix)
        if index >= CRITERIA_COUNT:
            raise ValidationError(
                f"Score index {index} out of range (0-{CRITERIA_COUNT - 1})"
            )
        return index
    for index, criterion in enumerate(CRITERIA):
        if criterion.id == suffix:
            return index
    raise ValidationError(f"Unknown criterion: {suffix!r}")


def get_cluster(short_title: str) -> Cluster | None:
    for cluster in CLUSTERS:
        if cluster.short_title == short_title or cluster.id == short_title:
            return cluster
    return None
