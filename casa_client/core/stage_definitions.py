"""Volunteer onboarding pipeline stage definitions and ordering."""

from __future__ import annotations


# Board column colors
DEFAULT_COLORS = {
    "applied": "#3B82F6",  # Blue
    "background_check": "#F59E0B",  # Amber
    "training": "#8B5CF6",  # Violet
    "active": "#22C55E",  # Green
    "rejected": "#EF4444",  # Red
}

STAGE_LABELS = {
    "applied": "Applied",
    "background_check": "Background Check",
    "training": "Training",
    "active": "Active",
    "rejected": "Rejected",
}

STAGE_TYPE_MAP = {
    "applied": "intake",
    "background_check": "intake",
    "training": "intake",
    "active": "terminal",
    "rejected": "terminal",
}

DEFAULT_STAGE_ORDER = [
    "applied",
    "background_check",
    "training",
    "active",
    "rejected",
]

# Unrecognized statuses land here instead of being dropped
FALLBACK_STAGE = "applied"


def get_default_stage_defs() -> list[dict[str, object]]:
    """Generate pipeline stage definitions for board rendering."""
    stages: list[dict[str, object]] = []
    for order, slug in enumerate(DEFAULT_STAGE_ORDER, start=1):
        stages.append(
            {
                "slug": slug,
                "label": STAGE_LABELS[slug],
                "color": DEFAULT_COLORS[slug],
                "stage_type": STAGE_TYPE_MAP[slug],
                "order": order,
            }
        )
    return stages


def resolve_stage(status: str | None) -> str:
    """Map a raw volunteer_status onto a board column."""
    if status and status in STAGE_TYPE_MAP:
        return status
    return FALLBACK_STAGE
