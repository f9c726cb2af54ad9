"""Human-readable deletion explanations rendered from a ``RetentionDecision``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reclaimr.domain.model import MediaType, whole_days

from .decision import DecisionTier, ReasonCode

if TYPE_CHECKING:
    from datetime import datetime

    from reclaimr.domain.model import MediaItem

    from .decision import RetentionDecision

_TIMED_CODES = frozenset({ReasonCode.RETENTION_EXPIRED, ReasonCode.WITHIN_RETENTION})


def media_type_label(media_type: MediaType) -> str:
    return "TV show" if media_type is MediaType.TV_SHOW else "movie"


def generate_deletion_reason(
    item: MediaItem,
    decision: RetentionDecision,
    *,
    now: datetime,
) -> str:
    """Explain when the item's clock started and which rule governs it."""

    type_label = media_type_label(item.type)
    base_event = "last watched" if item.last_watched is not None else "added"
    days_since = whole_days(now - item.base_time)
    intro = f"This {type_label} was {base_event} {days_since} days ago."

    if decision.code not in _TIMED_CODES:
        return f"{intro} {decision.reason}."

    if decision.tier is DecisionTier.STANDARD:
        return (
            f"{intro} The retention policy for {type_label}s is {decision.retention}, "
            "meaning it will be deleted after that period of inactivity."
        )

    rule = f"'{decision.rule_name}' {decision.rule_label}"
    if decision.tier is DecisionTier.TAG_RULE:
        rule = f"{rule} (tag: {decision.tag})"

    if decision.is_overdue:
        return (
            f"{intro} It matched the {rule} with {decision.retention} retention "
            "and is now scheduled for deletion."
        )
    return (
        f"{intro} It matches the {rule} with {decision.retention} retention, "
        "meaning it will be deleted after that period of inactivity."
    )
