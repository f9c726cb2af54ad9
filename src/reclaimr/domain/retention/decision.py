"""Structured outcome of a retention evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class DecisionTier(StrEnum):
    """Rule category that produced a decision, in evaluation order."""

    EXCLUSION = "exclusion"
    TAG_RULE = "tag_rule"
    USER_RULE = "user_rule"
    WATCHED_RULE = "watched_rule"
    STANDARD = "standard"


class ReasonCode(StrEnum):
    EXCLUDED = "excluded"
    REQUESTED = "requested"
    RETENTION_DISABLED = "retention_disabled"
    INVALID_RETENTION = "invalid_retention"
    NOT_WATCHED_YET = "not_watched_yet"
    RETENTION_EXPIRED = "retention_expired"
    WITHIN_RETENTION = "within_retention"


_FIXED_REASONS: dict[ReasonCode, str] = {
    ReasonCode.EXCLUDED: "excluded",
    ReasonCode.REQUESTED: "requested",
    ReasonCode.RETENTION_DISABLED: "retention disabled",
    ReasonCode.INVALID_RETENTION: "invalid retention",
    ReasonCode.NOT_WATCHED_YET: "not watched yet",
}

_RULE_LABELS: dict[DecisionTier, str] = {
    DecisionTier.TAG_RULE: "tag rule",
    DecisionTier.USER_RULE: "user rule",
    DecisionTier.WATCHED_RULE: "watched rule",
}


@dataclass(slots=True, frozen=True)
class RetentionDecision:
    """What the rules engine decided for one item, and why.

    ``delete_after`` is ``None`` when nothing is scheduled. ``retention`` is
    the configured string that produced the schedule (rule or standard).
    """

    should_delete: bool
    code: ReasonCode
    tier: DecisionTier
    delete_after: datetime | None = None
    rule_name: str = ""
    tag: str = ""
    retention: str = ""

    @property
    def is_scheduled(self) -> bool:
        return self.delete_after is not None

    @property
    def is_overdue(self) -> bool:
        return self.code is ReasonCode.RETENTION_EXPIRED

    @property
    def rule_label(self) -> str | None:
        return _RULE_LABELS.get(self.tier)

    @property
    def reason(self) -> str:
        """Short machine-friendly reason, e.g. ``retention period expired (90d)``."""

        fixed = _FIXED_REASONS.get(self.code)
        if fixed is not None:
            return fixed

        label = self.rule_label
        if label is None:
            if self.is_overdue:
                return f"retention period expired ({self.retention})"
            return "within retention"

        subject = f"{label} '{self.rule_name}'"
        if self.tier is DecisionTier.TAG_RULE:
            subject = f"{subject} (tag: {self.tag})"
        state = "retention expired" if self.is_overdue else "within retention"
        return f"{subject} {state} ({self.retention})"
