"""Retention policy evaluation."""

from __future__ import annotations

from .decision import DecisionTier, ReasonCode, RetentionDecision
from .durations import NEVER, is_valid_duration, parse_duration
from .engine import RulesEngine
from .reasons import generate_deletion_reason, media_type_label

__all__ = [
    "NEVER",
    "DecisionTier",
    "ReasonCode",
    "RetentionDecision",
    "RulesEngine",
    "generate_deletion_reason",
    "is_valid_duration",
    "media_type_label",
    "parse_duration",
]
