"""Tiered retention evaluation.

Tiers, first match wins: exclusion, tag rules, user rules, watched rules,
standard per-type retention. Configuration is read from the provider on every
evaluation so a reloaded file applies to the next item evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from reclaimr.domain.clock import Clock, utcnow
from reclaimr.domain.errors import InvalidDurationError
from reclaimr.domain.model import DeletionCandidate, RuleType, whole_days

from .decision import DecisionTier, ReasonCode, RetentionDecision
from .durations import parse_duration
from .reasons import generate_deletion_reason

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime, timedelta

    from reclaimr.config.settings import Settings, UserRule
    from reclaimr.domain.model import MediaItem, Requester
    from reclaimr.domain.ports import ConfigProvider, ExclusionStore

log = getLogger(__name__)


@dataclass(slots=True)
class RulesEngine:
    config_provider: ConfigProvider
    exclusions: ExclusionStore | None = None
    clock: Clock = utcnow

    def evaluate(self, item: MediaItem) -> RetentionDecision:
        """Decide whether ``item`` should be deleted and from when."""

        settings = self.config_provider()
        now = self.clock()

        if item.is_excluded or (
            self.exclusions is not None and self.exclusions.is_excluded(item.id)
        ):
            return RetentionDecision(False, ReasonCode.EXCLUDED, DecisionTier.EXCLUSION)

        if item.tags:
            decision = self._evaluate_tag_rules(item, settings, now)
            if decision is not None:
                return decision

        if item.is_requested and item.requester is not None and item.requester.has_identifier:
            decision = self._evaluate_user_rules(item, item.requester, settings, now)
            if decision is not None:
                return decision
        elif item.is_requested and settings.enabled_rules(RuleType.USER):
            log.warning(
                f"User rules are configured but requested media {item.id} ({item.title}) "
                "has no requester information"
            )

        decision = self._evaluate_watched_rules(item, settings, now)
        if decision is not None:
            return decision

        return self._evaluate_standard(item, settings, now)

    def annotate(self, item: MediaItem, decision: RetentionDecision) -> MediaItem:
        """Return a copy of ``item`` carrying the decision's schedule and explanation."""

        if decision.delete_after is None:
            return replace(item, delete_after=None, days_until_due=0, deletion_reason="")
        now = self.clock()
        return replace(
            item,
            delete_after=decision.delete_after,
            days_until_due=whole_days(decision.delete_after - now),
            deletion_reason=generate_deletion_reason(item, decision, now=now),
        )

    def get_deletion_candidates(self, items: Iterable[MediaItem]) -> list[DeletionCandidate]:
        """Evaluate ``items`` and return those that are due now."""

        now = self.clock()
        candidates: list[DeletionCandidate] = []
        total = 0
        for item in items:
            total += 1
            decision = self.evaluate(item)
            if decision.should_delete:
                candidates.append(
                    DeletionCandidate.from_item(self.annotate(item, decision), now=now)
                )
        log.info(f"Evaluated {total} media items: {len(candidates)} deletion candidates")
        return candidates

    def get_leaving_soon(
        self,
        items: Iterable[MediaItem],
        window_days: int | None = None,
    ) -> list[MediaItem]:
        """Items scheduled for deletion within the next ``window_days`` whole days."""

        if window_days is None:
            window_days = self.config_provider().app.leaving_soon_days
        leaving: list[MediaItem] = []
        for item in items:
            decision = self.evaluate(item)
            if decision.should_delete or decision.delete_after is None:
                continue
            annotated = self.annotate(item, decision)
            if 0 < annotated.days_until_due <= window_days:
                leaving.append(annotated)
        log.debug(f"Found {len(leaving)} items leaving within {window_days} days")
        return leaving

    def _evaluate_tag_rules(
        self,
        item: MediaItem,
        settings: Settings,
        now: datetime,
    ) -> RetentionDecision | None:
        item_tags = {tag.casefold() for tag in item.tags}
        for rule in settings.enabled_rules(RuleType.TAG):
            if not rule.tag or rule.tag.casefold() not in item_tags:
                continue
            log.debug(f"Media {item.id} matched tag rule {rule.name!r} (tag: {rule.tag})")
            return self._apply_rule(
                item,
                now=now,
                tier=DecisionTier.TAG_RULE,
                rule_name=rule.name,
                tag=rule.tag,
                retention=rule.retention,
                require_watched=False,
            )
        return None

    def _evaluate_user_rules(
        self,
        item: MediaItem,
        requester: Requester,
        settings: Settings,
        now: datetime,
    ) -> RetentionDecision | None:
        for rule in settings.enabled_rules(RuleType.USER):
            for user in rule.users:
                if not _requester_matches(user, requester):
                    continue
                log.debug(f"Media {item.id} matched user rule {rule.name!r}")
                return self._apply_rule(
                    item,
                    now=now,
                    tier=DecisionTier.USER_RULE,
                    rule_name=rule.name,
                    retention=user.retention,
                    require_watched=user.require_watched,
                )
        return None

    def _evaluate_watched_rules(
        self,
        item: MediaItem,
        settings: Settings,
        now: datetime,
    ) -> RetentionDecision | None:
        rules = settings.enabled_rules(RuleType.WATCHED)
        if not rules:
            return None
        # Watched rules are not tied to an attribute, so the first enabled one applies.
        rule = rules[0]
        log.debug(f"Media {item.id} matched watched rule {rule.name!r}")
        return self._apply_rule(
            item,
            now=now,
            tier=DecisionTier.WATCHED_RULE,
            rule_name=rule.name,
            retention=rule.retention,
            require_watched=rule.require_watched,
        )

    def _evaluate_standard(
        self,
        item: MediaItem,
        settings: Settings,
        now: datetime,
    ) -> RetentionDecision:
        tier = DecisionTier.STANDARD
        if item.is_requested and not settings.advanced_rules:
            return RetentionDecision(False, ReasonCode.REQUESTED, tier)

        retention = settings.rules.for_type(item.type)
        try:
            duration = parse_duration(retention)
        except InvalidDurationError as exc:
            log.warning(f"Failed to parse {item.type} retention for {item.id}: {exc}")
            return RetentionDecision(False, ReasonCode.INVALID_RETENTION, tier, retention=retention)

        if not duration:
            return RetentionDecision(
                False, ReasonCode.RETENTION_DISABLED, tier, retention=retention
            )

        delete_after = _due_at(item.base_time, duration)
        if delete_after is None:
            log.warning(f"{item.type} retention {retention} for {item.id} is out of range")
            return RetentionDecision(False, ReasonCode.INVALID_RETENTION, tier, retention=retention)

        expired = now > delete_after
        return RetentionDecision(
            should_delete=expired,
            code=ReasonCode.RETENTION_EXPIRED if expired else ReasonCode.WITHIN_RETENTION,
            tier=tier,
            delete_after=delete_after,
            retention=retention,
        )

    def _apply_rule(
        self,
        item: MediaItem,
        *,
        now: datetime,
        tier: DecisionTier,
        rule_name: str,
        retention: str,
        require_watched: bool,
        tag: str = "",
    ) -> RetentionDecision:
        def decide(
            code: ReasonCode,
            *,
            delete_after: datetime | None = None,
        ) -> RetentionDecision:
            return RetentionDecision(
                should_delete=code is ReasonCode.RETENTION_EXPIRED,
                code=code,
                tier=tier,
                delete_after=delete_after,
                rule_name=rule_name,
                tag=tag,
                retention=retention,
            )

        try:
            duration = parse_duration(retention)
        except InvalidDurationError as exc:
            log.warning(f"Rule {rule_name!r} has an invalid retention for {item.id}: {exc}")
            return decide(ReasonCode.INVALID_RETENTION)

        if require_watched and item.watch_count == 0:
            log.debug(f"Rule {rule_name!r} requires a watch; {item.id} not watched yet")
            return decide(ReasonCode.NOT_WATCHED_YET)

        # A zero rule retention disables deletion instead of making the item due at base time.
        if not duration:
            return decide(ReasonCode.RETENTION_DISABLED)

        delete_after = _due_at(item.base_time, duration)
        if delete_after is None:
            log.warning(f"Rule {rule_name!r} retention {retention} is out of range for {item.id}")
            return decide(ReasonCode.INVALID_RETENTION)
        if now > delete_after:
            log.info(
                f"Media {item.id} ({item.title}) expired under rule {rule_name!r} "
                f"({retention}), due {delete_after.isoformat()}"
            )
            return decide(ReasonCode.RETENTION_EXPIRED, delete_after=delete_after)
        return decide(ReasonCode.WITHIN_RETENTION, delete_after=delete_after)


def _due_at(base_time: datetime, duration: timedelta) -> datetime | None:
    try:
        return base_time + duration
    except OverflowError:
        return None


def _requester_matches(user: UserRule, requester: Requester) -> bool:
    if user.user_id is not None and requester.user_id is not None:
        if user.user_id == requester.user_id:
            return True
    if user.username and requester.username:
        if user.username.casefold() == requester.username.casefold():
            return True
    if user.email and requester.email:
        if user.email.casefold() == requester.email.casefold():
            return True
    return False
