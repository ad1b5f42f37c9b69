"""Daily summary synchronization.

Reconciles the stored summaries against a step source so that there is
exactly one summary per calendar day from the first synchronized day up to
and including ``as_of``. Days already stored are never recomputed; missing
days are fetched one at a time in ascending order, derived with the
metrics in ``steptdee.tracking.metrics`` and appended. The merged list is
written back with a single full-replace write, so an interrupted run leaves
the store untouched.

The engine favours returning fresh numbers over strict persistence: a
store read failure is treated as an empty history and a write failure
still returns the computed summaries. Both are reported on ``SyncOutcome``.
Concurrent runs against the same store are not safe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from steptdee.config.settings import (
    DEFAULT_AGE_YEARS,
    START_POLICY_DATE_OF_BIRTH,
    START_POLICY_TODAY,
    VALID_START_POLICIES,
)
from steptdee.steps.base import StepSource
from steptdee.tracking.metrics import age_on
from steptdee.tracking.models import DailySummary, Profile
from steptdee.tracking.stores import DailySummaryStore

logger = logging.getLogger(__name__)


@dataclass
class SyncOutcome:
    """Result of one synchronization run."""

    summaries: list[DailySummary] = field(default_factory=list)
    added: list[DailySummary] = field(default_factory=list)
    load_error: Optional[str] = None
    persisted: bool = False
    persist_error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.added)


class SyncEngine:
    """Fills missing daily summaries from a step source."""

    def __init__(
        self,
        store: DailySummaryStore,
        default_age_years: int = DEFAULT_AGE_YEARS,
        start_policy: str = START_POLICY_DATE_OF_BIRTH,
    ):
        """Initialize the engine.

        Args:
            store: Where summaries are loaded from and written back to
            default_age_years: Age used for BMR when the profile has no
                date of birth
            start_policy: First day to synthesize for an empty store:
                "date_of_birth" (date of birth if known, else as_of) or
                "today" (always as_of)
        """
        if start_policy not in VALID_START_POLICIES:
            raise ValueError(
                f"start_policy must be one of {VALID_START_POLICIES}, got '{start_policy}'"
            )
        self.store = store
        self.default_age_years = default_age_years
        self.start_policy = start_policy

    async def run(
        self,
        step_source: StepSource,
        profile: Profile,
        as_of: date,
    ) -> SyncOutcome:
        """Synchronize summaries up to and including ``as_of``."""
        loaded = self.store.load()
        if not loaded.ok:
            logger.warning(
                "Summary store unreadable, starting from empty history: %s",
                loaded.error,
            )
        existing = sorted(loaded.items, key=lambda s: s.date)
        outcome = SyncOutcome(summaries=existing, load_error=loaded.error)

        start = self.start_date(existing, profile, as_of)
        if start > as_of:
            logger.debug("Summaries already current through %s", as_of)
            return outcome

        logger.info("Synchronizing %s to %s from %s", start, as_of, step_source.source_name)

        day = start
        while day <= as_of:
            steps = await self._fetch_steps(step_source, day)
            outcome.added.append(
                DailySummary.from_inputs(day, steps, profile, self.age_for(profile, day))
            )
            day += timedelta(days=1)

        outcome.summaries = existing + outcome.added

        saved = self.store.replace_all(outcome.summaries)
        outcome.persisted = saved.ok
        if not saved.ok:
            outcome.persist_error = saved.error
            logger.error(
                "Computed %d new summaries but could not persist them: %s",
                len(outcome.added),
                saved.error,
            )

        return outcome

    def start_date(
        self, existing: list[DailySummary], profile: Profile, as_of: date
    ) -> date:
        """First day that needs a summary. ``existing`` must be sorted."""
        if existing:
            return existing[-1].date + timedelta(days=1)
        if self.start_policy == START_POLICY_TODAY:
            return as_of
        return profile.date_of_birth or as_of

    def age_for(self, profile: Profile, day: date) -> int:
        """Age in years on ``day``, or the default when birth date is unknown."""
        if profile.date_of_birth is None:
            return self.default_age_years
        return age_on(profile.date_of_birth, day)

    async def _fetch_steps(self, step_source: StepSource, day: date) -> int:
        """Steps for one day via a single-day range query. 0 on no data."""
        try:
            entries = await step_source.get_daily_steps_range(day, day)
        except Exception as e:
            logger.warning("Step source failed for %s, using 0: %s", day, e)
            return 0
        if not entries:
            return 0
        return max(int(entries[0].steps), 0)


async def synchronize(
    step_source: StepSource,
    profile: Profile,
    store: DailySummaryStore,
    as_of: Optional[date] = None,
    default_age_years: int = DEFAULT_AGE_YEARS,
    start_policy: str = START_POLICY_DATE_OF_BIRTH,
) -> list[DailySummary]:
    """Bring the summary store up to date and return all summaries.

    Args:
        step_source: Where daily step counts come from
        profile: Current profile; its weight and step length apply to
            every synthesized day
        store: Summary store
        as_of: Last day to synthesize. Defaults to today.

    Returns:
        Existing summaries followed by the new ones, ascending by date
    """
    engine = SyncEngine(
        store,
        default_age_years=default_age_years,
        start_policy=start_policy,
    )
    outcome = await engine.run(step_source, profile, as_of or date.today())
    return outcome.summaries
