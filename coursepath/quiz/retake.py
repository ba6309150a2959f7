"""
Quiz retake policy.

Two rules, checked when a new attempt is started:
- at most ``max_attempts`` attempts per (learner, quiz), ever
- the next attempt may not start within ``cooldown`` of the most recent
  completed attempt

The limit is checked first: a learner who has used every attempt gets
RetakeLimitExceeded regardless of elapsed time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from config import Settings
from coursepath.core.errors import RetakeLimitExceeded, RetakeTooSoon


@dataclass
class RetakeEligibility:
    """Whether the learner may start a new attempt right now."""
    allowed: bool
    attempts_used: int
    attempts_remaining: int
    reason: str | None = None
    retry_at: datetime | None = None


@dataclass(frozen=True)
class RetakePolicy:
    max_attempts: int = 3
    cooldown: timedelta = timedelta(minutes=60)

    @classmethod
    def from_settings(cls, settings: Settings) -> RetakePolicy:
        config = settings.get_retake_policy_config()
        return cls(
            max_attempts=config["max_attempts"],
            cooldown=timedelta(minutes=config["cooldown_minutes"]),
        )

    def evaluate(
        self,
        attempts_used: int,
        last_completed_at: datetime | None,
        now: datetime,
    ) -> RetakeEligibility:
        """
        Evaluate the policy.

        Args:
            attempts_used: all attempts the learner has on the quiz
            last_completed_at: completion time of the most recent submitted attempt
            now: current time (naive UTC)
        """
        remaining = max(self.max_attempts - attempts_used, 0)

        if attempts_used >= self.max_attempts:
            return RetakeEligibility(
                allowed=False,
                attempts_used=attempts_used,
                attempts_remaining=0,
                reason=f"Maximum attempt limit reached ({self.max_attempts} attempts)",
            )

        if last_completed_at is not None:
            retry_at = last_completed_at + self.cooldown
            if now < retry_at:
                return RetakeEligibility(
                    allowed=False,
                    attempts_used=attempts_used,
                    attempts_remaining=remaining,
                    reason="Please wait before retaking the quiz",
                    retry_at=retry_at,
                )

        return RetakeEligibility(
            allowed=True,
            attempts_used=attempts_used,
            attempts_remaining=remaining,
        )

    def enforce(
        self,
        quiz_id: str,
        attempts_used: int,
        last_completed_at: datetime | None,
        now: datetime,
    ) -> RetakeEligibility:
        """Like evaluate(), but raise the matching error when not allowed."""
        eligibility = self.evaluate(attempts_used, last_completed_at, now)
        if eligibility.allowed:
            return eligibility
        if eligibility.retry_at is not None:
            raise RetakeTooSoon(quiz_id, eligibility.retry_at)
        raise RetakeLimitExceeded(quiz_id, self.max_attempts)
