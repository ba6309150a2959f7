"""
Unit tests for the quiz retake policy.
"""

from datetime import datetime, timedelta

import pytest

from config import Settings
from coursepath.core.errors import RetakeLimitExceeded, RetakeTooSoon
from coursepath.quiz.retake import RetakePolicy

NOW = datetime(2024, 3, 1, 12, 0, 0)


class TestRetakePolicy:
    """Test attempt limit and cooldown."""

    @pytest.fixture
    def policy(self):
        return RetakePolicy(max_attempts=3, cooldown=timedelta(minutes=60))

    def test_first_attempt_allowed(self, policy):
        eligibility = policy.evaluate(0, None, NOW)

        assert eligibility.allowed is True
        assert eligibility.attempts_remaining == 3

    def test_within_cooldown_refused(self, policy):
        """Less than an hour after the last completed attempt."""
        last = NOW - timedelta(minutes=59)
        eligibility = policy.evaluate(1, last, NOW)

        assert eligibility.allowed is False
        assert eligibility.retry_at == last + timedelta(minutes=60)
        assert eligibility.attempts_remaining == 2

    def test_cooldown_boundary_allows(self, policy):
        """Exactly one hour later is allowed."""
        eligibility = policy.evaluate(1, NOW - timedelta(minutes=60), NOW)
        assert eligibility.allowed is True

    def test_limit_regardless_of_time(self, policy):
        """The fourth attempt is refused even days later."""
        eligibility = policy.evaluate(3, NOW - timedelta(days=5), NOW)

        assert eligibility.allowed is False
        assert eligibility.retry_at is None
        assert eligibility.attempts_remaining == 0

    def test_limit_checked_before_cooldown(self, policy):
        with pytest.raises(RetakeLimitExceeded):
            policy.enforce("quiz-1", 3, NOW - timedelta(minutes=1), NOW)

    def test_enforce_too_soon(self, policy):
        with pytest.raises(RetakeTooSoon) as exc_info:
            policy.enforce("quiz-1", 1, NOW - timedelta(minutes=10), NOW)

        assert exc_info.value.retry_at == NOW + timedelta(minutes=50)
        assert exc_info.value.to_dict()["retry_at"] == "2024-03-01T12:50:00"

    def test_enforce_allowed_returns_eligibility(self, policy):
        assert policy.enforce("quiz-1", 2, NOW - timedelta(hours=2), NOW).allowed is True

    def test_from_settings(self):
        settings = Settings(_env_file=None, max_quiz_attempts=5, retake_cooldown_minutes=15)
        policy = RetakePolicy.from_settings(settings)

        assert policy.max_attempts == 5
        assert policy.cooldown == timedelta(minutes=15)
