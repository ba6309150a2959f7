"""
Quiz Engine.

Creates, scores and reports quiz attempts:
- start_attempt: resume the open attempt, or apply the retake policy and start one
- save_answers / submit_attempt: draft answers, then a one-shot scored submission
- record_focus_loss / force_submit: server-side proctoring counter and forced scoring
- get_attempt_report / attempt_history / retake_status: read-side views

An attempt moves Started -> Submitted exactly once. Submission is a
compare-and-set UPDATE on ``completed_at IS NULL``; a second submitter
(concurrent or late) matches no row and gets DuplicateSubmission.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from config import Settings, get_settings
from coursepath.core.clock import Clock, utcnow
from coursepath.core.errors import (
    DuplicateSubmission,
    EmptyQuiz,
    RetakeLimitExceeded,
    RetakeTooSoon,
    Unauthorized,
    ValidationError,
)
from coursepath.core.identity import Identity
from coursepath.db import queries
from coursepath.db.models import AttemptResponse, Question, QuestionResult, Quiz, QuizAttempt, new_id
from coursepath.db.upsert import insert_for
from coursepath.progress.tracker import ProgressTracker

from .grading import Grade, QuestionOutcome, grade_responses
from .retake import RetakeEligibility, RetakePolicy
from .scoring import QuestionType
from .scoring.base import QuestionResponse, ScoringRules

AnswerValue = list[str] | str | None


@dataclass
class OptionView:
    id: str
    text: str


@dataclass
class QuestionView:
    """A question as shown to the learner (no correctness flags)."""
    id: str
    text: str
    type: str
    points: int
    options: list[OptionView] = field(default_factory=list)


@dataclass
class AttemptHandle:
    """A started (or resumed) attempt and the questions to answer."""
    attempt_id: str
    quiz_id: str
    started_at: datetime
    resumed: bool
    focus_loss_count: int
    questions: list[QuestionView]


@dataclass
class AttemptOutcome:
    """Scored result of a submitted attempt."""
    attempt_id: str
    quiz_id: str
    score: int
    passed: bool
    passing_score: int
    correct_count: int
    total_questions: int
    earned_points: int
    possible_points: int
    forced: bool
    completed_at: datetime | None
    results: list[QuestionOutcome] = field(default_factory=list)


@dataclass
class AttemptSummary:
    attempt_id: str
    score: int
    passed: bool
    started_at: datetime
    completed_at: datetime
    forced: bool


@dataclass
class FocusLossStatus:
    """Proctoring counter after a focus-loss signal."""
    count: int
    limit: int
    force_submitted: bool
    outcome: AttemptOutcome | None = None


class QuizEngine:
    """
    Run quiz attempts for enrolled learners.

    Args:
        session: SQLAlchemy session; the caller owns the transaction
        settings: retake, proctoring and scoring tunables
        clock: time source (naive UTC)
        tracker: progress tracker used to record passes
    """

    def __init__(
        self,
        session: Session,
        settings: Settings | None = None,
        clock: Clock = utcnow,
        tracker: ProgressTracker | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.clock = clock
        self.tracker = tracker or ProgressTracker(session, clock=clock)
        self.policy = RetakePolicy.from_settings(self.settings)
        self.rules = ScoringRules(essay_min_chars=self.settings.essay_min_chars)

    # ========================================
    # Attempt lifecycle
    # ========================================

    def start_attempt(self, identity: Identity, quiz_id: str) -> AttemptHandle:
        """
        Start a new attempt, or resume the learner's open one.

        Raises:
            NotFound: unknown quiz
            NotEnrolled: caller not enrolled in the quiz's course
            EmptyQuiz: quiz has no questions
            RetakeLimitExceeded / RetakeTooSoon: retake policy refused
        """
        quiz = queries.get_quiz(self.session, quiz_id)
        queries.require_enrollment(self.session, identity.user_id, quiz.course_id)

        if not quiz.questions:
            raise EmptyQuiz(quiz.id)

        open_attempt = self._open_attempt(identity.user_id, quiz.id)
        if open_attempt is not None:
            logger.debug(f"Resuming attempt {open_attempt.id} for {identity.user_id}")
            return self._handle(open_attempt, quiz, resumed=True)

        now = self.clock()
        used, last_completed_at = self._attempt_stats(identity.user_id, quiz.id)
        try:
            self.policy.enforce(quiz.id, used, last_completed_at, now)
        except (RetakeLimitExceeded, RetakeTooSoon) as e:
            logger.info(f"Attempt refused for {identity.user_id} on quiz {quiz.id}: {e}")
            raise

        attempt = QuizAttempt(
            id=new_id(),
            learner_id=identity.user_id,
            quiz_id=quiz.id,
            score=0,
            started_at=now,
            focus_loss_count=0,
            forced=False,
        )
        self.session.add(attempt)
        self.session.flush()

        logger.info(f"Attempt {attempt.id} started on quiz {quiz.id} ({used + 1}/{self.policy.max_attempts})")
        return self._handle(attempt, quiz, resumed=False)

    def save_answers(
        self,
        identity: Identity,
        attempt_id: str,
        answers: Mapping[str, AnswerValue],
    ) -> int:
        """
        Store draft answers for an open attempt. Returns the number saved.

        Later saves for the same question overwrite earlier ones.
        """
        attempt = self._owned_attempt(identity, attempt_id)
        if attempt.is_submitted:
            raise DuplicateSubmission(attempt.id)

        responses = self._normalize_answers(attempt.quiz, answers)
        self._store_responses(attempt.id, responses)
        return len(responses)

    def submit_attempt(
        self,
        identity: Identity,
        attempt_id: str,
        answers: Mapping[str, AnswerValue],
    ) -> AttemptOutcome:
        """
        Score and close an attempt.

        Answers given here are merged over previously saved drafts.

        Raises:
            NotFound: unknown attempt
            Unauthorized: attempt belongs to someone else
            DuplicateSubmission: attempt already submitted
            ValidationError: malformed answers
        """
        attempt = self._owned_attempt(identity, attempt_id)
        if attempt.is_submitted:
            raise DuplicateSubmission(attempt.id)

        responses = self._normalize_answers(attempt.quiz, answers)
        self._store_responses(attempt.id, responses)
        return self._finalize(attempt, forced=False)

    def force_submit(self, identity: Identity, attempt_id: str) -> AttemptOutcome:
        """Score an open attempt with whatever answers were saved so far."""
        attempt = self._owned_attempt(identity, attempt_id)
        if attempt.is_submitted:
            raise DuplicateSubmission(attempt.id)
        return self._finalize(attempt, forced=True)

    def record_focus_loss(self, identity: Identity, attempt_id: str) -> FocusLossStatus:
        """
        Count a focus-loss signal for an open attempt.

        Reaching the configured limit force-submits the attempt. Signals for
        an already submitted attempt are ignored.
        """
        attempt = self._owned_attempt(identity, attempt_id)
        limit = self.settings.focus_loss_limit

        if attempt.is_submitted:
            return FocusLossStatus(count=attempt.focus_loss_count, limit=limit, force_submitted=False)

        self.session.execute(
            update(QuizAttempt)
            .where(QuizAttempt.id == attempt.id, QuizAttempt.completed_at.is_(None))
            .values(focus_loss_count=QuizAttempt.focus_loss_count + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.refresh(attempt)
        count = attempt.focus_loss_count
        logger.debug(f"Focus lost on attempt {attempt.id} ({count}/{limit})")

        if attempt.is_submitted or count < limit:
            return FocusLossStatus(count=count, limit=limit, force_submitted=False)

        logger.warning(f"Focus-loss limit reached on attempt {attempt.id}, force-submitting")
        outcome = self._finalize(attempt, forced=True)
        return FocusLossStatus(count=count, limit=limit, force_submitted=True, outcome=outcome)

    # ========================================
    # Read side
    # ========================================

    def get_attempt_report(self, identity: Identity, attempt_id: str) -> AttemptOutcome:
        """Per-question results of a submitted attempt."""
        attempt = self._owned_attempt(identity, attempt_id)
        if not attempt.is_submitted:
            raise ValidationError("Attempt has not been submitted", [f"attempt_id: {attempt.id}"])

        results = [
            QuestionOutcome(
                question_id=row.question_id,
                question_text=row.question_text,
                question_type=row.question_type,
                is_correct=row.is_correct,
                points_earned=row.points_earned,
                points_possible=row.points_possible,
                selected_answer_ids=list(row.selected_answer_ids or []),
                text_response=row.text_response,
                correct_answer_ids=list(row.correct_answer_ids or []),
            )
            for row in attempt.results
        ]
        return AttemptOutcome(
            attempt_id=attempt.id,
            quiz_id=attempt.quiz_id,
            score=attempt.score,
            passed=attempt.quiz.is_passing(attempt.score),
            passing_score=attempt.quiz.passing_score,
            correct_count=sum(1 for r in results if r.is_correct),
            total_questions=len(results),
            earned_points=sum(r.points_earned for r in results),
            possible_points=sum(r.points_possible for r in results),
            forced=attempt.forced,
            completed_at=attempt.completed_at,
            results=results,
        )

    def attempt_history(self, identity: Identity, quiz_id: str) -> list[AttemptSummary]:
        """The caller's submitted attempts on a quiz, newest first."""
        quiz = queries.get_quiz(self.session, quiz_id)
        attempts = self.session.scalars(
            select(QuizAttempt)
            .where(
                QuizAttempt.learner_id == identity.user_id,
                QuizAttempt.quiz_id == quiz.id,
                QuizAttempt.completed_at.is_not(None),
            )
            .order_by(QuizAttempt.completed_at.desc())
        )
        return [
            AttemptSummary(
                attempt_id=a.id,
                score=a.score,
                passed=quiz.is_passing(a.score),
                started_at=a.started_at,
                completed_at=a.completed_at,
                forced=a.forced,
            )
            for a in attempts
        ]

    def retake_status(self, identity: Identity, quiz_id: str) -> RetakeEligibility:
        """Whether start_attempt would create a new attempt right now."""
        quiz = queries.get_quiz(self.session, quiz_id)
        used, last_completed_at = self._attempt_stats(identity.user_id, quiz.id)

        if self._open_attempt(identity.user_id, quiz.id) is not None:
            return RetakeEligibility(
                allowed=True,
                attempts_used=used,
                attempts_remaining=max(self.policy.max_attempts - used, 0),
                reason="Attempt in progress",
            )
        return self.policy.evaluate(used, last_completed_at, self.clock())

    # ========================================
    # Internals
    # ========================================

    def _finalize(self, attempt: QuizAttempt, forced: bool) -> AttemptOutcome:
        """Grade saved responses and close the attempt with a compare-and-set."""
        quiz = attempt.quiz
        grade = grade_responses(quiz.questions, self._load_responses(attempt.id), self.rules)
        now = self.clock()

        result = self.session.execute(
            update(QuizAttempt)
            .where(QuizAttempt.id == attempt.id, QuizAttempt.completed_at.is_(None))
            .values(score=grade.score, completed_at=now, forced=forced)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise DuplicateSubmission(attempt.id)

        self._store_results(attempt.id, grade)
        self.session.flush()
        self.session.refresh(attempt)

        passed = quiz.is_passing(grade.score)
        logger.info(
            f"Attempt {attempt.id} submitted: score={grade.score} "
            f"passed={passed} forced={forced}"
        )
        if passed:
            self.tracker.record_quiz_pass(attempt.learner_id, quiz.content_item_id, grade.score)

        return AttemptOutcome(
            attempt_id=attempt.id,
            quiz_id=quiz.id,
            score=grade.score,
            passed=passed,
            passing_score=quiz.passing_score,
            correct_count=grade.correct_count,
            total_questions=grade.total_questions,
            earned_points=grade.earned_points,
            possible_points=grade.possible_points,
            forced=forced,
            completed_at=attempt.completed_at,
            results=grade.results,
        )

    def _owned_attempt(self, identity: Identity, attempt_id: str) -> QuizAttempt:
        attempt = queries.get_attempt(self.session, attempt_id)
        if attempt.learner_id != identity.user_id:
            raise Unauthorized("Attempt belongs to another learner", attempt_id=attempt.id)
        return attempt

    def _open_attempt(self, learner_id: str, quiz_id: str) -> QuizAttempt | None:
        return self.session.scalar(
            select(QuizAttempt)
            .where(
                QuizAttempt.learner_id == learner_id,
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.completed_at.is_(None),
            )
            .order_by(QuizAttempt.started_at.desc())
            .limit(1)
        )

    def _attempt_stats(self, learner_id: str, quiz_id: str) -> tuple[int, datetime | None]:
        """(attempts ever started, most recent completion time)."""
        used, last_completed_at = self.session.execute(
            select(func.count(QuizAttempt.id), func.max(QuizAttempt.completed_at)).where(
                QuizAttempt.learner_id == learner_id,
                QuizAttempt.quiz_id == quiz_id,
            )
        ).one()
        return used, last_completed_at

    def _handle(self, attempt: QuizAttempt, quiz: Quiz, resumed: bool) -> AttemptHandle:
        return AttemptHandle(
            attempt_id=attempt.id,
            quiz_id=quiz.id,
            started_at=attempt.started_at,
            resumed=resumed,
            focus_loss_count=attempt.focus_loss_count,
            questions=[
                QuestionView(
                    id=q.id,
                    text=q.text,
                    type=q.type,
                    points=q.points,
                    options=[OptionView(id=a.id, text=a.text) for a in q.answers]
                    if QuestionType(q.type).takes_choices
                    else [],
                )
                for q in quiz.questions
            ],
        )

    def _normalize_answers(
        self,
        quiz: Quiz,
        answers: Mapping[str, AnswerValue] | None,
    ) -> dict[str, QuestionResponse]:
        """
        Validate raw answers against the quiz.

        Choice questions take a list of answer ids, text questions take a
        string. Unknown question or answer ids are rejected.
        """
        questions: dict[str, Question] = {q.id: q for q in quiz.questions}
        errors: list[str] = []
        responses: dict[str, QuestionResponse] = {}

        for question_id, value in (answers or {}).items():
            question = questions.get(question_id)
            if question is None:
                errors.append(f"{question_id}: unknown question")
                continue

            if value is None:
                responses[question_id] = QuestionResponse()
            elif QuestionType(question.type).takes_choices:
                if not isinstance(value, (list, tuple, set, frozenset)) or not all(
                    isinstance(v, str) for v in value
                ):
                    errors.append(f"{question_id}: expected a list of answer ids")
                    continue
                unknown = set(value) - {a.id for a in question.answers}
                if unknown:
                    errors.append(f"{question_id}: unknown answer ids {sorted(unknown)}")
                    continue
                responses[question_id] = QuestionResponse(selected_answer_ids=frozenset(value))
            else:
                if not isinstance(value, str):
                    errors.append(f"{question_id}: expected a text answer")
                    continue
                responses[question_id] = QuestionResponse(text=value)

        if errors:
            raise ValidationError("Invalid answers", errors)
        return responses

    def _store_responses(self, attempt_id: str, responses: Mapping[str, QuestionResponse]) -> None:
        now = self.clock()
        for question_id, response in responses.items():
            values: dict[str, Any] = {
                "selected_answer_ids": sorted(response.selected_answer_ids),
                "text_response": response.text,
                "updated_at": now,
            }
            stmt = insert_for(self.session, AttemptResponse).values(
                id=new_id(), attempt_id=attempt_id, question_id=question_id, **values
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["attempt_id", "question_id"],
                set_=values,
            )
            self.session.execute(stmt)

    def _load_responses(self, attempt_id: str) -> dict[str, QuestionResponse]:
        rows = self.session.scalars(
            select(AttemptResponse)
            .where(AttemptResponse.attempt_id == attempt_id)
            .execution_options(populate_existing=True)
        )
        return {
            row.question_id: QuestionResponse(
                selected_answer_ids=frozenset(row.selected_answer_ids or []),
                text=row.text_response,
            )
            for row in rows
        }

    def _store_results(self, attempt_id: str, grade: Grade) -> None:
        self.session.add_all(
            QuestionResult(
                id=new_id(),
                attempt_id=attempt_id,
                question_id=outcome.question_id,
                position=position,
                question_text=outcome.question_text,
                question_type=outcome.question_type,
                is_correct=outcome.is_correct,
                points_earned=outcome.points_earned,
                points_possible=outcome.points_possible,
                selected_answer_ids=outcome.selected_answer_ids,
                text_response=outcome.text_response,
                correct_answer_ids=outcome.correct_answer_ids,
            )
            for position, outcome in enumerate(grade.results)
        )
