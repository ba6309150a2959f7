"""
Quiz Module - Attempts, scoring and authoring.

Components:
- engine: QuizEngine (start, save, submit, force-submit, focus loss, reports)
- grading: pure scoring of a set of responses
- retake: RetakePolicy (attempt limit and cooldown)
- scoring: per-question-type scorer registry
- authoring: save_quiz for instructors
"""

from coursepath.quiz.authoring import AnswerInput, QuestionInput, QuizSummary, save_quiz
from coursepath.quiz.engine import (
    AttemptHandle,
    AttemptOutcome,
    AttemptSummary,
    FocusLossStatus,
    QuizEngine,
)
from coursepath.quiz.grading import Grade, QuestionOutcome, grade_responses
from coursepath.quiz.retake import RetakeEligibility, RetakePolicy
from coursepath.quiz.scoring import QuestionType

__all__ = [
    # Engine
    "AttemptHandle",
    "AttemptOutcome",
    "AttemptSummary",
    "FocusLossStatus",
    "QuizEngine",
    # Grading
    "Grade",
    "QuestionOutcome",
    "grade_responses",
    # Retake policy
    "RetakeEligibility",
    "RetakePolicy",
    # Authoring
    "AnswerInput",
    "QuestionInput",
    "QuizSummary",
    "save_quiz",
    # Types
    "QuestionType",
]
