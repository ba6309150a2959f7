"""
Unit tests for question scorers.

Tests the score() and validate() methods of each scorer, plus grading of a
whole set of responses.
"""

import pytest

from coursepath.core.percent import percent_score
from coursepath.db.models import Answer, Question
from coursepath.quiz.grading import grade_responses
from coursepath.quiz.scoring import SCORERS, QuestionType, get_scorer
from coursepath.quiz.scoring.base import QuestionResponse, ScoringRules

RULES = ScoringRules(essay_min_chars=10)


def make_question(type_: str, answers: list[tuple[str, str, bool]], points: int = 5) -> Question:
    return Question(
        id=f"q-{type_.lower()}",
        text="Question text",
        type=type_,
        points=points,
        answers=[Answer(id=aid, text=text, is_correct=ok) for aid, text, ok in answers],
    )


class TestScorerRegistry:
    """Test the scorer registry."""

    def test_all_question_types_registered(self):
        """Every question type should have a scorer."""
        assert set(SCORERS) == set(QuestionType)

    def test_get_scorer_by_string(self):
        """Should get scorer by type name, case-insensitively."""
        assert get_scorer("short_answer") is SCORERS[QuestionType.SHORT_ANSWER]

    def test_get_scorer_by_enum(self):
        assert get_scorer(QuestionType.ESSAY) is not None

    def test_get_scorer_invalid_type(self):
        """Should return None for invalid type."""
        assert get_scorer("matching") is None

    def test_choice_types_share_scorer(self):
        assert get_scorer("MULTIPLE_CHOICE") is get_scorer("TRUE_FALSE")


class TestChoiceScorer:
    """Test the multiple choice / true-false scorer."""

    @pytest.fixture
    def scorer(self):
        return get_scorer(QuestionType.MULTIPLE_CHOICE)

    @pytest.fixture
    def question(self):
        return make_question(
            "MULTIPLE_CHOICE",
            [("a", "TCP", True), ("b", "UDP", False), ("c", "SCTP", True)],
        )

    def test_exact_set_is_correct(self, scorer, question):
        """Selecting exactly the correct options earns full points."""
        result = scorer.score(question, QuestionResponse(frozenset({"c", "a"})), RULES)

        assert result.correct is True
        assert result.points_earned == 5
        assert result.correct_answer_ids == ["a", "c"]

    def test_subset_is_wrong(self, scorer, question):
        """Partially correct selections earn nothing."""
        result = scorer.score(question, QuestionResponse(frozenset({"a"})), RULES)

        assert result.correct is False
        assert result.points_earned == 0
        assert result.points_possible == 5

    def test_superset_is_wrong(self, scorer, question):
        result = scorer.score(question, QuestionResponse(frozenset({"a", "b", "c"})), RULES)
        assert result.correct is False

    def test_blank_is_wrong(self, scorer, question):
        result = scorer.score(question, QuestionResponse(), RULES)
        assert result.correct is False

    def test_no_correct_option_credits_empty_selection(self, scorer):
        """Empty selection equals an empty correct set; validation still rejects the question."""
        question = make_question("MULTIPLE_CHOICE", [("a", "x", False)], points=4)

        empty = scorer.score(question, QuestionResponse(), RULES)
        picked = scorer.score(question, QuestionResponse(frozenset({"a"})), RULES)

        assert empty.correct is True
        assert empty.points_earned == 4
        assert picked.correct is False
        assert "needs at least one correct answer" in scorer.validate(question)

    def test_validate_true_false_shape(self, scorer):
        """True/false needs exactly two answers with one correct."""
        good = make_question("TRUE_FALSE", [("t", "True", True), ("f", "False", False)])
        bad = make_question("TRUE_FALSE", [("t", "True", True), ("f", "False", True)])

        assert scorer.validate(good) == []
        assert "true/false needs exactly one correct answer" in scorer.validate(bad)

    def test_validate_requires_correct_answer(self, scorer):
        question = make_question("MULTIPLE_CHOICE", [("a", "x", False), ("b", "y", False)])
        assert "needs at least one correct answer" in scorer.validate(question)


class TestShortAnswerScorer:
    """Test the short answer containment scorer."""

    @pytest.fixture
    def scorer(self):
        return get_scorer(QuestionType.SHORT_ANSWER)

    @pytest.fixture
    def question(self):
        return make_question(
            "SHORT_ANSWER",
            [("a", "  ARP ", True), ("b", "Address Resolution Protocol", True)],
            points=2,
        )

    @pytest.mark.parametrize(
        "text",
        ["arp", "  ARP  ", "It is ARP, obviously", "address resolution protocol"],
    )
    def test_containment_matches(self, scorer, question, text):
        """Trimmed, lower-cased response containing any accepted answer is correct."""
        result = scorer.score(question, QuestionResponse(text=text), RULES)

        assert result.correct is True
        assert result.points_earned == 2

    @pytest.mark.parametrize("text", ["", "   ", "DHCP", "ar p"])
    def test_non_matching(self, scorer, question, text):
        result = scorer.score(question, QuestionResponse(text=text), RULES)
        assert result.correct is False

    @pytest.mark.parametrize("text", ["anything", "", None])
    def test_blank_accepted_answer_matches_everything(self, scorer, text):
        """An empty accepted text is contained in every response; save_quiz rejects it."""
        question = make_question("SHORT_ANSWER", [("a", "   ", True)])
        result = scorer.score(question, QuestionResponse(text=text), RULES)

        assert result.correct is True
        assert scorer.validate(question) == ["needs at least one non-blank correct answer"]


class TestEssayScorer:
    """Test the essay placeholder scorer."""

    @pytest.fixture
    def scorer(self):
        return get_scorer(QuestionType.ESSAY)

    @pytest.fixture
    def question(self):
        return make_question("ESSAY", [], points=3)

    def test_long_answer_credited(self, scorer, question):
        result = scorer.score(question, QuestionResponse(text="Subnetting splits networks"), RULES)
        assert result.points_earned == 3

    def test_threshold_is_strict(self, scorer, question):
        """Exactly essay_min_chars characters (after trimming) is not enough."""
        exactly_ten = QuestionResponse(text="   0123456789   ")
        eleven = QuestionResponse(text="0123456789a")

        assert scorer.score(question, exactly_ten, RULES).correct is False
        assert scorer.score(question, eleven, RULES).correct is True

    def test_threshold_is_configurable(self, scorer, question):
        result = scorer.score(question, QuestionResponse(text="short"), ScoringRules(essay_min_chars=3))
        assert result.correct is True


class TestPercentScore:
    """Test score rounding."""

    @pytest.mark.parametrize(
        ("earned", "possible", "expected"),
        [
            (5, 10, 50),
            (10, 10, 100),
            (0, 10, 0),
            (1, 3, 33),
            (2, 3, 67),
            (1, 8, 13),  # 12.5 rounds up
            (7, 8, 88),  # 87.5 rounds up
            (0, 0, 0),
        ],
    )
    def test_half_rounds_up(self, earned, possible, expected):
        assert percent_score(earned, possible) == expected


class TestGradeResponses:
    """Test grading a full quiz."""

    def test_mixed_quiz(self):
        mc = make_question("MULTIPLE_CHOICE", [("a", "x", True), ("b", "y", False)], points=5)
        mc.id = "mc"
        sa = make_question("SHORT_ANSWER", [("s", "arp", True)], points=3)
        sa.id = "sa"
        essay = make_question("ESSAY", [], points=2)
        essay.id = "essay"

        grade = grade_responses(
            [mc, sa, essay],
            {
                "mc": QuestionResponse(frozenset({"a"})),
                "sa": QuestionResponse(text="DNS"),
            },
            RULES,
        )

        assert grade.earned_points == 5
        assert grade.possible_points == 10
        assert grade.score == 50
        assert grade.correct_count == 1
        assert grade.total_questions == 3
        assert [r.question_id for r in grade.results] == ["mc", "sa", "essay"]

    def test_deterministic(self):
        """Same questions and responses always grade the same."""
        mc = make_question("MULTIPLE_CHOICE", [("a", "x", True), ("b", "y", False)])
        responses = {mc.id: QuestionResponse(frozenset({"b"}))}

        first = grade_responses([mc], responses, RULES)
        second = grade_responses([mc], responses, RULES)
        assert first == second

    def test_unknown_type_rejected(self):
        question = make_question("MATCHING", [])
        with pytest.raises(ValueError):
            grade_responses([question], {}, RULES)
