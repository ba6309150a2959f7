"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Integration tests run against a fresh in-memory SQLite database per test.
"""
import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before coursepath.db.database builds its module-level engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", "")

from sqlalchemy.orm import Session  # noqa: E402

from config import Settings  # noqa: E402
from coursepath.core.identity import Identity  # noqa: E402
from coursepath.db.database import build_engine  # noqa: E402
from coursepath.db.models import (  # noqa: E402
    Answer,
    Base,
    ContentItem,
    Course,
    Enrollment,
    Question,
    Quiz,
    User,
    new_id,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Time
# ========================================


class FakeClock:
    """Controllable naive-UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 1, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


# ========================================
# Database
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings with defaults, isolated from any local .env."""
    return Settings(_env_file=None, database_url="sqlite://", log_file=None)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = Session(bind=engine, autoflush=False)
    yield session
    session.close()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine for tests that need independent connections."""
    engine = build_engine(f"sqlite:///{tmp_path / 'coursepath.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


# ========================================
# Test data
# ========================================


class Factory:
    """Builds users, courses, content and quizzes for integration tests."""

    def __init__(self, session: Session):
        self.session = session

    def _save(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj

    def user(self, name: str | None = "Ada Learner", role: str = "learner") -> User:
        return self._save(User(id=new_id(), name=name, role=role))

    def course(self, instructor: User | None = None, title: str = "Networking Basics") -> Course:
        instructor = instructor or self.user(name="Grace Instructor", role="instructor")
        return self._save(Course(id=new_id(), title=title, instructor_id=instructor.id))

    def item(
        self,
        course: Course,
        type: str = "TEXT",
        title: str | None = None,
        hidden: bool = False,
        payload: dict | None = None,
        order: int | None = None,
    ) -> ContentItem:
        if order is None:
            order = len(self.session.query(ContentItem).filter_by(course_id=course.id).all())
        return self._save(
            ContentItem(
                id=new_id(),
                course_id=course.id,
                title=title or f"{type.title()} {order + 1}",
                order=order,
                type=type,
                hidden=hidden,
                payload=payload,
            )
        )

    def quiz(
        self,
        course: Course,
        questions: list[Question],
        passing_score: int = 70,
        title: str = "Checkpoint Quiz",
        hidden: bool = False,
    ) -> Quiz:
        item = self.item(course, type="QUIZ", title=title, hidden=hidden)
        for position, question in enumerate(questions):
            question.order = position
        return self._save(
            Quiz(id=new_id(), content_item_id=item.id, passing_score=passing_score, questions=questions)
        )

    def enroll(self, learner: User, course: Course) -> Enrollment:
        return self._save(Enrollment(id=new_id(), learner_id=learner.id, course_id=course.id))

    # Questions

    def mc(self, points: int = 5, text: str = "Which layer routes packets?") -> Question:
        return Question(
            id=new_id(),
            text=text,
            type="MULTIPLE_CHOICE",
            points=points,
            answers=[
                Answer(id=new_id(), text="Network", is_correct=True),
                Answer(id=new_id(), text="Physical", is_correct=False),
                Answer(id=new_id(), text="Session", is_correct=False),
            ],
        )

    def true_false(self, points: int = 1, answer: bool = True) -> Question:
        return Question(
            id=new_id(),
            text="TCP is connection oriented.",
            type="TRUE_FALSE",
            points=points,
            answers=[
                Answer(id=new_id(), text="True", is_correct=answer),
                Answer(id=new_id(), text="False", is_correct=not answer),
            ],
        )

    def short_answer(self, points: int = 2, *accepted: str) -> Question:
        return Question(
            id=new_id(),
            text="Name the protocol that resolves IP to MAC addresses.",
            type="SHORT_ANSWER",
            points=points,
            answers=[Answer(id=new_id(), text=a, is_correct=True) for a in (accepted or ("ARP",))],
        )

    def essay(self, points: int = 3) -> Question:
        return Question(id=new_id(), text="Explain subnetting.", type="ESSAY", points=points, answers=[])

    @staticmethod
    def right(question: Question) -> list[str]:
        return [a.id for a in question.answers if a.is_correct]

    @staticmethod
    def wrong(question: Question) -> list[str]:
        return [next(a.id for a in question.answers if not a.is_correct)]


@pytest.fixture
def factory(session):
    return Factory(session)


@pytest.fixture
def factory_for():
    """Factory class, for seeding sessions other than the default one."""
    return Factory


@pytest.fixture
def learner(factory):
    return factory.user()


@pytest.fixture
def learner_identity(learner):
    return Identity.learner(learner.id)
