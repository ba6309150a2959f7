"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from coursepath.db.database import build_engine
from coursepath.db.models import Base, Course, Enrollment, User, new_id

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'coursepath.db'}"


def run_cli_command(command: list[str], database_url: str, timeout: int = 60) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: Arguments after 'python -m coursepath.cli'
        database_url: Database the command should use
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    env = {
        **os.environ,
        "DATABASE_URL": database_url,
        "LOG_FILE": "",
        "COLUMNS": "200",
    }
    result = subprocess.run(
        [sys.executable, "-m", "coursepath.cli", *command],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def seeded(database_url):
    """An initialized database with one enrolled learner in an empty course."""
    code, _, stderr = run_cli_command(["db", "init"], database_url)
    assert code == 0, f"db init failed: {stderr}"

    engine = build_engine(database_url)
    with Session(engine) as session:
        instructor = User(id=new_id(), name="Grace Instructor", role="instructor")
        learner = User(id=new_id(), name="Ada Learner")
        course = Course(id=new_id(), title="Orientation", instructor_id=instructor.id)
        session.add_all([instructor, learner, course])
        session.flush()
        session.add(Enrollment(id=new_id(), learner_id=learner.id, course_id=course.id))
        session.commit()
        ids = {"learner": learner.id, "course": course.id}
    engine.dispose()
    return ids


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, database_url):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command(["--help"], database_url)

        assert code == 0, f"Help failed: {stderr}"
        assert "coursepath" in stdout.lower()
        assert "Commands" in stdout

    @pytest.mark.parametrize("group", ["db", "certificate"])
    def test_group_help(self, database_url, group):
        code, stdout, stderr = run_cli_command([group, "--help"], database_url)
        assert code == 0, f"{group} help failed: {stderr}"

    def test_version(self, database_url):
        code, stdout, _ = run_cli_command(["version"], database_url)

        assert code == 0
        assert "coursepath" in stdout
        assert "sqlite" in stdout


class TestDatabaseCommands:
    def test_init_is_idempotent(self, database_url):
        for _ in range(2):
            code, stdout, stderr = run_cli_command(["db", "init"], database_url)
            assert code == 0, f"db init failed: {stderr}"
            assert "Database initialized" in stdout

    def test_check(self, database_url):
        code, stdout, _ = run_cli_command(["db", "check"], database_url)

        assert code == 0
        assert "reachable" in stdout


class TestLearnerCommands:
    def test_outline_unknown_course(self, seeded, database_url):
        code, stdout, _ = run_cli_command(["outline", "missing", "--learner", seeded["learner"]], database_url)

        assert code == 1
        assert "not found" in stdout.lower()

    def test_outline(self, seeded, database_url):
        code, stdout, stderr = run_cli_command(
            ["outline", seeded["course"], "--learner", seeded["learner"]], database_url
        )

        assert code == 0, stderr
        assert "Progress: 0/0" in stdout

    def test_completion(self, seeded, database_url):
        code, stdout, stderr = run_cli_command(
            ["completion", seeded["course"], "--learner", seeded["learner"]], database_url
        )

        assert code == 0, stderr
        assert "Course completed" in stdout


class TestCertificateCommands:
    def test_issue_then_verify(self, seeded, database_url):
        code, stdout, stderr = run_cli_command(
            ["certificate", "issue", seeded["course"], "--learner", seeded["learner"]], database_url
        )
        assert code == 0, stderr
        assert "Certificate issued" in stdout

        certificate_id = stdout.split("Certificate issued:")[1].split()[0]
        code, stdout, stderr = run_cli_command(["certificate", "verify", certificate_id], database_url)

        assert code == 0, stderr
        assert "Ada Learner" in stdout
        assert "Orientation" in stdout

    def test_issue_requires_enrollment(self, seeded, database_url):
        code, stdout, _ = run_cli_command(
            ["certificate", "issue", seeded["course"], "--learner", "stranger"], database_url
        )

        assert code == 1
        assert "not_enrolled" in stdout

    def test_verify_unknown(self, database_url):
        run_cli_command(["db", "init"], database_url)
        code, stdout, _ = run_cli_command(["certificate", "verify", "nope"], database_url)

        assert code == 1
        assert "not found" in stdout.lower()
